"""
Analyzer package - summary aggregation and report generation
"""
