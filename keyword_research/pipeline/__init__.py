"""
Pipeline package - keyword collection, scoring, checkpointing and ranking
"""
