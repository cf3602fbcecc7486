"""Metrics provider implementations"""
