"""Source and reference ingestion.

This package reads vendor rows and reference tables, runs them through
entity models, and hands normalized runs to the store layer.
"""
