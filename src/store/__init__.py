"""Run storage layer.

This package persists immutable normalization runs and their catalogs.
It powers run loading, change tracking, and lineage for the SDK.
"""
