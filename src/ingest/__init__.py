"""Descriptor ingestion.

This package parses raw per-image descriptor tables and concatenates
them into immutable stores for the accessor layer.
"""
