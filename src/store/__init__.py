"""Descriptor storage and retrieval layer.

This package caches built stores on disk and resolves logical keys
to descriptor columns for the SDK.
"""
