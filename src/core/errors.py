"""Descriptor store exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class DescStoreError(Exception):
    """Base exception for all descriptor store failures."""


class DescStoreConfigError(DescStoreError):
    """Raised for invalid runtime configuration or store options."""


class DescStoreIngestError(DescStoreError):
    """Raised for source parsing and descriptor data integrity failures."""


class DescStoreAccessError(DescStoreError):
    """Raised when a retrieval request violates addressing preconditions."""


class DescStoreCacheError(DescStoreError):
    """Raised for descriptor cache read and write failures."""


class DescStoreVerificationError(DescStoreError):
    """Raised when stored descriptors disagree with raw source files."""
