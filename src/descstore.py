"""Public SDK surface for the descriptor store.

This module provides a stable import path for library users.
It re-exports the client, ``open_store``, and typed store models.
"""

from __future__ import annotations

from core.config import DescStoreConfig
from core.errors import (
    DescStoreAccessError,
    DescStoreCacheError,
    DescStoreConfigError,
    DescStoreError,
    DescStoreIngestError,
    DescStoreVerificationError,
)
from core.types import DescriptorIdentity, HPatchesStore, PhotoTourismStore, StoreOptions
from store.descriptor_sdk import (
    DescStoreClient,
    HPatchesDescriptors,
    PhotoTourismDescriptors,
    open_store,
)

__all__ = [
    "DescStoreAccessError",
    "DescStoreCacheError",
    "DescStoreClient",
    "DescStoreConfig",
    "DescStoreConfigError",
    "DescStoreError",
    "DescStoreIngestError",
    "DescStoreVerificationError",
    "DescriptorIdentity",
    "HPatchesDescriptors",
    "HPatchesStore",
    "PhotoTourismDescriptors",
    "PhotoTourismStore",
    "StoreOptions",
    "open_store",
]
