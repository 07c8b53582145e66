"""Python SDK for descriptor store operations.

This module exposes ``open_store`` plus a client with per-dataset
handles that bind a loaded store to its accessors and consistency checks.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Callable, Sequence

import numpy as np

from core.config import DescStoreConfig
from core.constants import DATASET_ALIASES, HPATCHES_DATASET, PHOTOTOURISM_DATASET
from core.errors import DescStoreConfigError
from core.types import (
    DescriptorIdentity,
    DescriptorStore,
    HPatchesStore,
    PhotoTourismStore,
    StoreOptions,
)
from ingest.hpatches_loader import load_hpatches_store
from ingest.phototourism_loader import load_phototourism_store
from ingest.table_reader import resolve_dtype
from store import consistency, hpatches_accessor, phototourism_accessor
from store.cache_gateway import CacheIdentity, cache_path_for, load_or_build

StoreLoader = Callable[[str, Path, StoreOptions, DescStoreConfig], DescriptorStore]

_LOADERS: dict[str, StoreLoader] = {
    HPATCHES_DATASET: load_hpatches_store,
    PHOTOTOURISM_DATASET: load_phototourism_store,
}


def open_store(
    descriptor_name: str,
    options: StoreOptions | None = None,
    config: DescStoreConfig | None = None,
) -> DescriptorStore | DescriptorIdentity:
    """Open a descriptor set from cache or raw files.

    Args:
        descriptor_name: Descriptor set directory name.
        options: Store options; defaults to HPatches, float32, cached.
        config: Runtime configuration; read from environment when omitted.

    Returns:
        Loaded store, or only its identity when ``options.no_load`` is set.

    Raises:
        DescStoreConfigError: If the dataset, dtype, or normalization options
            are invalid. Raised before any file is read.
        DescStoreIngestError: If raw descriptor files are invalid.
        DescStoreCacheError: If the cache cannot be read or written.
    """
    resolved_options = options or StoreOptions()
    dataset = resolve_dataset(resolved_options.dataset)
    resolve_dtype(resolved_options.dtype)
    if resolved_options.normalize and resolved_options.normalizer is None:
        raise DescStoreConfigError(
            "Normalization requested without a normalizer. "
            "Pass StoreOptions(normalizer=...) or disable normalize."
        )
    if resolved_options.no_load:
        return DescriptorIdentity(name=descriptor_name, dataset=dataset)
    resolved_config = config or DescStoreConfig.from_env()
    descriptor_path = resolved_config.descriptor_root(dataset) / descriptor_name
    loader = _LOADERS[dataset]
    store = load_or_build(
        cache_path_for(descriptor_path),
        lambda: loader(descriptor_name, descriptor_path, resolved_options, resolved_config),
        resolved_options.use_cache,
        CacheIdentity(name=descriptor_name, path=descriptor_path, dataset=dataset),
    )
    if resolved_options.normalize and resolved_options.normalizer is not None:
        store = replace(store, data=resolved_options.normalizer(np.array(store.data)))
    return store


def resolve_dataset(dataset: str) -> str:
    """Map a dataset selector or alias to its canonical name.

    Raises:
        DescStoreConfigError: If the selector is unknown.
    """
    canonical = DATASET_ALIASES.get(dataset)
    if canonical is None:
        raise DescStoreConfigError(
            f"Invalid dataset '{dataset}'. Use one of: {', '.join(DATASET_ALIASES)}."
        )
    return canonical


class HPatchesDescriptors:
    """Loaded HPatches descriptor set with retrieval and checks."""

    def __init__(self, store: HPatchesStore, nan_value: float | None) -> None:
        self.store = store
        self._nan_value = nan_value

    def get_descriptors(
        self,
        sequences: Sequence[str],
        noise_level: str,
        images: Sequence[int] | np.ndarray,
        indices: Sequence[int] | np.ndarray,
    ) -> np.ndarray:
        """Return ``[dim, len(indices)]`` descriptors for the given keys."""
        return hpatches_accessor.get_descriptors(
            self.store, sequences, noise_level, images, indices
        )

    def get_image_descriptors(self, sequence: str, noise_level: str, image: int) -> np.ndarray:
        """Return all descriptors of one sequence image."""
        return hpatches_accessor.get_image_descriptors(self.store, sequence, noise_level, image)

    def check_descriptors(
        self,
        sequences: Sequence[str],
        noise_level: str,
        images: Sequence[int] | np.ndarray,
        indices: Sequence[int] | np.ndarray,
    ) -> None:
        """Verify ``get_descriptors`` against the raw files."""
        consistency.check_hpatches_descriptors(
            self.store, sequences, noise_level, images, indices, self._nan_value
        )

    def check_image_descriptors(self, sequence: str, noise_level: str, image: int) -> None:
        """Verify ``get_image_descriptors`` against the raw file."""
        consistency.check_hpatches_image_descriptors(
            self.store, sequence, noise_level, image, self._nan_value
        )


class PhotoTourismDescriptors:
    """Loaded PhotoTourism descriptor set with retrieval."""

    def __init__(self, store: PhotoTourismStore) -> None:
        self.store = store

    def get_descriptors(
        self,
        sequence_or_ids: str | int | Sequence[int] | np.ndarray,
        indices: Sequence[int] | np.ndarray,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return descriptors and resolved sequence ids for the given indices."""
        return phototourism_accessor.get_descriptors(self.store, sequence_or_ids, indices)


class DescStoreClient:
    """Primary SDK entry point for descriptor store workflows."""

    def __init__(self, config: DescStoreConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or DescStoreConfig.from_env()

    @property
    def config(self) -> DescStoreConfig:
        """Runtime configuration used by this client."""
        return self._config

    def open_store(
        self,
        descriptor_name: str,
        options: StoreOptions | None = None,
    ) -> DescriptorStore | DescriptorIdentity:
        """Open a descriptor set with this client's configuration."""
        return open_store(descriptor_name, options, self._config)

    def descriptors(
        self,
        descriptor_name: str,
        options: StoreOptions | None = None,
    ) -> HPatchesDescriptors | PhotoTourismDescriptors:
        """Open a descriptor set and wrap it in its dataset handle.

        Raises:
            DescStoreConfigError: If ``options.no_load`` is set.
        """
        resolved_options = options or StoreOptions()
        store = self.open_store(descriptor_name, resolved_options)
        if isinstance(store, HPatchesStore):
            return HPatchesDescriptors(store, resolved_options.nan_value)
        if isinstance(store, PhotoTourismStore):
            return PhotoTourismDescriptors(store)
        raise DescStoreConfigError(
            f"Descriptor set '{descriptor_name}' was opened with no_load; "
            "retrieval requires a loaded store."
        )

    def with_data_root(self, data_root: str) -> "DescStoreClient":
        """Clone the client with a different benchmark root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client with every root derived from ``data_root``.
        """
        updated_config = DescStoreConfig.for_data_root(
            Path(data_root), progress_interval=self._config.progress_interval
        )
        return DescStoreClient(updated_config)
