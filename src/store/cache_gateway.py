"""On-disk descriptor store cache.

This module persists a fully built store as one uncompressed ``.npz``
archive (zip64, so payloads above 2 GB are fine) and restores it on
later runs. The cache is whole-object and versionless: any change to
the source files requires deleting the cache file.
"""

from __future__ import annotations

import os
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import numpy as np

from core.constants import CACHE_FILE_NAME, HPATCHES_DATASET, PHOTOTOURISM_DATASET
from core.errors import DescStoreCacheError
from core.logging_config import get_logger
from core.types import DescriptorStore, HPatchesStore, PhotoTourismStore

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class CacheIdentity:
    """Store fields that are not persisted and are re-attached on load.

    Attributes:
        name: Descriptor set name.
        path: Descriptor set directory.
        dataset: Canonical dataset name.
    """

    name: str
    path: Path
    dataset: str


def cache_path_for(descriptor_path: Path) -> Path:
    """Return the cache file location of a descriptor set."""
    return descriptor_path / CACHE_FILE_NAME


def load_or_build(
    cache_path: Path,
    build_fn: Callable[[], DescriptorStore],
    use_cache: bool,
    identity: CacheIdentity,
) -> DescriptorStore:
    """Restore a store from cache, or build it and cache the result.

    The cache is written only after ``build_fn`` returns a complete store,
    so a failed build never leaves a cache file behind.

    Args:
        cache_path: Cache file path.
        build_fn: Loader invocation producing a fresh store.
        use_cache: Whether to read and write the cache.
        identity: Non-persisted store fields.

    Returns:
        Loaded or freshly built store.

    Raises:
        DescStoreCacheError: If the cache cannot be read or written.
    """
    if use_cache and cache_path.exists():
        _LOGGER.info("store_loading_cache", cache_path=str(cache_path), name=identity.name)
        return read_store_cache(cache_path, identity)
    store = build_fn()
    if use_cache:
        write_store_cache(cache_path, store)
    return store


def write_store_cache(cache_path: Path, store: DescriptorStore) -> None:
    """Atomically serialize a store to ``cache_path``.

    Raises:
        DescStoreCacheError: If the archive cannot be written.
    """
    payload = _payload_from_store(store)
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    file_descriptor, temp_name = tempfile.mkstemp(
        prefix=".desc-", suffix=".npz.tmp", dir=cache_path.parent
    )
    try:
        with os.fdopen(file_descriptor, "wb") as handle:
            np.savez(handle, **payload)
        os.replace(temp_name, cache_path)
    except OSError as error:
        raise DescStoreCacheError(
            f"Failed to write descriptor cache at {cache_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
    finally:
        Path(temp_name).unlink(missing_ok=True)
    _LOGGER.info(
        "store_cache_saved",
        cache_path=str(cache_path),
        name=store.name,
        dataset=store.dataset,
        descriptor_count=store.descriptor_count,
    )


def read_store_cache(cache_path: Path, identity: CacheIdentity) -> DescriptorStore:
    """Deserialize a store and re-attach its identity fields.

    Raises:
        DescStoreCacheError: If the archive is unreadable or incomplete.
    """
    try:
        with np.load(cache_path, allow_pickle=False) as archive:
            arrays = {key: archive[key] for key in archive.files}
        return _store_from_payload(arrays, identity)
    except KeyError as error:
        raise DescStoreCacheError(
            f"Descriptor cache at {cache_path} is missing field {error}. "
            "Delete the cache file to rebuild it from source files."
        ) from error
    except (OSError, ValueError, zipfile.BadZipFile) as error:
        raise DescStoreCacheError(
            f"Failed to read descriptor cache at {cache_path}: {error}. "
            "Delete the cache file to rebuild it from source files."
        ) from error


def _payload_from_store(store: DescriptorStore) -> dict[str, np.ndarray]:
    """Flatten a store into named arrays."""
    payload = {
        "sequences": np.array(store.sequences, dtype=str),
        "data": store.data,
        "per_sequence_count": store.per_sequence_count,
        "offsets": store.offsets,
        "sequence_index": store.sequence_index,
    }
    if isinstance(store, HPatchesStore):
        noise_levels = list(store.noise_level_sets)
        payload["image_labels"] = np.array(store.image_labels, dtype=str)
        payload["noise_level_names"] = np.array(noise_levels, dtype=str)
        payload["noise_level_slots"] = np.array(
            [store.noise_level_sets[level] for level in noise_levels], dtype=np.int64
        )
        return payload
    payload["correspondence_ids"] = store.correspondence_ids
    payload["reference_image_ids"] = store.reference_image_ids
    payload["image_names"] = np.array(
        [name for names in store.image_names for name in names], dtype=str
    )
    payload["image_counts"] = np.array(store.image_counts, dtype=np.int64)
    return payload


def _store_from_payload(
    arrays: dict[str, np.ndarray],
    identity: CacheIdentity,
) -> DescriptorStore:
    """Rebuild a typed store from named arrays."""
    sequences = tuple(str(name) for name in arrays["sequences"])
    if identity.dataset == HPATCHES_DATASET:
        noise_level_slots = arrays["noise_level_slots"]
        return HPatchesStore(
            name=identity.name,
            path=identity.path,
            sequences=sequences,
            data=arrays["data"],
            per_sequence_count=arrays["per_sequence_count"],
            offsets=arrays["offsets"],
            sequence_index=arrays["sequence_index"],
            image_labels=tuple(str(label) for label in arrays["image_labels"]),
            noise_level_sets={
                str(level): tuple(int(slot) for slot in noise_level_slots[row])
                for row, level in enumerate(arrays["noise_level_names"])
            },
        )
    if identity.dataset == PHOTOTOURISM_DATASET:
        return PhotoTourismStore(
            name=identity.name,
            path=identity.path,
            sequences=sequences,
            data=arrays["data"],
            per_sequence_count=arrays["per_sequence_count"],
            offsets=arrays["offsets"],
            sequence_index=arrays["sequence_index"],
            correspondence_ids=arrays["correspondence_ids"],
            reference_image_ids=arrays["reference_image_ids"],
            image_names=_split_image_names(arrays["image_names"], arrays["image_counts"]),
        )
    raise DescStoreCacheError(f"Unsupported dataset '{identity.dataset}' for descriptor cache.")


def _split_image_names(
    flat_names: np.ndarray,
    image_counts: np.ndarray,
) -> tuple[tuple[str, ...], ...]:
    """Regroup flattened image names per sequence."""
    groups: list[tuple[str, ...]] = []
    start = 0
    for count in image_counts.tolist():
        groups.append(tuple(str(name) for name in flat_names[start : start + count]))
        start += count
    return tuple(groups)
