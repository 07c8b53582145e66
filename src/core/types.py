"""Shared typed models.

This module defines immutable data models used by ingest, cache,
accessor, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal, Mapping

import numpy as np

from core.constants import (
    DEFAULT_DTYPE,
    DEFAULT_NAN_VALUE,
    HPATCHES_DATASET,
    HPATCHES_IMAGE_LABELS,
    NOISE_LEVEL_SETS,
    PHOTOTOURISM_DATASET,
)

DatasetName = Literal["hpatches", "phototourism"]
NoiseLevel = Literal["easy", "hard", "tough"]
DataNormalizer = Callable[[np.ndarray], np.ndarray]


@dataclass(frozen=True)
class StoreOptions:
    """Options for opening a descriptor store.

    Attributes:
        dataset: Dataset variant selector (``hpatches``/``hp`` or ``phototourism``/``pt``).
        dtype: Numeric storage type of the descriptor matrix.
        use_cache: Read the on-disk cache when present and write it after a build.
        normalize: Apply ``normalizer`` to the finished descriptor matrix.
        normalizer: Post-processing transform over the data array.
        nan_value: Replacement for NaN entries; ``None`` or NaN keeps them.
        no_load: Only construct the descriptor identity, skip all loading.
    """

    dataset: str = HPATCHES_DATASET
    dtype: str = DEFAULT_DTYPE
    use_cache: bool = True
    normalize: bool = False
    normalizer: DataNormalizer | None = None
    nan_value: float | None = DEFAULT_NAN_VALUE
    no_load: bool = False


@dataclass(frozen=True)
class DescriptorIdentity:
    """Identity metadata of a descriptor set that was not loaded.

    Attributes:
        name: Descriptor set name.
        dataset: Canonical dataset name.
    """

    name: str
    dataset: str


@dataclass(frozen=True, eq=False)
class HPatchesStore:
    """Concatenated HPatches descriptors with sequence offsets.

    ``data`` has shape ``[dim, total, len(image_labels)]``: the second axis
    holds every descriptor index of every sequence (sequence-major), the
    third axis is the fixed image axis. ``offsets`` addresses the second
    axis only.

    Attributes:
        name: Descriptor set name.
        path: Descriptor set directory.
        sequences: Ordered sequence names; position is the sequence index.
        data: Descriptor tensor ``[dim, total, images]``.
        per_sequence_count: Descriptor indices contributed by each sequence.
        offsets: Exclusive prefix sum of ``per_sequence_count``.
        sequence_index: Owning sequence index for every descriptor index.
        image_labels: Image axis labels.
        noise_level_sets: Noise level to zero-based image axis positions.
        dataset: Dataset tag.
    """

    name: str
    path: Path
    sequences: tuple[str, ...]
    data: np.ndarray
    per_sequence_count: np.ndarray
    offsets: np.ndarray
    sequence_index: np.ndarray
    image_labels: tuple[str, ...] = HPATCHES_IMAGE_LABELS
    noise_level_sets: Mapping[str, tuple[int, ...]] = field(
        default_factory=lambda: dict(NOISE_LEVEL_SETS)
    )
    dataset: str = HPATCHES_DATASET

    def __post_init__(self) -> None:
        _freeze_arrays(self.data, self.per_sequence_count, self.offsets, self.sequence_index)

    @property
    def descriptor_dim(self) -> int:
        """Descriptor dimensionality."""
        return int(self.data.shape[0])

    @property
    def descriptor_count(self) -> int:
        """Size of the descriptor index axis."""
        return int(self.data.shape[1])


@dataclass(frozen=True, eq=False)
class PhotoTourismStore:
    """Concatenated PhotoTourism descriptors with sequence offsets.

    ``data`` has shape ``[dim, total]``; images of a sequence are
    concatenated directly into the index axis, so ``offsets`` addresses
    every column.

    Attributes:
        name: Descriptor set name.
        path: Descriptor set directory.
        sequences: Ordered sequence names; position is the sequence index.
        data: Descriptor matrix ``[dim, total]``.
        per_sequence_count: Descriptors contributed by each sequence.
        offsets: Exclusive prefix sum of ``per_sequence_count``.
        sequence_index: Owning sequence index for every column.
        correspondence_ids: One-based 3D point ids from ``info.txt``.
        reference_image_ids: One-based reference image ids from ``interest.txt``.
        image_names: Per-sequence image file stems, empty for single-file sets.
        dataset: Dataset tag.
    """

    name: str
    path: Path
    sequences: tuple[str, ...]
    data: np.ndarray
    per_sequence_count: np.ndarray
    offsets: np.ndarray
    sequence_index: np.ndarray
    correspondence_ids: np.ndarray
    reference_image_ids: np.ndarray
    image_names: tuple[tuple[str, ...], ...] = ()
    dataset: str = PHOTOTOURISM_DATASET

    def __post_init__(self) -> None:
        _freeze_arrays(
            self.data,
            self.per_sequence_count,
            self.offsets,
            self.sequence_index,
            self.correspondence_ids,
            self.reference_image_ids,
        )

    @property
    def descriptor_dim(self) -> int:
        """Descriptor dimensionality."""
        return int(self.data.shape[0])

    @property
    def descriptor_count(self) -> int:
        """Number of descriptor columns."""
        return int(self.data.shape[1])

    @property
    def image_counts(self) -> tuple[int, ...]:
        """Number of image files loaded per sequence."""
        return tuple(len(names) for names in self.image_names)


DescriptorStore = HPatchesStore | PhotoTourismStore


def _freeze_arrays(*arrays: np.ndarray) -> None:
    for array in arrays:
        array.setflags(write=False)
