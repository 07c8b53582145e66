"""Consistency checks against raw descriptor files.

These checks re-read the source CSV of a logical key and compare it with
what the accessors return from the concatenated store. They validate
loader and addressing correctness and detect stale or corrupted caches;
no retrieval path depends on them.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from core.constants import (
    CSV_DELIMITER,
    DEFAULT_NAN_VALUE,
    DESCRIPTOR_FILE_SUFFIX,
    REFERENCE_IMAGE_LABEL,
)
from core.errors import DescStoreVerificationError
from core.logging_config import get_logger
from core.types import HPatchesStore
from ingest.table_reader import clean_descriptors, read_table
from store import hpatches_accessor

_LOGGER = get_logger(__name__)


def check_hpatches_descriptors(
    store: HPatchesStore,
    sequences: Sequence[str],
    noise_level: str,
    images: Sequence[int] | np.ndarray,
    indices: Sequence[int] | np.ndarray,
    nan_value: float | None = DEFAULT_NAN_VALUE,
) -> None:
    """Verify ``get_descriptors`` against the raw files for every key.

    Args:
        store: Loaded HPatches store.
        sequences: Sequence name per key.
        noise_level: Noise level set name.
        images: One-based image position within the set per key.
        indices: One-based descriptor index per key.
        nan_value: NaN policy the store was loaded with.

    Raises:
        DescStoreVerificationError: If any returned column differs from the
            raw descriptor.
    """
    stored = hpatches_accessor.get_descriptors(store, sequences, noise_level, images, indices)
    sequence_names = [sequences] if isinstance(sequences, str) else list(sequences)
    raw_blocks: dict[tuple[str, str], np.ndarray] = {}
    for column, (sequence, image, index) in enumerate(
        zip(sequence_names, np.ravel(images), np.ravel(indices))
    ):
        label = raw_image_label(noise_level, int(image))
        if (sequence, label) not in raw_blocks:
            raw_blocks[(sequence, label)] = _read_raw_block(store, sequence, label, nan_value)
        raw_block = raw_blocks[(sequence, label)]
        key = f"sequence={sequence} noise_level={noise_level} image={label} index={int(index)}"
        if int(index) > raw_block.shape[1]:
            raise DescStoreVerificationError(
                f"Raw descriptor missing for {key}: source file holds "
                f"{raw_block.shape[1]} descriptors."
            )
        _assert_equal(stored[:, column], raw_block[:, int(index) - 1], key)
    _LOGGER.info(
        "consistency_check_passed",
        name=store.name,
        noise_level=noise_level,
        key_count=int(stored.shape[1]),
    )


def check_hpatches_image_descriptors(
    store: HPatchesStore,
    sequence: str,
    noise_level: str,
    image: int,
    nan_value: float | None = DEFAULT_NAN_VALUE,
) -> None:
    """Verify ``get_image_descriptors`` against the raw image file.

    Raises:
        DescStoreVerificationError: If the stored block differs from the file.
    """
    stored = hpatches_accessor.get_image_descriptors(store, sequence, noise_level, image)
    label = raw_image_label(noise_level, image)
    raw_block = _read_raw_block(store, sequence, label, nan_value)
    key = f"sequence={sequence} noise_level={noise_level} image={label}"
    if stored.shape != raw_block.shape:
        raise DescStoreVerificationError(
            f"Descriptor shape mismatch for {key}: store has {stored.shape}, "
            f"source file has {raw_block.shape}."
        )
    _assert_equal(stored, raw_block, key)
    _LOGGER.info(
        "consistency_check_passed",
        name=store.name,
        noise_level=noise_level,
        key_count=int(stored.shape[1]),
    )


def raw_image_label(noise_level: str, image: int) -> str:
    """Derive the source file label of a noise level image position.

    Position 1 is the reference image; position ``p > 1`` is level ``p - 1``
    of the category named by the noise level's first letter.
    """
    if image == 1:
        return REFERENCE_IMAGE_LABEL
    return f"{noise_level[0]}{image - 1}"


def _read_raw_block(
    store: HPatchesStore,
    sequence: str,
    label: str,
    nan_value: float | None,
) -> np.ndarray:
    """Read one source file with the store's dtype and NaN policy applied."""
    file_path = store.path / sequence / f"{label}{DESCRIPTOR_FILE_SUFFIX}"
    raw_table = read_table(file_path, CSV_DELIMITER)
    if raw_table.size == 0:
        # Empty files carry no dimension.
        raw_table = np.empty((0, store.descriptor_dim))
    return clean_descriptors(raw_table.T, store.data.dtype.name, nan_value)


def _assert_equal(stored: np.ndarray, expected: np.ndarray, key: str) -> None:
    """Raise when two descriptor arrays differ element-wise."""
    equal_nan = np.issubdtype(stored.dtype, np.floating)
    if np.array_equal(stored, expected, equal_nan=equal_nan):
        return
    difference = np.abs(stored.astype(np.float64) - expected.astype(np.float64))
    raise DescStoreVerificationError(
        f"Stored descriptors differ from source file for {key}: "
        f"max abs difference {float(np.nanmax(difference))}. "
        "Delete the descriptor cache and reload, or check the addressing."
    )
