"""HPatches descriptor retrieval by logical key.

A key is (sequence, noise level, image position, descriptor index).
The image position is one-based within the noise level set and selects
one slot of the store's image axis.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from core.errors import DescStoreAccessError, DescStoreConfigError
from core.types import HPatchesStore
from store.addressing import (
    absolute_positions,
    as_index_array,
    check_matching_lengths,
    resolve_sequence_indices,
)


def get_descriptors(
    store: HPatchesStore,
    sequences: Sequence[str],
    noise_level: str,
    images: Sequence[int] | np.ndarray,
    indices: Sequence[int] | np.ndarray,
) -> np.ndarray:
    """Gather one descriptor per key.

    Args:
        store: Loaded HPatches store.
        sequences: Sequence name per key.
        noise_level: One of the store's noise level set names.
        images: One-based image position within the noise level set per key.
        indices: One-based descriptor index per key.

    Returns:
        Matrix ``[dim, len(indices)]`` in request order.

    Raises:
        DescStoreConfigError: If the noise level is unknown.
        DescStoreAccessError: If request lengths differ, or any sequence,
            image position, or index is invalid.
    """
    image_slots = noise_level_slots(store, noise_level)
    sequence_names = [sequences] if isinstance(sequences, str) else list(sequences)
    image_positions = as_index_array(images, "image positions")
    index_array = as_index_array(indices, "descriptor indexes")
    check_matching_lengths(
        sequences=np.asarray(sequence_names, dtype=object),
        images=image_positions,
        indices=index_array,
    )
    sequence_indices = resolve_sequence_indices(store.sequences, sequence_names)
    columns = absolute_positions(
        store.offsets, store.per_sequence_count, sequence_indices, index_array
    )
    slots = _image_slots(image_slots, image_positions, noise_level)
    return store.data[:, columns, slots]


def get_image_descriptors(
    store: HPatchesStore,
    sequence: str,
    noise_level: str,
    image: int,
) -> np.ndarray:
    """Return every descriptor of one sequence image.

    Args:
        store: Loaded HPatches store.
        sequence: Sequence name.
        noise_level: Noise level set name.
        image: One-based image position within the noise level set.

    Returns:
        Matrix ``[dim, per_sequence_count[sequence]]`` in index order.
    """
    image_slots = noise_level_slots(store, noise_level)
    sequence_index = int(resolve_sequence_indices(store.sequences, [sequence])[0])
    image_positions = as_index_array([image], "image positions")
    slot = int(_image_slots(image_slots, image_positions, noise_level)[0])
    start = int(store.offsets[sequence_index])
    stop = start + int(store.per_sequence_count[sequence_index])
    return store.data[:, start:stop, slot]


def noise_level_slots(store: HPatchesStore, noise_level: str) -> tuple[int, ...]:
    """Return zero-based image axis slots of a noise level set.

    Raises:
        DescStoreConfigError: If the noise level is unknown.
    """
    if noise_level not in store.noise_level_sets:
        raise DescStoreConfigError(
            f"Unknown noise level '{noise_level}'. "
            f"Use one of: {', '.join(store.noise_level_sets)}."
        )
    return tuple(store.noise_level_sets[noise_level])


def _image_slots(
    image_slots: tuple[int, ...],
    image_positions: np.ndarray,
    noise_level: str,
) -> np.ndarray:
    """Translate one-based set positions into image axis slots."""
    invalid = image_positions[(image_positions < 1) | (image_positions > len(image_slots))]
    if invalid.size:
        raise DescStoreAccessError(
            f"Image positions {invalid.tolist()} out of range for noise level "
            f"'{noise_level}': expected values in [1, {len(image_slots)}]."
        )
    return np.asarray(image_slots, dtype=np.int64)[image_positions - 1]
