"""PhotoTourism descriptor retrieval by logical key.

A key is (sequence, descriptor index); the store has no image axis, so
offsets address the data columns directly.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from core.types import PhotoTourismStore
from store.addressing import absolute_positions, as_index_array, resolve_sequence_indices


def get_descriptors(
    store: PhotoTourismStore,
    sequence_or_ids: str | int | Sequence[int] | np.ndarray,
    indices: Sequence[int] | np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Gather descriptor columns for per-sequence indices.

    Args:
        store: Loaded PhotoTourism store.
        sequence_or_ids: Sequence name, or zero-based sequence ids. A name or
            a single id is broadcast to every requested index.
        indices: One-based descriptor indices within their sequence.

    Returns:
        Pair of matrix ``[dim, len(indices)]`` and the resolved sequence id
        per column.

    Raises:
        DescStoreAccessError: If the sequence is unknown, lengths differ, or
            any index is out of range.
    """
    index_array = as_index_array(indices, "descriptor indexes")
    if isinstance(sequence_or_ids, str):
        sequence_ids = resolve_sequence_indices(store.sequences, [sequence_or_ids])
    else:
        sequence_ids = as_index_array(
            np.atleast_1d(np.asarray(sequence_or_ids)), "sequence ids"
        )
    if sequence_ids.size == 1:
        sequence_ids = np.full(index_array.shape, sequence_ids[0], dtype=np.int64)
    columns = absolute_positions(
        store.offsets, store.per_sequence_count, sequence_ids, index_array
    )
    return store.data[:, columns], sequence_ids
