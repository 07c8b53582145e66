"""Offset arithmetic shared by the descriptor accessors.

Descriptor indices are one-based at the API. Sequence indices are
zero-based positions into ``store.sequences``. The column of descriptor
``i`` of sequence ``s`` is ``offsets[s] + i - 1``.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from core.errors import DescStoreAccessError


def exclusive_prefix_sum(per_sequence_count: np.ndarray) -> np.ndarray:
    """Return ``offsets`` with ``offsets[0] == 0`` and ``offsets[i] == sum(counts[:i])``."""
    counts = np.asarray(per_sequence_count, dtype=np.int64)
    offsets = np.zeros(counts.shape, dtype=np.int64)
    np.cumsum(counts[:-1], out=offsets[1:])
    return offsets


def build_sequence_index(per_sequence_count: np.ndarray) -> np.ndarray:
    """Return the owning sequence index of every descriptor index."""
    counts = np.asarray(per_sequence_count, dtype=np.int64)
    return np.repeat(np.arange(counts.size, dtype=np.int64), counts)


def resolve_sequence_indices(sequences: Sequence[str], names: Sequence[str]) -> np.ndarray:
    """Map sequence names to sequence indices.

    Raises:
        DescStoreAccessError: If any name is not a stored sequence.
    """
    lookup = {name: index for index, name in enumerate(sequences)}
    resolved: list[int] = []
    for name in names:
        if name not in lookup:
            raise DescStoreAccessError(
                f"Unknown sequence '{name}'. Known sequences: {', '.join(sequences)}."
            )
        resolved.append(lookup[name])
    return np.array(resolved, dtype=np.int64)


def as_index_array(values: Sequence[int] | np.ndarray, label: str) -> np.ndarray:
    """Convert integer-valued input to a flat int64 array.

    Raises:
        DescStoreAccessError: If values are not integral.
    """
    array = np.asarray(values).reshape(-1)
    if array.size == 0:
        return array.astype(np.int64)
    if not np.issubdtype(array.dtype, np.number) or np.issubdtype(array.dtype, np.complexfloating):
        raise DescStoreAccessError(f"Invalid {label}: expected integers, got {array.dtype}.")
    if not np.all(np.mod(array, 1) == 0):
        raise DescStoreAccessError(f"Invalid {label}: expected integers, got {array.tolist()}.")
    return array.astype(np.int64)


def check_matching_lengths(**arrays: np.ndarray) -> None:
    """Require equal lengths for all keyword arrays.

    Raises:
        DescStoreAccessError: If any two lengths differ.
    """
    lengths = {label: int(np.asarray(array).size) for label, array in arrays.items()}
    if len(set(lengths.values())) > 1:
        rendered = ", ".join(f"{label}={length}" for label, length in lengths.items())
        raise DescStoreAccessError(f"Mismatched request lengths: {rendered}.")


def absolute_positions(
    offsets: np.ndarray,
    per_sequence_count: np.ndarray,
    sequence_indices: np.ndarray,
    indices: np.ndarray,
) -> np.ndarray:
    """Translate per-sequence one-based indices into zero-based store columns.

    Args:
        offsets: Exclusive prefix sum of ``per_sequence_count``.
        per_sequence_count: Descriptor count of each sequence.
        sequence_indices: Zero-based sequence index per request.
        indices: One-based descriptor index per request.

    Returns:
        Zero-based positions along the descriptor index axis.

    Raises:
        DescStoreAccessError: If an index is not positive or exceeds its
            sequence's descriptor count, or a sequence index is invalid.
    """
    check_matching_lengths(sequences=sequence_indices, indices=indices)
    non_positive = indices[indices <= 0]
    if non_positive.size:
        raise DescStoreAccessError(
            f"Descriptor indexes must be >0, got {non_positive.tolist()}."
        )
    invalid_sequences = sequence_indices[
        (sequence_indices < 0) | (sequence_indices >= offsets.size)
    ]
    if invalid_sequences.size:
        raise DescStoreAccessError(
            f"Invalid sequence ids {invalid_sequences.tolist()}: "
            f"expected values in [0, {offsets.size})."
        )
    limits = per_sequence_count[sequence_indices]
    overflow = indices > limits
    if np.any(overflow):
        first = int(np.flatnonzero(overflow)[0])
        raise DescStoreAccessError(
            f"Descriptor index {int(indices[first])} out of range for sequence id "
            f"{int(sequence_indices[first])} with {int(limits[first])} descriptors."
        )
    return indices - 1 + offsets[sequence_indices]
