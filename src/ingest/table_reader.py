"""Raw descriptor table readers.

This module parses headerless delimited numeric files into numpy tables
and applies the storage dtype and NaN policy used by every loader.
"""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np
import pyarrow as pa
import pyarrow.csv as pa_csv

from core.constants import CSV_DELIMITER, DESCRIPTOR_FILE_SUFFIX
from core.errors import DescStoreConfigError, DescStoreIngestError


def read_table(file_path: Path, delimiter: str = CSV_DELIMITER) -> np.ndarray:
    """Read a headerless delimited numeric file.

    Args:
        file_path: Path to the table file.
        delimiter: Single-character field delimiter.

    Returns:
        Float64 table of shape ``[rows, columns]``. Empty and ``nan`` cells
        are NaN; an empty file yields a ``(0, 0)`` table.

    Raises:
        DescStoreIngestError: If the file is missing or not numeric.
    """
    if not file_path.is_file():
        raise DescStoreIngestError(
            f"Failed to read descriptor table at {file_path}: file does not exist. "
            "Check the descriptor set layout and retry."
        )
    if file_path.stat().st_size == 0:
        return np.empty((0, 0), dtype=np.float64)
    try:
        table = pa_csv.read_csv(
            file_path,
            read_options=pa_csv.ReadOptions(autogenerate_column_names=True),
            parse_options=pa_csv.ParseOptions(delimiter=delimiter),
        )
        columns = [column.cast(pa.float64()).to_numpy() for column in table.columns]
    except (pa.ArrowInvalid, pa.ArrowNotImplementedError) as error:
        raise DescStoreIngestError(
            f"Failed to parse descriptor table at {file_path}: {error}. "
            "Descriptor files must contain only delimited numeric values."
        ) from error
    if not columns:
        return np.empty((0, 0), dtype=np.float64)
    return np.column_stack(columns)


def read_descriptor_block(
    file_path: Path,
    dtype: str,
    nan_value: float | None,
    delimiter: str = CSV_DELIMITER,
) -> np.ndarray:
    """Read one descriptor file as a cleaned ``[dim, count]`` block.

    Rows of the raw file are descriptors, so the table is transposed.

    Args:
        file_path: Path to the descriptor file.
        dtype: Target numeric storage type.
        nan_value: NaN replacement, ``None`` or NaN to keep NaN entries.
        delimiter: Field delimiter.

    Returns:
        Descriptor block with one column per descriptor.
    """
    table = read_table(file_path, delimiter)
    return clean_descriptors(table.T, dtype, nan_value)


def clean_descriptors(block: np.ndarray, dtype: str, nan_value: float | None) -> np.ndarray:
    """Cast a descriptor block and replace NaN entries.

    Args:
        block: Raw descriptor block.
        dtype: Target numeric storage type.
        nan_value: NaN replacement, ``None`` or NaN to keep NaN entries.

    Returns:
        Contiguous block in the target dtype.
    """
    target_dtype = resolve_dtype(dtype)
    cleaned = np.array(block, dtype=np.float64, order="C")
    if not keeps_nan(nan_value):
        cleaned[np.isnan(cleaned)] = nan_value
    return cleaned.astype(target_dtype, copy=False)


def keeps_nan(nan_value: float | None) -> bool:
    """Return whether the NaN policy leaves NaN entries untouched."""
    return nan_value is None or math.isnan(nan_value)


def resolve_dtype(dtype: str) -> np.dtype:
    """Resolve a dtype name into a numeric numpy dtype.

    Raises:
        DescStoreConfigError: If the name is not a numeric numpy type.
    """
    try:
        resolved = np.dtype(dtype)
    except TypeError as error:
        raise DescStoreConfigError(
            f"Invalid descriptor dtype '{dtype}'. Use a numeric numpy type such as 'float32'."
        ) from error
    if not np.issubdtype(resolved, np.number):
        raise DescStoreConfigError(
            f"Invalid descriptor dtype '{dtype}'. Use a numeric numpy type such as 'float32'."
        )
    return resolved


def read_id_column(file_path: Path) -> np.ndarray:
    """Read the first integer column of a metadata file.

    Args:
        file_path: Comma- or whitespace-delimited metadata file.

    Returns:
        Int64 ids in file order.

    Raises:
        DescStoreIngestError: If the file is missing or malformed.
    """
    if not file_path.is_file():
        raise DescStoreIngestError(
            f"Failed to read metadata at {file_path}: file does not exist. "
            "Check the PhotoTourism metadata root."
        )
    lines = file_path.read_text(encoding="utf-8").splitlines()
    first_line = next((line for line in lines if line.strip()), "")
    if not first_line:
        return np.empty(0, dtype=np.int64)
    delimiter = CSV_DELIMITER if CSV_DELIMITER in first_line else None
    try:
        ids = np.loadtxt(file_path, delimiter=delimiter, usecols=0, ndmin=1, dtype=np.float64)
    except ValueError as error:
        raise DescStoreIngestError(
            f"Failed to parse metadata at {file_path}: {error}. "
            "Metadata files must start each row with an integer id."
        ) from error
    return ids.astype(np.int64)


def list_sequence_dirs(root: Path) -> list[str]:
    """List sequence directory names under a descriptor set, sorted."""
    if not root.is_dir():
        raise DescStoreIngestError(
            f"Descriptor set directory not found at {root}. "
            "Check the descriptor name and data root."
        )
    return sorted(
        entry.name for entry in root.iterdir() if entry.is_dir() and not entry.name.startswith(".")
    )


def list_image_names(sequence_dir: Path) -> list[str]:
    """List descriptor file stems of one sequence directory, sorted."""
    if not sequence_dir.is_dir():
        raise DescStoreIngestError(
            f"Sequence directory not found at {sequence_dir}. "
            "Every sequence of the descriptor set must be present."
        )
    return sorted(
        entry.stem
        for entry in sequence_dir.iterdir()
        if entry.is_file() and entry.suffix == DESCRIPTOR_FILE_SUFFIX
    )


def check_descriptor_dim(
    expected_dim: int | None,
    block: np.ndarray,
    source: Path,
) -> int | None:
    """Check a block against the descriptor dimension seen so far.

    Blocks without descriptors carry no dimension and always pass.

    Args:
        expected_dim: Dimension of earlier blocks, ``None`` before the first.
        block: Descriptor block with the dimension on axis 0.
        source: File or directory the block was read from.

    Returns:
        Dimension to check later blocks against.

    Raises:
        DescStoreIngestError: If the block dimension differs.
    """
    if block.shape[1] == 0:
        return expected_dim
    block_dim = int(block.shape[0])
    if expected_dim is not None and block_dim != expected_dim:
        raise DescStoreIngestError(
            f"Descriptor dimension mismatch at {source}: expected {expected_dim}, "
            f"found {block_dim}. All descriptor files of a set must share one dimension."
        )
    return block_dim
