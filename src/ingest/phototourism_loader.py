"""PhotoTourism descriptor set loader.

This module supports two raw layouts: one CSV per image under
``<root>/<name>/<sequence>/`` or one tab-delimited ``<sequence>.txt``
per sequence. The layout is detected from the first known sequence.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from core.config import DescStoreConfig
from core.constants import (
    CSV_DELIMITER,
    DESCRIPTOR_FILE_SUFFIX,
    INFO_FILE_NAME,
    INTEREST_FILE_NAME,
    PHOTOTOURISM_DATASET,
    PHOTOTOURISM_SEQUENCES,
    SINGLE_FILE_DELIMITER,
    SINGLE_FILE_SUFFIX,
)
from core.errors import DescStoreIngestError
from core.logging_config import get_logger
from core.types import PhotoTourismStore, StoreOptions
from ingest.ingest_progress import IngestProgressTracker
from ingest.table_reader import (
    check_descriptor_dim,
    list_image_names,
    read_descriptor_block,
    read_id_column,
    resolve_dtype,
)
from store.addressing import build_sequence_index, exclusive_prefix_sum

_LOGGER = get_logger(__name__)


def load_phototourism_store(
    descriptor_name: str,
    descriptor_path: Path,
    options: StoreOptions,
    config: DescStoreConfig,
) -> PhotoTourismStore:
    """Load all PhotoTourism sequences of a descriptor set.

    Args:
        descriptor_name: Descriptor set name.
        descriptor_path: Descriptor set directory.
        options: Store options with dtype and NaN policy.
        config: Runtime configuration with the metadata root.

    Returns:
        Fully assembled store.

    Raises:
        DescStoreIngestError: If files are missing or descriptor dimensions
            disagree across files.
    """
    sequences = PHOTOTOURISM_SEQUENCES
    correspondence_ids = _load_metadata_ids(config.phototourism_root, sequences, INFO_FILE_NAME)
    reference_image_ids = _load_metadata_ids(
        config.phototourism_root, sequences, INTEREST_FILE_NAME
    )
    if (descriptor_path / sequences[0]).is_dir():
        sequence_blocks, image_names = _load_image_file_layout(
            descriptor_name, descriptor_path, sequences, options, config
        )
    else:
        sequence_blocks = _load_single_file_layout(
            descriptor_name, descriptor_path, sequences, options, config
        )
        image_names = ()
    per_sequence_count = np.array([block.shape[1] for block in sequence_blocks], dtype=np.int64)
    return PhotoTourismStore(
        name=descriptor_name,
        path=descriptor_path,
        sequences=sequences,
        data=np.concatenate(sequence_blocks, axis=1),
        per_sequence_count=per_sequence_count,
        offsets=exclusive_prefix_sum(per_sequence_count),
        sequence_index=build_sequence_index(per_sequence_count),
        correspondence_ids=correspondence_ids,
        reference_image_ids=reference_image_ids,
        image_names=image_names,
    )


def _load_image_file_layout(
    descriptor_name: str,
    descriptor_path: Path,
    sequences: tuple[str, ...],
    options: StoreOptions,
    config: DescStoreConfig,
) -> tuple[list[np.ndarray], tuple[tuple[str, ...], ...]]:
    """Read one CSV per image and concatenate images within each sequence."""
    image_names = tuple(
        tuple(list_image_names(descriptor_path / sequence)) for sequence in sequences
    )
    tracker = IngestProgressTracker(
        descriptor_name=descriptor_name,
        dataset=PHOTOTOURISM_DATASET,
        total_files=sum(len(names) for names in image_names),
        log_interval_files=config.progress_interval,
    )
    tracker.log_started()
    descriptor_dim: int | None = None
    sequence_images: list[list[np.ndarray]] = []
    for sequence, names in zip(sequences, image_names):
        image_blocks: list[np.ndarray] = []
        for image_name in names:
            file_path = descriptor_path / sequence / f"{image_name}{DESCRIPTOR_FILE_SUFFIX}"
            block = read_descriptor_block(
                file_path, options.dtype, options.nan_value, CSV_DELIMITER
            )
            descriptor_dim = check_descriptor_dim(descriptor_dim, block, file_path)
            image_blocks.append(block)
            tracker.advance(str(file_path))
        sequence_images.append(image_blocks)
    storage_dtype = resolve_dtype(options.dtype)
    sequence_blocks = [
        _concatenate_images(image_blocks, descriptor_dim or 0, storage_dtype)
        for image_blocks in sequence_images
    ]
    tracker.log_completed(len(sequences), sum(block.shape[1] for block in sequence_blocks))
    return sequence_blocks, image_names


def _load_single_file_layout(
    descriptor_name: str,
    descriptor_path: Path,
    sequences: tuple[str, ...],
    options: StoreOptions,
    config: DescStoreConfig,
) -> list[np.ndarray]:
    """Read one tab-delimited table per sequence."""
    tracker = IngestProgressTracker(
        descriptor_name=descriptor_name,
        dataset=PHOTOTOURISM_DATASET,
        total_files=len(sequences),
        log_interval_files=config.progress_interval,
    )
    tracker.log_started()
    descriptor_dim: int | None = None
    sequence_blocks: list[np.ndarray] = []
    for sequence in sequences:
        file_path = descriptor_path / f"{sequence}{SINGLE_FILE_SUFFIX}"
        block = read_descriptor_block(
            file_path, options.dtype, options.nan_value, SINGLE_FILE_DELIMITER
        )
        descriptor_dim = check_descriptor_dim(descriptor_dim, block, file_path)
        sequence_blocks.append(block)
        tracker.advance(str(file_path))
    storage_dtype = resolve_dtype(options.dtype)
    sequence_blocks = [
        _concatenate_images([block], descriptor_dim or 0, storage_dtype)
        for block in sequence_blocks
    ]
    tracker.log_completed(len(sequences), sum(block.shape[1] for block in sequence_blocks))
    return sequence_blocks


def _load_metadata_ids(
    metadata_root: Path,
    sequences: tuple[str, ...],
    file_name: str,
) -> np.ndarray:
    """Read one-based ids from a per-sequence metadata file, in sequence order."""
    sequence_ids: list[np.ndarray] = []
    for sequence in sequences:
        # Metadata files store zero-based ids.
        sequence_ids.append(read_id_column(metadata_root / sequence / file_name) + 1)
    _LOGGER.info(
        "metadata_loaded",
        metadata_root=str(metadata_root),
        file_name=file_name,
        id_count=int(sum(ids.size for ids in sequence_ids)),
    )
    return np.concatenate(sequence_ids)


def _concatenate_images(
    image_blocks: list[np.ndarray],
    descriptor_dim: int,
    dtype: np.dtype,
) -> np.ndarray:
    """Join image blocks of one sequence along the descriptor axis."""
    image_blocks = [block for block in image_blocks if block.shape[1] > 0]
    if image_blocks:
        return np.concatenate(image_blocks, axis=1)
    return np.empty((descriptor_dim, 0), dtype=dtype)

