"""HPatches descriptor set loader.

This module reads ``<root>/<name>/<sequence>/<image>.csv`` files for the
fixed 16-slot image axis and concatenates them into one store tensor.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from core.config import DescStoreConfig
from core.constants import (
    CSV_DELIMITER,
    DESCRIPTOR_FILE_SUFFIX,
    HPATCHES_DATASET,
    HPATCHES_IMAGE_LABELS,
    NOISE_LEVEL_SETS,
)
from core.errors import DescStoreIngestError
from core.types import HPatchesStore, StoreOptions
from ingest.ingest_progress import IngestProgressTracker
from ingest.table_reader import (
    check_descriptor_dim,
    list_sequence_dirs,
    read_descriptor_block,
)
from store.addressing import build_sequence_index, exclusive_prefix_sum


def load_hpatches_store(
    descriptor_name: str,
    descriptor_path: Path,
    options: StoreOptions,
    config: DescStoreConfig,
) -> HPatchesStore:
    """Load every sequence of an HPatches descriptor set.

    Args:
        descriptor_name: Descriptor set name.
        descriptor_path: Descriptor set directory holding sequence folders.
        options: Store options with dtype and NaN policy.
        config: Runtime configuration.

    Returns:
        Fully assembled store.

    Raises:
        DescStoreIngestError: If files are missing, or descriptor dimension
            or per-image descriptor counts disagree.
    """
    sequences = list_sequence_dirs(descriptor_path)
    if not sequences:
        raise DescStoreIngestError(
            f"No sequence directories found under {descriptor_path}. "
            "Extract the descriptor set before loading it."
        )
    tracker = IngestProgressTracker(
        descriptor_name=descriptor_name,
        dataset=HPATCHES_DATASET,
        total_files=len(sequences) * len(HPATCHES_IMAGE_LABELS),
        log_interval_files=config.progress_interval,
    )
    tracker.log_started()
    sequence_blocks: list[np.ndarray] = []
    descriptor_dim: int | None = None
    for sequence in sequences:
        block = _load_sequence_block(descriptor_path / sequence, options, tracker)
        descriptor_dim = check_descriptor_dim(descriptor_dim, block, descriptor_path / sequence)
        sequence_blocks.append(block)
    sequence_blocks = [
        block if block.shape[1] > 0 else _empty_sequence_block(block, descriptor_dim or 0)
        for block in sequence_blocks
    ]
    per_sequence_count = np.array([block.shape[1] for block in sequence_blocks], dtype=np.int64)
    store = HPatchesStore(
        name=descriptor_name,
        path=descriptor_path,
        sequences=tuple(sequences),
        data=np.concatenate(sequence_blocks, axis=1),
        per_sequence_count=per_sequence_count,
        offsets=exclusive_prefix_sum(per_sequence_count),
        sequence_index=build_sequence_index(per_sequence_count),
        image_labels=HPATCHES_IMAGE_LABELS,
        noise_level_sets=dict(NOISE_LEVEL_SETS),
    )
    tracker.log_completed(len(sequences), store.descriptor_count)
    return store


def _load_sequence_block(
    sequence_dir: Path,
    options: StoreOptions,
    tracker: IngestProgressTracker,
) -> np.ndarray:
    """Read all image-axis files of one sequence into ``[dim, count, images]``."""
    image_blocks: list[np.ndarray] = []
    for image_label in HPATCHES_IMAGE_LABELS:
        file_path = sequence_dir / f"{image_label}{DESCRIPTOR_FILE_SUFFIX}"
        block = read_descriptor_block(file_path, options.dtype, options.nan_value, CSV_DELIMITER)
        if image_blocks and block.shape != image_blocks[0].shape:
            raise DescStoreIngestError(
                f"Descriptor shape mismatch in sequence {sequence_dir.name}: "
                f"{file_path.name} has [dim={block.shape[0]}, count={block.shape[1]}] but "
                f"{HPATCHES_IMAGE_LABELS[0]}{DESCRIPTOR_FILE_SUFFIX} has "
                f"[dim={image_blocks[0].shape[0]}, count={image_blocks[0].shape[1]}]. "
                "Every image of a sequence must hold the same descriptors."
            )
        image_blocks.append(block)
        tracker.advance(str(file_path))
    return np.stack(image_blocks, axis=2)



def _empty_sequence_block(block: np.ndarray, descriptor_dim: int) -> np.ndarray:
    return np.empty((descriptor_dim, 0, block.shape[2]), dtype=block.dtype)
