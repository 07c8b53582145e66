"""Shared raw descriptor set builders for tests.

Descriptor values are exact in float32 so raw files and stores compare
element-for-element.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from core.config import DescStoreConfig
from core.constants import HPATCHES_IMAGE_LABELS, PHOTOTOURISM_SEQUENCES

DESCRIPTOR_DIM = 4


def build_config(data_root: Path) -> DescStoreConfig:
    """Build a config whose roots all live under ``data_root``."""
    return DescStoreConfig.for_data_root(data_root, progress_interval=5)


def raw_descriptors(
    sequence_id: int,
    image_id: int,
    count: int,
    dim: int = DESCRIPTOR_DIM,
) -> np.ndarray:
    """Return a deterministic ``[count, dim]`` raw table."""
    rows = np.arange(count, dtype=np.float64)[:, None]
    cols = np.arange(dim, dtype=np.float64)[None, :]
    return 1000.0 * sequence_id + 100.0 * image_id + rows + 0.25 * cols


def write_table(file_path: Path, table: np.ndarray, delimiter: str = ",") -> None:
    """Write a headerless numeric table."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    lines = [delimiter.join(repr(float(value)) for value in row) for row in table]
    file_path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")


def write_hpatches_set(
    config: DescStoreConfig,
    name: str,
    counts: dict[str, int],
    dim: int = DESCRIPTOR_DIM,
) -> dict[tuple[str, str], np.ndarray]:
    """Write an HPatches descriptor set and return raw tables by (sequence, label)."""
    tables: dict[tuple[str, str], np.ndarray] = {}
    for sequence_id, (sequence, count) in enumerate(counts.items()):
        for image_id, label in enumerate(HPATCHES_IMAGE_LABELS):
            table = raw_descriptors(sequence_id, image_id, count, dim)
            write_table(config.hpatches_desc_root / name / sequence / f"{label}.csv", table)
            tables[(sequence, label)] = table
    return tables


def write_phototourism_metadata(config: DescStoreConfig, counts: dict[str, int]) -> None:
    """Write zero-based ``info.txt`` and ``interest.txt`` for every sequence."""
    for sequence in PHOTOTOURISM_SEQUENCES:
        count = counts.get(sequence, 0)
        sequence_root = config.phototourism_root / sequence
        sequence_root.mkdir(parents=True, exist_ok=True)
        info_lines = [f"{row // 2} 0" for row in range(count)]
        interest_lines = [f"{row % 3} 10.5 20.5 1.0 0.0" for row in range(count)]
        (sequence_root / "info.txt").write_text("\n".join(info_lines) + "\n", encoding="utf-8")
        (sequence_root / "interest.txt").write_text(
            "\n".join(interest_lines) + "\n", encoding="utf-8"
        )


def write_phototourism_image_set(
    config: DescStoreConfig,
    name: str,
    image_counts: dict[str, list[int]],
    dim: int = DESCRIPTOR_DIM,
) -> dict[str, np.ndarray]:
    """Write a per-image CSV PhotoTourism set; return each sequence's raw table."""
    tables: dict[str, np.ndarray] = {}
    for sequence_id, sequence in enumerate(PHOTOTOURISM_SEQUENCES):
        image_tables = []
        for image_id, count in enumerate(image_counts.get(sequence, [])):
            table = raw_descriptors(sequence_id, image_id, count, dim)
            image_path = config.phototourism_desc_root / name / sequence / f"{image_id:04d}.csv"
            write_table(image_path, table)
            image_tables.append(table)
        if not image_tables:
            (config.phototourism_desc_root / name / sequence).mkdir(parents=True, exist_ok=True)
            tables[sequence] = np.empty((0, dim))
        else:
            tables[sequence] = np.concatenate(image_tables, axis=0)
    write_phototourism_metadata(
        config, {sequence: sum(counts) for sequence, counts in image_counts.items()}
    )
    return tables


def write_phototourism_single_file_set(
    config: DescStoreConfig,
    name: str,
    counts: dict[str, int],
    dim: int = DESCRIPTOR_DIM,
) -> dict[str, np.ndarray]:
    """Write a one-file-per-sequence PhotoTourism set; return raw tables."""
    tables: dict[str, np.ndarray] = {}
    for sequence_id, sequence in enumerate(PHOTOTOURISM_SEQUENCES):
        table = raw_descriptors(sequence_id, 0, counts[sequence], dim)
        write_table(config.phototourism_desc_root / name / f"{sequence}.txt", table, "\t")
        tables[sequence] = table
    write_phototourism_metadata(config, counts)
    return tables
