"""Core constants used across descriptor store modules.

This module centralizes benchmark layout constants and defaults.
Keeping values here avoids magic literals in loading and addressing code.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType

DEFAULT_DATA_ROOT = Path("data")
DESCRIPTORS_DIR_NAME = "descriptors"
HPATCHES_DATASET = "hpatches"
PHOTOTOURISM_DATASET = "phototourism"
DATASET_ALIASES = MappingProxyType(
    {
        "hpatches": HPATCHES_DATASET,
        "hp": HPATCHES_DATASET,
        "phototourism": PHOTOTOURISM_DATASET,
        "pt": PHOTOTOURISM_DATASET,
    }
)
CACHE_FILE_NAME = "desc.npz"
DESCRIPTOR_FILE_SUFFIX = ".csv"
SINGLE_FILE_SUFFIX = ".txt"
CSV_DELIMITER = ","
SINGLE_FILE_DELIMITER = "\t"
INFO_FILE_NAME = "info.txt"
INTEREST_FILE_NAME = "interest.txt"
REFERENCE_IMAGE_LABEL = "ref"
HPATCHES_IMAGE_LABELS = (
    "ref",
    "e1",
    "e2",
    "e3",
    "e4",
    "e5",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "t1",
    "t2",
    "t3",
    "t4",
    "t5",
)
# Zero-based positions into HPATCHES_IMAGE_LABELS.
NOISE_LEVEL_SETS = MappingProxyType(
    {
        "easy": (0, 1, 2, 3, 4, 5),
        "hard": (0, 6, 7, 8, 9, 10),
        "tough": (0, 11, 12, 13, 14, 15),
    }
)
PHOTOTOURISM_SEQUENCES = ("liberty", "notredame", "yosemite")
DEFAULT_DTYPE = "float32"
DEFAULT_NAN_VALUE = 0.0
DEFAULT_PROGRESS_INTERVAL = 100
