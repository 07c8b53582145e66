"""Runtime configuration model for the descriptor store.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_DATA_ROOT,
    DEFAULT_PROGRESS_INTERVAL,
    DESCRIPTORS_DIR_NAME,
    HPATCHES_DATASET,
    PHOTOTOURISM_DATASET,
)
from core.errors import DescStoreConfigError


@dataclass(frozen=True)
class DescStoreConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Benchmark root directory.
        hpatches_desc_root: Directory holding HPatches descriptor sets.
        phototourism_desc_root: Directory holding PhotoTourism descriptor sets.
        phototourism_root: PhotoTourism metadata root with per-sequence info files.
        progress_interval: Emit an ingest progress event every N files.
    """

    data_root: Path
    hpatches_desc_root: Path
    phototourism_desc_root: Path
    phototourism_root: Path
    progress_interval: int

    @classmethod
    def from_env(cls) -> "DescStoreConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            DescStoreConfigError: If environment values are invalid.
        """
        data_root = _resolve_path(os.getenv("DESCSTORE_DATA_ROOT", str(DEFAULT_DATA_ROOT)))
        return cls.for_data_root(
            data_root,
            hpatches_desc_root=os.getenv("DESCSTORE_HPATCHES_DESC_ROOT"),
            phototourism_desc_root=os.getenv("DESCSTORE_PHOTOTOURISM_DESC_ROOT"),
            phototourism_root=os.getenv("DESCSTORE_PHOTOTOURISM_ROOT"),
            progress_interval=_parse_progress_interval(
                os.getenv("DESCSTORE_PROGRESS_INTERVAL", str(DEFAULT_PROGRESS_INTERVAL))
            ),
        )

    @classmethod
    def for_data_root(
        cls,
        data_root: Path,
        hpatches_desc_root: str | None = None,
        phototourism_desc_root: str | None = None,
        phototourism_root: str | None = None,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
    ) -> "DescStoreConfig":
        """Build config deriving unset roots from one benchmark root.

        Args:
            data_root: Benchmark root directory.
            hpatches_desc_root: Optional explicit HPatches descriptor root.
            phototourism_desc_root: Optional explicit PhotoTourism descriptor root.
            phototourism_root: Optional explicit PhotoTourism metadata root.
            progress_interval: Progress event interval in files.

        Returns:
            A config object with every root resolved.
        """
        resolved_root = _resolve_path(str(data_root))
        descriptors_root = resolved_root / DESCRIPTORS_DIR_NAME
        return cls(
            data_root=resolved_root,
            hpatches_desc_root=_resolve_path(hpatches_desc_root)
            if hpatches_desc_root
            else descriptors_root / HPATCHES_DATASET,
            phototourism_desc_root=_resolve_path(phototourism_desc_root)
            if phototourism_desc_root
            else descriptors_root / PHOTOTOURISM_DATASET,
            phototourism_root=_resolve_path(phototourism_root)
            if phototourism_root
            else resolved_root / PHOTOTOURISM_DATASET,
            progress_interval=progress_interval,
        )

    def descriptor_root(self, dataset: str) -> Path:
        """Return the descriptor root directory for a canonical dataset name."""
        if dataset == HPATCHES_DATASET:
            return self.hpatches_desc_root
        if dataset == PHOTOTOURISM_DATASET:
            return self.phototourism_desc_root
        raise DescStoreConfigError(
            f"Invalid dataset '{dataset}'. Use '{HPATCHES_DATASET}' or '{PHOTOTOURISM_DATASET}'."
        )


def _resolve_path(raw_value: str) -> Path:
    return Path(raw_value).expanduser().resolve()


def _parse_progress_interval(raw_value: str) -> int:
    """Parse the progress interval environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive interval.

    Raises:
        DescStoreConfigError: If value is not a positive integer.
    """
    try:
        interval = int(raw_value)
    except ValueError as error:
        raise DescStoreConfigError(
            "Invalid DESCSTORE_PROGRESS_INTERVAL value: "
            f"expected integer, got '{raw_value}'. "
            "Set DESCSTORE_PROGRESS_INTERVAL to a positive number."
        ) from error
    if interval < 1:
        raise DescStoreConfigError(
            f"Invalid DESCSTORE_PROGRESS_INTERVAL value: expected >= 1, got {interval}."
        )
    return interval
