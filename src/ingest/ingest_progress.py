"""Structured ingest progress reporting.

This module emits periodic progress events while a loader parses
thousands of small descriptor files, plus start and completion summaries.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass
class IngestProgressTracker:
    """Track and emit descriptor file ingest progress."""

    descriptor_name: str
    dataset: str
    total_files: int
    log_interval_files: int
    files_read: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def log_started(self) -> None:
        """Log one event when a load starts."""
        _LOGGER.info(
            "ingest_started",
            descriptor_name=self.descriptor_name,
            dataset=self.dataset,
            total_files=self.total_files,
        )

    def advance(self, file_name: str) -> None:
        """Count one parsed file and log periodic progress."""
        self.files_read += 1
        if not _should_log_file(self.files_read, self.total_files, self.log_interval_files):
            return
        _LOGGER.info(
            "ingest_progress",
            descriptor_name=self.descriptor_name,
            dataset=self.dataset,
            file=file_name,
            files_read=self.files_read,
            total_files=self.total_files,
            progress=round(_progress_fraction(self.files_read, self.total_files), 3),
        )

    def log_completed(self, sequence_count: int, descriptor_count: int) -> None:
        """Log load completion summary with elapsed time."""
        _LOGGER.info(
            "ingest_completed",
            descriptor_name=self.descriptor_name,
            dataset=self.dataset,
            files_read=self.files_read,
            sequence_count=sequence_count,
            descriptor_count=descriptor_count,
            elapsed_seconds=round(time.monotonic() - self.started_at, 3),
        )


def _should_log_file(files_read: int, total_files: int, interval: int) -> bool:
    """Return true when the current file should emit a progress event."""
    if files_read <= 1 or files_read >= total_files:
        return True
    return files_read % interval == 0


def _progress_fraction(files_read: int, total_files: int) -> float:
    """Compute bounded progress fraction."""
    if total_files <= 0:
        return 0.0
    return min(1.0, max(0.0, files_read / total_files))
