"""Unit tests for ingest progress reporting."""

from __future__ import annotations

from ingest.ingest_progress import IngestProgressTracker


class _FakeLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, object]]] = []

    def info(self, event: str, **fields: object) -> None:
        self.events.append((event, fields))


def test_progress_tracker_logs_first_interval_and_last_files(monkeypatch) -> None:
    """Tracker should emit progress for the first, every N-th, and last file."""
    fake_logger = _FakeLogger()
    monkeypatch.setattr("ingest.ingest_progress._LOGGER", fake_logger)
    tracker = IngestProgressTracker(
        descriptor_name="sift",
        dataset="hpatches",
        total_files=7,
        log_interval_files=3,
    )

    tracker.log_started()
    for index in range(7):
        tracker.advance(f"{index}.csv")
    tracker.log_completed(sequence_count=1, descriptor_count=10)

    progress_files = [
        fields["files_read"] for event, fields in fake_logger.events if event == "ingest_progress"
    ]

    assert progress_files == [1, 3, 6, 7]
    assert fake_logger.events[-1][0] == "ingest_completed"
