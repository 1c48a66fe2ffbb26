"""
Wall-clock and CPU time accounting for a batch run.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import WriteError


@dataclass(frozen=True)
class TimingRecord:
    """Time spent on one image, in seconds."""
    wall: float
    cpu: float


class Timer:
    """
    Measures wall time and process CPU time (user + system) of one interval.

    Usable directly (start/stop) or as a context manager.
    """

    def __init__(self):
        self._wall_start = None
        self._cpu_start = None
        self.record = None

    def start(self) -> 'Timer':
        self._wall_start = time.perf_counter()
        self._cpu_start = time.process_time()
        self.record = None
        return self

    def stop(self) -> TimingRecord:
        if self._wall_start is None:
            raise RuntimeError("Timer was stopped before it was started")
        self.record = TimingRecord(
            wall=max(0.0, time.perf_counter() - self._wall_start),
            cpu=max(0.0, time.process_time() - self._cpu_start),
        )
        return self.record

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False


def start_timer() -> Timer:
    return Timer().start()


def stop_timer(timer: Timer) -> TimingRecord:
    return timer.stop()


@dataclass
class BatchTimingSummary:
    """Running sums of per-image timings."""
    total_wall: float = 0.0
    total_cpu: float = 0.0
    count: int = 0

    def add(self, record: TimingRecord) -> None:
        self.total_wall += record.wall
        self.total_cpu += record.cpu
        self.count += 1

    @property
    def average_wall(self) -> Optional[float]:
        return self.total_wall / self.count if self.count else None

    @property
    def average_cpu(self) -> Optional[float]:
        return self.total_cpu / self.count if self.count else None


def append_runtime_log(path, summary: BatchTimingSummary) -> bool:
    """
    Append "<avgCpu> <avgWall>" to the cumulative runtime log.

    Nothing is written when no image was timed.

    Returns:
        True if a line was appended.

    Raises:
        WriteError: If the log cannot be opened or written.
    """
    if summary.count == 0:
        return False
    path = Path(path)
    try:
        with path.open('a', encoding='utf-8') as fh:
            fh.write(f"{summary.average_cpu:g} {summary.average_wall:g}\n")
    except OSError as e:
        raise WriteError(path, f"Failed to append runtime log ({e})") from e
    return True
