"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ ScanMonitor - Per-Task Grinding Telemetry                                    │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Thread-safe collector for the ``TaskSummary`` returned by every
    (resolution, chromosome) task, plus a human-readable summary table.

    Usage::

        monitor = ScanMonitor()
        monitor.start()
        monitor.record_task(summary)
        print(monitor.format_summary())
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

COMPLETED = 'completed'
SKIPPED = 'skipped'
FAILED = 'failed'


@dataclass
class TaskSummary:
    """Outcome of one (resolution, chromosome) scan task."""
    resolution: int
    chrom_name: str
    status: str = COMPLETED
    windows_scanned: int = 0
    windows_skipped: int = 0
    positives: int = 0
    negatives: int = 0
    batches: int = 0
    elapsed: float = 0.0
    error: Optional[str] = None

    @property
    def windows_written(self) -> int:
        return self.positives + self.negatives


class ScanMonitor:
    """Thread-safe aggregation of ``TaskSummary`` records."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._start_time: Optional[float] = None
        self._tasks: List[TaskSummary] = []

    def start(self) -> None:
        self._start_time = perf_counter()

    def record_task(self, summary: TaskSummary) -> None:
        with self._lock:
            self._tasks.append(summary)

    def get_summary(self) -> Dict[str, Any]:
        """
        Return aggregate counters.

        Returns:
            Dict with keys ``total_elapsed``, ``task_count``, ``status_counts``,
            ``windows_scanned``, ``windows_skipped``, ``positives``,
            ``negatives``, ``failed_tasks``.
        """
        with self._lock:
            tasks = list(self._tasks)
            elapsed = perf_counter() - self._start_time if self._start_time else 0.0

        status_counts: Dict[str, int] = {COMPLETED: 0, SKIPPED: 0, FAILED: 0}
        for t in tasks:
            status_counts[t.status] = status_counts.get(t.status, 0) + 1

        return {
            "total_elapsed": elapsed,
            "task_count": len(tasks),
            "status_counts": status_counts,
            "windows_scanned": sum(t.windows_scanned for t in tasks),
            "windows_skipped": sum(t.windows_skipped for t in tasks),
            "positives": sum(t.positives for t in tasks),
            "negatives": sum(t.negatives for t in tasks),
            "failed_tasks": [f"{t.resolution}_chr{t.chrom_name}" for t in tasks if t.status == FAILED],
        }

    def format_summary(self) -> str:
        s = self.get_summary()
        counts = s["status_counts"]
        lines = [
            "══════════════════════════════════════════════════",
            "  Grind Summary",
            "══════════════════════════════════════════════════",
            f"  Total runtime      : {s['total_elapsed']:.3f} s",
            f"  Tasks              : {s['task_count']} "
            f"({counts[COMPLETED]} completed, {counts[SKIPPED]} skipped, {counts[FAILED]} failed)",
            f"  Windows scanned    : {s['windows_scanned']:,}",
            f"  Windows skipped    : {s['windows_skipped']:,}",
            f"  Positive examples  : {s['positives']:,}",
            f"  Negative examples  : {s['negatives']:,}",
        ]
        if s["failed_tasks"]:
            lines.append(f"  Failed tasks       : {', '.join(s['failed_tasks'])}")
        lines.append("══════════════════════════════════════════════════")
        return "\n".join(lines)
