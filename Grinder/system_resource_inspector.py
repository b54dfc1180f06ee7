"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ System Resource Inspector - CPU / Disk Availability Detection                │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Sizes the grinding worker pool and checks free disk under the output
    directory before thousands of small matrix files are written.

USAGE::

    inspector = SystemResourceInspector()
    workers   = inspector.get_worker_count(n_tasks=48)
    free      = inspector.get_available_disk("/data/out")
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Warn when less than this much disk is free under the output directory
LOW_DISK_BYTES: int = 1 * 1024 * 1024 * 1024


class SystemResourceInspector:
    """Inspect CPU and disk resources."""

    def get_cpu_count(self) -> int:
        """
        Return the number of logical CPU cores available.

        Uses ``os.cpu_count()``; falls back to 1.
        """
        count = os.cpu_count()
        if count is None or count < 1:
            logger.warning("os.cpu_count() returned None – defaulting to 1")
            return 1
        return count

    def get_worker_count(self, n_tasks: int, max_workers: Optional[int] = None) -> int:
        """
        Pool size: *max_workers* if given, else the CPU count, never more
        than the number of tasks and never less than 1.
        """
        limit = max_workers if max_workers is not None else self.get_cpu_count()
        return max(1, min(limit, n_tasks))

    def get_available_disk(self, path) -> int:
        """
        Return free disk space at *path* (or its nearest existing parent) in bytes.
        """
        probe = Path(path)
        while not probe.exists() and probe != probe.parent:
            probe = probe.parent
        return shutil.disk_usage(probe).free

    def check_disk(self, path, minimum: int = LOW_DISK_BYTES) -> bool:
        """Log a warning and return False when free disk at *path* is below *minimum*."""
        try:
            free = self.get_available_disk(path)
        except OSError as exc:
            logger.warning(f"Could not determine disk space at '{path}': {exc}")
            return False
        if free < minimum:
            logger.warning(
                f"Low disk space at '{path}': {free / 1e9:.2f} GB free "
                f"(< {minimum / 1e9:.2f} GB)"
            )
            return False
        return True
