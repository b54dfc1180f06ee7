"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Grind Orchestrator - Parallel (resolution, chromosome) Task Dispatch         │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Builds one ``DiagonalBandScanner`` per (resolution, chromosome) pair and
    runs them on a fixed-size ``ThreadPoolExecutor``.

    Execution model::

        Main thread
            ↓
        resolutions × chromosomes (whole-genome entry excluded)
            ↓
        ThreadPoolExecutor (max_workers = config.max_workers or cpu_count)
            ↓
        DiagonalBandScanner.run()   [per task, strictly sequential inside]
            ↓
        TaskSummary  →  ScanMonitor
            ↓
        wait for every task, log summary, return

    Tasks write to disjoint folders (``<resolution>_chr<name>``) and own
    their batch counters and file handles, so no locking is needed beyond
    the pool itself.  A failing task never cancels its siblings.

USAGE::

    orchestrator = GrindOrchestrator(dataset, feature_index, config, "/data/out")
    summaries = orchestrator.make_examples()
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List

from Grinder.config.grind import sorted_resolutions
from Grinder.contact_store import chromosomes_without_whole_genome
from Grinder.core.scan_monitor import FAILED, ScanMonitor, TaskSummary
from Grinder.diagonal_scanner import DiagonalBandScanner
from Grinder.system_resource_inspector import SystemResourceInspector

logger = logging.getLogger(__name__)


def _run_scan_task(scanner: DiagonalBandScanner) -> TaskSummary:
    """Worker entry point executed by the pool."""
    return scanner.run()


class GrindOrchestrator:
    """Run every (resolution, chromosome) grinding task and wait for all of them."""

    def __init__(self, dataset, feature_index, config, output_dir):
        self.dataset = dataset
        self.feature_index = feature_index
        self.config = config
        self.output_dir = Path(output_dir)
        self.inspector = SystemResourceInspector()
        self.monitor = ScanMonitor()

    def build_tasks(self) -> List[DiagonalBandScanner]:
        """One scanner per resolution × chromosome, finest resolution first."""
        chromosomes = chromosomes_without_whole_genome(self.dataset)
        return [
            DiagonalBandScanner(
                self.dataset,
                self.feature_index,
                self.config,
                chrom,
                resolution,
                self.output_dir,
            )
            for resolution in sorted_resolutions(self.config.resolutions)
            for chrom in chromosomes
        ]

    def make_examples(self) -> List[TaskSummary]:
        """
        Dispatch all tasks and block until each has finished.

        Returns:
            One ``TaskSummary`` per task, in task order.
        """
        tasks = self.build_tasks()
        if not tasks:
            logger.warning("GrindOrchestrator: no (resolution, chromosome) tasks to run")
            return []

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.inspector.check_disk(self.output_dir)

        max_workers = self.inspector.get_worker_count(len(tasks), self.config.max_workers)
        logger.info(
            f"GrindOrchestrator: {len(tasks)} task(s) → {max_workers} worker(s), "
            f"window {self.config.x}×{self.config.y}, stride {self.config.stride}, "
            f"offset {self.config.offset_from_diagonal}"
        )

        self.monitor.start()
        summaries: List[TaskSummary] = [None] * len(tasks)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_idx = {
                executor.submit(_run_scan_task, scanner): idx
                for idx, scanner in enumerate(tasks)
            }
            for future in as_completed(future_to_idx):
                idx = future_to_idx[future]
                scanner = tasks[idx]
                try:
                    summary = future.result()
                except Exception as exc:
                    # run() reports its own failures; this only fires on bugs outside it
                    logger.error(f"Error processing task {scanner!r}: {exc}")
                    summary = TaskSummary(
                        scanner.resolution,
                        scanner.chromosome.name,
                        status=FAILED,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                summaries[idx] = summary
                self.monitor.record_task(summary)

        logger.info("GrindOrchestrator: all tasks finished\n" + self.monitor.format_summary())
        return summaries
