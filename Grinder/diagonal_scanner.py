"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Diagonal Band Scanner - One (resolution, chromosome) Grinding Task           │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Slides the stripe window along the band around the diagonal of one
    chromosome at one resolution and writes every window with its labels.

    With ``bin_count = chromosome_length // resolution`` and
    ``off = offset_from_diagonal``:

    Pass 1 (always, horizontal windows)::

        row ∈ [0, bin_count - y]                         step stride
        col ∈ [max(0, row - off), min(row + off, bin_count - y)]

    Pass 2 (only when x ≠ y, vertical windows)::

        row ∈ [y, bin_count]                             step stride
        col ∈ [max(y, row - off), min(row + off, bin_count)]

    Bounds are inclusive.

    Per anchor::

        Orientation.window  →  WindowExtractor  →  FeatureLabeler
            →  Orientation.canonicalize (vertical only)  →  BatchWriter

    The scanner is a task object: it owns the batch counter and the open
    file handles, and shares only read-only inputs with other tasks.
    ``run()`` never raises; failures are logged and reported in the returned
    ``TaskSummary``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from time import perf_counter
from typing import Generator, Optional, Tuple, Union

from Grinder.batch_writer import (
    POSITIVE,
    BatchWriter,
    OutputRecord,
    task_folder_name,
)
from Grinder.core.feature_labeler import FeatureLabeler
from Grinder.core.orientation import Orientation
from Grinder.core.scan_monitor import COMPLETED, FAILED, SKIPPED, TaskSummary
from Grinder.core.window_extractor import WindowExtractor, WindowSkipped

logger = logging.getLogger(__name__)

Anchor = Tuple[int, int, Orientation]


def _inclusive(start: int, stop: int, step: int) -> range:
    return range(start, stop + 1, step)


def iter_band_anchors(
    bin_count: int,
    x: int,
    y: int,
    offset_from_diagonal: int,
    stride: int,
) -> Generator[Anchor, None, None]:
    """Yield ``(row_index, col_index, orientation)`` for both scan passes."""
    off = offset_from_diagonal
    last_start = bin_count - y
    for row in _inclusive(0, last_start, stride):
        for col in _inclusive(max(0, row - off), min(row + off, last_start), stride):
            yield row, col, Orientation.HORIZONTAL

    if x == y:
        # square windows: vertical pass would duplicate pass 1
        return

    for row in _inclusive(y, bin_count, stride):
        for col in _inclusive(max(y, row - off), min(row + off, bin_count), stride):
            yield row, col, Orientation.VERTICAL


class DiagonalBandScanner:
    """
    Grind one chromosome at one resolution.

    Usage::

        scanner = DiagonalBandScanner(dataset, feature_index, config,
                                      chromosome, 5_000, "/data/out")
        summary = scanner.run()
    """

    def __init__(self, dataset, feature_index, config, chromosome, resolution, output_dir):
        self.dataset = dataset
        self.config = config
        self.chromosome = chromosome
        self.resolution = resolution
        self.folder_path = Path(output_dir) / task_folder_name(resolution, chromosome.name)
        self.extractor = WindowExtractor(dataset, config)
        self.labeler = FeatureLabeler(feature_index, config)

        self.batch_number = 0
        self.written_in_batch = 0

    def __repr__(self) -> str:
        return f"DiagonalBandScanner(chr={self.chromosome.name!r}, resolution={self.resolution})"

    @property
    def bin_count(self) -> int:
        return self.chromosome.bin_count(self.resolution)

    def iter_anchors(self) -> Generator[Anchor, None, None]:
        cfg = self.config
        return iter_band_anchors(self.bin_count, cfg.x, cfg.y, cfg.offset_from_diagonal, cfg.stride)

    def count_anchors(self) -> int:
        return sum(1 for _ in self.iter_anchors())

    # ------------------------------------------------------------------
    # TASK ENTRY POINT
    # ------------------------------------------------------------------

    def run(self) -> TaskSummary:
        """Run the whole task; exceptions are caught here and reported."""
        summary = TaskSummary(self.resolution, self.chromosome.name)
        t0 = perf_counter()
        try:
            zoom_data = self._resolve_zoom_data()
            if zoom_data is None:
                summary.status = SKIPPED
                logger.info(
                    f"No data for chr {self.chromosome.name} at {self.resolution:,} bp; skipping"
                )
                return summary

            passes = 1 if self.config.is_square else 2
            logger.info(
                f"Currently processing: chr {self.chromosome.name} @ {self.resolution:,} bp "
                f"({self.bin_count:,} bins, {self.count_anchors():,} windows in {passes} pass(es))"
            )
            self._scan(zoom_data, summary)
            summary.status = COMPLETED
            logger.info(
                f"Finished chr {self.chromosome.name} @ {self.resolution:,} bp: "
                f"{summary.positives:,} positive, {summary.negatives:,} negative, "
                f"{summary.windows_skipped:,} skipped, {summary.batches} batch(es)"
            )
        except Exception as exc:
            summary.status = FAILED
            summary.error = f"{type(exc).__name__}: {exc}"
            logger.exception(
                f"Grinding failed for chr {self.chromosome.name} @ {self.resolution:,} bp"
            )
        finally:
            summary.elapsed = perf_counter() - t0
        return summary

    def _resolve_zoom_data(self):
        matrix = self.dataset.get_matrix(self.chromosome, self.chromosome)
        if matrix is None:
            return None
        zoom = self.dataset.get_zoom_for_resolution(self.resolution)
        if zoom is None:
            return None
        return matrix.get_zoom_data(zoom)

    # ------------------------------------------------------------------
    # SCAN LOOP
    # ------------------------------------------------------------------

    def _scan(self, zoom_data, summary: TaskSummary) -> None:
        self.batch_number = 0
        self.written_in_batch = 0

        with BatchWriter(self.folder_path) as writer:
            writer.open(self.batch_number)
            summary.batches = 1

            for row_index, col_index, orientation in self.iter_anchors():
                summary.windows_scanned += 1
                outcome = self.process_anchor(writer, zoom_data, row_index, col_index, orientation)

                if isinstance(outcome, WindowSkipped):
                    summary.windows_skipped += 1
                    continue
                if outcome is None:
                    continue

                if outcome == POSITIVE:
                    summary.positives += 1
                else:
                    summary.negatives += 1

                self.written_in_batch += 1
                if self.written_in_batch > self.config.max_batch_size:
                    self.written_in_batch = 0
                    self.batch_number += 1
                    writer.open(self.batch_number)
                    summary.batches += 1
                    logger.debug(f"{self!r}: rolled over to batch {self.batch_number}")

    def process_anchor(
        self,
        writer: BatchWriter,
        zoom_data,
        row_index: int,
        col_index: int,
        orientation: Orientation,
    ) -> Union[WindowSkipped, Optional[str]]:
        """
        Extract, label, canonicalize and write one window.

        Returns:
            ``WindowSkipped`` when no values could be extracted, otherwise the
            writer outcome (``"positive"``, ``"negative"`` or ``None``).
        """
        cfg = self.config
        window = orientation.window(row_index, col_index, cfg.x, cfg.y)

        extracted = self.extractor.extract(self.chromosome, zoom_data, window)
        if isinstance(extracted, WindowSkipped):
            return extracted

        result = self.labeler.label(
            self.chromosome, window, self.resolution, orientation, extracted.data
        )

        intensity = result.intensity_labels
        record = OutputRecord(
            file_prefix=f"{self.chromosome.name}_{row_index}_{col_index}{orientation.tag}",
            data=orientation.canonicalize(extracted.data),
            labels=orientation.canonicalize(result.labels),
            intensity_labels=orientation.canonicalize(intensity) if intensity is not None else None,
            found=result.found,
        )
        return writer.write(record, only_positive_examples=cfg.only_positive_examples)
