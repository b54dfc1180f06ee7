"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Batch Writer - Batched Positive / Negative Window Persistence                │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Owns the output files of one (resolution, chromosome) task.

    Layout under the task folder::

        positive_<n>/                   <prefix>_matrix
                                        <prefix>_matrix.label
                                        <prefix>_matrix.label.exp   (intensity labeling)
        negative_<n>/                   <prefix>_matrix
        pos_file_names_<n>.txt          one data file name per line
        neg_file_names_<n>.txt
        pos_label_file_names_<n>.txt    label (and .label.exp) file names

    Matrices are whitespace-separated text, one row per line.

    Rollover is the caller's policy: it counts written windows and calls
    ``open(n + 1)`` once the count exceeds the batch size.  ``open`` closes the
    previous batch's index streams first.

USAGE::

    with BatchWriter(task_folder) as writer:
        writer.open(0)
        writer.write(record, only_positive_examples=False)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

import numpy as np

from Grinder.core.matrix_tools import write_matrix_text

logger = logging.getLogger(__name__)

POSITIVE = 'positive'
NEGATIVE = 'negative'


@dataclass
class IndexStreams:
    """The three per-batch file-name index streams."""
    positive_index: TextIO
    negative_index: TextIO
    positive_label_index: TextIO

    def close(self) -> None:
        for stream in (self.positive_index, self.negative_index, self.positive_label_index):
            if not stream.closed:
                stream.close()


@dataclass(frozen=True)
class OutputRecord:
    """One window ready to persist, already in canonical orientation."""
    file_prefix: str
    data: np.ndarray
    labels: Optional[np.ndarray] = None
    intensity_labels: Optional[np.ndarray] = None
    found: bool = False


def task_folder_name(resolution: int, chrom_name: str) -> str:
    return f"{resolution}_chr{chrom_name}"


class BatchWriter:
    """Write window records for one task into batched directories."""

    def __init__(self, folder_path):
        self.folder_path = Path(folder_path)
        self.batch_number: Optional[int] = None
        self.positive_dir: Optional[Path] = None
        self.negative_dir: Optional[Path] = None
        self._streams: Optional[IndexStreams] = None

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    def open(self, batch_number: int) -> None:
        """
        Start batch *batch_number*: create its directories and (re)open the
        three index streams, overwriting any existing index files.
        """
        self._close_streams()

        self.folder_path.mkdir(parents=True, exist_ok=True)
        self.positive_dir = self.folder_path / f"positive_{batch_number}"
        self.negative_dir = self.folder_path / f"negative_{batch_number}"
        self.positive_dir.mkdir(parents=True, exist_ok=True)
        self.negative_dir.mkdir(parents=True, exist_ok=True)

        self._streams = IndexStreams(
            positive_index=self._open_index(f"pos_file_names_{batch_number}.txt"),
            negative_index=self._open_index(f"neg_file_names_{batch_number}.txt"),
            positive_label_index=self._open_index(f"pos_label_file_names_{batch_number}.txt"),
        )
        self.batch_number = batch_number
        logger.debug(f"BatchWriter: opened batch {batch_number} in {self.folder_path}")

    def _open_index(self, name: str) -> TextIO:
        return open(self.folder_path / name, 'w', encoding='utf-8')

    def _close_streams(self) -> None:
        if self._streams is not None:
            self._streams.close()
            self._streams = None

    def close(self) -> None:
        """Flush and close the index streams of the current batch."""
        self._close_streams()

    @property
    def is_open(self) -> bool:
        return self._streams is not None

    def __enter__(self) -> 'BatchWriter':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # WRITING
    # ------------------------------------------------------------------

    def write(self, record: OutputRecord, only_positive_examples: bool = False) -> Optional[str]:
        """
        Persist *record* into the current batch.

        Returns:
            ``"positive"``, ``"negative"``, or ``None`` if nothing was written
            (negative record with ``only_positive_examples``).

        Raises:
            RuntimeError: If no batch is open.
        """
        if self._streams is None:
            raise RuntimeError("BatchWriter.write() called before open()")

        data_name = f"{record.file_prefix}_matrix"
        if record.found:
            if record.labels is None:
                raise ValueError(f"positive record {record.file_prefix} has no labels")
            self._save(self.positive_dir, data_name, record.data, self._streams.positive_index)
            self._save(self.positive_dir, f"{data_name}.label", record.labels,
                       self._streams.positive_label_index, is_label=True)
            if record.intensity_labels is not None:
                self._save(self.positive_dir, f"{data_name}.label.exp", record.intensity_labels,
                           self._streams.positive_label_index, is_label=True)
            return POSITIVE

        if only_positive_examples:
            return None
        self._save(self.negative_dir, data_name, record.data, self._streams.negative_index)
        return NEGATIVE

    @staticmethod
    def _save(directory: Path, file_name: str, grid: np.ndarray, index: TextIO,
              is_label: bool = False) -> None:
        with open(directory / file_name, 'w', encoding='utf-8') as fh:
            write_matrix_text(fh, grid, is_label=is_label)
        index.write(file_name + '\n')
