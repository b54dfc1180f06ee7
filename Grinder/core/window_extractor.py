"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Window Extractor - Dense Matrix Values for One Scan Window                   │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Turns a ``Window`` into a dense ``num_rows × num_cols`` array.

    Two value modes:
        - observed      : normalized observed counts
        - O/E           : bounded log observed/expected ratio

    When the expected-value baseline is missing for the zoom/normalization
    pair the extractor returns ``WindowSkipped`` instead of raising: the
    caller writes nothing for this window and keeps scanning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

import numpy as np

from Grinder.core.matrix_tools import (
    extract_local_bounded_region,
    extract_obs_over_exp_bounded_region,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractedWindow:
    data: np.ndarray


@dataclass(frozen=True)
class WindowSkipped:
    reason: str


ExtractionResult = Union[ExtractedWindow, WindowSkipped]


class WindowExtractor:
    """
    Pull matrix values for scan windows from a contact dataset.

    One extractor is created per task; it holds no mutable state besides the
    set of skip reasons already logged, so each reason is warned about once
    per task rather than once per window.
    """

    def __init__(self, dataset, config):
        self.dataset = dataset
        self.config = config
        self._warned = set()

    def extract(self, chromosome, zoom_data, window) -> ExtractionResult:
        """
        Extract the window values.

        Args:
            chromosome: ``Chromosome`` being scanned.
            zoom_data:  ``ZoomData`` for the task's resolution.
            window:     ``Window`` in bin units.

        Returns:
            ``ExtractedWindow`` or ``WindowSkipped``.
        """
        cfg = self.config
        if not cfg.use_observed_over_expected:
            data = extract_local_bounded_region(zoom_data, window, cfg.normalization)
            return ExtractedWindow(data)

        expected = self.dataset.get_expected_values(zoom_data.zoom, cfg.normalization)
        if expected is None:
            reason = f"O/E data not available at {zoom_data.zoom} {cfg.normalization}"
            if reason not in self._warned:
                self._warned.add(reason)
                logger.warning(f"{reason} (chr {chromosome.name}); skipping windows")
            return WindowSkipped(reason)

        data = extract_obs_over_exp_bounded_region(
            zoom_data,
            window,
            cfg.normalization,
            expected,
            chromosome.index,
            threshold=cfg.oe_threshold,
            pseudocount=cfg.oe_pseudocount,
        )
        return ExtractedWindow(data)
