"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Feature Labeler - Binary Stripe Labels for One Scan Window                   │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Queries the 2D feature index for annotations intersecting a window and
    stamps each accepted feature's footprint into a label grid.

    Labeling policy:
        1. rowLength = max(1, (end1 - start1) // resolution)
           colLength = max(1, (end2 - start2) // resolution)
        2. Unless orientation is ignored, a horizontal window only accepts
           features with colLength > rowLength and a vertical window only
           features with rowLength > colLength.
        3. The footprint starts at (start1 // resolution - row_start,
           start2 // resolution - col_start) and is clipped to the window.
        4. With intensity labeling, a second grid marks footprint cells whose
           value exceeds the enrichment threshold.

    The window counts as positive when at least one feature is accepted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from Grinder.core.matrix_tools import (
    label_enriched_region_with_ones,
    label_region_with_ones,
)

logger = logging.getLogger(__name__)

LABEL_DTYPE = np.int8


@dataclass(frozen=True)
class LabelResult:
    found: bool
    labels: np.ndarray
    intensity_labels: Optional[np.ndarray] = None
    accepted_count: int = 0


def feature_lengths(feature, resolution: int):
    """Footprint size of *feature* in bins, at least 1 × 1."""
    row_length = max((feature.end1 - feature.start1) // resolution, 1)
    col_length = max((feature.end2 - feature.start2) // resolution, 1)
    return row_length, col_length


class FeatureLabeler:
    """Label scan windows against a ``Feature2DIndex``."""

    def __init__(self, feature_index, config):
        self.feature_index = feature_index
        self.config = config

    def label(self, chromosome, window, resolution, orientation, data) -> LabelResult:
        """
        Build the label grid(s) for *window*.

        Args:
            chromosome:  ``Chromosome`` being scanned.
            window:      ``Window`` in bin units (pre-canonicalization).
            resolution:  Bin size in bp.
            orientation: ``Orientation`` of the window.
            data:        Extracted window values, same shape as the window.

        Returns:
            ``LabelResult`` with ``found``, ``labels`` and, if intensity
            labeling is enabled, ``intensity_labels``.
        """
        cfg = self.config
        labels = np.zeros(window.shape, dtype=LABEL_DTYPE)
        intensity = np.zeros(window.shape, dtype=LABEL_DTYPE) if cfg.use_intensity_labeling else None

        candidates = self.feature_index.get_contained_features(
            chromosome.index, chromosome.index, window.to_bp(resolution)
        )

        accepted = 0
        for feature in candidates:
            row_length, col_length = feature_lengths(feature, resolution)
            if not (cfg.ignore_orientation or orientation.accepts(row_length, col_length)):
                continue

            start_row = feature.start1 // resolution - window.row_start
            start_col = feature.start2 // resolution - window.col_start
            label_region_with_ones(labels, row_length, col_length, start_row, start_col)
            if intensity is not None:
                label_enriched_region_with_ones(
                    intensity, data, row_length, col_length, start_row, start_col,
                    threshold=cfg.intensity_threshold,
                )
            accepted += 1

        if accepted:
            logger.debug(
                f"FeatureLabeler: chr {chromosome.name} window {window} "
                f"{accepted}/{len(candidates)} features accepted"
            )
        return LabelResult(accepted > 0, labels, intensity, accepted)
