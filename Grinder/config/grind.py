"""
Grind configuration for StripeGrinder.

This module contains the scan parameters:
- Window geometry (x, y) and diagonal band width
- Resolutions to scan
- Labeling policy flags
- Batch size for output rollover
- O/E ratio bounds

WINDOW GEOMETRY
---------------
Horizontal windows span ``x`` rows by ``y`` columns.  Vertical windows span
``y`` rows by ``x`` columns and are rotated into the horizontal shape before
being written, so every persisted matrix is ``x × y``.

BATCHING
--------
Each (resolution, chromosome) task writes at most ``max_batch_size`` windows
into one ``positive_<n>/`` / ``negative_<n>/`` pair before rolling over to
batch ``n + 1``.

O/E VALUES
----------
With ``use_observed_over_expected`` the window holds
``log((obs + pseudocount) / (expected + pseudocount))`` clipped to
``[-oe_threshold, oe_threshold]``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional

# ==================== GRIND PARAMETERS ====================
GRIND_CONFIG: Dict[str, Any] = {
    # Window geometry (bins)
    'x': 10,
    'y': 100,
    'offset_from_diagonal': 20,    # max perpendicular distance of the window corner from the diagonal
    'stride': 5,

    # Resolutions (bp per bin)
    'resolutions': (5_000, 10_000),

    # Value source
    # 'NONE' = raw observed counts.  For cooler files the name is a bins column:
    # hic2cool output carries 'KR'/'VC', 'cooler balance' output carries 'weight'.
    # A missing column fails the task with a KeyError naming the available columns.
    'normalization': 'KR',
    'use_observed_over_expected': False,
    'oe_threshold': 2.0,
    'oe_pseudocount': 1.0,

    # Labeling
    'ignore_orientation': False,
    'only_positive_examples': False,
    'use_intensity_labeling': False,
    'intensity_threshold': None,   # None = mean of the window values under the feature footprint

    # Output
    'max_batch_size': 10_000,

    # Execution
    'max_workers': None,           # None = auto-detect CPU count
}

# Names of pseudo-chromosomes that represent the whole genome
WHOLE_GENOME_NAMES: FrozenSet[str] = frozenset({'ALL'})

# Suffixes appended to window file prefixes
ORIENTATION_TAGS: Dict[str, str] = {
    'horizontal': '_Horzntl',
    'vertical': '_Vertcl',
}


class ScanConfigError(ValueError):
    """Raised when a scan configuration is invalid."""


@dataclass(frozen=True)
class ScanConfig:
    """
    Immutable scan configuration shared read-only by every task.

    Attributes:
        x, y: Window dimensions in bins (horizontal window is ``x × y``).
        resolutions: Bin sizes (bp) to scan.
        offset_from_diagonal: Max distance (bins) between row and column anchors.
        stride: Step (bins) between consecutive anchors.
        use_observed_over_expected: Extract bounded log O/E instead of observed values.
        ignore_orientation: Accept features regardless of their aspect ratio.
        only_positive_examples: Do not write windows without features.
        use_intensity_labeling: Also write intensity-gated ``.label.exp`` grids.
        normalization: Normalization name handed to the value source.
        max_batch_size: Windows per batch before rollover.
        intensity_threshold: Fixed enrichment threshold, or None for footprint mean.
        oe_threshold: Bound applied to the log O/E ratio.
        oe_pseudocount: Pseudocount added to observed and expected values.
        max_workers: Worker pool size, or None for the CPU count.
    """
    x: int
    y: int
    resolutions: FrozenSet[int]
    offset_from_diagonal: int
    stride: int
    use_observed_over_expected: bool = False
    ignore_orientation: bool = False
    only_positive_examples: bool = False
    use_intensity_labeling: bool = False
    normalization: str = 'KR'
    max_batch_size: int = 10_000
    intensity_threshold: Optional[float] = None
    oe_threshold: float = 2.0
    oe_pseudocount: float = 1.0
    max_workers: Optional[int] = field(default=None, compare=False)

    def __post_init__(self):
        # frozen dataclass: coerce through object.__setattr__
        object.__setattr__(self, 'resolutions', frozenset(int(r) for r in self.resolutions))
        self._validate()

    def _validate(self) -> None:
        if self.x <= 0 or self.y <= 0:
            raise ScanConfigError(f"window dimensions must be positive (x={self.x}, y={self.y})")
        if self.stride <= 0:
            raise ScanConfigError(f"stride must be positive (got {self.stride})")
        if self.offset_from_diagonal < 0:
            raise ScanConfigError(
                f"offset_from_diagonal must be non-negative (got {self.offset_from_diagonal})"
            )
        if not self.resolutions:
            raise ScanConfigError("at least one resolution is required")
        if any(r <= 0 for r in self.resolutions):
            raise ScanConfigError(f"resolutions must be positive (got {sorted(self.resolutions)})")
        if self.max_batch_size <= 0:
            raise ScanConfigError(f"max_batch_size must be positive (got {self.max_batch_size})")
        if self.oe_threshold <= 0:
            raise ScanConfigError(f"oe_threshold must be positive (got {self.oe_threshold})")
        if self.oe_pseudocount < 0:
            raise ScanConfigError(f"oe_pseudocount must be non-negative (got {self.oe_pseudocount})")
        if self.max_workers is not None and self.max_workers < 1:
            raise ScanConfigError(f"max_workers must be >= 1 (got {self.max_workers})")

    @property
    def is_square(self) -> bool:
        """True when horizontal and vertical windows coincide (x == y)."""
        return self.x == self.y

    @classmethod
    def from_dict(cls, overrides: Optional[Dict[str, Any]] = None) -> 'ScanConfig':
        """
        Build a config from ``GRIND_CONFIG`` defaults updated with *overrides*.

        Raises:
            ScanConfigError: On unknown keys or invalid values.
        """
        params = dict(GRIND_CONFIG)
        if overrides:
            unknown = set(overrides) - set(GRIND_CONFIG)
            if unknown:
                raise ScanConfigError(f"unknown scan config keys: {sorted(unknown)}")
            params.update(overrides)
        return cls(**params)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['resolutions'] = sorted(self.resolutions)
        return d


def sorted_resolutions(resolutions: Iterable[int]) -> list:
    """Return resolutions finest-first."""
    return sorted(set(resolutions))
