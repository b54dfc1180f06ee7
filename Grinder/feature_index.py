"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Feature2D Index - Rectangle Queries over Annotated 2D Features               │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Stores 2D annotations (e.g. called stripes) grouped by chromosome pair
    and answers "which features intersect this base-pair rectangle?".

    Features are kept as parallel numpy coordinate arrays per chromosome
    pair, so one query is a single vectorized mask instead of a Python loop.
    The index is read-only once built and safe to share between threads.

    Intersection is half-open on both axes: a feature spanning
    ``[start1, end1) × [start2, end2)`` intersects the rectangle
    ``[r0, r1) × [c0, c1)`` iff ``start1 < r1 and end1 > r0 and
    start2 < c1 and end2 > c0``.

USAGE::

    index = Feature2DIndex(features)
    hits  = index.get_contained_features(1, 1, (0, 50_000, 500_000, 550_000))

    # From an already-loaded frame with chr1/start1/end1/chr2/start2/end2
    index = Feature2DIndex.from_dataframe(df, dataset.get_chromosomes())
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['chr1', 'start1', 'end1', 'chr2', 'start2', 'end2']


@dataclass(frozen=True)
class Feature2D:
    """A 2D annotation: rows ``[start1, end1)`` on chr1, cols ``[start2, end2)`` on chr2."""
    chr1: int
    start1: int
    end1: int
    chr2: int
    start2: int
    end2: int


class Feature2DIndex:
    """Vectorized rectangle-intersection index over ``Feature2D`` objects."""

    def __init__(self, features: Iterable[Feature2D] = ()):
        grouped: Dict[Tuple[int, int], List[Feature2D]] = defaultdict(list)
        for f in features:
            if f.end1 < f.start1 or f.end2 < f.start2:
                raise ValueError(f"feature has negative extent: {f}")
            grouped[(f.chr1, f.chr2)].append(f)

        self._features: Dict[Tuple[int, int], List[Feature2D]] = dict(grouped)
        self._coords: Dict[Tuple[int, int], np.ndarray] = {
            key: np.array([[f.start1, f.end1, f.start2, f.end2] for f in feats], dtype=np.int64)
            for key, feats in self._features.items()
        }
        logger.info(
            f"Feature2DIndex: {len(self)} features on {len(self._features)} chromosome pair(s)"
        )

    def __len__(self) -> int:
        return sum(len(v) for v in self._features.values())

    def get_features(self, chr1: int, chr2: int) -> List[Feature2D]:
        return list(self._features.get((chr1, chr2), []))

    def get_contained_features(
        self,
        chr1: int,
        chr2: int,
        rect: Sequence[int],
    ) -> List[Feature2D]:
        """
        Return features on ``(chr1, chr2)`` intersecting *rect*.

        Args:
            chr1, chr2: Chromosome indices.
            rect:       ``(row_start, col_start, row_end, col_end)`` in bp.
        """
        coords = self._coords.get((chr1, chr2))
        if coords is None:
            return []
        r0, c0, r1, c1 = rect
        mask = (
            (coords[:, 0] < r1) & (coords[:, 1] > r0)
            & (coords[:, 2] < c1) & (coords[:, 3] > c0)
        )
        feats = self._features[(chr1, chr2)]
        return [feats[i] for i in np.flatnonzero(mask)]

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, chromosomes) -> 'Feature2DIndex':
        """
        Build an index from a frame with columns
        ``chr1, start1, end1, chr2, start2, end2``.

        Chromosome names are matched with or without a ``chr`` prefix.  Rows on
        chromosomes absent from *chromosomes* are dropped with a warning.

        Raises:
            ValueError: If required columns are missing.
        """
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"feature frame is missing columns: {missing}")

        name_to_index: Dict[str, int] = {}
        for chrom in chromosomes:
            name_to_index[_strip_chr(chrom.name)] = chrom.index

        frame = df[REQUIRED_COLUMNS].copy()
        frame['i1'] = frame['chr1'].astype(str).map(lambda n: name_to_index.get(_strip_chr(n)))
        frame['i2'] = frame['chr2'].astype(str).map(lambda n: name_to_index.get(_strip_chr(n)))
        unknown = frame['i1'].isna() | frame['i2'].isna()
        if unknown.any():
            names = sorted(set(frame.loc[unknown, 'chr1'].astype(str))
                           | set(frame.loc[unknown, 'chr2'].astype(str)))
            logger.warning(
                f"Feature2DIndex: dropping {int(unknown.sum())} feature(s) on unknown "
                f"chromosomes {names}"
            )
            frame = frame.loc[~unknown]

        features = [
            Feature2D(int(row.i1), int(row.start1), int(row.end1),
                      int(row.i2), int(row.start2), int(row.end2))
            for row in frame.itertuples(index=False)
        ]
        return cls(features)


def _strip_chr(name: str) -> str:
    return name[3:] if name.lower().startswith('chr') else name
