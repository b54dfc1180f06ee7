"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Cooler Store - .cool / .mcool Backed Contact Dataset                         │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Implements the ``ContactDataset`` protocol on top of the ``cooler``
    library.  A ``.mcool`` file contributes one zoom per
    ``/resolutions/<bp>`` group; a single-resolution ``.cool`` contributes one.

    Normalization names map onto balancing weight columns::

        "NONE"                  → unbalanced counts
        "KR", "VC", "weight"…   → bins/<name> used as balancing weights

    Files converted from ``.hic`` (hic2cool) carry ``KR``/``VC``/``VC_SQRT``
    columns; files balanced by ``cooler balance`` carry ``weight``.

    Expected values are the mean contact per diagonal of each chromosome,
    computed lazily from the pixel table with pandas and cached.  The cache is
    guarded by a lock because grinding tasks run on a thread pool.

USAGE::

    dataset = CoolerContactDataset("sample.mcool")
    dataset.get_zoom_for_resolution(10_000)
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Tuple

import cooler
import numpy as np
import pandas as pd

from Grinder.contact_store import NO_NORMALIZATION, Chromosome, Zoom

logger = logging.getLogger(__name__)


def _balance_arg(normalization: str):
    if normalization.upper() == NO_NORMALIZATION:
        return False
    return normalization


class CoolerZoomData:
    """One chromosome of one cooler resolution."""

    def __init__(self, clr: cooler.Cooler, chromosome: Chromosome, zoom: Zoom):
        self.clr = clr
        self.chromosome = chromosome
        self.zoom = zoom
        lo, hi = clr.extent(chromosome.name)
        self.num_bins = hi - lo
        self.bin_columns = list(clr.bins().columns)

    def fetch(self, row_start, row_end, col_start, col_end, normalization):
        balance = _balance_arg(normalization)
        if balance and balance not in self.bin_columns:
            raise KeyError(
                f"normalization '{normalization}' not available at {self.zoom} "
                f"(bins columns: {self.bin_columns}; "
                f"use 'weight' for files balanced by 'cooler balance')"
            )
        res = self.zoom.bin_size
        length = self.chromosome.length
        name = self.chromosome.name
        row_region = (name, row_start * res, min(row_end * res, length))
        col_region = (name, col_start * res, min(col_end * res, length))
        selector = self.clr.matrix(balance=balance)
        return np.asarray(selector.fetch(row_region, col_region), dtype=np.float64)


class CoolerMatrix:
    def __init__(self, dataset: 'CoolerContactDataset', chromosome: Chromosome):
        self.dataset = dataset
        self.chromosome = chromosome

    def get_zoom_data(self, zoom: Zoom) -> Optional[CoolerZoomData]:
        clr = self.dataset.get_cooler(zoom.bin_size)
        if clr is None or self.chromosome.name not in clr.chromnames:
            return None
        return CoolerZoomData(clr, self.chromosome, zoom)


class CoolerExpectedValues:
    """Per-chromosome mean contact by diagonal distance, computed on demand."""

    def __init__(self, clr: cooler.Cooler, chromosomes: List[Chromosome], normalization: str):
        self.clr = clr
        self.normalization = normalization
        self._by_index = {c.index: c for c in chromosomes}
        self._cache: Dict[int, np.ndarray] = {}
        self._lock = threading.Lock()

    def expected(self, chrom_index, distances):
        vec = self._vector(chrom_index)
        idx = np.clip(np.asarray(distances, dtype=np.int64), 0, vec.size - 1)
        return vec[idx]

    def _vector(self, chrom_index: int) -> np.ndarray:
        with self._lock:
            vec = self._cache.get(chrom_index)
        if vec is not None:
            return vec
        # pixel scan runs unlocked; concurrent first callers keep the first result
        vec = self._compute(self._by_index[chrom_index])
        with self._lock:
            return self._cache.setdefault(chrom_index, vec)

    def _compute(self, chromosome: Chromosome) -> np.ndarray:
        balance = _balance_arg(self.normalization)
        lo, hi = self.clr.extent(chromosome.name)
        n_bins = hi - lo

        pixels = self.clr.matrix(balance=balance, as_pixels=True, join=False).fetch(chromosome.name)
        pixels = pixels[pixels['bin2_id'] >= pixels['bin1_id']]
        value_col = 'balanced' if balance else 'count'
        distance = (pixels['bin2_id'] - pixels['bin1_id']).rename('distance')
        sums = pixels[value_col].groupby(distance).sum()

        vec = np.zeros(max(n_bins, 1), dtype=np.float64)
        d = sums.index.to_numpy(dtype=np.int64)
        vec[d] = sums.to_numpy(dtype=np.float64) / (n_bins - d)
        logger.debug(
            f"CoolerExpectedValues: chr {chromosome.name} @ {self.clr.binsize:,} bp "
            f"({n_bins} bins, {len(pixels):,} pixels)"
        )
        return vec


class CoolerContactDataset:
    """``ContactDataset`` backed by a ``.cool`` or ``.mcool`` file."""

    def __init__(self, path):
        self.path = str(path)
        self._coolers: Dict[int, cooler.Cooler] = {}
        for group in cooler.fileops.list_coolers(self.path):
            clr = cooler.Cooler(f"{self.path}::{group}")
            self._coolers[int(clr.binsize)] = clr
        if not self._coolers:
            raise ValueError(f"no cooler groups found in {self.path}")

        finest = self._coolers[min(self._coolers)]
        chromsizes: pd.Series = finest.chromsizes
        self._chromosomes = [
            Chromosome(i, str(name), int(length))
            for i, (name, length) in enumerate(chromsizes.items())
        ]
        self._expected: Dict[Tuple[int, str], CoolerExpectedValues] = {}
        self._lock = threading.Lock()
        logger.info(
            f"CoolerContactDataset: {self.path} resolutions={sorted(self._coolers)} "
            f"chromosomes={len(self._chromosomes)}"
        )

    @property
    def resolutions(self) -> List[int]:
        return sorted(self._coolers)

    def get_cooler(self, resolution: int) -> Optional[cooler.Cooler]:
        return self._coolers.get(resolution)

    def get_chromosomes(self) -> List[Chromosome]:
        return list(self._chromosomes)

    def get_matrix(self, chrom1, chrom2):
        if chrom1.name != chrom2.name:
            return None
        return CoolerMatrix(self, chrom1)

    def get_zoom_for_resolution(self, resolution):
        if resolution not in self._coolers:
            return None
        return Zoom(resolution)

    def get_expected_values(self, zoom, normalization):
        clr = self._coolers.get(zoom.bin_size)
        if clr is None:
            return None
        balance = _balance_arg(normalization)
        if balance and balance not in clr.bins().columns:
            return None
        key = (zoom.bin_size, normalization.upper())
        with self._lock:
            if key not in self._expected:
                self._expected[key] = CoolerExpectedValues(clr, self._chromosomes, normalization)
            return self._expected[key]
