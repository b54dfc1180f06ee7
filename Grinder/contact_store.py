"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Contact Store - Hi-C Matrix Access Interfaces & In-Memory Dataset            │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    The grinding engine reads contact data only through the small protocols
    defined here, so any backing store (a ``.mcool`` file, a ``.hic`` reader,
    a numpy array) can be plugged in.

    Access chain::

        dataset.get_matrix(chrom, chrom)            → Matrix | None
        dataset.get_zoom_for_resolution(5_000)       → Zoom | None
        matrix.get_zoom_data(zoom)                   → ZoomData | None
        zoom_data.fetch(r0, r1, c0, c1, "KR")        → ndarray (r1-r0) × (c1-c0)
        dataset.get_expected_values(zoom, "KR")      → ExpectedValues | None

    ``None`` at any step means "not available" and is never an error: not
    every resolution exists for every chromosome.

    ``DenseContactDataset`` keeps whole intra-chromosomal matrices in memory.
    It is meant for small genomes, simulated data and tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

import numpy as np

from Grinder.config.grind import WHOLE_GENOME_NAMES

logger = logging.getLogger(__name__)

NO_NORMALIZATION = 'NONE'


@dataclass(frozen=True)
class Chromosome:
    """Chromosome metadata: dataset index, name and length in bp."""
    index: int
    name: str
    length: int

    @property
    def is_whole_genome(self) -> bool:
        return self.name.upper() in WHOLE_GENOME_NAMES

    def bin_count(self, resolution: int) -> int:
        return self.length // resolution


@dataclass(frozen=True)
class Zoom:
    """A resolution level of a contact dataset."""
    bin_size: int
    unit: str = 'BP'

    def __str__(self) -> str:
        return f"{self.unit}_{self.bin_size}"


# ──────────────────────────────────────────────────────────────────────────────
# PROTOCOLS
# ──────────────────────────────────────────────────────────────────────────────

class ZoomData(Protocol):
    zoom: Zoom
    num_bins: int

    def fetch(
        self,
        row_start: int,
        row_end: int,
        col_start: int,
        col_end: int,
        normalization: str,
    ) -> np.ndarray:
        """Return values for an in-bounds bin rectangle."""
        ...


class Matrix(Protocol):
    def get_zoom_data(self, zoom: Zoom) -> Optional[ZoomData]:
        ...


class ExpectedValues(Protocol):
    def expected(self, chrom_index: int, distances: np.ndarray) -> np.ndarray:
        """Expected contact value for each diagonal distance (bins)."""
        ...


class ContactDataset(Protocol):
    def get_chromosomes(self) -> List[Chromosome]:
        ...

    def get_matrix(self, chrom1: Chromosome, chrom2: Chromosome) -> Optional[Matrix]:
        ...

    def get_zoom_for_resolution(self, resolution: int) -> Optional[Zoom]:
        ...

    def get_expected_values(self, zoom: Zoom, normalization: str) -> Optional[ExpectedValues]:
        ...


def chromosomes_without_whole_genome(dataset: ContactDataset) -> List[Chromosome]:
    """Chromosome list with the whole-genome pseudo-entry removed."""
    return [c for c in dataset.get_chromosomes() if not c.is_whole_genome]


# ──────────────────────────────────────────────────────────────────────────────
# IN-MEMORY IMPLEMENTATION
# ──────────────────────────────────────────────────────────────────────────────

class DenseZoomData:
    """One chromosome's dense contact matrix at one resolution."""

    def __init__(
        self,
        zoom: Zoom,
        counts: np.ndarray,
        norm_vectors: Optional[Dict[str, np.ndarray]] = None,
    ):
        counts = np.asarray(counts, dtype=np.float64)
        if counts.ndim != 2 or counts.shape[0] != counts.shape[1]:
            raise ValueError(f"contact matrix must be square, got shape {counts.shape}")
        self.zoom = zoom
        self.counts = counts
        self.num_bins = counts.shape[0]
        self.norm_vectors = {k.upper(): np.asarray(v, dtype=np.float64)
                             for k, v in (norm_vectors or {}).items()}

    def fetch(self, row_start, row_end, col_start, col_end, normalization):
        block = self.counts[row_start:row_end, col_start:col_end]
        norm = normalization.upper()
        if norm == NO_NORMALIZATION:
            return block.copy()
        if norm not in self.norm_vectors:
            raise KeyError(
                f"normalization '{normalization}' not available at {self.zoom} "
                f"(have {sorted(self.norm_vectors) or [NO_NORMALIZATION]})"
            )
        vec = self.norm_vectors[norm]
        scale = np.outer(vec[row_start:row_end], vec[col_start:col_end])
        with np.errstate(divide='ignore', invalid='ignore'):
            out = block / scale
        out[~np.isfinite(out)] = 0.0
        return out


class DenseMatrix:
    """Intra-chromosomal matrix holding one ``DenseZoomData`` per resolution."""

    def __init__(self, chromosome: Chromosome):
        self.chromosome = chromosome
        self._zooms: Dict[int, DenseZoomData] = {}

    def add_zoom_data(self, zoom_data: DenseZoomData) -> None:
        self._zooms[zoom_data.zoom.bin_size] = zoom_data

    def get_zoom_data(self, zoom: Zoom) -> Optional[DenseZoomData]:
        return self._zooms.get(zoom.bin_size)


class DenseExpectedValues:
    """
    Distance-dependent expected values.

    Holds one genome-wide vector, optionally overridden per chromosome index.
    Distances past the end of a vector reuse its last value.
    """

    def __init__(
        self,
        genome_wide: np.ndarray,
        per_chromosome: Optional[Dict[int, np.ndarray]] = None,
    ):
        self.genome_wide = np.asarray(genome_wide, dtype=np.float64)
        self.per_chromosome = {
            int(k): np.asarray(v, dtype=np.float64) for k, v in (per_chromosome or {}).items()
        }
        if self.genome_wide.size == 0:
            raise ValueError("expected vector must not be empty")

    def expected(self, chrom_index, distances):
        vec = self.per_chromosome.get(chrom_index, self.genome_wide)
        idx = np.clip(np.asarray(distances, dtype=np.int64), 0, vec.size - 1)
        return vec[idx]

    @classmethod
    def from_contacts(cls, matrices: Dict[int, np.ndarray]) -> 'DenseExpectedValues':
        """Mean contact per diagonal, per chromosome and pooled genome-wide."""
        per_chrom: Dict[int, np.ndarray] = {}
        max_bins = max(m.shape[0] for m in matrices.values())
        sums = np.zeros(max_bins)
        counts = np.zeros(max_bins)
        for chrom_index, m in matrices.items():
            m = np.asarray(m, dtype=np.float64)
            n = m.shape[0]
            diag_sums = np.array([np.diagonal(m, d).sum() for d in range(n)])
            diag_counts = np.arange(n, 0, -1, dtype=np.float64)
            per_chrom[chrom_index] = diag_sums / diag_counts
            sums[:n] += diag_sums
            counts[:n] += diag_counts
        return cls(sums / np.maximum(counts, 1.0), per_chrom)


class DenseContactDataset:
    """
    In-memory contact dataset.

    Usage::

        chroms = [Chromosome(1, "1", 1_000_000)]
        ds = DenseContactDataset(chroms)
        ds.add_contacts("1", 5_000, counts)                 # 200 × 200 array
        ds.add_expected(5_000, "NONE", expected_vector)
    """

    def __init__(self, chromosomes: List[Chromosome]):
        self._chromosomes = list(chromosomes)
        self._by_name = {c.name: c for c in self._chromosomes}
        self._matrices: Dict[str, DenseMatrix] = {}
        self._resolutions: set = set()
        self._expected: Dict[Tuple[int, str], DenseExpectedValues] = {}

    def get_chromosomes(self) -> List[Chromosome]:
        return list(self._chromosomes)

    def get_chromosome(self, name: str) -> Chromosome:
        return self._by_name[name]

    def add_contacts(
        self,
        chrom_name: str,
        resolution: int,
        counts: np.ndarray,
        norm_vectors: Optional[Dict[str, np.ndarray]] = None,
    ) -> DenseZoomData:
        chrom = self._by_name[chrom_name]
        expected_bins = chrom.bin_count(resolution)
        counts = np.asarray(counts)
        if counts.shape[0] < expected_bins:
            raise ValueError(
                f"matrix for {chrom_name} at {resolution} bp has {counts.shape[0]} bins, "
                f"need at least {expected_bins}"
            )
        zoom = Zoom(resolution)
        zoom_data = DenseZoomData(zoom, counts, norm_vectors)
        self._matrices.setdefault(chrom_name, DenseMatrix(chrom)).add_zoom_data(zoom_data)
        self._resolutions.add(resolution)
        logger.debug(f"DenseContactDataset: added {chrom_name} @ {resolution:,} bp "
                     f"({zoom_data.num_bins} bins)")
        return zoom_data

    def add_expected(self, resolution: int, normalization: str,
                     expected: DenseExpectedValues) -> None:
        self._expected[(resolution, normalization.upper())] = expected

    def get_matrix(self, chrom1, chrom2):
        if chrom1.name != chrom2.name:
            return None
        return self._matrices.get(chrom1.name)

    def get_zoom_for_resolution(self, resolution):
        if resolution not in self._resolutions:
            return None
        return Zoom(resolution)

    def get_expected_values(self, zoom, normalization):
        return self._expected.get((zoom.bin_size, normalization.upper()))
