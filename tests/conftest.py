"""Shared fixtures: small in-memory contact datasets."""

import numpy as np
import pytest

from Grinder.config.grind import ScanConfig
from Grinder.contact_store import Chromosome, DenseContactDataset


def band_matrix(n_bins, seed=0):
    """Symmetric matrix with a decaying diagonal band, like a real Hi-C map."""
    rng = np.random.default_rng(seed)
    i, j = np.indices((n_bins, n_bins))
    counts = 100.0 / (1.0 + np.abs(i - j)) + rng.random((n_bins, n_bins))
    return (counts + counts.T) / 2.0


def make_dataset(resolution, chrom_lengths, seed=0):
    """
    Build a ``DenseContactDataset`` with a whole-genome "All" entry at index 0
    followed by one chromosome per ``(name, length)`` pair.
    """
    chromosomes = [Chromosome(0, "All", sum(length for _, length in chrom_lengths))]
    chromosomes += [Chromosome(i + 1, name, length)
                    for i, (name, length) in enumerate(chrom_lengths)]
    dataset = DenseContactDataset(chromosomes)
    for offset, (name, length) in enumerate(chrom_lengths):
        dataset.add_contacts(name, resolution, band_matrix(length // resolution, seed + offset))
    return dataset


def make_config(**overrides):
    params = dict(x=4, y=8, resolutions={1_000}, offset_from_diagonal=2, stride=2,
                  normalization="NONE", max_workers=2)
    params.update(overrides)
    return ScanConfig(**params)


@pytest.fixture
def small_dataset():
    return make_dataset(1_000, [("1", 30_000)])
