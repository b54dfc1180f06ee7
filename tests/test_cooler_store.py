"""
Tests for Grinder.cooler_store against small .cool / .mcool files written
with cooler.create_cooler.
"""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pandas as pd
import pytest

cooler = pytest.importorskip("cooler")

from Grinder.contact_store import Zoom  # noqa: E402
from Grinder.cooler_store import CoolerContactDataset  # noqa: E402
from Grinder.core.matrix_tools import read_matrix_text  # noqa: E402
from Grinder.core.scan_monitor import FAILED  # noqa: E402
from Grinder.feature_index import Feature2D, Feature2DIndex  # noqa: E402
from Grinder.task_orchestrator import GrindOrchestrator  # noqa: E402

from conftest import make_config  # noqa: E402

CHROMSIZES = [("1", 10_000), ("2", 8_000)]


def dense_counts(n_bins):
    i, j = np.indices((n_bins, n_bins))
    return (1 + i + j).astype(float)


def write_cooler(uri, resolution, mode="w"):
    bins, pixels = [], []
    offset = 0
    for name, length in CHROMSIZES:
        n = -(-length // resolution)
        starts = np.arange(n) * resolution
        bins.append(pd.DataFrame({
            "chrom": name,
            "start": starts,
            "end": np.minimum(starts + resolution, length),
        }))
        i, j = np.triu_indices(n)
        pixels.append(pd.DataFrame({"bin1_id": i + offset, "bin2_id": j + offset,
                                    "count": 1 + i + j}))
        offset += n
    bins = pd.concat(bins, ignore_index=True)
    bins["weight"] = 1.0
    cooler.create_cooler(uri, bins, pd.concat(pixels, ignore_index=True),
                         ordered=True, mode=mode)


@pytest.fixture
def cool_path(tmp_path):
    path = tmp_path / "sample.cool"
    write_cooler(str(path), 1_000)
    return path


@pytest.fixture
def mcool_path(tmp_path):
    path = tmp_path / "sample.mcool"
    write_cooler(f"{path}::resolutions/1000", 1_000, mode="w")
    write_cooler(f"{path}::resolutions/2000", 2_000, mode="a")
    return path


class TestCoolerContactDataset:

    def test_chromosomes_and_resolutions(self, mcool_path):
        dataset = CoolerContactDataset(mcool_path)
        assert dataset.resolutions == [1_000, 2_000]
        chroms = dataset.get_chromosomes()
        assert [(c.index, c.name, c.length) for c in chroms] == [(0, "1", 10_000), (1, "2", 8_000)]
        assert dataset.get_zoom_for_resolution(5_000) is None

    def test_fetch_matches_dense(self, cool_path):
        dataset = CoolerContactDataset(cool_path)
        chrom = dataset.get_chromosomes()[0]
        zd = dataset.get_matrix(chrom, chrom).get_zoom_data(Zoom(1_000))
        assert zd.num_bins == 10
        np.testing.assert_allclose(zd.fetch(0, 5, 2, 7, "NONE"), dense_counts(10)[0:5, 2:7])
        np.testing.assert_allclose(zd.fetch(6, 10, 7, 10, "weight"), dense_counts(10)[6:10, 7:10])

    def test_inter_chromosomal_matrix_unavailable(self, cool_path):
        dataset = CoolerContactDataset(cool_path)
        c1, c2 = dataset.get_chromosomes()
        assert dataset.get_matrix(c1, c2) is None

    def test_expected_is_mean_per_diagonal(self, cool_path):
        dataset = CoolerContactDataset(cool_path)
        expected = dataset.get_expected_values(Zoom(1_000), "NONE")
        c2 = dataset.get_chromosomes()[1]
        dense = dense_counts(8)
        want = np.array([np.diagonal(dense, d).mean() for d in range(8)])
        np.testing.assert_allclose(expected.expected(c2.index, np.arange(8)), want)

    def test_missing_weight_column(self, cool_path):
        dataset = CoolerContactDataset(cool_path)
        assert dataset.get_expected_values(Zoom(1_000), "KR") is None
        assert dataset.get_expected_values(Zoom(1_000), "weight") is not None

    def test_fetch_with_absent_balancing_column(self, cool_path):
        dataset = CoolerContactDataset(cool_path)
        chrom = dataset.get_chromosomes()[0]
        zd = dataset.get_matrix(chrom, chrom).get_zoom_data(Zoom(1_000))
        with pytest.raises(KeyError, match="weight"):
            zd.fetch(0, 2, 0, 2, "KR")

    def test_expected_cache_shared_across_threads(self, cool_path):
        dataset = CoolerContactDataset(cool_path)
        expected = dataset.get_expected_values(Zoom(1_000), "NONE")
        with ThreadPoolExecutor(max_workers=4) as executor:
            vectors = list(executor.map(expected._vector, [0, 1, 0, 1, 0, 1]))
        assert all(v is vectors[0] for v in vectors[0::2])
        assert all(v is vectors[1] for v in vectors[1::2])
        np.testing.assert_allclose(expected.expected(0, [0]),
                                   [np.diagonal(dense_counts(10)).mean()])


class TestGrindFromCooler:

    def test_end_to_end(self, mcool_path, tmp_path):
        dataset = CoolerContactDataset(mcool_path)
        index = Feature2DIndex([Feature2D(0, 3_000, 4_000, 0, 5_000, 7_000)])
        cfg = make_config(x=2, y=4, resolutions={1_000, 2_000}, offset_from_diagonal=1,
                          stride=1)
        out = tmp_path / "out"
        summaries = GrindOrchestrator(dataset, index, cfg, out).make_examples()

        assert len(summaries) == 4
        assert all(s.error is None for s in summaries)
        dense = dense_counts(10)

        horizontal = read_matrix_text(out / "1000_chr1" / "positive_0" / "1_3_4_Horzntl_matrix")
        np.testing.assert_allclose(horizontal, dense[3:5, 4:8])
        labels = read_matrix_text(out / "1000_chr1" / "positive_0" / "1_3_4_Horzntl_matrix.label")
        np.testing.assert_array_equal(labels, [[0, 1, 1, 0], [0, 0, 0, 0]])

        vertical = read_matrix_text(out / "1000_chr1" / "negative_0" / "1_6_6_Vertcl_matrix")
        np.testing.assert_allclose(vertical, dense[2:6, 4:6].T[::-1, ::-1])
        assert (out / "2000_chr2" / "neg_file_names_0.txt").is_file()

    def test_absent_normalization_fails_tasks_with_clear_error(self, cool_path, tmp_path):
        dataset = CoolerContactDataset(cool_path)
        cfg = make_config(x=2, y=4, offset_from_diagonal=1, stride=1, normalization="KR")
        summaries = GrindOrchestrator(dataset, Feature2DIndex([]), cfg,
                                      tmp_path / "out").make_examples()
        assert {s.status for s in summaries} == {FAILED}
        assert all("'weight'" in s.error for s in summaries)
