"""
Tests for the 2D feature index and the window labeler:

  - Feature2DIndex rectangle queries and DataFrame construction
  - FeatureLabeler orientation filter, footprint stamping, intensity labels
"""

import numpy as np
import pandas as pd
import pytest

from Grinder.config.grind import ScanConfig
from Grinder.contact_store import Chromosome
from Grinder.core.feature_labeler import FeatureLabeler, feature_lengths
from Grinder.core.orientation import Orientation, Window
from Grinder.feature_index import Feature2D, Feature2DIndex

RES = 1_000
CHROM = Chromosome(1, "1", 100_000)


def make_config(**overrides):
    params = dict(x=4, y=8, resolutions={RES}, offset_from_diagonal=4, stride=1,
                  normalization="NONE")
    params.update(overrides)
    return ScanConfig(**params)


# ──────────────────────────────────────────────────────────────────────────────
# Feature2DIndex
# ──────────────────────────────────────────────────────────────────────────────

class TestFeature2DIndex:

    def test_intersecting_features_returned(self):
        inside = Feature2D(1, 10_000, 12_000, 1, 20_000, 30_000)
        outside = Feature2D(1, 50_000, 51_000, 1, 60_000, 70_000)
        index = Feature2DIndex([inside, outside])
        hits = index.get_contained_features(1, 1, (9_000, 15_000, 13_000, 25_000))
        assert hits == [inside]

    def test_partial_overlap_counts(self):
        f = Feature2D(1, 0, 5_000, 1, 0, 5_000)
        index = Feature2DIndex([f])
        assert index.get_contained_features(1, 1, (4_000, 4_000, 8_000, 8_000)) == [f]

    def test_touching_edge_does_not_intersect(self):
        f = Feature2D(1, 0, 5_000, 1, 0, 5_000)
        index = Feature2DIndex([f])
        assert index.get_contained_features(1, 1, (5_000, 0, 9_000, 5_000)) == []

    def test_other_chromosome_pair_ignored(self):
        f = Feature2D(2, 0, 5_000, 2, 0, 5_000)
        index = Feature2DIndex([f])
        assert index.get_contained_features(1, 1, (0, 0, 10_000, 10_000)) == []
        assert len(index) == 1

    def test_negative_extent_rejected(self):
        with pytest.raises(ValueError):
            Feature2DIndex([Feature2D(1, 10, 5, 1, 0, 5)])

    def test_from_dataframe_matches_chr_prefix(self):
        df = pd.DataFrame({
            "chr1": ["chr1", "1", "chrX"],
            "start1": [0, 10_000, 0],
            "end1": [1_000, 11_000, 1_000],
            "chr2": ["chr1", "1", "chrX"],
            "start2": [0, 12_000, 0],
            "end2": [5_000, 15_000, 1_000],
        })
        index = Feature2DIndex.from_dataframe(df, [CHROM])
        assert len(index) == 2
        assert index.get_features(1, 1)[1] == Feature2D(1, 10_000, 11_000, 1, 12_000, 15_000)

    def test_from_dataframe_missing_columns(self):
        with pytest.raises(ValueError):
            Feature2DIndex.from_dataframe(pd.DataFrame({"chr1": ["1"]}), [CHROM])


# ──────────────────────────────────────────────────────────────────────────────
# FeatureLabeler
# ──────────────────────────────────────────────────────────────────────────────

class TestFeatureLabeler:

    def test_feature_lengths_floor_at_one(self):
        f = Feature2D(1, 0, 500, 1, 0, 3_500)
        assert feature_lengths(f, RES) == (1, 3)

    def test_horizontal_stripe_stamped(self):
        f = Feature2D(1, 10_000, 11_000, 1, 12_000, 16_000)   # 1 × 4 bins
        labeler = FeatureLabeler(Feature2DIndex([f]), make_config())
        window = Orientation.HORIZONTAL.window(10, 10, 4, 8)
        result = labeler.label(CHROM, window, RES, Orientation.HORIZONTAL,
                               np.zeros(window.shape))
        assert result.found
        assert result.labels.shape == (4, 8)
        expected = np.zeros((4, 8), dtype=np.int8)
        expected[0, 2:6] = 1
        np.testing.assert_array_equal(result.labels, expected)
        assert result.intensity_labels is None

    def test_tall_feature_rejected_by_horizontal_window(self):
        # rowLength = 3, colLength = 1
        f = Feature2D(1, 20_000, 23_000, 1, 22_000, 23_000)
        labeler = FeatureLabeler(Feature2DIndex([f]), make_config())
        window = Orientation.HORIZONTAL.window(20, 20, 4, 8)
        result = labeler.label(CHROM, window, RES, Orientation.HORIZONTAL,
                               np.zeros(window.shape))
        assert not result.found
        assert not result.labels.any()

    def test_tall_feature_accepted_by_vertical_window(self):
        f = Feature2D(1, 20_000, 23_000, 1, 22_000, 23_000)
        labeler = FeatureLabeler(Feature2DIndex([f]), make_config())
        window = Orientation.VERTICAL.window(25, 25, 4, 8)     # rows [17, 25) cols [21, 25)
        result = labeler.label(CHROM, window, RES, Orientation.VERTICAL,
                               np.zeros(window.shape))
        assert result.found
        assert result.labels.shape == (8, 4)
        expected = np.zeros((8, 4), dtype=np.int8)
        expected[3:6, 1] = 1
        np.testing.assert_array_equal(result.labels, expected)

    def test_ignore_orientation_accepts_everything(self):
        f = Feature2D(1, 20_000, 23_000, 1, 22_000, 23_000)
        labeler = FeatureLabeler(Feature2DIndex([f]), make_config(ignore_orientation=True))
        window = Orientation.HORIZONTAL.window(20, 20, 4, 8)
        result = labeler.label(CHROM, window, RES, Orientation.HORIZONTAL,
                               np.zeros(window.shape))
        assert result.found
        assert result.labels[0:3, 2].all()

    def test_no_features_gives_empty_negative(self):
        labeler = FeatureLabeler(Feature2DIndex([]), make_config())
        window = Window(0, 0, 4, 8)
        result = labeler.label(CHROM, window, RES, Orientation.HORIZONTAL, np.zeros((4, 8)))
        assert not result.found
        assert result.accepted_count == 0

    def test_labels_always_binary(self):
        feats = [Feature2D(1, 10_000, 11_000, 1, 10_000 + k * 1_000, 16_000) for k in range(3)]
        labeler = FeatureLabeler(Feature2DIndex(feats), make_config())
        window = Orientation.HORIZONTAL.window(10, 10, 4, 8)
        result = labeler.label(CHROM, window, RES, Orientation.HORIZONTAL,
                               np.zeros(window.shape))
        assert result.accepted_count == 3
        assert set(np.unique(result.labels)) <= {0, 1}

    def test_intensity_labels(self):
        f = Feature2D(1, 10_000, 11_000, 1, 12_000, 16_000)
        cfg = make_config(use_intensity_labeling=True, intensity_threshold=5.0)
        labeler = FeatureLabeler(Feature2DIndex([f]), cfg)
        window = Orientation.HORIZONTAL.window(10, 10, 4, 8)
        data = np.zeros(window.shape)
        data[0, 2:6] = [1.0, 6.0, 7.0, 2.0]
        data[1, 3] = 100.0     # outside the footprint
        result = labeler.label(CHROM, window, RES, Orientation.HORIZONTAL, data)
        assert result.intensity_labels.shape == result.labels.shape
        expected = np.zeros((4, 8), dtype=np.int8)
        expected[0, 3:5] = 1
        np.testing.assert_array_equal(result.intensity_labels, expected)
