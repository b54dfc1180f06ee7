"""
Tests for Grinder.batch_writer:

  - directory and index file layout per batch
  - positive / negative routing and only-positive suppression
  - reopening a batch overwrites its index files
"""

import numpy as np
import pytest

from Grinder.batch_writer import (
    NEGATIVE,
    POSITIVE,
    BatchWriter,
    OutputRecord,
    task_folder_name,
)
from Grinder.core.matrix_tools import read_matrix_text


def positive_record(prefix="1_10_10_Horzntl", intensity=False):
    data = np.arange(8, dtype=float).reshape(2, 4)
    labels = np.array([[0, 1, 1, 0], [0, 0, 0, 0]], dtype=np.int8)
    return OutputRecord(
        file_prefix=prefix,
        data=data,
        labels=labels,
        intensity_labels=labels.copy() if intensity else None,
        found=True,
    )


def negative_record(prefix="1_0_0_Horzntl"):
    return OutputRecord(file_prefix=prefix, data=np.ones((2, 4)),
                        labels=np.zeros((2, 4), dtype=np.int8), found=False)


def read_index(path):
    return path.read_text().splitlines()


class TestLayout:

    def test_task_folder_name(self):
        assert task_folder_name(5_000, "17") == "5000_chr17"

    def test_open_creates_batch_directories_and_indexes(self, tmp_path):
        with BatchWriter(tmp_path / "task") as writer:
            writer.open(0)
            assert writer.is_open
        folder = tmp_path / "task"
        assert (folder / "positive_0").is_dir()
        assert (folder / "negative_0").is_dir()
        for name in ("pos_file_names_0.txt", "neg_file_names_0.txt",
                     "pos_label_file_names_0.txt"):
            assert (folder / name).is_file()

    def test_close_on_exit(self, tmp_path):
        writer = BatchWriter(tmp_path)
        with writer:
            writer.open(0)
        assert not writer.is_open


class TestWrite:

    def test_positive_record(self, tmp_path):
        with BatchWriter(tmp_path) as writer:
            writer.open(0)
            assert writer.write(positive_record()) == POSITIVE

        pos_dir = tmp_path / "positive_0"
        data = read_matrix_text(pos_dir / "1_10_10_Horzntl_matrix")
        labels = read_matrix_text(pos_dir / "1_10_10_Horzntl_matrix.label")
        np.testing.assert_array_equal(data, np.arange(8).reshape(2, 4))
        np.testing.assert_array_equal(labels, [[0, 1, 1, 0], [0, 0, 0, 0]])
        assert read_index(tmp_path / "pos_file_names_0.txt") == ["1_10_10_Horzntl_matrix"]
        assert read_index(tmp_path / "pos_label_file_names_0.txt") == [
            "1_10_10_Horzntl_matrix.label"
        ]
        assert read_index(tmp_path / "neg_file_names_0.txt") == []

    def test_intensity_label_listed_in_label_index(self, tmp_path):
        with BatchWriter(tmp_path) as writer:
            writer.open(0)
            writer.write(positive_record(intensity=True))
        assert (tmp_path / "positive_0" / "1_10_10_Horzntl_matrix.label.exp").is_file()
        assert read_index(tmp_path / "pos_label_file_names_0.txt") == [
            "1_10_10_Horzntl_matrix.label",
            "1_10_10_Horzntl_matrix.label.exp",
        ]

    def test_negative_record_has_no_label_file(self, tmp_path):
        with BatchWriter(tmp_path) as writer:
            writer.open(0)
            assert writer.write(negative_record()) == NEGATIVE
        assert sorted(p.name for p in (tmp_path / "negative_0").iterdir()) == [
            "1_0_0_Horzntl_matrix"
        ]
        assert read_index(tmp_path / "neg_file_names_0.txt") == ["1_0_0_Horzntl_matrix"]
        assert read_index(tmp_path / "pos_label_file_names_0.txt") == []

    def test_only_positive_suppresses_negatives(self, tmp_path):
        with BatchWriter(tmp_path) as writer:
            writer.open(0)
            assert writer.write(negative_record(), only_positive_examples=True) is None
            assert writer.write(positive_record(), only_positive_examples=True) == POSITIVE
        assert list((tmp_path / "negative_0").iterdir()) == []
        assert read_index(tmp_path / "neg_file_names_0.txt") == []

    def test_write_before_open_raises(self, tmp_path):
        with pytest.raises(RuntimeError):
            BatchWriter(tmp_path).write(negative_record())

    def test_positive_without_labels_raises(self, tmp_path):
        with BatchWriter(tmp_path) as writer:
            writer.open(0)
            with pytest.raises(ValueError):
                writer.write(OutputRecord("x", np.ones((1, 1)), labels=None, found=True))


class TestBatches:

    def test_separate_batches(self, tmp_path):
        with BatchWriter(tmp_path) as writer:
            writer.open(0)
            writer.write(negative_record("a"))
            writer.open(1)
            writer.write(negative_record("b"))
        assert read_index(tmp_path / "neg_file_names_0.txt") == ["a_matrix"]
        assert read_index(tmp_path / "neg_file_names_1.txt") == ["b_matrix"]
        assert (tmp_path / "negative_1" / "b_matrix").is_file()

    def test_reopen_overwrites_index(self, tmp_path):
        with BatchWriter(tmp_path) as writer:
            writer.open(0)
            writer.write(negative_record("old"))
        with BatchWriter(tmp_path) as writer:
            writer.open(0)
            writer.write(negative_record("new"))
        assert read_index(tmp_path / "neg_file_names_0.txt") == ["new_matrix"]
