"""Tests for the Dataset container: construction, views, and seeded derivation."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import polars as pl
import pytest
from pytest_check import check

from treecv.dataset import Dataset
from treecv.exceptions import InvalidDatasetError, TreeCVError


class TestDatasetConstruction:
    """Tests for the constructors and their validation."""

    def test_from_rows_splits_features_and_labels(self) -> None:
        """The last value of every row should become the label."""
        # Arrange / Act
        data = Dataset.from_rows([[1.0, 10.0, 0.0], [2.0, 20.0, 1.0], [3.0, 30.0, 1.0]])

        # Assert
        with check:
            assert data.n_rows == 3
        with check:
            assert data.n_features == 2
        with check:
            assert data.width == 3
        with check:
            assert data.labels.tolist() == [0.0, 1.0, 1.0]
        with check:
            assert data.features[:, 1].tolist() == [10.0, 20.0, 30.0]

    def test_default_column_names(self) -> None:
        """Features should be named x0, x1, ... and the label y."""
        # Arrange / Act
        data = Dataset.from_rows([[1.0, 2.0, 0.0]])

        # Assert
        with check:
            assert data.columns == ["x0", "x1", "y"]
        with check:
            assert data.feature_names == ["x0", "x1"]
        with check:
            assert data.label_name == "y"

    def test_ragged_rows_raise(self) -> None:
        """Rows of different widths should be rejected."""
        # Act / Assert
        with pytest.raises(InvalidDatasetError, match="same width"):
            Dataset.from_rows([[1.0, 0.0], [2.0, 3.0, 1.0]])

    def test_single_column_raises(self) -> None:
        """A table with only a label column has no feature to split on."""
        # Act / Assert
        with pytest.raises(InvalidDatasetError) as exc_info:
            Dataset(np.array([[1.0], [0.0]]))

        # Assert
        with check:
            assert exc_info.value.shape == (2, 1)
        with check:
            assert isinstance(exc_info.value, TreeCVError)

    def test_one_dimensional_values_raise(self) -> None:
        """A flat array is not a table."""
        # Act / Assert
        with pytest.raises(InvalidDatasetError, match="2-D"):
            Dataset(np.array([1.0, 2.0, 3.0]))

    def test_empty_rows_with_columns_is_valid(self) -> None:
        """An empty dataset keeps its width when column names are supplied."""
        # Arrange / Act
        data = Dataset.from_rows([], columns=["tenure", "churned"])

        # Assert
        with check:
            assert data.n_rows == 0
        with check:
            assert data.n_features == 1
        with check:
            assert len(data) == 0

    def test_values_are_copied_and_read_only(self) -> None:
        """Mutating the source array must not change the dataset, and views must reject writes."""
        # Arrange
        source = np.array([[1.0, 0.0], [2.0, 1.0]])
        data = Dataset(source)

        # Act
        source[0, 0] = 99.0

        # Assert
        with check:
            assert data.features[0, 0] == 1.0
        with pytest.raises(ValueError, match="read-only"):
            data.labels[0] = 5.0

    def test_from_frame_moves_label_last(self) -> None:
        """The named label column should become the last column."""
        # Arrange
        frame = pl.DataFrame({"churned": [0, 1, 1], "tenure": [3, 40, 52], "tickets": [9, 1, 0]})

        # Act
        data = Dataset.from_frame(frame, label="churned")

        # Assert
        with check:
            assert data.columns == ["tenure", "tickets", "churned"]
        with check:
            assert data.labels.tolist() == [0.0, 1.0, 1.0]
        with check:
            assert data.features.dtype == np.float64

    def test_from_frame_unknown_label_raises(self) -> None:
        """A missing label column should raise with the frame's shape."""
        # Arrange
        frame = pl.DataFrame({"a": [1.0], "b": [0.0]})

        # Act / Assert
        with pytest.raises(InvalidDatasetError, match="not found"):
            Dataset.from_frame(frame, label="target")

    def test_from_csv_reads_header(self, tmp_path: Path) -> None:
        """A CSV file with a header row should load with its column names."""
        # Arrange
        path = tmp_path / "loans.csv"
        path.write_text("income,debt,default\n50,10,0\n20,15,1\n80,5,0\n")

        # Act
        data = Dataset.from_csv(path)

        # Assert
        with check:
            assert data.columns == ["income", "debt", "default"]
        with check:
            assert data.n_rows == 3
        with check:
            assert data.labels.tolist() == [0.0, 1.0, 0.0]

    def test_concat_stacks_rows(self) -> None:
        """Concatenation keeps row order and the first dataset's names."""
        # Arrange
        first = Dataset.from_rows([[1.0, 0.0]], columns=["a", "label"])
        second = Dataset.from_rows([[2.0, 1.0], [3.0, 1.0]])

        # Act
        combined = Dataset.concat([first, second])

        # Assert
        with check:
            assert combined.features[:, 0].tolist() == [1.0, 2.0, 3.0]
        with check:
            assert combined.columns == ["a", "label"]

    def test_concat_width_mismatch_raises(self) -> None:
        """Datasets of different widths cannot be concatenated."""
        # Arrange
        narrow = Dataset.from_rows([[1.0, 0.0]])
        wide = Dataset.from_rows([[1.0, 2.0, 0.0]])

        # Act / Assert
        with pytest.raises(InvalidDatasetError):
            Dataset.concat([narrow, wide])


class TestDatasetDerivation:
    """Tests for take, shuffle, sample, train_test_split, and to_frame."""

    def test_take_preserves_requested_order(self) -> None:
        """Rows should come back in index order, repeats included."""
        # Arrange
        data = _make_indexed_dataset(5)

        # Act
        taken = data.take([4, 0, 4])

        # Assert
        with check:
            assert taken.features[:, 0].tolist() == [4.0, 0.0, 4.0]

    def test_shuffle_is_a_seeded_permutation(self) -> None:
        """Equal seeds give equal orders, and every row appears exactly once."""
        # Arrange
        data = _make_indexed_dataset(20)

        # Act
        first = data.shuffle(7)
        second = data.shuffle(7)
        other = data.shuffle(8)

        # Assert
        with check:
            assert np.array_equal(first.values, second.values)
        with check:
            assert sorted(first.features[:, 0].tolist()) == list(range(20))
        with check:
            assert not np.array_equal(first.values, other.values)

    def test_shuffle_does_not_modify_source(self) -> None:
        """Shuffling returns a new dataset."""
        # Arrange
        data = _make_indexed_dataset(10)

        # Act
        data.shuffle(3)

        # Assert
        with check:
            assert data.features[:, 0].tolist() == list(range(10))

    def test_sample_minus_one_draws_every_row(self) -> None:
        """Sampling -1 rows without replacement is a full permutation."""
        # Arrange
        data = _make_indexed_dataset(12)

        # Act
        sampled = data.sample(-1, seed=5)

        # Assert
        with check:
            assert sorted(sampled.features[:, 0].tolist()) == list(range(12))

    def test_sample_with_replacement_allows_more_rows(self) -> None:
        """With replacement, more rows than the dataset holds may be drawn."""
        # Arrange
        data = _make_indexed_dataset(3)

        # Act
        sampled = data.sample(10, seed=1, replace=True)

        # Assert
        with check:
            assert sampled.n_rows == 10
        with check:
            assert set(sampled.features[:, 0].tolist()) <= {0.0, 1.0, 2.0}

    def test_sample_too_many_without_replacement_raises(self) -> None:
        """Drawing more rows than available without replacement is an error."""
        # Arrange
        data = _make_indexed_dataset(3)

        # Act / Assert
        with pytest.raises(ValueError, match="without replacement"):
            data.sample(4, seed=1)

    def test_train_test_split_partitions_rows(self) -> None:
        """Train and test should be disjoint and cover every row."""
        # Arrange
        data = _make_indexed_dataset(10)

        # Act
        train, test = data.train_test_split(0.3, seed=11)

        # Assert
        train_ids = set(train.features[:, 0].tolist())
        test_ids = set(test.features[:, 0].tolist())
        with check:
            assert test.n_rows == 3
        with check:
            assert train.n_rows == 7
        with check:
            assert train_ids.isdisjoint(test_ids)
        with check:
            assert train_ids | test_ids == set(map(float, range(10)))

    @pytest.mark.parametrize("fraction", [0.0, 1.0, -0.5])
    def test_train_test_split_rejects_bad_fraction(self, fraction: float) -> None:
        """Fractions outside (0, 1) are rejected.

        Args:
            fraction (float): An out-of-range test fraction.
        """
        # Arrange
        data = _make_indexed_dataset(10)

        # Act / Assert
        with pytest.raises(ValueError, match="test_fraction"):
            data.train_test_split(fraction, seed=0)

    def test_to_frame_round_trips_columns(self) -> None:
        """The frame should carry the dataset's names and values."""
        # Arrange
        data = Dataset.from_rows([[1.5, 0.0], [2.5, 1.0]], columns=["score", "passed"])

        # Act
        frame = data.to_frame()

        # Assert
        with check:
            assert frame.columns == ["score", "passed"]
        with check:
            assert frame["score"].to_list() == [1.5, 2.5]

    def test_repr_shows_shape_and_label(self) -> None:
        """The repr should be short and informative."""
        # Arrange
        data = _make_indexed_dataset(4)

        # Act / Assert
        with check:
            assert repr(data) == "Dataset(n_rows=4, width=2, label='y')"


def _make_indexed_dataset(n_rows: int) -> Dataset:
    """Build a dataset whose only feature is the original row position.

    Args:
        n_rows (int): Number of rows.

    Returns:
        Dataset: Rows `[i, i % 2]` for `i` in `range(n_rows)`.
    """
    return Dataset.from_rows([[float(i), float(i % 2)] for i in range(n_rows)])
