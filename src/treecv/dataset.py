"""Tabular data container: a numeric row/column matrix whose last column is the label."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np
import polars as pl

from treecv.exceptions import InvalidDatasetError

_MIN_WIDTH: int = 2  # At least one feature column plus the label column.


class Dataset:
    """An immutable table of float64 rows whose last column is the label.

    Every row has the same width, and the width is at least two (one feature
    plus the label). A dataset with zero rows is valid. All derived datasets
    (`take`, `shuffle`, `sample`, `concat`) are new objects; the arrays
    returned by `features` and `labels` are read-only views.

    Attributes:
        columns (list[str]): Column names; the last one names the label.

    Examples:
        >>> data = Dataset.from_rows([[1.0, 0.0], [2.0, 1.0], [3.0, 1.0]])
        >>> data.n_rows, data.n_features
        (3, 1)
        >>> data.labels.tolist()
        [0.0, 1.0, 1.0]
    """

    __slots__ = ("_values", "columns")

    def __init__(self, values: np.ndarray, columns: Sequence[str] | None = None) -> None:
        """Initialize the dataset from a 2-D array.

        Args:
            values (np.ndarray): Array with shape `(n_rows, width)`; converted to float64 and copied.
            columns (Sequence[str] | None): Column names. Defaults to
                `["x0", ..., "x{width-2}", "y"]`.

        Raises:
            InvalidDatasetError: If `values` is not 2-D, is narrower than two
                columns, or `columns` has the wrong length.
        """
        array = np.array(values, dtype=np.float64, copy=True)
        if array.ndim != 2:
            raise InvalidDatasetError(f"values must be a 2-D array, got {array.ndim} dimension(s)", shape=array.shape)
        if array.shape[1] < _MIN_WIDTH:
            raise InvalidDatasetError(
                f"values need at least one feature column and a label column, got width {array.shape[1]}",
                shape=array.shape,
            )
        if columns is None:
            columns = [f"x{i}" for i in range(array.shape[1] - 1)] + ["y"]
        if len(columns) != array.shape[1]:
            raise InvalidDatasetError(
                f"expected {array.shape[1]} column names, got {len(columns)}",
                shape=array.shape,
            )
        array.flags.writeable = False
        self._values = array
        self.columns = list(columns)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]], columns: Sequence[str] | None = None) -> Dataset:
        """Build a dataset from a sequence of equal-width rows.

        Args:
            rows (Sequence[Sequence[float]]): Row values; the last value of each row is the label.
            columns (Sequence[str] | None): Optional column names.

        Returns:
            Dataset: The new dataset.

        Raises:
            InvalidDatasetError: If the rows are ragged or too narrow. An empty
                `rows` needs `columns` to know its width.
        """
        if len(rows) == 0:
            width = len(columns) if columns is not None else 0
            return cls(np.empty((0, width)), columns)
        widths = {len(row) for row in rows}
        if len(widths) != 1:
            raise InvalidDatasetError(
                f"rows must all have the same width, got widths {sorted(widths)}",
                shape=(len(rows),),
            )
        return cls(np.asarray(rows, dtype=np.float64), columns)

    @classmethod
    def from_frame(cls, frame: pl.DataFrame, label: str | None = None) -> Dataset:
        """Build a dataset from a polars DataFrame of numeric columns.

        Args:
            frame (pl.DataFrame): Source frame. Every column must be castable to Float64.
            label (str | None): Name of the label column, which is moved to the
                last position. Defaults to the frame's last column.

        Returns:
            Dataset: The new dataset.

        Raises:
            InvalidDatasetError: If `label` is not a column of `frame`.
        """
        if label is not None:
            if label not in frame.columns:
                raise InvalidDatasetError(f"label column {label!r} not found in {frame.columns}", shape=frame.shape)
            frame = frame.select([*(name for name in frame.columns if name != label), label])
        values = frame.cast(pl.Float64).to_numpy()
        return cls(values, frame.columns)

    @classmethod
    def from_csv(cls, path: str | Path, label: str | None = None) -> Dataset:
        """Load a dataset from a delimited text file with a header row.

        Args:
            path (str | Path): Path to the CSV file.
            label (str | None): Name of the label column. Defaults to the last column.

        Returns:
            Dataset: The loaded dataset.
        """
        return cls.from_frame(pl.read_csv(path), label=label)

    @classmethod
    def concat(cls, datasets: Sequence[Dataset]) -> Dataset:
        """Concatenate datasets row-wise, keeping the first dataset's column names.

        Args:
            datasets (Sequence[Dataset]): At least one dataset; all must share the same width.

        Returns:
            Dataset: The concatenated dataset.

        Raises:
            InvalidDatasetError: If `datasets` is empty or the widths differ.
        """
        if not datasets:
            raise InvalidDatasetError("cannot concatenate an empty sequence of datasets", shape=(0,))
        widths = {dataset.width for dataset in datasets}
        if len(widths) != 1:
            raise InvalidDatasetError(
                f"datasets must share one width, got widths {sorted(widths)}",
                shape=(len(datasets),),
            )
        return cls(np.concatenate([dataset._values for dataset in datasets], axis=0), datasets[0].columns)

    # ------------------------------------------------------------------
    # Shape and views
    # ------------------------------------------------------------------

    @property
    def n_rows(self) -> int:
        """int: Number of rows."""
        return self._values.shape[0]

    @property
    def width(self) -> int:
        """int: Number of columns, label included."""
        return self._values.shape[1]

    @property
    def n_features(self) -> int:
        """int: Number of feature columns."""
        return self._values.shape[1] - 1

    @property
    def feature_names(self) -> list[str]:
        """list[str]: Names of the feature columns."""
        return self.columns[:-1]

    @property
    def label_name(self) -> str:
        """str: Name of the label column."""
        return self.columns[-1]

    @property
    def values(self) -> np.ndarray:
        """np.ndarray: Read-only `(n_rows, width)` array of all values."""
        return self._values

    @property
    def features(self) -> np.ndarray:
        """np.ndarray: Read-only `(n_rows, n_features)` feature matrix."""
        return self._values[:, :-1]

    @property
    def labels(self) -> np.ndarray:
        """np.ndarray: Read-only `(n_rows,)` label vector."""
        return self._values[:, -1]

    def row(self, index: int) -> np.ndarray:
        """Return one row, label included.

        Args:
            index (int): Row position; negative values count from the end.

        Returns:
            np.ndarray: Read-only 1-D array of length `width`.
        """
        return self._values[index]

    def __len__(self) -> int:
        """Return the number of rows.

        Returns:
            int: Number of rows.
        """
        return self.n_rows

    def __repr__(self) -> str:
        """Return a short description with the shape and label name.

        Returns:
            str: Representation such as `Dataset(n_rows=10, width=3, label='y')`.
        """
        return f"{self.__class__.__name__}(n_rows={self.n_rows}, width={self.width}, label={self.label_name!r})"

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def take(self, indices: Sequence[int] | np.ndarray) -> Dataset:
        """Return the rows at `indices`, in that order.

        Args:
            indices (Sequence[int] | np.ndarray): Row positions; repeats are allowed.

        Returns:
            Dataset: A new dataset with the selected rows.
        """
        index_array = np.asarray(indices, dtype=np.intp)
        return Dataset(self._values[index_array], self.columns)

    def shuffle(self, seed: int) -> Dataset:
        """Return all rows in a seeded random order.

        Args:
            seed (int): Seed for `np.random.default_rng`; the same seed always gives the same permutation.

        Returns:
            Dataset: A new dataset holding every row exactly once.
        """
        permutation = np.random.default_rng(seed).permutation(self.n_rows)
        return self.take(permutation)

    def sample(self, n: int, seed: int, *, replace: bool = False) -> Dataset:
        """Draw `n` rows at random.

        Args:
            n (int): Number of rows to draw; `-1` draws every row (a shuffle when `replace` is False).
            seed (int): Seed for `np.random.default_rng`.
            replace (bool): Whether rows may be drawn more than once. Defaults to False.

        Returns:
            Dataset: A new dataset with the drawn rows.

        Raises:
            ValueError: If `n` is below -1, or exceeds `n_rows` without replacement.
        """
        if n == -1:
            n = self.n_rows
        if n < 0:
            raise ValueError(f"n must be -1 or non-negative, got {n}")
        if not replace and n > self.n_rows:
            raise ValueError(f"cannot draw {n} rows without replacement from {self.n_rows} rows")
        rng = np.random.default_rng(seed)
        if replace:
            indices = rng.integers(0, self.n_rows, size=n) if self.n_rows else np.empty(0, dtype=np.intp)
        else:
            indices = rng.permutation(self.n_rows)[:n]
        return self.take(indices)

    def train_test_split(self, test_fraction: float, seed: int) -> tuple[Dataset, Dataset]:
        """Split rows into a seeded training set and test set.

        Args:
            test_fraction (float): Fraction of rows, in `(0, 1)`, assigned to the
                test set; the test size is rounded down.
            seed (int): Seed for the shuffle that precedes the split.

        Returns:
            tuple[Dataset, Dataset]: `(train, test)`.

        Raises:
            ValueError: If `test_fraction` is outside `(0, 1)`.
        """
        if not 0.0 < test_fraction < 1.0:
            raise ValueError(f"test_fraction must be in (0, 1), got {test_fraction}")
        permutation = np.random.default_rng(seed).permutation(self.n_rows)
        n_test = int(self.n_rows * test_fraction)
        return self.take(permutation[n_test:]), self.take(permutation[:n_test])

    def to_frame(self) -> pl.DataFrame:
        """Convert the dataset to a polars DataFrame.

        Returns:
            pl.DataFrame: Frame with one Float64 column per dataset column.
        """
        return pl.DataFrame({name: self._values[:, i] for i, name in enumerate(self.columns)})
