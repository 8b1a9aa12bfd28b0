"""Custom exceptions for tree training and cross-validation.

All exceptions derive from `TreeCVError`, so callers can catch every failure
raised by the package with a single clause. Each concrete exception also
subclasses `ValueError` because every failure is caused by an invalid input
value rather than by an environment problem:

- InvalidDatasetError: Raised when rows or columns do not form a valid table.
- InvalidHyperparameterError: Raised when a hyperparameter is malformed.
- InsufficientDataError: Raised when a dataset is too small for the requested
  constraints.
- InvalidFoldCountError: Raised when the fold count is not usable for a dataset.
- LengthMismatchError: Raised when a metric is computed over sequences of
  different lengths.
"""

from __future__ import annotations

from typing import Any


class TreeCVError(Exception):
    """Base exception for all treecv errors.

    Catching this exception catches every error raised by the package.
    """


class InvalidDatasetError(TreeCVError, ValueError):
    """Raised when values do not form a valid tabular dataset.

    Attributes:
        shape (tuple[int, ...]): Shape of the rejected value array.

    Examples:
        >>> err = InvalidDatasetError("need at least one feature and a label", shape=(3, 1))
        >>> err.shape
        (3, 1)
    """

    shape: tuple[int, ...]

    def __init__(self, message: str, *, shape: tuple[int, ...]) -> None:
        """Initialize InvalidDatasetError.

        Args:
            message (str): Description of what is wrong with the values.
            shape (tuple[int, ...]): Shape of the rejected value array.
        """
        super().__init__(message)
        self.shape = shape


class InvalidHyperparameterError(TreeCVError, ValueError):
    """Raised when a hyperparameter value is malformed.

    Attributes:
        name (str): Name of the offending hyperparameter, e.g. `"min_obs_per_leaf"`.
        value (Any): The rejected value.

    Examples:
        >>> err = InvalidHyperparameterError("min_obs_per_leaf", 0, "must be >= 1")
        >>> str(err)
        'Invalid hyperparameter min_obs_per_leaf=0: must be >= 1'
    """

    name: str
    value: Any

    def __init__(self, name: str, value: Any, reason: str) -> None:
        """Initialize InvalidHyperparameterError.

        Args:
            name (str): Name of the offending hyperparameter.
            value (Any): The rejected value.
            reason (str): Human-readable constraint that was violated.
        """
        super().__init__(f"Invalid hyperparameter {name}={value!r}: {reason}")
        self.name = name
        self.value = value

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Representation including the hyperparameter name and value.
        """
        return f"{self.__class__.__name__}(name={self.name!r}, value={self.value!r})"


class InsufficientDataError(TreeCVError, ValueError):
    """Raised when a dataset is too small for the requested training constraints.

    Attributes:
        n_rows (int): Number of rows that were available.
        required_rows (int): Minimum number of rows the constraints require.
        n_features (int): Number of usable features that were available.
    """

    n_rows: int
    required_rows: int
    n_features: int

    def __init__(self, message: str, *, n_rows: int, required_rows: int, n_features: int) -> None:
        """Initialize InsufficientDataError.

        Args:
            message (str): Description of the shortfall.
            n_rows (int): Number of rows that were available.
            required_rows (int): Minimum number of rows the constraints require.
            n_features (int): Number of usable features that were available.
        """
        super().__init__(message)
        self.n_rows = n_rows
        self.required_rows = required_rows
        self.n_features = n_features


class InvalidFoldCountError(TreeCVError, ValueError):
    """Raised when a fold count cannot partition a dataset.

    The fold count must be greater than one and no larger than the number of
    rows, so that every validation fold holds at least one row.

    Attributes:
        k_folds (int): The rejected fold count.
        n_rows (int): Number of rows in the dataset.

    Examples:
        >>> err = InvalidFoldCountError(k_folds=1, n_rows=10)
        >>> err.k_folds, err.n_rows
        (1, 10)
    """

    k_folds: int
    n_rows: int

    def __init__(self, *, k_folds: int, n_rows: int) -> None:
        """Initialize InvalidFoldCountError.

        Args:
            k_folds (int): The rejected fold count.
            n_rows (int): Number of rows in the dataset.
        """
        super().__init__(f"k_folds must satisfy 1 < k_folds <= n_rows, got k_folds={k_folds} with n_rows={n_rows}")
        self.k_folds = k_folds
        self.n_rows = n_rows


class LengthMismatchError(TreeCVError, ValueError):
    """Raised when two sequences compared by a metric differ in length.

    Attributes:
        expected_length (int): Length of the ground-truth sequence.
        actual_length (int): Length of the prediction sequence.
    """

    expected_length: int
    actual_length: int

    def __init__(self, *, expected_length: int, actual_length: int) -> None:
        """Initialize LengthMismatchError.

        Args:
            expected_length (int): Length of the ground-truth sequence.
            actual_length (int): Length of the prediction sequence.
        """
        super().__init__(
            f"Length mismatch: {expected_length} true labels but {actual_length} predictions",
        )
        self.expected_length = expected_length
        self.actual_length = actual_length
