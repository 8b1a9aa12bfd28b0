"""Tests for the treecv exception hierarchy."""

from __future__ import annotations

import pytest
from pytest_check import check

from treecv.exceptions import (
    InsufficientDataError,
    InvalidDatasetError,
    InvalidFoldCountError,
    InvalidHyperparameterError,
    LengthMismatchError,
    TreeCVError,
)


@pytest.mark.parametrize(
    "error",
    [
        InvalidDatasetError("bad shape", shape=(3, 1)),
        InvalidHyperparameterError("max_depth", -5, "must be -1 or >= 0"),
        InsufficientDataError("too few rows", n_rows=2, required_rows=5, n_features=3),
        InvalidFoldCountError(k_folds=1, n_rows=10),
        LengthMismatchError(expected_length=4, actual_length=3),
    ],
    ids=["dataset", "hyperparameter", "insufficient-data", "fold-count", "length-mismatch"],
)
def test_every_error_is_a_treecv_value_error(error: TreeCVError) -> None:
    """All package errors share one base class and are ValueErrors.

    Args:
        error (TreeCVError): An instance of each concrete error.
    """
    # Assert
    with check:
        assert isinstance(error, TreeCVError)
    with check:
        assert isinstance(error, ValueError)


class TestInvalidHyperparameterError:
    """Tests for InvalidHyperparameterError."""

    def test_message_and_attributes(self) -> None:
        """The message names the field, value, and reason."""
        # Arrange / Act
        error = InvalidHyperparameterError("min_obs_per_leaf", 0, "must be >= 1")

        # Assert
        with check:
            assert str(error) == "Invalid hyperparameter min_obs_per_leaf=0: must be >= 1"
        with check:
            assert error.name == "min_obs_per_leaf"
        with check:
            assert error.value == 0

    def test_repr(self) -> None:
        """The repr shows the field and value."""
        # Arrange
        error = InvalidHyperparameterError("loss", "hinge", "unknown")

        # Act / Assert
        with check:
            assert repr(error) == "InvalidHyperparameterError(name='loss', value='hinge')"


class TestInvalidFoldCountError:
    """Tests for InvalidFoldCountError."""

    def test_message_and_attributes(self) -> None:
        """The message states the constraint and the rejected values."""
        # Arrange / Act
        error = InvalidFoldCountError(k_folds=12, n_rows=10)

        # Assert
        with check:
            assert "k_folds=12" in str(error)
        with check:
            assert "n_rows=10" in str(error)
        with check:
            assert (error.k_folds, error.n_rows) == (12, 10)


class TestInsufficientDataError:
    """Tests for InsufficientDataError."""

    def test_attributes(self) -> None:
        """The counts are kept for callers."""
        # Arrange / Act
        error = InsufficientDataError("too few rows", n_rows=2, required_rows=5, n_features=3)

        # Assert
        with check:
            assert str(error) == "too few rows"
        with check:
            assert (error.n_rows, error.required_rows, error.n_features) == (2, 5, 3)

    def test_can_be_caught_as_base(self) -> None:
        """Catching TreeCVError catches every package error."""
        # Act / Assert
        with pytest.raises(TreeCVError):
            raise InsufficientDataError("empty", n_rows=0, required_rows=1, n_features=1)


class TestLengthMismatchError:
    """Tests for LengthMismatchError."""

    def test_message(self) -> None:
        """The message reports both lengths."""
        # Arrange / Act
        error = LengthMismatchError(expected_length=4, actual_length=3)

        # Assert
        with check:
            assert str(error) == "Length mismatch: 4 true labels but 3 predictions"
