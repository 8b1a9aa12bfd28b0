"""Scoring of predictions against ground truth."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from sklearn.metrics import mean_squared_error, r2_score

from treecv.dataset import Dataset
from treecv.decision_tree.models import DecisionTree
from treecv.exceptions import LengthMismatchError


def accuracy(true_labels: Sequence[float] | np.ndarray, predictions: Sequence[float] | np.ndarray) -> float:
    """Return the fraction of positions where the prediction equals the true label exactly.

    Args:
        true_labels (Sequence[float] | np.ndarray): Ground-truth labels.
        predictions (Sequence[float] | np.ndarray): Predicted labels, parallel to `true_labels`.

    Returns:
        float: Accuracy in `[0, 1]`; 0.0 for two empty sequences.

    Raises:
        LengthMismatchError: If the two sequences differ in length.

    Examples:
        >>> accuracy([0.0, 1.0, 1.0, 0.0], [0.0, 1.0, 0.0, 0.0])
        0.75
    """
    truth, predicted = _as_parallel_arrays(true_labels, predictions)
    if truth.size == 0:
        return 0.0
    return float(np.count_nonzero(truth == predicted) / truth.size)


def root_mean_squared_error(
    true_values: Sequence[float] | np.ndarray,
    predictions: Sequence[float] | np.ndarray,
) -> float:
    """Return the root mean squared error between true values and predictions.

    Args:
        true_values (Sequence[float] | np.ndarray): Ground-truth values.
        predictions (Sequence[float] | np.ndarray): Predicted values, parallel to `true_values`.

    Returns:
        float: Non-negative RMSE.

    Raises:
        LengthMismatchError: If the two sequences differ in length.
    """
    truth, predicted = _as_parallel_arrays(true_values, predictions)
    return float(np.sqrt(mean_squared_error(truth, predicted)))


def r_squared(true_values: Sequence[float] | np.ndarray, predictions: Sequence[float] | np.ndarray) -> float:
    """Return the coefficient of determination of the predictions.

    Args:
        true_values (Sequence[float] | np.ndarray): Ground-truth values.
        predictions (Sequence[float] | np.ndarray): Predicted values, parallel to `true_values`.

    Returns:
        float: R², at most 1.0.

    Raises:
        LengthMismatchError: If the two sequences differ in length.
    """
    truth, predicted = _as_parallel_arrays(true_values, predictions)
    return float(r2_score(truth, predicted))


def evaluate_tree(tree: DecisionTree, data: Dataset) -> dict[str, float]:
    """Compute evaluation metrics for a fitted tree on a labelled dataset.

    Args:
        tree (DecisionTree): A fitted tree.
        data (Dataset): Rows to score; the label column is the ground truth.

    Returns:
        dict[str, float]: For classification: `{"accuracy": <float>}`.
            For regression: `{"r_squared": <float>, "rmse": <float>}`.
    """
    predictions = tree.predict(data)
    if tree.task_type == "classification":
        return {"accuracy": accuracy(data.labels, predictions)}
    return {
        "r_squared": r_squared(data.labels, predictions),
        "rmse": root_mean_squared_error(data.labels, predictions),
    }


def _as_parallel_arrays(
    true_values: Sequence[float] | np.ndarray,
    predictions: Sequence[float] | np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Convert both inputs to 1-D arrays and check that their lengths match.

    Args:
        true_values (Sequence[float] | np.ndarray): Ground-truth values.
        predictions (Sequence[float] | np.ndarray): Predicted values.

    Returns:
        tuple[np.ndarray, np.ndarray]: `(truth, predicted)` as 1-D arrays.

    Raises:
        LengthMismatchError: If the lengths differ.
    """
    truth = np.asarray(true_values).ravel()
    predicted = np.asarray(predictions).ravel()
    if truth.size != predicted.size:
        raise LengthMismatchError(expected_length=truth.size, actual_length=predicted.size)
    return truth, predicted
