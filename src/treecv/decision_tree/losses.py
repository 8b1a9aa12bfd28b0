"""Impurity functions used to score candidate splits.

Each `Loss` member is resolved once, at configuration time, into an
`ImpurityFunction` that exposes two callables:

- `impurity(labels)`: impurity of one label subset.
- `cumulative_impurity(labels)`: impurity of every prefix `labels[:i + 1]`,
  computed in a single vectorized pass so the splitter can score all
  thresholds of a sorted feature column at once.

Every impurity is non-negative and zero for a pure (single-valued) subset.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

import numpy as np


class Loss(StrEnum):
    """Supported impurity functions.

    Attributes:
        GINI_IMPURITY: `1 - sum(p_c ** 2)` over class proportions.
        ENTROPY: `-sum(p_c * log2(p_c))` over class proportions.
        VARIANCE: Population variance of the labels.
    """

    GINI_IMPURITY = "gini_impurity"
    ENTROPY = "entropy"
    VARIANCE = "variance"


@dataclass(frozen=True, slots=True)
class ImpurityFunction:
    """A resolved impurity function.

    Attributes:
        loss (Loss): The loss this function implements.
        impurity (Callable[[np.ndarray], float]): Impurity of a 1-D label array.
        cumulative_impurity (Callable[[np.ndarray], np.ndarray]): Impurity of
            every non-empty prefix of a 1-D label array; element `i` equals
            `impurity(labels[:i + 1])`.
    """

    loss: Loss
    impurity: Callable[[np.ndarray], float]
    cumulative_impurity: Callable[[np.ndarray], np.ndarray]


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


def gini_impurity(labels: np.ndarray) -> float:
    """Return the Gini impurity `1 - sum(p_c ** 2)` of a label subset.

    Args:
        labels (np.ndarray): 1-D array of class labels.

    Returns:
        float: Impurity in `[0, 1)`; 0.0 for an empty or pure subset.

    Examples:
        >>> gini_impurity(np.array([1.0, 1.0, 0.0, 0.0]))
        0.5
    """
    if labels.size == 0:
        return 0.0
    _, counts = np.unique(labels, return_counts=True)
    proportions = counts / labels.size
    return max(float(1.0 - np.sum(proportions**2)), 0.0)


def entropy(labels: np.ndarray) -> float:
    """Return the Shannon entropy, in bits, of a label subset.

    Args:
        labels (np.ndarray): 1-D array of class labels.

    Returns:
        float: Entropy; 0.0 for an empty or pure subset.
    """
    if labels.size == 0:
        return 0.0
    _, counts = np.unique(labels, return_counts=True)
    proportions = counts / labels.size
    return max(float(-np.sum(proportions * np.log2(proportions))), 0.0)


def variance(labels: np.ndarray) -> float:
    """Return the population variance of a label subset.

    Args:
        labels (np.ndarray): 1-D array of numeric labels.

    Returns:
        float: Variance; 0.0 for an empty or constant subset.

    Examples:
        >>> variance(np.array([1.0, 3.0]))
        1.0
    """
    if labels.size == 0:
        return 0.0
    return float(np.var(labels))


def resolve_loss(loss: Loss | str) -> ImpurityFunction:
    """Resolve a loss name into its impurity function.

    Args:
        loss (Loss | str): A `Loss` member or its string value, e.g. `"gini_impurity"`.

    Returns:
        ImpurityFunction: The resolved function pair.

    Raises:
        ValueError: If `loss` does not name a supported loss.
    """
    return _IMPURITY_FUNCTIONS[Loss(loss)]


# ---------------------------------------------------------------------------
# Private helpers -- Vectorized prefix impurities
# ---------------------------------------------------------------------------


def _prefix_class_proportions(labels: np.ndarray) -> np.ndarray:
    """Return the class proportions of every prefix of `labels`.

    Args:
        labels (np.ndarray): 1-D array of class labels.

    Returns:
        np.ndarray: Array with shape `(n, n_classes)`; row `i` holds the class
            proportions of `labels[:i + 1]`.
    """
    _, codes = np.unique(labels, return_inverse=True)
    one_hot = np.zeros((labels.size, int(codes.max()) + 1 if labels.size else 0), dtype=np.float64)
    one_hot[np.arange(labels.size), codes] = 1.0
    counts = np.cumsum(one_hot, axis=0)
    sizes = np.arange(1, labels.size + 1, dtype=np.float64)
    return counts / sizes[:, np.newaxis]


def _cumulative_gini(labels: np.ndarray) -> np.ndarray:
    proportions = _prefix_class_proportions(labels)
    return np.maximum(1.0 - np.sum(proportions**2, axis=1), 0.0)


def _cumulative_entropy(labels: np.ndarray) -> np.ndarray:
    proportions = _prefix_class_proportions(labels)
    with np.errstate(divide="ignore", invalid="ignore"):
        terms = np.where(proportions > 0.0, proportions * np.log2(proportions), 0.0)
    return np.maximum(-np.sum(terms, axis=1), 0.0)


def _cumulative_variance(labels: np.ndarray) -> np.ndarray:
    # Labels are centered first so E[x^2] - E[x]^2 does not lose precision on large offsets.
    centered = labels - labels.mean() if labels.size else labels
    sizes = np.arange(1, labels.size + 1, dtype=np.float64)
    means = np.cumsum(centered) / sizes
    mean_squares = np.cumsum(centered**2) / sizes
    return np.maximum(mean_squares - means**2, 0.0)


_IMPURITY_FUNCTIONS: dict[Loss, ImpurityFunction] = {
    Loss.GINI_IMPURITY: ImpurityFunction(Loss.GINI_IMPURITY, gini_impurity, _cumulative_gini),
    Loss.ENTROPY: ImpurityFunction(Loss.ENTROPY, entropy, _cumulative_entropy),
    Loss.VARIANCE: ImpurityFunction(Loss.VARIANCE, variance, _cumulative_variance),
}
