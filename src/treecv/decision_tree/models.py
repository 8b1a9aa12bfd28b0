"""Hyperparameters, tree nodes, fitted trees, and rule models for the decision tree engine."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Literal

import numpy as np
from pydantic import BaseModel, Field

from treecv.dataset import Dataset
from treecv.decision_tree.losses import Loss
from treecv.exceptions import InvalidHyperparameterError

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

type TaskType = Literal["classification", "regression"]

type PredicateOp = Literal["<=", ">"]

UNBOUNDED: int = -1  # Sentinel for "no limit" on max_depth, max_leaves, max_split_proportion, mtry.

# ---------------------------------------------------------------------------
# Public models -- Hyperparameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Hyperparameters:
    """Immutable hyperparameter set for one tree-training call.

    Every field is validated at construction time, so a malformed set fails
    before any training work starts.

    Attributes:
        max_depth (int): Maximum depth of a leaf; the root has depth 0. `-1` means unbounded.
        max_leaves (int): Maximum number of leaves. `-1` means unbounded.
        min_obs_per_leaf (int): Minimum number of training rows in every leaf. Must be >= 1.
        max_split_proportion (float): Largest allowed share of a node's rows
            sent to one side of a split, in `(0, 1]`. `-1` means unbounded.
        feature_subsample_count (int): Number of features ("mtry") drawn at
            each node. `-1` means every feature is a candidate.
        loss (Loss): Impurity function used to score splits.
        seed (int): Non-negative root seed for per-node feature subsampling.

    Examples:
        >>> params = Hyperparameters(max_depth=3, min_obs_per_leaf=5)
        >>> params.with_seed(7).seed
        7
        >>> Hyperparameters(min_obs_per_leaf=0)
        Traceback (most recent call last):
            ...
        treecv.exceptions.InvalidHyperparameterError: Invalid hyperparameter min_obs_per_leaf=0: must be >= 1
    """

    max_depth: int = 5
    max_leaves: int = UNBOUNDED
    min_obs_per_leaf: int = 1
    max_split_proportion: float = UNBOUNDED
    feature_subsample_count: int = UNBOUNDED
    loss: Loss = Loss.GINI_IMPURITY
    seed: int = 42

    def __post_init__(self) -> None:
        """Validate every field.

        Raises:
            InvalidHyperparameterError: If any field violates its constraint.
        """
        _check_bounded_int("max_depth", self.max_depth, minimum=0)
        _check_bounded_int("max_leaves", self.max_leaves, minimum=1)
        _check_bounded_int("feature_subsample_count", self.feature_subsample_count, minimum=0)
        if not _is_int(self.min_obs_per_leaf) or self.min_obs_per_leaf < 1:
            raise InvalidHyperparameterError("min_obs_per_leaf", self.min_obs_per_leaf, "must be >= 1")
        if not _is_int(self.seed) or self.seed < 0:
            raise InvalidHyperparameterError("seed", self.seed, "must be a non-negative integer")
        proportion = self.max_split_proportion
        if isinstance(proportion, bool) or not isinstance(proportion, (int, float)):
            raise InvalidHyperparameterError("max_split_proportion", proportion, "must be a number")
        if proportion != UNBOUNDED and not 0.0 < proportion <= 1.0:
            raise InvalidHyperparameterError("max_split_proportion", proportion, "must be -1 or in (0, 1]")
        try:
            object.__setattr__(self, "loss", Loss(self.loss))
        except ValueError as exc:
            reason = f"must be one of {[member.value for member in Loss]}"
            raise InvalidHyperparameterError("loss", self.loss, reason) from exc

    def with_seed(self, seed: int) -> Hyperparameters:
        """Return a copy of this set with a different seed.

        Args:
            seed (int): The new non-negative seed.

        Returns:
            Hyperparameters: The copied set.
        """
        return dataclasses.replace(self, seed=seed)

    @property
    def is_depth_bounded(self) -> bool:
        """bool: Whether `max_depth` limits the tree."""
        return self.max_depth != UNBOUNDED

    @property
    def is_leaf_count_bounded(self) -> bool:
        """bool: Whether `max_leaves` limits the tree."""
        return self.max_leaves != UNBOUNDED

    @property
    def is_split_proportion_bounded(self) -> bool:
        """bool: Whether `max_split_proportion` limits splits."""
        return self.max_split_proportion != UNBOUNDED

    @property
    def subsamples_features(self) -> bool:
        """bool: Whether candidate features are drawn at random at each node."""
        return self.feature_subsample_count != UNBOUNDED


def _is_int(value: object) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _check_bounded_int(name: str, value: object, *, minimum: int) -> None:
    """Raise unless `value` is `-1` (unbounded) or an integer `>= minimum`.

    Args:
        name (str): Hyperparameter name used in the error.
        value (object): The value to check.
        minimum (int): Smallest allowed bounded value.

    Raises:
        InvalidHyperparameterError: If the check fails.
    """
    if not _is_int(value) or (value != UNBOUNDED and value < minimum):  # type: ignore[operator]
        raise InvalidHyperparameterError(name, value, f"must be -1 (unbounded) or an integer >= {minimum}")


# ---------------------------------------------------------------------------
# Public models -- Tree nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LeafNode:
    """A terminal node emitting one prediction.

    Attributes:
        value (float): Majority class (classification) or label mean (regression).
        n_samples (int): Number of training rows that reached this leaf.
    """

    value: float
    n_samples: int

    @property
    def is_leaf(self) -> bool:
        """bool: Always True."""
        return True


@dataclass(frozen=True, slots=True)
class SplitNode:
    """An internal node routing rows with `x[feature_index] <= threshold` to `left`.

    Each child slot is filled with a node built for that slot alone, so a
    fitted tree never shares a subtree between two parents.

    Attributes:
        feature_index (int): Column index of the split feature.
        threshold (float): Midpoint between two consecutive distinct feature values.
        left (TreeNode): Subtree for rows with `x[feature_index] <= threshold`.
        right (TreeNode): Subtree for rows with `x[feature_index] > threshold`.
        n_samples (int): Number of training rows that reached this node.
        gain (float): Size-weighted impurity reduction achieved by the split.
    """

    feature_index: int
    threshold: float
    left: TreeNode
    right: TreeNode
    n_samples: int
    gain: float

    @property
    def is_leaf(self) -> bool:
        """bool: Always False."""
        return False


type TreeNode = LeafNode | SplitNode


# ---------------------------------------------------------------------------
# Public models -- Fitted tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DecisionTree:
    """A fitted binary decision tree.

    Created once per training call by `build_tree` and read-only afterwards.

    Attributes:
        root (TreeNode): Root node (depth 0).
        hyperparameters (Hyperparameters): The set the tree was trained with.
        task_type (TaskType): `"classification"` or `"regression"`.
        n_features (int): Number of feature columns the tree expects.
        size (int): Total number of nodes.
        height (int): Depth of the deepest leaf; 0 for a single-leaf tree.
        leaf_count (int): Number of leaves.
    """

    root: TreeNode
    hyperparameters: Hyperparameters
    task_type: TaskType
    n_features: int
    size: int
    height: int
    leaf_count: int

    def predict(self, data: Dataset | np.ndarray) -> np.ndarray:
        """Predict one value per row, in row order.

        Args:
            data (Dataset | np.ndarray): A dataset (its label column is
                ignored) or a 2-D feature matrix with `n_features` columns.

        Returns:
            np.ndarray: 1-D float64 array of predictions.

        Raises:
            ValueError: If the feature width does not match `n_features`.
        """
        feature_matrix = data.features if isinstance(data, Dataset) else np.asarray(data, dtype=np.float64)
        if feature_matrix.ndim != 2 or feature_matrix.shape[1] != self.n_features:
            raise ValueError(
                f"expected a feature matrix with {self.n_features} columns, got shape {feature_matrix.shape}",
            )
        predictions = np.empty(feature_matrix.shape[0], dtype=np.float64)
        _route_rows(self.root, feature_matrix, np.arange(feature_matrix.shape[0]), predictions)
        return predictions


def _route_rows(node: TreeNode, feature_matrix: np.ndarray, row_indices: np.ndarray, out: np.ndarray) -> None:
    """Send `row_indices` down from `node` and write each row's leaf value into `out`.

    Args:
        node (TreeNode): Current subtree root.
        feature_matrix (np.ndarray): Full feature matrix being predicted.
        row_indices (np.ndarray): Positions of the rows that reached `node`.
        out (np.ndarray): Prediction buffer, written in place.
    """
    while isinstance(node, SplitNode):
        goes_left = feature_matrix[row_indices, node.feature_index] <= node.threshold
        _route_rows(node.left, feature_matrix, row_indices[goes_left], out)
        node, row_indices = node.right, row_indices[~goes_left]
    out[row_indices] = node.value


# ---------------------------------------------------------------------------
# Public models -- Rules
# ---------------------------------------------------------------------------


class Predicate(BaseModel):
    """A single threshold condition on one feature.

    Attributes:
        variable (str): Feature name the condition applies to.
        operator (PredicateOp): `"<="` for a left branch, `">"` for a right branch.
        value (float): Split threshold.

    Examples:
        >>> str(Predicate(variable="radius", operator="<=", value=12.5))
        'radius <= 12.5'
    """

    variable: str = Field(description="Feature name the condition applies to.")
    operator: PredicateOp = Field(description="'<=' for a left branch, '>' for a right branch.")
    value: float = Field(description="Split threshold.")

    def __str__(self) -> str:
        """Return the predicate as `"<variable> <operator> <value>"`.

        Returns:
            str: Human-readable predicate.
        """
        return f"{self.variable} {self.operator} {self.value}"

    def eval(self, x: float) -> bool:
        """Evaluate this predicate against a feature value.

        Args:
            x (float): The feature value to test.

        Returns:
            bool: True if the predicate holds for `x`.
        """
        return x <= self.value if self.operator == "<=" else x > self.value


class LeafRule(BaseModel):
    """The path from the root to one leaf, with the leaf's prediction.

    Attributes:
        predicates (list[Predicate]): Conditions along the path; empty for a single-leaf tree.
        prediction (float): Value predicted for rows reaching the leaf.
        samples (int): Number of training rows that reached the leaf.
    """

    predicates: list[Predicate] = Field(description="Conditions along the root-to-leaf path.")
    prediction: float = Field(description="Value predicted for rows reaching the leaf.")
    samples: int = Field(ge=0, description="Number of training rows that reached the leaf.")

    def __str__(self) -> str:
        """Return the rule as `"IF a AND b THEN prediction"`.

        Returns:
            str: Human-readable rule.
        """
        condition = " AND ".join(str(predicate) for predicate in self.predicates) or "TRUE"
        return f"IF {condition} THEN {self.prediction}"
