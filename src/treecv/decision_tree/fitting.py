"""Decision tree construction, prediction, and rule extraction."""

from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple

import numpy as np
from loguru import logger

from treecv.dataset import Dataset
from treecv.decision_tree.losses import ImpurityFunction, resolve_loss
from treecv.decision_tree.models import (
    DecisionTree,
    Hyperparameters,
    LeafNode,
    LeafRule,
    Predicate,
    SplitNode,
    TaskType,
    TreeNode,
)
from treecv.exceptions import InsufficientDataError

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

# A split must reduce the size-weighted parent impurity by more than this fraction
# of it; smaller reductions are floating-point noise from the prefix sums.
_RELATIVE_GAIN_TOLERANCE: float = 1e-12
_EMPTY_LEAF_VALUE: float = 0.0  # Prediction of a tree trained on zero rows.


# ---------------------------------------------------------------------------
# Public interface -- Tree building
# ---------------------------------------------------------------------------


def build_tree(
    data: Dataset,
    hyperparameters: Hyperparameters,
    *,
    task_type: TaskType = "classification",
) -> DecisionTree:
    """Grow a decision tree on `data` by recursive, depth-first binary splitting.

    At every node the builder first checks the stopping conditions (too few
    rows for two leaves, depth limit reached, leaf budget exhausted, pure
    labels, or constant features). Otherwise it picks the candidate features
    (all of them, or a per-node seeded draw of `feature_subsample_count`),
    scores every midpoint threshold by the size-weighted impurity reduction,
    keeps the best one (ties go to the lowest feature index, then the lowest
    threshold) and recurses on both sides. A node whose best split gains
    nothing, leaves a side with fewer than `min_obs_per_leaf` rows, or sends
    more than `max_split_proportion` of its rows to one side becomes a leaf.

    The result depends only on `data` and `hyperparameters`: the per-node
    generator is seeded with `(seed, node_index)`, where nodes are numbered in
    preorder.

    Args:
        data (Dataset): Training rows; the last column is the label.
        hyperparameters (Hyperparameters): Validated training configuration.
        task_type (TaskType): `"classification"` predicts the majority class at
            each leaf; `"regression"` predicts the label mean.

    Returns:
        DecisionTree: The fitted tree.

    Raises:
        InsufficientDataError: If the dataset is non-empty but has fewer rows
            than `min_obs_per_leaf`, or if `feature_subsample_count` is 0.
        ValueError: If `task_type` is not `"classification"` or `"regression"`.
    """
    if task_type not in ("classification", "regression"):
        raise ValueError(f"task_type must be 'classification' or 'regression', got {task_type!r}")
    _check_trainable(data, hyperparameters)

    builder = _TreeBuilder(data.features, data.labels, hyperparameters, task_type=task_type)
    root = builder.grow(np.arange(data.n_rows), depth=0)
    tree = DecisionTree(
        root=root,
        hyperparameters=hyperparameters,
        task_type=task_type,
        n_features=data.n_features,
        size=builder.node_count,
        height=builder.height,
        leaf_count=builder.leaf_count,
    )
    logger.debug(
        "Decision tree built",
        n_rows=data.n_rows,
        size=tree.size,
        height=tree.height,
        leaf_count=tree.leaf_count,
        seed=hyperparameters.seed,
    )
    return tree


def predict(tree: DecisionTree, data: Dataset | np.ndarray) -> np.ndarray:
    """Predict one value per row of `data`, in row order.

    Args:
        tree (DecisionTree): A fitted tree.
        data (Dataset | np.ndarray): A dataset (label ignored) or a 2-D feature matrix.

    Returns:
        np.ndarray: 1-D array of predictions.
    """
    return tree.predict(data)


# ---------------------------------------------------------------------------
# Public interface -- Rule extraction
# ---------------------------------------------------------------------------


def extract_rules(tree: DecisionTree, feature_names: Sequence[str] | None = None) -> list[LeafRule]:
    """Extract one human-readable rule per leaf, from left to right.

    Args:
        tree (DecisionTree): A fitted tree.
        feature_names (Sequence[str] | None): Names parallel to the feature
            columns. Defaults to `x0`, `x1`, ...

    Returns:
        list[LeafRule]: `tree.leaf_count` rules whose predicate lists describe
            the path from the root to each leaf.

    Raises:
        ValueError: If `feature_names` does not have `tree.n_features` entries.
    """
    if feature_names is None:
        feature_names = [f"x{i}" for i in range(tree.n_features)]
    if len(feature_names) != tree.n_features:
        raise ValueError(f"expected {tree.n_features} feature names, got {len(feature_names)}")

    rules: list[LeafRule] = []
    _walk_tree(tree.root, feature_names=feature_names, path_predicates=[], rules=rules)
    return rules


def _walk_tree(
    node: TreeNode,
    *,
    feature_names: Sequence[str],
    path_predicates: list[Predicate],
    rules: list[LeafRule],
) -> None:
    """Append the rules of every leaf under `node` to `rules`.

    Args:
        node (TreeNode): Current subtree root.
        feature_names (Sequence[str]): Names parallel to the feature columns.
        path_predicates (list[Predicate]): Predicates from the root to `node`.
        rules (list[LeafRule]): Accumulator, appended in place.
    """
    if isinstance(node, LeafNode):
        rules.append(LeafRule(predicates=path_predicates, prediction=node.value, samples=node.n_samples))
        return
    name = feature_names[node.feature_index]
    left_predicate = Predicate(variable=name, operator="<=", value=node.threshold)
    right_predicate = Predicate(variable=name, operator=">", value=node.threshold)
    _walk_tree(node.left, feature_names=feature_names, path_predicates=[*path_predicates, left_predicate], rules=rules)
    _walk_tree(
        node.right,
        feature_names=feature_names,
        path_predicates=[*path_predicates, right_predicate],
        rules=rules,
    )


# ---------------------------------------------------------------------------
# Private helpers -- Input checks
# ---------------------------------------------------------------------------


def _check_trainable(data: Dataset, hyperparameters: Hyperparameters) -> None:
    """Raise when `data` cannot satisfy `hyperparameters`.

    An empty dataset is accepted; it produces a single-leaf tree.

    Args:
        data (Dataset): Training rows.
        hyperparameters (Hyperparameters): Training configuration.

    Raises:
        InsufficientDataError: If `0 < n_rows < min_obs_per_leaf`, or no feature may be used.
    """
    min_obs = hyperparameters.min_obs_per_leaf
    if 0 < data.n_rows < min_obs:
        raise InsufficientDataError(
            f"dataset has {data.n_rows} rows but min_obs_per_leaf={min_obs}",
            n_rows=data.n_rows,
            required_rows=min_obs,
            n_features=data.n_features,
        )
    if hyperparameters.feature_subsample_count == 0:
        raise InsufficientDataError(
            "feature_subsample_count=0 leaves no usable features",
            n_rows=data.n_rows,
            required_rows=min_obs,
            n_features=0,
        )


# ---------------------------------------------------------------------------
# Private helpers -- Recursive builder
# ---------------------------------------------------------------------------


class _Split(NamedTuple):
    """Best split found at one node.

    Attributes:
        feature_index (int): Split feature column.
        threshold (float): Split threshold; rows with `x <= threshold` go left.
        gain (float): Size-weighted impurity reduction.
        n_left (int): Number of rows sent left.
    """

    feature_index: int
    threshold: float
    gain: float
    n_left: int


class _TreeBuilder:
    """Mutable state for one depth-first tree-growing pass.

    Attributes:
        node_count (int): Nodes created so far; also the preorder index of the next node.
        leaf_count (int): Leaves created so far.
        height (int): Deepest leaf depth seen so far.
    """

    def __init__(
        self,
        feature_matrix: np.ndarray,
        labels: np.ndarray,
        hyperparameters: Hyperparameters,
        *,
        task_type: TaskType,
    ) -> None:
        self._features = feature_matrix
        self._labels = labels
        self._params = hyperparameters
        self._task_type = task_type
        self._impurity: ImpurityFunction = resolve_loss(hyperparameters.loss)
        self._n_features = feature_matrix.shape[1]
        # Leaves the tree would have if every open node stopped now; starts with the root.
        self._leaf_budget_used = 1
        self.node_count = 0
        self.leaf_count = 0
        self.height = 0

    def grow(self, rows: np.ndarray, *, depth: int) -> TreeNode:
        """Build the subtree for `rows` at `depth`.

        Args:
            rows (np.ndarray): Positions of the training rows that reach this node.
            depth (int): Depth of this node; the root has depth 0.

        Returns:
            TreeNode: The subtree root.
        """
        node_index = self.node_count
        self.node_count += 1
        labels = self._labels[rows]

        if self._should_stop(rows, labels, depth):
            return self._leaf(labels, depth)

        split = self._best_split(rows, labels, self._candidate_features(node_index))
        if split is None or not self._is_admissible(split, rows.size):
            return self._leaf(labels, depth)

        self._leaf_budget_used += 1
        goes_left = self._features[rows, split.feature_index] <= split.threshold
        left = self.grow(rows[goes_left], depth=depth + 1)
        right = self.grow(rows[~goes_left], depth=depth + 1)
        return SplitNode(
            feature_index=split.feature_index,
            threshold=split.threshold,
            left=left,
            right=right,
            n_samples=int(rows.size),
            gain=split.gain,
        )

    # -- stopping and admissibility --

    def _should_stop(self, rows: np.ndarray, labels: np.ndarray, depth: int) -> bool:
        params = self._params
        if rows.size < 2 * params.min_obs_per_leaf:
            return True
        if params.is_depth_bounded and depth >= params.max_depth:
            return True
        if params.is_leaf_count_bounded and self._leaf_budget_used + 1 > params.max_leaves:
            return True
        if np.all(labels == labels[0]):
            return True
        node_features = self._features[rows]
        return bool(np.all(node_features == node_features[0]))

    def _is_admissible(self, split: _Split, n_rows: int) -> bool:
        params = self._params
        n_right = n_rows - split.n_left
        if min(split.n_left, n_right) < params.min_obs_per_leaf:
            return False
        return not (
            params.is_split_proportion_bounded and max(split.n_left, n_right) > params.max_split_proportion * n_rows
        )

    # -- split search --

    def _candidate_features(self, node_index: int) -> np.ndarray:
        """Return the sorted feature indices searched at node `node_index`.

        Args:
            node_index (int): Preorder index of the node.

        Returns:
            np.ndarray: Ascending feature indices.
        """
        if not self._params.subsamples_features:
            return np.arange(self._n_features)
        count = min(self._params.feature_subsample_count, self._n_features)
        rng = np.random.default_rng([self._params.seed, node_index])
        return np.sort(rng.choice(self._n_features, size=count, replace=False))

    def _best_split(self, rows: np.ndarray, labels: np.ndarray, candidates: np.ndarray) -> _Split | None:
        """Find the highest-gain split among `candidates`, or None when nothing gains.

        Args:
            rows (np.ndarray): Positions of the rows at this node.
            labels (np.ndarray): Labels of those rows.
            candidates (np.ndarray): Ascending feature indices to search.

        Returns:
            _Split | None: The best split, or None when no threshold reduces impurity.
        """
        n_rows = rows.size
        parent_impurity = self._impurity.impurity(labels)
        # Gains closer than this are equal; prefix sums taken in different row orders differ by round-off.
        tolerance = _RELATIVE_GAIN_TOLERANCE * n_rows * parent_impurity
        best: _Split | None = None

        for feature_index in candidates:
            column = self._features[rows, feature_index]
            order = np.argsort(column, kind="stable")
            sorted_values = column[order]
            # Position i is a boundary when sorted_values[i] < sorted_values[i + 1].
            boundaries = np.flatnonzero(sorted_values[:-1] < sorted_values[1:])
            if boundaries.size == 0:
                continue

            sorted_labels = labels[order]
            left_impurity = self._impurity.cumulative_impurity(sorted_labels)
            right_impurity = self._impurity.cumulative_impurity(sorted_labels[::-1])[::-1]
            n_left = boundaries + 1
            gains = (
                n_rows * parent_impurity
                - n_left * left_impurity[boundaries]
                - (n_rows - n_left) * right_impurity[boundaries + 1]
            )

            max_gain = float(gains.max())
            if max_gain <= tolerance or (best is not None and max_gain <= best.gain + tolerance):
                continue
            position = int(np.flatnonzero(gains >= max_gain - tolerance)[0])
            gain = float(gains[position])
            lower = sorted_values[boundaries[position]]
            upper = sorted_values[boundaries[position] + 1]
            threshold = float((lower + upper) / 2.0)
            if threshold >= upper:  # adjacent floats: the midpoint rounds up to the upper value
                threshold = float(lower)
            best = _Split(int(feature_index), threshold, gain, int(n_left[position]))

        return best

    # -- leaves --

    def _leaf(self, labels: np.ndarray, depth: int) -> LeafNode:
        self.leaf_count += 1
        self.height = max(self.height, depth)
        return LeafNode(value=self._leaf_value(labels), n_samples=int(labels.size))

    def _leaf_value(self, labels: np.ndarray) -> float:
        if labels.size == 0:
            return _EMPTY_LEAF_VALUE
        if self._task_type == "regression":
            return float(np.mean(labels))
        classes, counts = np.unique(labels, return_counts=True)
        return float(classes[np.argmax(counts)])  # ties go to the smallest class
