"""Tests for the decision tree models: Hyperparameters, tree nodes, DecisionTree, Predicate, LeafRule."""

from __future__ import annotations

from typing import Any

import numpy as np
import pytest
from pytest_check import check

from treecv.dataset import Dataset
from treecv.decision_tree.losses import Loss
from treecv.decision_tree.models import (
    UNBOUNDED,
    DecisionTree,
    Hyperparameters,
    LeafNode,
    LeafRule,
    Predicate,
    SplitNode,
)
from treecv.exceptions import InvalidHyperparameterError, TreeCVError


class TestHyperparameters:
    """Tests for construction-time validation and helpers."""

    def test_defaults(self) -> None:
        """Defaults should be a depth-5 Gini tree with every other limit unbounded."""
        # Arrange / Act
        params = Hyperparameters()

        # Assert
        with check:
            assert params.max_depth == 5
        with check:
            assert params.min_obs_per_leaf == 1
        with check:
            assert params.loss is Loss.GINI_IMPURITY
        with check:
            assert params.seed == 42
        with check:
            assert not params.is_leaf_count_bounded
        with check:
            assert not params.is_split_proportion_bounded
        with check:
            assert not params.subsamples_features

    def test_loss_string_is_coerced(self) -> None:
        """A loss given by name should be stored as a Loss member."""
        # Arrange / Act
        params = Hyperparameters(loss="entropy")  # type: ignore[arg-type]

        # Assert
        with check:
            assert params.loss is Loss.ENTROPY

    @pytest.mark.parametrize(
        ("overrides", "field_name"),
        [
            ({"max_depth": -2}, "max_depth"),
            ({"max_leaves": 0}, "max_leaves"),
            ({"min_obs_per_leaf": 0}, "min_obs_per_leaf"),
            ({"max_split_proportion": 0.0}, "max_split_proportion"),
            ({"max_split_proportion": 1.5}, "max_split_proportion"),
            ({"feature_subsample_count": -3}, "feature_subsample_count"),
            ({"seed": -1}, "seed"),
            ({"loss": "hinge"}, "loss"),
            ({"max_depth": 2.5}, "max_depth"),
        ],
        ids=[
            "negative-depth",
            "zero-leaves",
            "zero-min-obs",
            "zero-proportion",
            "proportion-above-one",
            "negative-mtry",
            "negative-seed",
            "unknown-loss",
            "fractional-depth",
        ],
    )
    def test_invalid_value_raises(self, overrides: dict[str, Any], field_name: str) -> None:
        """Every malformed field should fail at construction, naming the field.

        Args:
            overrides (dict[str, Any]): Keyword arguments with one invalid value.
            field_name (str): Name of the invalid field.
        """
        # Act / Assert
        with pytest.raises(InvalidHyperparameterError) as exc_info:
            Hyperparameters(**overrides)

        # Assert
        with check:
            assert exc_info.value.name == field_name
        with check:
            assert isinstance(exc_info.value, TreeCVError)
        with check:
            assert field_name in str(exc_info.value)

    def test_unbounded_sentinels_are_accepted(self) -> None:
        """-1 should mean "no limit" for every bounded field."""
        # Arrange / Act
        params = Hyperparameters(
            max_depth=UNBOUNDED,
            max_leaves=UNBOUNDED,
            max_split_proportion=UNBOUNDED,
            feature_subsample_count=UNBOUNDED,
        )

        # Assert
        with check:
            assert not params.is_depth_bounded
        with check:
            assert not params.subsamples_features

    def test_zero_mtry_is_accepted_at_construction(self) -> None:
        """mtry=0 is well-formed; training rejects it later."""
        # Arrange / Act
        params = Hyperparameters(feature_subsample_count=0)

        # Assert
        with check:
            assert params.subsamples_features

    def test_with_seed_returns_copy(self) -> None:
        """with_seed should change only the seed."""
        # Arrange
        params = Hyperparameters(max_depth=3, min_obs_per_leaf=4, seed=1)

        # Act
        reseeded = params.with_seed(9)

        # Assert
        with check:
            assert reseeded.seed == 9
        with check:
            assert params.seed == 1
        with check:
            assert reseeded.max_depth == 3
        with check:
            assert reseeded.min_obs_per_leaf == 4

    def test_is_hashable_and_comparable(self) -> None:
        """Equal sets compare equal and hash equal."""
        # Arrange / Act / Assert
        with check:
            assert Hyperparameters(max_depth=2) == Hyperparameters(max_depth=2)
        with check:
            assert len({Hyperparameters(max_depth=2), Hyperparameters(max_depth=2)}) == 1

    def test_invalid_hyperparameter_repr(self) -> None:
        """The error repr should include the field name and value."""
        # Act
        with pytest.raises(InvalidHyperparameterError) as exc_info:
            Hyperparameters(min_obs_per_leaf=0)

        # Assert
        with check:
            assert repr(exc_info.value) == "InvalidHyperparameterError(name='min_obs_per_leaf', value=0)"


class TestDecisionTreePredict:
    """Tests for routing rows through a hand-built tree."""

    def test_routes_rows_by_threshold(self) -> None:
        """Rows with x <= threshold go left; the rest go right."""
        # Arrange
        tree = _make_stump(threshold=2.5, left_value=0.0, right_value=1.0)
        features = np.array([[1.0], [2.5], [2.6], [10.0]])

        # Act
        predictions = tree.predict(features)

        # Assert
        with check:
            assert predictions.tolist() == [0.0, 0.0, 1.0, 1.0]

    def test_accepts_a_dataset(self) -> None:
        """A Dataset's label column should be ignored."""
        # Arrange
        tree = _make_stump(threshold=2.5, left_value=0.0, right_value=1.0)
        data = Dataset.from_rows([[1.0, 1.0], [3.0, 0.0]])

        # Act
        predictions = tree.predict(data)

        # Assert
        with check:
            assert predictions.tolist() == [0.0, 1.0]

    def test_width_mismatch_raises(self) -> None:
        """A matrix with the wrong number of columns is rejected."""
        # Arrange
        tree = _make_stump(threshold=2.5, left_value=0.0, right_value=1.0)

        # Act / Assert
        with pytest.raises(ValueError, match="1 columns"):
            tree.predict(np.array([[1.0, 2.0]]))

    def test_empty_matrix_predicts_nothing(self) -> None:
        """Zero rows give zero predictions."""
        # Arrange
        tree = _make_stump(threshold=2.5, left_value=0.0, right_value=1.0)

        # Act
        predictions = tree.predict(np.empty((0, 1)))

        # Assert
        with check:
            assert predictions.shape == (0,)

    def test_node_kinds(self) -> None:
        """Leaves and splits should report their kind."""
        # Arrange
        tree = _make_stump(threshold=0.0, left_value=0.0, right_value=1.0)

        # Act / Assert
        assert isinstance(tree.root, SplitNode)
        with check:
            assert not tree.root.is_leaf
        with check:
            assert tree.root.left.is_leaf


class TestRules:
    """Tests for Predicate and LeafRule."""

    def test_predicate_str_and_eval(self) -> None:
        """Predicates render as text and evaluate both operators."""
        # Arrange
        at_most = Predicate(variable="radius", operator="<=", value=12.5)
        above = Predicate(variable="radius", operator=">", value=12.5)

        # Act / Assert
        with check:
            assert str(at_most) == "radius <= 12.5"
        with check:
            assert at_most.eval(12.5)
        with check:
            assert not above.eval(12.5)
        with check:
            assert above.eval(13.0)

    def test_leaf_rule_str(self) -> None:
        """A rule joins its predicates with AND."""
        # Arrange
        rule = LeafRule(
            predicates=[
                Predicate(variable="tenure", operator="<=", value=6.0),
                Predicate(variable="tickets", operator=">", value=4.5),
            ],
            prediction=0.0,
            samples=12,
        )

        # Act / Assert
        with check:
            assert str(rule) == "IF tenure <= 6.0 AND tickets > 4.5 THEN 0.0"

    def test_leaf_rule_without_predicates(self) -> None:
        """A single-leaf tree's rule is unconditional."""
        # Arrange
        rule = LeafRule(predicates=[], prediction=1.0, samples=3)

        # Act / Assert
        with check:
            assert str(rule) == "IF TRUE THEN 1.0"


def _make_stump(*, threshold: float, left_value: float, right_value: float) -> DecisionTree:
    """Build a depth-1 tree on a single feature.

    Args:
        threshold (float): Split threshold on feature 0.
        left_value (float): Prediction for rows with `x <= threshold`.
        right_value (float): Prediction for rows with `x > threshold`.

    Returns:
        DecisionTree: A three-node tree.
    """
    root = SplitNode(
        feature_index=0,
        threshold=threshold,
        left=LeafNode(value=left_value, n_samples=2),
        right=LeafNode(value=right_value, n_samples=2),
        n_samples=4,
        gain=1.0,
    )
    return DecisionTree(
        root=root,
        hyperparameters=Hyperparameters(max_depth=1),
        task_type="classification",
        n_features=1,
        size=3,
        height=1,
        leaf_count=2,
    )
