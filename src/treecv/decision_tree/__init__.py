"""Decision tree sub-package: losses, models, and fitting."""

from __future__ import annotations

from treecv.decision_tree.fitting import build_tree, extract_rules, predict
from treecv.decision_tree.losses import ImpurityFunction, Loss, entropy, gini_impurity, resolve_loss, variance
from treecv.decision_tree.models import (
    UNBOUNDED,
    DecisionTree,
    Hyperparameters,
    LeafNode,
    LeafRule,
    Predicate,
    PredicateOp,
    SplitNode,
    TaskType,
    TreeNode,
)

__all__ = [
    "UNBOUNDED",
    "DecisionTree",
    "Hyperparameters",
    "ImpurityFunction",
    "LeafNode",
    "LeafRule",
    "Loss",
    "Predicate",
    "PredicateOp",
    "SplitNode",
    "TaskType",
    "TreeNode",
    "build_tree",
    "entropy",
    "extract_rules",
    "gini_impurity",
    "predict",
    "resolve_loss",
    "variance",
]
