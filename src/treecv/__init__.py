"""treecv: decision-tree training with sequential and fold-parallel k-fold cross-validation."""

from loguru import logger

from treecv.cross_validation import CrossValidationResult, CrossValidator, Fold
from treecv.dataset import Dataset
from treecv.decision_tree import DecisionTree, Hyperparameters, Loss, build_tree, extract_rules, predict
from treecv.exceptions import (
    InsufficientDataError,
    InvalidDatasetError,
    InvalidFoldCountError,
    InvalidHyperparameterError,
    LengthMismatchError,
    TreeCVError,
)
from treecv.logging import PACKAGE_NAME, enable_logging
from treecv.metrics import accuracy, evaluate_tree

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the treecv package by default

__all__ = [
    "CrossValidationResult",
    "CrossValidator",
    "Dataset",
    "DecisionTree",
    "Fold",
    "Hyperparameters",
    "InsufficientDataError",
    "InvalidDatasetError",
    "InvalidFoldCountError",
    "InvalidHyperparameterError",
    "LengthMismatchError",
    "Loss",
    "TreeCVError",
    "accuracy",
    "build_tree",
    "enable_logging",
    "evaluate_tree",
    "extract_rules",
    "predict",
]
