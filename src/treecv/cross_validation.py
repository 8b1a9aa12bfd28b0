"""K-fold cross-validation of decision trees, sequential or fold-parallel.

Folds are always built sequentially from one seeded shuffle of the dataset.
In fold-parallel mode the `k` train-and-score tasks are then submitted to a
bounded thread pool; task `i` writes only slot `i` of a pre-sized score list,
and aggregation happens after every task has finished. Because scores are
indexed by fold and aggregated in fold order, the mean and standard
deviation are identical for every worker count, including sequential mode.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from typing import NamedTuple

import numpy as np
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from treecv.dataset import Dataset
from treecv.decision_tree.fitting import build_tree
from treecv.decision_tree.losses import Loss
from treecv.decision_tree.models import Hyperparameters, TaskType
from treecv.exceptions import InvalidFoldCountError
from treecv.logging import PROGRESS_LEVEL
from treecv.metrics import accuracy

# ---------------------------------------------------------------------------
# Public models
# ---------------------------------------------------------------------------


class Fold(NamedTuple):
    """One cross-validation fold.

    Attributes:
        index (int): Fold position, from 0 to `k_folds - 1`.
        training (Dataset): Every row outside the validation block.
        validation (Dataset): The held-out block.
    """

    index: int
    training: Dataset
    validation: Dataset


class CrossValidationResult(BaseModel):
    """Outcome of cross-validating one hyperparameter set.

    Attributes:
        dataset (str): Free-form dataset name used in reports; may be empty.
        max_depth (int): Maximum depth of the validated set (`-1` for unbounded).
        hyperparameters (Hyperparameters): The validated set, with its original seed.
        fold_scores (tuple[float, ...]): Validation accuracy of each fold, ordered by fold index.
        mean_cv_accuracy (float): Mean of `fold_scores`.
        std_cv_accuracy (float): Population standard deviation of `fold_scores`.
        elapsed_seconds (float): Wall-clock time spent building folds, training and scoring.
        n_workers (int | None): Worker-pool size, or None for a sequential run.
    """

    model_config = ConfigDict(frozen=True)

    dataset: str = Field(default="", description="Free-form dataset name used in reports.")
    max_depth: int = Field(description="Maximum depth of the validated hyperparameter set.")
    hyperparameters: InstanceOf[Hyperparameters] = Field(description="The validated hyperparameter set.")
    fold_scores: tuple[float, ...] = Field(description="Validation accuracy of each fold, ordered by fold index.")
    mean_cv_accuracy: float = Field(ge=0.0, le=1.0, description="Mean of the fold scores.")
    std_cv_accuracy: float = Field(ge=0.0, description="Population standard deviation of the fold scores.")
    elapsed_seconds: float = Field(ge=0.0, description="Wall-clock time of the whole validation call.")
    n_workers: int | None = Field(default=None, description="Worker-pool size, or None for a sequential run.")


# ---------------------------------------------------------------------------
# Public interface -- Cross-validator
# ---------------------------------------------------------------------------


class CrossValidator:
    """K-fold cross-validator for decision trees.

    The dataset, fold count, seed, and task type are fixed at construction;
    every validation call rebuilds the same folds from them, so calls are
    independent and repeatable.

    Examples:
        >>> validator = CrossValidator(dataset, k_folds=4, seed=42)  # doctest: +SKIP
        >>> results = validator.validate_depths([1, 2, 3], n_workers=4)  # doctest: +SKIP
        >>> validator.get_best_params(results).max_depth  # doctest: +SKIP
        2
    """

    def __init__(
        self,
        data: Dataset,
        k_folds: int = 4,
        seed: int = 42,
        task_type: TaskType = "classification",
    ) -> None:
        """Initialize the cross-validator.

        Args:
            data (Dataset): Rows to cross-validate on.
            k_folds (int): Number of folds; must satisfy `1 < k_folds <= data.n_rows`. Defaults to 4.
            seed (int): Non-negative seed for the fold shuffle; fold `i` trains with seed `seed + i`.
                Defaults to 42.
            task_type (TaskType): `"classification"` or `"regression"`. Defaults to `"classification"`.

        Raises:
            InvalidFoldCountError: If `k_folds <= 1` or `data.n_rows < k_folds`.
            ValueError: If `seed` is negative.
        """
        if k_folds <= 1 or data.n_rows < k_folds:
            raise InvalidFoldCountError(k_folds=k_folds, n_rows=data.n_rows)
        if seed < 0:
            raise ValueError(f"seed must be non-negative, got {seed}")
        self._data = data
        self._k_folds = k_folds
        self._seed = seed
        self._task_type: TaskType = task_type

    @property
    def data(self) -> Dataset:
        """Dataset: The rows being cross-validated."""
        return self._data

    @property
    def k_folds(self) -> int:
        """int: Number of folds."""
        return self._k_folds

    @property
    def seed(self) -> int:
        """int: Seed of the fold shuffle."""
        return self._seed

    @property
    def task_type(self) -> TaskType:
        """TaskType: Whether trees are classifiers or regressors."""
        return self._task_type

    @property
    def is_regression(self) -> bool:
        """bool: Whether trees are regressors."""
        return self._task_type == "regression"

    def create_folds(self) -> list[Fold]:
        """Shuffle the dataset with `seed` and partition it into `k_folds` contiguous blocks.

        The first `n_rows % k_folds` blocks hold one extra row. Fold `i`
        validates on block `i` and trains on the other blocks, kept in block
        order.

        Returns:
            list[Fold]: `k_folds` folds ordered by index.
        """
        shuffled = self._data.shuffle(self._seed)
        n_rows = shuffled.n_rows
        base_size, remainder = divmod(n_rows, self._k_folds)
        sizes = [base_size + (1 if fold_index < remainder else 0) for fold_index in range(self._k_folds)]
        ends = np.cumsum(sizes)

        folds: list[Fold] = []
        positions = np.arange(n_rows)
        for fold_index, end in enumerate(ends):
            start = end - sizes[fold_index]
            in_validation = (positions >= start) & (positions < end)
            folds.append(
                Fold(
                    index=fold_index,
                    training=shuffled.take(positions[~in_validation]),
                    validation=shuffled.take(positions[in_validation]),
                ),
            )
        return folds

    def validate_single_hyperparameter(
        self,
        params: Hyperparameters,
        *,
        n_workers: int | None = None,
        dataset_name: str = "",
    ) -> CrossValidationResult:
        """Cross-validate one hyperparameter set.

        Fold `i` trains a tree on its training rows with `params.with_seed(seed + i)`
        and scores its validation rows with `accuracy`.

        Args:
            params (Hyperparameters): The set to validate.
            n_workers (int | None): Thread-pool size for fold-parallel execution;
                None runs the folds sequentially on the calling thread.
            dataset_name (str): Name copied into the result for reporting.

        Returns:
            CrossValidationResult: Per-fold scores with their mean and population standard deviation.

        Raises:
            ValueError: If `n_workers` is smaller than 1.
            InsufficientDataError: If a fold's training rows cannot satisfy `params`.
        """
        _check_worker_count(n_workers)
        started = time.perf_counter()

        folds = self.create_folds()
        scores = [0.0] * self._k_folds
        if n_workers is None:
            for fold in folds:
                scores[fold.index] = self._score_fold(fold, params)
        else:
            self._score_folds_in_parallel(folds, params, scores, n_workers=n_workers)

        mean_score, std_score = _mean_std(scores)
        result = CrossValidationResult(
            dataset=dataset_name,
            max_depth=params.max_depth,
            hyperparameters=params,
            fold_scores=tuple(scores),
            mean_cv_accuracy=mean_score,
            std_cv_accuracy=std_score,
            elapsed_seconds=time.perf_counter() - started,
            n_workers=n_workers,
        )
        logger.log(
            PROGRESS_LEVEL,
            "Hyperparameters validated",
            dataset=dataset_name,
            max_depth=params.max_depth,
            mean_cv_accuracy=round(mean_score, 4),
            std_cv_accuracy=round(std_score, 4),
            n_workers=n_workers,
        )
        return result

    def validate_depth(
        self,
        max_depth: int,
        *,
        n_workers: int | None = None,
        dataset_name: str = "",
    ) -> CrossValidationResult:
        """Cross-validate a single depth with default values for the other hyperparameters.

        The defaults are those of `Hyperparameters` with the validator seed, and the
        loss is Gini impurity for classification validators and variance for
        regression validators.

        Args:
            max_depth (int): Maximum tree depth, or -1 for unbounded.
            n_workers (int | None): Thread-pool size, or None for sequential execution.
            dataset_name (str): Name copied into the result for reporting.

        Returns:
            CrossValidationResult: The validation outcome.
        """
        return self.validate_single_hyperparameter(
            self._default_params(max_depth),
            n_workers=n_workers,
            dataset_name=dataset_name,
        )

    def grid_search_cv(
        self,
        param_grid: Sequence[Hyperparameters],
        *,
        n_workers: int | None = None,
        dataset_name: str = "",
    ) -> list[CrossValidationResult]:
        """Cross-validate every hyperparameter set independently.

        Args:
            param_grid (Sequence[Hyperparameters]): Sets to validate.
            n_workers (int | None): Thread-pool size used within each set, or None for sequential execution.
            dataset_name (str): Name copied into every result.

        Returns:
            list[CrossValidationResult]: One result per set, in input order.
        """
        return [
            self.validate_single_hyperparameter(params, n_workers=n_workers, dataset_name=dataset_name)
            for params in param_grid
        ]

    def validate_depths(
        self,
        depths: Sequence[int],
        *,
        n_workers: int | None = None,
        dataset_name: str = "",
    ) -> list[CrossValidationResult]:
        """Cross-validate several depths with default values for the other hyperparameters.

        Each depth gets the same defaults as `validate_depth`: variance loss for
        regression validators, Gini impurity otherwise.

        Args:
            depths (Sequence[int]): Maximum depths to validate.
            n_workers (int | None): Thread-pool size, or None for sequential execution.
            dataset_name (str): Name copied into every result.

        Returns:
            list[CrossValidationResult]: One result per depth, in input order.
        """
        param_grid = [self._default_params(depth) for depth in depths]
        return self.grid_search_cv(param_grid, n_workers=n_workers, dataset_name=dataset_name)

    @staticmethod
    def get_best_params(cv_results: Sequence[CrossValidationResult]) -> Hyperparameters:
        """Return the hyperparameters with the highest mean accuracy.

        Ties go to the result that appears first.

        Args:
            cv_results (Sequence[CrossValidationResult]): Results to compare.

        Returns:
            Hyperparameters: The winning set.

        Raises:
            ValueError: If `cv_results` is empty.
        """
        if not cv_results:
            raise ValueError("cv_results must contain at least one result")
        best = cv_results[0]
        for result in cv_results[1:]:
            if result.mean_cv_accuracy > best.mean_cv_accuracy:
                best = result
        return best.hyperparameters

    # -- private --

    def _default_params(self, max_depth: int) -> Hyperparameters:
        loss = Loss.VARIANCE if self.is_regression else Loss.GINI_IMPURITY
        return Hyperparameters(max_depth=max_depth, loss=loss, seed=self._seed)

    def _score_fold(self, fold: Fold, params: Hyperparameters) -> float:
        """Train on the fold's training rows and return the validation accuracy.

        Args:
            fold (Fold): The fold to score.
            params (Hyperparameters): The set being validated.

        Returns:
            float: Validation accuracy.
        """
        tree = build_tree(fold.training, params.with_seed(self._seed + fold.index), task_type=self._task_type)
        score = accuracy(fold.validation.labels, tree.predict(fold.validation))
        logger.log(
            PROGRESS_LEVEL,
            "Fold scored",
            fold=fold.index,
            accuracy=round(score, 4),
            tree_size=tree.size,
            tree_height=tree.height,
        )
        return score

    def _score_folds_in_parallel(
        self,
        folds: list[Fold],
        params: Hyperparameters,
        scores: list[float],
        *,
        n_workers: int,
    ) -> None:
        """Score every fold on a bounded thread pool, writing fold `i`'s score to `scores[i]`.

        Returns once every task has finished. The first failure, in fold
        order, is re-raised after the barrier.

        Args:
            folds (list[Fold]): Precomputed folds.
            params (Hyperparameters): The set being validated.
            scores (list[float]): Pre-sized score slots, written in place.
            n_workers (int): Maximum number of worker threads.
        """

        def score_into_slot(fold: Fold) -> None:
            scores[fold.index] = self._score_fold(fold, params)

        with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="treecv-fold") as executor:
            futures = [executor.submit(score_into_slot, fold) for fold in folds]
            wait(futures)
        for future in futures:
            future.result()


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _check_worker_count(n_workers: int | None) -> None:
    if n_workers is not None and n_workers < 1:
        raise ValueError(f"n_workers must be None (sequential) or >= 1, got {n_workers}")


def _mean_std(scores: Sequence[float]) -> tuple[float, float]:
    """Return the mean and population standard deviation, summing in index order.

    Args:
        scores (Sequence[float]): Fold scores ordered by fold index.

    Returns:
        tuple[float, float]: `(mean, std)`.
    """
    values = np.asarray(scores, dtype=np.float64)
    return float(values.mean()), float(values.std())
