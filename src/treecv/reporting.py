"""Tabular summaries of cross-validation results."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import polars as pl

from treecv.cross_validation import CrossValidationResult

_FLOAT_DECIMAL_PLACES: int = 4


def results_to_frame(results: Sequence[CrossValidationResult]) -> pl.DataFrame:
    """Flatten cross-validation results into one row per result.

    Fold scores are spread over `fold_1_accuracy`, `fold_2_accuracy`, ...
    columns; results with fewer folds than the widest one get nulls.

    Args:
        results (Sequence[CrossValidationResult]): Results to tabulate, in display order.

    Returns:
        pl.DataFrame: Columns `dataset`, `max_depth`, `min_obs_per_leaf`, `loss`,
            `n_workers`, `cv_time_ms`, `mean_cv_accuracy`, `std_cv_accuracy`,
            followed by one column per fold.
    """
    max_folds = max((len(result.fold_scores) for result in results), default=0)
    rows: list[dict[str, Any]] = []
    for result in results:
        row: dict[str, Any] = {
            "dataset": result.dataset,
            "max_depth": result.max_depth,
            "min_obs_per_leaf": result.hyperparameters.min_obs_per_leaf,
            "loss": str(result.hyperparameters.loss),
            "n_workers": result.n_workers,
            "cv_time_ms": round(result.elapsed_seconds * 1000.0, _FLOAT_DECIMAL_PLACES),
            "mean_cv_accuracy": round(result.mean_cv_accuracy, _FLOAT_DECIMAL_PLACES),
            "std_cv_accuracy": round(result.std_cv_accuracy, _FLOAT_DECIMAL_PLACES),
        }
        for fold_index in range(max_folds):
            score = result.fold_scores[fold_index] if fold_index < len(result.fold_scores) else None
            row[f"fold_{fold_index + 1}_accuracy"] = None if score is None else round(score, _FLOAT_DECIMAL_PLACES)
        rows.append(row)

    schema: dict[str, pl.DataType | type[pl.DataType]] = {
        "dataset": pl.String,
        "max_depth": pl.Int64,
        "min_obs_per_leaf": pl.Int64,
        "loss": pl.String,
        "n_workers": pl.Int64,
        "cv_time_ms": pl.Float64,
        "mean_cv_accuracy": pl.Float64,
        "std_cv_accuracy": pl.Float64,
    }
    schema.update({f"fold_{fold_index + 1}_accuracy": pl.Float64 for fold_index in range(max_folds)})
    return pl.DataFrame(rows, schema=schema)


def write_results_csv(results: Sequence[CrossValidationResult], path: str | Path) -> Path:
    """Write cross-validation results to a CSV file.

    Args:
        results (Sequence[CrossValidationResult]): Results to write.
        path (str | Path): Destination file; parent directories must exist.

    Returns:
        Path: The written path.
    """
    output_path = Path(path)
    results_to_frame(results).write_csv(output_path)
    return output_path
