"""Command-line driver: cross-validate depths on a CSV dataset, or fit and score one tree.

Examples:
    treecv cv data/cancer_clean.csv --depths 1 2 3 --workers 4 --output cv_results.csv
    treecv fit data/hmeq_clean.csv --max-depth 5 --test-fraction 0.2
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import get_args

import polars as pl

from treecv.cross_validation import CrossValidator
from treecv.dataset import Dataset
from treecv.decision_tree.fitting import build_tree
from treecv.decision_tree.losses import Loss
from treecv.decision_tree.models import Hyperparameters, TaskType
from treecv.exceptions import TreeCVError
from treecv.logging import LogLevel, enable_logging
from treecv.metrics import evaluate_tree
from treecv.reporting import results_to_frame, write_results_csv
from treecv.settings import TreeCVSettings


def build_parser(settings: TreeCVSettings) -> argparse.ArgumentParser:
    """Build the argument parser, taking defaults from `settings`.

    Args:
        settings (TreeCVSettings): Environment-driven defaults.

    Returns:
        argparse.ArgumentParser: Parser with `cv` and `fit` sub-commands.
    """
    parser = argparse.ArgumentParser(prog="treecv", description="Train and cross-validate decision trees.")
    parser.add_argument(
        "--log-level",
        choices=get_args(LogLevel.__value__),
        default=settings.log_level,
        help="Minimum level of the stderr log handler.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    shared = argparse.ArgumentParser(add_help=False)
    shared.add_argument("data", type=Path, help="CSV file with a header row; numeric columns only.")
    shared.add_argument("--label", default=None, help="Label column name. Defaults to the last column.")
    shared.add_argument("--seed", type=int, default=settings.seed, help="Seed for shuffles and feature subsampling.")
    shared.add_argument("--regression", action="store_true", help="Fit regression trees instead of classifiers.")
    shared.add_argument("--min-obs", type=int, default=settings.min_obs_per_leaf, help="Minimum rows per leaf.")
    shared.add_argument(
        "--loss",
        choices=[member.value for member in Loss],
        default=None,
        help=f"Impurity function. Defaults to {settings.loss.value} (variance with --regression).",
    )

    cv_parser = commands.add_parser("cv", parents=[shared], help="Cross-validate a list of maximum depths.")
    cv_parser.add_argument("--depths", type=int, nargs="+", default=settings.depths, help="Maximum depths to validate.")
    cv_parser.add_argument("--k-folds", type=int, default=settings.k_folds, help="Number of folds.")
    cv_parser.add_argument(
        "--workers",
        type=int,
        default=settings.n_workers,
        help="Thread-pool size for fold-parallel validation. Omit to run folds sequentially.",
    )
    cv_parser.add_argument("--name", default=None, help="Dataset name for the results. Defaults to the file stem.")
    cv_parser.add_argument("--output", type=Path, default=None, help="Write the results table to this CSV file.")

    fit_parser = commands.add_parser("fit", parents=[shared], help="Fit one tree on a train/test split and score it.")
    fit_parser.add_argument("--max-depth", type=int, default=5, help="Maximum tree depth; -1 for unbounded.")
    fit_parser.add_argument("--test-fraction", type=float, default=0.2, help="Fraction of rows held out for testing.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command-line driver.

    Args:
        argv (Sequence[str] | None): Arguments without the program name. Defaults to `sys.argv[1:]`.

    Returns:
        int: Process exit code; 0 on success, 1 on an invalid argument, an unreadable
            file, or a dataset that cannot be trained on.
    """
    settings = TreeCVSettings()
    args = build_parser(settings).parse_args(argv)
    task_type: TaskType = "regression" if args.regression else "classification"
    loss = Loss(args.loss) if args.loss else (Loss.VARIANCE if args.regression else settings.loss)

    with enable_logging(level=args.log_level):
        try:
            data = Dataset.from_csv(args.data, label=args.label)
            if args.command == "cv":
                _run_cross_validation(args, data, task_type=task_type, loss=loss)
            else:
                _run_fit(args, data, task_type=task_type, loss=loss)
        except (TreeCVError, ValueError, OSError, pl.exceptions.PolarsError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
    return 0


def _run_cross_validation(args: argparse.Namespace, data: Dataset, *, task_type: TaskType, loss: Loss) -> None:
    validator = CrossValidator(data, k_folds=args.k_folds, seed=args.seed, task_type=task_type)
    param_grid = [
        Hyperparameters(max_depth=depth, min_obs_per_leaf=args.min_obs, loss=loss, seed=args.seed)
        for depth in args.depths
    ]
    name = args.name or args.data.stem
    results = validator.grid_search_cv(param_grid, n_workers=args.workers, dataset_name=name)

    print(results_to_frame(results))
    best = validator.get_best_params(results)
    print(f"Best max_depth: {best.max_depth}")
    if args.output is not None:
        print(f"Results saved to {write_results_csv(results, args.output)}")


def _run_fit(args: argparse.Namespace, data: Dataset, *, task_type: TaskType, loss: Loss) -> None:
    train, test = data.train_test_split(args.test_fraction, seed=args.seed)
    params = Hyperparameters(max_depth=args.max_depth, min_obs_per_leaf=args.min_obs, loss=loss, seed=args.seed)
    tree = build_tree(train, params, task_type=task_type)

    print(f"rows: train={train.n_rows} test={test.n_rows}")
    print(f"tree: size={tree.size} height={tree.height} leaves={tree.leaf_count}")
    for split_name, split in (("train", train), ("test", test)):
        metrics = evaluate_tree(tree, split)
        formatted = ", ".join(f"{metric}={value:.4f}" for metric, value in metrics.items())
        print(f"{split_name}: {formatted}")


if __name__ == "__main__":
    sys.exit(main())
