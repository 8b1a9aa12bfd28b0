"""Environment-driven defaults for the treecv command-line driver."""

from pydantic import Field
from pydantic_settings import BaseSettings

from treecv.decision_tree.losses import Loss
from treecv.logging import LogLevel

DEFAULT_DEPTHS: list[int] = [1, 2, 3, 4, 5, 6, 7, 8, 10, 12, 15, 20]


class TreeCVSettings(BaseSettings, env_prefix="TREECV_", env_file=".env", env_file_encoding="utf-8", extra="ignore"):
    """Defaults for cross-validation runs, read from `TREECV_*` variables or a `.env` file.

    The library API never reads these settings; only `treecv.cli` does, and
    every value can still be overridden by a command-line flag.

    Attributes:
        k_folds (int): Number of cross-validation folds.
        seed (int): Seed for the fold shuffle and for tree feature subsampling.
        n_workers (int | None): Worker-pool size for fold-parallel runs; None runs folds sequentially.
        depths (list[int]): Maximum depths evaluated by `treecv cv`.
        min_obs_per_leaf (int): Minimum number of rows per leaf.
        loss (Loss): Impurity function used to score splits.
        log_level (LogLevel): Minimum level of the stderr log handler.
    """

    k_folds: int = Field(default=4, gt=1, description="Number of cross-validation folds.")
    seed: int = Field(default=42, ge=0, description="Seed for the fold shuffle and feature subsampling.")
    n_workers: int | None = Field(
        default=None,
        ge=1,
        description="Worker-pool size for fold-parallel runs; unset runs folds sequentially.",
    )
    depths: list[int] = Field(
        default_factory=lambda: list(DEFAULT_DEPTHS),
        description="Maximum depths evaluated by the `cv` command.",
    )
    min_obs_per_leaf: int = Field(default=1, ge=1, description="Minimum number of rows per leaf.")
    loss: Loss = Field(default=Loss.GINI_IMPURITY, description="Impurity function used to score splits.")
    log_level: LogLevel = Field(default="PROGRESS", description="Minimum level of the stderr log handler.")
