"""Demonstrates depth selection by k-fold cross-validation, with logging enabled.

treecv logging is disabled by default. Users opt in by calling ``enable_logging()``,
which returns a ``LoggingHandle``. The handle can be used as a context manager
(``with enable_logging(): ...``) or disabled manually via ``handle.disable()``.

Key concepts shown here:

- ``level``: the custom ``PROGRESS`` level (numeric value 25, between INFO and
  WARNING) reports every scored fold and validated depth and is the default.
  ``"DEBUG"`` also reports every built tree.
- ``n_workers``: folds are trained on a thread pool; the scores are identical
  to a sequential run.
- Rule extraction: the tree refit with the best depth is printed as IF/THEN rules.
"""

import numpy as np

from treecv import CrossValidator, Dataset, Hyperparameters, build_tree, enable_logging, extract_rules
from treecv.reporting import results_to_frame

# Two informative features (tumour radius and texture) and one noise feature
rng = np.random.default_rng(0)
radius = rng.uniform(6.0, 28.0, 300)
texture = rng.uniform(10.0, 39.0, 300)
noise = rng.normal(0.0, 1.0, 300)
malignant = ((radius > 15.0) & (texture > 18.0)).astype(np.float64)
dataset = Dataset(np.column_stack([radius, texture, noise, malignant]), ["radius", "texture", "noise", "malignant"])

with enable_logging(level="PROGRESS"):
    validator = CrossValidator(dataset, k_folds=5, seed=42)
    results = validator.validate_depths([1, 2, 3, 4, 6, 8], n_workers=4, dataset_name="synthetic_cancer")

print(results_to_frame(results))

best = validator.get_best_params(results)
tree = build_tree(dataset, best)
print(f"\nBest max_depth={best.max_depth}: size={tree.size}, height={tree.height}\n")
for rule in extract_rules(tree, dataset.feature_names):
    print(rule)
