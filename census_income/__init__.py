"""
Utilities for predicting whether a UCI Census Income respondent earns over $50K.

This package contains data loading and cleaning helpers, a formula-style term
syntax for logistic regression, cross-validation and evaluation
utilities used by main.py.
"""

from .constants import (
    CV_FOLDS,
    LARGE_FORMULA,
    MAX_ITER,
    RANDOM_STATE,
    SMALL_FORMULA,
    TEST_SIZE,
    THRESHOLD,
)
from .data_prep import (
    clean_census_data,
    load_census_data,
    make_train_test_split,
    read_column_names,
)
from .formula import FormulaTransformer, parse_formula
from .logreg import build_logistic_model, coefficient_table, split_outcome
from .metrics import compute_classification_metrics, print_metrics, roc_table
from .validation import cross_validate_model

__all__ = [
    "CV_FOLDS",
    "LARGE_FORMULA",
    "MAX_ITER",
    "RANDOM_STATE",
    "SMALL_FORMULA",
    "TEST_SIZE",
    "THRESHOLD",
    "clean_census_data",
    "load_census_data",
    "make_train_test_split",
    "read_column_names",
    "FormulaTransformer",
    "parse_formula",
    "build_logistic_model",
    "coefficient_table",
    "split_outcome",
    "compute_classification_metrics",
    "print_metrics",
    "roc_table",
    "cross_validate_model",
]
