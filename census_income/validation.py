from __future__ import annotations

"""
Stratified k-fold cross-validation of the logistic models and side-by-side
comparison of their resampled scores.
"""

import logging

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.metrics import make_scorer, recall_score
from sklearn.model_selection import StratifiedKFold, cross_validate

from .constants import CV_FOLDS, RANDOM_STATE

log = logging.getLogger(__name__)

SCORING = {
    "roc_auc": "roc_auc",
    "sensitivity": make_scorer(recall_score, pos_label=1, zero_division=0),
    "specificity": make_scorer(recall_score, pos_label=0, zero_division=0),
    "accuracy": "accuracy",
}


def make_folds(y, n_splits: int = CV_FOLDS, random_state: int | None = RANDOM_STATE):
    """Shuffled stratified folds; every class must reach every fold."""
    if n_splits < 2:
        raise ValueError(f"n_splits must be at least 2, got {n_splits}")
    counts = np.bincount(np.asarray(y, dtype=int), minlength=2)
    if n_splits > counts.min():
        raise ValueError(
            f"n_splits={n_splits} exceeds the minority class size ({counts.min()})"
        )
    return StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=random_state)


def cross_validate_model(
    model,
    X: pd.DataFrame,
    y: pd.Series,
    n_splits: int = CV_FOLDS,
    random_state: int | None = RANDOM_STATE,
    n_jobs: int | None = None,
):
    """
    Run k-fold CV and return per-fold scores and their mean/std summary.

    The model is cloned and refitted per fold, so formula levels and scaling
    are learned from the fit rows only.
    """
    folds = make_folds(y, n_splits=n_splits, random_state=random_state)
    scores = cross_validate(
        model, X, y, cv=folds, scoring=SCORING, n_jobs=n_jobs, error_score="raise"
    )

    per_fold = pd.DataFrame({name: scores[f"test_{name}"] for name in SCORING})
    per_fold.index = pd.RangeIndex(1, n_splits + 1, name="fold")
    per_fold["fit_time"] = scores["fit_time"]
    summary = per_fold[list(SCORING)].agg(["mean", "std"])

    log.info(
        "%d-fold CV: ROC-AUC %.3f +/- %.3f",
        n_splits,
        summary.loc["mean", "roc_auc"],
        summary.loc["std", "roc_auc"],
    )
    return {"folds": per_fold, "summary": summary, "n_splits": n_splits}


def compare_models(results: dict[str, dict]) -> pd.DataFrame:
    """One row per model with the mean and std of every CV score."""
    rows = {}
    for name, result in results.items():
        summary = result["summary"]
        row = {}
        for metric in SCORING:
            row[f"{metric}_mean"] = summary.loc["mean", metric]
            row[f"{metric}_std"] = summary.loc["std", metric]
        rows[name] = row
    return pd.DataFrame.from_dict(rows, orient="index")


def paired_difference(first: dict, second: dict, metric: str = "roc_auc") -> dict:
    """
    Fold-by-fold difference of a metric between two CV results (first - second).

    Only meaningful when both runs used the same folds, i.e. the same y,
    n_splits and random_state.
    """
    a = first["folds"][metric]
    b = second["folds"][metric]
    if len(a) != len(b):
        raise ValueError("CV results have a different number of folds")
    diff = a.to_numpy() - b.to_numpy()
    if np.allclose(diff, diff[0]):
        p_value = float("nan")
    else:
        p_value = float(stats.ttest_rel(a, b).pvalue)
    return {
        "metric": metric,
        "mean_difference": float(diff.mean()),
        "std_difference": float(diff.std(ddof=1)),
        "p_value": p_value,
    }


def print_cv_comparison(table: pd.DataFrame, n_splits: int):
    print(f"\n{n_splits}-fold cross-validation (mean / std over folds)")
    for name, row in table.iterrows():
        print(
            f"  {name:>6}: ROC-AUC {row['roc_auc_mean']:.3f} ({row['roc_auc_std']:.3f}) | "
            f"Sens {row['sensitivity_mean']:.3f} ({row['sensitivity_std']:.3f}) | "
            f"Spec {row['specificity_mean']:.3f} ({row['specificity_std']:.3f}) | "
            f"Acc {row['accuracy_mean']:.3f} ({row['accuracy_std']:.3f})"
        )
