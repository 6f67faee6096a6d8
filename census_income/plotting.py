from __future__ import annotations

"""
Exploratory plots of the cleaned census data and ROC / confusion-matrix
figures for the fitted models. Every helper saves a PNG and returns its path.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from sklearn.metrics import ConfusionMatrixDisplay, auc, confusion_matrix, roc_curve

from .constants import (
    CATEGORICAL_COLUMNS,
    CONTINUOUS_COLUMNS,
    NEGATIVE_LEVEL,
    OUTCOME,
    POSITIVE_LEVEL,
)


def _grid(n_panels: int, n_cols: int = 2):
    if n_panels < 1:
        raise ValueError("None of the requested columns are in the frame")
    n_rows = int(np.ceil(n_panels / n_cols))
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(6 * n_cols, 4 * n_rows), squeeze=False)
    axes = axes.ravel()
    for ax in axes[n_panels:]:
        ax.set_visible(False)
    return fig, axes


def _save(fig, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_numeric_distributions(
    df: pd.DataFrame,
    path: Path,
    columns: list[str] | None = None,
    outcome: str = OUTCOME,
) -> Path:
    """Overlaid histograms of each continuous column per outcome level."""
    columns = [c for c in (columns or CONTINUOUS_COLUMNS) if c in df.columns]
    fig, axes = _grid(len(columns))
    for ax, col in zip(axes, columns):
        for level, group in df.groupby(outcome):
            ax.hist(group[col], bins=30, alpha=0.5, density=True, label=str(level))
        ax.set_title(col)
        ax.legend()
    return _save(fig, path)


def plot_categorical_rates(
    df: pd.DataFrame,
    path: Path,
    columns: list[str] | None = None,
    outcome: str = OUTCOME,
) -> Path:
    """Share of the positive income level within every categorical level."""
    columns = [c for c in (columns or CATEGORICAL_COLUMNS) if c in df.columns]
    positive = df[outcome] == POSITIVE_LEVEL
    fig, axes = _grid(len(columns))
    for ax, col in zip(axes, columns):
        rates = positive.groupby(df[col]).mean().sort_values()
        ax.barh(rates.index.astype(str), rates.values, color="steelblue")
        ax.set_xlim(0.0, 1.0)
        ax.set_xlabel(f"P({POSITIVE_LEVEL})")
        ax.set_title(col)
    return _save(fig, path)


def plot_roc_curves(curves: dict[str, tuple], path: Path, title: str = "ROC Curves") -> Path:
    """``curves`` maps a model label to ``(y_true, probs)``."""
    fig, ax = plt.subplots(figsize=(8, 6))
    for label, (y_true, probs) in curves.items():
        fpr, tpr, _ = roc_curve(y_true, probs)
        ax.plot(fpr, tpr, lw=2, label=f"{label} (AUC = {auc(fpr, tpr):.3f})")
    ax.plot([0, 1], [0, 1], color="navy", lw=2, linestyle="--")
    ax.set_xlim([0.0, 1.0])
    ax.set_ylim([0.0, 1.05])
    ax.set_xlabel("False Positive Rate")
    ax.set_ylabel("True Positive Rate")
    ax.set_title(title)
    ax.legend(loc="lower right")
    ax.grid(True)
    return _save(fig, path)


def plot_confusion_matrix(y_true, preds, path: Path, title: str = "Confusion Matrix") -> Path:
    cm = confusion_matrix(y_true, preds, labels=[0, 1])
    disp = ConfusionMatrixDisplay(
        confusion_matrix=cm, display_labels=[NEGATIVE_LEVEL, POSITIVE_LEVEL]
    )
    fig, ax = plt.subplots(figsize=(6, 5))
    disp.plot(ax=ax, cmap="Blues", values_format="d", colorbar=False)
    ax.set_title(title)
    return _save(fig, path)
