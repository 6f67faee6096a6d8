from __future__ import annotations

"""
Metric helpers for the held-out test set (confusion matrix summaries and ROC).
"""

import numpy as np
import pandas as pd
from sklearn import metrics


def compute_classification_metrics(
    y_true: np.ndarray | pd.Series, probs: np.ndarray, threshold: float = 0.5
):
    """Compute standard binary metrics given probabilities and a threshold."""
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be in [0, 1], got {threshold}")
    y_arr = np.asarray(y_true, dtype=int)
    preds = (np.asarray(probs) >= threshold).astype(int)

    cm = metrics.confusion_matrix(y_arr, preds, labels=[0, 1])
    tn, fp, fn, tp = cm.ravel()
    precision, recall, f1, _ = metrics.precision_recall_fscore_support(
        y_arr, preds, average="binary", zero_division=0
    )
    specificity = tn / (tn + fp) if (tn + fp) else float("nan")
    try:
        roc_auc = metrics.roc_auc_score(y_arr, probs)
    except ValueError:
        roc_auc = float("nan")

    return {
        "threshold": threshold,
        "accuracy": metrics.accuracy_score(y_arr, preds),
        "precision": precision,
        "sensitivity": recall,
        "specificity": specificity,
        "f1": f1,
        "balanced_accuracy": metrics.balanced_accuracy_score(y_arr, preds),
        "kappa": metrics.cohen_kappa_score(y_arr, preds),
        "roc_auc": roc_auc,
        "confusion_matrix": cm,
    }


def majority_baseline(y_train: np.ndarray | pd.Series, y_test: np.ndarray | pd.Series):
    """
    Predicts the majority class probability learned from the training set.
    Its accuracy is the no-information rate.
    """
    prob = float(np.mean(y_train))
    probs = np.full(len(y_test), prob, dtype=float)
    return compute_classification_metrics(y_test, probs)


def roc_table(y_true: np.ndarray | pd.Series, probs: np.ndarray):
    """ROC curve points as a DataFrame plus the area under it."""
    fpr, tpr, thresholds = metrics.roc_curve(y_true, probs)
    curve = pd.DataFrame({"fpr": fpr, "tpr": tpr, "threshold": thresholds})
    return curve, float(metrics.auc(fpr, tpr))


def youden_threshold(y_true: np.ndarray | pd.Series, probs: np.ndarray) -> dict:
    """Threshold maximizing sensitivity + specificity - 1 on the ROC curve."""
    if len(np.unique(np.asarray(y_true))) < 2:
        raise ValueError("youden_threshold needs both classes in y_true")
    curve, _ = roc_table(y_true, probs)
    # roc_curve prepends an infinite threshold that no probability reaches
    curve = curve[np.isfinite(curve["threshold"])]
    j = curve["tpr"] - curve["fpr"]
    best = curve.loc[j.idxmax()]
    return {
        "threshold": float(best["threshold"]),
        "sensitivity": float(best["tpr"]),
        "specificity": float(1.0 - best["fpr"]),
        "youden_j": float(j.max()),
    }


def print_metrics(label: str, results: dict):
    """Nicely format the metric dict produced by compute_classification_metrics."""
    cm = results["confusion_matrix"]
    print(
        f"[{label}] Acc {results['accuracy']:.3f} | Kappa {results['kappa']:.3f} | "
        f"Sens {results['sensitivity']:.3f} | Spec {results['specificity']:.3f} | "
        f"Prec {results['precision']:.3f} | F1 {results['f1']:.3f} | "
        f"ROC-AUC {results['roc_auc']:.3f}"
    )
    print(f"    Confusion matrix [[TN, FP], [FN, TP]]: {cm.tolist()}")
