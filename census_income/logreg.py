from __future__ import annotations

"""
Logistic regression pipelines built from a formula, plus a GLM-style
coefficient summary (estimates in raw units, standard errors, z and p values).
"""

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import log_loss
from sklearn.pipeline import Pipeline, make_pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.utils.validation import check_is_fitted

from .constants import MAX_ITER, POSITIVE_LEVEL
from .formula import FormulaTransformer, parse_formula


def build_logistic_model(formula: str, max_iter: int = MAX_ITER) -> Pipeline:
    """
    Formula design matrix -> standardization -> unpenalized logistic regression.

    Scaling only helps the solver; :func:`raw_coefficients` maps the fit back
    to the units of the design matrix.
    """
    parse_formula(formula)
    return make_pipeline(
        FormulaTransformer(formula),
        StandardScaler(),
        LogisticRegression(C=np.inf, max_iter=max_iter),
    )


def split_outcome(df: pd.DataFrame, formula: str):
    """Return ``(X, y)`` where y is 1 for the positive income level."""
    outcome = parse_formula(formula).outcome
    if outcome not in df.columns:
        raise KeyError(f"Outcome column '{outcome}' is missing")
    X = df.drop(columns=[outcome])
    y = (df[outcome] == POSITIVE_LEVEL).astype(int)
    return X, y


def raw_coefficients(pipeline: Pipeline) -> tuple[float, np.ndarray]:
    """
    Convert coefficients from standardized space back to design-matrix units.
    """
    logreg: LogisticRegression = pipeline.named_steps["logisticregression"]
    check_is_fitted(logreg)
    scaler: StandardScaler = pipeline.named_steps["standardscaler"]

    scaled_coef = logreg.coef_[0]
    raw_coef = scaled_coef / scaler.scale_
    intercept = logreg.intercept_[0] - np.sum((scaler.mean_ / scaler.scale_) * scaled_coef)
    return float(intercept), raw_coef


def _design_with_intercept(pipeline: Pipeline, X: pd.DataFrame) -> np.ndarray:
    design = pipeline.named_steps["formulatransformer"].transform(X)
    return np.column_stack([np.ones(len(design)), design])


def coefficient_table(pipeline: Pipeline, X: pd.DataFrame) -> pd.DataFrame:
    """
    Estimates, standard errors, z values and two-sided p values per design column.

    Standard errors come from the inverse of the observed information matrix
    evaluated on ``X`` (normally the training rows).
    """
    intercept, coef = raw_coefficients(pipeline)
    params = np.r_[intercept, coef]
    names = ["(Intercept)", *pipeline.named_steps["formulatransformer"].get_feature_names_out()]

    X1 = _design_with_intercept(pipeline, X)
    probs = pipeline.predict_proba(X)[:, 1]
    weights = probs * (1.0 - probs)
    information = X1.T @ (X1 * weights[:, None])
    # pinv keeps aliased columns (e.g. an empty level) from blowing up
    cov = np.linalg.pinv(information)
    std_err = np.sqrt(np.clip(np.diag(cov), 0.0, None))

    z_value = np.full_like(params, np.nan)
    np.divide(params, std_err, out=z_value, where=std_err > 0)
    p_value = 2.0 * stats.norm.sf(np.abs(z_value))

    return pd.DataFrame(
        {
            "estimate": params,
            "std_error": std_err,
            "z_value": z_value,
            "p_value": p_value,
        },
        index=pd.Index(names, name="term"),
    )


def fit_statistics(pipeline: Pipeline, X: pd.DataFrame, y: pd.Series) -> dict:
    """Residual/null deviance and AIC of a fitted pipeline on ``(X, y)``."""
    y_arr = np.asarray(y, dtype=int)
    probs = pipeline.predict_proba(X)[:, 1]
    n_params = len(pipeline.named_steps["logisticregression"].coef_[0]) + 1
    deviance = 2.0 * log_loss(y_arr, probs, labels=[0, 1], normalize=False)
    null_probs = np.full(len(y_arr), y_arr.mean())
    null_deviance = 2.0 * log_loss(y_arr, null_probs, labels=[0, 1], normalize=False)
    return {
        "n_obs": len(y_arr),
        "n_params": n_params,
        "deviance": float(deviance),
        "null_deviance": float(null_deviance),
        "aic": float(deviance + 2 * n_params),
    }


def print_model_summary(label: str, pipeline: Pipeline, X: pd.DataFrame, y: pd.Series):
    """Print the coefficient table and fit statistics like a GLM summary."""
    formula = pipeline.named_steps["formulatransformer"].formula
    table = coefficient_table(pipeline, X)
    fit = fit_statistics(pipeline, X, y)

    print(f"\n[{label}] {formula}")
    with pd.option_context("display.max_rows", None, "display.width", 120):
        print(table.to_string(float_format=lambda v: f"{v:.4g}"))
    print(
        f"    Null deviance: {fit['null_deviance']:.1f} on {fit['n_obs'] - 1} df | "
        f"Residual deviance: {fit['deviance']:.1f} on {fit['n_obs'] - fit['n_params']} df | "
        f"AIC: {fit['aic']:.1f}"
    )
    return table, fit
