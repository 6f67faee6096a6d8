import warnings

import numpy as np
import pytest
from scipy.special import expit
from sklearn.exceptions import NotFittedError

from census_income.constants import LARGE_FORMULA, POSITIVE_LEVEL, SMALL_FORMULA
from census_income.logreg import (
    build_logistic_model,
    coefficient_table,
    fit_statistics,
    print_model_summary,
    raw_coefficients,
    split_outcome,
)


@pytest.fixture
def xy(clean_census):
    return split_outcome(clean_census, SMALL_FORMULA)


@pytest.fixture
def small_model(xy):
    X, y = xy
    return build_logistic_model(SMALL_FORMULA).fit(X, y)


def test_split_outcome(clean_census):
    X, y = split_outcome(clean_census, SMALL_FORMULA)

    assert "income" not in X.columns
    assert set(y.unique()) == {0, 1}
    assert y.sum() == (clean_census["income"] == POSITIVE_LEVEL).sum()


def test_split_outcome_requires_outcome_column(clean_census):
    with pytest.raises(KeyError):
        split_outcome(clean_census.drop(columns=["income"]), SMALL_FORMULA)


def test_build_rejects_bad_formula():
    with pytest.raises(ValueError):
        build_logistic_model("income ~ ")


def test_fit_emits_no_future_warning(xy):
    X, y = xy
    with warnings.catch_warnings():
        warnings.simplefilter("error", FutureWarning)
        model = build_logistic_model(SMALL_FORMULA).fit(X, y)

    assert np.isinf(model.named_steps["logisticregression"].C)


def test_fitted_probabilities(small_model, xy):
    X, _ = xy
    probs = small_model.predict_proba(X)[:, 1]

    assert probs.shape == (len(X),)
    assert ((probs >= 0) & (probs <= 1)).all()


def test_raw_coefficients_reproduce_predictions(small_model, xy):
    X, _ = xy
    intercept, coef = raw_coefficients(small_model)
    design = small_model.named_steps["formulatransformer"].transform(X)

    np.testing.assert_allclose(
        expit(intercept + design @ coef), small_model.predict_proba(X)[:, 1], atol=1e-8
    )


def test_coefficient_table(small_model, xy):
    X, _ = xy
    table = coefficient_table(small_model, X)

    assert list(table.columns) == ["estimate", "std_error", "z_value", "p_value"]
    assert list(table.index) == [
        "(Intercept)",
        "age",
        "education_num",
        "hours_per_week",
        "capital_gain",
        "sex[Male]",
    ]
    assert np.isfinite(table["std_error"]).all()
    assert (table["std_error"] > 0).all()
    assert table["p_value"].between(0, 1).all()


def test_fit_statistics(small_model, xy):
    X, y = xy
    fit = fit_statistics(small_model, X, y)

    assert fit["n_obs"] == len(X)
    assert fit["n_params"] == 6
    assert fit["deviance"] < fit["null_deviance"]
    assert fit["aic"] == pytest.approx(fit["deviance"] + 2 * 6)


def test_large_model_has_interaction_and_quadratic_terms(xy, capsys):
    X, y = xy
    model = build_logistic_model(LARGE_FORMULA).fit(X, y)
    table, fit = print_model_summary("large", model, X, y)

    assert "I(age^2)" in table.index
    assert "age:sex[Male]" in table.index
    assert fit["n_params"] == len(table)
    assert "Residual deviance" in capsys.readouterr().out


def test_unfitted_model_raises(xy):
    X, _ = xy
    with pytest.raises(NotFittedError):
        coefficient_table(build_logistic_model(SMALL_FORMULA), X)
