import numpy as np
import pytest

from census_income.plotting import (
    plot_categorical_rates,
    plot_confusion_matrix,
    plot_numeric_distributions,
    plot_roc_curves,
)


def test_exploratory_plots(clean_census, tmp_path):
    hist = plot_numeric_distributions(clean_census, tmp_path / "eda" / "numeric.png")
    rates = plot_categorical_rates(clean_census, tmp_path / "eda" / "rates.png")

    assert hist.exists() and hist.stat().st_size > 0
    assert rates.exists() and rates.stat().st_size > 0


def test_exploratory_plots_need_a_known_column(clean_census, tmp_path):
    categorical_only = clean_census[["sex", "income"]]

    with pytest.raises(ValueError, match="requested columns"):
        plot_numeric_distributions(categorical_only, tmp_path / "numeric.png")
    assert not (tmp_path / "numeric.png").exists()


def test_roc_and_confusion_plots(tmp_path):
    y = np.array([0, 0, 1, 1, 0, 1])
    probs = np.array([0.1, 0.4, 0.35, 0.8, 0.2, 0.9])

    roc = plot_roc_curves({"small": (y, probs), "large": (y, probs ** 2)}, tmp_path / "roc.png")
    cm = plot_confusion_matrix(y, (probs >= 0.5).astype(int), tmp_path / "cm.png")

    assert roc.exists()
    assert cm.exists()
