import math

import pytest

from main import build_arg_parser, main


def test_end_to_end_walkthrough(data_path, names_path, tmp_path, capsys):
    plots_dir = tmp_path / "plots"
    args = build_arg_parser().parse_args(
        [
            "--data-path",
            str(data_path),
            "--names-path",
            str(names_path),
            "--cv-folds",
            "3",
            "--plots-dir",
            str(plots_dir),
        ]
    )
    result = main(args)
    out = capsys.readouterr().out

    assert set(result["models"]) == {"small", "large"}
    assert set(result["cv"]) == {"small", "large"}
    for metrics in result["test_metrics"].values():
        assert 0.5 < metrics["roc_auc"] <= 1.0
        assert metrics["confusion_matrix"].sum() == math.ceil(0.2 * result["meta"]["num_rows"])

    assert "3-fold cross-validation" in out
    assert "No-information baseline" in out
    assert "Youden threshold" in out
    assert "(Intercept)" in out

    for name in [
        "numeric_distributions.png",
        "categorical_rates.png",
        "roc_curves.png",
        "confusion_matrix_small.png",
        "confusion_matrix_large.png",
    ]:
        assert (plots_dir / name).exists()


def test_missing_data_file_halts(names_path, tmp_path):
    args = build_arg_parser().parse_args(
        ["--data-path", str(tmp_path / "missing.data"), "--names-path", str(names_path)]
    )
    with pytest.raises(FileNotFoundError):
        main(args)


def test_defaults():
    args = build_arg_parser().parse_args([])

    assert args.test_size == 0.2
    assert args.cv_folds == 10
    assert args.plots_dir is None


def test_formulas_must_share_the_outcome(data_path, names_path):
    args = build_arg_parser().parse_args(
        [
            "--data-path",
            str(data_path),
            "--names-path",
            str(names_path),
            "--large-formula",
            "sex ~ age + hours_per_week",
        ]
    )
    with pytest.raises(ValueError, match="share one outcome"):
        main(args)
