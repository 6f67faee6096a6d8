from __future__ import annotations

"""
CLI entrypoint for the Census Income walkthrough: load -> clean -> split ->
plot -> cross-validate -> fit -> evaluate two logistic regression models.
"""

import argparse
import logging
from pathlib import Path

from census_income import (
    CV_FOLDS,
    LARGE_FORMULA,
    MAX_ITER,
    RANDOM_STATE,
    SMALL_FORMULA,
    TEST_SIZE,
    THRESHOLD,
    build_logistic_model,
    clean_census_data,
    compute_classification_metrics,
    cross_validate_model,
    load_census_data,
    make_train_test_split,
    parse_formula,
    print_metrics,
    split_outcome,
)
from census_income.constants import OUTCOME, POSITIVE_LEVEL
from census_income.logreg import print_model_summary
from census_income.metrics import majority_baseline, youden_threshold
from census_income.plotting import (
    plot_categorical_rates,
    plot_confusion_matrix,
    plot_numeric_distributions,
    plot_roc_curves,
)
from census_income.validation import compare_models, paired_difference, print_cv_comparison

log = logging.getLogger("census_income")


def describe_features(meta: dict):
    """Print a short summary of dataset size, balance, and cleaning."""
    print(f"Raw rows: {meta['raw_rows']}, after cleaning: {meta['num_rows']}")
    print(
        f"Removed: {meta['removed_missing']} with missing values, "
        f"{meta['removed_sentinel']} with capital_gain sentinel"
    )
    print(f"Positive rate ({POSITIVE_LEVEL}): {meta['positive_rate']:.3f}, features: {meta['feature_count']}")
    if meta["dropped_columns"]:
        print(f"Dropped columns: {meta['dropped_columns']}")


def describe_split(train, test):
    for name, part in (("Train", train), ("Test", test)):
        rate = (part[OUTCOME] == POSITIVE_LEVEL).mean()
        print(f"{name} size: {len(part)}, positive rate: {rate:.3f}")


def build_arg_parser():
    """CLI parser with knobs for data paths, split, CV and the two formulas."""
    parser = argparse.ArgumentParser(
        description="Predict whether a census respondent earns more than $50K."
    )
    parser.add_argument("--data-path", type=Path, default=Path("data/adult.data"))
    parser.add_argument(
        "--names-path",
        type=Path,
        default=Path("data/adult.names"),
        help="Metadata file supplying the column names.",
    )
    parser.add_argument("--test-size", type=float, default=TEST_SIZE)
    parser.add_argument("--cv-folds", type=int, default=CV_FOLDS)
    parser.add_argument("--random-state", type=int, default=RANDOM_STATE)
    parser.add_argument("--threshold", type=float, default=THRESHOLD, help="Decision threshold.")
    parser.add_argument("--max-iter", type=int, default=MAX_ITER, help="Max solver iterations.")
    parser.add_argument("--small-formula", default=SMALL_FORMULA)
    parser.add_argument(
        "--large-formula",
        default=LARGE_FORMULA,
        help="Formula with interaction and quadratic terms.",
    )
    parser.add_argument(
        "--plots-dir",
        type=Path,
        default=None,
        help="Write exploratory, ROC and confusion-matrix PNGs here.",
    )
    parser.add_argument("--n-jobs", type=int, default=None, help="Parallel CV folds.")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    return parser


def run_walkthrough(args: argparse.Namespace) -> dict:
    """Run every step in order and return the fitted models and test metrics."""
    outcomes = {parse_formula(f).outcome for f in (args.small_formula, args.large_formula)}
    if len(outcomes) != 1:
        raise ValueError(
            f"Small and large formulas must share one outcome, got {sorted(outcomes)}"
        )

    raw = load_census_data(args.data_path, args.names_path)
    df, meta = clean_census_data(raw)
    describe_features(meta)

    train, test = make_train_test_split(
        df, test_size=args.test_size, random_state=args.random_state
    )
    describe_split(train, test)

    if args.plots_dir:
        plot_numeric_distributions(train, args.plots_dir / "numeric_distributions.png")
        plot_categorical_rates(train, args.plots_dir / "categorical_rates.png")

    formulas = {"small": args.small_formula, "large": args.large_formula}
    cv_results, models, test_metrics, test_probs = {}, {}, {}, {}

    X_train, y_train = split_outcome(train, args.small_formula)
    X_test, y_test = split_outcome(test, args.small_formula)

    for name, formula in formulas.items():
        log.info("Cross-validating %s model: %s", name, formula)
        model = build_logistic_model(formula, max_iter=args.max_iter)
        cv_results[name] = cross_validate_model(
            model,
            X_train,
            y_train,
            n_splits=args.cv_folds,
            random_state=args.random_state,
            n_jobs=args.n_jobs,
        )

    print_cv_comparison(compare_models(cv_results), args.cv_folds)
    diff = paired_difference(cv_results["large"], cv_results["small"])
    print(
        f"  large - small ROC-AUC: {diff['mean_difference']:+.4f} "
        f"(paired t-test p = {diff['p_value']:.3g})"
    )

    for name, formula in formulas.items():
        log.info("Fitting %s model on the full training partition", name)
        model = build_logistic_model(formula, max_iter=args.max_iter).fit(X_train, y_train)
        print_model_summary(f"{name} model", model, X_train, y_train)
        models[name] = model

    print(f"\nTest set ({len(test)} rows), threshold {args.threshold}")
    print_metrics("No-information baseline", majority_baseline(y_train, y_test))
    for name, model in models.items():
        probs = model.predict_proba(X_test)[:, 1]
        test_probs[name] = probs
        test_metrics[name] = compute_classification_metrics(y_test, probs, args.threshold)
        print_metrics(f"{name} model", test_metrics[name])
        best = youden_threshold(y_test, probs)
        print(
            f"    Youden threshold {best['threshold']:.3f}: "
            f"Sens {best['sensitivity']:.3f} | Spec {best['specificity']:.3f}"
        )

    if args.plots_dir:
        plot_roc_curves(
            {name: (y_test, probs) for name, probs in test_probs.items()},
            args.plots_dir / "roc_curves.png",
            title="ROC Curves (test set)",
        )
        for name, probs in test_probs.items():
            plot_confusion_matrix(
                y_test,
                (probs >= args.threshold).astype(int),
                args.plots_dir / f"confusion_matrix_{name}.png",
                title=f"Confusion Matrix: {name} model",
            )

    return {
        "meta": meta,
        "cv": cv_results,
        "models": models,
        "test_metrics": test_metrics,
    }


def main(args: argparse.Namespace | None = None):
    """Parse arguments, configure logging and run the walkthrough."""
    args = args or build_arg_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )
    return run_walkthrough(args)


if __name__ == "__main__":
    main()
