from __future__ import annotations

"""
Loading, cleaning and splitting of the UCI Census Income (Adult) records.
"""

import logging
import re
from pathlib import Path

import pandas as pd
from sklearn.model_selection import train_test_split

from .constants import (
    CAPITAL_GAIN_SENTINEL,
    CONTINUOUS_COLUMNS,
    DROP_COLUMNS,
    MISSING_MARKER,
    OUTCOME,
    OUTCOME_LEVELS,
    POSITIVE_LEVEL,
    RANDOM_STATE,
    TEST_SIZE,
)

log = logging.getLogger(__name__)

_NAME_LINE = re.compile(r"^([A-Za-z][\w-]*)\s*:")
_NON_IDENT = re.compile(r"[^0-9A-Za-z]+")


def _clean_name(name: str) -> str:
    """Lightweight normalizer for column names."""
    return _NON_IDENT.sub("_", name.strip().lower()).strip("_")


def _text_columns(df: pd.DataFrame) -> list[str]:
    return [col for col in df.columns if not pd.api.types.is_numeric_dtype(df[col])]


def make_identifier(value: str) -> str:
    """Turn a raw categorical level into a valid identifier (case is kept)."""
    ident = _NON_IDENT.sub("_", value.strip()).strip("_")
    if not ident or ident[0].isdigit():
        ident = f"x_{ident}"
    return ident


def read_column_names(names_path: Path, outcome: str = OUTCOME) -> list[str]:
    """
    Column names from an adult.names style metadata file.

    Attribute lines look like ``age: continuous.``; lines starting with ``|``
    are comments. The outcome is not described there and is appended. A plain
    one-name-per-line file is accepted as a fallback.
    """
    names_path = Path(names_path)
    if not names_path.exists():
        raise FileNotFoundError(f"Metadata file not found: {names_path}")

    lines = [
        line.strip()
        for line in names_path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.lstrip().startswith("|")
    ]
    described = [m.group(1) for m in map(_NAME_LINE.match, lines) if m]
    raw_names = described if described else lines

    columns = [_clean_name(name) for name in raw_names]
    if outcome not in columns:
        columns.append(outcome)
    if len(set(columns)) != len(columns):
        raise ValueError(f"Duplicate column names in {names_path}: {columns}")
    return columns


def load_census_data(data_path: Path, names_path: Path) -> pd.DataFrame:
    """Read the delimited data file with the column names from the metadata file."""
    data_path = Path(data_path)
    if not data_path.exists():
        raise FileNotFoundError(f"Data file not found: {data_path}")
    columns = read_column_names(names_path)

    df = pd.read_csv(
        data_path,
        header=None,
        sep=",",
        skipinitialspace=True,
        na_values=[MISSING_MARKER],
        comment="|",
    )
    if df.shape[1] != len(columns):
        raise ValueError(
            f"{data_path} has {df.shape[1]} fields per row but the metadata "
            f"names {len(columns)} columns: {columns}"
        )
    df.columns = columns
    log.info("Read %d rows x %d columns from %s", len(df), df.shape[1], data_path)
    return df


def _normalize_levels(series: pd.Series) -> pd.Series:
    """Map every level of a categorical column to a unique identifier."""
    levels = series.dropna().unique()
    mapping = {level: make_identifier(level) for level in levels}
    collisions = pd.Series(mapping).duplicated(keep=False)
    if collisions.any():
        clashing = sorted(pd.Series(mapping)[collisions].index)
        raise ValueError(
            f"Levels of '{series.name}' collapse to the same identifier: {clashing}"
        )
    return series.map(mapping)


def _normalize_outcome(series: pd.Series) -> pd.Series:
    labels = series.str.rstrip(".")
    unknown = sorted(set(labels.dropna()) - set(OUTCOME_LEVELS))
    if unknown:
        raise ValueError(
            f"Unexpected '{series.name}' labels {unknown}; expected {sorted(OUTCOME_LEVELS)}"
        )
    return labels.map(OUTCOME_LEVELS)


def validate_outcome(df: pd.DataFrame, outcome: str = OUTCOME) -> None:
    """Raise unless the outcome has exactly two levels and no missing entries."""
    if outcome not in df.columns:
        raise KeyError(f"Outcome column '{outcome}' is missing")
    if df[outcome].isna().any():
        raise ValueError(f"Outcome column '{outcome}' has missing entries")
    levels = sorted(df[outcome].unique())
    if len(levels) != 2:
        raise ValueError(f"Outcome column '{outcome}' must have two levels, found {levels}")


def clean_census_data(
    raw: pd.DataFrame,
    drop_columns: list[str] | None = None,
    outcome: str = OUTCOME,
):
    """
    Apply the cleaning rules and return ``(clean_df, meta)``.

    Rows with any missing value or with the capital-gain sentinel are
    removed, a fixed set of columns is dropped and categorical levels become
    valid identifiers. The input frame is left untouched.
    """
    drop_columns = DROP_COLUMNS if drop_columns is None else drop_columns
    df = raw.copy()

    for col in _text_columns(df):
        stripped = df[col].str.strip()
        df[col] = stripped.mask(stripped == MISSING_MARKER)
    if outcome in _text_columns(df):
        df[outcome] = df[outcome].str.rstrip(".")

    n_raw = len(df)
    df = df.dropna()
    removed_missing = n_raw - len(df)
    log.info("Removed %d rows with missing values", removed_missing)

    for col in CONTINUOUS_COLUMNS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col])

    removed_sentinel = 0
    if "capital_gain" in df.columns:
        sentinel = df["capital_gain"] >= CAPITAL_GAIN_SENTINEL
        removed_sentinel = int(sentinel.sum())
        df = df.loc[~sentinel]
        log.info(
            "Removed %d rows with capital_gain sentinel %d",
            removed_sentinel,
            CAPITAL_GAIN_SENTINEL,
        )

    dropped = [col for col in drop_columns if col in df.columns]
    df = df.drop(columns=dropped)
    log.debug("Dropped columns: %s", dropped)

    for col in _text_columns(df):
        if col == outcome:
            df[col] = _normalize_outcome(df[col])
        else:
            df[col] = _normalize_levels(df[col])

    validate_outcome(df, outcome)

    meta = {
        "raw_rows": n_raw,
        "num_rows": len(df),
        "removed_missing": removed_missing,
        "removed_sentinel": removed_sentinel,
        "dropped_columns": dropped,
        "positive_rate": float((df[outcome] == POSITIVE_LEVEL).mean()),
        "feature_count": df.shape[1] - 1,
    }
    return df, meta


def make_train_test_split(
    df: pd.DataFrame,
    test_size: float = TEST_SIZE,
    random_state: int | None = RANDOM_STATE,
    outcome: str = OUTCOME,
):
    """Stratified split on the outcome; returns copies of the train and test rows."""
    if not 0.0 < test_size < 1.0:
        raise ValueError(f"test_size must be in (0, 1), got {test_size}")
    if not df.index.is_unique:
        raise ValueError("Row index must be unique to split by row id")

    train_ids, test_ids = train_test_split(
        df.index,
        test_size=test_size,
        random_state=random_state,
        stratify=df[outcome],
    )
    log.debug("Split %d rows into %d train / %d test", len(df), len(train_ids), len(test_ids))
    return df.loc[train_ids].copy(), df.loc[test_ids].copy()
