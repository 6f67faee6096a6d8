import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from census_income.data_prep import clean_census_data, load_census_data

NAMES_TEXT = """\
| This data was extracted from the census bureau database found at
| http://www.census.gov/ftp/pub/DES/www/welcome.html

>50K, <=50K.

age: continuous.
workclass: Private, Self-emp-not-inc, Local-gov.
fnlwgt: continuous.
education: Bachelors, HS-grad, Masters.
education-num: continuous.
marital-status: Married-civ-spouse, Never-married, Divorced.
occupation: Exec-managerial, Craft-repair, Sales, Prof-specialty.
relationship: Husband, Not-in-family, Own-child.
race: White, Black, Asian-Pac-Islander.
sex: Female, Male.
capital-gain: continuous.
capital-loss: continuous.
hours-per-week: continuous.
native-country: United-States, Mexico.
"""

N_ROWS = 400
MISSING_ROWS = 3
SENTINEL_ROWS = 2


def make_adult_rows(n_rows: int = N_ROWS, seed: int = 0) -> pd.DataFrame:
    """Adult-like raw records; rows 0-1 carry the sentinel, rows 2-4 a '?'."""
    rng = np.random.default_rng(seed)
    education = rng.choice(["Bachelors", "HS-grad", "Masters"], size=n_rows)
    education_num = pd.Series(education).map({"HS-grad": 9, "Bachelors": 13, "Masters": 14})
    df = pd.DataFrame(
        {
            "age": rng.integers(18, 70, size=n_rows),
            "workclass": rng.choice(["Private", "Self-emp-not-inc", "Local-gov"], size=n_rows),
            "fnlwgt": rng.integers(20000, 400000, size=n_rows),
            "education": education,
            "education-num": education_num.to_numpy(),
            "marital-status": rng.choice(
                ["Married-civ-spouse", "Never-married", "Divorced"], size=n_rows
            ),
            "occupation": rng.choice(
                ["Exec-managerial", "Craft-repair", "Sales", "Prof-specialty"], size=n_rows
            ),
            "relationship": rng.choice(["Husband", "Not-in-family", "Own-child"], size=n_rows),
            "race": rng.choice(["White", "Black", "Asian-Pac-Islander"], size=n_rows),
            "sex": rng.choice(["Female", "Male"], size=n_rows),
            "capital-gain": np.where(rng.random(n_rows) < 0.1, 5178, 0),
            "capital-loss": np.where(rng.random(n_rows) < 0.05, 1902, 0),
            "hours-per-week": rng.integers(10, 70, size=n_rows),
            "native-country": rng.choice(["United-States", "Mexico"], size=n_rows),
        }
    )
    score = (
        -9.0
        + 0.05 * df["age"]
        + 0.35 * df["education-num"]
        + 0.03 * df["hours-per-week"]
        + 0.8 * (df["sex"] == "Male")
        + 1.2 * (df["marital-status"] == "Married-civ-spouse")
        + 1.5 * (df["capital-gain"] > 0)
    )
    prob = 1.0 / (1.0 + np.exp(-score))
    df["income"] = np.where(rng.random(n_rows) < prob, ">50K", "<=50K")
    # guarantee both classes regardless of the draw
    df.loc[5, "income"] = ">50K"
    df.loc[6, "income"] = "<=50K"

    df["capital-gain"] = df["capital-gain"].astype(object)
    df.loc[[0, 1], "capital-gain"] = 99999
    df.loc[[2, 3], "workclass"] = "?"
    df.loc[4, "occupation"] = "?"
    return df


def write_adult_file(df: pd.DataFrame, path, header_line: str | None = None, label_suffix: str = ""):
    lines = [header_line] if header_line else []
    for row in df.itertuples(index=False):
        values = [str(v) for v in row]
        values[-1] = values[-1] + label_suffix
        lines.append(", ".join(values))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def names_path(tmp_path):
    path = tmp_path / "adult.names"
    path.write_text(NAMES_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def data_path(tmp_path):
    return write_adult_file(make_adult_rows(), tmp_path / "adult.data")


@pytest.fixture
def raw_census(data_path, names_path):
    return load_census_data(data_path, names_path)


@pytest.fixture
def clean_census(raw_census):
    df, _ = clean_census_data(raw_census)
    return df
