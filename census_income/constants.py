"""
Column sets, cleaning rules and model defaults for the Census Income walkthrough.
"""

OUTCOME = "income"

# Raw label -> identifier-safe level. adult.test labels carry a trailing "."
OUTCOME_LEVELS = {
    "<=50K": "at_most_50k",
    ">50K": "over_50k",
}
POSITIVE_LEVEL = "over_50k"
NEGATIVE_LEVEL = "at_most_50k"

# Out-of-range top code used in the raw capital-gain column
CAPITAL_GAIN_SENTINEL = 99999

DROP_COLUMNS = [
    "fnlwgt",
    "education",
    "relationship",
    "capital_loss",
    "native_country",
]

CONTINUOUS_COLUMNS = [
    "age",
    "education_num",
    "capital_gain",
    "hours_per_week",
]
CATEGORICAL_COLUMNS = [
    "workclass",
    "marital_status",
    "occupation",
    "race",
    "sex",
]

MISSING_MARKER = "?"

SMALL_FORMULA = "income ~ age + education_num + hours_per_week + capital_gain + sex"
LARGE_FORMULA = (
    "income ~ age + I(age^2) + education_num + hours_per_week + I(hours_per_week^2)"
    " + capital_gain + sex + workclass + marital_status + occupation"
    " + age:sex + education_num:sex + hours_per_week:sex"
)

TEST_SIZE = 0.2
CV_FOLDS = 10
RANDOM_STATE = 42
THRESHOLD = 0.5
MAX_ITER = 5000
