from __future__ import annotations

"""
Formula-style model terms (``income ~ age + sex + age:sex + I(age^2)``) and an
sklearn transformer that turns a DataFrame into the matching design matrix.
"""

import re
from dataclasses import dataclass
from itertools import combinations

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.utils.validation import check_is_fitted

_IDENT = re.compile(r"^[A-Za-z_]\w*$")
_POWER = re.compile(r"^I\(\s*([A-Za-z_]\w*)\s*(?:\^|\*\*)\s*(\d+)\s*\)$")


@dataclass(frozen=True)
class Factor:
    column: str
    power: int = 1

    @property
    def label(self) -> str:
        return self.column if self.power == 1 else f"I({self.column}^{self.power})"


@dataclass(frozen=True)
class Term:
    """Product of one or more factors; an empty term stands for ``.``."""

    factors: tuple[Factor, ...]

    @property
    def label(self) -> str:
        return ":".join(f.label for f in self.factors) if self.factors else "."

    @property
    def key(self) -> frozenset:
        return frozenset(self.factors)


ALL_COLUMNS = Term(())


@dataclass(frozen=True)
class Formula:
    outcome: str
    terms: tuple[Term, ...]

    def resolve(self, columns) -> tuple[Term, ...]:
        """Expand ``.`` into main effects of every non-outcome column."""
        resolved: list[Term] = []
        for term in self.terms:
            if term == ALL_COLUMNS:
                resolved.extend(
                    Term((Factor(col),)) for col in columns if col != self.outcome
                )
            else:
                resolved.append(term)
        return _dedupe(resolved)

    def __str__(self) -> str:
        return f"{self.outcome} ~ " + " + ".join(t.label for t in self.terms)


def _split_top_level(text: str, sep: str) -> list[str]:
    """Split on ``sep`` outside parentheses."""
    parts, depth, current = [], 0, []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise ValueError(f"Unbalanced parentheses in '{text}'")
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    if depth != 0:
        raise ValueError(f"Unbalanced parentheses in '{text}'")
    parts.append("".join(current))
    return [p.strip() for p in parts]


def _parse_factor(text: str) -> Factor:
    match = _POWER.match(text)
    if match:
        power = int(match.group(2))
        if power < 1:
            raise ValueError(f"Power must be a positive integer in '{text}'")
        return Factor(match.group(1), power)
    if _IDENT.match(text):
        return Factor(text)
    raise ValueError(f"Cannot parse model factor '{text}'")


def _parse_interaction(text: str) -> Term:
    pieces = _split_top_level(text, ":")
    if any(not p for p in pieces):
        raise ValueError(f"Empty factor in term '{text}'")
    factors: list[Factor] = []
    for piece in pieces:
        factor = _parse_factor(piece)
        if factor not in factors:
            factors.append(factor)
    return Term(tuple(factors))


def _expand_crossing(text: str) -> list[Term]:
    """``a*b*c`` -> a, b, c, a:b, a:c, b:c, a:b:c."""
    pieces = _split_top_level(text, "*")
    if any(not p for p in pieces):
        raise ValueError(f"Empty operand in '{text}'")
    bases = [_parse_interaction(p) for p in pieces]
    expanded = []
    for degree in range(1, len(bases) + 1):
        for combo in combinations(bases, degree):
            factors: list[Factor] = []
            for term in combo:
                factors.extend(f for f in term.factors if f not in factors)
            expanded.append(Term(tuple(factors)))
    return expanded


def _dedupe(terms) -> tuple[Term, ...]:
    seen, unique = set(), []
    for term in terms:
        if term.key in seen:
            continue
        seen.add(term.key)
        unique.append(term)
    return tuple(unique)


def parse_formula(text: str) -> Formula:
    """Parse ``outcome ~ rhs`` into a :class:`Formula`."""
    sides = text.split("~")
    if len(sides) != 2:
        raise ValueError(f"Formula needs exactly one '~': '{text}'")
    outcome, rhs = sides[0].strip(), sides[1].strip()
    if not _IDENT.match(outcome):
        raise ValueError(f"Invalid outcome name '{outcome}' in '{text}'")
    if not rhs:
        raise ValueError(f"Formula has no terms: '{text}'")
    if "-" in rhs:
        raise ValueError(f"Term removal is not supported: '{text}'")

    terms: list[Term] = []
    for piece in _split_top_level(rhs, "+"):
        if not piece:
            raise ValueError(f"Empty term in '{text}'")
        if piece == "1":
            continue
        if piece == "0":
            raise ValueError("The intercept is always fitted; '+ 0' is not supported")
        if piece == ".":
            terms.append(ALL_COLUMNS)
        elif len(_split_top_level(piece, "*")) > 1:
            terms.extend(_expand_crossing(piece))
        else:
            terms.append(_parse_interaction(piece))

    terms = list(_dedupe(terms))
    if not terms:
        raise ValueError(f"Formula has no terms: '{text}'")
    for term in terms:
        if any(f.column == outcome for f in term.factors):
            raise ValueError(f"Outcome '{outcome}' cannot appear on the right-hand side")
    return Formula(outcome, tuple(terms))


class FormulaTransformer(BaseEstimator, TransformerMixin):
    """
    Build a numeric design matrix from a DataFrame following a formula.

    Categorical factors are treatment coded against their first sorted level
    seen during ``fit``; unseen levels at transform time encode as that
    reference. The intercept is left to the downstream classifier.
    """

    def __init__(self, formula: str):
        self.formula = formula

    @staticmethod
    def _as_frame(X) -> pd.DataFrame:
        if not isinstance(X, pd.DataFrame):
            raise TypeError("FormulaTransformer expects a pandas DataFrame")
        return X

    def fit(self, X, y=None):
        X = self._as_frame(X)
        parsed = parse_formula(self.formula)
        self.outcome_ = parsed.outcome
        self.terms_ = parsed.resolve(X.columns)

        used = []
        for term in self.terms_:
            used.extend(f.column for f in term.factors if f.column not in used)
        missing = [col for col in used if col not in X.columns]
        if missing:
            raise KeyError(f"Columns {missing} used in '{self.formula}' are not in the data")

        self.levels_: dict[str, list] = {}
        for col in used:
            if not pd.api.types.is_numeric_dtype(X[col]):
                self.levels_[col] = sorted(X[col].dropna().unique())

        for term in self.terms_:
            for factor in term.factors:
                if factor.column in self.levels_ and factor.power != 1:
                    raise ValueError(f"Cannot raise categorical '{factor.column}' to a power")

        self.feature_names_in_ = np.asarray(X.columns, dtype=object)
        self.n_features_in_ = X.shape[1]
        self.feature_names_out_ = list(self._design(X.head(0)).columns)
        return self

    def _factor_block(self, X: pd.DataFrame, factor: Factor) -> dict[str, np.ndarray]:
        values = X[factor.column]
        if factor.column in self.levels_:
            reference, *others = self.levels_[factor.column]
            raw = values.to_numpy()
            return {
                f"{factor.column}[{level}]": (raw == level).astype(float)
                for level in others
            }
        return {factor.label: values.to_numpy(dtype=float) ** factor.power}

    def _design(self, X: pd.DataFrame) -> pd.DataFrame:
        columns: dict[str, np.ndarray] = {}
        for term in self.terms_:
            blocks = {"": np.ones(len(X))}
            for factor in term.factors:
                block = self._factor_block(X, factor)
                blocks = {
                    f"{left}:{right}" if left else right: lvals * rvals
                    for left, lvals in blocks.items()
                    for right, rvals in block.items()
                }
            columns.update(blocks)
        return pd.DataFrame(columns, index=X.index)

    def transform(self, X):
        check_is_fitted(self, "terms_")
        X = self._as_frame(X)
        missing = [c for c in self.levels_ if c not in X.columns]
        if missing:
            raise KeyError(f"Columns {missing} are missing at transform time")
        return self._design(X).to_numpy(dtype=float)

    def get_feature_names_out(self, input_features=None):
        check_is_fitted(self, "terms_")
        return np.asarray(self.feature_names_out_, dtype=object)
