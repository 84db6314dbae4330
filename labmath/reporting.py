"""Format masses, volumes and concentrations for recipes and result tables.

These helpers are for display only. Numeric results stay in base units
(g, L, M, g/L) for any further arithmetic; the strings produced here pick a
human-scaled unit, round to a fixed number of decimals and strip trailing
zeros.
"""

from __future__ import annotations

import math
from typing import Iterable, Union

import numpy as np
import pandas as pd

from labmath.units import canonical_unit

# (upper bound, scale, suffix, decimals), checked in order
_VOLUME_SCALES = (
    (1e-6, 1e9, "nL", 1),
    (1e-3, 1e6, "μL", 1),
    (1.0, 1e3, "mL", 3),
)
_VOLUME_FALLBACK = (1.0, "L", 3)

_MASS_SCALES = (
    (1e-6, 1e9, "ng", 1),
    (1e-3, 1e6, "μg", 1),
    (1.0, 1e3, "mg", 1),
)
_MASS_FALLBACK = (1.0, "g", 3)

CONCENTRATION_DECIMALS = {
    "M": 3,
    "mM": 1,
    "μM": 1,
    "mg/mL": 1,
    "X": 1,
    "%w/v": 2,
    "μg/mL": 2,
    "ng/μL": 2,
    "g/L": 3,
}


def _trim(value: float, decimals: int) -> str:
    """Round to ``decimals`` places, then drop trailing zeros.

    ``_trim(2.5, 3) == "2.5"`` and ``_trim(2.0, 3) == "2"``.
    """
    text = f"{float(value):.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def _plain(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def _require_finite(value: float, label: str) -> float:
    v = float(value)
    if not math.isfinite(v):
        raise ValueError(f"Cannot format non-finite {label}: {value!r}")
    return v


def _format_scaled(value: float, scales, fallback) -> str:
    for upper, scale, suffix, decimals in scales:
        if value < upper:
            return f"{_trim(value * scale, decimals)} {suffix}"
    scale, suffix, decimals = fallback
    return f"{_trim(value * scale, decimals)} {suffix}"


def format_volume(liters: float) -> str:
    """Format a volume given in liters using nL, μL, mL or L.

    Examples:
        ``format_volume(0.1) == "100 mL"``, ``format_volume(1e-9) == "1 nL"``.
    """
    return _format_scaled(
        _require_finite(liters, "volume"), _VOLUME_SCALES, _VOLUME_FALLBACK
    )


def format_mass(grams: float) -> str:
    """Format a mass given in grams using ng, μg, mg or g.

    Examples:
        ``format_mass(0.05) == "50 mg"``, ``format_mass(2.5) == "2.5 g"``.
    """
    return _format_scaled(
        _require_finite(grams, "mass"), _MASS_SCALES, _MASS_FALLBACK
    )


def format_concentration(value: Union[float, str], unit: str) -> str:
    """Format a concentration magnitude with unit-dependent precision.

    Args:
        value: Numeric value or numeric string.
        unit: Concentration unit tag. Aliases such as ``"pct"`` and ``"uM"``
            are accepted.

    Returns:
        str: The rounded magnitude without its unit. Units outside the
        precision table are passed through unrounded.

    Raises:
        ValueError: If ``value`` is not numeric.
    """
    try:
        n = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Concentration must be numeric, got {value!r}") from exc
    if math.isnan(n):
        raise ValueError(f"Concentration must be numeric, got {value!r}")

    decimals = CONCENTRATION_DECIMALS.get(canonical_unit(unit))
    if decimals is None:
        return _plain(n)
    return _trim(n, decimals)


def format_significant(value: float) -> str:
    """Format to six significant figures, switching to scientific below 1e-6."""
    v = _require_finite(value, "value")
    if v == 0:
        return "0"
    if abs(v) < 1e-6:
        return f"{v:.4e}"
    return _plain(float(f"{v:.6g}"))


def format_amount(value: float, kind: str) -> str:
    """Format a base-unit amount according to its kind (``mass``/``volume``)."""
    if kind == "mass":
        return format_mass(value)
    if kind == "volume":
        return format_volume(value)
    raise ValueError(f"Unknown amount kind {kind!r}; expected 'mass' or 'volume'.")


def add_formatted_columns(
    df: pd.DataFrame,
    value_kind_pairs: Iterable[tuple[str, str]],
    suffix: str = " (display)",
) -> pd.DataFrame:
    """Add display-ready string columns for base-unit amounts.

    Args:
        df (pandas.DataFrame): Input table with numeric amounts.
        value_kind_pairs (Iterable[tuple[str, str]]): Sequence of
            ``(value_column, kind_column)`` pairs. The kind column holds
            ``"mass"`` (value in g) or ``"volume"`` (value in L) per row.
        suffix (str, optional): Suffix appended to generated columns.

    Returns:
        pandas.DataFrame: Copy of ``df`` with formatted string columns added.
        Rows with a missing or non-finite amount get an empty string.

    Raises:
        KeyError: If a value or kind column is absent.
        ValueError: If a finite amount has an unrecognized kind.
    """
    out = df.copy()
    for value_col, kind_col in value_kind_pairs:
        if value_col not in out.columns:
            raise KeyError(f"Missing value column '{value_col}' for display format.")
        if kind_col not in out.columns:
            raise KeyError(
                f"Missing kind column '{kind_col}' required for '{value_col}'."
            )

        values = pd.to_numeric(out[value_col], errors="coerce")
        out[f"{value_col}{suffix}"] = [
            format_amount(v, k) if np.isfinite(v) else ""
            for v, k in zip(values, out[kind_col])
        ]
    return out
