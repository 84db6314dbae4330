"""Tests for display formatting of amounts and concentrations."""

import numpy as np
import pandas as pd
import pytest

from labmath.reporting import (
    add_formatted_columns,
    format_amount,
    format_concentration,
    format_mass,
    format_significant,
    format_volume,
)


@pytest.mark.parametrize(
    "liters, expected",
    [
        (1e-9, "1 nL"),
        (2.5e-7, "250 nL"),
        (5e-6, "5 μL"),
        (0.05, "50 mL"),
        (0.1, "100 mL"),
        (0.0125, "12.5 mL"),
        (1.0, "1 L"),
        (2.25, "2.25 L"),
    ],
)
def test_format_volume(liters, expected):
    assert format_volume(liters) == expected


@pytest.mark.parametrize(
    "grams, expected",
    [
        (5e-9, "5 ng"),
        (2e-5, "20 μg"),
        (0.05, "50 mg"),
        (0.00124, "1.2 mg"),
        (2.5, "2.5 g"),
        (80.0628, "80.063 g"),
    ],
)
def test_format_mass(grams, expected):
    assert format_mass(grams) == expected


def test_format_rejects_non_finite():
    with pytest.raises(ValueError, match="non-finite volume"):
        format_volume(float("inf"))
    with pytest.raises(ValueError, match="non-finite mass"):
        format_mass(float("nan"))


class TestFormatConcentration:
    def test_unit_precision(self):
        assert format_concentration(1.23456, "M") == "1.235"
        assert format_concentration(27.04, "mM") == "27"
        assert format_concentration(0.126, "pct") == "0.13"
        assert format_concentration("10", "X") == "10"

    def test_alias_units_use_canonical_precision(self):
        assert format_concentration(1.26, "uM") == "1.3"

    def test_unknown_unit_passes_value_through(self):
        assert format_concentration(0.123456, "nM") == "0.123456"
        assert format_concentration(3.0, "whatever") == "3"

    @pytest.mark.parametrize("value", ["abc", None, float("nan")])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ValueError, match="must be numeric"):
            format_concentration(value, "M")


def test_format_significant():
    assert format_significant(0) == "0"
    assert format_significant(1.23456789) == "1.23457"
    assert format_significant(1.5e-7) == "1.5000e-07"
    assert format_significant(80.0628) == "80.0628"


def test_format_amount_unknown_kind():
    assert format_amount(0.5, "volume") == "500 mL"
    with pytest.raises(ValueError, match="Unknown amount kind"):
        format_amount(1.0, "moles")


def test_add_formatted_columns_per_row_kind():
    df = pd.DataFrame(
        {
            "Amount (base)": [80.0628, 0.1, np.nan],
            "Amount Kind": ["mass", "volume", ""],
        }
    )
    out = add_formatted_columns(df, [("Amount (base)", "Amount Kind")])

    assert list(out["Amount (base) (display)"]) == ["80.063 g", "100 mL", ""]
    assert "Amount (base) (display)" not in df.columns


def test_add_formatted_columns_missing_kind_column():
    df = pd.DataFrame({"Amount (base)": [1.0]})
    with pytest.raises(KeyError, match="Missing kind column"):
        add_formatted_columns(df, [("Amount (base)", "Amount Kind")])


# suffix -> (display units per base unit, decimals shown)
_DISPLAY_SCALES = {
    "nL": (1e9, 1),
    "μL": (1e6, 1),
    "mL": (1e3, 3),
    "L": (1.0, 3),
    "ng": (1e9, 1),
    "μg": (1e6, 1),
    "mg": (1e3, 1),
    "g": (1.0, 3),
}


@pytest.mark.parametrize(
    "formatter, value, suffix",
    [
        (format_volume, 3.21e-7, "nL"),
        (format_volume, 4.567e-5, "μL"),
        (format_volume, 0.0123456, "mL"),
        (format_volume, 1.23456, "L"),
        (format_mass, 7.89e-8, "ng"),
        (format_mass, 3.3333e-4, "μg"),
        (format_mass, 0.0456789, "mg"),
        (format_mass, 12.34567, "g"),
    ],
)
def test_formatted_number_reparses_within_display_precision(formatter, value, suffix):
    number, shown_suffix = formatter(value).split(" ")
    assert shown_suffix == suffix

    scale, decimals = _DISPLAY_SCALES[suffix]
    assert abs(float(number) / scale - value) <= 0.5 * 10 ** -decimals / scale + 1e-15
