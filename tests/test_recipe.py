"""Tests for solute requirements and preparation sheets."""

import math

import numpy as np
import pytest

from labmath.errors import ImpossibleDilution, InvalidQuantity, MissingMolecularWeight
from labmath.recipe import (
    DEFAULT_RECIPES,
    SHEET_COLUMNS,
    DirectWeigh,
    Recipe,
    StockBacked,
    get_recipe,
    preparation_sheet,
    solute_requirement,
)
from labmath.units import Quantity

ONE_LITER = Quantity(1, "L")


class TestSoluteRequirement:
    def test_molar_target_weighs_mass(self):
        req = solute_requirement(DirectWeigh("NaCl", 58.44, Quantity(1.37, "M")), ONE_LITER)
        assert req.kind == "mass"
        assert math.isclose(req.amount, 80.0628)
        assert str(req) == "80.063 g"

    def test_molar_target_needs_mw(self):
        with pytest.raises(MissingMolecularWeight):
            solute_requirement(DirectWeigh("Mystery", None, Quantity(1, "M")), ONE_LITER)

    def test_percent_wv(self):
        req = solute_requirement(
            DirectWeigh("SDS", 288.38, Quantity(0.1, "pct")), Quantity(500, "mL")
        )
        assert req.kind == "mass"
        assert math.isclose(req.amount, 0.5)

    def test_mass_concentration_ignores_mw(self):
        req = solute_requirement(DirectWeigh("BSA", None, Quantity(2, "mg/mL")), Quantity(50, "mL"))
        assert math.isclose(req.amount, 0.1)

    def test_dilution_factor_gives_volume(self):
        req = solute_requirement(DirectWeigh("PBS 10X", None, Quantity(10, "X")), ONE_LITER)
        assert req.kind == "volume"
        assert math.isclose(req.amount, 0.1)

    def test_stock_backed_uses_dilution(self):
        edta = StockBacked("EDTA", 292.24, Quantity(50, "mM"), Quantity(0.5, "M"))
        req = solute_requirement(edta, ONE_LITER)
        assert req.kind == "volume"
        assert math.isclose(req.amount, 0.1)

    def test_stock_backed_failure_propagates(self):
        weak = StockBacked("EDTA", 292.24, Quantity(1, "M"), Quantity(0.5, "M"))
        with pytest.raises(ImpossibleDilution):
            solute_requirement(weak, ONE_LITER)

    def test_non_positive_target(self):
        with pytest.raises(InvalidQuantity, match="Target of NaCl"):
            solute_requirement(DirectWeigh("NaCl", 58.44, Quantity(0, "M")), ONE_LITER)


class TestPreparationSheet:
    def test_pbs_sheet(self):
        sheet = preparation_sheet(get_recipe("pbs-10x"))
        assert list(sheet.columns) == SHEET_COLUMNS
        assert len(sheet) == 4

        nacl = sheet.set_index("Solute").loc["NaCl"]
        assert math.isclose(nacl["Amount (base)"], 80.0628)
        assert nacl["Amount"] == "80.063 g"
        assert nacl["Target"] == "1.37 M"
        assert nacl["Source"] == "powder"
        assert nacl["Error"] == ""

    def test_scale_multiplies_amounts(self):
        full = preparation_sheet(get_recipe("tris-hcl-1m"))
        half = preparation_sheet(get_recipe("tris-hcl-1m"), scale=0.5)
        assert math.isclose(half.loc[0, "Amount (base)"] * 2, full.loc[0, "Amount (base)"])

    def test_invalid_scale(self):
        with pytest.raises(InvalidQuantity, match="Scale"):
            preparation_sheet(get_recipe("tris-hcl-1m"), scale=0)

    def test_stock_row(self):
        sheet = preparation_sheet(get_recipe("tae-50x")).set_index("Solute")
        edta = sheet.loc["EDTA (0.5M, pH 8.0)"]
        assert edta["Amount Kind"] == "volume"
        assert edta["Amount"] == "100 mL"
        assert edta["Source"] == "stock 0.5 M"

    def test_failed_row_is_kept(self):
        recipe = Recipe(
            "custom",
            "Custom",
            ONE_LITER,
            (
                DirectWeigh("NaCl", 58.44, Quantity(150, "mM")),
                DirectWeigh("Unknown salt", None, Quantity(10, "mM")),
            ),
        )
        sheet = preparation_sheet(recipe)
        assert len(sheet) == 2
        bad = sheet.iloc[1]
        assert "Molecular weight is required" in bad["Error"]
        assert bad["Amount"] == ""
        assert np.isnan(bad["Amount (base)"])
        assert np.isnan(bad["MW (g/mol)"])
        assert sheet.iloc[0]["Error"] == ""

    def test_empty_recipe(self):
        sheet = preparation_sheet(Recipe("empty", "Empty", ONE_LITER))
        assert sheet.empty
        assert list(sheet.columns) == SHEET_COLUMNS


@pytest.mark.parametrize("key", sorted(DEFAULT_RECIPES))
def test_every_library_recipe_computes(key):
    sheet = preparation_sheet(get_recipe(key))
    assert (sheet["Error"] == "").all()
    assert (sheet["Amount (base)"] > 0).all()


def test_library_keys():
    assert set(DEFAULT_RECIPES) == {
        "pbs-10x",
        "tae-50x",
        "tbe-10x",
        "tris-hcl-1m",
        "hbss",
        "te-10x",
        "tbst-10x",
        "ssc-20x",
        "ripa",
    }


def test_get_recipe_unknown():
    with pytest.raises(KeyError, match="Unknown recipe"):
        get_recipe("lb-broth")
