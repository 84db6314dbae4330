"""Tests for Henderson-Hasselbalch buffer recipes."""

import math
import warnings

import numpy as np
import pytest

from labmath.chemistry.buffer import (
    SALT_MIX,
    TITRATION,
    SaltMixRecipe,
    StockAdjuster,
    TitrationRecipe,
    henderson_hasselbalch_split,
    solve_buffer_recipe,
    speciation_fractions,
)
from labmath.chemistry.buffer_region import (
    buffering_advisory,
    select_buffer_region,
    within_buffering_range,
)
from labmath.chemistry.library import DEFAULT_ADJUSTERS, get_system
from labmath.errors import (
    IncompatibleAdjuster,
    IncompatibleMethod,
    InvalidQuantity,
    UnknownUnit,
)
from labmath.units import Quantity

HCL_1M = DEFAULT_ADJUSTERS["hcl_1m"]
NAOH_1M = DEFAULT_ADJUSTERS["naoh_1m"]


class TestSpeciesSplit:
    def test_equal_split_at_pka(self):
        split = henderson_hasselbalch_split(8.06, 8.06, 0.1)
        assert split.ratio == 1.0
        assert math.isclose(split.acid_concentration_m, 0.05)
        assert math.isclose(split.base_concentration_m, 0.05)

    def test_one_unit_above_pka(self):
        split = henderson_hasselbalch_split(5.76, 4.76, 0.11)
        assert math.isclose(split.ratio, 10.0)
        assert math.isclose(split.acid_concentration_m, 0.01)
        assert math.isclose(split.base_concentration_m, 0.1)

    def test_components_sum_to_total(self):
        split = henderson_hasselbalch_split(7.4, 7.21, 0.05)
        assert math.isclose(split.total_m, 0.05)

    @pytest.mark.parametrize("ph", [400.0, 1e6])
    def test_far_basic_target_is_all_base(self, ph):
        split = henderson_hasselbalch_split(ph, 7.0, 0.1)
        assert split.ratio == math.inf
        assert split.acid_concentration_m == 0.0
        assert split.base_concentration_m == 0.1

    def test_far_acidic_target_is_all_acid(self):
        split = henderson_hasselbalch_split(-400.0, 7.0, 0.1)
        assert split.ratio == 0.0
        assert split.acid_concentration_m == 0.1
        assert split.base_concentration_m == 0.0

    def test_speciation_fractions_are_complementary(self):
        pH = np.linspace(3.0, 11.0, 9)
        acid, base = speciation_fractions(pH, 7.0)
        assert np.allclose(acid + base, 1.0)
        assert np.isclose(base[4], 0.5)
        assert np.all(np.diff(base) > 0)


class TestTitration:
    def test_tris_with_hcl_at_pka(self):
        recipe = solve_buffer_recipe(
            get_system("tris"),
            8.06,
            Quantity(100, "mM"),
            Quantity(1, "L"),
            method=TITRATION,
            adjuster=HCL_1M,
        )
        assert isinstance(recipe, TitrationRecipe)
        assert recipe.start.reagent.name == "Tris Base"
        assert math.isclose(recipe.start.mass_g, 12.114)
        assert math.isclose(recipe.adjuster_moles, 0.05)
        assert math.isclose(recipe.adjuster_volume_l, 0.05)
        assert recipe.advisory is None

    def test_stronger_adjuster_needs_less_volume(self):
        system = get_system("tris")
        args = (system, 8.06, Quantity(100, "mM"), Quantity(1, "L"))
        weak = solve_buffer_recipe(*args, adjuster=HCL_1M)
        strong = solve_buffer_recipe(*args, adjuster=DEFAULT_ADJUSTERS["hcl_5m"])
        assert math.isclose(strong.adjuster_volume_l * 5, weak.adjuster_volume_l)

    def test_hepes_with_naoh_creates_base_share(self):
        recipe = solve_buffer_recipe(
            get_system("hepes"),
            8.48,
            Quantity(50, "mM"),
            Quantity(500, "mL"),
            adjuster=NAOH_1M,
        )
        # ratio 10: base share is 10/11 of 0.05 M in 0.5 L
        assert math.isclose(recipe.adjuster_moles, 0.05 * 10 / 11 * 0.5)
        assert math.isclose(recipe.start.mass_g, 0.05 * 0.5 * 238.3)

    def test_acid_adjuster_without_base_form(self):
        with pytest.raises(IncompatibleAdjuster, match="base form of HEPES"):
            solve_buffer_recipe(
                get_system("hepes"), 7.5, Quantity(50, "mM"), Quantity(1, "L"), adjuster=HCL_1M
            )

    def test_missing_adjuster(self):
        with pytest.raises(IncompatibleAdjuster, match="requires a stock adjuster"):
            solve_buffer_recipe(get_system("tris"), 8.0, Quantity(50, "mM"), Quantity(1, "L"))

    def test_incompatible_adjuster_is_incompatible_method(self):
        assert issubclass(IncompatibleAdjuster, IncompatibleMethod)


class TestSaltMix:
    def test_phosphate_at_pka(self):
        recipe = solve_buffer_recipe(
            get_system("phosphate"),
            7.21,
            Quantity(0.1, "M"),
            Quantity(1, "L"),
            method=SALT_MIX,
        )
        assert isinstance(recipe, SaltMixRecipe)
        assert math.isclose(recipe.acid.mass_g, 0.05 * 119.98)
        assert math.isclose(recipe.base.mass_g, 0.05 * 141.96)
        assert [c.reagent.formula for c in recipe.components] == ["NaH2PO4", "Na2HPO4"]

    def test_system_without_salt_pair(self):
        with pytest.raises(IncompatibleMethod, match="salt pair"):
            solve_buffer_recipe(
                get_system("hepes"), 7.48, Quantity(10, "mM"), Quantity(1, "L"), method=SALT_MIX
            )


class TestAdvisory:
    def test_outside_range_warns_and_annotates(self):
        with pytest.warns(UserWarning, match="outside the buffering range"):
            recipe = solve_buffer_recipe(
                get_system("acetate"),
                7.0,
                Quantity(100, "mM"),
                Quantity(1, "L"),
                method=SALT_MIX,
            )
        assert recipe.advisory is not None
        assert "3.76 to 5.76" in recipe.advisory

    def test_absurd_ph_still_computes_with_advisory(self):
        with pytest.warns(UserWarning, match="outside the buffering range"):
            recipe = solve_buffer_recipe(
                get_system("phosphate"),
                500.0,
                Quantity(0.1, "M"),
                Quantity(1, "L"),
                method=SALT_MIX,
            )
        assert recipe.acid.mass_g == 0.0
        assert math.isclose(recipe.base.mass_g, 0.1 * 141.96)

    def test_edge_of_range_does_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            recipe = solve_buffer_recipe(
                get_system("acetate"),
                6.26,
                Quantity(100, "mM"),
                Quantity(1, "L"),
                method=SALT_MIX,
            )
        assert recipe.advisory is None


class TestInputValidation:
    def test_unknown_method(self):
        with pytest.raises(IncompatibleMethod, match="method must be one of"):
            solve_buffer_recipe(
                get_system("tris"), 8.0, Quantity(1, "M"), Quantity(1, "L"), method="boil"
            )

    def test_mass_concentration_rejected(self):
        with pytest.raises(UnknownUnit, match="molar concentration unit"):
            solve_buffer_recipe(
                get_system("tris"), 8.0, Quantity(12, "g/L"), Quantity(1, "L"), adjuster=HCL_1M
            )

    def test_non_finite_ph(self):
        with pytest.raises(InvalidQuantity, match="Target pH must be finite"):
            solve_buffer_recipe(
                get_system("tris"), float("nan"), Quantity(1, "M"), Quantity(1, "L"), adjuster=HCL_1M
            )

    @pytest.mark.parametrize(
        "conc, volume",
        [(Quantity(0, "mM"), Quantity(1, "L")), (Quantity(10, "mM"), Quantity(-1, "L"))],
    )
    def test_non_positive_amounts(self, conc, volume):
        with pytest.raises(InvalidQuantity):
            solve_buffer_recipe(get_system("tris"), 8.0, conc, volume, adjuster=HCL_1M)


class TestStockAdjuster:
    def test_invalid_polarity(self):
        with pytest.raises(ValueError, match="polarity"):
            StockAdjuster("x", "Mystery", 1.0, "neutral")

    def test_invalid_molarity(self):
        with pytest.raises(InvalidQuantity, match="Molarity of HCl 0M"):
            StockAdjuster("hcl_0m", "HCl 0M", 0.0, "acid")


class TestBufferRegion:
    def test_mask(self):
        mask = select_buffer_region(np.array([5.0, 6.5, 7.0, 9.0]), 7.0)
        assert mask.tolist() == [False, True, True, False]

    def test_non_finite_pka(self):
        with pytest.raises(ValueError, match="pKa must be finite"):
            select_buffer_region(np.array([7.0]), float("nan"))

    def test_within_range_and_advisory(self):
        assert within_buffering_range(8.5, 7.48)
        assert not within_buffering_range(9.1, 7.48)
        assert buffering_advisory(7.5, 7.48) is None
        assert "pKa 7.48" in buffering_advisory(9.1, 7.48)
