"""Multi-solute recipes and their preparation sheets.

A recipe lists the solutes of a solution and the final volume. Each solute is
either weighed directly (:class:`DirectWeigh`) or pipetted from a stock
solution (:class:`StockBacked`); :func:`solute_requirement` turns one solute
into a mass in grams or a volume in liters, and :func:`preparation_sheet`
tabulates the whole recipe with pandas.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from labmath.dilution import solve_dilution
from labmath.errors import LabMathError, UnknownUnit
from labmath.reporting import add_formatted_columns, format_amount, format_concentration
from labmath.units import (
    DILUTION,
    DILUTION_FACTOR,
    MASS,
    MOLAR,
    PERCENT_WV,
    Quantity,
    require_positive,
    validate_molecular_weight,
    volume_to_liters,
)

logger = logging.getLogger(__name__)

MASS_KIND = "mass"
VOLUME_KIND = "volume"

SHEET_COLUMNS = [
    "Solute",
    "MW (g/mol)",
    "Target",
    "Source",
    "Amount",
    "Amount Kind",
    "Amount (base)",
    "Error",
]


@dataclass(frozen=True)
class DirectWeigh:
    """A solute weighed as powder (or measured neat for ``X`` concentrates)."""

    name: str
    mw: Optional[float]
    target: Quantity


@dataclass(frozen=True)
class StockBacked:
    """A solute pipetted from a stock solution of known strength."""

    name: str
    mw: Optional[float]
    target: Quantity
    stock: Quantity


Solute = Union[DirectWeigh, StockBacked]


@dataclass(frozen=True)
class Requirement:
    """How much of a solute to take: grams for ``mass``, liters for ``volume``."""

    kind: str
    amount: float

    def __str__(self) -> str:
        return format_amount(self.amount, self.kind)


@dataclass(frozen=True)
class Recipe:
    key: str
    name: str
    total_volume: Quantity
    solutes: Tuple[Solute, ...] = field(default_factory=tuple)
    description: str = ""


def solute_requirement(solute: Solute, total_volume: Quantity) -> Requirement:
    """Compute the amount of ``solute`` needed for ``total_volume`` of solution.

    Args:
        solute (DirectWeigh | StockBacked): The solute and its target.
        total_volume (Quantity): Final volume of the whole recipe.

    Returns:
        Requirement: A mass in g for weighed solutes, a volume in L for stock
        solutions and ``X`` concentrates.

    Raises:
        MissingMolecularWeight: If a molar target has no usable MW.
        UnknownUnit: If the target unit is not a concentration or ``X``.
        InvalidQuantity: If the volume or target is not positive.
        ImpossibleDilution: If a stock cannot reach its target.
    """
    volume_l = require_positive(
        "Total volume", volume_to_liters(total_volume.value, total_volume.unit)
    )
    target = solute.target

    if isinstance(solute, StockBacked):
        result = solve_dilution(solute.stock, target, total_volume, mw=solute.mw)
        return Requirement(VOLUME_KIND, result.stock_volume_l)

    value = require_positive(f"Target of {solute.name}", target.value)
    if target.family == DILUTION:
        return Requirement(VOLUME_KIND, volume_l / value)
    if target.domain == MOLAR:
        mw = validate_molecular_weight(solute.mw)
        return Requirement(MASS_KIND, target.to_base() * volume_l * mw)
    if target.unit == PERCENT_WV:
        # w/v percent is grams per 100 mL.
        return Requirement(MASS_KIND, value / 100.0 * volume_l * 1000.0)
    if target.domain == MASS:
        return Requirement(MASS_KIND, target.to_base() * volume_l)
    raise UnknownUnit(target.unit, expected="concentration unit")


def _describe_source(solute: Solute) -> str:
    if isinstance(solute, StockBacked):
        stock = solute.stock
        return f"stock {format_concentration(stock.value, stock.unit)} {stock.unit}"
    if solute.target.unit == DILUTION_FACTOR:
        return "concentrate"
    return "powder"


def scaled_volume(recipe: Recipe, scale: float = 1.0) -> Quantity:
    factor = require_positive("Scale", scale)
    return Quantity(recipe.total_volume.value * factor, recipe.total_volume.unit)


def preparation_sheet(recipe: Recipe, scale: float = 1.0) -> pd.DataFrame:
    """Tabulate what to weigh or pipette for every solute of ``recipe``.

    Args:
        recipe (Recipe): The recipe to prepare.
        scale (float, optional): Multiplier on the recipe's total volume.

    Returns:
        pandas.DataFrame: One row per solute in :data:`SHEET_COLUMNS` order.
        A solute whose amount cannot be computed keeps its row with an empty
        amount, ``NaN`` base amount and the error message.
    """
    volume = scaled_volume(recipe, scale)

    rows: List[Dict[str, object]] = []
    for solute in recipe.solutes:
        row: Dict[str, object] = {
            "Solute": solute.name,
            "MW (g/mol)": np.nan if solute.mw is None else float(solute.mw),
            "Target": (
                f"{format_concentration(solute.target.value, solute.target.unit)} "
                f"{solute.target.unit}"
            ),
            "Source": _describe_source(solute),
            "Amount Kind": "",
            "Amount (base)": np.nan,
            "Error": "",
        }
        try:
            requirement = solute_requirement(solute, volume)
        except LabMathError as exc:
            logger.warning("%s: %s", solute.name, exc)
            row["Error"] = str(exc)
        else:
            row["Amount Kind"] = requirement.kind
            row["Amount (base)"] = requirement.amount
        rows.append(row)

    sheet = pd.DataFrame(rows, columns=[c for c in SHEET_COLUMNS if c != "Amount"])
    sheet = add_formatted_columns(sheet, [("Amount (base)", "Amount Kind")])
    sheet = sheet.rename(columns={"Amount (base) (display)": "Amount"})
    logger.debug("Preparation sheet for %s at %s: %d rows", recipe.name, volume, len(sheet))
    return sheet[SHEET_COLUMNS]


def _weigh(name: str, mw: float, value: float, unit: str) -> DirectWeigh:
    return DirectWeigh(name, mw, Quantity(value, unit))


_LITER = Quantity(1000, "mL")

DEFAULT_RECIPES: Dict[str, Recipe] = {
    recipe.key: recipe
    for recipe in (
        Recipe(
            "pbs-10x",
            "PBS (10X)",
            _LITER,
            (
                _weigh("NaCl", 58.44, 1.37, "M"),
                _weigh("KCl", 74.55, 27, "mM"),
                _weigh("Na2HPO4", 141.96, 100, "mM"),
                _weigh("KH2PO4", 136.09, 18, "mM"),
            ),
            "Phosphate buffered saline, 10X concentrate.",
        ),
        Recipe(
            "tae-50x",
            "TAE (50X)",
            _LITER,
            (
                _weigh("Tris Base", 121.14, 2, "M"),
                _weigh("Glacial Acetic Acid", 60.05, 1, "M"),
                StockBacked(
                    "EDTA (0.5M, pH 8.0)",
                    292.24,
                    Quantity(50, "mM"),
                    Quantity(0.5, "M"),
                ),
            ),
            "Tris-acetate-EDTA electrophoresis buffer, 50X concentrate.",
        ),
        Recipe(
            "tbe-10x",
            "TBE (10X)",
            _LITER,
            (
                _weigh("Tris Base", 121.14, 0.89, "M"),
                _weigh("Boric Acid", 61.83, 0.89, "M"),
                _weigh("EDTA", 292.24, 20, "mM"),
            ),
            "Tris-borate-EDTA for DNA/RNA electrophoresis, 10X concentrate.",
        ),
        Recipe(
            "tris-hcl-1m",
            "Tris-HCl (1M)",
            _LITER,
            (_weigh("Tris Base", 121.14, 1, "M"),),
            "1 M Tris; adjust pH with HCl.",
        ),
        Recipe(
            "hbss",
            "HBSS",
            _LITER,
            (
                _weigh("NaCl", 58.44, 137.93, "mM"),
                _weigh("KCl", 74.55, 5.33, "mM"),
                _weigh("CaCl2", 110.98, 1.26, "mM"),
                _weigh("MgCl2·6H2O", 203.31, 0.49, "mM"),
                _weigh("MgSO4·7H2O", 246.47, 0.41, "mM"),
                _weigh("Na2HPO4", 141.96, 0.34, "mM"),
                _weigh("KH2PO4", 136.09, 0.44, "mM"),
                _weigh("Glucose", 180.16, 5.56, "mM"),
                _weigh("NaHCO3", 84.01, 4.17, "mM"),
            ),
            "Hank's balanced salt solution for cell washing and transport.",
        ),
        Recipe(
            "te-10x",
            "TE Buffer (10X)",
            _LITER,
            (
                _weigh("Tris Base", 121.14, 100, "mM"),
                StockBacked(
                    "EDTA (0.5M, pH 8.0)",
                    292.24,
                    Quantity(10, "mM"),
                    Quantity(0.5, "M"),
                ),
            ),
            "Tris-EDTA DNA/RNA storage buffer, 10X concentrate.",
        ),
        Recipe(
            "tbst-10x",
            "TBS-T (10X)",
            _LITER,
            (
                _weigh("Tris Base", 121.14, 200, "mM"),
                _weigh("NaCl", 58.44, 1.5, "M"),
                _weigh("Tween-20", 1227.5, 1, "pct"),
            ),
            "Tris-buffered saline with Tween-20, 10X western blot wash.",
        ),
        Recipe(
            "ssc-20x",
            "SSC Buffer (20X)",
            _LITER,
            (
                _weigh("NaCl", 58.44, 3, "M"),
                _weigh("Trisodium Citrate·2H2O", 294.1, 300, "mM"),
            ),
            "Saline-sodium citrate for hybridization, 20X concentrate.",
        ),
        Recipe(
            "ripa",
            "RIPA Lysis Buffer",
            _LITER,
            (
                _weigh("Tris Base", 121.14, 50, "mM"),
                _weigh("NaCl", 58.44, 150, "mM"),
                _weigh("NP-40 / IGEPAL CA-630", 602.8, 1, "pct"),
                _weigh("Sodium Deoxycholate", 414.55, 0.5, "pct"),
                _weigh("SDS", 288.38, 0.1, "pct"),
            ),
            "Radioimmunoprecipitation assay buffer for cell lysis.",
        ),
    )
}


def get_recipe(key: str) -> Recipe:
    try:
        return DEFAULT_RECIPES[key.lower()]
    except KeyError:
        raise KeyError(
            f"Unknown recipe '{key}'. Available: {sorted(DEFAULT_RECIPES)}"
        ) from None
