"""Write preparation sheets and buffer recipes to CSV files."""

from __future__ import annotations

import logging
import os
import re
from typing import List

import pandas as pd

from .chemistry.buffer import BufferRecipe, SaltMixRecipe
from .reporting import add_formatted_columns

logger = logging.getLogger(__name__)


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_") or "sheet"


def buffer_recipe_table(recipe: BufferRecipe) -> pd.DataFrame:
    """Flatten a buffer recipe into one row per reagent to measure.

    Columns are ``Reagent``, ``Role``, ``Amount Kind``, ``Amount (base)`` and
    the formatted ``Amount``.
    """
    rows: List[dict] = []
    if isinstance(recipe, SaltMixRecipe):
        for role, component in (("acid", recipe.acid), ("base", recipe.base)):
            rows.append(
                {
                    "Reagent": component.reagent.name,
                    "Role": f"{role} component",
                    "Amount Kind": "mass",
                    "Amount (base)": component.mass_g,
                }
            )
    else:
        rows.append(
            {
                "Reagent": recipe.start.reagent.name,
                "Role": "starting form",
                "Amount Kind": "mass",
                "Amount (base)": recipe.start.mass_g,
            }
        )
        rows.append(
            {
                "Reagent": recipe.adjuster.name,
                "Role": f"{recipe.adjuster.polarity} adjuster",
                "Amount Kind": "volume",
                "Amount (base)": recipe.adjuster_volume_l,
            }
        )
    table = pd.DataFrame(rows, columns=["Reagent", "Role", "Amount Kind", "Amount (base)"])
    table = add_formatted_columns(table, [("Amount (base)", "Amount Kind")])
    return table.rename(columns={"Amount (base) (display)": "Amount"})


def save_preparation_sheet(
    sheet: pd.DataFrame, output_dir: str = "output", filename: str = "preparation_sheet.csv"
) -> str:
    """Save a preparation sheet (or any result table) to CSV.

    Args:
        sheet (pandas.DataFrame): Table from
            :func:`labmath.recipe.preparation_sheet` or
            :func:`buffer_recipe_table`.
        output_dir (str): Directory for the file; created if missing.
        filename (str): File name. A name without an extension gets
            ``.csv`` appended and is slugified.

    Returns:
        str: Path of the written CSV file.
    """
    os.makedirs(output_dir, exist_ok=True)
    if not filename.lower().endswith(".csv"):
        filename = f"{_slug(filename)}.csv"
    path = os.path.join(output_dir, filename)
    sheet.to_csv(path, index=False)
    logger.info("Saved preparation sheet to %s", path)
    return path
