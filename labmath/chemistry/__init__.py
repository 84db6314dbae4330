"""
Chemistry models for formula handling and buffer preparation.

Modules:
    periodic_table:
        Standard atomic weights (IUPAC abridged values, g/mol).

    formula:
        Tokenizer and stack-based parser for condensed formulas with nested
        groups and hydrate/adduct segments (``CuSO4·5H2O``).

    weight:
        Molecular weight and mass fractions from a parsed composition.

    buffer:
        Henderson-Hasselbalch acid/base split and salt-mix or titration
        recipes.

    buffer_region:
        Buffering-range test |pH − pKa| ≤ 1.5 and the advisory raised outside
        it.

    library:
        Reference conjugate systems and strong acid/base adjuster stocks.

Design Principle:
    This subpackage has no dependencies on plotting or matplotlib.
"""

from .buffer import solve_buffer_recipe
from .formula import parse_formula
from .weight import formula_weight, molecular_weight

__all__ = ["parse_formula", "molecular_weight", "formula_weight", "solve_buffer_recipe"]
