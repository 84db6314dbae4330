"""Molecular weight and elemental mass fractions of a composition."""

from __future__ import annotations

import logging
from typing import Dict

from labmath.chemistry.formula import Composition, parse_formula
from labmath.chemistry.periodic_table import atomic_weight

logger = logging.getLogger(__name__)


def molecular_weight(composition: Composition) -> float:
    """Sum ``atomic_weight(symbol) * count`` over a composition.

    Args:
        composition: Element -> count mapping, normally produced by
            :func:`labmath.chemistry.formula.parse_formula`.

    Returns:
        float: Molecular weight in g/mol.

    Note:
        Compositions from the parser only contain validated symbols, so the
        lookup cannot fail for them. A hand-built mapping with an unknown
        symbol raises ``KeyError``.
    """
    return float(
        sum(atomic_weight(symbol) * count for symbol, count in composition.items())
    )


def formula_weight(formula: str) -> float:
    """Parse ``formula`` and return its molecular weight in g/mol."""
    mw = molecular_weight(parse_formula(formula))
    logger.debug("Molecular weight of %s = %.4f g/mol", formula, mw)
    return mw


def mass_fractions(composition: Composition) -> Dict[str, float]:
    """Return each element's share of the molecular weight, in percent.

    The percentages sum to 100 (to floating point precision). Keys follow the
    iteration order of ``composition``.
    """
    total = molecular_weight(composition)
    if total <= 0:
        raise ValueError("Composition has no mass; cannot compute fractions.")
    return {
        symbol: 100.0 * atomic_weight(symbol) * count / total
        for symbol, count in composition.items()
    }
