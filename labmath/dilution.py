"""Solve C1·V1 = C2·V2 across units and concentration domains.

The stock and target concentrations may be expressed in different domains
(e.g. a 500 g/L stock diluted to 50 mM). In that case the stock is bridged
into the target's domain through the molecular weight before solving.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from labmath.errors import ImpossibleDilution, InvalidQuantity
from labmath.units import Quantity, bridge, concentration_to_base, volume_to_liters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DilutionResult:
    """Volumes, in liters, needed to prepare the target solution."""

    stock_volume_l: float
    solvent_volume_l: float

    @property
    def dilution_factor(self) -> float:
        return (self.stock_volume_l + self.solvent_volume_l) / self.stock_volume_l


def solve_dilution(
    stock: Quantity,
    target: Quantity,
    final_volume: Quantity,
    mw: Optional[float] = None,
) -> DilutionResult:
    """Compute the stock volume and solvent volume for a dilution.

    Args:
        stock (Quantity): Stock concentration ``C1``.
        target (Quantity): Target concentration ``C2``.
        final_volume (Quantity): Final volume ``V2`` of the target solution.
        mw (float, optional): Molecular weight in g/mol. Only needed when
            ``stock`` and ``target`` are in different domains.

    Returns:
        DilutionResult: ``V1`` and ``V2 - V1`` in liters.

    Raises:
        UnknownUnit: If either concentration is not a concentration unit or
            the final volume is not a volume unit.
        MissingMolecularWeight: If the domains differ and ``mw`` is unusable.
        InvalidQuantity: If the final volume is not positive and finite.
        ImpossibleDilution: If ``V1`` is non-finite, not positive, or not
            smaller than ``V2`` (the stock is weaker than or equal to the
            target).
    """
    c1_base, domain1 = concentration_to_base(stock.value, stock.unit)
    c2_base, domain2 = concentration_to_base(target.value, target.unit)

    if domain1 != domain2:
        c1_base = bridge(c1_base, domain1, domain2, mw)

    v2_l = volume_to_liters(final_volume.value, final_volume.unit)
    if not math.isfinite(v2_l) or v2_l <= 0:
        raise InvalidQuantity("Final volume", final_volume.value)

    try:
        v1_l = (c2_base * v2_l) / c1_base
    except ZeroDivisionError:
        v1_l = math.inf

    if not math.isfinite(v1_l) or v1_l <= 0:
        raise ImpossibleDilution(
            f"Stock {stock} cannot be diluted to {target}: "
            "the required stock volume is not a positive finite number.",
        )
    # Stock must be strictly stronger than the target.
    if v1_l > v2_l or c1_base <= c2_base:
        raise ImpossibleDilution(
            f"Stock {stock} is not stronger than target {target}; it would need "
            f"{v1_l:g} L of stock for a {v2_l:g} L final volume.",
            stock_volume_l=v1_l,
        )

    result = DilutionResult(stock_volume_l=v1_l, solvent_volume_l=v2_l - v1_l)
    logger.debug(
        "Dilution %s -> %s in %s: V1=%.6g L, solvent=%.6g L",
        stock,
        target,
        final_volume,
        result.stock_volume_l,
        result.solvent_volume_l,
    )
    return result
