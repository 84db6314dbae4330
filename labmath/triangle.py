"""Mass / volume / concentration / molecular-weight triangle.

All four quantities are tied by

    mass (g) = C (M) · V (L) · MW (g/mol)

so any one of them follows from the other three. :func:`solve_triangle` is
the stateless solver; :class:`TriangleForm` is an immutable form state that
re-derives the designated unknown whenever one of the knowns is edited.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from labmath.errors import InvalidQuantity, LabMathError, UnknownUnit
from labmath.units import (
    MASS_AMOUNT,
    MOLAR,
    VOLUME,
    Quantity,
    base_unit,
    bridge,
    canonical_unit,
    concentration_to_base,
    mass_to_grams,
    require_positive,
    volume_to_liters,
)

logger = logging.getLogger(__name__)

MW_UNIT = "g/mol"


class SolveFor(str, Enum):
    MASS = "mass"
    VOLUME = "volume"
    CONCENTRATION = "concentration"
    MW = "mw"


DEFAULT_UNITS = {
    SolveFor.MASS: "g",
    SolveFor.VOLUME: "mL",
    SolveFor.CONCENTRATION: "M",
    SolveFor.MW: MW_UNIT,
}


@dataclass(frozen=True)
class TriangleResult:
    """The solved quantity in its base unit and in the requested unit."""

    solve_for: SolveFor
    value_base: float
    base_unit: str
    value: float
    unit: str

    def as_quantity(self) -> Optional[Quantity]:
        if self.solve_for is SolveFor.MW:
            return None
        return Quantity(self.value, self.unit)


def _check_known(name: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return require_positive(name, value)


def _molar_concentration(
    concentration: Quantity, mw: Optional[float]
) -> float:
    c_base, domain = concentration_to_base(concentration.value, concentration.unit)
    return bridge(c_base, domain, MOLAR, mw)


def _convert_output(
    solve_for: SolveFor, value_base: float, unit: Optional[str], mw: Optional[float]
) -> TriangleResult:
    unit = canonical_unit(unit or DEFAULT_UNITS[solve_for])
    if solve_for is SolveFor.MW:
        if unit != MW_UNIT:
            raise UnknownUnit(unit, expected=f"molecular weight unit ({MW_UNIT})")
        return TriangleResult(solve_for, value_base, MW_UNIT, value_base, MW_UNIT)

    if solve_for is SolveFor.CONCENTRATION:
        scale, domain = concentration_to_base(1.0, unit)
        value = bridge(value_base, MOLAR, domain, mw) / scale
        return TriangleResult(solve_for, value_base, base_unit(MOLAR), value, unit)

    if solve_for is SolveFor.MASS:
        value = value_base / mass_to_grams(1.0, unit)
        return TriangleResult(solve_for, value_base, base_unit(MASS_AMOUNT), value, unit)

    value = value_base / volume_to_liters(1.0, unit)
    return TriangleResult(solve_for, value_base, base_unit(VOLUME), value, unit)


def solve_triangle(
    solve_for: Union[SolveFor, str],
    *,
    mw: Optional[float] = None,
    mass: Optional[Quantity] = None,
    volume: Optional[Quantity] = None,
    concentration: Optional[Quantity] = None,
    output_unit: Optional[str] = None,
) -> Optional[TriangleResult]:
    """Solve ``mass = C · V · MW`` for one quantity.

    Args:
        solve_for: Which quantity to compute (``"mass"``, ``"volume"``,
            ``"concentration"`` or ``"mw"``).
        mw (float, optional): Molecular weight in g/mol.
        mass, volume, concentration (Quantity, optional): The other
            quantities. The one being solved for is ignored.
        output_unit (str, optional): Unit for the reported value. Defaults to
            g, mL, M or g/mol.

    Returns:
        TriangleResult | None: ``None`` while any of the three knowns is
        still missing.

    Raises:
        InvalidQuantity: If a known is zero, negative or non-finite.
        UnknownUnit: If a quantity's unit does not belong to its slot.
        MissingMolecularWeight: If a mass-domain concentration (input or
            requested output) needs MW and none is known.
    """
    target = SolveFor(solve_for)

    mw_v = None if target is SolveFor.MW else _check_known("Molecular weight", mw)
    mass_g = volume_l = conc_m = None
    if target is not SolveFor.MASS and mass is not None:
        mass_g = require_positive("Mass", mass_to_grams(mass.value, mass.unit))
    if target is not SolveFor.VOLUME and volume is not None:
        volume_l = require_positive("Volume", volume_to_liters(volume.value, volume.unit))
    if target is not SolveFor.CONCENTRATION and concentration is not None:
        require_positive("Concentration", concentration.value)

    knowns = {
        SolveFor.MASS: (mw_v, volume_l, concentration),
        SolveFor.VOLUME: (mw_v, mass_g, concentration),
        SolveFor.CONCENTRATION: (mw_v, mass_g, volume_l),
        SolveFor.MW: (mass_g, volume_l, concentration),
    }[target]
    if not all(k is not None for k in knowns):
        return None

    if target is not SolveFor.CONCENTRATION:
        conc_m = require_positive(
            "Concentration", _molar_concentration(concentration, mw_v)
        )

    if target is SolveFor.MASS:
        value_base = conc_m * volume_l * mw_v
    elif target is SolveFor.VOLUME:
        value_base = mass_g / (conc_m * mw_v)
    elif target is SolveFor.CONCENTRATION:
        value_base = mass_g / (volume_l * mw_v)
    else:
        value_base = mass_g / (conc_m * volume_l)

    if not math.isfinite(value_base) or value_base <= 0:
        raise InvalidQuantity(target.value, value_base)

    result = _convert_output(target, value_base, output_unit, mw_v)
    logger.debug("Triangle solved %s = %.6g %s", target.value, result.value, result.unit)
    return result


FormValue = Union[Quantity, float, None]


@dataclass(frozen=True)
class TriangleForm:
    """Immutable state of a four-field molarity form.

    Editing a known re-derives the field named by ``solve_for``; editing that
    field itself only stores the value. Every transition returns a new form.
    The last derivation failure, if any, is kept in ``error`` and the unknown
    keeps its previous value.
    """

    solve_for: SolveFor = SolveFor.MASS
    mw: Optional[float] = None
    mass: Optional[Quantity] = None
    volume: Optional[Quantity] = None
    concentration: Optional[Quantity] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "solve_for", SolveFor(self.solve_for))

    def solve(self) -> Optional[TriangleResult]:
        current = getattr(self, self.solve_for.value)
        unit = current.unit if isinstance(current, Quantity) else None
        return solve_triangle(
            self.solve_for,
            mw=self.mw,
            mass=self.mass,
            volume=self.volume,
            concentration=self.concentration,
            output_unit=unit,
        )

    def edit(self, field: Union[SolveFor, str], value: FormValue) -> "TriangleForm":
        name = SolveFor(field)
        updated = replace(self, **{name.value: value})
        if name is self.solve_for:
            return replace(updated, error=None)
        return updated._rederive()

    def switch_target(self, solve_for: Union[SolveFor, str]) -> "TriangleForm":
        return replace(self, solve_for=SolveFor(solve_for), error=None)

    def _rederive(self) -> "TriangleForm":
        try:
            result = self.solve()
        except LabMathError as exc:
            logger.debug("Form left %s unchanged: %s", self.solve_for.value, exc)
            return replace(self, error=str(exc))
        if result is None:
            return replace(self, error=None)
        derived: FormValue
        if self.solve_for is SolveFor.MW:
            derived = result.value
        else:
            derived = result.as_quantity()
        return replace(self, error=None, **{self.solve_for.value: derived})
