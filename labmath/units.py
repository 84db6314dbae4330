"""Centralized unit classification and conversion utilities.

Every quantity is normalized to the base unit of its family before any
arithmetic happens:

    molar concentration  -> M      (mol dm^-3)
    mass concentration   -> g/L    (numerically equal to mg/mL)
    volume               -> L
    mass                 -> g

Molar and mass concentrations are two *domains* of the same physical idea;
moving between them goes through the molecular weight (g/L / g/mol = M).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from labmath.errors import InvalidQuantity, MissingMolecularWeight, UnknownUnit


MOLAR = "molar"
MASS = "mass"

MOLAR_CONCENTRATION = "molar_concentration"
MASS_CONCENTRATION = "mass_concentration"
VOLUME = "volume"
MASS_AMOUNT = "mass_amount"
DILUTION = "dilution"

PERCENT_WV = "%w/v"
DILUTION_FACTOR = "X"

# Multiply by the factor to reach the family's base unit.
_TO_BASE: Dict[str, Dict[str, float]] = {
    MOLAR_CONCENTRATION: {"M": 1.0, "mM": 1e-3, "μM": 1e-6, "nM": 1e-9},
    MASS_CONCENTRATION: {
        "g/L": 1.0,
        "mg/mL": 1.0,
        "mg/L": 1e-3,
        "μg/mL": 1e-3,
        "ng/μL": 1e-3,
        # grams per 100 mL
        PERCENT_WV: 10.0,
    },
    VOLUME: {"L": 1.0, "mL": 1e-3, "μL": 1e-6, "nL": 1e-9},
    MASS_AMOUNT: {"kg": 1e3, "g": 1.0, "mg": 1e-3, "μg": 1e-6, "ng": 1e-9},
    DILUTION: {DILUTION_FACTOR: 1.0},
}

_FAMILY_OF: Dict[str, str] = {
    unit: family for family, table in _TO_BASE.items() for unit in table
}

_DOMAIN_OF_FAMILY = {MOLAR_CONCENTRATION: MOLAR, MASS_CONCENTRATION: MASS}

_ALIASES = {
    "pct": PERCENT_WV,
    "%": PERCENT_WV,
    "% w/v": PERCENT_WV,
    "w/v%": PERCENT_WV,
    "dil": DILUTION_FACTOR,
    "x": DILUTION_FACTOR,
}


def canonical_unit(unit: str) -> str:
    """Map spelling variants of a unit tag onto the canonical tag.

    Accepts the micro sign (U+00B5) or an ASCII ``u`` in place of ``μ``,
    and ``pct``/``%`` for percent weight/volume. Unrecognized tags are returned
    stripped but otherwise unchanged, so callers can still report them.
    """
    tag = unit.strip().replace("µ", "μ")
    tag = _ALIASES.get(tag, tag)
    if tag in _FAMILY_OF:
        return tag
    micro = tag.replace("u", "μ")
    if micro in _FAMILY_OF:
        return micro
    return tag


def unit_family(unit: str) -> str:
    """Return the family a unit tag belongs to.

    Raises:
        UnknownUnit: If the tag is not a recognized unit.
    """
    tag = canonical_unit(unit)
    family = _FAMILY_OF.get(tag)
    if family is None:
        raise UnknownUnit(unit)
    return family


def concentration_domain(unit: str) -> Optional[str]:
    """Classify a concentration unit as ``"molar"`` or ``"mass"``.

    Returns ``None`` for volume, mass and dilution-factor tags and for any
    unrecognized tag.
    """
    family = _FAMILY_OF.get(canonical_unit(unit))
    return _DOMAIN_OF_FAMILY.get(family) if family else None


def base_unit(family_or_domain: str) -> str:
    return {
        MOLAR: "M",
        MOLAR_CONCENTRATION: "M",
        MASS: "g/L",
        MASS_CONCENTRATION: "g/L",
        VOLUME: "L",
        MASS_AMOUNT: "g",
        DILUTION: DILUTION_FACTOR,
    }[family_or_domain]


def to_base(value: float, unit: str) -> float:
    """Convert ``value`` in ``unit`` to its family's base unit."""
    tag = canonical_unit(unit)
    family = unit_family(tag)
    return float(value) * _TO_BASE[family][tag]


def from_base(value: float, unit: str) -> float:
    """Convert a base-unit ``value`` into ``unit``."""
    tag = canonical_unit(unit)
    family = unit_family(tag)
    return float(value) / _TO_BASE[family][tag]


def _require_family(unit: str, family: str, label: str) -> str:
    tag = canonical_unit(unit)
    if _FAMILY_OF.get(tag) != family:
        raise UnknownUnit(unit, expected=label)
    return tag


def volume_to_liters(value: float, unit: str) -> float:
    tag = _require_family(unit, VOLUME, "volume unit")
    return float(value) * _TO_BASE[VOLUME][tag]


def mass_to_grams(value: float, unit: str) -> float:
    tag = _require_family(unit, MASS_AMOUNT, "mass unit")
    return float(value) * _TO_BASE[MASS_AMOUNT][tag]


def concentration_to_base(value: float, unit: str) -> Tuple[float, str]:
    """Normalize a concentration to its domain's base unit.

    Args:
        value (float): Concentration magnitude.
        unit (str): Molar or mass concentration tag.

    Returns:
        tuple[float, str]: ``(base_value, domain)`` where the base value is in
        M for the molar domain and g/L for the mass domain.

    Raises:
        UnknownUnit: If ``unit`` is not a concentration tag.
    """
    domain = concentration_domain(unit)
    if domain is None:
        raise UnknownUnit(unit, expected="concentration unit")
    return to_base(value, unit), domain


def validate_molecular_weight(mw: Optional[float]) -> float:
    """Return ``mw`` as a float, or raise if it cannot bridge domains."""
    if mw is None:
        raise MissingMolecularWeight(mw)
    try:
        value = float(mw)
    except (TypeError, ValueError) as exc:
        raise MissingMolecularWeight(mw) from exc
    if not math.isfinite(value) or value <= 0:
        raise MissingMolecularWeight(mw)
    return value


def bridge(
    value_base: float, from_domain: str, to_domain: str, mw: Optional[float] = None
) -> float:
    """Move a base-unit concentration from one domain to another.

    Mass -> molar divides by MW (g/L / g/mol = M); molar -> mass multiplies
    by MW. Same-domain calls return the value unchanged and ignore ``mw``.

    Raises:
        MissingMolecularWeight: If the domains differ and ``mw`` is missing,
            non-finite or not positive.
    """
    if from_domain == to_domain:
        return float(value_base)
    weight = validate_molecular_weight(mw)
    if from_domain == MASS and to_domain == MOLAR:
        return float(value_base) / weight
    if from_domain == MOLAR and to_domain == MASS:
        return float(value_base) * weight
    raise ValueError(f"Cannot bridge from {from_domain!r} to {to_domain!r}")


def require_positive(name: str, value: Optional[float]) -> float:
    """Return ``value`` as a float if it is finite and > 0."""
    try:
        v = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidQuantity(name, value) from exc
    if not math.isfinite(v) or v <= 0:
        raise InvalidQuantity(name, value)
    return v


@dataclass(frozen=True)
class Quantity:
    """A magnitude paired with a unit tag, e.g. ``Quantity(100, "mL")``.

    The unit is canonicalized on construction (``"uM"`` becomes ``"μM"``)
    and must be a recognized tag.
    """

    value: float
    unit: str

    def __post_init__(self) -> None:
        tag = canonical_unit(self.unit)
        unit_family(tag)
        object.__setattr__(self, "unit", tag)
        object.__setattr__(self, "value", float(self.value))

    @property
    def family(self) -> str:
        return _FAMILY_OF[self.unit]

    @property
    def domain(self) -> Optional[str]:
        return _DOMAIN_OF_FAMILY.get(self.family)

    def to_base(self) -> float:
        return to_base(self.value, self.unit)

    def to(self, unit: str) -> "Quantity":
        """Express this quantity in another unit of the same family."""
        if unit_family(unit) != self.family:
            raise UnknownUnit(unit, expected=f"{self.family.replace('_', ' ')} unit")
        return Quantity(from_base(self.to_base(), unit), unit)

    def __str__(self) -> str:
        return f"{self.value:g} {self.unit}"
