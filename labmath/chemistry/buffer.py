"""Henderson-Hasselbalch buffer preparation recipes.

Theoretical Framework:
    For a conjugate pair HA/A⁻ with dissociation constant pKa,

        pH = pKa + log₁₀([A⁻]/[HA])

    so the base/acid ratio at a target pH is ``ratio = 10^(pH - pKa)``. With a
    total buffer concentration C = [HA] + [A⁻]:

        [HA] = C / (1 + ratio)
        [A⁻] = C - [HA]

Preparation Methods:
    salt_mix:
        Weigh both conjugate forms directly in the computed proportion.
    titration:
        Dissolve the full amount C·V of one form and convert part of it with
        a strong acid or base. Titrating with acid starts from the base form
        (B + H⁺ -> BH⁺) and must create the acid share; titrating with base
        starts from the acid form (HA + OH⁻ -> A⁻ + H₂O) and must create the
        base share.

The computed amounts use concentrations, not activities, so they are
starting points. The final pH should still be checked with a meter.
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

import numpy as np

from labmath.chemistry.buffer_region import buffering_advisory
from labmath.errors import (
    IncompatibleAdjuster,
    IncompatibleMethod,
    InvalidQuantity,
    UnknownUnit,
)
from labmath.units import MOLAR, Quantity, require_positive, volume_to_liters

logger = logging.getLogger(__name__)

SALT_MIX = "salt_mix"
TITRATION = "titration"
METHODS = (SALT_MIX, TITRATION)

ACID = "acid"
BASE = "base"

# Largest power of ten a float holds.
_MAX_DECADES = 308


@dataclass(frozen=True)
class Reagent:
    name: str
    mw: float
    formula: str = ""


@dataclass(frozen=True)
class ConjugateSystem:
    """A conjugate acid/base pair and the reagents available for it.

    Attributes:
        key: Short identifier, e.g. ``"tris"``.
        name: Display name.
        pKa: Dissociation constant at 25 °C.
        acid_component / base_component: The two salts weighed for the
            ``salt_mix`` method.
        acid_form / base_form: Starting powders for the ``titration`` method.
    """

    key: str
    name: str
    pKa: float
    acid_component: Optional[Reagent] = None
    base_component: Optional[Reagent] = None
    acid_form: Optional[Reagent] = None
    base_form: Optional[Reagent] = None

    def supports(self, method: str) -> bool:
        if method == SALT_MIX:
            return self.acid_component is not None and self.base_component is not None
        if method == TITRATION:
            return self.acid_form is not None or self.base_form is not None
        return False


@dataclass(frozen=True)
class StockAdjuster:
    """A strong acid or base stock used to titrate a buffer."""

    key: str
    name: str
    molarity: float
    polarity: str

    def __post_init__(self) -> None:
        if self.polarity not in (ACID, BASE):
            raise ValueError(
                f"Adjuster polarity must be 'acid' or 'base', got {self.polarity!r}"
            )
        require_positive(f"Molarity of {self.name}", self.molarity)

    def start_form(self, system: ConjugateSystem) -> Optional[Reagent]:
        """Return the powder this adjuster converts, if the system has it."""
        return system.base_form if self.polarity == ACID else system.acid_form


@dataclass(frozen=True)
class SpeciesSplit:
    """Acid/base distribution at a target pH, concentrations in M."""

    ratio: float
    acid_concentration_m: float
    base_concentration_m: float

    @property
    def total_m(self) -> float:
        return self.acid_concentration_m + self.base_concentration_m


@dataclass(frozen=True)
class ComponentAmount:
    reagent: Reagent
    mass_g: float


@dataclass(frozen=True)
class SaltMixRecipe:
    system: ConjugateSystem
    ph: float
    volume_l: float
    split: SpeciesSplit
    acid: ComponentAmount
    base: ComponentAmount
    advisory: Optional[str] = None

    method = SALT_MIX

    @property
    def components(self) -> Tuple[ComponentAmount, ComponentAmount]:
        return (self.acid, self.base)


@dataclass(frozen=True)
class TitrationRecipe:
    system: ConjugateSystem
    ph: float
    volume_l: float
    split: SpeciesSplit
    start: ComponentAmount
    adjuster: StockAdjuster
    adjuster_moles: float
    adjuster_volume_l: float
    advisory: Optional[str] = None

    method = TITRATION


BufferRecipe = Union[SaltMixRecipe, TitrationRecipe]


def henderson_hasselbalch_split(ph: float, pKa: float, total_m: float) -> SpeciesSplit:
    """Split a total concentration into acid and base forms at ``ph``.

    Args:
        ph (float): Target pH.
        pKa (float): Dissociation constant of the pair.
        total_m (float): Total buffer concentration in M.

    Returns:
        SpeciesSplit: ``ratio = [base]/[acid]`` and both concentrations in M.

    Note:
        At ``ph == pKa`` the ratio is exactly 1 and the total splits evenly.
    """
    total = float(total_m)
    delta = float(ph) - float(pKa)
    if delta > 0:
        # Work with [acid]/[base] so far-basic targets underflow to zero.
        inverse = 10.0 ** -delta
        acid = total * inverse / (1.0 + inverse)
        ratio = 10.0 ** delta if delta < _MAX_DECADES else math.inf
    else:
        ratio = 10.0 ** delta
        acid = total / (1.0 + ratio)
    base = total - acid
    return SpeciesSplit(ratio=ratio, acid_concentration_m=acid, base_concentration_m=base)


def speciation_fractions(pH: np.ndarray, pKa: float) -> Tuple[np.ndarray, np.ndarray]:
    """Return the acid and base mole fractions over an array of pH values."""
    pH_arr = np.asarray(pH, dtype=float)
    base_frac = 1.0 / (1.0 + 10.0 ** (float(pKa) - pH_arr))
    return 1.0 - base_frac, base_frac


def _salt_mix(
    system: ConjugateSystem, ph: float, volume_l: float, split: SpeciesSplit
) -> SaltMixRecipe:
    if system.acid_component is None or system.base_component is None:
        raise IncompatibleMethod(
            f"{system.name} has no acid/base salt pair for the salt-mix method."
        )
    acid_mass = split.acid_concentration_m * volume_l * system.acid_component.mw
    base_mass = split.base_concentration_m * volume_l * system.base_component.mw
    return SaltMixRecipe(
        system=system,
        ph=ph,
        volume_l=volume_l,
        split=split,
        acid=ComponentAmount(system.acid_component, acid_mass),
        base=ComponentAmount(system.base_component, base_mass),
    )


def _titration(
    system: ConjugateSystem,
    ph: float,
    volume_l: float,
    split: SpeciesSplit,
    adjuster: Optional[StockAdjuster],
) -> TitrationRecipe:
    if adjuster is None:
        raise IncompatibleAdjuster("The titration method requires a stock adjuster.")

    start = adjuster.start_form(system)
    if start is None:
        needed = "base" if adjuster.polarity == ACID else "acid"
        raise IncompatibleAdjuster(
            f"{adjuster.name} ({adjuster.polarity}) needs the {needed} form of "
            f"{system.name} as starting powder, which is not available."
        )

    if adjuster.polarity == ACID:
        moles = split.acid_concentration_m * volume_l
    else:
        moles = split.base_concentration_m * volume_l

    start_mass = split.total_m * volume_l * start.mw
    return TitrationRecipe(
        system=system,
        ph=ph,
        volume_l=volume_l,
        split=split,
        start=ComponentAmount(start, start_mass),
        adjuster=adjuster,
        adjuster_moles=moles,
        adjuster_volume_l=moles / adjuster.molarity,
    )


def solve_buffer_recipe(
    system: ConjugateSystem,
    ph: float,
    total_concentration: Quantity,
    volume: Quantity,
    method: str = TITRATION,
    adjuster: Optional[StockAdjuster] = None,
) -> BufferRecipe:
    """Compute a buffer recipe for a target pH, concentration and volume.

    Args:
        system (ConjugateSystem): The conjugate pair to prepare.
        ph (float): Target pH.
        total_concentration (Quantity): Total buffer concentration in a molar
            unit (``M``, ``mM``, ...).
        volume (Quantity): Final volume.
        method (str): ``"salt_mix"`` or ``"titration"``.
        adjuster (StockAdjuster, optional): Strong acid/base stock, required
            for titration.

    Returns:
        SaltMixRecipe | TitrationRecipe: Masses in g and volumes in L. The
        ``advisory`` field is set when the pH is outside the buffering range.

    Raises:
        ValueError: If ``method`` is not recognized.
        InvalidQuantity: If pH is non-finite or concentration/volume are not
            positive.
        UnknownUnit: If the concentration is not molar or the volume unit is
            not a volume.
        IncompatibleMethod: If salt-mix is requested without both salts.
        IncompatibleAdjuster: If titration is requested without an adjuster or
            the system lacks the form the adjuster converts.

    Warns:
        UserWarning: If the target pH is outside ``pKa ± 1.5``.
    """
    if method not in METHODS:
        raise IncompatibleMethod(f"method must be one of {METHODS}, got {method!r}")
    if not math.isfinite(float(ph)):
        raise InvalidQuantity("Target pH", ph, requirement="finite")
    if total_concentration.domain != MOLAR:
        raise UnknownUnit(total_concentration.unit, expected="molar concentration unit")

    total_m = require_positive("Total concentration", total_concentration.to_base())
    volume_l = require_positive(
        "Volume", volume_to_liters(volume.value, volume.unit)
    )

    split = henderson_hasselbalch_split(ph, system.pKa, total_m)
    if method == SALT_MIX:
        recipe: BufferRecipe = _salt_mix(system, float(ph), volume_l, split)
    else:
        recipe = _titration(system, float(ph), volume_l, split, adjuster)

    advisory = buffering_advisory(float(ph), system.pKa)
    if advisory is not None:
        warnings.warn(advisory, UserWarning, stacklevel=2)
        recipe = replace(recipe, advisory=advisory)

    logger.debug(
        "%s %s buffer at pH %.2f: ratio=%.4g, acid=%.6g M, base=%.6g M",
        system.name,
        method,
        ph,
        split.ratio,
        split.acid_concentration_m,
        split.base_concentration_m,
    )
    return recipe
