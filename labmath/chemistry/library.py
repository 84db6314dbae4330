"""Conjugate buffer systems and strong acid/base adjusters.

Reference data for :func:`labmath.chemistry.buffer.solve_buffer_recipe`.
pKa values are at 25 °C. Citrate uses its third dissociation (pKa3 = 6.40)
since that is the pair used around pH 6; pKa1 = 3.13 and pKa2 = 4.76.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from labmath.chemistry.buffer import (
    ACID,
    BASE,
    ConjugateSystem,
    Reagent,
    StockAdjuster,
)

_NAH2PO4 = Reagent("Monobasic Sodium Phosphate (Anhydrous)", 119.98, "NaH2PO4")
_NA2HPO4 = Reagent("Dibasic Sodium Phosphate (Anhydrous)", 141.96, "Na2HPO4")
_TRIS_HCL = Reagent("Tris HCl", 157.6, "C4H11NO3·HCl")
_TRIS_BASE = Reagent("Tris Base", 121.14, "C4H11NO3")
_HEPES = Reagent("HEPES Free Acid", 238.3, "C8H18N2O4S")
_ACETIC = Reagent("Acetic Acid (Glacial)", 60.05, "CH3COOH")
_NA_ACETATE = Reagent("Sodium Acetate (Trihydrate)", 136.08, "CH3COONa·3H2O")
_CITRIC = Reagent("Citric Acid (Monohydrate)", 210.14, "C6H8O7·H2O")
_NA3_CITRATE = Reagent("Trisodium Citrate (Dihydrate)", 294.10, "Na3C6H5O7·2H2O")

BUFFER_SYSTEMS: Dict[str, ConjugateSystem] = {
    system.key: system
    for system in (
        ConjugateSystem(
            key="phosphate",
            name="Phosphate (PBS Core)",
            pKa=7.21,
            acid_component=_NAH2PO4,
            base_component=_NA2HPO4,
            acid_form=_NAH2PO4,
        ),
        ConjugateSystem(
            key="tris",
            name="Tris",
            pKa=8.06,
            acid_component=_TRIS_HCL,
            base_component=_TRIS_BASE,
            acid_form=_TRIS_HCL,
            base_form=_TRIS_BASE,
        ),
        # HEPES ships as the zwitterionic free acid and is brought up with NaOH.
        ConjugateSystem(key="hepes", name="HEPES", pKa=7.48, acid_form=_HEPES),
        ConjugateSystem(
            key="acetate",
            name="Acetate",
            pKa=4.76,
            acid_component=_ACETIC,
            base_component=_NA_ACETATE,
            acid_form=_ACETIC,
            base_form=_NA_ACETATE,
        ),
        ConjugateSystem(
            key="citrate",
            name="Citrate",
            pKa=6.40,
            acid_component=_CITRIC,
            base_component=_NA3_CITRATE,
            acid_form=_CITRIC,
        ),
    )
}

DEFAULT_ADJUSTERS: Dict[str, StockAdjuster] = {
    adjuster.key: adjuster
    for adjuster in (
        StockAdjuster("hcl_1m", "HCl 1M", 1.0, ACID),
        StockAdjuster("hcl_5m", "HCl 5M", 5.0, ACID),
        StockAdjuster("naoh_1m", "NaOH 1M", 1.0, BASE),
        StockAdjuster("naoh_10m", "NaOH 10M", 10.0, BASE),
    )
}

_ACID_HINTS = ("hcl", "acid", "h2so4")
_BASE_HINTS = ("naoh", "koh", "base", "hydroxide")


def get_system(key: str) -> ConjugateSystem:
    try:
        return BUFFER_SYSTEMS[key.lower()]
    except KeyError:
        raise KeyError(
            f"Unknown buffer system '{key}'. Available: {sorted(BUFFER_SYSTEMS)}"
        ) from None


def get_adjuster(key: str) -> StockAdjuster:
    try:
        return DEFAULT_ADJUSTERS[key.lower()]
    except KeyError:
        raise KeyError(
            f"Unknown adjuster '{key}'. Available: {sorted(DEFAULT_ADJUSTERS)}"
        ) from None


def is_compatible(system: ConjugateSystem, adjuster: StockAdjuster) -> bool:
    return adjuster.start_form(system) is not None


def compatible_adjusters(
    system: ConjugateSystem, adjusters: Iterable[StockAdjuster]
) -> List[StockAdjuster]:
    """Keep only adjusters whose starting form the system provides."""
    return [a for a in adjusters if is_compatible(system, a)]


def default_adjuster(
    system: ConjugateSystem,
    adjusters: Iterable[StockAdjuster],
    current: Optional[StockAdjuster] = None,
) -> Optional[StockAdjuster]:
    """Pick the adjuster to titrate ``system`` with.

    A compatible ``current`` choice is kept. Otherwise an acid adjuster is
    preferred when the system has a base form (e.g. Tris Base + HCl), then a
    base adjuster when it has an acid form. Returns ``None`` when nothing fits.
    """
    if current is not None and is_compatible(system, current):
        return current
    pool = list(adjusters)
    if system.base_form is not None:
        for adjuster in pool:
            if adjuster.polarity == ACID:
                return adjuster
    if system.acid_form is not None:
        for adjuster in pool:
            if adjuster.polarity == BASE:
                return adjuster
    return None


def guess_polarity(name: str) -> Optional[str]:
    """Guess whether a stock named ``name`` is an acid or a base."""
    lower = name.lower()
    if any(hint in lower for hint in _ACID_HINTS):
        return ACID
    if any(hint in lower for hint in _BASE_HINTS):
        return BASE
    return None
