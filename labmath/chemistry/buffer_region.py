"""Decide whether a target pH sits in a conjugate pair's buffering range.

Buffer Range Definition:
    A conjugate acid/base pair buffers well while both species are present in
    comparable amounts. The preparation range used here is

        |pH - pKa| ≤ 1.5

    which corresponds to roughly 0.03 ≤ [A⁻]/[HA] ≤ 32. The classic textbook
    window of ±1 (0.1 ≤ [A⁻]/[HA] ≤ 10) is the "optimal" band quoted in
    advisories.

    Leaving the range is not an error. Buffering capacity falls off
    gradually, so a recipe is still computed and an advisory is attached.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

BUFFERING_HALF_WIDTH = 1.5
OPTIMAL_HALF_WIDTH = 1.0


def select_buffer_region(
    pH: np.ndarray, pKa: float, half_width: float = BUFFERING_HALF_WIDTH
) -> np.ndarray:
    """Return a boolean mask selecting pH values inside the buffering range.

    Args:
        pH (numpy.ndarray): pH values (pH units).
        pKa (float): Dissociation constant of the conjugate pair.
        half_width (float): Allowed distance from ``pKa`` in pH units.

    Returns:
        numpy.ndarray: Boolean mask, shape-aligned with ``pH``, selecting
        ``|pH - pKa| <= half_width``.

    Raises:
        ValueError: If ``pKa`` is non-finite.
    """
    pH_arr = np.asarray(pH, dtype=float)
    if not np.isfinite(pKa):
        raise ValueError("pKa must be finite to select buffer region.")
    return np.abs(pH_arr - float(pKa)) <= half_width


def within_buffering_range(
    ph: float, pKa: float, half_width: float = BUFFERING_HALF_WIDTH
) -> bool:
    return bool(select_buffer_region(np.array([ph]), pKa, half_width)[0])


def buffering_advisory(ph: float, pKa: float) -> Optional[str]:
    """Return advisory text when ``ph`` is outside the buffering range."""
    if within_buffering_range(ph, pKa):
        return None
    low = pKa - OPTIMAL_HALF_WIDTH
    high = pKa + OPTIMAL_HALF_WIDTH
    return (
        f"Target pH {ph:g} is outside the buffering range of pKa {pKa:g} "
        f"(optimal {low:.2f} to {high:.2f}); buffering capacity will be low."
    )
