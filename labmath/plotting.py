"""Speciation figures for conjugate buffer systems."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np

from labmath.chemistry.buffer import ConjugateSystem, speciation_fractions
from labmath.chemistry.buffer_region import BUFFERING_HALF_WIDTH

logger = logging.getLogger(__name__)

FIGURE_DPI = 300


@dataclass(frozen=True)
class StyleConfig:
    BASE_FONTSIZE: float = 14.0
    TITLE_FONTSIZE: float = 18.0
    LABEL_FONTSIZE: float = 16.0
    TICK_FONTSIZE: float = 13.0
    LEGEND_FONTSIZE: float = 12.0
    LINEWIDTH: float = 2.2
    ALPHA_BAND: float = 0.12
    FIGSIZE: tuple = (8.0, 5.0)
    PH_SPAN: float = 4.0
    N_POINTS: int = 400


STYLE = StyleConfig()


def setup_plot_style() -> None:
    """Serif, black-and-white friendly style for speciation figures."""
    plt.style.use("default")
    plt.rcParams.update(
        {
            "font.family": "serif",
            "font.serif": ["Times New Roman", "Times", "Nimbus Roman", "DejaVu Serif"],
            "mathtext.fontset": "stix",
            "font.size": STYLE.BASE_FONTSIZE,
            "axes.titlesize": STYLE.TITLE_FONTSIZE,
            "axes.labelsize": STYLE.LABEL_FONTSIZE,
            "legend.fontsize": STYLE.LEGEND_FONTSIZE,
            "xtick.labelsize": STYLE.TICK_FONTSIZE,
            "ytick.labelsize": STYLE.TICK_FONTSIZE,
            "figure.dpi": 120,
            "savefig.dpi": FIGURE_DPI,
            "savefig.bbox": "tight",
            "axes.spines.top": False,
            "axes.spines.right": False,
            "axes.linewidth": 1.2,
            "grid.alpha": 0.25,
            "grid.linestyle": "--",
            "grid.linewidth": 0.7,
            "legend.frameon": False,
        }
    )


def plot_buffer_speciation(
    system: ConjugateSystem,
    output_dir: str = "output",
    target_ph: Optional[float] = None,
) -> str:
    """Plot acid and base mole fractions of ``system`` against pH.

    The curve spans pKa ± 4, the buffering range (pKa ± 1.5) is shaded and
    ``target_ph``, when given, is marked with a vertical line.

    Returns:
        str: Path of the saved PNG.
    """
    setup_plot_style()
    os.makedirs(output_dir, exist_ok=True)

    pKa = float(system.pKa)
    pH = np.linspace(pKa - STYLE.PH_SPAN, pKa + STYLE.PH_SPAN, STYLE.N_POINTS)
    acid_frac, base_frac = speciation_fractions(pH, pKa)

    fig, ax = plt.subplots(figsize=STYLE.FIGSIZE)
    ax.axvspan(
        pKa - BUFFERING_HALF_WIDTH,
        pKa + BUFFERING_HALF_WIDTH,
        color="black",
        alpha=STYLE.ALPHA_BAND,
        label=f"Buffering range (pKa ± {BUFFERING_HALF_WIDTH:g})",
    )
    ax.plot(pH, acid_frac, color="black", linewidth=STYLE.LINEWIDTH, label="Acid form (HA)")
    ax.plot(
        pH,
        base_frac,
        color="black",
        linestyle="--",
        linewidth=STYLE.LINEWIDTH,
        label=r"Base form (A$^{-}$)",
    )
    ax.axvline(pKa, color="0.4", linestyle=":", linewidth=1.2, label=f"pKa = {pKa:.2f}")

    if target_ph is not None and np.isfinite(target_ph):
        ax.axvline(
            float(target_ph),
            color="black",
            linestyle="-.",
            linewidth=1.6,
            label=f"Target pH = {float(target_ph):.2f}",
        )

    ax.set_xlim(pH[0], pH[-1])
    ax.set_ylim(-0.02, 1.02)
    ax.set_xlabel("pH")
    ax.set_ylabel("Mole fraction")
    ax.set_title(f"{system.name} speciation")
    ax.grid(True, axis="y")
    ax.legend(loc="center right")

    slug = re.sub(r"[^a-z0-9]+", "_", system.key.lower()).strip("_")
    path = os.path.join(output_dir, f"{slug}_speciation.png")
    fig.savefig(path, dpi=FIGURE_DPI)
    plt.close(fig)
    logger.info("Saved speciation plot to %s", path)
    return path
