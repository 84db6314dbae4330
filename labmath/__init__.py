"""
Calculations for preparing laboratory solutions.

Parses chemical formulas, computes molecular weights, and solves the
dilution, buffer and mass/volume/concentration problems met at the bench.

Modules:
    - chemistry: Formula parsing, molecular weights and buffer recipes.
    - units: Unit classification and conversion to base units.
    - dilution: C1·V1 = C2·V2 across molar and mass concentrations.
    - triangle: mass = C·V·MW solved for any one quantity.
    - recipe: Multi-solute recipes and preparation sheets.
    - resolver: Compound name lookup through PubChem.
    - reporting: Display formatting of masses, volumes and concentrations.
"""

__version__ = "0.1.0"

from .chemistry.buffer import solve_buffer_recipe
from .chemistry.formula import parse_formula
from .chemistry.weight import molecular_weight
from .dilution import solve_dilution
from .reporting import format_concentration, format_mass, format_volume
from .triangle import solve_triangle

__all__ = [
    # Formulas
    "parse_formula",
    "molecular_weight",
    # Formatting
    "format_mass",
    "format_volume",
    "format_concentration",
    # Solvers
    "solve_dilution",
    "solve_buffer_recipe",
    "solve_triangle",
]
