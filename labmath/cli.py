"""Command-line interface for the labmath calculators.

Examples::

    labmath mw "CuSO4·5H2O"
    labmath dilute 0.5 M 50 mM 1 L
    labmath buffer tris 8.0 100 mM 1 L --method titration --adjuster hcl_5m
    labmath solve mass --mw 58.44 --volume 500 mL --concentration 150 mM
    labmath recipe pbs-10x --scale 0.5 --csv output
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import List, Optional, Sequence

from labmath import __version__
from labmath.chemistry.buffer import METHODS, TITRATION, solve_buffer_recipe
from labmath.chemistry.formula import hill_formula, parse_formula
from labmath.chemistry.library import (
    BUFFER_SYSTEMS,
    DEFAULT_ADJUSTERS,
    default_adjuster,
    get_adjuster,
    get_system,
)
from labmath.chemistry.weight import mass_fractions, molecular_weight
from labmath.dilution import solve_dilution
from labmath.errors import IncompatibleAdjuster, InvalidQuantity, LabMathError
from labmath.output import buffer_recipe_table, save_preparation_sheet
from labmath.plotting import plot_buffer_speciation
from labmath.recipe import DEFAULT_RECIPES, get_recipe, preparation_sheet
from labmath.reporting import format_significant, format_volume
from labmath.resolver import lookup_compound
from labmath.triangle import SolveFor, solve_triangle
from labmath.units import Quantity

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
    )
    # Buffering-range advisories are raised as UserWarning.
    logging.captureWarnings(True)


def _number(text: str, name: str) -> float:
    try:
        return float(text)
    except ValueError as exc:
        raise InvalidQuantity(name, text, requirement="a number") from exc


def _quantity(pair: Optional[Sequence[str]], name: str) -> Optional[Quantity]:
    if pair is None:
        return None
    value, unit = pair
    return Quantity(_number(value, name), unit)


def _cmd_mw(args: argparse.Namespace) -> int:
    if args.resolve:
        compound = lookup_compound(args.formula)
        formula = compound.formula
        composition = compound.composition
        mw = compound.molecular_weight
        if compound.compound_id is not None:
            print(f"{compound.display_name} (PubChem CID {compound.compound_id})")
    else:
        formula = args.formula
        composition = parse_formula(formula)
        mw = molecular_weight(composition)

    print(f"Formula: {formula}  (Hill: {hill_formula(composition)})")
    print(f"Molecular weight: {mw:.3f} g/mol")
    for element, pct in mass_fractions(composition).items():
        print(f"  {element:<3} x{composition[element]:<4} {pct:6.2f} %")
    return 0


def _cmd_dilute(args: argparse.Namespace) -> int:
    stock = Quantity(_number(args.c1, "Stock concentration"), args.u1)
    target = Quantity(_number(args.c2, "Target concentration"), args.u2)
    final = Quantity(_number(args.v2, "Final volume"), args.vu)
    result = solve_dilution(stock, target, final, mw=args.mw)
    print(f"Stock ({stock}): {format_volume(result.stock_volume_l)}")
    print(f"Solvent: {format_volume(result.solvent_volume_l)}")
    print(f"Dilution factor: {format_significant(result.dilution_factor)}X")
    return 0


def _cmd_buffer(args: argparse.Namespace) -> int:
    system = get_system(args.system)
    adjuster = None
    if args.method == TITRATION:
        if args.adjuster:
            adjuster = get_adjuster(args.adjuster)
        else:
            adjuster = default_adjuster(system, DEFAULT_ADJUSTERS.values())
            if adjuster is None:
                raise IncompatibleAdjuster(
                    f"No default adjuster can titrate {system.name}."
                )
    recipe = solve_buffer_recipe(
        system,
        _number(args.ph, "Target pH"),
        Quantity(_number(args.conc, "Concentration"), args.unit),
        Quantity(_number(args.vol, "Volume"), args.vunit),
        method=args.method,
        adjuster=adjuster,
    )

    print(f"{system.name} buffer, pH {recipe.ph:g} (pKa {system.pKa:g}), {args.method}")
    print(buffer_recipe_table(recipe)[["Reagent", "Role", "Amount"]].to_string(index=False))
    print(f"Bring to {format_volume(recipe.volume_l)} with water.")

    if args.plot:
        plot_buffer_speciation(system, args.plot, target_ph=recipe.ph)
    return 0


def _cmd_solve(args: argparse.Namespace) -> int:
    result = solve_triangle(
        SolveFor(args.target),
        mw=args.mw,
        mass=_quantity(args.mass, "Mass"),
        volume=_quantity(args.volume, "Volume"),
        concentration=_quantity(args.concentration, "Concentration"),
        output_unit=args.unit,
    )
    if result is None:
        logger.error("Not enough inputs: give the three quantities other than %s.", args.target)
        return 2
    print(f"{args.target} = {format_significant(result.value)} {result.unit}")
    return 0


def _cmd_recipe(args: argparse.Namespace) -> int:
    recipe = get_recipe(args.key)
    sheet = preparation_sheet(recipe, scale=args.scale)
    print(f"{recipe.name}: {recipe.description}")
    print(sheet[["Solute", "Target", "Source", "Amount", "Error"]].to_string(index=False))
    if args.csv:
        save_preparation_sheet(sheet, args.csv, f"{recipe.key}.csv")
    return 0


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="labmath",
        description="Molecular weight, dilution, buffer and recipe calculators.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("mw", help="Molecular weight of a formula.")
    p.add_argument("formula")
    p.add_argument(
        "--resolve",
        action="store_true",
        help="Look the name up on PubChem if it does not parse as a formula.",
    )
    p.set_defaults(handler=_cmd_mw)

    p = sub.add_parser("dilute", help="Solve C1·V1 = C2·V2 for the stock volume.")
    p.add_argument("c1", help="Stock concentration.")
    p.add_argument("u1", help="Stock unit.")
    p.add_argument("c2", help="Target concentration.")
    p.add_argument("u2", help="Target unit.")
    p.add_argument("v2", help="Final volume.")
    p.add_argument("vu", help="Final volume unit.")
    p.add_argument("--mw", type=float, default=None, help="Molecular weight (g/mol).")
    p.set_defaults(handler=_cmd_dilute)

    p = sub.add_parser("buffer", help="Henderson-Hasselbalch buffer recipe.")
    p.add_argument("system", choices=sorted(BUFFER_SYSTEMS))
    p.add_argument("ph")
    p.add_argument("conc")
    p.add_argument("unit")
    p.add_argument("vol")
    p.add_argument("vunit")
    p.add_argument("--method", choices=METHODS, default=TITRATION)
    p.add_argument("--adjuster", choices=sorted(DEFAULT_ADJUSTERS), default=None)
    p.add_argument("--plot", metavar="DIR", default=None, help="Save a speciation plot.")
    p.set_defaults(handler=_cmd_buffer)

    p = sub.add_parser("solve", help="Solve mass = C·V·MW for one quantity.")
    p.add_argument("target", choices=[s.value for s in SolveFor])
    p.add_argument("--mw", type=float, default=None)
    for name in ("mass", "volume", "concentration"):
        p.add_argument(f"--{name}", nargs=2, metavar=("VALUE", "UNIT"), default=None)
    p.add_argument("--unit", default=None, help="Unit for the answer.")
    p.set_defaults(handler=_cmd_solve)

    p = sub.add_parser("recipe", help="Preparation sheet for a library recipe.")
    p.add_argument("key", choices=sorted(DEFAULT_RECIPES))
    p.add_argument("--scale", type=float, default=1.0, help="Volume multiplier.")
    p.add_argument("--csv", metavar="DIR", default=None, help="Write the sheet as CSV.")
    p.set_defaults(handler=_cmd_recipe)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    configure_logging(args.verbose, args.log_file)

    start = time.time()
    try:
        status = args.handler(args)
    except LabMathError as exc:
        logger.error("%s", exc)
        return 2
    logger.debug("%s finished in %.3f seconds", args.command, time.time() - start)
    return status


if __name__ == "__main__":
    sys.exit(main())
