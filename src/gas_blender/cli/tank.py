#!/usr/bin/env python3
"""
Command-line interface for the cylinder buoyancy calculator.

Usage:
    tank-calc --liters 12 --bar 232 --kg 14.5
    tank-calc --cuft 80 --psi 3000 --lbs 31.4 --aluminium
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from gas_blender.buoyancy.tank import (
    TankInput,
    TankResult,
    calculate_tank_imperial,
    calculate_tank_metric,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Argument parser of tank-calc."""
    parser = argparse.ArgumentParser(
        prog="tank-calc",
        description="Scuba cylinder weight and buoyancy calculator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tank-calc --liters 12 --bar 232 --kg 14.5               Steel 12 L in salt water
  tank-calc --liters 12 --bar 232 --kg 14.5 --doubles     Twin set with manifold
  tank-calc --cuft 80 --psi 3000 --lbs 31.4 --aluminium   Aluminium 80
        """,
    )

    metric = parser.add_argument_group("metric")
    metric.add_argument("--liters", type=float, help="Internal volume (l)")
    metric.add_argument("--bar", type=float, help="Working pressure (bar)")
    metric.add_argument("--kg", type=float, help="Cylinder weight without valve (kg)")

    imperial = parser.add_argument_group("imperial")
    imperial.add_argument("--cuft", type=float, help="Rated capacity (cuft)")
    imperial.add_argument("--psi", type=float, help="Working pressure (psi)")
    imperial.add_argument("--lbs", type=float, help="Cylinder weight without valve (lbs)")

    parser.add_argument("--aluminium", action="store_true", help="Aluminium cylinder (default: steel)")
    parser.add_argument("--fresh-water", action="store_true", help="Fresh water (default: salt water)")
    parser.add_argument("--no-valve", action="store_true", help="Exclude the valve weight")
    parser.add_argument("--doubles", action="store_true", help="Two cylinders with a manifold")
    parser.add_argument("--explain", action="store_true", help="Show how the result was calculated")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def print_result(result: TankResult, explain: bool = False) -> None:
    """Print the result table."""
    print("\nCylinder:")
    print("─" * 40)
    print(f"  Volume:    {result.liters:g} l    ({result.cuft:g} cuft)")
    print(f"  Pressure:  {result.bar:g} bar  ({result.psi:g} psi)")
    print(f"  Weight:    {result.kg:g} kg   ({result.lbs:g} lbs)")
    print("\nBuoyancy:")
    print("─" * 40)
    print(f"  Empty:     {result.empty_buoyancy_kg:g} kg   ({result.empty_buoyancy_lbs:g} lbs)")
    print(f"  Full:      {result.full_buoyancy_kg:g} kg   ({result.full_buoyancy_lbs:g} lbs)")

    if explain:
        print("\nCalculation:")
        print("─" * 40)
        for line in result.calculation:
            print(f"  {line}")
    print()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    options = dict(
        is_aluminium=args.aluminium,
        is_salt_water=not args.fresh_water,
        has_valve=not args.no_valve,
        is_doubles=args.doubles,
    )

    if None not in (args.liters, args.bar, args.kg):
        tank = TankInput(liters=args.liters, bar=args.bar, kg=args.kg, **options)
        logger.debug(f"Metric calculation for {tank}")
        result = calculate_tank_metric(tank)
    elif None not in (args.cuft, args.psi, args.lbs):
        if args.psi <= 0:
            print("Error: --psi must be positive", file=sys.stderr)
            return 1
        tank = TankInput(cuft=args.cuft, psi=args.psi, lbs=args.lbs, **options)
        logger.debug(f"Imperial calculation for {tank}")
        result = calculate_tank_imperial(tank)
    else:
        print("Error: give either --liters, --bar and --kg or --cuft, --psi and --lbs",
              file=sys.stderr)
        return 1

    print_result(result, explain=args.explain)
    return 0


if __name__ == "__main__":
    sys.exit(main())
