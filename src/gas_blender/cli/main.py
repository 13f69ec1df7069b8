#!/usr/bin/env python3
"""
Command-line interface for the gas blender.

Calculates the blending steps for one fill and prints them as a table or
as JSON.

Usage:
    gas-blend --start 21/0@0 --volume 12 --target 32/0@200
    gas-blend --preset trimix1845 --verbose
    gas-blend --help
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from dataclasses import asdict, dataclass
from typing import Optional

from gas_blender.core.config import DEFAULT_CONFIG, STRICT_CONFIG
from gas_blender.core.gases import Gas, TankState, TargetGas
from gas_blender.core.planner import BlendingResult, calculate_blending_steps

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

RULE = "━" * 60

_NUMBER = r"(\d+(?:\.\d+)?)"
_GAS_STRING = re.compile(rf"^{_NUMBER}/{_NUMBER}@{_NUMBER}$")
_GAS_MIX = re.compile(rf"^{_NUMBER}/{_NUMBER}$")


# Matches the gases of a default fill station
DEFAULT_GASES: list[Gas] = [
    Gas(name="Air", o2=21, he=0),
    Gas(name="O₂", o2=100, he=0),
    Gas(name="He", o2=0, he=100),
]


@dataclass(frozen=True)
class BlendPreset:
    """Starting gas, target and tank volume of a common fill."""
    start: str
    target: str
    volume: float
    description: str = ""


BLEND_PRESETS: dict[str, BlendPreset] = {
    "nitrox32": BlendPreset("21/0@0", "32/0@200", 12, "Blend EAN32 from air"),
    "trimix3030": BlendPreset("21/0@0", "30/30@200", 24, "Blend 30/30 trimix"),
    "trimix1845": BlendPreset("21/0@0", "18/45@200", 24, "Blend 18/45 trimix"),
    "trimix2135": BlendPreset("21/0@0", "21/35@200", 24, "Blend 21/35 trimix"),
    "trimix1555": BlendPreset("21/0@0", "15/55@200", 24, "Blend 15/55 trimix"),
}


def get_preset(name: str) -> BlendPreset:
    """
    Get a blend preset by name (case-insensitive).

    Raises:
        KeyError: If preset not found
    """
    key = name.lower()
    if key not in BLEND_PRESETS:
        available = ", ".join(BLEND_PRESETS.keys())
        raise KeyError(f"Unknown preset '{name}'. Available: {available}")
    return BLEND_PRESETS[key]


# =============================================================================
# Argument parsing
# =============================================================================

def parse_gas_string(value: str) -> tuple[float, float, float]:
    """
    Parse ``o2/he@pressure``, e.g. "21/0@50".

    Returns:
        (o2, he, pressure)

    Raises:
        argparse.ArgumentTypeError: If the string is malformed
    """
    match = _GAS_STRING.match(value.strip())
    if not match:
        raise argparse.ArgumentTypeError(
            f"invalid gas '{value}', expected o2/he@pressure (e.g. 21/0@50)"
        )
    o2, he, pressure = (float(group) for group in match.groups())
    return o2, he, pressure


def parse_gas_mix(value: str) -> Gas:
    """
    Parse ``o2/he``, e.g. "50/0", into a gas named after its mix.

    Raises:
        argparse.ArgumentTypeError: If the string is malformed or not a valid mix
    """
    match = _GAS_MIX.match(value.strip())
    if not match:
        raise argparse.ArgumentTypeError(
            f"invalid gas mix '{value}', expected o2/he (e.g. 50/0)"
        )
    o2, he = (float(group) for group in match.groups())
    try:
        return Gas(name=f"{o2:g}/{he:g}", o2=o2, he=he)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


class GasStringAction(argparse.Action):
    """Store a parsed o2/he@pressure into the <dest>_o2, <dest>_he and <dest>_pressure fields."""

    def __call__(self, parser, namespace, values, option_string=None):
        o2, he, pressure = values
        setattr(namespace, f"{self.dest}_o2", o2)
        setattr(namespace, f"{self.dest}_he", he)
        setattr(namespace, f"{self.dest}_pressure", pressure)


def build_parser() -> argparse.ArgumentParser:
    """Argument parser of gas-blend."""
    preset_lines = "\n".join(
        f"  {name:12} {preset.description}" for name, preset in BLEND_PRESETS.items()
    )
    parser = argparse.ArgumentParser(
        prog="gas-blend",
        description="Gas Blender - calculate gas blending steps for scuba diving",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Presets:
{preset_lines}

Examples:
  gas-blend --start 21/0@0 --volume 12 --target 32/0@200
  gas-blend --start 21/0@0 --volume 24 --target 18/35@200
  gas-blend --preset nitrox32 --json
  gas-blend --start 21/0@0 --volume 12 --target 32/0@200 \\
      --gas 21/0 --gas 100/0 --gas 32/0

Options apply left to right: for each field the last of --start and
--start-o2/--start-he/--start-pressure wins, likewise for --target.
A preset overrides everything.

Default gases:
  Air (21/0), O₂ (100/0), He (0/100)
  When --gas is used, ONLY the specified gases are available.
        """,
    )

    parser.add_argument("-s", "--start", type=parse_gas_string, action=GasStringAction, metavar="O2/HE@BAR",
                        help="Starting gas (e.g. 21/0@50)")
    parser.add_argument("-t", "--target", type=parse_gas_string, action=GasStringAction, metavar="O2/HE@BAR",
                        help="Target gas (e.g. 32/0@200)")
    parser.add_argument("-v", "--volume", "--start-volume", dest="volume", type=float, metavar="LITERS",
                        help="Tank volume in liters (e.g. 12)")
    parser.add_argument("--start-o2", type=float, metavar="PERCENT", help="Starting O₂ percentage")
    parser.add_argument("--start-he", type=float, metavar="PERCENT", help="Starting He percentage")
    parser.add_argument("--start-pressure", type=float, metavar="BAR", help="Starting pressure in bar")
    parser.add_argument("--target-o2", type=float, metavar="PERCENT", help="Target O₂ percentage")
    parser.add_argument("--target-he", type=float, metavar="PERCENT", help="Target He percentage")
    parser.add_argument("--target-pressure", type=float, metavar="BAR", help="Target pressure in bar")
    parser.add_argument("-g", "--gas", type=parse_gas_mix, action="append", dest="gases",
                        metavar="O2/HE",
                        help="Available gas (repeatable); if used, ONLY these gases are available")
    parser.add_argument("-p", "--preset", type=str, help="Use a preset blend")
    parser.add_argument("--verbose", action="store_true", help="Show detailed output")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--strict", action="store_true",
                        help="Use strict tolerances (±0.5%% composition, ±1 bar)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def resolve_fill(args: argparse.Namespace) -> tuple[TankState, TargetGas]:
    """
    Combine preset, compact and individual options into the fill to plan.

    The compact and individual options share fields, so whichever came last
    on the command line wins. A preset overrides everything else.

    Raises:
        KeyError: If the preset is unknown
        ValueError: If a required parameter is missing
    """
    start_o2, start_he, start_pressure = args.start_o2, args.start_he, args.start_pressure
    target_o2, target_he, target_pressure = args.target_o2, args.target_he, args.target_pressure
    volume = args.volume

    if args.preset:
        preset = get_preset(args.preset)
        start_o2, start_he, start_pressure = parse_gas_string(preset.start)
        target_o2, target_he, target_pressure = parse_gas_string(preset.target)
        volume = preset.volume

    values = (volume, start_o2, start_he, start_pressure, target_o2, target_he, target_pressure)
    if any(value is None for value in values):
        raise ValueError("Missing required parameters")

    return (
        TankState(volume=volume, o2=start_o2, he=start_he, pressure=start_pressure),
        TargetGas(o2=target_o2, he=target_he, pressure=target_pressure),
    )


# =============================================================================
# Output
# =============================================================================

def _num(value: float) -> str:
    return f"{value:g}"


def print_result(
    starting_gas: TankState,
    target_gas: TargetGas,
    result: BlendingResult,
    gases: list[Gas],
    verbose: bool = False,
) -> None:
    """Print a blending result as a human readable report."""
    print(f"\n{RULE}")
    print("                    GAS BLENDING CALCULATION")
    print(f"{RULE}\n")

    print("STARTING CONDITIONS:")
    print(f"  Tank:     {_num(starting_gas.volume)}L")
    print(f"  Mix:      {_num(starting_gas.o2)}/{_num(starting_gas.he)}")
    print(f"  Pressure: {_num(starting_gas.pressure)} bar")

    print("\nTARGET:")
    print(f"  Mix:      {_num(target_gas.o2)}/{_num(target_gas.he)}")
    print(f"  Pressure: {_num(target_gas.pressure)} bar")

    if verbose:
        print("\nAVAILABLE GASES:")
        for gas in gases:
            print(f"  {gas.name:10} ({_num(gas.o2)}% O₂, {_num(gas.he)}% He)")

    if not result.success:
        print("\n❌ BLENDING FAILED")
        print(f"   {result.error}")
        print(f"\n{RULE}\n")
        return

    print("\n✓ BLENDING STEPS:")
    print(RULE)

    for index, step in enumerate(result.steps, start=1):
        print(f"\n{index}. {step.action}")
        if verbose:
            print(f"   From: {_num(step.from_pressure)} bar ({step.current_mix})")
            print(f"   To:   {_num(step.to_pressure)} bar ({step.new_mix})")
            if step.gas and step.added_pressure:
                print(f"   Added: {_num(step.added_pressure)} bar = "
                      f"{_num(step.added_volume)}L of {step.gas}")
            if step.drained_pressure:
                print(f"   Drained: {_num(step.drained_pressure)} bar")
        elif step.added_pressure:
            print(f"   {_num(step.from_pressure)} → {_num(step.to_pressure)} bar "
                  f"({step.current_mix} → {step.new_mix})")
        else:
            print(f"   {_num(step.from_pressure)} → {_num(step.to_pressure)} bar")

    print(f"\n{RULE}")
    print("FINAL RESULT:")
    print(f"  Mix:      {_num(result.final_mix.o2)}/{_num(result.final_mix.he)}")
    print(f"  Pressure: {_num(result.final_mix.pressure)} bar")

    print("\nGAS USAGE:")
    if not result.gas_usage:
        print("  (No gases added)")
    for name in sorted(result.gas_usage):
        print(f"  {name:10} {round(result.gas_usage[name], 1):g} L")
    print(f"{RULE}\n")


def result_to_json(starting_gas: TankState, target_gas: TargetGas, result: BlendingResult) -> str:
    """Input and result as a JSON document."""
    document = {
        "input": {
            "startingGas": asdict(starting_gas),
            "targetGas": asdict(target_gas),
        },
        "result": result.to_dict(),
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


# =============================================================================
# Entry point
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv

    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        starting_gas, target_gas = resolve_fill(args)
    except KeyError as e:
        print(f"❌ {e.args[0]}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        print("   Use --help to see usage information", file=sys.stderr)
        return 1

    gases = args.gases or DEFAULT_GASES
    config = STRICT_CONFIG if args.strict else DEFAULT_CONFIG
    logger.debug(f"Planning {starting_gas} -> {target_gas} with {[g.name for g in gases]}")

    result = calculate_blending_steps(starting_gas, target_gas, gases, config)

    if args.json:
        print(result_to_json(starting_gas, target_gas, result))
    else:
        print_result(starting_gas, target_gas, result, gases, verbose=args.verbose)

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
