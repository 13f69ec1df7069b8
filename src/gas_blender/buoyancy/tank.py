"""
Scuba cylinder weight and buoyancy.

Provides functions for:
- Converting cylinder size, pressure and weight between metric and imperial
- Calculating buoyancy of an empty and a full cylinder in fresh or salt water
- Explaining the calculation step by step

References:
    buoyancy = displaced water - cylinder weight - valve weight [- gas weight]
    displaced water = (metal volume + valve volume + internal volume) × water density
    gas weight = air density × pressure × internal volume
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field


# =============================================================================
# Constants
# =============================================================================

BAR_PER_PSI = 0.06895
PSI_PER_ATM = 14.6959
LBS_PER_KG = 2.20462
LITERS_PER_CUFT = 28.31685
KG_LITER_IN_LBS_CUFT = LBS_PER_KG * LITERS_PER_CUFT

STEEL_DENSITY = 7.85  # kg/l, chrome-molybdenum steel
ALU_DENSITY = 2.7  # kg/l, 6061-T6 aluminium
AIR_DENSITY = 0.001225  # kg/l at 15°C, 1 bar
SALT_DENSITY = 1.024  # kg/l
FRESH_DENSITY = 1.0  # kg/l
VALVE_WEIGHT = 0.9  # kg
MANIFOLD_WEIGHT = 1.5  # kg, on top of the two valves of a doubles set

STEEL_DENSITY_IMP = STEEL_DENSITY * KG_LITER_IN_LBS_CUFT  # lbs/cuft
ALU_DENSITY_IMP = ALU_DENSITY * KG_LITER_IN_LBS_CUFT
AIR_DENSITY_IMP = AIR_DENSITY * KG_LITER_IN_LBS_CUFT
SALT_DENSITY_IMP = SALT_DENSITY * KG_LITER_IN_LBS_CUFT
FRESH_DENSITY_IMP = FRESH_DENSITY * KG_LITER_IN_LBS_CUFT


@dataclass
class TankInput:
    """
    Cylinder description.

    Metric fields are used by calculate_tank_metric, imperial fields by
    calculate_tank_imperial.

    Attributes:
        liters: Internal volume (l)
        bar: Working pressure (bar)
        kg: Cylinder weight without valve (kg)
        cuft: Gas capacity at working pressure (cuft)
        psi: Working pressure (psi)
        lbs: Cylinder weight without valve (lbs)
        is_aluminium: Aluminium instead of steel
        is_salt_water: Salt instead of fresh water
        has_valve: Include the valve weight
        is_doubles: Two cylinders with a manifold
    """
    liters: float = 0.0
    bar: float = 0.0
    kg: float = 0.0
    cuft: float = 0.0
    psi: float = 0.0
    lbs: float = 0.0
    is_aluminium: bool = False
    is_salt_water: bool = True
    has_valve: bool = True
    is_doubles: bool = False


@dataclass
class TankResult:
    """Both unit systems, buoyancy, and the explanation of how it was derived."""
    liters: float
    bar: float
    kg: float
    cuft: float
    psi: float
    lbs: float
    empty_buoyancy_kg: float
    full_buoyancy_kg: float
    empty_buoyancy_lbs: float
    full_buoyancy_lbs: float
    calculation: list[str] = field(default_factory=list)

    @property
    def air_weight_kg(self) -> float:
        """Weight of the gas in a full cylinder (kg)."""
        return self.empty_buoyancy_kg - self.full_buoyancy_kg


def to_dec(value: float, four_digits: bool = False) -> float:
    """
    Round for display.

    One decimal, or a whole number when that decimal would be 0. With
    ``four_digits``, four decimals. NaN and infinity display as 0.
    """
    if not math.isfinite(value):
        return 0.0
    if four_digits:
        return round(value, 4)
    one_decimal = f"{value:.1f}"
    if one_decimal.endswith("0"):
        return float(f"{value:.0f}")
    return float(one_decimal)


def _fmt(value: float, four_digits: bool = True) -> str:
    return f"{to_dec(value, four_digits):g}"


# =============================================================================
# Calculations
# =============================================================================

def calculate_tank_metric(tank: TankInput) -> TankResult:
    """
    Calculate buoyancy from metric inputs.

    Args:
        tank: Cylinder with liters, bar and kg set

    Returns:
        TankResult, buoyancy in kg (positive floats, negative sinks)

    Examples:
        >>> result = calculate_tank_metric(TankInput(liters=12, bar=232, kg=14.5))
        >>> result.empty_buoyancy_kg
        -1.1
    """
    liters, bar, kg = tank.liters, tank.bar, tank.kg

    cuft = liters / LITERS_PER_CUFT * bar
    psi = bar / BAR_PER_PSI
    lbs = kg * LBS_PER_KG

    metal = ALU_DENSITY if tank.is_aluminium else STEEL_DENSITY
    water = SALT_DENSITY if tank.is_salt_water else FRESH_DENSITY
    valve = VALVE_WEIGHT if tank.has_valve else 0.0

    if tank.is_doubles:
        valve = VALVE_WEIGHT * 2 + MANIFOLD_WEIGHT if tank.has_valve else 0.0
        liters *= 2
        kg *= 2

    vol_metal = kg / metal
    vol_valve = valve / STEEL_DENSITY
    displaced = (vol_metal + vol_valve + liters) * water
    air = AIR_DENSITY * bar * liters
    empty = displaced - kg - valve
    full = empty - air

    lines = [f"Steel has a density of {STEEL_DENSITY} kg/liter"]
    if metal != STEEL_DENSITY:
        lines[-1] += f", and aluminium is {ALU_DENSITY} kg/liter"
    lines.append(f"The volume of the tank metal is {kg:g} kg / {metal} = {_fmt(vol_metal)} liters")

    plus_valve = minus_valve = ""
    if valve != 0:
        lines.append(
            f"The volume of the valve is {_fmt(valve)} kg / {STEEL_DENSITY} = {_fmt(vol_valve)} liters"
        )
        plus_valve = f" + {_fmt(vol_valve)}"
        minus_valve = f" - {_fmt(valve)}"

    if water == SALT_DENSITY:
        lines.append(f"The density of salt water is {SALT_DENSITY} kg/liter")
    else:
        lines.append(f"The density of fresh water is {FRESH_DENSITY} kg/liter")

    lines.append(
        f"Total weight in water: ({liters:g} + {_fmt(vol_metal)}{plus_valve}) x {water} "
        f"= {_fmt(displaced)} kg"
    )
    lines.append(
        f"Air has a density of {AIR_DENSITY} kg/liter. The air in a full tank weighs "
        f"{AIR_DENSITY} x {liters:g} liters x {bar:g} bar = {_fmt(air)} kg"
    )
    lines.append(f"Tank buoyancy when empty: {_fmt(displaced)} - {kg:g}{minus_valve} = {_fmt(empty, False)} kg")
    lines.append(
        f"Tank buoyancy when full: {_fmt(displaced)} - {kg:g}{minus_valve} - {_fmt(air)} "
        f"= {_fmt(full, False)} kg"
    )

    return TankResult(
        liters=to_dec(liters),
        bar=to_dec(bar),
        kg=to_dec(kg),
        cuft=to_dec(cuft),
        psi=to_dec(psi),
        lbs=to_dec(lbs),
        empty_buoyancy_kg=to_dec(empty),
        full_buoyancy_kg=to_dec(full),
        empty_buoyancy_lbs=to_dec(empty * LBS_PER_KG),
        full_buoyancy_lbs=to_dec(full * LBS_PER_KG),
        calculation=lines,
    )


def calculate_tank_imperial(tank: TankInput) -> TankResult:
    """
    Calculate buoyancy from imperial inputs.

    The internal volume is derived from the rated capacity:
    cuft / psi × psi per atmosphere.

    Args:
        tank: Cylinder with cuft, psi and lbs set

    Returns:
        TankResult, buoyancy in lbs as computed and kg converted
    """
    cuft, psi, lbs = tank.cuft, tank.psi, tank.lbs

    liters = cuft / (psi * BAR_PER_PSI) * LITERS_PER_CUFT
    bar = psi * BAR_PER_PSI
    kg = lbs / LBS_PER_KG

    metal = ALU_DENSITY_IMP if tank.is_aluminium else STEEL_DENSITY_IMP
    water = SALT_DENSITY_IMP if tank.is_salt_water else FRESH_DENSITY_IMP
    valve = VALVE_WEIGHT * LBS_PER_KG if tank.has_valve else 0.0

    if tank.is_doubles:
        valve = (VALVE_WEIGHT * 2 + MANIFOLD_WEIGHT) * LBS_PER_KG if tank.has_valve else 0.0
        cuft *= 2
        lbs *= 2

    vol_inner = cuft / psi * PSI_PER_ATM
    vol_metal = lbs / metal
    vol_valve = valve / STEEL_DENSITY_IMP
    displaced = (vol_inner + vol_metal + vol_valve) * water
    air = AIR_DENSITY_IMP * cuft
    empty = displaced - lbs - valve
    full = empty - air

    lines = [
        f"Air has a pressure of {PSI_PER_ATM} psi at 1 ATM.",
        f"Tank inner volume is {cuft:g} cuft / {psi:g} psi x {PSI_PER_ATM} = {_fmt(vol_inner)} cuft",
        f"Steel has a density of {_fmt(STEEL_DENSITY_IMP)} lbs/cuft",
    ]
    if metal != STEEL_DENSITY_IMP:
        lines[-1] += f", and aluminium is {_fmt(ALU_DENSITY_IMP)} lbs/cuft"
    lines.append(f"The volume of the tank metal is {lbs:g} lbs / {_fmt(metal)} = {_fmt(vol_metal)} cuft")

    plus_valve = minus_valve = ""
    if valve != 0:
        lines.append(
            f"The volume of the valve is {_fmt(valve)} lbs / {_fmt(STEEL_DENSITY_IMP)} "
            f"= {_fmt(vol_valve)} cuft"
        )
        plus_valve = f" + {_fmt(vol_valve)}"
        minus_valve = f" - {_fmt(valve)}"

    if water == SALT_DENSITY_IMP:
        lines.append(f"The density of salt water is {_fmt(SALT_DENSITY_IMP)} lbs/cuft")
    else:
        lines.append(f"The density of fresh water is {_fmt(FRESH_DENSITY_IMP)} lbs/cuft")

    lines.append(
        f"Total weight in water: ({_fmt(vol_inner)} + {_fmt(vol_metal)}{plus_valve}) x {_fmt(water)} "
        f"= {_fmt(displaced)} lbs"
    )
    lines.append(
        f"Air has a density of {_fmt(AIR_DENSITY_IMP)} lbs/cuft. The air in a full tank weighs "
        f"{_fmt(AIR_DENSITY_IMP)} x {cuft:g} cuft = {_fmt(air)} lbs"
    )
    lines.append(f"Tank buoyancy when empty: {_fmt(displaced)} - {lbs:g}{minus_valve} = {_fmt(empty, False)} lbs")
    lines.append(
        f"Tank buoyancy when full: {_fmt(displaced)} - {lbs:g}{minus_valve} - {_fmt(air)} "
        f"= {_fmt(full, False)} lbs"
    )

    return TankResult(
        liters=to_dec(liters),
        bar=to_dec(bar),
        kg=to_dec(kg),
        cuft=to_dec(cuft),
        psi=to_dec(psi),
        lbs=to_dec(lbs),
        empty_buoyancy_kg=to_dec(empty / LBS_PER_KG),
        full_buoyancy_kg=to_dec(full / LBS_PER_KG),
        empty_buoyancy_lbs=to_dec(empty),
        full_buoyancy_lbs=to_dec(full),
        calculation=lines,
    )
