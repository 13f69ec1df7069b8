"""Cylinder weight and buoyancy calculations."""

from gas_blender.buoyancy.tank import (
    TankInput,
    TankResult,
    calculate_tank_imperial,
    calculate_tank_metric,
    to_dec,
)

__all__ = [
    "TankInput",
    "TankResult",
    "calculate_tank_metric",
    "calculate_tank_imperial",
    "to_dec",
]
