"""
Gas Blender

Plans scuba cylinder fills (nitrox and trimix) using real gas behaviour:
which gases to add, in what order and how much, draining first when the
tank holds the wrong gas.

Example usage:
    >>> from gas_blender import TankState, TargetGas, calculate_blending_steps
    >>> from gas_blender import create_default_catalog
    >>>
    >>> catalog = create_default_catalog()
    >>> result = calculate_blending_steps(
    ...     TankState(volume=12, o2=21, he=0, pressure=0),
    ...     TargetGas(o2=32, he=0, pressure=200),
    ...     catalog.available(),
    ... )
    >>> for step in result.steps:
    ...     print(step.action, step.added_pressure)
"""

from gas_blender.core.gases import Gas, TankState, TargetGas, get_standard_gas
from gas_blender.core.config import BlendingConfig, DEFAULT_CONFIG, STRICT_CONFIG
from gas_blender.core.planner import (
    BlendingResult,
    BlendingStep,
    FinalMix,
    calculate_blending_steps,
)
from gas_blender.core.catalog import GasCatalog, create_default_catalog
from gas_blender.realgas import (
    calculate_mixture_z,
    gas_to_mole_equivalents,
    mole_equivalents_to_gas,
)
from gas_blender.buoyancy import TankInput, calculate_tank_imperial, calculate_tank_metric

__version__ = "0.1.0"

__all__ = [
    # Planning
    "Gas",
    "TankState",
    "TargetGas",
    "get_standard_gas",
    "BlendingConfig",
    "DEFAULT_CONFIG",
    "STRICT_CONFIG",
    "BlendingStep",
    "BlendingResult",
    "FinalMix",
    "calculate_blending_steps",
    # Catalog
    "GasCatalog",
    "create_default_catalog",
    # Real gas
    "calculate_mixture_z",
    "gas_to_mole_equivalents",
    "mole_equivalents_to_gas",
    # Buoyancy
    "TankInput",
    "calculate_tank_metric",
    "calculate_tank_imperial",
]
