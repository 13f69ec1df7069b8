"""Blending planner, gas definitions and catalog."""

from gas_blender.core.catalog import GasCatalog, create_default_catalog
from gas_blender.core.config import DEFAULT_CONFIG, STRICT_CONFIG, BlendingConfig, get_config
from gas_blender.core.gases import Gas, TankState, TargetGas, classify_gases, get_standard_gas
from gas_blender.core.planner import BlendingResult, BlendingStep, FinalMix, calculate_blending_steps

__all__ = [
    "Gas",
    "TankState",
    "TargetGas",
    "classify_gases",
    "get_standard_gas",
    "BlendingConfig",
    "DEFAULT_CONFIG",
    "STRICT_CONFIG",
    "get_config",
    "BlendingStep",
    "BlendingResult",
    "FinalMix",
    "calculate_blending_steps",
    "GasCatalog",
    "create_default_catalog",
]
