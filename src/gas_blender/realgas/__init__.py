"""Real gas model: Z-factors, mole-equivalents and fill/drain simulation."""

from gas_blender.realgas.calculations import (
    GasComposition,
    MoleEquivalents,
    TankMoles,
    add_gas_to_tank,
    drain_tank,
    gas_to_mole_equivalents,
    mole_equivalents_to_gas,
    solve_for_add_pressure,
    solve_for_component_add_pressure,
)
from gas_blender.realgas.zfactor import (
    HELIUM_Z,
    NITROGEN_Z,
    OXYGEN_Z,
    ZComparison,
    ZFactorTable,
    calculate_mixture_z,
    get_comparison_data,
    get_z_helium,
    get_z_nitrogen,
    get_z_oxygen,
    get_z_table,
    interpolate_z,
)

__all__ = [
    "ZFactorTable",
    "ZComparison",
    "NITROGEN_Z",
    "OXYGEN_Z",
    "HELIUM_Z",
    "get_z_table",
    "interpolate_z",
    "get_z_nitrogen",
    "get_z_oxygen",
    "get_z_helium",
    "calculate_mixture_z",
    "get_comparison_data",
    "MoleEquivalents",
    "TankMoles",
    "GasComposition",
    "gas_to_mole_equivalents",
    "mole_equivalents_to_gas",
    "add_gas_to_tank",
    "drain_tank",
    "solve_for_add_pressure",
    "solve_for_component_add_pressure",
]
