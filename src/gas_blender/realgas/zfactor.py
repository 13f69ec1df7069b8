"""
Compressibility (Z) factors for the gases found in a scuba cylinder.

At blending pressures nitrogen, oxygen and helium deviate noticeably from
the ideal gas law. This module holds empirical Z-factor tables for the pure
gases (20°C, 0-400 bar) and combines them into a mixture Z-factor with
Kay's mixing rule.

References:
    Z = P·V / (n·R·T)
    Z > 1: gas is harder to compress than ideal (N2, He)
    Z < 1: gas is easier to compress than ideal (O2)
    Kay's rule: Z_mix = Σ y_i · Z_i
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np


@dataclass
class ZFactorTable:
    """
    Pressure-dependent compressibility factors of a pure gas.

    Samples are sorted by pressure on construction. Lookups between samples
    are linearly interpolated; lookups outside the sampled range are clamped
    to the first/last Z value.

    Attributes:
        pressures: Sample pressures (bar)
        z_values: Z-factor at each sample pressure
        gas: Name of the gas this table describes

    Example:
        >>> table = ZFactorTable([0, 100], [1.0, 1.02], gas="N2")
        >>> table.z_at(50)
        1.01
    """

    pressures: np.ndarray = field(repr=False)
    z_values: np.ndarray = field(repr=False)
    gas: str = "Unknown"

    def __init__(
        self,
        pressures: Sequence[float],
        z_values: Sequence[float],
        gas: str = "Unknown",
    ):
        """
        Initialize table with matched arrays of pressures and Z-factors.

        Args:
            pressures: Sample pressures (bar)
            z_values: Corresponding Z-factors
            gas: Name of the gas (for identification)

        Raises:
            ValueError: If arrays have different lengths or are too short
        """
        self.pressures = np.array(pressures, dtype=float)
        self.z_values = np.array(z_values, dtype=float)
        self.gas = gas

        if len(self.pressures) != len(self.z_values):
            raise ValueError(
                f"pressures ({len(self.pressures)}) and z_values "
                f"({len(self.z_values)}) must have same length"
            )
        if len(self.pressures) < 2:
            raise ValueError("Need at least 2 samples for interpolation")

        sort_idx = np.argsort(self.pressures)
        self.pressures = self.pressures[sort_idx]
        self.z_values = self.z_values[sort_idx]

    def z_at(self, pressure: float) -> float:
        """Z-factor at the given pressure (bar)."""
        # np.interp clamps to the end values outside the sampled range
        return float(np.interp(pressure, self.pressures, self.z_values))

    @classmethod
    def from_pairs(cls, pairs: Sequence[Sequence[float]], gas: str = "Unknown") -> ZFactorTable:
        """
        Build a table from (pressure, Z) pairs.

        Args:
            pairs: Sequence of (pressure, Z) samples
            gas: Name of the gas

        Returns:
            ZFactorTable instance
        """
        data = np.array(pairs, dtype=float)
        return cls(pressures=data[:, 0], z_values=data[:, 1], gas=gas)

    def __repr__(self) -> str:
        return (
            f"ZFactorTable(gas={self.gas!r}, "
            f"points={len(self.pressures)}, "
            f"range=[{self.pressures[0]:.0f}, {self.pressures[-1]:.0f}] bar)"
        )


# =============================================================================
# Pure gas tables at 20°C (NIST WebBook, interpolated for scuba pressures)
# =============================================================================

NITROGEN_Z = ZFactorTable.from_pairs(
    [
        (0, 1.0), (10, 1.0017), (20, 1.0035), (30, 1.0053), (40, 1.0071),
        (50, 1.0088), (75, 1.0145), (100, 1.0251), (125, 1.0366),
        (150, 1.0482), (175, 1.0626), (200, 1.0771), (225, 1.0938),
        (250, 1.1108), (275, 1.1295), (300, 1.1485), (350, 1.189),
        (400, 1.2315),
    ],
    gas="N2",
)

OXYGEN_Z = ZFactorTable.from_pairs(
    [
        (0, 1.0), (10, 0.9984), (20, 0.9968), (30, 0.9952), (40, 0.9937),
        (50, 0.9922), (75, 0.9864), (100, 0.9776), (125, 0.9706),
        (150, 0.9638), (175, 0.9585), (200, 0.9534), (225, 0.95),
        (250, 0.9468), (275, 0.9453), (300, 0.9439), (350, 0.9425),
        (400, 0.9428),
    ],
    gas="O2",
)

HELIUM_Z = ZFactorTable.from_pairs(
    [
        (0, 1.0), (10, 1.0044), (20, 1.0091), (30, 1.014), (40, 1.0188),
        (50, 1.0236), (75, 1.038), (100, 1.0548), (125, 1.0722),
        (150, 1.09), (175, 1.1091), (200, 1.1285), (225, 1.1488),
        (250, 1.1695), (275, 1.1909), (300, 1.2126), (350, 1.2574),
        (400, 1.3038),
    ],
    gas="He",
)

Z_TABLES: dict[str, ZFactorTable] = {
    "N2": NITROGEN_Z,
    "O2": OXYGEN_Z,
    "He": HELIUM_Z,
}


def get_z_table(gas: str) -> ZFactorTable:
    """
    Get the Z-factor table for a pure gas.

    Args:
        gas: Gas identifier ("N2", "O2" or "He")

    Returns:
        ZFactorTable instance

    Raises:
        KeyError: If no table exists for the gas
    """
    if gas not in Z_TABLES:
        available = ", ".join(Z_TABLES.keys())
        raise KeyError(f"No Z-factor table for '{gas}'. Available: {available}")
    return Z_TABLES[gas]


# =============================================================================
# Lookups
# =============================================================================

def interpolate_z(pressure: float, table: ZFactorTable) -> float:
    """
    Linearly interpolated Z-factor from a table.

    Returns exactly the sampled value at sample pressures and is clamped
    to the first/last sample outside the table range.
    """
    return table.z_at(pressure)


def get_z_nitrogen(pressure: float) -> float:
    """Z-factor of pure nitrogen at the given pressure (bar)."""
    return interpolate_z(pressure, NITROGEN_Z)


def get_z_oxygen(pressure: float) -> float:
    """Z-factor of pure oxygen at the given pressure (bar)."""
    return interpolate_z(pressure, OXYGEN_Z)


def get_z_helium(pressure: float) -> float:
    """Z-factor of pure helium at the given pressure (bar)."""
    return interpolate_z(pressure, HELIUM_Z)


def calculate_mixture_z(
    o2_fraction: float,
    he_fraction: float,
    pressure: float,
) -> float:
    """
    Mixture Z-factor using Kay's mixing rule.

    Z_mix = y_O2·Z_O2 + y_He·Z_He + y_N2·Z_N2, with nitrogen taking
    whatever is left over. Second virial cross terms are ignored.

    Args:
        o2_fraction: Oxygen mole fraction (0-1)
        he_fraction: Helium mole fraction (0-1)
        pressure: Total pressure (bar)

    Returns:
        Compressibility factor of the mixture

    Examples:
        >>> round(calculate_mixture_z(0.21, 0.0, 200), 4)  # Air
        1.0511
    """
    n2_fraction = max(0.0, 1.0 - o2_fraction - he_fraction)

    return (
        o2_fraction * get_z_oxygen(pressure)
        + he_fraction * get_z_helium(pressure)
        + n2_fraction * get_z_nitrogen(pressure)
    )


# =============================================================================
# Ideal vs. real comparison
# =============================================================================

@dataclass(frozen=True)
class ZComparison:
    """
    Z-factors of the blending gases at one pressure.

    Attributes:
        pressure: Pressure the factors were evaluated at (bar)
        z_n2: Nitrogen Z-factor
        z_o2: Oxygen Z-factor
        z_he: Helium Z-factor
        z_air: Air (21% O2) Z-factor by Kay's rule
    """
    pressure: float
    z_n2: float
    z_o2: float
    z_he: float
    z_air: float

    @property
    def ideal_deviation(self) -> dict[str, str]:
        """Signed deviation from ideal behaviour per gas, e.g. ``"+7.71%"``."""
        return {
            "n2": format_deviation(self.z_n2),
            "o2": format_deviation(self.z_o2),
            "he": format_deviation(self.z_he),
            "air": format_deviation(self.z_air),
        }


def format_deviation(z: float) -> str:
    """Format a Z-factor as percent deviation from 1 with explicit sign."""
    percent = (z - 1.0) * 100.0
    sign = "+" if percent > 0 else ""
    return f"{sign}{percent:.2f}%"


def get_comparison_data(pressure: float) -> ZComparison:
    """
    Compare real and ideal gas behaviour at a pressure.

    Args:
        pressure: Pressure (bar)

    Returns:
        ZComparison with pure-gas and air Z-factors
    """
    return ZComparison(
        pressure=pressure,
        z_n2=get_z_nitrogen(pressure),
        z_o2=get_z_oxygen(pressure),
        z_he=get_z_helium(pressure),
        z_air=calculate_mixture_z(0.21, 0.0, pressure),
    )
