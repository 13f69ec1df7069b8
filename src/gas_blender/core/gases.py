"""
Gas, tank and target definitions for blending.

All compositions are in percent (0-100), pressures in bar and tank
volumes in litres. Nitrogen is always the balance of oxygen and helium.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence


@dataclass(frozen=True)
class Gas:
    """
    A source gas available for blending.

    Attributes:
        name: Gas name/identifier, unique within a catalog
        o2: Oxygen (%)
        he: Helium (%)
        editable: Whether a user may change the composition
    """

    name: str
    o2: float
    he: float = 0.0
    editable: bool = False

    def __post_init__(self) -> None:
        if self.o2 < 0 or self.he < 0:
            raise ValueError(f"Gas '{self.name}': fractions must not be negative")
        if self.o2 + self.he > 100:
            raise ValueError(
                f"Gas '{self.name}': O2 ({self.o2}%) + He ({self.he}%) exceeds 100%"
            )

    @property
    def n2(self) -> float:
        """Nitrogen (%), the balance."""
        return 100.0 - self.o2 - self.he

    @property
    def mix(self) -> str:
        """Compact ``o2/he`` notation."""
        return f"{self.o2:g}/{self.he:g}"


@dataclass(frozen=True)
class TankState:
    """
    Current contents of a cylinder.

    Attributes:
        volume: Internal (water) volume (litres)
        o2: Oxygen (%)
        he: Helium (%)
        pressure: Current pressure (bar)
    """

    volume: float
    o2: float
    he: float
    pressure: float


@dataclass(frozen=True)
class TargetGas:
    """
    Desired fill.

    Not validated on construction: the planner reports an impossible
    composition through its result instead.

    Attributes:
        o2: Oxygen (%)
        he: Helium (%)
        pressure: Final pressure (bar)
    """

    o2: float
    he: float
    pressure: float


# =============================================================================
# Standard gases
# =============================================================================

AIR = Gas(name="Air", o2=21, he=0)
OXYGEN = Gas(name="O2", o2=100, he=0)
HELIUM = Gas(name="Helium", o2=0, he=100)
NITROX_32 = Gas(name="Nitrox 32", o2=32, he=0, editable=True)
TRIMIX_10_70 = Gas(name="10/70", o2=10, he=70, editable=True)

STANDARD_GASES: dict[str, Gas] = {
    "Air": AIR,
    "O2": OXYGEN,
    "Helium": HELIUM,
    "Nitrox 32": NITROX_32,
    "10/70": TRIMIX_10_70,
}


def get_standard_gas(name: str) -> Gas:
    """
    Get a standard gas by name.

    Raises:
        KeyError: If gas not found
    """
    if name not in STANDARD_GASES:
        available = ", ".join(STANDARD_GASES.keys())
        raise KeyError(f"Unknown gas '{name}'. Available: {available}")
    return STANDARD_GASES[name]


def gas_name_for(o2: float, he: float) -> str:
    """
    Default display name of a mix.

    Oxygen-enriched air between 22% and 40% is called "Nitrox N",
    everything else uses ``o2/he`` notation.
    """
    if he == 0 and 21 < o2 < 41:
        return f"Nitrox {o2:g}"
    return f"{o2:g}/{he:g}"


# =============================================================================
# Gas roles
# =============================================================================

@dataclass(frozen=True)
class GasRoles:
    """
    Catalog gases sorted by the part they can play in a blend.

    Attributes:
        pure_he: First gas with >95% He and <5% O2
        pure_o2: First gas with >95% O2 and <5% He
        air_gases: Air/nitrox (<5% He, 19-40% O2), ascending O2
        trimix_gases: Helium-bearing mixes (>30% He), descending He
    """

    pure_he: Optional[Gas] = None
    pure_o2: Optional[Gas] = None
    air_gases: tuple[Gas, ...] = field(default_factory=tuple)
    trimix_gases: tuple[Gas, ...] = field(default_factory=tuple)

    @property
    def helium_source(self) -> Optional[Gas]:
        """Pure helium if available, else the richest trimix."""
        if self.pure_he is not None:
            return self.pure_he
        return self.trimix_gases[0] if self.trimix_gases else None

    @property
    def has_ideal_sources(self) -> bool:
        """True when both pure helium and pure oxygen are available."""
        return self.pure_he is not None and self.pure_o2 is not None

    @property
    def lowest_o2_air(self) -> Optional[Gas]:
        return self.air_gases[0] if self.air_gases else None

    @property
    def highest_o2_air(self) -> Optional[Gas]:
        return self.air_gases[-1] if self.air_gases else None


def classify_gases(gases: Sequence[Gas]) -> GasRoles:
    """
    Partition a gas list into blending roles.

    Args:
        gases: Available gases, in catalog order

    Returns:
        GasRoles for the list
    """
    pure_he = next((g for g in gases if g.he > 95 and g.o2 < 5), None)
    pure_o2 = next((g for g in gases if g.o2 > 95 and g.he < 5), None)
    air_gases = sorted(
        (g for g in gases if g.he < 5 and 19 <= g.o2 <= 40),
        key=lambda g: g.o2,
    )
    trimix_gases = sorted(
        (g for g in gases if g.he > 30),
        key=lambda g: g.he,
        reverse=True,
    )

    return GasRoles(
        pure_he=pure_he,
        pure_o2=pure_o2,
        air_gases=tuple(air_gases),
        trimix_gases=tuple(trimix_gases),
    )
