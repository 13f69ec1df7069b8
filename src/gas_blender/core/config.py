"""
Planner thresholds and tolerance profiles.

The default profile uses the real-gas tolerances (±1% composition,
±2 bar). The strict profile uses the tighter ideal-gas tolerances for
callers who need them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class BlendingConfig:
    """
    Tunable thresholds of the blending planner.

    Attributes:
        drain_threshold_moles: Excess mole-equivalents that trigger a drain
        drain_min_fraction: Fraction below which a component counts as absent
        drain_ratio_step: Step of the drain-ratio grid search
        drain_max_ratio: Largest drain ratio tried (fraction of pressure kept)
        composition_margin: Composition margin (%) that triggers a drain
        blending_error_threshold: Max O2+He error (%) for an acceptable simulated blend
        min_pressure_change: Smallest pressure change worth doing (bar)
        min_drain_amount: Smallest drain worth doing (bar)
        helium_headroom: Pressure gap to target (bar) below which adding He forces a drain
        helium_drain_fraction: Fraction of target pressure to drain to for He room
        max_helium_retained: Cap on the fraction of pressure kept when He is too high
        poor_match_error: Single-gas top error (%) above which two-gas blending is preferred
        two_gas_min_o2_spread: O2 difference (%) that makes two-gas blending worthwhile
        split_steps: Number of ratio steps in the two-gas split search
        split_pressure_weight: Weight of pressure error relative to mole errors
        o2_tolerance: Allowed final O2 error (%)
        he_tolerance: Allowed final He error (%)
        pressure_tolerance: Allowed final pressure error (bar)
    """

    drain_threshold_moles: float = 0.5
    drain_min_fraction: float = 0.001
    drain_ratio_step: float = 0.05
    drain_max_ratio: float = 0.95
    composition_margin: float = 1.0
    blending_error_threshold: float = 2.0
    min_pressure_change: float = 0.1
    min_drain_amount: float = 0.5
    helium_headroom: float = 10.0
    helium_drain_fraction: float = 0.5
    max_helium_retained: float = 0.9
    poor_match_error: float = 0.7
    two_gas_min_o2_spread: float = 10.0
    split_steps: int = 50
    split_pressure_weight: float = 0.01

    o2_tolerance: float = 1.0
    he_tolerance: float = 1.0
    pressure_tolerance: float = 2.0

    @property
    def drain_ratios(self) -> list[float]:
        """Drain ratios of the grid search, 0 (complete drain) first."""
        count = int(round(self.drain_max_ratio / self.drain_ratio_step))
        return [i * self.drain_ratio_step for i in range(count + 1)]

    def with_tolerances(self, o2: float, he: float, pressure: float) -> BlendingConfig:
        """Copy of this config with different final tolerances."""
        return replace(self, o2_tolerance=o2, he_tolerance=he, pressure_tolerance=pressure)


DEFAULT_CONFIG = BlendingConfig()

STRICT_CONFIG = DEFAULT_CONFIG.with_tolerances(o2=0.5, he=0.5, pressure=1.0)

CONFIG_PROFILES: dict[str, BlendingConfig] = {
    "real": DEFAULT_CONFIG,
    "strict": STRICT_CONFIG,
}


def get_config(profile: str) -> BlendingConfig:
    """
    Get a named config profile.

    Raises:
        KeyError: If profile not found
    """
    if profile not in CONFIG_PROFILES:
        available = ", ".join(CONFIG_PROFILES.keys())
        raise KeyError(f"Unknown profile '{profile}'. Available: {available}")
    return CONFIG_PROFILES[profile]
