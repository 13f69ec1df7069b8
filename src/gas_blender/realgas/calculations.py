"""
Real gas calculations for filling and draining a cylinder.

Provides functions for:
- Converting between gas composition/pressure and mole-equivalents
- Simulating the addition of a gas to a tank (forward model)
- Simulating a drain
- Solving for the pressure of gas to add to reach a mole target (inverse)

References:
    n = P·V / (Z·R·T)
    With V, R and T fixed for a given fill, n is proportional to P/Z.
    P/Z is used as the "mole-equivalent" so V, R and T never need tracking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from gas_blender.realgas.zfactor import calculate_mixture_z

logger = logging.getLogger(__name__)

Component = Literal["o2", "he", "n2"]

MAX_ITERATIONS = 30
ADD_CONVERGENCE = 0.001  # mole-equivalents
SOLVER_CONVERGENCE = 0.01  # mole-equivalents
MIN_SOLVER_PRESSURE = 0.01  # bar
MAX_SOLVER_PRESSURE = 500.0  # bar
MIN_SOURCE_FRACTION = 0.001


# =============================================================================
# Result records
# =============================================================================

@dataclass(frozen=True)
class MoleEquivalents:
    """
    Amount of each component, proportional to true moles.

    Attributes:
        o2: Oxygen mole-equivalent
        he: Helium mole-equivalent
        n2: Nitrogen mole-equivalent
    """
    o2: float = 0.0
    he: float = 0.0
    n2: float = 0.0

    @property
    def total(self) -> float:
        """Sum of all components."""
        return self.o2 + self.he + self.n2

    def component(self, name: Component) -> float:
        """Mole-equivalent of one component ("o2", "he" or "n2")."""
        return getattr(self, name)


@dataclass(frozen=True)
class TankMoles(MoleEquivalents):
    """
    Mole-equivalents in a tank together with its pressure.

    Returned by the add/drain simulations.

    Attributes:
        pressure: Tank pressure after the operation (bar)
    """
    pressure: float = 0.0

    @property
    def moles(self) -> MoleEquivalents:
        """Mole-equivalents without the pressure."""
        return MoleEquivalents(o2=self.o2, he=self.he, n2=self.n2)


@dataclass(frozen=True)
class GasComposition:
    """
    Composition in percent derived from mole-equivalents.

    Attributes:
        o2_percent: Oxygen (%)
        he_percent: Helium (%)
        n2_percent: Nitrogen (%)
    """
    o2_percent: float
    he_percent: float
    n2_percent: float


# =============================================================================
# Conversions
# =============================================================================

def gas_to_mole_equivalents(
    o2_percent: float,
    he_percent: float,
    pressure: float,
) -> MoleEquivalents:
    """
    Convert a gas composition at a pressure to mole-equivalents.

    n_total = P / Z_mix and n_i = y_i · n_total.

    Args:
        o2_percent: Oxygen (%)
        he_percent: Helium (%)
        pressure: Total pressure (bar)

    Returns:
        MoleEquivalents (all zero for pressure <= 0)

    Examples:
        >>> air = gas_to_mole_equivalents(21, 0, 200)
        >>> round(air.total, 1)
        190.3
    """
    if pressure <= 0:
        return MoleEquivalents()

    o2_fraction = o2_percent / 100.0
    he_fraction = he_percent / 100.0
    n2_fraction = max(0.0, 1.0 - o2_fraction - he_fraction)

    z_mix = calculate_mixture_z(o2_fraction, he_fraction, pressure)
    total = pressure / z_mix

    return MoleEquivalents(
        o2=o2_fraction * total,
        he=he_fraction * total,
        n2=n2_fraction * total,
    )


def mole_equivalents_to_gas(o2: float, he: float, n2: float) -> GasComposition:
    """
    Convert mole-equivalents back to a composition in percent.

    Mole fractions are the composition, so no pressure is needed.

    Returns:
        GasComposition (all zero if there is no gas)
    """
    total = o2 + he + n2
    if total <= 0:
        return GasComposition(0.0, 0.0, 0.0)

    return GasComposition(
        o2_percent=o2 / total * 100.0,
        he_percent=he / total * 100.0,
        n2_percent=n2 / total * 100.0,
    )


# =============================================================================
# Forward simulation
# =============================================================================

def add_gas_to_tank(
    o2: float,
    he: float,
    n2: float,
    pressure: float,
    add_o2_percent: float,
    add_he_percent: float,
    add_pressure: float,
) -> TankMoles:
    """
    Add gas to a tank so that its pressure rises by exactly ``add_pressure``.

    The mole-equivalents needed to reach the new pressure depend on the Z
    factor of the resulting mixture, which in turn depends on how much is
    added. Solved by fixed-point iteration: guess the added amount, compute
    the resulting composition and its Z at the target pressure, derive the
    total that pressure requires and re-derive the added amount from it.

    Args:
        o2, he, n2: Current mole-equivalents in the tank
        pressure: Current pressure (bar)
        add_o2_percent: Oxygen in the added gas (%)
        add_he_percent: Helium in the added gas (%)
        add_pressure: Pressure increase (bar)

    Returns:
        TankMoles after the addition, pressure = pressure + add_pressure
    """
    if add_pressure <= 0:
        return TankMoles(o2=o2, he=he, n2=n2, pressure=pressure)

    target_pressure = pressure + add_pressure
    add_o2 = add_o2_percent / 100.0
    add_he = add_he_percent / 100.0
    add_n2 = max(0.0, 1.0 - add_o2 - add_he)
    current_total = o2 + he + n2

    # Ideal gas guess
    delta = add_pressure

    for _ in range(MAX_ITERATIONS):
        new_o2 = o2 + add_o2 * delta
        new_he = he + add_he * delta
        new_n2 = n2 + add_n2 * delta
        new_total = new_o2 + new_he + new_n2

        if new_total <= 0:
            return TankMoles(pressure=0.0)

        z_mix = calculate_mixture_z(new_o2 / new_total, new_he / new_total, target_pressure)
        required_total = target_pressure / z_mix

        if abs(new_total - required_total) < ADD_CONVERGENCE:
            return TankMoles(o2=new_o2, he=new_he, n2=new_n2, pressure=target_pressure)

        delta = max(0.0, required_total - current_total)

    logger.debug(
        f"add_gas_to_tank did not converge in {MAX_ITERATIONS} iterations "
        f"({add_o2_percent}/{add_he_percent} +{add_pressure:.2f} bar)"
    )
    return TankMoles(
        o2=o2 + add_o2 * delta,
        he=he + add_he * delta,
        n2=n2 + add_n2 * delta,
        pressure=target_pressure,
    )


def drain_tank(
    o2: float,
    he: float,
    n2: float,
    pressure: float,
    target_pressure: float,
) -> TankMoles:
    """
    Drain a tank down to ``target_pressure``.

    Gas leaves with the tank's own composition, so every component is
    scaled by the same ratio.

    Args:
        o2, he, n2: Current mole-equivalents in the tank
        pressure: Current pressure (bar)
        target_pressure: Pressure after draining (bar)

    Returns:
        TankMoles after draining
    """
    if pressure <= 0:
        return TankMoles(o2=o2, he=he, n2=n2, pressure=0.0)

    ratio = target_pressure / pressure

    return TankMoles(
        o2=o2 * ratio,
        he=he * ratio,
        n2=n2 * ratio,
        pressure=target_pressure,
    )


# =============================================================================
# Inverse solvers
# =============================================================================

def solve_for_add_pressure(
    o2: float,
    he: float,
    n2: float,
    pressure: float,
    add_o2_percent: float,
    add_he_percent: float,
    target_total: float,
) -> float:
    """
    Pressure of a gas to add to reach a target total mole-equivalent.

    Args:
        o2, he, n2: Current mole-equivalents in the tank
        pressure: Current pressure (bar)
        add_o2_percent: Oxygen in the added gas (%)
        add_he_percent: Helium in the added gas (%)
        target_total: Total mole-equivalent wanted after the addition

    Returns:
        Pressure to add (bar), 0 if the target is already met
    """
    current_total = o2 + he + n2
    wanted = target_total - current_total

    if wanted <= 0:
        return 0.0

    add_pressure = wanted

    for _ in range(MAX_ITERATIONS):
        result = add_gas_to_tank(o2, he, n2, pressure, add_o2_percent, add_he_percent, add_pressure)
        error = result.total - target_total

        if abs(error) < SOLVER_CONVERGENCE:
            return add_pressure

        achieved = result.total - current_total
        if achieved <= 0:
            break
        add_pressure *= wanted / achieved
        add_pressure = max(MIN_SOLVER_PRESSURE, min(add_pressure, MAX_SOLVER_PRESSURE))

    logger.debug(f"solve_for_add_pressure stopped at {add_pressure:.3f} bar")
    return add_pressure


def solve_for_component_add_pressure(
    o2: float,
    he: float,
    n2: float,
    pressure: float,
    add_o2_percent: float,
    add_he_percent: float,
    target_component: float,
    component: Component,
) -> float:
    """
    Pressure of a gas to add to reach a target amount of ONE component.

    Used e.g. to find how much helium brings the tank to the helium
    mole-equivalent of the target mix.

    Args:
        o2, he, n2: Current mole-equivalents in the tank
        pressure: Current pressure (bar)
        add_o2_percent: Oxygen in the added gas (%)
        add_he_percent: Helium in the added gas (%)
        target_component: Mole-equivalent of ``component`` wanted afterwards
        component: "o2", "he" or "n2"

    Returns:
        Pressure to add (bar). 0 if the target is already met or the gas
        carries (almost) none of the component.

    Raises:
        ValueError: If component is not one of "o2", "he", "n2"
    """
    fractions = {
        "o2": add_o2_percent / 100.0,
        "he": add_he_percent / 100.0,
        "n2": max(0.0, 100.0 - add_o2_percent - add_he_percent) / 100.0,
    }
    if component not in fractions:
        raise ValueError(f"Unknown component '{component}'. Use 'o2', 'he' or 'n2'.")

    current = MoleEquivalents(o2=o2, he=he, n2=n2).component(component)
    wanted = target_component - current

    if wanted <= 0:
        return 0.0

    fraction = fractions[component]
    if fraction <= MIN_SOURCE_FRACTION:
        return 0.0

    add_pressure = wanted / fraction

    for _ in range(MAX_ITERATIONS):
        result = add_gas_to_tank(o2, he, n2, pressure, add_o2_percent, add_he_percent, add_pressure)
        reached = result.component(component)

        if abs(reached - target_component) < SOLVER_CONVERGENCE:
            return add_pressure

        achieved = reached - current
        if achieved <= 0:
            break
        add_pressure *= wanted / achieved
        add_pressure = max(MIN_SOLVER_PRESSURE, min(add_pressure, MAX_SOLVER_PRESSURE))

    logger.debug(f"solve_for_component_add_pressure({component}) stopped at {add_pressure:.3f} bar")
    return add_pressure
