"""
Blending planner.

Works out the ordered list of drain/add operations that turns the gas in
a cylinder into a target mix, using the real gas model throughout.

Stages:
1. Drain, if the tank holds too much of something or the available gases
   cannot correct the mix without removing gas first
2. Add helium up to the target helium mole-equivalent
3. Top up to target pressure with one gas, or with pure O2 plus a diluent
   split so that both O2 and N2 land on target
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Sequence

from gas_blender.core.config import DEFAULT_CONFIG, BlendingConfig
from gas_blender.core.gases import Gas, GasRoles, TankState, TargetGas, classify_gases
from gas_blender.realgas.calculations import (
    MoleEquivalents,
    TankMoles,
    add_gas_to_tank,
    drain_tank,
    gas_to_mole_equivalents,
    mole_equivalents_to_gas,
    solve_for_add_pressure,
    solve_for_component_add_pressure,
)

logger = logging.getLogger(__name__)


def round_to(value: float, decimals: int = 2) -> float:
    """Round to ``decimals`` places, halves rounding up."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def mix_label(o2_fraction: float, he_fraction: float) -> str:
    """Composition label ``"O2/He"`` in percent with one decimal."""
    return f"{round_to(o2_fraction * 100, 1):g}/{round_to(he_fraction * 100, 1):g}"


# =============================================================================
# Result records
# =============================================================================

@dataclass(frozen=True)
class BlendingStep:
    """
    One operation of a blending plan.

    Attributes:
        action: Human readable description, e.g. "Add Helium"
        from_pressure: Pressure before the step (bar)
        to_pressure: Pressure after the step (bar)
        current_mix: Mix before the step ("O2/He")
        new_mix: Mix after the step ("O2/He")
        gas: Name of the gas added, None for drains
        added_pressure: Pressure added (bar), additions only
        drained_pressure: Pressure removed (bar), drains only
        added_volume: Litres of source gas used, additions only
    """
    action: str
    from_pressure: float
    to_pressure: float
    current_mix: str
    new_mix: str
    gas: Optional[str] = None
    added_pressure: Optional[float] = None
    drained_pressure: Optional[float] = None
    added_volume: Optional[float] = None

    @property
    def is_drain(self) -> bool:
        return self.drained_pressure is not None


@dataclass(frozen=True)
class FinalMix:
    """Resulting mix: O2 and He in percent, pressure in bar."""
    o2: float
    he: float
    pressure: float


@dataclass
class BlendingResult:
    """
    Output of the planner.

    Attributes:
        steps: Operations in the order they must be carried out
        final_mix: Mix actually reached by the steps
        gas_usage: Litres of each source gas used
        success: True if final_mix is within tolerance of the target
        error: Description of the problem when success is False
    """
    steps: list[BlendingStep]
    final_mix: FinalMix
    gas_usage: dict[str, float] = field(default_factory=dict)
    success: bool = True
    error: Optional[str] = None

    @property
    def total_gas_used(self) -> float:
        """Litres of all source gases together."""
        return sum(self.gas_usage.values())

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation (absent optional step fields dropped)."""
        steps = [
            {key: value for key, value in asdict(step).items() if value is not None}
            for step in self.steps
        ]
        data: dict[str, Any] = {
            "steps": steps,
            "final_mix": asdict(self.final_mix),
            "gas_usage": dict(self.gas_usage),
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


# =============================================================================
# Working state
# =============================================================================

@dataclass(frozen=True)
class WorkingState:
    """
    Tank contents while a plan is being built.

    Attributes:
        moles: Current mole-equivalents
        pressure: Current pressure (bar)
    """
    moles: MoleEquivalents
    pressure: float

    @classmethod
    def from_gas(cls, o2: float, he: float, pressure: float) -> WorkingState:
        return cls(moles=gas_to_mole_equivalents(o2, he, pressure), pressure=pressure)

    @classmethod
    def from_tank(cls, tank: TankMoles) -> WorkingState:
        return cls(moles=tank.moles, pressure=tank.pressure)

    @property
    def fractions(self) -> tuple[float, float, float]:
        """Mole fractions (O2, He, N2); zero for an empty tank."""
        if self.pressure <= 0.0001:
            return 0.0, 0.0, 0.0
        comp = mole_equivalents_to_gas(self.moles.o2, self.moles.he, self.moles.n2)
        return comp.o2_percent / 100, comp.he_percent / 100, comp.n2_percent / 100

    @property
    def label(self) -> str:
        o2, he, _ = self.fractions
        return mix_label(o2, he)

    def add(self, o2_percent: float, he_percent: float, add_pressure: float) -> WorkingState:
        m = self.moles
        return WorkingState.from_tank(
            add_gas_to_tank(m.o2, m.he, m.n2, self.pressure, o2_percent, he_percent, add_pressure)
        )

    def drain(self, target_pressure: float) -> WorkingState:
        m = self.moles
        return WorkingState.from_tank(drain_tank(m.o2, m.he, m.n2, self.pressure, target_pressure))

    def pressure_for_component(self, gas: Gas, target_moles: float, component: str) -> float:
        m = self.moles
        return solve_for_component_add_pressure(
            m.o2, m.he, m.n2, self.pressure, gas.o2, gas.he, target_moles, component
        )

    def pressure_for_total(self, o2_percent: float, he_percent: float, target_total: float) -> float:
        m = self.moles
        return solve_for_add_pressure(
            m.o2, m.he, m.n2, self.pressure, o2_percent, he_percent, target_total
        )


@dataclass(frozen=True)
class _Target:
    """Target mix together with its mole-equivalents."""
    gas: TargetGas
    moles: MoleEquivalents

    def deltas(self, state: WorkingState) -> MoleEquivalents:
        """Target minus current, per component (may be negative)."""
        return MoleEquivalents(
            o2=self.moles.o2 - state.moles.o2,
            he=self.moles.he - state.moles.he,
            n2=self.moles.n2 - state.moles.n2,
        )

    def composition_error(self, state: WorkingState) -> float:
        """|ΔO2%| + |ΔHe%| of a state against the target."""
        comp = mole_equivalents_to_gas(state.moles.o2, state.moles.he, state.moles.n2)
        return abs(comp.o2_percent - self.gas.o2) + abs(comp.he_percent - self.gas.he)


class _PlanRecorder:
    """Collects steps and gas usage while applying them to the working state."""

    def __init__(self, tank_volume: float) -> None:
        self.tank_volume = tank_volume
        self.steps: list[BlendingStep] = []
        self.gas_usage: dict[str, float] = {}

    def drain(self, state: WorkingState, to_pressure: float, complete: bool = False) -> WorkingState:
        if state.pressure <= to_pressure:
            return state

        new_pressure = 0.0 if complete else to_pressure
        drained = state.drain(new_pressure)

        self.steps.append(BlendingStep(
            action="Drain tank completely" if complete else f"Drain to {round_to(new_pressure, 1):g} bar",
            from_pressure=round_to(state.pressure, 2),
            to_pressure=round_to(new_pressure, 2),
            drained_pressure=round_to(state.pressure - new_pressure, 2),
            current_mix=state.label,
            new_mix=drained.label,
        ))
        logger.debug(f"Drain {state.pressure:.2f} -> {new_pressure:.2f} bar")
        return drained

    def add(self, state: WorkingState, gas: Gas, amount: float, label: str, decimals: int = 1) -> WorkingState:
        rounded = round_to(amount, decimals)
        if rounded <= 0:
            return state

        added = state.add(gas.o2, gas.he, rounded)
        volume = round_to(rounded * self.tank_volume, 1)
        self.gas_usage[gas.name] = self.gas_usage.get(gas.name, 0.0) + volume

        self.steps.append(BlendingStep(
            action=label,
            gas=gas.name,
            from_pressure=round_to(state.pressure, 2),
            to_pressure=round_to(added.pressure, 2),
            added_pressure=rounded,
            added_volume=volume,
            current_mix=state.label,
            new_mix=added.label,
        ))
        logger.debug(f"{label}: +{rounded} bar ({volume} L)")
        return added


# =============================================================================
# Simulations
# =============================================================================

def simulate_blend(
    state: WorkingState,
    target: _Target,
    he_gas: Gas,
    top_o2: float,
    config: BlendingConfig = DEFAULT_CONFIG,
) -> float:
    """
    Composition error after [add helium → top with a helium-free gas].

    Args:
        state: Tank contents to start from
        target: Target mix
        he_gas: Gas used to reach the target helium mole-equivalent
        top_o2: Oxygen (%) of the helium-free topping gas
        config: Planner thresholds

    Returns:
        |ΔO2%| + |ΔHe%|, or infinity when the sequence is not possible
    """
    target_pressure = target.gas.pressure
    he_to_add = state.pressure_for_component(he_gas, target.moles.he, "he")
    if he_to_add < 0 or he_to_add > target_pressure:
        return math.inf

    with_he = state.add(he_gas.o2, he_gas.he, he_to_add)

    remaining = target_pressure - with_he.pressure
    if remaining <= config.min_pressure_change:
        return math.inf

    final = with_he.add(top_o2, 0.0, remaining)
    return target.composition_error(final)


def search_drain_ratio(
    state: WorkingState,
    target: _Target,
    he_gas: Gas,
    top_o2: float,
    config: BlendingConfig = DEFAULT_CONFIG,
) -> tuple[Optional[float], float]:
    """
    Grid search over how far to drain before blending.

    Each candidate drains to ``ratio × pressure`` (ratio 0 being a complete
    drain) and simulates the rest of the blend.

    Returns:
        (best drain pressure, its error); pressure is None if nothing worked
    """
    best_pressure: Optional[float] = None
    best_error = math.inf

    for ratio in config.drain_ratios:
        drain_pressure = state.pressure * ratio
        error = simulate_blend(state.drain(drain_pressure), target, he_gas, top_o2, config)
        if error < best_error:
            best_error = error
            best_pressure = drain_pressure

    return best_pressure, best_error


# =============================================================================
# Stages
# =============================================================================

def plan_drain(
    state: WorkingState,
    target: _Target,
    roles: GasRoles,
    config: BlendingConfig = DEFAULT_CONFIG,
) -> Optional[float]:
    """
    Decide whether to drain before blending, and how far.

    Each trigger proposes a pressure to drain to; the lowest wins.

    Returns:
        Pressure to drain to (bar), or None if no drain is needed
    """
    pressure = state.pressure
    deltas = target.deltas(state)
    o2_frac, he_frac, n2_frac = state.fractions
    current_o2_pct = o2_frac * 100
    current_he_pct = he_frac * 100
    target_o2_pct = target.gas.o2
    target_he_pct = target.gas.he
    target_pressure = target.gas.pressure
    threshold = config.drain_threshold_moles
    he_gas = roles.helium_source

    needs_drain = False
    drain_to = pressure

    # (a) Too much of a component: keep only what the target needs
    if deltas.he < -threshold or deltas.n2 < -threshold or deltas.o2 < -threshold:
        needs_drain = True
        pressure_per_mole = pressure / state.moles.total
        for delta, fraction, wanted in (
            (deltas.he, he_frac, target.moles.he),
            (deltas.o2, o2_frac, target.moles.o2),
            (deltas.n2, n2_frac, target.moles.n2),
        ):
            if delta < -threshold and fraction > config.drain_min_fraction:
                drain_to = min(drain_to, wanted / fraction * pressure_per_mole)
        logger.debug(f"Excess component, drain bound {drain_to:.2f} bar")

    # (b) O2 too high to dilute with the leanest gas available
    if current_o2_pct > target_o2_pct + config.composition_margin:
        if roles.lowest_o2_air is not None:
            lowest_o2 = roles.lowest_o2_air.o2
        elif roles.pure_he is not None:
            lowest_o2 = 0.0
        else:
            lowest_o2 = 21.0

        headroom = target_pressure - pressure
        if headroom > 0:
            diluted = state.add(lowest_o2, 0.0, headroom)
            diluted_o2 = mole_equivalents_to_gas(
                diluted.moles.o2, diluted.moles.he, diluted.moles.n2
            ).o2_percent

            if diluted_o2 > target_o2_pct + config.composition_margin * 0.5:
                needs_drain = True
                if roles.pure_he is not None:
                    search_gas = Gas(name="He", o2=0.0, he=100.0)
                elif roles.trimix_gases:
                    richest = roles.trimix_gases[0]
                    search_gas = Gas(name="He", o2=richest.o2, he=richest.he)
                else:
                    search_gas = Gas(name="He", o2=0.0, he=0.0)
                best, best_error = search_drain_ratio(state, target, search_gas, lowest_o2, config)
                if best is None:
                    best = pressure * 0.5
                drain_to = min(drain_to, best)
                logger.debug(f"O2 too high, drain search picked {best:.2f} bar (error {best_error:.2f})")

    # (c) He too high
    if current_he_pct > target_he_pct + config.composition_margin and pressure > 1:
        needs_drain = True
        keep_ratio = (target_he_pct / 100) * target.moles.total / max(
            state.moles.he, config.drain_min_fraction
        )
        drain_to = min(drain_to, pressure * min(keep_ratio, config.max_helium_retained))
        logger.debug(f"He too high, drain bound {drain_to:.2f} bar")

    # (d) Helium needed but no room left for it
    if (
        deltas.he > threshold
        and he_gas is not None
        and pressure >= target_pressure - config.helium_headroom
    ):
        needs_drain = True
        drain_to = min(drain_to, target_pressure * config.helium_drain_fraction)
        logger.debug("No room for helium, draining to make space")

    # (e) Limited gas selection: only drain if it demonstrably helps
    limited = not roles.has_ideal_sources and (
        deltas.he > threshold or current_o2_pct < target_o2_pct - config.composition_margin
    )
    if limited and he_gas is not None:
        if roles.highest_o2_air is not None:
            highest_o2 = roles.highest_o2_air.o2
        elif roles.pure_o2 is not None:
            highest_o2 = 100.0
        else:
            highest_o2 = 21.0

        no_drain_error = math.inf
        if deltas.he > threshold:
            he_to_add = state.pressure_for_component(he_gas, target.moles.he, "he")
            if 0 <= he_to_add <= target_pressure and pressure + he_to_add <= target_pressure:
                no_drain_error = simulate_blend(state, target, he_gas, highest_o2, config)

        if no_drain_error > config.blending_error_threshold:
            best, best_error = search_drain_ratio(state, target, he_gas, highest_o2, config)
            if (
                best is not None
                and best_error < config.blending_error_threshold
                and best_error < no_drain_error
            ):
                needs_drain = True
                drain_to = min(drain_to, best)
                logger.debug(f"Limited gases, drain search picked {best:.2f} bar (error {best_error:.2f})")

    return drain_to if needs_drain else None


def drain_stage(
    state: WorkingState,
    target: _Target,
    roles: GasRoles,
    recorder: _PlanRecorder,
    config: BlendingConfig = DEFAULT_CONFIG,
) -> WorkingState:
    """Carry out the drain decided by :func:`plan_drain`, if worth doing."""
    drain_to = plan_drain(state, target, roles, config)
    if drain_to is None:
        return state

    drain_pressure = round_to(max(0.0, drain_to), 2)
    drained_amount = state.pressure - drain_pressure

    if drained_amount > config.min_drain_amount and drain_pressure > config.min_drain_amount:
        return recorder.drain(state, drain_pressure)
    if drained_amount > config.min_drain_amount:
        return recorder.drain(state, 0.0, complete=True)
    return state


def helium_stage(
    state: WorkingState,
    target: _Target,
    roles: GasRoles,
    recorder: _PlanRecorder,
    config: BlendingConfig = DEFAULT_CONFIG,
) -> WorkingState:
    """Add helium (or the richest trimix) up to the target helium content."""
    if target.deltas(state).he <= config.min_pressure_change:
        return state

    he_gas = roles.helium_source
    if he_gas is None or he_gas.he <= 0:
        logger.debug("Helium needed but no helium source available")
        return state

    he_to_add = state.pressure_for_component(he_gas, target.moles.he, "he")
    return recorder.add(state, he_gas, he_to_add, f"Add {he_gas.name}", decimals=2)


def choose_top_gas(
    state: WorkingState,
    target: _Target,
    roles: GasRoles,
    remaining: float,
    config: BlendingConfig = DEFAULT_CONFIG,
) -> Gas:
    """
    Pick the air/nitrox gas to top up with.

    The gas that lands closest to the target when used alone wins, unless
    no gas gets close and pure O2 is available, in which case the leanest
    gas is used so O2 can be blended in precisely.
    """
    best_gas = roles.air_gases[0]
    best_error = math.inf

    for gas in roles.air_gases:
        error = target.composition_error(state.add(gas.o2, gas.he, remaining))
        if error < best_error:
            best_error = error
            best_gas = gas

    if roles.pure_o2 is not None and best_error > config.poor_match_error:
        best_gas = min(roles.air_gases, key=lambda g: g.o2)

    return best_gas


def solve_two_gas_split(
    state: WorkingState,
    target: _Target,
    oxygen: Gas,
    diluent: Gas,
    config: BlendingConfig = DEFAULT_CONFIG,
) -> tuple[float, float]:
    """
    Split the remaining fill between pure O2 and a diluent.

    Tries ``split_steps + 1`` ratios of the needed O2+N2 mole-equivalents
    coming from oxygen (0 = all diluent, 1 = all oxygen), simulating oxygen
    first and diluent second, and keeps the one closest to the target O2
    and N2 amounts and pressure.

    Returns:
        (oxygen pressure, diluent pressure) in bar
    """
    best_o2_pressure = 0.0
    best_diluent_pressure = 0.0
    best_error = math.inf

    to_add = (target.moles.o2 + target.moles.n2) - (state.moles.o2 + state.moles.n2)
    if to_add <= 0:
        return best_o2_pressure, best_diluent_pressure

    for i in range(config.split_steps + 1):
        ratio = i / config.split_steps
        as_o2 = to_add * ratio
        as_diluent = to_add * (1 - ratio)

        o2_pressure = 0.0
        after_o2 = state
        if as_o2 > 0:
            o2_pressure = state.pressure_for_total(100.0, 0.0, state.moles.total + as_o2)
            if o2_pressure > 0:
                after_o2 = state.add(100.0, 0.0, o2_pressure)

        diluent_pressure = 0.0
        final = after_o2
        if as_diluent > 0:
            diluent_pressure = after_o2.pressure_for_total(
                diluent.o2, diluent.he, after_o2.moles.total + as_diluent
            )
            if diluent_pressure > 0:
                final = after_o2.add(diluent.o2, diluent.he, diluent_pressure)

        error = (
            abs(target.moles.o2 - final.moles.o2)
            + abs(target.moles.n2 - final.moles.n2)
            + abs(target.gas.pressure - final.pressure) * config.split_pressure_weight
        )
        if error < best_error:
            best_error = error
            best_o2_pressure = o2_pressure
            best_diluent_pressure = diluent_pressure

    logger.debug(
        f"Two-gas split: {best_o2_pressure:.2f} bar {oxygen.name}, "
        f"{best_diluent_pressure:.2f} bar {diluent.name}"
    )
    return best_o2_pressure, best_diluent_pressure


def topping_stage(
    state: WorkingState,
    target: _Target,
    roles: GasRoles,
    recorder: _PlanRecorder,
    config: BlendingConfig = DEFAULT_CONFIG,
) -> WorkingState:
    """Top up to target pressure with oxygen and/or an air-range gas."""
    remaining = target.gas.pressure - state.pressure
    if remaining <= config.min_pressure_change:
        return state

    oxygen = roles.pure_o2

    if not roles.air_gases:
        if oxygen is None:
            logger.debug("No topping gas available")
            return state
        o2_to_add = round_to(remaining, 1)
        if o2_to_add > config.min_pressure_change:
            state = recorder.add(state, oxygen, o2_to_add, f"Add {oxygen.name}")
        return state

    top_gas = choose_top_gas(state, target, roles, remaining, config)

    if oxygen is not None and abs(top_gas.o2 - oxygen.o2) > config.two_gas_min_o2_spread:
        o2_pressure, diluent_pressure = solve_two_gas_split(state, target, oxygen, top_gas, config)
        if o2_pressure > config.min_pressure_change:
            state = recorder.add(state, oxygen, o2_pressure, f"Add {oxygen.name}")
        # never fill past the target pressure
        diluent_pressure = min(diluent_pressure, target.gas.pressure - state.pressure)
        if diluent_pressure > config.min_pressure_change:
            state = recorder.add(state, top_gas, diluent_pressure, f"Top up with {top_gas.name}")
        return state

    top_pressure = round_to(remaining, 1)
    if top_pressure > config.min_pressure_change:
        state = recorder.add(state, top_gas, top_pressure, f"Add {top_gas.name}")
    return state


# =============================================================================
# Entry point
# =============================================================================

def calculate_blending_steps(
    starting_gas: TankState,
    target_gas: TargetGas,
    available_gases: Sequence[Gas],
    config: BlendingConfig = DEFAULT_CONFIG,
) -> BlendingResult:
    """
    Plan how to blend a target mix into a cylinder.

    Args:
        starting_gas: Current tank contents
        target_gas: Wanted mix and pressure
        available_gases: Gases that may be used
        config: Planner thresholds and final tolerances

    Returns:
        BlendingResult. Never raises for well-formed input: an impossible
        target or an unreachable mix is reported through ``success`` and
        ``error``.

    Example:
        >>> from gas_blender.core.gases import AIR, HELIUM, OXYGEN
        >>> result = calculate_blending_steps(
        ...     TankState(volume=11, o2=0, he=0, pressure=0),
        ...     TargetGas(o2=18, he=45, pressure=220),
        ...     [AIR, OXYGEN, HELIUM],
        ... )
        >>> result.steps[0].action
        'Add Helium'
    """
    if (
        math.isfinite(target_gas.o2)
        and math.isfinite(target_gas.he)
        and target_gas.o2 + target_gas.he > 100
    ):
        return BlendingResult(
            steps=[],
            final_mix=FinalMix(o2=starting_gas.o2, he=starting_gas.he, pressure=starting_gas.pressure),
            gas_usage={},
            success=False,
            error=f"Target O₂ ({target_gas.o2:g}%) + He ({target_gas.he:g}%) exceeds 100%",
        )

    target = _Target(
        gas=target_gas,
        moles=gas_to_mole_equivalents(target_gas.o2, target_gas.he, target_gas.pressure),
    )
    roles = classify_gases(available_gases)
    recorder = _PlanRecorder(starting_gas.volume)

    state = WorkingState.from_gas(starting_gas.o2, starting_gas.he, starting_gas.pressure)
    state = drain_stage(state, target, roles, recorder, config)
    state = helium_stage(state, target, roles, recorder, config)
    state = topping_stage(state, target, roles, recorder, config)

    o2_frac, he_frac, _ = state.fractions
    final_mix = FinalMix(
        o2=round_to(o2_frac * 100, 1),
        he=round_to(he_frac * 100, 1),
        pressure=round_to(state.pressure, 1),
    )

    within_tolerance = (
        abs(final_mix.o2 - target_gas.o2) <= config.o2_tolerance
        and abs(final_mix.he - target_gas.he) <= config.he_tolerance
        and abs(final_mix.pressure - target_gas.pressure) <= config.pressure_tolerance
    )

    if not within_tolerance:
        logger.info(
            f"Target {target_gas.o2:g}/{target_gas.he:g}@{target_gas.pressure:g} not reached: "
            f"{final_mix.o2:g}/{final_mix.he:g}@{final_mix.pressure:g}"
        )
        return BlendingResult(
            steps=recorder.steps,
            final_mix=final_mix,
            gas_usage=recorder.gas_usage,
            success=False,
            error=(
                f"Unable to reach target mix accurately. Final: "
                f"{final_mix.o2:g}/{final_mix.he:g} at {final_mix.pressure:g} bar. "
                f"Try adjusting available gases."
            ),
        )

    return BlendingResult(
        steps=recorder.steps,
        final_mix=final_mix,
        gas_usage=recorder.gas_usage,
        success=True,
    )
