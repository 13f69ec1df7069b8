"""Tests for the blending planner."""

import pytest

from gas_blender.core.config import DEFAULT_CONFIG, STRICT_CONFIG
from gas_blender.core.gases import Gas, TankState, TargetGas, classify_gases
from gas_blender.core.planner import (
    BlendingStep,
    WorkingState,
    _Target,
    calculate_blending_steps,
    mix_label,
    plan_drain,
    round_to,
    simulate_blend,
)
from gas_blender.realgas.calculations import gas_to_mole_equivalents


@pytest.fixture
def standard_gases():
    """The default fill station gases plus the two editable ones."""
    return [
        Gas(name="Air", o2=21, he=0),
        Gas(name="O2", o2=100, he=0),
        Gas(name="Helium", o2=0, he=100),
        Gas(name="Nitrox 32", o2=32, he=0, editable=True),
        Gas(name="10/70", o2=10, he=70, editable=True),
    ]


@pytest.fixture
def basic_gases():
    """Air, oxygen and helium."""
    return [
        Gas(name="Air", o2=21, he=0),
        Gas(name="O2", o2=100, he=0),
        Gas(name="Helium", o2=0, he=100),
    ]


def make_target(o2, he, pressure):
    return _Target(
        gas=TargetGas(o2=o2, he=he, pressure=pressure),
        moles=gas_to_mole_equivalents(o2, he, pressure),
    )


def assert_reached(result, o2, he, pressure):
    assert result.success is True, result.error
    assert result.final_mix.o2 == pytest.approx(o2, abs=1.0)
    assert result.final_mix.he == pytest.approx(he, abs=1.0)
    assert result.final_mix.pressure == pytest.approx(pressure, abs=2.0)


class TestHelpers:
    """Tests for rounding and labels."""

    def test_round_to(self):
        """Test rounding to a number of decimals."""
        assert round_to(1.234, 2) == pytest.approx(1.23)
        assert round_to(1.235, 1) == pytest.approx(1.2)
        assert round_to(2.5, 0) == 3.0
        assert round_to(0.0) == 0.0

    def test_mix_label(self):
        """Test O2/He labels in percent with one decimal."""
        assert mix_label(0.21, 0.0) == "21/0"
        assert mix_label(0.1834, 0.4512) == "18.3/45.1"
        assert mix_label(0.0, 0.0) == "0/0"


class TestValidation:
    """Tests for impossible targets."""

    def test_reject_over_100_percent(self, standard_gases):
        """Test O2 + He above 100% fails without steps."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=21, he=0, pressure=0),
            TargetGas(o2=60, he=50, pressure=200),
            standard_gases,
        )

        assert result.success is False
        assert result.steps == []
        assert "exceeds 100%" in result.error
        assert result.error == "Target O₂ (60%) + He (50%) exceeds 100%"
        assert result.final_mix.o2 == 21
        assert result.final_mix.pressure == 0


class TestEmptyTank:
    """Tests for fills starting from an empty tank."""

    def test_trimix_18_45(self, basic_gases):
        """Test 18/45 at 220 bar into an empty 11 L tank."""
        result = calculate_blending_steps(
            TankState(volume=11, o2=0, he=0, pressure=0),
            TargetGas(o2=18, he=45, pressure=220),
            basic_gases,
        )

        assert_reached(result, 18, 45, 220)
        assert len(result.steps) > 0
        assert result.steps[0].gas == "Helium"
        assert result.steps[0].action == "Add Helium"
        assert not any(step.is_drain for step in result.steps)

    def test_normoxic_trimix(self, standard_gases):
        """Test 21/35 from empty."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=0, he=0, pressure=0),
            TargetGas(o2=21, he=35, pressure=200),
            standard_gases,
        )

        assert_reached(result, 21, 35, 200)

    def test_nitrox_32(self, standard_gases):
        """Test EAN32 from empty."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=0, he=0, pressure=0),
            TargetGas(o2=32, he=0, pressure=200),
            standard_gases,
        )

        assert_reached(result, 32, 0, 200)
        assert result.final_mix.he == 0

    def test_air(self, standard_gases):
        """Test air from empty is a single air fill."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=0, he=0, pressure=0),
            TargetGas(o2=21, he=0, pressure=200),
            standard_gases,
        )

        assert_reached(result, 21, 0, 200)
        assert len(result.steps) == 1
        assert "Air" in result.steps[0].action

    def test_deep_trimix(self, standard_gases):
        """Test 10/70 from empty."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=0, he=0, pressure=0),
            TargetGas(o2=10, he=70, pressure=200),
            standard_gases,
        )

        assert_reached(result, 10, 70, 200)

    def test_bottom_gas_14_55(self, standard_gases):
        """Test 14/55 at 220 bar into twin 12s."""
        result = calculate_blending_steps(
            TankState(volume=24, o2=0, he=0, pressure=0),
            TargetGas(o2=14, he=55, pressure=220),
            standard_gases,
        )

        assert_reached(result, 14, 55, 220)

    def test_addition_steps_increase_pressure(self, standard_gases):
        """Test every addition raises the pressure by a positive amount."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=0, he=0, pressure=0),
            TargetGas(o2=21, he=35, pressure=200),
            standard_gases,
        )

        assert result.success is True
        for step in result.steps:
            assert isinstance(step, BlendingStep)
            if not step.is_drain:
                assert step.to_pressure > step.from_pressure
                assert step.added_pressure > 0


class TestTopping:
    """Tests for topping a partly filled tank."""

    def test_air_top_up(self, standard_gases):
        """Test 50 -> 200 bar of air is one 150 bar air fill."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=21, he=0, pressure=50),
            TargetGas(o2=21, he=0, pressure=200),
            standard_gases,
        )

        assert_reached(result, 21, 0, 200)
        assert len(result.steps) == 1
        assert result.steps[0].added_pressure == pytest.approx(150, abs=0.5)

    def test_trimix_top_up(self, standard_gases):
        """Test topping a half full 18/45 to 200 bar."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=18, he=45, pressure=100),
            TargetGas(o2=18, he=45, pressure=200),
            standard_gases,
        )

        assert_reached(result, 18, 45, 200)

    def test_small_pressure_difference(self, standard_gases):
        """Test 199 -> 200 bar of air."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=21, he=0, pressure=199),
            TargetGas(o2=21, he=0, pressure=200),
            standard_gases,
        )

        assert result.success is True

    def test_prefers_air_over_nitrox(self):
        """Test 19/37 at 50 bar to 18/40 at 220 bar tops with air."""
        gases = [
            Gas(name="Air", o2=21, he=0),
            Gas(name="O2", o2=100, he=0),
            Gas(name="Helium", o2=0, he=100),
            Gas(name="Nitrox 32", o2=32, he=0, editable=True),
        ]
        result = calculate_blending_steps(
            TankState(volume=11, o2=19, he=37, pressure=50),
            TargetGas(o2=18, he=40, pressure=220),
            gases,
        )

        assert_reached(result, 18, 40, 220)
        assert any(step.gas == "Air" for step in result.steps)


class TestIdempotence:
    """Tests for tanks that already hold the target."""

    def test_no_steps_when_at_target(self, standard_gases):
        """Test a full tank of the target mix needs nothing."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=21, he=35, pressure=200),
            TargetGas(o2=21, he=35, pressure=200),
            standard_gases,
        )

        assert result.success is True
        assert result.steps == []
        assert result.gas_usage == {}


class TestDraining:
    """Tests for plans that start with a drain."""

    def test_rich_nitrox_to_air(self, basic_gases):
        """Test 32/0 at 150 bar to air needs dilution."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=32, he=0, pressure=150),
            TargetGas(o2=21, he=0, pressure=200),
            basic_gases,
        )

        if result.success:
            assert result.final_mix.o2 == pytest.approx(21, abs=1.0)
        else:
            assert "Unable to reach target mix" in result.error

    def test_too_much_helium(self, standard_gases):
        """Test 18/50 at 100 bar to 21/35 at 200 bar."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=18, he=50, pressure=100),
            TargetGas(o2=21, he=35, pressure=200),
            standard_gases,
        )

        assert_reached(result, 21, 35, 200)

    def test_incompatible_contents(self, standard_gases):
        """Test 50/40 at 150 bar to air drains first."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=50, he=40, pressure=150),
            TargetGas(o2=21, he=0, pressure=200),
            standard_gases,
        )

        assert result.success is True
        assert any("Drain" in step.action for step in result.steps)

    def test_trimix_to_hypoxic_trimix(self, basic_gases):
        """Test 21/35 at 100 bar to 18/45 at 200 bar starts with a drain."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=21, he=35, pressure=100),
            TargetGas(o2=18, he=45, pressure=200),
            basic_gases,
        )

        assert_reached(result, 18, 45, 200)
        assert "Drain" in result.steps[0].action

    def test_air_to_trimix(self, standard_gases):
        """Test 100 bar of air to 18/45 drains first."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=21, he=0, pressure=100),
            TargetGas(o2=18, he=45, pressure=200),
            standard_gases,
        )

        assert result.final_mix.he == pytest.approx(45, abs=1.0)
        assert result.final_mix.o2 == pytest.approx(18, abs=1.0)
        assert result.final_mix.pressure == 200
        assert "Drain" in result.steps[0].action

    def test_drain_step_fields(self, basic_gases):
        """Test drain steps report the drained pressure and no gas."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=21, he=35, pressure=100),
            TargetGas(o2=18, he=45, pressure=200),
            basic_gases,
        )

        drain = result.steps[0]
        assert drain.is_drain
        assert drain.gas is None
        assert drain.added_volume is None
        assert drain.drained_pressure == pytest.approx(drain.from_pressure - drain.to_pressure)


class TestLimitedGases:
    """Tests for restricted gas selections."""

    def test_only_air_and_oxygen(self):
        """Test EAN32 with air and oxygen only."""
        gases = [Gas(name="Air", o2=21, he=0), Gas(name="O2", o2=100, he=0)]
        result = calculate_blending_steps(
            TankState(volume=12, o2=0, he=0, pressure=0),
            TargetGas(o2=32, he=0, pressure=200),
            gases,
        )

        assert result.final_mix.o2 == pytest.approx(32, abs=1.0)
        assert result.final_mix.he == 0
        assert result.final_mix.pressure == 200

    def test_deco_gas_ean50(self):
        """Test EAN50 with air and oxygen only."""
        gases = [Gas(name="Air", o2=21, he=0), Gas(name="O2", o2=100, he=0)]
        result = calculate_blending_steps(
            TankState(volume=7, o2=0, he=0, pressure=0),
            TargetGas(o2=50, he=0, pressure=200),
            gases,
        )

        assert result.final_mix.o2 == pytest.approx(50, abs=1.0)
        assert result.final_mix.pressure == 200

    def test_no_helium_available(self):
        """Test trimix cannot be reached without helium."""
        gases = [Gas(name="Air", o2=21, he=0), Gas(name="O2", o2=100, he=0)]
        result = calculate_blending_steps(
            TankState(volume=12, o2=0, he=0, pressure=0),
            TargetGas(o2=18, he=45, pressure=200),
            gases,
        )

        assert result.success is False
        assert result.final_mix.he == 0
        assert result.error.startswith("Unable to reach target mix accurately. Final:")
        assert result.error.endswith("Try adjusting available gases.")

    def test_trimix_helium_source_drains_first(self):
        """Test a 10/70 helium source with air drains the tank before adding helium."""
        gases = [Gas(name="Air", o2=21, he=0), Gas(name="10/70", o2=10, he=70)]
        result = calculate_blending_steps(
            TankState(volume=12, o2=21, he=0, pressure=100),
            TargetGas(o2=18, he=45, pressure=200),
            gases,
        )

        assert result.steps[0].action == "Drain to 60 bar"
        assert result.steps[0].is_drain
        assert result.steps[1].gas == "10/70"
        assert result.success is False
        assert result.final_mix.o2 == pytest.approx(13.9, abs=0.05)
        assert result.final_mix.he == pytest.approx(45.2, abs=0.05)

    def test_trimix_helium_source_from_empty(self):
        """Test an empty tank is never drained when only trimix and air are available."""
        gases = [Gas(name="Air", o2=21, he=0), Gas(name="10/70", o2=10, he=70)]
        result = calculate_blending_steps(
            TankState(volume=12, o2=0, he=0, pressure=0),
            TargetGas(o2=18, he=45, pressure=200),
            gases,
        )

        assert not any(step.is_drain for step in result.steps)
        assert result.steps[0].gas == "10/70"

    def test_only_oxygen(self):
        """Test oxygen only fills the remaining pressure with oxygen."""
        gases = [Gas(name="O2", o2=100, he=0)]
        result = calculate_blending_steps(
            TankState(volume=12, o2=21, he=0, pressure=100),
            TargetGas(o2=60, he=0, pressure=200),
            gases,
        )

        assert len(result.steps) == 1
        assert result.steps[0].gas == "O2"
        assert result.steps[0].added_pressure == pytest.approx(100)
        assert result.final_mix.pressure == 200

    def test_no_gases(self):
        """Test an empty gas list produces no steps and fails."""
        result = calculate_blending_steps(
            TankState(volume=12, o2=0, he=0, pressure=0),
            TargetGas(o2=21, he=0, pressure=200),
            [],
        )

        assert result.steps == []
        assert result.success is False


class TestTolerance:
    """Tests for tolerance profiles."""

    def test_success_consistent_with_tolerance(self, standard_gases):
        """Test success iff the final mix is within the profile tolerance."""
        target = TargetGas(o2=18, he=45, pressure=200)
        for config in (DEFAULT_CONFIG, STRICT_CONFIG):
            result = calculate_blending_steps(
                TankState(volume=12, o2=0, he=0, pressure=0), target, standard_gases, config
            )
            within = (
                abs(result.final_mix.o2 - target.o2) <= config.o2_tolerance
                and abs(result.final_mix.he - target.he) <= config.he_tolerance
                and abs(result.final_mix.pressure - target.pressure) <= config.pressure_tolerance
            )
            assert result.success is within

    def test_strict_profile_values(self):
        """Test strict tolerances."""
        assert STRICT_CONFIG.o2_tolerance == 0.5
        assert STRICT_CONFIG.he_tolerance == 0.5
        assert STRICT_CONFIG.pressure_tolerance == 1.0


class TestStages:
    """Tests for the individual planning stages."""

    def test_no_drain_from_empty(self, basic_gases):
        """Test an empty tank never needs draining."""
        state = WorkingState.from_gas(0, 0, 0)
        target = make_target(18, 45, 220)

        assert plan_drain(state, target, classify_gases(basic_gases)) is None

    def test_drain_when_full_and_helium_needed(self, basic_gases):
        """Test a full tank of air must make room for helium."""
        state = WorkingState.from_gas(21, 0, 200)
        target = make_target(18, 45, 200)

        drain_to = plan_drain(state, target, classify_gases(basic_gases))
        assert drain_to is not None
        assert drain_to <= 100

    def test_simulate_blend_from_empty(self, basic_gases):
        """Test helium then air from empty lands near 18/45 on helium."""
        state = WorkingState.from_gas(0, 0, 0)
        target = make_target(18, 45, 200)
        helium = classify_gases(basic_gases).pure_he

        error = simulate_blend(state, target, helium, 21.0)
        assert error < 10

    def test_simulate_blend_no_room(self, basic_gases):
        """Test a blend with no room left after helium is impossible."""
        state = WorkingState.from_gas(21, 0, 200)
        target = make_target(18, 45, 200)
        helium = classify_gases(basic_gases).pure_he

        assert simulate_blend(state, target, helium, 21.0) == float("inf")

    def test_working_state_fractions(self):
        """Test fractions of a state and of an empty tank."""
        state = WorkingState.from_gas(32, 0, 100)
        o2, he, n2 = state.fractions

        assert o2 == pytest.approx(0.32)
        assert he == pytest.approx(0.0)
        assert n2 == pytest.approx(0.68)
        assert state.label == "32/0"
        assert WorkingState.from_gas(21, 0, 0).fractions == (0.0, 0.0, 0.0)


class TestResultSerialization:
    """Tests for BlendingResult.to_dict."""

    def test_to_dict(self, basic_gases):
        """Test JSON-ready output drops absent step fields."""
        result = calculate_blending_steps(
            TankState(volume=11, o2=0, he=0, pressure=0),
            TargetGas(o2=18, he=45, pressure=220),
            basic_gases,
        )
        data = result.to_dict()

        assert data["success"] is True
        assert "error" not in data
        assert set(data["final_mix"]) == {"o2", "he", "pressure"}
        first = data["steps"][0]
        assert "drained_pressure" not in first
        assert first["gas"] == "Helium"
        assert data["gas_usage"] == result.gas_usage
