"""Tests for the command-line interfaces."""

import argparse
import json

import pytest

from gas_blender.cli import main as blend_cli
from gas_blender.cli import tank as tank_cli
from gas_blender.cli.main import get_preset, parse_gas_mix, parse_gas_string


class TestParsing:
    """Tests for gas string parsing."""

    def test_gas_string(self):
        """Test o2/he@pressure."""
        assert parse_gas_string("21/0@50") == (21.0, 0.0, 50.0)
        assert parse_gas_string(" 18.5/45@200 ") == (18.5, 45.0, 200.0)

    @pytest.mark.parametrize("value", ["21/0", "21@50", "air@200", "21/0@", "-1/0@50"])
    def test_gas_string_invalid(self, value):
        """Test malformed gas strings are rejected."""
        with pytest.raises(argparse.ArgumentTypeError):
            parse_gas_string(value)

    def test_gas_mix(self):
        """Test o2/he becomes a gas named after its mix."""
        gas = parse_gas_mix("32/0")

        assert gas.name == "32/0"
        assert gas.o2 == 32
        assert gas.he == 0

    def test_gas_mix_invalid(self):
        """Test malformed and impossible mixes are rejected."""
        with pytest.raises(argparse.ArgumentTypeError):
            parse_gas_mix("32")
        with pytest.raises(argparse.ArgumentTypeError, match="exceeds 100%"):
            parse_gas_mix("60/50")


class TestResolveFill:
    """Tests for combining fill options."""

    def resolve(self, *argv):
        return blend_cli.resolve_fill(blend_cli.build_parser().parse_args(list(argv)))

    def test_individual_after_compact(self):
        """Test a later --start-pressure overrides --start."""
        start, target = self.resolve(
            "--start", "21/0@50", "--start-pressure", "0",
            "--target", "32/0@200", "--volume", "12",
        )

        assert (start.o2, start.he, start.pressure) == (21, 0, 0)
        assert target.pressure == 200

    def test_compact_after_individual(self):
        """Test a later --target overrides --target-o2."""
        start, target = self.resolve(
            "--start", "21/0@0", "--target-o2", "50",
            "--target", "32/0@200", "--volume", "12",
        )

        assert target.o2 == 32

    def test_start_volume_alias(self):
        """Test --start-volume sets the tank volume."""
        start, _ = self.resolve("--start", "21/0@0", "--target", "32/0@200", "--start-volume", "15")

        assert start.volume == 15

    def test_preset_overrides(self):
        """Test a preset replaces the other fill options."""
        start, target = self.resolve("--start", "21/0@50", "--volume", "7", "--preset", "trimix2135")

        assert start.pressure == 0
        assert start.volume == 24
        assert (target.o2, target.he) == (21, 35)


class TestPresets:
    """Tests for blend presets."""

    def test_case_insensitive(self):
        """Test preset names ignore case."""
        preset = get_preset("Trimix1845")

        assert preset.target == "18/45@200"
        assert preset.volume == 24

    def test_unknown(self):
        """Test unknown presets list the available ones."""
        with pytest.raises(KeyError, match="Available"):
            get_preset("heliox")


class TestBlendMain:
    """Tests for the gas-blend entry point."""

    def test_no_arguments_prints_help(self, capsys):
        """Test running without arguments shows usage."""
        assert blend_cli.main([]) == 0
        assert "gas-blend" in capsys.readouterr().out

    def test_preset(self, capsys):
        """Test a preset fill prints the steps."""
        assert blend_cli.main(["--preset", "nitrox32"]) == 0

        out = capsys.readouterr().out
        assert "BLENDING STEPS" in out
        assert "FINAL RESULT" in out

    def test_compact_options(self, capsys):
        """Test start, target and volume options."""
        code = blend_cli.main(["--start", "21/0@50", "--target", "21/0@200", "--volume", "12"])

        assert code == 0
        assert "Air" in capsys.readouterr().out

    def test_individual_options(self, capsys):
        """Test per-field options."""
        code = blend_cli.main([
            "--volume", "12",
            "--start-o2", "21", "--start-he", "0", "--start-pressure", "0",
            "--target-o2", "21", "--target-he", "0", "--target-pressure", "200",
            "--verbose",
        ])

        assert code == 0
        out = capsys.readouterr().out
        assert "AVAILABLE GASES" in out
        assert "GAS USAGE" in out

    def test_json(self, capsys):
        """Test JSON output holds input and result."""
        assert blend_cli.main(["--preset", "nitrox32", "--json"]) == 0

        document = json.loads(capsys.readouterr().out)
        assert document["input"]["startingGas"]["pressure"] == 0
        assert document["input"]["targetGas"]["o2"] == 32
        assert document["result"]["success"] is True
        assert document["result"]["final_mix"]["pressure"] == pytest.approx(200, abs=2)
        assert "error" not in document["result"]

    def test_custom_gases(self, capsys):
        """Test --gas replaces the default gases."""
        code = blend_cli.main([
            "--start", "21/0@0", "--target", "32/0@200", "--volume", "12",
            "--gas", "21/0", "--gas", "100/0", "--json",
        ])

        assert code == 0
        usage = json.loads(capsys.readouterr().out)["result"]["gas_usage"]
        assert set(usage) <= {"21/0", "100/0"}

    def test_unreachable_target(self, capsys):
        """Test a fill that cannot be blended exits with 1."""
        code = blend_cli.main([
            "--start", "21/0@0", "--target", "32/0@200", "--volume", "12",
            "--gas", "21/0",
        ])

        assert code == 1
        assert "BLENDING FAILED" in capsys.readouterr().out

    def test_strict(self, capsys):
        """Test strict tolerances still accept an exact fill."""
        code = blend_cli.main(["--start", "21/0@50", "--target", "21/0@200", "--volume", "12", "--strict"])

        assert code == 0

    def test_missing_parameters(self, capsys):
        """Test incomplete fills are reported."""
        assert blend_cli.main(["--start", "21/0@0"]) == 1
        assert "Missing required parameters" in capsys.readouterr().err

    def test_unknown_preset(self, capsys):
        """Test unknown presets are reported."""
        assert blend_cli.main(["--preset", "heliox"]) == 1
        assert "Unknown preset" in capsys.readouterr().err

    def test_malformed_gas(self):
        """Test argparse rejects malformed gas strings."""
        with pytest.raises(SystemExit):
            blend_cli.main(["--start", "air", "--target", "32/0@200", "--volume", "12"])


class TestTankMain:
    """Tests for the tank-calc entry point."""

    def test_metric(self, capsys):
        """Test metric inputs."""
        assert tank_cli.main(["--liters", "12", "--bar", "232", "--kg", "14.5"]) == 0

        out = capsys.readouterr().out
        assert "Empty:     -1.1 kg" in out

    def test_imperial_with_explanation(self, capsys):
        """Test imperial inputs with the explanation."""
        code = tank_cli.main(["--cuft", "77.4", "--psi", "3000", "--lbs", "31.4", "--aluminium", "--explain"])

        assert code == 0
        assert "Calculation:" in capsys.readouterr().out

    def test_incomplete(self, capsys):
        """Test incomplete inputs are rejected."""
        assert tank_cli.main(["--liters", "12"]) == 1
        assert "Error" in capsys.readouterr().err

    def test_zero_psi(self, capsys):
        """Test zero working pressure is rejected."""
        assert tank_cli.main(["--cuft", "80", "--psi", "0", "--lbs", "31"]) == 1
