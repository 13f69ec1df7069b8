"""Tests for the gas catalog."""

import pytest

from gas_blender.core.catalog import GasCatalog, create_default_catalog
from gas_blender.core.gases import Gas


@pytest.fixture
def catalog():
    """Default catalog: Air, O2, Helium selected; Nitrox 32, 10/70 not."""
    return create_default_catalog()


class TestDefaultCatalog:
    """Tests for the default gas list."""

    def test_contents(self, catalog):
        """Test order and selection of the default gases."""
        assert catalog.list_gases() == ["Air", "O2", "Helium", "Nitrox 32", "10/70"]
        assert [g.name for g in catalog.available()] == ["Air", "O2", "Helium"]
        assert catalog.is_selected("Nitrox 32") is False
        assert len(catalog) == 5
        assert "Air" in catalog


class TestAddGas:
    """Tests for adding gases."""

    def test_add(self):
        """Test adding a gas to an empty catalog."""
        catalog = GasCatalog()
        gas = catalog.add_gas(Gas(name="EAN50", o2=50, he=0), selected=False)

        assert catalog.get_gas("EAN50") is gas
        assert catalog.available() == []

    def test_duplicate_name(self, catalog):
        """Test names must be unique."""
        with pytest.raises(ValueError, match="already exists"):
            catalog.add_gas(Gas(name="Air", o2=22, he=0))

    def test_duplicate_mix(self, catalog):
        """Test compositions must be unique."""
        with pytest.raises(ValueError, match="already exists"):
            catalog.add_gas(Gas(name="Also air", o2=21, he=0))

    def test_custom_gas(self, catalog):
        """Test the first free mix after 21/0 is 21/1."""
        gas = catalog.add_custom_gas()

        assert gas.name == "21/1"
        assert (gas.o2, gas.he) == (21, 1)
        assert gas.editable is True
        assert catalog.is_selected("21/1") is True

    def test_custom_gases_are_unique(self, catalog):
        """Test repeated custom gases get distinct mixes."""
        names = [catalog.add_custom_gas().name for _ in range(3)]

        assert names == ["21/1", "21/2", "21/3"]

    def test_custom_gas_exhausted(self):
        """Test running out of unique mixes raises an error."""
        catalog = GasCatalog()
        for he in range(0, 80):
            catalog.add_gas(Gas(name=f"21/{he}", o2=21, he=he))
        for he in range(0, 79):
            catalog.add_gas(Gas(name=f"22/{he}", o2=22, he=he))
        for he in range(0, 78):
            catalog.add_gas(Gas(name=f"23/{he}", o2=23, he=he))

        with pytest.raises(ValueError, match="unique"):
            catalog.add_custom_gas()


class TestUpdateGas:
    """Tests for editing gases."""

    def test_editable_renamed(self, catalog):
        """Test editable gases are renamed after their mix."""
        updated = catalog.update_gas("Nitrox 32", o2=36)

        assert updated.name == "Nitrox 36"
        assert "Nitrox 32" not in catalog
        assert catalog.list_gases()[3] == "Nitrox 36"
        assert catalog.is_selected("Nitrox 36") is False

    def test_editable_trimix_name(self, catalog):
        """Test helium mixes use o2/he names."""
        catalog.select("10/70")
        updated = catalog.update_gas("10/70", he=65)

        assert updated.name == "10/65"
        assert catalog.is_selected("10/65") is True

    def test_fixed_gas_keeps_name(self, catalog):
        """Test non-editable gases keep their name."""
        updated = catalog.update_gas("Air", o2=20.9)

        assert updated.name == "Air"
        assert updated.o2 == 20.9

    def test_rename(self, catalog):
        """Test explicit renames keep the position."""
        catalog.update_gas("O2", new_name="Oxygen")

        assert catalog.list_gases()[1] == "Oxygen"
        assert catalog.is_selected("Oxygen") is True

    def test_duplicate_mix_rejected(self, catalog):
        """Test an edit may not duplicate another mix."""
        with pytest.raises(ValueError, match="already exists"):
            catalog.update_gas("Nitrox 32", o2=21)

        assert "Nitrox 32" in catalog

    def test_invalid_mix_rejected(self, catalog):
        """Test an edit may not exceed 100%."""
        with pytest.raises(ValueError):
            catalog.update_gas("10/70", o2=40)

    def test_unknown_gas(self, catalog):
        """Test updating a missing gas."""
        with pytest.raises(KeyError):
            catalog.update_gas("Argon", o2=0)


class TestSelection:
    """Tests for gas selection."""

    def test_toggle(self, catalog):
        """Test toggling flips the selection."""
        assert catalog.toggle("Nitrox 32") is True
        assert catalog.toggle("Nitrox 32") is False

    def test_available_keeps_order(self, catalog):
        """Test selected gases come back in catalog order."""
        catalog.select("10/70")
        catalog.select("O2", False)

        assert [g.name for g in catalog.available()] == ["Air", "Helium", "10/70"]

    def test_remove(self, catalog):
        """Test removing a gas."""
        catalog.remove_gas("Helium")

        assert "Helium" not in catalog
        assert [g.name for g in catalog.available()] == ["Air", "O2"]

        with pytest.raises(KeyError):
            catalog.remove_gas("Helium")

    def test_unknown_selection(self, catalog):
        """Test selecting a missing gas."""
        with pytest.raises(KeyError, match="Available"):
            catalog.select("Argon")
