"""
Gas catalog - the list of gases a blender has on hand.

Provides management of the blending gas list including:
- Adding standard and custom gases with unique compositions
- Editing compositions (editable gases are renamed to match)
- Selecting which gases the planner may use
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterator, Optional

from gas_blender.core.gases import (
    AIR,
    HELIUM,
    NITROX_32,
    OXYGEN,
    TRIMIX_10_70,
    Gas,
    gas_name_for,
)

logger = logging.getLogger(__name__)

MAX_CUSTOM_GAS_ATTEMPTS = 200


@dataclass
class GasCatalog:
    """
    Ordered collection of gases with a selection flag per gas.

    Names are unique, and so are O2/He pairs.

    Example:
        >>> catalog = create_default_catalog()
        >>> catalog.select("Nitrox 32")
        >>> [g.name for g in catalog.available()]
        ['Air', 'O2', 'Helium', 'Nitrox 32']
        >>> custom = catalog.add_custom_gas()
        >>> custom.name
        '21/1'
    """

    _gases: dict[str, Gas] = field(default_factory=dict, repr=False)
    _selected: dict[str, bool] = field(default_factory=dict, repr=False)

    # =========================================================================
    # Gas Management
    # =========================================================================

    def add_gas(self, gas: Gas, selected: bool = True) -> Gas:
        """
        Add a gas to the catalog.

        Args:
            gas: Gas to add
            selected: Whether the planner may use it

        Returns:
            The added gas

        Raises:
            ValueError: If the name or the O2/He pair already exists
        """
        if gas.name in self._gases:
            raise ValueError(f"Gas with name '{gas.name}' already exists")
        if self.has_mix(gas.o2, gas.he):
            raise ValueError(f"Gas {gas.mix} already exists")

        self._gases[gas.name] = gas
        self._selected[gas.name] = selected
        logger.debug(f"Added gas '{gas.name}' ({gas.mix})")
        return gas

    def add_custom_gas(self) -> Gas:
        """
        Add an editable gas with the first unused composition.

        Compositions are scanned from 21/0, raising helium first and then
        oxygen, for a bounded number of attempts.

        Raises:
            ValueError: If no unused composition was found
        """
        o2, he = 21, 0
        attempts = 0

        while self.has_mix(o2, he) and attempts < MAX_CUSTOM_GAS_ATTEMPTS:
            if he < 100 - o2:
                he += 1
            elif o2 < 100:
                o2 += 1
                he = 0
            attempts += 1

        if self.has_mix(o2, he):
            raise ValueError("Unable to create a unique custom gas mix.")

        gas = Gas(name=gas_name_for(o2, he), o2=o2, he=he, editable=True)
        return self.add_gas(gas, selected=True)

    def update_gas(
        self,
        name: str,
        o2: Optional[float] = None,
        he: Optional[float] = None,
        new_name: Optional[str] = None,
    ) -> Gas:
        """
        Change the composition and/or name of a gas.

        Editable gases get their name from their composition, so a
        composition change renames them. The gas keeps its position in the
        catalog and its selection state.

        Args:
            name: Current name of the gas
            o2: New oxygen (%), or None to keep
            he: New helium (%), or None to keep
            new_name: New name, or None to keep (ignored for editable gases
                whose composition changes)

        Returns:
            The updated gas

        Raises:
            KeyError: If the gas doesn't exist
            ValueError: If the composition is invalid or would duplicate
                another gas's composition or name
        """
        current = self.get_gas(name)
        updated = current

        if new_name is not None:
            updated = replace(updated, name=new_name)

        if o2 is not None or he is not None:
            updated = replace(
                updated,
                o2=current.o2 if o2 is None else o2,
                he=current.he if he is None else he,
            )
            if updated.editable:
                updated = replace(updated, name=gas_name_for(updated.o2, updated.he))

            if self.has_mix(updated.o2, updated.he, ignore=name):
                raise ValueError(f"Gas {updated.mix} already exists.")

        if updated.name != name and updated.name in self._gases:
            raise ValueError(f"Gas with name '{updated.name}' already exists")

        was_selected = self._selected.get(name, False)
        self._gases = {
            (updated.name if key == name else key): (updated if key == name else gas)
            for key, gas in self._gases.items()
        }
        del self._selected[name]
        self._selected[updated.name] = was_selected

        if updated.name != name:
            logger.debug(f"Renamed gas '{name}' to '{updated.name}'")
        return updated

    def remove_gas(self, name: str) -> None:
        """
        Remove a gas from the catalog.

        Raises:
            KeyError: If gas doesn't exist
        """
        if name not in self._gases:
            raise KeyError(f"Gas '{name}' not found")

        del self._gases[name]
        del self._selected[name]
        logger.debug(f"Removed gas '{name}'")

    def get_gas(self, name: str) -> Gas:
        """
        Get a gas by name.

        Raises:
            KeyError: If gas doesn't exist
        """
        if name not in self._gases:
            available = ", ".join(self._gases.keys()) or "(none)"
            raise KeyError(f"Gas '{name}' not found. Available: {available}")
        return self._gases[name]

    def has_mix(self, o2: float, he: float, ignore: Optional[str] = None) -> bool:
        """True if a gas other than ``ignore`` has this O2/He pair."""
        return any(
            gas.o2 == o2 and gas.he == he
            for key, gas in self._gases.items()
            if key != ignore
        )

    def list_gases(self) -> list[str]:
        """Get list of all gas names, in catalog order."""
        return list(self._gases.keys())

    @property
    def gases(self) -> Iterator[Gas]:
        """Iterate over all gases."""
        return iter(self._gases.values())

    def __len__(self) -> int:
        return len(self._gases)

    def __contains__(self, name: object) -> bool:
        return name in self._gases

    # =========================================================================
    # Selection
    # =========================================================================

    def select(self, name: str, selected: bool = True) -> None:
        """Mark a gas as usable (or not) by the planner."""
        self.get_gas(name)
        self._selected[name] = selected

    def toggle(self, name: str) -> bool:
        """Flip the selection of a gas and return the new state."""
        self.select(name, not self.is_selected(name))
        return self._selected[name]

    def is_selected(self, name: str) -> bool:
        self.get_gas(name)
        return self._selected[name]

    def available(self) -> list[Gas]:
        """Selected gases in catalog order, ready for the planner."""
        return [gas for name, gas in self._gases.items() if self._selected[name]]


def create_default_catalog() -> GasCatalog:
    """
    Catalog with the usual fill station gases.

    Air, O2 and Helium are selected; Nitrox 32 and 10/70 are present but
    not selected.
    """
    catalog = GasCatalog()
    catalog.add_gas(AIR)
    catalog.add_gas(OXYGEN)
    catalog.add_gas(HELIUM)
    catalog.add_gas(NITROX_32, selected=False)
    catalog.add_gas(TRIMIX_10_70, selected=False)
    return catalog
