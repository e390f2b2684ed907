"""Select entities for Dreame Vacuum: mop water level and cleaning preset."""
from __future__ import annotations

import logging

from homeassistant.components.select import SelectEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from dreame_cloud import DreameController

from .const import DOMAIN, MANUFACTURER, WATER_INT_TO_NAME, WATER_NAME_TO_INT, WATER_OPTIONS
from .coordinator import DreameCoordinator

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    coordinator: DreameCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([
        DreameWaterLevelSelect(coordinator, entry),
        DreameCleanPresetSelect(coordinator, entry),
    ])


class _DreameSelect(CoordinatorEntity[DreameCoordinator], SelectEntity):
    _attr_has_entity_name = True
    _key = ""

    def __init__(self, coordinator: DreameCoordinator, entry: ConfigEntry) -> None:
        super().__init__(coordinator)
        self._attr_unique_id   = f"{entry.entry_id}_{self._key}"
        self._attr_device_info = {
            "identifiers": {(DOMAIN, entry.entry_id)},
            "name": coordinator.device_name,
            "manufacturer": MANUFACTURER,
        }


class DreameWaterLevelSelect(_DreameSelect):
    _key          = "water_level"
    _attr_name    = "Water Level"
    _attr_icon    = "mdi:water"
    _attr_options = WATER_OPTIONS

    @property
    def current_option(self) -> str | None:
        if self.coordinator.data is None:
            return None
        return WATER_INT_TO_NAME.get(self.coordinator.data.get("water"))

    async def async_select_option(self, option: str) -> None:
        level = WATER_NAME_TO_INT.get(option)
        if level is None:
            _LOGGER.error("Unknown water level: %s", option)
            return
        ack = await self.coordinator.controller.set_water(level)
        _LOGGER.debug("Water level %s -> %s", option, ack)
        await self.coordinator.async_request_refresh()


class DreameCleanPresetSelect(_DreameSelect):
    """Fan/water combination; the device reports no preset, so this shows the last one applied."""

    _key          = "clean_preset"
    _attr_name    = "Cleaning Preset"
    _attr_icon    = "mdi:tune-variant"
    _attr_options = DreameController.list_presets()
    _attr_current_option = None

    async def async_select_option(self, option: str) -> None:
        acks = await self.coordinator.controller.apply_preset(option)
        _LOGGER.debug("Preset %s -> %s", option, acks)
        self._attr_current_option = option
        await self.coordinator.async_request_refresh()
