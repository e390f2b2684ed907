"""Vacuum entity for Dreame Vacuum."""
from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.vacuum import (
    StateVacuumEntity,
    VacuumEntityFeature,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import (
    DOMAIN,
    FAN_INT_TO_NAME,
    FAN_NAME_TO_INT,
    FAN_SPEED_LIST,
    MANUFACTURER,
    WATER_INT_TO_NAME,
)
from .coordinator import DreameCoordinator, vacuum_state

_LOGGER = logging.getLogger(__name__)

_FEATURES = (
    VacuumEntityFeature.START
    | VacuumEntityFeature.PAUSE
    | VacuumEntityFeature.STOP
    | VacuumEntityFeature.RETURN_HOME
    | VacuumEntityFeature.FAN_SPEED
    | VacuumEntityFeature.BATTERY
    | VacuumEntityFeature.STATE
    | VacuumEntityFeature.MAP
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    coordinator: DreameCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([DreameVacuumEntity(coordinator, entry)])


class DreameVacuumEntity(CoordinatorEntity[DreameCoordinator], StateVacuumEntity):
    _attr_has_entity_name = True
    _attr_name            = None   # use device name as entity name
    _attr_supported_features = _FEATURES
    _attr_fan_speed_list     = FAN_SPEED_LIST

    def __init__(self, coordinator: DreameCoordinator, entry: ConfigEntry) -> None:
        super().__init__(coordinator)
        self._entry          = entry
        self._attr_unique_id = f"{entry.entry_id}_vacuum"

    @property
    def device_info(self):
        ctx = self.coordinator.controller.ctx
        return {
            "identifiers": {(DOMAIN, self._entry.entry_id)},
            "name":        self.coordinator.device_name,
            "manufacturer": MANUFACTURER,
            "model":       ctx.model if ctx else None,
        }

    @property
    def state(self) -> str | None:
        return vacuum_state(self.coordinator.data)

    @property
    def battery_level(self) -> int | None:
        d = self.coordinator.data
        if not d or d["state"].battery_percent is None:
            return None
        return int(d["state"].battery_percent)

    @property
    def fan_speed(self) -> str | None:
        d = self.coordinator.data
        if d is None:
            return None
        return FAN_INT_TO_NAME.get(d.get("fan"))

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        d = self.coordinator.data or {}
        state = d.get("state")
        return {
            "water_level":   WATER_INT_TO_NAME.get(d.get("water")),
            "error":         state.error if state else None,
            "map_id":        self.coordinator.map_id,
            "service_areas": [{"id": a.id, "name": a.name}
                              for a in self.coordinator.service_areas],
            "rooms":         [a.name for a in self.coordinator.service_areas],
            "integration":   DOMAIN,
        }

    async def async_start(self) -> None:
        name = "resume" if self.state == "paused" else "start"
        await self.coordinator.async_command(name)

    async def async_pause(self) -> None:
        await self.coordinator.async_command("pause")

    async def async_stop(self, **kwargs: Any) -> None:
        await self.coordinator.async_command("stop")

    async def async_return_to_base(self, **kwargs: Any) -> None:
        await self.coordinator.async_command("home")

    async def async_set_fan_speed(self, fan_speed: str, **kwargs: Any) -> None:
        value = FAN_NAME_TO_INT.get(fan_speed.lower())
        if value is None:
            _LOGGER.error("Unknown fan speed: %s", fan_speed)
            return
        await self.coordinator.controller.set_fan(value)
        await self.coordinator.async_request_refresh()
