"""Sensor entities for Dreame Vacuum."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import PERCENTAGE
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, MANUFACTURER
from .coordinator import DreameCoordinator, vacuum_state

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DreameSensorDescription(SensorEntityDescription):
    value_fn: Callable[[dict], Any] = lambda d: None


SENSORS = (
    DreameSensorDescription(
        key="status",
        name="Status",
        icon="mdi:robot-vacuum",
        value_fn=lambda d: (vacuum_state(d) or "idle").title(),
    ),
    DreameSensorDescription(
        key="battery",
        name="Battery",
        native_unit_of_measurement=PERCENTAGE,
        device_class=SensorDeviceClass.BATTERY,
        state_class=SensorStateClass.MEASUREMENT,
        value_fn=lambda d: d["state"].battery_percent,
    ),
    DreameSensorDescription(
        key="error",
        name="Error",
        icon="mdi:alert-circle-outline",
        value_fn=lambda d: d["state"].error or "none",
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    coordinator: DreameCoordinator = hass.data[DOMAIN][entry.entry_id]
    device_info = {
        "identifiers": {(DOMAIN, entry.entry_id)},
        "name": coordinator.device_name,
        "manufacturer": MANUFACTURER,
    }
    async_add_entities(
        DreameStatusSensor(coordinator, entry, desc, device_info) for desc in SENSORS
    )


class DreameStatusSensor(CoordinatorEntity[DreameCoordinator], SensorEntity):
    _attr_has_entity_name = True

    def __init__(self, coordinator, entry, desc: DreameSensorDescription, device_info) -> None:
        super().__init__(coordinator)
        self.entity_description  = desc
        self._attr_unique_id     = f"{entry.entry_id}_{desc.key}"
        self._attr_device_info   = device_info

    @property
    def native_value(self) -> Any:
        d = self.coordinator.data
        if d is None:
            return None
        return self.entity_description.value_fn(d)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        d = self.coordinator.data
        if not d or self.entity_description.key != "status":
            return {}
        raw = d["state"].raw
        return {"state_raw": raw.state, "status_raw": raw.status,
                "charging_raw": raw.charging, "error_raw": raw.error}
