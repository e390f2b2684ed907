"""Map camera for Dreame Vacuum: the last synced RISM frame rendered to JPEG."""
from __future__ import annotations

from typing import Any

from homeassistant.components.camera import Camera
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, MANUFACTURER
from .coordinator import DreameCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    coordinator: DreameCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([DreameMapCamera(coordinator, entry)])


class DreameMapCamera(CoordinatorEntity[DreameCoordinator], Camera):
    _attr_has_entity_name = True
    _attr_name            = "Map"
    _attr_icon            = "mdi:floor-plan"

    def __init__(self, coordinator: DreameCoordinator, entry: ConfigEntry) -> None:
        CoordinatorEntity.__init__(self, coordinator)
        Camera.__init__(self)
        self.content_type     = "image/jpeg"
        self._attr_unique_id  = f"{entry.entry_id}_map"
        self._attr_device_info = {
            "identifiers": {(DOMAIN, entry.entry_id)},
            "name": coordinator.device_name,
            "manufacturer": MANUFACTURER,
        }

    @property
    def available(self) -> bool:
        # No frame until the first successful sync_rooms
        return super().available and self.coordinator.map_image_bytes is not None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        header = self.coordinator.map_header
        if header is None:
            return {}
        return {
            "map_id":    header.map_id,
            "frame_id":  header.frame_id,
            "grid_size": header.grid_size,
            "size":      [header.width, header.height],
            "robot":     {"x": header.robot.x, "y": header.robot.y, "angle": header.robot.angle},
            "charger":   {"x": header.charger.x, "y": header.charger.y, "angle": header.charger.angle},
            "rooms":     {a.id: a.name for a in self.coordinator.service_areas},
        }

    async def async_camera_image(
        self, width: int | None = None, height: int | None = None
    ) -> bytes | None:
        return self.coordinator.map_image_bytes
