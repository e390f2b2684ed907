"""Dreame Vacuum (cloud) integration."""
from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ConfigEntryNotReady

from dreame_cloud import CloudError, DreameCloudClient, DreameController, RoomResolutionError

from .const import CONF_DEVICE_INDEX, CONF_REGION, CONF_TENANT, CONF_TOKEN, DOMAIN
from .coordinator import DreameCoordinator

_LOGGER = logging.getLogger(__name__)
PLATFORMS = [Platform.VACUUM, Platform.SENSOR, Platform.CAMERA, Platform.SELECT]


def build_controller(hass: HomeAssistant, data: dict) -> DreameController:
    client = DreameCloudClient(
        access_token=data[CONF_TOKEN],
        tenant_id=data.get(CONF_TENANT, ""),
        region=data.get(CONF_REGION, ""),
    )
    return DreameController(
        client,
        device_index=data.get(CONF_DEVICE_INDEX, 0),
        run_blocking=hass.async_add_executor_job,
    )


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    controller = build_controller(hass, dict(entry.data))
    try:
        await controller.init()
    except CloudError as exc:
        raise ConfigEntryNotReady(f"Dreame cloud unavailable: {exc}") from exc
    coordinator = DreameCoordinator(hass, controller)
    await coordinator.async_config_entry_first_refresh()

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    async def handle_clean_rooms(call: ServiceCall) -> None:
        """Service: dreame_vacuum.clean_rooms."""
        rooms_raw = call.data.get("rooms", [])
        repeat = int(call.data.get("repeat", 1))

        # HA templates can produce a string when only one room is selected.
        if isinstance(rooms_raw, (str, int)):
            rooms = [rooms_raw]
        else:
            rooms = list(rooms_raw)

        if not rooms:
            _LOGGER.error("clean_rooms: 'rooms' field is required")
            return

        # Numeric entries are service-area ids, anything else is a room name
        segment_ids = [int(r) for r in rooms if str(r).isdigit()]
        names = [str(r) for r in rooms if not str(r).isdigit()]
        try:
            if names:
                segment_ids += coordinator.resolve_rooms(names)
            await coordinator.async_clean_segments(list(dict.fromkeys(segment_ids)), repeat)
        except (RoomResolutionError, ValueError) as exc:
            _LOGGER.error("clean_rooms: %s", exc)

    hass.services.async_register(DOMAIN, "clean_rooms", handle_clean_rooms)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if ok:
        hass.data[DOMAIN].pop(entry.entry_id, None)
        hass.services.async_remove(DOMAIN, "clean_rooms")
    return ok
