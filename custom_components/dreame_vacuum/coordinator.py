"""DataUpdateCoordinator for Dreame Vacuum."""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from dreame_cloud import (
    CloudError,
    ConfirmationResult,
    DecodeError,
    DreameController,
    FormatError,
    MapHeader,
    Room,
    RoomResolutionError,
    ServiceArea,
    activity,
    resolve_room_names,
)
from dreame_cloud.render import render_map_image

from .const import DOMAIN, FAST_INTERVAL, MAP_INTERVAL

_LOGGER = logging.getLogger(__name__)


class DreameCoordinator(DataUpdateCoordinator):
    """Polls the cloud for device state + periodically re-syncs the map."""

    def __init__(self, hass: HomeAssistant, controller: DreameController) -> None:
        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=timedelta(seconds=FAST_INTERVAL),
        )
        self.controller      = controller
        self._map_tick       = 0      # counts update cycles; refresh map every N
        self._map_cycles     = MAP_INTERVAL // FAST_INTERVAL
        self._command_lock   = asyncio.Lock()
        self.map_image_bytes: bytes | None = None
        self.rooms: list[Room] = []
        self.service_areas: list[ServiceArea] = []
        self.map_header: MapHeader | None = None

    @property
    def device_name(self) -> str:
        ctx = self.controller.ctx
        return f"Dreame {ctx.model}" if ctx and ctx.model else "Dreame Vacuum"

    @property
    def map_id(self) -> int | None:
        return self.map_header.map_id if self.map_header else None

    async def _async_update_data(self) -> dict[str, Any]:
        try:
            state = await self.controller.status()
            fan, water = await self.controller.fan_water()
        except CloudError as exc:
            raise UpdateFailed(f"Failed to fetch vacuum status: {exc}") from exc

        # Refresh map on first load and every MAP_INTERVAL seconds
        self._map_tick += 1
        if self.map_image_bytes is None or self._map_tick >= self._map_cycles:
            self._map_tick = 0
            try:
                await self._refresh_map()
            except (CloudError, DecodeError, FormatError, ValueError) as exc:
                _LOGGER.warning("Map refresh failed: %s", exc)

        return {"state": state, "fan": fan, "water": water}

    async def _refresh_map(self) -> None:
        sync = await self.controller.sync_rooms()
        self.map_header    = sync.payload.header
        self.rooms         = sync.rooms
        self.service_areas = sync.service_areas
        self.map_image_bytes = await self.hass.async_add_executor_job(
            render_map_image, sync.payload, sync.rooms
        )
        _LOGGER.debug("Map rendered: %d bytes, %d rooms",
                      len(self.map_image_bytes), len(self.rooms))

    async def async_command(self, name: str) -> ConfirmationResult:
        """Run a confirmed command; one at a time per device."""
        async with self._command_lock:
            result = await self.controller.command(name)
        if not result.ok:
            _LOGGER.warning("%s not confirmed after %d polls (ack=%s)",
                            name, result.polls, result.ack)
        await self.async_request_refresh()
        return result

    def resolve_rooms(self, names: list[str]) -> list[int]:
        """Room names -> segment ids against the last synced map."""
        ids, missing = resolve_room_names(self.rooms, names)
        if missing:
            raise RoomResolutionError(missing, [a.name for a in self.service_areas])
        return ids

    async def async_clean_segments(self, segment_ids: list[int], repeat: int = 1) -> None:
        async with self._command_lock:
            result = await self.controller.clean_rooms(segment_ids, repeat)
        _LOGGER.debug("Segment clean %s -> %s", result.selects, result.ack)
        await self.async_request_refresh()


def vacuum_state(data: dict | None) -> str | None:
    """HA vacuum state string from the classified device state."""
    return activity(data["state"]) if data else None
