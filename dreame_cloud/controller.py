"""Async facade over the cloud client, rooms and confirmation engine."""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable

from .cloud import DeviceContext, DreameCloudClient
from .confirm import Action, ConfirmationEngine, ConfirmationResult, PollHook
from .const import (
    CLEAN_PRESETS,
    FAN_LEVELS,
    FAN_PIID,
    FAN_SIID,
    FAN_WATER_KEYS,
    KEY_FAN,
    KEY_WATER,
    SEGMENT_CLEAN_AIID,
    SEGMENT_CLEAN_SIID,
    SEGMENT_CLEAN_STATUS,
    STATE_KEYS,
    WATER_LEVELS,
    WATER_PIID,
    WATER_SIID,
)
from .map_frame import MapPayload, decode_map_frame
from .rooms import (
    Room,
    RoomResolutionError,
    ServiceArea,
    exclude_rooms,
    extract_rooms,
    load_rooms_cache,
    resolve_room_names,
    save_rooms_cache,
    to_service_areas,
)
from .telemetry import DeviceState, classify

_LOGGER = logging.getLogger(__name__)

RunBlocking = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class RoomSync:
    payload: MapPayload
    rooms: list[Room]
    service_areas: list[ServiceArea]


@dataclass(frozen=True)
class SegmentCleanResult:
    selects: list[list[int]]
    fan: int | None
    water: int | None
    ack: dict


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def build_selects(segment_ids: list[int], repeat: int, fan: int | None,
                  water: int | None) -> list[list[int]]:
    """[[segment, repeat, fan, water, order], ...]; order is 1-based."""
    return [[sid, repeat, fan if fan is not None else 1, water if water is not None else 1, i]
            for i, sid in enumerate(segment_ids, start=1)]


class DreameController:
    """One cloud account, one robot."""

    def __init__(self, client: DreameCloudClient, device_index: int = 0,
                 run_blocking: RunBlocking | None = None) -> None:
        self.client        = client
        self.device_index  = device_index
        self._run_blocking = run_blocking or asyncio.to_thread
        self.ctx: DeviceContext | None = None
        self.engine = ConfirmationEngine(self._send_action, self._read_telemetry)

    # ---- plumbing ------------------------------------------------------------
    def _require_ctx(self) -> DeviceContext:
        if self.ctx is None:
            raise RuntimeError("Controller not initialised. Call init() first.")
        return self.ctx

    async def _call(self, func, *args, **kwargs):
        if kwargs:
            func = partial(func, **kwargs)
        return await self._run_blocking(func, *args)

    async def _send_action(self, action: Action) -> dict:
        return await self._call(self.client.send_action, self._require_ctx(),
                                action.siid, action.aiid, list(action.params))

    async def _read_telemetry(self):
        return await self._call(self.client.get_props, self._require_ctx().did, STATE_KEYS)

    # ---- device --------------------------------------------------------------
    async def init(self) -> DeviceContext:
        self.ctx = await self._call(self.client.resolve_device, self.device_index)
        _LOGGER.debug("Using device %s (%s)", self.ctx.did, self.ctx.model)
        return self.ctx

    async def status(self) -> DeviceState:
        return classify(await self._read_telemetry())

    # ---- confirmed commands --------------------------------------------------
    async def command(self, name: str, on_poll: PollHook | None = None) -> ConfirmationResult:
        self._require_ctx()
        return await self.engine.run(name, on_poll)

    async def start(self, on_poll: PollHook | None = None) -> ConfirmationResult:
        return await self.command("start", on_poll)

    async def pause(self, on_poll: PollHook | None = None) -> ConfirmationResult:
        return await self.command("pause", on_poll)

    async def resume(self, on_poll: PollHook | None = None) -> ConfirmationResult:
        return await self.command("resume", on_poll)

    async def stop(self, on_poll: PollHook | None = None) -> ConfirmationResult:
        return await self.command("stop", on_poll)

    async def home(self, on_poll: PollHook | None = None) -> ConfirmationResult:
        return await self.command("home", on_poll)

    # ---- rooms ---------------------------------------------------------------
    @staticmethod
    def _decode_rooms(did: str, blob: str) -> tuple[MapPayload, list[Room]]:
        """Decode, extract and cache. Blocking; runs through run_blocking."""
        payload = decode_map_frame(blob)
        rooms = extract_rooms(payload)
        save_rooms_cache(did, rooms)
        return payload, rooms

    async def sync_rooms(self, blob: str | None = None) -> RoomSync:
        """Decode a RISM blob (fetched from the cloud if not given) into rooms."""
        ctx = self._require_ctx()
        if blob is None:
            blob = await self._call(self.client.get_map_blob, ctx.did)
            if blob is None:
                raise ValueError(f"Device {ctx.did} returned no map data")
        payload, rooms = await self._call(self._decode_rooms, ctx.did, blob)
        _LOGGER.debug("Synced %d rooms for %s", len(rooms), ctx.did)
        return RoomSync(payload=payload, rooms=rooms, service_areas=to_service_areas(rooms))

    async def rooms(self, max_age_minutes: float | None = None) -> list[Room] | None:
        return await self._call(load_rooms_cache, self._require_ctx().did, max_age_minutes)

    async def _cached_rooms(self, names: list[str]) -> list[Room]:
        rooms = await self.rooms()
        if not rooms:
            # nothing synced yet
            raise RoomResolutionError(list(names), [])
        return rooms

    async def clean_rooms(self, segment_ids: list[int], repeat: int = 1) -> SegmentCleanResult:
        ctx = self._require_ctx()
        if not segment_ids:
            raise ValueError("At least one segment id is required")
        fan, water = await self.fan_water()
        selects = build_selects(list(segment_ids), repeat, fan, water)
        params = [
            {"piid": 1, "value": SEGMENT_CLEAN_STATUS},
            {"piid": 10, "value": json.dumps({"selects": selects}, separators=(",", ":"))},
        ]
        ack = await self._call(self.client.send_action, ctx,
                               SEGMENT_CLEAN_SIID, SEGMENT_CLEAN_AIID, params)
        return SegmentCleanResult(selects=selects, fan=fan, water=water, ack=ack)

    async def clean_only(self, names: list[str], repeat: int = 1) -> SegmentCleanResult:
        rooms = await self._cached_rooms(names)
        ids, missing = resolve_room_names(rooms, names)
        if missing:
            raise RoomResolutionError(missing, [r.name or str(r.segment_id) for r in rooms])
        return await self.clean_rooms(ids, repeat)

    async def clean_except(self, names: list[str], repeat: int = 1) -> SegmentCleanResult:
        rooms = await self._cached_rooms(names)
        excluded, missing = resolve_room_names(rooms, names)
        if missing:
            raise RoomResolutionError(missing, [r.name or str(r.segment_id) for r in rooms])
        return await self.clean_rooms(exclude_rooms(rooms, excluded), repeat)

    # ---- fan / water / presets -----------------------------------------------
    async def fan_water(self) -> tuple[int | None, int | None]:
        props = await self._call(self.client.get_props, self._require_ctx().did, FAN_WATER_KEYS)
        values = {p.key: p.value for p in props}
        return _int_or_none(values.get(KEY_FAN)), _int_or_none(values.get(KEY_WATER))

    async def set_fan(self, level: int) -> dict:
        if level not in FAN_LEVELS:
            raise ValueError(f"Fan level must be one of {sorted(FAN_LEVELS)}")
        return await self._call(self.client.set_property, self._require_ctx(),
                                FAN_SIID, FAN_PIID, level)

    async def set_water(self, level: int) -> dict:
        if level not in WATER_LEVELS:
            raise ValueError(f"Water level must be one of {sorted(WATER_LEVELS)}")
        return await self._call(self.client.set_property, self._require_ctx(),
                                WATER_SIID, WATER_PIID, level)

    @staticmethod
    def list_presets() -> list[str]:
        return list(CLEAN_PRESETS)

    async def apply_preset(self, name: str) -> dict[str, dict]:
        match = next((p for p in CLEAN_PRESETS if p.lower() == name.lower()), None)
        if match is None:
            raise ValueError(f"Unknown preset '{name}'. Options: {', '.join(CLEAN_PRESETS)}")
        fan, water = CLEAN_PRESETS[match]
        acks: dict[str, dict] = {}
        if fan is not None:
            acks["fan"] = await self.set_fan(fan)
        if water is not None:
            acks["water"] = await self.set_water(water)
        return acks
