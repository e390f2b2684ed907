"""Rooms / service areas from the map frame's segment-info table."""
from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import re
import tempfile
import time
import unicodedata
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

from .const import ROOMS_CACHE_PREFIX
from .map_frame import MapPayload

_LOGGER = logging.getLogger(__name__)

_B64_RE = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")
_SEGMENT_KEYS = ("seg_inf", "segInf")


class RoomResolutionError(ValueError):
    """One or more room names did not match any known room."""

    def __init__(self, missing: list[str], available: list[str]) -> None:
        super().__init__(f"No room matching {missing}. Available: {available}")
        self.missing   = missing
        self.available = available


@dataclass(frozen=True)
class Room:
    segment_id: int
    name: str | None = None
    type: Any = None
    index: Any = None
    unique_id: Any = None


@dataclass(frozen=True)
class ServiceArea:
    id: int
    name: str


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------
def decode_room_name(raw: Any) -> str | None:
    """Decode a base64 room name. Anything unusable becomes None."""
    if not isinstance(raw, str) or len(raw) < 8 or not _B64_RE.match(raw):
        return None
    try:
        text = base64.b64decode(raw, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    text = text.replace("\x00", "").strip()
    return text or None


def _segment_id(key: Any) -> int | None:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.strip().isdigit():
        return int(key.strip())
    return None


def find_segment_info(trailing_data: Any) -> Mapping | None:
    if not isinstance(trailing_data, Mapping):
        return None
    for key in _SEGMENT_KEYS:
        seg_inf = trailing_data.get(key)
        if isinstance(seg_inf, Mapping):
            return seg_inf
    return None


def rooms_from_segment_info(seg_inf: Mapping) -> list[Room]:
    rooms = []
    for key, info in seg_inf.items():
        segment_id = _segment_id(key)
        if segment_id is None or not isinstance(info, Mapping):
            _LOGGER.debug("Skipping segment entry %r", key)
            continue
        rooms.append(Room(
            segment_id=segment_id,
            name=decode_room_name(info.get("name")),
            type=info.get("type"),
            index=info.get("index"),
            unique_id=info.get("roomUniqueId"),
        ))
    return sorted(rooms, key=lambda r: r.segment_id)


def extract_rooms(payload: MapPayload) -> list[Room]:
    seg_inf = find_segment_info(payload.trailing_data)
    if seg_inf is None:
        return []
    return rooms_from_segment_info(seg_inf)


def to_service_areas(rooms: Iterable[Room]) -> list[ServiceArea]:
    # Area id is the segment id; consumers persist it across syncs.
    return [ServiceArea(id=r.segment_id, name=r.name or f"Room {r.segment_id}")
            for r in rooms]


# ---------------------------------------------------------------------------
# Name resolution
# ---------------------------------------------------------------------------
def normalize_name(name: str) -> str:
    folded = unicodedata.normalize("NFKD", name)
    folded = "".join(c for c in folded if not unicodedata.combining(c))
    return " ".join(folded.casefold().split())


def _room_label(room: Room) -> str:
    return room.name or f"Room {room.segment_id}"


def resolve_room_names(rooms: Iterable[Room], names: Iterable[str]) -> tuple[list[int], list[str]]:
    """Match names to segment ids. Exact (normalised) first, then partial.

    Returns (segment_ids, missing_names); ids keep request order, no duplicates.
    """
    labelled = [(r.segment_id, normalize_name(_room_label(r))) for r in rooms]
    ids: list[int] = []
    missing: list[str] = []
    for name in names:
        pat = normalize_name(name)
        hits = [sid for sid, label in labelled if label == pat]
        if not hits and pat:
            hits = [sid for sid, label in labelled if pat in label]
        if not hits:
            missing.append(name)
            continue
        for sid in hits:
            if sid not in ids:
                ids.append(sid)
    return ids, missing


def exclude_rooms(rooms: Iterable[Room], segment_ids: Iterable[int]) -> list[int]:
    excluded = set(segment_ids)
    return sorted({r.segment_id for r in rooms} - excluded)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------
def cache_dir() -> Path:
    return Path(os.environ.get("DREAME_CACHE_DIR") or tempfile.gettempdir())


def cache_path(did: str, directory: Path | None = None) -> Path:
    return (directory or cache_dir()) / f"{ROOMS_CACHE_PREFIX}{did}.json"


def save_rooms_cache(did: str, rooms: list[Room], directory: Path | None = None) -> Path:
    path = cache_path(did, directory)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({
        "did":          str(did),
        "updatedAt":    time.time(),
        "rooms":        [asdict(r) for r in rooms],
        "serviceAreas": [asdict(a) for a in to_service_areas(rooms)],
    }, indent=2, ensure_ascii=False), encoding="utf-8")
    _LOGGER.debug("Saved %d rooms to %s", len(rooms), path)
    return path


def load_rooms_cache(did: str, max_age_minutes: float | None = None,
                     directory: Path | None = None) -> list[Room] | None:
    """Return cached rooms, or None when missing, unreadable or expired."""
    path = cache_path(did, directory)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if max_age_minutes is not None:
            age = time.time() - float(data["updatedAt"])
            if age > max_age_minutes * 60:
                _LOGGER.debug("Room cache %s expired (%.0fs old)", path, age)
                return None
        return [Room(**r) for r in data["rooms"]]
    except FileNotFoundError:
        return None
    except (OSError, ValueError, KeyError, TypeError) as exc:
        _LOGGER.warning("Ignoring unreadable room cache %s: %s", path, exc)
        return None
