"""RISM map-frame decoding: transport blob -> raw buffer -> header + payload."""
from __future__ import annotations

import base64
import binascii
import json
import logging
import struct
import zlib
from dataclasses import dataclass
from typing import Any

_LOGGER = logging.getLogger(__name__)

# mapId, frameId, frameType, robot x/y/angle, charger x/y/angle,
# gridSize, width, height, left, top
_HEADER = struct.Struct("<HHBhhhhhhHHHhh")
HEADER_SIZE = _HEADER.size   # 27


class DecodeError(ValueError):
    """Transport blob is not valid base64 or not a zlib / raw DEFLATE stream."""


class FormatError(ValueError):
    """Raw buffer is too short to hold a map header."""


@dataclass(frozen=True)
class Pose:
    x: int
    y: int
    angle: int


@dataclass(frozen=True)
class MapHeader:
    map_id: int
    frame_id: int
    frame_type: int
    robot: Pose
    charger: Pose
    grid_size: int
    width: int
    height: int
    left: int
    top: int

    @property
    def image_size(self) -> int:
        return self.width * self.height

    def to_bytes(self) -> bytes:
        return _HEADER.pack(
            self.map_id, self.frame_id, self.frame_type,
            self.robot.x, self.robot.y, self.robot.angle,
            self.charger.x, self.charger.y, self.charger.angle,
            self.grid_size, self.width, self.height, self.left, self.top,
        )


@dataclass(frozen=True)
class MapPayload:
    header: MapHeader
    image: bytes = b""
    trailing_data: Any = None


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------
def _b64decode_strict(text: str) -> bytes:
    text = text.replace("-", "+").replace("_", "/")
    text += "=" * (-len(text) % 4)
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 map blob: {exc}") from exc


def _inflate(data: bytes) -> bytes:
    """zlib-wrapped first, raw DEFLATE second; the device emits either."""
    try:
        return zlib.decompress(data)
    except zlib.error as exc:
        _LOGGER.debug("zlib stream rejected (%s), trying raw deflate", exc)
    try:
        return zlib.decompress(data, -zlib.MAX_WBITS)
    except zlib.error as exc:
        raise DecodeError(f"Map blob is neither zlib nor raw deflate: {exc}") from exc


def decode_transport(blob: str) -> bytes:
    """Return the raw map-frame buffer carried by a RISM transport string."""
    return _inflate(_b64decode_strict(blob.strip()))


# ---------------------------------------------------------------------------
# Frame
# ---------------------------------------------------------------------------
def parse_header(raw: bytes) -> MapHeader:
    if len(raw) < HEADER_SIZE:
        raise FormatError(f"Map frame too short ({len(raw)} bytes, need {HEADER_SIZE})")
    (map_id, frame_id, frame_type,
     rx, ry, ra, cx, cy, ca,
     grid_size, width, height, left, top) = _HEADER.unpack_from(raw, 0)
    return MapHeader(
        map_id=map_id, frame_id=frame_id, frame_type=frame_type,
        robot=Pose(rx, ry, ra), charger=Pose(cx, cy, ca),
        grid_size=grid_size, width=width, height=height, left=left, top=top,
    )


def _parse_trailing(data: bytes) -> Any:
    """Best-effort JSON decode of the bytes after the image plane."""
    try:
        text = data.decode("utf-8").strip()
    except UnicodeDecodeError:
        _LOGGER.debug("Trailing map data is not UTF-8, ignoring")
        return None
    if not text or text[0] not in "{[":
        return None
    try:
        return json.loads(text)
    except ValueError:
        _LOGGER.debug("Trailing map data is not valid JSON, ignoring")
        return None


def parse_map_frame(raw: bytes) -> MapPayload:
    header = parse_header(raw)
    end = HEADER_SIZE + header.image_size
    image = bytes(raw[HEADER_SIZE:end])
    trailing = _parse_trailing(bytes(raw[end:])) if len(raw) > end else None
    _LOGGER.debug("Map %d frame %d: %dx%d, trailing=%s",
                  header.map_id, header.frame_id, header.width, header.height,
                  type(trailing).__name__)
    return MapPayload(header=header, image=image, trailing_data=trailing)


def decode_map_frame(blob: str) -> MapPayload:
    """Transport blob -> MapPayload. Raises DecodeError or FormatError."""
    return parse_map_frame(decode_transport(blob))
