"""Render a decoded map frame's image plane to JPEG."""
from __future__ import annotations

import io
import logging

from PIL import Image, ImageDraw, ImageFont

from .map_frame import MapPayload
from .rooms import Room

_LOGGER = logging.getLogger(__name__)

# Pastel room colours (R, G, B), one per room slot
ROOM_PALETTE = [
    (255, 179, 186),  # pastel red
    (186, 225, 255),  # pastel blue
    (186, 255, 201),  # pastel green
    (255, 255, 186),  # pastel yellow
    (220, 186, 255),  # pastel purple
    (255, 220, 186),  # pastel orange
    (186, 255, 255),  # pastel cyan
]
WALL_COLOR    = (60,  60,  60)
UNKNOWN_COLOR = (210, 210, 210)
FLOOR_COLOR   = (240, 240, 240)
DOCK_COLOR    = (255, 200, 0)
ROBOT_COLOR   = (0, 180, 255)

SEGMENT_MASK = 0x3F
WALL_SEGMENT = 0x3F
FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"
FONT_SIZE = 14


def _palette(rooms: list[Room]) -> list[tuple[int, int, int]]:
    """256-entry lookup: pixel value -> colour."""
    room_colors = {r.segment_id: ROOM_PALETTE[i % len(ROOM_PALETTE)]
                   for i, r in enumerate(sorted(rooms, key=lambda r: r.segment_id))}
    lut = []
    for pv in range(256):
        seg = pv & SEGMENT_MASK
        if pv == 0:
            lut.append(UNKNOWN_COLOR)
        elif seg == WALL_SEGMENT:
            lut.append(WALL_COLOR)
        else:
            lut.append(room_colors.get(seg, FLOOR_COLOR))
    return lut


def _grid_xy(payload: MapPayload, x: int, y: int) -> tuple[float, float]:
    h = payload.header
    grid = h.grid_size or 1
    return (x - h.left) / grid, (y - h.top) / grid


def render_map_image(payload: MapPayload, rooms: list[Room], scale: int = 4) -> bytes:
    """Draw the occupancy plane, room labels, dock and robot. Returns JPEG bytes."""
    h = payload.header
    width, height = h.width, h.height
    if not width or not height:
        raise ValueError("Map frame has an empty image plane")
    pixels = payload.image.ljust(width * height, b"\x00")
    lut = _palette(rooms)

    img = Image.new("RGB", (width, height))
    # Rows bottom-to-top so the map appears right-way up.
    img.putdata([lut[pixels[(height - 1 - row) * width + col]]
                 for row in range(height) for col in range(width)])
    img = img.resize((width * scale, height * scale), Image.Resampling.NEAREST)
    draw = ImageDraw.Draw(img)

    try:
        font = ImageFont.truetype(FONT_PATH, FONT_SIZE)
    except OSError:
        font = ImageFont.load_default()

    for room in rooms:
        xs, ys = [], []
        for i, pv in enumerate(pixels):
            if pv and (pv & SEGMENT_MASK) == room.segment_id:
                xs.append(i % width)
                ys.append(i // width)
        if not xs:
            continue
        cx = int(sum(xs) / len(xs)) * scale + scale // 2
        cy = int(height - 1 - sum(ys) / len(ys)) * scale + scale // 2
        name = room.name or f"Room {room.segment_id}"
        draw.text((cx + 1, cy + 1), name, fill=(0, 0, 0), font=font, anchor="mm")
        draw.text((cx, cy),         name, fill=(255, 255, 255), font=font, anchor="mm")

    def _dot(gx: float, gy: float, color, radius: int = 6) -> None:
        sx = gx * scale + scale // 2
        sy = (height - 1 - gy) * scale + scale // 2
        draw.ellipse([sx - radius, sy - radius, sx + radius, sy + radius],
                     fill=color, outline=(255, 255, 255), width=2)

    _dot(*_grid_xy(payload, h.charger.x, h.charger.y), DOCK_COLOR)
    _dot(*_grid_xy(payload, h.robot.x, h.robot.y), ROBOT_COLOR)

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=85)
    _LOGGER.debug("Rendered map %d: %d bytes, %d rooms", h.map_id, buf.tell(), len(rooms))
    return buf.getvalue()
