import base64
import json
import zlib

import pytest

from dreame_cloud.map_frame import MapHeader, Pose
from dreame_cloud.telemetry import TelemetryProperty


def make_header(**overrides):
    fields = dict(
        map_id=3, frame_id=17, frame_type=73,
        robot=Pose(120, -340, 90), charger=Pose(-15, 22, 180),
        grid_size=50, width=4, height=3, left=-200, top=-150,
    )
    fields.update(overrides)
    return MapHeader(**fields)


def make_frame(header=None, image=None, trailing=b""):
    header = header or make_header()
    if image is None:
        image = bytes(header.image_size)
    if isinstance(trailing, (dict, list)):
        trailing = json.dumps(trailing).encode()
    return header.to_bytes() + image + trailing


def encode_blob(raw, container="zlib", urlsafe=False):
    if container == "zlib":
        data = zlib.compress(raw)
    else:
        c = zlib.compressobj(wbits=-zlib.MAX_WBITS)
        data = c.compress(raw) + c.flush()
    if urlsafe:
        return base64.urlsafe_b64encode(data).decode().rstrip("=")
    return base64.b64encode(data).decode()


def props(**values):
    """props(state=1, battery=80) -> telemetry list with MIoT keys."""
    keys = {"state": "2.1", "error": "2.2", "battery": "3.1",
            "charging": "3.2", "status": "4.1"}
    return [TelemetryProperty(keys[k], v) for k, v in values.items()]


@pytest.fixture
def segment_info():
    return {
        "7": {"name": "not-base64!", "type": 0, "index": 1},
        "2": {"name": base64.b64encode("Cozinha".encode()).decode(),
              "type": 4, "index": 0, "roomUniqueId": 11},
        "5": {"name": base64.b64encode("Sala de Estar".encode()).decode(),
              "type": 1, "index": 2, "roomUniqueId": 12},
        "9": {"name": base64.b64encode("Banheiro Suíte".encode()).decode(),
              "type": 3, "index": 3},
        "dock": {"name": "ignored"},
    }


@pytest.fixture
def map_blob(segment_info):
    raw = make_frame(trailing={"seg_inf": segment_info, "ri": {"x": 1}})
    return encode_blob(raw)


@pytest.fixture
def room_cache_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DREAME_CACHE_DIR", str(tmp_path))
    return tmp_path
