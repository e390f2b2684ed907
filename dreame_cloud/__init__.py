"""Dreame robot vacuum cloud client: map frames, rooms, telemetry, confirmed commands."""
from .cloud import CloudError, DeviceContext, DreameCloudClient
from .confirm import (
    COMMAND_PRESETS,
    Action,
    CommandPreset,
    ConfirmationEngine,
    ConfirmationResult,
)
from .controller import DreameController, RoomSync, SegmentCleanResult
from .map_frame import (
    DecodeError,
    FormatError,
    MapHeader,
    MapPayload,
    Pose,
    decode_map_frame,
    decode_transport,
    parse_map_frame,
)
from .rooms import (
    Room,
    RoomResolutionError,
    ServiceArea,
    extract_rooms,
    resolve_room_names,
    to_service_areas,
)
from .telemetry import DeviceState, TelemetryProperty, activity, classify

__version__ = "0.1.0"
