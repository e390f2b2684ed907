"""Sparse MIoT telemetry -> semantic device state."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

from .const import KEY_BATTERY, KEY_CHARGING, KEY_ERROR, KEY_STATE, KEY_STATUS


@dataclass(frozen=True)
class TelemetryProperty:
    key: str
    value: Any

    @classmethod
    def from_dict(cls, d: dict) -> "TelemetryProperty":
        return cls(key=str(d.get("key")), value=d.get("value"))


@dataclass(frozen=True)
class RawState:
    state: float | None
    status: float | None
    charging: float | None
    error: float | None


@dataclass(frozen=True)
class DeviceState:
    battery_percent: float | None
    docked: bool
    running: bool
    paused: bool
    error: str | None
    raw: RawState


def _to_number(value: Any) -> float | None:
    """Coerce to a finite float; None for absent or non-numeric values."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        try:
            num = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return num if math.isfinite(num) else None


def _plain(num: float) -> int | float:
    return int(num) if num.is_integer() else num


def classify(properties: Iterable[TelemetryProperty]) -> DeviceState:
    """Pure and total: any property list yields a DeviceState."""
    props = {p.key: p.value for p in properties}

    state    = _to_number(props.get(KEY_STATE))
    error    = _to_number(props.get(KEY_ERROR))
    battery  = _to_number(props.get(KEY_BATTERY))
    charging = _to_number(props.get(KEY_CHARGING))
    status   = _to_number(props.get(KEY_STATUS))

    # NOTE: a missing or non-numeric 2.2 reads as "no error"; cloud behaviour
    # for an absent 2.2 is unverified.
    error_code = error if error is not None else 0.0

    return DeviceState(
        battery_percent=_plain(battery) if battery is not None else None,
        docked=charging == 1 or (state == 13 and status == 14),
        running=state == 1,
        paused=state == 3,
        error=None if error_code == 0 else f"error_code_{_plain(error_code)}",
        raw=RawState(state=state, status=status, charging=charging, error=error),
    )


def activity(state: DeviceState | None) -> str | None:
    """Single activity label: error, cleaning, paused, docked or idle."""
    if state is None:
        return None
    if state.error:
        return "error"
    if state.running:
        return "cleaning"
    if state.paused:
        return "paused"
    if state.docked:
        return "docked"
    return "idle"
