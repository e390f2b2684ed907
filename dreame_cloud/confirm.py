"""Command confirmation: dispatch an action, then poll telemetry until it shows."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from .telemetry import DeviceState, TelemetryProperty, classify

_LOGGER = logging.getLogger(__name__)

Predicate   = Callable[[DeviceState], bool]
PollHook    = Callable[[int, DeviceState], None]
SendAction  = Callable[["Action"], Awaitable[dict]]
ReadTelemetry = Callable[[], Awaitable[list[TelemetryProperty]]]


@dataclass(frozen=True)
class Action:
    siid: int
    aiid: int
    params: tuple = field(default_factory=tuple)


@dataclass(frozen=True)
class ConfirmationResult:
    ok: bool
    ack: Any
    state: DeviceState
    polls: int


@dataclass(frozen=True)
class CommandPreset:
    name: str
    action: Action
    predicate: Predicate
    attempts: int
    delay: float


def _is_running(s: DeviceState) -> bool: return s.running is True
def _is_paused(s: DeviceState) -> bool:  return s.paused is True
def _is_stopped(s: DeviceState) -> bool: return not s.running and not s.paused
def _is_docked(s: DeviceState) -> bool:  return s.docked is True


# Timing reflects physical latency: returning to the dock takes ~90s.
COMMAND_PRESETS: dict[str, CommandPreset] = {
    p.name: p for p in (
        CommandPreset("start",  Action(2, 1), _is_running, attempts=6,  delay=1.5),
        CommandPreset("resume", Action(2, 1), _is_running, attempts=6,  delay=1.5),
        CommandPreset("pause",  Action(2, 2), _is_paused,  attempts=6,  delay=1.5),
        CommandPreset("stop",   Action(4, 2), _is_stopped, attempts=10, delay=1.5),
        CommandPreset("home",   Action(3, 1), _is_docked,  attempts=45, delay=2.0),
    )
}


def get_preset(name: str) -> CommandPreset:
    try:
        return COMMAND_PRESETS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown command '{name}'. Options: {', '.join(COMMAND_PRESETS)}"
        ) from None


class ConfirmationEngine:
    """Dispatched -> Polling -> Confirmed | Exhausted.

    Holds no state between calls. Commands to the same device must be
    serialised by the caller.
    """

    def __init__(
        self,
        send_action: SendAction,
        read_telemetry: ReadTelemetry,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._send_action    = send_action
        self._read_telemetry = read_telemetry
        self._sleep          = sleep

    async def _read_state(self) -> DeviceState:
        return classify(await self._read_telemetry())

    async def confirm(
        self,
        action: Action,
        predicate: Predicate,
        attempts: int,
        delay: float,
        on_poll: PollHook | None = None,
    ) -> ConfirmationResult:
        # The ack is kept whatever it says; a failed round-trip does not mean
        # the robot missed the command.
        ack = await self._send_action(action)
        _LOGGER.debug("Dispatched %s.%s -> %s", action.siid, action.aiid, ack)

        for i in range(1, attempts + 1):
            await self._sleep(delay)
            state = await self._read_state()
            if on_poll is not None:
                on_poll(i, state)
            _LOGGER.debug("Poll %d/%d: %s", i, attempts, state)
            if predicate(state):
                _LOGGER.debug("Confirmed after %d poll(s)", i)
                return ConfirmationResult(ok=True, ack=ack, state=state, polls=i)

        state = await self._read_state()
        _LOGGER.info("Action %s.%s not confirmed after %d polls",
                     action.siid, action.aiid, attempts)
        return ConfirmationResult(ok=False, ack=ack, state=state, polls=attempts)

    async def run(self, preset: str | CommandPreset,
                  on_poll: PollHook | None = None) -> ConfirmationResult:
        if isinstance(preset, str):
            preset = get_preset(preset)
        return await self.confirm(preset.action, preset.predicate,
                                  preset.attempts, preset.delay, on_poll)
