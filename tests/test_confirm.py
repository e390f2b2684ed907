import pytest

from dreame_cloud.confirm import (
    COMMAND_PRESETS,
    Action,
    ConfirmationEngine,
    get_preset,
)
from dreame_cloud.telemetry import classify

from .conftest import props


class FakeRobot:
    """Scripted telemetry: each read returns the next reading, the last one repeats."""

    def __init__(self, readings, ack=None):
        self.readings = list(readings)
        self.ack      = ack if ack is not None else {"code": 0, "data": {"result": {"code": 0}}}
        self.actions  = []
        self.reads    = 0
        self.sleeps   = []

    async def send_action(self, action):
        self.actions.append(action)
        return self.ack

    async def read_telemetry(self):
        reading = self.readings[min(self.reads, len(self.readings) - 1)]
        self.reads += 1
        return reading

    async def sleep(self, delay):
        self.sleeps.append(delay)

    def engine(self):
        return ConfirmationEngine(self.send_action, self.read_telemetry, sleep=self.sleep)


IDLE    = props(state=2, charging=0, battery=80)
RUNNING = props(state=1, charging=0, battery=80)
PAUSED  = props(state=3, charging=0, battery=80)
DOCKED  = props(state=13, status=14, charging=1, battery=80)


@pytest.mark.asyncio
async def test_confirmed_on_third_poll():
    robot = FakeRobot([IDLE, IDLE, RUNNING])
    result = await robot.engine().confirm(Action(2, 1), lambda s: s.running, attempts=6, delay=1.5)

    assert result.ok
    assert result.polls == 3
    assert result.state.running
    assert robot.reads == 3
    assert robot.sleeps == [1.5, 1.5, 1.5]
    assert robot.actions == [Action(2, 1)]


@pytest.mark.asyncio
async def test_exhausted_does_final_read():
    robot = FakeRobot([IDLE])
    result = await robot.engine().confirm(Action(2, 2), lambda s: s.paused, attempts=2, delay=0.5)

    assert not result.ok
    assert result.polls == 2
    assert robot.reads == 3
    assert robot.sleeps == [0.5, 0.5]
    assert not result.state.paused


@pytest.mark.asyncio
async def test_final_read_state_is_reported():
    robot = FakeRobot([IDLE, IDLE, PAUSED])
    result = await robot.engine().confirm(Action(2, 2), lambda s: s.paused, attempts=2, delay=0)

    # the extra read is not re-checked against the predicate
    assert not result.ok
    assert result.state.paused


@pytest.mark.asyncio
async def test_failed_ack_still_polls():
    ack = {"code": "TIMEOUT", "success": False}
    robot = FakeRobot([IDLE, DOCKED], ack=ack)
    result = await robot.engine().confirm(Action(3, 1), lambda s: s.docked, attempts=5, delay=2)

    assert result.ok
    assert result.ack is ack
    assert result.polls == 2


@pytest.mark.asyncio
async def test_zero_attempts():
    robot = FakeRobot([RUNNING])
    result = await robot.engine().confirm(Action(2, 1), lambda s: s.running, attempts=0, delay=1)

    assert not result.ok
    assert result.polls == 0
    assert robot.reads == 1
    assert robot.sleeps == []


@pytest.mark.asyncio
async def test_on_poll_progress():
    seen = []
    robot = FakeRobot([IDLE, IDLE, IDLE, DOCKED])
    await robot.engine().run("home", on_poll=lambda i, s: seen.append((i, s.docked)))

    assert seen == [(1, False), (2, False), (3, False), (4, True)]
    assert robot.sleeps == [2.0] * 4


@pytest.mark.asyncio
async def test_run_preset_by_name():
    robot = FakeRobot([PAUSED, IDLE])
    result = await robot.engine().run("STOP")

    assert result.ok
    assert result.polls == 2
    assert robot.actions == [Action(4, 2)]


@pytest.mark.parametrize(
    "name,siid,aiid,attempts,delay",
    [
        ("start",  2, 1, 6,  1.5),
        ("resume", 2, 1, 6,  1.5),
        ("pause",  2, 2, 6,  1.5),
        ("stop",   4, 2, 10, 1.5),
        ("home",   3, 1, 45, 2.0),
    ],
)
def test_preset_timings(name, siid, aiid, attempts, delay):
    preset = get_preset(name)
    assert (preset.action.siid, preset.action.aiid) == (siid, aiid)
    assert (preset.attempts, preset.delay) == (attempts, delay)


@pytest.mark.parametrize(
    "name,matches",
    [
        ("start", [RUNNING]),
        ("pause", [PAUSED]),
        ("stop",  [IDLE, DOCKED]),
        ("home",  [DOCKED, props(state=2, charging=1)]),
    ],
)
def test_preset_predicates(name, matches):
    predicate = COMMAND_PRESETS[name].predicate
    for reading in matches:
        assert predicate(classify(reading))
    for reading in (IDLE, RUNNING, PAUSED, DOCKED):
        if reading not in matches:
            assert not predicate(classify(reading))


def test_unknown_preset():
    with pytest.raises(ValueError, match="Unknown command"):
        get_preset("dance")
