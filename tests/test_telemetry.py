import pytest

from dreame_cloud.telemetry import DeviceState, RawState, TelemetryProperty, activity, classify

from .conftest import props


@pytest.mark.parametrize(
    "values,docked,running,paused",
    [
        (dict(state=1, charging=0), False, True, False),
        (dict(state=3, charging=0), False, False, True),
        (dict(state=2, charging=1), True, False, False),
        (dict(state=1, charging=1), True, True, False),
        (dict(state=13, status=14, charging=0), True, False, False),
        (dict(state=13, status=14), True, False, False),
        (dict(state=13, status=2), False, False, False),
        (dict(state=6, status=14), False, False, False),
        (dict(state="1"), False, True, False),
        (dict(), False, False, False),
    ],
)
def test_truth_table(values, docked, running, paused):
    state = classify(props(**values))
    assert (state.docked, state.running, state.paused) == (docked, running, paused)


def test_full_reading():
    state = classify(props(state=13, status=14, charging=1, battery=87, error=0))
    assert state == DeviceState(
        battery_percent=87, docked=True, running=False, paused=False, error=None,
        raw=RawState(state=13, status=14, charging=1, error=0),
    )


def test_battery():
    assert classify(props(battery=0)).battery_percent == 0
    assert classify(props(battery="55")).battery_percent == 55
    assert classify(props(battery=42.5)).battery_percent == 42.5
    assert classify(props(state=1)).battery_percent is None
    assert classify(props(battery="full")).battery_percent is None


def test_error_code():
    assert classify(props(error=7)).error == "error_code_7"
    assert classify(props(error=7.0)).error == "error_code_7"
    assert classify(props(error=0)).error is None
    assert classify(props(state=1)).error is None


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "oops", None, [1]])
def test_non_numeric_error_means_no_error(value):
    state = classify(props(error=value))
    assert state.error is None
    assert state.raw.error is None


def test_last_duplicate_wins():
    readings = props(state=1) + props(state=3)
    state = classify(readings)
    assert state.paused and not state.running


def test_unknown_keys_ignored():
    readings = [TelemetryProperty("9.9", 1), TelemetryProperty.from_dict({"key": "2.1", "value": 1})]
    assert classify(readings).running


def test_from_dict_stringifies_key():
    assert TelemetryProperty.from_dict({"key": 2.1, "value": "x"}) == TelemetryProperty("2.1", "x")


def test_idempotent():
    readings = props(state=13, status=14, battery=100, error=3)
    assert classify(readings) == classify(list(readings))


@pytest.mark.parametrize(
    "values,expected",
    [
        (dict(state=1, error=4), "error"),
        (dict(state=1, charging=1), "cleaning"),
        (dict(state=3), "paused"),
        (dict(state=13, status=14, charging=0), "docked"),
        (dict(state=2, charging=1), "docked"),
        (dict(state=2, charging=0), "idle"),
        (dict(), "idle"),
    ],
)
def test_activity(values, expected):
    assert activity(classify(props(**values))) == expected


def test_activity_without_state():
    assert activity(None) is None
