import pytest
import requests

from dreame_cloud.cloud import (
    CloudError,
    DeviceContext,
    DreameCloudClient,
    command_path,
    extract_records,
)
from dreame_cloud.telemetry import TelemetryProperty

BASE = "https://eu.iot.dreame.tech:13267"
LIST_URL  = f"{BASE}/dreame-user-iot/iotuserbind/device/listV2"
INFO_URL  = f"{BASE}/dreame-user-iot/iotuserbind/device/info"
PROPS_URL = f"{BASE}/dreame-user-iot/iotstatus/props"
CMD_URL   = f"{BASE}/dreame-iot-com-10000/device/sendCommand"


@pytest.fixture
def client():
    return DreameCloudClient("tok-123", tenant_id="000000", region="eu")


@pytest.fixture
def ctx():
    return DeviceContext(did="-1234", device_id="abc-987", model="dreame.vacuum.r2228o",
                         bind_domain="10000.mt.eu.iot.dreame.tech:19973")


class TestRecords:
    @pytest.mark.parametrize(
        "data,expected",
        [
            ({"page": {"records": [{"did": "1"}]}, "records": [{"did": "2"}]}, [{"did": "1"}]),
            ({"page": {}, "records": [{"did": "2"}]}, [{"did": "2"}]),
            ({"page": None, "records": None}, []),
            (None, []),
            ([], []),
        ],
    )
    def test_fallback_order(self, data, expected):
        assert extract_records(data) == expected


class TestCommandPath:
    def test_bind_domain_prefix(self):
        assert command_path("10000.mt.eu.iot.dreame.tech:19973") == \
            "dreame-iot-com-10000/device/sendCommand"

    @pytest.mark.parametrize("domain", [None, ""])
    def test_no_bind_domain(self, domain):
        assert command_path(domain) == "dreame-iot-com/device/sendCommand"


class TestRest:
    def test_headers_and_url(self, client, requests_mock):
        requests_mock.post(LIST_URL, json={"code": 0, "data": {"records": []}})
        assert client.list_devices() == []
        sent = requests_mock.last_request
        assert sent.headers["Dreame-Auth"] == "tok-123"
        assert sent.headers["Tenant-Id"] == "000000"

    def test_resolve_device(self, client, requests_mock):
        requests_mock.post(LIST_URL, json={"code": 0, "data": {"page": {"records": [
            {"did": "-1234", "model": "dreame.vacuum.r2228o", "bindDomain": "10000.mt.eu.iot.dreame.tech:19973"},
        ]}}})
        requests_mock.post(INFO_URL, json={"code": 0, "data": {"id": "abc-987"}})
        ctx = client.resolve_device(3)
        assert ctx == DeviceContext("-1234", "abc-987", "dreame.vacuum.r2228o",
                                    "10000.mt.eu.iot.dreame.tech:19973")
        assert requests_mock.last_request.json() == {"did": "-1234"}

    def test_resolve_device_empty(self, client, requests_mock):
        requests_mock.post(LIST_URL, json={"code": 0, "data": {"page": {"records": []}}})
        with pytest.raises(CloudError, match="No devices"):
            client.resolve_device()

    def test_resolve_device_without_cloud_id(self, client, requests_mock):
        requests_mock.post(LIST_URL, json={"code": 0, "data": {"records": [{"did": "1"}]}})
        requests_mock.post(INFO_URL, json={"code": 0, "data": {}})
        with pytest.raises(CloudError, match="no cloud id"):
            client.resolve_device()

    def test_non_zero_code(self, client, requests_mock):
        requests_mock.post(LIST_URL, json={"code": 10001, "msg": "token expired"})
        with pytest.raises(CloudError, match="token expired") as excinfo:
            client.list_devices()
        assert excinfo.value.code == 10001

    def test_http_error(self, client, requests_mock):
        requests_mock.post(LIST_URL, status_code=401, text="unauthorized")
        with pytest.raises(CloudError) as excinfo:
            client.list_devices()
        assert excinfo.value.code == "HTTP_401"

    def test_connection_error(self, client, requests_mock):
        requests_mock.post(LIST_URL, exc=requests.exceptions.ConnectionError)
        with pytest.raises(CloudError):
            client.list_devices()

    def test_invalid_json(self, client, requests_mock):
        requests_mock.post(LIST_URL, text="<html>")
        with pytest.raises(CloudError, match="invalid JSON"):
            client.list_devices()

    def test_get_props(self, client, requests_mock):
        requests_mock.post(PROPS_URL, json={"code": 0, "data": [
            {"key": "2.1", "value": "1"},
            {"key": "3.1", "value": 64},
            "junk",
        ]})
        props = client.get_props("-1234", "2.1,3.1")
        assert props == [TelemetryProperty("2.1", "1"), TelemetryProperty("3.1", 64)]
        assert requests_mock.last_request.json() == {"did": "-1234", "keys": "2.1,3.1"}

    def test_read_robot_state(self, client, requests_mock):
        requests_mock.post(PROPS_URL, json={"code": 0, "data": [
            {"key": "2.1", "value": 13}, {"key": "4.1", "value": 14}, {"key": "3.1", "value": 100},
        ]})
        props, state = client.read_robot_state("-1234")
        assert len(props) == 3
        assert state.docked and state.battery_percent == 100
        assert requests_mock.last_request.json()["keys"] == "2.1,2.2,3.1,3.2,4.1"

    def test_map_blob(self, client, requests_mock):
        requests_mock.post(PROPS_URL, json={"code": 0, "data": [{"key": "6.1", "value": "eJwDAAAAAAE="}]})
        assert client.get_map_blob("-1234") == "eJwDAAAAAAE="

    def test_map_blob_missing(self, client, requests_mock):
        requests_mock.post(PROPS_URL, json={"code": 0, "data": [{"key": "6.1", "value": ""}]})
        assert client.get_map_blob("-1234") is None


class TestCommands:
    def test_send_action_payload(self, client, ctx, requests_mock):
        requests_mock.post(CMD_URL, json={"code": 0, "data": {"result": {"code": 0}}})
        ack = client.send_action(ctx, 2, 1)
        assert ack["code"] == 0
        body = requests_mock.last_request.json()
        assert body["did"] == "-1234"
        assert body["data"]["id"] == body["id"]
        assert body["data"]["method"] == "action"
        assert body["data"]["params"] == {"did": "abc-987", "siid": 2, "aiid": 1, "in": []}

    def test_set_property_payload(self, client, ctx, requests_mock):
        requests_mock.post(CMD_URL, json={"code": 0})
        client.set_property(ctx, 4, 4, 2)
        body = requests_mock.last_request.json()
        assert body["data"]["method"] == "set_properties"
        assert body["data"]["params"] == [{"did": "abc-987", "siid": 4, "piid": 4, "value": 2}]

    def test_http_status_ack(self, client, ctx, requests_mock):
        requests_mock.post(CMD_URL, status_code=500, text="boom")
        ack = client.send_action(ctx, 3, 1)
        assert ack == {"code": "HTTP_500", "success": False, "raw": "boom"}

    @pytest.mark.parametrize(
        "exc", [requests.exceptions.ConnectTimeout, requests.exceptions.ReadTimeout,
                requests.exceptions.ConnectionError],
    )
    def test_transport_failure_ack(self, client, ctx, requests_mock, exc):
        requests_mock.post(CMD_URL, exc=exc)
        ack = client.send_action(ctx, 2, 2)
        assert ack["code"] == "TIMEOUT"
        assert ack["success"] is False

    def test_invalid_response_ack(self, client, ctx, requests_mock):
        requests_mock.post(CMD_URL, text="not json")
        assert client.send_action(ctx, 2, 2)["code"] == "INVALID_RESPONSE"

    def test_no_bind_domain(self, client, requests_mock):
        url = f"{BASE}/dreame-iot-com/device/sendCommand"
        requests_mock.post(url, json={"code": 0})
        client.send_action(DeviceContext("1", "x"), 2, 1, params=[{"piid": 1, "value": 18}])
        assert requests_mock.last_request.json()["data"]["params"]["in"] == [{"piid": 1, "value": 18}]
