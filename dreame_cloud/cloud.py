"""Dreame cloud REST client. All methods are blocking; run them in an executor."""
from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass
from typing import Any

import requests

from .const import (
    ACTION_TIMEOUT,
    API_TIMEOUT,
    AUTH_HEADER,
    CLOUD_HOST_SUFFIX,
    CLOUD_PORT,
    DEFAULT_REGION,
    DEFAULT_TENANT,
    KEY_MAP_DATA,
    PATH_COMMAND,
    PATH_DEVICE_INFO,
    PATH_DEVICE_LIST,
    PATH_PROPS,
    STATE_KEYS,
    TENANT_HEADER,
)
from .telemetry import DeviceState, TelemetryProperty, classify

_LOGGER = logging.getLogger(__name__)


class CloudError(Exception):
    """Raised when a cloud REST call fails or returns a non-zero code."""

    def __init__(self, message: str, code: Any = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class DeviceContext:
    did: str
    device_id: str
    model: str | None = None
    bind_domain: str | None = None


def extract_records(data: Any) -> list[dict]:
    """Device list records across API versions.

    Fallback order: data.page.records, then data.records, then empty.
    """
    if not isinstance(data, dict):
        return []
    page = data.get("page")
    if isinstance(page, dict) and isinstance(page.get("records"), list):
        return page["records"]
    if isinstance(data.get("records"), list):
        return data["records"]
    return []


def command_path(bind_domain: str | None) -> str:
    prefix = (bind_domain or "").split(".")[0]
    return PATH_COMMAND.format(suffix=f"-{prefix}" if prefix else "")


class DreameCloudClient:
    """Token-based client for the Dreame IoT cloud (no login / refresh)."""

    def __init__(self, access_token: str, tenant_id: str = DEFAULT_TENANT,
                 region: str = DEFAULT_REGION, timeout: float = API_TIMEOUT) -> None:
        self.access_token = access_token
        self.tenant_id    = tenant_id or DEFAULT_TENANT
        self.region       = region or DEFAULT_REGION
        self.timeout      = timeout
        self.base_url     = f"https://{self.region}{CLOUD_HOST_SUFFIX}:{CLOUD_PORT}"
        self._http        = requests.Session()

    # ---- Internal HTTP -------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            AUTH_HEADER:    self.access_token,
            TENANT_HEADER:  self.tenant_id,
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def _post(self, path: str, body: dict | None = None) -> Any:
        """POST and return `data`; raise CloudError on any failure."""
        try:
            r = self._http.post(self._url(path), json=body,
                                headers=self._headers(), timeout=self.timeout)
            r.raise_for_status()
        except requests.HTTPError as exc:
            raise CloudError(f"{path}: HTTP {exc.response.status_code}",
                             code=f"HTTP_{exc.response.status_code}") from exc
        except requests.RequestException as exc:
            raise CloudError(f"{path}: {exc}") from exc
        try:
            resp = r.json()
        except ValueError as exc:
            raise CloudError(f"{path}: invalid JSON response") from exc
        if not isinstance(resp, dict):
            raise CloudError(f"{path}: unexpected response {resp!r}")
        if resp.get("code") != 0:
            msg = resp.get("msg") or resp.get("message") or resp
            raise CloudError(f"{path} code={resp.get('code')}: {msg}", code=resp.get("code"))
        return resp.get("data")

    def _command(self, ctx: DeviceContext, method: str, params: Any,
                 timeout: float) -> dict:
        """sendCommand; transport failures come back as a typed ack."""
        msg_id = random.randrange(10**9)
        payload = {
            "did": str(ctx.did),
            "id":  msg_id,
            "data": {"did": str(ctx.did), "id": msg_id, "method": method, "params": params},
        }
        path = command_path(ctx.bind_domain)
        _LOGGER.debug("sendCommand %s: %s", path, json.dumps(payload))
        try:
            r = self._http.post(self._url(path), json=payload,
                                headers=self._headers(), timeout=timeout)
        except requests.RequestException as exc:
            _LOGGER.warning("sendCommand %s failed: %s", method, exc)
            return {"code": "TIMEOUT", "success": False, "error": str(exc)}
        if not r.ok:
            return {"code": f"HTTP_{r.status_code}", "success": False, "raw": r.text}
        try:
            return r.json()
        except ValueError:
            return {"code": "INVALID_RESPONSE", "success": False, "raw": r.text}

    # ---- Devices -------------------------------------------------------------
    def list_devices(self) -> list[dict]:
        return extract_records(self._post(PATH_DEVICE_LIST))

    def device_info(self, did: str) -> dict:
        return self._post(PATH_DEVICE_INFO, {"did": str(did)}) or {}

    def resolve_device(self, index: int = 0) -> DeviceContext:
        records = self.list_devices()
        if not records:
            raise CloudError("No devices bound to this account")
        device = records[index] if 0 <= index < len(records) else records[0]
        info = self.device_info(device["did"])
        device_id = info.get("id")
        if not device_id:
            raise CloudError(f"device/info returned no cloud id for {device['did']}")
        return DeviceContext(
            did=str(device["did"]),
            device_id=str(device_id),
            model=info.get("model") or device.get("model"),
            bind_domain=device.get("bindDomain"),
        )

    # ---- Telemetry -----------------------------------------------------------
    def get_props(self, did: str, keys: str) -> list[TelemetryProperty]:
        data = self._post(PATH_PROPS, {"did": str(did), "keys": keys}) or []
        return [TelemetryProperty.from_dict(p) for p in data if isinstance(p, dict)]

    def read_robot_state(self, did: str) -> tuple[list[TelemetryProperty], DeviceState]:
        props = self.get_props(did, STATE_KEYS)
        return props, classify(props)

    def get_map_blob(self, did: str) -> str | None:
        for p in self.get_props(did, KEY_MAP_DATA):
            if p.key == KEY_MAP_DATA and isinstance(p.value, str) and p.value.strip():
                return p.value
        return None

    # ---- Actions -------------------------------------------------------------
    def send_action(self, ctx: DeviceContext, siid: int, aiid: int,
                    params: list | tuple = (), timeout: float = ACTION_TIMEOUT) -> dict:
        return self._command(ctx, "action", {
            "did": str(ctx.device_id), "siid": siid, "aiid": aiid, "in": list(params),
        }, timeout)

    def set_property(self, ctx: DeviceContext, siid: int, piid: int, value: Any,
                     timeout: float = ACTION_TIMEOUT) -> dict:
        return self._command(ctx, "set_properties", [
            {"did": str(ctx.device_id), "siid": siid, "piid": piid, "value": value},
        ], timeout)
