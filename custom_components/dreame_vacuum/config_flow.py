"""Config flow for Dreame Vacuum."""
from __future__ import annotations

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import HomeAssistant

from dreame_cloud import CloudError, DeviceContext, DreameCloudClient
from dreame_cloud.const import DEFAULT_REGION, DEFAULT_TENANT

from .const import CONF_DEVICE_INDEX, CONF_REGION, CONF_TENANT, CONF_TOKEN, DOMAIN

STEP_SCHEMA = vol.Schema({
    vol.Required(CONF_TOKEN): str,
    vol.Required(CONF_TENANT, default=DEFAULT_TENANT): str,
    vol.Required(CONF_REGION, default=DEFAULT_REGION): vol.In(["cn", "eu", "us", "ru", "sg"]),
    vol.Optional(CONF_DEVICE_INDEX, default=0): vol.All(int, vol.Range(min=0)),
})


async def _test_connection(hass: HomeAssistant, data: dict) -> tuple[DeviceContext | None, str | None]:
    """Return (device, None) on success, (None, error key) on failure."""
    client = DreameCloudClient(data[CONF_TOKEN], data[CONF_TENANT], data[CONF_REGION])
    try:
        ctx = await hass.async_add_executor_job(client.resolve_device, data[CONF_DEVICE_INDEX])
        return ctx, None
    except CloudError as exc:
        if exc.code in ("HTTP_401", "HTTP_403"):
            return None, "invalid_auth"
        return None, "cannot_connect"


class DreameVacuumConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = 1

    async def async_step_user(self, user_input=None):
        errors: dict[str, str] = {}
        if user_input is not None:
            data = {
                CONF_TOKEN:  user_input[CONF_TOKEN].strip(),
                CONF_TENANT: user_input[CONF_TENANT].strip(),
                CONF_REGION: user_input[CONF_REGION],
                CONF_DEVICE_INDEX: user_input.get(CONF_DEVICE_INDEX, 0),
            }
            ctx, err = await _test_connection(self.hass, data)
            if err:
                errors["base"] = err
            else:
                await self.async_set_unique_id(ctx.did)
                self._abort_if_unique_id_configured()
                return self.async_create_entry(
                    title=f"Dreame {ctx.model or ctx.did}",
                    data=data,
                )

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_SCHEMA,
            errors=errors,
        )
