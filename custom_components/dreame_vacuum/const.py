"""Constants for the Dreame Vacuum integration."""
DOMAIN = "dreame_vacuum"

CONF_TOKEN  = "access_token"
CONF_TENANT = "tenant_id"
CONF_REGION = "region"
CONF_DEVICE_INDEX = "device_index"

FAST_INTERVAL = 30   # seconds: status / battery
MAP_INTERVAL  = 300  # seconds: map + rooms re-sync

MANUFACTURER = "Dreame"

FAN_SPEED_LIST  = ["Quiet", "Standard", "Strong", "Turbo"]
FAN_NAME_TO_INT = {n.lower(): i for i, n in enumerate(FAN_SPEED_LIST)}
FAN_INT_TO_NAME = {v: k.capitalize() for k, v in FAN_NAME_TO_INT.items()}

WATER_OPTIONS     = ["off", "low", "medium", "high"]
WATER_NAME_TO_INT = {n: i for i, n in enumerate(WATER_OPTIONS)}
WATER_INT_TO_NAME = {v: k for k, v in WATER_NAME_TO_INT.items()}
