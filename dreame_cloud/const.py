"""Constants for the Dreame cloud client."""

# ---------------------------------------------------------------------------
# Cloud endpoints
# ---------------------------------------------------------------------------
DEFAULT_REGION = "us"
DEFAULT_TENANT = "000000"
CLOUD_HOST_SUFFIX = ".iot.dreame.tech"
CLOUD_PORT = 13267

PATH_DEVICE_LIST = "dreame-user-iot/iotuserbind/device/listV2"
PATH_DEVICE_INFO = "dreame-user-iot/iotuserbind/device/info"
PATH_PROPS       = "dreame-user-iot/iotstatus/props"
PATH_COMMAND     = "dreame-iot-com{suffix}/device/sendCommand"

AUTH_HEADER   = "Dreame-Auth"
TENANT_HEADER = "Tenant-Id"

API_TIMEOUT    = 15   # seconds: plain REST calls
ACTION_TIMEOUT = 12   # seconds: sendCommand, independent of confirmation polling

# ---------------------------------------------------------------------------
# MIoT property keys ("siid.piid")
# ---------------------------------------------------------------------------
KEY_STATE    = "2.1"
KEY_ERROR    = "2.2"
KEY_BATTERY  = "3.1"
KEY_CHARGING = "3.2"
KEY_STATUS   = "4.1"
KEY_FAN      = "4.4"
KEY_WATER    = "4.5"
KEY_MAP_DATA = "6.1"

STATE_KEYS = ",".join([KEY_STATE, KEY_ERROR, KEY_BATTERY, KEY_CHARGING, KEY_STATUS])
FAN_WATER_KEYS = ",".join([KEY_FAN, KEY_WATER])

FAN_SIID, FAN_PIID     = 4, 4
WATER_SIID, WATER_PIID = 4, 5

# Segment cleaning: siid 4 / aiid 1, status piid 1 = 18, selects JSON on piid 10
SEGMENT_CLEAN_SIID   = 4
SEGMENT_CLEAN_AIID   = 1
SEGMENT_CLEAN_STATUS = 18

FAN_LEVELS   = {0: "quiet", 1: "standard", 2: "strong", 3: "turbo"}
WATER_LEVELS = {0: "off", 1: "low", 2: "medium", 3: "high"}

# Matter-friendly cleaning presets: (fan, water); None leaves the value alone
CLEAN_PRESETS = {
    "VacuumQuiet":    (0, None),
    "VacuumStandard": (1, None),
    "VacuumStrong":   (2, None),
    "VacuumTurbo":    (3, None),
    "MopLow":         (None, 1),
    "MopMedium":      (None, 2),
    "MopHigh":        (None, 3),
    "VacuumAndMop":   (1, 2),
}

# ---------------------------------------------------------------------------
# Room cache
# ---------------------------------------------------------------------------
ROOMS_CACHE_PREFIX = "dreame_rooms_"
