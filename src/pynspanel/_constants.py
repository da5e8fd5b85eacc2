"""Internal constants shared across the library."""

import re

USER_AGENT = "pynspanel"

# ------------------------------------------------------------------
# Tasmota commands and result keys
# ------------------------------------------------------------------

CMD_STATUS = "Status"
CMD_OTAURL = "OtaUrl"
CMD_UPGRADE = "Upgrade"
CMD_BACKLOG = "Backlog"
CMD_RESTART = "Restart"
CMD_CUSTOMSEND = "CustomSend"
PARAM_STATUS_FIRMWARE = "2"
PARAM_UPGRADE_START = "1"
PARAM_RESTART_SAVE_TO_FLASH = "1"

MSG_UPGRADE = "Upgrade"
UPGRADE_SUCCESSFUL = "Successful"
UPGRADE_FAILED = "Failed"

# ------------------------------------------------------------------
# Lovelace UI berry driver commands and HMI protocol
# ------------------------------------------------------------------

CMD_GET_DRIVER_VERSION = "GetDriverVersion"
CMD_UPDATE_DRIVER = "UpdateDriverVersion"
CMD_FLASH_NEXTION = "FlashNextion"
PARAM_GET_DRIVER_VERSION = "x"
DRIVER_CMD_SUCCESS = "Done"
DRIVER_VERSION_KEY = "nlui_driver_version"
CUSTOM_RECV_KEY = "CustomRecv"

LUI_DELIMITER = "~"
LUI_LINEBREAK = "\r\n"
LUI_CMD_ACTIVATE_STARTUP_PAGE = "pageType~pageStartup"
LUI_CMD_POPUP_NOTIFY = "pageType~popupNotify"
LUI_CMD_ENTITY_UPDATE_DETAIL = "entityUpdateDetail"
LUI_EVENT_STARTUP = "startup"
LUI_EVENT_SLEEP_REACHED = "sleepReached"
LUI_EVENT_BUTTON_PRESS_2 = "buttonPress2"
LUI_EVENT_PAGE_OPEN_DETAIL = "pageOpenDetail"
LUI_EVENT2_NOTIFY_ACTION = "notifyAction"
LUI_NOTIFY_ACTION_YES = "yes"

# RGB565 colours understood by the HMI.
LUI_COLOR_RED = "63488"
LUI_COLOR_GREEN = "2016"
LUI_COLOR_WHITE = "65535"

UPDATE_NOTIFY_PREFIX = "nspanel.update."
UPDATE_NOTIFY_ICON = "alert-circle-outline"

# ------------------------------------------------------------------
# Version sources and firmware images
# ------------------------------------------------------------------

URL_TASMOTA_RELEASES_LATEST = "https://api.github.com/repositories/80286288/releases/latest"
URL_BERRY_DRIVER_LATEST = "https://raw.githubusercontent.com/joBr99/nspanel-lovelace-ui/main/tasmota/autoexec.be"
URL_NLUI_LATEST = (
    "https://raw.githubusercontent.com/joBr99/nspanel-lovelace-ui/main/apps/nspanel-lovelace-ui/nspanel-lovelace-ui.py"
)
URL_TASMOTA_OTA = "http://ota.tasmota.com/tasmota32/release/tasmota32-nspanel.bin"
URL_HMI_FIRMWARE = "http://nspanel.pky.eu/lui-release.tft"

BERRY_DRIVER_VERSION_RE = re.compile(r"version_of_this_script\s*=\s*(?P<version>\d+)")
NLUI_HMI_VERSION_RE = re.compile(
    r"desired_display_firmware_version\s*=\s*(?P<internal_version>\d+)\s*version\s*=\s*['\"]v(?P<version>.*)['\"]"
)
