APP_NAME = "wifi-quicktile"

CONFIG_DIR_ENV = "WIFI_QUICKTILE_CONFIG_DIR"

DEFAULT_CONFIG_DIR = "~/.config/wifi-quicktile"

DEFAULT_CONFIG = {
    "$schema": "https://raw.githubusercontent.com/wifi-quicktile/wifi-quicktile/main/schema.json",
    "general": {
        "log_level": "INFO",
    },
    "wifi_tile": {
        "require_unlock": True,
        "label": "Wi-Fi",
        "on_text": "On",
        "off_text": "Off",
        "enable_command": "nmcli radio wifi on",
        "disable_command": "nmcli radio wifi off",
        "enabled_icon": "network-wireless-signal-excellent-symbolic",
        "disabled_icon": "network-wireless-signal-none-symbolic",
        "dynamic_icon": True,
    },
    "shell": {
        # auto | root | sudo | pkexec
        "backend": "auto",
    },
}

SHELL_BACKENDS = ("auto", "root", "sudo", "pkexec")
