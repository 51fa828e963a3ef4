icons = {
    "network": {
        "wifi": {
            "generic": "network-wireless-symbolic",
            "disabled": "network-wireless-disabled-symbolic",
            "signal": {
                "excellent": "network-wireless-signal-excellent-symbolic",
                "good": "network-wireless-signal-good-symbolic",
                "ok": "network-wireless-signal-ok-symbolic",
                "weak": "network-wireless-signal-weak-symbolic",
                "none": "network-wireless-signal-none-symbolic",
            },
        },
    },
    "dialog": {
        "warning": "dialog-warning-symbolic",
    },
    "fallback": {
        "package": "package-x-generic-symbolic",
    },
}


def signal_icon_for_strength(strength: int) -> str:
    signal_icons = icons["network"]["wifi"]["signal"]
    if strength > 75:
        return signal_icons["excellent"]
    if strength > 55:
        return signal_icons["good"]
    if strength > 30:
        return signal_icons["ok"]
    if strength > 10:
        return signal_icons["weak"]
    return signal_icons["none"]
