from .togglers import WifiQuickSetting
