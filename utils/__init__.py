from .config import Preferences, TileConfig
from .constants import APP_NAME, DEFAULT_CONFIG
from .icons import icons
from .logging import setup_logging
