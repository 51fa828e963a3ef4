from .console import ConsoleDialog, ConsoleTileSurface
from .wifi import (
    ClickOutcome,
    NetworkChange,
    TileCommands,
    TileIcons,
    TileLifecycle,
    TileStrings,
    TileVisualState,
    WifiTileController,
    run_once,
    tile_options,
)
