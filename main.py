import argparse
import sys
from typing import List, Union

import pyjson5 as json
from loguru import logger

from tiles import ClickOutcome, ConsoleDialog, ConsoleTileSurface, WifiTileController, tile_options
from utils import APP_NAME, Preferences, TileConfig, setup_logging

EXIT_OK = 0
EXIT_ACCESS_DENIED = 1
EXIT_UNLOCK_ABANDONED = 2

RADIO_SETTLE_SECONDS = 5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME, description="Wi-Fi quick settings tile for GTK panels."
    )
    parser.add_argument("--config-dir", help="directory holding config.json or config.toml")
    parser.add_argument("--log-level", help="override general.log_level from the config")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("status", help="print the tile state as JSON")
    subparsers.add_parser("toggle", help="toggle Wi-Fi the way a tile click does")
    subparsers.add_parser("panel", help="show the tile in a window")
    return parser


def print_state(state: dict) -> None:
    print(json.dumps(state))


def run_headless(config: TileConfig, command: str) -> int:
    from gi.repository import GLib

    from services import SessionLockService, ShellService, WifiNetworkService

    section = config.section("wifi_tile")
    network = WifiNetworkService()
    shell = ShellService(backend=config.section("shell").get("backend", "auto"))
    session = SessionLockService()
    surface, dialog = ConsoleTileSurface(), ConsoleDialog()
    controller = WifiTileController(
        surface,
        dialog,
        shell=shell,
        radio=network,
        notifier=network,
        ssid_resolver=network,
        preferences=Preferences(config),
        unlock=session,
        icon_provider=network.signal_icon if section.get("dynamic_icon", True) else None,
        **tile_options(section),
    )

    loop = GLib.MainLoop()
    exit_code = EXIT_OK
    finished = False
    toggled = False

    def finish(code: int) -> bool:
        nonlocal exit_code, finished
        if finished:
            return GLib.SOURCE_REMOVE
        finished = True
        exit_code = code
        print_state(controller.get_state())
        controller.on_detach()
        network.cleanup()
        loop.quit()
        return GLib.SOURCE_REMOVE

    def on_radio_changed(_service, enabled: bool) -> None:
        logger.debug(f"Radio now {'on' if enabled else 'off'}.")
        GLib.idle_add(finish, EXIT_OK)

    def on_command_finished(_service, finished_command: str, success: bool) -> None:
        logger.debug(f"'{finished_command}' finished (success={success}).")
        if not success:
            GLib.idle_add(finish, EXIT_OK)
            return
        # NetworkManager publishes the new radio state shortly after the command exits.
        GLib.timeout_add_seconds(RADIO_SETTLE_SECONDS, finish, EXIT_OK)

    def start(*_) -> None:
        controller.on_attach()
        if command == "status":
            GLib.idle_add(finish, EXIT_OK)
            return

        if shell.resolving:
            logger.debug("Waiting for the privilege check...")
            shell.connect("access-resolved", lambda *_: run_toggle() if not toggled else None)
        else:
            run_toggle()

    def run_toggle() -> None:
        nonlocal toggled
        toggled = True
        shell.connect("command-finished", on_command_finished)
        network.connect("radio-changed", on_radio_changed)
        outcome = controller.toggle()
        if outcome is ClickOutcome.ACCESS_DENIED:
            GLib.idle_add(finish, EXIT_ACCESS_DENIED)
        elif outcome is ClickOutcome.UNLOCK_UNAVAILABLE or (
            outcome is ClickOutcome.AWAITING_UNLOCK and not session.has_pending
        ):
            logger.warning("Unlock was not completed, Wi-Fi left unchanged.")
            GLib.idle_add(finish, EXIT_UNLOCK_ABANDONED)
        elif outcome is ClickOutcome.AWAITING_UNLOCK:
            logger.info("Waiting for the session to be unlocked...")

    network.connect("device-ready", start)
    try:
        loop.run()
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return EXIT_UNLOCK_ABANDONED
    return exit_code


def run_panel(config: TileConfig) -> int:
    from fabric import Application
    from fabric.widgets.box import Box
    from fabric.widgets.window import Window

    from widgets.quick_settings.togglers import WifiQuickSetting

    tile = WifiQuickSetting(config=config)
    window = Window(
        name="wifi-quicktile",
        title=APP_NAME,
        child=Box(style="padding: 10px;", children=[tile]),
        visible=True,
        all_visible=True,
    )
    window.connect("destroy", lambda *_: app.quit())
    app = Application(APP_NAME, window)
    app.run()
    return EXIT_OK


def main(argv: Union[List[str], None] = None) -> int:
    args = build_parser().parse_args(argv)
    config = TileConfig(args.config_dir)
    setup_logging(args.log_level or config.section("general").get("log_level", "INFO"))

    if args.command == "panel":
        return run_panel(config)
    return run_headless(config, args.command)


if __name__ == "__main__":
    sys.exit(main())
