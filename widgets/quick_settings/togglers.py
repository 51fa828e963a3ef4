# Quick Settings Togglers

from typing import Union

from gi.repository import GLib
from loguru import logger

from services import SessionLockService, ShellService, WifiNetworkService
from shared import QSToggleButton
from tiles import TileLifecycle, WifiTileController, tile_options
from utils import Preferences, TileConfig
from widgets.dialogs import ShellAccessDialog


class WifiQuickSetting(QSToggleButton):
    """
    Wi-Fi tile for the quick settings grid.

    The widget is the tile surface: the controller stages label, activation,
    icon and subtitle, and `commit` applies them on the main loop. Widget
    signals drive the controller's lifecycle.
    """

    def __init__(
        self,
        config: Union[TileConfig, None] = None,
        network: Union[WifiNetworkService, None] = None,
        shell: Union[ShellService, None] = None,
        session: Union[SessionLockService, None] = None,
        dialog: Union[ShellAccessDialog, None] = None,
        **kwargs,
    ):
        self.config = config or TileConfig.get_default()
        section = self.config.section("wifi_tile")
        options = tile_options(section)

        super().__init__(
            action_label=options["strings"].label,
            action_icon=options["icons"].disabled,
            action_subtitle=options["strings"].off,
            style_classes="quicksettings-toggler",
            **kwargs,
        )

        self.network = network or WifiNetworkService()
        self.shell = shell or ShellService(backend=self.config.section("shell").get("backend", "auto"))
        self.session = session or SessionLockService()
        self.dialog = dialog or ShellAccessDialog()

        self._staged = {"label": options["strings"].label, "active": False,
                        "icon": options["icons"].disabled, "subtitle": options["strings"].off}
        self._commit_source_id: Union[int, None] = None

        self.controller = WifiTileController(
            self,
            self.dialog,
            shell=self.shell,
            radio=self.network,
            notifier=self.network,
            ssid_resolver=self.network,
            preferences=Preferences(self.config),
            unlock=self.session,
            icon_provider=self.network.signal_icon if section.get("dynamic_icon", True) else None,
            **options,
        )

        self._device_ready_handler_id = self.network.connect("device-ready", self._on_network_updated)
        self._ssid_handler_id = self.network.connect("ssid-changed", self._on_network_updated)
        self.connect("realize", self._on_realize)
        self.connect("map", self._on_map)
        self.connect("unmap", self._on_unmap)
        self.connect("destroy", self._on_destroy)
        self.connect("action-clicked", self._on_action_clicked)

    # Tile surface

    def set_label(self, label: str) -> None:
        self._staged["label"] = label

    def set_activation(self, active: bool) -> None:
        self._staged["active"] = active

    def set_icon(self, icon: str) -> None:
        self._staged["icon"] = icon

    def set_subtitle(self, subtitle: str) -> None:
        self._staged["subtitle"] = subtitle

    def commit(self) -> None:
        if self._commit_source_id is None:
            self._commit_source_id = GLib.idle_add(self._apply_staged)

    def _apply_staged(self) -> bool:
        self._commit_source_id = None
        staged = dict(self._staged)
        self.set_action_label(staged["label"])
        self.set_active_style(staged["active"])
        self.set_action_icon(staged["icon"])
        self.set_action_subtitle(staged["subtitle"])
        return GLib.SOURCE_REMOVE

    # Lifecycle

    def _on_realize(self, *_):
        self.controller.on_attach()

    def _on_map(self, *_):
        if self.controller.lifecycle is TileLifecycle.IDLE:
            self.controller.on_start_observing()

    def _on_unmap(self, *_):
        self.controller.on_stop_observing()

    def _on_network_updated(self, *_):
        if self.controller.lifecycle is TileLifecycle.OBSERVING:
            self.controller.synchronize()

    def _on_action_clicked(self, *_):
        outcome = self.controller.on_click()
        logger.debug(f"WifiQuickSetting: Click handled ({outcome.value}).")

    def _on_destroy(self, *_):
        self.controller.on_detach()
        if self._commit_source_id is not None:
            GLib.source_remove(self._commit_source_id)
            self._commit_source_id = None
        if self._device_ready_handler_id is not None:
            self.network.disconnect(self._device_ready_handler_id)
            self._device_ready_handler_id = None
        if self._ssid_handler_id is not None:
            self.network.disconnect(self._ssid_handler_id)
            self._ssid_handler_id = None
