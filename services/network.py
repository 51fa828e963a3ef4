from typing import Callable, List, Literal, Union

import gi
from fabric.core.service import Service, Signal
from gi.repository import Gio, GLib, GObject
from loguru import logger

from tiles.wifi import NetworkChange
from utils.functions import parse_active_ssid
from utils.icons import signal_icon_for_strength

try:
    gi.require_version("NM", "1.0")
    from gi.repository import NM
except (ImportError, ValueError) as e:
    NM = None
    logger.error(f"Failed to import NetworkManager bindings: {e}")


class WifiNetworkService(Service):
    """
    Radio state, connectivity notifications and SSID lookup for the first
    Wi-Fi device known to NetworkManager.
    """

    @Signal
    def device_ready(self) -> None: ...

    @Signal
    def radio_changed(self, enabled: bool) -> None: ...

    @Signal
    def ssid_changed(self, ssid: str) -> None: ...

    def __init__(self, **kwargs):
        self._client: Union["NM.Client", None] = None
        self._device: Union["NM.DeviceWifi", None] = None
        self._callback: Union[Callable[[NetworkChange], None], None] = None
        self._radio_callback: Union[Callable[[bool], None], None] = None
        self._fallback_ssid: Union[str, None] = None
        self._ssid_lookup_running = False
        self._device_signal_ids: List[int] = []
        self._client_signal_ids: List[int] = []
        super().__init__(**kwargs)
        if NM is not None:
            NM.Client.new_async(None, self._init_network_client)
        else:
            logger.error("WifiSvc: NM bindings unavailable. Wi-Fi state will read as disabled.")
            GLib.idle_add(self.emit, "device-ready")

    def _init_network_client(self, source_object: Union[GObject.Object, None], task: Gio.Task) -> None:
        try:
            self._client = NM.Client.new_finish(task)
            logger.info("WifiSvc: NetworkManager client initialized.")
        except GLib.Error as e:
            logger.error(f"WifiSvc: Failed to initialize NM.Client: {e}")
            GLib.idle_add(self.emit, "device-ready")
            return

        self._client_signal_ids.extend([
            self._client.connect("device-added", self._on_devices_changed),
            self._client.connect("device-removed", self._on_devices_changed),
            self._client.connect("notify::wireless-enabled", self._on_wireless_enabled_changed),
        ])
        self._setup_device()
        GLib.idle_add(self.emit, "device-ready")

    def _setup_device(self) -> None:
        if not self._client:
            return
        wifi_devices = [
            dev for dev in self._client.get_devices()
            if dev.get_device_type() == NM.DeviceType.WIFI
        ]
        new_device = wifi_devices[0] if wifi_devices else None
        if new_device == self._device:
            return

        old_iface = self._device.get_iface() if self._device else "N/A"
        self._disconnect_device_signals()
        self._device = new_device
        if new_device:
            logger.info(f"WifiSvc: Wi-Fi device changed from '{old_iface}' to '{new_device.get_iface()}'.")
        else:
            logger.info(f"WifiSvc: Wi-Fi device '{old_iface}' removed.")

        if self._callback is not None:
            self._attach_subscription()

    def _on_devices_changed(self, client: "NM.Client", device: "NM.Device") -> None:
        GLib.idle_add(self._setup_device_idle)

    def _setup_device_idle(self) -> Literal[False]:
        self._setup_device()
        return GLib.SOURCE_REMOVE

    # Radio state

    def is_enabled(self) -> bool:
        if self._client:
            return bool(self._client.wireless_get_enabled())
        return False

    def watch(self, callback: Callable[[bool], None]) -> None:
        self._radio_callback = callback

    def unwatch(self) -> None:
        self._radio_callback = None

    def _on_wireless_enabled_changed(self, client: "NM.Client", pspec: GObject.ParamSpec) -> None:
        enabled = self.is_enabled()
        logger.info(f"WifiSvc: Wi-Fi radio {'enabled' if enabled else 'disabled'}.")
        if not enabled:
            self._fallback_ssid = None
        self.emit("radio-changed", enabled)
        if self._radio_callback is not None:
            self._radio_callback(enabled)

    # Connectivity notifications

    def _device_activated(self) -> bool:
        return bool(self._device and self._device.get_state() == NM.DeviceState.ACTIVATED)

    def subscribe(self, callback: Callable[[NetworkChange], None]) -> None:
        self.unsubscribe()
        self._callback = callback
        self._attach_subscription()

    def _attach_subscription(self) -> None:
        if not self._device:
            logger.debug("WifiSvc: No Wi-Fi device yet, subscription pending.")
            return
        self._device_signal_ids.append(
            self._device.connect("state-changed", self._on_device_state_changed)
        )
        if self._device_activated():
            callback = self._callback
            GLib.idle_add(self._deliver, callback, NetworkChange.AVAILABLE)

    def unsubscribe(self) -> None:
        self._callback = None
        self._disconnect_device_signals()

    def _deliver(
        self, callback: Callable[[NetworkChange], None], change: NetworkChange
    ) -> Literal[False]:
        if callback is not None and callback is self._callback:
            callback(change)
        return GLib.SOURCE_REMOVE

    def _on_device_state_changed(self, device: "NM.Device", new_state: int, old_state: int, reason: int) -> None:
        if self._callback is None:
            return
        if new_state == NM.DeviceState.ACTIVATED and old_state != NM.DeviceState.ACTIVATED:
            logger.debug("WifiSvc: Wi-Fi network available.")
            self._callback(NetworkChange.AVAILABLE)
        elif old_state == NM.DeviceState.ACTIVATED and new_state != NM.DeviceState.ACTIVATED:
            logger.debug("WifiSvc: Wi-Fi network lost.")
            self._fallback_ssid = None
            self._callback(NetworkChange.LOST)

    def _disconnect_device_signals(self) -> None:
        for sig_id in self._device_signal_ids:
            if self._device and GObject.signal_handler_is_connected(self._device, sig_id):
                self._device.disconnect(sig_id)
        self._device_signal_ids = []

    # SSID and icon

    def _active_access_point(self) -> Union["NM.AccessPoint", None]:
        if not self._device or not self.is_enabled():
            return None
        return self._device.get_active_access_point()

    def resolve_current_ssid(self) -> Union[str, None]:
        ap = self._active_access_point()
        if ap is not None:
            ssid_gbytes = ap.get_ssid()
            if ssid_gbytes and ssid_gbytes.get_data():
                ssid = NM.utils_ssid_to_utf8(ssid_gbytes.get_data())
                if ssid:
                    return ssid
        self._lookup_ssid_with_nmcli()
        return self._fallback_ssid

    def _lookup_ssid_with_nmcli(self) -> None:
        if self._ssid_lookup_running:
            return
        try:
            proc = Gio.Subprocess.new(
                ["nmcli", "-t", "-f", "active,ssid", "dev", "wifi"],
                Gio.SubprocessFlags.STDOUT_PIPE | Gio.SubprocessFlags.STDERR_SILENCE,
            )
            proc.communicate_utf8_async(None, None, self._on_nmcli_ssid_finish)
            self._ssid_lookup_running = True
        except GLib.Error as e:
            logger.warning(f"WifiSvc: nmcli SSID lookup failed: {e}")

    def _on_nmcli_ssid_finish(self, proc: Gio.Subprocess, result: Gio.AsyncResult) -> None:
        self._ssid_lookup_running = False
        try:
            _, stdout, _ = proc.communicate_utf8_finish(result)
        except GLib.Error as e:
            logger.warning(f"WifiSvc: nmcli SSID lookup failed: {e}")
            return
        ssid = parse_active_ssid(stdout or "") if proc.get_successful() else None
        if ssid == self._fallback_ssid:
            return
        self._fallback_ssid = ssid
        if ssid:
            logger.debug(f"WifiSvc: nmcli reports SSID '{ssid}'.")
            self.emit("ssid-changed", ssid)

    def signal_icon(self) -> Union[str, None]:
        ap = self._active_access_point()
        if ap is None:
            return None
        return signal_icon_for_strength(ap.get_strength())

    def cleanup(self) -> None:
        self.unsubscribe()
        self.unwatch()
        if self._client:
            for sig_id in self._client_signal_ids:
                if GObject.signal_handler_is_connected(self._client, sig_id):
                    self._client.disconnect(sig_id)
        self._client_signal_ids = []
