from typing import Callable, Union

from fabric.core.service import Service, Signal
from gi.repository import Gio, GLib
from loguru import logger

LOGIND_BUS_NAME = "org.freedesktop.login1"
LOGIND_MANAGER_PATH = "/org/freedesktop/login1"
LOGIND_MANAGER_IFACE = "org.freedesktop.login1.Manager"
LOGIND_SESSION_IFACE = "org.freedesktop.login1.Session"
LOGIND_AUTO_SESSION_PATH = "/org/freedesktop/login1/session/auto"


class SessionLockService(Service):
    """
    Defers an action until the logind session is unlocked.

    An unlocked session runs the action straight away. A locked one keeps the
    action until logind reports the unlock; a newer request replaces it.
    """

    @Signal
    def unlocked(self) -> None: ...

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._proxy: Union[Gio.DBusProxy, None] = None
        self._pending: Union[Callable[[], None], None] = None

    def _session_proxy(self) -> Union[Gio.DBusProxy, None]:
        if self._proxy is not None:
            return self._proxy
        try:
            auto = Gio.DBusProxy.new_for_bus_sync(
                Gio.BusType.SYSTEM, Gio.DBusProxyFlags.NONE, None,
                LOGIND_BUS_NAME, LOGIND_AUTO_SESSION_PATH, LOGIND_SESSION_IFACE, None,
            )
            session_id = auto.get_cached_property("Id")
            if session_id is None:
                raise GLib.Error("logind did not report a session id")
            manager = Gio.DBusProxy.new_for_bus_sync(
                Gio.BusType.SYSTEM, Gio.DBusProxyFlags.NONE, None,
                LOGIND_BUS_NAME, LOGIND_MANAGER_PATH, LOGIND_MANAGER_IFACE, None,
            )
            (session_path,) = manager.call_sync(
                "GetSession", GLib.Variant("(s)", (session_id.unpack(),)),
                Gio.DBusCallFlags.NONE, -1, None,
            ).unpack()
            proxy = Gio.DBusProxy.new_for_bus_sync(
                Gio.BusType.SYSTEM, Gio.DBusProxyFlags.NONE, None,
                LOGIND_BUS_NAME, session_path, LOGIND_SESSION_IFACE, None,
            )
        except GLib.Error as e:
            logger.warning(f"SessionSvc: logind session unavailable: {e}")
            return None

        proxy.connect("g-signal", self._on_session_signal)
        proxy.connect("g-properties-changed", self._on_properties_changed)
        logger.debug(f"SessionSvc: Watching logind session {session_path}.")
        self._proxy = proxy
        return proxy

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def is_locked(self) -> Union[bool, None]:
        proxy = self._session_proxy()
        if proxy is None:
            return None
        locked = proxy.get_cached_property("LockedHint")
        return bool(locked.unpack()) if locked is not None else None

    def request_unlock(self, on_success: Callable[[], None]) -> None:
        locked = self.is_locked()
        if locked is None:
            logger.warning("SessionSvc: Lock state unknown, abandoning unlock request.")
            return
        if not locked:
            on_success()
            return
        if self._pending is not None:
            logger.debug("SessionSvc: Replacing pending unlock action.")
        logger.info("SessionSvc: Session locked, waiting for unlock.")
        self._pending = on_success

    def _run_pending(self) -> None:
        action, self._pending = self._pending, None
        self.emit("unlocked")
        if action is not None:
            logger.info("SessionSvc: Session unlocked, running pending action.")
            action()

    def _on_session_signal(self, proxy: Gio.DBusProxy, sender: str, signal_name: str, params: GLib.Variant) -> None:
        if signal_name == "Unlock":
            self._run_pending()

    def _on_properties_changed(self, proxy: Gio.DBusProxy, changed: GLib.Variant, invalidated: list) -> None:
        changed_props = changed.unpack()
        if "LockedHint" in changed_props and not changed_props["LockedHint"]:
            self._run_pending()
