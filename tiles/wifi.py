"""
Wi-Fi quick settings tile.

`WifiTileController` keeps a two-state tile in step with the Wi-Fi radio and
toggles the radio on click. It talks to the desktop only through the
collaborators handed to its constructor, so the same controller drives the
panel widget and the headless CLI.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, Union

from loguru import logger


class NetworkChange(Enum):
    AVAILABLE = "available"
    LOST = "lost"


class TileLifecycle(Enum):
    DETACHED = "detached"
    IDLE = "idle"
    OBSERVING = "observing"


class ClickOutcome(Enum):
    IGNORED = "ignored"
    ACCESS_DENIED = "access-denied"
    AWAITING_UNLOCK = "awaiting-unlock"
    UNLOCK_UNAVAILABLE = "unlock-unavailable"
    TOGGLED = "toggled"


@dataclass(frozen=True)
class TileVisualState:
    label: str
    active: bool
    icon: str
    subtitle: str


@dataclass(frozen=True)
class TileStrings:
    label: str = "Wi-Fi"
    on: str = "On"
    off: str = "Off"


@dataclass(frozen=True)
class TileIcons:
    enabled: str = "network-wireless-signal-excellent-symbolic"
    disabled: str = "network-wireless-signal-none-symbolic"


@dataclass(frozen=True)
class TileCommands:
    enable: str = "nmcli radio wifi on"
    disable: str = "nmcli radio wifi off"


class ShellExecutor(Protocol):
    def has_access(self) -> bool: ...

    def execute(self, command: str) -> None: ...


class RadioState(Protocol):
    def is_enabled(self) -> bool: ...

    def watch(self, callback: Callable[[bool], None]) -> None: ...

    def unwatch(self) -> None: ...


class ConnectivityNotifier(Protocol):
    def subscribe(self, callback: Callable[[NetworkChange], None]) -> None: ...

    def unsubscribe(self) -> None: ...


class SsidResolver(Protocol):
    def resolve_current_ssid(self) -> Optional[str]: ...


class PreferenceReader(Protocol):
    def get_boolean(self, key: str, default: bool) -> bool: ...


class UnlockChallenge(Protocol):
    def request_unlock(self, on_success: Callable[[], None]) -> None: ...


class TileSurface(Protocol):
    def set_label(self, label: str) -> None: ...

    def set_activation(self, active: bool) -> None: ...

    def set_icon(self, icon: str) -> None: ...

    def set_subtitle(self, subtitle: str) -> None: ...

    def commit(self) -> None: ...


class AccessDialog(Protocol):
    def show_access_required_prompt(self) -> None: ...


def run_once(action: Callable[[], None]) -> Callable[[], None]:
    """Wrap `action` so that only its first invocation does anything."""
    lock = threading.Lock()
    fired = False

    def continuation() -> None:
        nonlocal fired
        with lock:
            if fired:
                return
            fired = True
        action()

    return continuation


class WifiTileController:
    def __init__(
        self,
        surface: TileSurface,
        dialog: AccessDialog,
        *,
        shell: ShellExecutor,
        radio: RadioState,
        notifier: ConnectivityNotifier,
        ssid_resolver: SsidResolver,
        preferences: PreferenceReader,
        unlock: UnlockChallenge,
        icon_provider: Optional[Callable[[], Optional[str]]] = None,
        strings: Optional[TileStrings] = None,
        icons: Optional[TileIcons] = None,
        commands: Optional[TileCommands] = None,
        require_unlock_key: str = "require_unlock",
    ):
        self._surface = surface
        self._dialog = dialog
        self._shell = shell
        self._radio = radio
        self._notifier = notifier
        self._ssid_resolver = ssid_resolver
        self._preferences = preferences
        self._unlock = unlock
        self._icon_provider = icon_provider
        self.strings = strings or TileStrings()
        self.icons = icons or TileIcons()
        self.commands = commands or TileCommands()
        self.require_unlock_key = require_unlock_key

        self._lock = threading.RLock()
        self._generation = 0
        self.lifecycle = TileLifecycle.DETACHED
        self.wifi_connected = False
        self.visual_state: Union[TileVisualState, None] = None

    # Lifecycle

    def on_attach(self) -> None:
        with self._lock:
            if self.lifecycle is TileLifecycle.DETACHED:
                logger.debug("WifiTile: Tile attached.")
                self.lifecycle = TileLifecycle.IDLE
                try:
                    self._radio.watch(self.on_radio_change)
                except Exception as e:
                    logger.error(f"WifiTile: Failed to watch the radio state: {e}")
            self._start_observing()

    def on_detach(self) -> None:
        with self._lock:
            if self.lifecycle is TileLifecycle.OBSERVING:
                self._stop_observing()
            if self.lifecycle is not TileLifecycle.DETACHED:
                try:
                    self._radio.unwatch()
                except Exception as e:
                    logger.warning(f"WifiTile: Failed to stop watching the radio state: {e}")
            logger.debug("WifiTile: Tile detached.")
            self.lifecycle = TileLifecycle.DETACHED
            self.visual_state = None

    def on_start_observing(self) -> None:
        with self._lock:
            if self.lifecycle is TileLifecycle.DETACHED:
                logger.warning("WifiTile: Start observing requested while detached, ignoring.")
                return
            self._start_observing()

    def on_stop_observing(self) -> None:
        with self._lock:
            if self.lifecycle is not TileLifecycle.OBSERVING:
                return
            self._stop_observing()
            self.lifecycle = TileLifecycle.IDLE

    def _start_observing(self) -> None:
        logger.debug("WifiTile: Setting listeners.")
        if self.lifecycle is TileLifecycle.OBSERVING:
            self._unsubscribe()

        self._generation += 1
        generation = self._generation
        self.wifi_connected = False
        self.lifecycle = TileLifecycle.OBSERVING

        try:
            self._notifier.subscribe(
                lambda change: self.on_connectivity_change(change, generation)
            )
        except Exception as e:
            logger.error(f"WifiTile: Failed to subscribe to connectivity changes: {e}")

        self.synchronize()

    def _stop_observing(self) -> None:
        logger.debug("WifiTile: Removing listeners.")
        self._generation += 1
        self._unsubscribe()

    def _unsubscribe(self) -> None:
        try:
            self._notifier.unsubscribe()
        except Exception as e:
            logger.warning(f"WifiTile: Failed to unsubscribe from connectivity changes: {e}")

    def on_connectivity_change(
        self, change: NetworkChange, generation: Optional[int] = None
    ) -> None:
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug(f"WifiTile: Dropping stale '{change.value}' notification.")
                return
            if self.lifecycle is not TileLifecycle.OBSERVING:
                return
            if change is NetworkChange.AVAILABLE:
                self.wifi_connected = True
            elif change is NetworkChange.LOST:
                self.wifi_connected = False
            self.synchronize()

    def on_radio_change(self, enabled: bool) -> None:
        """Resynchronize once the radio reports a state the tile does not show yet.

        Toggle commands finish after `toggle_and_synchronize` returns, so the
        radio's own change notification is what brings the tile up to date.
        """
        with self._lock:
            if self.lifecycle is TileLifecycle.DETACHED:
                return
            if self.visual_state is not None and self.visual_state.active == enabled:
                return
            logger.debug(f"WifiTile: Radio turned {'on' if enabled else 'off'}.")
            self.synchronize()

    # Synchronize

    def _radio_enabled(self) -> bool:
        try:
            return bool(self._radio.is_enabled())
        except Exception as e:
            logger.warning(f"WifiTile: Could not query radio state, assuming disabled: {e}")
            return False

    def _resolve_label(self) -> str:
        if not self.wifi_connected:
            return self.strings.label
        try:
            ssid = self._ssid_resolver.resolve_current_ssid()
        except Exception as e:
            logger.warning(f"WifiTile: SSID resolution failed: {e}")
            return self.strings.label
        if not ssid:
            logger.debug("WifiTile: SSID unavailable, using generic label.")
            return self.strings.label
        return ssid

    def _enabled_icon(self) -> str:
        if self._icon_provider is None:
            return self.icons.enabled
        try:
            return self._icon_provider() or self.icons.enabled
        except Exception as e:
            logger.debug(f"WifiTile: Signal icon unavailable: {e}")
            return self.icons.enabled

    def synchronize(self) -> TileVisualState:
        if self._radio_enabled():
            state = TileVisualState(
                label=self._resolve_label(),
                active=True,
                icon=self._enabled_icon(),
                subtitle=self.strings.on,
            )
        else:
            state = TileVisualState(
                label=self.strings.label,
                active=False,
                icon=self.icons.disabled,
                subtitle=self.strings.off,
            )

        try:
            self._surface.set_label(state.label)
            self._surface.set_activation(state.active)
            self._surface.set_icon(state.icon)
            self._surface.set_subtitle(state.subtitle)
            self._surface.commit()
        except Exception as e:
            logger.error(f"WifiTile: Failed to commit tile state: {e}")

        self.visual_state = state
        return state

    # Click

    def on_click(self) -> ClickOutcome:
        if self.lifecycle is TileLifecycle.DETACHED:
            logger.warning("WifiTile: Click on a detached tile, ignoring.")
            return ClickOutcome.IGNORED

        try:
            has_access = bool(self._shell.has_access())
        except Exception as e:
            logger.warning(f"WifiTile: Shell access check failed: {e}")
            has_access = False

        if not has_access:
            logger.info("WifiTile: Shell access unavailable, prompting user.")
            try:
                self._dialog.show_access_required_prompt()
            except Exception as e:
                logger.error(f"WifiTile: Failed to show access prompt: {e}")
            return ClickOutcome.ACCESS_DENIED

        try:
            require_unlock = self._preferences.get_boolean(self.require_unlock_key, True)
        except Exception as e:
            logger.warning(f"WifiTile: Could not read '{self.require_unlock_key}', requiring unlock: {e}")
            require_unlock = True

        if not require_unlock:
            self.toggle_and_synchronize()
            return ClickOutcome.TOGGLED

        toggled = threading.Event()

        def after_unlock() -> None:
            self.toggle_and_synchronize()
            toggled.set()

        try:
            self._unlock.request_unlock(run_once(after_unlock))
        except Exception as e:
            logger.warning(f"WifiTile: Unlock request failed, not toggling: {e}")
            return ClickOutcome.UNLOCK_UNAVAILABLE

        return ClickOutcome.TOGGLED if toggled.is_set() else ClickOutcome.AWAITING_UNLOCK

    def toggle_and_synchronize(self) -> TileVisualState:
        command = self.commands.disable if self._radio_enabled() else self.commands.enable
        logger.info(f"WifiTile: Running '{command}'.")
        try:
            self._shell.execute(command)
        except Exception as e:
            logger.error(f"WifiTile: Command '{command}' failed: {e}")
        if self.lifecycle is TileLifecycle.DETACHED:
            logger.debug("WifiTile: Tile detached before the toggle finished, not syncing.")
            return self.visual_state
        return self.synchronize()

    # Standalone service surface

    def get_state(self) -> Dict[str, Any]:
        state = self.synchronize()
        return {
            "enabled": state.active,
            "connected": self.wifi_connected,
            "label": state.label,
            "subtitle": state.subtitle,
            "icon": state.icon,
        }

    def toggle(self) -> ClickOutcome:
        return self.on_click()


def tile_options(section: Dict[str, Any]) -> Dict[str, Any]:
    """Controller keyword arguments from the `wifi_tile` config section."""
    defaults_strings, defaults_icons, defaults_commands = TileStrings(), TileIcons(), TileCommands()
    return {
        "strings": TileStrings(
            label=section.get("label", defaults_strings.label),
            on=section.get("on_text", defaults_strings.on),
            off=section.get("off_text", defaults_strings.off),
        ),
        "icons": TileIcons(
            enabled=section.get("enabled_icon", defaults_icons.enabled),
            disabled=section.get("disabled_icon", defaults_icons.disabled),
        ),
        "commands": TileCommands(
            enable=section.get("enable_command", defaults_commands.enable),
            disable=section.get("disable_command", defaults_commands.disable),
        ),
    }
