import pytest

from tiles import ConsoleTileSurface, TileCommands, WifiTileController


class FakeRadio:
    def __init__(self, enabled=True):
        self.enabled = enabled
        self.watcher = None

    def is_enabled(self):
        return self.enabled

    def watch(self, callback):
        self.watcher = callback

    def unwatch(self):
        self.watcher = None

    def flip(self, enabled):
        """Change the radio state and notify the watcher, like NetworkManager does."""
        self.enabled = enabled
        if self.watcher is not None:
            self.watcher(enabled)


class FakeShell:
    """Records commands and flips the fake radio the way the real commands would."""

    def __init__(self, radio, access=True):
        self.radio = radio
        self.access = access
        self.commands = []

    def has_access(self):
        return self.access

    def execute(self, command):
        self.commands.append(command)
        if command == TileCommands().disable:
            self.radio.enabled = False
        elif command == TileCommands().enable:
            self.radio.enabled = True


class DeferredShell(FakeShell):
    """Returns from `execute` at once and changes the radio only on `finish`."""

    def execute(self, command):
        self.commands.append(command)

    def finish(self):
        command = self.commands[-1]
        self.radio.flip(command == TileCommands().enable)


class FakeNotifier:
    def __init__(self, deliver_on_subscribe=None):
        self.callback = None
        self.callbacks = []
        self.subscribe_count = 0
        self.unsubscribe_count = 0
        self.deliver_on_subscribe = deliver_on_subscribe

    def subscribe(self, callback):
        self.subscribe_count += 1
        self.callback = callback
        self.callbacks.append(callback)
        if self.deliver_on_subscribe is not None:
            callback(self.deliver_on_subscribe)

    def unsubscribe(self):
        self.unsubscribe_count += 1
        self.callback = None

    def emit(self, change):
        assert self.callback is not None, "nothing subscribed"
        self.callback(change)


class FakeSsidResolver:
    def __init__(self, ssid="MyNet", error=None):
        self.ssid = ssid
        self.error = error
        self.calls = 0

    def resolve_current_ssid(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.ssid


class FakePreferences:
    def __init__(self, **values):
        self.values = values

    def get_boolean(self, key, default):
        return self.values.get(key, default)


class FakeUnlock:
    def __init__(self):
        self.pending = []

    def request_unlock(self, on_success):
        self.pending.append(on_success)

    def succeed(self):
        for action in self.pending:
            action()


class FakeDialog:
    def __init__(self):
        self.shown = 0

    def show_access_required_prompt(self):
        self.shown += 1


class TileHarness:
    def __init__(self, radio_enabled=True, access=True, require_unlock=False, ssid="MyNet",
                 notifier=None, deferred_shell=False, **controller_kwargs):
        self.radio = FakeRadio(radio_enabled)
        shell_class = DeferredShell if deferred_shell else FakeShell
        self.shell = shell_class(self.radio, access=access)
        self.notifier = notifier or FakeNotifier()
        self.ssid_resolver = FakeSsidResolver(ssid)
        self.preferences = FakePreferences(require_unlock=require_unlock)
        self.unlock = FakeUnlock()
        self.dialog = FakeDialog()
        self.surface = ConsoleTileSurface()
        self.controller = WifiTileController(
            self.surface,
            self.dialog,
            shell=self.shell,
            radio=self.radio,
            notifier=self.notifier,
            ssid_resolver=self.ssid_resolver,
            preferences=self.preferences,
            unlock=self.unlock,
            **controller_kwargs,
        )


@pytest.fixture
def make_tile():
    return TileHarness
