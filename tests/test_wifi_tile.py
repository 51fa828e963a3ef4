import threading

import pytest

from tiles import ClickOutcome, NetworkChange, TileIcons, TileLifecycle, TileStrings, run_once
from tiles.wifi import tile_options

from .conftest import FakeNotifier


def attached(tile):
    tile.controller.on_attach()
    return tile


class TestSynchronize:
    @pytest.mark.parametrize("connected", [True, False])
    def test_disabled_radio_is_always_inactive(self, make_tile, connected):
        tile = attached(make_tile(radio_enabled=False))
        if connected:
            tile.notifier.emit(NetworkChange.AVAILABLE)

        state = tile.surface.committed
        assert state.active is False
        assert state.subtitle == "Off"
        assert state.label == "Wi-Fi"
        assert state.icon == TileIcons().disabled

    def test_connected_shows_ssid(self, make_tile):
        tile = attached(make_tile(ssid="MyNet"))
        tile.notifier.emit(NetworkChange.AVAILABLE)

        state = tile.surface.committed
        assert state.label == "MyNet"
        assert state.active is True
        assert state.subtitle == "On"
        assert state.icon == TileIcons().enabled

    def test_not_connected_uses_generic_label(self, make_tile):
        tile = attached(make_tile(ssid="MyNet"))

        assert tile.surface.committed.label == "Wi-Fi"
        assert tile.surface.committed.active is True
        assert tile.ssid_resolver.calls == 0

    @pytest.mark.parametrize("ssid", [None, ""])
    def test_unresolvable_ssid_falls_back(self, make_tile, ssid):
        tile = attached(make_tile(ssid=ssid))
        tile.notifier.emit(NetworkChange.AVAILABLE)

        assert tile.surface.committed.label == "Wi-Fi"

    def test_resolver_error_falls_back(self, make_tile):
        tile = attached(make_tile())
        tile.ssid_resolver.error = RuntimeError("nmcli missing")
        tile.notifier.emit(NetworkChange.AVAILABLE)

        assert tile.surface.committed.label == "Wi-Fi"
        assert tile.surface.committed.active is True

    def test_lost_network_reverts_label(self, make_tile):
        tile = attached(make_tile(ssid="MyNet"))
        tile.notifier.emit(NetworkChange.AVAILABLE)
        tile.notifier.emit(NetworkChange.LOST)

        assert tile.controller.wifi_connected is False
        assert tile.surface.committed.label == "Wi-Fi"

    def test_icon_provider_supplies_signal_icon(self, make_tile):
        tile = attached(make_tile(icon_provider=lambda: "network-wireless-signal-weak-symbolic"))

        assert tile.surface.committed.icon == "network-wireless-signal-weak-symbolic"

    def test_empty_icon_provider_uses_fixed_icon(self, make_tile):
        tile = attached(make_tile(icon_provider=lambda: None))

        assert tile.surface.committed.icon == TileIcons().enabled

    def test_custom_strings(self, make_tile):
        tile = attached(make_tile(radio_enabled=False, strings=TileStrings(label="WLAN", on="An", off="Aus")))

        assert tile.surface.committed.label == "WLAN"
        assert tile.surface.committed.subtitle == "Aus"

    def test_radio_query_error_reads_as_disabled(self, make_tile, mocker):
        tile = make_tile()
        mocker.patch.object(tile.radio, "is_enabled", side_effect=OSError("no bus"))
        attached(tile)

        assert tile.surface.committed.active is False

    def test_every_synchronize_commits(self, make_tile):
        tile = attached(make_tile())
        commits = tile.surface.commit_count
        tile.controller.synchronize()

        assert tile.surface.commit_count == commits + 1


class TestLifecycle:
    def test_starts_detached(self, make_tile):
        tile = make_tile()

        assert tile.controller.lifecycle is TileLifecycle.DETACHED
        assert tile.surface.committed is None

    def test_attach_subscribes_and_synchronizes(self, make_tile):
        tile = attached(make_tile())

        assert tile.controller.lifecycle is TileLifecycle.OBSERVING
        assert tile.notifier.subscribe_count == 1
        assert tile.surface.commit_count == 1

    def test_stop_observing_unsubscribes(self, make_tile):
        tile = attached(make_tile())
        tile.controller.on_stop_observing()

        assert tile.controller.lifecycle is TileLifecycle.IDLE
        assert tile.notifier.unsubscribe_count == 1

    def test_stop_when_idle_is_noop(self, make_tile):
        tile = attached(make_tile())
        tile.controller.on_stop_observing()
        tile.controller.on_stop_observing()

        assert tile.notifier.unsubscribe_count == 1

    def test_restart_observing_resets_flag(self, make_tile):
        tile = attached(make_tile())
        tile.notifier.emit(NetworkChange.AVAILABLE)
        tile.controller.on_stop_observing()
        tile.controller.on_start_observing()

        assert tile.controller.wifi_connected is False
        assert tile.surface.committed.label == "Wi-Fi"
        assert tile.notifier.subscribe_count == 2

    def test_reentrant_start_does_not_double_subscribe(self, make_tile):
        tile = attached(make_tile())
        tile.controller.on_start_observing()

        assert tile.controller.lifecycle is TileLifecycle.OBSERVING
        assert tile.notifier.subscribe_count == 2
        assert tile.notifier.unsubscribe_count == 1

    def test_detach_unsubscribes_and_discards_state(self, make_tile):
        tile = attached(make_tile())
        tile.controller.on_detach()

        assert tile.controller.lifecycle is TileLifecycle.DETACHED
        assert tile.controller.visual_state is None
        assert tile.notifier.unsubscribe_count == 1

    def test_start_observing_while_detached_is_ignored(self, make_tile):
        tile = make_tile()
        tile.controller.on_start_observing()

        assert tile.controller.lifecycle is TileLifecycle.DETACHED
        assert tile.notifier.subscribe_count == 0

    def test_notification_after_stop_is_ignored(self, make_tile):
        tile = attached(make_tile())
        callback = tile.notifier.callback
        tile.controller.on_stop_observing()
        commits = tile.surface.commit_count
        callback(NetworkChange.AVAILABLE)

        assert tile.controller.wifi_connected is False
        assert tile.surface.commit_count == commits

    def test_stale_available_never_survives_a_restart(self, make_tile):
        tile = attached(make_tile())
        stale_callback = tile.notifier.callback
        tile.controller.on_stop_observing()
        tile.controller.on_start_observing()
        stale_callback(NetworkChange.AVAILABLE)

        assert tile.controller.wifi_connected is False
        assert tile.surface.committed.label == "Wi-Fi"

    def test_current_network_reported_on_subscribe(self, make_tile):
        tile = attached(make_tile(notifier=FakeNotifier(deliver_on_subscribe=NetworkChange.AVAILABLE)))

        assert tile.controller.wifi_connected is True
        assert tile.surface.committed.label == "MyNet"

    def test_subscribe_error_is_absorbed(self, make_tile):
        tile = make_tile()

        def broken(callback):
            raise RuntimeError("no NetworkManager")

        tile.notifier.subscribe = broken
        attached(tile)

        assert tile.controller.lifecycle is TileLifecycle.OBSERVING
        assert tile.surface.committed is not None

    def test_notifications_from_other_threads(self, make_tile):
        tile = attached(make_tile())
        threads = [
            threading.Thread(target=tile.notifier.emit, args=(change,))
            for change in [NetworkChange.AVAILABLE, NetworkChange.LOST] * 10
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        state = tile.surface.committed
        assert state.label == ("MyNet" if tile.controller.wifi_connected else "Wi-Fi")


class TestClick:
    def test_no_access_prompts_and_changes_nothing(self, make_tile):
        tile = attached(make_tile(access=False))
        before = tile.surface.committed
        commits = tile.surface.commit_count

        outcome = tile.controller.on_click()

        assert outcome is ClickOutcome.ACCESS_DENIED
        assert tile.dialog.shown == 1
        assert tile.shell.commands == []
        assert tile.surface.committed == before
        assert tile.surface.commit_count == commits

    def test_access_check_error_counts_as_no_access(self, make_tile):
        tile = attached(make_tile())

        def broken():
            raise RuntimeError("sudo exploded")

        tile.shell.has_access = broken

        assert tile.controller.on_click() is ClickOutcome.ACCESS_DENIED
        assert tile.dialog.shown == 1

    def test_toggle_off_without_unlock(self, make_tile):
        tile = attached(make_tile(radio_enabled=True, require_unlock=False))
        commits = tile.surface.commit_count

        outcome = tile.controller.on_click()

        assert outcome is ClickOutcome.TOGGLED
        assert tile.shell.commands == ["nmcli radio wifi off"]
        assert tile.surface.commit_count == commits + 1
        assert tile.surface.committed.active is False

    def test_toggle_on_without_unlock(self, make_tile):
        tile = attached(make_tile(radio_enabled=False, require_unlock=False))

        tile.controller.on_click()

        assert tile.shell.commands == ["nmcli radio wifi on"]
        assert tile.surface.committed.active is True

    def test_unlock_never_succeeds(self, make_tile):
        tile = attached(make_tile(require_unlock=True))
        before = tile.surface.committed

        outcome = tile.controller.on_click()

        assert outcome is ClickOutcome.AWAITING_UNLOCK
        assert tile.shell.commands == []
        assert tile.surface.committed == before

    def test_unlock_success_toggles_once(self, make_tile):
        tile = attached(make_tile(require_unlock=True))
        tile.controller.on_click()

        tile.unlock.succeed()
        tile.unlock.succeed()

        assert tile.shell.commands == ["nmcli radio wifi off"]
        assert tile.surface.committed.active is False

    def test_unlock_runs_immediately_when_unlocked(self, make_tile):
        tile = attached(make_tile(require_unlock=True))
        tile.unlock.request_unlock = lambda on_success: on_success()

        assert tile.controller.on_click() is ClickOutcome.TOGGLED
        assert tile.shell.commands == ["nmcli radio wifi off"]

    def test_unlock_required_by_default(self, make_tile):
        tile = attached(make_tile())
        tile.preferences.values = {}

        assert tile.controller.on_click() is ClickOutcome.AWAITING_UNLOCK

    def test_unlock_service_error_does_not_toggle(self, make_tile):
        tile = attached(make_tile(require_unlock=True))

        def broken(on_success):
            raise RuntimeError("logind gone")

        tile.unlock.request_unlock = broken

        assert tile.controller.on_click() is ClickOutcome.UNLOCK_UNAVAILABLE
        assert tile.shell.commands == []

    def test_command_error_still_synchronizes(self, make_tile):
        tile = attached(make_tile())
        commits = tile.surface.commit_count

        def broken(command):
            raise OSError("spawn failed")

        tile.shell.execute = broken
        tile.controller.on_click()

        assert tile.surface.commit_count == commits + 1
        assert tile.surface.committed.active is True

    def test_click_while_idle_still_toggles(self, make_tile):
        tile = attached(make_tile())
        tile.controller.on_stop_observing()

        assert tile.controller.on_click() is ClickOutcome.TOGGLED
        assert tile.controller.lifecycle is TileLifecycle.IDLE

    def test_click_while_detached_is_ignored(self, make_tile):
        tile = make_tile()

        assert tile.controller.on_click() is ClickOutcome.IGNORED
        assert tile.dialog.shown == 0
        assert tile.shell.commands == []

    def test_unlock_after_detach_toggles_without_committing(self, make_tile):
        tile = attached(make_tile(require_unlock=True))
        tile.controller.on_click()
        tile.controller.on_detach()
        commits = tile.surface.commit_count

        tile.unlock.succeed()

        assert tile.shell.commands == ["nmcli radio wifi off"]
        assert tile.surface.commit_count == commits

    def test_custom_unlock_key(self, make_tile):
        tile = attached(make_tile(require_unlock=True, require_unlock_key="confirm_unlock"))
        tile.preferences.values = {"confirm_unlock": False}

        assert tile.controller.on_click() is ClickOutcome.TOGGLED


class TestRadioChanges:
    def test_attach_watches_and_detach_stops(self, make_tile):
        tile = attached(make_tile())
        assert tile.radio.watcher is not None

        tile.controller.on_detach()

        assert tile.radio.watcher is None

    @pytest.mark.parametrize("radio_enabled", [True, False])
    def test_command_finishing_later_updates_tile(self, make_tile, radio_enabled):
        tile = attached(make_tile(radio_enabled=radio_enabled, deferred_shell=True))

        assert tile.controller.on_click() is ClickOutcome.TOGGLED
        assert tile.surface.committed.active is radio_enabled

        tile.shell.finish()

        assert tile.radio.enabled is not radio_enabled
        assert tile.surface.committed.active is not radio_enabled
        assert tile.surface.committed.subtitle == ("Off" if radio_enabled else "On")

    def test_unchanged_radio_does_not_commit(self, make_tile):
        tile = attached(make_tile(radio_enabled=True))
        commits = tile.surface.commit_count

        tile.radio.flip(True)

        assert tile.surface.commit_count == commits

    def test_radio_change_after_stop_still_updates(self, make_tile):
        tile = attached(make_tile(radio_enabled=True))
        tile.controller.on_stop_observing()

        tile.radio.flip(False)

        assert tile.surface.committed.active is False

    def test_radio_change_while_detached_is_ignored(self, make_tile):
        tile = attached(make_tile(radio_enabled=True))
        watcher = tile.radio.watcher
        tile.controller.on_detach()
        commits = tile.surface.commit_count

        tile.radio.enabled = False
        watcher(False)

        assert tile.surface.commit_count == commits

    def test_watch_error_is_absorbed(self, make_tile, mocker):
        tile = make_tile()
        mocker.patch.object(tile.radio, "watch", side_effect=RuntimeError("no client"))
        attached(tile)

        assert tile.controller.lifecycle is TileLifecycle.OBSERVING


class TestStandaloneSurface:
    def test_get_state(self, make_tile):
        tile = attached(make_tile(ssid="Home"))
        tile.notifier.emit(NetworkChange.AVAILABLE)

        assert tile.controller.get_state() == {
            "enabled": True,
            "connected": True,
            "label": "Home",
            "subtitle": "On",
            "icon": TileIcons().enabled,
        }

    def test_toggle_is_a_click(self, make_tile):
        tile = attached(make_tile(access=False))

        assert tile.controller.toggle() is ClickOutcome.ACCESS_DENIED


def test_run_once_only_fires_once():
    calls = []
    continuation = run_once(lambda: calls.append(1))
    continuation()
    continuation()

    assert calls == [1]


def test_tile_options_from_config_section():
    options = tile_options({
        "label": "WLAN",
        "on_text": "An",
        "off_text": "Aus",
        "enable_command": "rfkill unblock wifi",
        "disable_command": "rfkill block wifi",
        "disabled_icon": "network-wireless-disabled-symbolic",
    })

    assert options["strings"] == TileStrings(label="WLAN", on="An", off="Aus")
    assert options["commands"].enable == "rfkill unblock wifi"
    assert options["commands"].disable == "rfkill block wifi"
    assert options["icons"].disabled == "network-wireless-disabled-symbolic"
    assert options["icons"].enabled == TileIcons().enabled


def test_tile_options_defaults():
    options = tile_options({})

    assert options["strings"] == TileStrings()
    assert options["icons"] == TileIcons()



def test_synchronize_writes_every_field_before_commit(make_tile, mocker):
    tile = make_tile(ssid="MyNet")
    calls = []
    for name in ["set_label", "set_activation", "set_icon", "set_subtitle", "commit"]:
        original = getattr(tile.surface, name)
        mocker.patch.object(
            tile.surface, name,
            side_effect=lambda *args, _name=name, _original=original: (calls.append(_name), _original(*args)),
        )

    tile.controller.on_attach()

    assert calls == ["set_label", "set_activation", "set_icon", "set_subtitle", "commit"]
    assert tile.surface.committed.label == "Wi-Fi"
