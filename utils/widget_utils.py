import gi

gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gdk, Gtk  # noqa: E402


def setup_cursor_hover(widget: Gtk.Widget, cursor_name: str = "pointer") -> None:
    """Show `cursor_name` while the pointer is over `widget`."""

    def on_enter(w: Gtk.Widget, *_):
        window = w.get_window()
        if window is not None:
            window.set_cursor(Gdk.Cursor.new_from_name(w.get_display(), cursor_name))

    def on_leave(w: Gtk.Widget, *_):
        window = w.get_window()
        if window is not None:
            window.set_cursor(None)

    widget.connect("enter-notify-event", on_enter)
    widget.connect("leave-notify-event", on_leave)
