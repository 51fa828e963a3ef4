import gi
from fabric.core.service import Signal
from fabric.widgets.box import Box
from fabric.widgets.image import Image as FabricImage
from fabric.widgets.label import Label as FabricLabel

from utils.icons import icons
from utils.widget_utils import setup_cursor_hover

from .widget_container import HoverButton

gi.require_version("Gtk", "3.0")
from gi.repository import Gtk  # noqa: E402


def is_font_icon_character(text: str) -> bool:
    return bool(text and len(text) == 1 and ord(text[0]) > 127)


class QSToggleButton(Box):
    """Quick settings toggle: an icon, a label and a dimmed subtitle line."""

    @Signal
    def action_clicked(self) -> None: ...

    def __init__(
        self,
        action_label: str = "My Label",
        action_icon: str = icons["fallback"]["package"],
        action_subtitle: str = "",
        pixel_size: int = 20,
        **kwargs,
    ):
        super().__init__(
            name="quicksettings-togglebutton",
            h_align="start",
            v_align="start",
            **kwargs,
        )

        self.pixel_size = pixel_size
        self.action_label_str = action_label

        self.action_icon = self._make_icon_widget(action_icon)

        self.action_label = FabricLabel(
            style_classes=["panel-text"],
            label=action_label,
            ellipsization="end",
            h_align="start",
            h_expand=True,
        )
        self.action_subtitle = FabricLabel(
            style_classes=["panel-text", "dim-label", "caption"],
            label=action_subtitle,
            h_align="start",
            visible=bool(action_subtitle),
        )

        self._text_box = Box(
            orientation="v",
            v_align="center",
            children=[self.action_label, self.action_subtitle],
        )
        self._action_button_content_box = Box(
            h_align="start",
            v_align="center",
            spacing=8,
            style_classes="quicksettings-toggle-action-box",
            children=[self.action_icon, self._text_box],
        )

        self.action_button = HoverButton(
            style_classes="quicksettings-toggle-action",
            child=self._action_button_content_box,
        )
        self.action_button.set_size_request(170, 20)

        self.box = Box()
        self.box.add(self.action_button)
        self.add(self.box)

        setup_cursor_hover(self)
        self.action_button.connect("clicked", self.do_action)

    def _make_icon_widget(self, icon_content: str) -> Gtk.Widget:
        if is_font_icon_character(icon_content):
            return FabricLabel(
                label=icon_content,
                style_classes=["icon", "panel-icon-font"],
                v_align=Gtk.Align.CENTER,
            )
        return FabricImage(
            style_classes=["panel-icon"],
            icon_name=icon_content,
            icon_size=self.pixel_size,
        )

    def do_action(self, *_):
        self.emit("action-clicked")

    def set_active_style(self, active: bool) -> None:
        if active:
            self.set_style_classes("active")
        else:
            self.set_style_classes("")

    def set_action_label(self, label: str):
        stripped_label = label.strip()
        self.action_label.set_label(stripped_label)
        self.action_label_str = stripped_label

    def set_action_subtitle(self, subtitle: str):
        self.action_subtitle.set_label(subtitle)
        self.action_subtitle.set_visible(bool(subtitle))

    def set_action_icon(self, icon_content: str):
        new_is_text = is_font_icon_character(icon_content)
        if new_is_text and isinstance(self.action_icon, FabricLabel):
            self.action_icon.set_label(icon_content)
            return
        if not new_is_text and isinstance(self.action_icon, FabricImage):
            self.action_icon.set_from_icon_name(icon_content, self.pixel_size)
            return
        self._replace_current_icon_widget(self._make_icon_widget(icon_content))

    def _replace_current_icon_widget(self, new_widget: Gtk.Widget):
        old_widget = self.action_icon
        if old_widget.get_parent() != self._action_button_content_box:
            return
        self._action_button_content_box.remove(old_widget)
        self._action_button_content_box.add(new_widget)
        self._action_button_content_box.reorder_child(new_widget, 0)
        new_widget.show()
        self.action_icon = new_widget
