import gi
from fabric.widgets.box import Box
from fabric.widgets.button import Button
from fabric.widgets.image import Image
from fabric.widgets.label import Label
from fabric.widgets.window import Window
from loguru import logger

from utils.icons import icons

gi.require_version("Gtk", "3.0")
from gi.repository import Gtk  # noqa: E402

SHELL_ACCESS_TITLE = "Shell access required"
SHELL_ACCESS_MESSAGE = (
    "Turning Wi-Fi on or off needs elevated rights.\n\n"
    "Run the panel as root, allow passwordless sudo for the Wi-Fi commands, "
    "or install polkit so that pkexec can ask for authorization."
)


class ShellAccessDialog(Window):
    """Modal window shown when the tile cannot toggle Wi-Fi for lack of rights."""

    def __init__(self, **kwargs):
        self.message_label = Label(
            label=SHELL_ACCESS_MESSAGE,
            line_wrap="word",
            h_align="start",
            style_classes=["dialog-body"],
        )
        self.close_button = Button(label="Close", style_classes=["button", "suggested-action"])
        self.close_button.connect("clicked", lambda *_: self.hide())

        super().__init__(
            name="shell-access-dialog",
            title=SHELL_ACCESS_TITLE,
            type="top-level",
            visible=False,
            all_visible=False,
            child=Box(
                orientation="v",
                spacing=12,
                style="padding: 16px;",
                children=[
                    Box(
                        spacing=8,
                        children=[
                            Image(icon_name=icons["dialog"]["warning"], icon_size=24),
                            Label(label=SHELL_ACCESS_TITLE, style_classes=["title-4"]),
                        ],
                    ),
                    self.message_label,
                    Box(h_align=Gtk.Align.END, children=[self.close_button]),
                ],
            ),
            **kwargs,
        )
        self.set_modal(True)
        self.set_resizable(False)
        self.set_position(Gtk.WindowPosition.CENTER)
        self.connect("delete-event", lambda *_: self.hide_on_delete())

    def show_access_required_prompt(self) -> None:
        logger.info("ShellAccessDialog: Prompting for shell access.")
        self.show_all()
        self.present()
