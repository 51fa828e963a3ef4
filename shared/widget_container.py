from fabric.widgets.button import Button

from utils.widget_utils import setup_cursor_hover


class HoverButton(Button):
    """A button that shows a pointer cursor on hover."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        setup_cursor_hover(self)
