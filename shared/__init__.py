from .buttons import QSToggleButton
from .widget_container import HoverButton
