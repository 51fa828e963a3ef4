from typing import Any, Dict, Union

from loguru import logger

from .wifi import TileVisualState


class ConsoleTileSurface:
    """Tile surface for headless use: stages values and keeps the last commit."""

    def __init__(self):
        self._label = ""
        self._active = False
        self._icon = ""
        self._subtitle = ""
        self.committed: Union[TileVisualState, None] = None
        self.commit_count = 0

    def set_label(self, label: str) -> None:
        self._label = label

    def set_activation(self, active: bool) -> None:
        self._active = active

    def set_icon(self, icon: str) -> None:
        self._icon = icon

    def set_subtitle(self, subtitle: str) -> None:
        self._subtitle = subtitle

    def commit(self) -> None:
        self.committed = TileVisualState(
            label=self._label,
            active=self._active,
            icon=self._icon,
            subtitle=self._subtitle,
        )
        self.commit_count += 1
        logger.debug(
            f"ConsoleTile: {self._label} [{self._subtitle}] active={self._active} icon={self._icon}"
        )

    def as_dict(self) -> Dict[str, Any]:
        if self.committed is None:
            return {}
        return {
            "label": self.committed.label,
            "active": self.committed.active,
            "icon": self.committed.icon,
            "subtitle": self.committed.subtitle,
        }


class ConsoleDialog:
    message = (
        "Toggling Wi-Fi needs elevated rights. Run as root, allow passwordless "
        "sudo for the toggle command, or install polkit (pkexec)."
    )

    def __init__(self):
        self.shown = 0

    def show_access_required_prompt(self) -> None:
        self.shown += 1
        logger.error(f"ConsoleDialog: {self.message}")
