"""Staff PIN entry modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from pos.backoffice import PIN_MAX_LENGTH
from pos.models import TeamMember


class PinModal(ModalScreen[str | None]):
    """Prompt a team member for their PIN; dismisses with the digits entered."""

    CSS = """
    PinModal {
        align: center middle;
        background: $background 60%;
    }

    #pin-dialog {
        width: 44;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #pin-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #pin-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #pin-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #pin-help {
        color: #dddddd;
    }
    """

    def __init__(self, member: TeamMember, error: str = "") -> None:
        super().__init__()
        self.member = member
        self.value = ""
        self.error = error

    def compose(self) -> ComposeResult:
        with Container(id="pin-dialog"):
            yield Static(f"{self.member.name} ({self.member.role.value})", id="pin-title")
            yield Static(id="pin-value")
            yield Static(id="pin-error")
            yield Static("Digits only. Enter unlock. Backspace delete. Esc cancel.", id="pin-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character and event.character.isdigit():
            if len(self.value) < PIN_MAX_LENGTH:
                self.value += event.character
            self.error = ""
            self._refresh_content()
            event.stop()

    def _confirm(self) -> None:
        if not self.value:
            self.error = "PIN is required."
            self._refresh_content()
            return
        self.dismiss(self.value)

    def _refresh_content(self) -> None:
        self.query_one("#pin-value", Static).update("●" * len(self.value))
        self.query_one("#pin-error", Static).update(self.error or "")
