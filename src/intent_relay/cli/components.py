"""Rich CLI components for the intent relay."""

import re
from typing import Any

from rich.console import Console, Group
from rich.json import JSON
from rich.panel import Panel
from rich.text import Text

from intent_relay.models.frames import BaseFrame, ErrorFrame, FrameType, IntentFrame, PartialFrame

# ANSI escape sequence pattern - matches control sequences including:
# - CSI sequences: ESC [ ... (letter) - covers focus events ^[[I, ^[[O etc
# - SS2/SS3: ESC N, ESC O
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]|\x1b[NO]")


def sanitize_input(text: str) -> str:
    """Remove ANSI escape sequences from user input.

    Args:
        text: Raw input text.

    Returns:
        Cleaned text with ANSI sequences removed.
    """
    return ANSI_ESCAPE_RE.sub("", text)


class StreamDisplay:
    """Live view of an object stream.

    Tracks the detected intent, the latest snapshot and the terminal status,
    and renders them as a single panel.
    """

    def __init__(self, console: Console | None = None):
        """Initialize the display.

        Args:
            console: Rich console instance.
        """
        self.console = console or Console()
        self.intent: str | None = None
        self.data: Any = None
        self.partials = 0
        self.status = "classifying"
        self.error: str | None = None

    def update(self, frame: BaseFrame) -> None:
        """Apply one frame to the display state."""
        if isinstance(frame, IntentFrame):
            self.intent = frame.intent
            self.status = "streaming"
        elif isinstance(frame, PartialFrame):
            self.data = frame.data
            self.partials += 1
        elif isinstance(frame, ErrorFrame):
            self.status = "error"
            self.error = frame.error
        elif frame.type == FrameType.COMPLETE:
            self.status = "complete"

    def render(self) -> Panel:
        """Render the current state as a Rich panel."""
        status_style = {
            "complete": "green",
            "error": "red",
        }.get(self.status, "yellow")

        header = Text.assemble(
            ("Intent: ", "bold"),
            (self.intent or "?", "cyan"),
            "  ",
            (f"[{self.status}]", status_style),
            f"  {self.partials} partial(s)",
        )
        parts: list[Any] = [header]
        if self.data is not None:
            parts.append(JSON.from_data(self.data))
        if self.error:
            parts.append(Text(self.error, style="red"))

        return Panel(Group(*parts), title="[bold]Stream[/bold]", border_style=status_style)


def render_result(label: str, data: Any) -> Panel:
    """Render a blocking generation result."""
    return Panel(
        JSON.from_data(data),
        title=f"[bold]{label}[/bold]",
        border_style="green",
    )
