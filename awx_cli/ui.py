"""Terminal UI: status messages on stderr, styled table cells on stdout."""

import os

from rich.console import Console
from rich.text import Text

_STATUS_GOOD = {"ACTIVE", "PAID", "SUCCEEDED", "SUCCESS", "COMPLETED", "ENABLED", "SETTLED", "APPROVED"}
_STATUS_BAD = {"FAILED", "CANCELLED", "CANCELED", "REJECTED", "DECLINED", "CLOSED", "DISABLED", "EXPIRED"}


def color_enabled(mode, stream, environ=None):
    """Resolve --color auto|always|never against the stream and NO_COLOR."""
    environ = os.environ if environ is None else environ
    if mode == "never":
        return False
    if mode == "always":
        return True
    if environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        return False


def _console(stream, enabled):
    if enabled:
        return Console(
            file=stream, force_terminal=True, color_system="standard",
            highlight=False, emoji=False, markup=False, soft_wrap=True,
        )
    return Console(
        file=stream, force_terminal=False, color_system=None,
        highlight=False, emoji=False, markup=False, soft_wrap=True,
    )


class UI:
    def __init__(self, stdout, stderr, color=False):
        self.color = color
        self.out = _console(stdout, color)
        self.err = _console(stderr, color)

    def success(self, message):
        self.err.print(message, style="green" if self.color else None)

    def error(self, message):
        self.err.print(message, style="red" if self.color else None)

    def info(self, message):
        self.err.print(message)

    def hint(self, message):
        self.err.print(message, style="dim" if self.color else None)

    def line(self, text=""):
        """Write one line to stdout. *text* may be a str or rich Text."""
        self.out.print(text)

    def cell(self, value, column_type):
        """Padded-later cell text with the style its column type implies."""
        text = Text(value)
        if not self.color:
            return text
        style = cell_style(value, column_type)
        if style:
            text.stylize(style)
        return text


def cell_style(value, column_type):
    kind = getattr(column_type, "value", column_type)
    if kind == "status":
        upper = (value or "").upper()
        if upper in _STATUS_GOOD:
            return "green"
        if upper in _STATUS_BAD:
            return "red"
        return "yellow" if upper else None
    if kind == "amount":
        return "red" if (value or "").startswith("-") else "bold"
    if kind == "currency":
        return "cyan"
    return None
