"""Low-level table rendering helpers."""

import re

from rich.text import Text

_CONTROL_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]|[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

MAX_CELL_WIDTH = 48


def _trunc(s, maxlen):
    """Truncate string with ellipsis indicator."""
    if not s:
        return ""
    return s[: maxlen - 1] + "…" if len(s) > maxlen else s


def _sanitize_str(s):
    """Strip ANSI escape sequences and control chars from table output.
    Preserves newlines (\\n) and tabs (\\t)."""
    if not s:
        return s
    return _CONTROL_RE.sub("", str(s))


def _cell(value):
    if value is None:
        return ""
    text = _sanitize_str(str(value)).replace("\n", " ").replace("\t", " ")
    return _trunc(text, MAX_CELL_WIDTH)


def _table(ui, headers, rows, column_types=None):
    """Build table lines as rich Text.
    headers: column names. rows: lists of cell values matching headers.
    column_types: optional per-column type used to style cells.
    The last column is not padded."""
    cells = [[_cell(v) for v in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in cells:
        for i, val in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], len(val))
    types = list(column_types or [None] * len(headers))

    last = len(headers) - 1
    header = Text("  ".join(h if i == last else h.ljust(widths[i]) for i, h in enumerate(headers)))
    if ui.color:
        header.stylize("bold")
    lines = [header]
    for row in cells:
        line = Text()
        for i, val in enumerate(row[: len(headers)]):
            if i:
                line.append("  ")
            line.append_text(ui.cell(val, types[i]))
            if i != last:
                line.append(" " * (widths[i] - len(val)))
        lines.append(line)
    return lines
