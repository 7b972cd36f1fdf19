"""
Shared pure-utility functions for airwallex-cli.

These helpers have no business logic. They are used across the builders,
the payload reader, the confirmation gate, and the resource commands.
"""

import select
from datetime import datetime, timezone

from awx_cli.exceptions import CliError

_POLL_SECONDS = 0.1


def _normalize_enum(raw, valid_set, field_name):
    """Upper-case an enum flag value and validate it. Empty passes through."""
    value = (raw or "").strip().upper()
    if not value:
        return ""
    if value not in valid_set:
        raise CliError(
            f"[ERROR] Invalid {field_name} '{raw}'. Valid: {', '.join(sorted(valid_set))}"
        )
    return value


def _parse_date(date_str):
    """Parse a YYYY-MM-DD date string into a datetime. Raises CliError on bad format."""
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise CliError(f"[ERROR] Invalid date '{date_str}'. Use YYYY-MM-DD format.") from e


def _date_param(date_str, end_of_day=False):
    """YYYY-MM-DD -> ISO-8601 timestamp for API date filters."""
    if not date_str:
        return ""
    day = _parse_date(date_str)
    if end_of_day:
        day = day.replace(hour=23, minute=59, second=59)
    return day.strftime("%Y-%m-%dT%H:%M:%S+0000")


def _wait_readable(stream, cancel, what):
    """Block until *stream* has input, checking *cancel* while waiting.
    Streams without a file descriptor (StringIO) are treated as ready."""
    cancel.check(what)
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return
    while True:
        try:
            ready, _, _ = select.select([fd], [], [], _POLL_SECONDS)
        except (OSError, ValueError):
            return
        if ready:
            return
        cancel.check(what)
