"""Output formatting package for airwallex-cli.

Re-exports all public names so consumers can do:
    from awx_cli.formatters import render_list
"""

from awx_cli.formatters._core import (
    emit,
    format_money,
    is_structured,
    kv_rows,
    render_kv,
    render_list,
    render_message,
    render_raw,
    with_links,
)
from awx_cli.formatters._json import dumps
from awx_cli.formatters._query import apply_query, parse_query
from awx_cli.formatters._table import (
    _CONTROL_RE,
    _sanitize_str,
    _table,
    _trunc,
)

__all__ = [
    "_CONTROL_RE",
    "_sanitize_str",
    "_table",
    "_trunc",
    "apply_query",
    "dumps",
    "emit",
    "format_money",
    "is_structured",
    "kv_rows",
    "parse_query",
    "render_kv",
    "render_list",
    "render_message",
    "render_raw",
    "with_links",
]
