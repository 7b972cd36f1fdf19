"""Core output dispatchers: structured (JSON/JSONL) and text rendering."""

from decimal import Decimal, InvalidOperation

from awx_cli.formatters._json import dumps
from awx_cli.formatters._query import apply_query
from awx_cli.formatters._table import _sanitize_str, _table


def is_structured(ctx):
    return ctx.options.structured


def _write(stream, text):
    stream.write(text + "\n")


def emit(ctx, data):
    """Write *data* in the structured output format, after --query."""
    if ctx.options.query:
        results = apply_query(ctx.options.query, data)
    else:
        results = [data]
    if ctx.options.output == "jsonl":
        for result in results:
            rows = result if isinstance(result, list) else [result]
            for row in rows:
                _write(ctx.stdout, dumps(row, compact=True))
        return
    for result in results:
        _write(ctx.stdout, dumps(result, indent=2))


def render_raw(ctx, data):
    """Pretty JSON on stdout regardless of the output mode."""
    _write(ctx.stdout, dumps(data, indent=2))


def render_list(ctx, headers, rows, column_types=None):
    for line in _table(ctx.ui, headers, rows, column_types):
        ctx.ui.line(line)


def render_kv(ctx, rows):
    """Tab-aligned KEY<TAB>VALUE lines; rows with an empty key are skipped."""
    rows = [(k, v) for k, v in rows if k]
    width = max((len(k) for k, _ in rows), default=0)
    for key, value in rows:
        _write(ctx.stdout, f"{key.ljust(width)}\t{_sanitize_str(_text(value))}")


def render_message(ctx, message):
    ctx.ui.line(message)


def _text(value):
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return dumps(value, compact=True)
    return str(value)


def _lookup(item, path):
    value = item
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def kv_rows(item, fields, always=()):
    """(key, value) rows for *fields* of *item*.
    Empty values are omitted unless the field is listed in *always*."""
    rows = []
    for field in fields:
        key, path = field if isinstance(field, tuple) else (field, field)
        value = _lookup(item, path)
        if value in (None, "", [], {}) and key not in always:
            continue
        rows.append((key, value))
    return rows


def format_money(value):
    """1234.5 -> '1,234.50'. Non-numeric values pass through as text."""
    if value is None or value == "":
        return ""
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return str(value)
    if not amount.is_finite():
        return str(value)
    return f"{amount.quantize(Decimal('0.01')):,}"


def with_links(value, links):
    """Copy of a dict *value* with *links* merged into its ``_links``."""
    if not isinstance(value, dict) or not links:
        return value
    annotated = dict(value)
    merged = dict(annotated.get("_links") or {})
    merged.update(links)
    annotated["_links"] = merged
    return annotated
