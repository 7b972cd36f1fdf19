"""
Shared pieces for declaring resource commands.

Each helper wraps one of the generic builders around a REST endpoint so a
resource module only has to state its paths, columns and fields.
"""

from awx_cli.builders import (
    ColumnType,
    GetConfig,
    Group,
    ListConfig,
    ListResult,
    PaginationMode,
    PayloadConfig,
    build_get_command,
    build_list_command,
    build_payload_command,
)
from awx_cli.formatters import format_money, kv_rows, render_kv

PLAIN = ColumnType.PLAIN
STATUS = ColumnType.STATUS
AMOUNT = ColumnType.AMOUNT
CURRENCY = ColumnType.CURRENCY


def first(item, *keys):
    """The first non-empty value among *keys* (APIs disagree on ID keys)."""
    for key in keys:
        value = item.get(key)
        if value not in (None, ""):
            return value
    return ""


def money(item, key):
    return format_money(item.get(key))


def nested(item, *path):
    value = item
    for key in path:
        if not isinstance(value, dict):
            return ""
        value = value.get(key)
    return "" if value is None else value


def _params_from(opts, param_map):
    params = {}
    for flag_name, (param, convert) in (param_map or {}).items():
        value = opts.filters.get(flag_name)
        if value in (None, "", False):
            continue
        params[param] = convert(value) if convert else value
    return params


def paged_fetch(path, param_map=None):
    """Fetch for page-numbered list endpoints.
    *path* may contain ``{id}`` which is filled from the first positional.
    *param_map* maps flag names to (query param, converter)."""

    def fetch(ctx, client, opts):
        endpoint = path.format(id=opts.args[0]) if opts.args else path
        data = client.list_page(endpoint, opts.page, opts.limit, _params_from(opts, param_map))
        return ListResult(items=data.get("items") or [], has_more=bool(data.get("has_more")))

    return fetch


def cursor_fetch(path, param_map=None):
    """Fetch for cursor-paginated list endpoints (``page`` / ``page_after``)."""

    def fetch(ctx, client, opts):
        data = client.list_cursor(path, opts.limit, opts.cursor, _params_from(opts, param_map))
        return ListResult(
            items=data.get("items") or [],
            has_more=bool(data.get("has_more") or data.get("page_after")),
            next_cursor=data.get("page_after") or "",
        )

    return fetch


def list_cmd(fetch, headers, row, column_types, empty, help, setup_flags=None, args=(),
             pagination=PaginationMode.PAGE, id_of=None):
    """Declarative list command. The first row cell is the item ID unless *id_of* says otherwise."""
    return build_list_command(
        ListConfig(
            help=help,
            headers=tuple(headers),
            row=row,
            fetch=fetch,
            empty_message=empty,
            column_types=tuple(column_types),
            id_of=id_of or (lambda item: str(row(item)[0] or "")),
            pagination=pagination,
            normalize_page_size=True,
            args=tuple(args),
            setup_flags=setup_flags,
        )
    )


def get_cmd(path, fields, help, always=("id",), args=("id",)):
    """GET ``path`` and show *fields* as key/value rows in text mode."""

    def fetch(ctx, client, *ids):
        if len(ids) == 2:
            return client.get(path.format(id=ids[0], item_id=ids[1]))
        return client.get(path.format(id=ids[0]))

    def text_output(ctx, item):
        render_kv(ctx, kv_rows(item, fields, always))

    return build_get_command(
        GetConfig(help=help, fetch=fetch, text_output=text_output, args=tuple(args))
    )


def create_cmd(path, noun, id_keys=("id",), help=None):
    def run(ctx, client, args, payload):
        return client.post(path, payload)

    return build_payload_command(
        PayloadConfig(
            name="create",
            help=help or f"Create a {noun} from a JSON payload",
            run=run,
            success_message=lambda r: f"Created {noun}: {first(r or {}, *id_keys)}",
        )
    )


def update_cmd(path, noun, help=None):
    def run(ctx, client, args, payload):
        return client.post(path.format(id=args[0]), payload)

    return build_payload_command(
        PayloadConfig(
            name="update",
            help=help or f"Update a {noun} from a JSON payload",
            run=run,
            args=("id",),
            success_message=lambda r: f"Updated {noun}",
        )
    )


def _action_cmd(name, verb, path, noun, declined, aliases=(), method="POST"):
    def run(ctx, client, args, payload):
        if method == "DELETE":
            result = client.do("DELETE", path.format(id=args[0]))
        else:
            result = client.post(path.format(id=args[0]), payload)
        return result if result else {"id": args[0], verb: True}

    past = {"delete": "Deleted", "cancel": "Cancelled"}[verb]
    return build_payload_command(
        PayloadConfig(
            name=name,
            help=f"{verb.capitalize()} a {noun}",
            run=run,
            args=("id",),
            aliases=tuple(aliases),
            allow_empty=True,
            confirm=lambda args: f"Are you sure you want to {verb} {noun} {args[0]}?",
            declined_message=declined,
            success_message=lambda r: f"{past} {noun}: {first(r or {}, 'id')}",
        )
    )


def delete_cmd(path, noun, method="POST"):
    return _action_cmd("delete", "delete", path, noun, "Deletion cancelled.", method=method)


def cancel_cmd(path, noun):
    return _action_cmd("cancel", "cancel", path, noun, "Operation cancelled.", aliases=("x",))


def group(name, help, aliases=(), children=()):
    return Group(name, help=help, aliases=aliases, children=children)
