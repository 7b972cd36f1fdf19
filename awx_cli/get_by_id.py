"""
``airwallex get <id>`` — fetch any resource by its ID.

The ID prefix decides the resource kind; composite ``parent:child`` IDs
address invoice and subscription line items.
"""

from awx_cli import config
from awx_cli.builders import Command
from awx_cli.exceptions import CliError
from awx_cli.formatters import emit, is_structured, render_raw, with_links
from awx_cli.ids import normalize_id_arg, resolve_composite, resolve_id, split_composite


def canonical_command(path, *ids):
    return " ".join([config.PROG, *path, *ids])


def fetch_by_id(ctx, client, raw):
    """Return (item, canonical command) for a simple or composite ID."""
    raw = raw.strip()
    # A URL's scheme colon is not a composite separator.
    if "://" in raw:
        raw = normalize_id_arg(raw)
    if split_composite(raw) is not None:
        kind, parent, child = resolve_composite(raw)
        item = client.get(kind.endpoint.format(id=parent, item_id=child))
        return item, canonical_command(kind.get_path, parent, child)
    kind = resolve_id(raw)
    resource_id = normalize_id_arg(raw)
    item = client.get(kind.endpoint.format(id=resource_id))
    return item, canonical_command(kind.get_path, resource_id)


def build_get_by_id_command():
    def run(ctx, args):
        raw = args[0]
        if not raw.strip():
            raise CliError("[ERROR] id must not be empty")
        item, command = fetch_by_id(ctx, ctx.client(), raw)
        if is_structured(ctx):
            emit(ctx, with_links(item, {"self": command}))
            return
        render_raw(ctx, item)
        ctx.ui.hint(f"# {command}")

    return Command(
        "get",
        run,
        help="Get any resource by ID (tfr_, ben_, card_, inv_:item_, ...)",
        aliases=["g"],
        positionals=[("id", None)],
    )
