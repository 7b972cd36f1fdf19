"""
Command tree primitives and the generic list / get / payload builders.

Resource modules describe their commands with ListConfig, GetConfig and
PayloadConfig; the builders turn those into Command objects with uniform
flags, pagination, output and error behavior.
"""

from __future__ import annotations

import argparse
import enum
import shlex
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from awx_cli import config
from awx_cli.confirm import confirm_or_yes
from awx_cli.exceptions import CliError, CommandConstructionError
from awx_cli.flags import BOOL, Flag, FlagSet, flag_or_alias_changed, register_alias
from awx_cli.formatters import (
    emit,
    is_structured,
    render_list,
    render_message,
    render_raw,
    with_links,
)
from awx_cli.ids import normalize_id_arg
from awx_cli.payload import read_json_payload, read_optional_json_payload

T = TypeVar("T")

# Verb aliases added to every leaf unless a sibling already uses the name.
CANONICAL_VERB_ALIASES = {
    "list": ("ls",),
    "get": ("g",),
    "show": ("g",),
    "create": ("mk",),
    "update": ("up",),
    "edit": ("up",),
    "delete": ("rm",),
    "remove": ("rm",),
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


class _SubcommandParser(argparse.ArgumentParser):
    """Subparser that raises CliError instead of printing full help text."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("allow_abbrev", False)
        super().__init__(*args, **kwargs)

    def error(self, message):
        raise CliError(f"[ERROR] {message}")


# ---------------------------------------------------------------------------
# Command tree
# ---------------------------------------------------------------------------


class Command:
    """A runnable leaf: a FlagSet, positional arguments and a run callable."""

    def __init__(
        self,
        name: str,
        run: Callable[[Any, List[str]], None],
        help: str = "",
        aliases: Sequence[str] = (),
        positionals: Sequence[Tuple[str, Any]] = (),
        flags: Optional[FlagSet] = None,
        passthrough: bool = False,
    ):
        self.name = name
        self.run = run
        self.help = help
        self.aliases = list(aliases)
        self.positionals = list(positionals)
        self.flags = flags if flags is not None else FlagSet(name)
        self.passthrough = passthrough
        self.path: Tuple[str, ...] = (name,)
        self.siblings: Tuple[str, ...] = ()

    def names(self) -> List[str]:
        return [self.name] + self.aliases

    def mount(self, subparsers, parent: Tuple[str, ...] = ()) -> None:
        self.path = tuple(parent) + (self.name,)
        parser = subparsers.add_parser(
            self.name, aliases=self.aliases, help=self.help, description=self.help
        )
        self.flags.bind(parser)
        for pos_name, nargs in self.positionals:
            parser.add_argument(pos_name, nargs=nargs)
        if self.passthrough:
            parser.add_argument("rest", nargs=argparse.REMAINDER)
        parser.set_defaults(_command=self, _parser=parser)

    def execute(self, ctx, ns) -> None:
        args: List[str] = []
        for pos_name, _ in self.positionals:
            value = getattr(ns, pos_name, None)
            if isinstance(value, list):
                args.extend(value)
            elif value is not None:
                args.append(value)
        if self.passthrough:
            args.extend(getattr(ns, "rest", None) or [])
        self.flags.check_required()
        self.run(ctx, args)


class Group:
    """A noun with child commands (``transfers list``, ``billing invoices``)."""

    def __init__(self, name: str, help: str = "", aliases: Sequence[str] = (), children=()):
        self.name = name
        self.help = help
        self.aliases = list(aliases)
        self.children: List[Any] = []
        for child in children:
            self.add(child)

    def names(self) -> List[str]:
        return [self.name] + self.aliases

    def add(self, child):
        taken = {n for c in self.children for n in c.names()}
        clash = taken.intersection(child.names())
        if clash:
            raise CommandConstructionError(
                f"{self.name}: command name(s) {sorted(clash)} already used"
            )
        self.children.append(child)
        return child

    def child(self, name: str):
        for c in self.children:
            if name in c.names():
                return c
        return None

    def add_canonical_verb_aliases(self) -> None:
        """Give leaves their short verb aliases where no sibling objects."""
        for child in self.children:
            for alias in CANONICAL_VERB_ALIASES.get(child.name, ()):
                taken = {n for c in self.children for n in c.names()}
                if alias not in taken:
                    child.aliases.append(alias)

    def mount(self, subparsers, parent: Tuple[str, ...] = ()) -> None:
        self.add_canonical_verb_aliases()
        path = tuple(parent) + (self.name,)
        parser = subparsers.add_parser(
            self.name, aliases=self.aliases, help=self.help, description=self.help
        )
        parser.set_defaults(_command=None, _parser=parser)
        sub = parser.add_subparsers(
            dest=f"_sub_{id(self)}", parser_class=_SubcommandParser, metavar="<command>"
        )
        names = tuple(c.name for c in self.children)
        for child in self.children:
            child.siblings = names
            child.mount(sub, path)


# ---------------------------------------------------------------------------
# Shared types
# ---------------------------------------------------------------------------


class PaginationMode(enum.Enum):
    PAGE = "page"
    CURSOR = "cursor"


class ColumnType(enum.Enum):
    PLAIN = "plain"
    STATUS = "status"
    AMOUNT = "amount"
    CURRENCY = "currency"


@dataclass(frozen=True)
class ListResult(Generic[T]):
    items: Sequence[T]
    has_more: bool = False
    next_cursor: str = ""


@dataclass(frozen=True)
class ListOptions:
    page: int = 1
    limit: int = config.DEFAULT_PAGE_SIZE
    cursor: str = ""
    filters: Mapping[str, Any] = field(default_factory=dict)
    args: Tuple[str, ...] = ()


def normalize_page_size(size: int) -> int:
    return max(1, min(config.MAX_PAGE_SIZE, size))


def _custom_flags(flags: FlagSet, builtin) -> Dict[str, Any]:
    return {f.name: f.value for f in flags if isinstance(f, Flag) and f.name not in builtin}


# ---------------------------------------------------------------------------
# List builder
# ---------------------------------------------------------------------------

_LIST_FLAGS = frozenset({"page", "page-size", "limit", "after", "all", "items-only"})


@dataclass(frozen=True)
class ListConfig(Generic[T]):
    help: str
    headers: Tuple[str, ...]
    row: Callable[[T], Sequence[Any]]
    fetch: Callable[[Any, Any, ListOptions], ListResult[T]]
    empty_message: str
    column_types: Optional[Tuple[ColumnType, ...]] = None
    id_of: Optional[Callable[[T], str]] = None
    pagination: PaginationMode = PaginationMode.PAGE
    normalize_page_size: bool = False
    more_hint: str = ""
    name: str = "list"
    aliases: Tuple[str, ...] = ()
    args: Tuple[str, ...] = ()
    setup_flags: Optional[Callable[[FlagSet], None]] = None


def build_list_command(cfg: ListConfig) -> Command:
    if cfg.column_types is not None and len(cfg.column_types) != len(cfg.headers):
        raise CommandConstructionError(
            f"list {cfg.headers}: {len(cfg.column_types)} column types for "
            f"{len(cfg.headers)} headers"
        )
    flags = FlagSet(cfg.name)
    if cfg.pagination is PaginationMode.PAGE:
        flags.add_int("page", 1, "Page number (starts at 1)", shorthand="p")
        flags.add_int("page-size", config.DEFAULT_PAGE_SIZE, "Results per page", shorthand="n")
        register_alias(flags, "page-size", "ps")
    else:
        flags.add_int("limit", config.DEFAULT_PAGE_SIZE, "Maximum results", shorthand="l")
        flags.add_string("after", "", "Cursor: continue after this ID")
        register_alias(flags, "after", "af")
    flags.add_bool("all", False, "Fetch every page", shorthand="a")
    flags.add_bool("items-only", False, "Structured output: emit only the items array", shorthand="i")
    register_alias(flags, "items-only", "io")
    register_alias(flags, "items-only", "results-only")
    register_alias(flags, "items-only", "ro")
    if cfg.setup_flags is not None:
        cfg.setup_flags(flags)

    def run(ctx, args):
        if cfg.pagination is PaginationMode.PAGE:
            page, limit, cursor = flags.value("page"), flags.value("page-size"), ""
            if page < 1 or flags.value("all"):
                page = 1
        else:
            page, limit, cursor = 1, flags.value("limit"), flags.value("after")
        if cfg.normalize_page_size:
            limit = normalize_page_size(limit)
        elif limit < 1:
            raise CliError("[ERROR] page size must be 1 or greater")
        opts = ListOptions(
            page=page,
            limit=limit,
            cursor=cursor,
            filters=_custom_flags(flags, _LIST_FLAGS),
            args=tuple(normalize_id_arg(a) for a in args),
        )
        client = ctx.client()
        if flags.value("all"):
            result = _fetch_all(cfg, ctx, client, opts)
        else:
            result = cfg.fetch(ctx, client, opts)
        links = _ListLinks(command, cfg, ctx, flags, opts, result)
        _render_list_result(cfg, ctx, result, opts, flags.value("items-only"), links)

    command = Command(
        cfg.name,
        run,
        help=cfg.help,
        aliases=cfg.aliases,
        positionals=[(a, None) for a in cfg.args],
        flags=flags,
    )
    return command


def _fetch_all(cfg: ListConfig, ctx, client, opts: ListOptions) -> ListResult:
    items: List[Any] = []
    page = opts.page
    cursor = opts.cursor
    while True:
        ctx.cancel.check("listing")
        step = ListOptions(
            page=page,
            limit=config.MAX_PAGE_SIZE,
            cursor=cursor,
            filters=opts.filters,
            args=opts.args,
        )
        result = cfg.fetch(ctx, client, step)
        batch = list(result.items)
        items.extend(batch)
        if not result.has_more or not batch:
            break
        if cfg.pagination is PaginationMode.PAGE:
            page += 1
        else:
            cursor = result.next_cursor or (cfg.id_of(batch[-1]) if cfg.id_of else "")
            if not cursor:
                break
    return ListResult(items=items, has_more=False)


def _next_cursor(cfg: ListConfig, result: ListResult) -> str:
    if result.next_cursor:
        return result.next_cursor
    if cfg.id_of is not None and result.items:
        return cfg.id_of(list(result.items)[-1])
    return ""


def _flag_tokens(flag) -> List[str]:
    if flag.kind == BOOL:
        return [f"--{flag.name}"] if flag.value else [f"--{flag.name}=false"]
    return [f"--{flag.name}", shlex.quote(str(flag.value))]


# Pagination flags are re-added explicitly; items-only changes the shape.
_LINK_OMIT = frozenset({"help", "page", "page-size", "limit", "after", "items-only"})


class _ListLinks:
    """Follow-up command lines for structured list output.

    Only commands mounted under the ``airwallex`` root get links; a list
    command mounted on its own has no usable command path.
    """

    def __init__(self, command, cfg: ListConfig, ctx, flags: FlagSet, opts: ListOptions, result):
        self.command = command
        self.cfg = cfg
        self.ctx = ctx
        self.flags = flags
        self.opts = opts
        self.result = result

    @property
    def enabled(self) -> bool:
        path = self.command.path
        return len(path) > 1 and path[0] == config.PROG

    def _line(self, overrides) -> str:
        parts = list(self.command.path) + [shlex.quote(a) for a in self.opts.args]
        for flag in self.flags:
            if isinstance(flag, Flag) and flag.name not in _LINK_OMIT and flag_or_alias_changed(
                self.flags, flag.name
            ):
                parts.extend(_flag_tokens(flag))
        if self.ctx.global_flags is not None:
            for flag in self.ctx.global_flags.explicit():
                if flag.name not in ("help", "output"):
                    parts.extend(_flag_tokens(flag))
        for name, value in overrides:
            parts.extend([f"--{name}", shlex.quote(str(value))])
        parts.extend(["--output", "json"])
        return " ".join(parts)

    def item(self, item) -> Dict[str, str]:
        command = self.command
        # Items link to the sibling "get" of a "list" command.
        if not self.enabled or command.name != "list" or "get" not in command.siblings:
            return {}
        item_id = self.cfg.id_of(item) if self.cfg.id_of is not None else ""
        if not item_id:
            return {}
        parts = list(command.path[:-1]) + ["get"]
        parts += [shlex.quote(a) for a in self.opts.args]
        parts += [shlex.quote(str(item_id)), "--output", "json"]
        return {"self": " ".join(parts)}

    def envelope(self) -> Dict[str, str]:
        if not self.enabled:
            return {}
        opts = self.opts
        links = {}
        if self.cfg.pagination is PaginationMode.PAGE:
            size = []
            if flag_or_alias_changed(self.flags, "page-size"):
                size = [("page-size", opts.limit)]
            current = []
            if opts.page != 1 or self.flags.lookup("page").changed:
                current = [("page", opts.page)]
            links["self"] = self._line(current + size)
            if self.result.has_more:
                links["next"] = self._line([("page", opts.page + 1)] + size)
            if opts.page > 1:
                links["prev"] = self._line([("page", opts.page - 1)] + size)
        else:
            limit = []
            if self.flags.lookup("limit").changed:
                limit = [("limit", opts.limit)]
            current = [("after", opts.cursor)] if opts.cursor else []
            links["self"] = self._line(current + limit)
            cursor = _next_cursor(self.cfg, self.result) if self.result.has_more else ""
            if cursor:
                links["next"] = self._line([("after", cursor)] + limit)
        return links


def _render_list_result(
    cfg: ListConfig, ctx, result: ListResult, opts: ListOptions, items_only: bool, links=None
):
    items = list(result.items)
    structured = is_structured(ctx)

    if not items:
        if structured:
            emit(ctx, [] if items_only else {"items": [], "has_more": result.has_more})
        else:
            render_message(ctx, cfg.empty_message)
        return

    if structured:
        if links is not None:
            items = [with_links(item, links.item(item)) for item in items]
        if items_only:
            emit(ctx, items)
            return
        doc = {"items": items, "has_more": result.has_more}
        if result.has_more:
            if cfg.pagination is PaginationMode.PAGE:
                doc["next_page"] = opts.page + 1
            else:
                cursor = _next_cursor(cfg, result)
                if cursor:
                    doc["next_cursor"] = cursor
        emit(ctx, with_links(doc, links.envelope() if links is not None else {}))
        return

    rows = [list(cfg.row(item)) for item in items]
    render_list(ctx, list(cfg.headers), rows, cfg.column_types)
    if result.has_more:
        ctx.ui.hint(_more_hint(cfg, result, opts))


def _more_hint(cfg: ListConfig, result: ListResult, opts: ListOptions) -> str:
    if cfg.more_hint:
        return cfg.more_hint
    if cfg.pagination is PaginationMode.PAGE:
        return f"# More results available. Next page: --page {opts.page + 1}"
    cursor = _next_cursor(cfg, result)
    if cursor:
        return f"# More results available. Next page: --after {cursor}"
    return "# More results available"


# ---------------------------------------------------------------------------
# Get builder
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GetConfig(Generic[T]):
    help: str
    fetch: Callable[..., T]
    text_output: Optional[Callable[[Any, T], None]] = None
    name: str = "get"
    aliases: Tuple[str, ...] = ()
    # One ID normally; line items take the parent ID first.
    args: Tuple[str, ...] = ("id",)


def build_get_command(cfg: GetConfig) -> Command:
    def run(ctx, args):
        ids = [normalize_id_arg(a) for a in args]
        for name, value in zip(cfg.args, ids):
            if not value:
                raise CliError(f"[ERROR] {name} must not be empty")
        value = cfg.fetch(ctx, ctx.client(), *ids)
        if is_structured(ctx):
            emit(ctx, value)
        elif cfg.text_output is not None:
            cfg.text_output(ctx, value)
        else:
            render_raw(ctx, value)

    return Command(
        cfg.name,
        run,
        help=cfg.help,
        aliases=cfg.aliases,
        positionals=[(a, None) for a in cfg.args],
    )


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PayloadConfig(Generic[T]):
    name: str
    help: str
    run: Optional[Callable[[Any, Any, Sequence[str], Optional[dict]], T]]
    success_message: Optional[Callable[[T], str]] = None
    args: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    allow_empty: bool = False
    confirm: Optional[Callable[[Sequence[str]], str]] = None
    declined_message: str = "Operation cancelled."
    setup_flags: Optional[Callable[[FlagSet], None]] = None
    normalize_args: bool = True


def build_payload_command(cfg: PayloadConfig) -> Command:
    if cfg.run is None:
        raise CommandConstructionError(f"payload command {cfg.name!r} has no run function")
    flags = FlagSet(cfg.name)
    flags.add_string("data", "", "JSON object payload")
    flags.add_string("from-file", "", "Read the JSON payload from a file (- for stdin)")
    if cfg.setup_flags is not None:
        cfg.setup_flags(flags)

    def run(ctx, args):
        if cfg.normalize_args:
            args = [normalize_id_arg(a) for a in args]
        if cfg.allow_empty:
            payload = read_optional_json_payload(ctx, flags.value("data"), flags.value("from-file"))
        else:
            payload = read_json_payload(ctx, flags.value("data"), flags.value("from-file"))
        if cfg.confirm is not None and not confirm_or_yes(ctx, cfg.confirm(args)):
            ctx.ui.info(cfg.declined_message)
            return
        result = cfg.run(ctx, ctx.client(), args, payload)
        if is_structured(ctx):
            emit(ctx, result if result is not None else {"ok": True})
        elif cfg.success_message is not None:
            ctx.ui.success(cfg.success_message(result))
        elif result is not None:
            render_raw(ctx, result)

    return Command(
        cfg.name,
        run,
        help=cfg.help,
        aliases=cfg.aliases,
        positionals=[(a, None) for a in cfg.args],
        flags=flags,
    )
