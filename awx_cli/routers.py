"""
Verb-first routers: ``list <resource>``, ``create <resource>`` and
``cancel <id>``.

Each router resolves to a canonical command path and re-runs the CLI in
process with the explicitly-set global flags carried over.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from awx_cli import config
from awx_cli.builders import Command
from awx_cli.exceptions import CliError, CommandConstructionError
from awx_cli.flags import BOOL
from awx_cli.ids import cancel_target_for_id


class ListRoute(enum.Enum):
    """(canonical path, nouns that select it)"""

    TRANSFERS = ("transfers list", ("transfers", "transfer", "payouts", "payout"))
    BENEFICIARIES = ("beneficiaries list", ("beneficiaries", "beneficiary", "ben"))
    ACCOUNTS = ("accounts list", ("accounts",))
    CARDS = ("cards list", ("cards",))
    CARDHOLDERS = ("cardholders list", ("cardholders",))
    TRANSACTIONS = ("transactions list", ("transactions",))
    AUTHORIZATIONS = ("authorizations list", ("authorizations",))
    DISPUTES = ("disputes list", ("disputes",))
    PAYERS = ("payers list", ("payers",))
    REPORTS = ("reports list", ("reports",))
    LINKED_ACCOUNTS = ("linked-accounts list", ("linked-accounts", "linked_accounts", "la"))
    PAYMENT_LINKS = ("payment-links list", ("payment-links", "payment_links", "pl"))
    WEBHOOKS = ("webhooks list", ("webhooks", "webhook", "wh"))
    DEPOSITS = ("deposits list", ("deposits", "deposit", "dep"))
    CUSTOMERS = ("billing customers list", ("customers",))
    PRODUCTS = ("billing products list", ("products",))
    PRICES = ("billing prices list", ("prices",))
    INVOICES = ("billing invoices list", ("invoices",))
    SUBSCRIPTIONS = ("billing subscriptions list", ("subscriptions",))

    def __init__(self, path, nouns):
        self.path = tuple(path.split())
        self.nouns = nouns


class CreateRoute(enum.Enum):
    """(canonical path, nouns that select it)"""

    TRANSFER = ("transfers create", ("transfer", "transfers", "payout", "payouts"))
    BENEFICIARY = ("beneficiaries create", ("beneficiary", "beneficiaries"))
    LINKED_ACCOUNT = ("linked-accounts create", ("linked-account", "linked-accounts"))
    PAYMENT_LINK = ("payment-links create", ("payment-link", "payment-links"))
    WEBHOOK = ("webhooks create", ("webhook", "webhooks"))
    CARD = ("cards create", ("card", "cards"))
    CARDHOLDER = ("cardholders create", ("cardholder", "cardholders"))
    DISPUTE = ("disputes create", ("dispute", "disputes"))
    PAYER = ("payers create", ("payer", "payers"))
    CUSTOMER = ("billing customers create", ("customer",))
    PRODUCT = ("billing products create", ("product",))
    PRICE = ("billing prices create", ("price",))
    INVOICE = ("billing invoices create", ("invoice",))
    SUBSCRIPTION = ("billing subscriptions create", ("subscription",))
    QUOTE = ("fx quotes create", ("quote",))
    CONVERSION = ("fx conversions create", ("conversion",))

    def __init__(self, path, nouns):
        self.path = tuple(path.split())
        self.nouns = nouns


def _noun_index(routes) -> Dict[str, enum.Enum]:
    index: Dict[str, enum.Enum] = {}
    for route in routes:
        for noun in route.nouns:
            if noun in index:
                raise CommandConstructionError(
                    f"noun {noun!r} maps to both {index[noun].name} and {route.name}"
                )
            index[noun] = route
    return index


_LIST_NOUNS = _noun_index(ListRoute)
_CREATE_NOUNS = _noun_index(CreateRoute)

_LIST_TRY = "transfers, beneficiaries, cards, invoices, subscriptions"
_CREATE_TRY = "transfer, beneficiary, card, webhook, invoice, subscription"


# ---------------------------------------------------------------------------
# Invocations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ForwardedArg:
    name: str
    value: str
    is_bool: bool = False

    def tokens(self) -> List[str]:
        if self.is_bool:
            return [f"--{self.name}"] if self.value == "true" else [f"--{self.name}={self.value}"]
        return [f"--{self.name}", self.value]


@dataclass(frozen=True)
class Invocation:
    forwarded: Tuple[ForwardedArg, ...]
    path: Tuple[str, ...]
    args: Tuple[str, ...] = ()

    def argv(self) -> List[str]:
        out: List[str] = []
        for arg in self.forwarded:
            out.extend(arg.tokens())
        return out + list(self.path) + list(self.args)


def forwarded_global_args(ctx) -> Tuple[ForwardedArg, ...]:
    """Explicitly-set global flags, as canonical names (aliases fold in)."""
    forwarded = []
    if ctx.global_flags is not None:
        for flag in ctx.global_flags.explicit():
            if flag.name == "help":
                continue
            if flag.kind == BOOL:
                forwarded.append(ForwardedArg(flag.name, "true" if flag.value else "false", True))
            else:
                forwarded.append(ForwardedArg(flag.name, str(flag.value)))
    if ctx.environ.get(config.ENV_AGENT) and not any(a.name == "agent" for a in forwarded):
        forwarded.append(ForwardedArg("agent", "true", True))
    return tuple(forwarded)


def _route(index, noun, try_hint):
    route = index.get(noun.strip().lower())
    if route is None:
        raise CliError(f'[ERROR] unknown resource "{noun}". Try: {try_hint}')
    return route


def plan_list(ctx, noun: str, args: Sequence[str] = ()) -> Invocation:
    route = _route(_LIST_NOUNS, noun, _LIST_TRY)
    return Invocation(forwarded_global_args(ctx), route.path, tuple(args))


def plan_create(ctx, noun: str, args: Sequence[str] = ()) -> Invocation:
    route = _route(_CREATE_NOUNS, noun, _CREATE_TRY)
    return Invocation(forwarded_global_args(ctx), route.path, tuple(args))


def plan_cancel(ctx, raw_id: str, args: Sequence[str] = ()) -> Invocation:
    path, resource_id = cancel_target_for_id(raw_id)
    return Invocation(forwarded_global_args(ctx), tuple(path), (resource_id, *args))


def dispatch(ctx, invocation: Invocation) -> None:
    from awx_cli.cli import execute_invocation

    execute_invocation(ctx, invocation)


# ---------------------------------------------------------------------------
# Router commands
# ---------------------------------------------------------------------------


def _router(name, aliases, help, planner, positional):
    def run(ctx, args):
        dispatch(ctx, planner(ctx, args[0], args[1:]))

    return Command(
        name,
        run,
        help=help,
        aliases=aliases,
        positionals=[(positional, None)],
        passthrough=True,
    )


def build_list_router():
    return _router(
        "list", ["ls"], "List any resource: airwallex list transfers", plan_list, "resource"
    )


def build_create_router():
    return _router(
        "create",
        ["new", "add"],
        "Create any resource: airwallex create transfer --data ...",
        plan_create,
        "resource",
    )


def build_cancel_router():
    return _router(
        "cancel", [], "Cancel a transfer, dispute or subscription by ID", plan_cancel, "id"
    )
