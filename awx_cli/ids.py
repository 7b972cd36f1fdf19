"""
Resource identifier taxonomy.

Every ID the CLI accepts maps to exactly one ResourceKind (or CompositeKind
for ``parent:child`` IDs). Prefix matching always tries the longest prefix
first, so overlapping prefixes such as ``card_`` and ``card_holder_`` resolve
to the more specific kind.
"""

from __future__ import annotations

import enum
from typing import Dict, List, Optional, Tuple

from awx_cli.exceptions import CommandConstructionError, UnknownIdentifierError


def normalize_id_arg(raw: str) -> str:
    """Accept a bare ID, or a URL/path ending in one."""
    value = (raw or "").strip()
    for sep in ("?", "#"):
        value = value.split(sep, 1)[0]
    value = value.rstrip("/")
    if "/" in value:
        value = value.rsplit("/", 1)[1]
    return value


class ResourceKind(enum.Enum):
    """(prefixes, command path, endpoint, cancel path)"""

    TRANSFER = (("tfr_",), "transfers", "/api/v1/transfers/{id}", "transfers cancel")
    BENEFICIARY = (("ben_",), "beneficiaries", "/api/v1/beneficiaries/{id}", None)
    WEBHOOK = (("wh_",), "webhooks", "/api/v1/webhooks/{id}", None)
    LINKED_ACCOUNT = (("la_",), "linked-accounts", "/api/v1/linked_accounts/{id}", None)
    DEPOSIT = (("dep_",), "deposits", "/api/v1/deposits/{id}", None)
    PAYMENT_LINK = (("pl_",), "payment-links", "/api/v1/pa/payment_links/{id}", None)
    FX_QUOTE = (("quote_",), "fx quotes", "/api/v1/fx/quotes/{id}", None)
    FX_CONVERSION = (("conv_",), "fx conversions", "/api/v1/fx/conversions/{id}", None)
    CARD = (("card_",), "cards", "/api/v1/issuing/cards/{id}", None)
    CARDHOLDER = (
        ("card_holder_", "cardholder_"),
        "cardholders",
        "/api/v1/issuing/cardholders/{id}",
        None,
    )
    TRANSACTION = (("txn_",), "transactions", "/api/v1/issuing/transactions/{id}", None)
    DISPUTE = (
        ("disp_",),
        "disputes",
        "/api/v1/issuing/transaction_disputes/{id}",
        "disputes cancel",
    )
    BILLING_PRODUCT = (("prod_",), "billing products", "/api/v1/products/{id}", None)
    BILLING_PRICE = (("price_",), "billing prices", "/api/v1/prices/{id}", None)
    BILLING_INVOICE = (("inv_",), "billing invoices", "/api/v1/invoices/{id}", None)
    BILLING_SUBSCRIPTION = (
        ("sub_",),
        "billing subscriptions",
        "/api/v1/subscriptions/{id}",
        "billing subscriptions cancel",
    )
    BILLING_CUSTOMER = (
        ("cus_", "cust_"),
        "billing customers",
        "/api/v1/billing_customers/{id}",
        None,
    )

    def __init__(self, prefixes, path, endpoint, cancel_path):
        self.prefixes = prefixes
        self.path = path
        self.endpoint = endpoint
        self.cancel_path = cancel_path

    @property
    def get_path(self) -> List[str]:
        return self.path.split() + ["get"]

    @property
    def cancelable(self) -> bool:
        return self.cancel_path is not None


class CompositeKind(enum.Enum):
    """(parent prefix, child hint, command path, endpoint)"""

    INVOICE_ITEM = (
        "inv_",
        "item_",
        "billing invoices items",
        "/api/v1/invoices/{id}/items/{item_id}",
    )
    SUBSCRIPTION_ITEM = (
        "sub_",
        "si_",
        "billing subscriptions items",
        "/api/v1/subscriptions/{id}/items/{item_id}",
    )

    def __init__(self, prefix, child_prefix, path, endpoint):
        self.prefix = prefix
        self.child_prefix = child_prefix
        self.path = path
        self.endpoint = endpoint

    @property
    def get_path(self) -> List[str]:
        return self.path.split() + ["get"]


def _build_prefix_table() -> List[Tuple[str, ResourceKind]]:
    seen: Dict[str, ResourceKind] = {}
    for kind in ResourceKind:
        for prefix in kind.prefixes:
            if prefix in seen:
                raise CommandConstructionError(
                    f"id prefix {prefix!r} claimed by both {seen[prefix].name} and {kind.name}"
                )
            seen[prefix] = kind
    return sorted(seen.items(), key=lambda pair: (-len(pair[0]), pair[0]))


_PREFIX_TABLE = _build_prefix_table()


def supported_prefixes() -> List[str]:
    """All simple ID prefixes in declaration order."""
    return [p for kind in ResourceKind for p in kind.prefixes]


def classify_id(resource_id: str) -> Optional[ResourceKind]:
    """Longest-prefix match; None when no kind claims the ID."""
    for prefix, kind in _PREFIX_TABLE:
        if resource_id.startswith(prefix):
            return kind
    return None


def resolve_id(raw: str) -> ResourceKind:
    resource_id = normalize_id_arg(raw)
    kind = classify_id(resource_id)
    if kind is None:
        raise UnknownIdentifierError(
            f'[ERROR] unknown id prefix for "{resource_id}" '
            f"(supported: {', '.join(supported_prefixes())})"
        )
    return kind


def split_composite(raw: str) -> Optional[Tuple[str, str]]:
    """Split ``parent:child`` on the first colon, or None for a simple ID."""
    value = (raw or "").strip()
    if ":" not in value:
        return None
    parent, child = value.split(":", 1)
    return normalize_id_arg(parent), normalize_id_arg(child)


def resolve_composite(raw: str) -> Tuple[CompositeKind, str, str]:
    parts = split_composite(raw)
    if parts is not None:
        parent, child = parts
        if parent and child:
            for kind in CompositeKind:
                if parent.startswith(kind.prefix):
                    return kind, parent, child
    raise UnknownIdentifierError(
        f'[ERROR] unknown composite id "{raw.strip()}" (expected inv_*:item_* or sub_*:si_*)'
    )


def cancel_target_for_id(raw: str) -> Tuple[List[str], str]:
    """Canonical cancel path and normalized ID for a cancelable resource."""
    resource_id = normalize_id_arg(raw)
    kind = classify_id(resource_id)
    if kind is None or not kind.cancelable:
        supported = ", ".join(p for k in ResourceKind if k.cancelable for p in k.prefixes)
        raise UnknownIdentifierError(
            f'[ERROR] don\'t know how to cancel "{resource_id}" (supported: {supported})'
        )
    return kind.cancel_path.split(), resource_id
