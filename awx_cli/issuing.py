"""Issuing resources: cards, cardholders, transactions, authorizations, disputes."""

from awx_cli._utils import _date_param, _normalize_enum
from awx_cli.builders import PayloadConfig, build_payload_command
from awx_cli.resources import (
    AMOUNT,
    CURRENCY,
    PLAIN,
    STATUS,
    cancel_cmd,
    create_cmd,
    first,
    get_cmd,
    group,
    list_cmd,
    money,
    nested,
    paged_fetch,
    update_cmd,
)

CARD_STATUSES = {"PENDING", "ACTIVE", "INACTIVE", "BLOCKED", "LOST", "STOLEN", "CLOSED", "FAILED"}


def _masked(number):
    number = number or ""
    return f"****{number[-4:]}" if len(number) >= 4 else number


def _card_flags(flags):
    flags.add_string("status", "", "Filter by card status", shorthand="s")
    flags.add_string("cardholder-id", "", "Only cards of this cardholder")


def _cards():
    params = {
        "status": ("card_status", lambda v: _normalize_enum(v, CARD_STATUSES, "status")),
        "cardholder-id": ("cardholder_id", None),
    }

    def activate():
        return build_payload_command(
            PayloadConfig(
                name="activate",
                help="Activate a physical card",
                run=lambda ctx, client, args, payload: client.post(
                    f"/api/v1/issuing/cards/{args[0]}/activate", payload
                ),
                args=("id",),
                allow_empty=True,
                success_message=lambda r: "Card activated",
            )
        )

    return group(
        "cards",
        "Issued cards",
        aliases=("card",),
        children=[
            list_cmd(
                paged_fetch("/api/v1/issuing/cards", params),
                ["CARD_ID", "NUMBER", "NICKNAME", "CARDHOLDER_ID", "BRAND", "STATUS"],
                lambda c: [first(c, "card_id", "id"), _masked(c.get("card_number")),
                           c.get("nick_name"), c.get("cardholder_id"), c.get("brand"),
                           c.get("card_status")],
                [PLAIN, PLAIN, PLAIN, PLAIN, PLAIN, STATUS],
                "No cards found",
                "List cards",
                setup_flags=_card_flags,
            ),
            get_cmd(
                "/api/v1/issuing/cards/{id}",
                ["card_id", "card_number", "card_status", "nick_name", "cardholder_id", "brand",
                 "form_factor", "created_at"],
                "Get card details",
                always=("card_id", "card_status"),
            ),
            create_cmd("/api/v1/issuing/cards/create", "card", id_keys=("card_id", "id")),
            update_cmd("/api/v1/issuing/cards/{id}/update", "card"),
            activate(),
        ],
    )


def _cardholders():
    return group(
        "cardholders",
        "People and businesses that hold cards",
        aliases=("cardholder",),
        children=[
            list_cmd(
                paged_fetch("/api/v1/issuing/cardholders"),
                ["CARDHOLDER_ID", "TYPE", "NAME", "EMAIL", "STATUS"],
                lambda h: [first(h, "cardholder_id", "id"), h.get("type"),
                           " ".join(p for p in (h.get("first_name"), h.get("last_name")) if p)
                           or nested(h, "individual", "name", "first_name"),
                           h.get("email"), h.get("status")],
                [PLAIN, PLAIN, PLAIN, PLAIN, STATUS],
                "No cardholders found",
                "List cardholders",
            ),
            get_cmd(
                "/api/v1/issuing/cardholders/{id}",
                ["cardholder_id", "type", "email", "first_name", "last_name", "status",
                 "created_at"],
                "Get cardholder details",
                always=("cardholder_id", "status"),
            ),
            create_cmd("/api/v1/issuing/cardholders/create", "cardholder",
                       id_keys=("cardholder_id", "id")),
            update_cmd("/api/v1/issuing/cardholders/{id}/update", "cardholder"),
        ],
    )


def _transaction_flags(flags):
    flags.add_string("card-id", "", "Only transactions on this card")
    flags.add_string("from", "", "On or after (YYYY-MM-DD)")
    flags.add_string("to", "", "On or before (YYYY-MM-DD)")


_TRANSACTION_PARAMS = {
    "card-id": ("card_id", None),
    "from": ("from_created_at", _date_param),
    "to": ("to_created_at", lambda v: _date_param(v, end_of_day=True)),
}


def _transactions():
    return group(
        "transactions",
        "Card transactions",
        aliases=("transaction", "txn"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/issuing/transactions", _TRANSACTION_PARAMS),
                ["TRANSACTION_ID", "DATE", "MERCHANT", "AMOUNT", "CURRENCY", "STATUS"],
                lambda t: [first(t, "transaction_id", "id"), t.get("transaction_date"),
                           nested(t, "merchant", "name"), money(t, "transaction_amount"),
                           t.get("transaction_currency"), t.get("status")],
                [PLAIN, PLAIN, PLAIN, AMOUNT, CURRENCY, STATUS],
                "No transactions found",
                "List card transactions",
                setup_flags=_transaction_flags,
            ),
            get_cmd(
                "/api/v1/issuing/transactions/{id}",
                ["transaction_id", "card_id", "card_nickname", "transaction_type",
                 "transaction_amount", "transaction_currency", "billing_amount",
                 "billing_currency", ("merchant", "merchant.name"), "status",
                 "transaction_date"],
                "Get transaction details",
                always=("transaction_id", "status"),
            ),
        ],
    )


def _authorizations():
    return group(
        "authorizations",
        "Card authorizations",
        aliases=("authorization", "auths"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/issuing/authorizations", _TRANSACTION_PARAMS),
                ["AUTHORIZATION_ID", "CARD_ID", "MERCHANT", "AMOUNT", "CURRENCY", "STATUS"],
                lambda a: [first(a, "authorization_id", "id"), a.get("card_id"),
                           nested(a, "merchant", "name"), money(a, "amount"), a.get("currency"),
                           a.get("status")],
                [PLAIN, PLAIN, PLAIN, AMOUNT, CURRENCY, STATUS],
                "No authorizations found",
                "List card authorizations",
                setup_flags=_transaction_flags,
            ),
            get_cmd(
                "/api/v1/issuing/authorizations/{id}",
                ["authorization_id", "transaction_id", "card_id", "cardholder_id",
                 ("merchant", "merchant.name"), "amount", "currency", "status", "created_at"],
                "Get authorization details",
                always=("authorization_id", "status"),
            ),
        ],
    )


def _disputes():
    return group(
        "disputes",
        "Card transaction disputes",
        aliases=("dispute",),
        children=[
            list_cmd(
                paged_fetch("/api/v1/issuing/transaction_disputes"),
                ["DISPUTE_ID", "TRANSACTION_ID", "REASON", "AMOUNT", "CURRENCY", "STATUS"],
                lambda d: [first(d, "dispute_id", "id"), d.get("transaction_id"), d.get("reason"),
                           money(d, "amount"), d.get("currency"), d.get("status")],
                [PLAIN, PLAIN, PLAIN, AMOUNT, CURRENCY, STATUS],
                "No disputes found",
                "List disputes",
            ),
            get_cmd(
                "/api/v1/issuing/transaction_disputes/{id}",
                ["id", "transaction_id", "reason", "amount", "currency", "status", "created_at"],
                "Get dispute details",
                always=("id", "status"),
            ),
            create_cmd("/api/v1/issuing/transaction_disputes/create", "dispute",
                       id_keys=("dispute_id", "id")),
            update_cmd("/api/v1/issuing/transaction_disputes/{id}/update", "dispute"),
            cancel_cmd("/api/v1/issuing/transaction_disputes/{id}/cancel", "dispute"),
        ],
    )


def build_groups():
    return [_cards(), _cardholders(), _transactions(), _authorizations(), _disputes()]
