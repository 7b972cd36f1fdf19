"""
Payments resources: transfers, beneficiaries, payers, global accounts,
balances, deposits, linked accounts, payment links, webhooks, reports, FX.
"""

from awx_cli._utils import _date_param, _normalize_enum
from awx_cli.builders import Command, PaginationMode
from awx_cli.flags import FlagSet
from awx_cli.formatters import emit, format_money, is_structured, render_kv, render_list
from awx_cli.resources import (
    AMOUNT,
    CURRENCY,
    PLAIN,
    STATUS,
    cancel_cmd,
    create_cmd,
    cursor_fetch,
    delete_cmd,
    first,
    get_cmd,
    group,
    list_cmd,
    money,
    nested,
    paged_fetch,
    update_cmd,
)

TRANSFER_STATUSES = {
    "NEW", "SCHEDULED", "OVERDUE", "PROCESSING", "SENT", "PAID", "FAILED",
    "CANCELLED", "SUSPENDED", "IN_APPROVAL", "APPROVAL_REJECTED", "APPROVAL_RECALLED",
}


def _date_flags(flags):
    flags.add_string("from", "", "Created on or after (YYYY-MM-DD)")
    flags.add_string("to", "", "Created on or before (YYYY-MM-DD)")


_DATE_PARAMS = {
    "from": ("from_created_at", _date_param),
    "to": ("to_created_at", lambda v: _date_param(v, end_of_day=True)),
}


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------


def _transfer_flags(flags):
    flags.add_string("status", "", "Filter by status (PAID, FAILED, ...)", shorthand="s")
    _date_flags(flags)


def _transfers():
    params = {"status": ("status", lambda v: _normalize_enum(v, TRANSFER_STATUSES, "status"))}
    params.update(_DATE_PARAMS)
    return group(
        "transfers",
        "Payouts to beneficiaries",
        aliases=("transfer", "tfr", "payouts", "payout"),
        children=[
            list_cmd(
                cursor_fetch("/api/v1/transfers", params),
                ["TRANSFER_ID", "AMOUNT", "CURRENCY", "STATUS", "REFERENCE"],
                lambda t: [t.get("id"), money(t, "transfer_amount"), t.get("transfer_currency"),
                           t.get("status"), t.get("reference")],
                [PLAIN, AMOUNT, CURRENCY, STATUS, PLAIN],
                "No transfers found",
                "List transfers",
                setup_flags=_transfer_flags,
                pagination=PaginationMode.CURSOR,
                id_of=lambda t: t.get("id", ""),
            ),
            get_cmd(
                "/api/v1/transfers/{id}",
                ["id", "status", "transfer_amount", "transfer_currency", "source_amount",
                 "source_currency", "beneficiary_id", "transfer_method", "reference", "reason",
                 "created_at"],
                "Get transfer details",
                always=("id", "status"),
            ),
            create_cmd("/api/v1/transfers/create", "transfer"),
            cancel_cmd("/api/v1/transfers/{id}/cancel", "transfer"),
        ],
    )


# ---------------------------------------------------------------------------
# Beneficiaries and payers
# ---------------------------------------------------------------------------


def _beneficiary_name(b):
    details = b.get("beneficiary") or {}
    name = details.get("company_name") or " ".join(
        p for p in (details.get("first_name"), details.get("last_name")) if p
    )
    return name or nested(details, "bank_details", "account_name") or b.get("nickname", "")


def _beneficiaries():
    return group(
        "beneficiaries",
        "Saved payout recipients",
        aliases=("beneficiary", "ben"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/beneficiaries"),
                ["BENEFICIARY_ID", "TYPE", "NAME", "BANK_COUNTRY", "METHODS"],
                lambda b: [b.get("id"), nested(b, "beneficiary", "entity_type"),
                           _beneficiary_name(b),
                           nested(b, "beneficiary", "bank_details", "bank_country_code"),
                           ",".join(b.get("transfer_methods") or [])],
                [PLAIN, PLAIN, PLAIN, PLAIN, PLAIN],
                "No beneficiaries found",
                "List beneficiaries",
            ),
            get_cmd(
                "/api/v1/beneficiaries/{id}",
                ["id", "nickname", ("entity_type", "beneficiary.entity_type"),
                 ("bank_country", "beneficiary.bank_details.bank_country_code"),
                 ("bank_name", "beneficiary.bank_details.bank_name"),
                 ("account_name", "beneficiary.bank_details.account_name"),
                 "transfer_methods"],
                "Get beneficiary details",
            ),
            create_cmd("/api/v1/beneficiaries/create", "beneficiary"),
            update_cmd("/api/v1/beneficiaries/{id}/update", "beneficiary"),
            delete_cmd("/api/v1/beneficiaries/{id}/delete", "beneficiary"),
        ],
    )


def _payers():
    return group(
        "payers",
        "Payers for transfers made on behalf of others",
        aliases=("payer",),
        children=[
            list_cmd(
                paged_fetch("/api/v1/payers"),
                ["PAYER_ID", "ENTITY_TYPE", "NAME", "STATUS"],
                lambda p: [first(p, "payer_id", "id"), p.get("entity_type"), p.get("name"),
                           p.get("status")],
                [PLAIN, PLAIN, PLAIN, STATUS],
                "No payers found",
                "List payers",
            ),
            get_cmd(
                "/api/v1/payers/{id}",
                ["id", "entity_type", "name", "status", "created_at"],
                "Get payer details",
            ),
            create_cmd("/api/v1/payers/create", "payer"),
            update_cmd("/api/v1/payers/update/{id}", "payer"),
            delete_cmd("/api/v1/payers/delete/{id}", "payer"),
        ],
    )


# ---------------------------------------------------------------------------
# Accounts, balances, deposits, linked accounts
# ---------------------------------------------------------------------------


def _accounts():
    return group(
        "accounts",
        "Global accounts (receiving bank details)",
        aliases=("account", "ga"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/global_accounts"),
                ["ACCOUNT_ID", "NAME", "CURRENCY", "COUNTRY", "STATUS"],
                lambda a: [a.get("id"), a.get("account_name"), a.get("currency"),
                           a.get("country_code"), a.get("status")],
                [PLAIN, PLAIN, CURRENCY, PLAIN, STATUS],
                "No global accounts found",
                "List global accounts",
            ),
            get_cmd(
                "/api/v1/global_accounts/{id}",
                ["id", "account_name", "currency", "country_code", "status", "account_number",
                 "routing_code", "iban", "swift_code", "created_at"],
                "Get global account details",
                always=("id", "account_name", "currency", "country_code", "status", "created_at"),
            ),
        ],
    )


def _balances():
    flags = FlagSet("balances")
    flags.add_bool("non-zero", False, "Hide currencies with a zero balance")

    def run(ctx, args):
        items = ctx.client().get("/api/v1/balances/current") or []
        if flags.value("non-zero"):
            items = [b for b in items if format_money(b.get("total_amount")) not in ("", "0.00")]
        if is_structured(ctx):
            emit(ctx, items)
            return
        if not items:
            ctx.ui.line("No balances found")
            return
        render_list(
            ctx,
            ["CURRENCY", "AVAILABLE", "PENDING", "RESERVED", "TOTAL"],
            [[b.get("currency"), money(b, "available_amount"), money(b, "pending_amount"),
              money(b, "reserved_amount"), money(b, "total_amount")] for b in items],
            [CURRENCY, AMOUNT, AMOUNT, AMOUNT, AMOUNT],
        )

    return Command("balances", run, help="Current wallet balances", aliases=["balance", "bal"],
                   flags=flags)


def _deposits():
    return group(
        "deposits",
        "Incoming deposits",
        aliases=("deposit", "dep"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/deposits", _DATE_PARAMS),
                ["DEPOSIT_ID", "AMOUNT", "CURRENCY", "STATUS", "SOURCE", "CREATED"],
                lambda d: [d.get("id"), money(d, "amount"), d.get("currency"), d.get("status"),
                           d.get("source"), d.get("created_at")],
                [PLAIN, AMOUNT, CURRENCY, STATUS, PLAIN, PLAIN],
                "No deposits found",
                "List deposits",
                setup_flags=_date_flags,
            ),
            get_cmd(
                "/api/v1/deposits/{id}",
                ["id", "amount", "currency", "status", "source", "reference", "linked_account_id",
                 "global_account_id", "created_at", "settled_at"],
                "Get deposit details",
            ),
        ],
    )


def _linked_accounts():
    return group(
        "linked-accounts",
        "External bank accounts linked for direct debit",
        aliases=("linked-account", "la"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/linked_accounts"),
                ["ID", "TYPE", "NAME", "CURRENCY", "STATUS"],
                lambda a: [a.get("id"), a.get("type"), a.get("account_name"), a.get("currency"),
                           a.get("status")],
                [PLAIN, PLAIN, PLAIN, CURRENCY, STATUS],
                "No linked accounts found",
                "List linked accounts",
            ),
            get_cmd(
                "/api/v1/linked_accounts/{id}",
                ["id", "type", "account_name", "currency", "status", "created_at"],
                "Get linked account details",
            ),
            create_cmd("/api/v1/linked_accounts/create", "linked account"),
        ],
    )


# ---------------------------------------------------------------------------
# Payment links, webhooks, reports
# ---------------------------------------------------------------------------


def _payment_links():
    return group(
        "payment-links",
        "Hosted payment links",
        aliases=("payment-link", "pl"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/pa/payment_links"),
                ["ID", "AMOUNT", "CURRENCY", "STATUS", "URL"],
                lambda p: [p.get("id"), money(p, "amount"), p.get("currency"), p.get("status"),
                           p.get("url")],
                [PLAIN, AMOUNT, CURRENCY, STATUS, PLAIN],
                "No payment links found",
                "List payment links",
            ),
            get_cmd(
                "/api/v1/pa/payment_links/{id}",
                ["id", "url", "amount", "currency", "status", "title", "description", "created_at"],
                "Get payment link details",
            ),
            create_cmd("/api/v1/pa/payment_links/create", "payment link"),
        ],
    )


def _webhooks():
    return group(
        "webhooks",
        "Webhook subscriptions",
        aliases=("webhook", "wh"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/webhooks"),
                ["ID", "URL", "EVENTS", "STATUS"],
                lambda w: [w.get("id"), w.get("url"), ",".join(w.get("events") or []),
                           w.get("status")],
                [PLAIN, PLAIN, PLAIN, STATUS],
                "No webhooks found",
                "List webhooks",
            ),
            get_cmd(
                "/api/v1/webhooks/{id}",
                ["id", "url", "events", "status", "created_at"],
                "Get webhook details",
            ),
            create_cmd("/api/v1/webhooks/create", "webhook"),
            delete_cmd("/api/v1/webhooks/{id}/delete", "webhook"),
        ],
    )


def _reports():
    return group(
        "reports",
        "Financial reports",
        aliases=("report",),
        children=[
            list_cmd(
                paged_fetch("/api/v1/finance/financial_reports"),
                ["REPORT_ID", "TYPE", "STATUS", "FORMAT", "FROM", "TO"],
                lambda r: [r.get("id"), r.get("type"), r.get("status"), r.get("file_format"),
                           r.get("from_date"), r.get("to_date")],
                [PLAIN, PLAIN, STATUS, PLAIN, PLAIN, PLAIN],
                "No reports found",
                "List financial reports",
            ),
            get_cmd(
                "/api/v1/finance/financial_reports/{id}",
                ["id", "type", "status", "file_format", "from_date", "to_date"],
                "Get report status",
            ),
            create_cmd("/api/v1/finance/financial_reports/create", "report"),
        ],
    )


# ---------------------------------------------------------------------------
# FX
# ---------------------------------------------------------------------------


def _fx_rates():
    flags = FlagSet("rates")
    flags.add_string("sell", "", "Currency to sell (e.g. USD)")
    flags.add_string("buy", "", "Currency to buy (e.g. EUR)")
    flags.mark_required("sell")
    flags.mark_required("buy")

    def run(ctx, args):
        sell, buy = flags.value("sell").upper(), flags.value("buy").upper()
        rate = ctx.client().get(
            "/api/v1/fx/rates/current",
            params={"sell_currency": sell, "buy_currency": buy},
        )
        if is_structured(ctx):
            emit(ctx, rate)
            return
        pair = rate.get("currency_pair") or sell + buy
        render_kv(ctx, [(pair, rate.get("rate"))])

    return Command("rates", run, help="Current indicative FX rate", aliases=["rate"], flags=flags)


def _fx():
    quotes = group(
        "quotes",
        "Locked FX quotes",
        aliases=("quote",),
        children=[
            get_cmd(
                "/api/v1/fx/quotes/{id}",
                ["id", "sell_currency", "buy_currency", "client_rate", "sell_amount", "buy_amount",
                 "valid_from_at", "valid_to_at"],
                "Get quote details",
            ),
            create_cmd("/api/v1/fx/quotes/create", "quote", id_keys=("quote_id", "id")),
        ],
    )
    conversions = group(
        "conversions",
        "Currency conversions",
        aliases=("conversion", "conv"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/fx/conversions"),
                ["CONVERSION_ID", "SELL", "SELL_AMOUNT", "BUY", "BUY_AMOUNT", "STATUS"],
                lambda c: [first(c, "conversion_id", "id"), c.get("sell_currency"),
                           money(c, "sell_amount"), c.get("buy_currency"), money(c, "buy_amount"),
                           c.get("status")],
                [PLAIN, CURRENCY, AMOUNT, CURRENCY, AMOUNT, STATUS],
                "No conversions found",
                "List conversions",
            ),
            get_cmd(
                "/api/v1/fx/conversions/{id}",
                ["id", "status", "sell_currency", "sell_amount", "buy_currency", "buy_amount",
                 "client_rate", "conversion_date", "created_at"],
                "Get conversion details",
            ),
            create_cmd("/api/v1/fx/conversions/create", "conversion",
                       id_keys=("conversion_id", "id")),
        ],
    )
    return group("fx", "Foreign exchange", children=[_fx_rates(), quotes, conversions])


def build_groups():
    return [
        _transfers(),
        _beneficiaries(),
        _payers(),
        _accounts(),
        _balances(),
        _deposits(),
        _linked_accounts(),
        _payment_links(),
        _webhooks(),
        _reports(),
        _fx(),
    ]
