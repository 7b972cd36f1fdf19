"""Billing resources: customers, products, prices, invoices, subscriptions."""

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
    paged_fetch,
    update_cmd,
)


def _customer_flags(flags):
    flags.add_string("customer-id", "", "Only records of this billing customer")
    flags.add_string("status", "", "Filter by status", shorthand="s")


_CUSTOMER_PARAMS = {
    "customer-id": ("customer_id", None),
    "status": ("status", lambda v: v.upper()),
}


def _customers():
    return group(
        "customers",
        "Billing customers",
        aliases=("customer", "cus"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/billing_customers"),
                ["CUSTOMER_ID", "NAME", "EMAIL", "STATUS"],
                lambda c: [first(c, "id", "customer_id"), c.get("name"), c.get("email"),
                           c.get("status")],
                [PLAIN, PLAIN, PLAIN, STATUS],
                "No customers found",
                "List billing customers",
            ),
            get_cmd(
                "/api/v1/billing_customers/{id}",
                ["id", "name", "email", "status", "created_at"],
                "Get billing customer details",
            ),
            create_cmd("/api/v1/billing_customers/create", "customer"),
            update_cmd("/api/v1/billing_customers/{id}/update", "customer"),
        ],
    )


def _products():
    return group(
        "products",
        "Billing products",
        aliases=("product", "prod"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/products"),
                ["PRODUCT_ID", "NAME", "STATUS", "DESCRIPTION"],
                lambda p: [first(p, "id", "product_id"), p.get("name"), p.get("status"),
                           p.get("description")],
                [PLAIN, PLAIN, STATUS, PLAIN],
                "No products found",
                "List billing products",
            ),
            get_cmd(
                "/api/v1/products/{id}",
                ["id", "name", "description", "status", "created_at"],
                "Get billing product details",
            ),
            create_cmd("/api/v1/products/create", "product"),
            update_cmd("/api/v1/products/{id}/update", "product"),
        ],
    )


def _prices():
    return group(
        "prices",
        "Billing prices",
        aliases=("price",),
        children=[
            list_cmd(
                paged_fetch("/api/v1/prices"),
                ["PRICE_ID", "PRODUCT_ID", "UNIT_AMOUNT", "CURRENCY", "STATUS"],
                lambda p: [first(p, "id", "price_id"), p.get("product_id"),
                           money(p, "unit_amount"), p.get("currency"), p.get("status")],
                [PLAIN, PLAIN, AMOUNT, CURRENCY, STATUS],
                "No prices found",
                "List billing prices",
            ),
            get_cmd(
                "/api/v1/prices/{id}",
                ["id", "product_id", "unit_amount", "currency", "status", "created_at"],
                "Get billing price details",
            ),
            create_cmd("/api/v1/prices/create", "price"),
            update_cmd("/api/v1/prices/{id}/update", "price"),
        ],
    )


def _items(parent, parent_arg, path, child_hint):
    """``<parent> items list|get`` for invoice and subscription line items."""
    return group(
        "items",
        f"{parent.capitalize()} line items",
        aliases=("item",),
        children=[
            list_cmd(
                paged_fetch(path),
                ["ITEM_ID", "DESCRIPTION", "QUANTITY", "AMOUNT", "CURRENCY"],
                lambda i: [i.get("id"), i.get("description") or i.get("price_id"),
                           i.get("quantity"), money(i, "amount"), i.get("currency")],
                [PLAIN, PLAIN, PLAIN, AMOUNT, CURRENCY],
                f"No {parent} items found",
                f"List {parent} line items",
                args=(parent_arg,),
            ),
            get_cmd(
                path + "/{item_id}",
                ["id", "description", "price_id", "quantity", "amount", "currency"],
                f"Get a {parent} line item ({child_hint})",
                args=(parent_arg, "item_id"),
            ),
        ],
    )


def _invoices():
    return group(
        "invoices",
        "Billing invoices",
        aliases=("invoice", "inv"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/invoices", _CUSTOMER_PARAMS),
                ["INVOICE_ID", "NUMBER", "AMOUNT", "CURRENCY", "STATUS", "DUE"],
                lambda i: [first(i, "id", "invoice_id"), i.get("invoice_number"),
                           money(i, "amount"), i.get("currency"), i.get("status"),
                           i.get("due_date")],
                [PLAIN, PLAIN, AMOUNT, CURRENCY, STATUS, PLAIN],
                "No invoices found",
                "List invoices",
                setup_flags=_customer_flags,
            ),
            get_cmd(
                "/api/v1/invoices/{id}",
                ["id", "invoice_number", "status", "amount", "currency", "customer_id",
                 "due_date", "created_at"],
                "Get invoice details",
                always=("id", "status"),
            ),
            create_cmd("/api/v1/invoices/create", "invoice"),
            _items("invoice", "invoice_id", "/api/v1/invoices/{id}/items", "item_*"),
        ],
    )


def _subscriptions():
    return group(
        "subscriptions",
        "Billing subscriptions",
        aliases=("subscription", "sub"),
        children=[
            list_cmd(
                paged_fetch("/api/v1/subscriptions", _CUSTOMER_PARAMS),
                ["SUBSCRIPTION_ID", "CUSTOMER_ID", "PRICE_ID", "STATUS", "CREATED"],
                lambda s: [first(s, "id", "subscription_id"), s.get("customer_id"),
                           s.get("price_id"), s.get("status"), s.get("created_at")],
                [PLAIN, PLAIN, PLAIN, STATUS, PLAIN],
                "No subscriptions found",
                "List subscriptions",
                setup_flags=_customer_flags,
            ),
            get_cmd(
                "/api/v1/subscriptions/{id}",
                ["id", "customer_id", "price_id", "status", "current_period_end_at",
                 "created_at"],
                "Get subscription details",
                always=("id", "status"),
            ),
            create_cmd("/api/v1/subscriptions/create", "subscription"),
            update_cmd("/api/v1/subscriptions/{id}/update", "subscription"),
            cancel_cmd("/api/v1/subscriptions/{id}/cancel", "subscription"),
            _items("subscription", "subscription_id", "/api/v1/subscriptions/{id}/items", "si_*"),
        ],
    )


def build_groups():
    return [
        group(
            "billing",
            "Customers, products, prices, invoices and subscriptions",
            aliases=("bill",),
            children=[_customers(), _products(), _prices(), _invoices(), _subscriptions()],
        )
    ]
