"""Tests for routers.py — list / create / cancel routing and flag forwarding."""

import enum
import io
import json

import pytest

from awx_cli.cli import build_global_flags, build_tree, execute
from awx_cli.exceptions import CliError, CommandConstructionError, UnknownIdentifierError
from awx_cli.ids import CompositeKind, ResourceKind
from awx_cli.routers import (
    CreateRoute,
    ForwardedArg,
    Invocation,
    ListRoute,
    _noun_index,
    forwarded_global_args,
    plan_cancel,
    plan_create,
    plan_list,
)


def _global_flags(*argv):
    flags = build_global_flags({})
    assert flags.extract(list(argv)) == []
    return flags


def _resolve(path):
    node = build_tree()
    for part in path:
        node = node.child(part)
        assert node is not None, f"no command for {' '.join(path)}"
    return node


# ---------------------------------------------------------------------------
# Forwarding
# ---------------------------------------------------------------------------


class TestForwardedGlobalArgs:
    def test_only_explicit_flags(self, make_ctx):
        ctx = make_ctx(global_flags=_global_flags("--account", "acct_1"))
        assert forwarded_global_args(ctx) == (ForwardedArg("account", "acct_1"),)

    def test_nothing_set(self, make_ctx):
        assert forwarded_global_args(make_ctx(global_flags=_global_flags())) == ()

    def test_bool_tokens(self, make_ctx):
        ctx = make_ctx(global_flags=_global_flags("--debug=false", "--yes"))
        tokens = [t for arg in forwarded_global_args(ctx) for t in arg.tokens()]
        assert tokens == ["--debug=false", "--yes"]

    def test_alias_forwarded_as_canonical(self, make_ctx):
        ctx = make_ctx(global_flags=_global_flags("--force"))
        assert forwarded_global_args(ctx) == (ForwardedArg("yes", "true", True),)

    def test_sorted_by_name(self, make_ctx):
        ctx = make_ctx(global_flags=_global_flags("-o", "json", "--account", "a", "--debug"))
        assert [a.name for a in forwarded_global_args(ctx)] == ["account", "debug", "output"]

    def test_agent_env_appended(self, make_ctx):
        ctx = make_ctx(global_flags=_global_flags(), environ={"AWX_AGENT": "1"})
        assert forwarded_global_args(ctx) == (ForwardedArg("agent", "true", True),)

    def test_agent_not_duplicated(self, make_ctx):
        ctx = make_ctx(global_flags=_global_flags("--agent=false"), environ={"AWX_AGENT": "1"})
        assert forwarded_global_args(ctx) == (ForwardedArg("agent", "false", True),)


class TestInvocation:
    def test_argv_order(self):
        inv = Invocation(
            (ForwardedArg("output", "json"), ForwardedArg("debug", "true", True)),
            ("transfers", "create"),
            ("--data", "{}"),
        )
        assert inv.argv() == ["--output", "json", "--debug", "transfers", "create", "--data", "{}"]


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


class TestPlanning:
    def test_create_payout_forwards_output(self, make_ctx):
        ctx = make_ctx(global_flags=_global_flags("--output=json"), output="json")
        inv = plan_create(ctx, "payout")
        assert inv.path == ("transfers", "create")
        assert inv.argv() == ["--output", "json", "transfers", "create"]

    def test_list_passes_args_through(self, make_ctx):
        inv = plan_list(make_ctx(global_flags=_global_flags()), "Invoices", ["--ps", "5"])
        assert inv.path == ("billing", "invoices", "list")
        assert inv.args == ("--ps", "5")

    def test_unknown_noun(self, make_ctx):
        with pytest.raises(CliError, match='unknown resource "widgets"'):
            plan_list(make_ctx(), "widgets")

    def test_cancel_puts_id_first(self, make_ctx):
        inv = plan_cancel(make_ctx(), "https://x/subscriptions/sub_1", ["--data", "{}"])
        assert inv.path == ("billing", "subscriptions", "cancel")
        assert inv.args == ("sub_1", "--data", "{}")

    def test_cancel_unsupported(self, make_ctx):
        with pytest.raises(UnknownIdentifierError):
            plan_cancel(make_ctx(), "card_1")

    def test_noun_collision_detected(self):
        class Clash(enum.Enum):
            A = ("a list", ("x",))
            B = ("b list", ("x",))

            def __init__(self, path, nouns):
                self.nouns = nouns

        with pytest.raises(CommandConstructionError, match="'x' maps to both A and B"):
            _noun_index(Clash)


class TestRoutesResolve:
    @pytest.mark.parametrize("route", list(ListRoute) + list(CreateRoute), ids=lambda r: r.name)
    def test_router_paths_exist(self, route):
        _resolve(route.path)

    @pytest.mark.parametrize("kind", list(ResourceKind) + list(CompositeKind), ids=lambda k: k.name)
    def test_get_paths_exist(self, kind):
        _resolve(kind.get_path)

    @pytest.mark.parametrize("kind", [k for k in ResourceKind if k.cancelable], ids=lambda k: k.name)
    def test_cancel_paths_exist(self, kind):
        _resolve(kind.cancel_path.split())


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestRoutedExecution:
    def test_create_payout_json(self, run_cli, fake_client):
        fake_client.responses[("POST", "/api/v1/transfers/create")] = {"id": "tfr_9"}
        code, out, err = run_cli("create", "payout", "--output=json", "--data", '{"amount": 1.50}')
        assert code == 0
        assert json.loads(out) == {"id": "tfr_9"}
        method, path, kwargs = fake_client.calls[0]
        assert (method, path) == ("POST", "/api/v1/transfers/create")
        assert str(kwargs["body"]["amount"]) == "1.50"

    def test_list_forwards_local_flags(self, run_cli, fake_client):
        code, out, _ = run_cli("list", "transfers", "--status", "paid", "-o", "json")
        assert code == 0
        assert json.loads(out) == {"items": [], "has_more": False}
        assert fake_client.calls == [
            ("CURSOR", "/api/v1/transfers", {"limit": 20, "cursor": "", "params": {"status": "PAID"}})
        ]

    def test_ls_alias(self, run_cli, fake_client):
        code, out, _ = run_cli("ls", "cards")
        assert code == 0
        assert out == "No cards found\n"
        assert fake_client.calls[0][:2] == ("LIST", "/api/v1/issuing/cards")

    def test_cancel_with_yes(self, run_cli, fake_client):
        code, _, err = run_cli("cancel", "tfr_1", "--yes")
        assert code == 0
        assert fake_client.calls == [("POST", "/api/v1/transfers/tfr_1/cancel", {"body": None})]
        assert err == "Cancelled transfer: tfr_1\n"

    def test_cancel_needs_terminal(self, run_cli, fake_client):
        code, _, err = run_cli("cancel", "tfr_1")
        assert code == 1
        assert "not a terminal" in err
        assert fake_client.calls == []

    def test_cancel_unknown(self, run_cli):
        code, _, err = run_cli("cancel", "ben_1", "-o", "json")
        assert code == 1
        payload = json.loads(err)
        assert payload["error"]["type"] == "unknown_id"

    def test_client_built_once(self, fake_client):
        built = []

        def factory(ctx):
            built.append(ctx)
            return fake_client

        code = execute(
            ["list", "transfers"],
            stdin=io.StringIO(),
            stdout=io.StringIO(),
            stderr=io.StringIO(),
            environ={},
            client_factory=factory,
        )
        assert code == 0
        assert len(built) == 1
