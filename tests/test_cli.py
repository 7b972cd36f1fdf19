"""Tests for cli.py — global flags, dispatch, error envelopes, exit codes."""

import io
import json

import pytest

from awx_cli import config
from awx_cli.cli import (
    _emit_cli_error,
    _structured_fallback,
    build_global_flags,
    execute,
    options_from_flags,
)
from awx_cli.exceptions import ApiError, CliError, SetupError


def _options(*argv, environ=None):
    flags = build_global_flags(environ or {})
    flags.extract(list(argv))
    return options_from_flags(flags)


class TestOptions:
    def test_defaults(self):
        opts = _options()
        assert opts.output == "text"
        assert opts.structured is False
        assert opts.yes is False

    def test_ndjson_alias(self):
        assert _options("-o", "ndjson").output == "jsonl"

    def test_invalid_output(self):
        with pytest.raises(CliError, match="Invalid output 'yaml'"):
            _options("--output", "yaml")

    def test_invalid_color(self):
        with pytest.raises(CliError, match="expected one of: auto, always, never"):
            _options("--color", "pink")

    def test_agent_implies_json_and_no_input(self):
        opts = _options("--agent")
        assert opts.output == "json"
        assert opts.no_input is True

    def test_agent_keeps_explicit_text(self):
        assert _options("--agent", "-o", "text").output == "text"

    def test_query_implies_json(self):
        assert _options("--query", ".items[].id").output == "json"

    def test_env_defaults(self):
        opts = _options(environ={"AWX_OUTPUT": "jsonl", "AWX_ACCOUNT": "acct_9"})
        assert opts.output == "jsonl"
        assert opts.account == "acct_9"

    def test_flag_beats_env(self):
        assert _options("-o", "text", environ={"AWX_OUTPUT": "json"}).output == "text"

    def test_negative_timeout(self):
        with pytest.raises(CliError, match="--timeout"):
            _options("--timeout", "-1")


class TestExecute:
    def test_version_flag(self, run_cli):
        code, out, _ = run_cli("--version")
        assert code == 0
        assert out == f"airwallex-cli {config.VERSION}\n"

    def test_version_command(self, run_cli):
        code, out, _ = run_cli("version")
        assert code == 0
        assert out.strip() == f"airwallex-cli {config.VERSION}"

    def test_group_without_command_prints_help(self, run_cli):
        code, out, _ = run_cli("billing")
        assert code == 0
        assert "invoices" in out

    def test_help_exits_zero(self, run_cli):
        code, _, _ = run_cli("transfers", "list", "--help")
        assert code == 0

    def test_unknown_command(self, run_cli):
        code, _, err = run_cli("frobnicate")
        assert code == 1
        assert err.startswith("[ERROR]")

    def test_global_flag_after_subcommand(self, run_cli, fake_client):
        fake_client.responses[("GET", "/api/v1/transfers/tfr_1")] = {"id": "tfr_1", "status": "PAID"}
        code, out, _ = run_cli("transfers", "get", "tfr_1", "-o", "json")
        assert code == 0
        assert json.loads(out)["status"] == "PAID"

    def test_get_text_is_key_value(self, run_cli, fake_client):
        fake_client.responses[("GET", "/api/v1/transfers/tfr_1")] = {
            "id": "tfr_1", "status": "PAID", "transfer_amount": 10.5, "reference": "",
        }
        code, out, _ = run_cli("transfers", "get", "tfr_1")
        assert code == 0
        assert out.splitlines() == [
            f"{'id':<15}\ttfr_1",
            f"{'status':<15}\tPAID",
            "transfer_amount\t10.5",
        ]

    def test_verb_alias(self, run_cli, fake_client):
        code, _, _ = run_cli("beneficiaries", "rm", "ben_1", "--yes")
        assert code == 0
        assert fake_client.calls[0][:2] == ("POST", "/api/v1/beneficiaries/ben_1/delete")

    def test_query(self, run_cli, fake_client):
        fake_client.responses[("LIST", "/api/v1/beneficiaries")] = {
            "items": [{"id": "ben_1"}, {"id": "ben_2"}],
            "has_more": False,
        }
        code, out, _ = run_cli("beneficiaries", "list", "--query", ".items[].id")
        assert code == 0
        assert [json.loads(line) for line in out.splitlines()] == ["ben_1", "ben_2"]

    def test_required_local_flag(self, run_cli):
        code, _, err = run_cli("fx", "rates", "--sell", "USD")
        assert code == 1
        assert 'required flag(s) "buy" not set' in err

    def test_api_passthrough(self, run_cli, fake_client):
        fake_client.responses[("GET", "/api/v1/balances/current")] = [{"currency": "USD"}]
        code, out, _ = run_cli("api", "get", "/api/v1/balances/current")
        assert code == 0
        assert json.loads(out) == [{"currency": "USD"}]


class TestDestructiveWithoutTerminal:
    def test_delete_fails_fast(self, run_cli, fake_client):
        code, out, err = run_cli("beneficiaries", "delete", "ben_1")
        assert code == 1
        assert out == ""
        assert "stdin is not a terminal" in err
        assert fake_client.calls == []

    def test_delete_fails_in_json_mode(self, run_cli, fake_client):
        code, _, err = run_cli("beneficiaries", "delete", "ben_1", "-o", "json")
        assert code == 1
        assert json.loads(err)["error"]["type"] == "confirmation_required"
        assert fake_client.calls == []

    def test_agent_env_never_prompts(self, run_cli, fake_client, tty_input):
        code, _, err = run_cli(
            "webhooks", "delete", "wh_1", stdin=tty_input("y\n"), environ={"AWX_AGENT": "1"}
        )
        assert code == 1
        assert "--no-input" in json.loads(err)["error"]["message"]
        assert fake_client.calls == []

    def test_terminal_confirm(self, run_cli, fake_client, tty_input):
        code, _, err = run_cli("beneficiaries", "delete", "ben_1", stdin=tty_input("y\n"))
        assert code == 0
        assert "Are you sure you want to delete beneficiary ben_1?" in err
        assert len(fake_client.calls) == 1


class TestErrors:
    def test_setup_error_exit_code(self):
        err = io.StringIO()
        code = execute(["transfers", "list"], stdin=io.StringIO(), stdout=io.StringIO(),
                       stderr=err, environ={})
        assert code == 2
        assert "[SETUP_NEEDED]" in err.getvalue()

    def test_api_error_envelope(self, run_cli, fake_client):
        def fail(**kwargs):
            raise ApiError("[ERROR] not found (status=404)", status=404)

        fake_client.responses[("GET", "/api/v1/transfers/tfr_1")] = fail
        code, out, err = run_cli("get", "tfr_1", "-o", "json")
        assert code == 1
        assert out == ""
        assert json.loads(err) == {
            "ok": False,
            "error": {
                "type": "api_error",
                "message": "[ERROR] not found (status=404)",
                "exit_code": 1,
                "status": 404,
            },
        }

    def test_emit_text(self):
        stream = io.StringIO()
        _emit_cli_error(SetupError("[SETUP_NEEDED] nope"), False, stream)
        assert stream.getvalue() == "[SETUP_NEEDED] nope\n"

    def test_bad_global_flag_uses_fallback_mode(self, run_cli):
        code, _, err = run_cli("--output=json", "--timeout", "soon", "transfers", "list")
        assert code == 1
        assert json.loads(err)["error"]["type"] == "error"

    @pytest.mark.parametrize(
        "argv,environ,expected",
        [
            (["-o", "json"], {}, True),
            (["--output=jsonl"], {}, True),
            ([], {"AWX_OUTPUT": "json"}, True),
            ([], {"AWX_AGENT": "1"}, True),
            (["-o", "text"], {}, False),
        ],
    )
    def test_structured_fallback(self, argv, environ, expected):
        assert _structured_fallback(argv, environ) is expected

    def test_keyboard_interrupt(self, run_cli, fake_client):
        def interrupt(**kwargs):
            raise KeyboardInterrupt

        fake_client.responses[("GET", "/api/v1/transfers/tfr_1")] = interrupt
        code, _, err = run_cli("get", "tfr_1")
        assert code == 130
        assert "interrupted" in err
