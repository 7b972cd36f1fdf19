"""
airwallex-cli — command-line client for the Airwallex payments API
"""

import dataclasses
import json
import sys

from awx_cli import billing, config, issuing, payments
from awx_cli.builders import Command, Group, PayloadConfig, _SubcommandParser, build_payload_command
from awx_cli.context import CancelToken, ExecutionContext, GlobalOptions
from awx_cli.exceptions import (
    ApiError,
    CliError,
    ConfirmationError,
    OperationCancelled,
    PayloadError,
    SetupError,
    UnknownIdentifierError,
)
from awx_cli.flags import FlagSet, flag_or_alias_changed, register_alias
from awx_cli.get_by_id import build_get_by_id_command
from awx_cli.routers import build_cancel_router, build_create_router, build_list_router
from awx_cli.ui import UI, color_enabled

# ---------------------------------------------------------------------------
# Global flags (extracted before argparse, so they work after the subcommand)
# ---------------------------------------------------------------------------


def build_global_flags(environ):
    """A fresh global flag registry with defaults taken from *environ*."""
    flags = FlagSet(config.PROG)
    flags.add_string("account", environ.get(config.ENV_ACCOUNT, ""), "Account ID to act as")
    flags.add_string(
        "output",
        environ.get(config.ENV_OUTPUT) or "text",
        "Output format: text, json, jsonl",
        shorthand="o",
    )
    flags.add_string(
        "color",
        environ.get(config.ENV_COLOR) or "auto",
        "Color output: auto, always, never",
        choices=config.VALID_COLORS,
    )
    flags.add_bool("debug", False, "Log HTTP requests to stderr")
    flags.add_string("query", "", "Filter structured output (.items[].id)")
    flags.add_bool("yes", False, "Skip confirmation prompts", shorthand="y")
    register_alias(flags, "yes", "force")
    flags.add_bool("no-input", False, "Never prompt; fail instead")
    flags.add_bool(
        "agent",
        config._env_bool(config.ENV_AGENT, source=environ),
        "Agent mode: JSON output and no prompts",
    )
    flags.add_int(
        "timeout",
        config._env_int(config.ENV_TIMEOUT, 0, source=environ),
        "Overall deadline in seconds (0 = none)",
    )
    return flags


def _normalize_output(value):
    value = (value or "text").strip().lower()
    if value == "ndjson":
        value = "jsonl"
    if value not in config.VALID_OUTPUTS:
        raise CliError(f"[ERROR] Invalid output '{value}'. Use: text, json, jsonl")
    return value


def options_from_flags(flags):
    """Freeze the global flag values into GlobalOptions."""
    output = _normalize_output(flags.value("output"))
    agent = flags.value("agent")
    if output == "text" and (
        flags.value("query") or (agent and not flag_or_alias_changed(flags, "output"))
    ):
        output = "json"
    if flags.value("timeout") < 0:
        raise CliError("[ERROR] --timeout must not be negative")
    return GlobalOptions(
        account=flags.value("account"),
        output=output,
        color=flags.value("color"),
        debug=flags.value("debug"),
        query=flags.value("query"),
        yes=flags.value("yes"),
        no_input=flags.value("no-input") or agent,
        agent=agent,
        timeout=float(flags.value("timeout")),
    )


# ---------------------------------------------------------------------------
# Command tree
# ---------------------------------------------------------------------------


def _version_command():
    def run(ctx, args):
        ctx.ui.line(f"airwallex-cli {config.VERSION}")

    return Command("version", run, help="Show version number")


def _api_command():
    return build_payload_command(
        PayloadConfig(
            name="api",
            help="Raw API request: airwallex api GET /api/v1/balances/current",
            run=lambda ctx, client, args, payload: client.do(args[0], args[1], payload),
            args=("method", "path"),
            allow_empty=True,
            normalize_args=False,
        )
    )


def build_tree():
    root = Group(config.PROG)
    for node in (
        build_list_router(),
        build_create_router(),
        build_cancel_router(),
        build_get_by_id_command(),
        *payments.build_groups(),
        *issuing.build_groups(),
        *billing.build_groups(),
        _api_command(),
        _version_command(),
    ):
        root.add(node)
    return root


def build_parser(tree=None):
    tree = tree or build_tree()
    parser = _SubcommandParser(
        prog=config.PROG,
        description="Command-line client for the Airwallex payments API",
    )
    parser.set_defaults(_command=None, _parser=parser)
    sub = parser.add_subparsers(dest="_root", parser_class=_SubcommandParser, metavar="<command>")
    for node in tree.children:
        node.mount(sub, (config.PROG,))
    return parser


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def build_context(options, flags, stdin, stdout, stderr, environ, client_factory=None,
                  cancel=None, clients=None):
    ui = UI(stdout, stderr, color=color_enabled(options.color, stdout, environ))
    ctx = ExecutionContext(
        options=options,
        stdin=stdin,
        stdout=stdout,
        stderr=stderr,
        ui=ui,
        cancel=cancel or CancelToken(options.timeout),
        client_factory=client_factory,
        environ=environ,
        global_flags=flags,
    )
    if clients is not None:
        ctx = dataclasses.replace(ctx, _clients=clients)
    return ctx


def run_argv(ctx, argv):
    """Parse *argv* (global flags already removed) against a fresh tree and run it."""
    parser = build_parser()
    ns = parser.parse_args(argv)
    command = getattr(ns, "_command", None)
    if command is None:
        ns._parser.print_help(file=ctx.stdout)
        return
    command.execute(ctx, ns)


def execute_invocation(ctx, invocation):
    """Re-run a routed command in process with its forwarded global flags."""
    flags = build_global_flags(ctx.environ)
    for arg in invocation.forwarded:
        binding = flags.lookup(arg.name)
        if binding is None:
            raise CliError(f"[ERROR] unknown global flag --{arg.name}")
        binding.set(arg.value)
    options = options_from_flags(flags)
    routed = build_context(
        options,
        flags,
        ctx.stdin,
        ctx.stdout,
        ctx.stderr,
        ctx.environ,
        client_factory=ctx.client_factory,
        cancel=ctx.cancel,
        clients=ctx._clients,
    )
    run_argv(routed, list(invocation.path) + list(invocation.args))


_ERROR_TYPES = (
    (OperationCancelled, "cancelled"),
    (SetupError, "setup_needed"),
    (UnknownIdentifierError, "unknown_id"),
    (PayloadError, "invalid_payload"),
    (ConfirmationError, "confirmation_required"),
    (ApiError, "api_error"),
)


def _error_type(err):
    for cls, name in _ERROR_TYPES:
        if isinstance(err, cls):
            return name
    return "error"


def _emit_cli_error(err, structured, stream, color=False):
    msg = str(err)
    if structured:
        payload = {
            "ok": False,
            "error": {
                "type": _error_type(err),
                "message": msg,
                "exit_code": getattr(err, "exit_code", 1),
            },
        }
        if isinstance(err, ApiError) and err.status is not None:
            payload["error"]["status"] = err.status
        print(json.dumps(payload, ensure_ascii=False), file=stream)
        return
    UI(stream, stream, color=color).error(msg)


def _structured_fallback(argv, environ):
    """Best guess at the output mode when global flags failed to parse."""
    if environ.get(config.ENV_AGENT):
        return True
    output = environ.get(config.ENV_OUTPUT, "")
    for i, token in enumerate(argv):
        if token in ("--output", "-o") and i + 1 < len(argv):
            output = argv[i + 1]
        elif token.startswith("--output="):
            output = token.split("=", 1)[1]
    return output.lower() in ("json", "jsonl", "ndjson")


def execute(argv, stdin=None, stdout=None, stderr=None, environ=None, client_factory=None,
            cancel=None):
    """Run one CLI invocation and return its exit code."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    environ = config.merged_environ(environ)
    argv = list(argv)

    head = argv[: argv.index("--")] if "--" in argv else argv
    if "--version" in head:
        stdout.write(f"airwallex-cli {config.VERSION}\n")
        return 0

    structured = _structured_fallback(argv, environ)
    color = False
    ctx = None
    try:
        flags = build_global_flags(environ)
        remaining = flags.extract(argv)
        options = options_from_flags(flags)
        structured = options.structured
        ctx = build_context(
            options, flags, stdin, stdout, stderr, environ,
            client_factory=client_factory, cancel=cancel,
        )
        color = color_enabled(options.color, stderr, environ)
        run_argv(ctx, remaining)
        return 0
    except KeyboardInterrupt:
        if ctx is not None:
            ctx.cancel.cancel()
        err = OperationCancelled("[ERROR] interrupted")
        _emit_cli_error(err, structured, stderr, color)
        return err.exit_code
    except CliError as e:
        _emit_cli_error(e, structured, stderr, color)
        return e.exit_code
    except SystemExit as e:
        # argparse --help
        return e.code if isinstance(e.code, int) else 0


def main():
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.exit(execute(sys.argv[1:]))


if __name__ == "__main__":
    main()
