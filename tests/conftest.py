"""
Shared test fixtures for airwallex-cli tests.
Patches the config module so no test reads a real .env or talks to the API.
"""

import copy
import io
import os

import pytest

from awx_cli import config
from awx_cli.builders import _SubcommandParser
from awx_cli.cli import execute
from awx_cli.context import CancelToken, ExecutionContext, GlobalOptions
from awx_cli.ui import UI


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Ensure every test starts with a clean config state."""
    monkeypatch.setattr(config, "env", {})
    for key in list(os.environ):
        if key.startswith("AWX_") or key == "NO_COLOR":
            monkeypatch.delenv(key, raising=False)


class TTYInput(io.StringIO):
    """stdin stand-in that claims to be a terminal."""

    def isatty(self):
        return True


class FakeClient:
    """Records calls and answers from a canned {(method, path): value} table.
    List calls are recorded with method "LIST" (paged) or "CURSOR"."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def _answer(self, method, path, default=None, **kwargs):
        self.calls.append((method, path, kwargs))
        value = self.responses.get((method, path), default)
        if callable(value):
            return value(**kwargs)
        return copy.deepcopy(value)

    def get(self, path, params=None):
        return self._answer("GET", path, default={}, params=params)

    def post(self, path, body=None):
        return self._answer("POST", path, default={}, body=body)

    def do(self, method, path, body=None):
        return self._answer(method.upper(), path, default={}, body=body)

    def list_page(self, path, page=1, page_size=20, params=None):
        return self._answer(
            "LIST", path, default={"items": [], "has_more": False},
            page=page, page_size=page_size, params=params,
        )

    def list_cursor(self, path, limit=20, cursor="", params=None):
        return self._answer(
            "CURSOR", path, default={"items": [], "has_more": False},
            limit=limit, cursor=cursor, params=params,
        )

    def methods(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def run_cli(fake_client):
    """Run the CLI in process. Returns (exit_code, stdout, stderr)."""

    def _run(*argv, stdin="", environ=None):
        out, err = io.StringIO(), io.StringIO()
        stream = stdin if hasattr(stdin, "read") else io.StringIO(stdin)
        code = execute(
            list(argv),
            stdin=stream,
            stdout=out,
            stderr=err,
            environ=environ or {},
            client_factory=lambda ctx: fake_client,
        )
        return code, out.getvalue(), err.getvalue()

    return _run


@pytest.fixture
def make_ctx(fake_client):
    """Build an ExecutionContext over StringIO streams.
    Read output back with ctx.stdout.getvalue() / ctx.stderr.getvalue()."""

    def _make(stdin="", global_flags=None, environ=None, **options):
        out, err = io.StringIO(), io.StringIO()
        stream = stdin if hasattr(stdin, "read") else io.StringIO(stdin)
        return ExecutionContext(
            options=GlobalOptions(**options),
            stdin=stream,
            stdout=out,
            stderr=err,
            ui=UI(out, err, color=False),
            cancel=CancelToken(),
            client_factory=lambda ctx: fake_client,
            environ=environ or {},
            global_flags=global_flags,
        )

    return _make


@pytest.fixture
def invoke():
    """Mount one Command on a throwaway parser and run it with *argv*."""

    def _invoke(command, ctx, *argv):
        parser = _SubcommandParser(prog="test")
        sub = parser.add_subparsers(dest="_root", parser_class=_SubcommandParser)
        command.mount(sub)
        ns = parser.parse_args([command.name, *argv])
        command.execute(ctx, ns)

    return _invoke


@pytest.fixture
def tty_input():
    """Factory for a terminal-like stdin holding *text*."""
    return TTYInput
