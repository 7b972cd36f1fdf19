"""Tests for context.py — GlobalOptions, CancelToken, ExecutionContext."""

import dataclasses

import pytest

from awx_cli.context import CancelToken, GlobalOptions
from awx_cli.exceptions import OperationCancelled


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestGlobalOptions:
    @pytest.mark.parametrize("output,structured", [("text", False), ("json", True), ("jsonl", True)])
    def test_structured(self, output, structured):
        assert GlobalOptions(output=output).structured is structured

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            GlobalOptions().yes = True


class TestCancelToken:
    def test_no_deadline(self):
        token = CancelToken()
        assert token.remaining() is None
        assert token.cancelled is False
        token.check()

    def test_explicit_cancel(self):
        token = CancelToken()
        token.cancel()
        with pytest.raises(OperationCancelled) as exc_info:
            token.check("listing")
        assert str(exc_info.value) == "[ERROR] listing cancelled"
        assert exc_info.value.exit_code == 130

    def test_deadline(self):
        clock = FakeClock()
        token = CancelToken(timeout=5, clock=clock)
        assert token.remaining() == 5
        clock.now += 3
        assert token.remaining() == 2
        token.check()
        clock.now += 2
        assert token.expired is True
        assert token.remaining() == 0
        with pytest.raises(OperationCancelled, match="deadline exceeded"):
            token.check("request")

    def test_zero_timeout_means_none(self):
        assert CancelToken(timeout=0).remaining() is None


class TestExecutionContext:
    def test_client_is_cached(self, make_ctx, fake_client):
        ctx = make_ctx()
        assert ctx.client() is fake_client
        assert ctx.client() is ctx.client()

    def test_factory_called_once(self, make_ctx):
        built = []
        ctx = dataclasses.replace(make_ctx(), client_factory=lambda c: built.append(c) or object())
        ctx.client()
        ctx.client()
        assert len(built) == 1
