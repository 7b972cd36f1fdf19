"""
Per-invocation state: frozen global options, cancellation, and the
execution context every command receives.
"""

from __future__ import annotations

import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, TextIO

from awx_cli.exceptions import OperationCancelled


@dataclass(frozen=True)
class GlobalOptions:
    """Values of the global flags for one invocation. Never mutated."""

    account: str = ""
    output: str = "text"
    color: str = "auto"
    debug: bool = False
    query: str = ""
    yes: bool = False
    no_input: bool = False
    agent: bool = False
    timeout: float = 0.0

    @property
    def structured(self) -> bool:
        return self.output in ("json", "jsonl")


class CancelToken:
    """Cooperative cancellation: an explicit cancel or an expired deadline."""

    def __init__(self, timeout: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._event = threading.Event()
        self._clock = clock
        self._deadline = clock() + timeout if timeout and timeout > 0 else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def check(self, what: str = "operation") -> None:
        if self._event.is_set():
            raise OperationCancelled(f"[ERROR] {what} cancelled")
        if self.expired:
            raise OperationCancelled(f"[ERROR] {what} cancelled: deadline exceeded")


@dataclass(frozen=True)
class ExecutionContext:
    """Everything a command needs: options, IO streams, UI, client, cancellation."""

    options: GlobalOptions
    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)
    ui: Any = None
    cancel: CancelToken = field(default_factory=CancelToken)
    client_factory: Optional[Callable[["ExecutionContext"], Any]] = None
    environ: Mapping[str, str] = field(default_factory=dict)
    global_flags: Any = None
    _clients: dict = field(default_factory=dict, compare=False, repr=False)

    def client(self):
        """Build the API client on first use and reuse it afterwards."""
        if "client" not in self._clients:
            if self.client_factory is None:
                from awx_cli.client import AirwallexClient

                self._clients["client"] = AirwallexClient.from_context(self)
            else:
                self._clients["client"] = self.client_factory(self)
        return self._clients["client"]
