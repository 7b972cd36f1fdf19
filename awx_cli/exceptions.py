"""
airwallex-cli exception hierarchy.

All custom exceptions live here to avoid circular imports.
"""


class CliError(Exception):
    """Exit code 1 — validation, not-found, network, parse errors."""

    exit_code = 1


class SetupError(CliError):
    """Exit code 2 — missing credentials, no config."""

    exit_code = 2


class UnknownIdentifierError(CliError):
    """An ID (or composite ID) that no resource kind claims."""


class PayloadError(CliError):
    """A --data / --from-file payload that cannot be used."""


class ConfirmationError(CliError):
    """A confirmation prompt that cannot be shown (non-tty, --no-input)."""


class ApiError(CliError):
    """The API answered with an error status."""

    def __init__(self, message, status=None, request_id=None, body=None):
        super().__init__(message)
        self.status = status
        self.request_id = request_id
        self.body = body


class OperationCancelled(CliError):
    """Exit code 130 — interrupted or deadline exceeded."""

    exit_code = 130


class HTTPError(Exception):
    """Raised by _http_request for HTTP errors that callers want to handle."""

    def __init__(self, code, reason, body, headers=None):
        self.code = code
        self.reason = reason
        self.body = body
        self.headers = headers or {}


class CommandConstructionError(RuntimeError):
    """A command tree that was wired up wrong. Never a user error."""
