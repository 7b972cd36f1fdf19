"""Confirmation gate for destructive operations."""

from awx_cli._utils import _wait_readable
from awx_cli.exceptions import ConfirmationError


def _is_terminal(stream):
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        return False


def confirm_or_yes(ctx, prompt):
    """True when the user (or --yes) confirms. Never prompts without a terminal."""
    if ctx.options.yes:
        return True
    if ctx.options.no_input:
        raise ConfirmationError(
            "[ERROR] cannot prompt for confirmation: input disabled by --no-input "
            "(use --yes to skip)"
        )
    if not _is_terminal(ctx.stdin):
        raise ConfirmationError(
            "[ERROR] cannot prompt for confirmation: stdin is not a terminal (use --yes to skip)"
        )
    ctx.stderr.write(f"{prompt} [y/N]: ")
    ctx.stderr.flush()
    _wait_readable(ctx.stdin, ctx.cancel, "confirmation")
    answer = ctx.stdin.readline()
    ctx.cancel.check("confirmation")
    return answer.strip().lower() in ("y", "yes")
