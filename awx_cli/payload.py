"""Reading JSON object payloads from --data or --from-file."""

import json
import os

from awx_cli import config
from awx_cli._utils import _wait_readable
from awx_cli.api import decode_json
from awx_cli.exceptions import PayloadError


def _too_large():
    return PayloadError(
        f"[ERROR] input too large: exceeds maximum size of {config.MAX_INPUT_SIZE} bytes"
    )


def _read_limited(stream, source):
    """Read at most MAX_INPUT_SIZE bytes from *stream* and decode them as UTF-8."""
    raw = stream.read(config.MAX_INPUT_SIZE + 1)
    if isinstance(raw, str):
        # Text streams without a byte buffer (StringIO).
        raw = raw.encode("utf-8")
    if len(raw) > config.MAX_INPUT_SIZE:
        raise _too_large()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PayloadError(f"[ERROR] {source} is not valid UTF-8") from e


def _read_source(ctx, data, from_file):
    if data:
        if len(data.encode("utf-8")) > config.MAX_INPUT_SIZE:
            raise _too_large()
        return data
    if from_file == "-":
        _wait_readable(ctx.stdin, ctx.cancel, "reading stdin")
        raw = _read_limited(getattr(ctx.stdin, "buffer", ctx.stdin), "stdin")
        ctx.cancel.check("reading stdin")
        return raw
    path = os.path.expanduser(from_file)
    try:
        with open(path, "rb") as f:
            return _read_limited(f, from_file)
    except OSError as e:
        raise PayloadError(f"[ERROR] cannot read {from_file}: {e.strerror}") from e


def read_optional_json_payload(ctx, data="", from_file=""):
    """Parsed JSON object, or None when neither source was given."""
    if data and from_file:
        raise PayloadError("[ERROR] use only one of --data or --from-file")
    if not data and not from_file:
        return None
    raw = _read_source(ctx, data, from_file)
    try:
        payload = decode_json(raw)
    except json.JSONDecodeError as e:
        raise PayloadError(f"[ERROR] invalid JSON object: {e.msg} at position {e.pos}") from None
    if not isinstance(payload, dict):
        raise PayloadError(
            f"[ERROR] invalid JSON object: expected an object, got {type(payload).__name__}"
        )
    return payload


def read_json_payload(ctx, data="", from_file=""):
    """Parsed JSON object from exactly one of --data / --from-file."""
    payload = read_optional_json_payload(ctx, data, from_file)
    if payload is None:
        raise PayloadError("[ERROR] provide --data or --from-file")
    return payload
