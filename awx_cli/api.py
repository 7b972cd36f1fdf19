"""
HTTP request layer and security helpers for airwallex-cli.
"""

import json
import re
import sys
import time
import urllib.error
import urllib.parse
import urllib.request
import uuid
from decimal import Decimal

from awx_cli import config
from awx_cli.exceptions import ApiError, CliError, HTTPError, OperationCancelled

_RETRYABLE_HTTP_CODES = frozenset({429, 500, 502, 503, 504})
_SECRET_HEADERS = frozenset({"authorization", "x-api-key", "x-client-id"})
_SECRET_PARAMS = frozenset({"token", "api_key", "client_secret"})


# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------


def _mask_token(token):
    """Show only first 6 chars of a token for safe logging."""
    return token[:6] + "..." if len(token) > 6 else token


def _sanitize_error(body, max_len=500):
    """Truncate and clean error body for safe display."""
    if not body:
        return ""
    cleaned = re.sub(r"<[^>]+>", "", body)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if len(cleaned) > max_len:
        return cleaned[:max_len] + "... [truncated]"
    return cleaned


def _sanitize_url_for_log(url):
    """Mask sensitive query params in URLs before logging."""
    parsed = urllib.parse.urlsplit(url)
    if not parsed.query:
        return url
    pairs = urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
    masked = []
    for key, value in pairs:
        if key.lower() in _SECRET_PARAMS:
            masked.append((key, "***"))
        else:
            masked.append((key, value))
    safe_query = urllib.parse.urlencode(masked, doseq=True)
    return urllib.parse.urlunsplit(
        (parsed.scheme, parsed.netloc, parsed.path, safe_query, parsed.fragment)
    )


def _sanitize_headers_for_log(headers):
    safe = {}
    for key, value in (headers or {}).items():
        safe[key] = _mask_token(str(value)) if key.lower() in _SECRET_HEADERS else value
    return safe


def _log_http_event(enabled, **fields):
    """Emit structured HTTP logs to stderr when enabled."""
    if not enabled:
        return
    print("[HTTP] " + json.dumps(fields, ensure_ascii=False, sort_keys=True), file=sys.stderr)


def _error_envelope(message, status=None, request_id=None, retryable=None, detail=None):
    """Build a consistent CLI-safe HTTP error message."""
    meta = []
    if status is not None:
        meta.append(f"status={status}")
    if request_id:
        meta.append(f"request_id={request_id}")
    if retryable is not None:
        meta.append(f"retryable={'yes' if retryable else 'no'}")
    suffix = f" ({', '.join(meta)})" if meta else ""
    body = f"[ERROR] {message}{suffix}"
    if detail:
        body += f"\n{detail}"
    return body


def _parse_retry_after(headers):
    """Return Retry-After seconds from response headers, or None."""
    if not headers:
        return None
    value = headers.get("Retry-After")
    if value is None:
        return None
    try:
        secs = int(str(value).strip())
    except ValueError:
        return None
    return max(0, secs)


def decode_json(raw):
    """Decode JSON keeping every number exact (non-integers become Decimal)."""
    return json.loads(raw, parse_float=Decimal)


def _encode_body(data):
    if data is None:
        return None
    from awx_cli.formatters import dumps

    return dumps(data).encode("utf-8")


# ---------------------------------------------------------------------------
# HTTP request layer
# ---------------------------------------------------------------------------


def _sleep(seconds, cancel):
    if cancel is not None:
        remaining = cancel.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
    time.sleep(seconds)
    if cancel is not None:
        cancel.check("request")


def _http_request(
    url, data=None, headers=None, method="POST", idempotent=False, log=False, cancel=None
):
    """Make an HTTP request with standard error handling.
    Returns parsed JSON on success (None for an empty body).
    Raises HTTPError for HTTP errors (caller handles specific codes).
    Raises CliError on network/timeout/parse errors."""
    body = _encode_body(data)
    headers = dict(headers or {})
    request_id = headers.get("x-request-id") or str(uuid.uuid4())
    headers["x-request-id"] = request_id
    safe_url = _sanitize_url_for_log(url)
    max_attempts = 1 + max(0, config.HTTP_MAX_RETRIES if idempotent else 0)
    last_error = None

    for attempt in range(max_attempts):
        if cancel is not None:
            cancel.check("request")
        timeout = max(1, config.HTTP_TIMEOUT_SECONDS)
        if cancel is not None and cancel.remaining() is not None:
            timeout = max(0.1, min(timeout, cancel.remaining()))
        start = time.perf_counter()
        req = urllib.request.Request(url, data=body, headers=headers, method=method)
        _log_http_event(
            log,
            phase="request",
            method=method,
            url=safe_url,
            headers=_sanitize_headers_for_log(headers),
            attempt=attempt + 1,
            max_attempts=max_attempts,
            request_id=request_id,
            timeout_seconds=timeout,
        )
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                content_type = resp.headers.get("Content-Type", "")
                raw = resp.read(config.HTTP_MAX_RESPONSE_BYTES + 1)
                if len(raw) > config.HTTP_MAX_RESPONSE_BYTES:
                    raise CliError(
                        "[ERROR] Response too large from Airwallex API "
                        f"(>{config.HTTP_MAX_RESPONSE_BYTES} bytes)."
                    )
                _log_http_event(
                    log,
                    phase="response",
                    method=method,
                    url=safe_url,
                    attempt=attempt + 1,
                    status=getattr(resp, "status", 200),
                    bytes=len(raw),
                    latency_ms=round((time.perf_counter() - start) * 1000, 2),
                    request_id=request_id,
                )
                if not raw.strip():
                    return None
                try:
                    return decode_json(raw.decode("utf-8"))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    if content_type and "json" not in content_type.lower():
                        raise CliError(
                            f"[ERROR] Unexpected Content-Type from server "
                            f"({content_type}). This may be a proxy or "
                            "network issue."
                        ) from None
                    raise CliError(
                        "[ERROR] Unexpected response from Airwallex API (not valid JSON)."
                    ) from None
        except urllib.error.HTTPError as e:
            error_body = (
                e.read(config.HTTP_MAX_RESPONSE_BYTES).decode("utf-8", errors="replace")
                if e.fp
                else ""
            )
            retryable = e.code in _RETRYABLE_HTTP_CODES
            can_retry = idempotent and attempt < max_attempts - 1 and retryable
            _log_http_event(
                log,
                phase="response",
                method=method,
                url=safe_url,
                attempt=attempt + 1,
                status=e.code,
                retryable=retryable,
                will_retry=can_retry,
                latency_ms=round((time.perf_counter() - start) * 1000, 2),
                request_id=request_id,
            )
            if can_retry:
                retry_after = _parse_retry_after(getattr(e, "headers", None))
                if retry_after is None:
                    retry_after = config.HTTP_RETRY_BASE_SECONDS * (2**attempt)
                _sleep(retry_after, cancel)
                continue
            raise HTTPError(e.code, e.reason, error_body, headers=e.headers) from e
        except (TimeoutError, urllib.error.URLError) as e:
            reason = "timeout" if isinstance(e, TimeoutError) else f"url_error: {e.reason}"
            last_error = e
            will_retry = idempotent and attempt < max_attempts - 1
            _log_http_event(
                log,
                phase="network_error",
                method=method,
                url=safe_url,
                attempt=attempt + 1,
                error=reason,
                will_retry=will_retry,
                request_id=request_id,
            )
            if cancel is not None and cancel.cancelled:
                raise OperationCancelled("[ERROR] request cancelled: deadline exceeded") from e
            if will_retry:
                _sleep(config.HTTP_RETRY_BASE_SECONDS * (2**attempt), cancel)
                continue
            raise CliError(_network_message(e, timeout, request_id)) from e

    raise CliError(_network_message(last_error, config.HTTP_TIMEOUT_SECONDS, request_id))


def _network_message(err, timeout, request_id):
    if isinstance(err, TimeoutError):
        return _error_envelope(
            f"Request timed out after {timeout} seconds. Is the Airwallex API reachable?",
            request_id=request_id,
            retryable=False,
        )
    if isinstance(err, urllib.error.URLError):
        return _error_envelope(
            f"Connection failed: {err.reason}", request_id=request_id, retryable=False
        )
    return _error_envelope("Request failed.", request_id=request_id)


def api_error_from_http(e):
    """Turn a raw HTTPError into the user-facing ApiError."""
    server_req_id = e.headers.get("x-request-id") if e.headers else None
    message = f"HTTP {e.code}: {e.reason}"
    try:
        parsed = json.loads(e.body) if e.body else None
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict) and parsed.get("message"):
        code = parsed.get("code")
        message = f"{parsed['message']} ({code})" if code else str(parsed["message"])
        detail = None
    else:
        detail = _sanitize_error(e.body)
    return ApiError(
        _error_envelope(
            message,
            status=e.code,
            request_id=server_req_id,
            retryable=e.code in _RETRYABLE_HTTP_CODES,
            detail=detail,
        ),
        status=e.code,
        request_id=server_req_id,
        body=e.body,
    )
