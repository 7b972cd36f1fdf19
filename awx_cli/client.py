"""
AirwallexClient — authenticated access to the Airwallex REST API.

The command layer only talks to this class; retries and token handling stay
below it.
"""

import time
import urllib.parse
from datetime import datetime

from awx_cli import config
from awx_cli.api import _http_request, api_error_from_http
from awx_cli.exceptions import CliError, HTTPError, SetupError


def _parse_expiry(value, now):
    """Epoch seconds for an ``expires_at`` timestamp (30 minutes if unknown)."""
    if value:
        try:
            return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()
        except ValueError:
            pass
    return now + 30 * 60


class AirwallexClient:
    """Thin wrapper over the REST API with a process-lifetime token cache."""

    def __init__(
        self,
        client_id,
        api_key,
        account_id="",
        base_url=config.BASE_URL,
        log=False,
        cancel=None,
        clock=time.time,
    ):
        if not client_id or not api_key:
            raise SetupError(
                "[SETUP_NEEDED] No credentials found.\n"
                f"  Set {config.ENV_CLIENT_ID} and {config.ENV_API_KEY} "
                "in the environment or in .env."
            )
        self._client_id = client_id
        self._api_key = api_key
        self._account_id = account_id
        self._base_url = base_url.rstrip("/")
        self._log = log
        self._cancel = cancel
        self._clock = clock
        self._token = ""
        self._token_expiry = 0.0

    @classmethod
    def from_context(cls, ctx):
        environ = ctx.environ
        return cls(
            environ.get(config.ENV_CLIENT_ID, ""),
            environ.get(config.ENV_API_KEY, ""),
            account_id=ctx.options.account or environ.get(config.ENV_ACCOUNT_ID, ""),
            base_url=environ.get(config.ENV_BASE_URL) or config.BASE_URL,
            log=ctx.options.debug or config._env_bool(config.ENV_HTTP_LOG, source=environ),
            cancel=ctx.cancel,
        )

    def base_url(self):
        return self._base_url

    # -----------------------------------------------------------------------
    # Authentication
    # -----------------------------------------------------------------------

    def _login(self):
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "x-client-id": self._client_id,
            "x-api-key": self._api_key,
        }
        if self._account_id:
            headers["x-login-as"] = self._account_id
        try:
            result = _http_request(
                self._base_url + config.LOGIN_PATH,
                data={},
                headers=headers,
                method="POST",
                log=self._log,
                cancel=self._cancel,
            )
        except HTTPError as e:
            if e.code in (401, 403):
                raise SetupError(
                    "[SETUP_NEEDED] Authentication failed. Check your client ID and API key."
                ) from e
            raise api_error_from_http(e) from e
        if not isinstance(result, dict) or not result.get("token"):
            raise CliError("[ERROR] Unexpected login response (no token).")
        self._token = result["token"]
        self._token_expiry = _parse_expiry(result.get("expires_at"), self._clock())

    def token(self):
        """A bearer token, refreshed shortly before it expires."""
        if (
            not self._token
            or self._clock() >= self._token_expiry - config.TOKEN_REFRESH_MARGIN_SECONDS
        ):
            self._login()
        return self._token

    # -----------------------------------------------------------------------
    # Requests
    # -----------------------------------------------------------------------

    def request(self, method, path, params=None, body=None):
        query = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        url = self._base_url + path
        if query:
            url += "?" + urllib.parse.urlencode(query, doseq=True)
        idempotent = method in ("GET", "HEAD")
        for attempt in range(2):
            headers = {
                "Authorization": f"Bearer {self.token()}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            try:
                return _http_request(
                    url,
                    data=body,
                    headers=headers,
                    method=method,
                    idempotent=idempotent,
                    log=self._log,
                    cancel=self._cancel,
                )
            except HTTPError as e:
                # A token revoked server-side: log in again once.
                if e.code == 401 and attempt == 0:
                    self._token = ""
                    continue
                raise api_error_from_http(e) from e
        raise CliError("[ERROR] Request failed after re-authentication.")

    def do(self, method, path, body=None):
        """Raw passthrough for the ``api`` command."""
        return self.request(method.upper(), path, body=body)

    def get(self, path, params=None):
        return self.request("GET", path, params=params)

    def post(self, path, body=None):
        return self.request("POST", path, body=body if body is not None else {})

    def list_page(self, path, page=1, page_size=config.DEFAULT_PAGE_SIZE, params=None):
        """One page of a list endpoint. *page* is 1-based; the API counts from 0."""
        query = dict(params or {})
        query["page_num"] = max(0, page - 1)
        query["page_size"] = page_size
        result = self.get(path, params=query)
        return result if isinstance(result, dict) else {"items": result or []}

    def list_cursor(self, path, limit=config.DEFAULT_PAGE_SIZE, cursor="", params=None):
        """One page of a cursor-paginated list endpoint."""
        query = dict(params or {})
        query["page_size"] = limit
        if cursor:
            query["page"] = cursor
        result = self.get(path, params=query)
        return result if isinstance(result, dict) else {"items": result or []}
