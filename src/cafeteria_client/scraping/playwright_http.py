"""
playwright_http.py

What this module does
- Implements `HttpSessionClient` on Playwright's APIRequestContext (no browser window).

Why it matters
- The request context keeps a real cookie jar, so the portals see one continuous
  browser-like session across GET/POST calls.

Behavior summary
- Relative URLs are resolved against the site base URL (which may include a path).
- POSTs carry Origin (site origin) and Referer (last fetched page, else the POST URL).
- Form POSTs are multipart or url-encoded, depending on the site.
- No custom User-Agent and no throttling: both portals fingerprint headers and timing.
- Transport failures and non-success statuses raise NetworkError; nothing is retried here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Literal
from urllib.parse import urlsplit

from playwright.sync_api import APIRequestContext, APIResponse, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from cafeteria_client.utils.errors import NetworkError, ParseError
from cafeteria_client.utils.logs import html_snippet

log = logging.getLogger(__name__)

FormEncoding = Literal["multipart", "urlencoded"]


class PlaywrightHttpSession:
    """
    Playwright implementation of HttpSessionClient.

    What it does:
    - Sends GET / form POST / JSON POST requests through one APIRequestContext.

    Behavior:
    - Starts Playwright lazily on the first request.
    - reset() disposes the request context (dropping every cookie); the next
      request opens a fresh one.
    - close() also stops Playwright. Safe to call multiple times.
    """

    def __init__(
        self,
        *,
        base_url: str,
        form_encoding: FormEncoding = "urlencoded",
        timeout_ms: int = 20_000,
    ) -> None:
        if form_encoding not in ("multipart", "urlencoded"):
            raise ValueError(f"Unsupported form encoding: {form_encoding!r}")

        self.base_url = base_url.rstrip("/")
        self.form_encoding = form_encoding
        self._timeout_ms = timeout_ms

        parts = urlsplit(self.base_url)
        self.origin = f"{parts.scheme}://{parts.netloc}"

        self._pw: Playwright | None = None
        self._context: APIRequestContext | None = None
        self._last_page_url = ""

    # -------------------- Lifecycle --------------------

    def _start(self) -> APIRequestContext:
        if self._context is not None:
            return self._context

        if self._pw is None:
            self._pw = sync_playwright().start()

        self._context = self._pw.request.new_context(timeout=self._timeout_ms)
        return self._context

    def reset(self) -> None:
        try:
            if self._context:
                self._context.dispose()
        finally:
            self._context = None
            self._last_page_url = ""

    def close(self) -> None:
        try:
            self.reset()
        finally:
            try:
                if self._pw:
                    self._pw.stop()
            finally:
                self._pw = None

    def __enter__(self) -> PlaywrightHttpSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------- HttpSessionClient interface --------------------

    def get(self, url: str, params: Mapping[str, str] | None = None) -> str:
        absolute = self.absolute_url(url)
        ctx = self._start()

        log.debug("GET %s params=%s", absolute, dict(params) if params else None)
        try:
            response = ctx.get(absolute, params=dict(params) if params else None)
        except PlaywrightError as e:
            raise NetworkError(f"GET {absolute} failed: {e}") from e

        self._check_status("GET", absolute, response)
        self._last_page_url = absolute
        return response.text()

    def post_form(self, url: str, fields: Mapping[str, str]) -> str:
        absolute = self.absolute_url(url)
        ctx = self._start()
        headers = self._post_headers(absolute)
        payload = dict(fields)

        # Field values are never logged: they carry passwords and tokens.
        log.debug("POST %s (%s form, fields=%s)", absolute, self.form_encoding, sorted(payload))
        try:
            if self.form_encoding == "multipart":
                response = ctx.post(absolute, multipart=payload, headers=headers)
            else:
                response = ctx.post(absolute, form=payload, headers=headers)
        except PlaywrightError as e:
            raise NetworkError(f"POST {absolute} failed: {e}") from e

        self._check_status("POST", absolute, response)
        return response.text()

    def post_json(self, url: str, body: Any) -> Any:
        absolute = self.absolute_url(url)
        ctx = self._start()
        headers = {**self._post_headers(absolute), "Content-Type": "application/json"}

        log.debug("POST %s (json)", absolute)
        try:
            response = ctx.post(absolute, data=json.dumps(body), headers=headers)
        except PlaywrightError as e:
            raise NetworkError(f"POST {absolute} failed: {e}") from e

        self._check_status("POST", absolute, response)
        text = response.text()
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            log.warning("Non-JSON response from %s: %s", absolute, html_snippet(text))
            raise ParseError(f"Expected JSON from {absolute}") from e

    # -------------------- Helpers --------------------

    def absolute_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    def _post_headers(self, absolute: str) -> dict[str, str]:
        return {"Origin": self.origin, "Referer": self._last_page_url or absolute}

    def _check_status(self, method: str, url: str, response: APIResponse) -> None:
        # Redirects are followed by Playwright, so a 3xx here is a final answer too.
        if 200 <= response.status < 400:
            return
        msg = f"HTTP {response.status} {response.status_text} for {method} {url}"
        log.error(msg)
        raise NetworkError(msg)
