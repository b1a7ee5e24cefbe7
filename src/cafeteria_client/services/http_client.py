from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class HttpSessionClient(Protocol):
    """
    What it does:
    - Defines the transport a site API expects: a cookie-keeping browser-like session.

    Why it matters:
    - The site APIs stay stable while the implementation can change
      (Fake for tests, Playwright for real use).

    Behavior:
    - get() returns the page body; post_form() returns the page body; post_json() returns decoded JSON.
    - Cookies persist across calls until reset().
    - Every POST carries Origin and Referer (the last fetched page, else the POST URL).
    - reset() drops cookies and the remembered referer; close() releases resources.
    """

    def get(self, url: str, params: Mapping[str, str] | None = None) -> str: ...

    def post_form(self, url: str, fields: Mapping[str, str]) -> str: ...

    def post_json(self, url: str, body: Any) -> Any: ...

    def reset(self) -> None: ...

    def close(self) -> None: ...
