from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


@dataclass
class HttpClient:
    """Fetches job pages for the capture command."""

    user_agent: str
    timeout_sec: int = 20
    retries: int = 3

    _browser_headers = {
        "User-Agent": (
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __post_init__(self) -> None:
        self.session = requests.Session()
        retry = Retry(
            total=self.retries,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET", "HEAD"),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def fetch_page(self, url: str, *, headers: Optional[dict] = None) -> tuple[str, str]:
        """Return (html, final_url) after redirects."""
        h = {"User-Agent": self.user_agent}
        if headers:
            h.update(headers)
        resp = self.session.get(url, headers=h, timeout=self.timeout_sec)
        resp.raise_for_status()
        resp.encoding = resp.encoding or "utf-8"
        return resp.text, resp.url or url

    def fetch_page_smart(self, url: str) -> tuple[str, str]:
        """Try with our own user agent first, then a browser-like header set."""
        last_exc: Optional[requests.RequestException] = None
        for h in (None, self._browser_headers):
            try:
                return self.fetch_page(url, headers=h)
            except requests.RequestException as ex:
                last_exc = ex
        assert last_exc is not None
        raise last_exc
