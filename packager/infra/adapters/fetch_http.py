from __future__ import annotations

from typing import Optional

import requests

from ..contracts import Fetcher
from ..errors import NetworkError


class HttpFetcher(Fetcher):
    """Fetcher over HTTP(S) using requests. No retries."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session

    def fetch(self, url: str, *, timeout_s: float) -> bytes:
        getter = self.session.get if self.session is not None else requests.get
        try:
            r = getter(url, timeout=timeout_s)
        except requests.RequestException as e:
            raise NetworkError(f"Failed to fetch {url}: {e.__class__.__name__}", detail=str(e)) from e
        if not (200 <= r.status_code < 300):
            raise NetworkError(f"Failed to fetch {url}: HTTP {r.status_code}", detail=(r.text or "")[:2000])
        return r.content
