# fetchers/transport.py
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests
from requests.structures import CaseInsensitiveDict
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from core.errors import TransportError
from core.logger import get_logger

logger = get_logger(__name__)

SHOPIFY_STORE = os.getenv("SHOPIFY_STORE", "goldianlightandliving.myshopify.com").strip()
SHOPIFY_TIMEOUT = int(os.getenv("SHOPIFY_TIMEOUT", "30"))
# 1 means a single attempt: connection failures are not retried unless asked for.
SHOPIFY_FETCH_ATTEMPTS = max(1, int(os.getenv("SHOPIFY_FETCH_ATTEMPTS", "1")))


@dataclass
class RawResponse:
    status_code: int
    headers: CaseInsensitiveDict
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def path_and_query(url: str) -> str:
    """Reduce an absolute URL to the path+query part; relative paths pass through."""
    parsed = urlparse(url)
    if not (parsed.scheme and parsed.netloc):
        return url
    return parsed.path + (f"?{parsed.query}" if parsed.query else "")


class Transport:
    """
    One request/response cycle against the store's admin API. Non-2xx statuses
    are returned, not raised; only connection-level failures raise.

    requests.Session is not documented as thread-safe and the aggregator calls
    in from several worker threads, so each thread gets its own session unless
    one is passed in explicitly.
    """

    def __init__(
        self,
        credential: str,
        store: str | None = None,
        timeout: int | None = None,
        attempts: int | None = None,
        session: Optional[requests.Session] = None,
    ):
        self.store = store or SHOPIFY_STORE
        self.timeout = timeout or SHOPIFY_TIMEOUT
        self.attempts = attempts or SHOPIFY_FETCH_ATTEMPTS
        self.default_headers = {
            "X-Shopify-Access-Token": credential,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._shared_session = session
        if session is not None:
            session.headers.update(self.default_headers)
        self._local = threading.local()
        self.retry_wait = wait_exponential_jitter(initial=1, max=30)

    @property
    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.default_headers)
            self._local.session = session
        return session

    def _send(self, method: str, url: str, headers: Dict[str, str] | None) -> requests.Response:
        return self.session.request(method, url, headers=headers, timeout=self.timeout)

    def request(
        self, path: str, method: str = "GET", headers: Dict[str, str] | None = None
    ) -> RawResponse:
        url = f"https://{self.store}{path_and_query(path)}"
        logger.debug("%s %s", method, url)

        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            resp = retrying(self._send, method, url, headers)
        except requests.RequestException as e:
            logger.error("Transport failure for %s %s: %s", method, url, e)
            raise TransportError(f"{method} {url} failed: {e}") from e

        try:
            body: Any = resp.json()
        except ValueError:
            body = resp.text

        return RawResponse(
            status_code=resp.status_code,
            headers=CaseInsensitiveDict(resp.headers),
            body=body,
        )
