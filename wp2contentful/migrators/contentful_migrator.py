"""
Contentful Content Management API helpers for WordPress → Contentful migration.

This module implements low-level interactions with the Contentful CMA.
:class:`ContentfulClient` wraps the calls the migration needs: reading the
space, environment and content types, creating assets from a remote URL,
processing and publishing them, listing the published assets, and creating
and publishing entries.  Every call is scoped to one space and environment.

A thread-safe rate limiter is shared by all calls of a client so that the
worker pool never exceeds Contentful's request budget, and a generic retry
wrapper handles transient network errors and rate limiting responses
(429 or 5xx).

Usage example::

    from wp2contentful.migrators.contentful_migrator import ContentfulClient, RateLimiter

    client = ContentfulClient("CFPAT-...", "space-id", "master", limiter=RateLimiter(420))
    asset = client.create_asset(request.to_fields("en-US"))
    asset = client.process_asset(asset)
    client.publish_asset(asset)

"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from wp2contentful.utils.errors import AssetProcessingError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.contentful.com"
CMA_CONTENT_TYPE = "application/vnd.contentful.management.v1+json"
RETRY_STATUSES = (429, 500, 502, 503, 504)
LIST_PAGE_SIZE = 100

###############################################################################
# Rate limiting and retry utilities
###############################################################################

class RateLimiter:
    """
    Thread-safe time-based rate limiter.  Ensures that no more than ``rpm``
    requests are dispatched per minute, whichever worker thread sends them.
    Callers reserve the next free slot under a lock and sleep outside of it,
    so waiting workers queue up one interval apart.
    """

    def __init__(
        self,
        rpm: int = 420,
        time_fn: Callable[[], float] = time.monotonic,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> None:
        self.rpm = max(1, rpm)
        self.interval = 60.0 / float(self.rpm)
        self._time_fn = time_fn
        self._sleep_fn = sleep_fn
        self._next_slot: Optional[float] = None
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            now = self._time_fn()
            slot = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = slot + self.interval
        delay = slot - now
        if delay > 0:
            self._sleep_fn(delay)


def contentful_headers(access_token: str, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Construct the default headers required for CMA requests.

    :param access_token: A Contentful personal access token.
    :param extra: Optional headers merged on top of the defaults.
    :return: A dictionary of headers including Authorization.
    """
    headers = {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": CMA_CONTENT_TYPE,
    }
    if extra:
        headers.update(extra)
    return headers


def _retry_delay(response: requests.Response, default: float) -> float:
    for header in ("Retry-After", "X-Contentful-RateLimit-Reset"):
        value = response.headers.get(header)
        if value:
            try:
                return max(0.0, float(value))
            except ValueError:
                continue
    return default


def with_retries(
    fn: Callable[[], requests.Response],
    *,
    max_attempts: int = 5,
    base_delay: float = 0.7,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on
    transient HTTP errors.  Retries are attempted on status codes 429
    (too many requests) and 5xx server errors.  The wait honors
    ``Retry-After`` or ``X-Contentful-RateLimit-Reset`` when present and
    otherwise backs off exponentially.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param base_delay: Base delay in seconds for exponential backoff.
    :return: The successful ``requests.Response``.
    :raises requests.HTTPError: if all attempts fail.
    """
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status not in RETRY_STATUSES or attempt >= max_attempts - 1:
                raise
            wait = _retry_delay(e.response, base_delay * (2 ** attempt))
            logger.debug("HTTP %s, retrying in %.1fs", status, wait)
            sleep_fn(wait)
            attempt += 1
        except requests.RequestException:
            if attempt >= max_attempts - 1:
                raise
            sleep_fn(base_delay * (2 ** attempt))
            attempt += 1


def _sys(resource: Dict[str, Any]) -> Dict[str, Any]:
    return resource.get("sys") or {}


###############################################################################
# Client
###############################################################################

class ContentfulClient:
    """Environment-scoped CMA client sharing one session and one rate limiter."""

    def __init__(
        self,
        access_token: str,
        space_id: str,
        environment: str = "master",
        *,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        limiter: Optional[RateLimiter] = None,
        timeout: float = 60,
        max_retries: int = 5,
        poll_interval: float = 1.0,
        max_polls: int = 10,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> None:
        self.access_token = access_token
        self.space_id = space_id
        self.environment = environment
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.limiter = limiter or RateLimiter()
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.poll_interval = poll_interval
        self.max_polls = max(1, max_polls)
        self._sleep_fn = sleep_fn

    @property
    def space_url(self) -> str:
        return f"{self.base_url}/spaces/{self.space_id}"

    @property
    def environment_url(self) -> str:
        return f"{self.space_url}/environments/{self.environment}"

    def _request(
        self,
        method: str,
        url: str,
        *,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        def do_request() -> requests.Response:
            self.limiter.wait()
            return self.session.request(
                method,
                url,
                headers=contentful_headers(self.access_token, headers),
                json=body,
                params=params,
                timeout=self.timeout,
            )

        return with_retries(do_request, max_attempts=self.max_retries, sleep_fn=self._sleep_fn)

    def _json(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        resp = self._request(method, url, **kwargs)
        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    # --- Space level ---

    def get_space(self) -> Dict[str, Any]:
        return self._json("GET", self.space_url)

    def get_environment(self) -> Dict[str, Any]:
        return self._json("GET", self.environment_url)

    def get_content_types(self) -> List[Dict[str, Any]]:
        data = self._json("GET", f"{self.environment_url}/content_types", params={"limit": 1000})
        return data.get("items", [])

    # --- Assets ---

    def list_published_assets(self, page_size: int = LIST_PAGE_SIZE) -> List[Dict[str, Any]]:
        """Return every published asset of the environment, following ``skip``/``limit`` pages."""
        items: List[Dict[str, Any]] = []
        skip = 0
        while True:
            data = self._json(
                "GET",
                f"{self.environment_url}/public/assets",
                params={"skip": skip, "limit": page_size},
            )
            batch = data.get("items", [])
            items.extend(batch)
            total = data.get("total", len(items))
            skip += len(batch)
            if not batch or skip >= total:
                return items

    def create_asset(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._json("POST", f"{self.environment_url}/assets", body={"fields": fields})

    def get_asset(self, asset_id: str) -> Dict[str, Any]:
        return self._json("GET", f"{self.environment_url}/assets/{asset_id}")

    def process_asset(self, asset: Dict[str, Any]) -> Dict[str, Any]:
        """
        Ask Contentful to process the file of every locale of ``asset`` and
        wait until each locale has a URL.

        :return: The processed asset, carrying its latest version.
        :raises AssetProcessingError: if processing does not finish in time.
        """
        asset_id = _sys(asset).get("id")
        version = _sys(asset).get("version")
        locales = list(((asset.get("fields") or {}).get("file") or {}).keys())
        for locale in locales:
            self._request(
                "PUT",
                f"{self.environment_url}/assets/{asset_id}/files/{locale}/process",
                headers={"X-Contentful-Version": str(version)},
            )

        for attempt in range(self.max_polls):
            current = self.get_asset(asset_id)
            files = (current.get("fields") or {}).get("file") or {}
            if all((files.get(locale) or {}).get("url") for locale in locales):
                return current
            logger.debug("Asset %s not processed yet (poll %d)", asset_id, attempt + 1)
            self._sleep_fn(self.poll_interval)
        raise AssetProcessingError(f"Asset {asset_id} was not processed after {self.max_polls} polls")

    def publish_asset(self, asset: Dict[str, Any]) -> Dict[str, Any]:
        sys = _sys(asset)
        return self._json(
            "PUT",
            f"{self.environment_url}/assets/{sys.get('id')}/published",
            headers={"X-Contentful-Version": str(sys.get("version"))},
        )

    # --- Entries ---

    def create_entry(self, content_type: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._json(
            "POST",
            f"{self.environment_url}/entries",
            body={"fields": fields},
            headers={"X-Contentful-Content-Type": content_type},
        )

    def publish_entry(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        sys = _sys(entry)
        return self._json(
            "PUT",
            f"{self.environment_url}/entries/{sys.get('id')}/published",
            headers={"X-Contentful-Version": str(sys.get("version"))},
        )
