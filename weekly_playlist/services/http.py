"""Shared JSON-over-HTTP request handling for the REST clients"""
import logging
import time
from typing import Any, Dict, Iterable, Optional

import requests

from weekly_playlist.errors import TransportError

logger = logging.getLogger(__name__)

# Attempts made while the remote side answers 429 Too Many Requests
RATE_LIMIT_ATTEMPTS = 3
# Fallback wait when a 429 carries no Retry-After header
RATE_LIMIT_RETRY_BASE_DELAY = 2
# Never wait longer than this on a single Retry-After
RATE_LIMIT_MAX_DELAY = 60


class JsonApiClient:
    """Base class for REST clients; any non-success status is a TransportError"""

    success_statuses: Iterable[int] = (200,)

    def __init__(self, base_url: str, timeout: float = 15, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def _auth_headers(self) -> Dict[str, str]:
        return {}

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith('https://') or endpoint.startswith('http://'):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _make_request(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None,
                      payload: Optional[Any] = None) -> Any:
        """Make an authenticated request and return the decoded JSON body ({} when empty)"""
        url = self._url(endpoint)
        attempt = 0

        while True:
            attempt += 1
            logger.debug(f"Attempt {attempt}/{RATE_LIMIT_ATTEMPTS}: {method.upper()} {url} params={params}")
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    headers=self._auth_headers(),
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                logger.error(f"Request error for {method.upper()} {url}: {e}")
                raise TransportError(f"Request to {url} failed: {e}", url=url) from e

            if response.status_code == 429 and attempt < RATE_LIMIT_ATTEMPTS:
                retry_after = self._retry_after(response, attempt)
                logger.warning(f"Rate limit hit (429) for {url}. Retrying after {retry_after:.1f} seconds...")
                time.sleep(retry_after)
                continue

            if response.status_code not in self.success_statuses:
                body = response.text[:500] if response.text else ''
                logger.error(f"Unexpected status {response.status_code} for {method.upper()} {url}: {body}")
                raise TransportError(
                    f"{method.upper()} {url} returned {response.status_code}",
                    status_code=response.status_code,
                    url=url,
                    body=body,
                )

            logger.debug(f"Request successful (Status: {response.status_code}) to {url}")
            if response.status_code == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                logger.error(f"Failed to decode JSON response from {url}. Status: {response.status_code}. Response text: {response.text[:200]}")
                raise TransportError(
                    f"{method.upper()} {url} returned a non-JSON body",
                    status_code=response.status_code,
                    url=url,
                    body=response.text[:500],
                ) from e

    @staticmethod
    def _retry_after(response: requests.Response, attempt: int) -> float:
        raw = response.headers.get('Retry-After')
        try:
            delay = float(raw) if raw is not None else RATE_LIMIT_RETRY_BASE_DELAY * (2 ** (attempt - 1))
        except ValueError:
            delay = RATE_LIMIT_RETRY_BASE_DELAY * (2 ** (attempt - 1))
        return max(0.0, min(delay, RATE_LIMIT_MAX_DELAY))
