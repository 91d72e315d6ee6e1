import logging
from typing import Any, Dict, Optional

import requests

from contextpages.crosscutting.config import TransportSettings
from contextpages.domain.errors import RateLimited, TemporaryFailure, PermanentFailure, NotFound

logger = logging.getLogger(__name__)

HERMES_SCHEME = 'hm://'


class HttpTransport:
    """Synchronous JSON reads against the remote context service.

    Failures are mapped onto domain errors and never retried here.
    """

    def __init__(self,
                 base_url: str,
                 access_token: Optional[str] = None,
                 timeout: float = 15.0,
                 session: Optional[requests.Session] = None):
        """Initialize transport.

        Args:
            base_url: Root url that ``hm://`` and relative locators are joined onto
            access_token: Bearer token sent with every request
            timeout: Per-request timeout in seconds
            session: Optional preconfigured requests session
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault('Accept', 'application/json')
        if access_token:
            self._session.headers['Authorization'] = f'Bearer {access_token}'

    @classmethod
    def from_settings(cls, settings: TransportSettings,
                      session: Optional[requests.Session] = None) -> 'HttpTransport':
        return cls(
            base_url=settings.base_url,
            access_token=settings.access_token,
            timeout=settings.timeout_seconds,
            session=session,
        )

    def url_for(self, locator: str) -> str:
        """Map a locator to the http url it is read from."""
        if locator.startswith(('http://', 'https://')):
            return locator
        if locator.startswith(HERMES_SCHEME):
            locator = locator[len(HERMES_SCHEME):]
        return f"{self.base_url}/{locator.lstrip('/')}"

    def get_json(self, locator: str) -> Dict[str, Any]:
        url = self.url_for(locator)
        logger.debug("GET %s", url)
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.Timeout as e:
            raise TemporaryFailure(f"Request to {url} timed out: {e}")
        except requests.RequestException as e:
            raise TemporaryFailure(f"Request to {url} failed: {e}")

        self._raise_for_status(response, url)

        try:
            body = response.json()
        except ValueError as e:
            raise PermanentFailure(f"Malformed JSON from {url}: {e}")
        if not isinstance(body, dict):
            raise PermanentFailure(f"Expected JSON object from {url}, got {type(body).__name__}")
        return body

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 429:
            retry_after = response.headers.get('Retry-After', '1')
            try:
                retry_after_ms = int(float(retry_after) * 1000)
            except ValueError:
                retry_after_ms = 1000
            logger.warning("Rate limited by %s, retry after %dms", url, retry_after_ms)
            raise RateLimited(retry_after_ms=retry_after_ms)
        if status == 404:
            raise NotFound(f"Not found: {url}")
        if status >= 500:
            raise TemporaryFailure(f"Server error {status} from {url}")
        raise PermanentFailure(f"Request to {url} rejected with status {status}")
