import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit

import requests
from companion_core.domain.errors import TransportError, ValidationError
from companion_core.domain.models import Reading

logger = logging.getLogger(__name__)


class RelayClient:
    """HTTP client for the relay API.

    Network failures and unexpected statuses raise ``TransportError``; a 400
    answer to a submission raises ``ValidationError`` with the relay's reason.
    """

    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[Any] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    def fetch_history(self) -> List[Reading]:
        response = self._request("GET", "/data")
        if response.status_code != 200:
            raise TransportError(f"GET /data answered {response.status_code}")
        try:
            return [Reading.from_dict(d) for d in response.json()]
        except (ValueError, KeyError, TypeError) as exc:
            raise TransportError(f"GET /data returned an unreadable body: {exc}") from exc

    def submit_reading(self, payload: Dict[str, Any]) -> None:
        response = self._request("POST", "/data", json=payload)
        if response.status_code == 400:
            raise ValidationError(response.json().get("error", "rejected"))
        if response.status_code != 200:
            raise TransportError(f"POST /data answered {response.status_code}")

    def hello(self) -> str:
        response = self._request("GET", "/api/hello")
        if response.status_code != 200:
            raise TransportError(f"GET /api/hello answered {response.status_code}")
        return response.json()["message"]

    @property
    def live_url(self) -> str:
        parts = urlsplit(self.base_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        return urlunsplit((scheme, parts.netloc, parts.path.rstrip("/") + "/ws", "", ""))
