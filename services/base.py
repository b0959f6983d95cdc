"""
Shared plumbing for HTTP detection / extraction clients.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class DetectionServiceError(Exception):
    """An external detection or extraction service was unreachable or refused the request."""
    pass


def json_section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Return the object under *key*, or an empty dict when it is missing or not an object."""
    value = data.get(key)
    return value if isinstance(value, dict) else {}


class HTTPServiceClient:
    """
    Base for clients that POST one image to a JSON API.

    Credentials are passed in explicitly; nothing here reads the environment.
    """

    SERVICE_NAME = "service"

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.timeout = float(timeout)
        self._session = session or requests.Session()

    def _post(self, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._session.post(self.endpoint, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s request failed: %s", self.SERVICE_NAME, exc)
            raise DetectionServiceError(f"{self.SERVICE_NAME} unreachable: {exc}") from exc

        if not response.ok:
            raise DetectionServiceError(
                f"{self.SERVICE_NAME} API error: {response.status_code}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise DetectionServiceError(f"{self.SERVICE_NAME} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise DetectionServiceError(f"{self.SERVICE_NAME} returned unexpected payload")
        return data
