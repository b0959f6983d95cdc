"""
SightengineClient: AI-generation, quality and face signals from the
Sightengine check API.

    POST https://api.sightengine.com/1.0/check.json
      media=<file>, models=genai,quality,face-attributes,
      api_user=..., api_secret=...

Response fields used:
    type.ai_generated   -> ExternalSignals.ai_generated
    quality.score       -> ExternalSignals.quality
    len(faces)          -> ExternalSignals.face_count
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from forensics import ExternalSignals

from .base import DetectionServiceError, HTTPServiceClient, json_section

SIGHTENGINE_ENDPOINT = "https://api.sightengine.com/1.0/check.json"
DEFAULT_MODELS = "genai,quality,face-attributes"


def _as_probability(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    return v if 0.0 <= v <= 1.0 else None


def parse_check_response(data: Dict[str, Any]) -> ExternalSignals:
    """Map a Sightengine check payload onto ExternalSignals."""
    ai = _as_probability(json_section(data, "type").get("ai_generated"))
    quality = _as_probability(json_section(data, "quality").get("score"))

    faces = data.get("faces")
    face_count = len(faces) if isinstance(faces, list) else None

    return ExternalSignals(
        ai_generated=ai,
        quality=quality,
        face_count=face_count,
        raw={"_service": "sightengine", **data},
    )


class SightengineClient(HTTPServiceClient):

    SERVICE_NAME = "Sightengine"

    def __init__(
        self,
        api_user: str,
        api_secret: str,
        endpoint: str = SIGHTENGINE_ENDPOINT,
        models: str = DEFAULT_MODELS,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_user or not api_secret:
            raise ValueError("Sightengine credentials not configured")
        super().__init__(endpoint=endpoint, timeout=timeout, session=session)
        self.api_user = api_user
        self.api_secret = api_secret
        self.models = models

    def check(self, image_bytes: bytes, filename: str = "slip.jpg") -> ExternalSignals:
        data = self._post(
            files={"media": (filename, image_bytes)},
            data={
                "models": self.models,
                "api_user": self.api_user,
                "api_secret": self.api_secret,
            },
        )
        if data.get("status", "success") != "success":
            message = json_section(data, "error").get("message", "unknown error")
            raise DetectionServiceError(f"Sightengine API error: {message}")
        return parse_check_response(data)
