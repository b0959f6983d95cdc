"""
VeryfiClient: receipt extraction (sportsbook name, stake amount, date)
through the Veryfi partner documents API.

The extracted vendor name feeds the template analyzer as a hint.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional

import requests

from forensics import ExternalSignals

from .base import HTTPServiceClient

VERYFI_ENDPOINT = "https://api.veryfi.com/api/v8/partner/documents/"


@dataclass
class SlipExtraction:
    """Fields pulled from a slip by the extraction service."""

    sportsbook: str
    amount: float
    date: str
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self, include_raw: bool = False) -> dict:
        out = {"sportsbook": self.sportsbook, "amount": self.amount, "date": self.date}
        if include_raw:
            out["rawData"] = self.raw
        return out

    def to_signals(self) -> ExternalSignals:
        vendor = None if self.sportsbook == "Unknown" else self.sportsbook
        return ExternalSignals(vendor=vendor, raw={"_service": "veryfi", **self.raw})


def parse_document(data: Dict[str, Any]) -> SlipExtraction:
    vendor = data.get("vendor")
    if isinstance(vendor, dict):
        vendor = vendor.get("name")
    if not isinstance(vendor, str) or not vendor.strip():
        vendor = "Unknown"
    try:
        amount = float(data.get("total") or 0)
    except (TypeError, ValueError):
        amount = 0.0
    slip_date = data.get("date") or date.today().isoformat()
    return SlipExtraction(
        sportsbook=vendor.strip(),
        amount=amount,
        date=str(slip_date).split(" ")[0],
        raw=data,
    )


class VeryfiClient(HTTPServiceClient):

    SERVICE_NAME = "Veryfi"

    def __init__(
        self,
        client_id: str,
        username: str,
        api_key: str,
        endpoint: str = VERYFI_ENDPOINT,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        if not client_id or not username or not api_key:
            raise ValueError("Veryfi credentials not configured")
        super().__init__(endpoint=endpoint, timeout=timeout, session=session)
        self.client_id = client_id
        self.username = username
        self.api_key = api_key

    def extract(self, image_bytes: bytes, filename: str = "bet_slip.jpg") -> SlipExtraction:
        data = self._post(
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "CLIENT-ID": self.client_id,
                "AUTHORIZATION": f"apikey {self.username}:{self.api_key}",
            },
            json={
                "file_name": filename or "bet_slip.jpg",
                "file_data": base64.b64encode(image_bytes).decode("utf-8"),
                "categories": ["receipt", "sports"],
                "auto_delete": True,
            },
        )
        return parse_document(data)
