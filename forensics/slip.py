"""
forensics.slip — The image handle passed to every analyzer.

A :class:`SlipImage` wraps the raw bytes of one uploaded slip together
with any :class:`ExternalSignals` that a collaborating detection or
extraction service already computed for it.  Pixels are decoded lazily,
once, and shared read-only between analyzers.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from .utils import load_image_rgb_bytes


@dataclass(frozen=True)
class ExternalSignals:
    """Pre-computed results from external detection/extraction services.

    Every field is optional; analyzers that need a missing signal report
    an inconclusive finding instead of guessing.
    """

    ai_generated: Optional[float] = None    # [0, 1] probability
    quality: Optional[float] = None         # [0, 1] quality score
    face_count: Optional[int] = None
    vendor: Optional[str] = None            # sportsbook name from OCR/extraction
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    def is_empty(self) -> bool:
        return (
            self.ai_generated is None
            and self.quality is None
            and self.face_count is None
            and not self.vendor
        )


def merge_signals(*signals: Optional[ExternalSignals]) -> ExternalSignals:
    """Combine partial signals from several services; first non-None wins.

    Raw payloads are merged into one dict keyed by the originating
    service when the payloads carry a ``"_service"`` key, otherwise
    shallow-merged.
    """
    values: Dict[str, Any] = {
        "ai_generated": None,
        "quality": None,
        "face_count": None,
        "vendor": None,
    }
    raw: Dict[str, Any] = {}
    for s in signals:
        if s is None:
            continue
        for key in values:
            if values[key] is None:
                v = getattr(s, key)
                if v is not None and v != "":
                    values[key] = v
        if s.raw:
            service = s.raw.get("_service")
            if service:
                raw[str(service)] = s.raw
            else:
                raw.update(s.raw)
    return ExternalSignals(raw=raw, **values)


class SlipImage:
    """Opaque handle to one slip image.

    Parameters
    ----------
    data : bytes
        Raw encoded image bytes as uploaded.
    filename : str, optional
        Original filename, used for logging and service uploads.
    signals : ExternalSignals, optional
        Collaborator-provided detection results.
    """

    def __init__(
        self,
        data: bytes,
        filename: Optional[str] = None,
        signals: Optional[ExternalSignals] = None,
    ):
        self.data = bytes(data or b"")
        self.filename = filename or "slip.jpg"
        self.signals = signals or ExternalSignals()
        self._rgb: Optional[np.ndarray] = None
        self._lock = threading.Lock()

    @classmethod
    def from_path(
        cls,
        image_path: Union[str, Path],
        signals: Optional[ExternalSignals] = None,
    ) -> "SlipImage":
        p = Path(image_path)
        return cls(p.read_bytes(), filename=p.name, signals=signals)

    def with_signals(self, signals: ExternalSignals) -> "SlipImage":
        """Return a new handle over the same bytes with *signals* attached."""
        return SlipImage(self.data, filename=self.filename, signals=signals)

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def rgb(self) -> np.ndarray:
        """Decoded ``(H, W, 3)`` ``uint8`` pixels (read-only, cached).

        Raises :class:`~forensics.utils.AnalyzerInputError` when the
        bytes are not a decodable image.
        """
        with self._lock:
            if self._rgb is None:
                arr = load_image_rgb_bytes(self.data)
                arr.setflags(write=False)
                self._rgb = arr
            return self._rgb

    def __repr__(self) -> str:
        return f"SlipImage(filename={self.filename!r}, bytes={self.size_bytes})"
