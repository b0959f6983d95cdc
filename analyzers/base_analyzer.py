"""
BaseAnalyzer: Abstract base class for every slip check.
Defines the contract every analyzer must fulfil and the records it returns.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from forensics import AnalyzerInputError, SlipImage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data model for a single analyzer's output
# ---------------------------------------------------------------------------

POSITIVE = "positive"
NEGATIVE = "negative"
NEUTRAL = "neutral"
VALID_STATUSES = {POSITIVE, NEGATIVE, NEUTRAL}

UNKNOWN_SOURCE = "Unknown"


@dataclass(frozen=True)
class Finding:
    """One analyzer's observation."""

    category: str       # which check produced it, e.g. "Metadata"
    status: str         # "positive" | "negative" | "neutral"
    detail: str         # human-readable explanation

    def __post_init__(self):
        if self.status not in VALID_STATUSES:
            raise ValueError(f"Invalid finding status: {self.status!r}")

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "status": self.status,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Finding + penalty (+ source hint, template analyzer only)."""

    finding: Finding
    penalty: int = 0
    source_hint: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.finding, Finding):
            raise TypeError(f"finding must be a Finding, got {type(self.finding).__name__}")
        if isinstance(self.penalty, bool) or not isinstance(self.penalty, int):
            raise TypeError(f"penalty must be an int, got {self.penalty!r}")
        if self.penalty < 0:
            raise ValueError(f"penalty must be >= 0, got {self.penalty}")


# ---------------------------------------------------------------------------
# Abstract base class
# ---------------------------------------------------------------------------

class BaseAnalyzer(ABC):
    """
    Abstract base analyzer. Subclasses implement `_analyze` with the actual
    check. The base class turns a recoverable failure (AnalyzerInputError)
    into the analyzer's documented inconclusive result.

    Class attributes a subclass sets:
        kind                   registry key used in configs/analyzers.yaml
        category               category of the inconclusive finding
        inconclusive_penalty   penalty when the check cannot run
    """

    kind: str = ""
    category: str = ""
    inconclusive_penalty: int = 0

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def analyze(self, image: SlipImage) -> AnalysisResult:
        try:
            return self._analyze(image)
        except AnalyzerInputError as exc:
            logger.info("%s check inconclusive for %s: %s", self.kind, image.filename, exc)
            return self.inconclusive(str(exc))

    def inconclusive(self, reason: str = "") -> AnalysisResult:
        """Neutral finding with this analyzer's fixed fallback penalty."""
        detail = "Check could not be completed"
        if reason:
            detail += f": {reason}"
        return AnalysisResult(
            finding=Finding(self.category, NEUTRAL, detail + "."),
            penalty=self.inconclusive_penalty,
        )

    # ------------------------------------------------------------------
    # Subclass contract
    # ------------------------------------------------------------------

    @abstractmethod
    def _analyze(self, image: SlipImage) -> AnalysisResult:
        """
        Run the check. Raise AnalyzerInputError when the image (or the
        signal this check relies on) is unusable.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r})"


class ContinuousScoreAnalyzer(BaseAnalyzer):
    """
    Analyzer whose underlying signal is a probability in [0, 1].

    Two-tier banding, higher score = more suspicious:
        score >  high_threshold                      -> negative, high_penalty
        moderate_threshold < score <= high_threshold -> negative, moderate_penalty
        score <= moderate_threshold                  -> positive, 0
    """

    HIGH_THRESHOLD = 0.7
    HIGH_PENALTY = 40
    MODERATE_THRESHOLD = 0.4
    MODERATE_PENALTY = 25

    def __init__(
        self,
        high_threshold: float = HIGH_THRESHOLD,
        high_penalty: int = HIGH_PENALTY,
        moderate_threshold: float = MODERATE_THRESHOLD,
        moderate_penalty: int = MODERATE_PENALTY,
    ):
        if not 0.0 <= moderate_threshold < high_threshold <= 1.0:
            raise ValueError(
                f"Bands must satisfy 0 <= moderate < high <= 1, "
                f"got moderate={moderate_threshold}, high={high_threshold}"
            )
        self.high_threshold = float(high_threshold)
        self.high_penalty = int(high_penalty)
        self.moderate_threshold = float(moderate_threshold)
        self.moderate_penalty = int(moderate_penalty)

    def _analyze(self, image: SlipImage) -> AnalysisResult:
        score = self._score(image)
        if score is None or not isinstance(score, (int, float)) or math.isnan(score):
            raise AnalyzerInputError(f"no usable score ({score!r})")
        if not 0.0 <= score <= 1.0:
            raise AnalyzerInputError(f"score {score} outside [0, 1]")

        if score > self.high_threshold:
            return AnalysisResult(
                Finding(self.category, NEGATIVE, self._describe("high", score)),
                self.high_penalty,
            )
        if score > self.moderate_threshold:
            return AnalysisResult(
                Finding(self.category, NEGATIVE, self._describe("moderate", score)),
                self.moderate_penalty,
            )
        return AnalysisResult(Finding(self.category, POSITIVE, self._describe("low", score)), 0)

    @abstractmethod
    def _score(self, image: SlipImage) -> Optional[float]:
        ...

    @abstractmethod
    def _describe(self, band: str, score: float) -> str:
        """Detail text for band "high" | "moderate" | "low"."""
        ...
