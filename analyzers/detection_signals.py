"""
Analyzers that consume results already computed by an external detection
service (see services/) instead of looking at pixels themselves.

When the service was not called, or failed, the signal is missing and the
check reports neutral with no penalty.
"""

from __future__ import annotations

from typing import Optional

from forensics import AnalyzerInputError, SlipImage

from .base_analyzer import (
    NEGATIVE,
    POSITIVE,
    AnalysisResult,
    BaseAnalyzer,
    ContinuousScoreAnalyzer,
    Finding,
)


class AIGenerationAnalyzer(ContinuousScoreAnalyzer):
    """Banded penalty on the AI-generation / heavy-manipulation probability."""

    kind = "ai_generation"
    category = "AI Detection"
    inconclusive_penalty = 0

    def _score(self, image: SlipImage) -> Optional[float]:
        score = image.signals.ai_generated
        if score is None:
            raise AnalyzerInputError("no AI-generation score supplied")
        return float(score)

    def _describe(self, band: str, score: float) -> str:
        pct = round(score * 100)
        if band == "high":
            return f"High probability ({pct}%) of AI-generated or heavily manipulated content."
        if band == "moderate":
            return f"Moderate probability ({pct}%) of digital manipulation detected."
        return "Low probability of AI generation or heavy manipulation."


class ImageQualityAnalyzer(BaseAnalyzer):
    """Low capture quality suggests a screenshot or re-photograph of an original."""

    kind = "image_quality"
    category = "Image Quality"
    inconclusive_penalty = 0

    PENALTY = 15

    def __init__(self, min_quality: float = 0.5, penalty: int = PENALTY):
        self.min_quality = float(min_quality)
        self.penalty = int(penalty)

    def _analyze(self, image: SlipImage) -> AnalysisResult:
        quality = image.signals.quality
        if quality is None:
            raise AnalyzerInputError("no quality score supplied")

        if float(quality) < self.min_quality:
            return AnalysisResult(
                Finding(
                    self.category, NEGATIVE,
                    "Poor image quality may indicate screenshot or re-photograph of original.",
                ),
                self.penalty,
            )
        return AnalysisResult(
            Finding(self.category, POSITIVE, "Image quality consistent with direct capture."),
            0,
        )


class ContentAnalyzer(BaseAnalyzer):
    """A bet slip has no business containing faces."""

    kind = "content"
    category = "Content Analysis"
    inconclusive_penalty = 0

    PENALTY = 20

    def __init__(self, penalty: int = PENALTY):
        self.penalty = int(penalty)

    def _analyze(self, image: SlipImage) -> AnalysisResult:
        faces = image.signals.face_count
        if faces is None:
            raise AnalyzerInputError("no face count supplied")

        if int(faces) > 0:
            return AnalysisResult(
                Finding(
                    self.category, NEGATIVE,
                    f"Unexpected content detected (faces found in image: {int(faces)}).",
                ),
                self.penalty,
            )
        return AnalysisResult(
            Finding(self.category, POSITIVE, "No unexpected content detected."),
            0,
        )
