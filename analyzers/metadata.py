"""
MetadataAnalyzer: flags slips whose container metadata names an image editor.

An absent signature is not evidence of authenticity (metadata is trivially
stripped), so the clean case is neutral rather than positive.
"""

from __future__ import annotations

from typing import Sequence

from forensics import SlipImage
from forensics.metadata import DEFAULT_EDITING_SOFTWARE, extract_metadata

from .base_analyzer import NEGATIVE, NEUTRAL, AnalysisResult, BaseAnalyzer, Finding


class MetadataAnalyzer(BaseAnalyzer):

    kind = "metadata"
    category = "Metadata"
    inconclusive_penalty = 0

    PENALTY = 30

    def __init__(
        self,
        signatures: Sequence[str] = DEFAULT_EDITING_SOFTWARE,
        penalty: int = PENALTY,
    ):
        self.signatures = tuple(s.lower() for s in signatures)
        self.penalty = int(penalty)

    def _analyze(self, image: SlipImage) -> AnalysisResult:
        meta = extract_metadata(image.data, signatures=self.signatures)
        matched = meta["editing_signatures"]

        if matched:
            names = ", ".join(matched)
            return AnalysisResult(
                Finding(
                    self.category, NEGATIVE,
                    f"Image shows signs of editing software usage ({names}).",
                ),
                self.penalty,
            )

        return AnalysisResult(
            Finding(self.category, NEUTRAL, "No strong metadata indicators found."),
            0,
        )
