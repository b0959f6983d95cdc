"""
FontConsistencyAnalyzer: mixed stroke weights across the slip's text lines.
"""

from __future__ import annotations

from forensics import SlipImage
from forensics.typography import glyph_profile

from .base_analyzer import NEGATIVE, POSITIVE, AnalysisResult, BaseAnalyzer, Finding


class FontConsistencyAnalyzer(BaseAnalyzer):

    kind = "font_consistency"
    category = "Font Consistency"
    inconclusive_penalty = 5

    MISMATCH_CATEGORY = "Font Mismatch"
    PENALTY = 20

    def __init__(
        self,
        max_spread: float = 2.0,
        min_glyphs: int = 12,
        min_line_glyphs: int = 4,
        penalty: int = PENALTY,
    ):
        self.max_spread = float(max_spread)
        self.min_glyphs = int(min_glyphs)
        self.min_line_glyphs = int(min_line_glyphs)
        self.penalty = int(penalty)

    def _analyze(self, image: SlipImage) -> AnalysisResult:
        profile = glyph_profile(
            image.rgb,
            min_glyphs=self.min_glyphs,
            min_line_glyphs=self.min_line_glyphs,
        )

        if profile["spread"] > self.max_spread:
            return AnalysisResult(
                Finding(
                    self.MISMATCH_CATEGORY, NEGATIVE,
                    "Multiple font styles detected where uniform font is expected "
                    f"(stroke weight varies {profile['spread']:.1f}x across "
                    f"{profile['lines']} lines).",
                ),
                self.penalty,
            )

        return AnalysisResult(
            Finding(
                self.category, POSITIVE,
                "Fonts appear consistent with known sportsbook typography.",
            ),
            0,
        )
