"""
CompressionAnalyzer: irregular recompression error around the slip's text.
"""

from __future__ import annotations

import logging

from forensics import SlipImage
from forensics.compression import compression_profile

from .base_analyzer import NEGATIVE, POSITIVE, AnalysisResult, BaseAnalyzer, Finding

logger = logging.getLogger(__name__)


class CompressionAnalyzer(BaseAnalyzer):
    """
    Negative when at least one text-bearing tile recompresses with an error
    far above its peers (see forensics.compression for the statistic).
    """

    kind = "compression"
    category = "Compression"
    inconclusive_penalty = 5

    ANOMALY_CATEGORY = "Compression Anomaly"
    PENALTY = 25

    def __init__(
        self,
        quality: int = 90,
        tile: int = 32,
        edge_threshold: float = 0.02,
        z_threshold: float = 4.0,
        min_delta: float = 2.0,
        min_critical_tiles: int = 4,
        penalty: int = PENALTY,
    ):
        self.quality = int(quality)
        self.tile = int(tile)
        self.edge_threshold = float(edge_threshold)
        self.z_threshold = float(z_threshold)
        self.min_delta = float(min_delta)
        self.min_critical_tiles = int(min_critical_tiles)
        self.penalty = int(penalty)

    def _analyze(self, image: SlipImage) -> AnalysisResult:
        profile = compression_profile(
            image.rgb,
            quality=self.quality,
            tile=self.tile,
            edge_threshold=self.edge_threshold,
            z_threshold=self.z_threshold,
            min_delta=self.min_delta,
            min_critical_tiles=self.min_critical_tiles,
        )
        logger.debug(
            "compression: %d/%d critical tiles, max_z=%.2f, outliers=%d",
            profile["critical_tiles"], profile["total_tiles"],
            profile["max_z"], len(profile["outlier_tiles"]),
        )

        if profile["irregular"]:
            n = len(profile["outlier_tiles"])
            return AnalysisResult(
                Finding(
                    self.ANOMALY_CATEGORY, NEGATIVE,
                    f"Irregular compression detected near critical regions "
                    f"({n} of {profile['critical_tiles']} text regions).",
                ),
                self.penalty,
            )

        return AnalysisResult(
            Finding(self.category, POSITIVE, "Compression artifacts appear uniform across image."),
            0,
        )
