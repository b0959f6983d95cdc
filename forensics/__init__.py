"""
forensics — Deterministic image detectors for bet-slip verification.

Each module examines one aspect of a slip image and returns a plain
dictionary of measurements.  The analyzers in :mod:`analyzers` turn
those measurements into findings and penalties.

Modules
-------
slip                The image handle (``SlipImage``) and the
                    ``ExternalSignals`` collaborators attach to it.
metadata            Container metadata and editing-software signatures.
compression         Tile-level error level analysis around text regions.
typography          Glyph stroke/height statistics per text line.
layout              Theme / header-accent / aspect descriptor and
                    sportsbook template scoring.
utils               Image decoding, tiling, JPEG round-trip and JSON
                    helpers, plus ``AnalyzerInputError``.

Usage
-----
    from forensics import SlipImage
    from forensics.compression import compression_profile

    slip = SlipImage.from_path("slip.png")
    profile = compression_profile(slip.rgb)
"""

from .slip import ExternalSignals, SlipImage, merge_signals
from .utils import AnalyzerInputError

__all__ = [
    "AnalyzerInputError",
    "ExternalSignals",
    "SlipImage",
    "merge_signals",
]
