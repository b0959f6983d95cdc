"""
forensics.typography — Glyph stroke statistics for font-consistency
checks.

Sportsbook apps render a slip with one typeface family, so the ratio
between a glyph's stroke width and its height stays close to constant
from line to line.  Text typed over a slip in an editor rarely matches
the original weight.  This module estimates that ratio per text line.

Algorithm
---------
1. Binarise with Otsu, inverting for dark-theme slips so ink is always
   the foreground.
2. Treat each 8-connected component as a glyph; drop specks and
   components that are too tall to be text.
3. Stroke width = 2 x the maximum of the L2 distance transform inside
   the glyph.
4. Group glyphs into lines by vertical centre.
5. For every line with at least *min_line_glyphs* glyphs take the median
   stroke/height ratio; the **spread** is max / min over lines.

This module does not produce output files.
"""

from __future__ import annotations

from typing import Any, Dict, List

import cv2
import numpy as np

from .utils import AnalyzerInputError, to_gray_u8


def _binarise_ink(gray: np.ndarray) -> np.ndarray:
    # Dark-theme slips print light text on a dark background
    if float(gray.mean()) < 110.0:
        gray = 255 - gray
    _, ink = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)
    return ink


def _group_lines(glyphs: List[Dict[str, float]]) -> List[List[Dict[str, float]]]:
    if not glyphs:
        return []
    med_h = float(np.median([g["h"] for g in glyphs]))
    lines: List[List[Dict[str, float]]] = []
    for g in sorted(glyphs, key=lambda g: g["cy"]):
        if lines:
            cur = lines[-1]
            cy = sum(x["cy"] for x in cur) / len(cur)
            if abs(g["cy"] - cy) <= 0.5 * med_h:
                cur.append(g)
                continue
        lines.append([g])
    return lines


def glyph_profile(
    rgb: np.ndarray,
    min_area: int = 6,
    max_height_frac: float = 0.2,
    min_glyphs: int = 12,
    min_line_glyphs: int = 4,
) -> Dict[str, Any]:
    """Estimate per-line stroke-width/height ratios.

    Parameters
    ----------
    rgb : np.ndarray
        Input image of shape ``(H, W, 3)``, dtype ``uint8``.
    min_area : int
        Components smaller than this (pixels) are treated as noise.
    max_height_frac : float
        Components taller than this fraction of the image height are
        not glyphs (borders, banners, photos).
    min_glyphs : int
        Fewer usable glyphs than this makes the check inconclusive.
    min_line_glyphs : int
        Lines with fewer glyphs are ignored.

    Returns
    -------
    dict
        * ``"glyphs"`` — Number of usable glyphs.
        * ``"lines"`` — Number of lines compared.
        * ``"line_ratios"`` — Median stroke/height ratio per line.
        * ``"spread"`` — ``max(line_ratios) / min(line_ratios)``.

    Raises
    ------
    AnalyzerInputError
        If there is not enough text to compare at least two lines.
    """
    gray = to_gray_u8(rgb)
    H = gray.shape[0]
    ink = _binarise_ink(gray)

    num, labels, stats, centroids = cv2.connectedComponentsWithStats(ink, connectivity=8)
    dist = cv2.distanceTransform(ink, cv2.DIST_L2, 3)

    glyphs: List[Dict[str, float]] = []
    max_h = max(4, int(H * max_height_frac))
    for i in range(1, num):
        x, y, w, h, area = stats[i].tolist()
        if area < min_area or h < 4 or h > max_h:
            continue
        region = labels[y : y + h, x : x + w] == i
        stroke = 2.0 * float(dist[y : y + h, x : x + w][region].max())
        glyphs.append({
            "cy": float(centroids[i][1]),
            "h": float(h),
            "ratio": stroke / float(h),
        })

    if len(glyphs) < min_glyphs:
        raise AnalyzerInputError(
            f"only {len(glyphs)} glyphs found (need {min_glyphs})"
        )

    line_ratios = [
        float(np.median([g["ratio"] for g in line]))
        for line in _group_lines(glyphs)
        if len(line) >= min_line_glyphs
    ]
    if len(line_ratios) < 2:
        raise AnalyzerInputError("fewer than two text lines to compare")

    lo = min(line_ratios)
    spread = max(line_ratios) / lo if lo > 0 else float("inf")
    return {
        "glyphs": len(glyphs),
        "lines": len(line_ratios),
        "line_ratios": line_ratios,
        "spread": float(spread),
    }
