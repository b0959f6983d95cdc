"""
forensics.layout — Coarse layout descriptor and sportsbook template
scoring.

Each sportsbook renders slips with a recognisable shell: light or dark
theme, a brand-coloured header band, and a typical screenshot aspect
ratio.  The descriptor captures those three properties; templates are
plain dictionaries (loaded from ``configs/templates.yaml``):

    {"name": "FanDuel", "aliases": [...], "theme": "light",
     "accent": [20, 147, 255], "aspect_ratio": [1.3, 2.8]}

Template score (0 – 1.5):

* theme matches                 +0.3
* aspect ratio inside range     +0.2
* accent within tolerance       +0.5 x (1 - distance / tolerance)
* extracted vendor name matches +0.5
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import cv2
import numpy as np

from .utils import AnalyzerInputError, to_gray_u8

DARK_THEME_LUMA = 110.0


def layout_descriptor(
    rgb: np.ndarray,
    header_fraction: float = 0.15,
    min_accent_fraction: float = 0.02,
) -> Dict[str, Any]:
    """Describe the slip's theme, header accent colour and aspect ratio.

    Parameters
    ----------
    rgb : np.ndarray
        Input image of shape ``(H, W, 3)``, dtype ``uint8``.
    header_fraction : float
        Height of the header band as a fraction of the image height.
    min_accent_fraction : float
        Minimum fraction of saturated header pixels for an accent colour
        to be reported.

    Returns
    -------
    dict
        ``"theme"`` (``"dark"`` | ``"light"``), ``"aspect_ratio"``
        (height / width), ``"accent"`` (``[r, g, b]`` or ``None``) and
        ``"accent_fraction"``.
    """
    H, W = rgb.shape[:2]
    if H < 16 or W < 16:
        raise AnalyzerInputError(f"image too small for layout analysis ({W}x{H})")

    luma = float(to_gray_u8(rgb).mean())
    theme = "dark" if luma < DARK_THEME_LUMA else "light"

    band = rgb[: max(1, int(round(H * header_fraction)))]
    hsv = cv2.cvtColor(np.ascontiguousarray(band), cv2.COLOR_RGB2HSV)
    saturated = (hsv[..., 1] > 90) & (hsv[..., 2] > 60)
    frac = float(saturated.mean())

    accent: Optional[List[int]] = None
    if frac >= min_accent_fraction:
        accent = [int(v) for v in np.median(band[saturated], axis=0)]

    return {
        "theme": theme,
        "luma": luma,
        "aspect_ratio": float(H) / float(W),
        "accent": accent,
        "accent_fraction": frac,
    }


def _vendor_matches(vendor: Optional[str], template: Mapping[str, Any]) -> bool:
    if not vendor:
        return False
    v = "".join(vendor.lower().split())
    names = [template.get("name", "")] + list(template.get("aliases", []) or [])
    for n in names:
        n = "".join(str(n).lower().split())
        if len(n) >= 3 and n in v:
            return True
    return False


def template_score(
    descriptor: Mapping[str, Any],
    template: Mapping[str, Any],
    vendor: Optional[str] = None,
    color_tolerance: float = 60.0,
) -> float:
    score = 0.0
    if template.get("theme") == descriptor.get("theme"):
        score += 0.3

    lo, hi = template.get("aspect_ratio", (0.0, float("inf")))
    if lo <= descriptor.get("aspect_ratio", 0.0) <= hi:
        score += 0.2

    accent = descriptor.get("accent")
    ref = template.get("accent")
    if accent is not None and ref is not None:
        d = float(np.linalg.norm(np.asarray(accent, float) - np.asarray(ref, float)))
        if d < color_tolerance:
            score += 0.5 * (1.0 - d / color_tolerance)

    if _vendor_matches(vendor, template):
        score += 0.5
    return round(score, 4)


def match_templates(
    descriptor: Mapping[str, Any],
    templates: Sequence[Mapping[str, Any]],
    vendor: Optional[str] = None,
    color_tolerance: float = 60.0,
) -> List[Tuple[str, float]]:
    """Score every template; return ``[(name, score), ...]`` best first."""
    ranked = [
        (str(t["name"]), template_score(descriptor, t, vendor, color_tolerance))
        for t in templates
    ]
    ranked.sort(key=lambda x: x[1], reverse=True)
    return ranked
