"""
forensics.compression — Tile-level Error Level Analysis around text.

A slip edited after its last save carries regions whose compression
history differs from the rest of the image: the pasted amount or odds
recompress with a different error than the untouched surroundings.
This module measures that on the regions that matter, the text.

Algorithm
---------
1. Re-encode the image as JPEG at *quality* and decode it back.
2. Take the per-pixel mean absolute difference across RGB channels
   (the ELA map).
3. Split the ELA map and a Canny edge map into *tile* x *tile* tiles.
4. Tiles whose edge density reaches *edge_threshold* are the
   **critical** tiles (printed text: amounts, odds, selections).
5. Z-score the mean ELA error of each critical tile against the other
   critical tiles (median / MAD).
6. A tile is an outlier when its z-score exceeds *z_threshold* and its
   error exceeds the median by at least *min_delta* grey levels.

This module does not produce output files.
"""

from __future__ import annotations

from typing import Any, Dict

import cv2
import numpy as np

from .utils import AnalyzerInputError, jpeg_roundtrip, robust_z, tile_grid, to_gray_u8


def ela_map(rgb: np.ndarray, quality: int = 90) -> np.ndarray:
    """Per-pixel ELA magnitude (float32, grey levels) at one JPEG quality."""
    rec = jpeg_roundtrip(rgb, quality)
    diff = np.abs(rgb.astype(np.int16) - rec.astype(np.int16)).astype(np.float32)
    return diff.mean(axis=2)


def compression_profile(
    rgb: np.ndarray,
    quality: int = 90,
    tile: int = 32,
    edge_threshold: float = 0.02,
    z_threshold: float = 4.0,
    min_delta: float = 2.0,
    min_critical_tiles: int = 4,
) -> Dict[str, Any]:
    """Measure compression-error irregularity across text-bearing tiles.

    Parameters
    ----------
    rgb : np.ndarray
        Input image of shape ``(H, W, 3)``, dtype ``uint8``.
    quality : int
        JPEG quality used for the re-encode.
    tile : int
        Side length of the square non-overlapping tiles (pixels).
    edge_threshold : float
        Minimum fraction of Canny edge pixels for a tile to count as
        critical.
    z_threshold : float
        Robust z-score above which a critical tile is an outlier.
    min_delta : float
        Minimum absolute excess error (grey levels) for an outlier.
    min_critical_tiles : int
        Fewer critical tiles than this makes the check inconclusive.

    Returns
    -------
    dict
        * ``"irregular"`` — ``True`` when at least one outlier exists.
        * ``"outlier_tiles"`` — ``[(row, col, z), ...]`` sorted by z.
        * ``"critical_tiles"`` / ``"total_tiles"`` — counts.
        * ``"median_error"`` / ``"max_z"`` — scalar summaries.

    Raises
    ------
    AnalyzerInputError
        If the image is too small to tile or has too little text.
    """
    ela = ela_map(rgb, quality=quality)
    edges = cv2.Canny(to_gray_u8(rgb), 80, 160)

    ela_tiles, nh, nw = tile_grid(ela, tile)
    if nh * nw < min_critical_tiles:
        raise AnalyzerInputError("image too small for tiling")
    edge_tiles, _, _ = tile_grid(edges, tile)

    tile_err = ela_tiles.reshape(nh, nw, -1).mean(axis=2)
    tile_edge = (edge_tiles.reshape(nh, nw, -1) > 0).mean(axis=2)

    critical = tile_edge >= edge_threshold
    n_critical = int(critical.sum())
    if n_critical < min_critical_tiles:
        raise AnalyzerInputError(
            f"only {n_critical} text regions found (need {min_critical_tiles})"
        )

    errs = tile_err[critical]
    z = robust_z(errs)
    median_err = float(np.median(errs))

    rows, cols = np.nonzero(critical)
    outliers = [
        (int(r), int(c), float(zi))
        for r, c, zi, e in zip(rows, cols, z, errs)
        if zi > z_threshold and (e - median_err) >= min_delta
    ]
    outliers.sort(key=lambda t: t[2], reverse=True)

    return {
        "irregular": bool(outliers),
        "outlier_tiles": outliers,
        "critical_tiles": n_critical,
        "total_tiles": int(nh * nw),
        "median_error": median_err,
        "max_z": float(np.max(z)),
        "quality": int(quality),
        "tile": int(tile),
    }
