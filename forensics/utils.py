"""
forensics.utils — Helpers shared by the slip detectors.

* ``AnalyzerInputError``: a detector cannot run on this image.
* Decoding (``load_image_rgb_bytes``, ``to_gray_u8``).
* Square tiling and robust z-scores for per-region statistics.
* ``jpeg_roundtrip`` for error level analysis.
* ``json_sanitize`` / ``save_json`` for writing verification reports.
"""

from __future__ import annotations

import io
import json
import math
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError


class AnalyzerInputError(Exception):
    """The image cannot be examined by a detector (recoverable)."""
    pass


def load_image_rgb_bytes(data: bytes) -> np.ndarray:
    """Decode an uploaded slip into an ``(H, W, 3)`` ``uint8`` array.

    Raises
    ------
    AnalyzerInputError
        If *data* is empty or not an image Pillow can read.
    """
    if not data:
        raise AnalyzerInputError("empty image payload")
    try:
        with Image.open(io.BytesIO(data)) as im:
            rgb = im.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise AnalyzerInputError(f"{type(exc).__name__}: {exc}") from exc
    return np.asarray(rgb, dtype=np.uint8).copy()


def to_gray_u8(rgb: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(np.ascontiguousarray(rgb), cv2.COLOR_RGB2GRAY)


def tile_grid(arr: np.ndarray, tile: int) -> Tuple[np.ndarray, int, int]:
    """Split *arr* into ``tile`` x ``tile`` blocks, dropping the ragged edge.

    Returns ``(blocks, rows, cols)`` where ``blocks`` has shape
    ``(rows, cols, tile, tile[, C])``.
    """
    rows, cols = arr.shape[0] // tile, arr.shape[1] // tile
    body = arr[: rows * tile, : cols * tile]
    shape = (rows, tile, cols, tile) + body.shape[2:]
    return body.reshape(shape).swapaxes(1, 2), rows, cols


def robust_z(x: np.ndarray, min_scale: float = 1.0) -> np.ndarray:
    """Median/MAD z-scores, with the scale floored at *min_scale*.

    The floor keeps near-constant populations (e.g. identical tiles)
    from turning rounding noise into huge scores.
    """
    x = np.asarray(x, dtype=np.float64)
    med = float(np.median(x))
    mad = float(np.median(np.abs(x - med)))
    scale = max(1.4826 * mad, float(min_scale))
    return (x - med) / scale


def jpeg_roundtrip(rgb: np.ndarray, quality: int) -> np.ndarray:
    """Encode *rgb* as JPEG at *quality* in memory and decode it again."""
    buf = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(rgb, dtype=np.uint8), mode="RGB").save(
        buf, format="JPEG", quality=int(quality),
    )
    buf.seek(0)
    with Image.open(buf) as im:
        return np.asarray(im.convert("RGB"), dtype=np.uint8)


def json_sanitize(obj: Any) -> Any:
    """Make detector output JSON-safe (numpy types, paths, NaN -> None)."""
    if isinstance(obj, dict):
        return {str(k): json_sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [json_sanitize(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return json_sanitize(obj.tolist())
    if isinstance(obj, np.generic):
        obj = obj.item()
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    return str(obj)


def save_json(data: Dict[str, Any], out_path: Union[str, Path]) -> str:
    """Write *data* as indented UTF-8 JSON, creating parent directories."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(
        json.dumps(json_sanitize(data), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return str(out_path)
