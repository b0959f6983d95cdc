"""
forensics.metadata — Image metadata extraction and editing-software
signature scan.

Extracts structural metadata from the encoded image using Pillow
(PIL).  The returned dictionary includes:

* Byte size, format (PNG / JPEG / etc.), dimensions and colour mode.
* Every "software" style string the container carries: EXIF
  ``Software`` (tag 305) and ``ProcessingSoftware`` (tag 11), PNG text
  chunks, and the XMP ``CreatorTool`` attribute.
* Whether an Adobe Photoshop image-resource block (``Photoshop 3.0``
  APP13 segment) is embedded.
* The editing-software signatures matched against those strings.

This module does not produce output files; it returns a single
dictionary of scalar values.
"""

from __future__ import annotations

import io
import re
from typing import Any, Dict, Iterable, List, Sequence

from PIL import Image, UnidentifiedImageError

from .utils import AnalyzerInputError

# Lower-case substrings; matched against every software string found.
DEFAULT_EDITING_SOFTWARE: Sequence[str] = (
    "photoshop", "adobe", "gimp", "paint.net", "pixlr", "canva",
    "snapseed", "picsart", "affinity", "lightroom", "fotor", "befunky",
    "picmonkey", "inkscape", "photopea",
)

EXIF_SOFTWARE = 305
EXIF_PROCESSING_SOFTWARE = 11

_PNG_TEXT_KEYS = ("Software", "software", "Creator", "Comment", "Description")
_XMP_CREATOR_RE = re.compile(
    rb"CreatorTool(?:=\"|>)([^\"<]{1,200})", re.IGNORECASE,
)
_PHOTOSHOP_IRB = b"Photoshop 3.0\x00"
_SCAN_LIMIT = 256 * 1024


def _software_strings(im: Image.Image, data: bytes) -> List[str]:
    found: List[str] = []

    exif = im.getexif()
    if exif:
        for tag in (EXIF_SOFTWARE, EXIF_PROCESSING_SOFTWARE):
            value = exif.get(tag)
            if value:
                found.append(str(value).strip("\x00 ").strip())

    for key in _PNG_TEXT_KEYS:
        value = im.info.get(key)
        if isinstance(value, str) and value.strip():
            found.append(value.strip())

    # XMP packets live near the start of the file in every common container
    head = data[:_SCAN_LIMIT]
    for m in _XMP_CREATOR_RE.finditer(head):
        found.append(m.group(1).decode("utf-8", errors="replace").strip())

    return [s for s in dict.fromkeys(found) if s]


def match_signatures(strings: Iterable[str], signatures: Sequence[str]) -> List[str]:
    """Return the signatures (in signature order) found in any of *strings*."""
    haystack = " | ".join(strings).lower()
    return [sig for sig in signatures if sig.lower() in haystack]


def extract_metadata(
    data: bytes,
    signatures: Sequence[str] = DEFAULT_EDITING_SOFTWARE,
) -> Dict[str, Any]:
    """Extract container metadata and scan it for editing software.

    Parameters
    ----------
    data : bytes
        Raw encoded image bytes.
    signatures : sequence of str
        Case-insensitive substrings identifying editing software.

    Returns
    -------
    dict
        Notable keys:

        * ``"format"`` / ``"mode"`` / ``"width"`` / ``"height"``.
        * ``"bytes"`` — Payload size.
        * ``"software"`` — List of software strings found in the file.
        * ``"photoshop_irb"`` — ``True`` when a Photoshop resource
          block is embedded.
        * ``"editing_signatures"`` — Matched signatures; non-empty means
          the image passed through an editor.

    Raises
    ------
    AnalyzerInputError
        If *data* is empty or cannot be opened as an image.
    """
    if not data:
        raise AnalyzerInputError("empty image payload")
    try:
        im = Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, OSError) as exc:
        raise AnalyzerInputError(f"{type(exc).__name__}: {exc}") from exc

    with im:
        software = _software_strings(im, data)
        meta: Dict[str, Any] = {
            "bytes": len(data),
            "format": im.format,
            "mode": im.mode,
            "width": im.size[0],
            "height": im.size[1],
            "software": software,
        }

    photoshop_irb = _PHOTOSHOP_IRB in data[:_SCAN_LIMIT]
    meta["photoshop_irb"] = photoshop_irb

    matched = match_signatures(software, signatures)
    if photoshop_irb and "photoshop" not in matched:
        matched.append("photoshop")
    meta["editing_signatures"] = matched
    return meta
