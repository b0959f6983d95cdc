"""
Result assembler: VerificationReport -> transport payload.

    {
      "verdict": "Likely Legitimate" | "Likely Fabricated",
      "confidence": <int 0-100>,
      "findings": [{"category", "status", "detail"}, ...],
      "sportsbook": <str>
    }

No scoring logic lives here, only renaming and shape validation.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from analyzers.base_analyzer import UNKNOWN_SOURCE, VALID_STATUSES

from .scoring_engine import BASELINE_SCORE, VALID_VERDICTS, VerificationReport


class ReportShapeError(ValueError):
    """A report that cannot be serialised into the response contract."""
    pass


def assemble_response(
    report: VerificationReport,
    raw_data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build the response body for *report*.

    *raw_data*, when given, is attached verbatim under ``"rawData"`` (the
    external detection payload, for debugging).
    """
    if report.verdict not in VALID_VERDICTS:
        raise ReportShapeError(f"Invalid verdict: {report.verdict!r}")

    confidence = report.confidence
    if isinstance(confidence, bool) or not isinstance(confidence, int):
        raise ReportShapeError(f"Confidence must be an integer, got {confidence!r}")
    if not 0 <= confidence <= BASELINE_SCORE:
        raise ReportShapeError(f"Confidence out of range: {confidence}")

    findings = []
    for f in report.findings:
        if f.status not in VALID_STATUSES:
            raise ReportShapeError(f"Invalid finding status: {f.status!r}")
        findings.append(f.to_dict())

    payload: Dict[str, Any] = {
        "verdict": report.verdict,
        "confidence": confidence,
        "findings": findings,
        "sportsbook": report.source_hint or UNKNOWN_SOURCE,
    }
    if raw_data is not None:
        payload["rawData"] = raw_data
    return payload


def error_response(exc: BaseException, error: str = "Verification failed") -> Dict[str, str]:
    """Body returned by the transport layer when verification fails."""
    return {"error": error, "message": str(exc)}
