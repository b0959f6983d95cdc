"""Tests for the response assembler."""

import pytest

from analyzers import NEGATIVE, NEUTRAL, POSITIVE, Finding
from pipeline import (
    LIKELY_FABRICATED,
    LIKELY_LEGITIMATE,
    ReportShapeError,
    VerificationReport,
    assemble_response,
    error_response,
)


def _report(**overrides):
    fields = dict(
        verdict=LIKELY_LEGITIMATE,
        confidence=90,
        findings=(
            Finding("Metadata", NEUTRAL, "No strong metadata indicators found."),
            Finding("Layout Match", POSITIVE, "Layout matches FanDuel."),
        ),
        source_hint="FanDuel",
    )
    fields.update(overrides)
    return VerificationReport(**fields)


def test_response_shape():
    body = assemble_response(_report())
    assert set(body) == {"verdict", "confidence", "findings", "sportsbook"}
    assert body["verdict"] == "Likely Legitimate"
    assert body["confidence"] == 90
    assert body["sportsbook"] == "FanDuel"
    assert body["findings"][0] == {
        "category": "Metadata",
        "status": "neutral",
        "detail": "No strong metadata indicators found.",
    }


def test_raw_data_attached_only_when_given():
    body = assemble_response(_report(), raw_data={"sightengine": {"status": "success"}})
    assert body["rawData"] == {"sightengine": {"status": "success"}}


def test_empty_source_hint_becomes_unknown():
    body = assemble_response(_report(source_hint=""))
    assert body["sportsbook"] == "Unknown"


def test_fabricated_report():
    report = _report(
        verdict=LIKELY_FABRICATED,
        confidence=45,
        findings=(Finding("Font Mismatch", NEGATIVE, "Mixed weights."),),
    )
    body = assemble_response(report)
    assert body["verdict"] == "Likely Fabricated"
    assert body["findings"][0]["status"] == "negative"


@pytest.mark.parametrize("overrides", [
    {"verdict": "Probably Fine"},
    {"confidence": 101},
    {"confidence": -1},
    {"confidence": 55.5},
    {"confidence": True},
])
def test_malformed_reports_rejected(overrides):
    with pytest.raises(ReportShapeError):
        assemble_response(_report(**overrides))


def test_error_response():
    body = error_response(ValueError("Image is too large"))
    assert body == {"error": "Verification failed", "message": "Image is too large"}
