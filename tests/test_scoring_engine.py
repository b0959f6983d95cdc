"""Tests for the ScoringEngine aggregation rules."""

import threading
import time

import pytest

from analyzers import (
    NEGATIVE,
    NEUTRAL,
    POSITIVE,
    AnalysisResult,
    BaseAnalyzer,
    Finding,
)
from forensics import SlipImage
from pipeline import (
    LEGITIMACY_THRESHOLD,
    LIKELY_FABRICATED,
    LIKELY_LEGITIMATE,
    MissingInputError,
    ScoringEngine,
    score,
)


class FixedAnalyzer(BaseAnalyzer):
    """Returns a preset result; counts invocations."""

    def __init__(self, kind, penalty=0, status=POSITIVE, source_hint=None,
                 inconclusive_penalty=0, delay=0.0):
        self.kind = kind
        self.category = kind.title()
        self.inconclusive_penalty = inconclusive_penalty
        self._penalty = penalty
        self._status = status
        self._source_hint = source_hint
        self._delay = delay
        self.calls = 0

    def _analyze(self, image):
        self.calls += 1
        if self._delay:
            time.sleep(self._delay)
        return AnalysisResult(
            Finding(self.category, self._status, f"{self.kind} detail"),
            self._penalty,
            source_hint=self._source_hint,
        )


class ExplodingAnalyzer(FixedAnalyzer):
    def _analyze(self, image):
        self.calls += 1
        raise RuntimeError("detector crashed")


class NegativePenaltyAnalyzer(FixedAnalyzer):
    def _analyze(self, image):
        return AnalysisResult(Finding(self.category, POSITIVE, "bonus"), -50)


class WrongTypeAnalyzer(FixedAnalyzer):
    def _analyze(self, image):
        return {"finding": "not a result"}


SLIP = SlipImage(b"\x89PNG fake bytes", filename="slip.png")


def four_clean():
    return [
        FixedAnalyzer("metadata", 0, NEUTRAL),
        FixedAnalyzer("compression", 0, inconclusive_penalty=5),
        FixedAnalyzer("font_consistency", 0, inconclusive_penalty=5),
        FixedAnalyzer("template_match", 0, source_hint="FanDuel", inconclusive_penalty=10),
    ]


def four_negative():
    return [
        FixedAnalyzer("metadata", 30, NEGATIVE),
        FixedAnalyzer("compression", 25, NEGATIVE),
        FixedAnalyzer("font_consistency", 20, NEGATIVE),
        FixedAnalyzer("template_match", 25, NEGATIVE, source_hint="Unknown"),
    ]


def test_all_clean_scores_100_legitimate():
    report = ScoringEngine(four_clean()).score(SLIP)
    assert report.confidence == 100
    assert report.verdict == LIKELY_LEGITIMATE
    assert len(report.findings) == 4
    assert report.source_hint == "FanDuel"


def test_worst_case_clamps_to_zero():
    report = ScoringEngine(four_negative()).score(SLIP)
    assert report.confidence == 0
    assert report.verdict == LIKELY_FABRICATED
    assert report.penalties == (30, 25, 20, 25)
    assert report.source_hint == "Unknown"


def test_confidence_clamped_when_penalties_exceed_baseline():
    analyzers = [FixedAnalyzer(f"a{i}", 40, NEGATIVE) for i in range(5)]
    report = ScoringEngine(analyzers).score(SLIP)
    assert report.confidence == 0


@pytest.mark.parametrize("penalty,expected", [
    (0, LIKELY_LEGITIMATE),
    (30, LIKELY_LEGITIMATE),     # 70 -> exactly on threshold
    (31, LIKELY_FABRICATED),     # 69
    (100, LIKELY_FABRICATED),
])
def test_verdict_threshold_boundary(penalty, expected):
    report = score(SLIP, [FixedAnalyzer("x", penalty, NEGATIVE)])
    assert report.confidence == 100 - penalty
    assert report.verdict == expected
    assert (report.confidence >= LEGITIMACY_THRESHOLD) == (expected == LIKELY_LEGITIMATE)


def test_custom_threshold():
    report = ScoringEngine([FixedAnalyzer("x", 15, NEGATIVE)], threshold=90).score(SLIP)
    assert report.confidence == 85
    assert report.verdict == LIKELY_FABRICATED


def test_invalid_threshold_rejected():
    with pytest.raises(ValueError):
        ScoringEngine(four_clean(), threshold=150)


def test_threshold_from_config_text():
    engine = ScoringEngine(four_clean(), threshold="70")
    assert engine.threshold == 70
    with pytest.raises(ValueError):
        ScoringEngine(four_clean(), threshold="seventy")
    with pytest.raises(ValueError):
        ScoringEngine(four_clean(), threshold=None)


def test_findings_follow_declaration_order():
    analyzers = four_negative()
    report = ScoringEngine(analyzers).score(SLIP)
    assert [f.category for f in report.findings] == [a.category for a in analyzers]


def test_font_analyzer_crash_degrades_to_neutral_slot():
    analyzers = four_clean()
    analyzers[2] = ExplodingAnalyzer("font_consistency", inconclusive_penalty=5)

    report = ScoringEngine(analyzers).score(SLIP)

    assert len(report.findings) == 4
    assert report.findings[2].status == NEUTRAL
    assert "RuntimeError" in report.findings[2].detail
    assert report.penalties[2] == 5
    assert report.confidence == 95
    assert report.verdict == LIKELY_LEGITIMATE


def test_template_crash_reports_unknown_source():
    from analyzers import TemplateMatchAnalyzer

    class CrashingTemplate(TemplateMatchAnalyzer):
        def _analyze(self, image):
            raise KeyError("layout")

    analyzers = four_clean()[:3] + [CrashingTemplate(templates=[])]
    report = ScoringEngine(analyzers).score(SLIP)
    assert report.source_hint == "Unknown"
    assert report.penalties[3] == 10
    assert report.findings[3].status == NEUTRAL


def test_negative_penalty_is_treated_as_failure():
    analyzers = [NegativePenaltyAnalyzer("bonus", inconclusive_penalty=5)]
    report = ScoringEngine(analyzers).score(SLIP)
    assert report.confidence == 95
    assert report.findings[0].status == NEUTRAL


def test_wrong_return_type_is_treated_as_failure():
    report = ScoringEngine([WrongTypeAnalyzer("odd", inconclusive_penalty=5)]).score(SLIP)
    assert report.confidence == 95
    assert len(report.findings) == 1


def test_missing_image_runs_no_analyzer():
    analyzers = four_clean()
    engine = ScoringEngine(analyzers)
    with pytest.raises(MissingInputError):
        engine.score(None)
    with pytest.raises(MissingInputError):
        engine.score(SlipImage(b""))
    assert all(a.calls == 0 for a in analyzers)


def test_raw_bytes_are_accepted():
    report = ScoringEngine(four_clean()).score(b"some image bytes")
    assert report.confidence == 100


def test_empty_analyzer_set_is_a_config_error():
    with pytest.raises(ValueError, match="No analyzers"):
        ScoringEngine([]).score(SLIP)


def test_source_hint_never_empty_without_template():
    report = ScoringEngine([FixedAnalyzer("metadata")]).score(SLIP)
    assert report.source_hint == "Unknown"


def test_concurrent_run_keeps_declaration_order():
    # Slowest first: completion order is the reverse of declaration order
    analyzers = [
        FixedAnalyzer("first", 10, NEGATIVE, delay=0.15),
        FixedAnalyzer("second", 5, NEGATIVE, delay=0.05),
        FixedAnalyzer("third", 0, delay=0.0),
    ]
    report = ScoringEngine(analyzers, max_workers=3).score(SLIP)
    assert [f.category for f in report.findings] == ["First", "Second", "Third"]
    assert report.penalties == (10, 5, 0)
    assert report.confidence == 85


def test_concurrent_failure_is_isolated():
    analyzers = four_clean()
    analyzers[1] = ExplodingAnalyzer("compression", inconclusive_penalty=5)
    report = ScoringEngine(analyzers, max_workers=4).score(SLIP)
    assert len(report.findings) == 4
    assert report.confidence == 95


def test_each_score_call_starts_from_baseline():
    engine = ScoringEngine([FixedAnalyzer("x", 20, NEGATIVE)])
    assert engine.score(SLIP).confidence == 80
    assert engine.score(SLIP).confidence == 80


def test_slip_decodes_once_across_threads():
    import io

    import numpy as np
    from PIL import Image

    buf = io.BytesIO()
    Image.fromarray(np.full((32, 32, 3), 200, dtype=np.uint8)).save(buf, format="PNG")
    slip = SlipImage(buf.getvalue())

    arrays = []
    lock = threading.Lock()

    def read():
        arr = slip.rgb
        with lock:
            arrays.append(arr)

    threads = [threading.Thread(target=read) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert all(a is arrays[0] for a in arrays)
    assert not arrays[0].flags.writeable
