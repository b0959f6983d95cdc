"""
ScoringEngine: runs an ordered set of analyzers against one slip and folds
their penalties into a single VerificationReport.

=== Scoring ===

    value      = BASELINE_SCORE - sum(penalty for each analyzer)
    confidence = max(0, min(100, value))
    verdict    = "Likely Legitimate" if confidence >= threshold
                 else "Likely Fabricated"

The threshold defaults to LEGITIMACY_THRESHOLD (70) and can be passed to
the engine. Analyzer order only changes the order of findings in the
report, never the score.

=== Failure isolation ===

An analyzer that raises, returns something other than an AnalysisResult,
or breaks the penalty contract is replaced by its own inconclusive result
(neutral finding, fixed small penalty). One bad analyzer never blocks the
report. The only engine-level error is MissingInputError: no image, so no
analyzer is run.

=== Concurrency ===

With max_workers > 1 analyzers run in a thread pool. Results are gathered
by declaration index, so findings keep configuration order regardless of
which analyzer finishes first.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from analyzers.base_analyzer import UNKNOWN_SOURCE, AnalysisResult, BaseAnalyzer, Finding
from forensics import SlipImage

logger = logging.getLogger(__name__)


BASELINE_SCORE = 100
LEGITIMACY_THRESHOLD = 70

LIKELY_LEGITIMATE = "Likely Legitimate"
LIKELY_FABRICATED = "Likely Fabricated"
VALID_VERDICTS = {LIKELY_LEGITIMATE, LIKELY_FABRICATED}


class MissingInputError(ValueError):
    """No image was supplied; the engine refuses to produce a report."""
    pass


@dataclass(frozen=True)
class VerificationReport:
    """The engine's output for one slip."""

    verdict: str                            # "Likely Legitimate" | "Likely Fabricated"
    confidence: int                         # [0, 100]
    findings: Tuple[Finding, ...]           # one per analyzer, in configured order
    source_hint: str = UNKNOWN_SOURCE       # matched sportsbook or "Unknown"

    # Audit trail, parallel to findings
    penalties: Tuple[int, ...] = field(default=(), repr=False)

    @property
    def is_legitimate(self) -> bool:
        return self.verdict == LIKELY_LEGITIMATE


def clamp_confidence(value: int) -> int:
    return max(0, min(BASELINE_SCORE, int(value)))


def verdict_for(confidence: int, threshold: int = LEGITIMACY_THRESHOLD) -> str:
    return LIKELY_LEGITIMATE if confidence >= threshold else LIKELY_FABRICATED


class ScoringEngine:
    """
    Args:
        analyzers: ordered analyzers to run for every slip
        threshold: minimum confidence for "Likely Legitimate"
        max_workers: > 1 runs analyzers concurrently
    """

    def __init__(
        self,
        analyzers: Sequence[BaseAnalyzer] = (),
        threshold: int = LEGITIMACY_THRESHOLD,
        max_workers: int = 1,
    ):
        try:
            threshold = int(threshold)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"threshold must be an integer, got {threshold!r}") from exc
        if not 0 <= threshold <= BASELINE_SCORE:
            raise ValueError(f"threshold must be within [0, {BASELINE_SCORE}], got {threshold}")
        self.analyzers = list(analyzers)
        self.threshold = threshold
        self.max_workers = max(1, int(max_workers))

    def score(
        self,
        image: Union[SlipImage, bytes, None],
        analyzers: Optional[Sequence[BaseAnalyzer]] = None,
    ) -> VerificationReport:
        if image is None:
            raise MissingInputError("No image file provided")
        if isinstance(image, (bytes, bytearray)):
            image = SlipImage(bytes(image))
        if not image.data:
            raise MissingInputError("No image file provided")

        analyzers = list(self.analyzers if analyzers is None else analyzers)
        if not analyzers:
            raise ValueError("No analyzers configured for ScoringEngine.")

        results = self._run_all(image, analyzers)

        value = BASELINE_SCORE
        for analyzer, result in zip(analyzers, results):
            logger.debug("%s: %s (-%d)", analyzer.kind, result.finding.status, result.penalty)
            value -= result.penalty

        confidence = clamp_confidence(value)
        source_hint = next((r.source_hint for r in results if r.source_hint), UNKNOWN_SOURCE)

        return VerificationReport(
            verdict=verdict_for(confidence, self.threshold),
            confidence=confidence,
            findings=tuple(r.finding for r in results),
            source_hint=source_hint,
            penalties=tuple(r.penalty for r in results),
        )

    # ------------------------------------------------------------------
    # Analyzer execution
    # ------------------------------------------------------------------

    def _run_all(self, image: SlipImage, analyzers: List[BaseAnalyzer]) -> List[AnalysisResult]:
        if self.max_workers == 1 or len(analyzers) == 1:
            return [self._run_one(a, image) for a in analyzers]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(analyzers))) as executor:
            futures = [executor.submit(self._run_one, a, image) for a in analyzers]
            return [f.result() for f in futures]

    @staticmethod
    def _run_one(analyzer: BaseAnalyzer, image: SlipImage) -> AnalysisResult:
        try:
            result = analyzer.analyze(image)
            if not isinstance(result, AnalysisResult):
                raise TypeError(f"expected AnalysisResult, got {type(result).__name__}")
            return result
        except Exception as exc:
            logger.warning(
                "Analyzer %s failed on %s: %s: %s",
                analyzer.kind or type(analyzer).__name__, image.filename,
                type(exc).__name__, exc,
            )
            return analyzer.inconclusive(f"{type(exc).__name__}: {exc}")


def score(
    image: Union[SlipImage, bytes, None],
    analyzers: Sequence[BaseAnalyzer],
    threshold: int = LEGITIMACY_THRESHOLD,
    max_workers: int = 1,
) -> VerificationReport:
    """One-shot helper: ``ScoringEngine(analyzers, ...).score(image)``."""
    return ScoringEngine(analyzers, threshold=threshold, max_workers=max_workers).score(image)
