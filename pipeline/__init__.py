from .assembler import ReportShapeError, assemble_response, error_response
from .scoring_engine import (
    BASELINE_SCORE,
    LEGITIMACY_THRESHOLD,
    LIKELY_FABRICATED,
    LIKELY_LEGITIMATE,
    MissingInputError,
    ScoringEngine,
    VerificationReport,
    score,
)

__all__ = [
    "BASELINE_SCORE",
    "LEGITIMACY_THRESHOLD",
    "LIKELY_FABRICATED",
    "LIKELY_LEGITIMATE",
    "MissingInputError",
    "ReportShapeError",
    "ScoringEngine",
    "VerificationReport",
    "assemble_response",
    "error_response",
    "score",
]
