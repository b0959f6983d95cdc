"""
TemplateMatchAnalyzer: does the slip look like a known sportsbook's layout?

The only analyzer that reports a source hint: the matched sportsbook name,
or "Unknown" on drift or when the check cannot run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from forensics import SlipImage
from forensics.layout import layout_descriptor, match_templates

from .base_analyzer import (
    NEGATIVE,
    NEUTRAL,
    POSITIVE,
    UNKNOWN_SOURCE,
    AnalysisResult,
    BaseAnalyzer,
    Finding,
)

CONFIG_TEMPLATES = Path(__file__).parent.parent / "configs" / "templates.yaml"


def load_templates(config_path: str | Path = CONFIG_TEMPLATES) -> List[Dict[str, Any]]:
    """Read the ``templates:`` list from a YAML file."""
    with open(config_path, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    templates = cfg.get("templates", [])
    for t in templates:
        if "name" not in t:
            raise ValueError(f"Template without a name in {config_path}: {t}")
    return templates


class TemplateMatchAnalyzer(BaseAnalyzer):

    kind = "template_match"
    category = "Layout Match"
    inconclusive_penalty = 10

    DRIFT_CATEGORY = "Template Drift"
    PENALTY = 25

    def __init__(
        self,
        templates: Optional[Sequence[Dict[str, Any]]] = None,
        templates_path: str | Path = CONFIG_TEMPLATES,
        match_threshold: float = 0.6,
        color_tolerance: float = 60.0,
        header_fraction: float = 0.15,
        penalty: int = PENALTY,
    ):
        self.templates = list(templates) if templates is not None else load_templates(templates_path)
        self.match_threshold = float(match_threshold)
        self.color_tolerance = float(color_tolerance)
        self.header_fraction = float(header_fraction)
        self.penalty = int(penalty)

    def _analyze(self, image: SlipImage) -> AnalysisResult:
        descriptor = layout_descriptor(image.rgb, header_fraction=self.header_fraction)
        ranked = match_templates(
            descriptor,
            self.templates,
            vendor=image.signals.vendor,
            color_tolerance=self.color_tolerance,
        )

        if ranked and ranked[0][1] >= self.match_threshold:
            name = ranked[0][0]
            return AnalysisResult(
                Finding(self.category, POSITIVE, f"Slip layout matches known {name} template."),
                0,
                source_hint=name,
            )

        return AnalysisResult(
            Finding(
                self.DRIFT_CATEGORY, NEGATIVE,
                "Spacing and layout differ from known sportsbook templates.",
            ),
            self.penalty,
            source_hint=UNKNOWN_SOURCE,
        )

    def inconclusive(self, reason: str = "") -> AnalysisResult:
        detail = "Template comparison could not be completed"
        if reason:
            detail += f": {reason}"
        return AnalysisResult(
            finding=Finding(self.category, NEUTRAL, detail + "."),
            penalty=self.inconclusive_penalty,
            source_hint=UNKNOWN_SOURCE,
        )
