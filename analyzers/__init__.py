from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Type

import yaml

from .base_analyzer import (
    NEGATIVE,
    NEUTRAL,
    POSITIVE,
    UNKNOWN_SOURCE,
    VALID_STATUSES,
    AnalysisResult,
    BaseAnalyzer,
    ContinuousScoreAnalyzer,
    Finding,
)
from .compression import CompressionAnalyzer
from .detection_signals import AIGenerationAnalyzer, ContentAnalyzer, ImageQualityAnalyzer
from .font_consistency import FontConsistencyAnalyzer
from .metadata import MetadataAnalyzer
from .template_match import TemplateMatchAnalyzer, load_templates

CONFIG_ANALYZERS = Path(__file__).parent.parent / "configs" / "analyzers.yaml"

ANALYZER_REGISTRY: Dict[str, Type[BaseAnalyzer]] = {
    cls.kind: cls
    for cls in (
        MetadataAnalyzer,
        CompressionAnalyzer,
        FontConsistencyAnalyzer,
        TemplateMatchAnalyzer,
        AIGenerationAnalyzer,
        ImageQualityAnalyzer,
        ContentAnalyzer,
    )
}

DEFAULT_PROFILE = ["metadata", "compression", "font_consistency", "template_match"]


def load_config(config_path: str | Path = CONFIG_ANALYZERS) -> Dict[str, Any]:
    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def build_analyzer(kind: str, params: Optional[Dict[str, Any]] = None) -> BaseAnalyzer:
    cls = ANALYZER_REGISTRY.get(kind)
    if cls is None:
        raise ValueError(f"Unsupported analyzer kind in config: {kind}")
    return cls(**(params or {}))


def load_analyzers_from_config(
    config_path: str | Path = CONFIG_ANALYZERS,
    profile: Optional[str] = None,
) -> List[BaseAnalyzer]:
    """Build the ordered analyzer list for *profile* (default: config's default_profile)."""
    cfg = load_config(config_path)

    profiles = cfg.get("profiles", {}) or {}
    name = profile or cfg.get("default_profile", "local")
    if name not in profiles:
        if profile is None and not profiles:
            kinds = DEFAULT_PROFILE
        else:
            raise ValueError(f"Unknown analyzer profile: {name}")
    else:
        kinds = profiles[name]

    params_cfg = cfg.get("analyzers", {}) or {}
    return [build_analyzer(kind, params_cfg.get(kind)) for kind in kinds]


__all__ = [
    "ANALYZER_REGISTRY",
    "AIGenerationAnalyzer",
    "AnalysisResult",
    "BaseAnalyzer",
    "CompressionAnalyzer",
    "ContentAnalyzer",
    "ContinuousScoreAnalyzer",
    "Finding",
    "FontConsistencyAnalyzer",
    "ImageQualityAnalyzer",
    "MetadataAnalyzer",
    "NEGATIVE",
    "NEUTRAL",
    "POSITIVE",
    "TemplateMatchAnalyzer",
    "UNKNOWN_SOURCE",
    "VALID_STATUSES",
    "build_analyzer",
    "load_analyzers_from_config",
    "load_config",
    "load_templates",
]
