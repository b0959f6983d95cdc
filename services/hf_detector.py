"""
HFDetectorClient: AI-generation probability from an image-classification
model served through Hugging Face Inference Providers.

Alternative to Sightengine for the `ai_generation` analyzer. Only the
ai_generated signal is produced.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from huggingface_hub import InferenceClient

from forensics import ExternalSignals

from .base import DetectionServiceError

DEFAULT_MODEL_ID = "umm-maybe/AI-image-detector"

# Labels (lower-cased) meaning "synthetic" across common detector models
SYNTHETIC_LABELS = {"artificial", "ai", "ai-generated", "ai_generated", "fake", "generated"}


def synthetic_probability(outputs: Iterable[Any]) -> Optional[float]:
    """Pick the score of the synthetic label from classification outputs."""
    for out in outputs:
        label = str(getattr(out, "label", "")).strip().lower()
        if label in SYNTHETIC_LABELS:
            return float(getattr(out, "score"))
    return None


class HFDetectorClient:

    def __init__(
        self,
        token: str,
        model_id: str = DEFAULT_MODEL_ID,
        client: Optional[InferenceClient] = None,
    ):
        if not token and client is None:
            raise RuntimeError("Missing HF_TOKEN for the AI-generation detector.")
        self.model_id = model_id
        self._client = client or InferenceClient(provider="hf-inference", api_key=token)

    def check(self, image_bytes: bytes) -> ExternalSignals:
        try:
            outputs = self._client.image_classification(image_bytes, model=self.model_id)
        except Exception as exc:
            raise DetectionServiceError(f"Hugging Face detector failed: {exc}") from exc

        score = synthetic_probability(outputs)
        if score is None:
            raise DetectionServiceError(
                f"Model {self.model_id} returned no synthetic label"
            )
        return ExternalSignals(
            ai_generated=score,
            raw={
                "_service": "hf_detector",
                "model": self.model_id,
                "labels": {str(o.label): float(o.score) for o in outputs},
            },
        )
