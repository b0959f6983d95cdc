"""High-level API + CLI for the bet-slip verifier."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm

from analyzers import CONFIG_ANALYZERS, load_analyzers_from_config, load_config
from forensics import ExternalSignals, SlipImage, merge_signals
from forensics.utils import save_json
from pipeline import ScoringEngine, assemble_response, error_response
from services import DetectionServiceError, HFDetectorClient, SightengineClient, VeryfiClient

logger = logging.getLogger("slip_verifier")

MAX_IMAGE_BYTES = 10 * 1024 * 1024
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"}


class SlipVerifierAPI:
    """High-level orchestration API usable from CLI, the Streamlit app or notebooks.

    Service clients are optional; when one is configured its signals are
    attached to the slip before scoring. A failing service only makes the
    analyzers that depend on it inconclusive.
    """

    def __init__(
        self,
        config_path: Path = CONFIG_ANALYZERS,
        sightengine: SightengineClient | None = None,
        veryfi: VeryfiClient | None = None,
        hf_detector: HFDetectorClient | None = None,
    ):
        self.config_path = config_path
        self._cfg = load_config(config_path)
        self.sightengine = sightengine
        self.veryfi = veryfi
        self.hf_detector = hf_detector

        engine_cfg = self._cfg.get("engine", {}) or {}
        self.threshold = int(engine_cfg.get("threshold", 70))
        self.max_workers = int(engine_cfg.get("max_workers", 1))
        limits = self._cfg.get("limits", {}) or {}
        self.max_image_bytes = int(limits.get("max_image_bytes", MAX_IMAGE_BYTES))

        self._engines: dict[str, ScoringEngine] = {}

    def profiles(self) -> dict[str, list[str]]:
        return dict(self._cfg.get("profiles", {}) or {})

    def engine(self, profile: str | None = None) -> ScoringEngine:
        key = profile or self._cfg.get("default_profile", "local")
        if key not in self._engines:
            self._engines[key] = ScoringEngine(
                load_analyzers_from_config(self.config_path, profile=key),
                threshold=self.threshold,
                max_workers=self.max_workers,
            )
        return self._engines[key]

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def load_slip(self, image_path: str | Path) -> SlipImage:
        p = Path(image_path)
        if not p.exists():
            raise FileNotFoundError(f"Image not found: {p}")
        size = p.stat().st_size
        if size > self.max_image_bytes:
            raise ValueError(
                f"Image {p.name} is {size} bytes; limit is {self.max_image_bytes}"
            )
        return SlipImage.from_path(p)

    def gather_signals(self, slip: SlipImage) -> ExternalSignals:
        collected: list[ExternalSignals] = []
        calls = (
            ("sightengine", self.sightengine, lambda c: c.check(slip.data, slip.filename)),
            ("hf_detector", self.hf_detector, lambda c: c.check(slip.data)),
            ("veryfi", self.veryfi, lambda c: c.extract(slip.data, slip.filename).to_signals()),
        )
        for name, client, call in calls:
            if client is None:
                continue
            try:
                collected.append(call(client))
            except DetectionServiceError as exc:
                logger.warning("%s signals unavailable for %s: %s", name, slip.filename, exc)
        return merge_signals(*collected)

    def verify_slip(
        self,
        slip: SlipImage,
        profile: str | None = None,
        include_raw: bool = False,
    ) -> dict[str, Any]:
        if slip.signals.is_empty():
            signals = self.gather_signals(slip)
            if not signals.is_empty() or signals.raw:
                slip = slip.with_signals(signals)

        report = self.engine(profile).score(slip)
        raw = slip.signals.raw if include_raw else None
        return assemble_response(report, raw_data=raw)

    def verify(
        self,
        image_path: str | Path,
        profile: str | None = None,
        include_raw: bool = False,
    ) -> dict[str, Any]:
        return self.verify_slip(self.load_slip(image_path), profile=profile, include_raw=include_raw)

    def verify_directory(
        self,
        image_dir: str | Path,
        out_dir: str | Path = "outputs/verifications",
        profile: str | None = None,
    ) -> list[dict[str, Any]]:
        paths = sorted(
            p for p in Path(image_dir).iterdir()
            if p.suffix.lower() in IMAGE_EXTENSIONS
        )
        outputs = []
        for p in tqdm(paths, desc="Verifying slips"):
            try:
                result = {"image": p.name, **self.verify(p, profile=profile)}
            except (OSError, ValueError) as exc:
                logger.warning("Skipping %s: %s", p.name, exc)
                result = {"image": p.name, **error_response(exc)}
            save_json(result, Path(out_dir) / f"{p.stem}.json")
            outputs.append(result)
        return outputs

    def extract(self, image_path: str | Path) -> dict[str, Any]:
        if self.veryfi is None:
            raise RuntimeError("Veryfi credentials not configured")
        slip = self.load_slip(image_path)
        return self.veryfi.extract(slip.data, slip.filename).to_dict(include_raw=True)


# -------------------- Credentials (environment) --------------------

def sightengine_from_env(cfg: dict[str, Any]) -> SightengineClient:
    api_user = os.environ.get("SIGHTENGINE_API_USER")
    api_secret = os.environ.get("SIGHTENGINE_API_SECRET")
    if not api_user or not api_secret:
        raise RuntimeError("Sightengine credentials not configured")
    svc = cfg.get("sightengine", {}) or {}
    return SightengineClient(
        api_user, api_secret,
        endpoint=svc.get("endpoint", "https://api.sightengine.com/1.0/check.json"),
        models=svc.get("models", "genai,quality,face-attributes"),
        timeout=float(svc.get("timeout", 30)),
    )


def veryfi_from_env(cfg: dict[str, Any]) -> VeryfiClient:
    client_id = os.environ.get("VERYFI_CLIENT_ID")
    username = os.environ.get("VERYFI_USERNAME")
    api_key = os.environ.get("VERYFI_API_KEY")
    if not client_id or not username or not api_key:
        raise RuntimeError("Veryfi credentials not configured")
    svc = cfg.get("veryfi", {}) or {}
    return VeryfiClient(
        client_id, username, api_key,
        endpoint=svc.get("endpoint", "https://api.veryfi.com/api/v8/partner/documents/"),
        timeout=float(svc.get("timeout", 60)),
    )


def hf_detector_from_env(cfg: dict[str, Any]) -> HFDetectorClient:
    token = os.environ.get("HF_TOKEN")
    if not token:
        raise RuntimeError("Hugging Face credentials not configured (HF_TOKEN)")
    svc = cfg.get("hf_detector", {}) or {}
    return HFDetectorClient(token, model_id=svc.get("model", "umm-maybe/AI-image-detector"))


def build_api(args: argparse.Namespace) -> SlipVerifierAPI:
    config_path = Path(getattr(args, "config", None) or CONFIG_ANALYZERS)
    services_cfg = load_config(config_path).get("services", {}) or {}
    return SlipVerifierAPI(
        config_path=config_path,
        sightengine=sightengine_from_env(services_cfg) if getattr(args, "sightengine", False) else None,
        veryfi=veryfi_from_env(services_cfg) if getattr(args, "veryfi", False) else None,
        hf_detector=hf_detector_from_env(services_cfg) if getattr(args, "hf", False) else None,
    )


# -------------------- CLI commands --------------------

def cmd_verify(args: argparse.Namespace) -> None:
    api = build_api(args)
    out = api.verify(args.image, profile=args.profile, include_raw=args.raw)
    print(json.dumps(out, indent=2, ensure_ascii=False))


def cmd_batch(args: argparse.Namespace) -> None:
    api = build_api(args)
    outputs = api.verify_directory(args.image_dir, out_dir=args.out, profile=args.profile)
    print(f"[batch] Verified {len(outputs)} slips. Results in {args.out}/")


def cmd_extract(args: argparse.Namespace) -> None:
    args.veryfi = True
    api = build_api(args)
    print(json.dumps(api.extract(args.image), indent=2, ensure_ascii=False))


def cmd_profiles(args: argparse.Namespace) -> None:
    api = build_api(args)
    for name, kinds in api.profiles().items():
        print(f"{name}: {', '.join(kinds)}")


def _add_service_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--profile", default=None, help="Analyzer profile from the config")
    p.add_argument("--sightengine", action="store_true", help="Fetch Sightengine signals")
    p.add_argument("--veryfi", action="store_true", help="Fetch Veryfi vendor extraction")
    p.add_argument("--hf", action="store_true", help="Fetch AI-generation score from Hugging Face")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bet-slip legitimacy verifier")
    parser.add_argument("--config", default=None, help="Path to analyzers.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    verify_p = sub.add_parser("verify", help="Verify a single slip image")
    verify_p.add_argument("image", help="Path to the slip image")
    verify_p.add_argument("--raw", action="store_true", help="Include raw service payloads")
    _add_service_flags(verify_p)

    batch_p = sub.add_parser("batch", help="Verify every image in a directory")
    batch_p.add_argument("image_dir", help="Directory of slip images")
    batch_p.add_argument("--out", default="outputs/verifications", help="Output directory")
    _add_service_flags(batch_p)

    extract_p = sub.add_parser("extract", help="Extract sportsbook/amount/date via Veryfi")
    extract_p.add_argument("image", help="Path to the slip image")

    sub.add_parser("profiles", help="List configured analyzer profiles")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(name)s] %(message)s",
    )

    commands = {
        "verify": cmd_verify,
        "batch": cmd_batch,
        "extract": cmd_extract,
        "profiles": cmd_profiles,
    }
    try:
        commands[args.command](args)
    except Exception as exc:
        logger.error("Verification error: %s", exc)
        print(json.dumps(error_response(exc), indent=2), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
