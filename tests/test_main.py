"""Tests for SlipVerifierAPI and the CLI entry point."""

import json
from unittest.mock import MagicMock

import numpy as np
import pytest
from PIL import Image

from forensics import ExternalSignals
from main import (
    SlipVerifierAPI,
    hf_detector_from_env,
    main,
    sightengine_from_env,
    veryfi_from_env,
)
from services import DetectionServiceError, SlipExtraction


def _write_slip(path, header=(20, 147, 255)):
    arr = np.full((400, 200, 3), 255, dtype=np.uint8)
    arr[:60] = header
    Image.fromarray(arr).save(path, format="PNG")
    return path


@pytest.fixture
def slip_path(tmp_path):
    return _write_slip(tmp_path / "fanduel.png")


# -------------------- API --------------------

def test_verify_local_profile_response_contract(slip_path):
    out = SlipVerifierAPI().verify(slip_path)
    assert set(out) == {"verdict", "confidence", "findings", "sportsbook"}
    assert len(out["findings"]) == 4
    assert out["sportsbook"] == "FanDuel"
    assert 0 <= out["confidence"] <= 100


def test_profiles_from_config():
    profiles = SlipVerifierAPI().profiles()
    assert {"local", "service", "full"} <= set(profiles)


def test_engine_is_cached_per_profile():
    api = SlipVerifierAPI()
    assert api.engine("local") is api.engine("local")
    assert api.engine("local") is not api.engine("full")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        SlipVerifierAPI().verify(tmp_path / "nope.png")


def test_oversize_file_rejected(slip_path):
    api = SlipVerifierAPI()
    api.max_image_bytes = 10
    with pytest.raises(ValueError, match="limit"):
        api.verify(slip_path)


def test_service_signals_feed_analyzers(slip_path):
    sightengine = MagicMock()
    sightengine.check.return_value = ExternalSignals(
        ai_generated=0.9, quality=0.8, face_count=0,
        raw={"_service": "sightengine", "status": "success"},
    )
    api = SlipVerifierAPI(sightengine=sightengine)

    out = api.verify(slip_path, profile="service", include_raw=True)

    categories = [f["category"] for f in out["findings"]]
    assert categories[0] == "AI Detection"
    assert out["findings"][0]["status"] == "negative"
    assert out["confidence"] == 60
    assert out["verdict"] == "Likely Fabricated"
    assert out["rawData"]["sightengine"]["status"] == "success"


def test_failing_service_only_makes_its_checks_inconclusive(slip_path):
    sightengine = MagicMock()
    sightengine.check.side_effect = DetectionServiceError("Sightengine unreachable")
    api = SlipVerifierAPI(sightengine=sightengine)

    out = api.verify(slip_path, profile="service")

    assert len(out["findings"]) == 4
    assert [f["status"] for f in out["findings"][:3]] == ["neutral"] * 3
    assert out["confidence"] == 100
    assert out["verdict"] == "Likely Legitimate"


def test_vendor_from_extraction_is_attached(slip_path):
    veryfi = MagicMock()
    veryfi.extract.return_value = SlipExtraction("FanDuel", 20.0, "2024-01-01", raw={})
    api = SlipVerifierAPI(veryfi=veryfi)

    slip = api.load_slip(slip_path)
    assert api.gather_signals(slip).vendor == "FanDuel"


def test_extract_requires_veryfi(slip_path):
    with pytest.raises(RuntimeError, match="Veryfi"):
        SlipVerifierAPI().extract(slip_path)


def test_verify_directory_writes_one_json_per_image(tmp_path):
    images = tmp_path / "slips"
    images.mkdir()
    _write_slip(images / "a.png")
    _write_slip(images / "b.png", header=(83, 211, 55))
    (images / "broken.png").write_bytes(b"not really a png")
    (images / "notes.txt").write_text("skip me")
    out_dir = tmp_path / "out"

    outputs = SlipVerifierAPI().verify_directory(images, out_dir=out_dir)

    assert [o["image"] for o in outputs] == ["a.png", "b.png", "broken.png"]
    assert sorted(p.name for p in out_dir.iterdir()) == ["a.json", "b.json", "broken.json"]
    # Undecodable bytes still produce a report: every check is inconclusive
    broken = json.loads((out_dir / "broken.json").read_text(encoding="utf-8"))
    assert all(f["status"] == "neutral" for f in broken["findings"])


# -------------------- Credentials --------------------

def test_sightengine_from_env(monkeypatch):
    monkeypatch.setenv("SIGHTENGINE_API_USER", "u")
    monkeypatch.setenv("SIGHTENGINE_API_SECRET", "s")
    client = sightengine_from_env({"sightengine": {"models": "genai", "timeout": 5}})
    assert client.models == "genai"
    assert client.timeout == 5.0


def test_missing_credentials_raise(monkeypatch):
    for var in ("SIGHTENGINE_API_USER", "SIGHTENGINE_API_SECRET",
                "VERYFI_CLIENT_ID", "VERYFI_USERNAME", "VERYFI_API_KEY", "HF_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    with pytest.raises(RuntimeError):
        sightengine_from_env({})
    with pytest.raises(RuntimeError):
        veryfi_from_env({})
    with pytest.raises(RuntimeError):
        hf_detector_from_env({})


# -------------------- CLI --------------------

def test_cli_verify_prints_json(slip_path, capsys):
    assert main(["verify", str(slip_path)]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["sportsbook"] == "FanDuel"


def test_cli_profiles(capsys):
    assert main(["profiles"]) == 0
    assert "local: metadata, compression" in capsys.readouterr().out


def test_cli_error_returns_nonzero(tmp_path, capsys):
    assert main(["verify", str(tmp_path / "missing.png")]) == 1
    err = capsys.readouterr().err
    err = json.loads(err[err.index("{"):])
    assert err["error"] == "Verification failed"
    assert "missing.png" in err["message"]


def test_cli_service_flag_without_credentials_fails(slip_path, monkeypatch, capsys):
    monkeypatch.delenv("SIGHTENGINE_API_USER", raising=False)
    monkeypatch.delenv("SIGHTENGINE_API_SECRET", raising=False)
    assert main(["verify", str(slip_path), "--sightengine"]) == 1
    assert "Sightengine credentials" in capsys.readouterr().err


def test_malformed_service_payloads_do_not_fail_the_request(slip_path):
    from services import SightengineClient, VeryfiClient

    def session(payload):
        response = MagicMock(ok=True, status_code=200)
        response.json.return_value = payload
        s = MagicMock()
        s.post.return_value = response
        return s

    api = SlipVerifierAPI(
        sightengine=SightengineClient("u", "s", session=session({"status": "success", "type": "photo"})),
        veryfi=VeryfiClient("c", "u", "k", session=session({"vendor": "DraftKings"})),
    )

    out = api.verify(slip_path, profile="service")

    assert len(out["findings"]) == 4
    assert [f["status"] for f in out["findings"][:3]] == ["neutral"] * 3
