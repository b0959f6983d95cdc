"""
Streamlit app — Bet-Slip Verifier.

Run with:
    streamlit run app/main.py
"""

import sys
from pathlib import Path

import streamlit as st

_ROOT = Path(__file__).parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from forensics import SlipImage
from main import SlipVerifierAPI
from pipeline import LIKELY_LEGITIMATE, MissingInputError

STATUS_ICONS = {"positive": "✅", "negative": "❌", "neutral": "➖"}


@st.cache_resource
def get_api() -> SlipVerifierAPI:
    return SlipVerifierAPI()


st.title("Bet-Slip Verifier")
api = get_api()

profiles = list(api.profiles()) or ["local"]
profile = st.selectbox("Analyzer profile", profiles)
uploaded = st.file_uploader("Upload a slip", type=["png", "jpg", "jpeg", "webp"])

if st.button("Verify", disabled=uploaded is None):
    try:
        data = uploaded.getvalue() if uploaded is not None else b""
        if len(data) > api.max_image_bytes:
            raise ValueError(f"Image is larger than {api.max_image_bytes // (1024 * 1024)} MB")
        result = api.verify_slip(SlipImage(data, filename=uploaded.name), profile=profile)
    except (MissingInputError, ValueError) as exc:
        st.error(f"Verification failed: {exc}")
    else:
        col_img, col_res = st.columns(2)
        col_img.image(data, caption=uploaded.name)

        if result["verdict"] == LIKELY_LEGITIMATE:
            col_res.success(result["verdict"])
        else:
            col_res.error(result["verdict"])
        col_res.metric("Confidence", f"{result['confidence']}%")
        col_res.write(f"Sportsbook: **{result['sportsbook']}**")

        for f in result["findings"]:
            st.write(f"{STATUS_ICONS[f['status']]} **{f['category']}**: {f['detail']}")
