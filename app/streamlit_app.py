"""APEX F1: main Streamlit entry point."""

import logging
import sys
from pathlib import Path

# Ensure the project root is on sys.path so absolute imports work.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from dotenv import load_dotenv

load_dotenv()

import streamlit as st

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(
    page_title="APEX F1",
    page_icon="\U0001f3ce\ufe0f",
    layout="wide",
)

st.title("APEX F1")
st.markdown("Live strategy agent: race-win probability for any driver and circuit.")

from app.pages.prediction import render_prediction_page

render_prediction_page()
