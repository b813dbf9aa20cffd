import os
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"


def _require_env():
    """Base URL and token for a live PDFDancer service, or skip the test."""
    token = os.getenv("PDFDANCER_TOKEN")
    if not token or not token.strip():
        pytest.skip("PDFDANCER_TOKEN not set; skipping live end-to-end test")
    base_url = os.getenv("PDFDANCER_BASE_URL", "http://localhost:8080").strip()
    return base_url, token.strip()


def _require_env_and_fixture(name: str):
    base_url, token = _require_env()
    pdf_path = FIXTURES_DIR / name
    if not pdf_path.is_file():
        pytest.skip(f"Fixture {name} not found in {FIXTURES_DIR}")
    return base_url, token, pdf_path
