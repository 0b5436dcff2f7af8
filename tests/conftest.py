"""
Shared test configuration.
Provides a Flask test client with the artificial submission delay turned off.
These tests are executed by `pytest` locally and should remain deterministic.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from topup.app import app as flask_app  # noqa: E402
from topup.pricing import DEFAULT_FEE_RATE, DEFAULT_TIERS  # noqa: E402

GAMEPASS_URL = "https://www.roblox.com/game-pass/123456/Top-Up-Pass"


@pytest.fixture
def app(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setitem(flask_app.config, "TESTING", True)
    monkeypatch.setitem(flask_app.config, "SUBMIT_DELAY_MS", 0)
    monkeypatch.setitem(flask_app.config, "FEE_RATE", DEFAULT_FEE_RATE)
    monkeypatch.setitem(flask_app.config, "PRICE_TIERS", DEFAULT_TIERS)
    monkeypatch.setitem(flask_app.config, "MAX_ROBUX", 10000)
    monkeypatch.setitem(flask_app.config, "ORDER_PREFIX", "UDN")
    monkeypatch.setitem(flask_app.config, "PAYMENT_CODE", "QRIS-TEST")
    monkeypatch.setitem(flask_app.config, "PAYMENT_EXPIRY_MINUTES", 5)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def checkout_query() -> dict:
    """Query contract for 400 Robux at the default fee rate and tiers."""
    return {
        "username": "PlayerOne",
        "robuxAmount": "400",
        "gamepassPrice": "572",
        "gamepassUrl": GAMEPASS_URL,
        "totalPayment": "57100",
    }
