from __future__ import annotations

# =========================================
# config.py
# Top-up storefront - configuration
# =========================================
# Read once at startup from the environment (a local .env is honoured):
#   FLASK_SECRET_KEY
#   TOPUP_FEE_RATE (default 0.30), TOPUP_MAX_ROBUX (default 10000)
#   TOPUP_SUBMIT_DELAY_MS (default 2000)
#   TOPUP_ORDER_PREFIX (default UDN), TOPUP_PAYMENT_CODE
#   TOPUP_PAYMENT_EXPIRY_MINUTES (default 5, display only)
#   LOG_LEVEL (default INFO)
# PRICE_TIERS is not an env var; set app.config["PRICE_TIERS"] directly.
# =========================================

import logging
import os

from dotenv import load_dotenv

from topup.checkout import DEFAULT_EXPIRY_MINUTES, DEFAULT_ORDER_PREFIX, DEFAULT_SUBMIT_DELAY_MS
from topup.forms import DEFAULT_MAX_ROBUX
from topup.pricing import DEFAULT_FEE_RATE, DEFAULT_TIERS

log = logging.getLogger(__name__)

DEFAULT_PAYMENT_CODE = "QRIS-UDN-0001"


def _as_int(val, default: int) -> int:
    if val is None or str(val).strip() == "":
        return default
    try:
        return int(str(val).strip())
    except ValueError:
        log.warning("Ignoring non-integer config value %r, using %s", val, default)
        return default


def _as_rate(val, default: float) -> float:
    if val is None or str(val).strip() == "":
        return default
    try:
        rate = float(str(val).strip())
    except ValueError:
        log.warning("Ignoring non-numeric fee rate %r, using %s", val, default)
        return default
    if not 0 <= rate < 1:
        log.warning("Fee rate %r outside [0, 1), using %s", val, default)
        return default
    return rate


def load_config(env=None) -> dict:
    """Build the app.config mapping from `env` (os.environ by default)."""
    if env is None:
        load_dotenv()
        env = os.environ

    return {
        "SECRET_KEY": env.get("FLASK_SECRET_KEY", "dev-secret-change-me"),
        "FEE_RATE": _as_rate(env.get("TOPUP_FEE_RATE"), DEFAULT_FEE_RATE),
        "MAX_ROBUX": _as_int(env.get("TOPUP_MAX_ROBUX"), DEFAULT_MAX_ROBUX),
        "SUBMIT_DELAY_MS": max(0, _as_int(env.get("TOPUP_SUBMIT_DELAY_MS"), DEFAULT_SUBMIT_DELAY_MS)),
        "ORDER_PREFIX": env.get("TOPUP_ORDER_PREFIX", DEFAULT_ORDER_PREFIX),
        "PAYMENT_CODE": env.get("TOPUP_PAYMENT_CODE", DEFAULT_PAYMENT_CODE),
        "PAYMENT_EXPIRY_MINUTES": _as_int(env.get("TOPUP_PAYMENT_EXPIRY_MINUTES"), DEFAULT_EXPIRY_MINUTES),
        "LOG_LEVEL": env.get("LOG_LEVEL", "INFO").upper(),
        "PRICE_TIERS": DEFAULT_TIERS,
    }


def pricing_settings(app):
    """(fee_rate, tiers, max_amount) from a Flask app's config."""
    cfg = app.config
    return (
        cfg.get("FEE_RATE", DEFAULT_FEE_RATE),
        cfg.get("PRICE_TIERS", DEFAULT_TIERS),
        cfg.get("MAX_ROBUX", DEFAULT_MAX_ROBUX),
    )
