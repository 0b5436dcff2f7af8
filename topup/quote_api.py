from __future__ import annotations

# =========================================
# quote_api.py
# Top-up storefront - live quote API
# =========================================
# - The top-up form calls GET /api/quote on every amount edit
# - Same calculator as the form submission and the checkout view
# =========================================

from flask import Blueprint, current_app, jsonify, request

from topup.config import pricing_settings
from topup.formatting import format_robux, format_rupiah
from topup.forms import parse_amount
from topup.pricing import QuoteError, build_quote, minimum_amount, normalize_tiers

quote_api = Blueprint("quote_api", __name__, url_prefix="/api")


@quote_api.get("/quote")
def get_quote():
    """
    GET /api/quote?robuxAmount=N
    Returns the quote for N Robux, or 400 when N is missing or out of range.
    """
    fee_rate, tiers, max_amount = pricing_settings(current_app)

    amount = parse_amount(request.args.get("robuxAmount"))
    if amount is None:
        return jsonify({"ok": False, "error": "robuxAmount must be a whole number"}), 400

    floor = minimum_amount(tiers)
    if amount < floor:
        return jsonify({"ok": False, "error": f"Minimum {floor:,} Robux."}), 400
    if amount > max_amount:
        return jsonify({"ok": False, "error": f"Maximum {max_amount:,} Robux."}), 400

    try:
        quote = build_quote(amount, fee_rate, tiers)
    except QuoteError as e:
        current_app.logger.warning("Quote failed for %s: %s", amount, e)
        return jsonify({"ok": False, "error": str(e)}), 400

    return jsonify({
        "ok": True,
        "quote": quote.as_dict(),
        "display": {
            "robuxAmount": format_robux(quote.net_amount),
            "gamepassPrice": format_robux(quote.gross_amount),
            "feeAmount": format_robux(quote.fee_amount),
            "totalPayment": format_rupiah(quote.total_payment),
        },
    })


@quote_api.get("/tiers")
def get_tiers():
    fee_rate, tiers, max_amount = pricing_settings(current_app)
    return jsonify({
        "ok": True,
        "feeRate": float(fee_rate),
        "maxAmount": max_amount,
        "tiers": [
            {"threshold": t.threshold, "price": t.price, "discountLabel": t.discount_label}
            for t in normalize_tiers(tiers)
        ],
    })
