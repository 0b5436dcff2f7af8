import logging
from pathlib import Path

from flask import (
    Flask, render_template, request, redirect, url_for,
    flash, session, abort, make_response
)

from topup.checkout import CheckoutFlow, CheckoutState, InvalidTransition, submit_order
from topup.config import load_config, pricing_settings
from topup.formatting import format_robux, format_rupiah
from topup.forms import (
    MissingOrderDetails, checkout_params, parse_checkout_params, validate_topup_form
)
from topup.pdf_utils import build_payment_slip_pdf_bytes
from topup.pricing import QuoteError, build_quote, minimum_amount, normalize_tiers

BASE_DIR = Path(__file__).parent.resolve()

# --- Flask app ---------------------------------------------------------------
app = Flask(
    __name__,
    template_folder=str(BASE_DIR / "templates"),
    static_folder=str(BASE_DIR / "static"),
)
app.config.update(load_config())
app.secret_key = app.config["SECRET_KEY"]
app.logger.setLevel(getattr(logging, app.config["LOG_LEVEL"], logging.INFO))

from topup.quote_api import quote_api  # noqa: E402
app.register_blueprint(quote_api)

DEFAULT_FORM_AMOUNT = 100
MISSING_DETAILS_MSG = "Missing order details. Please start again."


# --- Filters -----------------------------------------------------------------
@app.template_filter("robux")
def robux_filter(v):
    return format_robux(v)


@app.template_filter("rupiah")
def rupiah_filter(v):
    return format_rupiah(v)


@app.context_processor
def inject_globals():
    fee_rate, _, _ = pricing_settings(app)
    return {"FEE_PERCENT": round(float(fee_rate) * 100)}


# --- Session-held checkout flow ----------------------------------------------
def load_flow() -> CheckoutFlow:
    return CheckoutFlow.from_session(session.get("checkout"))


def save_flow(flow: CheckoutFlow):
    session["checkout"] = flow.to_session()


def reset_flow(flow: CheckoutFlow) -> CheckoutFlow:
    """Back to Idle with every field cleared, from wherever the visitor left off."""
    if flow.state is CheckoutState.SUBMITTING:
        # a submission that never finished (request died); nothing to keep
        flow = CheckoutFlow()
    if flow.state is CheckoutState.AWAITING_PAYMENT:
        flow.close()
    if flow.state is CheckoutState.CLOSED:
        flow.reset()
    return flow


def verified_details(source):
    """
    Parse the checkout contract from `source` (query args or form) and make
    sure the numbers are the ones the calculator gives for that amount.
    """
    details = parse_checkout_params(source)
    fee_rate, tiers, max_amount = pricing_settings(app)

    if not minimum_amount(tiers) <= details.robux_amount <= max_amount:
        raise MissingOrderDetails(["robuxAmount"])
    try:
        quote = build_quote(details.robux_amount, fee_rate, tiers)
    except QuoteError as e:
        raise MissingOrderDetails(["robuxAmount"]) from e

    mismatched = []
    if quote.gross_amount != details.gamepass_price:
        mismatched.append("gamepassPrice")
    if quote.total_payment != details.total_payment:
        mismatched.append("totalPayment")
    if mismatched:
        raise MissingOrderDetails(mismatched)
    return details, quote


# --- Pages -------------------------------------------------------------------
def _presets():
    fee_rate, tiers, _ = pricing_settings(app)
    return [(t, build_quote(t.threshold, fee_rate, tiers)) for t in normalize_tiers(tiers)]


def _render_landing(values=None, errors=None, status=200):
    fee_rate, tiers, max_amount = pricing_settings(app)
    values = values or {"robuxAmount": DEFAULT_FORM_AMOUNT}
    amount = values.get("robuxAmount")

    quote = None
    if isinstance(amount, int):
        try:
            quote = build_quote(amount, fee_rate, tiers)
        except QuoteError:
            quote = None

    html = render_template(
        "index.html",
        values=values,
        errors=errors or {},
        quote=quote,
        presets=_presets(),
        min_amount=minimum_amount(tiers),
        max_amount=max_amount,
    )
    return html, status


@app.get("/")
def index():
    return _render_landing()


@app.get("/tutorial")
def tutorial():
    return render_template("tutorial.html")


@app.post("/topup")
def topup_submit():
    fee_rate, tiers, max_amount = pricing_settings(app)
    values, errors = validate_topup_form(request.form, tiers=tiers, max_amount=max_amount)
    if errors:
        if values["robuxAmount"] is None:
            values["robuxAmount"] = (request.form.get("robuxAmount") or "").strip()
        return _render_landing(values, errors, status=400)

    quote = build_quote(values["robuxAmount"], fee_rate, tiers)
    return redirect(url_for("checkout", **checkout_params(values, quote)))


# --- Checkout ----------------------------------------------------------------
@app.get("/checkout")
def checkout():
    try:
        details, quote = verified_details(request.args)
    except MissingOrderDetails as e:
        app.logger.warning("Checkout rejected: %s", e)
        flash(MISSING_DETAILS_MSG, "error")
        return redirect(url_for("index"))

    # Arriving here always starts from Idle; a previous order is discarded.
    save_flow(reset_flow(load_flow()))
    return render_template(
        "checkout.html",
        details=details,
        quote=quote,
    )


@app.post("/checkout/submit")
def checkout_submit():
    try:
        details, _ = verified_details(request.form)
    except MissingOrderDetails as e:
        app.logger.warning("Checkout submit rejected: %s", e)
        flash(MISSING_DETAILS_MSG, "error")
        return redirect(url_for("index"))

    flow = load_flow()
    if flow.inputs_locked:
        flash("An order is already in progress. Close it before starting a new one.", "error")
        return redirect(url_for("index"))

    try:
        order = submit_order(
            flow,
            details,
            payment_code=app.config["PAYMENT_CODE"],
            prefix=app.config["ORDER_PREFIX"],
            delay_ms=app.config["SUBMIT_DELAY_MS"],
            expires_in_minutes=app.config["PAYMENT_EXPIRY_MINUTES"],
        )
    except InvalidTransition as e:
        app.logger.warning("Checkout submit out of order: %s", e)
        flash("An order is already in progress. Close it before starting a new one.", "error")
        return redirect(url_for("index"))

    save_flow(flow)
    app.logger.info(
        "Order %s ready for payment: %s Robux for %s (total Rp %s)",
        order.order_id, order.robux_amount, order.username, order.total_payment,
    )
    flash("Order Ready for Payment! Please scan the QR code to complete your purchase.", "success")
    return render_template("confirmation.html", order=order, coupon=request.form.get("coupon", "").strip())


@app.post("/checkout/close")
def checkout_close():
    flow = load_flow()
    if flow.state is CheckoutState.SUBMITTING:
        flash("Your order is still being processed.", "error")
        return redirect(url_for("index"))
    save_flow(reset_flow(flow))
    return redirect(url_for("index"))


@app.get("/checkout/orders/<order_id>/slip.pdf")
def payment_slip(order_id):
    flow = load_flow()
    if flow.state is not CheckoutState.AWAITING_PAYMENT or not flow.order:
        abort(404)
    if flow.order.order_id != order_id:
        abort(404)

    try:
        pdf = build_payment_slip_pdf_bytes(flow.order.to_dict())
    except Exception:
        app.logger.exception("Payment slip generation failed for %s", order_id)
        abort(500)

    resp = make_response(pdf)
    resp.headers["Content-Type"] = "application/pdf"
    resp.headers["Content-Disposition"] = f'inline; filename="slip_{order_id}.pdf"'
    return resp


# --- Dev entry ---------------------------------------------------------------
if __name__ == "__main__":
    # FLASK_APP=topup.app flask run --debug   (from project root), or:
    app.run(debug=True)
