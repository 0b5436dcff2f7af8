from __future__ import annotations

# =========================================
# pdf_utils.py
# Top-up storefront - payment slip PDF
# =========================================
# Produces a printable slip for an order awaiting payment using
# ReportLab. Very long links spill onto extra pages; the payment block is
# never split. The expiry line is informational only.
# =========================================

from io import BytesIO
from datetime import datetime, timezone

from reportlab.lib.pagesizes import A5
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas

from topup.formatting import format_robux, format_rupiah


def _safe(s) -> str:
    if s is None:
        return ""
    return str(s)


def build_payment_slip_pdf_bytes(order: dict) -> bytes:
    """
    Returns PDF bytes.
    order: Order.to_dict() output (order_id, created_at_ms, username,
    robux_amount, gamepass_price, gamepass_url, total_payment, payment_code,
    discord_username, expires_in_minutes)
    """
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A5)
    c.setTitle(f"Payment slip {_safe(order.get('order_id'))}")
    width, height = A5

    # ---- Header
    margin = 0.5 * inch
    y = height - margin

    c.setFont("Helvetica-Bold", 15)
    c.drawString(margin, y, "Robux Top-Up - Payment Slip")
    y -= 0.28 * inch

    c.setFont("Helvetica", 10)
    c.drawString(margin, y, f"Order ID: {_safe(order.get('order_id'))}")
    y -= 0.18 * inch

    created_ms = order.get("created_at_ms")
    if created_ms:
        created = datetime.fromtimestamp(int(created_ms) / 1000, tz=timezone.utc)
    else:
        created = datetime.now(timezone.utc)
    c.drawString(margin, y, f"Created: {created.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    y -= 0.30 * inch

    # ---- Customer block
    c.setFont("Helvetica-Bold", 12)
    c.drawString(margin, y, "Customer")
    y -= 0.18 * inch

    c.setFont("Helvetica", 10)
    c.drawString(margin, y, f"Username: {_safe(order.get('username'))}")
    y -= 0.16 * inch
    discord = _safe(order.get("discord_username"))
    if discord:
        c.drawString(margin, y, f"Discord: {discord}")
        y -= 0.16 * inch
    y -= 0.14 * inch

    # ---- Game Pass block
    c.setFont("Helvetica-Bold", 12)
    c.drawString(margin, y, "Game Pass")
    y -= 0.18 * inch

    c.setFont("Helvetica", 10)
    c.drawString(margin, y, f"Robux to receive: {format_robux(order.get('robux_amount') or 0)}")
    y -= 0.16 * inch
    c.drawString(margin, y, f"Game Pass price to set: {format_robux(order.get('gamepass_price') or 0)}")
    y -= 0.16 * inch

    url = _safe(order.get("gamepass_url"))
    # crude wrap so long links stay on the page
    max_chars = 60
    c.drawString(margin, y, "Link: " + url[:max_chars])
    y -= 0.16 * inch
    rest = url[max_chars:]
    while rest:
        if y < margin + 1.0 * inch:
            c.showPage()
            c.setFont("Helvetica", 10)
            y = height - margin
        c.drawString(margin + 0.35 * inch, y, rest[:max_chars])
        rest = rest[max_chars:]
        y -= 0.16 * inch
    y -= 0.14 * inch

    # ---- Payment block (kept together, above the footer)
    if y < margin + 1.4 * inch:
        c.showPage()
        y = height - margin

    c.setFont("Helvetica-Bold", 12)
    c.drawString(margin, y, "Payment (QRIS)")
    y -= 0.18 * inch

    c.setFont("Helvetica", 10)
    c.drawString(margin, y, "Discount: Rp 0")
    y -= 0.16 * inch
    c.drawString(margin, y, "Admin fee: Rp 0")
    y -= 0.20 * inch

    c.setFont("Helvetica-Bold", 13)
    c.drawString(margin, y, "Total: Rp " + format_rupiah(order.get("total_payment") or 0))
    y -= 0.24 * inch

    c.setFont("Helvetica", 10)
    c.drawString(margin, y, f"Payment code: {_safe(order.get('payment_code'))}")
    y -= 0.16 * inch
    c.drawString(margin, y, f"Expires in {_safe(order.get('expires_in_minutes'))} minutes")

    # ---- Footer
    c.setFont("Helvetica-Oblique", 8)
    c.drawRightString(width - margin, margin, "Robux are sent after payment confirmation.")

    c.showPage()
    c.save()
    return buf.getvalue()
