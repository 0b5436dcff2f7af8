# Display formatting and the payment slip PDF.

from __future__ import annotations

from topup.formatting import format_robux, format_rupiah
from topup.pdf_utils import build_payment_slip_pdf_bytes


def test_format_robux_uses_commas() -> None:
    assert format_robux(1143) == "1,143"
    assert format_robux(70) == "70"
    assert format_robux("10000") == "10,000"
    assert format_robux("n/a") == "n/a"


def test_format_rupiah_uses_periods() -> None:
    assert format_rupiah(12500) == "12.500"
    assert format_rupiah(1250000) == "1.250.000"
    assert format_rupiah(0) == "0"
    assert format_rupiah(None) == "None"


def _order(**overrides) -> dict:
    order = {
        "order_id": "UDN-1678886400000",
        "created_at_ms": 1678886400000,
        "username": "PlayerOne",
        "robux_amount": 400,
        "gamepass_price": 572,
        "gamepass_url": "https://www.roblox.com/game-pass/123456/Top-Up-Pass",
        "total_payment": 57100,
        "payment_code": "QRIS-TEST",
        "discord_username": "gamer",
        "expires_in_minutes": 5,
    }
    order.update(overrides)
    return order


def test_payment_slip_is_a_pdf() -> None:
    pdf = build_payment_slip_pdf_bytes(_order())
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 500


def test_payment_slip_handles_sparse_orders() -> None:
    pdf = build_payment_slip_pdf_bytes(_order(
        created_at_ms=None,
        discord_username=None,
        gamepass_url="https://www.roblox.com/game-pass/" + "x" * 200,
    ))
    assert pdf.startswith(b"%PDF")


def test_long_link_keeps_totals_on_the_page(monkeypatch) -> None:
    from reportlab.lib.pagesizes import A5
    from reportlab.lib.units import inch
    from reportlab.pdfgen import canvas

    drawn = []
    pages = []
    original_draw = canvas.Canvas.drawString
    original_show = canvas.Canvas.showPage

    def recording_draw(self, x, y, text, *args, **kwargs):
        drawn.append((y, text))
        return original_draw(self, x, y, text, *args, **kwargs)

    def recording_show(self):
        pages.append(len(drawn))
        return original_show(self)

    monkeypatch.setattr(canvas.Canvas, "drawString", recording_draw)
    monkeypatch.setattr(canvas.Canvas, "showPage", recording_show)

    pdf = build_payment_slip_pdf_bytes(_order(
        gamepass_url="https://www.roblox.com/game-pass/" + "a" * 4000,
    ))
    assert pdf.startswith(b"%PDF")

    margin = 0.5 * inch
    _, height = A5
    for y, text in drawn:
        assert margin <= y <= height, f"{text!r} drawn at y={y:.1f}pt"

    texts = [text for _, text in drawn]
    assert any(t.startswith("Total: Rp 57.100") for t in texts)
    assert "Expires in 5 minutes" in texts
    assert len(pages) > 1
