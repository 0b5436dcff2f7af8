# Checkout state machine, order ids and the simulated submission.
# The sleep and clock are injected so nothing here waits on real time.

from __future__ import annotations

import pytest

from topup.checkout import (
    CheckoutFlow,
    CheckoutState,
    InvalidTransition,
    Order,
    generate_order_id,
    submit_order,
)
from topup.forms import CheckoutDetails


def _details(**overrides) -> CheckoutDetails:
    data = {
        "username": "PlayerOne",
        "robux_amount": 800,
        "gamepass_price": 1143,
        "gamepass_url": "https://www.roblox.com/game-pass/1/Pass",
        "total_payment": 114286,
        "discord_username": None,
    }
    data.update(overrides)
    return CheckoutDetails(**data)


def test_generate_order_id_format() -> None:
    assert generate_order_id("UDN", 1678886400000) == "UDN-1678886400000"
    generated = generate_order_id()
    prefix, stamp = generated.split("-")
    assert prefix == "UDN"
    assert stamp.isdigit() and len(stamp) >= 13


def test_full_cycle() -> None:
    flow = CheckoutFlow()
    assert flow.state is CheckoutState.IDLE
    assert not flow.inputs_locked

    flow.submit()
    assert flow.state is CheckoutState.SUBMITTING
    assert flow.inputs_locked

    order = Order(
        order_id="UDN-1", created_at_ms=1, username="PlayerOne", robux_amount=400,
        gamepass_price=572, gamepass_url="https://example.com/gp", total_payment=57100,
        payment_code="QRIS-TEST",
    )
    flow.confirm(order)
    assert flow.state is CheckoutState.AWAITING_PAYMENT
    assert flow.order is order

    flow.close()
    assert flow.state is CheckoutState.CLOSED

    flow.reset()
    assert flow.state is CheckoutState.IDLE
    assert flow.order is None
    assert flow.history == []


def test_transitions_out_of_order_are_rejected() -> None:
    flow = CheckoutFlow()
    with pytest.raises(InvalidTransition):
        flow.reset()
    with pytest.raises(InvalidTransition):
        flow.confirm(None)

    flow.submit()
    with pytest.raises(InvalidTransition):
        flow.submit()
    # a submission cannot be cancelled
    with pytest.raises(InvalidTransition):
        flow.close()


def test_close_from_idle() -> None:
    flow = CheckoutFlow()
    flow.close()
    flow.reset()
    assert flow.state is CheckoutState.IDLE


def test_submit_order_waits_then_awaits_payment() -> None:
    slept = []
    flow = CheckoutFlow()
    details = _details(discord_username="player#1")

    order = submit_order(
        flow,
        details,
        payment_code="QRIS-TEST",
        delay_ms=2000,
        sleep=slept.append,
        clock_ms=lambda: 1678886400000,
    )

    assert slept == [2.0]
    assert flow.state is CheckoutState.AWAITING_PAYMENT
    assert order.order_id == "UDN-1678886400000"
    assert order.created_at_ms == 1678886400000
    assert order.username == "PlayerOne"
    assert order.gamepass_price == 1143
    assert order.discord_username == "player#1"
    assert order.payment_code == "QRIS-TEST"
    assert order.expires_in_minutes == 5
    assert flow.order == order


def test_submit_order_without_delay_does_not_sleep() -> None:
    slept = []
    order = submit_order(
        CheckoutFlow(), _details(), payment_code="X", prefix="ABC",
        delay_ms=0, sleep=slept.append, clock_ms=lambda: 42,
    )
    assert slept == []
    assert order.order_id == "ABC-42"


def test_submit_order_requires_idle() -> None:
    flow = CheckoutFlow()
    flow.submit()
    with pytest.raises(InvalidTransition):
        submit_order(flow, _details(), payment_code="X", delay_ms=0)


def test_session_round_trip() -> None:
    flow = CheckoutFlow()
    submit_order(flow, _details(), payment_code="X", delay_ms=0, clock_ms=lambda: 7)

    data = flow.to_session()
    assert data["state"] == "awaiting_payment"
    assert data["order"]["order_id"] == "UDN-7"

    restored = CheckoutFlow.from_session(data)
    assert restored.state is CheckoutState.AWAITING_PAYMENT
    assert restored.order == flow.order


def test_from_session_falls_back_to_idle() -> None:
    assert CheckoutFlow.from_session(None).state is CheckoutState.IDLE
    assert CheckoutFlow.from_session({}).state is CheckoutState.IDLE
    assert CheckoutFlow.from_session({"state": "bogus"}).state is CheckoutState.IDLE
