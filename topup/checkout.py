from __future__ import annotations

# =========================================
# checkout.py
# Top-up storefront - checkout flow
# =========================================
# - Explicit state machine: Idle -> Submitting -> AwaitingPayment -> Closed
# - Orders are built in memory only; the id is "<prefix>-<ms timestamp>"
# - Submission waits a fixed artificial delay, there is no network call
# - The payment expiry is a display value, nothing enforces it
# =========================================

import time
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Callable, Optional

DEFAULT_ORDER_PREFIX = "UDN"
DEFAULT_SUBMIT_DELAY_MS = 2000
DEFAULT_EXPIRY_MINUTES = 5


class CheckoutState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    AWAITING_PAYMENT = "awaiting_payment"
    CLOSED = "closed"


class InvalidTransition(RuntimeError):
    pass


# action -> (allowed source states, target state)
TRANSITIONS = {
    "submit": ({CheckoutState.IDLE}, CheckoutState.SUBMITTING),
    "confirm": ({CheckoutState.SUBMITTING}, CheckoutState.AWAITING_PAYMENT),
    "close": ({CheckoutState.IDLE, CheckoutState.AWAITING_PAYMENT}, CheckoutState.CLOSED),
    "reset": ({CheckoutState.CLOSED}, CheckoutState.IDLE),
}


@dataclass
class Order:
    order_id: str
    created_at_ms: int
    username: str
    robux_amount: int
    gamepass_price: int
    gamepass_url: str
    total_payment: int
    payment_code: str
    discord_username: Optional[str] = None
    expires_in_minutes: int = DEFAULT_EXPIRY_MINUTES

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Order":
        return cls(**data)


@dataclass
class CheckoutFlow:
    state: CheckoutState = CheckoutState.IDLE
    order: Optional[Order] = None
    history: list = field(default_factory=list)

    @property
    def inputs_locked(self) -> bool:
        return self.state is not CheckoutState.IDLE

    def _apply(self, action: str) -> CheckoutState:
        sources, target = TRANSITIONS[action]
        if self.state not in sources:
            raise InvalidTransition(f"Cannot {action} while {self.state.value}")
        self.history.append((self.state.value, action, target.value))
        self.state = target
        return target

    def submit(self) -> CheckoutState:
        return self._apply("submit")

    def confirm(self, order: Order) -> CheckoutState:
        target = self._apply("confirm")
        self.order = order
        return target

    def close(self) -> CheckoutState:
        return self._apply("close")

    def reset(self) -> CheckoutState:
        target = self._apply("reset")
        self.order = None
        self.history.clear()
        return target

    # ---- Flask session round-trip (JSON-safe primitives only)
    def to_session(self) -> dict:
        return {
            "state": self.state.value,
            "order": self.order.to_dict() if self.order else None,
        }

    @classmethod
    def from_session(cls, data: Optional[dict]) -> "CheckoutFlow":
        if not data:
            return cls()
        try:
            state = CheckoutState(data.get("state", CheckoutState.IDLE.value))
        except ValueError:
            return cls()
        order_data = data.get("order")
        order = Order.from_dict(order_data) if order_data else None
        return cls(state=state, order=order)


def generate_order_id(prefix: str = DEFAULT_ORDER_PREFIX, now_ms: Optional[int] = None) -> str:
    """Unique per submission as long as two submissions never share a millisecond."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{prefix}-{now_ms}"


def submit_order(
    flow: CheckoutFlow,
    details,
    *,
    payment_code: str,
    prefix: str = DEFAULT_ORDER_PREFIX,
    delay_ms: int = DEFAULT_SUBMIT_DELAY_MS,
    expires_in_minutes: int = DEFAULT_EXPIRY_MINUTES,
    sleep: Callable[[float], None] = time.sleep,
    clock_ms: Callable[[], int] = lambda: time.time_ns() // 1_000_000,
) -> Order:
    """
    Idle -> Submitting -> AwaitingPayment for checkout `details`
    (a forms.CheckoutDetails). Blocks for `delay_ms` in between.
    """
    flow.submit()

    if delay_ms > 0:
        sleep(delay_ms / 1000.0)

    created = clock_ms()
    order = Order(
        order_id=generate_order_id(prefix, created),
        created_at_ms=created,
        username=details.username,
        robux_amount=details.robux_amount,
        gamepass_price=details.gamepass_price,
        gamepass_url=details.gamepass_url,
        total_payment=details.total_payment,
        payment_code=payment_code,
        discord_username=details.discord_username,
        expires_in_minutes=expires_in_minutes,
    )
    flow.confirm(order)
    return order
