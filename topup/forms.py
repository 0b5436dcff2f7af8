from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from topup.pricing import DEFAULT_TIERS, minimum_amount

DEFAULT_MAX_ROBUX = 10000
MIN_USERNAME_LEN = 3

REQUIRED_CHECKOUT_PARAMS = (
    "username",
    "robuxAmount",
    "gamepassPrice",
    "gamepassUrl",
    "totalPayment",
)
INT_CHECKOUT_PARAMS = ("robuxAmount", "gamepassPrice", "totalPayment")


class MissingOrderDetails(ValueError):
    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__("Missing order details: " + ", ".join(fields))


@dataclass(frozen=True)
class CheckoutDetails:
    username: str
    robux_amount: int
    gamepass_price: int
    gamepass_url: str
    total_payment: int
    discord_username: Optional[str] = None


def is_valid_url(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and bool(parts.hostname) and " " not in value


def parse_amount(raw) -> Optional[int]:
    text = str(raw if raw is not None else "").strip().replace(",", "")
    if not text:
        return None
    if not re.fullmatch(r"[0-9]+", text):
        return None
    return int(text)


def validate_topup_form(form, *, tiers=DEFAULT_TIERS, max_amount: int = DEFAULT_MAX_ROBUX):
    """
    Returns (values, errors). `errors` maps field name -> message shown next
    to that field; the form must not be submitted while it is non-empty.
    """
    values = {
        "username": (form.get("username") or "").strip(),
        "robuxAmount": None,
        "gamepassUrl": (form.get("gamepassUrl") or "").strip(),
        "discordUsername": (form.get("discordUsername") or "").strip() or None,
        "coupon": (form.get("coupon") or "").strip() or None,
    }
    errors = {}

    if len(values["username"]) < MIN_USERNAME_LEN:
        errors["username"] = f"Username must be at least {MIN_USERNAME_LEN} characters."

    floor = minimum_amount(tiers)
    amount = parse_amount(form.get("robuxAmount"))
    if amount is None:
        errors["robuxAmount"] = "Please enter a whole number of Robux."
    elif amount < floor:
        errors["robuxAmount"] = f"Minimum {floor:,} Robux."
    elif amount > max_amount:
        errors["robuxAmount"] = f"Maximum {max_amount:,} Robux."
    else:
        values["robuxAmount"] = amount

    if not is_valid_url(values["gamepassUrl"]):
        errors["gamepassUrl"] = "Please enter a valid Game Pass URL."

    return values, errors


def checkout_params(values: dict, quote) -> dict:
    params = {
        "username": values["username"],
        "robuxAmount": quote.net_amount,
        "gamepassPrice": quote.gross_amount,
        "gamepassUrl": values["gamepassUrl"],
        "totalPayment": quote.total_payment,
    }
    if values.get("discordUsername"):
        params["discordUsername"] = values["discordUsername"]
    return params


def parse_checkout_params(args) -> CheckoutDetails:
    bad = [k for k in REQUIRED_CHECKOUT_PARAMS if not (args.get(k) or "").strip()]

    numbers = {}
    for key in INT_CHECKOUT_PARAMS:
        if key in bad:
            continue
        val = parse_amount(args.get(key))
        if val is None or val <= 0:
            bad.append(key)
        else:
            numbers[key] = val

    if bad:
        raise MissingOrderDetails(bad)

    return CheckoutDetails(
        username=args.get("username").strip(),
        robux_amount=numbers["robuxAmount"],
        gamepass_price=numbers["gamepassPrice"],
        gamepass_url=args.get("gamepassUrl").strip(),
        total_payment=numbers["totalPayment"],
        discord_username=(args.get("discordUsername") or "").strip() or None,
    )
