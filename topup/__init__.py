"""Robux top-up storefront: price calculator, checkout flow and the Flask site around them."""

__version__ = "0.1.0"
