"""Environment-driven settings for the ordering runtime."""

import os


def payment_gateway_backend() -> str:
    """Payment gateway adapter. Only ``fake`` ships with the service."""
    return os.environ.get("PAYMENT_GATEWAY", "fake").lower()


def shipping_base_rate() -> float:
    return float(os.environ.get("SHIPPING_BASE_RATE", "5.0"))


def shipping_per_unit() -> float:
    return float(os.environ.get("SHIPPING_PER_UNIT", "0.5"))


def tax_rate() -> float:
    return float(os.environ.get("TAX_RATE", "0.08"))
