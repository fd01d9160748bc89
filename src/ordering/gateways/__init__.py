"""Saga collaborators — ports plus the adapters the runtime is built from."""

from ordering import settings
from ordering.gateways.fake_adapter import FakePaymentGateway, FlatRateShipping, FlatRateTax
from ordering.gateways.port import PaymentGateway, ShippingCalculator, TaxCalculator


def build_payment_gateway() -> PaymentGateway:
    backend = settings.payment_gateway_backend()
    if backend == "fake":
        return FakePaymentGateway()
    raise ValueError(f"Unknown payment gateway: {backend}")


def build_shipping_calculator() -> ShippingCalculator:
    return FlatRateShipping(base_rate=settings.shipping_base_rate(), per_unit=settings.shipping_per_unit())


def build_tax_calculator() -> TaxCalculator:
    return FlatRateTax(rate=settings.tax_rate())
