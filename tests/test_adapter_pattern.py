import unittest
from typing import Protocol
from unittest.mock import MagicMock

from scopebind import Injected, ServiceCollection


class Contains:  # noqa: PLW1641
    def __init__(self, substring):
        self.substring = substring

    def __repr__(self):
        return f"Contains({self.substring!r})"

    def __eq__(self, other):
        return isinstance(other, str) and self.substring in other


class PaymentClient(Protocol):
    def charge(self, order_id: str, amount_cents: int) -> None: ...


class InfoLogger(Protocol):
    def info(self, msg: object, *args: object) -> None: ...


class NullLogger:
    def info(self, msg: object, *args: object) -> None:
        pass


class StripeSdk:
    def pay(self, amount_usd: float, reference: str) -> bool:
        return True


class StripeAdapter:
    sdk: Injected[StripeSdk] = None
    logger: Injected[InfoLogger] = None
    usd_per_cent: float = 0.01

    def charge(self, order_id: str, amount_cents: int) -> None:
        self.logger.info("adapting to stripe sdk api")
        amount_usd = amount_cents * self.usd_per_cent
        ok = self.sdk.pay(amount_usd, reference=order_id)
        if not ok:
            msg = "Stripe payment failed"
            raise RuntimeError(msg)


class TestWiringAdapterThirdPartySDK(unittest.TestCase):
    services: ServiceCollection

    def setUp(self):
        self.services = ServiceCollection()
        self.stripe_sdk = StripeSdk()
        self.stripe_sdk.pay = MagicMock(wraps=self.stripe_sdk.pay)
        self.logger = NullLogger()
        self.logger.info = MagicMock(wraps=self.logger.info)

        self.services.add_scoped_of(PaymentClient, StripeAdapter)
        self.services.add_singleton_handler(StripeSdk, lambda _: self.stripe_sdk)
        self.services.add_singleton_handler(InfoLogger, lambda _: self.logger)

    def test_adapter_calls_adaptee(self):
        client: PaymentClient = self.services.build().get_service(PaymentClient)
        client.charge("order-123", 5000)

        assert self.stripe_sdk.pay.call_count == 1
        assert self.stripe_sdk.pay.call_args[0][0] == 0.01 * 5000
        assert self.stripe_sdk.pay.call_args[1]["reference"] == "order-123"

        assert self.logger.info.call_args[0][0] == Contains("stripe sdk")

    def test_adapter_is_shared_within_a_provider(self):
        provider = self.services.build()

        assert provider.get_service(PaymentClient) is provider.get_service(PaymentClient)


class TestAutoWiringAdapterThirdPartySDK(unittest.TestCase):
    def test_adapter_calls_adaptee(self):
        services = ServiceCollection()
        services.add_scoped_of(PaymentClient, StripeAdapter)
        services.add_transient(StripeSdk)
        services.add_singleton_of(InfoLogger, NullLogger)

        client: PaymentClient = services.build().get_service(PaymentClient)
        client.charge("order-123", 5000)

        assert isinstance(client.sdk, StripeSdk)
        assert isinstance(client.logger, NullLogger)
