"""Configurable fake payment gateway for development and testing.

Simulates hosted checkout without any network call.  It can be told to
fail with a channel error or a generic error, and records every call
for assertions.
"""

from __future__ import annotations

from decimal import Decimal
from itertools import count
from typing import Any, Dict, List, Optional

from modules.payments.exceptions import (
    PAYMENT_CHANNEL_UNAVAILABLE,
    PaymentChannelError,
    PaymentGatewayError,
)
from modules.payments.gateway import BuyerInfo, PaymentGateway, PaymentSession, SessionItem

FAKE_SIGNATURE = "test-signature"

# Process-wide; codes never repeat across gateway instances.
_correlation_codes = count(1000000001)


class FakeGateway(PaymentGateway):
    """In-process ``PaymentGateway`` with scripted outcomes."""

    def __init__(self, checkout_base_url: str = "https://pay.example.test") -> None:
        self.checkout_base_url = checkout_base_url
        self.session_error: Optional[Exception] = None
        self.cancel_error: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []

    def fail_sessions_with_channel_error(self) -> None:
        self.session_error = PaymentChannelError(
            "Payment channel suspended", code=PAYMENT_CHANNEL_UNAVAILABLE
        )

    def fail_sessions_with_transport_error(self) -> None:
        self.session_error = PaymentGatewayError("connection reset")

    def fail_cancellations(self) -> None:
        self.cancel_error = PaymentGatewayError("cancel rejected")

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["method"] == method]

    async def create_session(
        self,
        order_id: str,
        amount: Decimal,
        items: List[SessionItem],
        buyer: BuyerInfo,
        return_url: str,
        cancel_url: str,
        description: Optional[str] = None,
    ) -> PaymentSession:
        self.calls.append(
            {
                "method": "create_session",
                "order_id": str(order_id),
                "amount": amount,
                "items": items,
                "buyer": buyer,
                "return_url": return_url,
                "cancel_url": cancel_url,
            }
        )
        if self.session_error:
            raise self.session_error
        code = str(next(_correlation_codes))
        return PaymentSession(
            checkout_url=f"{self.checkout_base_url}/web/{code}",
            correlation_code=code,
        )

    async def cancel_session(self, correlation_code: str, reason: str = "Cancel order") -> None:
        self.calls.append(
            {"method": "cancel_session", "correlation_code": correlation_code, "reason": reason}
        )
        if self.cancel_error:
            raise self.cancel_error

    def verify_webhook_signature(self, data: Dict[str, Any], signature: str) -> bool:  # noqa: ARG002
        return signature == FAKE_SIGNATURE
