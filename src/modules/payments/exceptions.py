"""Payment gateway exceptions."""

from __future__ import annotations

from typing import Optional


class PaymentGatewayError(Exception):
    """The gateway call failed (transport error, unexpected response)."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class PaymentChannelError(PaymentGatewayError):
    """The gateway rejected the request for this merchant/payment channel.

    Raised for gateway-reported error codes (``214``: channel missing or
    suspended) and for missing credentials.  Checkout surfaces it to the
    caller instead of swallowing it.
    """


PAYMENT_CHANNEL_UNAVAILABLE = "214"
