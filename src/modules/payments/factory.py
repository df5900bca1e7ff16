"""Payment gateway factory.

Builds the adapter selected by ``settings.PAYMENT_GATEWAY`` so services
receive the gateway as an explicit dependency.
"""

from __future__ import annotations

from django.conf import settings

from modules.payments.fake_adapter import FakeGateway
from modules.payments.gateway import PaymentGateway
from modules.payments.payos_adapter import PayOSGateway


def build_gateway() -> PaymentGateway:
    """Return the configured gateway (``payos`` or ``fake``)."""
    backend = getattr(settings, "PAYMENT_GATEWAY", "payos")
    if backend == "fake":
        return FakeGateway()
    if backend != "payos":
        raise ValueError(f"Unknown PAYMENT_GATEWAY backend: {backend!r}")
    return PayOSGateway(
        client_id=settings.PAYOS_CLIENT_ID,
        api_key=settings.PAYOS_API_KEY,
        checksum_key=settings.PAYOS_CHECKSUM_KEY,
        api_url=settings.PAYOS_API_URL,
        timeout=settings.PAYOS_TIMEOUT_SECONDS,
    )
