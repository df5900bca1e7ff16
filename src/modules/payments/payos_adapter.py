"""PayOS hosted-checkout adapter.

Talks to the PayOS merchant API over ``httpx``.  Requests are signed
with HMAC-SHA256 over the canonical ``amount/cancelUrl/description/
orderCode/returnUrl`` string; webhook ``data`` blocks are signed over
all of their keys in sorted order.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

import httpx
import structlog

from modules.payments.exceptions import (
    PAYMENT_CHANNEL_UNAVAILABLE,
    PaymentChannelError,
    PaymentGatewayError,
)
from modules.payments.gateway import BuyerInfo, PaymentGateway, PaymentSession, SessionItem

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://api-merchant.payos.vn"
SUCCESS_CODE = "00"


def _to_int(value: Decimal) -> int:
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _sign(checksum_key: str, message: str) -> str:
    return hmac.new(
        checksum_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def _canonical(data: Dict[str, Any]) -> str:
    parts = []
    for key in sorted(data):
        value = data[key]
        if value is None:
            value = ""
        elif isinstance(value, (list, dict)):
            value = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        elif isinstance(value, bool):
            value = str(value).lower()
        parts.append(f"{key}={value}")
    return "&".join(parts)


def generate_correlation_code() -> int:
    """Last ten digits of the current epoch milliseconds."""
    return int(str(int(time.time() * 1000))[-10:])


class PayOSGateway(PaymentGateway):
    """``PaymentGateway`` backed by the PayOS REST API."""

    def __init__(
        self,
        client_id: str,
        api_key: str,
        checksum_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client_id = client_id
        self._api_key = api_key
        self._checksum_key = checksum_key
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # PaymentGateway
    # ------------------------------------------------------------------

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
        order_code = generate_correlation_code()
        body: Dict[str, Any] = {
            "orderCode": order_code,
            "amount": _to_int(amount),
            "description": description or f"Order #{str(order_id)[-6:].upper()}",
            "items": [
                {
                    "name": item.name or " ",
                    "quantity": item.quantity or 1,
                    "price": _to_int(item.price),
                }
                for item in items
            ],
            "returnUrl": return_url,
            "cancelUrl": cancel_url,
            "buyerName": buyer.name or "Customer",
            "buyerEmail": buyer.email,
            "buyerPhone": buyer.phone,
            "buyerAddress": buyer.address,
        }
        body["signature"] = _sign(
            self._checksum_key,
            _canonical(
                {
                    "amount": body["amount"],
                    "cancelUrl": cancel_url,
                    "description": body["description"],
                    "orderCode": order_code,
                    "returnUrl": return_url,
                }
            ),
        )

        data = await self._request("POST", "/v2/payment-requests", body)
        log = logger.bind(order_id=str(order_id), order_code=order_code)
        log.info("payos.session_created", amount=body["amount"])
        return PaymentSession(
            checkout_url=data["checkoutUrl"],
            correlation_code=str(data.get("orderCode", order_code)),
            raw=data,
        )

    async def cancel_session(self, correlation_code: str, reason: str = "Cancel order") -> None:
        await self._request(
            "POST",
            f"/v2/payment-requests/{correlation_code}/cancel",
            {"cancellationReason": reason},
        )
        logger.info("payos.session_cancelled", order_code=correlation_code)

    def verify_webhook_signature(self, data: Dict[str, Any], signature: str) -> bool:
        if not signature or not self._checksum_key:
            return False
        expected = _sign(self._checksum_key, _canonical(data))
        return hmac.compare_digest(expected, signature)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        if not (self._client_id and self._api_key and self._checksum_key):
            raise PaymentChannelError(
                "PayOS credentials not configured: set PAYOS_CLIENT_ID, "
                "PAYOS_API_KEY and PAYOS_CHECKSUM_KEY."
            )
        return {
            "x-client-id": self._client_id,
            "x-api-key": self._api_key,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(
                base_url=self._api_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=body, headers=headers)
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as exc:
            logger.error("payos.transport_error", path=path, error=str(exc))
            raise PaymentGatewayError(f"PayOS request failed: {exc}") from exc
        except ValueError as exc:
            raise PaymentGatewayError("PayOS returned a non-JSON response") from exc

        code = str(result.get("code", ""))
        if code != SUCCESS_CODE:
            desc = result.get("desc") or "Unknown PayOS error"
            logger.error("payos.request_rejected", path=path, code=code, desc=desc)
            if code == PAYMENT_CHANNEL_UNAVAILABLE:
                raise PaymentChannelError(
                    "PayOS payment channel does not exist or is suspended", code=code
                )
            raise PaymentChannelError(f"PayOS error (code: {code}): {desc}", code=code)
        return result.get("data") or {}
