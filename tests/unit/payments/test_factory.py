"""Unit tests for gateway selection."""

import pytest

from modules.payments.factory import build_gateway
from modules.payments.fake_adapter import FakeGateway
from modules.payments.payos_adapter import PayOSGateway

pytestmark = pytest.mark.unit


def test_fake_backend(settings):
    settings.PAYMENT_GATEWAY = "fake"

    assert isinstance(build_gateway(), FakeGateway)


def test_payos_backend(settings):
    settings.PAYMENT_GATEWAY = "payos"
    settings.PAYOS_CLIENT_ID = "client"
    settings.PAYOS_API_KEY = "key"
    settings.PAYOS_CHECKSUM_KEY = "checksum"

    assert isinstance(build_gateway(), PayOSGateway)


def test_unknown_backend(settings):
    settings.PAYMENT_GATEWAY = "stripe"

    with pytest.raises(ValueError, match="stripe"):
        build_gateway()
