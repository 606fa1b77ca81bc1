"""
Pytest configuration for BAS payment SDK tests

Configures:
- pytest-asyncio for async tests
- Common fixtures (merchant key, IV, signature service, config)
"""
import pytest

from bas_payment.config import DEFAULT_IV, Config
from bas_payment.services.signature import SignatureService

# Configure pytest-asyncio to auto-detect async tests
pytest_plugins = ('pytest_asyncio',)

MERCHANT_KEY = "test_merchant_key_&amp;_123"
OTHER_MERCHANT_KEY = "another_merchant_key_456"


def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture
def merchant_key():
    return MERCHANT_KEY


@pytest.fixture
def iv():
    return DEFAULT_IV


@pytest.fixture
def signer(merchant_key, iv):
    """SignatureService with the test merchant key"""
    return SignatureService(merchant_key, iv)


@pytest.fixture
def other_signer(iv):
    """SignatureService with a different merchant key"""
    return SignatureService(OTHER_MERCHANT_KEY, iv)


@pytest.fixture
def config(merchant_key, iv):
    """Fully populated SDK config"""
    return Config(
        base_url="https://sandbox.basgate.test",
        client_id="client-123",
        client_secret="client-secret-xyz",
        app_id="app-789",
        environment="staging",
        merchant_key=merchant_key,
        iv=iv,
    )
