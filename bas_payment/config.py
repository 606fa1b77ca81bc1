"""
BAS Payment SDK - Configuration
Loads settings from environment variables
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from bas_payment.exceptions import ConfigurationError

# Constant IV issued by BAS to every merchant
DEFAULT_IV = "@@@@&&&&####$$$$"
IV_LENGTH = 16

DEFAULT_BASE_URL = "https://api.basgate.com"
DEFAULT_TOKEN_ENDPOINT = "/api/v1/auth/token"
DEFAULT_REFUND_PAYMENT_ENDPOINT = "/api/v1/merchant/sdk-payment/reverse-payment/execute"
DEFAULT_TRANSACTION_STATUS_ENDPOINT = "/api/v1/merchant/sdk-payment/get-transaction-status"
DEFAULT_TRANSACTION_INITIATE_ENDPOINT = "/api/v1/merchant/sdk-payment/initiate-transaction"
DEFAULT_TIMEOUT = 20.0


def check_signing_params(merchant_key: Optional[str], iv: Optional[str]) -> None:
    """Validate the merchant key and IV used for checksum encryption.

    Raises:
        ConfigurationError: If the key is empty or the IV is not 16 bytes.
    """
    if not merchant_key:
        raise ConfigurationError(
            "BAS merchant key is not configured. Please set BAS_MERCHANT_KEY in your .env file.",
            context={"field": "merchant_key"},
        )
    if not iv:
        raise ConfigurationError(
            "BAS IV is not configured. This should use the default value provided by BAS.",
            context={"field": "iv"},
        )
    iv_length = len(iv.encode("utf-8"))
    if iv_length != IV_LENGTH:
        raise ConfigurationError(
            f"BAS IV must be exactly {IV_LENGTH} bytes for AES-256-CBC encryption. "
            f"Current length: {iv_length}",
            context={"field": "iv", "length": iv_length},
        )


def _timeout_from_env() -> float:
    raw = os.getenv("BAS_TIMEOUT", str(DEFAULT_TIMEOUT))
    try:
        timeout = float(raw)
    except ValueError:
        timeout = 0.0
    if not 0 < timeout < float("inf"):
        raise ConfigurationError(
            f"BAS_TIMEOUT must be a positive number of seconds, got {raw!r}",
            context={"field": "timeout", "value": raw},
        )
    return timeout


@dataclass(frozen=True)

class Config:
    """SDK configuration from environment variables"""

    # Gateway API
    base_url: str = DEFAULT_BASE_URL
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    app_id: Optional[str] = None
    environment: str = "staging"
    timeout: float = DEFAULT_TIMEOUT

    # Checksum signing
    merchant_key: Optional[str] = None
    iv: str = DEFAULT_IV

    # Endpoints
    token_endpoint: str = DEFAULT_TOKEN_ENDPOINT
    refund_payment_endpoint: str = DEFAULT_REFUND_PAYMENT_ENDPOINT
    transaction_status_endpoint: str = DEFAULT_TRANSACTION_STATUS_ENDPOINT
    transaction_initiate_endpoint: str = DEFAULT_TRANSACTION_INITIATE_ENDPOINT

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """Create config from environment variables"""
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv()  # Try default .env in current directory

        return cls(
            base_url=os.getenv("BAS_BASE_URL", DEFAULT_BASE_URL),
            client_id=os.getenv("BAS_CLIENT_ID"),
            client_secret=os.getenv("BAS_CLIENT_SECRET"),
            app_id=os.getenv("BAS_APP_ID"),
            environment=os.getenv("BAS_ENVIRONMENT", "staging"),
            timeout=_timeout_from_env(),
            merchant_key=os.getenv("BAS_MERCHANT_KEY"),
            iv=os.getenv("BAS_IV", DEFAULT_IV),
            token_endpoint=os.getenv("BAS_TOKEN_ENDPOINT", DEFAULT_TOKEN_ENDPOINT),
            refund_payment_endpoint=os.getenv(
                "BAS_REFUND_PAYMENT_ENDPOINT", DEFAULT_REFUND_PAYMENT_ENDPOINT
            ),
            transaction_status_endpoint=os.getenv(
                "BAS_TRANSACTION_STATUS_ENDPOINT", DEFAULT_TRANSACTION_STATUS_ENDPOINT
            ),
            transaction_initiate_endpoint=os.getenv(
                "BAS_TRANSACTION_INITIATE_ENDPOINT", DEFAULT_TRANSACTION_INITIATE_ENDPOINT
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
            log_file=os.getenv("LOG_FILE"),
        )

    def validate_signing(self) -> None:
        """Validate merchant key and IV"""
        check_signing_params(self.merchant_key, self.iv)

    def validate_api(self) -> None:
        """Validate settings required to talk to the gateway"""
        required = {
            "base_url": self.base_url,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "app_id": self.app_id,
        }
        for key, value in required.items():
            if not value:
                raise ConfigurationError(
                    f"BAS {key} is not configured. Please set BAS_{key.upper()} in your .env file.",
                    context={"field": key},
                )

    def validate(self) -> None:
        """Validate the complete configuration"""
        self.validate_api()
        self.validate_signing()
