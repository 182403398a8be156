"""
Custom exception hierarchy for walletage.

Each exception maps to a specific CLI exit code and JSON error_code field.
cli.py catches all WalletAgeError subclasses and formats them as JSON output.

Exit code mapping:
  1 — WalletAgeError (generic CLI error)
  2 — APIError (explorer returned a non-success payload)
  3 — NetworkError (timeout, connection refused, non-2xx status)
  4 — DataError (missing address)
  5 — ConfigError (unsupported chain, malformed config, missing template)
"""

from __future__ import annotations

from typing import Any


class WalletAgeError(Exception):
    """Base exception for all walletage errors."""

    exit_code: int = 1
    error_code: str = "unknown_error"

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class APIError(WalletAgeError):
    """Upstream API returned an error response."""

    exit_code = 2
    error_code = "api_error"


class ProviderError(APIError):
    """Explorer answered with a non-success status other than "no transactions"."""

    error_code = "provider_error"

    def __init__(self, network: str, response: Any) -> None:
        super().__init__(
            f"{network} API failed: {network} API error: {response!r}",
            details={"network": network, "response": response},
        )
        self.network = network
        self.response = response


class NetworkError(WalletAgeError):
    """Network connectivity issue — timeout or connection failure."""

    exit_code = 3
    error_code = "network_error"


class NetworkTimeoutError(NetworkError):
    """Request timed out."""

    error_code = "network_timeout"


class ConnectionFailedError(NetworkError):
    """Could not connect to API endpoint."""

    error_code = "connection_failed"


class UpstreamStatusError(NetworkError):
    """Explorer answered with a non-2xx HTTP status."""

    error_code = "upstream_status"

    def __init__(self, message: str, status_code: int, **kwargs) -> None:
        super().__init__(message, details={"status_code": status_code, **kwargs})
        self.status_code = status_code


class DataError(WalletAgeError):
    """Request data validation error."""

    exit_code = 4
    error_code = "data_error"


class MissingAddressError(DataError):
    """No wallet address was supplied."""

    error_code = "missing_address"


class ConfigError(WalletAgeError):
    """Configuration is missing, malformed or names something unsupported."""

    exit_code = 5
    error_code = "config_error"


class UnsupportedChainError(ConfigError):
    """Chain identifier is not one of the configured networks."""

    error_code = "unsupported_chain"


class ConfigInvalidError(ConfigError):
    """Config file exists but contains invalid TOML or invalid values."""

    error_code = "config_invalid"


class TemplateError(ConfigError):
    """Card template image is missing or unreadable."""

    error_code = "template_error"
