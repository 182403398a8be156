"""Pytest fixtures shared across all walletage tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import pytest

from walletage.config import StaticKeyProvider
from walletage.fetchers.explorer import ExplorerClient
from walletage.networks import NetworkResolver
from walletage.service import WalletAgeService

ETH_ADDR = "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"
ETHERSCAN_URL = "https://api.etherscan.io/api"
BASESCAN_URL = "https://api.basescan.org/api"

# Reference "now" for every age computed in tests
FIXED_NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def unix(year: int, month: int, day: int = 15) -> int:
    return int(datetime(year, month, day, 12, 0, 0, tzinfo=timezone.utc).timestamp())


# ── Explorer payload fixtures ─────────────────────────────────────────────────


@pytest.fixture
def make_txlist() -> Callable[..., dict]:
    """Build an OK txlist response whose records carry the given timestamps."""

    def _make(*timestamps: int) -> dict:
        return {
            "status": "1",
            "message": "OK",
            "result": [
                {
                    "blockNumber": str(18_000_000 + i),
                    "timeStamp": str(ts),
                    "hash": f"0xhash{i:04d}",
                    "from": "0xsender",
                    "to": ETH_ADDR,
                    "value": "1000000000000000000",
                    "isError": "0",
                }
                for i, ts in enumerate(timestamps)
            ],
        }

    return _make


@pytest.fixture
def no_tx_response() -> dict:
    """Explorer response for an address with no transactions."""
    return {"status": "0", "message": "No transactions found", "result": []}


@pytest.fixture
def invalid_key_response() -> dict:
    """Explorer response when the API key is rejected."""
    return {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}


# ── Client / service fixtures ─────────────────────────────────────────────────


@pytest.fixture
def keys() -> StaticKeyProvider:
    return StaticKeyProvider({"ethereum": "eth_test_key", "base": "base_test_key"})


@pytest.fixture
def resolver(keys: StaticKeyProvider) -> NetworkResolver:
    return NetworkResolver(keys)


@pytest.fixture
async def fetcher(resolver: NetworkResolver) -> ExplorerClient:
    client = ExplorerClient(resolver=resolver)
    yield client
    await client.close()


@pytest.fixture
def service(fetcher: ExplorerClient) -> WalletAgeService:
    return WalletAgeService(fetcher, clock=lambda: FIXED_NOW)
