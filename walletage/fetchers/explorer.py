"""
Etherscan-family explorer client (Etherscan, Basescan).

Fetches an address's transaction list, oldest first, from the chain's
explorer API.

API docs: https://docs.etherscan.io/api-endpoints/accounts

Design decisions:
- Uses async httpx for all HTTP calls, one client per ExplorerClient.
- One page of up to 10 000 records, sorted ascending: the first record is
  the wallet's first transaction, which is all age lookups need.
- No retries and no timeout beyond the httpx default. Failures are logged
  with the network name and re-raised as walletage exceptions.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx

from walletage.exceptions import (
    ConnectionFailedError,
    NetworkError,
    NetworkTimeoutError,
    ProviderError,
    UpstreamStatusError,
)
from walletage.log import get_logger
from walletage.models import NetworkConfig, TransactionRecord
from walletage.networks import NetworkResolver

logger = get_logger(__name__)

# Path appended to each network's base URL
API_PATH = "/api"

# Page size for Etherscan pagination (max 10000)
PAGE_SIZE = 10_000

NO_TRANSACTIONS_MESSAGE = "No transactions found"


class ExplorerClient:
    """
    Async client for the explorer "txlist" endpoint of every supported chain.

    Chain configuration (base URL, API key) is resolved per call, so an
    unsupported chain fails before any request is made.
    """

    def __init__(
        self,
        resolver: NetworkResolver | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._resolver = resolver or NetworkResolver()
        self._client = client or httpx.AsyncClient()

    @property
    def resolver(self) -> NetworkResolver:
        return self._resolver

    async def fetch_txlist(self, address: str, chain: str) -> dict[str, Any]:
        """
        Issue the raw transaction-list query and return the decoded payload.

        Raises:
            UnsupportedChainError: chain is not supported (no request made)
            NetworkTimeoutError / ConnectionFailedError / UpstreamStatusError /
            NetworkError: transport failures
            ProviderError: response body is not JSON
        """
        config = self._resolver.resolve(chain)
        try:
            resp = await self._client.get(
                config.api_base_url + API_PATH,
                params={
                    "module": "account",
                    "action": "txlist",
                    "address": address,
                    "startblock": 0,
                    "endblock": "latest",
                    "page": 1,
                    "offset": PAGE_SIZE,
                    "sort": "asc",
                    "apikey": config.api_key,
                },
            )
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            self._log_fetch_failure(config, address, e)
            raise NetworkTimeoutError(f"{config.name} explorer timeout: {e}") from e
        except httpx.ConnectError as e:
            self._log_fetch_failure(config, address, e)
            raise ConnectionFailedError(f"Cannot connect to {config.name} explorer: {e}") from e
        except httpx.HTTPStatusError as e:
            self._log_fetch_failure(config, address, e)
            raise UpstreamStatusError(
                f"{config.name} explorer returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
                network=config.name,
            ) from e
        except httpx.HTTPError as e:
            self._log_fetch_failure(config, address, e)
            raise NetworkError(f"Error fetching {config.name} transactions: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            self._log_fetch_failure(config, address, e)
            raise ProviderError(config.name, resp.text) from e

    async def get_transactions(self, address: str, chain: str) -> list[TransactionRecord]:
        """
        Transactions of `address` on `chain`, oldest first.

        Returns an empty list when the explorer reports "No transactions
        found" (a new wallet, not an error).

        Raises:
            ProviderError: any other non-OK explorer response
            plus everything fetch_txlist raises
        """
        data = await self.fetch_txlist(address, chain)
        name = self._resolver.display_name(chain)

        if not isinstance(data, dict):
            raise ProviderError(name, data)

        if data.get("status") == "0" and data.get("message") == NO_TRANSACTIONS_MESSAGE:
            return []

        if data.get("message") != "OK":
            logger.error("explorer_api_error", network=name, address=address, response=data)
            raise ProviderError(name, data)

        results = data.get("result")
        if not isinstance(results, list):
            raise ProviderError(name, data)

        records: list[TransactionRecord] = []
        for raw in results:
            record = self._parse_record(raw)
            if record is None:
                logger.warning("explorer_record_skipped", network=name, record=raw)
                continue
            records.append(record)
        return records

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ExplorerClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ──────────────────────────────────────────────────────────────
    # Private helpers
    # ──────────────────────────────────────────────────────────────

    @staticmethod
    def _parse_record(raw: Any) -> TransactionRecord | None:
        """Project one explorer record onto TransactionRecord."""
        try:
            block = raw.get("blockNumber")
            timestamp = int(raw["timeStamp"])
            # Must land on a representable calendar date
            datetime.fromtimestamp(timestamp, tz=timezone.utc)
            return TransactionRecord(
                timestamp=timestamp,
                tx_hash=raw.get("hash"),
                block_number=int(block) if block not in (None, "") else None,
            )
        except (AttributeError, KeyError, ValueError, TypeError, OverflowError, OSError):
            return None

    @staticmethod
    def _log_fetch_failure(config: NetworkConfig, address: str, error: Exception) -> None:
        logger.error(
            "explorer_fetch_failed",
            network=config.name,
            address=address,
            error=f"{type(error).__name__}: {error}",
        )
