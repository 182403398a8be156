"""Tests for walletage fetchers — explorer client.

Uses respx to mock httpx calls (no real network I/O).
"""

from __future__ import annotations

from typing import Callable

import httpx
import pytest
import respx
from structlog.testing import capture_logs

from walletage.config import StaticKeyProvider, WalletAgeConfig
from walletage.exceptions import (
    ConnectionFailedError,
    NetworkError,
    NetworkTimeoutError,
    ProviderError,
    UnsupportedChainError,
    UpstreamStatusError,
)
from walletage.fetchers import get_fetcher
from walletage.fetchers.explorer import PAGE_SIZE, ExplorerClient
from walletage.models import TransactionRecord

from conftest import BASESCAN_URL, ETH_ADDR, ETHERSCAN_URL

# ── fetch_txlist ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
@respx.mock
async def test_fetch_txlist_query_parameters(
    fetcher: ExplorerClient, make_txlist: Callable[..., dict]
) -> None:
    """The txlist query asks for one ascending page of up to 10 000 records."""
    route = respx.get(ETHERSCAN_URL).mock(
        return_value=httpx.Response(200, json=make_txlist(1_600_000_000))
    )

    data = await fetcher.fetch_txlist(ETH_ADDR, "ethereum")

    assert data["message"] == "OK"
    params = route.calls.last.request.url.params
    assert params["module"] == "account"
    assert params["action"] == "txlist"
    assert params["address"] == ETH_ADDR
    assert params["startblock"] == "0"
    assert params["endblock"] == "latest"
    assert params["page"] == "1"
    assert params["offset"] == str(PAGE_SIZE)
    assert params["sort"] == "asc"
    assert params["apikey"] == "eth_test_key"


@pytest.mark.asyncio
@respx.mock
async def test_fetch_txlist_uses_chain_endpoint_and_key(
    fetcher: ExplorerClient, make_txlist: Callable[..., dict]
) -> None:
    route = respx.get(BASESCAN_URL).mock(
        return_value=httpx.Response(200, json=make_txlist(1_700_000_000))
    )

    await fetcher.fetch_txlist(ETH_ADDR, "base")

    assert route.called
    assert route.calls.last.request.url.params["apikey"] == "base_test_key"


@pytest.mark.asyncio
async def test_unsupported_chain_makes_no_request(fetcher: ExplorerClient) -> None:
    with respx.mock() as router:
        with pytest.raises(UnsupportedChainError):
            await fetcher.fetch_txlist(ETH_ADDR, "solana")
        assert router.calls.call_count == 0


@pytest.mark.asyncio
@respx.mock
async def test_fetch_txlist_timeout(fetcher: ExplorerClient) -> None:
    respx.get(ETHERSCAN_URL).mock(side_effect=httpx.TimeoutException("timeout"))

    with pytest.raises(NetworkTimeoutError):
        await fetcher.fetch_txlist(ETH_ADDR, "ethereum")


@pytest.mark.asyncio
@respx.mock
async def test_fetch_txlist_connect_error_is_logged(fetcher: ExplorerClient) -> None:
    """Transport failures are logged with the network name, then re-raised."""
    respx.get(BASESCAN_URL).mock(side_effect=httpx.ConnectError("dns failure"))

    with capture_logs() as logs:
        with pytest.raises(ConnectionFailedError):
            await fetcher.fetch_txlist(ETH_ADDR, "base")

    failures = [e for e in logs if e["event"] == "explorer_fetch_failed"]
    assert len(failures) == 1
    assert failures[0]["network"] == "Base"
    assert failures[0]["log_level"] == "error"


@pytest.mark.asyncio
@respx.mock
async def test_fetch_txlist_non_2xx(fetcher: ExplorerClient) -> None:
    respx.get(ETHERSCAN_URL).mock(return_value=httpx.Response(502, text="Bad Gateway"))

    with pytest.raises(UpstreamStatusError) as exc_info:
        await fetcher.fetch_txlist(ETH_ADDR, "ethereum")

    assert exc_info.value.status_code == 502
    assert isinstance(exc_info.value, NetworkError)


@pytest.mark.asyncio
@respx.mock
async def test_fetch_txlist_non_json_body(fetcher: ExplorerClient) -> None:
    respx.get(ETHERSCAN_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ProviderError):
        await fetcher.fetch_txlist(ETH_ADDR, "ethereum")


@pytest.mark.asyncio
@respx.mock
async def test_fetch_is_not_retried(fetcher: ExplorerClient) -> None:
    route = respx.get(ETHERSCAN_URL).mock(return_value=httpx.Response(500))

    with pytest.raises(UpstreamStatusError):
        await fetcher.fetch_txlist(ETH_ADDR, "ethereum")

    assert route.call_count == 1


# ── get_transactions ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
@respx.mock
async def test_get_transactions_ok(
    fetcher: ExplorerClient, make_txlist: Callable[..., dict]
) -> None:
    respx.get(ETHERSCAN_URL).mock(
        return_value=httpx.Response(200, json=make_txlist(1_500_000_000, 1_600_000_000))
    )

    txns = await fetcher.get_transactions(ETH_ADDR, "ethereum")

    assert txns == [
        TransactionRecord(timestamp=1_500_000_000, tx_hash="0xhash0000", block_number=18_000_000),
        TransactionRecord(timestamp=1_600_000_000, tx_hash="0xhash0001", block_number=18_000_001),
    ]


@pytest.mark.asyncio
@respx.mock
async def test_get_transactions_empty(fetcher: ExplorerClient, no_tx_response: dict) -> None:
    """'No transactions found' is a new wallet, not an error."""
    respx.get(ETHERSCAN_URL).mock(return_value=httpx.Response(200, json=no_tx_response))

    assert await fetcher.get_transactions(ETH_ADDR, "ethereum") == []


@pytest.mark.asyncio
@respx.mock
async def test_get_transactions_provider_error(
    fetcher: ExplorerClient, invalid_key_response: dict
) -> None:
    respx.get(BASESCAN_URL).mock(return_value=httpx.Response(200, json=invalid_key_response))

    with pytest.raises(ProviderError) as exc_info:
        await fetcher.get_transactions(ETH_ADDR, "base")

    err = exc_info.value
    assert err.network == "Base"
    assert err.response == invalid_key_response
    assert err.details["response"]["result"] == "Invalid API Key"
    assert "Base API failed" in err.message


@pytest.mark.asyncio
@respx.mock
async def test_get_transactions_status_zero_other_message(fetcher: ExplorerClient) -> None:
    """status=0 with a message other than 'No transactions found' is an error."""
    payload = {"status": "0", "message": "NOTOK", "result": "Max rate limit reached"}
    respx.get(ETHERSCAN_URL).mock(return_value=httpx.Response(200, json=payload))

    with pytest.raises(ProviderError):
        await fetcher.get_transactions(ETH_ADDR, "ethereum")


@pytest.mark.asyncio
@respx.mock
async def test_get_transactions_result_not_a_list(fetcher: ExplorerClient) -> None:
    payload = {"status": "1", "message": "OK", "result": "unexpected"}
    respx.get(ETHERSCAN_URL).mock(return_value=httpx.Response(200, json=payload))

    with pytest.raises(ProviderError):
        await fetcher.get_transactions(ETH_ADDR, "ethereum")


@pytest.mark.asyncio
@respx.mock
async def test_get_transactions_skips_malformed_records(fetcher: ExplorerClient) -> None:
    payload = {
        "status": "1",
        "message": "OK",
        "result": [
            {"hash": "0xbad", "timeStamp": "not-a-number"},
            {"hash": "0xmissing"},
            {"hash": "0xgood", "timeStamp": "1650000000", "blockNumber": ""},
        ],
    }
    respx.get(ETHERSCAN_URL).mock(return_value=httpx.Response(200, json=payload))

    with capture_logs() as logs:
        txns = await fetcher.get_transactions(ETH_ADDR, "ethereum")

    assert txns == [TransactionRecord(timestamp=1_650_000_000, tx_hash="0xgood")]
    assert sum(1 for e in logs if e["event"] == "explorer_record_skipped") == 2


# ── Factory / lifecycle ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_fetcher_uses_config_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ETHERSCAN_API_KEY", raising=False)
    config = WalletAgeConfig()
    config.api.etherscan_api_key = "from_config"

    fetcher = get_fetcher(config)
    try:
        assert isinstance(fetcher, ExplorerClient)
        assert fetcher.resolver.resolve("ethereum").api_key == "from_config"
    finally:
        await fetcher.close()


@pytest.mark.asyncio
async def test_get_fetcher_key_override() -> None:
    fetcher = get_fetcher(WalletAgeConfig(), keys=StaticKeyProvider({"base": "static"}))
    try:
        assert fetcher.resolver.resolve("base").api_key == "static"
    finally:
        await fetcher.close()


@pytest.mark.asyncio
@respx.mock
async def test_client_context_manager(make_txlist: Callable[..., dict]) -> None:
    respx.get(ETHERSCAN_URL).mock(
        return_value=httpx.Response(200, json=make_txlist(1_600_000_000))
    )

    async with ExplorerClient() as client:
        txns = await client.get_transactions(ETH_ADDR, "ethereum")

    assert len(txns) == 1


@pytest.mark.asyncio
@respx.mock
async def test_get_transactions_skips_unrepresentable_timestamp(fetcher: ExplorerClient) -> None:
    """A numeric timeStamp outside the calendar range is a malformed record."""
    payload = {
        "status": "1",
        "message": "OK",
        "result": [
            {"hash": "0xhuge", "timeStamp": str(10**15)},
            {"hash": "0xgood", "timeStamp": "1650000000"},
        ],
    }
    respx.get(ETHERSCAN_URL).mock(return_value=httpx.Response(200, json=payload))

    with capture_logs() as logs:
        txns = await fetcher.get_transactions(ETH_ADDR, "ethereum")

    assert txns == [TransactionRecord(timestamp=1_650_000_000, tx_hash="0xgood")]
    assert [e["record"]["hash"] for e in logs if e["event"] == "explorer_record_skipped"] == [
        "0xhuge"
    ]
