"""
Wallet age service: single-chain lookups and multi-chain reconciliation.

Multi-chain operations walk SUPPORTED_CHAINS sequentially, in order. Each
chain produces a ChainOutcome (ok / empty / failed); a failing chain is
logged and recorded, never raised. Picking the oldest chain is the pure
function select_oldest(), independent of any I/O.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Sequence

from walletage.age import DEFAULT_WALLET_AGE, calculate_wallet_age
from walletage.exceptions import MissingAddressError, WalletAgeError
from walletage.fetchers.explorer import ExplorerClient
from walletage.log import get_logger
from walletage.models import (
    STATUS_EMPTY,
    STATUS_FAILED,
    STATUS_OK,
    ChainOutcome,
    OldestLookup,
    TokenActivity,
)
from walletage.networks import DEFAULT_CHAIN, SUPPORTED_CHAINS, normalize_chain

logger = get_logger(__name__)

UNKNOWN_NETWORK = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def require_address(address: str | None) -> str:
    """Presence check only; format is left to the explorer."""
    if address is None or not str(address).strip():
        raise MissingAddressError("Wallet address is required", details={"address": address})
    return str(address).strip()


def select_oldest(address: str, outcomes: Sequence[ChainOutcome]) -> TokenActivity:
    """
    Pick the activity of the chain whose first transaction is earliest.

    Only "ok" outcomes compete. The comparison is strict, so with equal
    timestamps the chain that comes first in `outcomes` wins. With no
    competitor the new-wallet default is returned under "Unknown".
    """
    oldest: ChainOutcome | None = None
    for outcome in outcomes:
        if outcome.status != STATUS_OK or outcome.first_timestamp is None:
            continue
        if oldest is None or outcome.first_timestamp < oldest.first_timestamp:
            oldest = outcome

    if oldest is None or oldest.activity is None:
        return TokenActivity(
            sender_address=address,
            wallet_age=DEFAULT_WALLET_AGE,
            network=UNKNOWN_NETWORK,
        )
    return oldest.activity


class WalletAgeService:
    """
    Computes wallet ages from explorer transaction history.

    Args:
        fetcher: ExplorerClient used for every chain
        chains: Chains visited by multi-chain operations, in order
        clock: Returns "now"; read once per request
    """

    def __init__(
        self,
        fetcher: ExplorerClient,
        chains: Sequence[str] = SUPPORTED_CHAINS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._fetcher = fetcher
        self._chains = tuple(normalize_chain(c) for c in chains)
        self._clock = clock

    @property
    def chains(self) -> tuple[str, ...]:
        return self._chains

    async def get_token_activity(
        self, address: str | None, chain: str = DEFAULT_CHAIN
    ) -> TokenActivity:
        """
        Wallet age of `address` on a single chain.

        Errors (unsupported chain, provider, transport) propagate unchanged.
        """
        address = require_address(address)
        chain = normalize_chain(chain)
        outcome = await self._lookup_chain(address, chain, self._clock())
        assert outcome.activity is not None
        return outcome.activity

    async def collect_outcomes(self, address: str | None) -> list[ChainOutcome]:
        """Look `address` up on every chain, one after another, capturing failures."""
        address = require_address(address)
        now = self._clock()
        outcomes: list[ChainOutcome] = []

        for chain in self._chains:
            try:
                outcome = await self._lookup_chain(address, chain, now)
            except WalletAgeError as e:
                logger.warning(
                    "chain_lookup_failed",
                    chain=chain,
                    address=address,
                    error=e.error_code,
                    message=e.message,
                )
                outcome = ChainOutcome(
                    chain=chain,
                    network=self._network_name(chain),
                    status=STATUS_FAILED,
                    error={"error_code": e.error_code, "message": e.message},
                )
            outcomes.append(outcome)

        return outcomes

    async def lookup_oldest(self, address: str | None) -> OldestLookup:
        """Oldest activity across chains, plus the per-chain outcomes behind it."""
        address = require_address(address)
        outcomes = await self.collect_outcomes(address)
        activity = select_oldest(address, outcomes)
        logger.info(
            "oldest_wallet_age_selected",
            address=address,
            network=activity.network,
            age=activity.wallet_age.display_text,
        )
        return OldestLookup(activity=activity, outcomes=outcomes)

    async def get_oldest_wallet_age(self, address: str | None) -> TokenActivity:
        """Oldest activity across chains. Never raises for per-chain failures."""
        return (await self.lookup_oldest(address)).activity

    async def get_wallet_age_from_all_networks(self, address: str | None) -> list[TokenActivity]:
        """Activity on every chain that answered; failed chains are left out."""
        outcomes = await self.collect_outcomes(address)
        return [o.activity for o in outcomes if o.succeeded and o.activity is not None]

    async def close(self) -> None:
        await self._fetcher.close()

    # ──────────────────────────────────────────────────────────────
    # Private helpers
    # ──────────────────────────────────────────────────────────────

    async def _lookup_chain(self, address: str, chain: str, now: datetime) -> ChainOutcome:
        network = self._network_name(chain)
        transactions = await self._fetcher.get_transactions(address, chain)

        if not transactions:
            logger.debug("no_transactions", chain=chain, address=address)
            return ChainOutcome(
                chain=chain,
                network=network,
                status=STATUS_EMPTY,
                activity=TokenActivity(
                    sender_address=address,
                    wallet_age=DEFAULT_WALLET_AGE,
                    network=network,
                ),
            )

        first_ts = transactions[0].timestamp
        return ChainOutcome(
            chain=chain,
            network=network,
            status=STATUS_OK,
            first_timestamp=first_ts,
            activity=TokenActivity(
                sender_address=address,
                wallet_age=calculate_wallet_age(first_ts, now=now),
                network=network,
            ),
        )

    def _network_name(self, chain: str) -> str:
        return self._fetcher.resolver.display_name(chain)
