"""
Shared data models for walletage.

These dataclasses are the canonical data shapes used across all modules:
the fetcher produces TransactionRecords, the age calculator produces
WalletAge, the service produces TokenActivity / ChainOutcome, output and
render consume them. All of them are request-scoped values.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ChainOutcome.status values
STATUS_OK = "ok"
STATUS_EMPTY = "empty"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class NetworkConfig:
    """Resolved explorer endpoint for one chain."""

    chain: str          # "ethereum" | "base"
    api_base_url: str
    api_key: str
    name: str           # display name: "Ethereum" | "Base"


@dataclass(frozen=True)
class TransactionRecord:
    """Minimal projection of an explorer transaction."""

    timestamp: int                  # Unix timestamp (UTC seconds)
    tx_hash: str | None = None
    block_number: int | None = None


@dataclass(frozen=True)
class WalletAge:
    """Calendar age of a wallet. Never {0, 0}: the floor is one month."""

    years: int
    months: int         # 0–11
    display_text: str

    def to_dict(self) -> dict:
        return {
            "years": self.years,
            "months": self.months,
            "display_text": self.display_text,
        }


@dataclass(frozen=True)
class TokenActivity:
    """Wallet age of one address as seen on one network."""

    sender_address: str
    wallet_age: WalletAge
    network: str        # display name, or "Unknown"

    def to_dict(self) -> dict:
        return {
            "sender_address": self.sender_address,
            "wallet_age": self.wallet_age.to_dict(),
            "network": self.network,
        }


@dataclass(frozen=True)
class ChainOutcome:
    """
    Result of looking one chain up during a multi-chain pass.

    status:
      "ok"     — at least one transaction; first_timestamp and activity set
      "empty"  — no transactions; activity carries the new-wallet default
      "failed" — lookup raised; error carries error_code and message
    """

    chain: str
    network: str
    status: str
    first_timestamp: int | None = None
    activity: TokenActivity | None = None
    error: dict | None = None

    @property
    def succeeded(self) -> bool:
        return self.status != STATUS_FAILED

    def to_dict(self) -> dict:
        return {
            "chain": self.chain,
            "network": self.network,
            "status": self.status,
            "first_timestamp": self.first_timestamp,
            "wallet_age": self.activity.wallet_age.to_dict() if self.activity else None,
            "error": self.error,
        }


@dataclass
class OldestLookup:
    """Oldest activity across chains, with the per-chain outcomes it was chosen from."""

    activity: TokenActivity
    outcomes: list[ChainOutcome] = field(default_factory=list)

    def to_dict(self) -> dict:
        d = self.activity.to_dict()
        d["chains"] = [o.to_dict() for o in self.outcomes]
        return d
