"""
Fetcher layer for walletage.

Provides a factory function `get_fetcher()` that returns an ExplorerClient
wired to the configured API keys. All supported chains share one client.

Usage:
    from walletage.fetchers import get_fetcher
    fetcher = get_fetcher(config)
    txns = await fetcher.get_transactions(address, "base")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from walletage.config import EnvKeyProvider, KeyProvider
from walletage.fetchers.explorer import ExplorerClient
from walletage.networks import NetworkResolver

if TYPE_CHECKING:
    from walletage.config import WalletAgeConfig

__all__ = ["ExplorerClient", "get_fetcher"]


def get_fetcher(config: WalletAgeConfig, keys: KeyProvider | None = None) -> ExplorerClient:
    """
    Factory: return an ExplorerClient for the given config.

    Args:
        config: WalletAgeConfig whose [api] keys serve as the fallback
        keys: Override key source (defaults to the environment)
    """
    provider = keys or EnvKeyProvider(fallback=config.api)
    return ExplorerClient(resolver=NetworkResolver(provider))
