"""Chain identifier → explorer endpoint resolution."""

from __future__ import annotations

from walletage.config import EnvKeyProvider, KeyProvider
from walletage.exceptions import UnsupportedChainError
from walletage.models import NetworkConfig

DEFAULT_CHAIN = "ethereum"

# Iteration order for multi-chain lookups; earlier chains win timestamp ties.
SUPPORTED_CHAINS: tuple[str, ...] = ("ethereum", "base")

# chain → (api base URL, display name)
_NETWORKS: dict[str, tuple[str, str]] = {
    "ethereum": ("https://api.etherscan.io", "Ethereum"),
    "base": ("https://api.basescan.org", "Base"),
}


def normalize_chain(chain: object) -> str:
    """Lowercase a chain identifier, raising UnsupportedChainError if unknown."""
    if not isinstance(chain, str) or chain.lower() not in _NETWORKS:
        raise UnsupportedChainError(
            f"Unsupported network: {chain!r}. Supported: {list(SUPPORTED_CHAINS)}",
            details={"chain": chain},
        )
    return chain.lower()


class NetworkResolver:
    """
    Maps a chain identifier to its NetworkConfig.

    A fresh NetworkConfig is built on every call and the API key is read
    from the KeyProvider at that moment. Missing keys pass through as "";
    the explorer rejects them later.
    """

    def __init__(self, keys: KeyProvider | None = None) -> None:
        self._keys = keys or EnvKeyProvider()

    def resolve(self, chain: str) -> NetworkConfig:
        chain = normalize_chain(chain)
        base_url, name = _NETWORKS[chain]
        return NetworkConfig(
            chain=chain,
            api_base_url=base_url,
            api_key=self._keys.get_api_key(chain),
            name=name,
        )

    def display_name(self, chain: str) -> str:
        return _NETWORKS[normalize_chain(chain)][1]
