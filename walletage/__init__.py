"""walletage: wallet age lookups across Etherscan-family explorers."""

__version__ = "0.1.0"
