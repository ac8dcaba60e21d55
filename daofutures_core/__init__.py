"""
daofutures Core Package
=======================
Contract-backed encrypted-record store for DAO governance power futures.

Provides:
- Pluggable ciphertext codec (tagged envelope, AES-SIV sealed)
- Record store and batch log over a generic key-value storage (SQLite default)
- Provider gating, batch settlement and the decryption request protocol
"""

from .access import AccessControlState
from .config import MarketConfig
from .market import FuturesMarket

__all__ = ["AccessControlState", "MarketConfig", "FuturesMarket"]
