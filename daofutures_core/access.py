# daofutures_core/access.py

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Set

from .constants import DEFAULT_COOLDOWN_SECONDS
from .errors import NotOwner, SystemPaused
from .logger import get_logger
from .utils import normalize_address

log = get_logger("DAOF.Access")


@dataclass
class AccessControlState:
    """
    Owner-administered role and pause state.

    Passed explicitly into every mutating operation instead of living in a
    module global. Addresses are compared case-insensitively.
    """
    owner: str
    providers: Set[str] = field(default_factory=set)
    paused: bool = False
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS

    def __post_init__(self):
        self.owner = normalize_address(self.owner)
        if not self.owner:
            raise ValueError("owner address is required")
        self.providers = {normalize_address(p) for p in self.providers if p}
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")

    # --- checks ---
    def is_owner(self, address: str) -> bool:
        return normalize_address(address) == self.owner

    def is_provider(self, address: str) -> bool:
        return normalize_address(address) in self.providers

    def require_owner(self, caller: str) -> None:
        if not self.is_owner(caller):
            raise NotOwner(f"{caller} is not the owner")

    def require_not_paused(self) -> None:
        if self.paused:
            raise SystemPaused()

    # --- owner-only administration ---
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.require_owner(caller)
        new_owner = normalize_address(new_owner)
        if not new_owner:
            raise ValueError("new owner address is required")
        log.info(f"[ACCESS] ownership {self.owner} -> {new_owner}")
        self.owner = new_owner

    def add_provider(self, caller: str, provider: str) -> None:
        self.require_owner(caller)
        provider = normalize_address(provider)
        if not provider:
            raise ValueError("provider address is required")
        self.providers.add(provider)
        log.info(f"[ACCESS] provider added {provider}")

    def remove_provider(self, caller: str, provider: str) -> None:
        self.require_owner(caller)
        self.providers.discard(normalize_address(provider))
        log.info(f"[ACCESS] provider removed {normalize_address(provider)}")

    def pause(self, caller: str) -> None:
        self.require_owner(caller)
        self.paused = True
        log.warning("[ACCESS] paused")

    def unpause(self, caller: str) -> None:
        self.require_owner(caller)
        self.paused = False
        log.info("[ACCESS] unpaused")

    def set_cooldown(self, caller: str, seconds: int) -> None:
        self.require_owner(caller)
        if seconds < 0:
            raise ValueError("cooldown seconds must be >= 0")
        self.cooldown_seconds = int(seconds)
        log.info(f"[ACCESS] cooldown set to {self.cooldown_seconds}s")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "providers": sorted(self.providers),
            "paused": self.paused,
            "cooldown_seconds": self.cooldown_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessControlState":
        return cls(
            owner=data["owner"],
            providers=set(data.get("providers", [])),
            paused=bool(data.get("paused", False)),
            cooldown_seconds=int(data.get("cooldown_seconds", DEFAULT_COOLDOWN_SECONDS)),
        )
