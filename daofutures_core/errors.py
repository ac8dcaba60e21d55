"""
daofutures_core.errors
----------------------
Error taxonomy shared by every component.

Authorization, temporal, lifecycle and availability errors are recoverable:
the caller may retry later or acquire the missing role. Integrity errors are
not; a settlement that raised one must be abandoned and re-requested.
"""

from __future__ import annotations
from typing import Optional


class FuturesError(Exception):
    recoverable: bool = False


# --- Authorization ---
class AuthorizationError(FuturesError):
    recoverable = True


class NotOwner(AuthorizationError):
    pass


class NotAuthorizedProvider(AuthorizationError):
    pass


# --- Temporal ---
class TemporalError(FuturesError):
    recoverable = True


class CooldownActive(TemporalError):
    def __init__(self, address: str, retry_at: float):
        super().__init__(f"cooldown active for {address} until {retry_at:.0f}")
        self.address = address
        self.retry_at = retry_at


# --- Lifecycle ---
class LifecycleError(FuturesError):
    recoverable = True


class BatchClosed(LifecycleError):
    pass


class AlreadyClosed(LifecycleError):
    pass


class InvalidBatch(LifecycleError):
    pass


class InvalidTransition(LifecycleError):
    pass


class RequestExpired(LifecycleError):
    pass


# --- Integrity ---
class IntegrityError(FuturesError):
    recoverable = False


class StateMismatch(IntegrityError):
    def __init__(self, request_id: str, expected: str, actual: str):
        super().__init__(f"state hash mismatch for request {request_id}")
        self.request_id = request_id
        self.expected = expected
        self.actual = actual


class ProofInvalid(IntegrityError):
    pass


class ReplayRejected(IntegrityError):
    pass


class UnknownRequest(IntegrityError):
    pass


# --- Availability ---
class AvailabilityError(FuturesError):
    recoverable = True


class SystemPaused(AvailabilityError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "system is paused")


class OracleUnavailable(AvailabilityError):
    pass


# --- Data ---
class DataError(FuturesError):
    pass


class MalformedCiphertext(DataError):
    pass


class RecordNotFound(DataError):
    pass


class StorageConflict(FuturesError):
    """Compare-and-swap retries exhausted."""
    recoverable = True
