"""
Data contracts for registering Riot accounts for tracking.
"""

from enum import Enum

from pydantic import Field

from .common import BaseContract
from .tracking import RankEntry, TrackedAccount


class RegistrationStatus(str, Enum):
    """Outcome of a register / unregister request."""

    REGISTERED = "registered"
    UNREGISTERED = "unregistered"
    INVALID_RIOT_ID = "invalid_riot_id"
    NOT_FOUND = "not_found"
    ALREADY_REGISTERED = "already_registered"
    NOT_REGISTERED = "not_registered"
    FAILED = "failed"


class RegistrationResult(BaseContract):
    """Response of the account registry use-cases."""

    status: RegistrationStatus
    message: str = Field(..., description="User-facing message")
    account: TrackedAccount | None = None
    rank_entries: list[RankEntry] = Field(default_factory=list)
    error: str | None = Field(None, description="Internal error detail, never shown to users")

    @property
    def success(self) -> bool:
        return self.status in (RegistrationStatus.REGISTERED, RegistrationStatus.UNREGISTERED)


class AccountStats(BaseContract):
    """A tracked account with its current ranked entries."""

    account: TrackedAccount
    rank_entries: list[RankEntry] = Field(default_factory=list)

    def entry(self, queue_type: str) -> RankEntry | None:
        return next((e for e in self.rank_entries if e.queue_type == queue_type), None)
