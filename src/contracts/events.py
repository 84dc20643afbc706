"""
Notification event contracts.

The tracking core emits these structured events to the presentation
boundary. They carry data only; rendering lives in src/core/views.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import Field

from .common import BaseContract, QueueCategory
from .tracking import ParticipantResult, RankEntry, RankState, TrackedAccount


class EventType(str, Enum):
    """All notification event types."""

    GAME_START = "GAME_START"
    GAME_END = "GAME_END"
    RECAP = "RECAP"


class RankDelta(BaseContract):
    """LP movement between two rank states of one queue.

    When the tier or division changed, ``lp_delta`` is an estimate built
    from a fixed number of points per division and ``estimated`` is True.
    """

    lp_delta: int
    rank_changed: bool = False
    estimated: bool = False

    @property
    def promoted(self) -> bool:
        return self.rank_changed and self.lp_delta > 0

    @property
    def demoted(self) -> bool:
        return self.rank_changed and self.lp_delta < 0


class BaseEvent(BaseContract):
    """Base class for all notification events."""

    type: EventType
    variant: str = Field("lol", description="Game variant key (lol | tft)")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GameStartEntry(BaseContract):
    account: TrackedAccount
    champion_id: int | None = None
    rank_before: RankEntry | None = None


class GameStartEvent(BaseEvent):
    """One or more tracked accounts entered the same live ranked game."""

    type: EventType = EventType.GAME_START
    match_id: str
    queue_id: int
    queue_type: QueueCategory
    accounts: list[GameStartEntry] = Field(..., min_length=1)

    @property
    def is_group(self) -> bool:
        return len(self.accounts) > 1


class GameEndEntry(BaseContract):
    account: TrackedAccount
    stats: ParticipantResult
    rank_before: RankState | None = None
    rank_after: RankEntry | None = None
    delta: RankDelta | None = None


class GameEndEvent(BaseEvent):
    """One or more tracked accounts finished the same ranked match."""

    type: EventType = EventType.GAME_END
    match_id: str
    queue_id: int
    queue_type: QueueCategory
    duration_seconds: int = 0
    accounts: list[GameEndEntry] = Field(..., min_length=1)

    @property
    def is_group(self) -> bool:
        return len(self.accounts) > 1


class RecapEntry(BaseContract):
    account: TrackedAccount
    queue_type: str
    lp_delta: int
    estimated: bool = False
    rank_before: RankState
    rank_after: RankState
    wins: int = 0
    losses: int = 0


class RecapEvent(BaseEvent):
    """Rolling-window rank movement of every account that played."""

    type: EventType = EventType.RECAP
    window_start: datetime
    window_end: datetime
    entries: list[RecapEntry] = Field(default_factory=list)
