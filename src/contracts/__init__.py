"""Contract models for data validation."""

from .common import (
    APEX_TIERS,
    Division,
    QueueCategory,
    Tier,
    queue_name,
)
from .events import (
    EventType,
    GameEndEntry,
    GameEndEvent,
    GameStartEntry,
    GameStartEvent,
    RankDelta,
    RecapEntry,
    RecapEvent,
)
from .registration import AccountStats, RegistrationResult, RegistrationStatus
from .tracking import (
    LiveGame,
    LiveParticipant,
    MatchDetail,
    ParticipantResult,
    RankEntry,
    RankSnapshot,
    RankState,
    RiotAccount,
    TrackedAccount,
    TrackedMatch,
)

__all__ = [
    "APEX_TIERS",
    "Division",
    "QueueCategory",
    "Tier",
    "queue_name",
    "EventType",
    "GameEndEntry",
    "GameEndEvent",
    "GameStartEntry",
    "GameStartEvent",
    "RankDelta",
    "RecapEntry",
    "RecapEvent",
    "LiveGame",
    "LiveParticipant",
    "MatchDetail",
    "ParticipantResult",
    "RankEntry",
    "RankSnapshot",
    "RankState",
    "RiotAccount",
    "TrackedAccount",
    "TrackedMatch",
    "AccountStats",
    "RegistrationResult",
    "RegistrationStatus",
]
