"""Port interfaces for hexagonal architecture.

These ports define the contracts between the tracking core and external
adapters. All external dependencies must implement these interfaces.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from src.contracts import (
    GameEndEvent,
    GameStartEvent,
    LiveGame,
    MatchDetail,
    RankEntry,
    RankSnapshot,
    RecapEvent,
    RiotAccount,
    TrackedAccount,
    TrackedMatch,
)

__all__ = [
    "GameDataPort",
    "TrackingStorePort",
    "NotificationSinkPort",
]


class GameDataPort(ABC):
    """Port for the upstream game-statistics API.

    Implementations return None / [] for "not found". ``get_live_game``
    may raise when the upstream could not be asked at all, so callers can
    tell that apart from "not in game".
    """

    @abstractmethod
    async def resolve_account(self, game_name: str, tag_line: str) -> RiotAccount | None:
        """Resolve a Riot ID to an account."""
        pass

    @abstractmethod
    async def get_rank_entries(self, puuid: str) -> list[RankEntry]:
        """Get ranked entries for every queue the account is placed in."""
        pass

    @abstractmethod
    async def get_live_game(self, puuid: str) -> LiveGame | None:
        """Get the game the account is currently playing, if any."""
        pass

    @abstractmethod
    async def get_recent_match_ids(self, puuid: str, count: int = 1) -> list[str]:
        """Get recent match ids, newest first."""
        pass

    @abstractmethod
    async def get_match_detail(self, match_id: str) -> MatchDetail | None:
        """Get a finished match."""
        pass


class TrackingStorePort(ABC):
    """Port for persisted tracking state."""

    # Accounts

    @abstractmethod
    async def add_account(
        self, discord_user_id: str, game_name: str, tag_line: str, puuid: str
    ) -> TrackedAccount | None:
        """Register an account; None if it is already tracked."""
        pass

    @abstractmethod
    async def remove_account(self, discord_user_id: str, puuid: str) -> bool:
        """Unregister an account owned by a Discord user."""
        pass

    @abstractmethod
    async def get_account(self, account_id: int) -> TrackedAccount | None:
        pass

    @abstractmethod
    async def get_accounts_by_discord_id(self, discord_user_id: str) -> list[TrackedAccount]:
        pass

    @abstractmethod
    async def list_accounts(self) -> list[TrackedAccount]:
        """Full scan of tracked accounts."""
        pass

    @abstractmethod
    async def update_account_puuid(self, account_id: int, puuid: str) -> bool:
        """Replace the stored PUUID (offline identifier refresh only)."""
        pass

    # Tracked matches

    @abstractmethod
    async def add_tracked_match(self, match: TrackedMatch) -> bool:
        """Insert a tracked match; ignore on (account, match) conflict.

        Returns True when a new row was written.
        """
        pass

    @abstractmethod
    async def get_tracked_match(self, account_id: int, match_id: str) -> TrackedMatch | None:
        pass

    @abstractmethod
    async def update_game_end(self, account_id: int, match_id: str, end_time: datetime) -> bool:
        pass

    @abstractmethod
    async def mark_notified_start(self, account_id: int, match_id: str) -> bool:
        pass

    @abstractmethod
    async def mark_notified_end(self, account_id: int, match_id: str) -> bool:
        pass

    # Rank snapshots

    @abstractmethod
    async def save_rank_snapshot(self, snapshot: RankSnapshot) -> bool:
        pass

    @abstractmethod
    async def get_rank_snapshots_between(
        self, account_id: int, start: datetime, end: datetime
    ) -> list[RankSnapshot]:
        """Snapshots with start <= recorded_at < end, newest first."""
        pass

    @abstractmethod
    async def get_latest_rank_snapshot(
        self, account_id: int, queue_type: str, before: datetime
    ) -> RankSnapshot | None:
        """Newest snapshot of one queue recorded strictly before ``before``."""
        pass


class NotificationSinkPort(ABC):
    """Port for the presentation layer receiving tracking events."""

    @abstractmethod
    async def send_game_start(self, event: GameStartEvent) -> None:
        pass

    @abstractmethod
    async def send_game_end(self, event: GameEndEvent) -> None:
        pass

    @abstractmethod
    async def send_recap(self, event: RecapEvent) -> None:
        pass
