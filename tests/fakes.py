"""In-memory port implementations shared by the service tests."""

from __future__ import annotations

from datetime import UTC, datetime

from src.contracts import (
    GameEndEvent,
    GameStartEvent,
    LiveGame,
    MatchDetail,
    ParticipantResult,
    RankEntry,
    RankSnapshot,
    RecapEvent,
    RiotAccount,
    TrackedAccount,
    TrackedMatch,
)
from src.contracts.common import LOL_RANKED_QUEUES, TFT_RANKED_QUEUES
from src.core.ports import GameDataPort, NotificationSinkPort, TrackingStorePort


class InMemoryStore(TrackingStorePort):
    """TrackingStorePort backed by dicts with the same conflict rules as the SQL schema."""

    def __init__(self) -> None:
        self.accounts: dict[int, TrackedAccount] = {}
        self.matches: dict[tuple[int, str], TrackedMatch] = {}
        self.snapshots: list[RankSnapshot] = []
        self._next_id = 1

    def seed_account(
        self, game_name: str, tag_line: str = "EUW", puuid: str | None = None, discord_user_id: str = "100"
    ) -> TrackedAccount:
        account = TrackedAccount(
            id=self._next_id,
            discord_user_id=discord_user_id,
            game_name=game_name,
            tag_line=tag_line,
            puuid=puuid or f"puuid-{game_name.lower()}",
            created_at=datetime.now(UTC),
        )
        self.accounts[account.id] = account
        self._next_id += 1
        return account

    async def add_account(self, discord_user_id, game_name, tag_line, puuid):
        if any(a.puuid == puuid for a in self.accounts.values()):
            return None
        return self.seed_account(game_name, tag_line, puuid, discord_user_id)

    async def remove_account(self, discord_user_id, puuid):
        for account_id, account in list(self.accounts.items()):
            if account.discord_user_id == discord_user_id and account.puuid == puuid:
                del self.accounts[account_id]
                return True
        return False

    async def get_account(self, account_id):
        return self.accounts.get(account_id)

    async def get_accounts_by_discord_id(self, discord_user_id):
        return [a for a in self.accounts.values() if a.discord_user_id == discord_user_id]

    async def list_accounts(self):
        return list(self.accounts.values())

    async def update_account_puuid(self, account_id, puuid):
        account = self.accounts.get(account_id)
        if account is None:
            return False
        self.accounts[account_id] = account.model_copy(update={"puuid": puuid})
        return True

    async def add_tracked_match(self, match):
        key = (match.account_id, match.match_id)
        if key in self.matches:
            return False
        self.matches[key] = match.model_copy()
        return True

    async def get_tracked_match(self, account_id, match_id):
        row = self.matches.get((account_id, match_id))
        return row.model_copy() if row else None

    async def update_game_end(self, account_id, match_id, end_time):
        return self._update(account_id, match_id, game_end_time=end_time)

    async def mark_notified_start(self, account_id, match_id):
        return self._update(account_id, match_id, notified_start=True)

    async def mark_notified_end(self, account_id, match_id):
        return self._update(account_id, match_id, notified_end=True)

    def _update(self, account_id: int, match_id: str, **fields) -> bool:
        key = (account_id, match_id)
        if key not in self.matches:
            return False
        self.matches[key] = self.matches[key].model_copy(update=fields)
        return True

    async def save_rank_snapshot(self, snapshot):
        self.snapshots.append(snapshot)
        return True

    async def get_rank_snapshots_between(self, account_id, start, end):
        rows = [s for s in self.snapshots if s.account_id == account_id and start <= s.recorded_at < end]
        return sorted(rows, key=lambda s: s.recorded_at, reverse=True)

    async def get_latest_rank_snapshot(self, account_id, queue_type, before):
        rows = [
            s
            for s in self.snapshots
            if s.account_id == account_id and s.queue_type == queue_type and s.recorded_at < before
        ]
        return max(rows, key=lambda s: s.recorded_at) if rows else None


class RecordingSink(NotificationSinkPort):
    """Collects events; ``fail_next`` makes the next N sends raise."""

    def __init__(self) -> None:
        self.starts: list[GameStartEvent] = []
        self.ends: list[GameEndEvent] = []
        self.recaps: list[RecapEvent] = []
        self.fail_next = 0

    def _maybe_fail(self) -> None:
        if self.fail_next > 0:
            self.fail_next -= 1
            raise RuntimeError("discord unavailable")

    async def send_game_start(self, event):
        self._maybe_fail()
        self.starts.append(event)

    async def send_game_end(self, event):
        self._maybe_fail()
        self.ends.append(event)

    async def send_recap(self, event):
        self._maybe_fail()
        self.recaps.append(event)


class FakeGameApi(GameDataPort):
    """Scriptable upstream: tests assign live games, history, details and ranks per puuid."""

    def __init__(self) -> None:
        self.live: dict[str, LiveGame | None] = {}
        self.live_errors: dict[str, Exception] = {}
        # One-shot failures of the rank lookup, consumed in order.
        self.rank_errors: dict[str, list[Exception]] = {}
        self.history: dict[str, list[str]] = {}
        self.details: dict[str, MatchDetail] = {}
        self.ranks: dict[str, list[RankEntry]] = {}
        self.riot_ids: dict[tuple[str, str], RiotAccount] = {}
        self.detail_calls: list[str] = []

    async def resolve_account(self, game_name, tag_line):
        return self.riot_ids.get((game_name.lower(), tag_line.lower()))

    async def get_rank_entries(self, puuid):
        if self.rank_errors.get(puuid):
            raise self.rank_errors[puuid].pop(0)
        return list(self.ranks.get(puuid, []))

    async def get_live_game(self, puuid):
        if puuid in self.live_errors:
            raise self.live_errors[puuid]
        return self.live.get(puuid)

    async def get_recent_match_ids(self, puuid, count=1):
        return self.history.get(puuid, [])[:count]

    async def get_match_detail(self, match_id):
        self.detail_calls.append(match_id)
        return self.details.get(match_id)


def rank_entry(
    queue_type: str = "RANKED_SOLO_5x5",
    tier: str = "GOLD",
    rank: str = "II",
    lp: int = 50,
    wins: int = 10,
    losses: int = 10,
) -> RankEntry:
    return RankEntry(queue_type=queue_type, tier=tier, rank=rank, league_points=lp, wins=wins, losses=losses)


def live_game(match_id: str, *puuids: str, queue_id: int = 420) -> LiveGame:
    return LiveGame(
        match_id=match_id,
        queue_id=queue_id,
        queue_type=LOL_RANKED_QUEUES.get(queue_id) or TFT_RANKED_QUEUES.get(queue_id),
        start_time=datetime(2026, 10, 19, 12, 0, tzinfo=UTC),
        participants=[{"puuid": p, "champion_id": 103} for p in puuids],
    )


def match_detail(match_id: str, *puuids: str, queue_id: int = 420, winners: tuple[str, ...] = ()) -> MatchDetail:
    return MatchDetail(
        match_id=match_id,
        queue_id=queue_id,
        queue_type=LOL_RANKED_QUEUES.get(queue_id) or TFT_RANKED_QUEUES.get(queue_id),
        duration_seconds=1834,
        start_time=datetime(2026, 10, 19, 12, 0, tzinfo=UTC),
        end_time=datetime(2026, 10, 19, 12, 31, tzinfo=UTC),
        participants=[
            ParticipantResult(puuid=p, win=p in winners, champion_name="Ahri", kills=5, deaths=2, assists=7)
            for p in puuids
        ],
    )
