"""Reconciliation loop detecting ranked game starts and ends.

Every tick polls the live-game endpoint for each tracked account,
diffs the answer against the in-memory ``ActiveGameState`` and turns
the transitions into notifications:

* IDLE -> in a qualifying game: start candidate (grouped by match id).
* IN_GAME -> not in game / other match: end-check after a settle delay.
* IDLE -> not in game: opportunistic end-check (offline recovery).

An end-check resolves the newest match in history, groups every tracked
participant that has not been notified yet, and emits one event. The
``notified_end`` flag of the tracked match row is the only dedup guard,
so a failed send is retried on a later tick.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TypeVar

from src.contracts.events import (
    GameEndEntry,
    GameEndEvent,
    GameStartEntry,
    GameStartEvent,
)
from src.contracts.tracking import (
    MatchDetail,
    RankEntry,
    RankSnapshot,
    RankState,
    TrackedAccount,
    TrackedMatch,
)
from src.core.domain.rank_delta import DEFAULT_POINTS_PER_DIVISION, safe_rank_delta
from src.core.observability import clear_correlation_id, set_correlation_id
from src.core.ports import NotificationSinkPort, TrackingStorePort
from src.core.services.active_games import ActiveGameState
from src.core.services.game_variants import GameVariant
from src.core.services.match_grouping import (
    StartCandidate,
    StartGroup,
    find_co_tracked,
    group_starts,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Cap for the in-memory set of finished non-ranked match ids.
_MAX_IGNORED_MATCHES = 5000


@dataclass(frozen=True)
class _Observation:
    account: TrackedAccount
    start: StartCandidate | None = None
    ended_match_id: str | None = None
    idle: bool = False


@dataclass
class TickSummary:
    """What a single reconciliation pass did."""

    accounts_checked: int = 0
    failed_checks: int = 0
    start_events: list[GameStartEvent] = field(default_factory=list)
    end_events: list[GameEndEvent] = field(default_factory=list)
    skipped: bool = False


class GameTracker:
    """Periodic reconciliation loop for one game variant.

    The loop is non-reentrant: a tick that is still running when the next
    one is due makes the latter a no-op. All shared state is mutated only
    from this flow.
    """

    def __init__(
        self,
        *,
        variant: GameVariant,
        store: TrackingStorePort,
        sink: NotificationSinkPort,
        active_games: ActiveGameState | None = None,
        interval_seconds: float = 60.0,
        batch_size: int = 5,
        batch_delay_seconds: float = 1.0,
        account_timeout_seconds: float = 30.0,
        points_per_division: int = DEFAULT_POINTS_PER_DIVISION,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._variant = variant
        self._api = variant.api
        self._store = store
        self._sink = sink
        self._active = active_games if active_games is not None else ActiveGameState()
        self._interval = max(1.0, float(interval_seconds))
        self._batch_size = max(1, int(batch_size))
        self._batch_delay = max(0.0, float(batch_delay_seconds))
        self._account_timeout = float(account_timeout_seconds)
        self._points_per_division = points_per_division
        self._sleep = sleep

        self._tick_lock = asyncio.Lock()
        self._ignored_matches: set[str] = set()
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def variant(self) -> GameVariant:
        return self._variant

    @property
    def active_games(self) -> ActiveGameState:
        return self._active

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Run one tick immediately, then one per interval."""
        if self.is_running:
            logger.warning("%s tracker already running", self._variant.key)
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_forever(), name=f"tracker-{self._variant.key}")
        logger.info(
            "Started %s tracker (interval=%ss, queues=%s)",
            self._variant.key,
            self._interval,
            ",".join(self._variant.queue_names),
        )

    async def stop(self, timeout: float | None = None) -> None:
        """Stop the loop, letting an in-flight tick finish.

        With ``timeout`` the in-flight tick is cancelled when it does not
        finish in time.
        """
        task = self._task
        if task is None:
            return
        self._stop_event.set()
        try:
            if timeout is None:
                await task
            else:
                await asyncio.wait_for(task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("%s tracker did not stop in %ss, cancelled", self._variant.key, timeout)
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
        logger.info("Stopped %s tracker", self._variant.key)

    async def _run_forever(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("%s tracker tick crashed", self._variant.key)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def run_once(self) -> TickSummary:
        """Run a single reconciliation pass."""
        if self._tick_lock.locked():
            logger.warning("%s tick still running, skipping this one", self._variant.key)
            return TickSummary(skipped=True)

        async with self._tick_lock:
            tick_id = set_correlation_id()
            try:
                return await self._tick(tick_id)
            finally:
                clear_correlation_id()

    async def _tick(self, tick_id: str) -> TickSummary:
        summary = TickSummary()
        accounts = await self._store.list_accounts()
        stale = self._active.discard_missing({a.id for a in accounts})
        if stale:
            logger.info("Dropped active games of unregistered accounts: %s", stale)
        if not accounts:
            return summary

        logger.debug("%s tick %s: %d accounts", self._variant.key, tick_id, len(accounts))

        observations = await self._run_batched(accounts, self._observe)
        summary.accounts_checked = len(accounts)
        summary.failed_checks = sum(1 for o in observations if o is None)

        starts = [o.start for o in observations if o is not None and o.start is not None]
        for group in group_starts(starts):
            try:
                event = await asyncio.wait_for(self._announce_start(group), timeout=self._account_timeout)
            except Exception as exc:
                logger.error("Error announcing %s start %s: %s", self._variant.key, group.match_id, exc)
                self._forget(group.members)
                continue
            if event is not None:
                summary.start_events.append(event)

        ended = [(o.account, o.ended_match_id) for o in observations if o is not None and o.ended_match_id]
        idle = [(o.account, None) for o in observations if o is not None and o.idle]

        if ended and self._variant.settle_delay_seconds > 0:
            await self._sleep(self._variant.settle_delay_seconds)

        pending = ended + idle
        if pending:
            claims: set[str] = set()

            async def _check(item: tuple[TrackedAccount, str | None]) -> GameEndEvent | None:
                account, expected = item
                return await self._end_check(account, expected, accounts, claims)

            results = await self._run_batched(pending, _check)
            summary.end_events.extend(e for e in results if e is not None)

        if summary.start_events or summary.end_events:
            logger.info(
                "%s tick %s: %d start / %d end notifications",
                self._variant.key,
                tick_id,
                len(summary.start_events),
                len(summary.end_events),
            )
        return summary

    async def _run_batched(
        self,
        items: Sequence[T],
        func: Callable[[T], Awaitable[object]],
    ) -> list:
        """Run ``func`` over items in bounded batches with a delay in between.

        Each call is bounded by the per-account timeout; failures become
        None in the result list.
        """
        results: list = []
        for offset in range(0, len(items), self._batch_size):
            if offset and self._batch_delay > 0:
                await self._sleep(self._batch_delay)
            batch = items[offset : offset + self._batch_size]
            results.extend(await asyncio.gather(*(self._guarded(func, item) for item in batch)))
        return results

    async def _guarded(self, func: Callable[[T], Awaitable[object]], item: T) -> object | None:
        label = _describe(item)
        try:
            return await asyncio.wait_for(func(item), timeout=self._account_timeout)
        except asyncio.TimeoutError:
            logger.warning("%s check timed out for %s", self._variant.key, label)
        except Exception as exc:
            logger.error("Error checking %s account %s: %s", self._variant.key, label, exc)
        return None

    # ------------------------------------------------------------------
    # Per-account state machine
    # ------------------------------------------------------------------

    async def _observe(self, account: TrackedAccount) -> _Observation:
        """Query live state and apply the IDLE/IN_GAME transition."""
        game = await self._api.get_live_game(account.puuid)
        qualifying = game is not None and self._variant.qualifies(game.queue_type)
        previous = self._active.get(account.id)

        if previous is None:
            if qualifying:
                self._active.set(account.id, game.match_id)
                return _Observation(account=account, start=StartCandidate(account=account, game=game))
            return _Observation(account=account, idle=True)

        if qualifying and game.match_id == previous:
            return _Observation(account=account)

        self._active.pop(account.id)
        logger.info("%s left game %s", account.riot_id, previous)
        return _Observation(account=account, ended_match_id=previous)

    async def _announce_start(self, group: StartGroup) -> GameStartEvent | None:
        entries: list[GameStartEntry] = []
        for candidate in group.members:
            account = candidate.account
            existing = await self._store.get_tracked_match(account.id, group.match_id)
            if existing is not None and (existing.notified_start or existing.notified_end):
                logger.debug("Start of %s already handled for %s", group.match_id, account.riot_id)
                continue

            rank = _pick_entry(await self._api.get_rank_entries(account.puuid), group.game.queue_type)
            now = datetime.now(UTC)
            inserted = await self._store.add_tracked_match(
                TrackedMatch(
                    account_id=account.id,
                    match_id=group.match_id,
                    variant=self._variant.key,
                    game_start_time=group.game.start_time or now,
                    lp_before=rank.league_points if rank else None,
                    tier_before=rank.tier if rank else None,
                    rank_before=rank.rank if rank else None,
                )
            )
            if inserted and rank is not None:
                await self._store.save_rank_snapshot(_snapshot(account.id, rank, now))

            participant = group.game.participant(account.puuid)
            entries.append(
                GameStartEntry(
                    account=account,
                    champion_id=participant.champion_id if participant else None,
                    rank_before=rank,
                )
            )

        if not entries:
            return None

        event = GameStartEvent(
            variant=self._variant.key,
            match_id=group.match_id,
            queue_id=group.game.queue_id,
            queue_type=group.game.queue_type,
            accounts=entries,
        )
        try:
            await self._sink.send_game_start(event)
        except Exception as exc:
            logger.error("Failed to send game start for %s: %s", group.match_id, exc)
            self._forget(entries)
            return None

        for entry in entries:
            if not await self._store.mark_notified_start(entry.account.id, group.match_id):
                logger.warning("Could not mark start of %s for %s", group.match_id, entry.account.riot_id)
        logger.info(
            "Notified game start %s for %s",
            group.match_id,
            ", ".join(e.account.riot_id for e in entries),
        )
        return event

    # ------------------------------------------------------------------
    # End-check
    # ------------------------------------------------------------------

    async def _end_check(
        self,
        account: TrackedAccount,
        expected_match_id: str | None,
        accounts: Sequence[TrackedAccount],
        claims: set[str],
    ) -> GameEndEvent | None:
        match_ids = await self._api.get_recent_match_ids(account.puuid, count=1)
        if not match_ids:
            return None

        match_id = match_ids[0]
        if expected_match_id and match_id != expected_match_id:
            logger.debug(
                "Latest match of %s is %s, expected %s", account.riot_id, match_id, expected_match_id
            )
        if match_id in self._ignored_matches or match_id in claims:
            return None
        claims.add(match_id)

        existing = await self._store.get_tracked_match(account.id, match_id)
        if existing is not None and existing.notified_end:
            return None

        event: GameEndEvent | None = None
        try:
            event = await self._resolve_match(account, match_id, accounts)
            return event
        finally:
            # Let another account of the same match retry within this tick.
            if event is None:
                claims.discard(match_id)

    async def _resolve_match(
        self,
        trigger: TrackedAccount,
        match_id: str,
        accounts: Sequence[TrackedAccount],
    ) -> GameEndEvent | None:
        detail = await self._api.get_match_detail(match_id)
        if detail is None:
            logger.info("Match %s not available yet", match_id)
            return None

        if not self._variant.qualifies(detail.queue_type):
            self._remember_ignored(match_id)
            return None

        if detail.participant(trigger.puuid) is None:
            logger.warning("%s is not a participant of %s", trigger.riot_id, match_id)
            return None

        entries: list[GameEndEntry] = []
        rows: dict[int, TrackedMatch | None] = {}
        for member in find_co_tracked(detail, accounts):
            row = await self._store.get_tracked_match(member.id, match_id)
            if row is not None and row.notified_end:
                continue
            rows[member.id] = row
            entries.append(await self._end_entry(member, detail, row))

        if not entries:
            return None

        event = GameEndEvent(
            variant=self._variant.key,
            match_id=match_id,
            queue_id=detail.queue_id,
            queue_type=detail.queue_type,
            duration_seconds=detail.duration_seconds,
            accounts=entries,
        )
        try:
            await self._sink.send_game_end(event)
        except Exception as exc:
            logger.error("Failed to send game end for %s: %s", match_id, exc)
            return None

        now = datetime.now(UTC)
        for entry in entries:
            await self._persist_end(entry, detail, rows.get(entry.account.id), now)
        logger.info(
            "Notified game end %s for %s",
            match_id,
            ", ".join(e.account.riot_id for e in entries),
        )
        return event

    async def _end_entry(
        self,
        account: TrackedAccount,
        detail: MatchDetail,
        row: TrackedMatch | None,
    ) -> GameEndEntry:
        stats = detail.participant(account.puuid)
        rank_after = _pick_entry(await self._api.get_rank_entries(account.puuid), detail.queue_type)

        rank_before: RankState | None = row.rank_before_state if row is not None else None
        if rank_before is None and detail.queue_type is not None:
            before = detail.start_time or detail.end_time or datetime.now(UTC)
            snapshot = await self._store.get_latest_rank_snapshot(
                account.id, detail.queue_type.value, before
            )
            if snapshot is not None:
                rank_before = snapshot.state

        delta = safe_rank_delta(
            rank_before,
            rank_after.state if rank_after is not None else None,
            self._points_per_division,
        )
        return GameEndEntry(
            account=account,
            stats=stats,
            rank_before=rank_before,
            rank_after=rank_after,
            delta=delta,
        )

    async def _persist_end(
        self,
        entry: GameEndEntry,
        detail: MatchDetail,
        row: TrackedMatch | None,
        now: datetime,
    ) -> None:
        account_id = entry.account.id
        if row is None:
            # Finished match discovered without a start record (bot offline).
            await self._store.add_tracked_match(
                TrackedMatch(
                    account_id=account_id,
                    match_id=detail.match_id,
                    variant=self._variant.key,
                    game_start_time=detail.start_time or now,
                )
            )
        await self._store.update_game_end(account_id, detail.match_id, detail.end_time or now)
        if not await self._store.mark_notified_end(account_id, detail.match_id):
            logger.warning(
                "Could not mark end of %s for %s; it may be announced again",
                detail.match_id,
                entry.account.riot_id,
            )
        if entry.rank_after is not None:
            await self._store.save_rank_snapshot(_snapshot(account_id, entry.rank_after, now))

    def _forget(self, members: Iterable[GameStartEntry | StartCandidate]) -> None:
        """Drop active entries so the next tick detects the start again."""
        for member in members:
            self._active.pop(member.account.id)

    def _remember_ignored(self, match_id: str) -> None:
        if len(self._ignored_matches) >= _MAX_IGNORED_MATCHES:
            self._ignored_matches.clear()
        self._ignored_matches.add(match_id)


def _pick_entry(entries: Iterable[RankEntry], queue_type: object) -> RankEntry | None:
    if queue_type is None:
        return None
    wanted = getattr(queue_type, "value", queue_type)
    return next((e for e in entries if e.queue_type == wanted), None)


def _snapshot(account_id: int, entry: RankEntry, recorded_at: datetime) -> RankSnapshot:
    return RankSnapshot(
        account_id=account_id,
        queue_type=entry.queue_type,
        tier=entry.tier,
        rank=entry.rank,
        league_points=entry.league_points,
        wins=entry.wins,
        losses=entry.losses,
        recorded_at=recorded_at,
    )


def _describe(item: object) -> str:
    account = item[0] if isinstance(item, tuple) else item
    return getattr(account, "riot_id", repr(account))
