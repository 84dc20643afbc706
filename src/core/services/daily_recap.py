"""Daily recap of rank movement over a rolling window."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta

from src.contracts.events import RecapEntry, RecapEvent
from src.contracts.tracking import RankSnapshot, TrackedAccount
from src.core.domain.rank_delta import DEFAULT_POINTS_PER_DIVISION, safe_rank_delta
from src.core.ports import NotificationSinkPort, TrackingStorePort
from src.core.services.game_variants import GameVariant

logger = logging.getLogger(__name__)


def seconds_until(hour: int, now: datetime) -> float:
    """Seconds from ``now`` until the next occurrence of ``hour``:00 (same tz)."""
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class DailyRecapService:
    """Build and send the rolling-window recap.

    For each account and tracked queue the OLDEST snapshot inside the
    window is the baseline; the current rank entry is the end point. Only
    queues where a game was played (wins or losses moved) are reported.
    """

    def __init__(
        self,
        *,
        store: TrackingStorePort,
        sink: NotificationSinkPort,
        variants: Sequence[GameVariant],
        window_hours: int = 24,
        recap_hour: int = 8,
        points_per_division: int = DEFAULT_POINTS_PER_DIVISION,
        account_delay_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._sink = sink
        self._variants = list(variants)
        self._window = timedelta(hours=window_hours)
        self._recap_hour = recap_hour % 24
        self._points_per_division = points_per_division
        self._account_delay = max(0.0, account_delay_seconds)
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_forever(), name="daily-recap")
        logger.info("Daily recap scheduled for %02d:00", self._recap_hour)

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Daily recap stopped")

    async def _run_forever(self) -> None:
        while True:
            delay = seconds_until(self._recap_hour, datetime.now().astimezone())
            await asyncio.sleep(delay)
            try:
                await self.send_recap()
            except Exception:
                logger.exception("Daily recap failed")

    async def build_recap(self, now: datetime | None = None) -> RecapEvent:
        now = now or datetime.now(UTC)
        window_start = now - self._window
        entries: list[RecapEntry] = []

        accounts = await self._store.list_accounts()
        for index, account in enumerate(accounts):
            if index and self._account_delay:
                await self._sleep(self._account_delay)
            try:
                entries.extend(await self._account_entries(account, window_start, now))
            except Exception as exc:
                logger.error("Recap failed for %s: %s", account.riot_id, exc)

        return RecapEvent(window_start=window_start, window_end=now, entries=entries)

    async def send_recap(self, now: datetime | None = None) -> RecapEvent | None:
        """Build the recap and hand it to the sink; None when nobody played."""
        event = await self.build_recap(now)
        if not event.entries:
            logger.info("No ranked games in the recap window, skipping recap")
            return None
        await self._sink.send_recap(event)
        logger.info("Daily recap sent with %d entries", len(event.entries))
        return event

    async def _account_entries(
        self, account: TrackedAccount, window_start: datetime, now: datetime
    ) -> list[RecapEntry]:
        snapshots = await self._store.get_rank_snapshots_between(account.id, window_start, now)
        if not snapshots:
            return []

        entries: list[RecapEntry] = []
        for variant in self._variants:
            current = await variant.api.get_rank_entries(account.puuid)
            for queue in sorted(variant.tracked_queues, key=lambda q: q.value):
                entry = next((e for e in current if e.queue_type == queue.value), None)
                if entry is None:
                    continue
                baseline = _oldest(snapshots, queue.value)
                if baseline is None:
                    continue

                wins = entry.wins - baseline.wins
                losses = entry.losses - baseline.losses
                if wins <= 0 and losses <= 0:
                    continue

                delta = safe_rank_delta(baseline.state, entry.state, self._points_per_division)
                if delta is None:
                    logger.warning("Unparseable rank for %s in %s", account.riot_id, queue.value)
                    continue
                entries.append(
                    RecapEntry(
                        account=account,
                        queue_type=queue.value,
                        lp_delta=delta.lp_delta,
                        estimated=delta.estimated,
                        rank_before=baseline.state,
                        rank_after=entry.state,
                        wins=max(wins, 0),
                        losses=max(losses, 0),
                    )
                )
        return entries


def _oldest(snapshots: Sequence[RankSnapshot], queue_type: str) -> RankSnapshot | None:
    matching = [s for s in snapshots if s.queue_type == queue_type]
    if not matching:
        return None
    return min(matching, key=lambda s: s.recorded_at)
