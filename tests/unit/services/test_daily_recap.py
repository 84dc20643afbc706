"""DailyRecapService tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from src.contracts import RankSnapshot
from src.core.services.daily_recap import DailyRecapService, seconds_until
from src.core.services.game_variants import build_lol_variant, build_tft_variant
from tests.fakes import rank_entry

NOW = datetime(2026, 10, 19, 8, 0, tzinfo=UTC)


def _snapshot(account_id: int, at: datetime, **kwargs) -> RankSnapshot:
    entry = rank_entry(**kwargs)
    return RankSnapshot(
        account_id=account_id,
        queue_type=entry.queue_type,
        tier=entry.tier,
        rank=entry.rank,
        league_points=entry.league_points,
        wins=entry.wins,
        losses=entry.losses,
        recorded_at=at,
    )


def _service(store, sink, api, no_sleep, **kwargs) -> DailyRecapService:
    return DailyRecapService(
        store=store,
        sink=sink,
        variants=[build_lol_variant(api)],
        sleep=no_sleep,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_baseline_is_oldest_snapshot_inside_the_window(store, sink, game_api, no_sleep) -> None:
    account = store.seed_account("Alice")
    # Outside the 24h window: must not be the baseline
    store.snapshots.append(_snapshot(account.id, NOW - timedelta(hours=30), lp=0, wins=5, losses=5))
    store.snapshots.append(_snapshot(account.id, NOW - timedelta(hours=2), lp=40, wins=10, losses=10))
    store.snapshots.append(_snapshot(account.id, NOW - timedelta(hours=1), lp=60, wins=11, losses=10))
    game_api.ranks[account.puuid] = [rank_entry(lp=75, wins=12, losses=11)]

    event = await _service(store, sink, game_api, no_sleep).send_recap(NOW)

    assert event is not None
    assert sink.recaps == [event]
    (entry,) = event.entries
    assert entry.lp_delta == 35
    assert (entry.wins, entry.losses) == (2, 1)
    assert entry.rank_before.league_points == 40
    assert event.window_start == NOW - timedelta(hours=24)
    assert event.window_end == NOW


@pytest.mark.asyncio
async def test_accounts_without_games_are_left_out(store, sink, game_api, no_sleep) -> None:
    account = store.seed_account("Alice")
    store.snapshots.append(_snapshot(account.id, NOW - timedelta(hours=3), lp=40, wins=10, losses=10))
    game_api.ranks[account.puuid] = [rank_entry(lp=40, wins=10, losses=10)]

    assert await _service(store, sink, game_api, no_sleep).send_recap(NOW) is None
    assert sink.recaps == []


@pytest.mark.asyncio
async def test_snapshot_at_window_end_is_excluded(store, sink, game_api, no_sleep) -> None:
    account = store.seed_account("Alice")
    store.snapshots.append(_snapshot(account.id, NOW, lp=10, wins=9, losses=9))
    game_api.ranks[account.puuid] = [rank_entry(lp=30, wins=10, losses=9)]

    event = await _service(store, sink, game_api, no_sleep).build_recap(NOW)

    assert event.entries == []


@pytest.mark.asyncio
async def test_promotion_in_recap_is_estimated(store, sink, game_api, no_sleep) -> None:
    account = store.seed_account("Alice")
    store.snapshots.append(
        _snapshot(account.id, NOW - timedelta(hours=5), tier="SILVER", rank="I", lp=80, wins=3, losses=3)
    )
    game_api.ranks[account.puuid] = [rank_entry(tier="GOLD", rank="IV", lp=15, wins=5, losses=3)]

    event = await _service(store, sink, game_api, no_sleep).build_recap(NOW)

    (entry,) = event.entries
    assert entry.lp_delta == 35
    assert entry.estimated


@pytest.mark.asyncio
async def test_each_variant_reports_its_own_queue(store, sink, game_api, no_sleep) -> None:
    account = store.seed_account("Alice")
    store.snapshots.append(_snapshot(account.id, NOW - timedelta(hours=5), lp=10, wins=1, losses=1))
    store.snapshots.append(
        _snapshot(account.id, NOW - timedelta(hours=5), queue_type="RANKED_TFT", lp=50, wins=4, losses=4)
    )
    game_api.ranks[account.puuid] = [
        rank_entry(lp=30, wins=2, losses=1),
        rank_entry(queue_type="RANKED_TFT", lp=20, wins=4, losses=5),
    ]
    service = DailyRecapService(
        store=store,
        sink=sink,
        variants=[build_lol_variant(game_api), build_tft_variant(game_api)],
        sleep=no_sleep,
    )

    event = await service.build_recap(NOW)

    assert {(e.queue_type, e.lp_delta) for e in event.entries} == {
        ("RANKED_SOLO_5x5", 20),
        ("RANKED_TFT", -30),
    }


@pytest.mark.asyncio
async def test_failing_account_does_not_block_others(store, sink, game_api, no_sleep) -> None:
    broken = store.seed_account("Broken")
    healthy = store.seed_account("Healthy")
    store.snapshots.append(_snapshot(broken.id, NOW - timedelta(hours=1)))
    store.snapshots.append(_snapshot(healthy.id, NOW - timedelta(hours=1), lp=10, wins=1, losses=0))
    game_api.ranks[healthy.puuid] = [rank_entry(lp=30, wins=2, losses=0)]

    async def _boom(puuid: str):
        if puuid == broken.puuid:
            raise RuntimeError("riot down")
        return list(game_api.ranks.get(puuid, []))

    game_api.get_rank_entries = _boom

    event = await _service(store, sink, game_api, no_sleep).build_recap(NOW)

    assert [e.account.id for e in event.entries] == [healthy.id]


def test_seconds_until_next_recap_hour() -> None:
    assert seconds_until(8, datetime(2026, 10, 19, 7, 30)) == 1800
    assert seconds_until(8, datetime(2026, 10, 19, 8, 0)) == 24 * 3600
    assert seconds_until(8, datetime(2026, 10, 19, 9, 0)) == 23 * 3600
