"""Embed rendering tests."""

from datetime import UTC, datetime

from src.contracts import (
    AccountStats,
    GameEndEntry,
    GameEndEvent,
    GameStartEntry,
    GameStartEvent,
    ParticipantResult,
    QueueCategory,
    RankDelta,
    RankState,
    RecapEntry,
    RecapEvent,
    TrackedAccount,
)
from src.core.views.notification_embeds import (
    EmbedColor,
    MAX_FIELDS,
    format_duration,
    format_lp_delta,
    game_end_embed,
    game_start_embed,
    recap_embed,
    stats_embed,
)
from tests.fakes import rank_entry

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def _account(account_id: int = 1, name: str = "Alice") -> TrackedAccount:
    return TrackedAccount(
        id=account_id, discord_user_id=str(100 + account_id), game_name=name, tag_line="EUW", puuid=f"p-{account_id}"
    )


def _fields(embed) -> dict[str, str]:
    return {f.name: f.value for f in embed.fields}


def test_single_start_embed() -> None:
    event = GameStartEvent(
        match_id="EUW1_1",
        queue_id=420,
        queue_type=QueueCategory.RANKED_SOLO_5x5,
        accounts=[GameStartEntry(account=_account(), champion_id=103, rank_before=rank_entry(lp=42))],
    )

    embed = game_start_embed(event, champion_name=lambda cid: "Ahri" if cid == 103 else "?")

    assert embed.title == "🎮 Game Started!"
    assert "<@101>" in embed.description
    fields = _fields(embed)
    assert fields["🎯 Queue"] == "Ranked Solo/Duo"
    assert fields["⚔️ Champion"] == "Ahri"
    assert fields["🏆 Rank"] == "GOLD II - 42 LP"
    assert embed.color.value == EmbedColor.GAME_START.value


def test_group_start_embed_lists_each_player() -> None:
    event = GameStartEvent(
        match_id="EUW1_1",
        queue_id=440,
        queue_type=QueueCategory.RANKED_FLEX_SR,
        accounts=[
            GameStartEntry(account=_account(1, "Alice"), rank_before=rank_entry(queue_type="RANKED_FLEX_SR")),
            GameStartEntry(account=_account(2, "Bob")),
        ],
    )

    embed = game_start_embed(event)

    assert embed.title == "🎮 2 players queued together!"
    assert "<@101>" in embed.description and "<@102>" in embed.description
    fields = _fields(embed)
    assert "🏆 Unranked" in fields["Bob#EUW"]
    assert "GOLD II" in fields["Alice#EUW"]


def test_tft_start_embed() -> None:
    event = GameStartEvent(
        variant="tft",
        match_id="EUW1_9",
        queue_id=1100,
        queue_type=QueueCategory.RANKED_TFT,
        accounts=[GameStartEntry(account=_account())],
    )

    embed = game_start_embed(event, champion_name=lambda cid: "unused")

    assert embed.title == "🎲 TFT Game Started!"
    assert "⚔️ Champion" not in _fields(embed)
    assert embed.color.value == EmbedColor.TFT_START.value


def test_lol_end_embed_with_estimated_promotion() -> None:
    event = GameEndEvent(
        match_id="EUW1_1",
        queue_id=420,
        queue_type=QueueCategory.RANKED_SOLO_5x5,
        duration_seconds=1834,
        accounts=[
            GameEndEntry(
                account=_account(),
                stats=ParticipantResult(puuid="p-1", win=True, champion_name="Ahri", kills=8, deaths=2, assists=11, creep_score=192),
                rank_before=RankState(tier="GOLD", rank="I", league_points=90),
                rank_after=rank_entry(tier="PLATINUM", rank="IV", lp=10),
                delta=RankDelta(lp_delta=20, rank_changed=True, estimated=True),
            )
        ],
    )

    embed = game_end_embed(event, champion_image=lambda key: f"https://img/{key}.png")

    assert embed.title == "✅ Victory"
    fields = _fields(embed)
    assert fields["📊 KDA"] == "8/2/11"
    assert fields["📈 KDA Ratio"] == "9.50"
    assert fields["🌾 CS"] == "192"
    assert fields["⏱️ Duration"] == "30:34"
    assert "≈+20 LP" in fields["🏆 Rank"]
    assert "Promoted from GOLD I" in fields["🏆 Rank"]
    assert embed.thumbnail.url == "https://img/Ahri.png"


def test_tft_end_embed_shows_placement() -> None:
    event = GameEndEvent(
        variant="tft",
        match_id="EUW1_9",
        queue_id=1100,
        queue_type=QueueCategory.RANKED_TFT,
        accounts=[
            GameEndEntry(
                account=_account(),
                stats=ParticipantResult(puuid="p-1", win=False, placement=6, level=8),
                rank_after=rank_entry(queue_type="RANKED_TFT", lp=30),
                delta=RankDelta(lp_delta=-15),
            )
        ],
    )

    embed = game_end_embed(event)

    assert embed.title == "🏅 Placed #6"
    fields = _fields(embed)
    assert fields["🏅 Placement"] == "#6"
    assert fields["💰 Gold Left"] == "?"
    assert "-15 LP" in fields["🏆 Rank"]
    assert embed.color.value == EmbedColor.DEFEAT.value


def test_group_end_embed() -> None:
    entries = [
        GameEndEntry(account=_account(i, f"P{i}"), stats=ParticipantResult(puuid=f"p-{i}", win=True, champion_name="Ahri"))
        for i in (1, 2)
    ]
    event = GameEndEvent(match_id="EUW1_1", queue_id=420, queue_type=QueueCategory.RANKED_SOLO_5x5, accounts=entries)

    embed = game_end_embed(event)

    assert embed.title == "🏁 2 tracked players finished a game"
    assert len(embed.fields) == 2


def test_recap_embed() -> None:
    entry = RecapEntry(
        account=_account(),
        queue_type="RANKED_SOLO_5x5",
        lp_delta=35,
        rank_before=RankState(tier="GOLD", rank="II", league_points=40),
        rank_after=RankState(tier="GOLD", rank="II", league_points=75),
        wins=2,
        losses=1,
    )
    event = RecapEvent(window_start=datetime(2026, 10, 18, 12, 0, tzinfo=UTC), window_end=NOW, entries=[entry])

    embed = recap_embed(event)

    assert embed.title == "📊 Daily Recap - Last 24 Hours"
    value = _fields(embed)["Alice#EUW"]
    assert "🎯 Solo/Duo" in value
    assert "📈 +35 LP" in value
    assert "2W - 1L" in value


def test_empty_recap_embed() -> None:
    event = RecapEvent(window_start=datetime(2026, 10, 18, 12, 0, tzinfo=UTC), window_end=NOW)

    assert "No ranked games" in recap_embed(event).description


def test_stats_embed_caps_fields() -> None:
    accounts = [AccountStats(account=_account(i, f"P{i}")) for i in range(1, 40)]

    embed = stats_embed(accounts)

    assert len(embed.fields) == MAX_FIELDS
    assert "Solo/Duo:** Unranked" in embed.fields[0].value


def test_formatters() -> None:
    assert format_duration(65) == "1:05"
    assert format_duration(-3) == "0:00"
    assert format_lp_delta(RankDelta(lp_delta=0)) == "0 LP"
    assert format_lp_delta(RankDelta(lp_delta=-25, rank_changed=True, estimated=True)) == "≈-25 LP"
