"""Render tracking events as Discord embeds.

Pure functions: events in, ``discord.Embed`` out. No I/O happens here so
the notifier and the slash commands can share them and tests can inspect
the produced fields directly.
"""

from collections.abc import Callable
from enum import Enum

import discord

from src.contracts.common import QUEUE_CATEGORY_NAMES, QueueCategory, queue_name
from src.contracts.events import (
    GameEndEntry,
    GameEndEvent,
    GameStartEvent,
    RankDelta,
    RecapEvent,
)
from src.contracts.registration import AccountStats
from src.contracts.tracking import RankEntry, RankState

ChampionNamer = Callable[[int | None], str]

# Discord caps an embed at 25 fields.
MAX_FIELDS = 25


class EmbedColor(int, Enum):
    """Discord embed colors for notification types."""

    GAME_START = 0x0099FF
    TFT_START = 0xFF6B35
    VICTORY = 0x2ECC71
    DEFEAT = 0xE74C3C
    RECAP = 0xFFD700
    INFO = 0x3498DB


def format_duration(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def format_lp_delta(delta: RankDelta) -> str:
    """``+18 LP`` / ``-25 LP``; estimated deltas are prefixed with ``≈``."""
    sign = "+" if delta.lp_delta > 0 else ""
    prefix = "≈" if delta.estimated else ""
    return f"{prefix}{sign}{delta.lp_delta} LP"


def rank_text(rank: RankEntry | RankState) -> str:
    state = rank.state if isinstance(rank, RankEntry) else rank
    return f"{state.label} - {state.league_points} LP"


def _category_name(queue_type: QueueCategory | str) -> str:
    try:
        return QUEUE_CATEGORY_NAMES[QueueCategory(queue_type)]
    except (KeyError, ValueError):
        return str(queue_type)


def _mention(discord_user_id: str) -> str:
    return f"<@{discord_user_id}>"


def _rank_change_line(entry: GameEndEntry) -> str | None:
    if entry.rank_after is None:
        return None
    lines = [rank_text(entry.rank_after)]
    if entry.delta is not None:
        emoji = "📈" if entry.delta.lp_delta > 0 else "📉"
        lines.append(f"{emoji} {format_lp_delta(entry.delta)}")
        if entry.delta.promoted:
            lines.append(f"⬆️ Promoted from {entry.rank_before.label}" if entry.rank_before else "⬆️ Promoted")
        elif entry.delta.demoted:
            lines.append(f"⬇️ Demoted from {entry.rank_before.label}" if entry.rank_before else "⬇️ Demoted")
    return "\n".join(lines)


def game_start_embed(event: GameStartEvent, champion_name: ChampionNamer | None = None) -> discord.Embed:
    is_tft = event.variant == "tft"
    color = EmbedColor.TFT_START if is_tft else EmbedColor.GAME_START
    queue = queue_name(event.queue_id)

    if not event.is_group:
        entry = event.accounts[0]
        account = entry.account
        embed = discord.Embed(
            title="🎲 TFT Game Started!" if is_tft else "🎮 Game Started!",
            description=f"{_mention(account.discord_user_id)} ({account.riot_id}) has started a game!",
            color=color.value,
            timestamp=event.created_at,
        )
        embed.add_field(name="🎯 Queue", value=queue, inline=True)
        if not is_tft and champion_name is not None:
            embed.add_field(name="⚔️ Champion", value=champion_name(entry.champion_id), inline=True)
        if entry.rank_before is not None:
            embed.add_field(name="🏆 Rank", value=rank_text(entry.rank_before), inline=True)
        embed.set_footer(text="Good luck!")
        return embed

    mentions = ", ".join(_mention(e.account.discord_user_id) for e in event.accounts)
    embed = discord.Embed(
        title=f"🎮 {len(event.accounts)} players queued together!",
        description=f"{mentions} started the same {queue} game!",
        color=color.value,
        timestamp=event.created_at,
    )
    for entry in event.accounts[:MAX_FIELDS]:
        parts = []
        if not is_tft and champion_name is not None:
            parts.append(f"⚔️ {champion_name(entry.champion_id)}")
        parts.append(f"🏆 {rank_text(entry.rank_before)}" if entry.rank_before else "🏆 Unranked")
        embed.add_field(name=entry.account.riot_id, value="\n".join(parts), inline=True)
    embed.set_footer(text="Good luck, team!")
    return embed


def _lol_stat_lines(entry: GameEndEntry) -> list[tuple[str, str]]:
    stats = entry.stats
    ratio = stats.kda_ratio
    return [
        ("⚔️ Champion", stats.champion_name or "Unknown"),
        ("📊 KDA", f"{stats.kills}/{stats.deaths}/{stats.assists}"),
        ("📈 KDA Ratio", "Perfect" if ratio is None else f"{ratio:.2f}"),
        ("🌾 CS", str(stats.creep_score)),
    ]


def _tft_stat_lines(entry: GameEndEntry) -> list[tuple[str, str]]:
    stats = entry.stats
    return [
        ("🏅 Placement", f"#{stats.placement}" if stats.placement else "?"),
        ("📊 Level", str(stats.level if stats.level is not None else "?")),
        ("💰 Gold Left", str(stats.gold_left if stats.gold_left is not None else "?")),
        ("⚔️ Damage Dealt", str(stats.damage_to_players if stats.damage_to_players is not None else "?")),
        ("🔄 Last Round", str(stats.last_round if stats.last_round is not None else "?")),
    ]


def game_end_embed(event: GameEndEvent, champion_image: Callable[[str], str] | None = None) -> discord.Embed:
    is_tft = event.variant == "tft"
    queue = queue_name(event.queue_id)
    duration = format_duration(event.duration_seconds)

    if not event.is_group:
        entry = event.accounts[0]
        account = entry.account
        won = bool(entry.stats.win)
        if is_tft:
            title = f"🏅 Placed #{entry.stats.placement}" if entry.stats.placement else "🎲 TFT game finished"
        else:
            title = "✅ Victory" if won else "❌ Defeat"
        embed = discord.Embed(
            title=title,
            description=f"{_mention(account.discord_user_id)} ({account.riot_id}) finished a game!",
            color=(EmbedColor.VICTORY if won else EmbedColor.DEFEAT).value,
            timestamp=event.created_at,
        )
        embed.add_field(name="🎯 Queue", value=queue, inline=True)
        embed.add_field(name="⏱️ Duration", value=duration, inline=True)
        for name, value in _tft_stat_lines(entry) if is_tft else _lol_stat_lines(entry):
            embed.add_field(name=name, value=value, inline=True)
        rank_line = _rank_change_line(entry)
        if rank_line:
            embed.add_field(name="🏆 Rank", value=rank_line, inline=False)
        if not is_tft and champion_image is not None and entry.stats.champion_name:
            embed.set_thumbnail(url=champion_image(entry.stats.champion_name))
        return embed

    # Group layout: one field per tracked player.
    any_win = any(e.stats.win for e in event.accounts)
    embed = discord.Embed(
        title=f"🏁 {len(event.accounts)} tracked players finished a game",
        description=f"{queue} · ⏱️ {duration}",
        color=(EmbedColor.VICTORY if any_win else EmbedColor.DEFEAT).value,
        timestamp=event.created_at,
    )
    for entry in event.accounts[:MAX_FIELDS]:
        stats = entry.stats
        if is_tft:
            head = f"🏅 #{stats.placement}" if stats.placement else "🏅 ?"
        else:
            head = f"{'✅' if stats.win else '❌'} {stats.champion_name or 'Unknown'} {stats.kills}/{stats.deaths}/{stats.assists}"
        lines = [_mention(entry.account.discord_user_id), head]
        rank_line = _rank_change_line(entry)
        if rank_line:
            lines.append(rank_line)
        embed.add_field(name=entry.account.riot_id, value="\n".join(lines), inline=False)
    return embed


def recap_embed(event: RecapEvent) -> discord.Embed:
    hours = round((event.window_end - event.window_start).total_seconds() / 3600)
    embed = discord.Embed(
        title=f"📊 Daily Recap - Last {hours} Hours",
        color=EmbedColor.RECAP.value,
        timestamp=event.window_end,
    )
    if not event.entries:
        embed.description = f"No ranked games played in the last {hours} hours."
        return embed

    for entry in event.entries[:MAX_FIELDS]:
        emoji = "📈" if entry.lp_delta > 0 else "📉"
        delta = RankDelta(lp_delta=entry.lp_delta, estimated=entry.estimated)
        before, after = entry.rank_before.label, entry.rank_after.label
        value = "\n".join(
            [
                f"🎯 {_category_name(entry.queue_type)}",
                f"{emoji} {format_lp_delta(delta)}",
                f"🎮 {entry.wins}W - {entry.losses}L",
                f"🏆 {before} → {after}" if before != after else f"🏆 {after}",
            ]
        )
        embed.add_field(name=entry.account.riot_id, value=value, inline=False)
    return embed


def stats_embed(accounts: list[AccountStats]) -> discord.Embed:
    embed = discord.Embed(
        title="📊 Your Registered Accounts",
        description=f"You have {len(accounts)} account(s) registered",
        color=EmbedColor.INFO.value,
    )
    queues = list(QUEUE_CATEGORY_NAMES.items())
    for stats in accounts:
        lines = []
        for queue, label in queues:
            entry = stats.entry(queue.value)
            if entry is None:
                lines.append(f"**{label}:** Unranked")
                continue
            lines.append(
                f"**{label}:** {rank_text(entry)} · {entry.wins}W - {entry.losses}L ({entry.win_rate:.1f}%)"
            )
        if len(embed.fields) >= MAX_FIELDS:
            break
        embed.add_field(name=stats.account.riot_id, value="\n".join(lines), inline=False)
    return embed
