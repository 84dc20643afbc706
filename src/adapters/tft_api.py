"""Riot API adapter for Teamfight Tactics.

Reuses the LoL adapter's HTTP plumbing; only endpoints and payload
parsing differ.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from src.adapters.riot_api import (
    RiotHTTPClient,
    live_match_id,
    ms_to_datetime,
    parse_rank_entries,
)
from src.contracts.common import TFT_RANKED_QUEUES
from src.contracts.tracking import (
    LiveGame,
    LiveParticipant,
    MatchDetail,
    ParticipantResult,
    RankEntry,
)
from src.core.ports import GameDataPort

logger = logging.getLogger(__name__)


class TFTAPIAdapter(RiotHTTPClient, GameDataPort):
    """Teamfight Tactics upstream."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        logger.info(f"TFT API adapter initialized (platform={self.platform}, region={self.region})")

    async def get_rank_entries(self, puuid: str) -> list[RankEntry]:
        url = f"{self.platform_base}/tft/league/v1/by-puuid/{puuid}"
        return parse_rank_entries(await self._get_json(url, what="TFT league entries"))

    async def get_live_game(self, puuid: str) -> LiveGame | None:
        url = f"{self.platform_base}/lol/spectator/tft/v5/active-games/by-puuid/{puuid}"
        data = await self._get_json(url, what="TFT spectator", raise_on_error=True)
        if not isinstance(data, dict):
            return None
        try:
            queue_id = int(data.get("gameQueueConfigId") or 0)
            return LiveGame(
                match_id=live_match_id(data),
                queue_id=queue_id,
                queue_type=TFT_RANKED_QUEUES.get(queue_id),
                start_time=ms_to_datetime(data.get("gameStartTime")),
                participants=[
                    LiveParticipant(puuid=p["puuid"])
                    for p in data.get("participants", [])
                    if isinstance(p, dict) and p.get("puuid")
                ],
            )
        except (ValidationError, TypeError, ValueError) as e:
            logger.error(f"Malformed TFT spectator payload: {e}")
            return None

    async def get_recent_match_ids(self, puuid: str, count: int = 1) -> list[str]:
        url = f"{self.regional_base}/tft/match/v1/matches/by-puuid/{puuid}/ids"
        data = await self._get_json(url, what="TFT match IDs", params={"count": max(1, min(count, 100))})
        return [str(m) for m in data] if isinstance(data, list) else []

    async def get_match_detail(self, match_id: str) -> MatchDetail | None:
        url = f"{self.regional_base}/tft/match/v1/matches/{match_id}"
        data = await self._get_json(url, what="TFT match details")
        if not isinstance(data, dict):
            return None
        try:
            return self._parse_match(match_id, data)
        except (ValidationError, TypeError, ValueError, KeyError) as e:
            logger.error(f"Malformed TFT match payload for {match_id}: {e}")
            return None

    @staticmethod
    def _parse_match(match_id: str, data: dict[str, Any]) -> MatchDetail:
        info = data.get("info") or {}
        queue_id = int(info.get("queue_id") or info.get("queueId") or 0)
        duration = int(float(info.get("game_length") or 0))
        end_time = ms_to_datetime(info.get("game_datetime"))

        participants = []
        for p in info.get("participants", []):
            if not isinstance(p, dict) or not p.get("puuid"):
                continue
            placement = int(p.get("placement") or 0) or None
            participants.append(
                ParticipantResult(
                    puuid=p["puuid"],
                    win=placement is not None and placement <= 4,
                    placement=placement,
                    level=p.get("level"),
                    gold_left=p.get("gold_left"),
                    damage_to_players=p.get("total_damage_to_players"),
                    last_round=p.get("last_round"),
                )
            )
        return MatchDetail(
            match_id=(data.get("metadata") or {}).get("match_id") or match_id,
            queue_id=queue_id,
            queue_type=TFT_RANKED_QUEUES.get(queue_id),
            duration_seconds=duration,
            start_time=None,
            end_time=end_time,
            participants=participants,
        )
