"""Riot API adapter for League of Legends (REST over aiohttp).

Provides:
- Account-V1 (riot id -> puuid)
- League-V4 entries by puuid
- Spectator-V5 live game
- Match-V5 ids / match

Implements GameDataPort with consistent async semantics and session reuse.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from src.config.settings import settings
from src.contracts.common import LOL_RANKED_QUEUES
from src.contracts.tracking import (
    LiveGame,
    LiveParticipant,
    MatchDetail,
    ParticipantResult,
    RankEntry,
    RiotAccount,
)
from src.core.ports import GameDataPort


class RiotAPIError(Exception):
    def __init__(
        self, message: str, status_code: int | None = None, retry_after: int | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


class RateLimitError(RiotAPIError):
    def __init__(self, retry_after: int) -> None:
        super().__init__("Rate limit exceeded", status_code=429, retry_after=retry_after)


logger = logging.getLogger(__name__)


def ms_to_datetime(value: Any) -> datetime | None:
    """Riot epoch milliseconds -> aware datetime; None for 0 / missing."""
    try:
        ms = int(value or 0)
    except (TypeError, ValueError):
        return None
    if ms <= 0:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=UTC)


def live_match_id(payload: dict[str, Any]) -> str:
    """Rebuild the match-history id (``EUW1_123``) of a spectator payload.

    The spectator ``gameId`` alone never equals the history id, so start
    and end rows of one game would otherwise not share a key.
    """
    platform = str(payload.get("platformId") or "").upper()
    game_id = payload.get("gameId")
    return f"{platform}_{game_id}" if platform else str(game_id)


def parse_rank_entries(data: Any) -> list[RankEntry]:
    entries: list[RankEntry] = []
    if not isinstance(data, list):
        return entries
    for raw in data:
        if not isinstance(raw, dict) or not raw.get("tier"):
            # Unrated queues (e.g. Hyper Roll) carry no tier.
            continue
        try:
            entries.append(
                RankEntry(
                    queue_type=str(raw.get("queueType", "")),
                    tier=str(raw["tier"]).upper(),
                    rank=str(raw.get("rank") or "I").upper(),
                    league_points=int(raw.get("leaguePoints", 0)),
                    wins=int(raw.get("wins", 0)),
                    losses=int(raw.get("losses", 0)),
                )
            )
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed league entry: {e}")
    return entries


class RiotHTTPClient:
    """Shared aiohttp plumbing for the Riot REST adapters."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        platform: str | None = None,
        region: str | None = None,
        timeout_seconds: int | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.riot_api_key
        self.platform = (platform or settings.riot_platform).lower()
        self.region = (region or settings.riot_region).lower()
        self._timeout_seconds = timeout_seconds or settings.riot_request_timeout_seconds
        self._session: Any | None = None
        self._session_loop: asyncio.AbstractEventLoop | None = None

    @property
    def platform_base(self) -> str:
        return f"https://{self.platform}.api.riotgames.com"

    @property
    def regional_base(self) -> str:
        return f"https://{self.region}.api.riotgames.com"

    async def _ensure_session(self):
        loop = asyncio.get_running_loop()
        needs_new_session = (
            self._session is None
            or getattr(self._session, "closed", True)
            or self._session_loop is None
            or self._session_loop is not loop
        )
        if needs_new_session:
            if self._session and not getattr(self._session, "closed", True):
                try:
                    await self._session.close()
                except Exception:
                    logger.warning("Failed to close stale Riot API session", exc_info=True)
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._session_loop = loop
        return self._session

    async def close(self) -> None:
        try:
            if self._session and not self._session.closed:
                await self._session.close()
        except Exception:
            logger.debug("Error closing Riot API session", exc_info=True)
        finally:
            self._session = None
            self._session_loop = None

    async def _get_json(
        self,
        url: str,
        *,
        what: str,
        params: dict[str, Any] | None = None,
        raise_on_error: bool = False,
    ) -> Any | None:
        """GET ``url`` and return its JSON body.

        404 -> None. 429 -> RateLimitError, 403 -> RiotAPIError. Any other
        failure is logged and returns None, or raises RiotAPIError when
        ``raise_on_error`` is set.
        """
        headers = {"X-Riot-Token": self._api_key}
        try:
            session = await self._ensure_session()
            async with session.get(url, headers=headers, params=params) as resp:
                if resp.status == 200:
                    return await resp.json()
                if resp.status == 404:
                    return None
                if resp.status == 429:
                    raise RateLimitError(int(resp.headers.get("Retry-After", "60")))
                if resp.status == 403:
                    raise RiotAPIError("Forbidden: Check API key permissions", status_code=403)
                body = await resp.text()
                if raise_on_error:
                    raise RiotAPIError(f"{what} failed with {resp.status}", status_code=resp.status)
                logger.error(f"{what} API error {resp.status}: {body[:200]}")
                return None
        except RiotAPIError:
            raise
        except Exception as e:
            if raise_on_error:
                raise RiotAPIError(f"{what} request failed: {e}") from e
            logger.error(f"{what} request error: {e}")
            return None

    async def resolve_account(self, game_name: str, tag_line: str) -> RiotAccount | None:
        url = (
            f"{self.regional_base}/riot/account/v1/accounts/by-riot-id/"
            f"{quote(game_name)}/{quote(tag_line)}"
        )
        data = await self._get_json(url, what="Account")
        if not isinstance(data, dict) or not data.get("puuid"):
            return None
        return RiotAccount(
            puuid=data["puuid"],
            game_name=data.get("gameName") or game_name,
            tag_line=data.get("tagLine") or tag_line,
        )


class RiotAPIAdapter(RiotHTTPClient, GameDataPort):
    """League of Legends upstream."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        logger.info(f"Riot API adapter initialized (platform={self.platform}, region={self.region})")

    async def get_rank_entries(self, puuid: str) -> list[RankEntry]:
        url = f"{self.platform_base}/lol/league/v4/entries/by-puuid/{puuid}"
        return parse_rank_entries(await self._get_json(url, what="League entries"))

    async def get_live_game(self, puuid: str) -> LiveGame | None:
        url = f"{self.platform_base}/lol/spectator/v5/active-games/by-summoner/{puuid}"
        data = await self._get_json(url, what="Spectator", raise_on_error=True)
        if not isinstance(data, dict):
            return None
        return self._parse_live_game(data)

    async def get_recent_match_ids(self, puuid: str, count: int = 1) -> list[str]:
        url = f"{self.regional_base}/lol/match/v5/matches/by-puuid/{puuid}/ids"
        data = await self._get_json(
            url, what="Match IDs", params={"start": 0, "count": max(1, min(count, 100))}
        )
        return [str(m) for m in data] if isinstance(data, list) else []

    async def get_match_detail(self, match_id: str) -> MatchDetail | None:
        url = f"{self.regional_base}/lol/match/v5/matches/{match_id}"
        data = await self._get_json(url, what="Match details")
        if not isinstance(data, dict):
            return None
        try:
            return self._parse_match(match_id, data)
        except (ValidationError, TypeError, ValueError, KeyError) as e:
            logger.error(f"Malformed match payload for {match_id}: {e}")
            return None

    @staticmethod
    def _parse_live_game(data: dict[str, Any]) -> LiveGame | None:
        try:
            queue_id = int(data.get("gameQueueConfigId") or 0)
            return LiveGame(
                match_id=live_match_id(data),
                queue_id=queue_id,
                queue_type=LOL_RANKED_QUEUES.get(queue_id),
                start_time=ms_to_datetime(data.get("gameStartTime")),
                participants=[
                    LiveParticipant(puuid=p["puuid"], champion_id=p.get("championId"))
                    for p in data.get("participants", [])
                    if isinstance(p, dict) and p.get("puuid")
                ],
            )
        except (ValidationError, TypeError, ValueError) as e:
            logger.error(f"Malformed spectator payload: {e}")
            return None

    @staticmethod
    def _parse_match(match_id: str, data: dict[str, Any]) -> MatchDetail:
        info = data.get("info") or {}
        queue_id = int(info.get("queueId") or 0)
        duration = int(info.get("gameDuration") or 0)
        if not info.get("gameEndTimestamp"):
            # Pre-11.20 matches report the duration in milliseconds.
            duration //= 1000

        participants = [
            ParticipantResult(
                puuid=p["puuid"],
                win=bool(p.get("win")),
                champion_id=p.get("championId"),
                champion_name=p.get("championName"),
                kills=int(p.get("kills", 0)),
                deaths=int(p.get("deaths", 0)),
                assists=int(p.get("assists", 0)),
                creep_score=int(p.get("totalMinionsKilled", 0)) + int(p.get("neutralMinionsKilled", 0)),
            )
            for p in info.get("participants", [])
            if isinstance(p, dict) and p.get("puuid")
        ]
        return MatchDetail(
            match_id=(data.get("metadata") or {}).get("matchId") or match_id,
            queue_id=queue_id,
            queue_type=LOL_RANKED_QUEUES.get(queue_id),
            duration_seconds=duration,
            start_time=ms_to_datetime(info.get("gameStartTimestamp") or info.get("gameCreation")),
            end_time=ms_to_datetime(info.get("gameEndTimestamp")),
            participants=participants,
        )
