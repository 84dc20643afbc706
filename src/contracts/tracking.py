"""
Tracking data contracts.

Typed records exchanged between the reconciliation core, the upstream
Riot adapters and the persistence layer.
"""

from datetime import datetime

from pydantic import Field

from .common import APEX_TIERS, BaseContract, QueueCategory


class RiotAccount(BaseContract):
    """Riot account resolved from a Riot ID."""

    puuid: str = Field(..., description="Player's PUUID")
    game_name: str = Field(..., description="Game name")
    tag_line: str = Field(..., description="Tag line")


class TrackedAccount(BaseContract):
    """A Riot account registered for tracking by a Discord user."""

    id: int = Field(..., description="Local account id (durable join key)")
    discord_user_id: str = Field(..., description="Owning Discord user id")
    game_name: str = Field(..., description="Game name")
    tag_line: str = Field(..., description="Tag line")
    puuid: str = Field(..., description="Riot PUUID")
    created_at: datetime | None = Field(None, description="Registration timestamp")

    @property
    def riot_id(self) -> str:
        return f"{self.game_name}#{self.tag_line}"


class RankState(BaseContract):
    """Tier / division / LP triple used for delta arithmetic."""

    tier: str
    rank: str
    league_points: int = 0

    @property
    def label(self) -> str:
        if self.tier.upper() in APEX_TIERS:
            return self.tier
        return f"{self.tier} {self.rank}"


class RankEntry(BaseContract):
    """One ranked queue entry as reported by the league endpoints."""

    queue_type: str = Field(..., description="Queue category (e.g. RANKED_SOLO_5x5)")
    tier: str = Field(..., description="Tier (IRON to CHALLENGER)")
    rank: str = Field(..., description="Division within tier")
    league_points: int = Field(0, description="League points")
    wins: int = Field(0, ge=0)
    losses: int = Field(0, ge=0)

    @property
    def state(self) -> RankState:
        return RankState(tier=self.tier, rank=self.rank, league_points=self.league_points)

    @property
    def win_rate(self) -> float:
        total_games = self.wins + self.losses
        if total_games == 0:
            return 0.0
        return (self.wins / total_games) * 100


class RankSnapshot(BaseContract):
    """Append-only record of an account's rank in one queue at one instant."""

    account_id: int
    queue_type: str
    tier: str
    rank: str
    league_points: int
    wins: int
    losses: int
    recorded_at: datetime

    @property
    def state(self) -> RankState:
        return RankState(tier=self.tier, rank=self.rank, league_points=self.league_points)


class TrackedMatch(BaseContract):
    """Per (account, match) notification state."""

    account_id: int
    match_id: str
    variant: str = "lol"
    game_start_time: datetime
    game_end_time: datetime | None = None
    notified_start: bool = False
    notified_end: bool = False
    lp_before: int | None = None
    tier_before: str | None = None
    rank_before: str | None = None

    @property
    def rank_before_state(self) -> RankState | None:
        if self.lp_before is None or not self.tier_before or not self.rank_before:
            return None
        return RankState(
            tier=self.tier_before, rank=self.rank_before, league_points=self.lp_before
        )


class LiveParticipant(BaseContract):
    puuid: str
    champion_id: int | None = None


class LiveGame(BaseContract):
    """A game currently in progress according to the spectator endpoint."""

    match_id: str = Field(..., description="Match id in match-history format ({platform}_{gameId})")
    queue_id: int
    queue_type: QueueCategory | None = Field(None, description="Ranked category, None if unranked")
    start_time: datetime | None = None
    participants: list[LiveParticipant] = Field(default_factory=list)

    def participant(self, puuid: str) -> LiveParticipant | None:
        return next((p for p in self.participants if p.puuid == puuid), None)


class ParticipantResult(BaseContract):
    """Stat line of one participant in a finished match.

    LoL fills champion / KDA / CS / win, TFT fills placement / level /
    gold / damage; fields of the other game stay unset.
    """

    puuid: str
    win: bool | None = None
    champion_id: int | None = None
    champion_name: str | None = None
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    creep_score: int = 0
    placement: int | None = None
    level: int | None = None
    gold_left: int | None = None
    damage_to_players: int | None = None
    last_round: int | None = None

    @property
    def kda_ratio(self) -> float | None:
        if self.deaths == 0:
            return None
        return (self.kills + self.assists) / self.deaths


class MatchDetail(BaseContract):
    """A finished match from the match-history endpoints."""

    match_id: str
    queue_id: int
    queue_type: QueueCategory | None = None
    duration_seconds: int = Field(0, ge=0)
    start_time: datetime | None = None
    end_time: datetime | None = None
    participants: list[ParticipantResult] = Field(default_factory=list)

    def participant(self, puuid: str) -> ParticipantResult | None:
        return next((p for p in self.participants if p.puuid == puuid), None)
