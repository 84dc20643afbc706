"""Collapse per-account observations of one match into one notification unit."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from src.contracts.tracking import LiveGame, MatchDetail, TrackedAccount


@dataclass(frozen=True)
class StartCandidate:
    """An account seen entering a qualifying live game during this tick."""

    account: TrackedAccount
    game: LiveGame


@dataclass
class StartGroup:
    match_id: str
    game: LiveGame
    members: list[StartCandidate] = field(default_factory=list)

    @property
    def is_group(self) -> bool:
        return len(self.members) > 1


def group_starts(candidates: Iterable[StartCandidate]) -> list[StartGroup]:
    """Bucket same-tick start candidates by match id.

    Groups keep first-seen order; an account appears at most once per
    group. Different match ids are never merged.
    """
    groups: dict[str, StartGroup] = {}
    for candidate in candidates:
        group = groups.get(candidate.game.match_id)
        if group is None:
            group = StartGroup(match_id=candidate.game.match_id, game=candidate.game)
            groups[candidate.game.match_id] = group
        if any(m.account.id == candidate.account.id for m in group.members):
            continue
        group.members.append(candidate)
    return list(groups.values())


def find_co_tracked(detail: MatchDetail, accounts: Iterable[TrackedAccount]) -> list[TrackedAccount]:
    """Tracked accounts that took part in a finished match.

    Participants are matched by puuid, which is unique per tracked
    account. Order follows the participant list so notifications list
    players consistently; a puuid repeated in the payload yields one entry.
    """
    by_puuid = {account.puuid: account for account in accounts}

    members: list[TrackedAccount] = []
    seen: set[int] = set()
    for participant in detail.participants:
        account = by_puuid.get(participant.puuid)
        if account is None or account.id in seen:
            continue
        seen.add(account.id)
        members.append(account)
    return members
