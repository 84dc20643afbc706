"""LP / rank delta arithmetic (pure functions).

Exact LP movement is only known while the tier and division stay the
same. Across a promotion or demotion the upstream API exposes no
per-division history, so the delta is estimated from a fixed number of
points per division and flagged as ``estimated``.
"""

from __future__ import annotations

from src.contracts.common import APEX_TIERS, DIVISION_ORDER, TIER_ORDER
from src.contracts.events import RankDelta
from src.contracts.tracking import RankState

DEFAULT_POINTS_PER_DIVISION = 100

_DIVIDED_TIERS: tuple[str, ...] = tuple(t for t in TIER_ORDER if t not in APEX_TIERS)
_APEX_ORDER: tuple[str, ...] = tuple(t for t in TIER_ORDER if t in APEX_TIERS)


def ladder_position(tier: str, rank: str) -> int:
    """Return the absolute division index of a tier/division pair.

    IRON IV is 0. Apex tiers count as a single division each.

    Raises:
        ValueError: unknown tier or division.
    """
    t = (tier or "").strip().upper()
    if t in APEX_TIERS:
        return len(_DIVIDED_TIERS) * len(DIVISION_ORDER) + _APEX_ORDER.index(t)
    if t not in _DIVIDED_TIERS:
        raise ValueError(f"Unknown tier: {tier!r}")
    r = (rank or "").strip().upper()
    if r not in DIVISION_ORDER:
        raise ValueError(f"Unknown division {rank!r} for tier {t}")
    return _DIVIDED_TIERS.index(t) * len(DIVISION_ORDER) + DIVISION_ORDER.index(r)


def is_apex(tier: str) -> bool:
    return (tier or "").strip().upper() in APEX_TIERS


def compute_rank_delta(
    before: RankState,
    after: RankState,
    points_per_division: int = DEFAULT_POINTS_PER_DIVISION,
) -> RankDelta:
    """Compute the signed LP movement from ``before`` to ``after``.

    Same division: plain LP difference (0 does not imply no game was
    played; compare win/loss counts for that).

    Division changed: (distance from ``before`` to the boundary)
    + (distance from the boundary to ``after``)
    + (divisions crossed - 1) * points_per_division, negated on demotion.

    Apex tiers share one continuous LP scale, so apex to apex moves are
    exact.
    """
    start = ladder_position(before.tier, before.rank)
    end = ladder_position(after.tier, after.rank)

    if start == end:
        return RankDelta(lp_delta=after.league_points - before.league_points)

    if is_apex(before.tier) and is_apex(after.tier):
        return RankDelta(
            lp_delta=after.league_points - before.league_points,
            rank_changed=True,
        )

    crossed = abs(end - start)
    if end > start:
        lp_delta = (
            (points_per_division - before.league_points)
            + after.league_points
            + (crossed - 1) * points_per_division
        )
    else:
        lp_delta = -(
            before.league_points
            + (points_per_division - after.league_points)
            + (crossed - 1) * points_per_division
        )
    return RankDelta(lp_delta=lp_delta, rank_changed=True, estimated=True)


def safe_rank_delta(
    before: RankState | None,
    after: RankState | None,
    points_per_division: int = DEFAULT_POINTS_PER_DIVISION,
) -> RankDelta | None:
    """Like compute_rank_delta but None when either side is missing or unparseable."""
    if before is None or after is None:
        return None
    try:
        return compute_rank_delta(before, after, points_per_division)
    except ValueError:
        return None
