"""Delta calculator tests."""

import pytest

from src.contracts import RankState
from src.core.domain.rank_delta import compute_rank_delta, ladder_position, safe_rank_delta


def _state(tier: str, rank: str, lp: int) -> RankState:
    return RankState(tier=tier, rank=rank, league_points=lp)


def test_same_division_is_exact() -> None:
    delta = compute_rank_delta(_state("GOLD", "II", 40), _state("GOLD", "II", 58))

    assert delta.lp_delta == 18
    assert not delta.rank_changed
    assert not delta.estimated


def test_same_division_zero_delta() -> None:
    assert compute_rank_delta(_state("GOLD", "II", 40), _state("GOLD", "II", 40)).lp_delta == 0


def test_single_promotion_is_estimated() -> None:
    delta = compute_rank_delta(_state("GOLD", "I", 90), _state("PLATINUM", "IV", 10))

    assert delta.lp_delta == 20
    assert delta.estimated
    assert delta.promoted


def test_single_demotion_is_negative() -> None:
    delta = compute_rank_delta(_state("PLATINUM", "IV", 10), _state("GOLD", "I", 75))

    assert delta.lp_delta == -35
    assert delta.demoted


def test_multi_division_crossing_adds_full_divisions() -> None:
    # GOLD IV 50 -> GOLD I 20: 50 to the boundary, two full divisions, then 20
    delta = compute_rank_delta(_state("GOLD", "IV", 50), _state("GOLD", "I", 20))

    assert delta.lp_delta == 50 + 2 * 100 + 20


def test_points_per_division_is_configurable() -> None:
    delta = compute_rank_delta(_state("GOLD", "I", 90), _state("PLATINUM", "IV", 10), points_per_division=80)

    assert delta.lp_delta == (80 - 90) + 10


def test_apex_to_apex_is_exact() -> None:
    delta = compute_rank_delta(_state("MASTER", "I", 480), _state("GRANDMASTER", "I", 520))

    assert delta.lp_delta == 40
    assert delta.rank_changed
    assert not delta.estimated


def test_diamond_to_master_uses_boundary_estimate() -> None:
    delta = compute_rank_delta(_state("DIAMOND", "I", 85), _state("MASTER", "I", 5))

    assert delta.lp_delta == 20
    assert delta.estimated


def test_ladder_positions_are_ordered() -> None:
    assert ladder_position("IRON", "IV") == 0
    assert ladder_position("iron", "i") == 3
    assert ladder_position("EMERALD", "I") < ladder_position("DIAMOND", "IV")
    assert ladder_position("DIAMOND", "I") < ladder_position("MASTER", "I")
    assert ladder_position("MASTER", "I") < ladder_position("CHALLENGER", "I")


@pytest.mark.parametrize(("tier", "rank"), [("WOOD", "I"), ("GOLD", "V"), ("", "")])
def test_unknown_rank_raises(tier: str, rank: str) -> None:
    with pytest.raises(ValueError):
        ladder_position(tier, rank)


def test_safe_rank_delta_handles_missing_and_unknown() -> None:
    assert safe_rank_delta(None, _state("GOLD", "I", 10)) is None
    assert safe_rank_delta(_state("GOLD", "I", 10), None) is None
    assert safe_rank_delta(_state("WOOD", "I", 10), _state("GOLD", "I", 10)) is None
    assert safe_rank_delta(_state("GOLD", "I", 10), _state("GOLD", "I", 30)).lp_delta == 20
