"""Grouping engine and ActiveGameState tests."""

from __future__ import annotations

from src.core.services.active_games import ActiveGameState
from src.core.services.match_grouping import StartCandidate, find_co_tracked, group_starts
from tests.fakes import InMemoryStore, live_game, match_detail


def test_group_starts_buckets_by_match_id_in_first_seen_order() -> None:
    store = InMemoryStore()
    alice, bob, carol = (store.seed_account(n) for n in ("Alice", "Bob", "Carol"))
    shared = live_game("EUW1_1", alice.puuid, bob.puuid)

    groups = group_starts(
        [
            StartCandidate(account=carol, game=live_game("EUW1_2", carol.puuid)),
            StartCandidate(account=alice, game=shared),
            StartCandidate(account=bob, game=shared),
        ]
    )

    assert [g.match_id for g in groups] == ["EUW1_2", "EUW1_1"]
    assert not groups[0].is_group
    assert groups[1].is_group
    assert [m.account.id for m in groups[1].members] == [alice.id, bob.id]


def test_group_starts_lists_an_account_once() -> None:
    store = InMemoryStore()
    alice = store.seed_account("Alice")
    game = live_game("EUW1_1", alice.puuid)

    groups = group_starts([StartCandidate(account=alice, game=game), StartCandidate(account=alice, game=game)])

    assert len(groups) == 1
    assert len(groups[0].members) == 1


def test_group_starts_empty() -> None:
    assert group_starts([]) == []


def test_find_co_tracked_follows_participant_order() -> None:
    store = InMemoryStore()
    alice = store.seed_account("Alice")
    bob = store.seed_account("Bob")
    store.seed_account("Carol")
    detail = match_detail("EUW1_1", "stranger", bob.puuid, alice.puuid)

    members = find_co_tracked(detail, store.accounts.values())

    assert [m.id for m in members] == [bob.id, alice.id]


def test_find_co_tracked_lists_a_repeated_participant_once() -> None:
    store = InMemoryStore()
    alice = store.seed_account("Alice")

    members = find_co_tracked(match_detail("EUW1_1", alice.puuid, "stranger", alice.puuid), [alice])

    assert [m.id for m in members] == [alice.id]


def test_active_game_state_transitions() -> None:
    state = ActiveGameState()
    state.set(1, "EUW1_1")
    state.set(2, "EUW1_2")

    assert state.is_active(1)
    assert 2 in state
    assert state.pop(1) == "EUW1_1"
    assert state.pop(1) is None
    assert state.discard_missing({3}) == [2]
    assert len(state) == 0
