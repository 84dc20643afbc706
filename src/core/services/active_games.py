"""In-memory record of which tracked accounts are currently in a game."""

from __future__ import annotations

from collections.abc import Iterator


class ActiveGameState:
    """Account id -> match id of the game the account was last seen playing.

    Process-scoped and never persisted: a restart forgets in-progress games
    and completion is then picked up from match history instead. Each
    tracker owns its own instance so LoL and TFT never share entries.
    """

    def __init__(self) -> None:
        self._games: dict[int, str] = {}

    def get(self, account_id: int) -> str | None:
        return self._games.get(account_id)

    def set(self, account_id: int, match_id: str) -> None:
        self._games[account_id] = match_id

    def pop(self, account_id: int) -> str | None:
        return self._games.pop(account_id, None)

    def is_active(self, account_id: int) -> bool:
        return account_id in self._games

    def discard_missing(self, known_ids: set[int]) -> list[int]:
        """Drop entries of accounts that are no longer tracked."""
        stale = [account_id for account_id in self._games if account_id not in known_ids]
        for account_id in stale:
            del self._games[account_id]
        return stale

    def clear(self) -> None:
        self._games.clear()

    def __len__(self) -> int:
        return len(self._games)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._games

    def __iter__(self) -> Iterator[tuple[int, str]]:
        return iter(list(self._games.items()))
