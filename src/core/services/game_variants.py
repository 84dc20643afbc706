"""Game variant capability sets.

LoL and TFT are tracked by the same engine; a ``GameVariant`` bundles
everything that differs between them: the upstream adapter, the ranked
queues worth announcing and how long match history needs to settle.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from src.contracts.common import QueueCategory
from src.core.ports import GameDataPort

LOL_DEFAULT_QUEUES: frozenset[QueueCategory] = frozenset(
    {QueueCategory.RANKED_SOLO_5x5, QueueCategory.RANKED_FLEX_SR}
)
TFT_DEFAULT_QUEUES: frozenset[QueueCategory] = frozenset({QueueCategory.RANKED_TFT})


@dataclass(frozen=True)
class GameVariant:
    key: str
    label: str
    api: GameDataPort = field(compare=False)
    tracked_queues: frozenset[QueueCategory]
    settle_delay_seconds: float = 0.0

    def qualifies(self, queue_type: QueueCategory | str | None) -> bool:
        """True when the queue category is one this variant announces."""
        if queue_type is None:
            return False
        try:
            return QueueCategory(queue_type) in self.tracked_queues
        except ValueError:
            return False

    @property
    def queue_names(self) -> list[str]:
        return sorted(q.value for q in self.tracked_queues)


def build_lol_variant(
    api: GameDataPort,
    *,
    tracked_queues: Iterable[QueueCategory] | None = None,
    settle_delay_seconds: float = 5.0,
) -> GameVariant:
    queues = frozenset(tracked_queues) if tracked_queues is not None else LOL_DEFAULT_QUEUES
    return GameVariant(
        key="lol",
        label="League of Legends",
        api=api,
        tracked_queues=queues & LOL_DEFAULT_QUEUES,
        settle_delay_seconds=settle_delay_seconds,
    )


def build_tft_variant(
    api: GameDataPort,
    *,
    tracked_queues: Iterable[QueueCategory] | None = None,
    settle_delay_seconds: float = 10.0,
) -> GameVariant:
    queues = frozenset(tracked_queues) if tracked_queues is not None else TFT_DEFAULT_QUEUES
    return GameVariant(
        key="tft",
        label="Teamfight Tactics",
        api=api,
        tracked_queues=queues & TFT_DEFAULT_QUEUES,
        settle_delay_seconds=settle_delay_seconds,
    )
