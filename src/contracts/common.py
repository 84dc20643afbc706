"""
Common data types and base models for the LP tracker.
All models use Pydantic V2.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Tier(str, Enum):
    """Ranked tiers, lowest first."""

    IRON = "IRON"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"
    EMERALD = "EMERALD"
    DIAMOND = "DIAMOND"
    MASTER = "MASTER"
    GRANDMASTER = "GRANDMASTER"
    CHALLENGER = "CHALLENGER"


class Division(str, Enum):
    """Ranked divisions, weakest first."""

    DIV_IV = "IV"
    DIV_III = "III"
    DIV_II = "II"
    DIV_I = "I"


# Tiers without divisions; Riot still reports them as division "I".
APEX_TIERS: frozenset[str] = frozenset(
    {Tier.MASTER.value, Tier.GRANDMASTER.value, Tier.CHALLENGER.value}
)

TIER_ORDER: tuple[str, ...] = tuple(t.value for t in Tier)
DIVISION_ORDER: tuple[str, ...] = tuple(d.value for d in Division)


class QueueCategory(str, Enum):
    """Ranked queue categories as reported by the league endpoints."""

    RANKED_SOLO_5x5 = "RANKED_SOLO_5x5"
    RANKED_FLEX_SR = "RANKED_FLEX_SR"
    RANKED_TFT = "RANKED_TFT"


# Queue id -> ranked category. Anything missing here is not a ranked queue.
LOL_RANKED_QUEUES: dict[int, QueueCategory] = {
    420: QueueCategory.RANKED_SOLO_5x5,
    440: QueueCategory.RANKED_FLEX_SR,
}

TFT_RANKED_QUEUES: dict[int, QueueCategory] = {
    1100: QueueCategory.RANKED_TFT,
}

QUEUE_NAMES: dict[int, str] = {
    400: "Normal Draft",
    420: "Ranked Solo/Duo",
    430: "Normal Blind",
    440: "Ranked Flex",
    450: "ARAM",
    900: "URF",
    1090: "Normal TFT",
    1100: "Ranked TFT",
    1110: "TFT Tutorial",
}

QUEUE_CATEGORY_NAMES: dict[QueueCategory, str] = {
    QueueCategory.RANKED_SOLO_5x5: "Solo/Duo",
    QueueCategory.RANKED_FLEX_SR: "Flex",
    QueueCategory.RANKED_TFT: "Ranked TFT",
}


def queue_name(queue_id: int) -> str:
    """Human readable queue label for a raw queue id."""
    return QUEUE_NAMES.get(queue_id, f"Queue {queue_id}")


def parse_queue_categories(raw: str) -> tuple[frozenset[QueueCategory], list[str]]:
    """Parse a comma separated list of queue category names.

    Returns the recognised categories and the names that were ignored.
    """
    known: set[QueueCategory] = set()
    unknown: list[str] = []
    for part in (raw or "").split(","):
        name = part.strip()
        if not name:
            continue
        try:
            known.add(QueueCategory(name))
        except ValueError:
            unknown.append(name)
    return frozenset(known), unknown


class BaseContract(BaseModel):
    """Base model for all data contracts with common configuration."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        frozen=False,
    )
