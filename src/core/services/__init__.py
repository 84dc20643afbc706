"""Service layer implementing business logic.

Services connect ports (interfaces) with adapters (implementations),
providing high-level business operations to the application layer.
"""

from src.core.services.account_registry import AccountRegistryService
from src.core.services.active_games import ActiveGameState
from src.core.services.daily_recap import DailyRecapService
from src.core.services.game_tracker import GameTracker, TickSummary
from src.core.services.game_variants import GameVariant, build_lol_variant, build_tft_variant

__all__ = [
    "AccountRegistryService",
    "ActiveGameState",
    "DailyRecapService",
    "GameTracker",
    "TickSummary",
    "GameVariant",
    "build_lol_variant",
    "build_tft_variant",
]
