"""View exports

This package exposes the renderers used to transform tracking events
into Discord embeds.
"""

from src.core.views.notification_embeds import (
    game_end_embed,
    game_start_embed,
    recap_embed,
    stats_embed,
)

__all__ = ["game_end_embed", "game_start_embed", "recap_embed", "stats_embed"]
