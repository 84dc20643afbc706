"""Adapter implementations for external services."""

from .database import DatabaseAdapter
from .riot_api import RateLimitError, RiotAPIAdapter, RiotAPIError
from .tft_api import TFTAPIAdapter

__all__ = ["DatabaseAdapter", "RateLimitError", "RiotAPIAdapter", "RiotAPIError", "TFTAPIAdapter"]
