import logging
from typing import Any

import aiohttp

logger = logging.getLogger(__name__)


class ChampionCatalog:
    """Champion id -> display name lookup backed by Data Dragon.

    Spectator payloads only carry champion ids; finished matches already
    include the name. Lookups never hit the network: call ``refresh()``
    once at startup, unknown ids fall back to ``Champion <id>``.
    """

    def __init__(self, version: str | None = None, language: str = "en_US") -> None:
        self.base_url = "https://ddragon.leagueoflegends.com"
        self.version = version
        self.language = language
        self._names: dict[int, str] = {}
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "ChampionCatalog":
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None

    async def get_latest_version(self) -> str | None:
        """Fetch the latest game version from versions.json"""
        try:
            if not self.session:
                self.session = aiohttp.ClientSession()

            async with self.session.get(f"{self.base_url}/api/versions.json") as response:
                if response.status == 200:
                    versions = await response.json()
                    return versions[0] if versions else None
                logger.warning(f"Failed to fetch latest version. Status: {response.status}")
                return None
        except Exception as e:
            logger.warning(f"Network error while fetching latest version: {e}")
            return None

    async def refresh(self) -> int:
        """Load champion names for the configured (or latest) version.

        Returns:
            Number of champions known after the refresh
        """
        version = self.version or await self.get_latest_version()
        if not version:
            return len(self._names)

        try:
            if not self.session:
                self.session = aiohttp.ClientSession()

            url = f"{self.base_url}/cdn/{version}/data/{self.language}/champion.json"
            async with self.session.get(url) as response:
                if response.status != 200:
                    logger.warning(f"Failed to fetch champion data. Status: {response.status}")
                    return len(self._names)
                data = await response.json()
        except Exception as e:
            logger.warning(f"Network error while fetching champion data: {e}")
            return len(self._names)

        names: dict[int, str] = {}
        for champion in (data.get("data") or {}).values():
            try:
                names[int(champion.get("key", 0))] = str(champion.get("name"))
            except (TypeError, ValueError):
                continue
        if names:
            self._names = names
            self.version = version
            logger.info(f"Loaded {len(names)} champion names (ddragon {version})")
        return len(self._names)

    def name_for(self, champion_id: int | None) -> str:
        if champion_id is None:
            return "Unknown"
        return self._names.get(int(champion_id), f"Champion {champion_id}")

    def get_champion_image_url(self, champion_key: str) -> str:
        """Get champion image URL by champion key"""
        return f"{self.base_url}/cdn/{self.version or ''}/img/champion/{champion_key}.png"
