"""
Discord adapter for handling bot interactions and commands.

Hosts the slash commands (/register, /unregister, /stats) and the channel
notifier that publishes tracker events.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

import discord
from discord import app_commands
from discord.ext import commands

from src.adapters.ddragon_adapter import ChampionCatalog
from src.config.settings import Settings, get_settings
from src.contracts.common import QUEUE_CATEGORY_NAMES
from src.contracts.events import GameEndEvent, GameStartEvent, RecapEvent
from src.contracts.registration import RegistrationResult
from src.core.observability import clear_correlation_id, set_correlation_id
from src.core.ports import NotificationSinkPort
from src.core.services.account_registry import AccountRegistryService
from src.core.views.notification_embeds import (
    EmbedColor,
    game_end_embed,
    game_start_embed,
    rank_text,
    recap_embed,
    stats_embed,
)

# Configure logging
logger = logging.getLogger(__name__)

ReadyCallback = Callable[[], Awaitable[None]]


class TrackerBot(commands.Bot):
    """Main Discord bot class for the LP tracker."""

    def __init__(self, settings: Settings | None = None, **kwargs: Any) -> None:
        """Initialize the bot with custom settings."""
        intents = discord.Intents.default()
        intents.guilds = True

        command_prefix = kwargs.pop("command_prefix", "!")
        super().__init__(command_prefix=command_prefix, intents=intents, **kwargs)

        self.settings = settings or get_settings()
        self.startup_time: datetime | None = None
        self._ready_callbacks: list[ReadyCallback] = []
        self._ready_fired = False

    def add_ready_callback(self, callback: ReadyCallback) -> None:
        self._ready_callbacks.append(callback)

    async def setup_hook(self) -> None:
        """Hook called when bot is getting ready."""
        logger.info("Setting up bot hooks...")

        if self.settings.discord_guild_id:
            # Development mode: sync to specific guild for instant updates
            guild = discord.Object(id=int(self.settings.discord_guild_id))
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info(f"Synced commands to guild {self.settings.discord_guild_id}")
        else:
            # Production mode: sync globally (may take up to 1 hour)
            await self.tree.sync()
            logger.info("Synced commands globally")

    async def on_ready(self) -> None:
        """Event triggered when bot is ready (also after reconnects)."""
        self.startup_time = datetime.now(UTC)
        logger.info(f"Bot {self.user} is ready!")
        logger.info(f"Connected to {len(self.guilds)} guilds")

        await self.change_presence(
            activity=discord.Game(name="/register to track your ranked games"),
            status=discord.Status.online,
        )

        if self._ready_fired:
            return
        self._ready_fired = True
        for callback in self._ready_callbacks:
            try:
                await callback()
            except Exception:
                logger.exception("Ready callback failed")


class DiscordChannelNotifier(NotificationSinkPort):
    """NotificationSinkPort posting embeds to one text channel.

    Send failures propagate so the tracker leaves the match unmarked and
    retries on its next tick.
    """

    def __init__(
        self,
        client: discord.Client,
        channel_id: int,
        champions: ChampionCatalog | None = None,
    ) -> None:
        self._client = client
        self._channel_id = channel_id
        self._champions = champions

    async def _channel(self) -> discord.abc.Messageable:
        channel = self._client.get_channel(self._channel_id)
        if channel is None:
            channel = await self._client.fetch_channel(self._channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            raise RuntimeError(f"Notification channel {self._channel_id} is not a text channel")
        return channel

    async def send_game_start(self, event: GameStartEvent) -> None:
        namer = self._champions.name_for if self._champions else None
        channel = await self._channel()
        await channel.send(embed=game_start_embed(event, champion_name=namer))

    async def send_game_end(self, event: GameEndEvent) -> None:
        image = self._champions.get_champion_image_url if self._champions else None
        channel = await self._channel()
        await channel.send(embed=game_end_embed(event, champion_image=image))

    async def send_recap(self, event: RecapEvent) -> None:
        channel = await self._channel()
        await channel.send(embed=recap_embed(event))


def registration_embed(result: RegistrationResult) -> discord.Embed:
    """Reply embed for /register and /unregister."""
    if result.success:
        embed = discord.Embed(title="✅ Done", description=result.message, color=EmbedColor.VICTORY.value)
        for queue, label in QUEUE_CATEGORY_NAMES.items():
            entry = next((e for e in result.rank_entries if e.queue_type == queue.value), None)
            if entry is not None:
                embed.add_field(name=label, value=rank_text(entry), inline=True)
        return embed
    return discord.Embed(title="❌ Error", description=result.message, color=EmbedColor.DEFEAT.value)


class DiscordAdapter:
    """Adapter for Discord interactions following hexagonal architecture."""

    def __init__(
        self,
        registry: AccountRegistryService,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the Discord adapter.

        Args:
            registry: Account registry use-cases behind the slash commands
            settings: Application settings (defaults to the global instance)
        """
        self.registry = registry
        self.settings = settings or get_settings()
        self.bot = TrackerBot(settings=self.settings)
        self._setup_commands()
        self._setup_event_handlers()

    def on_ready(self, callback: ReadyCallback) -> None:
        """Run ``callback`` once, the first time the gateway is ready."""
        self.bot.add_ready_callback(callback)

    def _setup_commands(self) -> None:
        """Set up slash commands."""

        @self.bot.tree.command(
            name="register",
            description="Register your League of Legends account for tracking",
        )
        @app_commands.describe(riot_id="Your Riot ID (e.g., PlayerName#EUW)")
        @app_commands.rename(riot_id="riot-id")
        async def register_command(interaction: discord.Interaction, riot_id: str) -> None:
            await self._handle_register_command(interaction, riot_id)

        @self.bot.tree.command(
            name="unregister",
            description="Unregister a League of Legends account from tracking",
        )
        @app_commands.describe(riot_id="Your Riot ID to unregister (e.g., PlayerName#EUW)")
        @app_commands.rename(riot_id="riot-id")
        async def unregister_command(interaction: discord.Interaction, riot_id: str) -> None:
            await self._handle_unregister_command(interaction, riot_id)

        @self.bot.tree.command(
            name="stats",
            description="View your registered accounts and their ranked stats",
        )
        async def stats_command(interaction: discord.Interaction) -> None:
            await self._handle_stats_command(interaction)

    def _setup_event_handlers(self) -> None:
        """Set up event handlers for the bot."""

        @self.bot.event
        async def on_guild_join(guild: discord.Guild) -> None:
            logger.info(f"Joined guild: {guild.name} (ID: {guild.id})")

        @self.bot.tree.error
        async def on_app_command_error(
            interaction: discord.Interaction, error: app_commands.AppCommandError
        ) -> None:
            """Handle application command errors."""
            logger.error(f"Command error: {error}", exc_info=True)

            embed = self._create_error_embed("An error occurred processing your command.")
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)

    async def _handle_register_command(self, interaction: discord.Interaction, riot_id: str) -> None:
        set_correlation_id()
        try:
            await interaction.response.defer(ephemeral=True)
            result = await self.registry.register(str(interaction.user.id), riot_id)
            await interaction.followup.send(embed=registration_embed(result), ephemeral=True)
        finally:
            clear_correlation_id()

    async def _handle_unregister_command(self, interaction: discord.Interaction, riot_id: str) -> None:
        set_correlation_id()
        try:
            await interaction.response.defer(ephemeral=True)
            result = await self.registry.unregister(str(interaction.user.id), riot_id)
            await interaction.followup.send(embed=registration_embed(result), ephemeral=True)
        finally:
            clear_correlation_id()

    async def _handle_stats_command(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True)
        accounts = await self.registry.list_accounts_with_ranks(str(interaction.user.id))
        if not accounts:
            await interaction.followup.send(
                embed=self._create_error_embed(
                    "You have no registered accounts.\n\nUse `/register` to add your League of Legends account!"
                ),
                ephemeral=True,
            )
            return
        await interaction.followup.send(embed=stats_embed(accounts), ephemeral=True)

    def _create_error_embed(self, message: str) -> discord.Embed:
        """Create a standardized error embed."""
        return discord.Embed(title="❌ Error", description=message, color=EmbedColor.DEFEAT.value)

    async def start(self) -> None:
        """Start the Discord bot."""
        logger.info("Starting Discord bot...")
        await self.bot.start(self.settings.discord_bot_token)

    async def stop(self) -> None:
        """Stop the Discord bot."""
        logger.info("Stopping Discord bot...")
        await self.bot.close()
