"""
Main entry point for the LP tracker Discord bot.
"""

import asyncio
import logging
import os
import sys

from src.adapters.database import DatabaseAdapter
from src.adapters.ddragon_adapter import ChampionCatalog
from src.adapters.discord_adapter import DiscordAdapter, DiscordChannelNotifier
from src.adapters.riot_api import RiotAPIAdapter
from src.adapters.tft_api import TFTAPIAdapter
from src.config.settings import Settings, get_settings
from src.core.observability import configure_logging
from src.core.ports import GameDataPort, NotificationSinkPort, TrackingStorePort
from src.core.services import (
    AccountRegistryService,
    DailyRecapService,
    GameTracker,
    GameVariant,
    build_lol_variant,
    build_tft_variant,
)


def setup_logging() -> None:
    """Set up structured JSON logging for both stdout and file.

    KISS: write logs to a stable path under `logs/` and stdout.
    """
    settings = get_settings()

    try:
        os.makedirs("logs", exist_ok=True)
        file_target = os.path.join("logs", "lp_tracker.log")
    except Exception:
        # Fallback to CWD if logs/ is not writable
        file_target = "lp_tracker.log"

    configure_logging(
        level=settings.app_log_level,
        file_target=file_target,
        debug=settings.app_debug,
    )


async def health_check() -> None:
    """Perform basic health checks before starting the bot."""
    logger = logging.getLogger(__name__)
    settings = get_settings()

    logger.info("Performing health checks...")

    required = {
        "RIOT_API_KEY": settings.riot_api_key,
        "DISCORD_BOT_TOKEN": settings.discord_bot_token,
        "NOTIFICATION_CHANNEL_ID": settings.notification_channel_id,
    }
    missing = [name for name, value in required.items() if not (value or "").strip()]
    if missing:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
        sys.exit(1)

    if settings.notification_channel is None:
        logger.error("NOTIFICATION_CHANNEL_ID must be a numeric Discord channel id!")
        sys.exit(1)

    if not settings.feature_lol_tracking_enabled and not settings.feature_tft_tracking_enabled:
        logger.warning("Both LoL and TFT tracking are disabled; only slash commands will work")

    logger.info("Health checks passed ✓")


def build_variants(
    settings: Settings, lol_api: GameDataPort, tft_api: GameDataPort
) -> list[GameVariant]:
    variants: list[GameVariant] = []
    if settings.feature_lol_tracking_enabled:
        variants.append(
            build_lol_variant(
                lol_api,
                tracked_queues=settings.lol_tracked_queue_set,
                settle_delay_seconds=settings.lol_settle_delay_seconds,
            )
        )
    if settings.feature_tft_tracking_enabled:
        variants.append(
            build_tft_variant(
                tft_api,
                tracked_queues=settings.tft_tracked_queue_set,
                settle_delay_seconds=settings.tft_settle_delay_seconds,
            )
        )
    return [v for v in variants if v.tracked_queues]


def build_trackers(
    settings: Settings,
    variants: list[GameVariant],
    store: TrackingStorePort,
    sink: NotificationSinkPort,
) -> list[GameTracker]:
    """One reconciliation loop per enabled game variant."""
    return [
        GameTracker(
            variant=variant,
            store=store,
            sink=sink,
            interval_seconds=settings.tracking_interval_seconds,
            batch_size=settings.tracker_batch_size,
            batch_delay_seconds=settings.tracker_batch_delay_seconds,
            account_timeout_seconds=settings.tracker_account_timeout_seconds,
            points_per_division=settings.points_per_division,
        )
        for variant in variants
    ]


def print_startup_banner() -> None:
    """Print a nice startup banner."""
    banner = """
    ╔══════════════════════════════════════════╗
    ║            LP Tracker Bot                ║
    ║     Ranked LoL / TFT notifications       ║
    ╚══════════════════════════════════════════╝
    """
    print(banner)


async def main() -> None:
    """Main async entry point."""
    logger = logging.getLogger(__name__)
    settings = get_settings()
    trackers: list[GameTracker] = []
    recap: DailyRecapService | None = None

    try:
        print_startup_banner()

        setup_logging()
        logger.info("Starting LP tracker bot (env=%s)...", settings.app_env)

        await health_check()

        logger.info("Initializing adapters...")

        db_adapter = DatabaseAdapter()
        await db_adapter.connect()

        lol_api = RiotAPIAdapter()
        tft_api = TFTAPIAdapter()

        champions = ChampionCatalog()
        await champions.refresh()

        registry = AccountRegistryService(store=db_adapter, game_api=lol_api, extra_rank_apis=[tft_api])
        discord_adapter = DiscordAdapter(registry=registry, settings=settings)
        notifier = DiscordChannelNotifier(
            discord_adapter.bot, int(settings.notification_channel_id), champions=champions
        )

        variants = build_variants(settings, lol_api, tft_api)
        trackers = build_trackers(settings, variants, db_adapter, notifier)
        if settings.feature_daily_recap_enabled and variants:
            recap = DailyRecapService(
                store=db_adapter,
                sink=notifier,
                variants=variants,
                window_hours=settings.recap_window_hours,
                recap_hour=settings.recap_hour,
                points_per_division=settings.points_per_division,
            )

        async def _start_background_jobs() -> None:
            for tracker in trackers:
                tracker.start()
            if recap is not None:
                recap.start()

        discord_adapter.on_ready(_start_background_jobs)

        logger.info(
            f"Tracking variants: {', '.join(v.key for v in variants) or 'none'}; "
            f"interval={settings.tracking_interval_seconds}s"
        )
        logger.info("Bot initialization complete. Connecting to Discord...")

        # Run the Discord bot (async, blocks until shutdown)
        await discord_adapter.start()

    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (Ctrl+C)")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        logger.info("Shutting down services...")
        # Stop producers first so no notification races the bot shutdown
        for tracker in trackers:
            await tracker.stop(timeout=30)
        if recap is not None:
            await recap.stop()
        if "discord_adapter" in locals():
            try:
                await discord_adapter.stop()
            except Exception as e:
                logger.warning(f"Failed to stop Discord adapter cleanly: {e}")
        if "lol_api" in locals():
            await lol_api.close()
        if "tft_api" in locals():
            await tft_api.close()
        if "champions" in locals():
            await champions.close()
        if "db_adapter" in locals():
            await db_adapter.disconnect()
        logger.info("All services stopped")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBot stopped by user.")
    except Exception as e:
        print(f"Failed to start bot: {e}")
        sys.exit(1)
