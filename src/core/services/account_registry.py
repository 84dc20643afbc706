"""Account registry use-cases behind the /register, /unregister and /stats commands."""

import logging

from src.contracts.registration import AccountStats, RegistrationResult, RegistrationStatus
from src.core.ports import GameDataPort, TrackingStorePort

logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = "Invalid Riot ID format. Please use: GameName#TagLine (e.g., PlayerName#EUW)"


def parse_riot_id(riot_id: str) -> tuple[str, str] | None:
    """Split ``Name#TAG`` into its parts; None when malformed."""
    parts = (riot_id or "").strip().split("#")
    if len(parts) != 2:
        return None
    game_name, tag_line = (p.strip() for p in parts)
    if not game_name or not tag_line:
        return None
    return game_name, tag_line


class AccountRegistryService:
    """Register, unregister and list tracked accounts for Discord users."""

    def __init__(
        self,
        store: TrackingStorePort,
        game_api: GameDataPort,
        extra_rank_apis: list[GameDataPort] | None = None,
    ) -> None:
        """Initialize service with required dependencies.

        Args:
            store: Persistence for tracked accounts
            game_api: Upstream used to resolve Riot IDs and LoL ranks
            extra_rank_apis: Further upstreams whose rank entries are shown
                in /stats (e.g. TFT)
        """
        self.store = store
        self.game_api = game_api
        self.extra_rank_apis = list(extra_rank_apis or [])

    async def register(self, discord_user_id: str, riot_id: str) -> RegistrationResult:
        parsed = parse_riot_id(riot_id)
        if parsed is None:
            return RegistrationResult(status=RegistrationStatus.INVALID_RIOT_ID, message=INVALID_FORMAT_MESSAGE)
        game_name, tag_line = parsed

        try:
            riot_account = await self.game_api.resolve_account(game_name, tag_line)
            if riot_account is None:
                return RegistrationResult(
                    status=RegistrationStatus.NOT_FOUND,
                    message="Account not found. Please check your Riot ID and try again.",
                )

            account = await self.store.add_account(
                discord_user_id,
                riot_account.game_name,
                riot_account.tag_line,
                riot_account.puuid,
            )
            if account is None:
                return RegistrationResult(
                    status=RegistrationStatus.ALREADY_REGISTERED,
                    message="This account is already registered!",
                )

            rank_entries = await self.game_api.get_rank_entries(account.puuid)
        except Exception as e:
            logger.error(f"Error registering {riot_id} for {discord_user_id}: {e}")
            return RegistrationResult(
                status=RegistrationStatus.FAILED,
                message="An error occurred while registering your account. Please try again later.",
                error=str(e),
            )

        logger.info(f"Registered {account.riot_id} (id={account.id}) for Discord user {discord_user_id}")
        return RegistrationResult(
            status=RegistrationStatus.REGISTERED,
            message=f"Successfully registered **{account.riot_id}**! Your games will now be tracked automatically.",
            account=account,
            rank_entries=rank_entries,
        )

    async def unregister(self, discord_user_id: str, riot_id: str) -> RegistrationResult:
        parsed = parse_riot_id(riot_id)
        if parsed is None:
            return RegistrationResult(status=RegistrationStatus.INVALID_RIOT_ID, message=INVALID_FORMAT_MESSAGE)
        game_name, tag_line = parsed

        try:
            accounts = await self.store.get_accounts_by_discord_id(discord_user_id)
            target = next(
                (
                    a
                    for a in accounts
                    if a.game_name.lower() == game_name.lower() and a.tag_line.lower() == tag_line.lower()
                ),
                None,
            )
            if target is None:
                return RegistrationResult(
                    status=RegistrationStatus.NOT_REGISTERED,
                    message=(
                        f"Account **{game_name}#{tag_line}** is not registered to your Discord account. "
                        "Use `/stats` to see your registered accounts."
                    ),
                )

            removed = await self.store.remove_account(discord_user_id, target.puuid)
        except Exception as e:
            logger.error(f"Error unregistering {riot_id} for {discord_user_id}: {e}")
            removed = False
            target = None

        if not removed:
            return RegistrationResult(
                status=RegistrationStatus.FAILED,
                message="Failed to unregister the account. Please try again later.",
            )

        logger.info(f"Unregistered {target.riot_id} for Discord user {discord_user_id}")
        return RegistrationResult(
            status=RegistrationStatus.UNREGISTERED,
            message=f"Successfully unregistered **{target.riot_id}**! This account will no longer be tracked.",
            account=target,
        )

    async def list_accounts_with_ranks(self, discord_user_id: str) -> list[AccountStats]:
        accounts = await self.store.get_accounts_by_discord_id(discord_user_id)
        stats: list[AccountStats] = []
        for account in accounts:
            entries = list(await self.game_api.get_rank_entries(account.puuid))
            for api in self.extra_rank_apis:
                entries.extend(await api.get_rank_entries(account.puuid))
            stats.append(AccountStats(account=account, rank_entries=entries))
        return stats
