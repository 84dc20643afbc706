"""Database adapter using asyncpg for PostgreSQL.

This adapter persists tracked accounts, per-match notification state and
the append-only rank snapshot log. Every method returns typed contracts;
raw asyncpg records never leave this module.
"""

import logging
from datetime import UTC, datetime
from typing import Any

import asyncpg

from src.config.settings import settings
from src.contracts.tracking import RankSnapshot, TrackedAccount, TrackedMatch
from src.core.observability import traced
from src.core.ports import TrackingStorePort

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = "id, discord_user_id, game_name, tag_line, puuid, created_at"
_MATCH_COLUMNS = (
    "account_id, match_id, variant, game_start_time, game_end_time, "
    "notified_start, notified_end, lp_before, tier_before, rank_before"
)
_SNAPSHOT_COLUMNS = "account_id, queue_type, tier, rank, league_points, wins, losses, recorded_at"


def _affected_rows(status: Any) -> int:
    """Row count from an asyncpg command tag such as ``INSERT 0 1``."""
    try:
        return int(str(status).rsplit(" ", 1)[-1])
    except (TypeError, ValueError):
        return 0


def _account(row: Any) -> TrackedAccount:
    return TrackedAccount(
        id=row["id"],
        discord_user_id=str(row["discord_user_id"]),
        game_name=row["game_name"],
        tag_line=row["tag_line"],
        puuid=row["puuid"],
        created_at=row["created_at"],
    )


def _match(row: Any) -> TrackedMatch:
    return TrackedMatch(
        account_id=row["account_id"],
        match_id=row["match_id"],
        variant=row["variant"],
        game_start_time=row["game_start_time"],
        game_end_time=row["game_end_time"],
        notified_start=bool(row["notified_start"]),
        notified_end=bool(row["notified_end"]),
        lp_before=row["lp_before"],
        tier_before=row["tier_before"],
        rank_before=row["rank_before"],
    )


def _snapshot(row: Any) -> RankSnapshot:
    return RankSnapshot(
        account_id=row["account_id"],
        queue_type=row["queue_type"],
        tier=row["tier"],
        rank=row["rank"],
        league_points=row["league_points"],
        wins=row["wins"],
        losses=row["losses"],
        recorded_at=row["recorded_at"],
    )


class DatabaseAdapter(TrackingStorePort):
    """TrackingStorePort implementation using asyncpg.

    Features:
    - Async connection pooling
    - Idempotent schema creation on connect
    - Timezone-aware timestamps
    - Errors are logged and converted to neutral results (False / None / [])
    """

    def __init__(self, dsn: str | None = None) -> None:
        """Initialize database adapter.

        Args:
            dsn: Optional DSN override; defaults to ``settings.database_url``
        """
        self._dsn = dsn
        self._pool: Any = None  # asyncpg.Pool (untyped library)
        logger.info("Database adapter initialized")

    async def connect(self) -> None:
        """Create database connection pool.

        This should be called once at application startup.
        """
        if self._pool is not None:
            logger.warning("Database pool already exists")
            return

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn or settings.database_url,
                min_size=settings.database_pool_min_size,
                max_size=settings.database_pool_size,
                max_inactive_connection_lifetime=300,
                command_timeout=settings.database_pool_timeout,
            )
            logger.info("Database connection pool created successfully")

            await self._initialize_schema()

        except Exception as e:
            logger.error(f"Failed to create database pool: {e}")
            raise

    async def disconnect(self) -> None:
        """Close database connection pool.

        This should be called at application shutdown.
        """
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection pool closed")

    async def _initialize_schema(self) -> None:
        """Create required tables if they don't exist."""
        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tracked_accounts (
                    id SERIAL PRIMARY KEY,
                    discord_user_id VARCHAR(32) NOT NULL,
                    game_name VARCHAR(64) NOT NULL,
                    tag_line VARCHAR(16) NOT NULL,
                    puuid VARCHAR(128) NOT NULL UNIQUE,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    UNIQUE(discord_user_id, puuid)
                );

                CREATE INDEX IF NOT EXISTS idx_tracked_accounts_discord
                ON tracked_accounts(discord_user_id);
            """
            )

            # Composite (account, match) key: co-tracked players of one
            # match each keep their own notification flags.
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tracked_matches (
                    id SERIAL PRIMARY KEY,
                    account_id INTEGER NOT NULL
                        REFERENCES tracked_accounts(id) ON DELETE CASCADE,
                    match_id VARCHAR(64) NOT NULL,
                    variant VARCHAR(8) NOT NULL DEFAULT 'lol',
                    game_start_time TIMESTAMPTZ NOT NULL,
                    game_end_time TIMESTAMPTZ,
                    notified_start BOOLEAN NOT NULL DEFAULT FALSE,
                    notified_end BOOLEAN NOT NULL DEFAULT FALSE,
                    lp_before INTEGER,
                    tier_before VARCHAR(16),
                    rank_before VARCHAR(4),
                    UNIQUE(account_id, match_id)
                );
            """
            )

            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rank_snapshots (
                    id SERIAL PRIMARY KEY,
                    account_id INTEGER NOT NULL
                        REFERENCES tracked_accounts(id) ON DELETE CASCADE,
                    queue_type VARCHAR(32) NOT NULL,
                    tier VARCHAR(16) NOT NULL,
                    rank VARCHAR(4) NOT NULL,
                    league_points INTEGER NOT NULL,
                    wins INTEGER NOT NULL,
                    losses INTEGER NOT NULL,
                    recorded_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                );

                CREATE INDEX IF NOT EXISTS idx_rank_snapshots_account_time
                ON rank_snapshots(account_id, recorded_at DESC);
            """
            )

            logger.info("Database schema initialized")

    # ========================================================================
    # Tracked accounts
    # ========================================================================

    @traced(
        capture_result=True,
        log_level="INFO",
        add_metadata={"layer": "db", "table": "tracked_accounts", "op": "insert"},
    )
    async def add_account(
        self, discord_user_id: str, game_name: str, tag_line: str, puuid: str
    ) -> TrackedAccount | None:
        """Register an account.

        Returns:
            The stored account, or None if the puuid is already tracked
        """
        if not self._pool:
            logger.error("Database pool not initialized")
            return None

        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO tracked_accounts (discord_user_id, game_name, tag_line, puuid, created_at)
                    VALUES ($1, $2, $3, $4, $5)
                    ON CONFLICT DO NOTHING
                    RETURNING {_ACCOUNT_COLUMNS}
                    """,
                    str(discord_user_id),
                    game_name,
                    tag_line,
                    puuid,
                    datetime.now(UTC),
                )
                if row is None:
                    logger.info(f"Account {game_name}#{tag_line} already tracked")
                    return None
                return _account(row)
        except Exception as e:
            logger.error(f"Error adding account {game_name}#{tag_line}: {e}")
            return None

    @traced(
        log_level="INFO",
        add_metadata={"layer": "db", "table": "tracked_accounts", "op": "delete"},
    )
    async def remove_account(self, discord_user_id: str, puuid: str) -> bool:
        if not self._pool:
            logger.error("Database pool not initialized")
            return False

        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    "DELETE FROM tracked_accounts WHERE discord_user_id = $1 AND puuid = $2",
                    str(discord_user_id),
                    puuid,
                )
                return _affected_rows(status) > 0
        except Exception as e:
            logger.error(f"Error removing account {puuid} for {discord_user_id}: {e}")
            return False

    async def get_account(self, account_id: int) -> TrackedAccount | None:
        if not self._pool:
            logger.error("Database pool not initialized")
            return None

        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_ACCOUNT_COLUMNS} FROM tracked_accounts WHERE id = $1",
                    account_id,
                )
                return _account(row) if row else None
        except Exception as e:
            logger.error(f"Error getting account {account_id}: {e}")
            return None

    async def get_accounts_by_discord_id(self, discord_user_id: str) -> list[TrackedAccount]:
        if not self._pool:
            logger.error("Database pool not initialized")
            return []

        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_ACCOUNT_COLUMNS} FROM tracked_accounts
                    WHERE discord_user_id = $1
                    ORDER BY id
                    """,
                    str(discord_user_id),
                )
                return [_account(r) for r in rows]
        except Exception as e:
            logger.error(f"Error listing accounts for {discord_user_id}: {e}")
            return []

    async def list_accounts(self) -> list[TrackedAccount]:
        if not self._pool:
            logger.error("Database pool not initialized")
            return []

        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(f"SELECT {_ACCOUNT_COLUMNS} FROM tracked_accounts ORDER BY id")
                return [_account(r) for r in rows]
        except Exception as e:
            logger.error(f"Error listing tracked accounts: {e}")
            return []

    @traced(
        log_level="INFO",
        add_metadata={"layer": "db", "table": "tracked_accounts", "op": "update"},
    )
    async def update_account_puuid(self, account_id: int, puuid: str) -> bool:
        if not self._pool:
            logger.error("Database pool not initialized")
            return False

        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    "UPDATE tracked_accounts SET puuid = $2 WHERE id = $1",
                    account_id,
                    puuid,
                )
                return _affected_rows(status) > 0
        except Exception as e:
            logger.error(f"Error updating puuid of account {account_id}: {e}")
            return False

    # ========================================================================
    # Tracked matches
    # ========================================================================

    @traced(
        capture_result=True,
        add_metadata={"layer": "db", "table": "tracked_matches", "op": "insert"},
    )
    async def add_tracked_match(self, match: TrackedMatch) -> bool:
        """Insert a tracked match, ignoring an existing (account, match) row.

        Returns:
            True when a new row was written
        """
        if not self._pool:
            logger.error("Database pool not initialized")
            return False

        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    f"""
                    INSERT INTO tracked_matches ({_MATCH_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                    ON CONFLICT (account_id, match_id) DO NOTHING
                    """,
                    match.account_id,
                    match.match_id,
                    match.variant,
                    match.game_start_time,
                    match.game_end_time,
                    match.notified_start,
                    match.notified_end,
                    match.lp_before,
                    match.tier_before,
                    match.rank_before,
                )
                return _affected_rows(status) > 0
        except Exception as e:
            logger.error(f"Error adding tracked match {match.match_id} for {match.account_id}: {e}")
            return False

    async def get_tracked_match(self, account_id: int, match_id: str) -> TrackedMatch | None:
        if not self._pool:
            logger.error("Database pool not initialized")
            return None

        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    SELECT {_MATCH_COLUMNS} FROM tracked_matches
                    WHERE account_id = $1 AND match_id = $2
                    """,
                    account_id,
                    match_id,
                )
                return _match(row) if row else None
        except Exception as e:
            logger.error(f"Error getting tracked match {match_id} for {account_id}: {e}")
            return None

    async def update_game_end(self, account_id: int, match_id: str, end_time: datetime) -> bool:
        return await self._update_match(
            "SET game_end_time = $3", account_id, match_id, end_time, op="game_end"
        )

    @traced(add_metadata={"layer": "db", "table": "tracked_matches", "op": "notified_start"})
    async def mark_notified_start(self, account_id: int, match_id: str) -> bool:
        return await self._update_match(
            "SET notified_start = TRUE", account_id, match_id, op="notified_start"
        )

    @traced(add_metadata={"layer": "db", "table": "tracked_matches", "op": "notified_end"})
    async def mark_notified_end(self, account_id: int, match_id: str) -> bool:
        return await self._update_match(
            "SET notified_end = TRUE", account_id, match_id, op="notified_end"
        )

    async def _update_match(
        self, set_clause: str, account_id: int, match_id: str, *args: Any, op: str
    ) -> bool:
        if not self._pool:
            logger.error("Database pool not initialized")
            return False

        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    f"UPDATE tracked_matches {set_clause} WHERE account_id = $1 AND match_id = $2",
                    account_id,
                    match_id,
                    *args,
                )
                return _affected_rows(status) > 0
        except Exception as e:
            logger.error(f"Error updating {op} of {match_id} for {account_id}: {e}")
            return False

    # ========================================================================
    # Rank snapshots
    # ========================================================================

    @traced(add_metadata={"layer": "db", "table": "rank_snapshots", "op": "insert"})
    async def save_rank_snapshot(self, snapshot: RankSnapshot) -> bool:
        if not self._pool:
            logger.error("Database pool not initialized")
            return False

        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    f"""
                    INSERT INTO rank_snapshots ({_SNAPSHOT_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    """,
                    snapshot.account_id,
                    snapshot.queue_type,
                    snapshot.tier,
                    snapshot.rank,
                    snapshot.league_points,
                    snapshot.wins,
                    snapshot.losses,
                    snapshot.recorded_at,
                )
                return True
        except Exception as e:
            logger.error(f"Error saving rank snapshot for {snapshot.account_id}: {e}")
            return False

    async def get_rank_snapshots_between(
        self, account_id: int, start: datetime, end: datetime
    ) -> list[RankSnapshot]:
        """Snapshots with start <= recorded_at < end, newest first."""
        if not self._pool:
            logger.error("Database pool not initialized")
            return []

        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_SNAPSHOT_COLUMNS} FROM rank_snapshots
                    WHERE account_id = $1 AND recorded_at >= $2 AND recorded_at < $3
                    ORDER BY recorded_at DESC, id DESC
                    """,
                    account_id,
                    start,
                    end,
                )
                return [_snapshot(r) for r in rows]
        except Exception as e:
            logger.error(f"Error reading rank snapshots for {account_id}: {e}")
            return []

    async def get_latest_rank_snapshot(
        self, account_id: int, queue_type: str, before: datetime
    ) -> RankSnapshot | None:
        if not self._pool:
            logger.error("Database pool not initialized")
            return None

        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    SELECT {_SNAPSHOT_COLUMNS} FROM rank_snapshots
                    WHERE account_id = $1 AND queue_type = $2 AND recorded_at < $3
                    ORDER BY recorded_at DESC, id DESC
                    LIMIT 1
                    """,
                    account_id,
                    queue_type,
                    before,
                )
                return _snapshot(row) if row else None
        except Exception as e:
            logger.error(f"Error reading latest rank snapshot for {account_id}: {e}")
            return None
