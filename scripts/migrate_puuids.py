#!/usr/bin/env python3
"""
Refresh the stored PUUID of every tracked account.

Riot occasionally reissues PUUIDs (e.g. after an API key change). This
re-resolves each account by its Riot ID and rewrites the stored value.
Run it while the bot is stopped; the tracker treats stored PUUIDs as
authoritative for its whole lifetime.

Usage examples:
  # Show what would change
  python scripts/migrate_puuids.py --dry-run

  # Apply
  python scripts/migrate_puuids.py

Env:
  DATABASE_URL / RIOT_API_KEY are read via src.config.settings.Settings (.env supported)
"""

import argparse
import asyncio
from dataclasses import dataclass

from src.adapters.database import DatabaseAdapter
from src.adapters.riot_api import RiotHTTPClient
from src.core.ports import TrackingStorePort


@dataclass
class MigrationSummary:
    checked: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0


async def migrate_puuids(
    store: TrackingStorePort,
    api: RiotHTTPClient,
    dry_run: bool = False,
    delay_seconds: float = 1.2,
) -> MigrationSummary:
    summary = MigrationSummary()
    accounts = await store.list_accounts()
    print(f"Found {len(accounts)} tracked account(s)")

    for index, account in enumerate(accounts):
        if index and delay_seconds:
            await asyncio.sleep(delay_seconds)
        summary.checked += 1

        try:
            resolved = await api.resolve_account(account.game_name, account.tag_line)
        except Exception as e:
            print(f"❌ {account.riot_id}: lookup failed ({e})")
            summary.failed += 1
            continue

        if resolved is None:
            print(f"❌ {account.riot_id}: not found")
            summary.failed += 1
            continue

        if resolved.puuid == account.puuid:
            summary.unchanged += 1
            continue

        if dry_run:
            print(f"🔍 {account.riot_id}: would update {account.puuid[:8]}… -> {resolved.puuid[:8]}…")
            summary.updated += 1
            continue

        if await store.update_account_puuid(account.id, resolved.puuid):
            print(f"✅ {account.riot_id}: updated")
            summary.updated += 1
        else:
            print(f"❌ {account.riot_id}: database update failed")
            summary.failed += 1

    return summary


async def main(dry_run: bool) -> None:
    db = DatabaseAdapter()
    api = RiotHTTPClient()
    try:
        await db.connect()
        summary = await migrate_puuids(db, api, dry_run=dry_run)
        mode = "dry-run" if dry_run else "applied"
        print(
            f"{mode}: checked={summary.checked} updated={summary.updated} "
            f"unchanged={summary.unchanged} failed={summary.failed}"
        )
    finally:
        await api.close()
        await db.disconnect()


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--dry-run", action="store_true", help="report changes without writing them")
    args = ap.parse_args()
    asyncio.run(main(args.dry_run))
