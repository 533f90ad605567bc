"""Stage brokerage JSON exports and import them for an account."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from position_service.config import get_settings
from position_service.core.logging import setup_logging
from position_service.core.telemetry import setup_telemetry
from position_service.db import get_database
from position_service.db.init import init_database
from position_service.ingest.worker import import_staged_files, stage_upload


async def _run(account_id: int, files: list[Path]) -> None:
    settings = get_settings()
    database = get_database()
    setup_telemetry(settings, engine=database.engine)
    for path in files:
        if not path.exists():
            raise SystemExit(f"Export file not found: {path}")
        stage_upload(account_id, path.name, path.read_bytes(), settings=settings)
    try:
        await init_database(database, settings)
        summary = await import_staged_files(database, account_id, settings=settings)
    finally:
        await database.dispose()
    print(f"Imported {summary.inserted} transactions from {len(summary.files)} files for account {account_id}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Import brokerage JSON exports for an account")
    parser.add_argument("--account-id", type=int, required=True)
    parser.add_argument("files", nargs="+", type=Path)
    args = parser.parse_args()
    setup_logging(get_settings().log_level)
    asyncio.run(_run(args.account_id, args.files))


if __name__ == "__main__":
    main()
