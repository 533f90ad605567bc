"""Recompute derived positions for an account from its transaction log."""

from __future__ import annotations

import argparse
import asyncio

from position_service.config import get_settings
from position_service.core.logging import setup_logging
from position_service.core.telemetry import setup_telemetry
from position_service.db import get_database
from position_service.db.init import init_database
from position_service.services import recompute_positions


async def _run(account_id: int) -> None:
    settings = get_settings()
    database = get_database()
    setup_telemetry(settings, engine=database.engine)
    try:
        await init_database(database, settings)
        async with database.session() as session:
            positions = await recompute_positions(session, account_id)
    finally:
        await database.dispose()
    open_count = sum(1 for position in positions if position.opened)
    print(f"Recomputed {len(positions)} positions for account {account_id} ({open_count} open)")
    for position in positions:
        state = "open" if position.opened else "closed"
        print(
            f"  {position.open_date.isoformat()}  {position.symbol:<28} {state:<6} "
            f"qty={position.quantity} cost_basis={position.cost_basis} gain_loss={position.gain_loss}"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Recompute positions for an account")
    parser.add_argument("--account-id", type=int, required=True)
    args = parser.parse_args()
    setup_logging(get_settings().log_level)
    asyncio.run(_run(args.account_id))


if __name__ == "__main__":
    main()
