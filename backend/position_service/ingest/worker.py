"""Upload staging and the background import worker.

Uploads are written to a per-account staging directory; a background task
drains it, inserts the new rows and recomputes the account's positions once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from position_service.config import PositionSettings, get_settings
from position_service.core.telemetry import get_tracer
from position_service.db import Database
from position_service.ingest.brokerage import parse_brokerage_payload
from position_service.services.positions import get_last_transaction_date, recompute_positions
from position_service.services.transactions import add_transactions

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

_background_tasks: set[asyncio.Task] = set()
_account_locks: dict[int, asyncio.Lock] = {}


def _account_lock(account_id: int) -> asyncio.Lock:
    lock = _account_locks.get(account_id)
    if lock is None:
        lock = _account_locks[account_id] = asyncio.Lock()
    return lock


class UploadTooLargeError(ValueError):
    """Raised when an uploaded file exceeds the configured size cap."""


@dataclass
class ImportSummary:
    account_id: int
    files: list[str] = field(default_factory=list)
    inserted: int = 0


def staging_dir(account_id: int, settings: PositionSettings | None = None) -> Path:
    settings = settings or get_settings()
    return Path(settings.import_dir) / str(account_id)


def stage_upload(
    account_id: int,
    filename: str,
    content: bytes,
    *,
    settings: PositionSettings | None = None,
) -> Path:
    """Write an uploaded export into the account's staging directory."""

    settings = settings or get_settings()
    name = Path(filename).name
    if not name:
        raise ValueError("Uploaded file must have a name")
    if len(content) > settings.max_upload_bytes:
        raise UploadTooLargeError(
            f"The uploaded file is too big: {name}. "
            f"Please use a file less than {settings.max_upload_bytes} bytes in size"
        )
    directory = staging_dir(account_id, settings)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / name
    target.write_bytes(content)
    logger.info("Staged %s for account %s (%d bytes)", name, account_id, len(content))
    return target


async def import_staged_files(
    database: Database,
    account_id: int,
    *,
    settings: PositionSettings | None = None,
) -> ImportSummary:
    """Import every staged ``*.json`` export for the account, then recompute.

    Drains of one account run one at a time; a drain that waited finds the
    files already consumed by the one before it.
    """

    summary = ImportSummary(account_id=account_id)
    directory = staging_dir(account_id, settings)

    with tracer.start_as_current_span("positions.import") as span:
        span.set_attribute("account.id", account_id)
        async with _account_lock(account_id), database.session() as session:
            files = sorted(path for path in directory.glob("*.json") if path.is_file()) if directory.is_dir() else []
            for path in files:
                last_imported = await get_last_transaction_date(session, account_id)
                try:
                    payloads = parse_brokerage_payload(path.read_bytes(), account_id, after=last_imported)
                except (OSError, ValidationError) as exc:
                    logger.error("Could not read brokerage export %s: %s", path.name, exc)
                    payloads = []
                if payloads:
                    await add_transactions(session, payloads)
                    summary.inserted += len(payloads)
                else:
                    logger.info("Nothing to import from %s", path.name)
                summary.files.append(path.name)
                path.unlink(missing_ok=True)

            await recompute_positions(session, account_id)

        span.set_attribute("import.files", len(summary.files))
        span.set_attribute("import.inserted", summary.inserted)
    logger.info(
        "Imported %d transactions from %d files for account %s",
        summary.inserted,
        len(summary.files),
        account_id,
    )
    return summary


async def _run_import_job(
    database: Database,
    account_id: int,
    settings: PositionSettings | None,
) -> ImportSummary | None:
    logger.info("Starting import for account %s", account_id)
    try:
        return await import_staged_files(database, account_id, settings=settings)
    except Exception:
        logger.exception("Import for account %s failed", account_id)
        return None


def schedule_import(
    database: Database,
    account_id: int,
    *,
    settings: PositionSettings | None = None,
) -> asyncio.Task:
    """Start a fire-and-forget import task for the account's staged files."""

    task = asyncio.create_task(_run_import_job(database, account_id, settings))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


__all__ = [
    "ImportSummary",
    "UploadTooLargeError",
    "import_staged_files",
    "schedule_import",
    "stage_upload",
    "staging_dir",
]
