"""Periodic archival sweeper run from the app lifespan."""
from __future__ import annotations

import asyncio
import contextlib
import logging

import anyio

from lostfound.adjudication.archival import SweepReport, run_archival_sweep
from lostfound.settings import Settings

logger = logging.getLogger(__name__)


async def sweep_once(settings: Settings) -> SweepReport:
    """Run one sweep on a worker thread so the event loop stays free."""
    return await anyio.to_thread.run_sync(lambda: run_archival_sweep(settings.db_path))


async def run_sweeper(
    *,
    settings: Settings,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Sweep every ``archival_sweep_interval_s`` until ``stop_event`` is set.

    A failed sweep is logged and retried at the next interval.
    """
    stop_event = stop_event or asyncio.Event()
    logger.info("Archival sweeper starting (interval=%ss)", settings.archival_sweep_interval_s)
    while not stop_event.is_set():
        try:
            await sweep_once(settings)
        except Exception:  # noqa: BLE001
            logger.exception("Archival sweep failed; retrying next interval")
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=settings.archival_sweep_interval_s)
    logger.info("Archival sweeper stopped")
