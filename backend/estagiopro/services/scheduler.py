"""Recurring trigger for the expiration alert scan."""
import asyncio
import contextlib
import logging
from collections.abc import Callable

from estagiopro.database import get_db_context
from estagiopro.services.alert_scanner import run_expiration_scan

logger = logging.getLogger(__name__)


def run_scheduled_scan() -> dict:
    """Run one expiration scan in its own session."""
    with get_db_context() as db:
        return run_expiration_scan(db)


class AlertScanScheduler:
    """Runs the scan once after a start-up delay, then on a fixed interval.

    Each run executes synchronously in a worker thread; a failed run is logged
    and the next one still happens.
    """

    def __init__(
        self,
        interval_seconds: float,
        initial_delay_seconds: float = 60,
        scan_job: Callable[[], dict] = run_scheduled_scan,
    ):
        self.interval_seconds = interval_seconds
        self.initial_delay_seconds = initial_delay_seconds
        self._scan_job = scan_job
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run_forever())
        logger.info(
            "Alert scan scheduler started: first run in %ss, then every %ss",
            self.initial_delay_seconds, self.interval_seconds,
        )

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Alert scan scheduler stopped")

    def run_once(self) -> dict | None:
        """Run the scan job now. Returns its result, or None if it failed."""
        try:
            result = self._scan_job()
        except Exception:
            logger.exception("Automatic expiration scan failed")
            return None

        logger.info("Automatic expiration scan: %s", result["message"])
        return result

    async def _run_forever(self) -> None:
        await asyncio.sleep(self.initial_delay_seconds)
        while True:
            await asyncio.to_thread(self.run_once)
            await asyncio.sleep(self.interval_seconds)
