import asyncio
import os
import sys

os.environ.setdefault("DATABASE_URL", "sqlite:///./data/estagiopro.db")
os.environ.setdefault("SECRET_KEY", "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from estagiopro.services.scheduler import AlertScanScheduler


def test_run_once_returns_scan_result():
    scheduler = AlertScanScheduler(
        interval_seconds=3600,
        scan_job=lambda: {"message": "Scan finished. 2 new alerts created.", "alerts_created": 2},
    )

    assert scheduler.run_once()["alerts_created"] == 2


def test_run_once_survives_failed_scan():
    def failing_scan():
        raise RuntimeError("database unavailable")

    scheduler = AlertScanScheduler(interval_seconds=3600, scan_job=failing_scan)

    assert scheduler.run_once() is None


def test_scheduler_runs_after_initial_delay_and_stops():
    calls = []

    def scan():
        calls.append(1)
        return {"message": "Scan finished. 0 new alerts created.", "alerts_created": 0}

    async def exercise():
        scheduler = AlertScanScheduler(interval_seconds=3600, initial_delay_seconds=0, scan_job=scan)
        scheduler.start()
        scheduler.start()  # already running, no second task
        for _ in range(100):
            if calls:
                break
            await asyncio.sleep(0.01)
        assert scheduler.running
        await scheduler.stop()
        assert not scheduler.running

    asyncio.run(exercise())

    assert calls == [1]
