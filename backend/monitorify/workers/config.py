"""ARQ worker configuration.

Run with::

    arq monitorify.workers.config.WorkerSettings

Set ``RUN_WORKERS_IN_API=false`` on the API when using this mode so the
pollers run in exactly one process.
"""
from urllib.parse import urlparse

from arq.connections import RedisSettings
from arq.cron import cron

from monitorify.config import settings
from monitorify.database import init_db
from monitorify.utils.logger import logger
from monitorify.workers.runtime import build_runtime
from monitorify.workers.tasks import (
    check_due_monitors,
    cleanup_expired,
    process_pdf_jobs,
    process_screenshot_jobs,
)

EVERY_2_SECONDS = set(range(0, 60, 2))
EVERY_5_SECONDS = set(range(0, 60, 5))


def parse_redis_url(url: str) -> RedisSettings:
    """Parse Redis URL into RedisSettings."""
    parsed = urlparse(url)
    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        password=parsed.password,
        database=int(parsed.path[1:]) if parsed.path and len(parsed.path) > 1 else 0,
    )


async def startup(ctx):
    """Worker startup hook."""
    logger.info("ARQ worker starting up...")
    init_db()
    ctx["runtime"] = build_runtime()


async def shutdown(ctx):
    """Worker shutdown hook."""
    logger.info("ARQ worker shutting down...")


class WorkerSettings:
    """ARQ worker settings."""

    functions = [
        process_screenshot_jobs,
        process_pdf_jobs,
        check_due_monitors,
        cleanup_expired,
    ]

    cron_jobs = [
        cron(process_screenshot_jobs, second=EVERY_2_SECONDS),
        cron(process_pdf_jobs, second=EVERY_2_SECONDS),
        cron(check_due_monitors, second=EVERY_5_SECONDS),
        # Hourly, plus once when the worker starts
        cron(cleanup_expired, minute=0, second=0, run_at_startup=True),
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = parse_redis_url(settings.redis_url)

    # Job configuration
    max_jobs = 8  # All pollers can be mid-tick at once
    job_timeout = 600
    keep_result = 60
