"""Monitor scheduler: picks due monitors and checks them concurrently."""
import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import httpx
from sqlalchemy import or_, update
from sqlalchemy.orm import Session, sessionmaker

from monitorify.config import settings
from monitorify.constants import MIN_INTERVAL_SEC, MonitorStatus
from monitorify.database import SessionLocal
from monitorify.models import Monitor
from monitorify.utils.exceptions import CheckFailure, CheckTimeout
from monitorify.utils.logger import logger
from monitorify.utils.time import ensure_utc, utc_now
from monitorify.workers.polling import PollingLoop

DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8"

# Never-checked monitors sort before everything else
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class MonitorTarget:
    """Detached copy of what a check needs, so no session is held open."""
    id: uuid.UUID
    guest_project_id: uuid.UUID
    url: str
    method: str
    timeout_ms: int
    follow_redirects: bool
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_monitor(cls, monitor: Monitor) -> "MonitorTarget":
        return cls(
            id=monitor.id,
            guest_project_id=monitor.guest_project_id,
            url=monitor.url,
            method=monitor.method,
            timeout_ms=monitor.timeout_ms,
            follow_redirects=monitor.follow_redirects,
            headers=dict(monitor.headers or {}),
        )


@dataclass
class CheckResult:
    """Outcome of one check; written to the monitor as a unit."""
    status: str
    checked_at: datetime
    response_time_ms: int
    http_status: Optional[int]
    error: str

    @property
    def is_up(self) -> bool:
        return self.status == MonitorStatus.UP


def next_due_at(monitor: Monitor) -> datetime:
    """When a monitor should next be checked (epoch if never checked)."""
    if monitor.last_checked_at is None:
        return _EPOCH
    return ensure_utc(monitor.last_checked_at) + timedelta(seconds=monitor.interval_sec)


def is_due(monitor: Monitor, now: datetime) -> bool:
    return bool(monitor.is_active) and next_due_at(monitor) <= now


def select_due_monitors(db: Session, now: datetime, limit: int) -> List[Monitor]:
    """
    Active monitors whose interval has elapsed, oldest-due first.

    The query pre-filters on the minimum interval; the exact per-monitor
    interval is applied in Python.
    """
    earliest_possible = now - timedelta(seconds=MIN_INTERVAL_SEC)
    candidates = (
        db.query(Monitor)
        .filter(
            Monitor.is_active.is_(True),
            or_(
                Monitor.last_checked_at.is_(None),
                Monitor.last_checked_at <= earliest_possible,
            ),
        )
        .all()
    )

    due = [m for m in candidates if is_due(m, now)]
    due.sort(key=next_due_at)
    return due[:limit]


def build_headers(custom: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Default User-Agent/Accept with the monitor's headers layered on top."""
    headers = {
        "User-Agent": settings.monitor_user_agent,
        "Accept": DEFAULT_ACCEPT,
    }
    for key, value in (custom or {}).items():
        if key:
            headers[str(key)] = str(value)
    return headers


async def _send(client: httpx.AsyncClient, target: MonitorTarget) -> httpx.Response:
    timeout_s = target.timeout_ms / 1000
    try:
        request = client.request(
            "HEAD" if target.method == "HEAD" else "GET",
            target.url,
            headers=build_headers(target.headers),
            follow_redirects=target.follow_redirects,
            timeout=httpx.Timeout(timeout_s),
        )
        # httpx timeouts are per phase; wait_for bounds the whole request
        return await asyncio.wait_for(request, timeout=timeout_s)
    except (asyncio.TimeoutError, httpx.TimeoutException):
        raise CheckTimeout()
    except httpx.HTTPError as e:
        raise CheckFailure(str(e) or "Fetch failed")
    except Exception as e:
        # Includes requests httpx cannot build, such as non-ASCII header values
        raise CheckFailure(str(e) or "Fetch failed")


async def check_monitor(
    client: httpx.AsyncClient,
    target: MonitorTarget,
    clock: Callable[[], datetime] = utc_now,
) -> CheckResult:
    """
    Perform one HTTP check.

    Up only on exactly HTTP 200. Any other status, a timeout, or a network
    error is down.
    """
    started = time.monotonic()
    try:
        response = await _send(client, target)
    except (CheckTimeout, CheckFailure) as e:
        return CheckResult(
            status=MonitorStatus.DOWN,
            checked_at=clock(),
            response_time_ms=round((time.monotonic() - started) * 1000),
            http_status=None,
            error=e.message,
        )

    elapsed_ms = round((time.monotonic() - started) * 1000)
    is_up = response.status_code == 200
    return CheckResult(
        status=MonitorStatus.UP if is_up else MonitorStatus.DOWN,
        checked_at=clock(),
        response_time_ms=elapsed_ms,
        http_status=response.status_code,
        error="" if is_up else f"HTTP {response.status_code} {response.reason_phrase}".strip(),
    )


def record_check_result(db: Session, target: MonitorTarget, result: CheckResult) -> bool:
    """
    Write all last-check fields in one statement.

    Returns:
        False if the monitor was deleted or paused while being checked
    """
    outcome = db.execute(
        update(Monitor)
        .where(
            Monitor.id == target.id,
            Monitor.guest_project_id == target.guest_project_id,
            # A pause committed mid-check keeps its paused status
            Monitor.is_active.is_(True),
        )
        .values(
            last_status=result.status,
            last_checked_at=result.checked_at,
            last_response_time_ms=result.response_time_ms,
            last_http_status=result.http_status,
            last_error=result.error,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return outcome.rowcount == 1


class MonitorScheduler(PollingLoop):
    """Checks due monitors with a bounded pool of concurrent workers."""

    name = "monitor-scheduler"

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        client_factory: Callable[[], httpx.AsyncClient] = httpx.AsyncClient,
        interval_seconds: Optional[float] = None,
        batch_limit: Optional[int] = None,
        concurrency: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(interval_seconds or settings.monitor_poll_interval_seconds)
        self.session_factory = session_factory
        self.client_factory = client_factory
        self.batch_limit = batch_limit or settings.monitor_batch_limit
        self.concurrency = concurrency or settings.monitor_concurrency
        self.clock = clock

    def due_targets(self) -> List[MonitorTarget]:
        db = self.session_factory()
        try:
            due = select_due_monitors(db, self.clock(), self.batch_limit)
            return [MonitorTarget.from_monitor(m) for m in due]
        finally:
            db.close()

    async def tick(self) -> int:
        """
        Check one batch of due monitors.

        Returns:
            Number of monitors checked
        """
        targets = self.due_targets()
        if not targets:
            return 0

        queue: asyncio.Queue = asyncio.Queue()
        for target in targets:
            queue.put_nowait(target)

        async with self.client_factory() as client:
            workers = [
                asyncio.create_task(self._drain(queue, client))
                for _ in range(min(self.concurrency, len(targets)))
            ]
            await asyncio.gather(*workers)

        logger.debug(f"[{self.name}] checked {len(targets)} monitor(s)")
        return len(targets)

    async def _drain(self, queue: asyncio.Queue, client: httpx.AsyncClient) -> None:
        while True:
            try:
                target = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await self.check_and_record(client, target)
            except Exception as e:
                # check_monitor records its own failures; this guards the write
                logger.error(f"[{self.name}] monitor {target.id} check failed: {e}", exc_info=True)

    async def check_and_record(self, client: httpx.AsyncClient, target: MonitorTarget) -> CheckResult:
        result = await check_monitor(client, target, self.clock)
        db = self.session_factory()
        try:
            record_check_result(db, target, result)
        finally:
            db.close()
        return result
