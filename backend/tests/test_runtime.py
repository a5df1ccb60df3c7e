import asyncio

import pytest

from monitorify.constants import JobStatus, JobType
from monitorify.models import Job
from monitorify.services.jobs import enqueue_job
from monitorify.workers import tasks
from monitorify.workers.config import WorkerSettings, parse_redis_url
from monitorify.workers.runtime import build_runtime


@pytest.fixture
def runtime(renderer, store, session_factory):
    return build_runtime(renderer=renderer, storage=store, session_factory=session_factory)


@pytest.mark.asyncio
async def test_start_and_stop_all(runtime):
    runtime.start_all()
    assert all(loop.started for loop in runtime.loops)
    assert {loop.name for loop in runtime.loops} == {
        "screenshot-worker",
        "url2pdf-worker",
        "monitor-scheduler",
        "cleanup-sweeper",
    }

    await asyncio.sleep(0.01)
    await runtime.stop_all()
    assert not any(loop.started for loop in runtime.loops)


@pytest.mark.asyncio
async def test_arq_tasks_drive_the_same_pollers(runtime, db, project):
    job = enqueue_job(db, project, JobType.SCREENSHOT, {})
    ctx = {"runtime": runtime}

    result = await tasks.process_screenshot_jobs(ctx)
    assert result == {"success": True, "job_id": str(job.id)}
    db.expire_all()
    assert db.get(Job, job.id).status == JobStatus.DONE

    assert await tasks.process_pdf_jobs(ctx) == {"success": True, "job_id": None}
    assert await tasks.check_due_monitors(ctx) == {"success": True, "monitors_checked": 0}

    cleanup = await tasks.cleanup_expired(ctx)
    assert cleanup["success"] is True
    assert cleanup["projects"] == 0


def test_worker_settings():
    names = {job.name for job in WorkerSettings.cron_jobs}
    assert len(names) == 4
    assert tasks.cleanup_expired in WorkerSettings.functions

    redis = parse_redis_url("redis://:secret@cache.internal:6380/2")
    assert (redis.host, redis.port, redis.password, redis.database) == ("cache.internal", 6380, "secret", 2)
