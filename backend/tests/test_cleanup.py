import os
import time
from datetime import datetime, timedelta, timezone

import pytest

from monitorify.constants import JobStatus, JobType
from monitorify.models import GuestProject, Job, Monitor
from monitorify.services.guest_projects import create_guest_project
from monitorify.workers.cleanup import CleanupSweeper


def _sweeper(store, session_factory, **kwargs):
    return CleanupSweeper(store, session_factory=session_factory, interval_seconds=3600, **kwargs)


def _done_job(db, project, file_url):
    job = Job(
        type=JobType.SCREENSHOT,
        status=JobStatus.DONE,
        guest_project_id=project.id,
        payload={"url": project.website_url},
        result_file_url=file_url,
    )
    db.add(job)
    db.commit()
    return job


def _expired(db, url="https://old.example.net"):
    return create_guest_project(db, url, now=datetime.now(timezone.utc) - timedelta(hours=25)).project


def test_expired_project_is_removed_with_jobs_monitors_and_files(session_factory, db, project, store):
    old = _expired(db)
    filename = store.put(b"png", "shot", "png")
    _done_job(db, old, store.public_url(filename))
    _done_job(db, old, None)
    db.add(Monitor(guest_project_id=old.id, name="m", url="https://old.example.net/", method="GET",
                   interval_sec=900, timeout_ms=30000))
    live_file = store.put(b"pdf", "pdf", "pdf")
    _done_job(db, project, store.public_url(live_file))
    db.commit()

    report = _sweeper(store, session_factory).sweep_expired_projects()

    assert (report.projects, report.jobs, report.monitors, report.files) == (1, 2, 1, 1)
    assert not os.path.exists(store.resolve_to_path(filename))
    assert os.path.exists(store.resolve_to_path(live_file))

    db.expire_all()
    assert db.query(GuestProject).filter(GuestProject.id == old.id).count() == 0
    assert db.query(Job).filter(Job.guest_project_id == project.id).count() == 1


def test_second_sweep_finds_nothing(session_factory, db, store):
    _expired(db)
    sweeper = _sweeper(store, session_factory)

    first = sweeper.sweep_expired_projects()
    second = sweeper.sweep_expired_projects()

    assert first.projects == 1
    assert second.to_dict() == {"projects": 0, "jobs": 0, "monitors": 0, "files": 0, "orphan_files": 0}


def test_stored_file_urls_cannot_escape_output_dir(session_factory, db, store, tmp_path):
    outside = tmp_path / "shot_keep.png"
    outside.write_bytes(b"secret")
    old = _expired(db)
    _done_job(db, old, "/uploads/../shot_keep.png")
    _done_job(db, old, "/etc/passwd")

    report = _sweeper(store, session_factory).sweep_expired_projects()

    assert outside.read_bytes() == b"secret"
    assert report.files == 0
    assert report.jobs == 2


def test_missing_files_do_not_stop_the_sweep(session_factory, db, store):
    old = _expired(db)
    _done_job(db, old, "/uploads/shot_gone.png")

    report = _sweeper(store, session_factory).sweep_expired_projects()

    assert (report.projects, report.files) == (1, 0)


def test_orphan_sweep_removes_only_old_generated_files(session_factory, store):
    store.ensure_root()
    old_shot = store.put(b"1", "shot", "png")
    old_preview = store.put(b"2", "preview", "png")
    fresh_pdf = store.put(b"3", "pdf", "pdf")
    unrelated = os.path.join(store.root_dir, "notes.txt")
    with open(unrelated, "w") as f:
        f.write("keep")

    three_days_ago = time.time() - 72 * 3600
    for name in (old_shot, old_preview):
        os.utime(store.resolve_to_path(name), (three_days_ago, three_days_ago))
    os.utime(unrelated, (three_days_ago, three_days_ago))

    report = _sweeper(store, session_factory).sweep_orphan_files()

    assert report.orphan_files == 2
    remaining = sorted(os.listdir(store.root_dir))
    assert remaining == sorted([fresh_pdf, "notes.txt"])


@pytest.mark.asyncio
async def test_tick_runs_orphan_sweep_when_expiry_sweep_fails(store):
    def broken_session_factory():
        raise RuntimeError("database is down")

    store.ensure_root()
    old = store.put(b"1", "shot", "png")
    past = time.time() - 49 * 3600
    os.utime(store.resolve_to_path(old), (past, past))

    report = await _sweeper(store, broken_session_factory).tick()

    assert report.orphan_files == 1
    assert report.projects == 0


def test_sweeper_runs_on_start(store, session_factory):
    assert _sweeper(store, session_factory).run_on_start is True
