"""ARQ task functions for running the pollers in a dedicated worker process."""
from typing import Any, Dict

from monitorify.utils.logger import logger
from monitorify.workers.runtime import WorkerRuntime


def _runtime(ctx: Dict[str, Any]) -> WorkerRuntime:
    # Built once in the worker's startup hook
    return ctx["runtime"]


async def process_screenshot_jobs(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Claim and run at most one queued screenshot job."""
    job_id = await _runtime(ctx).screenshot_worker.run_once()
    return {"success": True, "job_id": str(job_id) if job_id else None}


async def process_pdf_jobs(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Claim and run at most one queued PDF job."""
    job_id = await _runtime(ctx).pdf_worker.run_once()
    return {"success": True, "job_id": str(job_id) if job_id else None}


async def check_due_monitors(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Check one batch of due monitors."""
    checked = await _runtime(ctx).monitor_scheduler.run_once()
    return {"success": True, "monitors_checked": checked or 0}


async def cleanup_expired(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove expired guest projects and orphaned files.

    Returns:
        Dict with counts of removed records and files
    """
    report = await _runtime(ctx).cleanup_sweeper.run_once()
    if report is None:
        logger.info("Cleanup skipped: previous sweep still running")
        return {"success": False, "skipped": True}
    return {"success": True, **report.to_dict()}
