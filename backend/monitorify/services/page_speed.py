"""Page speed scoring via the Lighthouse CLI, with a short-lived cache."""
import asyncio
import json
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from monitorify.config import settings
from monitorify.utils.logger import logger

METRIC_AUDITS = {
    "lcpMs": "largest-contentful-paint",
    "fcpMs": "first-contentful-paint",
    "tbtMs": "total-blocking-time",
    "cls": "cumulative-layout-shift",
    "ttiMs": "interactive",
}


def empty_score() -> Dict[str, Any]:
    """Result returned when scoring is unavailable."""
    return {"score": None, "lcpMs": None, "fcpMs": None, "tbtMs": None, "cls": None, "ttiMs": None}


def parse_lighthouse_report(report: Dict[str, Any]) -> Dict[str, Any]:
    """Extract the performance score (0-100) and key metrics from a Lighthouse report."""
    raw_score = (((report.get("categories") or {}).get("performance") or {}).get("score"))
    audits = report.get("audits") or {}

    result = {"score": None if raw_score is None else round(raw_score * 100)}
    for key, audit_id in METRIC_AUDITS.items():
        result[key] = (audits.get(audit_id) or {}).get("numericValue")
    return result


class PerformanceScorer(Protocol):
    """Scores page performance for a URL."""

    async def score(self, url: str) -> Dict[str, Any]: ...


async def _reap(process: Optional[asyncio.subprocess.Process]) -> None:
    """Kill a still-running Lighthouse process and wait for it to exit."""
    if process is None or process.returncode is not None:
        return
    process.kill()
    await process.wait()


class LighthouseScorer:
    """Runs Lighthouse (mobile, performance only) in a subprocess."""

    def __init__(self, lighthouse_bin: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self.lighthouse_bin = lighthouse_bin or settings.lighthouse_bin
        self.timeout_seconds = timeout_seconds or settings.lighthouse_timeout_seconds

    async def score(self, url: str) -> Dict[str, Any]:
        cmd = [
            self.lighthouse_bin,
            url,
            "--output=json",
            "--output-path=stdout",
            "--quiet",
            "--only-categories=performance",
            "--form-factor=mobile",
            "--chrome-flags=--headless=new --no-sandbox --disable-gpu --disable-dev-shm-usage",
        ]

        process = None
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_seconds)
            if process.returncode != 0:
                logger.warning(f"Lighthouse exited with {process.returncode} for {url}: {stderr[:200]!r}")
                return empty_score()
            return parse_lighthouse_report(json.loads(stdout))
        except asyncio.TimeoutError:
            logger.warning(f"Lighthouse timed out for {url}")
            await _reap(process)
            return empty_score()
        except asyncio.CancelledError:
            await _reap(process)
            raise
        except (OSError, ValueError) as e:
            logger.warning(f"Lighthouse unavailable for {url}: {e}")
            return empty_score()


class CachedPerformanceScorer:
    """TTL cache in front of an expensive scorer, keyed by URL."""

    def __init__(
        self,
        scorer: PerformanceScorer,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.scorer = scorer
        self.ttl_seconds = settings.page_speed_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._cache: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    async def score(self, url: str) -> Dict[str, Any]:
        now = self._clock()
        cached = self._cache.get(url)
        if cached and now - cached[0] < self.ttl_seconds:
            return cached[1]

        data = await self.scorer.score(url)
        if data.get("score") is not None:
            self._prune(now)
            self._cache[url] = (now, data)
        return data

    def _prune(self, now: float) -> None:
        expired = [key for key, (stored_at, _) in self._cache.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._cache[key]

    def clear(self) -> None:
        self._cache.clear()
