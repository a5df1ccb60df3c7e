"""Page metadata and performance diagnostics (meta-scrape)."""
from typing import Any, Dict, Optional

from monitorify.config import settings
from monitorify.services.page_speed import CachedPerformanceScorer, LighthouseScorer, PerformanceScorer
from monitorify.services.renderer import Renderer, build_renderer
from monitorify.services.technology import HeuristicTechnologyClassifier, TechnologyClassifier


def _round_or_none(value: Optional[float]) -> Optional[int]:
    # Zero means the browser never reported the mark
    return round(value) if value else None


class PageDiagnostics:
    """Combines page rendering, technology detection and page speed scoring."""

    def __init__(
        self,
        renderer: Renderer,
        classifier: TechnologyClassifier,
        scorer: PerformanceScorer,
        timeout_ms: Optional[int] = None,
    ):
        self.renderer = renderer
        self.classifier = classifier
        self.scorer = scorer
        self.timeout_ms = timeout_ms or settings.inspect_timeout_ms

    async def inspect(self, url: str) -> Dict[str, Any]:
        """
        Inspect a page the caller has already cleared through the domain guard.

        Raises:
            RenderTimeout: If navigation exceeds the timeout
            RenderFailure: If the browser fails
        """
        snapshot = await self.renderer.inspect(url, self.timeout_ms)

        timing = snapshot.timing or {}
        load_event_ms = timing.get("loadEventMs")
        page_load_ms = round(load_event_ms) if load_event_ms and load_event_ms > 0 else snapshot.elapsed_ms

        technology = self.classifier.classify(snapshot.fetched_url, snapshot.html, snapshot.headers)
        page_speed = await self.scorer.score(snapshot.fetched_url)

        return {
            "ok": True,
            "fetchedUrl": snapshot.fetched_url,
            "status": snapshot.status,
            "meta": snapshot.meta,
            "perf": {
                "pageLoadMs": page_load_ms,
                "ttfbMs": _round_or_none(timing.get("ttfbMs")),
                "domContentLoadedMs": _round_or_none(timing.get("domContentLoadedMs")),
            },
            "technology": technology,
            "pageSpeed": page_speed,
        }


_diagnostics: Optional[PageDiagnostics] = None


def get_diagnostics() -> PageDiagnostics:
    """FastAPI dependency returning the shared diagnostics service."""
    global _diagnostics
    if _diagnostics is None:
        _diagnostics = PageDiagnostics(
            renderer=build_renderer(),
            classifier=HeuristicTechnologyClassifier(),
            scorer=CachedPerformanceScorer(LighthouseScorer()),
        )
    return _diagnostics
