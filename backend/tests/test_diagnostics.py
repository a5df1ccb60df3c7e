import asyncio

import pytest

from monitorify.services.page_speed import (
    CachedPerformanceScorer,
    LighthouseScorer,
    empty_score,
    parse_lighthouse_report,
)
from monitorify.services.technology import HeuristicTechnologyClassifier


class TestTechnology:
    classifier = HeuristicTechnologyClassifier()

    def test_unknown_when_nothing_matches(self):
        assert self.classifier.classify("https://example.com", "<html></html>", {}) == {
            "primary": "Unknown",
            "detected": [],
        }

    def test_highest_score_is_primary(self):
        html = '<link href="/wp-content/themes/x.css"><div data-reactroot></div>'
        result = self.classifier.classify("https://example.com", html, {"X-Powered-By": "PHP/8.2"})
        assert result["primary"] == "WordPress"
        assert result["detected"] == ["WordPress", "React", "PHP"]

    def test_shopify_needs_store_signals(self):
        mention = self.classifier.classify("https://example.com", "<p>We moved off Shopify</p>", {})
        store = self.classifier.classify("https://example.com", "", {"X-Shopify-Stage": "production"})
        assert "Shopify" not in mention["detected"]
        assert store["primary"] == "Shopify"


class TestPageSpeed:
    def test_parse_lighthouse_report(self):
        report = {
            "categories": {"performance": {"score": 0.876}},
            "audits": {
                "largest-contentful-paint": {"numericValue": 2400.5},
                "cumulative-layout-shift": {"numericValue": 0.02},
            },
        }
        parsed = parse_lighthouse_report(report)
        assert parsed["score"] == 88
        assert parsed["lcpMs"] == 2400.5
        assert parsed["cls"] == 0.02
        assert parsed["tbtMs"] is None

    def test_parse_empty_report(self):
        assert parse_lighthouse_report({}) == empty_score()

    @pytest.mark.asyncio
    async def test_cache_hits_within_ttl(self, scorer):
        now = [1000.0]
        cached = CachedPerformanceScorer(scorer, ttl_seconds=300, clock=lambda: now[0])

        await cached.score("https://example.com/")
        now[0] += 299
        await cached.score("https://example.com/")
        assert scorer.calls == ["https://example.com/"]

        now[0] += 2
        await cached.score("https://example.com/")
        assert len(scorer.calls) == 2

    @pytest.mark.asyncio
    async def test_failed_scores_are_not_cached(self, scorer):
        scorer.value = None
        cached = CachedPerformanceScorer(scorer, ttl_seconds=300)

        await cached.score("https://example.com/")
        await cached.score("https://example.com/")
        assert len(scorer.calls) == 2

    @pytest.mark.asyncio
    async def test_expired_entries_are_dropped_on_insert(self, scorer):
        now = [1000.0]
        cached = CachedPerformanceScorer(scorer, ttl_seconds=300, clock=lambda: now[0])

        await cached.score("https://example.com/a")
        now[0] += 301
        await cached.score("https://example.com/b")

        assert list(cached._cache) == ["https://example.com/b"]


class HangingProcess:
    """Subprocess stand-in that never finishes on its own."""

    def __init__(self):
        self.returncode = None
        self.killed = False
        self.waited = False

    async def communicate(self):
        await asyncio.sleep(60)

    def kill(self):
        self.killed = True

    async def wait(self):
        self.waited = True
        self.returncode = -9
        return self.returncode


class TestLighthouseScorer:
    @pytest.fixture
    def process(self, monkeypatch):
        process = HangingProcess()

        async def fake_exec(*args, **kwargs):
            return process

        monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
        return process

    @pytest.mark.asyncio
    async def test_timeout_kills_and_waits_for_process(self, process):
        result = await LighthouseScorer(lighthouse_bin="lighthouse", timeout_seconds=0.01).score("https://example.com/")

        assert result == empty_score()
        assert process.killed
        assert process.waited

    @pytest.mark.asyncio
    async def test_cancellation_kills_and_waits_for_process(self, process):
        task = asyncio.create_task(
            LighthouseScorer(lighthouse_bin="lighthouse", timeout_seconds=30).score("https://example.com/")
        )
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert process.killed
        assert process.waited
