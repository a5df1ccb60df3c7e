from datetime import datetime, timedelta, timezone

import pytest

from monitorify.models import Job
from monitorify.services.diagnostics import PageDiagnostics, get_diagnostics
from monitorify.services.guest_projects import create_guest_project
from monitorify.services.technology import HeuristicTechnologyClassifier
from monitorify.utils.exceptions import RenderFailure


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


class TestGenerate:
    def test_issues_scoped_key(self, client):
        response = client.post("/public/generate", json={"url": "https://www.Example.com/#hero"})

        assert response.status_code == 200
        data = response.json()
        assert data["apiKey"].startswith("guest_")
        assert data["websiteUrl"] == "https://www.example.com/"
        assert data["allowedDomain"] == "www.example.com"
        assert data["projectId"]
        assert data["expiresAt"]
        assert "/api/screenshot" in [e["path"] for e in data["endpoints"]]

        ping = client.get("/api/ping", headers={"X-API-Key": data["apiKey"]})
        assert ping.status_code == 200
        assert ping.json()["projectId"] == data["projectId"]

    @pytest.mark.parametrize("url", ["example.com", "http://localhost:3000", "https://"])
    def test_rejects_bad_urls(self, client, url):
        response = client.post("/public/generate", json={"url": url})
        assert response.status_code == 400


class TestGuestKey:
    @pytest.mark.parametrize("headers", [{}, {"X-API-Key": "live_123"}, {"X-API-Key": "guest_" + "f" * 48}])
    def test_rejected_keys_get_401(self, client, issued, headers):
        response = client.get("/api/ping", headers=headers)
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired API key"

    def test_expired_key_gets_401(self, client, db):
        stale = create_guest_project(db, "https://example.com", now=datetime.now(timezone.utc) - timedelta(days=1, seconds=1))
        response = client.get("/api/ping", headers={"X-API-Key": stale.api_key})
        assert response.status_code == 401


class TestJobs:
    def test_www_equivalent_url_is_accepted(self, client, auth_headers, db):
        response = client.post("/api/screenshot", json={"url": "https://example.com/pricing"}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True

        job = client.get(f"/api/jobs/{body['jobId']}", headers=auth_headers).json()["job"]
        assert job["status"] == "queued"
        assert job["type"] == "screenshot"
        assert job["payload"]["url"] == "https://example.com/pricing"
        assert job["result"] is None and job["error"] is None

    def test_other_domain_is_forbidden_and_nothing_is_queued(self, client, auth_headers, db):
        response = client.post("/api/url2pdf", json={"url": "https://other.com/"}, headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "URL domain not allowed. Allowed: example.com"
        assert db.query(Job).count() == 0

    def test_invalid_url_is_400(self, client, auth_headers):
        response = client.post("/api/screenshot", json={"url": "nope"}, headers=auth_headers)
        assert response.status_code == 400

    def test_url_defaults_to_project_website(self, client, auth_headers):
        job_id = client.post("/api/url2pdf", json={}, headers=auth_headers).json()["jobId"]
        job = client.get(f"/api/jobs/{job_id}", headers=auth_headers).json()["job"]
        assert job["payload"]["url"] == "https://www.example.com/"
        assert job["payload"]["format"] == "A4"

    def test_job_lookup_errors(self, client, auth_headers, db):
        assert client.get("/api/jobs/unknown", headers=auth_headers).status_code == 404

        other = create_guest_project(db, "https://other.com")
        other_headers = {"X-API-Key": other.api_key}
        job_id = client.post("/api/screenshot", json={}, headers=other_headers).json()["jobId"]

        assert client.get(f"/api/jobs/{job_id}", headers=auth_headers).status_code == 403


class TestMetaScrape:
    @pytest.fixture
    def diagnostics(self, test_app, renderer, scorer):
        service = PageDiagnostics(renderer, HeuristicTechnologyClassifier(), scorer, timeout_ms=1000)
        test_app.dependency_overrides[get_diagnostics] = lambda: service
        return service

    def test_reports_meta_perf_technology_and_score(self, client, auth_headers, diagnostics, renderer):
        response = client.post("/api/meta-scrape", json={"url": "https://example.com/"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["status"] == 200
        assert data["meta"]["title"] == "Example"
        assert data["perf"] == {"pageLoadMs": 513, "ttfbMs": 42, "domContentLoadedMs": 310}
        assert "primary" in data["technology"]
        assert data["pageSpeed"]["score"] == 0.91
        assert renderer.calls[0][:2] == ("inspect", "https://example.com/")

    def test_render_failure_is_500_json(self, client, auth_headers, diagnostics, renderer):
        renderer.error = RenderFailure("Meta scrape failed: net::ERR_CONNECTION_REFUSED")

        response = client.post("/api/meta-scrape", json={}, headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Meta scrape failed: net::ERR_CONNECTION_REFUSED"}

    def test_other_domain_is_forbidden(self, client, auth_headers, diagnostics, renderer):
        response = client.post("/api/meta-scrape", json={"url": "https://other.com"}, headers=auth_headers)
        assert response.status_code == 403
        assert renderer.calls == []


class TestMonitors:
    def test_crud(self, client, auth_headers):
        created = client.post(
            "/api/monitors",
            json={"url": "https://example.com/status", "intervalSec": 300, "headers": {"X-Probe": "1"}},
            headers=auth_headers,
        )
        assert created.status_code == 200
        monitor = created.json()["monitor"]
        assert monitor["lastStatus"] == "unknown"
        assert monitor["headers"] == {"X-Probe": "1"}

        listed = client.get("/api/monitors", headers=auth_headers).json()["monitors"]
        assert [m["id"] for m in listed] == [monitor["id"]]

        paused = client.patch(f"/api/monitors/{monitor['id']}", json={"isActive": False}, headers=auth_headers)
        assert paused.json()["monitor"]["lastStatus"] == "paused"

        assert client.get(f"/api/monitors/{monitor['id']}", headers=auth_headers).status_code == 200
        assert client.delete(f"/api/monitors/{monitor['id']}", headers=auth_headers).json() == {"ok": True}
        assert client.get(f"/api/monitors/{monitor['id']}", headers=auth_headers).status_code == 404

    def test_limit_reached(self, client, auth_headers):
        for i in range(5):
            response = client.post("/api/monitors", json={"url": f"https://example.com/{i}"}, headers=auth_headers)
            assert response.status_code == 200

        response = client.post("/api/monitors", json={"url": "https://example.com/6"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Monitor limit reached (5)."

    @pytest.mark.parametrize(
        "body",
        [
            {"url": "https://example.com/", "intervalSec": 30},
            {"url": "https://example.com/", "timeoutMs": 500000},
            {"url": "https://example.com/", "headers": {"X" * 61: "v"}},
        ],
    )
    def test_invalid_input_is_422(self, client, auth_headers, body):
        assert client.post("/api/monitors", json=body, headers=auth_headers).status_code == 422

    def test_other_domain_is_forbidden(self, client, auth_headers):
        response = client.post("/api/monitors", json={"url": "https://other.com/"}, headers=auth_headers)
        assert response.status_code == 403
