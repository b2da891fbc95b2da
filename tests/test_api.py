"""End-to-end tests for the audits API with an in-memory database and a fake fetcher."""
from datetime import datetime, timedelta, timezone

from conftest import ARTICLE_URL, make_fetch_result
from fastapi.testclient import TestClient
from sqlalchemy import select

from aeo_analyzer.audit.fetcher import TIMEOUT, FetchError
from aeo_analyzer.config import Settings
from aeo_analyzer.guards import hash_ip
from aeo_analyzer.main import create_app
from aeo_analyzer.models import Audit, UsageEvent


class TestCreateAudit:
    def test_completed_audit(self, client, fetcher):
        resp = client.post("/api/audits", json={"url": ARTICLE_URL})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert body["url"] == ARTICLE_URL
        assert isinstance(body["overallScore"], int)
        assert body["warnings"] == []
        assert fetcher.calls == [ARTICLE_URL]

        detail = client.get(f"/api/audits/{body['id']}").json()
        assert detail["overallScore"] == body["overallScore"]
        assert set(detail["moduleScores"]) == {"A", "B", "C", "D", "E", "F"}
        assert len(detail["ruleResults"]) == 20
        assert detail["queryFitScore"] is None
        assert detail["answerDraft"] is None
        assert detail["error"] is None

        extract = detail["pageExtract"]
        assert extract["auditId"] == body["id"]
        assert extract["h1"] == "Answer Engine Optimization"
        assert extract["externalLinksCount"] == 2
        assert extract["headings"][0] == {"level": 1, "text": "Answer Engine Optimization"}

    def test_with_query(self, client):
        resp = client.post("/api/audits", json={"url": ARTICLE_URL, "query": "What is answer engine optimization?"})
        detail = client.get(f"/api/audits/{resp.json()['id']}").json()
        assert detail["query"] == "What is answer engine optimization?"
        assert isinstance(detail["queryFitScore"], int)
        assert 0 <= detail["queryFitScore"] <= 100
        assert detail["answerDraft"]
        assert detail["suggestedFaqs"]

    def test_blank_query_is_ignored(self, client):
        resp = client.post("/api/audits", json={"url": ARTICLE_URL, "query": "   "})
        detail = client.get(f"/api/audits/{resp.json()['id']}").json()
        assert detail["query"] is None
        assert detail["queryFitScore"] is None

    def test_fetch_warnings_are_returned(self, client, fetcher):
        fetcher.add(ARTICLE_URL, make_fetch_result(warnings=["HTML truncated at 10 bytes; some content may be missing."]))
        body = client.post("/api/audits", json={"url": ARTICLE_URL}).json()
        assert body["warnings"] == ["HTML truncated at 10 bytes; some content may be missing."]

    def test_invalid_url(self, client, fetcher):
        resp = client.post("/api/audits", json={"url": "not a url"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Please enter a valid URL"}
        assert fetcher.calls == []

    def test_unsupported_scheme(self, client):
        resp = client.post("/api/audits", json={"url": "ftp://example.com/file"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Please enter a valid URL"}

    def test_missing_url(self, client):
        resp = client.post("/api/audits", json={"query": "what is aeo"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_non_200_page_fails_audit(self, client, fetcher, session_factory):
        fetcher.add(ARTICLE_URL, make_fetch_result(status_code=404))
        resp = client.post("/api/audits", json={"url": ARTICLE_URL})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch page: HTTP 404"}

        with session_factory() as db:
            audit = db.scalars(select(Audit)).one()
            assert audit.status == "failed"
            assert audit.error == "Failed to fetch page: HTTP 404"
            assert audit.page_extract is None

    def test_fetch_error_message_is_returned(self, client, fetcher, session_factory):
        fetcher.add(ARTICLE_URL, FetchError(TIMEOUT, "Request timed out after 12000ms"))
        resp = client.post("/api/audits", json={"url": ARTICLE_URL})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Request timed out after 12000ms"}

        with session_factory() as db:
            audit = db.scalars(select(Audit)).one()
            assert audit.status == "failed"
            assert audit.error == "Request timed out after 12000ms"

    def test_extraction_error_fails_audit(self, client, session_factory, monkeypatch):
        def broken_extract(result, settings=None):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr("aeo_analyzer.services.audit_service.extract_content", broken_extract)
        resp = client.post("/api/audits", json={"url": ARTICLE_URL})
        assert resp.status_code == 500
        assert resp.json() == {"error": "parser exploded"}

        with session_factory() as db:
            audit = db.scalars(select(Audit)).one()
            assert audit.status == "failed"
            assert audit.error == "parser exploded"

    def test_usage_event_recorded(self, client, session_factory, settings):
        resp = client.post("/api/audits", json={"url": ARTICLE_URL},
                           headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        with session_factory() as db:
            event = db.scalars(select(UsageEvent)).one()
            assert event.ip_hash == hash_ip("203.0.113.7", settings.IP_HASH_SALT)
            assert event.domain == "example.com"
            assert event.path == "/guides/aeo"
            assert event.audit_id == resp.json()["id"]

    def test_production_requires_salt(self, fetcher, session_factory):
        settings = Settings(ENV="production", DATABASE_URL="sqlite://", IP_HASH_SALT="", LOG_LEVEL="WARNING")
        app = create_app(settings=settings, fetcher=fetcher, session_factory=session_factory)
        with TestClient(app) as c:
            resp = c.post("/api/audits", json={"url": ARTICLE_URL})
        assert resp.status_code == 500
        assert resp.json() == {"error": "AEO_IP_HASH_SALT is required in production for privacy compliance."}
        assert fetcher.calls == []


class TestReadAudits:
    def test_unknown_audit(self, client):
        resp = client.get("/api/audits/does-not-exist")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Audit not found"}

    def test_list_newest_first(self, client):
        ids = [client.post("/api/audits", json={"url": f"{ARTICLE_URL}?n={n}"}).json()["id"] for n in range(3)]
        items = client.get("/api/audits").json()
        assert [i["id"] for i in items] == ids[::-1]
        assert items[0]["status"] == "completed"
        assert set(items[0]) == {"id", "url", "query", "createdAt", "overallScore", "status"}
        assert items[0]["createdAt"].endswith("+00:00")

    def test_list_limit(self, fetcher, session_factory):
        settings = Settings(ENV="test", DATABASE_URL="sqlite://", IP_HASH_SALT="s",
                            LOG_LEVEL="WARNING", AUDIT_LIST_LIMIT=2)
        app = create_app(settings=settings, fetcher=fetcher, session_factory=session_factory)
        with TestClient(app) as c:
            for n in range(3):
                c.post("/api/audits", json={"url": f"{ARTICLE_URL}?n={n}"})
            assert len(c.get("/api/audits").json()) == 2


class TestHealth:
    def test_healthz(self, client):
        assert client.get("/healthz").json() == {"status": "ok"}


class TestStartup:
    def test_old_usage_events_are_cleaned_up(self, fetcher, session_factory):
        with session_factory() as db:
            db.add_all([
                UsageEvent(ip_hash="a" * 64, domain="old.com",
                           created_at=datetime.now(timezone.utc) - timedelta(days=30)),
                UsageEvent(ip_hash="b" * 64, domain="new.com",
                           created_at=datetime.now(timezone.utc) - timedelta(days=2)),
            ])
            db.commit()

        settings = Settings(ENV="test", DATABASE_URL="sqlite://", IP_HASH_SALT="s",
                            LOG_LEVEL="WARNING", USAGE_RETENTION_DAYS=7)
        app = create_app(settings=settings, fetcher=fetcher, session_factory=session_factory)
        with TestClient(app):
            pass

        with session_factory() as db:
            assert [e.domain for e in db.scalars(select(UsageEvent))] == ["new.com"]
