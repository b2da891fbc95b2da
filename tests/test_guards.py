"""Tests for the abuse-guard helpers."""
import re
from datetime import datetime, timedelta, timezone

import pytest

from aeo_analyzer.guards import (
    cleanup_old_usage_events,
    client_ip,
    extract_domain,
    extract_path,
    hash_ip,
    record_usage_event,
)
from aeo_analyzer.models import UsageEvent

SALT = "test-salt-12345"


class TestHashIp:
    def test_consistent_for_same_ip(self):
        assert hash_ip("192.168.1.1", SALT) == hash_ip("192.168.1.1", SALT)

    def test_differs_per_ip(self):
        assert hash_ip("192.168.1.1", SALT) != hash_ip("192.168.1.2", SALT)

    def test_differs_per_salt(self):
        assert hash_ip("192.168.1.1", SALT) != hash_ip("192.168.1.1", "other-salt")

    def test_sha256_hex(self):
        digest = hash_ip("192.168.1.1", SALT)
        assert len(digest) == 64
        assert re.fullmatch(r"[a-f0-9]+", digest)
        assert "192.168.1.1" not in digest


class TestExtractDomain:
    @pytest.mark.parametrize("url,domain", [
        ("https://example.com/path", "example.com"),
        ("https://www.example.com/path", "www.example.com"),
        ("https://example.com:8080/path", "example.com"),
        ("https://api.subdomain.example.com/path", "api.subdomain.example.com"),
        ("https://EXAMPLE.COM/path", "example.com"),
        ("https://xn--nxasmq5b.com/", "xn--nxasmq5b.com"),
        ("https://example.com/path?query=value", "example.com"),
        ("https://example.com/path#section", "example.com"),
        ("http://example.com/path", "example.com"),
    ])
    def test_hostname(self, url, domain):
        assert extract_domain(url) == domain

    def test_unparsable_falls_back_to_host_segment(self):
        assert extract_domain("not-a-url") == "not-a-url"
        assert extract_domain("Example.com/some/page") == "example.com"

    def test_empty_is_unknown(self):
        assert extract_domain("") == "unknown"

    def test_idempotent(self):
        for url in ("https://Example.COM/a", "not-a-url", "http://sub.example.org:81/"):
            once = extract_domain(url)
            assert extract_domain(once) == once


class TestExtractPath:
    def test_path(self):
        assert extract_path("https://example.com/some/path") == "/some/path"

    def test_root_for_bare_host(self):
        assert extract_path("https://example.com") == "/"
        assert extract_path("https://example.com/") == "/"

    def test_query_string_dropped(self):
        assert extract_path("https://example.com/path?query=value") == "/path"

    def test_invalid(self):
        assert extract_path("not-a-url") is None


class TestClientIp:
    def test_first_forwarded_entry(self):
        assert client_ip({"x-forwarded-for": "203.0.113.7, 10.0.0.1"}) == "203.0.113.7"

    def test_real_ip(self):
        assert client_ip({"x-real-ip": " 198.51.100.2 "}) == "198.51.100.2"

    def test_local_fallback(self):
        assert client_ip({}) == "127.0.0.1"


class TestUsageEvents:
    def test_record_and_cleanup(self, session_factory):
        db = session_factory()
        try:
            recent = record_usage_event(db, hash_ip("1.2.3.4", SALT), "example.com", "/a")
            old = UsageEvent(
                ip_hash=hash_ip("1.2.3.4", SALT),
                domain="example.com",
                created_at=datetime.now(timezone.utc) - timedelta(days=10),
            )
            db.add(old)
            db.commit()

            assert cleanup_old_usage_events(db, days_to_keep=7) == 1
            remaining = db.query(UsageEvent).all()
            assert [e.id for e in remaining] == [recent.id]
            assert remaining[0].path == "/a"
        finally:
            db.close()

    def test_cleanup_with_events_loaded_in_session(self, session_factory):
        db = session_factory()
        try:
            db.add_all([
                UsageEvent(ip_hash="a" * 64, domain="old.com",
                           created_at=datetime.now(timezone.utc) - timedelta(days=10)),
                UsageEvent(ip_hash="b" * 64, domain="new.com"),
            ])
            db.commit()
            assert len(db.query(UsageEvent).all()) == 2

            assert cleanup_old_usage_events(db, 7) == 1
            assert [e.domain for e in db.query(UsageEvent).all()] == ["new.com"]
        finally:
            db.close()
