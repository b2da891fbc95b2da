"""Shared fixtures: settings, sample pages, a fake fetcher and an in-memory app."""
import pytest
from fastapi.testclient import TestClient

from aeo_analyzer.audit.fetcher import FetchResult
from aeo_analyzer.config import Settings
from aeo_analyzer.db import init_db, make_engine, make_session_factory
from aeo_analyzer.main import create_app

ARTICLE_URL = "https://example.com/guides/aeo"

ARTICLE_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>What is Answer Engine Optimization | Acme</title>
  <meta name="description" content="A practical guide to answer engine optimization.">
  <link rel="canonical" href="https://example.com/guides/aeo">
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Article",
     "name": "Answer Engine Optimization",
     "author": {"@type": "Person", "name": "Jane Doe"},
     "datePublished": "2024-01-10"}
  </script>
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Organization", "name": "Acme"}
  </script>
</head>
<body>
  <header><nav><a href="/">Home</a> <a href="/pricing">Pricing</a></nav></header>
  <article>
    <h1>Answer Engine Optimization</h1>
    <p>Written by Jane Doe. Last updated: January 10, 2024.</p>
    <p>Answer engine optimization is the practice of structuring content so AI assistants can quote it.</p>
    <h2>What is answer engine optimization?</h2>
    <p>It focuses on clear answers, explicit structure and credible sources. Studies found 42 percent
       of assistant answers cite pages with a direct definition near the top, and 3 in 5 cite pages
       with lists.</p>
    <h2>How does it work?</h2>
    <ol>
      <li>First, answer the question in one sentence.</li>
      <li>Next, support the answer with evidence.</li>
      <li>Finally, mark up the page with structured data.</li>
    </ol>
    <h2>Why does it matter?</h2>
    <p>Assistants summarise a handful of sources for each question. Pages that read cleanly are
       quoted more often. See the <a href="https://www.w3.org/standards/">W3C standards</a>,
       the <a href="https://schema.org/docs/gs.html">Schema.org guide</a> and our
       <a href="/about">about page</a>. <a href="https://twitter.com/intent/tweet">Share</a>
       <a href="#top">Back to top</a> <a href="mailto:team@example.com">Email the team</a></p>
    <h2>Sources</h2>
    <p>The W3C standards pages and the Schema.org documentation were used for this guide.</p>
  </article>
  <footer>Contact us | Privacy policy | Terms</footer>
</body>
</html>
"""


def make_fetch_result(html: str = ARTICLE_HTML, url: str = ARTICLE_URL, status_code: int = 200,
                      headers=None, warnings=None) -> FetchResult:
    return FetchResult(
        url=url,
        status_code=status_code,
        headers=headers or {"content-type": "text/html; charset=utf-8"},
        body=html.encode("utf-8"),
        encoding="utf-8",
        warnings=list(warnings or []),
    )


class FakeFetcher:
    """Returns canned FetchResults (or raises canned errors) keyed by URL."""

    def __init__(self, default=None):
        self.default = default
        self.responses = {}
        self.calls = []

    def add(self, url, result):
        self.responses[url] = result

    async def __call__(self, url):
        self.calls.append(url)
        result = self.responses.get(url, self.default)
        if isinstance(result, Exception):
            raise result
        if result is None:
            return make_fetch_result(url=url)
        return result


@pytest.fixture
def settings():
    return Settings(
        ENV="test",
        DATABASE_URL="sqlite://",
        IP_HASH_SALT="test-salt-12345",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def app(settings, fetcher, session_factory):
    return create_app(settings=settings, fetcher=fetcher, session_factory=session_factory)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
