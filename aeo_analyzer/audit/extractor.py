"""Structured extraction of a fetched HTML page.

Pure function of a FetchResult: metadata, heading outline, JSON-LD blocks,
robots directives, and a best-guess main content block with its text, link
and sentence statistics.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from ..config import Settings, get_settings
from .fetcher import FetchResult
from .text import count_words, get_sentences, round_half_up

NOISE_SELECTORS = [
    'header', 'nav', 'footer', 'aside', 'script', 'style',
    'noscript', 'svg', 'iframe', 'form', '.cookie', '.popup',
    '.modal', '.advertisement', '.ad', '.sidebar', '.menu',
    '[role="navigation"]', '[role="banner"]', '[role="contentinfo"]',
]

MAIN_CANDIDATES = [
    'article', 'main', '[role="main"]', '.content', '.post', '.article',
    '.entry-content', '.post-content', '#content', '#main',
]

SOCIAL_DOMAINS = (
    'facebook.com', 'twitter.com', 'x.com', 'linkedin.com',
    'pinterest.com', 'instagram.com', 'youtube.com', 'tiktok.com',
    'reddit.com', 'whatsapp.com', 't.me',
)

HEADING_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6']
IGNORED_LINK_PREFIXES = ('#', 'javascript:', 'mailto:', 'tel:')
TOP_TEXT_WORDS = 1200


@dataclass
class Heading:
    level: int
    text: str


@dataclass
class SentenceStats:
    count: int = 0
    avg_length: int = 0
    min_length: int = 0
    max_length: int = 0


@dataclass
class JsonLdBlock:
    raw: str
    parsed: Any = None
    type: Optional[str] = None


@dataclass
class PageExtraction:
    title: Optional[str] = None
    description: Optional[str] = None
    canonical: Optional[str] = None
    h1: Optional[str] = None
    headings: List[Heading] = field(default_factory=list)
    main_text: str = ''
    top_text: str = ''
    word_count: int = 0
    lists_count: int = 0
    tables_count: int = 0
    internal_links_count: int = 0
    external_links_count: int = 0
    external_links: List[str] = field(default_factory=list)
    json_ld: List[JsonLdBlock] = field(default_factory=list)
    robots_meta: Optional[str] = None
    response_headers: Dict[str, str] = field(default_factory=dict)
    link_density: float = 0.0
    sentence_stats: SentenceStats = field(default_factory=SentenceStats)
    fetch_type: str = 'raw'
    is_js_shell: bool = False
    warnings: List[str] = field(default_factory=list)


# ---------- helpers ----------

def _text(el) -> str:
    return ' '.join(el.get_text().split())


def _words(el) -> int:
    return count_words(el.get_text(' '))


def _anchor_words(el) -> int:
    return sum(_words(a) for a in el.find_all('a'))


def compute_sentence_stats(text: str) -> SentenceStats:
    sentences = get_sentences(text)
    if not sentences:
        return SentenceStats()
    lengths = [count_words(s) for s in sentences]
    return SentenceStats(
        count=len(sentences),
        avg_length=round_half_up(sum(lengths) / len(lengths)),
        min_length=min(lengths),
        max_length=max(lengths),
    )


def is_internal_link(href: str, base_url: str) -> bool:
    if not href or href.startswith(IGNORED_LINK_PREFIXES):
        return False
    try:
        return urlparse(urljoin(base_url, href)).hostname == urlparse(base_url).hostname
    except ValueError:
        return href.startswith('/') and not href.startswith('//')


def is_social_share_domain(url: str) -> bool:
    try:
        host = (urlparse(url).hostname or '').lower()
    except ValueError:
        return False
    return any(d in host for d in SOCIAL_DOMAINS)


def _parse_json_ld(raw: str) -> JsonLdBlock:
    try:
        parsed = json.loads(raw)
    except ValueError:
        return JsonLdBlock(raw=raw)
    ld_type = None
    if isinstance(parsed, dict):
        value = parsed.get('@type')
        if isinstance(value, list):
            value = next((v for v in value if isinstance(v, str)), None)
        ld_type = value if isinstance(value, str) else None
    return JsonLdBlock(raw=raw, parsed=parsed, type=ld_type)


def _meta_content(soup, **attrs) -> Optional[str]:
    tag = soup.find('meta', attrs=attrs)
    content = (tag.get('content') or '').strip() if tag else ''
    return content or None


def _pick_main(clean):
    candidates = []
    for selector in MAIN_CANDIDATES:
        for el in clean.select(selector):
            words = _words(el)
            if words <= 50:
                continue
            penalty = (_anchor_words(el) / words) * 200
            score = (words
                     + len(el.find_all(HEADING_TAGS)) * 30
                     + len(el.find_all(['ul', 'ol'])) * 20
                     - penalty)
            candidates.append((score, el))

    if not candidates and clean.body is not None:
        for el in clean.body.find_all(recursive=False):
            words = _words(el)
            if words > 100:
                candidates.append((words, el))

    if candidates:
        return max(candidates, key=lambda c: c[0])[1]
    return clean.body or clean


def extract_content(fetch_result: FetchResult, settings: Optional[Settings] = None) -> PageExtraction:
    settings = settings or get_settings()
    html = fetch_result.html
    base_url = fetch_result.url
    soup = BeautifulSoup(html, 'lxml')
    warnings = list(fetch_result.warnings)

    title = _text(soup.title) if soup.title else ''
    description = (_meta_content(soup, name='description')
                   or _meta_content(soup, property='og:description'))
    canonical_tag = soup.find('link', rel='canonical')
    canonical = canonical_tag.get('href') if canonical_tag else None
    first_h1 = soup.find('h1')
    h1 = _text(first_h1) if first_h1 else ''

    headings = []
    for tag in soup.find_all(HEADING_TAGS):
        text = _text(tag)
        if text:
            headings.append(Heading(level=int(tag.name[1]), text=text))

    json_ld = [
        _parse_json_ld((tag.string or tag.get_text() or '').strip())
        for tag in soup.find_all('script', attrs={'type': 'application/ld+json'})
    ]

    robots = [r for r in (_meta_content(soup, name='robots'),
                          fetch_result.headers.get('x-robots-tag')) if r]
    robots_meta = ', '.join(robots) or None

    # Main content comes from a second parse with the noise stripped out
    clean = BeautifulSoup(html, 'lxml')
    for selector in NOISE_SELECTORS:
        for el in clean.select(selector):
            if not el.decomposed:
                el.decompose()
    main = _pick_main(clean)

    main_text = _text(main)
    if len(main_text) > settings.MAX_TEXT_CHARS:
        main_text = main_text[:settings.MAX_TEXT_CHARS]
        warnings.append(
            f"Main text truncated at {settings.MAX_TEXT_CHARS} characters; scores use the first part only."
        )
    word_count = count_words(main_text)
    top_text = ' '.join(main_text.split()[:TOP_TEXT_WORDS])

    internal_links: List[str] = []
    external_links: List[str] = []
    for a in main.find_all('a', href=True):
        href = a['href'].strip()
        if not href or href.lower().startswith(IGNORED_LINK_PREFIXES):
            continue
        try:
            absolute = urljoin(base_url, href)
        except ValueError:
            continue
        if is_internal_link(href, base_url):
            internal_links.append(absolute)
        elif not is_social_share_domain(absolute):
            external_links.append(absolute)

    link_density = _anchor_words(main) / word_count if word_count else 0.0
    script_count = len(soup.find_all('script'))

    return PageExtraction(
        title=title or None,
        description=description,
        canonical=canonical or None,
        h1=h1 or None,
        headings=headings,
        main_text=main_text,
        top_text=top_text,
        word_count=word_count,
        lists_count=len(main.find_all(['ul', 'ol'])),
        tables_count=len(main.find_all('table')),
        internal_links_count=len(internal_links),
        external_links_count=len(external_links),
        external_links=list(dict.fromkeys(external_links)),
        json_ld=json_ld,
        robots_meta=robots_meta,
        response_headers=dict(fetch_result.headers),
        link_density=round(link_density, 3),
        sentence_stats=compute_sentence_stats(main_text),
        fetch_type='raw',
        is_js_shell=word_count < 400 and script_count > 5,
        warnings=warnings,
    )
