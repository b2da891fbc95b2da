# Module C: Trust & evidence (20 points)
from __future__ import annotations

import re
from typing import List

from .base import FAIL, PASS, WARN, RuleResult, ld_objects, tiered

BYLINE = re.compile(r'\bby\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,2})\b')

DATE_PATTERNS = [
    re.compile(r'last updated[:\s]+[\w\s,]+\d{4}', re.I),
    re.compile(r'updated[:\s]+[\w\s,]+\d{4}', re.I),
    re.compile(r'modified[:\s]+[\w\s,]+\d{4}', re.I),
    re.compile(r'published[:\s]+[\w\s,]+\d{4}', re.I),
]

TRUST_SIGNALS = ('about', 'contact', 'editorial', 'privacy', 'terms', 'team', 'company')


def rule_c1(extraction) -> RuleResult:
    evidence: List[str] = []
    found = False

    for obj in ld_objects(extraction):
        author = obj.get('author')
        if not author:
            continue
        found = True
        if isinstance(author, list):
            author = author[0]
        if isinstance(author, str):
            evidence.append(f'Schema author: "{author}"')
        elif isinstance(author, dict) and isinstance(author.get('name'), str):
            evidence.append(f'Schema author: "{author["name"]}"')

    m = BYLINE.search(extraction.top_text)
    if m:
        found = True
        evidence.append(f'Byline detected: "{m.group(0)}"')

    return RuleResult(
        id='C1', module='C',
        title='Author/byline present',
        why_it_matters='Author attribution builds trust and helps AI evaluate content credibility (E-E-A-T).',
        max_points=7,
        earned_points=7 if found else 0,
        status=PASS if found else FAIL,
        evidence=evidence if found else ['No author or byline detected'],
        recommendation='Author attribution present.' if found
        else 'Add author name with "By [Name]" and include author schema markup.',
    )


def rule_c2(extraction) -> RuleResult:
    evidence: List[str] = []
    for obj in ld_objects(extraction):
        if obj.get('dateModified'):
            evidence.append(f'Schema dateModified: {obj["dateModified"]}')
        if obj.get('datePublished'):
            evidence.append(f'Schema datePublished: {obj["datePublished"]}')

    for pattern in DATE_PATTERNS:
        m = pattern.search(extraction.top_text)
        if m:
            evidence.append(f'Date text found: "{m.group(0)}"')
            break

    found = bool(evidence)
    return RuleResult(
        id='C2', module='C',
        title='Last updated/date present',
        why_it_matters='Fresh content signals relevance. AI prefers recently updated information.',
        max_points=5,
        earned_points=5 if found else 0,
        status=PASS if found else WARN,
        evidence=evidence if found else ['No publication or update date found'],
        recommendation='Date information present.' if found
        else 'Add "Last updated: [date]" and include dateModified in schema.',
    )


def rule_c3(extraction) -> RuleResult:
    count = extraction.external_links_count
    points, status = tiered(count >= 2, count >= 1, 5, 2)
    return RuleResult(
        id='C3', module='C',
        title='Outbound citations',
        why_it_matters='Linking to authoritative sources demonstrates research and builds credibility.',
        max_points=5, earned_points=points, status=status,
        evidence=[f'Found {count} external links'] + [f'Link: {l}' for l in extraction.external_links[:3]],
        recommendation=f'Good! {count} outbound citations found.' if status == PASS
        else 'Add 2+ links to authoritative external sources to support your claims.',
    )


def rule_c4(extraction) -> RuleResult:
    text = extraction.main_text.lower()
    found = [s for s in TRUST_SIGNALS if s in text]
    points, status = tiered(len(found) >= 2, len(found) >= 1, 3, 1)
    return RuleResult(
        id='C4', module='C',
        title='About/contact signals',
        why_it_matters='Links to About, Contact, and editorial pages signal a legitimate, trustworthy site.',
        max_points=3, earned_points=points, status=status,
        evidence=[f'Found signals: {", ".join(found)}'] if found else ['No about/contact signals detected'],
        recommendation='Trust signals present.' if status == PASS
        else 'Include links to About, Contact, and Privacy pages.',
    )


def evaluate_trust(extraction) -> List[RuleResult]:
    return [rule_c1(extraction), rule_c2(extraction), rule_c3(extraction), rule_c4(extraction)]
