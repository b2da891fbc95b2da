# Module E: Retrieval & accessibility (10 points)
from __future__ import annotations

from typing import List

from .base import FAIL, PASS, WARN, RuleResult

MIN_SERVER_WORDS = 400


def rule_e1(extraction) -> RuleResult:
    robots = extraction.robots_meta or ''
    noindex = 'noindex' in robots.lower()
    if noindex:
        evidence = [f'Robots directive includes noindex: "{robots}"']
    elif robots:
        evidence = [f'Robots: "{robots}"']
    else:
        evidence = ['No restrictive robots meta found']
    return RuleResult(
        id='E1', module='E',
        title='Page is indexable',
        why_it_matters='Pages blocked from indexing cannot be used by AI systems that rely on search indexes.',
        max_points=5,
        earned_points=0 if noindex else 5,
        status=FAIL if noindex else PASS,
        evidence=evidence,
        recommendation='Remove noindex directive to allow indexing.' if noindex else 'Page is indexable.',
    )


def rule_e2(extraction) -> RuleResult:
    has_canonical = bool(extraction.canonical)
    return RuleResult(
        id='E2', module='E',
        title='Canonical URL present',
        why_it_matters='Canonical URLs prevent duplicate content issues and consolidate ranking signals.',
        max_points=3,
        earned_points=3 if has_canonical else 0,
        status=PASS if has_canonical else WARN,
        evidence=[f'Canonical: {extraction.canonical}'] if has_canonical else ['No canonical URL specified'],
        recommendation='Canonical URL is set.' if has_canonical
        else 'Add a canonical link tag to specify the preferred URL.',
    )


def rule_e3(extraction) -> RuleResult:
    words = extraction.word_count
    has_content = words >= MIN_SERVER_WORDS
    if has_content:
        points, status = 2, PASS
        evidence = [f'{words} words in server response']
    else:
        points, status = 0, FAIL
        evidence = [f'Only {words} words in server response']

    if extraction.is_js_shell:
        points = max(0, points - 1)
        if status == PASS:
            status = WARN
        evidence.append('Page appears to be JavaScript-heavy')

    return RuleResult(
        id='E3', module='E',
        title='Server-rendered content',
        why_it_matters='Content that requires JavaScript may not be accessible to all AI crawlers.',
        max_points=2, earned_points=points, status=status, evidence=evidence,
        recommendation='Good server-rendered content.' if has_content and not extraction.is_js_shell
        else 'Ensure main content is in the initial HTML response, not loaded via JavaScript.',
    )


def evaluate_retrieval(extraction) -> List[RuleResult]:
    return [rule_e1(extraction), rule_e2(extraction), rule_e3(extraction)]
