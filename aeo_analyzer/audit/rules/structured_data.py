# Module D: Structured data (15 points)
from __future__ import annotations

from typing import List

from .base import FAIL, PASS, WARN, RuleResult, tiered

RECOGNIZED_TYPES = frozenset({
    'Article', 'NewsArticle', 'BlogPosting',
    'FAQPage', 'HowTo', 'Product',
    'Organization', 'LocalBusiness', 'Corporation',
    'BreadcrumbList', 'WebPage', 'WebSite',
    'Person', 'Review', 'Recipe',
})


def _graph_types(parsed) -> List[str]:
    if not isinstance(parsed, dict) or not isinstance(parsed.get('@graph'), list):
        return []
    types = []
    for item in parsed['@graph']:
        t = item.get('@type') if isinstance(item, dict) else None
        if isinstance(t, list):
            t = t[0] if t else None
        if isinstance(t, str):
            types.append(t)
    return types


def rule_d1(extraction) -> RuleResult:
    count = len(extraction.json_ld)
    found = count > 0
    return RuleResult(
        id='D1', module='D',
        title='JSON-LD present',
        why_it_matters='Structured data helps AI understand your content type and extract key information.',
        max_points=6,
        earned_points=6 if found else 0,
        status=PASS if found else FAIL,
        evidence=[f'Found {count} JSON-LD block(s)'] if found else ['No JSON-LD structured data found'],
        recommendation='Structured data present.' if found
        else 'Add JSON-LD schema markup for your content type (Article, HowTo, FAQPage, etc.)',
    )


def rule_d2(extraction) -> RuleResult:
    found: List[str] = []
    for ld in extraction.json_ld:
        for t in [ld.type] + _graph_types(ld.parsed):
            if t in RECOGNIZED_TYPES and t not in found:
                found.append(t)

    n = len(found)
    status = PASS if n >= 2 else WARN if n else FAIL
    return RuleResult(
        id='D2', module='D',
        title='Recognized schema types',
        why_it_matters='Using established schema types (Article, FAQPage, HowTo) enables rich results '
                       'and AI understanding.',
        max_points=6,
        earned_points=min(6, n * 2),
        status=status,
        evidence=[f'Found types: {", ".join(found)}'] if found else ['No recognized schema types found'],
        recommendation=f'Good! Using {n} schema types.' if n >= 2
        else 'Add specific schema types like Article, FAQPage, or HowTo markup.',
    )


def rule_d3(extraction) -> RuleResult:
    valid = 0
    issues: List[str] = []
    for ld in extraction.json_ld:
        if ld.parsed is None:
            issues.append('Invalid JSON in schema block')
        elif not isinstance(ld.parsed, dict) or '@context' not in ld.parsed:
            issues.append('Missing @context in schema')
        else:
            valid += 1

    total = len(extraction.json_ld)
    all_valid = total > 0 and not issues
    if total == 0:
        points, status, evidence = 0, WARN, ['No schema to validate']
    else:
        points, status = tiered(all_valid, valid > 0, 3, 1)
        evidence = issues or [f'{valid} valid schema block(s)']

    return RuleResult(
        id='D3', module='D',
        title='Basic schema validity',
        why_it_matters='Invalid schema markup is ignored by search engines and AI systems.',
        max_points=3, earned_points=points, status=status, evidence=evidence,
        recommendation='Schema is valid.' if all_valid
        else 'Ensure all JSON-LD blocks are valid JSON and include @context.',
    )


def evaluate_structured_data(extraction) -> List[RuleResult]:
    return [rule_d1(extraction), rule_d2(extraction), rule_d3(extraction)]
