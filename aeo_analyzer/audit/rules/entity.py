# Module B: Entity clarity (20 points)
from __future__ import annotations

import re
from collections import Counter
from typing import List, Optional

from ..text import content_tokens, jaccard
from .base import FAIL, PASS, WARN, RuleResult, ld_name, ld_objects, tiered

BRAND_TYPES = ('Organization', 'LocalBusiness', 'Corporation', 'Person')
TITLE_SUFFIX = re.compile(r'[|–-]\s*([^|–-]+)$')


def title_suffix(title: Optional[str]) -> Optional[str]:
    """Brand-like suffix of a title such as 'Guide | Acme' -> 'Acme'."""
    if not title:
        return None
    m = TITLE_SUFFIX.search(title)
    return m.group(1).strip() if m else None


def rule_b1(extraction) -> RuleResult:
    h1_count = sum(1 for h in extraction.headings if h.level == 1)
    has_h1 = bool(extraction.h1)
    single = h1_count == 1

    if has_h1:
        extra = f' ({h1_count} H1s found)' if h1_count > 1 else ''
        evidence = [f'H1: "{extraction.h1}"{extra}']
    else:
        evidence = ['No H1 heading found']

    if has_h1 and single:
        recommendation = 'Good! You have a clear, single H1.'
    elif has_h1:
        recommendation = 'Use only one H1 per page for clarity.'
    else:
        recommendation = 'Add a descriptive H1 heading that summarizes the page topic.'

    points, status = tiered(has_h1 and single, has_h1, 5, 3)
    return RuleResult(
        id='B1', module='B',
        title='Single clear H1 exists',
        why_it_matters='A single, descriptive H1 helps AI understand the primary topic of the page.',
        max_points=5, earned_points=points, status=status,
        evidence=evidence, recommendation=recommendation,
    )


def rule_b2(extraction) -> RuleResult:
    why = 'Aligned title and H1 reinforce topic focus and help AI understand page intent.'
    if not extraction.title or not extraction.h1:
        return RuleResult(
            id='B2', module='B', title='Title and H1 alignment', why_it_matters=why,
            max_points=5, earned_points=0, status=FAIL,
            evidence=['Missing title or H1'],
            recommendation='Ensure both title tag and H1 are present with related keywords.',
        )

    overlap = jaccard(content_tokens(extraction.title), content_tokens(extraction.h1))
    points, status = tiered(overlap >= 0.25, overlap >= 0.1, 5, 2)
    return RuleResult(
        id='B2', module='B', title='Title and H1 alignment', why_it_matters=why,
        max_points=5, earned_points=points, status=status,
        evidence=[
            f'Title: "{extraction.title}"',
            f'H1: "{extraction.h1}"',
            f'Overlap score: {overlap * 100:.0f}%',
        ],
        recommendation='Good alignment between title and H1.' if status == PASS
        else 'Align your title and H1 to share key topic words.',
    )


def rule_b3(extraction) -> RuleResult:
    evidence: List[str] = []
    brand = None

    for ld in extraction.json_ld:
        if ld.type in BRAND_TYPES:
            name = ld_name(ld.parsed)
            if name:
                brand = name
                evidence.append(f'Schema {ld.type}: "{name}"')

    if brand is None:
        brand = title_suffix(extraction.title)
        if brand:
            evidence.append(f'Title suffix: "{brand}"')

    found = bool(brand)
    return RuleResult(
        id='B3', module='B',
        title='Organization/brand presence',
        why_it_matters='Clear brand/organization signals help AI attribute content to authoritative sources.',
        max_points=5,
        earned_points=5 if found else 0,
        status=PASS if found else FAIL,
        evidence=evidence if found else ['No clear brand/organization name detected'],
        recommendation=f'Brand identified: "{brand}"' if found
        else 'Add Organization schema markup and include brand name in title.',
    )


def rule_b4(extraction) -> RuleResult:
    names: List[str] = []
    suffix = title_suffix(extraction.title)
    if suffix:
        names.append(suffix.lower())
    if extraction.h1:
        names.append(extraction.h1.lower())
    for obj in ld_objects(extraction):
        name = ld_name(obj)
        if name:
            names.append(name.lower())

    counts = Counter(w for name in names for w in name.split() if len(w) > 2)
    shared = [w for w, n in counts.items() if n >= 2]
    passes = bool(shared)
    return RuleResult(
        id='B4', module='B',
        title='Consistent naming signals',
        why_it_matters='Consistent brand mentions across title, schema, and content reinforce entity recognition.',
        max_points=5,
        earned_points=5 if passes else 0,
        status=PASS if passes else WARN,
        evidence=[f'Consistent terms found: {", ".join(shared)}'] if passes
        else ['Brand name not consistently repeated across elements'],
        recommendation='Good naming consistency.' if passes
        else 'Use your brand name consistently in title, H1, schema, and footer.',
    )


def evaluate_entity_clarity(extraction) -> List[RuleResult]:
    return [rule_b1(extraction), rule_b2(extraction), rule_b3(extraction), rule_b4(extraction)]
