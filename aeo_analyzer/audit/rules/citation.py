# Module F: Citation likelihood (10 points)
from __future__ import annotations

import re
from typing import List

from .base import PASS, WARN, RuleResult

NUMBERS = re.compile(r'\d+(?:\.\d+)?(?:\s*(?:%|percent|million|billion|thousand))?')
STEP_LANGUAGE = re.compile(r'\b(step\s+\d|first[,:]|second[,:]|third[,:]|next[,:]|finally[,:]|then[,:])', re.I)
DEFINITION_LANGUAGE = re.compile(r'\b(is defined as|refers to|means that|in other words)\b', re.I)

REFERENCE_HEADINGS = (
    'sources', 'references', 'citations', 'bibliography',
    'further reading', 'related resources', 'learn more',
    'additional resources',
)


def rule_f1(extraction) -> RuleResult:
    text = extraction.main_text
    evidence: List[str] = []

    numbers = NUMBERS.findall(text)
    if len(numbers) >= 3:
        evidence.append(f'Contains {len(numbers)} numeric values/statistics')

    steps = [m.group(0) for m in STEP_LANGUAGE.finditer(text)]
    if len(steps) >= 2:
        evidence.append(f'Contains step-by-step language: {", ".join(steps[:3])}')

    if DEFINITION_LANGUAGE.search(text):
        evidence.append('Contains definitional language')

    passes = bool(evidence)
    return RuleResult(
        id='F1', module='F',
        title='Unique value signals',
        why_it_matters='Original data, statistics, and structured explanations make content more citable.',
        max_points=5,
        earned_points=5 if passes else 0,
        status=PASS if passes else WARN,
        evidence=evidence or ['No unique value signals detected'],
        recommendation='Content contains citable elements.' if passes
        else 'Add original statistics, step-by-step instructions, or clear definitions.',
    )


def rule_f2(extraction) -> RuleResult:
    texts = [h.text.lower() for h in extraction.headings]
    found = [ref for ref in REFERENCE_HEADINGS if any(ref in t for t in texts)]
    passes = bool(found)
    return RuleResult(
        id='F2', module='F',
        title='Sources/references section',
        why_it_matters='A dedicated references section signals well-researched, authoritative content.',
        max_points=5,
        earned_points=5 if passes else 0,
        status=PASS if passes else WARN,
        evidence=[f'Found reference section: "{found[0]}"'] if passes else ['No sources/references section found'],
        recommendation='References section present.' if passes
        else 'Add a "Sources" or "References" section with links to supporting materials.',
    )


def evaluate_citation(extraction) -> List[RuleResult]:
    return [rule_f1(extraction), rule_f2(extraction)]
