# Module A: Answer-ability (25 points)
from __future__ import annotations

import re
from typing import List

from ..text import contains_boilerplate, count_words, get_sentences, is_definitional_sentence, round_half_up
from .base import FAIL, PASS, WARN, RuleResult, tiered

QUESTION_HEADING = re.compile(
    r'^(what|how|why|when|where|can|should|does|do|is|are|will|which)\b|\?$', re.I
)


def rule_a1(extraction) -> RuleResult:
    first_500 = ' '.join(extraction.top_text.split()[:500])
    candidates = [
        s for s in get_sentences(first_500)
        if count_words(s) <= 30 and is_definitional_sentence(s) and not contains_boilerplate(s)
    ]
    found = bool(candidates)
    return RuleResult(
        id='A1', module='A',
        title='Direct answer near top',
        why_it_matters='AI systems extract answers from the first few paragraphs. A clear, concise '
                       'definition or answer early helps your content get selected.',
        max_points=10,
        earned_points=10 if found else 0,
        status=PASS if found else FAIL,
        evidence=[f'Found definitional sentence: "{candidates[0][:100]}..."'] if found
        else ['No clear definitional sentence found in first 500 words'],
        recommendation='Good! You have a clear answer near the top.' if found
        else 'Add a 1-2 sentence definition or direct answer in your opening paragraph '
             'using "is", "means", or "refers to".',
    )


def rule_a2(extraction) -> RuleResult:
    questions = [
        h for h in extraction.headings
        if h.level in (2, 3) and QUESTION_HEADING.search(h.text.strip())
    ]
    count = len(questions)
    return RuleResult(
        id='A2', module='A',
        title='Question-style headings',
        why_it_matters='Question headings (What is X? How to Y?) signal to AI that specific queries '
                       'are answered below.',
        max_points=5,
        # four question headings earn full points
        earned_points=round_half_up(min(5, count * 1.25)),
        status=PASS if count >= 3 else WARN if count >= 1 else FAIL,
        evidence=[f'H{h.level}: "{h.text}"' for h in questions[:3]] or ['No question-style headings found'],
        recommendation=f'Great! Found {count} question headings.' if count >= 3
        else 'Add H2/H3 headings that start with What, How, Why, etc. or end with a question mark.',
    )


def rule_a3(extraction) -> RuleResult:
    found = extraction.lists_count + extraction.tables_count >= 1
    return RuleResult(
        id='A3', module='A',
        title='Lists or tables present',
        why_it_matters='Structured content like lists and tables is easier for AI to parse and quote accurately.',
        max_points=5,
        earned_points=5 if found else 0,
        status=PASS if found else FAIL,
        evidence=[f'Found {extraction.lists_count} lists and {extraction.tables_count} tables'],
        recommendation='Good! Your page uses structured elements.' if found
        else 'Add bullet lists, numbered steps, or comparison tables to structure your content.',
    )


def rule_a4(extraction) -> RuleResult:
    avg = extraction.sentence_stats.avg_length
    density = extraction.link_density
    good_length = 0 < avg < 25
    good_density = density < 0.25

    evidence: List[str] = []
    if good_length:
        evidence.append(f'Average sentence length: {avg} words')
    else:
        evidence.append(f'Average sentence length is {avg} words (should be < 25)')
    if good_density:
        evidence.append(f'Link density: {density * 100:.1f}%')
    else:
        evidence.append(f'Link density is {density * 100:.1f}% (should be < 25%)')

    points, status = tiered(good_length and good_density, good_length or good_density, 5, 2)
    return RuleResult(
        id='A4', module='A',
        title='Snippet cleanliness',
        why_it_matters='Clean, readable text with moderate sentence length and few inline links '
                       'creates better snippets.',
        max_points=5,
        earned_points=points,
        status=status,
        evidence=evidence,
        recommendation='Good! Your content is clean and readable.' if status == PASS
        else 'Shorten sentences and reduce inline links for better snippet extraction.',
    )


def evaluate_answerability(extraction) -> List[RuleResult]:
    return [rule_a1(extraction), rule_a2(extraction), rule_a3(extraction), rule_a4(extraction)]
