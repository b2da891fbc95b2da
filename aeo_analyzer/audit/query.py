"""Heuristic fit of a page for a target search query.

Coverage of the query's content words in the title/H1, the heading outline and
the top of the body text, minus penalties for missing answer shapes, plus an
answer draft lifted from the page and suggested FAQ questions.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .extractor import Heading, PageExtraction
from .text import content_tokens, count_words, get_sentences, is_definitional_sentence, round_half_up, tokenize

QUESTION_PREFIX = re.compile(
    r'^(what is|what are|how to|how do you|how does|why is|why do|when is|where is'
    r'|can you|should i|does|do|is|are)\b\s*',
    re.I,
)
HOW_STEPS = re.compile(r'\b(step\s+\d|first|second|third)\b', re.I)
SUPPORTING = re.compile(r'\b(step|first|then|next)\b', re.I)
DIGITS = re.compile(r'\d+')

FAQ_TEMPLATES = [
    'What is {topic}?',
    'How does {topic} work?',
    'Why is {topic} important?',
    'How to use {topic}?',
    'What are the benefits of {topic}?',
    'Common mistakes with {topic}',
    '{topic} best practices',
    'How much does {topic} cost?',
    'How long does {topic} take?',
    'What are the requirements for {topic}?',
]
MAX_TEMPLATE_FAQS = 7
MAX_FAQS = 10

MAX_DEFINITION_WORDS = 35
MAX_SUPPORTING_WORDS = 40


@dataclass
class QueryAnalysis:
    query_fit_score: int
    answer_draft: Optional[str]
    suggested_faqs: List[str] = field(default_factory=list)
    coverage: Dict[str, int] = field(default_factory=dict)
    query_intent: str = 'other'
    missing_elements: List[str] = field(default_factory=list)


def detect_intent(query: str) -> str:
    lower = query.lower().strip()
    if lower.startswith('what') or 'what is' in lower or 'what are' in lower:
        return 'what'
    if lower.startswith('how') or 'how to' in lower or 'how do' in lower:
        return 'how'
    for intent in ('why', 'when', 'where'):
        if lower.startswith(intent):
            return intent
    return 'other'


def extract_topic(query: str) -> str:
    cleaned = QUESTION_PREFIX.sub('', query.lower().strip(), count=1)
    cleaned = re.sub(r'\?$', '', cleaned).strip()
    return cleaned or query


def overlap(query_tokens: Set[str], text_tokens: Set[str]) -> float:
    if not query_tokens:
        return 0.0
    return len(query_tokens & text_tokens) / len(query_tokens)


def best_definitional_sentence(text: str, query_tokens: Set[str]) -> Optional[str]:
    definitions = [
        s for s in get_sentences(text)
        if is_definitional_sentence(s) and count_words(s) <= MAX_DEFINITION_WORDS
    ]
    for sentence in definitions:
        if overlap(query_tokens, content_tokens(sentence)) > 0.2:
            return sentence
    return definitions[0] if definitions else None


def supporting_sentence(text: str, query_tokens: Set[str], first: str) -> Optional[str]:
    sentences = get_sentences(text)
    for sentence in sentences:
        if sentence == first or count_words(sentence) > MAX_SUPPORTING_WORDS:
            continue
        if query_tokens & content_tokens(sentence) or DIGITS.search(sentence) or SUPPORTING.search(sentence):
            return sentence
    if len(sentences) > 1 and sentences[1] != first:
        return sentences[1]
    return None


def _asked_by(template: str, headings: List[Heading]) -> bool:
    words = set(tokenize(template))
    return any(words <= set(tokenize(h.text)) for h in headings)


def suggest_faqs(topic: str, intent: str, headings: List[Heading]) -> List[str]:
    # deduped per template: a heading that asks one question drops only that question
    faqs: List[str] = []
    for template in FAQ_TEMPLATES:
        question = template.format(topic=topic)
        if not _asked_by(question, headings):
            faqs.append(question)
        if len(faqs) >= MAX_TEMPLATE_FAQS:
            break

    if intent == 'how':
        faqs += [f'Step-by-step guide to {topic}', f'Tips for {topic}']
    elif intent == 'what':
        faqs += [f'Types of {topic}', f'Examples of {topic}']
    return faqs[:MAX_FAQS]


def build_answer_draft(text: str, query_tokens: Set[str]) -> Optional[str]:
    sentences = get_sentences(text)
    first = best_definitional_sentence(text, query_tokens) or (sentences[0] if sentences else None)
    if not first:
        return None
    second = supporting_sentence(text, query_tokens, first)
    draft = f'{first}. {second}.' if second else f'{first}.'
    draft = re.sub(r'\.+', '.', draft)
    return re.sub(r'\s+', ' ', draft).strip()


def analyze_query(query: str, extraction: PageExtraction) -> QueryAnalysis:
    query_tokens = content_tokens(query)
    intent = detect_intent(query)
    topic = extract_topic(query)

    title_h1 = content_tokens(extraction.title or '') | content_tokens(extraction.h1 or '')
    heading_tokens = content_tokens(' '.join(h.text for h in extraction.headings))
    body_tokens = content_tokens(extraction.top_text)

    title_match = overlap(query_tokens, title_h1)
    headings_match = overlap(query_tokens, heading_tokens)
    content_match = overlap(query_tokens, body_tokens)

    penalty = 0
    missing: List[str] = []
    if intent == 'how' and not (extraction.lists_count > 0 or HOW_STEPS.search(extraction.main_text)):
        penalty += 15
        missing.append('Step-by-step instructions')
    if intent == 'what' and best_definitional_sentence(extraction.top_text, query_tokens) is None:
        penalty += 15
        missing.append('Clear definition or explanation')

    # weights sum to 100: base is already a 0-100 score, no further x100
    base = 30 * title_match + 30 * headings_match + 40 * content_match
    fit = max(0, min(100, round_half_up(base) - penalty))

    return QueryAnalysis(
        query_fit_score=fit,
        answer_draft=build_answer_draft(extraction.top_text, query_tokens),
        suggested_faqs=suggest_faqs(topic, intent, extraction.headings),
        coverage={
            'title_match': round_half_up(title_match * 100),
            'headings_match': round_half_up(headings_match * 100),
            'content_match': round_half_up(content_match * 100),
        },
        query_intent=intent,
        missing_elements=missing,
    )
