"""Text helpers shared by the extractor, the rule modules and query analysis."""
from __future__ import annotations

import math
import re
from typing import Iterable, List, Set

STOPWORDS = frozenset({
    'a', 'an', 'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for',
    'of', 'with', 'by', 'from', 'as', 'is', 'was', 'are', 'were', 'been',
    'be', 'have', 'has', 'had', 'do', 'does', 'did', 'will', 'would', 'could',
    'should', 'may', 'might', 'must', 'shall', 'can', 'need', 'dare', 'ought',
    'used', 'this', 'that', 'these', 'those', 'i', 'you', 'he', 'she', 'it',
    'we', 'they', 'what', 'which', 'who', 'whom', 'whose', 'when', 'where',
    'why', 'how', 'all', 'each', 'every', 'both', 'few', 'more', 'most',
    'other', 'some', 'such', 'no', 'nor', 'not', 'only', 'own', 'same',
    'so', 'than', 'too', 'very', 'just', 'also', 'now', 'here', 'there',
})

BOILERPLATE_WORDS = (
    'cookie', 'cookies', 'privacy', 'policy', 'terms', 'conditions',
    'subscribe', 'newsletter', 'navigation', 'menu', 'skip', 'search',
    'login', 'signup', 'register', 'account', 'cart', 'checkout',
)

DEFINITIONAL_PATTERNS = [
    re.compile(r'\bis\b'),
    re.compile(r'\bare\b'),
    re.compile(r'\bmeans\b'),
    re.compile(r'\brefers to\b'),
    re.compile(r'\bdefined as\b'),
    re.compile(r'\bin short[,:]?\b'),
    re.compile(r'\bsimply put\b'),
    re.compile(r'\bessentially\b'),
]

_NON_WORD = re.compile(r'[^\w\s]')
_SENTENCE_SPLIT = re.compile(r'[.!?]+')


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def count_words(text: str) -> int:
    return len(text.split())


def tokenize(text: str) -> List[str]:
    cleaned = _NON_WORD.sub(' ', text.lower())
    return [w for w in cleaned.split() if len(w) > 1]


def remove_stopwords(tokens: Iterable[str]) -> List[str]:
    return [t for t in tokens if t not in STOPWORDS]


def content_tokens(text: str) -> Set[str]:
    return set(remove_stopwords(tokenize(text or '')))


def jaccard(a: Set[str], b: Set[str]) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


def compute_grade(percentage: float) -> str:
    if percentage >= 90: return 'A'
    if percentage >= 80: return 'B'
    if percentage >= 70: return 'C'
    if percentage >= 60: return 'D'
    return 'F'


def contains_boilerplate(text: str) -> bool:
    lower = text.lower()
    return any(word in lower for word in BOILERPLATE_WORDS)


def is_definitional_sentence(sentence: str) -> bool:
    lower = sentence.lower().strip()
    return any(p.search(lower) for p in DEFINITIONAL_PATTERNS)


def get_sentences(text: str) -> List[str]:
    parts = (s.strip() for s in _SENTENCE_SPLIT.split(text))
    return [s for s in parts if len(s) > 10]
