"""Competitor signal insights.

Turns normalized ad, visibility and content records into insight candidates
with keyword rules and simple heuristics. Pure functions, no I/O; provider
payloads are plain dicts as collected.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..audit.text import round_half_up

ADS = 'ads'
VISIBILITY = 'visibility'
CONTENT = 'content'

LONG_RUNNING_DAYS = 30
EVERGREEN_MIN_AGE_DAYS = 90
EVERGREEN_MIN_WORDS = 1500
STALE_REVIEW_DAYS = 90

ARCHETYPE_KEYWORDS: Dict[str, List[str]] = {
    'valuation': [
        'free valuation', 'free home valuation', 'home value', 'what is my home worth',
        'property value', 'market analysis', 'cma', 'comparative market', 'home estimate',
        'instant valuation', 'free estimate', 'property assessment', 'value report',
        'home worth', 'home valuation',
    ],
    'seller': [
        'sell your home', 'list your home', 'selling your house', 'home seller',
        'list with us', 'sell fast', 'top dollar', 'maximize value', 'seller services',
        'listing agent', 'sell for more', 'ready to sell', 'thinking of selling',
    ],
    'buyer': [
        'find your home', 'home search', 'buy a home', 'first time buyer',
        'home buyer', 'dream home', 'house hunting', 'new listings', 'buyer services',
        'buyer agent', 'searching for', 'looking to buy', 'mortgage', 'pre-approved',
    ],
    'brand': [
        'about us', 'our team', 'years of experience', 'trusted', 'local expert',
        'community', 'testimonial', 'success story', 'award', 'recognized',
        'family owned', 'serving', 'since', 'reputation', 'commitment',
    ],
}


@dataclass
class NormalizedSignal:
    category: str
    source: str
    payload: Dict[str, Any] = field(default_factory=dict)
    competitor_id: Optional[str] = None


@dataclass
class InsightCandidate:
    category: str
    title: str
    severity: str
    summary: str
    evidence: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OfferClassification:
    archetype: str
    confidence: float
    matched_keywords: List[str] = field(default_factory=list)


@dataclass
class VisibilityRisk:
    type: str
    severity: str
    details: str


@dataclass
class AdSurvival:
    ad_id: str
    survival_days: int
    is_long_running: bool
    creative_type: str
    archetype: str


@dataclass
class ContentSurvivalCandidate:
    url: str
    title: str
    age_days: int
    topics: List[str]
    is_evergreen: bool


# ---------- dates ----------

def parse_date(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _days_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 86400)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------- ads ----------

def classify_offer_archetype(text: str) -> OfferClassification:
    lower = text.lower()
    results: List[Tuple[str, List[str]]] = []
    for archetype, keywords in ARCHETYPE_KEYWORDS.items():
        matches = [kw for kw in keywords if kw in lower]
        if matches:
            results.append((archetype, matches))

    if not results:
        return OfferClassification(archetype='other', confidence=0.5)

    results.sort(key=lambda r: len(r[1]), reverse=True)
    archetype, matches = results[0]
    best = len(matches)
    second = len(results[1][1]) if len(results) > 1 else 0
    confidence = min(0.95, 0.5 + best * 0.1 + (best - second) * 0.1)
    return OfferClassification(archetype=archetype, confidence=confidence, matched_keywords=matches)


def calculate_ad_survival_days(ad: Dict[str, Any], now: Optional[datetime] = None) -> int:
    start = parse_date(ad.get('ad_delivery_start_time'))
    if start is None:
        return 0
    stop = ad.get('ad_delivery_stop_time')
    end = parse_date(stop) if stop else (now or _now())
    if end is None:
        return 0
    return max(0, _days_between(start, end))


def analyze_ad_survival(ads: List[Dict[str, Any]], now: Optional[datetime] = None) -> List[AdSurvival]:
    out = []
    for ad in ads:
        days = calculate_ad_survival_days(ad, now)
        text = ' '.join([
            ad.get('ad_creative_body') or '',
            ad.get('ad_creative_link_title') or '',
            ad.get('ad_creative_link_description') or '',
        ])
        out.append(AdSurvival(
            ad_id=ad.get('ad_id', ''),
            survival_days=days,
            is_long_running=days >= LONG_RUNNING_DAYS,
            creative_type=ad.get('creative_type') or 'text',
            archetype=classify_offer_archetype(text).archetype,
        ))
    return out


def calculate_creative_distribution(ads: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Creative formats by share, most used first."""
    counts = Counter(ad.get('creative_type') or 'text' for ad in ads)
    total = len(ads) or 1
    return [
        {'type': t, 'count': n, 'percentage': round_half_up(n / total * 100)}
        for t, n in counts.most_common()
    ]


# ---------- visibility ----------

def assess_visibility_risks(profile: Dict[str, Any], now: Optional[datetime] = None) -> List[VisibilityRisk]:
    platform = profile.get('platform', 'unknown')
    reviews = profile.get('review_count', 0)
    photos = profile.get('photo_count', 0)
    completeness = profile.get('profile_completeness', 0)
    risks: List[VisibilityRisk] = []

    if reviews < 10:
        risks.append(VisibilityRisk(
            'low_reviews', 'high' if reviews < 5 else 'medium',
            f'Only {reviews} reviews on {platform}',
        ))
    if photos < 5:
        risks.append(VisibilityRisk(
            'low_photos', 'high' if photos == 0 else 'medium',
            f'Only {photos} photos on {platform}',
        ))
    if not profile.get('services_listed'):
        risks.append(VisibilityRisk('missing_services', 'medium', f'No services listed on {platform}'))
    if completeness < 70:
        risks.append(VisibilityRisk(
            'low_completeness', 'high' if completeness < 50 else 'medium',
            f'Profile only {completeness}% complete on {platform}',
        ))

    last_review = parse_date(profile.get('last_review_date'))
    if last_review is not None:
        since = _days_between(last_review, now or _now())
        if since > STALE_REVIEW_DAYS:
            risks.append(VisibilityRisk(
                'stale_reviews', 'high' if since > 180 else 'medium',
                f'No reviews in {since} days on {platform}',
            ))
    return risks


# ---------- content ----------

def _is_evergreen(item: Dict[str, Any], age_days: int) -> bool:
    if age_days <= EVERGREEN_MIN_AGE_DAYS:
        return False
    backlinks = (item.get('engagement_signals') or {}).get('backlinks') or 0
    return (item.get('word_count', 0) > EVERGREEN_MIN_WORDS
            or backlinks > 0
            or item.get('content_type') == 'case-study')


def identify_content_survival_candidates(content: List[Dict[str, Any]],
                                         now: Optional[datetime] = None) -> List[ContentSurvivalCandidate]:
    now = now or _now()
    candidates = []
    for item in content:
        published = parse_date(item.get('published_date'))
        age = _days_between(published, now) if published else 0
        if _is_evergreen(item, age):
            candidates.append(ContentSurvivalCandidate(
                url=item.get('url', ''),
                title=item.get('title', ''),
                age_days=age,
                topics=list(item.get('topics') or []),
                is_evergreen=True,
            ))
    return sorted(candidates, key=lambda c: c.age_days, reverse=True)


def calculate_topic_clusters(content: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    clusters: Dict[str, Dict[str, Any]] = {}
    for item in content:
        for topic in item.get('topics') or []:
            key = topic.lower().strip()
            cluster = clusters.setdefault(key, {'topic': key, 'frequency': 0, 'examples': []})
            cluster['frequency'] += 1
            if len(cluster['examples']) < 3:
                cluster['examples'].append(item.get('title', ''))
    return sorted(clusters.values(), key=lambda c: c['frequency'], reverse=True)


# ---------- cross-category ----------

def _top_source_share(signals: List[NormalizedSignal]) -> Optional[Tuple[str, int]]:
    counts = Counter(s.source for s in signals)
    if not counts:
        return None
    source, n = counts.most_common(1)[0]
    return source, round_half_up(n / len(signals) * 100)


def assess_platform_dependency(signals: List[NormalizedSignal]) -> str:
    top = _top_source_share(signals)
    if top is None:
        return 'Insufficient data to assess platform dependency.'
    source, pct = top
    if pct > 70:
        return (f'High platform dependency risk: {pct}% of signals come from {source}. '
                'Diversification recommended.')
    if pct > 50:
        return (f'Moderate platform dependency: {pct}% of signals from {source}. '
                'Consider expanding to other channels.')
    return 'Healthy platform diversification: No single source exceeds 50% of signals.'


def _dependency_severity(signals: List[NormalizedSignal]) -> str:
    top = _top_source_share(signals)
    if top is None or top[1] <= 50:
        return 'info'
    return 'high' if top[1] > 70 else 'medium'


def _ad_insights(ads: List[Dict[str, Any]], now: datetime) -> List[InsightCandidate]:
    insights = []
    survival = analyze_ad_survival(ads, now)
    long_running = [a for a in survival if a.is_long_running]
    if long_running:
        avg_days = round_half_up(sum(a.survival_days for a in long_running) / len(long_running))
        insights.append(InsightCandidate(
            category=ADS,
            title='Long-Running Ad Patterns Detected',
            severity='info',
            summary=f'{len(long_running)} ads have been running 30+ days (avg: {avg_days} days). '
                    'These represent validated messaging worth studying.',
            evidence={
                'count': len(long_running),
                'average_days': avg_days,
                'samples': [
                    {'ad_id': a.ad_id, 'days': a.survival_days, 'archetype': a.archetype}
                    for a in long_running[:5]
                ],
            },
        ))

    distribution = calculate_creative_distribution(ads)
    if distribution and distribution[0]['percentage'] > 60:
        dominant = distribution[0]
        insights.append(InsightCandidate(
            category=ADS,
            title='Creative Type Concentration',
            severity='low',
            summary=f"{dominant['percentage']}% of ads use {dominant['type']} format. "
                    'Consider testing other formats for diversification.',
            evidence={'distribution': distribution},
        ))

    archetypes = [
        {'archetype': name, 'count': n, 'percentage': round_half_up(n / len(ads) * 100)}
        for name, n in Counter(a.archetype for a in survival).most_common()
    ]
    if archetypes:
        top = archetypes[0]
        insights.append(InsightCandidate(
            category=ADS,
            title='Offer Archetype Distribution',
            severity='info',
            summary=f"Primary ad focus: {top['archetype']} ({top['percentage']}%). "
                    'This reveals competitor positioning strategy.',
            evidence={'archetypes': archetypes},
        ))
    return insights


def _visibility_insights(profiles: List[Dict[str, Any]], now: datetime) -> List[InsightCandidate]:
    insights = []
    risks = [r for p in profiles for r in assess_visibility_risks(p, now)]
    high = [asdict(r) for r in risks if r.severity == 'high']
    medium = [asdict(r) for r in risks if r.severity == 'medium']

    if high:
        insights.append(InsightCandidate(
            category=VISIBILITY,
            title='Critical Visibility Gaps',
            severity='high',
            summary=f'{len(high)} high-priority visibility issues identified across platforms.',
            evidence={'risks': high},
        ))
    if medium:
        insights.append(InsightCandidate(
            category=VISIBILITY,
            title='Visibility Improvement Opportunities',
            severity='medium',
            summary=f'{len(medium)} moderate visibility issues found that could improve local presence.',
            evidence={'risks': medium},
        ))

    total_reviews = sum(p.get('review_count', 0) for p in profiles)
    avg_rating = sum(p.get('average_rating', 0) for p in profiles) / len(profiles)
    insights.append(InsightCandidate(
        category=VISIBILITY,
        title='Review Portfolio Summary',
        severity='info',
        summary=f'Total reviews across platforms: {total_reviews}. Average rating: {avg_rating:.1f} stars.',
        evidence={
            'total_reviews': total_reviews,
            'average_rating': avg_rating,
            'platforms': [
                {'platform': p.get('platform'), 'reviews': p.get('review_count', 0),
                 'rating': p.get('average_rating', 0)}
                for p in profiles
            ],
        },
    ))
    return insights


def _content_insights(content: List[Dict[str, Any]], now: datetime) -> List[InsightCandidate]:
    insights = []
    evergreen = identify_content_survival_candidates(content, now)
    if evergreen:
        insights.append(InsightCandidate(
            category=CONTENT,
            title='Evergreen Content Identified',
            severity='info',
            summary=f'{len(evergreen)} pieces of long-lasting content found. '
                    'These topics have proven staying power.',
            evidence={'count': len(evergreen), 'samples': [asdict(c) for c in evergreen[:5]]},
        ))

    top_topics = calculate_topic_clusters(content)[:5]
    if top_topics:
        insights.append(InsightCandidate(
            category=CONTENT,
            title='Content Topic Clusters',
            severity='info',
            summary=f"Top content themes: {', '.join(t['topic'] for t in top_topics)}. "
                    'These represent key messaging pillars.',
            evidence={'clusters': top_topics},
        ))

    formats = [
        {'type': t, 'count': n}
        for t, n in Counter(c.get('content_type') or 'other' for c in content).most_common()
    ]
    insights.append(InsightCandidate(
        category=CONTENT,
        title='Content Format Strategy',
        severity='info',
        summary=f"Primary content format: {formats[0]['type']}. Total pieces analyzed: {len(content)}.",
        evidence={'distribution': formats},
    ))
    return insights


def derive_insights(signals: List[NormalizedSignal], now: Optional[datetime] = None) -> List[InsightCandidate]:
    now = now or _now()
    by_category: Dict[str, List[Dict[str, Any]]] = {ADS: [], VISIBILITY: [], CONTENT: []}
    for s in signals:
        if s.category in by_category:
            by_category[s.category].append(s.payload)

    insights: List[InsightCandidate] = []
    if by_category[ADS]:
        insights += _ad_insights(by_category[ADS], now)
    if by_category[VISIBILITY]:
        insights += _visibility_insights(by_category[VISIBILITY], now)
    if by_category[CONTENT]:
        insights += _content_insights(by_category[CONTENT], now)

    insights.append(InsightCandidate(
        category='strategy',
        title='Platform Dependency Analysis',
        severity=_dependency_severity(signals),
        summary=assess_platform_dependency(signals),
        evidence={
            'total_signals': len(signals),
            'by_category': {k: len(v) for k, v in by_category.items()},
        },
    ))
    return insights
