from .insights import InsightCandidate, NormalizedSignal, derive_insights

__all__ = ['InsightCandidate', 'NormalizedSignal', 'derive_insights']
