from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

PASS = 'pass'
WARN = 'warn'
FAIL = 'fail'


@dataclass
class RuleResult:
    id: str
    module: str
    title: str
    why_it_matters: str
    max_points: int
    earned_points: int
    status: str
    evidence: List[str] = field(default_factory=list)
    recommendation: str = ''


@dataclass
class ModuleScore:
    id: str
    name: str
    max_points: int
    earned_points: int
    grade: str
    rules: List[RuleResult] = field(default_factory=list)


def tiered(value: bool, partial: bool, full_points: int, partial_points: int):
    """(points, status) for the common full / partial / nothing rule shape."""
    if value:
        return full_points, PASS
    if partial:
        return partial_points, WARN
    return 0, FAIL


def ld_objects(extraction) -> List[dict]:
    """Parsed JSON-LD blocks that are JSON objects."""
    return [ld.parsed for ld in extraction.json_ld if isinstance(ld.parsed, dict)]


def ld_name(obj: Any) -> Optional[str]:
    name = obj.get('name') if isinstance(obj, dict) else None
    return name if isinstance(name, str) else None
