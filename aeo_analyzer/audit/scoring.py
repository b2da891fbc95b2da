"""Runs the six rule modules over an extraction and totals the result."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, NamedTuple

from .extractor import PageExtraction
from .rules import (
    ModuleScore, RuleResult, evaluate_answerability, evaluate_citation, evaluate_entity_clarity,
    evaluate_retrieval, evaluate_structured_data, evaluate_trust,
)
from .text import compute_grade

MAX_SCORE = 100


class ModuleConfig(NamedTuple):
    id: str
    name: str
    max_points: int
    evaluate: Callable[[PageExtraction], List[RuleResult]]


MODULES = [
    ModuleConfig('A', 'Answer-ability', 25, evaluate_answerability),
    ModuleConfig('B', 'Entity clarity', 20, evaluate_entity_clarity),
    ModuleConfig('C', 'Trust & evidence', 20, evaluate_trust),
    ModuleConfig('D', 'Structured data', 15, evaluate_structured_data),
    ModuleConfig('E', 'Retrieval & accessibility', 10, evaluate_retrieval),
    ModuleConfig('F', 'Citation likelihood', 10, evaluate_citation),
]


@dataclass
class ScoringResult:
    overall_score: int
    modules: List[ModuleScore] = field(default_factory=list)
    all_rules: List[RuleResult] = field(default_factory=list)

    def rules_as_dicts(self) -> List[Dict[str, Any]]:
        return [asdict(r) for r in self.all_rules]


def score_extraction(extraction: PageExtraction) -> ScoringResult:
    modules: List[ModuleScore] = []
    all_rules: List[RuleResult] = []
    for cfg in MODULES:
        rules = cfg.evaluate(extraction)
        earned = sum(r.earned_points for r in rules)
        percentage = earned / cfg.max_points * 100 if cfg.max_points else 0
        modules.append(ModuleScore(
            id=cfg.id, name=cfg.name, max_points=cfg.max_points,
            earned_points=earned, grade=compute_grade(percentage), rules=rules,
        ))
        all_rules.extend(rules)

    return ScoringResult(
        overall_score=sum(m.earned_points for m in modules),
        modules=modules,
        all_rules=all_rules,
    )


def format_module_scores(modules: List[ModuleScore]) -> Dict[str, Dict[str, Any]]:
    return {m.id: {'earned': m.earned_points, 'max': m.max_points, 'grade': m.grade} for m in modules}
