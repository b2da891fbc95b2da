from .answerability import evaluate_answerability
from .base import FAIL, PASS, WARN, ModuleScore, RuleResult
from .citation import evaluate_citation
from .entity import evaluate_entity_clarity
from .retrieval import evaluate_retrieval
from .structured_data import evaluate_structured_data
from .trust import evaluate_trust

__all__ = [
    'PASS', 'WARN', 'FAIL', 'RuleResult', 'ModuleScore',
    'evaluate_answerability', 'evaluate_entity_clarity', 'evaluate_trust',
    'evaluate_structured_data', 'evaluate_retrieval', 'evaluate_citation',
]
