from .evaluator import EvaluationReport, UpgradeEvaluator
from .resolver import DEFAULT_TAG_PREFIX, ReleaseResolver
from .state import ReleaseState

__all__ = [
    "DEFAULT_TAG_PREFIX",
    "EvaluationReport",
    "ReleaseResolver",
    "ReleaseState",
    "UpgradeEvaluator",
]
