# Evaluation metrics
from .metrics import EvaluationService

__all__ = ["EvaluationService"]
