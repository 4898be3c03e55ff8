from softmacs.evaluation.evaluator import evaluate
from softmacs.evaluation.machine import Machine
from softmacs.evaluation.continuations import DEFAULT_PROMPT

__all__ = ["evaluate", "Machine", "DEFAULT_PROMPT"]
