"""Entry point of the evaluator.

Evaluation is a step machine (see softmacs.evaluation.machine); this module
only sets one up for a single call.
"""

from __future__ import annotations

from typing import Optional

from softmacs import Term
from softmacs.evaluation.machine import Machine
from softmacs.types.environment import Environment


def evaluate(term: Term, env: Environment, store=None, one_shot: Optional[bool] = None) -> Term:
    """
    Evaluate `term` in `env`, resolving content references through `store`.
    """
    return Machine(store, one_shot).evaluate(term, env)
