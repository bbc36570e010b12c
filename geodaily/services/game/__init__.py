"""Game domain services: distance, scoring, daily assignment and answers.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""

from .geo import distance
from .scoring import score
from .assignment import get_or_create_daily
from .submission import SubmissionResult, submit_answer

__all__ = [
    'distance',
    'score',
    'get_or_create_daily',
    'SubmissionResult',
    'submit_answer',
]
