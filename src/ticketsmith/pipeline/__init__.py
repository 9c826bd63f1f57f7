"""Ticket submission pipeline."""

from .coercion import coerce_estimate, round_half_away
from .submission import ClientSubmissionError, ProgressCallback, SubmissionPipeline, cell

__all__ = [
    "coerce_estimate",
    "round_half_away",
    "ClientSubmissionError",
    "ProgressCallback",
    "SubmissionPipeline",
    "cell",
]
