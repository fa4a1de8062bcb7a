"""
Application layer for the self-auditing loop.

Contains the use cases that coordinate domain objects: dispatch, validation,
scoring and the loop itself.
"""

from auditloop.application.cancellation import CancellationToken
from auditloop.application.controller import LoopController
from auditloop.application.dispatcher import AgentDispatcher, extract_json
from auditloop.application.feedback import FeedbackSummarizer
from auditloop.application.scorer import SECURITY_SCORE_CAP, SelfAuditScorer
from auditloop.application.validation import (
    ValidationRunner,
    exact_match,
    normalized_match,
)

__all__ = [
    "AgentDispatcher",
    "CancellationToken",
    "FeedbackSummarizer",
    "LoopController",
    "SECURITY_SCORE_CAP",
    "SelfAuditScorer",
    "ValidationRunner",
    "exact_match",
    "extract_json",
    "normalized_match",
]
