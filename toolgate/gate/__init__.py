"""
toolgate Gate - Human-in-the-loop confirmation for side-effecting tool calls.
"""

from .confirmation import ConfirmationGate
from .models import ConfirmationRequest, GateOutcome
from .pending import PendingCallStore

__all__ = [
    "ConfirmationGate",
    "ConfirmationRequest",
    "GateOutcome",
    "PendingCallStore",
]
