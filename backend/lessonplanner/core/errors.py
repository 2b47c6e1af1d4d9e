"""Error taxonomy shared by the sync engine and the data service."""
from __future__ import annotations
from typing import Optional


class PlannerError(Exception):
    """Base class for every recoverable planner error."""


class NetworkError(PlannerError):
    """The remote data service could not be reached or refused the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(PlannerError):
    """Cached or uploaded data could not be decoded into entities."""


class ValidationError(PlannerError):
    """A write would break an entity invariant. Raised before any storage access."""


class StateTransitionError(PlannerError):
    """The connection state machine was asked for a transition it does not allow."""


class SessionClosedError(PlannerError):
    """The session backing a sync manager has ended."""
