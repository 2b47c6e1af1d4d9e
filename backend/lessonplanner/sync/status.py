"""Connection state machine and user-facing operation status tracking."""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from lessonplanner.core.config import STATUS_RESET_SECONDS
from lessonplanner.core.errors import StateTransitionError
from lessonplanner.domain.common.result import Result

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CHECKING = "checking"
    ONLINE = "online"
    OFFLINE = "offline"


# Offline never jumps straight to online: reachability is only ever confirmed by a check.
ALLOWED_TRANSITIONS: dict = {
    ConnectionState.CHECKING: {ConnectionState.ONLINE, ConnectionState.OFFLINE},
    ConnectionState.ONLINE: {ConnectionState.CHECKING, ConnectionState.OFFLINE},
    ConnectionState.OFFLINE: {ConnectionState.CHECKING},
}


def validate_connection_transition(current: ConnectionState, new: ConnectionState) -> Result[ConnectionState]:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if new not in allowed:
        return Result.fail(
            f"Invalid transition: '{current.value}' → '{new.value}'. "
            f"Allowed from '{current.value}': {sorted(s.value for s in allowed)}."
        )
    return Result.ok(new)


Listener = Callable[[ConnectionState, ConnectionState], None]


class ConnectionStateMachine:

    def __init__(self, initial: ConnectionState = ConnectionState.CHECKING):
        self._state = initial
        self._listeners: List[Listener] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    def subscribe(self, listener: Listener) -> None:
        """listener(previous, current) runs after every real transition."""
        self._listeners.append(listener)

    def transition_to(self, new_state: ConnectionState) -> ConnectionState:
        if new_state == self._state:
            return self._state
        result = validate_connection_transition(self._state, new_state)
        if not result.is_success:
            raise StateTransitionError(result.error)

        previous, self._state = self._state, new_state
        logger.info("Connection state %s -> %s", previous.value, new_state.value)
        for listener in list(self._listeners):
            listener(previous, new_state)
        return new_state


class OperationStatus(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in-progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class StatusSnapshot:
    status: OperationStatus
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is OperationStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status is OperationStatus.FAILED


class OperationStatusTracker:
    """
    Status of one kind of user-initiated operation (upload, refresh, migrate).

    begin() hands out a ticket. Only the holder of the newest ticket, issued in
    the current session generation, may settle the status; anything else is a
    superseded or abandoned request and is ignored. Settled statuses read back
    as idle once reset_after seconds have passed on the clock.
    """

    def __init__(
        self,
        name: str,
        reset_after: float = STATUS_RESET_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        generation: Optional[Callable[[], int]] = None,
    ):
        self.name = name
        self._reset_after = reset_after
        self._clock = clock
        self._generation = generation or (lambda: 0)
        self._status = OperationStatus.IDLE
        self._message: Optional[str] = None
        self._settled_at: Optional[float] = None
        self._ticket = 0
        self._ticket_generation: Optional[int] = None

    def begin(self, message: Optional[str] = None) -> int:
        self._ticket += 1
        self._ticket_generation = self._generation()
        self._status = OperationStatus.IN_PROGRESS
        self._message = message
        self._settled_at = None
        return self._ticket

    def succeed(self, ticket: int, message: Optional[str] = None) -> StatusSnapshot:
        return self._settle(ticket, OperationStatus.SUCCEEDED, message)

    def fail(self, ticket: int, message: Optional[str] = None) -> StatusSnapshot:
        return self._settle(ticket, OperationStatus.FAILED, message)

    def owns(self, ticket: int) -> bool:
        return ticket == self._ticket and self._ticket_generation == self._generation()

    def _settle(self, ticket: int, status: OperationStatus, message: Optional[str]) -> StatusSnapshot:
        if not self.owns(ticket):
            logger.debug("Ignoring stale %s result (ticket %d)", self.name, ticket)
            return StatusSnapshot(status, message)
        self._status = status
        self._message = message
        self._settled_at = self._clock()
        return StatusSnapshot(status, message)

    @property
    def current(self) -> StatusSnapshot:
        if self._settled_at is not None and self._clock() - self._settled_at >= self._reset_after:
            self._status = OperationStatus.IDLE
            self._message = None
            self._settled_at = None
        return StatusSnapshot(self._status, self._message)
