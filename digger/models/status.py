"""
Result of triggering and polling a build.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from digger.services.jenkins.schemas import QueueReference


class TriggerState(str, Enum):
    """Where a triggered build request ended up."""

    QUEUED = "QUEUED"
    STARTED = "STARTED"
    CANCELLED_IN_QUEUE = "CANCELLED_IN_QUEUE"
    STUCK_IN_QUEUE = "STUCK_IN_QUEUE"
    TIMED_OUT = "TIMED_OUT"

    @property
    def is_terminal(self) -> bool:
        return self is not TriggerState.QUEUED


@dataclass(frozen=True)
class BuildTriggerStatus:
    """
    Outcome of one trigger or poll call.

    ``queue_reference`` is kept for every state so that a TIMED_OUT build
    can be polled again later. ``build_number`` is set only when the build
    has STARTED.
    """

    state: TriggerState
    queue_reference: QueueReference
    build_number: int | None = None

    def __post_init__(self):
        if self.state is TriggerState.STARTED and self.build_number is None:
            raise ValueError("STARTED status requires a build number")
        if self.state is not TriggerState.STARTED and self.build_number is not None:
            raise ValueError(f"{self.state.value} status cannot carry a build number")

    @classmethod
    def queued(cls, queue_reference: QueueReference) -> "BuildTriggerStatus":
        return cls(TriggerState.QUEUED, queue_reference)

    @classmethod
    def started(cls, queue_reference: QueueReference, build_number: int) -> "BuildTriggerStatus":
        return cls(TriggerState.STARTED, queue_reference, build_number)

    @property
    def is_started(self) -> bool:
        return self.state is TriggerState.STARTED
