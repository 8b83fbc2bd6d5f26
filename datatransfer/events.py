"""Event codes and events emitted on data transfer channels."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum


class EventCode(IntEnum):
    """A name for an event that occurs on a data transfer channel."""

    OPEN = 0
    ACCEPT = 1
    RESTART = 2
    DATA_RECEIVED = 3
    DATA_SENT = 4
    CANCEL = 5
    ERROR = 6
    CLEANUP_COMPLETE = 7
    NEW_VOUCHER = 8
    NEW_VOUCHER_RESULT = 9
    PAUSE_INITIATOR = 10
    RESUME_INITIATOR = 11
    PAUSE_RESPONDER = 12
    RESUME_RESPONDER = 13
    FINISH_TRANSFER = 14
    RESPONDER_COMPLETES = 15
    RESPONDER_BEGINS_FINALIZATION = 16
    BEGIN_FINALIZING = 17
    DISCONNECTED = 18
    COMPLETE = 19
    COMPLETE_CLEANUP_ON_RESTART = 20
    DATA_QUEUED = 21
    DATA_QUEUED_PROGRESS = 22
    DATA_SENT_PROGRESS = 23
    DATA_RECEIVED_PROGRESS = 24

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


@dataclass(frozen=True)
class Event:
    """Information about a data transfer event."""

    code: EventCode
    message: str = ""
    timestamp: datetime = field(default_factory=datetime.now)