"""Channel identifiers and channel statuses."""

from dataclasses import dataclass
from enum import IntEnum


class Status(IntEnum):
    """The current status of a data transfer channel."""

    REQUESTED = 0
    ONGOING = 1
    TRANSFER_FINISHED = 2
    RESPONDER_COMPLETED = 3
    FINALIZING = 4
    COMPLETING = 5
    COMPLETED = 6
    FAILING = 7
    FAILED = 8
    CANCELLING = 9
    CANCELLED = 10
    INITIATOR_PAUSED = 11
    RESPONDER_PAUSED = 12
    BOTH_PAUSED = 13
    RESPONDER_FINALIZING = 14
    RESPONDER_FINALIZING_TRANSFER_FINISHED = 15
    CHANNEL_NOT_FOUND_ERROR = 16

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


@dataclass(frozen=True)
class ChannelID:
    """Identifies a channel by its initiator, responder and transfer id."""

    initiator: str
    responder: str
    id: int

    def __str__(self) -> str:
        return f"{self.initiator}-{self.responder}-{self.id}"

    def other_party(self, peer: str) -> str:
        """Return the party on the channel that is not ``peer``."""
        if peer == self.initiator:
            return self.responder
        return self.initiator