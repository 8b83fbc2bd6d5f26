"""Errors raised by data transfer operations."""


class DataTransferError(Exception):
    """Base class for data transfer errors."""

    default_message = "data transfer error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class HandlerAlreadySetError(DataTransferError):
    """An event handler was already set for this instance of hooks."""

    default_message = "already set event handler"


class HandlerNotSetError(DataTransferError):
    """Commands cannot be issued because the event handler has not been set."""

    default_message = "event handler has not been set"


class ChannelNotFoundError(DataTransferError):
    """The channel a command was issued for does not exist."""

    default_message = "channel not found"


class PauseChannel(DataTransferError):
    """Raised by data hooks to pause the channel."""

    default_message = "pause channel"


class ResumeChannel(DataTransferError):
    """Raised by request and response hooks to resume the channel."""

    default_message = "resume channel"


class RejectedError(DataTransferError):
    """A request was not accepted."""

    default_message = "response rejected"


class UnsupportedError(DataTransferError):
    """An operation is not supported by the transport protocol."""

    default_message = "unsupported"


class DisconnectedError(DataTransferError):
    """The other peer may have hung up; the channel should be restarted."""

    default_message = "other peer appears to have hung up. restart Channel"


class RemovedError(DataTransferError):
    """The channel was inactive long enough to be put in a permanent error state."""

    default_message = "channel removed due to inactivity"