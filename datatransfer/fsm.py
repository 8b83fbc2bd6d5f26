"""The state machine that governs data transfer channel statuses."""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .errors import DisconnectedError
from .events import EventCode
from .identifiers import Status
from .internal import EncodedVoucher, EncodedVoucherResult, InternalChannelState


class InvalidTransitionError(Exception):
    """An event cannot be applied to a channel in its current status."""


class _Keep(Enum):
    NO_CHANGE = "no change"
    JUST_RECORD = "just record"


_ANY = None

TRANSFERRING_STATES = (
    Status.REQUESTED,
    Status.ONGOING,
    Status.INITIATOR_PAUSED,
    Status.RESPONDER_PAUSED,
    Status.BOTH_PAUSED,
    Status.RESPONDER_COMPLETED,
    Status.RESPONDER_FINALIZING,
)

CLEANUP_STATES = (Status.CANCELLING, Status.COMPLETING, Status.FAILING)

FINALITY_STATES = (Status.CANCELLED, Status.COMPLETED, Status.FAILED)


@dataclass(frozen=True)
class Transition:
    """The result of applying an event: the new state and whether it was entered.

    ``entered`` is False when the event was only recorded, in which case
    state entry handlers must not run.
    """

    state: InternalChannelState
    entered: bool


@dataclass(frozen=True)
class _Rule:
    specific: dict = field(default_factory=dict)
    default: Any = None
    action: Callable[..., None] | None = None


def _rule(*pairs, action=None) -> _Rule:
    specific = {}
    default = None
    for sources, target in pairs:
        if sources is _ANY:
            default = target
        elif isinstance(sources, Status):
            specific[sources] = target
        else:
            specific.update(dict.fromkeys(sources, target))
    return _Rule(specific, default, action)


def _clear_message(st: InternalChannelState) -> None:
    st.message = ""


def _add_received(st: InternalChannelState, delta: int) -> None:
    st.received += delta


def _add_sent(st: InternalChannelState, delta: int) -> None:
    st.sent += delta


def _add_queued(st: InternalChannelState, delta: int) -> None:
    st.queued += delta


def _mark_disconnected(st: InternalChannelState) -> None:
    st.message = str(DisconnectedError())


def _record_error(st: InternalChannelState, err: BaseException) -> None:
    st.message = str(err)


def _add_voucher(st: InternalChannelState, vtype: str, voucher_bytes: bytes) -> None:
    st.vouchers.append(EncodedVoucher(vtype, bytes(voucher_bytes)))


def _add_voucher_result(st: InternalChannelState, vtype: str, result_bytes: bytes) -> None:
    st.voucher_results.append(EncodedVoucherResult(vtype, bytes(result_bytes)))


_NC = _Keep.NO_CHANGE
_JR = _Keep.JUST_RECORD
_FAILING_OR_CANCELLING = (Status.FAILING, Status.CANCELLING)

_RULES: dict[EventCode, _Rule] = {
    EventCode.OPEN: _rule((_ANY, Status.REQUESTED)),
    EventCode.ACCEPT: _rule((Status.REQUESTED, Status.ONGOING)),
    EventCode.RESTART: _rule((_ANY, _NC), action=_clear_message),
    EventCode.CANCEL: _rule((_ANY, Status.CANCELLING)),
    EventCode.DATA_RECEIVED: _rule((TRANSFERRING_STATES, _NC)),
    EventCode.DATA_RECEIVED_PROGRESS: _rule((TRANSFERRING_STATES, _NC), action=_add_received),
    EventCode.DATA_SENT: _rule((TRANSFERRING_STATES, _NC)),
    EventCode.DATA_SENT_PROGRESS: _rule((TRANSFERRING_STATES, _NC), action=_add_sent),
    EventCode.DATA_QUEUED: _rule((TRANSFERRING_STATES, _NC)),
    EventCode.DATA_QUEUED_PROGRESS: _rule((TRANSFERRING_STATES, _NC), action=_add_queued),
    EventCode.DISCONNECTED: _rule((_ANY, _NC), action=_mark_disconnected),
    EventCode.ERROR: _rule((_ANY, Status.FAILING), action=_record_error),
    EventCode.NEW_VOUCHER: _rule((_ANY, _NC), action=_add_voucher),
    EventCode.NEW_VOUCHER_RESULT: _rule((_ANY, _NC), action=_add_voucher_result),
    EventCode.PAUSE_INITIATOR: _rule(
        ((Status.REQUESTED, Status.ONGOING), Status.INITIATOR_PAUSED),
        (Status.RESPONDER_PAUSED, Status.BOTH_PAUSED),
        (_ANY, _JR),
    ),
    EventCode.PAUSE_RESPONDER: _rule(
        ((Status.REQUESTED, Status.ONGOING), Status.RESPONDER_PAUSED),
        (Status.INITIATOR_PAUSED, Status.BOTH_PAUSED),
        (_ANY, _JR),
    ),
    EventCode.RESUME_INITIATOR: _rule(
        (Status.INITIATOR_PAUSED, Status.ONGOING),
        (Status.BOTH_PAUSED, Status.RESPONDER_PAUSED),
        (_ANY, _JR),
    ),
    EventCode.RESUME_RESPONDER: _rule(
        (Status.RESPONDER_PAUSED, Status.ONGOING),
        (Status.BOTH_PAUSED, Status.INITIATOR_PAUSED),
        (Status.FINALIZING, Status.COMPLETING),
        (_ANY, _JR),
    ),
    EventCode.FINISH_TRANSFER: _rule(
        (_ANY, Status.TRANSFER_FINISHED),
        (_FAILING_OR_CANCELLING, _JR),
        (Status.RESPONDER_COMPLETED, Status.COMPLETING),
        (Status.RESPONDER_FINALIZING, Status.RESPONDER_FINALIZING_TRANSFER_FINISHED),
    ),
    EventCode.RESPONDER_BEGINS_FINALIZATION: _rule(
        (_ANY, Status.RESPONDER_FINALIZING),
        (_FAILING_OR_CANCELLING, _JR),
        (Status.TRANSFER_FINISHED, Status.RESPONDER_FINALIZING_TRANSFER_FINISHED),
    ),
    EventCode.RESPONDER_COMPLETES: _rule(
        (_ANY, Status.RESPONDER_COMPLETED),
        (_FAILING_OR_CANCELLING, _JR),
        (Status.RESPONDER_PAUSED, Status.RESPONDER_FINALIZING),
        (Status.TRANSFER_FINISHED, Status.COMPLETING),
        (Status.RESPONDER_FINALIZING, Status.RESPONDER_COMPLETED),
        (Status.RESPONDER_FINALIZING_TRANSFER_FINISHED, Status.COMPLETING),
    ),
    EventCode.BEGIN_FINALIZING: _rule((_ANY, Status.FINALIZING)),
    EventCode.COMPLETE: _rule((_ANY, Status.COMPLETING)),
    EventCode.CLEANUP_COMPLETE: _rule(
        (Status.CANCELLING, Status.CANCELLED),
        (Status.FAILING, Status.FAILED),
        (Status.COMPLETING, Status.COMPLETED),
    ),
    EventCode.COMPLETE_CLEANUP_ON_RESTART: _rule((_ANY, _NC)),
}


def apply_event(state: InternalChannelState, code: EventCode, *args: Any) -> Transition:
    """Apply event ``code`` with ``args`` to ``state``, returning the new state.

    The given state is left untouched. Raises InvalidTransitionError when the
    event is not allowed from the state's current status.
    """
    code = EventCode(code)
    rule = _RULES.get(code)
    if rule is None:
        raise InvalidTransitionError(f"unknown event {code}")
    target = rule.specific.get(state.status, rule.default)
    if target is None:
        raise InvalidTransitionError(f"invalid transition: event {code} from status {state.status}")
    new_state = replace(
        state, vouchers=list(state.vouchers), voucher_results=list(state.voucher_results)
    )
    if rule.action is not None:
        rule.action(new_state, *args)
    elif args:
        raise TypeError(f"event {code} takes no arguments, got {len(args)}")
    if isinstance(target, Status):
        new_state.status = target
    return Transition(new_state, target is not _Keep.JUST_RECORD)


def is_channel_terminated(status: Status) -> bool:
    """Return True if ``status`` is a final status."""
    return status in FINALITY_STATES


def is_channel_cleaning_up(status: Status) -> bool:
    """Return True if ``status`` is one where the channel is being cleaned up."""
    return status in CLEANUP_STATES