import pytest

from datatransfer.errors import DisconnectedError
from datatransfer.events import EventCode
from datatransfer.fsm import (
    InvalidTransitionError,
    apply_event,
    is_channel_cleaning_up,
    is_channel_terminated,
)
from datatransfer.identifiers import Status
from datatransfer.internal import EncodedVoucher, EncodedVoucherResult, InternalChannelState


def state(status=Status.REQUESTED, **kwargs):
    return InternalChannelState(status=status, **kwargs)


def test_is_channel_terminated():
    assert is_channel_terminated(Status.CANCELLED)
    assert is_channel_terminated(Status.FAILED)
    assert not is_channel_terminated(Status.ONGOING)


def test_is_channel_cleaning_up():
    assert is_channel_cleaning_up(Status.CANCELLING)
    assert is_channel_cleaning_up(Status.FAILING)
    assert is_channel_cleaning_up(Status.COMPLETING)
    assert not is_channel_cleaning_up(Status.CANCELLED)


def test_open_and_accept():
    opened = apply_event(state(Status.ONGOING), EventCode.OPEN).state
    assert opened.status == Status.REQUESTED
    accepted = apply_event(opened, EventCode.ACCEPT)
    assert accepted.state.status == Status.ONGOING
    assert accepted.entered


def test_accept_from_ongoing_is_invalid():
    with pytest.raises(InvalidTransitionError):
        apply_event(state(Status.ONGOING), EventCode.ACCEPT)


def test_pause_resume_sequence():
    st = state(Status.ONGOING)
    st = apply_event(st, EventCode.PAUSE_INITIATOR).state
    assert st.status == Status.INITIATOR_PAUSED
    st = apply_event(st, EventCode.PAUSE_RESPONDER).state
    assert st.status == Status.BOTH_PAUSED
    st = apply_event(st, EventCode.RESUME_INITIATOR).state
    assert st.status == Status.RESPONDER_PAUSED
    st = apply_event(st, EventCode.RESUME_RESPONDER).state
    assert st.status == Status.ONGOING


def test_pause_from_completed_only_records():
    transition = apply_event(state(Status.COMPLETED), EventCode.PAUSE_INITIATOR)
    assert transition.state.status == Status.COMPLETED
    assert not transition.entered


def test_resume_responder_from_finalizing_completes():
    st = apply_event(state(Status.FINALIZING), EventCode.RESUME_RESPONDER).state
    assert st.status == Status.COMPLETING


def test_progress_updates_counts():
    st = state(Status.ONGOING)
    st = apply_event(st, EventCode.DATA_RECEIVED_PROGRESS, 50).state
    st = apply_event(st, EventCode.DATA_RECEIVED).state
    assert st.received == 50
    assert st.sent == 0
    st = apply_event(st, EventCode.DATA_SENT_PROGRESS, 100).state
    st = apply_event(st, EventCode.DATA_SENT).state
    assert st.received == 50
    assert st.sent == 100
    st = apply_event(st, EventCode.DATA_QUEUED_PROGRESS, 25).state
    assert st.queued == 25
    assert st.status == Status.ONGOING


def test_data_events_not_allowed_after_completion():
    with pytest.raises(InvalidTransitionError):
        apply_event(state(Status.COMPLETED), EventCode.DATA_RECEIVED)
    with pytest.raises(InvalidTransitionError):
        apply_event(state(Status.FAILING), EventCode.DATA_SENT_PROGRESS, 10)


def test_complete_then_cleanup():
    st = apply_event(state(Status.ONGOING), EventCode.COMPLETE).state
    assert st.status == Status.COMPLETING
    st = apply_event(st, EventCode.CLEANUP_COMPLETE).state
    assert st.status == Status.COMPLETED


def test_error_then_cleanup():
    st = apply_event(state(), EventCode.ERROR, ValueError("something went wrong")).state
    assert st.status == Status.FAILING
    assert st.message == "something went wrong"
    st = apply_event(st, EventCode.CLEANUP_COMPLETE).state
    assert st.status == Status.FAILED


def test_cancel_then_cleanup():
    st = apply_event(state(), EventCode.CANCEL).state
    assert st.status == Status.CANCELLING
    st = apply_event(st, EventCode.CLEANUP_COMPLETE).state
    assert st.status == Status.CANCELLED


def test_cleanup_complete_from_ongoing_is_invalid():
    with pytest.raises(InvalidTransitionError):
        apply_event(state(Status.ONGOING), EventCode.CLEANUP_COMPLETE)


def test_disconnected_sets_message():
    st = apply_event(state(), EventCode.DISCONNECTED).state
    assert st.status == Status.REQUESTED
    assert st.message == str(DisconnectedError())


def test_restart_clears_message_and_reenters():
    transition = apply_event(state(Status.ONGOING, message="stale"), EventCode.RESTART)
    assert transition.state.message == ""
    assert transition.state.status == Status.ONGOING
    assert transition.entered


def test_complete_cleanup_on_restart_reenters_cleanup_state():
    transition = apply_event(state(Status.COMPLETING), EventCode.COMPLETE_CLEANUP_ON_RESTART)
    assert transition.state.status == Status.COMPLETING
    assert transition.entered


def test_finish_transfer_transitions():
    assert apply_event(state(Status.ONGOING), EventCode.FINISH_TRANSFER).state.status == Status.TRANSFER_FINISHED
    assert apply_event(state(Status.FAILING), EventCode.FINISH_TRANSFER).state.status == Status.FAILING
    assert apply_event(state(Status.RESPONDER_COMPLETED), EventCode.FINISH_TRANSFER).state.status == Status.COMPLETING
    assert (
        apply_event(state(Status.RESPONDER_FINALIZING), EventCode.FINISH_TRANSFER).state.status
        == Status.RESPONDER_FINALIZING_TRANSFER_FINISHED
    )


def test_responder_completes_transitions():
    assert apply_event(state(Status.ONGOING), EventCode.RESPONDER_COMPLETES).state.status == Status.RESPONDER_COMPLETED
    assert apply_event(state(Status.CANCELLING), EventCode.RESPONDER_COMPLETES).state.status == Status.CANCELLING
    assert apply_event(state(Status.RESPONDER_PAUSED), EventCode.RESPONDER_COMPLETES).state.status == Status.RESPONDER_FINALIZING
    assert apply_event(state(Status.TRANSFER_FINISHED), EventCode.RESPONDER_COMPLETES).state.status == Status.COMPLETING
    assert (
        apply_event(state(Status.RESPONDER_FINALIZING_TRANSFER_FINISHED), EventCode.RESPONDER_COMPLETES).state.status
        == Status.COMPLETING
    )


def test_responder_begins_finalization_transitions():
    assert (
        apply_event(state(Status.ONGOING), EventCode.RESPONDER_BEGINS_FINALIZATION).state.status
        == Status.RESPONDER_FINALIZING
    )
    assert (
        apply_event(state(Status.TRANSFER_FINISHED), EventCode.RESPONDER_BEGINS_FINALIZATION).state.status
        == Status.RESPONDER_FINALIZING_TRANSFER_FINISHED
    )


def test_new_voucher_appends_without_mutating_input():
    original = state(Status.ONGOING, vouchers=[EncodedVoucher("T", b"\x01")])
    new = apply_event(original, EventCode.NEW_VOUCHER, "T", b"\x02").state
    assert new.vouchers == [EncodedVoucher("T", b"\x01"), EncodedVoucher("T", b"\x02")]
    assert original.vouchers == [EncodedVoucher("T", b"\x01")]


def test_new_voucher_result_appends():
    new = apply_event(state(Status.ONGOING), EventCode.NEW_VOUCHER_RESULT, "T", b"\x03").state
    assert new.voucher_results == [EncodedVoucherResult("T", b"\x03")]


def test_wrong_argument_count_raises():
    with pytest.raises(TypeError):
        apply_event(state(Status.ONGOING), EventCode.DATA_SENT_PROGRESS)
    with pytest.raises(TypeError):
        apply_event(state(Status.ONGOING), EventCode.ACCEPT, 1)