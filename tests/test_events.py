from datetime import datetime

import pytest

from datatransfer.events import Event, EventCode


@pytest.mark.parametrize(
    "code, name",
    [
        (EventCode.OPEN, "Open"),
        (EventCode.DATA_RECEIVED, "DataReceived"),
        (EventCode.NEW_VOUCHER_RESULT, "NewVoucherResult"),
        (EventCode.RESPONDER_BEGINS_FINALIZATION, "ResponderBeginsFinalization"),
        (EventCode.COMPLETE_CLEANUP_ON_RESTART, "CompleteCleanupOnRestart"),
        (EventCode.DATA_RECEIVED_PROGRESS, "DataReceivedProgress"),
    ],
)
def test_event_names(code, name):
    assert str(code) == name
    assert f"{code}" == name


def test_codes_are_sequential_in_declaration_order():
    by_value = [EventCode(value) for value in range(len(EventCode))]
    assert by_value == list(EventCode)
    assert EventCode(0) is EventCode.OPEN
    assert EventCode(24) is EventCode.DATA_RECEIVED_PROGRESS


def test_names_are_unique():
    names = {format(EventCode(value)) for value in range(len(EventCode))}
    assert len(names) == 25
    assert "Accept" in names


def test_event_defaults():
    before = datetime.now()
    evt = Event(EventCode.ACCEPT)
    after = datetime.now()
    assert evt.message == ""
    assert before <= evt.timestamp <= after
    assert evt.code is EventCode.ACCEPT


def test_event_is_immutable():
    evt = Event(EventCode.ERROR, "something went wrong")
    with pytest.raises(AttributeError):
        evt.message = "changed"
    assert evt.message == "something went wrong"