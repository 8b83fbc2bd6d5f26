import pytest

from datatransfer.identifiers import ChannelID, Status


def test_channel_id_string():
    chid = ChannelID(initiator="a", responder="b", id=5)
    assert str(chid) == "a-b-5"


def test_channel_id_equality_and_hashing():
    first = ChannelID(initiator="p1", responder="p2", id=1)
    second = ChannelID(initiator="p1", responder="p2", id=1)
    other = ChannelID(initiator="p2", responder="p1", id=1)
    assert first == second
    assert len({first, second, other}) == 2


def test_other_party():
    chid = ChannelID(initiator="p1", responder="p2", id=7)
    assert chid.other_party("p1") == "p2"
    assert chid.other_party("p2") == "p1"


def test_channel_id_is_immutable():
    chid = ChannelID(initiator="p1", responder="p2", id=7)
    with pytest.raises(AttributeError):
        chid.id = 8
    assert chid.id == 7


@pytest.mark.parametrize(
    "status, name",
    [
        (Status.REQUESTED, "Requested"),
        (Status.RESPONDER_FINALIZING_TRANSFER_FINISHED, "ResponderFinalizingTransferFinished"),
        (Status.CHANNEL_NOT_FOUND_ERROR, "ChannelNotFoundError"),
    ],
)
def test_status_names(status, name):
    assert str(status) == name
    assert f"{status}" == name


def test_status_values_round_trip():
    for status in Status:
        assert Status(int(status)) is status