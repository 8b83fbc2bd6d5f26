from datatransfer.cids import Cid
from datatransfer.cidsets import CIDSet, CIDSetManager
from datatransfer.datastore import MapDatastore


def test_cid_set_manager():
    cid1 = Cid.from_data(b"block one")
    mgr = CIDSetManager(MapDatastore())

    assert mgr.insert_set_cid("set1", cid1) is False
    assert mgr.insert_set_cid("set1", cid1) is True
    assert mgr.insert_set_cid("set2", cid1) is False
    assert mgr.insert_set_cid("set2", cid1) is True

    mgr.delete_set("set1")

    assert mgr.insert_set_cid("set1", cid1) is False
    assert mgr.insert_set_cid("set2", cid1) is True


def test_sets_persist_in_datastore():
    ds = MapDatastore()
    cid1 = Cid.from_data(b"persisted")
    CIDSetManager(ds).insert_set_cid("set1", cid1)
    assert CIDSetManager(ds).insert_set_cid("set1", cid1) is True
    assert ds.keys() == ["/set1/cids/" + str(cid1)]


def test_cid_set_truncate_clears_all():
    ds = MapDatastore()
    cid_set = CIDSet(ds)
    cids = [Cid.from_data(bytes([n])) for n in range(5)]
    assert [cid_set.insert(c) for c in cids] == [False] * 5
    cid_set.truncate()
    assert ds.keys() == []
    assert cid_set.insert(cids[0]) is False