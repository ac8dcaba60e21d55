import pytest

from daofutures_core.access import AccessControlState
from daofutures_core.errors import NotOwner, SystemPaused


def test_owner_is_required_and_normalized():
    with pytest.raises(ValueError):
        AccessControlState(owner="")
    acl = AccessControlState(owner="0xABCdef")
    assert acl.owner == "0xabcdef"
    assert acl.is_owner("0xabcDEF")


def test_transfer_ownership():
    acl = AccessControlState(owner="0xa")
    with pytest.raises(NotOwner):
        acl.transfer_ownership("0xb", "0xb")
    with pytest.raises(ValueError):
        acl.transfer_ownership("0xa", "  ")
    acl.transfer_ownership("0xA", "0xB")
    assert acl.owner == "0xb"
    with pytest.raises(NotOwner):
        acl.pause("0xa")


def test_provider_allow_list():
    acl = AccessControlState(owner="0xa")
    acl.add_provider("0xa", "0xP1")
    assert acl.is_provider("0xp1")
    with pytest.raises(NotOwner):
        acl.add_provider("0xp1", "0xp2")
    acl.remove_provider("0xa", "0xP1")
    assert not acl.is_provider("0xp1")


def test_pause_and_cooldown():
    acl = AccessControlState(owner="0xa")
    acl.require_not_paused()
    acl.pause("0xa")
    with pytest.raises(SystemPaused):
        acl.require_not_paused()
    acl.unpause("0xa")
    acl.require_not_paused()

    acl.set_cooldown("0xa", 5)
    assert acl.cooldown_seconds == 5
    with pytest.raises(ValueError):
        acl.set_cooldown("0xa", -1)
    with pytest.raises(NotOwner):
        acl.set_cooldown("0xb", 1)


def test_dict_roundtrip():
    acl = AccessControlState(owner="0xa", providers={"0xP"}, paused=True, cooldown_seconds=9)
    assert AccessControlState.from_dict(acl.to_dict()) == acl
