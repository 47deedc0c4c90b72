"""Domain Types - verifies identifiers, enums and the transition table.

Tests:
    - ObjectStatus ordinals are the persisted values
    - DEVOLVED is terminal
    - Object ids are 32 lowercase hex characters
"""

from uuid import uuid4

from lostfound.core.domain_types import (
    ObjectId, UserId, DevolutionCode, ObjectStatus, Role, Capability,
    ALLOWED_TRANSITIONS, can_transition, is_valid_object_id, transition_sources,
)


def test_identity_types_wrap_str():
    assert ObjectId("abc") == "abc"
    assert UserId("inst-1") == "inst-1"
    assert DevolutionCode("a1b2c") == "a1b2c"


def test_object_status_ordinals():
    assert ObjectStatus.AVAILABLE == 0
    assert ObjectStatus.SOLICITED == 1
    assert ObjectStatus.DEVOLVED == 2
    assert ObjectStatus(1) is ObjectStatus.SOLICITED


def test_role_values_match_header_strings():
    assert Role("institution") is Role.INSTITUTION
    assert Role("applicant") is Role.APPLICANT


def test_every_status_has_a_transition_entry():
    assert set(ALLOWED_TRANSITIONS) == set(ObjectStatus)


def test_devolved_is_terminal():
    for target in ObjectStatus:
        assert not can_transition(ObjectStatus.DEVOLVED, target)


def test_available_only_moves_to_solicited():
    assert can_transition(ObjectStatus.AVAILABLE, ObjectStatus.SOLICITED)
    assert not can_transition(ObjectStatus.AVAILABLE, ObjectStatus.DEVOLVED)
    assert not can_transition(ObjectStatus.AVAILABLE, ObjectStatus.AVAILABLE)


def test_solicited_can_be_cancelled_devolved_or_taken_over():
    assert can_transition(ObjectStatus.SOLICITED, ObjectStatus.AVAILABLE)
    assert can_transition(ObjectStatus.SOLICITED, ObjectStatus.DEVOLVED)
    assert can_transition(ObjectStatus.SOLICITED, ObjectStatus.SOLICITED)


def test_transition_sources_guard_each_write():
    assert transition_sources(ObjectStatus.SOLICITED) == {
        ObjectStatus.AVAILABLE, ObjectStatus.SOLICITED,
    }
    assert transition_sources(ObjectStatus.DEVOLVED) == {ObjectStatus.SOLICITED}
    assert transition_sources(ObjectStatus.AVAILABLE) == {ObjectStatus.SOLICITED}


def test_uuid_hex_is_valid_object_id():
    assert is_valid_object_id(uuid4().hex)


def test_malformed_object_ids_rejected():
    assert not is_valid_object_id("")
    assert not is_valid_object_id("not-an-id")
    assert not is_valid_object_id(uuid4().hex.upper())
    assert not is_valid_object_id(str(uuid4()))
    assert not is_valid_object_id(uuid4().hex + "0")


def test_capabilities_are_distinct():
    assert len({c.value for c in Capability}) == len(Capability)
