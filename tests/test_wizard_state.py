"""Tests for the NominationWizard state container."""

import pytest

from nomination_desk.db.services import StoreError
from nomination_desk.schemas import SectionLetter, validate_section
from nomination_desk.wizard import NominationWizard
from nomination_desk.wizard.state import LOAD_FAILED_MESSAGE


class FailingStore:
    """Store stand-in whose reads always fail."""

    def get(self, nomination_id):
        raise StoreError("get_nomination", "connection refused")

    def get_resumable(self, nomination_id):
        raise StoreError("get_resumable_nomination", "connection refused")


def test_initial_state(wizard):
    assert wizard.nomination_id is None
    assert wizard.current_step == 1
    assert wizard.state.sections == {}
    assert not wizard.state.is_submitting


@pytest.mark.parametrize("step", [0, 6, -1])
def test_set_current_step_rejects_out_of_range(wizard, step):
    with pytest.raises(ValueError):
        wizard.set_current_step(step)
    assert wizard.current_step == 1


def test_update_section_rejects_wrong_letter(wizard, section_b):
    data = validate_section("B", section_b).data
    with pytest.raises(ValueError):
        wizard.update_section_data(SectionLetter.C, data)


def test_reset_is_idempotent(wizard, section_a):
    wizard.set_nomination_id("nom-1")
    wizard.set_current_step(4)
    wizard.update_section_data("A", validate_section("A", section_a).data)
    wizard.state.is_submitting = True
    wizard.add_notice("info", "hello")

    wizard.reset_nomination()
    first = wizard.snapshot()
    wizard.reset_nomination()

    assert wizard.snapshot() == first
    assert first["nomination_id"] is None
    assert first["current_step"] == 1
    assert first["sections"] == {}
    assert first["notices"] == []
    assert first["is_submitting"] is False


def test_load_populates_sections(wizard, store, section_a, section_b):
    nomination = store.upsert(
        {
            "nominee_name": "Amina Okafor",
            "form_section_a": validate_section("A", section_a).data.to_document(),
            "form_section_b": validate_section("B", section_b).data.to_document(),
        }
    )

    assert wizard.load(nomination.id) is True

    assert wizard.nomination_id == nomination.id
    assert set(wizard.state.sections) == {SectionLetter.A, SectionLetter.B}
    assert wizard.section("B").specific_award == "african_humanitarian_hero"
    assert wizard.state.is_loading is False


def test_load_same_id_is_noop(wizard, store, section_a):
    nomination = store.upsert(
        {"nominee_name": "X", "form_section_a": validate_section("A", section_a).data.to_document()}
    )
    wizard.load(nomination.id)
    wizard.state.sections.clear()

    wizard.load(nomination.id)

    assert wizard.state.sections == {}


def test_load_missing_resets_with_notice(wizard):
    wizard.set_current_step(3)
    assert wizard.load("does-not-exist") is False
    assert wizard.nomination_id is None
    assert wizard.current_step == 1
    assert wizard.snapshot()["notices"] == [{"level": "warning", "message": LOAD_FAILED_MESSAGE}]


def test_load_store_error_never_raises():
    wizard = NominationWizard(FailingStore())
    assert wizard.load("nom-1") is False
    assert wizard.state.notices[0].level == "warning"
    assert wizard.state.is_loading is False


def test_snapshot_shape(wizard, section_a):
    wizard.update_section_data("A", validate_section("A", section_a).data)
    wizard.set_current_step(2)

    snapshot = wizard.snapshot()

    assert snapshot["current_section"] == "B"
    assert snapshot["total_steps"] == 5
    assert snapshot["sections"]["A"]["nominee_full_name"] == "Amina Okafor"
