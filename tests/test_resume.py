"""Tests for continuation links and resume-step computation."""

import pytest

from nomination_desk.db.services import StoreError
from nomination_desk.schemas import NominationStatus, SectionLetter, validate_section
from nomination_desk.wizard import ContinuationResolver, NominationWizard, compute_resume_step
from nomination_desk.wizard.resume import RESUME_FAILED_MESSAGE

A, B, C, D, E = SectionLetter


class FailingStore:
    def get_resumable(self, nomination_id):
        raise StoreError("get_resumable_nomination", "connection refused")


@pytest.mark.parametrize(
    "present,expected",
    [
        ([], 1),
        ([A], 2),
        ([A, B], 3),
        ([A, B, C], 4),
        ([A, B, C, D], 5),
        ([A, B, C, D, E], 5),
        ([A, C], 2),
        ([B, C, D], 1),
        (["A", "B"], 3),
    ],
)
def test_compute_resume_step(present, expected):
    assert compute_resume_step(present) == expected


def _documents(all_sections, letters):
    return {
        SectionLetter(letter).column: validate_section(letter, all_sections[letter]).data.to_document()
        for letter in letters
    }


@pytest.fixture
def saved_draft(store, all_sections):
    """A draft with A, B and C saved."""
    values = {"nominee_name": "Amina Okafor"}
    values.update(_documents(all_sections, "ABC"))
    return store.upsert(values)


class TestContinuationResolver:
    def test_resumes_draft_at_first_missing_step(self, wizard, saved_draft):
        outcome = ContinuationResolver().resume(wizard, saved_draft.id)

        assert outcome.resumed
        assert outcome.step == 4
        assert wizard.current_step == 4
        assert wizard.nomination_id == saved_draft.id
        assert set(wizard.state.sections) == {A, B, C}
        assert wizard.state.notices == []

    def test_resumes_incomplete(self, wizard, store, saved_draft):
        store.set_status(saved_draft.id, NominationStatus.INCOMPLETE)

        assert ContinuationResolver().resume(wizard, saved_draft.id).resumed

    @pytest.mark.parametrize(
        "status",
        [NominationStatus.SUBMITTED, NominationStatus.APPROVED, NominationStatus.REJECTED],
    )
    def test_closed_nominations_are_not_resumable(self, wizard, store, saved_draft, status):
        store.set_status(saved_draft.id, status)

        outcome = ContinuationResolver().resume(wizard, saved_draft.id)

        assert not outcome.resumed
        assert wizard.nomination_id is None
        assert wizard.current_step == 1
        assert wizard.state.sections == {}
        assert wizard.state.notices[-1].message == RESUME_FAILED_MESSAGE

    def test_unknown_id_starts_fresh(self, wizard):
        outcome = ContinuationResolver().resume(wizard, "missing")
        assert not outcome.resumed
        assert outcome.step == 1

    def test_store_failure_starts_fresh(self):
        wizard = NominationWizard(FailingStore())
        outcome = ContinuationResolver().resume(wizard, "nom-1")
        assert not outcome.resumed
        assert wizard.state.is_loading is False

    def test_already_bound_is_noop(self, wizard, saved_draft):
        resolver = ContinuationResolver()
        resolver.resume(wizard, saved_draft.id)
        wizard.set_current_step(2)

        outcome = resolver.resume(wizard, saved_draft.id)

        assert outcome.step == 2
        assert wizard.current_step == 2

    def test_gap_resumes_at_missing_section(self, wizard, store, all_sections):
        values = {"nominee_name": "Amina Okafor"}
        values.update(_documents(all_sections, "AC"))
        nomination = store.upsert(values)

        outcome = ContinuationResolver().resume(wizard, nomination.id)

        assert outcome.step == 2
        assert set(wizard.state.sections) == {A, C}

    def test_invalid_stored_section_counts_as_missing(self, wizard, store, all_sections):
        values = {"nominee_name": "Amina Okafor"}
        values.update(_documents(all_sections, "AC"))
        values["form_section_b"] = {"section": "B", "award_category": "nope"}
        nomination = store.upsert(values)

        outcome = ContinuationResolver().resume(wizard, nomination.id)

        assert outcome.step == 2
        assert B not in wizard.state.sections
