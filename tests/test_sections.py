"""
Tests for the per-section input contracts.

Verifies:
- Each section accepts a complete, valid payload
- Field-scoped error messages for bad input
- Blank strings treated as absent
- Stored documents round back into typed sections, and bad ones are dropped
"""

from datetime import date

import pytest

from nomination_desk.schemas import (
    SectionA,
    SectionB,
    SectionC,
    SectionE,
    SectionLetter,
    load_stored_section,
    validate_section,
)
from nomination_desk.schemas.sections import REQUIRED_MESSAGE


class TestSectionA:
    def test_valid_payload(self, section_a):
        result = validate_section("A", section_a)
        assert result.ok
        assert isinstance(result.data, SectionA)
        assert result.data.nominee_full_name == "Amina Okafor"
        assert result.data.nominee_social_media is None

    def test_missing_required_fields(self):
        result = validate_section(SectionLetter.A, {"nominee_full_name": "  "})
        assert not result.ok
        assert result.errors["nominee_full_name"] == REQUIRED_MESSAGE
        assert result.errors["nominee_email"] == REQUIRED_MESSAGE
        assert "nominee_phone" in result.errors

    def test_invalid_email_and_phone(self, section_a):
        section_a.update(nominee_email="not-an-email", nominee_phone="abc")
        result = validate_section("A", section_a)
        assert result.errors["nominee_email"] == "Invalid email address"
        assert result.errors["nominee_phone"] == "Invalid phone number"

    @pytest.mark.parametrize(
        "email", ["jane@example..com", "jane@.example.com", "jane@exa(mple.com"]
    )
    def test_malformed_email_rejected(self, section_a, email):
        section_a["nominee_email"] = email
        result = validate_section("A", section_a)
        assert not result.ok
        assert result.errors["nominee_email"] == "Invalid email address"

    @pytest.mark.parametrize("phone", ["-------", "(((   )))", "+12 34"])
    def test_phone_needs_enough_digits(self, section_a, phone):
        section_a["nominee_phone"] = phone
        result = validate_section("A", section_a)
        assert result.errors["nominee_phone"] == "Invalid phone number"

    @pytest.mark.parametrize("dob", ["12/04/1975", "1975-02-30"])
    def test_bad_date_of_birth(self, section_a, dob):
        section_a["nominee_dob"] = dob
        result = validate_section("A", section_a)
        assert "nominee_dob" in result.errors

    def test_gender_is_restricted(self, section_a):
        section_a["nominee_gender"] = "unknown"
        result = validate_section("A", section_a)
        assert "nominee_gender" in result.errors

    def test_section_tag_is_forced(self, section_a):
        section_a["section"] = "D"
        result = validate_section("A", section_a)
        assert result.ok
        assert result.data.section == "A"


class TestSectionB:
    def test_valid_award_in_category(self, section_b):
        result = validate_section("B", section_b)
        assert result.ok
        assert isinstance(result.data, SectionB)

    def test_award_outside_category_rejected(self):
        result = validate_section(
            "B",
            {"award_category": "leadership_legacy", "specific_award": "humanitarian_youth_leadership"},
        )
        assert not result.ok
        assert "specific_award" in result.errors
        assert "award_category" not in result.errors

    def test_unknown_category_reported_on_category_only(self):
        result = validate_section("B", {"award_category": "nope", "specific_award": "x"})
        assert "award_category" in result.errors
        assert "specific_award" not in result.errors


class TestSectionC:
    def test_media_links_flattened_and_blank_rows_dropped(self, section_c):
        result = validate_section("C", section_c)
        assert result.ok
        assert isinstance(result.data, SectionC)
        assert [str(link) for link in result.data.media_links] == ["https://example.org/amina"]
        assert result.data.to_document()["media_links"] == ["https://example.org/amina"]

    def test_bad_media_link(self, section_c):
        section_c["media_links"] = ["ftp://example.org/file"]
        result = validate_section("C", section_c)
        assert "media_links" in result.errors

    def test_link_with_space_in_host_rejected(self, section_c):
        section_c["media_links"] = ["http://exa mple.com"]
        result = validate_section("C", section_c)
        assert result.errors["media_links"] == "Invalid URL"

    def test_justification_length_limit(self, section_c):
        section_c["justification"] = "x" * 2501
        result = validate_section("C", section_c)
        assert "justification" in result.errors


class TestSectionD:
    def test_reason_length_limit(self, section_d):
        section_d["nominator_reason"] = "x" * 501
        result = validate_section("D", section_d)
        assert "nominator_reason" in result.errors

    def test_malformed_nominator_email(self, section_d):
        section_d["nominator_email"] = "kwame@example..org"
        result = validate_section("D", section_d)
        assert result.errors["nominator_email"] == "Invalid email address"

    def test_valid(self, section_d):
        assert validate_section("D", section_d).ok


class TestSectionE:
    def test_accuracy_must_be_confirmed(self, section_e):
        section_e["confirm_accuracy"] = False
        result = validate_section("E", section_e)
        assert "confirm_accuracy" in result.errors

    def test_accuracy_missing_is_an_error(self):
        result = validate_section("E", {"nominator_signature": "K. Mensah"})
        assert "confirm_accuracy" in result.errors

    def test_signature_required(self, section_e):
        section_e["nominator_signature"] = ""
        result = validate_section("E", section_e)
        assert result.errors["nominator_signature"] == REQUIRED_MESSAGE

    def test_date_signed_defaults_to_today(self, section_e):
        result = validate_section("E", section_e)
        assert isinstance(result.data, SectionE)
        assert result.data.date_signed == date.today()


class TestStoredSections:
    def test_round_trip_from_document(self, section_b):
        document = validate_section("B", section_b).data.to_document()
        assert document["section"] == "B"
        loaded = load_stored_section("B", document)
        assert isinstance(loaded, SectionB)
        assert loaded.specific_award == "african_humanitarian_hero"

    def test_mismatched_tag_treated_as_absent(self, section_b):
        document = validate_section("B", section_b).data.to_document()
        assert load_stored_section("C", document) is None

    def test_invalid_document_treated_as_absent(self):
        assert load_stored_section("D", {"nominator_full_name": "Only a name"}) is None

    def test_empty_document(self):
        assert load_stored_section("A", None) is None
        assert load_stored_section("A", {}) is None

    def test_empty_defaults_cover_every_field(self):
        defaults = SectionC.empty_defaults()
        assert defaults == {"justification": "", "notable_recognitions": "", "media_links": []}

    def test_blank_values_in_document_are_absent(self, section_a):
        document = validate_section("A", section_a).data.to_document()
        document["nominee_organization"] = "   "
        loaded = load_stored_section("A", document)
        assert isinstance(loaded, SectionA)
        assert loaded.nominee_organization is None
