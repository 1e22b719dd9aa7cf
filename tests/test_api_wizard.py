"""
API tests for the nomination form and attachment endpoints.
"""

from fastapi.testclient import TestClient

from nomination_desk.api import app
from nomination_desk.attachments import AttachmentManager
from nomination_desk.config import get_settings
from nomination_desk.db.services import StoreError

client = TestClient(app)

UPLOADER = {"X-Uploader-Id": "user-1"}


def submit(step, data, nomination_id=None, headers=None):
    return client.post(
        f"/nomination-form/steps/{step}",
        json={"nomination_id": nomination_id, "data": data},
        headers=headers or UPLOADER,
    )


def start_nomination(all_sections, through=1):
    """Submit sections A..through over HTTP and return the nomination id."""
    nomination_id = None
    for step, letter in enumerate("ABCDE"[:through], start=1):
        response = submit(step, all_sections[letter], nomination_id)
        assert response.status_code == 200, response.json()
        nomination_id = response.json()["wizard"]["nomination_id"]
    return nomination_id


class TestOpenForm:
    def test_fresh_form(self):
        response = client.get("/nomination-form")

        assert response.status_code == 200
        data = response.json()
        assert data["resumed"] is False
        assert data["wizard"]["current_step"] == 1
        assert data["wizard"]["nomination_id"] is None
        assert data["form"]["nominee_full_name"] == ""

    def test_continue_link_resumes(self, all_sections):
        nomination_id = start_nomination(all_sections, through=2)

        response = client.get("/nomination-form", params={"continue": nomination_id})

        data = response.json()
        assert data["resumed"] is True
        assert data["wizard"]["current_step"] == 3
        assert data["wizard"]["current_section"] == "C"
        assert set(data["wizard"]["sections"]) == {"A", "B"}

    def test_continue_link_for_submitted_nomination(self, all_sections):
        nomination_id = start_nomination(all_sections, through=5)

        data = client.get("/nomination-form", params={"continue": nomination_id}).json()

        assert data["resumed"] is False
        assert data["wizard"]["nomination_id"] is None
        assert data["wizard"]["notices"][0]["level"] == "warning"

    def test_edit_loads_any_status(self, all_sections):
        nomination_id = start_nomination(all_sections, through=5)

        data = client.get(f"/nomination-form/edit/{nomination_id}").json()

        assert data["loaded"] is True
        assert data["wizard"]["current_step"] == 1
        assert data["form"]["nominee_full_name"] == "Amina Okafor"

    def test_edit_unknown(self):
        data = client.get("/nomination-form/edit/missing").json()
        assert data["loaded"] is False
        assert data["wizard"]["notices"]


class TestSubmitStep:
    def test_section_a_creates_nomination(self, section_a):
        response = submit(1, section_a)

        assert response.status_code == 200
        data = response.json()
        assert data["result"]["outcome"] == "saved"
        assert data["wizard"]["current_step"] == 2
        assert data["wizard"]["nomination_id"]
        assert data["form"]["award_category"] == ""

    def test_validation_errors(self):
        response = submit(1, {"nominee_full_name": ""})

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["outcome"] == "invalid"
        assert "nominee_email" in detail["errors"]

    def test_later_step_without_nomination(self, section_b):
        response = submit(2, section_b)

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["outcome"] == "missing_nomination"
        assert detail["current_step"] == 1

    def test_unknown_nomination(self, section_b):
        response = submit(2, section_b, nomination_id="missing")
        assert response.status_code == 404

    def test_step_out_of_range(self, section_a):
        assert submit(6, section_a).status_code == 422
        assert submit(0, section_a).status_code == 422

    def test_full_submission_sends_confirmation(self, all_sections, mailer):
        nomination_id = start_nomination(all_sections, through=4)

        response = submit(5, all_sections["E"], nomination_id)

        assert response.status_code == 200
        data = response.json()
        assert data["result"]["submitted"] is True
        assert data["wizard"]["notices"][-1]["message"] == (
            "Your nomination has been submitted. Thank you!"
        )
        assert mailer.outbox[-1].to == ["kwame@example.org"]

        detail = client.get(f"/admin/nominations/{nomination_id}").json()
        assert detail["status"] == "submitted"
        assert detail["submitted_at"] is not None

    def test_submission_notifies_configured_admin(self, all_sections, mailer, monkeypatch):
        monkeypatch.setattr(get_settings(), "admin_notification_email", "desk@tpahla.africa")
        nomination_id = start_nomination(all_sections, through=4)

        submit(5, all_sections["E"], nomination_id)

        assert mailer.outbox[-1].to == ["desk@tpahla.africa"]
        assert nomination_id in mailer.outbox[-1].text

    def test_back(self, all_sections):
        nomination_id = start_nomination(all_sections, through=2)

        response = client.post(
            "/nomination-form/steps/3/back", json={"nomination_id": nomination_id}
        )

        data = response.json()
        assert data["wizard"]["current_step"] == 2
        assert data["form"]["specific_award"] == "african_humanitarian_hero"


def test_change_category_clears_award():
    response = client.post(
        "/nomination-form/section-b/category",
        json={
            "form": {"award_category": "leadership_legacy", "specific_award": "african_humanitarian_hero"},
            "award_category": "innovation_technology",
        },
    )

    data = response.json()
    assert data["form"] == {"award_category": "innovation_technology", "specific_award": ""}
    assert len(data["awards"]) == 3


class TestDocuments:
    def upload(self, nomination_id, category, *names, headers=UPLOADER):
        files = [("files", (name, b"content", "application/octet-stream")) for name in names]
        return client.post(
            f"/nominations/{nomination_id}/documents",
            params={"category": category},
            files=files,
            headers=headers,
        )

    def test_upload_list_delete(self, all_sections, blob_store):
        nomination_id = start_nomination(all_sections)

        response = self.upload(nomination_id, "cv_resume", "cv.pdf")
        assert response.status_code == 200
        data = response.json()
        assert data["remaining_slots"] == 0
        document = data["results"][0]["document"]
        assert blob_store.exists(document["storage_path"])

        listed = client.get(f"/nominations/{nomination_id}/documents", headers=UPLOADER).json()
        assert [d["file_name"] for d in listed] == ["cv.pdf"]
        assert listed[0]["public_url"].startswith("memory://tests/")

        unconfirmed = client.delete(
            f"/nominations/{nomination_id}/documents/{document['id']}", headers=UPLOADER
        )
        assert unconfirmed.status_code == 400

        deleted = client.delete(
            f"/nominations/{nomination_id}/documents/{document['id']}",
            params={"confirm": "true"},
            headers=UPLOADER,
        )
        assert deleted.status_code == 200
        assert deleted.json()["document"]["file_name"] == "cv.pdf"
        assert not blob_store.exists(document["storage_path"])

    def test_single_upload_over_limit(self, all_sections):
        nomination_id = start_nomination(all_sections)
        self.upload(nomination_id, "cv_resume", "cv.pdf")

        response = self.upload(nomination_id, "cv_resume", "cv2.pdf")

        assert response.status_code == 409
        assert response.json()["detail"]["error"]["error"] == "ATTACHMENT_LIMIT"

    def test_batch_upload_reports_each_file(self, all_sections):
        nomination_id = start_nomination(all_sections)

        response = self.upload(nomination_id, "photo_media", "a.jpg", "b.jpg", "c.jpg", "d.jpg")

        assert response.status_code == 200
        data = response.json()
        assert [r["success"] for r in data["results"]] == [True, True, True, False]
        assert data["remaining_slots"] == 0

    def test_upload_requires_uploader(self, all_sections):
        nomination_id = start_nomination(all_sections)
        response = self.upload(nomination_id, "cv_resume", "cv.pdf", headers={})
        assert response.status_code == 422

    def test_upload_to_unknown_nomination(self):
        assert self.upload("missing", "cv_resume", "cv.pdf").status_code == 404

    def test_list_scoped_to_uploader(self, all_sections):
        nomination_id = start_nomination(all_sections)
        self.upload(nomination_id, "photo_media", "mine.jpg")
        self.upload(nomination_id, "photo_media", "theirs.jpg", headers={"X-Uploader-Id": "user-2"})

        listed = client.get(f"/nominations/{nomination_id}/documents", headers=UPLOADER).json()

        assert [d["file_name"] for d in listed] == ["mine.jpg"]

    def test_list_requires_uploader(self, all_sections):
        nomination_id = start_nomination(all_sections)
        response = client.get(f"/nominations/{nomination_id}/documents")
        assert response.status_code == 422

    def test_slot_count_failure_after_upload(self, all_sections, monkeypatch):
        nomination_id = start_nomination(all_sections)
        count_slots = AttachmentManager.remaining_slots
        calls = []

        def fail_after_upload(manager, nomination_id, category):
            calls.append(category)
            if len(calls) > 1:
                raise StoreError("count_documents", "database is locked")
            return count_slots(manager, nomination_id, category)

        monkeypatch.setattr(AttachmentManager, "remaining_slots", fail_after_upload)

        response = self.upload(nomination_id, "photo_media", "a.jpg")

        assert response.status_code == 503
        detail = response.json()["detail"]
        assert detail["results"][0]["file_name"] == "a.jpg"
        assert detail["results"][0]["success"] is True

    def test_delete_someone_elses_file(self, all_sections):
        nomination_id = start_nomination(all_sections)
        document = self.upload(nomination_id, "cv_resume", "cv.pdf").json()["results"][0]["document"]

        response = client.delete(
            f"/nominations/{nomination_id}/documents/{document['id']}",
            params={"confirm": "true"},
            headers={"X-Uploader-Id": "user-2"},
        )

        assert response.status_code == 403

    def test_delete_under_wrong_nomination(self, all_sections):
        nomination_id = start_nomination(all_sections)
        document = self.upload(nomination_id, "cv_resume", "cv.pdf").json()["results"][0]["document"]

        response = client.delete(
            f"/nominations/other/documents/{document['id']}", params={"confirm": "true"}
        )

        assert response.status_code == 404
