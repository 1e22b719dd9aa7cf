"""Test configuration and fixtures.

Every test gets a fresh in-memory SQLite schema, an in-memory blob store and
a LoggingMailer. The FastAPI dependencies are overridden to use them.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from typing import Any, Dict, Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from nomination_desk.api import app
from nomination_desk.db import audit_models, models  # noqa: F401
from nomination_desk.db.base import Base, build_engine, get_db
from nomination_desk.db.services import NominationService
from nomination_desk.dependencies import get_blob_store, get_mailer
from nomination_desk.notifications import LoggingMailer
from nomination_desk.storage import MemoryBlobStore
from nomination_desk.wizard.state import NominationWizard

test_engine = build_engine("sqlite:///:memory:")
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

test_blob_store = MemoryBlobStore("tests")
test_mailer = LoggingMailer()


def override_get_db() -> Generator[Session, None, None]:
    """Override the get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_blob_store] = lambda: test_blob_store
app.dependency_overrides[get_mailer] = lambda: test_mailer


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh tables, blobs and outbox for every test."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    test_blob_store.blobs.clear()
    test_mailer.outbox.clear()
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    session = TestSessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db_session) -> NominationService:
    return NominationService(db_session)


@pytest.fixture
def wizard(store) -> NominationWizard:
    return NominationWizard(store)


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return test_blob_store


@pytest.fixture
def mailer() -> LoggingMailer:
    return test_mailer


@pytest.fixture
def section_a() -> Dict[str, Any]:
    return {
        "nominee_full_name": "Amina Okafor",
        "nominee_gender": "female",
        "nominee_dob": "1975-04-12",
        "nominee_nationality": "NG",
        "nominee_country_of_residence": "NG",
        "nominee_organization": "Lagos Relief Network",
        "nominee_title_position": "Executive Director",
        "nominee_email": "amina@example.org",
        "nominee_phone": "+234 803 555 0101",
        "nominee_social_media": "",
        "nominee_type": "individual",
        "summary_of_achievement": "Coordinated flood relief for 40,000 families.",
    }


@pytest.fixture
def section_b() -> Dict[str, Any]:
    return {
        "award_category": "leadership_legacy",
        "specific_award": "african_humanitarian_hero",
    }


@pytest.fixture
def section_c() -> Dict[str, Any]:
    return {
        "justification": "Two decades of humanitarian leadership across West Africa.",
        "notable_recognitions": "ECOWAS Humanitarian Medal 2019",
        "media_links": [{"value": "https://example.org/amina"}, {"value": ""}],
    }


@pytest.fixture
def section_d() -> Dict[str, Any]:
    return {
        "nominator_full_name": "Kwame Mensah",
        "nominator_relationship_to_nominee": "Colleague",
        "nominator_organization": "Accra Aid Collective",
        "nominator_email": "kwame@example.org",
        "nominator_phone": "+233 20 555 0199",
        "nominator_reason": "She has saved thousands of lives.",
    }


@pytest.fixture
def section_e() -> Dict[str, Any]:
    return {
        "confirm_accuracy": True,
        "confirm_nominee_contact": True,
        "confirm_data_use": True,
        "nominator_signature": "Kwame Mensah",
    }


@pytest.fixture
def all_sections(section_a, section_b, section_c, section_d, section_e) -> Dict[str, Dict[str, Any]]:
    return {"A": section_a, "B": section_b, "C": section_c, "D": section_d, "E": section_e}
