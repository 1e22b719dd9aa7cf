"""
Input contracts for the five nomination sections.

Each section is a pydantic model tagged with a ``section`` literal so that the
set of saved sections can be handled as a discriminated union. Validation is
exposed as the pure function :func:`validate_section`, which never raises for
bad user input: it returns a :class:`SectionValidation` carrying either the
typed section or field-scoped error messages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Type, Union

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    constr,
    field_validator,
    model_validator,
)

from ..awards import get_category
from .enums import NomineeType, SectionLetter

logger = structlog.get_logger()

# Optional +, then digits, spaces, dashes and parentheses with at least 7 digits
PHONE_PATTERN = r"^(?=(?:\D*\d){7})\+?[0-9\s\-()]{7,20}$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

JUSTIFICATION_MAX_LENGTH = 2500
NOMINATOR_REASON_MAX_LENGTH = 500
SUMMARY_MAX_LENGTH = 1500

REQUIRED_MESSAGE = "This field is required"


class SectionBase(BaseModel):
    """Common configuration for section documents."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, regex_engine="python-re")

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        """Treat blank form inputs as absent."""
        if not isinstance(data, Mapping):
            return data
        return {
            key: None if isinstance(value, str) and not value.strip() else value
            for key, value in data.items()
        }

    def to_document(self) -> Dict[str, Any]:
        """Serialize for storage in a ``form_section_*`` column."""
        return self.model_dump(mode="json")

    @classmethod
    def empty_defaults(cls) -> Dict[str, Any]:
        """Initial form values for a section that has never been saved."""
        defaults: Dict[str, Any] = {}
        for name, info in cls.model_fields.items():
            if name == "section":
                continue
            if info.is_required():
                defaults[name] = ""
            else:
                value = info.get_default(call_default_factory=True)
                defaults[name] = "" if value is None else value
        return defaults


class SectionA(SectionBase):
    """Section A: nominee information."""

    section: Literal["A"] = "A"

    nominee_full_name: constr(min_length=1, max_length=256)
    nominee_gender: Optional[Literal["male", "female", "other"]] = None
    nominee_dob: Optional[constr(pattern=DATE_PATTERN)] = None
    nominee_nationality: constr(min_length=2, max_length=64)
    nominee_country_of_residence: constr(min_length=2, max_length=64)
    nominee_organization: Optional[constr(max_length=256)] = None
    nominee_title_position: constr(min_length=1, max_length=256)
    nominee_email: EmailStr
    nominee_phone: constr(pattern=PHONE_PATTERN)
    nominee_social_media: Optional[constr(max_length=1000)] = None

    # Sources of the root-record denormalisation
    nominee_type: Optional[NomineeType] = None
    summary_of_achievement: Optional[constr(max_length=SUMMARY_MAX_LENGTH)] = None

    @field_validator("nominee_dob")
    @classmethod
    def _real_calendar_date(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                date.fromisoformat(value)
            except ValueError:
                raise ValueError("Date of birth must be a valid date (YYYY-MM-DD)")
        return value


class SectionB(SectionBase):
    """Section B: award category and specific award."""

    section: Literal["B"] = "B"

    award_category: constr(min_length=1, max_length=128)
    specific_award: constr(min_length=1, max_length=128)

    @field_validator("award_category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        if get_category(value) is None:
            raise ValueError(f"Unknown award category '{value}'")
        return value

    @field_validator("specific_award")
    @classmethod
    def _award_in_category(cls, value: str, info: ValidationInfo) -> str:
        category = get_category(info.data.get("award_category"))
        # Category errors are reported on their own field
        if category is not None and not category.has_award(value):
            raise ValueError(
                f"Award '{value}' is not offered in category '{category.id}'"
            )
        return value


class SectionC(SectionBase):
    """Section C: justification and supporting materials (text only)."""

    section: Literal["C"] = "C"

    justification: constr(min_length=1, max_length=JUSTIFICATION_MAX_LENGTH)
    notable_recognitions: Optional[constr(max_length=5000)] = None
    media_links: List[HttpUrl] = Field(default_factory=list)

    @field_validator("media_links", mode="before")
    @classmethod
    def _flatten_links(cls, value: Any) -> Any:
        """Accept plain strings or ``{"value": url}`` rows; drop blank rows."""
        if value is None:
            return []
        if not isinstance(value, list):
            return value
        links = []
        for item in value:
            if isinstance(item, Mapping):
                item = item.get("value")
            if isinstance(item, str):
                item = item.strip()
                if not item:
                    continue
            links.append(item)
        return links


class SectionD(SectionBase):
    """Section D: the canonical nominator record."""

    section: Literal["D"] = "D"

    nominator_full_name: constr(min_length=1, max_length=256)
    nominator_relationship_to_nominee: constr(min_length=1, max_length=256)
    nominator_organization: Optional[constr(max_length=256)] = None
    nominator_email: EmailStr
    nominator_phone: constr(pattern=PHONE_PATTERN)
    nominator_reason: constr(min_length=1, max_length=NOMINATOR_REASON_MAX_LENGTH)


class SectionE(SectionBase):
    """Section E: declaration and signature."""

    section: Literal["E"] = "E"

    confirm_accuracy: bool = Field(default=False, validate_default=True)
    confirm_nominee_contact: bool = False
    confirm_data_use: bool = False
    nominator_signature: constr(min_length=1, max_length=256)
    date_signed: Optional[date] = Field(default_factory=date.today)

    @field_validator("confirm_accuracy")
    @classmethod
    def _must_confirm(cls, value: bool) -> bool:
        if not value:
            raise ValueError("You must confirm that the information provided is accurate")
        return value

    @model_validator(mode="after")
    def _default_signing_date(self) -> "SectionE":
        if self.date_signed is None:
            self.date_signed = date.today()
        return self


SectionModel = Annotated[
    Union[SectionA, SectionB, SectionC, SectionD, SectionE],
    Field(discriminator="section"),
]

AnySection = Union[SectionA, SectionB, SectionC, SectionD, SectionE]

SECTION_MODELS: Dict[SectionLetter, Type[SectionBase]] = {
    SectionLetter.A: SectionA,
    SectionLetter.B: SectionB,
    SectionLetter.C: SectionC,
    SectionLetter.D: SectionD,
    SectionLetter.E: SectionE,
}

_section_adapter: TypeAdapter = TypeAdapter(SectionModel)


@dataclass
class SectionValidation:
    """Result of validating one section's input."""

    section: SectionLetter
    data: Optional[AnySection] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.data is not None and not self.errors


_PATTERN_MESSAGES = {
    "email": "Invalid email address",
    "phone": "Invalid phone number",
    "dob": "Date must use the YYYY-MM-DD format",
}


def _field_name(error: Dict[str, Any]) -> str:
    """The field a pydantic error belongs to, ignoring list indexes."""
    return ".".join(str(part) for part in error.get("loc", ()) if not isinstance(part, int))


def _error_message(error: Dict[str, Any]) -> str:
    error_type = error.get("type", "")
    field_name = _field_name(error)
    if error_type == "missing" or (
        error.get("input") is None
        and error_type in ("string_type", "bool_type", "enum", "url_type")
    ):
        return REQUIRED_MESSAGE
    if error_type.startswith("url_"):
        return "Invalid URL"
    if error_type == "string_pattern_mismatch" or (
        error_type == "value_error" and field_name.endswith("email")
    ):
        for suffix, message in _PATTERN_MESSAGES.items():
            if field_name.endswith(suffix):
                return message
    if error_type == "value_error":
        ctx = error.get("ctx") or {}
        if "error" in ctx:
            return str(ctx["error"])
    return error["msg"]


def _errors_by_field(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        key = _field_name(error) or "__all__"
        # Keep the first message per field
        errors.setdefault(key, _error_message(error))
    return errors


def validate_section(
    section: Union[SectionLetter, str], raw: Mapping[str, Any]
) -> SectionValidation:
    """
    Validate raw form input for one section.

    Args:
        section: Section letter ("A".."E")
        raw: Submitted form values

    Returns:
        SectionValidation with ``data`` set on success, ``errors`` otherwise
    """
    letter = SectionLetter(section)
    payload = dict(raw or {})
    payload["section"] = letter.value
    try:
        data = SECTION_MODELS[letter].model_validate(payload)
    except ValidationError as exc:
        return SectionValidation(section=letter, errors=_errors_by_field(exc))
    return SectionValidation(section=letter, data=data)


def load_stored_section(
    section: Union[SectionLetter, str], document: Optional[Mapping[str, Any]]
) -> Optional[AnySection]:
    """
    Rebuild a typed section from a stored JSON document.

    Stored documents were validated before write. A document that no longer
    validates is treated as absent and logged.
    """
    if not document:
        return None
    letter = SectionLetter(section)
    payload = dict(document)
    payload.setdefault("section", letter.value)
    if payload["section"] != letter.value:
        logger.warning(
            "Stored section tag does not match column",
            column=letter.column,
            tag=payload["section"],
        )
        return None
    try:
        return _section_adapter.validate_python(payload)
    except ValidationError as exc:
        logger.warning(
            "Stored section failed validation",
            column=letter.column,
            errors=_errors_by_field(exc),
        )
        return None
