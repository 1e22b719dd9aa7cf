"""
Award category catalog.

Read-only reference data for the nomination wizard. Section B references a
category by ``id`` and a specific award by its ``value``.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class Award(BaseModel):
    """A single award within a category."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class AwardCategory(BaseModel):
    """A cluster of related awards."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    awards: Tuple[Award, ...]

    def award_values(self) -> List[str]:
        return [award.value for award in self.awards]

    def has_award(self, value: str) -> bool:
        return any(award.value == value for award in self.awards)


def _category(category_id: str, title: str, *awards: Tuple[str, str]) -> AwardCategory:
    return AwardCategory(
        id=category_id,
        title=title,
        awards=tuple(Award(name=name, value=value) for name, value in awards),
    )


AWARD_CATEGORIES: Tuple[AwardCategory, ...] = (
    _category(
        "leadership_legacy",
        "PAN-AFRICAN HUMANITARIAN LEADERSHIP & LEGACY",
        ("African Humanitarian Hero (Highest Honor)", "african_humanitarian_hero"),
        ("Pan-African Icon of Humanitarian Leadership", "pan_african_icon_humanitarian_leadership"),
        ("Humanitarian Lifetime Achievement Award", "humanitarian_lifetime_achievement"),
        (
            "Distinguished Traditional Leadership for Humanitarian Support",
            "distinguished_traditional_leadership_humanitarian_support",
        ),
        (
            "Outstanding Humanitarian Organization of the Year",
            "outstanding_humanitarian_organization_year",
        ),
    ),
    _category(
        "governance_impact",
        "EXEMPLARY GOVERNANCE FOR HUMANITARIAN IMPACT",
        ("Humanitarian Leadership in Governance Award", "humanitarian_leadership_governance"),
        ("Best Humanitarian-Friendly President/Head of State Award", "best_president_head_of_state"),
        ("Best Humanitarian-Friendly First Lady Award", "best_first_lady"),
        ("Best Humanitarian-Friendly Governor Award", "best_governor"),
        ("Best Humanitarian-Friendly Minister of Education Award", "best_minister_education"),
    ),
    _category(
        "youth_gender_equality",
        "YOUTH EMPOWERMENT & GENDER EQUALITY LEADERSHIP",
        ("Humanitarian Youth Leadership Award", "humanitarian_youth_leadership"),
        ("Gender Equity & Women Empowerment Award", "gender_equity_women_empowerment"),
        (
            "Outstanding Public Office Holder for Gender Equality & Women's Empowerment Award",
            "outstanding_public_office_holder_gender_equality",
        ),
        ("Future Humanitarian Leaders Award", "future_humanitarian_leaders"),
    ),
    _category(
        "sustainable_development_environment",
        "SUSTAINABLE DEVELOPMENT & ENVIRONMENTAL STEWARDSHIP",
        (
            "Sustainable Development & Environmental Stewardship Award",
            "sustainable_development_environmental_stewardship",
        ),
        ("Climate Change Leadership Award", "climate_change_leadership"),
        (
            "Renewable Energy & Humanitarian Infrastructure Award",
            "renewable_energy_humanitarian_infrastructure",
        ),
        ("Clean Water, Sanitation & Hygiene (WASH) Award", "wash_award"),
    ),
    _category(
        "innovation_technology",
        "HUMANITARIAN INNOVATION & TECHNOLOGY",
        ("Humanitarian Innovation & Technology Award", "humanitarian_innovation_technology"),
        ("Corporate Social Responsibility (CSR) Excellence Award", "csr_excellence"),
        (
            "Media & Advocacy for Humanitarian Excellence Award",
            "media_advocacy_humanitarian_excellence",
        ),
    ),
    _category(
        "disaster_relief_crisis_management",
        "DISASTER RELIEF & CRISIS MANAGEMENT",
        ("Disaster Relief & Emergency Response Award", "disaster_relief_emergency_response"),
        (
            "Excellence in Disaster Relief & National Emergency Management Award",
            "excellence_disaster_relief_national_emergency_management",
        ),
        ("Humanitarian Food Security & Nutrition Award", "humanitarian_food_security_nutrition"),
    ),
    _category(
        "public_sector_recognition",
        "PUBLIC SECTOR AND INSTITUTIONAL RECOGNITION",
        (
            "Best Minister for Infrastructure & Humanitarian Development Award",
            "best_minister_infrastructure_humanitarian_development",
        ),
        ("Best Humanitarian-Friendly Minister of Finance Award", "best_minister_finance"),
        ("Best Humanitarian-Friendly Law Maker Award", "best_law_maker"),
    ),
)

_BY_ID: Dict[str, AwardCategory] = {category.id: category for category in AWARD_CATEGORIES}


def get_category(category_id: Optional[str]) -> Optional[AwardCategory]:
    """Look up a category by id. Returns None for unknown or empty ids."""
    if not category_id:
        return None
    return _BY_ID.get(category_id)


def get_awards_for_category(category_id: Optional[str]) -> List[Award]:
    category = get_category(category_id)
    return list(category.awards) if category else []


def get_category_title(category_id: Optional[str]) -> Optional[str]:
    category = get_category(category_id)
    return category.title if category else None


def get_award_name(category_id: Optional[str], award_value: Optional[str]) -> Optional[str]:
    for award in get_awards_for_category(category_id):
        if award.value == award_value:
            return award.name
    return None


def reconcile_specific_award(
    category_id: Optional[str], specific_award: Optional[str]
) -> Optional[str]:
    """
    Keep a previously chosen award only if the category still offers it.

    Switching category clears an award that is not listed under the new
    category, so the form never holds an inconsistent pair.
    """
    if not specific_award:
        return None
    category = get_category(category_id)
    if category is None or not category.has_award(specific_award):
        return None
    return specific_award
