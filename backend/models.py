"""Pydantic models for family trees, clan reference data and layout output."""

import logging
import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger("sunchart.models")


class CamelModel(BaseModel):
    """Base model accepting both camelCase wire names and snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Family Tree
# ============================================================================

class FamilyMember(CamelModel):
    """A person in a user's family tree.

    Only one parent edge is modelled (``parent_id``). Two-parent families are
    represented by a spouse link plus each child's single ``parent_id``.
    """
    id: str
    name: str
    relationship: str | None = None
    birth_year: str | None = None
    death_year: str | None = None
    generation: int | None = None  # 0 = self, negative = ancestors
    parent_id: str | None = None
    spouse_id: str | None = None
    is_elder: bool = False
    gender: str | None = None
    side: Literal["maternal", "paternal"] | None = None
    status: Literal["living", "deceased"] = Field(default=None, validate_default=True)
    photo_url: str | None = None
    notes: str | None = None

    @field_validator("id", "parent_id", "spouse_id", "birth_year", "death_year", mode="before")
    @classmethod
    def _coerce_to_str(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            # Non-finite floats are left for pydantic to reject
            if not math.isfinite(value):
                return value
            return str(int(value)) if value.is_integer() else str(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("generation", mode="before")
    @classmethod
    def _coerce_generation(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError):
            return None

    @field_validator("is_elder", mode="before")
    @classmethod
    def _coerce_is_elder(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "yes", "1")
        return bool(value)

    @field_validator("gender", mode="before")
    @classmethod
    def _normalize_gender(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return None
        value = value.strip().lower()
        if value in ("m", "male"):
            return "male"
        if value in ("f", "female"):
            return "female"
        return None

    @field_validator("side", mode="before")
    @classmethod
    def _normalize_side(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in ("maternal", "paternal"):
            return value.strip().lower()
        return None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any, info) -> Any:
        if isinstance(value, str) and value.strip().lower() in ("living", "deceased"):
            return value.strip().lower()
        return "deceased" if info.data.get("death_year") else "living"

    @property
    def generation_or_zero(self) -> int:
        return self.generation if self.generation is not None else 0


class FamilyTree(CamelModel):
    """A user's family tree linked to a tribe and clan."""
    id: str
    surname: str
    tribe: str
    clan: str
    user_id: str | None = None
    created_at: str | None = None
    members: list[FamilyMember] = Field(default_factory=list)


def parse_members(records: list[Any]) -> list[FamilyMember]:
    """
    Validate raw member records from an external source (AI output, client JSON).

    Records without a usable ``id`` or ``name`` are skipped with a warning;
    already-built ``FamilyMember`` instances pass through unchanged.
    """
    members: list[FamilyMember] = []
    for index, record in enumerate(records or []):
        if isinstance(record, FamilyMember):
            members.append(record)
            continue
        if not isinstance(record, dict):
            logger.warning(f"Skipping member record #{index}: expected an object, got {type(record).__name__}")
            continue
        try:
            members.append(FamilyMember.model_validate(record))
        except ValidationError as e:
            logger.warning(f"Skipping invalid member record #{index}: {e.error_count()} validation error(s)")
    return members


# ============================================================================
# Clan Reference Data
# ============================================================================

class ClanElder(CamelModel):
    """A historical clan elder from the reference dataset.

    ``verification_score`` is display-only; sources disagree on its scale
    (0-100 vs 0-1).
    """
    id: str
    name: str
    approximate_era: str = ""
    verification_score: float | None = None
    parent_id: str | None = None  # another elder in the clan, or "TA_<tribe>"
    notes: str | None = None
    significance: str | None = None


class Clan(CamelModel):
    """A clan; ``elders`` keeps source order."""
    id: str
    name: str
    totem: str | None = None
    origin: str | None = None
    elders: list[ClanElder] = Field(default_factory=list)
    cultural_practices: list[str] = Field(default_factory=list)
    historical_notes: list[str] = Field(default_factory=list)


class Tribe(CamelModel):
    id: str
    name: str
    region: str = ""
    population: str | None = None
    language: str | None = None
    description: str = ""
    clans: list[Clan] = Field(default_factory=list)


class ElderListing(CamelModel):
    """An elder together with the clan and tribe it belongs to."""
    elder: ClanElder
    clan_id: str
    clan_name: str
    tribe_id: str
    tribe_name: str


class ElderSearchPage(CamelModel):
    results: list[ElderListing]
    total: int
    page: int
    per_page: int
    total_pages: int


# ============================================================================
# Derived Layout Structures
# ============================================================================

class ElderRelation(CamelModel):
    """A synthesized, illustrative kinship label between two elders."""
    relation: str
    related_to_id: str


class PositionedNode(CamelModel):
    member_id: str
    x: float
    y: float
    ring: int
    generation: int
    angle: float
    radius: float
    distance_from_center: float
    is_central: bool = False


class PlaceholderSlot(CamelModel):
    """An unfilled relationship role offered as an "add relative" prompt."""
    role: str
    relationship: str
    generation: int
    angle: float | None = None


class PositionedPlaceholder(CamelModel):
    relationship: str
    role: str
    generation: int
    angle: float
    x: float
    y: float
    ring: int
    radius: float
    distance_from_center: float


class GenerationRing(CamelModel):
    """Backdrop circle marking one generation."""
    generation: int
    ring: int
    radius: float
    member_count: int


class ElderSunChartNode(CamelModel):
    elder_id: str
    name: str
    x: float
    y: float
    angle: float
    distance_from_center: float
    is_central: bool = False
    relation: str | None = None
    related_to_id: str | None = None


class TreeStatistics(CamelModel):
    member_count: int
    generation_count: int
    living_count: int
    deceased_count: int
    elder_count: int


class TreeLayout(CamelModel):
    """Render payload handed to the drawing layer."""
    has_data: bool
    central_person_id: str | None
    generations: list[int]
    generation_groups: dict[int, list[str]]
    positioned_nodes: list[PositionedNode]
    positioned_placeholders: list[PositionedPlaceholder]
    rings: list[GenerationRing]
    descriptions: dict[str, str]
    statistics: TreeStatistics
    elder_relationship_map: dict[str, ElderRelation] = Field(default_factory=dict)
    zoom: float = 1.0
