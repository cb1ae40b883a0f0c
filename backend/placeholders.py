"""Detect which canonical relatives of the central person are missing from a tree."""

import logging
import math

from models import FamilyMember, PlaceholderSlot

logger = logging.getLogger("sunchart.placeholders")

# (role, display name, generation offset from the central person, angle in radians)
CANONICAL_ROLES: list[tuple[str, str, int, float]] = [
    ("father", "Father", -1, -2 * math.pi / 3),
    ("mother", "Mother", -1, -math.pi / 3),
    ("paternal_grandfather", "Paternal Grandfather", -2, -5 * math.pi / 6),
    ("paternal_grandmother", "Paternal Grandmother", -2, -7 * math.pi / 12),
    ("maternal_grandfather", "Maternal Grandfather", -2, -5 * math.pi / 12),
    ("maternal_grandmother", "Maternal Grandmother", -2, -math.pi / 6),
    ("sibling", "Sibling", 0, math.pi),
    ("spouse", "Spouse", 0, 0.0),
    ("child", "Child", 1, math.pi / 2),
    ("uncle", "Uncle", -1, -5 * math.pi / 6),
    ("aunt", "Aunt", -1, -math.pi / 6),
    ("cousin", "Cousin", 0, 3 * math.pi / 4),
]

# Roles with synonyms; every other role matches on its own display name.
ROLE_SYNONYMS: dict[str, tuple[str, ...]] = {
    "sibling": ("sibling", "brother", "sister"),
    "child": ("son", "daughter", "child"),
    "father": ("father", "dad"),
    "mother": ("mother", "mom"),
}


def role_terms(role: str, display_name: str) -> tuple[str, ...]:
    return ROLE_SYNONYMS.get(role, (display_name.lower(),))


def is_role_filled(role: str, display_name: str, relationships: list[str]) -> bool:
    """True if any existing relationship text contains one of the role's terms."""
    terms = role_terms(role, display_name)
    return any(term in rel for rel in relationships for term in terms)


def find_missing_relatives(
    central: FamilyMember | None, members: list[FamilyMember]
) -> list[PlaceholderSlot]:
    """
    Placeholder slots for canonical roles that no member's relationship text covers.

    Matching is a case-insensitive substring test over every member's
    relationship, so "Grandfather" also fills "father". No central person
    means no placeholders.
    """
    if central is None:
        return []

    relationships = [m.relationship.lower() for m in members if m.relationship]
    central_gen = central.generation_or_zero

    slots = [
        PlaceholderSlot(
            role=role,
            relationship=display_name,
            generation=central_gen + offset,
            angle=angle,
        )
        for role, display_name, offset, angle in CANONICAL_ROLES
        if not is_role_filled(role, display_name, relationships)
    ]
    logger.debug(f"{len(slots)} of {len(CANONICAL_ROLES)} canonical roles unfilled for {central.id}")
    return slots
