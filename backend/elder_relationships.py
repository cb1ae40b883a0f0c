"""Deterministic, illustrative kinship labels between the elders of one clan.

The reference dataset gives no sibling/cousin/uncle edges between elders, so
a small connected network is derived from the elders' names and positions.
These labels are for display only and are never stored as genealogy.
"""

import logging

from models import Clan, ClanElder, ElderRelation

logger = logging.getLogger("sunchart.elder_relationships")

RELATION_TYPES = [
    "Brother of",
    "Cousin of",
    "Uncle of",
    "Nephew of",
    "Grand Uncle of",
    "Father of",
    "Son of",
    "Grandfather of",
    "Grandson of",
    "Great Uncle of",
    "Distant Cousin of",
]

INVERSE_RELATIONS = {
    "Father of": "Son of",
    "Son of": "Father of",
    "Uncle of": "Nephew of",
    "Nephew of": "Uncle of",
    "Grandfather of": "Grandson of",
    "Grandson of": "Grandfather of",
    "Brother of": "Brother of",
    "Cousin of": "Cousin of",
    "Grand Uncle of": "Grand Nephew of",
    "Great Uncle of": "Grand Nephew of",
}
GENERIC_RELATION = "Related to"


def name_value(name: str) -> int:
    """Sum of the Unicode code points of a name. Stable across runs and platforms."""
    return sum(ord(ch) for ch in name)


def inverse_relation(relation: str) -> str:
    return INVERSE_RELATIONS.get(relation, GENERIC_RELATION)


def synthesize_elder_relationships(elders: list[ClanElder]) -> dict[str, ElderRelation]:
    """
    Derive at most one relationship per elder, keyed by elder id.

    Elder order is part of the input: each elder links to the 1-3 elders that
    follow it (wrapping around), and the first assignment for an elder wins.
    The first link of each elder also gives the linked elder an inverse label
    pointing back, if it has none yet.
    """
    relationships: dict[str, ElderRelation] = {}
    total = len(elders)
    if total <= 1:
        return relationships

    for i, elder in enumerate(elders):
        value = name_value(elder.name)
        relation_count = value % 3 + 1

        for k in range(relation_count):
            related_index = (i + k + 1) % total
            if related_index == i:
                continue
            related = elders[related_index]
            relation = RELATION_TYPES[(value + related_index) % len(RELATION_TYPES)]

            if elder.id not in relationships:
                relationships[elder.id] = ElderRelation(relation=relation, related_to_id=related.id)

            if k == 0 and related.id not in relationships:
                relationships[related.id] = ElderRelation(
                    relation=inverse_relation(relation),
                    related_to_id=elder.id,
                )

    logger.debug(f"Synthesized {len(relationships)} elder relationships for {total} elders")
    return relationships


def clan_elder_relationships(clan: Clan | None) -> dict[str, ElderRelation]:
    """Synthesized relationships for a clan's elders in dataset order."""
    if clan is None:
        return {}
    return synthesize_elder_relationships(clan.elders)


def describe_elder_relation(
    elder_id: str, relationships: dict[str, ElderRelation], elders: list[ClanElder]
) -> str | None:
    """Render e.g. "Great Uncle of Kaboggoza"; None if the elder or its relative is unknown."""
    relation = relationships.get(elder_id)
    if relation is None:
        return None

    related = next((e for e in elders if e.id == relation.related_to_id), None)
    if related is None:
        logger.debug(f"Elder {elder_id} is related to missing elder {relation.related_to_id}")
        return None
    return f"{relation.relation} {related.name}"
