"""Short relationship descriptions derived from a tree's structure."""

import logging

from family_graph import FamilyGraph
from models import FamilyMember

logger = logging.getLogger("sunchart.relationships")

DEFAULT_DESCRIPTION = "Family member"


def find_parent(graph: FamilyGraph, member: FamilyMember) -> FamilyMember | None:
    return graph.parent_of(member)


def find_siblings(graph: FamilyGraph, member: FamilyMember) -> list[FamilyMember]:
    return graph.siblings_of(member)


def find_children(graph: FamilyGraph, member: FamilyMember) -> list[FamilyMember]:
    return graph.children_of(member)


def find_spouse(graph: FamilyGraph, member: FamilyMember) -> FamilyMember | None:
    return graph.spouse_of(member)


def describe_relationship(member: FamilyMember, graph: FamilyGraph) -> str:
    """
    Describe a member's place in the tree, preferring structure over free text.

    Only the first matching rule is used:
    1. "Child of <parent>" when the parent id resolves
    2. "Sibling of <names>" for members with the same parent id and generation
    3. "Parent of <names>" for members pointing at this one as parent
    4. the member's own relationship text, or "Family member"
    """
    parent = find_parent(graph, member)
    if parent is not None:
        return f"Child of {parent.name}"

    siblings = find_siblings(graph, member)
    if siblings:
        return f"Sibling of {', '.join(s.name for s in siblings)}"

    children = find_children(graph, member)
    if children:
        return f"Parent of {', '.join(c.name for c in children)}"

    return member.relationship or DEFAULT_DESCRIPTION


def describe_all(members: list[FamilyMember]) -> dict[str, str]:
    """Descriptions for every member, keyed by id (first occurrence for duplicate ids)."""
    graph = FamilyGraph(members)
    descriptions: dict[str, str] = {}
    for member in members:
        if member.id not in descriptions:
            descriptions[member.id] = describe_relationship(member, graph)
    logger.debug(f"Described {len(descriptions)} members")
    return descriptions
