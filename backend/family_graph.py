"""In-memory family tree graph: member index, generation grouping and the central person."""

import logging
import uuid
from typing import Any

from models import ClanElder, FamilyMember, FamilyTree, TreeStatistics

logger = logging.getLogger("sunchart.family_graph")

SELF_RELATIONSHIPS = {"self", "", "principal", "you"}


# ============================================================================
# Graph Snapshot
# ============================================================================

class FamilyGraph:
    """
    Read-only index over one member list.

    Build a new graph after every change to the member list; nothing here is
    cached across lists. For duplicate ids the first member wins.
    """

    def __init__(self, members: list[FamilyMember]):
        self.members = list(members)
        self._by_id: dict[str, FamilyMember] = {}
        self._children: dict[str, list[FamilyMember]] = {}

        for member in self.members:
            if member.id in self._by_id:
                logger.warning(f"Duplicate member id {member.id}; keeping the first occurrence")
                continue
            self._by_id[member.id] = member

        for member in self.members:
            if member.parent_id is not None:
                self._children.setdefault(member.parent_id, []).append(member)

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, member_id: object) -> bool:
        return member_id in self._by_id

    def get(self, member_id: str | None) -> FamilyMember | None:
        if member_id is None:
            return None
        return self._by_id.get(member_id)

    def parent_of(self, member: FamilyMember) -> FamilyMember | None:
        """The member's parent, or None when the parent id is absent, dangling or the member's own id."""
        if member.parent_id == member.id:
            logger.debug(f"Member {member.id} lists itself as its parent")
            return None
        parent = self.get(member.parent_id)
        if member.parent_id is not None and parent is None:
            logger.debug(f"Member {member.id} points at missing parent {member.parent_id}")
        return parent

    def children_of(self, member: FamilyMember) -> list[FamilyMember]:
        return [c for c in self._children.get(member.id, []) if c is not member]

    def siblings_of(self, member: FamilyMember) -> list[FamilyMember]:
        """
        Members sharing this member's parent id value and generation.

        The parent does not have to exist in the tree. Members without a
        parent id have no siblings.
        """
        if member.parent_id is None:
            return []
        return [
            other for other in self._children.get(member.parent_id, [])
            if other is not member
            and other.id != member.id
            and other.generation_or_zero == member.generation_or_zero
        ]

    def spouse_of(self, member: FamilyMember) -> FamilyMember | None:
        """Spouse through the member's own link, or through a one-sided link from the spouse."""
        spouse = self.get(member.spouse_id)
        if spouse is not None:
            return spouse
        return next(
            (m for m in self.members if m.spouse_id == member.id and m.id != member.id),
            None,
        )


# ============================================================================
# Generation Grouping & Central Person
# ============================================================================

def group_by_generation(members: list[FamilyMember]) -> dict[int, list[FamilyMember]]:
    """Partition members by generation (missing generation counts as 0), keeping input order."""
    groups: dict[int, list[FamilyMember]] = {}
    for member in members:
        groups.setdefault(member.generation_or_zero, []).append(member)
    return groups


def sorted_generations(groups: dict[int, list[FamilyMember]]) -> list[int]:
    return sorted(groups)


def resolve_central_person(
    members: list[FamilyMember], selected_id: str | None = None
) -> FamilyMember | None:
    """
    Pick the person the tree is drawn around.

    1. the explicitly selected id, if still in the list
    2. a member whose relationship is "self", "", "principal" or "you"
    3. the first member in generation 0
    4. the first member
    """
    if not members:
        return None

    if selected_id is not None:
        for member in members:
            if member.id == selected_id:
                return member
        logger.debug(f"Selected member {selected_id} is no longer in the tree")

    for member in members:
        if member.relationship is not None and member.relationship.strip().lower() in SELF_RELATIONSHIPS:
            return member

    for member in members:
        if member.generation_or_zero == 0:
            return member

    return members[0]


# ============================================================================
# Tree State Transitions
# ============================================================================

def new_member_id() -> str:
    return str(uuid.uuid4())


def add_member(tree: FamilyTree, member: FamilyMember) -> FamilyTree:
    """Return a new tree state with ``member`` appended.

    A member whose id is already taken gets a fresh id.
    """
    existing_ids = {m.id for m in tree.members}
    if member.id in existing_ids:
        fresh_id = new_member_id()
        logger.warning(f"Member id {member.id} already used in tree {tree.id}; assigning {fresh_id}")
        member = member.model_copy(update={"id": fresh_id})

    logger.info(f"Adding member {member.id} ({member.name}) to tree {tree.id}")
    return tree.model_copy(update={"members": [*tree.members, member]})


def elder_to_member(elder: ClanElder, generation: int, surname: str | None = None) -> FamilyMember:
    """Turn a selected reference elder into a tree member."""
    return FamilyMember(
        id=new_member_id(),
        name=elder.name,
        relationship="Clan Elder" if not surname else f"{surname} Clan Elder",
        generation=generation,
        is_elder=True,
        status="deceased",
        notes=elder.approximate_era or None,
    )


# ============================================================================
# Statistics & Views
# ============================================================================

def tree_statistics(members: list[FamilyMember]) -> TreeStatistics:
    deceased = sum(1 for m in members if m.status == "deceased" or m.death_year)
    return TreeStatistics(
        member_count=len(members),
        generation_count=len({m.generation_or_zero for m in members}),
        living_count=len(members) - deceased,
        deceased_count=deceased,
        elder_count=sum(1 for m in members if m.is_elder),
    )


def ordinal_suffix(num: int) -> str:
    """English ordinal suffix: 1st, 2nd, 3rd, 4th, 11th, 12th, 13th, 21st."""
    j, k = num % 10, num % 100
    if j == 1 and k != 11:
        return "st"
    if j == 2 and k != 12:
        return "nd"
    if j == 3 and k != 13:
        return "rd"
    return "th"


def generation_label(offset: int) -> str:
    """Label for a generation relative to the central person's."""
    if offset == 0:
        return "Current Generation"
    n = abs(offset)
    direction = "Up" if offset < 0 else "Down"
    return f"{n}{ordinal_suffix(n)} Generation {direction}"


def list_view(members: list[FamilyMember], central_generation: int = 0) -> list[dict[str, Any]]:
    """Generations in ascending order, each with its members sorted by name."""
    groups = group_by_generation(members)
    return [
        {
            "generation": gen,
            "label": generation_label(gen - central_generation),
            "members": sorted(groups[gen], key=lambda m: m.name.casefold()),
        }
        for gen in sorted_generations(groups)
    ]


def pedigree_view(members: list[FamilyMember], central: FamilyMember | None) -> dict[str, Any]:
    """Ancestors (nearest generation first), the central person, then descendants."""
    if central is None:
        return {"ancestors": [], "central": None, "descendants": []}

    central_gen = central.generation_or_zero
    others = [m for m in members if m is not central]
    ancestors = sorted(
        (m for m in others if m.generation_or_zero < central_gen),
        key=lambda m: -m.generation_or_zero,
    )
    descendants = sorted(
        (m for m in others if m.generation_or_zero > central_gen),
        key=lambda m: m.generation_or_zero,
    )
    return {"ancestors": ancestors, "central": central, "descendants": descendants}
