"""Tests for the family graph model, generation grouping and central person resolution."""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from family_graph import (
    FamilyGraph,
    add_member,
    elder_to_member,
    generation_label,
    group_by_generation,
    list_view,
    ordinal_suffix,
    pedigree_view,
    resolve_central_person,
    sorted_generations,
    tree_statistics,
)
from models import ClanElder, FamilyMember, FamilyTree


def member(member_id: str, name: str, **kwargs) -> FamilyMember:
    return FamilyMember(id=member_id, name=name, **kwargs)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def amara_family():
    """Amara (self), an unlinked ancestor and Amara's child."""
    return [
        member("1", "Amara", generation=0, relationship="self"),
        member("2", "Baako", generation=-1),
        member("3", "Chidi", generation=1, parent_id="1"),
    ]


@pytest.fixture
def mukasa_tree():
    """A small three-generation tree."""
    return FamilyTree(
        id="t1",
        surname="Mukasa",
        tribe="Baganda",
        clan="Ffumbe",
        members=[
            member("gf", "Mukasa Senior", generation=-2, relationship="Grandfather", death_year="1990"),
            member("f", "Mukasa John", generation=-1, relationship="Father", parent_id="gf", spouse_id="m"),
            member("m", "Nakato Mary", generation=-1, relationship="Mother"),
            member("me", "Mukasa Peter", generation=0, relationship="Self", parent_id="f"),
            member("sis", "Mukasa Ruth", generation=0, relationship="Sister", parent_id="f"),
            member("kid", "Mukasa Ivan", generation=1, relationship="Son", parent_id="me"),
        ],
    )


# ============================================================================
# Graph Snapshot
# ============================================================================

class TestFamilyGraph:
    """Tests for FamilyGraph lookups."""

    def test_get_and_contains(self, mukasa_tree):
        """Test id lookup and membership."""
        graph = FamilyGraph(mukasa_tree.members)
        assert len(graph) == 6
        assert "me" in graph
        assert graph.get("me").name == "Mukasa Peter"
        assert graph.get("nobody") is None
        assert graph.get(None) is None

    def test_parent_of(self, mukasa_tree):
        """Test resolving a parent link."""
        graph = FamilyGraph(mukasa_tree.members)
        assert graph.parent_of(graph.get("me")).id == "f"

    def test_dangling_parent_is_none(self):
        """Test that a parent id pointing nowhere resolves to no parent."""
        graph = FamilyGraph([member("x", "Orphan", parent_id="ghost")])
        assert graph.parent_of(graph.get("x")) is None

    def test_children_of(self, mukasa_tree):
        """Test children lookup keeps input order."""
        graph = FamilyGraph(mukasa_tree.members)
        assert [c.id for c in graph.children_of(graph.get("f"))] == ["me", "sis"]

    def test_siblings_require_same_generation(self):
        """Test that a shared parent id alone is not enough for siblings."""
        graph = FamilyGraph([
            member("a", "A", generation=0, parent_id="p"),
            member("b", "B", generation=0, parent_id="p"),
            member("c", "C", generation=1, parent_id="p"),
        ])
        assert [s.id for s in graph.siblings_of(graph.get("a"))] == ["b"]
        assert graph.siblings_of(graph.get("c")) == []

    def test_parentless_members_are_not_siblings(self):
        """Test that members without parent ids never count as siblings."""
        graph = FamilyGraph([member("a", "A", generation=0), member("b", "B", generation=0)])
        assert graph.siblings_of(graph.get("a")) == []

    def test_spouse_of_either_direction(self, mukasa_tree):
        """Test spouse lookup through a one-sided link."""
        graph = FamilyGraph(mukasa_tree.members)
        assert graph.spouse_of(graph.get("f")).id == "m"
        assert graph.spouse_of(graph.get("m")).id == "f"
        assert graph.spouse_of(graph.get("kid")) is None

    def test_duplicate_ids_keep_first(self):
        """Test that the first member wins for a duplicated id."""
        graph = FamilyGraph([member("a", "First"), member("a", "Second")])
        assert graph.get("a").name == "First"


# ============================================================================
# Generation Grouping
# ============================================================================

class TestGenerationGrouping:
    """Tests for group_by_generation."""

    def test_example_groups(self, amara_family):
        """Test grouping of the Amara example."""
        groups = group_by_generation(amara_family)
        assert {gen: [m.id for m in ms] for gen, ms in groups.items()} == {0: ["1"], -1: ["2"], 1: ["3"]}
        assert sorted_generations(groups) == [-1, 0, 1]

    def test_missing_generation_defaults_to_zero(self):
        """Test that members without a generation land in generation 0."""
        groups = group_by_generation([member("a", "A"), member("b", "B", generation=2)])
        assert [m.id for m in groups[0]] == ["a"]

    def test_grouping_is_total(self, mukasa_tree):
        """Test that every member lands in exactly one group."""
        groups = group_by_generation(mukasa_tree.members)
        assert sum(len(g) for g in groups.values()) == len(mukasa_tree.members)

    def test_empty(self):
        """Test grouping no members."""
        assert group_by_generation([]) == {}
        assert sorted_generations({}) == []


# ============================================================================
# Central Person
# ============================================================================

class TestCentralPerson:
    """Tests for resolve_central_person."""

    def test_self_relationship(self, amara_family):
        """Test the "self" rule."""
        assert resolve_central_person(amara_family).id == "1"

    def test_selected_id_wins(self, amara_family):
        """Test that an explicit selection takes priority."""
        assert resolve_central_person(amara_family, selected_id="3").id == "3"

    def test_stale_selection_falls_through(self, amara_family):
        """Test that a selection no longer in the list is ignored."""
        assert resolve_central_person(amara_family, selected_id="gone").id == "1"

    @pytest.mark.parametrize("relationship", ["SELF", "Principal", "you", ""])
    def test_self_synonyms(self, relationship):
        """Test every self marker, case-insensitively."""
        members = [
            member("a", "A", generation=0, relationship="Brother"),
            member("b", "B", generation=-1, relationship=relationship),
        ]
        assert resolve_central_person(members).id == "b"

    def test_generation_zero_fallback(self):
        """Test falling back to the first member in generation 0."""
        members = [
            member("a", "A", generation=-1, relationship="Father"),
            member("b", "B", generation=0, relationship="Brother"),
        ]
        assert resolve_central_person(members).id == "b"

    def test_first_member_fallback(self):
        """Test falling back to the first member overall."""
        members = [
            member("a", "A", generation=-2, relationship="Grandfather"),
            member("b", "B", generation=-1, relationship="Father"),
        ]
        assert resolve_central_person(members).id == "a"

    def test_empty_list(self):
        """Test that no members resolve to None."""
        assert resolve_central_person([]) is None

    def test_result_is_from_the_list(self, mukasa_tree):
        """Test that the resolved person is one of the members."""
        central = resolve_central_person(mukasa_tree.members)
        assert any(central is m for m in mukasa_tree.members)


# ============================================================================
# Tree State Transitions
# ============================================================================

class TestAddMember:
    """Tests for add_member and elder_to_member."""

    def test_returns_new_tree(self, mukasa_tree):
        """Test that adding returns a new state and leaves the old one alone."""
        updated = add_member(mukasa_tree, member("aunt", "Nansubuga", generation=-1, relationship="Aunt"))

        assert len(updated.members) == 7
        assert len(mukasa_tree.members) == 6
        assert updated.members[-1].id == "aunt"
        assert updated.id == mukasa_tree.id

    def test_duplicate_id_gets_fresh_id(self, mukasa_tree):
        """Test that a colliding id is replaced."""
        updated = add_member(mukasa_tree, member("me", "Another Peter"))

        new = updated.members[-1]
        assert new.name == "Another Peter"
        assert new.id != "me"
        assert len({m.id for m in updated.members}) == 7

    def test_elder_to_member(self):
        """Test converting a reference elder into a tree member."""
        elder = ClanElder(id="walusimbi", name="Walusimbi", approximate_era="18th century", verification_score=95)
        result = elder_to_member(elder, generation=-4, surname="Mukasa")

        assert result.name == "Walusimbi"
        assert result.is_elder is True
        assert result.status == "deceased"
        assert result.generation == -4
        assert result.notes == "18th century"
        assert result.relationship == "Mukasa Clan Elder"
        assert result.id != "walusimbi"


# ============================================================================
# Statistics & Views
# ============================================================================

class TestStatistics:
    """Tests for tree_statistics."""

    def test_counts(self, mukasa_tree):
        """Test member, generation, living and elder counts."""
        members = mukasa_tree.members + [member("e", "Walusimbi", generation=-4, is_elder=True, status="deceased")]
        stats = tree_statistics(members)

        assert stats.member_count == 7
        assert stats.generation_count == 5
        assert stats.deceased_count == 2
        assert stats.living_count == 5
        assert stats.elder_count == 1

    def test_empty(self):
        """Test statistics of an empty tree."""
        stats = tree_statistics([])
        assert stats.member_count == 0
        assert stats.generation_count == 0


class TestViews:
    """Tests for labels, list view and pedigree view."""

    @pytest.mark.parametrize("num,suffix", [
        (1, "st"), (2, "nd"), (3, "rd"), (4, "th"),
        (11, "th"), (12, "th"), (13, "th"), (21, "st"), (22, "nd"), (111, "th"),
    ])
    def test_ordinal_suffix(self, num, suffix):
        """Test English ordinal suffixes."""
        assert ordinal_suffix(num) == suffix

    def test_generation_label(self):
        """Test labels relative to the central generation."""
        assert generation_label(0) == "Current Generation"
        assert generation_label(-1) == "1st Generation Up"
        assert generation_label(-2) == "2nd Generation Up"
        assert generation_label(3) == "3rd Generation Down"

    def test_list_view(self, mukasa_tree):
        """Test generations ascending with members sorted by name."""
        sections = list_view(mukasa_tree.members)

        assert [s["generation"] for s in sections] == [-2, -1, 0, 1]
        assert sections[0]["label"] == "2nd Generation Up"
        assert [m.name for m in sections[1]["members"]] == ["Mukasa John", "Nakato Mary"]
        assert [m.name for m in sections[2]["members"]] == ["Mukasa Peter", "Mukasa Ruth"]

    def test_list_view_relative_labels(self, mukasa_tree):
        """Test that labels follow the central generation."""
        sections = list_view(mukasa_tree.members, central_generation=-1)
        assert sections[1]["label"] == "Current Generation"

    def test_pedigree_view(self, mukasa_tree):
        """Test ancestors nearest-first and descendants ascending."""
        central = resolve_central_person(mukasa_tree.members)
        view = pedigree_view(mukasa_tree.members, central)

        assert view["central"].id == "me"
        assert [m.generation for m in view["ancestors"]] == [-1, -1, -2]
        assert [m.id for m in view["descendants"]] == ["kid"]

    def test_pedigree_view_without_central(self):
        """Test an empty pedigree when nobody is central."""
        assert pedigree_view([], None) == {"ancestors": [], "central": None, "descendants": []}
