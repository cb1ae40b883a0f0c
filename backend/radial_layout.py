"""
Radial ("sun chart") layout for family trees and clan elders.

Everything works in logical units around an origin at the central person.
Zoom, screen orientation and styling belong to the drawing layer; the
functions here are pure and hold no state between calls.
"""

import logging
import math

from elder_relationships import clan_elder_relationships
from family_graph import group_by_generation, resolve_central_person, sorted_generations, tree_statistics
from models import (
    Clan,
    ElderRelation,
    ElderSunChartNode,
    FamilyMember,
    GenerationRing,
    PlaceholderSlot,
    PositionedNode,
    PositionedPlaceholder,
    TreeLayout,
)
from placeholders import find_missing_relatives
from relationships import describe_all

logger = logging.getLogger("sunchart.layout")

BASE_RADIUS = 150.0
RADIUS_INCREMENT = 100.0
ELDER_RING_RADIUS = 200.0
NODE_RADIUS = 30.0
MIN_RING_SLOTS = 4
PLACEHOLDER_ANGLE_OFFSET = math.pi / 4
MIN_ZOOM = 0.5
MAX_ZOOM = 2.0


# ============================================================================
# Geometry Helpers
# ============================================================================

def ring_radius(
    generation: int,
    central_generation: int,
    base_radius: float = BASE_RADIUS,
    radius_increment: float = RADIUS_INCREMENT,
) -> float:
    """Radius of a generation's ring; grows with distance from the central generation."""
    return base_radius + abs(generation - central_generation) * radius_increment


def member_angle(generation: int, central_generation: int, index: int, count: int) -> float:
    """
    Angle of the index-th member on its generation's ring.

    Rings are treated as having at least MIN_RING_SLOTS slots so sparse
    rings keep a sensible spacing. The central generation starts at the top
    (pi/2), ancestors at 0 and descendants opposite them at pi.
    """
    step = 2 * math.pi / max(count, MIN_RING_SLOTS)
    if generation == central_generation:
        start = math.pi / 2
    elif generation < central_generation:
        start = 0.0
    else:
        start = math.pi
    return start + index * step


def polar_to_cartesian(radius: float, angle: float) -> tuple[float, float]:
    return radius * math.cos(angle), radius * math.sin(angle)


def connector_length(x: float, y: float, node_radius: float = NODE_RADIUS) -> float:
    """Length of a line from the origin that stops at the node's edge."""
    return max(math.hypot(x, y) - node_radius, 0.0)


def clamp_zoom(zoom: float) -> float:
    return min(max(zoom, MIN_ZOOM), MAX_ZOOM)


# ============================================================================
# Family Tree Layout
# ============================================================================

def layout_members(
    members: list[FamilyMember],
    central: FamilyMember | None,
    base_radius: float = BASE_RADIUS,
    radius_increment: float = RADIUS_INCREMENT,
    node_radius: float = NODE_RADIUS,
) -> list[PositionedNode]:
    """
    Place the central person at the origin and everyone else on generation rings.

    Stored generation numbers are trusted as-is; they are not reconciled with
    parent links.
    """
    if central is None:
        return []

    central_gen = central.generation_or_zero
    nodes = [
        PositionedNode(
            member_id=central.id,
            x=0.0,
            y=0.0,
            ring=0,
            generation=central_gen,
            angle=0.0,
            radius=0.0,
            distance_from_center=0.0,
            is_central=True,
        )
    ]

    groups = group_by_generation(members)
    for gen in sorted_generations(groups):
        ring_members = [m for m in groups[gen] if m is not central]
        radius = ring_radius(gen, central_gen, base_radius, radius_increment)

        for idx, member in enumerate(ring_members):
            angle = member_angle(gen, central_gen, idx, len(ring_members))
            x, y = polar_to_cartesian(radius, angle)
            nodes.append(
                PositionedNode(
                    member_id=member.id,
                    x=x,
                    y=y,
                    ring=abs(gen - central_gen),
                    generation=gen,
                    angle=angle,
                    radius=radius,
                    distance_from_center=connector_length(x, y, node_radius),
                )
            )

    return nodes


def generation_rings(
    members: list[FamilyMember],
    central: FamilyMember | None,
    base_radius: float = BASE_RADIUS,
    radius_increment: float = RADIUS_INCREMENT,
) -> list[GenerationRing]:
    """
    Backdrop circles: one per generation with members other than the central
    person, plus the central person's own generation even when it is alone.
    """
    if central is None:
        return []

    central_gen = central.generation_or_zero
    groups = group_by_generation(members)
    rings = []
    for gen in sorted_generations(groups):
        count = sum(1 for m in groups[gen] if m is not central)
        if count == 0 and gen != central_gen:
            continue
        rings.append(
            GenerationRing(
                generation=gen,
                ring=abs(gen - central_gen),
                radius=ring_radius(gen, central_gen, base_radius, radius_increment),
                member_count=count,
            )
        )
    return rings


def layout_placeholders(
    slots: list[PlaceholderSlot],
    central_generation: int,
    base_radius: float = BASE_RADIUS,
    radius_increment: float = RADIUS_INCREMENT,
    node_radius: float = NODE_RADIUS,
) -> list[PositionedPlaceholder]:
    """
    Position placeholder slots on their generation's ring at their canonical angle.

    Slots without an angle are spread evenly over their generation, starting
    at pi/4.
    """
    per_generation: dict[int, list[PlaceholderSlot]] = {}
    for slot in slots:
        per_generation.setdefault(slot.generation, []).append(slot)

    index_in_generation = {
        id(slot): idx for group in per_generation.values() for idx, slot in enumerate(group)
    }

    positioned = []
    for slot in slots:
        angle = slot.angle
        if angle is None:
            step = 2 * math.pi / len(per_generation[slot.generation])
            angle = PLACEHOLDER_ANGLE_OFFSET + index_in_generation[id(slot)] * step

        radius = ring_radius(slot.generation, central_generation, base_radius, radius_increment)
        x, y = polar_to_cartesian(radius, angle)
        positioned.append(
            PositionedPlaceholder(
                relationship=slot.relationship,
                role=slot.role,
                generation=slot.generation,
                angle=angle,
                x=x,
                y=y,
                ring=abs(slot.generation - central_generation),
                radius=radius,
                distance_from_center=connector_length(x, y, node_radius),
            )
        )
    return positioned


def build_tree_layout(
    members: list[FamilyMember],
    selected_id: str | None = None,
    clan: Clan | None = None,
) -> TreeLayout:
    """
    Everything the drawing layer needs for one tree, derived from scratch.

    ``has_data`` is False for an empty member list; every other field is
    then empty.
    """
    central = resolve_central_person(members, selected_id)
    groups = group_by_generation(members)
    central_gen = central.generation_or_zero if central is not None else 0

    slots = find_missing_relatives(central, members)
    layout = TreeLayout(
        has_data=bool(members),
        central_person_id=central.id if central is not None else None,
        generations=sorted_generations(groups),
        generation_groups={gen: [m.id for m in group] for gen, group in groups.items()},
        positioned_nodes=layout_members(members, central),
        positioned_placeholders=layout_placeholders(slots, central_gen),
        rings=generation_rings(members, central),
        descriptions=describe_all(members),
        statistics=tree_statistics(members),
        elder_relationship_map=clan_elder_relationships(clan),
    )
    logger.info(
        f"Laid out {len(layout.positioned_nodes)} members and "
        f"{len(layout.positioned_placeholders)} placeholders around {layout.central_person_id}"
    )
    return layout


def scale_layout(layout: TreeLayout, zoom: float) -> TreeLayout:
    """Scale coordinates, radii and connector lengths by a clamped zoom factor."""
    zoom = clamp_zoom(zoom)
    if zoom == layout.zoom:
        return layout
    factor = zoom / layout.zoom

    def scaled(item):
        return item.model_copy(update={
            "x": item.x * factor,
            "y": item.y * factor,
            "radius": item.radius * factor,
            "distance_from_center": item.distance_from_center * factor,
        })

    return layout.model_copy(update={
        "positioned_nodes": [scaled(n) for n in layout.positioned_nodes],
        "positioned_placeholders": [scaled(p) for p in layout.positioned_placeholders],
        "rings": [r.model_copy(update={"radius": r.radius * factor}) for r in layout.rings],
        "zoom": zoom,
    })


# ============================================================================
# Clan Elder Sun Chart
# ============================================================================

def layout_elder_sun_chart(
    clan: Clan,
    central_elder_id: str | None = None,
    radius: float = ELDER_RING_RADIUS,
    node_radius: float = NODE_RADIUS,
    relationships: dict[str, ElderRelation] | None = None,
) -> list[ElderSunChartNode]:
    """
    Flat elder view: one elder at the centre, the rest evenly on a single ring.

    The centre is the requested elder if the clan has it, otherwise the
    first elder. Each node carries its synthesized relation, if any.
    """
    elders = clan.elders
    if not elders:
        return []
    if relationships is None:
        relationships = clan_elder_relationships(clan)

    central = next((e for e in elders if e.id == central_elder_id), elders[0])
    others = [e for e in elders if e is not central]

    def node(elder, x, y, angle, is_central=False):
        relation = relationships.get(elder.id)
        return ElderSunChartNode(
            elder_id=elder.id,
            name=elder.name,
            x=x,
            y=y,
            angle=angle,
            distance_from_center=0.0 if is_central else connector_length(x, y, node_radius),
            is_central=is_central,
            relation=relation.relation if relation else None,
            related_to_id=relation.related_to_id if relation else None,
        )

    nodes = [node(central, 0.0, 0.0, 0.0, is_central=True)]
    if others:
        step = 2 * math.pi / len(others)
        for idx, elder in enumerate(others):
            angle = idx * step
            x, y = polar_to_cartesian(radius, angle)
            nodes.append(node(elder, x, y, angle))
    return nodes
