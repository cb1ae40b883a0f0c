"""Sunchart - clan-linked family tree backend.

FastAPI server exposing the radial layout, relationship inference and clan
reference data. Trees live in memory only; durable storage belongs to the
host application.
"""

import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("sunchart")

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import Field

from elder_relationships import synthesize_elder_relationships
from family_graph import add_member, elder_to_member
from models import (
    CamelModel,
    Clan,
    ClanElder,
    ElderRelation,
    ElderSearchPage,
    ElderSunChartNode,
    FamilyMember,
    FamilyTree,
    Tribe,
    TreeLayout,
    parse_members,
)
from radial_layout import build_tree_layout, layout_elder_sun_chart, scale_layout
from reference_data import (
    elder_lineage,
    fetch_reference_data,
    find_clan,
    find_tribe,
    load_reference_data,
    search_elders,
)

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173"

# Global state
reference_tribes: list[Tribe] = []
trees: dict[str, FamilyTree] = {}


async def load_configured_reference_data() -> list[Tribe]:
    """Remote dataset when SUNCHART_REFERENCE_DATA_URL is set, else (or on failure) the file."""
    url = os.getenv("SUNCHART_REFERENCE_DATA_URL")
    if url:
        tribes = await fetch_reference_data(url)
        if tribes:
            return tribes
        logger.warning("Remote reference data unavailable, falling back to the bundled file")
    return load_reference_data(os.getenv("SUNCHART_REFERENCE_DATA_PATH"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - load the clan reference dataset."""
    global reference_tribes

    logger.info("Loading clan reference data...")
    reference_tribes = await load_configured_reference_data()
    logger.info(f"✓ Reference data ready ({len(reference_tribes)} tribes)")

    yield

    trees.clear()
    logger.info("✓ In-memory trees cleared")


# Create FastAPI app
app = FastAPI(
    title="Sunchart",
    description="Family tree sun chart layout linked to Ugandan clan reference data",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("SUNCHART_CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class LayoutRequest(CamelModel):
    """Stateless layout request."""
    members: list[dict[str, Any]] = []
    selected_id: str | None = None
    tribe: str | None = None
    clan: str | None = None
    zoom: float = 1.0


class CreateTreeRequest(CamelModel):
    """Create a tree from (possibly AI-generated) member records."""
    surname: str
    tribe: str
    clan: str
    user_id: str | None = None
    members: list[dict[str, Any]] = []


class AddEldersRequest(CamelModel):
    """Reference elders to add to a tree as members."""
    elder_ids: list[str]
    generation: int = Field(default=-3, description="Generation to place the elders in")


class ClanEldersResponse(CamelModel):
    """A clan's elders with their synthesized relationships and sun chart."""
    tribe_id: str
    clan: Clan
    relationships: dict[str, ElderRelation]
    sun_chart: list[ElderSunChartNode]


# Helpers

def _get_tree(tree_id: str) -> FamilyTree:
    tree = trees.get(tree_id)
    if tree is None:
        logger.warning(f"Tree {tree_id} not found")
        raise HTTPException(status_code=404, detail=f"Tree {tree_id} not found")
    return tree


def _get_clan(tribe_id: str, clan_id: str) -> Clan:
    tribe = find_tribe(reference_tribes, tribe_id)
    if tribe is None:
        raise HTTPException(status_code=404, detail=f"Tribe {tribe_id} not found")
    clan = find_clan(reference_tribes, clan_id, tribe=tribe)
    if clan is None:
        raise HTTPException(status_code=404, detail=f"Clan {clan_id} not found in tribe {tribe.id}")
    return clan


def _tree_clan(tree: FamilyTree) -> Clan | None:
    tribe = find_tribe(reference_tribes, tree.tribe)
    return find_clan(reference_tribes, tree.clan, tribe=tribe) if tribe else None


# Endpoints

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    logger.debug("Health check requested")
    return {
        "status": "healthy",
        "tribes_loaded": len(reference_tribes),
        "trees": len(trees),
    }


@app.get("/tribes", response_model=list[Tribe])
async def list_tribes():
    """All tribes with their clans and elders."""
    return reference_tribes


@app.get("/tribes/{tribe_id}", response_model=Tribe)
async def get_tribe(tribe_id: str):
    tribe = find_tribe(reference_tribes, tribe_id)
    if tribe is None:
        raise HTTPException(status_code=404, detail=f"Tribe {tribe_id} not found")
    return tribe


@app.get("/elders", response_model=ElderSearchPage)
async def get_elders(
    query: str = "",
    tribe: str | None = None,
    clan: str | None = None,
    page: int = Query(default=1, ge=1),
):
    """Search elders across every tribe and clan."""
    logger.info(f"Elder search query='{query}' tribe={tribe} clan={clan} page={page}")
    return search_elders(reference_tribes, query=query, tribe_id=tribe, clan_id=clan, page=page)


@app.get("/tribes/{tribe_id}/clans/{clan_id}/elders", response_model=ClanEldersResponse)
async def get_clan_elders(tribe_id: str, clan_id: str, central: str | None = None):
    """A clan's elders with synthesized kinship and the elder sun chart."""
    clan = _get_clan(tribe_id, clan_id)
    relationships = synthesize_elder_relationships(clan.elders)
    return ClanEldersResponse(
        tribe_id=tribe_id,
        clan=clan,
        relationships=relationships,
        sun_chart=layout_elder_sun_chart(clan, central, relationships=relationships),
    )


@app.get("/tribes/{tribe_id}/clans/{clan_id}/elders/{elder_id}/lineage", response_model=list[ClanElder])
async def get_elder_lineage(tribe_id: str, clan_id: str, elder_id: str):
    """An elder followed by its recorded ancestors within the clan."""
    clan = _get_clan(tribe_id, clan_id)
    lineage = elder_lineage(clan, elder_id)
    if not lineage:
        raise HTTPException(status_code=404, detail=f"Elder {elder_id} not found in clan {clan.id}")
    return lineage


@app.post("/layout", response_model=TreeLayout)
async def compute_layout(request: LayoutRequest):
    """Lay out a member list without storing it."""
    members = parse_members(request.members)
    tribe = find_tribe(reference_tribes, request.tribe)
    clan = find_clan(reference_tribes, request.clan, tribe=tribe) if tribe else None
    logger.info(f"Layout requested for {len(members)} members (selected={request.selected_id})")
    return scale_layout(build_tree_layout(members, request.selected_id, clan), request.zoom)


@app.post("/trees", response_model=FamilyTree, status_code=201)
async def create_tree(request: CreateTreeRequest):
    """Create an in-memory tree, skipping member records that cannot be read."""
    tree = FamilyTree(
        id=str(uuid.uuid4()),
        surname=request.surname,
        tribe=request.tribe,
        clan=request.clan,
        user_id=request.user_id,
        members=[],
    )
    for member in parse_members(request.members):
        tree = add_member(tree, member)

    trees[tree.id] = tree
    logger.info(f"Created tree {tree.id} for the {tree.surname} family with {len(tree.members)} members")
    return tree


@app.get("/trees/{tree_id}/members", response_model=list[FamilyMember])
async def get_tree_members(tree_id: str):
    return _get_tree(tree_id).members


@app.post("/trees/{tree_id}/members", response_model=TreeLayout, status_code=201)
async def add_tree_member(tree_id: str, member: FamilyMember, selected: str | None = None):
    """Append a member and return the re-derived layout."""
    tree = add_member(_get_tree(tree_id), member)
    trees[tree_id] = tree
    return build_tree_layout(tree.members, selected, _tree_clan(tree))


@app.post("/trees/{tree_id}/elders", response_model=FamilyTree, status_code=201)
async def add_tree_elders(tree_id: str, request: AddEldersRequest):
    """Add reference elders of the tree's clan as elder members."""
    tree = _get_tree(tree_id)
    clan = _tree_clan(tree)
    if clan is None:
        raise HTTPException(status_code=404, detail=f"Clan {tree.clan} of tribe {tree.tribe} not found")

    by_id = {elder.id: elder for elder in clan.elders}
    missing = [eid for eid in request.elder_ids if eid not in by_id]
    if missing:
        raise HTTPException(status_code=404, detail=f"Elders not found in clan {clan.id}: {', '.join(missing)}")

    for elder_id in request.elder_ids:
        tree = add_member(tree, elder_to_member(by_id[elder_id], request.generation, tree.surname))
    trees[tree_id] = tree
    return tree


@app.get("/trees/{tree_id}/layout", response_model=TreeLayout)
async def get_tree_layout(
    tree_id: str,
    selected: str | None = None,
    zoom: float = Query(default=1.0, gt=0),
):
    """Layout of a stored tree around the selected (or resolved) central person."""
    tree = _get_tree(tree_id)
    layout = build_tree_layout(tree.members, selected, _tree_clan(tree))
    logger.info(f"Built layout for tree {tree_id} around {layout.central_person_id}")
    return scale_layout(layout, zoom)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
