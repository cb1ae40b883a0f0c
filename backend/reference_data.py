"""Read-only access to the tribe -> clan -> elder reference dataset."""

import json
import logging
import math
import os

import httpx
from pydantic import TypeAdapter, ValidationError

from models import Clan, ClanElder, ElderListing, ElderSearchPage, Tribe

logger = logging.getLogger("sunchart.reference_data")

DEFAULT_DATA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "uganda_tribes.json")
TRIBAL_ANCESTOR_PREFIX = "TA_"
ELDERS_PER_PAGE = 8

_tribes_adapter = TypeAdapter(list[Tribe])


# ============================================================================
# Loading
# ============================================================================

def parse_reference_data(raw: object) -> list[Tribe]:
    """Validate decoded JSON into tribes. Returns an empty list if the shape is wrong."""
    try:
        return _tribes_adapter.validate_python(raw)
    except ValidationError as e:
        logger.error(f"Reference data failed validation: {e.error_count()} error(s)")
        return []


def load_reference_data(path: str | None = None) -> list[Tribe]:
    """Load the tribe reference dataset from a JSON file (the bundled one by default)."""
    path = path or DEFAULT_DATA_PATH
    logger.info(f"Loading reference data from {path}")

    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read reference data {path}: {e}")
        return []

    tribes = parse_reference_data(raw)
    logger.info(f"Loaded {len(tribes)} tribes, {sum(len(t.clans) for t in tribes)} clans")
    return tribes


async def fetch_reference_data(url: str, transport: httpx.AsyncBaseTransport | None = None) -> list[Tribe]:
    """Fetch the reference dataset from a remote JSON endpoint.

    Failures are logged and produce an empty list so callers can fall back
    to the bundled file.
    """
    logger.info(f"Fetching reference data from {url}")
    headers = {
        "Accept": "application/json",
        "User-Agent": "Sunchart/1.0 (clan reference loader) httpx",
    }

    try:
        async with httpx.AsyncClient(timeout=30.0, transport=transport) as client:
            response = await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        logger.warning(f"Reference data request failed: {e}")
        return []

    logger.debug(f"Reference data response status: {response.status_code}")
    if response.status_code != 200:
        logger.warning(f"Reference data request failed with status {response.status_code}")
        return []

    try:
        raw = response.json()
    except ValueError:
        logger.warning("Reference data response was not valid JSON")
        return []

    # Accept either a bare list or {"tribes": [...]}
    if isinstance(raw, dict):
        raw = raw.get("tribes", [])
    return parse_reference_data(raw)


# ============================================================================
# Lookup
# ============================================================================

def _match(items, text: str | None):
    """Match by id, then exact name, then name substring (all case-insensitive)."""
    if not text or not text.strip():
        return None
    needle = text.strip().lower()

    for item in items:
        if item.id.lower() == needle:
            return item
    for item in items:
        if item.name.lower() == needle:
            return item
    for item in items:
        if needle in item.name.lower():
            return item
    return None


def find_tribe(tribes: list[Tribe], text: str | None) -> Tribe | None:
    """Find a tribe from an id or free-text name."""
    return _match(tribes, text)


def find_clan(tribes: list[Tribe], text: str | None, tribe: Tribe | None = None) -> Clan | None:
    """Find a clan from an id or free-text name, optionally within one tribe."""
    if tribe is not None:
        return _match(tribe.clans, text)
    return _match([clan for t in tribes for clan in t.clans], text)


def elders_for_selection(tribes: list[Tribe], tribe_text: str | None, clan_text: str | None) -> list[ClanElder]:
    """
    Resolve free-text tribe/clan selections to the clan's reference elders.

    An unknown tribe or clan gives an empty list.
    """
    tribe = find_tribe(tribes, tribe_text)
    if tribe is None:
        logger.debug(f"No tribe matches '{tribe_text}'")
        return []

    clan = find_clan(tribes, clan_text, tribe=tribe)
    if clan is None:
        logger.debug(f"No clan matches '{clan_text}' in tribe {tribe.id}")
        return []

    return list(clan.elders)


def all_elders(tribes: list[Tribe]) -> list[ElderListing]:
    """Flatten every clan's elders, keeping dataset order."""
    return [
        ElderListing(
            elder=elder,
            clan_id=clan.id,
            clan_name=clan.name,
            tribe_id=tribe.id,
            tribe_name=tribe.name,
        )
        for tribe in tribes
        for clan in tribe.clans
        for elder in clan.elders
    ]


def search_elders(
    tribes: list[Tribe],
    query: str = "",
    tribe_id: str | None = None,
    clan_id: str | None = None,
    page: int = 1,
    per_page: int = ELDERS_PER_PAGE,
) -> ElderSearchPage:
    """
    Filter elders by name/significance text, tribe and clan, then paginate.

    The page number is clamped into the valid range.
    """
    listings = all_elders(tribes)

    if query:
        q = query.lower()
        listings = [
            item for item in listings
            if q in item.elder.name.lower()
            or (item.elder.significance and q in item.elder.significance.lower())
        ]
    if tribe_id:
        listings = [item for item in listings if item.tribe_id == tribe_id]
    if clan_id:
        listings = [item for item in listings if item.clan_id == clan_id]

    per_page = max(per_page, 1)
    total = len(listings)
    total_pages = math.ceil(total / per_page)
    page = min(max(page, 1), max(total_pages, 1))
    start = (page - 1) * per_page

    return ElderSearchPage(
        results=listings[start:start + per_page],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages,
    )


# ============================================================================
# Elder Parent Links
# ============================================================================

def tribal_ancestor_id(tribe_id: str) -> str:
    """Synthetic id of a tribe's founding ancestor, used as an elder's parent."""
    return f"{TRIBAL_ANCESTOR_PREFIX}{tribe_id}"


def is_tribal_ancestor_id(value: str | None) -> bool:
    return bool(value) and value.startswith(TRIBAL_ANCESTOR_PREFIX)


def elder_lineage(clan: Clan, elder_id: str) -> list[ClanElder]:
    """
    Follow an elder's parent links within the clan.

    Returns the elder first and the oldest known ancestor last. The walk stops
    at a tribal-ancestor id, a parent that is not in the clan, or a cycle.
    """
    by_id = {elder.id: elder for elder in clan.elders}
    lineage: list[ClanElder] = []
    seen: set[str] = set()

    current = by_id.get(elder_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        lineage.append(current)

        parent_id = current.parent_id
        if not parent_id or is_tribal_ancestor_id(parent_id):
            break
        if parent_id not in by_id:
            logger.debug(f"Elder {current.id} has parent {parent_id} outside clan {clan.id}")
            break
        current = by_id[parent_id]

    return lineage
