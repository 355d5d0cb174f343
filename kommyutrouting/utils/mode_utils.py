"""
Transit mode classification.

GTFS route_type only tells rail from road. Which rail line a route belongs
to is encoded in its route_id, so the line (and with it the fare table) is
recovered by matching known identifier fragments. The table below is the
single place those fragments live; keep it in step with upstream feeds.
"""

from typing import Optional, Tuple

from ..models.itinerary import ModeClassification

RAIL_LABEL = 'Rail'
ROAD_TRANSIT_LABEL = 'PUJ'

# GTFS basic rail types; is_rail_mode also accepts the extended 100-199 and 400-499 ranges
RAIL_ROUTE_TYPES = frozenset({0, 1, 2})

# Line codes embedded in the Metro Manila feed's rail route_ids, checked first
RAIL_ROUTE_CODES: Tuple[Tuple[str, str, str], ...] = (
    ('880747', 'LRT-1', 'lrt1'),
    ('880801', 'LRT-2', 'lrt2'),
    ('880854', 'MRT-3', 'mrt'),
    ('880872', 'PNR', 'pnr'),
)

# Named fragments for feeds that spell the line out: (label, fare system key,
# case-sensitive prefixes, lowercase substrings); first match wins
RAIL_SYSTEMS: Tuple[Tuple[str, str, Tuple[str, ...], Tuple[str, ...]], ...] = (
    ('LRT-1', 'lrt1', ('LRT1_',), ('lrt1', 'lrt-1')),
    ('LRT-2', 'lrt2', ('LRT2_',), ('lrt2', 'lrt-2')),
    ('MRT-3', 'mrt', (), ('mrt3', 'mrt-3')),
    ('PNR', 'pnr', (), ('pnr',)),
)

# Origin-stop hints for rail route_ids that name no line. LRT-2 must precede
# LRT-1, whose bare "lrt" fragment also matches LRT-2 stop names
RAIL_STOP_HINTS: Tuple[Tuple[str, Tuple[str, ...], Tuple[str, ...]], ...] = (
    ('lrt2', ('LRT2',), ('lrt2', 'lrt-2', 'recto', 'santolan')),
    ('lrt1', ('LRT1',), ('lrt', 'baclaran', 'roosevelt')),
    ('mrt', ('MRT',), ('mrt', 'north avenue', 'taft')),
    ('pnr', ('PNR',), ('pnr', 'tutuban', 'calamba')),
)


def is_rail_mode(mode_code: int) -> bool:
    code = int(mode_code)
    return code in RAIL_ROUTE_TYPES or 100 <= code < 200 or 400 <= code < 500


def match_rail_system(route_id: str) -> Optional[Tuple[str, str]]:
    """Return (label, fare key) of the rail line named by ``route_id``, if any"""
    if not route_id:
        return None
    for code, label, key in RAIL_ROUTE_CODES:
        if code in route_id:
            return label, key
    lowered = route_id.lower()
    for label, key, prefixes, substrings in RAIL_SYSTEMS:
        if any(route_id.startswith(p) for p in prefixes) or any(s in lowered for s in substrings):
            return label, key
    return None


def classify_mode(mode_code: int, route_id: str = '') -> ModeClassification:
    if is_rail_mode(mode_code):
        matched = match_rail_system(route_id)
        if matched is None:
            return ModeClassification(RAIL_LABEL, True, None)
        label, key = matched
        return ModeClassification(label, True, key)
    return ModeClassification(ROAD_TRANSIT_LABEL, False, None)


def infer_rail_system_from_stop(stop_id: str, stop_name: str) -> Optional[str]:
    """Fallback for rail routes whose id names no line: look at the boarding stop"""
    lowered = (stop_name or '').lower()
    for key, id_fragments, name_fragments in RAIL_STOP_HINTS:
        if any(f in (stop_id or '') for f in id_fragments) or any(f in lowered for f in name_fragments):
            return key
    return None
