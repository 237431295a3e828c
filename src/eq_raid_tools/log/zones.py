"""
Zone name normalization and fuzzy matching.

Matching is a case-insensitive substring test in both directions, so a short
typed fragment such as "fungus" matches "The Fungus Grove" and a full zone
name matches a filter that contains it. Very short filters over-match
(a one letter filter matches nearly every zone); zone lists rely on this
exact behavior, including the stripping of a leading "The".
"""

import re
from typing import Iterable, List, Optional

# Zones eligible for auto-detected raid sessions
APPROVED_ZONES = [
    'Plane of Fear', 'Plane of Hate', 'Sebilis', 'Katta Castellum',
    'Kedge Keep', "Nagafen's Lair", 'Permafrost', "Veeshan's Peak",
    'Timorous Deep', 'Dreadlands', 'Chardok', 'Dragon Necropolis',
    'Kael Drakkel', 'Temple of Veeshan', 'Thurgadin', 'Akheva Ruins',
    "Greig's End", 'Acrylia Caverns', 'Ssraeshza Temple', 'Umbral Plains',
    'Vex Thal', 'The Deep',
]

_LEADING_THE = re.compile(r'^the\s+')


def normalize_zone(name: str) -> str:
    """Lowercase, strip a single leading "the " and trim."""
    return _LEADING_THE.sub('', name.strip().lower()).strip()


def normalize_filters(filters: Optional[Iterable[str]]) -> List[str]:
    """Normalize a list of zone filters, dropping blank entries."""
    normalized = []
    for zone in filters or []:
        if zone and zone.strip():
            normalized.append(normalize_zone(zone.strip()))
    return normalized


def zone_matches_filters(zone_name: Optional[str], filters: List[str]) -> bool:
    """
    Check whether a zone name matches any of the normalized filters.

    Args:
        zone_name: Zone name as it appears in the log.
        filters: Filters already passed through normalize_filters.

    Returns:
        True if any filter is contained in the zone name or contains it.
    """
    if not zone_name or not filters:
        return False
    norm = normalize_zone(zone_name)
    if not norm:
        return False
    return any(f in norm or norm in f for f in filters)
