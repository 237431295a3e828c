"""
Attendance aggregation across repeated /who snapshots.
"""

from datetime import datetime
from typing import Dict, List

from .models import ParticipantRecord, RosterEntry


class AttendanceAggregator:
    """
    Merge sightings of the same player into one record.

    Names are keyed case-insensitively; the spelling of the first sighting is
    kept. first_seen/last_seen only ever widen, while level, class, race and
    guild always take the newest sighting's values, including None.
    """

    def __init__(self) -> None:
        self._records: Dict[str, ParticipantRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._records

    def upsert(self, entry: RosterEntry, instant: datetime) -> bool:
        """
        Record a sighting of a player.

        Returns:
            True if this is the first sighting of the player.
        """
        key = entry.name.lower()
        existing = self._records.get(key)
        if existing is None:
            self._records[key] = ParticipantRecord(
                name=entry.name,
                first_seen=instant,
                last_seen=instant,
                level=entry.level,
                char_class=entry.char_class,
                race=entry.race,
                guild=entry.guild,
            )
            return True

        if instant < existing.first_seen:
            existing.first_seen = instant
        if instant > existing.last_seen:
            existing.last_seen = instant
        existing.level = entry.level
        existing.char_class = entry.char_class
        existing.race = entry.race
        existing.guild = entry.guild
        return False

    def records(self) -> List[ParticipantRecord]:
        """Records in first-seen insertion order."""
        return list(self._records.values())

    def names(self) -> List[str]:
        return [record.name for record in self._records.values()]
