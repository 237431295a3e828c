"""
Records produced by the log engine.

``to_dict()`` returns the JSON-ready shape handed to the raid server
(camelCase keys, ISO-8601 instants).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def _iso(instant: Optional[datetime]) -> Optional[str]:
    if instant is None:
        return None
    return instant.isoformat()


@dataclass
class RosterEntry:
    """One player line from a /who listing."""
    name: str
    level: Optional[int] = None
    char_class: Optional[str] = None
    race: Optional[str] = None
    guild: Optional[str] = None


@dataclass
class ParticipantRecord:
    """A player seen in one or more /who snapshots."""
    name: str
    first_seen: datetime
    last_seen: datetime
    level: Optional[int] = None
    char_class: Optional[str] = None
    race: Optional[str] = None
    guild: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'level': self.level,
            'class': self.char_class,
            'race': self.race,
            'guild': self.guild,
            'firstSeen': _iso(self.first_seen),
            'lastSeen': _iso(self.last_seen),
        }


@dataclass
class LootEvent:
    """A looted item."""
    player_name: str
    item_name: str
    timestamp: datetime
    zone: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'playerName': self.player_name,
            'itemName': self.item_name,
            'timestamp': _iso(self.timestamp),
            'zone': self.zone,
        }


@dataclass
class RaidSession:
    """Attendance and loot grouped under one UTC calendar date."""
    date: str
    day_name: str
    first_seen: datetime
    last_seen: datetime
    zones: List[str] = field(default_factory=list)
    attendance: List[ParticipantRecord] = field(default_factory=list)
    loot: List[LootEvent] = field(default_factory=list)

    @property
    def default_name(self) -> str:
        """Raid name suggested for a new session, e.g. "2026-01-21 Wednesday - Sebilis"."""
        return f"{self.date} {self.day_name} - {', '.join(self.zones[:2])}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'dayName': self.day_name,
            'zones': list(self.zones),
            'attendance': [p.to_dict() for p in self.attendance],
            'loot': [l.to_dict() for l in self.loot],
            'firstSeen': _iso(self.first_seen),
            'lastSeen': _iso(self.last_seen),
        }


@dataclass
class ParseResult:
    """Result of a batch parse over a time window."""
    attendance: List[ParticipantRecord]
    loot: List[LootEvent]
    line_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'attendance': [p.to_dict() for p in self.attendance],
            'loot': [l.to_dict() for l in self.loot],
            'lineCount': self.line_count,
        }


@dataclass
class AutoParseResult:
    """Result of scanning a whole log for raid sessions."""
    sessions: List[RaidSession]
    line_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sessions': [s.to_dict() for s in self.sessions],
            'lineCount': self.line_count,
        }
