"""
Splits accepted events into raid sessions keyed by UTC calendar date.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List

from .attendance import AttendanceAggregator
from .loot import LootCollector
from .models import LootEvent, RaidSession, RosterEntry
from .scanner import ScanSink
from .timestamps import day_name

logger = logging.getLogger(__name__)


class _SessionBucket:
    def __init__(self, date: str, instant: datetime):
        self.date = date
        self.day_name = day_name(instant)
        self.first_seen = instant
        self.last_seen = instant
        self.zones: Dict[str, None] = {}
        self.attendance = AttendanceAggregator()
        self.loot = LootCollector()

    def touch(self, instant: datetime, zone: str) -> None:
        if instant < self.first_seen:
            self.first_seen = instant
        if instant > self.last_seen:
            self.last_seen = instant
        if zone:
            self.zones.setdefault(zone, None)

    def is_empty(self) -> bool:
        return len(self.attendance) == 0 and len(self.loot) == 0

    def to_session(self) -> RaidSession:
        return RaidSession(
            date=self.date,
            day_name=self.day_name,
            first_seen=self.first_seen,
            last_seen=self.last_seen,
            zones=list(self.zones),
            attendance=self.attendance.records(),
            loot=self.loot.events(),
        )


class SessionSegmenter(ScanSink):
    """
    Route every accepted roster and loot event to the session of its own date.

    A long log therefore yields one session per raid day, however far apart
    the days are. Buckets are created on first use and dropped at the end if
    they collected neither attendance nor loot.
    """

    def __init__(self):
        self._buckets: Dict[str, _SessionBucket] = {}

    def bucket(self, instant: datetime) -> _SessionBucket:
        utc_instant = instant.astimezone(timezone.utc) if instant.tzinfo else instant
        key = utc_instant.date().isoformat()
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = _SessionBucket(key, utc_instant)
            self._buckets[key] = bucket
            logger.debug(f"New raid session bucket for {key} ({bucket.day_name})")
        return bucket

    def on_roster(self, zone: str, instant: datetime, entries: List[RosterEntry]) -> None:
        bucket = self.bucket(instant)
        bucket.touch(instant, zone)
        for entry in entries:
            bucket.attendance.upsert(entry, instant)

    def on_loot(self, event: LootEvent) -> None:
        bucket = self.bucket(event.timestamp)
        bucket.touch(event.timestamp, event.zone)
        bucket.loot.append(event)

    def sessions(self) -> List[RaidSession]:
        """Non-empty sessions sorted by date."""
        kept = [b for b in self._buckets.values() if not b.is_empty()]
        dropped = len(self._buckets) - len(kept)
        if dropped:
            logger.debug(f"Dropped {dropped} empty session bucket(s)")
        return [b.to_session() for b in sorted(kept, key=lambda b: b.date)]
