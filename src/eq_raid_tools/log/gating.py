"""
Gating policies deciding which roster snapshots and loot lines count.

The scanner is the same for every mode; only the policy differs:

- TimeWindowPolicy: batch parse of a known raid, bounded by start/end
  instants and user supplied (partial) zone names.
- RaidSchedulePolicy: auto-detect and live modes, bounded by a recurring
  weekly UTC schedule and the curated approved-zone list.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import FrozenSet, Iterable, Optional

from .timestamps import utc_weekday
from .zones import APPROVED_ZONES, normalize_filters, zone_matches_filters

# Sun=0, Wed=3, Fri=5, Sat=6
DEFAULT_RAID_DAYS = frozenset({0, 3, 5, 6})
DEFAULT_RAID_START_UTC = 13
DEFAULT_RAID_END_UTC = 17


@dataclass(frozen=True)
class RaidSchedule:
    """Weekly raid window: UTC weekdays (0 = Sunday) and an hour range [start_hour, end_hour)."""
    days: FrozenSet[int] = field(default=DEFAULT_RAID_DAYS)
    start_hour: int = DEFAULT_RAID_START_UTC
    end_hour: int = DEFAULT_RAID_END_UTC

    def __post_init__(self):
        object.__setattr__(self, 'days', frozenset(self.days))
        if any(day < 0 or day > 6 for day in self.days):
            raise ValueError(f"Raid days must be between 0 (Sunday) and 6 (Saturday): {sorted(self.days)}")
        if not 0 <= self.start_hour <= 24 or not 0 <= self.end_hour <= 24:
            raise ValueError(f"Raid hours must be between 0 and 24: {self.start_hour}-{self.end_hour}")

    @classmethod
    def from_config(cls, days: Optional[Iterable[int]] = None, start_hour: Optional[int] = None,
                    end_hour: Optional[int] = None) -> 'RaidSchedule':
        """Build a schedule, falling back to the defaults for missing values."""
        return cls(
            days=frozenset(days) if days is not None else DEFAULT_RAID_DAYS,
            start_hour=start_hour if start_hour is not None else DEFAULT_RAID_START_UTC,
            end_hour=end_hour if end_hour is not None else DEFAULT_RAID_END_UTC,
        )

    def contains(self, instant: datetime) -> bool:
        if instant.tzinfo is not None:
            instant = instant.astimezone(timezone.utc)
        return utc_weekday(instant) in self.days and self.start_hour <= instant.hour < self.end_hour

    def describe(self) -> str:
        names = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
        day_list = '/'.join(names[d] for d in sorted(self.days))
        return f"{day_list}  {self.start_hour:02d}:00-{self.end_hour:02d}:00 UTC"


class TimeWindowPolicy:
    """Accept events inside [start, end] (inclusive) in zones matching the filters."""

    def __init__(self, start: datetime, end: datetime, zones: Iterable[str]):
        self.start = start
        self.end = end
        self.zone_filters = normalize_filters(zones)

    def _in_window(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end

    def admits_roster_start(self, instant: datetime) -> bool:
        return self._in_window(instant)

    def accepts_roster(self, zone: str, block_instant: datetime) -> bool:
        return self._in_window(block_instant) and zone_matches_filters(zone, self.zone_filters)

    def accepts_loot(self, current_zone: Optional[str], instant: datetime) -> bool:
        return self._in_window(instant) and zone_matches_filters(current_zone, self.zone_filters)


class RaidSchedulePolicy:
    """Accept events inside the weekly raid schedule in approved zones."""

    def __init__(self, schedule: Optional[RaidSchedule] = None,
                 approved_zones: Optional[Iterable[str]] = None):
        self.schedule = schedule or RaidSchedule()
        self.approved_zones = list(approved_zones) if approved_zones is not None else list(APPROVED_ZONES)
        self.zone_filters = normalize_filters(self.approved_zones)

    def is_approved_zone(self, zone: Optional[str]) -> bool:
        return zone_matches_filters(zone, self.zone_filters)

    def admits_roster_start(self, instant: datetime) -> bool:
        return self.schedule.contains(instant)

    def accepts_roster(self, zone: str, block_instant: datetime) -> bool:
        return self.is_approved_zone(zone) and self.schedule.contains(block_instant)

    def accepts_loot(self, current_zone: Optional[str], instant: datetime) -> bool:
        return self.schedule.contains(instant) and self.is_approved_zone(current_zone)
