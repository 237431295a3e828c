"""
Single-pass scan state machine shared by batch, auto-detect and live modes.

The scanner holds the zone the log owner is in and the /who block being
read, classifies each line and reports accepted events to a sink. Which
events are accepted is decided by a gating policy (see gating.py).

States are ``Outside`` and ``InRosterBlock``. Per line, in order:

1. "You have entered X." sets the current zone and leaves any block in
   progress; a block interrupted this way is discarded, never flushed.
2. "Players on EverQuest:" opens a block if the policy admits one at that
   instant.
3. Inside a block, player lines are buffered; the footer closes the block
   and flushes the buffer tagged with the footer's zone, which is
   authoritative over the last zone entry.
4. Outside a block, loot lines are gated on the current zone.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .lines import (
    OtherLoot, RosterFooter, RosterSeparator, RosterStart, SelfLoot, ZoneEntry,
    classify_content, split_log_line,
)
from .models import LootEvent, RosterEntry
from .timestamps import parse_eq_timestamp, parse_eq_timestamp_utc, resolve_timezone

logger = logging.getLogger(__name__)


class ScanSink:
    """Receiver of accepted scan events. Subclasses override what they need."""

    def on_zone(self, zone: str, instant: datetime) -> None:
        pass

    def on_roster(self, zone: str, instant: datetime, entries: List[RosterEntry]) -> None:
        pass

    def on_loot(self, event: LootEvent) -> None:
        pass


@dataclass
class ScanState:
    """Mutable state of one scan; never shared between scanners."""
    current_zone: Optional[str] = None
    in_roster_block: bool = False
    roster_block_time: Optional[datetime] = None
    pending_entries: List[RosterEntry] = field(default_factory=list)

    def open_block(self, instant: datetime) -> None:
        self.in_roster_block = True
        self.roster_block_time = instant
        self.pending_entries = []

    def close_block(self) -> List[RosterEntry]:
        entries = self.pending_entries
        self.in_roster_block = False
        self.pending_entries = []
        return entries


class LogScanner:
    """
    Feed log lines one at a time through the classifier and state machine.

    Args:
        policy: Gating policy (TimeWindowPolicy or RaidSchedulePolicy).
        sink: Receiver of accepted zone, roster and loot events.
        timezone: IANA timezone the log was written in. When None, timestamps
            stay naive local datetimes.
        character_name: Log owner's name, used for "You have looted" lines.
            Self-loot is ignored when it is not set.
    """

    def __init__(self, policy, sink: ScanSink, timezone: Optional[str] = None,
                 character_name: Optional[str] = None):
        if timezone is not None:
            resolve_timezone(timezone)
        self.policy = policy
        self.sink = sink
        self.timezone = timezone
        self.character_name = character_name or None
        self.state = ScanState()
        self.lines_seen = 0
        self.lines_skipped = 0

    def _parse_time(self, timestamp_text: str) -> Optional[datetime]:
        if self.timezone is None:
            return parse_eq_timestamp(timestamp_text)
        return parse_eq_timestamp_utc(timestamp_text, self.timezone)

    def feed(self, line: str) -> None:
        """Process one physical line (trailing newline optional)."""
        self.lines_seen += 1

        log_line = split_log_line(line)
        if log_line is None:
            self.lines_skipped += 1
            return

        instant = self._parse_time(log_line.timestamp_text)
        if instant is None:
            self.lines_skipped += 1
            logger.debug(f"Unparseable timestamp: {log_line.timestamp_text!r}")
            return

        self._handle(log_line.content, instant)

    def _handle(self, content: str, instant: datetime) -> None:
        state = self.state
        kind = classify_content(content)

        if isinstance(kind, ZoneEntry):
            if state.in_roster_block:
                logger.debug(f"Roster block discarded by zone change at {instant}")
            state.current_zone = kind.zone
            state.close_block()
            self.sink.on_zone(kind.zone, instant)
            return

        if isinstance(kind, RosterStart):
            if self.policy.admits_roster_start(instant):
                state.open_block(instant)
            return

        if state.in_roster_block:
            self._handle_roster_line(kind)
            return

        self._handle_loot(kind, instant)

    def _handle_roster_line(self, kind) -> None:
        state = self.state
        if isinstance(kind, RosterSeparator):
            return

        if isinstance(kind, RosterFooter):
            block_time = state.roster_block_time
            entries = state.close_block()
            if self.policy.accepts_roster(kind.zone, block_time):
                self.sink.on_roster(kind.zone, block_time, entries)
            else:
                logger.debug(f"Roster in {kind.zone} at {block_time} rejected by policy")
            return

        # Anything else inside a block, including a malformed player line, is skipped
        if isinstance(kind, RosterEntry):
            state.pending_entries.append(kind)

    def _handle_loot(self, kind, instant: datetime) -> None:
        if isinstance(kind, SelfLoot):
            if not self.character_name:
                return
            player_name, item_name = self.character_name, kind.item_name
        elif isinstance(kind, OtherLoot):
            player_name, item_name = kind.player_name, kind.item_name
        else:
            return

        zone = self.state.current_zone
        if not self.policy.accepts_loot(zone, instant):
            return
        self.sink.on_loot(LootEvent(player_name=player_name, item_name=item_name,
                                    timestamp=instant, zone=zone))
