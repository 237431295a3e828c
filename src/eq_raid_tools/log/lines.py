"""
EverQuest log line classification.

Key log patterns handled::

    [Thu Jan 22 20:54:23 2026] You have entered The Fungus Grove.
    [Thu Jan 22 20:54:27 2026] Players on EverQuest:
    [Thu Jan 22 20:54:27 2026] ---------------------------
    [Thu Jan 22 20:54:27 2026] [60 Virtuoso] Lyri (Vah Shir) <Intervention>
    [Thu Jan 22 20:54:27 2026] [ANONYMOUS] Kelthar  <Intervention>
    [Thu Jan 22 20:54:27 2026] There are 12 players in Fungus Grove.
    [Thu Jan 22 16:22:38 2026] --You have looted a Shiknar Ichor.--
    [Fri Jan 23 06:21:34 2026] --Risingdarkness has looted a Phase Spider Blood.--

Classification looks at one line in isolation; whether a roster entry or a
loot line is meaningful depends on scanner state (see scanner.py).
"""

import re
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple, Union

from .models import RosterEntry

# Every usable line: [timestamp] content
LINE_PATTERN = re.compile(r'^\[(\w{3} \w{3} +\d{1,2} \d{2}:\d{2}:\d{2} \d{4})\] (.*)$')

ZONE_ENTRY_PATTERN = re.compile(r'^You have entered (?P<zone>.+)\.$')
ROSTER_FOOTER_PATTERN = re.compile(r'^There are (?P<count>\d+) players in (?P<zone>.+)\.$')
ROSTER_ENTRY_PATTERN = re.compile(
    r"^\[(?P<level_class>\d+ [^\]]+|ANONYMOUS)\] (?P<name>[\w`'-]+)"
    r"(?:\s+\((?P<race>[^)]+)\))?(?:\s+<(?P<guild>[^>]+)>)?"
)
SELF_LOOT_PATTERN = re.compile(r'^--You have looted a (?P<item>.+?)\.--$')
OTHER_LOOT_PATTERN = re.compile(r"^--(?P<player>[\w`'-]+) has looted a (?P<item>.+?)\.--$")

ROSTER_START = 'Players on EverQuest:'
ROSTER_SEPARATOR = '---------------------------'
ANONYMOUS = 'ANONYMOUS'


class LogLine(NamedTuple):
    """A physical log line split into its timestamp text and content."""
    timestamp_text: str
    content: str


@dataclass(frozen=True)
class ZoneEntry:
    zone: str


@dataclass(frozen=True)
class RosterStart:
    pass


@dataclass(frozen=True)
class RosterSeparator:
    pass


@dataclass(frozen=True)
class RosterFooter:
    zone: str
    count: int


@dataclass(frozen=True)
class SelfLoot:
    item_name: str


@dataclass(frozen=True)
class OtherLoot:
    player_name: str
    item_name: str


Classified = Union[ZoneEntry, RosterStart, RosterSeparator, RosterFooter, RosterEntry, SelfLoot, OtherLoot]


def split_log_line(line: str) -> Optional[LogLine]:
    """
    Split a raw log line into timestamp text and content.

    Returns:
        LogLine, or None when the line has no bracketed timestamp.
    """
    match = LINE_PATTERN.match(line.rstrip('\r\n'))
    if not match:
        return None
    return LogLine(match.group(1), match.group(2))


def parse_level_class(field: str) -> Tuple[Optional[int], Optional[str]]:
    """
    Parse the bracketed /who field, e.g. "60 Virtuoso" or "ANONYMOUS".

    Returns:
        (level, class). Anonymous players yield (None, None); a level that is
        not a positive integer yields None with the class text kept verbatim.
    """
    if field == ANONYMOUS:
        return None, None
    parts = field.split(None, 1)
    if not parts:
        return None, None
    try:
        level = int(parts[0]) or None
    except ValueError:
        level = None
    char_class = parts[1] if len(parts) > 1 and parts[1] else None
    return level, char_class


def parse_roster_entry(content: str) -> Optional[RosterEntry]:
    """Parse a /who player line, or None if the line is not one."""
    match = ROSTER_ENTRY_PATTERN.match(content)
    if not match:
        return None
    level, char_class = parse_level_class(match.group('level_class'))
    return RosterEntry(
        name=match.group('name'),
        level=level,
        char_class=char_class,
        race=match.group('race') or None,
        guild=match.group('guild') or None,
    )


def classify_content(content: str) -> Optional[Classified]:
    """
    Recognize the structural shape of a line's content.

    Returns:
        One of the line kinds, or None for the many lines that carry nothing
        of interest (chat, combat, spells, ...).
    """
    if content == ROSTER_START:
        return RosterStart()
    if content == ROSTER_SEPARATOR:
        return RosterSeparator()

    match = ZONE_ENTRY_PATTERN.match(content)
    if match:
        return ZoneEntry(match.group('zone'))

    match = ROSTER_FOOTER_PATTERN.match(content)
    if match:
        return RosterFooter(zone=match.group('zone'), count=int(match.group('count')))

    if content.startswith('['):
        return parse_roster_entry(content)

    if content.startswith('--'):
        match = SELF_LOOT_PATTERN.match(content)
        if match:
            return SelfLoot(match.group('item'))
        match = OTHER_LOOT_PATTERN.match(content)
        if match:
            return OtherLoot(player_name=match.group('player'), item_name=match.group('item'))

    return None
