"""
EverQuest log parser

Batch entry points over a complete log file:

- parse_log: attendance and loot within a known time window and zone filter.
- auto_parse_log: scan the entire log and detect raid sessions from the
  weekly raid schedule and the approved-zone list.

Both read the file once, top to bottom, through the shared LogScanner.
Unrecognized lines are dropped silently; failing to open or read the file
raises LogFileError.
"""

import glob
import logging
import os
from datetime import datetime, timezone as dt_timezone
from typing import Callable, Iterable, List, Optional

from .attendance import AttendanceAggregator
from .errors import LogFileError
from .gating import RaidSchedule, RaidSchedulePolicy, TimeWindowPolicy
from .loot import LootCollector
from .models import AutoParseResult, LootEvent, ParseResult, RosterEntry
from .scanner import LogScanner, ScanSink
from .segmenter import SessionSegmenter
from .timestamps import resolve_timezone

logger = logging.getLogger(__name__)

# Report progress every 50 000 lines
PROGRESS_INTERVAL = 50000

ProgressCallback = Callable[[int, int], None]


class WindowCollector(ScanSink):
    """Collects one flat attendance list and loot list for a batch parse."""

    def __init__(self):
        self.attendance = AttendanceAggregator()
        self.loot = LootCollector()

    def on_roster(self, zone: str, instant: datetime, entries: List[RosterEntry]) -> None:
        for entry in entries:
            self.attendance.upsert(entry, instant)

    def on_loot(self, event: LootEvent) -> None:
        self.loot.append(event)


def _scan_file(file_path: str, scanner: LogScanner,
               on_progress: Optional[ProgressCallback] = None) -> int:
    """Feed every line of a file to the scanner; returns the number of lines read."""
    line_count = 0
    bytes_read = 0
    try:
        with open(file_path, 'rb') as f:
            for raw in f:
                line_count += 1
                bytes_read += len(raw)
                scanner.feed(raw.decode('utf-8', errors='replace'))
                if on_progress and line_count % PROGRESS_INTERVAL == 0:
                    on_progress(line_count, bytes_read)
    except OSError as e:
        logger.error(f"Error reading log file {file_path}: {e}")
        raise LogFileError(file_path, e) from e

    logger.info(f"Scanned {scanner.lines_seen:,} lines ({scanner.lines_skipped:,} without a timestamp)")
    return line_count


def _coerce_window(start_time: datetime, end_time: datetime, timezone: Optional[str]):
    if timezone is None:
        if start_time.tzinfo is not None or end_time.tzinfo is not None:
            raise ValueError("An aware time window requires the log timezone")
        return start_time, end_time

    tz = resolve_timezone(timezone)

    def to_utc(value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=tz)
        return value.astimezone(dt_timezone.utc)

    return to_utc(start_time), to_utc(end_time)


def parse_log(file_path: str, start_time: datetime, end_time: datetime, zones: Iterable[str],
              character_name: Optional[str] = None, timezone: Optional[str] = None,
              on_progress: Optional[ProgressCallback] = None) -> ParseResult:
    """
    Parse an EQ log file and return attendance and loot within a time window.

    Args:
        file_path: Path to the .txt log file
        start_time: Beginning of the time window to capture (inclusive)
        end_time: End of the time window to capture (inclusive)
        zones: Zone name filters (partial, case-insensitive)
        character_name: The log owner's in-game name, for self-loot attribution
        timezone: IANA timezone of the log. When None, log timestamps and the
            window are compared as naive local times. When set, naive window
            bounds are read in that timezone and everything is compared in UTC.
        on_progress: Optional callback(lines_processed, bytes_read)

    Returns:
        ParseResult with attendance, loot and the number of lines scanned.

    Raises:
        LogFileError: If the file cannot be read.
        InvalidTimezoneError: If the timezone is unknown.
        ValueError: If the window is empty or mixes naive and aware bounds.
    """
    start_time, end_time = _coerce_window(start_time, end_time, timezone)
    if start_time > end_time:
        raise ValueError("Start time must not be after end time")

    policy = TimeWindowPolicy(start_time, end_time, zones)
    if not policy.zone_filters:
        logger.warning("No zone filters given; nothing will match")

    collector = WindowCollector()
    scanner = LogScanner(policy, collector, timezone=timezone, character_name=character_name)

    logger.info(f"Parsing log file: {file_path}")
    line_count = _scan_file(file_path, scanner, on_progress)

    result = ParseResult(
        attendance=collector.attendance.records(),
        loot=collector.loot.events(),
        line_count=line_count,
    )
    logger.info(f"Found {len(result.attendance)} attendees and {len(result.loot)} loot events")
    return result


def auto_parse_log(file_path: str, timezone: str, character_name: Optional[str] = None,
                   approved_zones: Optional[Iterable[str]] = None,
                   schedule: Optional[RaidSchedule] = None,
                   on_progress: Optional[ProgressCallback] = None) -> AutoParseResult:
    """
    Scan an entire EQ log and detect raid sessions.

    A session is any raid-schedule day where /who snapshots or loot occur
    while the log owner is in an approved zone.

    Args:
        file_path: Path to the .txt log file
        timezone: IANA timezone of the log owner, e.g. "America/Phoenix"
        character_name: Log owner's character name, for self-loot
        approved_zones: Zone allowlist; defaults to APPROVED_ZONES
        schedule: Weekly raid window; defaults to Sun/Wed/Fri/Sat 13-17 UTC
        on_progress: Optional callback(lines_processed, bytes_read)

    Returns:
        AutoParseResult with sessions sorted by date.
    """
    policy = RaidSchedulePolicy(schedule, approved_zones)
    segmenter = SessionSegmenter()
    scanner = LogScanner(policy, segmenter, timezone=timezone, character_name=character_name)

    logger.info(f"Auto-parsing log file: {file_path} ({timezone}, {policy.schedule.describe()})")
    line_count = _scan_file(file_path, scanner, on_progress)

    sessions = segmenter.sessions()
    logger.info(f"Detected {len(sessions)} raid session(s)")
    return AutoParseResult(sessions=sessions, line_count=line_count)


def find_log_file(eq_folder: str, character: str) -> Optional[str]:
    """
    Locate a character's log file (eqlog_<Character>_<server>.txt) in a folder.

    Returns:
        The first matching path in sorted order, or None.
    """
    if not os.path.isdir(eq_folder):
        logger.warning(f"Log folder does not exist: {eq_folder}")
        return None
    pattern = os.path.join(glob.escape(eq_folder), f"eqlog_{glob.escape(character)}_*.txt")
    matches = sorted(glob.glob(pattern))
    if not matches:
        logger.warning(f"No log file matching eqlog_{character}_*.txt in {eq_folder}")
        return None
    return matches[0]
