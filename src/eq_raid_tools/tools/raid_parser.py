#!/usr/bin/env python3
"""
EQ Raid Tools - Raid Log Parser

Parses an EverQuest log for one raid: attendance from /who snapshots and loot
events, within a date/time window and a zone filter. Results are logged and
written to CSV and JSON in the output directory.
"""

import argparse
import logging
import re
from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional

from eq_raid_tools.base import RaidTool, JSONTool
from eq_raid_tools.log.models import ParseResult
from eq_raid_tools.log.parser import parse_log

logger = logging.getLogger(__name__)

DATE_PATTERNS = [
    (re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})$'), ('year', 'month', 'day')),
    (re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$'), ('month', 'day', 'year')),
]
TIME_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})(?::(\d{2}))?$')


def parse_date(value: str) -> Optional[datetime]:
    """Parse "YYYY-MM-DD" or "MM/DD/YYYY"; None if neither matches."""
    value = value.strip()
    for pattern, order in DATE_PATTERNS:
        match = pattern.match(value)
        if match:
            parts = dict(zip(order, (int(g) for g in match.groups())))
            try:
                return datetime(parts['year'], parts['month'], parts['day'])
            except ValueError:
                return None
    return None


def apply_time(date: datetime, value: str) -> Optional[datetime]:
    """Apply a 24-hour "HH:MM" or "HH:MM:SS" time to a date; None if invalid."""
    match = TIME_PATTERN.match(value.strip())
    if not match:
        return None
    try:
        return date.replace(hour=int(match.group(1)), minute=int(match.group(2)),
                            second=int(match.group(3) or 0))
    except ValueError:
        return None


def build_window(date_str: str, start_str: str, end_str: str):
    """
    Build the (start, end) window of a raid.

    An end time at or before the start time belongs to the next day, so raids
    that cross midnight need no extra input.

    Raises:
        ValueError: If the date or times are malformed.
    """
    date = parse_date(date_str)
    if date is None:
        raise ValueError("Invalid date format. Use YYYY-MM-DD (e.g. 2026-01-23) or MM/DD/YYYY")
    start = apply_time(date, start_str)
    if start is None:
        raise ValueError("Invalid start time. Use 24-hr format HH:MM, e.g. 20:54")
    end = apply_time(date, end_str)
    if end is None:
        raise ValueError("Invalid end time. Use 24-hr format HH:MM, e.g. 23:30")
    if end <= start:
        end += timedelta(days=1)
    return start, end


class RaidLogParser(JSONTool):
    """
    Extract raid attendance and loot from an EverQuest log.

    Wraps parse_log with configuration defaults, console reporting and
    CSV/JSON output.
    """

    TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the parser with configuration.

        Args:
            config: Configuration dictionary from Config class
        """
        super().__init__(config)
        self.character = self.get_config('eq.character')

    def _format_time(self, instant: Optional[datetime]) -> str:
        return instant.strftime(self.TIMESTAMP_FORMAT) if instant else ''

    @staticmethod
    def time_label(result: ParseResult) -> str:
        """Column label suffix: ' (UTC)' when the result holds aware instants, else ''."""
        instants = [r.first_seen for r in result.attendance] + [e.timestamp for e in result.loot]
        return " (UTC)" if instants and instants[0].tzinfo is not None else ""

    def print_results(self, result: ParseResult) -> None:
        """Log attendance and loot in a readable form."""
        zone_suffix = " UTC" if self.time_label(result) else ""
        logger.info(f"Attendance ({len(result.attendance)} players):")
        logger.info("=" * 50)
        for record in sorted(result.attendance, key=lambda r: r.name.lower()):
            level_class = f"{record.level or '?'} {record.char_class or 'ANONYMOUS'}"
            guild = f" <{record.guild}>" if record.guild else ""
            logger.info(f"  {record.name} [{level_class}]{guild} "
                        f"{self._format_time(record.first_seen)} - "
                        f"{self._format_time(record.last_seen)}{zone_suffix}")

        logger.info(f"Loot ({len(result.loot)} events):")
        logger.info("=" * 50)
        for event in result.loot:
            logger.info(f"  {self._format_time(event.timestamp)}{zone_suffix} "
                        f"{event.player_name}: {event.item_name}")

    def save_results(self, result: ParseResult, raid_name: str = "raid") -> Dict[str, str]:
        """
        Save attendance and loot to CSV, and the full result to JSON.

        Time columns are labelled "(UTC)" when the parse ran with a timezone.

        Returns:
            Dictionary of written file paths.
        """
        base_name = re.sub(r'[^\w-]+', '_', raid_name).strip('_') or "raid"
        label = self.time_label(result)
        first_seen, last_seen, looted_at = f"First Seen{label}", f"Last Seen{label}", f"Looted At{label}"

        attendance_headers = ["Name", "Level", "Class", "Race", "Guild", first_seen, last_seen]
        attendance_rows = [{
            "Name": r.name,
            "Level": r.level if r.level is not None else "",
            "Class": r.char_class or "",
            "Race": r.race or "",
            "Guild": r.guild or "",
            first_seen: self._format_time(r.first_seen),
            last_seen: self._format_time(r.last_seen),
        } for r in result.attendance]

        loot_headers = ["Player", "Item", "Zone", looted_at]
        loot_rows = [{
            "Player": e.player_name,
            "Item": e.item_name,
            "Zone": e.zone or "",
            looted_at: self._format_time(e.timestamp),
        } for e in result.loot]

        return {
            "attendance_csv": self.write_csv(
                attendance_rows, self.generate_timestamped_filename(base_name, "csv", suffix="attendance"),
                headers=attendance_headers),
            "loot_csv": self.write_csv(
                loot_rows, self.generate_timestamped_filename(base_name, "csv", suffix="loot"),
                headers=loot_headers),
            "json": self.write_json(result.to_dict(), self.generate_timestamped_filename(base_name, "json")),
        }

    def run(self, file_path: str, start_time: datetime, end_time: datetime, zones: List[str],
            character: Optional[str] = None, timezone: Optional[str] = None,
            raid_name: str = "raid", save: bool = True) -> Dict[str, Any]:
        """
        Run the raid parse.

        Args:
            file_path: Path to the EQ log file
            start_time: Raid start
            end_time: Raid end
            zones: Zone name filters
            character: Log owner's character name (defaults to eq.character)
            timezone: IANA timezone of the log; None compares local times
            raid_name: Name used for output files
            save: Whether to write CSV/JSON output

        Returns:
            Dictionary with parse results
        """
        character = character or self.character
        logger.info(f"Parsing raid '{raid_name}' in {', '.join(zones)}")
        logger.info(f"Window: {start_time.strftime(self.TIMESTAMP_FORMAT)} -> "
                    f"{end_time.strftime(self.TIMESTAMP_FORMAT)}")
        if not character:
            logger.warning("No character name set; self-loot will not be attributed")

        last_report = [datetime.now()]

        def on_progress(lines: int, bytes_read: int) -> None:
            now = datetime.now()
            if (now - last_report[0]).total_seconds() > 3:
                last_report[0] = now
                logger.info(f"Parsing log... ({lines / 1000:.0f}k lines scanned)")

        result = parse_log(file_path, start_time, end_time, zones, character_name=character,
                           timezone=timezone, on_progress=on_progress)

        summary = {
            "success": bool(result.attendance or result.loot),
            "line_count": result.line_count,
            "attendance_count": len(result.attendance),
            "loot_count": len(result.loot),
            "output_files": {},
            "result": result,
        }

        if not summary["success"]:
            logger.warning(f"No data found in that time range / zone. Scanned {result.line_count:,} lines.")
            logger.warning("Check that the date and window match your play time, that the zone is a "
                           "partial match (e.g. 'veeshan' matches \"Veeshan's Peak\"), and that the "
                           "log covers that date.")
            return summary

        self.print_results(result)
        if save:
            summary["output_files"] = self.save_results(result, raid_name)
        return summary


def main():
    """
    Main entry point for the raid log parser command line tool.
    """
    parser = argparse.ArgumentParser(
        description="Parse an EverQuest log file and extract raid attendance and loot.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s --file eqlog_Lyri_pq.proj.txt --zone "Veeshan's Peak" --date 2026-01-23 --start 20:54 --end 23:30
    %(prog)s --file eqlog.txt --zone "Plane of Hate,Plane of Fear" --date 01/23/2026 --start 22:00 --end 01:30
    %(prog)s --profile my_guild ...

Configuration:
    - eq.character: Log owner's character name (self-loot attribution)
    - general.output_path: Directory for CSV/JSON output files
        """
    )
    parser.add_argument("--file", required=True, help="Path to the EQ log .txt file")
    parser.add_argument("--zone", required=True,
                        help="Zone(s) to filter, comma-separated, partial names allowed")
    parser.add_argument("--date", required=True, help="Raid date, YYYY-MM-DD or MM/DD/YYYY")
    parser.add_argument("--start", required=True, help="Raid start, 24-hr HH:MM")
    parser.add_argument("--end", required=True,
                        help="Raid end, 24-hr HH:MM (an end before the start means the next day)")
    parser.add_argument("--character", help="Log owner's character name")
    parser.add_argument("--timezone",
                        help="IANA timezone of the log (e.g. America/Chicago); compares in UTC when set")
    parser.add_argument("--name", default="raid", help="Raid name used for output files")
    parser.add_argument("--no-save", action="store_true", help="Do not write CSV/JSON output")

    RaidTool.add_standard_arguments(parser)
    args = parser.parse_args()

    try:
        config = RaidLogParser.load_config(args.profile)

        start_time, end_time = build_window(args.date, args.start, args.end)
        zones = [z.strip() for z in args.zone.split(',') if z.strip()]
        if not zones:
            raise ValueError("At least one zone is required")

        tool = RaidLogParser(config)
        result = tool.run(args.file, start_time, end_time, zones,
                          character=args.character,
                          timezone=args.timezone or tool.get_config('eq.timezone'),
                          raid_name=args.name,
                          save=not args.no_save)

        if args.console:
            logger.info(f"Raid parse completed: {result['attendance_count']} attendees, "
                        f"{result['loot_count']} loot events, {result['line_count']:,} lines")

        return 0 if result["success"] else 1

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
