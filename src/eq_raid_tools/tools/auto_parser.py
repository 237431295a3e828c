#!/usr/bin/env python3
"""
EQ Raid Tools - Automatic Raid Detection

Scans a whole EverQuest log, detects raid sessions from the weekly raid
schedule and the approved-zone list, and optionally submits each session to
the raid server. A session for a date the server already has is merged into
the stored raid instead of creating a duplicate.
"""

import argparse
import logging
from datetime import datetime
from typing import Dict, List, Any, Optional, Tuple

from eq_raid_tools.base import RaidTool, JSONTool
from eq_raid_tools.log.gating import RaidSchedule
from eq_raid_tools.log.models import RaidSession
from eq_raid_tools.log.parser import auto_parse_log, find_log_file
from eq_raid_tools.log.timestamps import resolve_timezone
from eq_raid_tools.log.zones import APPROVED_ZONES

logger = logging.getLogger(__name__)


def raid_settings(tool: RaidTool) -> Tuple[RaidSchedule, List[str]]:
    """Read the raid schedule and approved zones from a tool's configuration."""
    schedule = RaidSchedule.from_config(
        days=tool.get_config('eq.raid_days'),
        start_hour=tool.get_config('eq.raid_start_utc'),
        end_hour=tool.get_config('eq.raid_end_utc'),
    )
    approved_zones = tool.get_config('eq.approved_zones') or APPROVED_ZONES
    return schedule, list(approved_zones)


class AutoRaidParser(JSONTool):
    """
    Detect raid sessions in an EverQuest log and submit them to the raid server.
    """

    TIME_FORMAT = "%H:%M"

    def __init__(self, config: Optional[Dict[str, Any]] = None, client=None):
        """
        Initialize the auto parser with configuration.

        Args:
            config: Configuration dictionary from Config class
            client: Optional RaidServerClient; one is created on first submit
        """
        super().__init__(config)
        self.character = self.get_config('eq.character')
        self.timezone = self.get_config('eq.timezone')
        self.schedule, self.approved_zones = raid_settings(self)
        self._client = client

    @property
    def client(self):
        if self._client is None:
            from eq_raid_tools.api.client import RaidServerClient
            self._client = RaidServerClient(self.config)
        return self._client

    def locate_log(self, file_path: Optional[str] = None, character: Optional[str] = None,
                   eq_folder: Optional[str] = None) -> str:
        """
        Resolve the log file from an explicit path or a log folder.

        Args:
            file_path: Explicit log file, used as is
            character: Character whose eqlog_<Character>_*.txt to look for
            eq_folder: Folder to search (defaults to eq.log_folder)

        Raises:
            FileNotFoundError: If no log file can be found.
        """
        if file_path:
            return self.resolve_path(file_path)

        character = character or self.character
        eq_folder = eq_folder or self.log_folder
        if not eq_folder or not character:
            raise FileNotFoundError("Give --file, or a log folder (--eq-folder or eq.log_folder) "
                                    "and a character name")

        found = find_log_file(self.resolve_path(eq_folder), character)
        if not found:
            raise FileNotFoundError(f"No log file found for {character} in {eq_folder}")
        return found

    def describe_session(self, index: int, session: RaidSession) -> List[str]:
        """Human readable summary lines for one session."""
        start = session.first_seen.strftime(self.TIME_FORMAT)
        end = session.last_seen.strftime(self.TIME_FORMAT)
        lines = [
            f"[{index}] {session.date} ({session.day_name})  {start} - {end} UTC",
            f"    Zones:      {', '.join(session.zones) or 'unknown'}",
            f"    Attendance: {len(session.attendance)} players",
            f"    Loot:       {len(session.loot)} items",
        ]
        for event in session.loot[:5]:
            lines.append(f"      - {event.player_name}: {event.item_name}")
        if len(session.loot) > 5:
            lines.append(f"      ... and {len(session.loot) - 5} more")
        return lines

    def confirm(self, session: RaidSession) -> bool:
        answer = input(f"Submit {session.date} ({session.day_name})? [y/N] ")
        return answer.strip().lower() in ('y', 'yes')

    def submit(self, sessions: List[RaidSession], character: Optional[str] = None,
               assume_yes: bool = False) -> List[Dict[str, Any]]:
        """
        Submit sessions to the raid server, asking for confirmation per session
        unless assume_yes is set. A failed submission is logged and the
        remaining sessions are still attempted.

        Returns:
            One result per session: {"date", "action", ...}
        """
        results = []
        for session in sessions:
            if not assume_yes and not self.confirm(session):
                logger.info(f"Skipped {session.date}")
                results.append({'date': session.date, 'action': 'skipped'})
                continue
            try:
                outcome = self.client.submit_session(session, character=character)
            except Exception as e:
                logger.error(f"Failed to submit {session.date}: {e}")
                results.append({'date': session.date, 'action': 'failed', 'error': str(e)})
                continue
            results.append({'date': session.date, **outcome})
        return results

    def run(self, file_path: Optional[str] = None, character: Optional[str] = None,
            timezone: Optional[str] = None, dry_run: bool = False, assume_yes: bool = False,
            excel_file: Optional[str] = None, save_json: bool = True,
            eq_folder: Optional[str] = None) -> Dict[str, Any]:
        """
        Run automatic raid detection.

        Args:
            file_path: Path to the EQ log file (defaults to a search of the log folder)
            character: Log owner's character name (defaults to eq.character)
            timezone: IANA timezone of the log (defaults to eq.timezone)
            dry_run: Detect and report sessions without submitting
            assume_yes: Submit without prompting
            excel_file: Optional path of an Excel workbook to export sessions to
            save_json: Whether to write the detected sessions as JSON
            eq_folder: Log folder to search when no file is given (defaults to eq.log_folder)

        Returns:
            Dictionary with detected sessions and submission results
        """
        character = character or self.character
        timezone = timezone or self.timezone
        if not timezone:
            raise ValueError("A timezone is required (--timezone or eq.timezone), e.g. America/Chicago")
        resolve_timezone(timezone)

        log_path = self.locate_log(file_path, character, eq_folder)
        logger.info(f"Log file:  {log_path}")
        logger.info(f"Character: {character or '(not set, self-loot ignored)'}")
        logger.info(f"Timezone:  {timezone}")
        logger.info(f"Schedule:  {self.schedule.describe()}")

        last_report = [datetime.now()]

        def on_progress(lines: int, bytes_read: int) -> None:
            now = datetime.now()
            if (now - last_report[0]).total_seconds() > 3:
                last_report[0] = now
                logger.info(f"Scanning... {lines:,} lines ({bytes_read / 1048576:.1f} MB)")

        parsed = auto_parse_log(log_path, timezone, character_name=character,
                                approved_zones=self.approved_zones, schedule=self.schedule,
                                on_progress=on_progress)

        summary = {
            'log_file': log_path,
            'line_count': parsed.line_count,
            'sessions': parsed.sessions,
            'submissions': [],
            'output_files': {},
        }

        if not parsed.sessions:
            logger.warning("No raid sessions found during raid hours in approved zones")
            return summary

        logger.info(f"Found {len(parsed.sessions)} raid session(s):")
        for index, session in enumerate(parsed.sessions, 1):
            for line in self.describe_session(index, session):
                logger.info(line)

        if save_json:
            summary['output_files']['json'] = self.write_json(
                parsed.to_dict(), self.generate_timestamped_filename("raid_sessions", "json"))

        if excel_file:
            from eq_raid_tools.export import write_sessions_excel
            summary['output_files']['excel'] = write_sessions_excel(
                parsed.sessions, self._in_output_dir(excel_file))

        if dry_run:
            logger.info("Dry run, nothing submitted")
            return summary

        summary['submissions'] = self.submit(parsed.sessions, character=character, assume_yes=assume_yes)
        for result in summary['submissions']:
            if result['action'] == 'merged':
                logger.info(f"{result['date']}: merged into raid #{result['raidId']} "
                            f"(+{result.get('newLoot', 0)} new loot)")
            elif result['action'] == 'created':
                logger.info(f"{result['date']}: saved as raid #{result['raidId']}")
        return summary


def main():
    """
    Main entry point for the automatic raid detection command line tool.
    """
    parser = argparse.ArgumentParser(
        description="Scan an EverQuest log for raid sessions and submit them to the raid server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s --file eqlog_Lyri_pq.proj.txt --timezone America/Chicago --dry-run
    %(prog)s --character Lyri --timezone America/Phoenix --yes
    %(prog)s --file eqlog.txt --timezone America/New_York --excel raids.xlsx --dry-run

Configuration:
    - eq.log_folder / eq.character: Locate the log without --file
    - eq.timezone: Default timezone of the log
    - eq.approved_zones, eq.raid_days, eq.raid_start_utc, eq.raid_end_utc: Raid detection
    - raid_server.url / raid_server.api_key: Raid server to submit to
        """
    )
    parser.add_argument("--file", help="Path to the EQ log .txt file")
    parser.add_argument("--eq-folder", help="EverQuest Logs folder to search for the character's log")
    parser.add_argument("--character", help="Log owner's character name (also used to find the log)")
    parser.add_argument("--timezone", help="IANA timezone of the log, e.g. America/Chicago")
    parser.add_argument("--dry-run", action="store_true", help="Detect sessions without submitting")
    parser.add_argument("--yes", action="store_true", help="Submit every session without prompting")
    parser.add_argument("--server", help="Raid server URL (overrides raid_server.url)")
    parser.add_argument("--key", help="Raid server API key (overrides raid_server.api_key)")
    parser.add_argument("--excel", help="Also export sessions to this Excel workbook")

    RaidTool.add_standard_arguments(parser)
    args = parser.parse_args()

    try:
        config = AutoRaidParser.load_config(args.profile)
        if args.server or args.key:
            server = dict(config.get('raid_server', {}))
            if args.server:
                server['url'] = args.server
            if args.key:
                server['api_key'] = args.key
            config = {**config, 'raid_server': server}

        tool = AutoRaidParser(config)
        result = tool.run(file_path=args.file, character=args.character, timezone=args.timezone,
                          dry_run=args.dry_run, assume_yes=args.yes, excel_file=args.excel,
                          eq_folder=args.eq_folder)

        if args.console:
            logger.info(f"Auto-parse completed: {len(result['sessions'])} session(s) "
                        f"in {result['line_count']:,} lines")

        failed = [r for r in result['submissions'] if r['action'] == 'failed']
        return 1 if failed else 0

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
