#!/usr/bin/env python3
"""
EQ Raid Tools - Live Log Watcher

Tails the EverQuest log while the game is running and reports zone changes,
/who attendance and loot as they happen. On exit (Ctrl+C) the session seen
so far is written to JSON and can optionally be submitted to the raid server.
"""

import argparse
import logging
import time
from typing import Dict, Any, Optional

from eq_raid_tools.base import RaidTool, JSONTool
from eq_raid_tools.log.tail import LiveLogTail
from eq_raid_tools.tools.auto_parser import raid_settings

logger = logging.getLogger(__name__)


class LiveRaidWatcher(JSONTool):
    """Watch a live EverQuest log and log raid activity as it is written."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.character = self.get_config('eq.character')
        self.timezone = self.get_config('eq.timezone')
        self.schedule, self.approved_zones = raid_settings(self)
        self.tail: Optional[LiveLogTail] = None

    def on_event(self, event: str, payload: Dict[str, Any]) -> None:
        """Log one tail event."""
        if event == 'zone':
            logger.info(f"Zoned into {payload['zone']}")
        elif event == 'attendance':
            new_players = payload['newPlayers']
            logger.info(f"/who in {payload['zone']}: {payload['total']} tracked"
                        + (f", new: {', '.join(new_players)}" if new_players else ""))
        elif event == 'loot':
            logger.info(f"Loot: {payload['playerName']} - {payload['itemName']}")
        elif event == 'error':
            logger.error(f"Log tail error: {payload['message']}")
        elif event == 'started':
            logger.info(f"Watching {payload['file']} (Ctrl+C to stop)")

    def build_tail(self, file_path: str, character: Optional[str] = None,
                   timezone: Optional[str] = None) -> LiveLogTail:
        timezone = timezone or self.timezone
        if not timezone:
            raise ValueError("A timezone is required (--timezone or eq.timezone), e.g. America/Chicago")
        tail = LiveLogTail(self.resolve_path(file_path), timezone,
                           character_name=character or self.character,
                           approved_zones=self.approved_zones, schedule=self.schedule)
        tail.subscribe(self.on_event)
        return tail

    def run(self, file_path: str, character: Optional[str] = None, timezone: Optional[str] = None,
            submit: bool = False, poll_interval: float = 1.0) -> Dict[str, Any]:
        """
        Watch the log until interrupted.

        Args:
            file_path: Path to the EQ log file
            character: Log owner's character name (defaults to eq.character)
            timezone: IANA timezone of the log (defaults to eq.timezone)
            submit: Submit the collected session to the raid server on exit
            poll_interval: Seconds between checks of the tail's state

        Returns:
            Dictionary with the session snapshot and output files
        """
        self.tail = self.build_tail(file_path, character, timezone)
        if not self.tail.start():
            return {'success': False, 'session': None, 'output_files': {}}

        try:
            while self.tail.running:
                time.sleep(poll_interval)
        except KeyboardInterrupt:
            logger.info("Stopping...")
        finally:
            self.tail.stop()

        session = self.tail.get_session_data()
        summary = {
            'success': True,
            'lines_processed': self.tail.lines_processed,
            'session': session,
            'output_files': {},
            'submission': None,
        }
        logger.info(f"Session: {len(session.attendance)} players, {len(session.loot)} loot events, "
                    f"{self.tail.lines_processed:,} lines")

        if not session.attendance and not session.loot:
            logger.info("Nothing recorded, no output written")
            return summary

        summary['output_files']['json'] = self.write_json(
            session.to_dict(), self.generate_timestamped_filename("live_session", "json"))

        if submit:
            from eq_raid_tools.api.client import RaidServerClient
            summary['submission'] = RaidServerClient(self.config).submit_session(
                session, character=character or self.character)
        return summary


def main():
    """
    Main entry point for the live log watcher command line tool.
    """
    parser = argparse.ArgumentParser(
        description="Watch an EverQuest log live and report raid attendance and loot.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s --file eqlog_Lyri_pq.proj.txt --timezone America/Chicago --character Lyri
    %(prog)s --file eqlog.txt --submit

Configuration:
    - eq.character / eq.timezone: Defaults for --character / --timezone
    - raid_server.url / raid_server.api_key: Used with --submit
        """
    )
    parser.add_argument("--file", required=True, help="Path to the EQ log .txt file")
    parser.add_argument("--character", help="Log owner's character name")
    parser.add_argument("--timezone", help="IANA timezone of the log, e.g. America/Chicago")
    parser.add_argument("--submit", action="store_true", help="Submit the session to the raid server on exit")

    RaidTool.add_standard_arguments(parser)
    args = parser.parse_args()

    try:
        config = LiveRaidWatcher.load_config(args.profile)
        tool = LiveRaidWatcher(config)
        result = tool.run(args.file, character=args.character, timezone=args.timezone, submit=args.submit)

        if args.console and result['session'] is not None:
            logger.info(f"Watcher finished after {result['lines_processed']:,} lines")

        return 0 if result['success'] else 1

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
