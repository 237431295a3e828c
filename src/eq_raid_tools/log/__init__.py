"""
EverQuest Log Engine

This package parses EverQuest client logs into attendance and loot records:
batch parsing over a time window, automatic detection of raid sessions from
a weekly schedule, and live tailing of a log that is still being written.
"""

from .errors import RaidLogError, LogFileError, InvalidTimezoneError
from .gating import RaidSchedule, RaidSchedulePolicy, TimeWindowPolicy
from .models import (
    AutoParseResult, LootEvent, ParseResult, ParticipantRecord, RaidSession, RosterEntry,
)
from .parser import auto_parse_log, find_log_file, parse_log
from .tail import LiveLogTail
from .timestamps import local_to_utc, parse_eq_timestamp, parse_eq_timestamp_utc
from .zones import APPROVED_ZONES, normalize_zone, zone_matches_filters

__all__ = [
    'APPROVED_ZONES',
    'AutoParseResult',
    'InvalidTimezoneError',
    'LiveLogTail',
    'LogFileError',
    'LootEvent',
    'ParseResult',
    'ParticipantRecord',
    'RaidLogError',
    'RaidSchedule',
    'RaidSchedulePolicy',
    'RaidSession',
    'RosterEntry',
    'TimeWindowPolicy',
    'auto_parse_log',
    'find_log_file',
    'local_to_utc',
    'normalize_zone',
    'parse_eq_timestamp',
    'parse_eq_timestamp_utc',
    'parse_log',
    'zone_matches_filters',
]
