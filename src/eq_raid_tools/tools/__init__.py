"""
EQ Raid Tools - command line tools

Batch raid parsing over a time window, automatic raid detection and
submission, and live watching of the game log.
"""

from .auto_parser import AutoRaidParser
from .live_watcher import LiveRaidWatcher
from .raid_parser import RaidLogParser

__all__ = [
    'AutoRaidParser',
    'LiveRaidWatcher',
    'RaidLogParser',
]
