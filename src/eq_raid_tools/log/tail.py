"""
Live tailing of a log file that the game client is still writing.

LiveLogTail watches the file with watchdog, reads only bytes appended after
start(), and runs each complete line through the same LogScanner used by the
batch parser with the raid schedule policy. Results are published as events
to subscribers and accumulated into a session snapshot available at any time
through get_session_data().

Events (callback(event_name, payload)):
    started     {"file"}
    zone        {"zone", "timestamp"}
    attendance  {"zone", "total", "newPlayers", "allPlayers", "timestamp"}
    loot        {"playerName", "itemName", "timestamp", "zone"}
    error       {"message"}  terminal, the tail stops itself
    stopped     {}
"""

import codecs
import logging
import os
import re
import threading
from datetime import datetime, timezone as dt_timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .attendance import AttendanceAggregator
from .gating import RaidSchedule, RaidSchedulePolicy
from .loot import LootCollector
from .models import LootEvent, RaidSession, RosterEntry
from .scanner import LogScanner, ScanSink
from .timestamps import day_name

logger = logging.getLogger(__name__)

# Seconds to wait for a burst of writes to settle before reading
DEFAULT_DEBOUNCE = 0.1

_LINE_BREAK = re.compile(r'\r?\n')

Subscriber = Callable[[str, Dict[str, Any]], None]


class _LogFileEventHandler(FileSystemEventHandler):
    """Forward modifications of the tailed file to the tail."""

    def __init__(self, tail: 'LiveLogTail'):
        super().__init__()
        self.tail = tail

    def _is_target(self, event) -> bool:
        if event.is_directory:
            return False
        path = os.path.normcase(os.path.abspath(os.fsdecode(event.src_path)))
        return path == self.tail._watched_path

    def on_modified(self, event) -> None:
        if self._is_target(event):
            self.tail._on_change()

    def on_created(self, event) -> None:
        if self._is_target(event):
            self.tail._on_change()


class _LiveSink(ScanSink):
    """Accumulates the running session and publishes each accepted event."""

    def __init__(self, publish: Callable[[str, Dict[str, Any]], None]):
        self.publish = publish
        self.attendance = AttendanceAggregator()
        self.loot = LootCollector()
        self.zones: Dict[str, None] = {}

    def on_zone(self, zone: str, instant: datetime) -> None:
        self.zones.setdefault(zone, None)
        self.publish('zone', {'zone': zone, 'timestamp': instant.isoformat()})

    def on_roster(self, zone: str, instant: datetime, entries: List[RosterEntry]) -> None:
        self.zones.setdefault(zone, None)
        new_players = []
        for entry in entries:
            if self.attendance.upsert(entry, instant):
                new_players.append(entry.name)
        self.publish('attendance', {
            'zone': zone,
            'total': len(self.attendance),
            'newPlayers': new_players,
            'allPlayers': self.attendance.names(),
            'timestamp': instant.isoformat(),
        })

    def on_loot(self, event: LootEvent) -> None:
        self.loot.append(event)
        self.publish('loot', event.to_dict())


class LiveLogTail:
    """
    Tail an EQ log file and publish raid events as they are written.

    Only content appended after start() is processed. Bursts of change
    notifications are coalesced by a short debounce timer, and a lock keeps
    at most one read in flight; a notification arriving mid-read schedules
    a follow-up read instead of overlapping.

    Args:
        file_path: Path to the log file.
        timezone: IANA timezone the log is written in.
        character_name: Log owner's character name, for self-loot.
        approved_zones: Zone allowlist; defaults to APPROVED_ZONES.
        schedule: Weekly raid window; defaults to Sun/Wed/Fri/Sat 13-17 UTC.
        debounce: Seconds to wait after the last change notification.
    """

    def __init__(self, file_path: str, timezone: str, character_name: Optional[str] = None,
                 approved_zones: Optional[Iterable[str]] = None,
                 schedule: Optional[RaidSchedule] = None,
                 debounce: float = DEFAULT_DEBOUNCE):
        self.file_path = file_path
        self._watched_path = os.path.normcase(os.path.abspath(file_path))
        self.debounce = debounce
        self.offset = 0
        self.lines_processed = 0

        self._subscribers: List[Subscriber] = []
        self._sink = _LiveSink(self._publish)
        self._scanner = LogScanner(RaidSchedulePolicy(schedule, approved_zones), self._sink,
                                   timezone=timezone, character_name=character_name)
        self._pending_chunk = ''
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')

        self._observer: Optional[Observer] = None
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()
        self._read_lock = threading.RLock()
        self._running = False
        self._stopped = False

    # -- subscriptions ------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _publish(self, event: str, payload: Dict[str, Any]) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event, payload)
            except Exception:
                logger.exception(f"Subscriber failed handling '{event}' event")

    # -- lifecycle ----------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """
        Start tailing from the current end of the file.

        Returns:
            True if watching started, False if the file could not be stat'ed
            (an error event is published in that case).
        """
        if self._running:
            logger.warning("Log tail is already running")
            return True

        try:
            size = os.stat(self.file_path).st_size
        except OSError as e:
            self._publish('error', {'message': f"Cannot stat file: {e}"})
            return False

        # A partial line left from an earlier run never joins bytes at the new offset
        with self._read_lock:
            self.offset = size
            self._pending_chunk = ''
            self._decoder.reset()

        self._stopped = False
        self._observer = Observer()
        self._observer.schedule(_LogFileEventHandler(self),
                                os.path.dirname(os.path.abspath(self.file_path)),
                                recursive=False)
        self._observer.start()
        self._running = True

        logger.info(f"Tailing {self.file_path} from byte {self.offset:,}")
        self._publish('started', {'file': self.file_path})
        return True

    def stop(self) -> None:
        """Stop watching and cancel any pending read. Safe to call repeatedly."""
        with self._timer_lock:
            if self._stopped:
                return
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            if threading.current_thread() is not observer:
                observer.join(timeout=5.0)

        was_running, self._running = self._running, False
        if was_running:
            logger.info("Log tail stopped")
            self._publish('stopped', {})

    def _on_change(self) -> None:
        with self._timer_lock:
            if self._stopped:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce, self._read_new)
            self._timer.daemon = True
            self._timer.start()

    # -- reading ------------------------------------------------------------

    def _read_new(self) -> int:
        """
        Read bytes appended since the last read and process complete lines.

        Returns:
            Number of complete lines processed.
        """
        with self._read_lock:
            if self._stopped:
                return 0
            try:
                size = os.stat(self.file_path).st_size
                if size < self.offset:
                    logger.warning(f"{self.file_path} shrank from {self.offset:,} to {size:,} bytes; "
                                   f"resuming from the new end")
                    self.offset = size
                    self._pending_chunk = ''
                    self._decoder.reset()
                    return 0
                if size == self.offset:
                    return 0

                with open(self.file_path, 'rb') as f:
                    f.seek(self.offset)
                    data = f.read(size - self.offset)
            except OSError as e:
                logger.error(f"Error reading {self.file_path}: {e}")
                self._publish('error', {'message': str(e)})
                self.stop()
                return 0

            self.offset += len(data)
            return self.feed_text(self._decoder.decode(data))

    def feed_text(self, text: str) -> int:
        """
        Process a chunk of appended text.

        A trailing partial line is held back and completed by the next chunk.

        Returns:
            Number of complete lines processed.
        """
        with self._read_lock:
            lines = _LINE_BREAK.split(self._pending_chunk + text)
            self._pending_chunk = lines.pop()
            for line in lines:
                self._scanner.feed(line)
            self.lines_processed += len(lines)
            return len(lines)

    # -- snapshot -----------------------------------------------------------

    def get_session_data(self) -> RaidSession:
        """Snapshot of everything tailed so far, shaped like an auto-parse session."""
        with self._read_lock:
            attendance = self._sink.attendance.records()
            loot = self._sink.loot.events()
            zones = list(self._sink.zones)

        instants = [p.first_seen for p in attendance] + [p.last_seen for p in attendance]
        instants += [event.timestamp for event in loot]
        if instants:
            first_seen, last_seen = min(instants), max(instants)
        else:
            first_seen = last_seen = datetime.now(dt_timezone.utc).replace(microsecond=0)

        return RaidSession(
            date=first_seen.date().isoformat(),
            day_name=day_name(first_seen),
            first_seen=first_seen,
            last_seen=last_seen,
            zones=zones,
            attendance=attendance,
            loot=loot,
        )
