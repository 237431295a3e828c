#!/usr/bin/env python3
"""Tests for batch parsing of a log over a time window."""

import logging
import os
import sys
import tempfile
from datetime import datetime, timezone

import pytest

# Add the src directory to the path so we can import the modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from eq_raid_tools.log.errors import InvalidTimezoneError, LogFileError
from eq_raid_tools.log.gating import TimeWindowPolicy
from eq_raid_tools.log.parser import PROGRESS_INTERVAL, find_log_file, parse_log
from eq_raid_tools.log.scanner import LogScanner, ScanSink

FUNGUS_GROVE_LOG = [
    "[Thu Jan 22 20:54:23 2026] You have entered The Fungus Grove.",
    "[Thu Jan 22 20:54:27 2026] Players on EverQuest:",
    "[Thu Jan 22 20:54:27 2026] ---------------------------",
    "[Thu Jan 22 20:54:27 2026] [60 Virtuoso] Lyri (Vah Shir) <Intervention>",
    "[Thu Jan 22 20:54:27 2026] [ANONYMOUS] Kelthar  <Intervention>",
    "[Thu Jan 22 20:54:27 2026] There are 2 players in Fungus Grove.",
]

WINDOW_START = datetime(2026, 1, 22, 20, 0, 0)
WINDOW_END = datetime(2026, 1, 22, 23, 0, 0)


def write_log(lines, directory=None, name=None):
    """Write lines to a temporary log file and return its path."""
    if name:
        path = os.path.join(directory, name)
        f = open(path, 'w', encoding='utf-8')
    else:
        f = tempfile.NamedTemporaryFile('w', suffix='.txt', delete=False, encoding='utf-8')
        path = f.name
    with f:
        f.write('\n'.join(lines) + '\n')
    return path


def test_single_roster_block():
    path = write_log(FUNGUS_GROVE_LOG)
    try:
        result = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'])
    finally:
        os.unlink(path)

    assert result.line_count == len(FUNGUS_GROVE_LOG)
    assert result.loot == []
    assert [p.name for p in result.attendance] == ['Lyri', 'Kelthar']

    lyri, kelthar = result.attendance
    assert (lyri.level, lyri.char_class, lyri.race, lyri.guild) == (60, 'Virtuoso', 'Vah Shir', 'Intervention')
    assert lyri.first_seen == lyri.last_seen == datetime(2026, 1, 22, 20, 54, 27)
    assert (kelthar.level, kelthar.char_class, kelthar.race, kelthar.guild) == (None, None, None, 'Intervention')


def test_self_loot_attributed_to_character():
    lines = FUNGUS_GROVE_LOG + ["[Thu Jan 22 21:10:00 2026] --You have looted a Shiknar Ichor.--"]
    path = write_log(lines)
    try:
        result = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'], character_name='Lyri')
        without_character = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'])
    finally:
        os.unlink(path)

    assert len(result.loot) == 1
    event = result.loot[0]
    assert event.player_name == 'Lyri'
    assert event.item_name == 'Shiknar Ichor'
    assert event.zone == 'The Fungus Grove'
    assert event.to_dict() == {
        'playerName': 'Lyri',
        'itemName': 'Shiknar Ichor',
        'timestamp': '2026-01-22T21:10:00',
        'zone': 'The Fungus Grove',
    }
    assert without_character.loot == []


def test_loot_outside_filtered_zone_is_ignored():
    lines = [
        "[Thu Jan 22 21:00:00 2026] You have entered Plane of Hate.",
        "[Thu Jan 22 21:05:00 2026] --Risingdarkness has looted a Phase Spider Blood.--",
        "[Thu Jan 22 21:06:00 2026] You have entered The Fungus Grove.",
        "[Thu Jan 22 21:07:00 2026] --Risingdarkness has looted a Shiknar Ichor.--",
    ]
    path = write_log(lines)
    try:
        result = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'])
    finally:
        os.unlink(path)

    assert [(e.player_name, e.item_name) for e in result.loot] == [('Risingdarkness', 'Shiknar Ichor')]


def test_zone_change_discards_open_block():
    lines = [
        "[Thu Jan 22 20:54:27 2026] Players on EverQuest:",
        "[Thu Jan 22 20:54:27 2026] ---------------------------",
        "[Thu Jan 22 20:54:27 2026] [60 Virtuoso] Lyri (Vah Shir) <Intervention>",
        "[Thu Jan 22 20:54:28 2026] You have entered The Fungus Grove.",
        "[Thu Jan 22 20:54:29 2026] There are 1 players in Fungus Grove.",
    ]
    path = write_log(lines)
    try:
        result = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'])
    finally:
        os.unlink(path)

    assert result.attendance == []


def test_repeat_sightings_merge():
    lines = FUNGUS_GROVE_LOG + [
        "[Thu Jan 22 22:10:00 2026] Players on EverQuest:",
        "[Thu Jan 22 22:10:00 2026] ---------------------------",
        "[Thu Jan 22 22:10:00 2026] [61 Virtuoso] lyri (Vah Shir) <Exodus>",
        "[Thu Jan 22 22:10:00 2026] There are 1 players in The Fungus Grove.",
    ]
    path = write_log(lines)
    try:
        result = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'])
    finally:
        os.unlink(path)

    assert len(result.attendance) == 2
    lyri = result.attendance[0]
    assert lyri.name == 'Lyri'
    assert lyri.first_seen == datetime(2026, 1, 22, 20, 54, 27)
    assert lyri.last_seen == datetime(2026, 1, 22, 22, 10, 0)
    assert lyri.level == 61
    assert lyri.guild == 'Exodus'


def test_malformed_roster_line_is_skipped():
    lines = [
        "[Thu Jan 22 20:54:27 2026] Players on EverQuest:",
        "[Thu Jan 22 20:54:27 2026] ---------------------------",
        "[Thu Jan 22 20:54:27 2026] [60 Virtuoso] ",
        "[Thu Jan 22 20:54:27 2026] Your spell fizzles!",
        "[Thu Jan 22 20:54:27 2026] [54 Wanderer] Pip (Halfling)",
        "[Thu Jan 22 20:54:27 2026] There are 2 players in Fungus Grove.",
    ]
    path = write_log(lines)
    try:
        result = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'])
    finally:
        os.unlink(path)

    assert [p.name for p in result.attendance] == ['Pip']


def test_roster_outside_window_is_ignored():
    path = write_log(FUNGUS_GROVE_LOG)
    try:
        result = parse_log(path, datetime(2026, 1, 22, 21, 0), datetime(2026, 1, 22, 23, 0), ['fungus'])
    finally:
        os.unlink(path)

    assert result.attendance == []
    assert result.line_count == len(FUNGUS_GROVE_LOG)


def test_window_in_timezone():
    path = write_log(FUNGUS_GROVE_LOG)
    try:
        result = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'], timezone='America/Chicago')
    finally:
        os.unlink(path)

    assert len(result.attendance) == 2
    assert result.attendance[0].first_seen == datetime(2026, 1, 23, 2, 54, 27, tzinfo=timezone.utc)


def test_invalid_arguments():
    path = write_log(FUNGUS_GROVE_LOG)
    try:
        with pytest.raises(ValueError):
            parse_log(path, WINDOW_END, WINDOW_START, ['fungus'])
        with pytest.raises(InvalidTimezoneError):
            parse_log(path, WINDOW_START, WINDOW_END, ['fungus'], timezone='Nowhere/Special')
    finally:
        os.unlink(path)

    with pytest.raises(LogFileError):
        parse_log('/nonexistent/eqlog_Nobody_pq.proj.txt', WINDOW_START, WINDOW_END, ['fungus'])


def test_unrecognized_lines_are_counted_but_ignored():
    lines = ["garbage without timestamp", "", "[Thu Jan 22 20:50:00 2026] You say, 'hail'"] + FUNGUS_GROVE_LOG
    path = write_log(lines)
    try:
        result = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'])
    finally:
        os.unlink(path)

    assert result.line_count == len(lines)
    assert len(result.attendance) == 2


def test_scanner_counts_lines_without_timestamp(caplog):
    lines = ["garbage without timestamp", "", "[Thu Jan 22 20:50:00 2026] You say, 'hail'"] + FUNGUS_GROVE_LOG
    scanner = LogScanner(TimeWindowPolicy(WINDOW_START, WINDOW_END, ['fungus']), ScanSink())
    for line in lines:
        scanner.feed(line)

    assert scanner.lines_seen == len(lines)
    assert scanner.lines_skipped == 2

    path = write_log(lines)
    try:
        with caplog.at_level(logging.INFO, logger='eq_raid_tools.log.parser'):
            parse_log(path, WINDOW_START, WINDOW_END, ['fungus'])
    finally:
        os.unlink(path)

    assert f"Scanned {len(lines)} lines (2 without a timestamp)" in caplog.text


def test_progress_reporting():
    chatter = ["[Thu Jan 22 19:00:00 2026] You say, 'hail'"] * (2 * PROGRESS_INTERVAL + 10)
    path = write_log(chatter)
    calls = []
    try:
        result = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'],
                           on_progress=lambda lines, read: calls.append((lines, read)))
    finally:
        os.unlink(path)

    line_bytes = len(chatter[0]) + 1
    assert result.line_count == len(chatter)
    assert calls == [(PROGRESS_INTERVAL, PROGRESS_INTERVAL * line_bytes),
                     (2 * PROGRESS_INTERVAL, 2 * PROGRESS_INTERVAL * line_bytes)]


def test_repeated_parse_is_identical():
    lines = FUNGUS_GROVE_LOG + ["[Thu Jan 22 21:10:00 2026] --You have looted a Shiknar Ichor.--"]
    path = write_log(lines)
    try:
        first = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'], character_name='Lyri')
        second = parse_log(path, WINDOW_START, WINDOW_END, ['fungus'], character_name='Lyri')
    finally:
        os.unlink(path)

    assert first.to_dict() == second.to_dict()


def test_find_log_file():
    with tempfile.TemporaryDirectory() as folder:
        write_log(FUNGUS_GROVE_LOG, folder, 'eqlog_Lyri_pq.proj.txt')
        write_log(FUNGUS_GROVE_LOG, folder, 'eqlog_Kelthar_pq.proj.txt')

        assert find_log_file(folder, 'Lyri') == os.path.join(folder, 'eqlog_Lyri_pq.proj.txt')
        assert find_log_file(folder, 'Nobody') is None
    assert find_log_file('/nonexistent/folder', 'Lyri') is None


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, '-v']))
