#!/usr/bin/env python3
"""Tests for the command line tools and the configuration reader."""

import json
import os
import sys
import tempfile
from datetime import datetime
from unittest.mock import patch

import pytest

# Add the src directory to the path so we can import the modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from config.config import Config
from eq_raid_tools.tools.auto_parser import AutoRaidParser, raid_settings
from eq_raid_tools.tools.live_watcher import LiveRaidWatcher
from eq_raid_tools.tools.raid_parser import RaidLogParser, build_window, parse_date

RAID_LOG = [
    "[Wed Jan 21 13:55:00 2026] You have entered Sebilis.",
    "[Wed Jan 21 14:00:00 2026] Players on EverQuest:",
    "[Wed Jan 21 14:00:00 2026] ---------------------------",
    "[Wed Jan 21 14:00:00 2026] [60 Shadow Knight] Grimble (Troll) <Intervention>",
    "[Wed Jan 21 14:00:00 2026] There are 1 players in Sebilis.",
    "[Wed Jan 21 14:05:00 2026] --You have looted a Spiroc Wingblade.--",
]


class FakeClient:
    def __init__(self):
        self.submitted = []

    def submit_session(self, session, character=None):
        self.submitted.append((session.date, character))
        return {'action': 'created', 'raidId': len(self.submitted)}


@pytest.fixture
def workspace():
    with tempfile.TemporaryDirectory() as folder:
        log_folder = os.path.join(folder, 'Logs')
        os.makedirs(log_folder)
        with open(os.path.join(log_folder, 'eqlog_Lyri_pq.proj.txt'), 'w', encoding='utf-8') as f:
            f.write('\n'.join(RAID_LOG) + '\n')
        config = {
            'general': {'output_path': os.path.join(folder, 'output')},
            'eq': {'log_folder': log_folder, 'character': 'Lyri', 'timezone': 'UTC'},
        }
        yield folder, config


def test_parse_date_formats():
    assert parse_date('2026-01-23') == datetime(2026, 1, 23)
    assert parse_date('01/23/2026') == datetime(2026, 1, 23)
    assert parse_date('23.01.2026') is None
    assert parse_date('2026-02-30') is None


def test_build_window_rolls_over_midnight():
    assert build_window('2026-01-23', '20:54', '23:30') == \
        (datetime(2026, 1, 23, 20, 54), datetime(2026, 1, 23, 23, 30))
    assert build_window('2026-01-23', '22:00', '01:30') == \
        (datetime(2026, 1, 23, 22, 0), datetime(2026, 1, 24, 1, 30))
    assert build_window('2026-01-23', '22:00', '22:00')[1] == datetime(2026, 1, 24, 22, 0)

    with pytest.raises(ValueError):
        build_window('yesterday', '20:00', '23:00')
    with pytest.raises(ValueError):
        build_window('2026-01-23', '25:00', '23:00')


def test_raid_log_parser_writes_reports(workspace):
    folder, config = workspace
    tool = RaidLogParser(config)
    log_path = os.path.join(config['eq']['log_folder'], 'eqlog_Lyri_pq.proj.txt')

    result = tool.run(log_path, datetime(2026, 1, 21, 13, 0), datetime(2026, 1, 21, 17, 0), ['sebilis'],
                      raid_name="Sebilis Wednesday")

    assert result['success']
    assert result['attendance_count'] == 1
    assert result['loot_count'] == 1
    assert result['result'].loot[0].player_name == 'Lyri'
    for path in result['output_files'].values():
        assert os.path.exists(path)
        assert path.startswith(os.path.join(folder, 'output'))
    with open(result['output_files']['json'], encoding='utf-8') as f:
        assert json.load(f)['lineCount'] == len(RAID_LOG)

    with open(result['output_files']['attendance_csv'], encoding='utf-8') as f:
        assert f.readline().strip() == "Name,Level,Class,Race,Guild,First Seen,Last Seen"


def test_raid_log_parser_labels_utc_columns(workspace):
    _, config = workspace
    tool = RaidLogParser(config)
    log_path = os.path.join(config['eq']['log_folder'], 'eqlog_Lyri_pq.proj.txt')

    result = tool.run(log_path, datetime(2026, 1, 21, 13, 0), datetime(2026, 1, 21, 17, 0), ['sebilis'],
                      timezone='UTC', raid_name="Sebilis Wednesday")

    assert RaidLogParser.time_label(result['result']) == " (UTC)"
    with open(result['output_files']['attendance_csv'], encoding='utf-8') as f:
        assert f.readline().strip() == \
            "Name,Level,Class,Race,Guild,First Seen (UTC),Last Seen (UTC)"
        assert f.readline().strip().endswith("2026-01-21 14:00:00,2026-01-21 14:00:00")
    with open(result['output_files']['loot_csv'], encoding='utf-8') as f:
        assert f.readline().strip() == "Player,Item,Zone,Looted At (UTC)"
        assert f.readline().strip() == "Lyri,Spiroc Wingblade,Sebilis,2026-01-21 14:05:00"


def test_raid_log_parser_no_match(workspace):
    _, config = workspace
    tool = RaidLogParser(config)
    log_path = os.path.join(config['eq']['log_folder'], 'eqlog_Lyri_pq.proj.txt')

    result = tool.run(log_path, datetime(2026, 1, 21, 13, 0), datetime(2026, 1, 21, 17, 0), ['chardok'])

    assert not result['success']
    assert result['output_files'] == {}


def test_auto_parser_finds_log_and_submits(workspace):
    _, config = workspace
    client = FakeClient()
    tool = AutoRaidParser(config, client=client)

    result = tool.run(assume_yes=True)

    assert result['log_file'].endswith('eqlog_Lyri_pq.proj.txt')
    assert [s.date for s in result['sessions']] == ['2026-01-21']
    assert client.submitted == [('2026-01-21', 'Lyri')]
    assert result['submissions'] == [{'date': '2026-01-21', 'action': 'created', 'raidId': 1}]
    assert os.path.exists(result['output_files']['json'])


def test_auto_parser_dry_run_and_prompt(workspace):
    _, config = workspace
    client = FakeClient()
    tool = AutoRaidParser(config, client=client)

    tool.run(dry_run=True)
    assert client.submitted == []

    with patch('builtins.input', return_value='n'):
        result = tool.run()
    assert client.submitted == []
    assert result['submissions'] == [{'date': '2026-01-21', 'action': 'skipped'}]


def test_auto_parser_requires_log_and_timezone(workspace):
    _, config = workspace
    with pytest.raises(FileNotFoundError):
        AutoRaidParser(config).run(character='Nobody')
    with pytest.raises(ValueError):
        AutoRaidParser({'general': config['general']}).run(file_path='eqlog.txt')


def test_raid_settings_from_config(workspace):
    _, config = workspace
    tool = AutoRaidParser({'general': config['general'],
                           'eq': {'raid_days': [2], 'raid_start_utc': 1, 'raid_end_utc': 5,
                                  'approved_zones': ['Sebilis']}})
    schedule, zones = raid_settings(tool)
    assert schedule.days == frozenset({2})
    assert (schedule.start_hour, schedule.end_hour) == (1, 5)
    assert zones == ['Sebilis']


def test_live_watcher_requires_timezone(workspace):
    _, config = workspace
    watcher = LiveRaidWatcher({'general': config['general']})
    with pytest.raises(ValueError):
        watcher.build_tail('eqlog.txt')

    tail = LiveRaidWatcher(config).build_tail('eqlog.txt')
    assert tail.file_path == os.path.abspath('eqlog.txt')


def test_config_profile_and_secrets():
    with tempfile.TemporaryDirectory() as folder:
        profiles = os.path.join(folder, 'profiles')
        secrets = os.path.join(folder, 'secrets')
        os.makedirs(profiles)
        os.makedirs(secrets)
        with open(os.path.join(profiles, 'guild.json'), 'w', encoding='utf-8') as f:
            json.dump({'eq': {'timezone': 'America/Chicago'}, 'raid_server': {'url': 'http://raid'}}, f)
        with open(os.path.join(secrets, 'guild_secrets.json'), 'w', encoding='utf-8') as f:
            json.dump({'raid_server': {'api_key': 'abc'}}, f)

        base = {'general': {'output_path': os.path.join(folder, 'output')}}
        config = Config(config_dir=profiles, secrets_dir=secrets, profile='guild', config=base)

        assert config.get('eq.timezone') == 'America/Chicago'
        assert config.get('raid_server') == {'url': 'http://raid', 'api_key': 'abc'}
        assert config.get('eq.missing', 'fallback') == 'fallback'
        assert config.list_profiles() == ['guild']
        assert config.switch_profile('missing') is False

        default = Config(config_dir=profiles, secrets_dir=secrets, config=base)
        assert default.get() == {}
        assert os.path.exists(os.path.join(profiles, 'default.json'))


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, '-v']))
