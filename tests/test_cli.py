"""
CLI regression tests for contender.main.

Tests cover:
- Argument parsing and path cleaning
- Exit codes for success, invalid input and failures
- --show-plan / --dry-run making no changes
- --revert after an instrumenting run
- Log and event files written under the configured folder
"""

import json
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

import contender
from core.file_handler import FileHandler


SOURCE = """package demo;

public class Gate {
    void pass() throws Exception {
        /* @PreemptionPoint (type = "yield", probability = 60) */
        barrier.reset();
    }
}
"""


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(FileHandler, 'wait_for_file_release', lambda self, source, *a, **k: True)
    src = tmp_path / 'src'
    src.mkdir()
    (src / 'Gate.java').write_text(SOURCE)
    return tmp_path


class TestCleanPath:
    """Tests for quoted path input."""

    @pytest.mark.parametrize("raw,expected", [
        ('"C:\\code\\src"', 'C:\\code\\src'),
        ("'/home/me/src'", '/home/me/src'),
        ('  /src  ', '/src'),
        ('" /src "', '/src'),
    ])
    def test_clean_path(self, raw, expected):
        assert contender.clean_path(raw) == expected


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = contender.build_parser().parse_args(['src'])
        assert args.source_pos == 'src'
        assert not args.auto
        assert args.seed is None

    def test_automatic_options(self):
        args = contender.build_parser().parse_args(
            ['--source', 'src', '--auto', '--seed', '5', '--lower', '10', '--upper', '90'])
        assert (args.source, args.auto, args.seed, args.lower, args.upper) == ('src', True, 5, 10, 90)


class TestMain:
    """End-to-end runs through main()."""

    def test_instrument_then_revert(self, workspace):
        gate = workspace / 'src' / 'Gate.java'

        assert contender.main([str(workspace / 'src'), '--no-progress']) == 0
        assert 'Thread.yield();' in gate.read_text()
        assert (workspace / 'src' / 'Gate.java.contender').exists()

        assert contender.main([str(workspace / 'src'), '--revert']) == 0
        assert gate.read_text() == SOURCE
        assert not (workspace / 'src' / 'Gate.java.contender').exists()

    def test_show_plan_makes_no_changes(self, workspace, capsys):
        gate = workspace / 'src' / 'Gate.java'

        assert contender.main([str(workspace / 'src'), '--auto', '--show-plan']) == 0

        assert gate.read_text() == SOURCE
        out = capsys.readouterr().out
        assert 'INSTRUMENTATION PLAN (AUTOMATIC MODE)' in out
        assert '.reset(' in out

    def test_missing_source(self, workspace, capsys):
        assert contender.main([str(workspace / 'nowhere')]) == 1
        assert 'Invalid argument' in capsys.readouterr().out

    def test_bound_out_of_range(self, workspace):
        assert contender.main([str(workspace / 'src'), '--auto', '--upper', '150']) == 1

    def test_inverted_bounds(self, workspace):
        assert contender.main([str(workspace / 'src'), '--auto', '--lower', '80', '--upper', '20']) == 1

    def test_logs_and_events_written(self, workspace):
        contender.main([str(workspace / 'src'), '--no-progress'])

        logs = workspace / 'logs'
        assert list(logs.glob('contender-*.log'))
        events = [json.loads(line) for line in (logs / 'events.jsonl').read_text().splitlines()]
        types = [event['event_type'] for event in events]
        assert types[0] == 'SESSION_STARTED'
        assert 'FILE_INSTRUMENTED' in types
        assert types[-1] == 'SESSION_COMPLETED'

    def test_config_file_option(self, workspace):
        config = workspace / 'custom.json'
        config.write_text(json.dumps({'backup_suffix': '.orig', 'log_folder': 'custom_logs'}))

        assert contender.main([str(workspace / 'src'), '--config', str(config), '--no-progress']) == 0
        assert (workspace / 'src' / 'Gate.java.orig').exists()
        assert (workspace / 'custom_logs').is_dir()

    def test_backup_failure_exits_nonzero(self, workspace, monkeypatch):
        from utils.defensive import ErrorRecovery
        monkeypatch.setattr(ErrorRecovery, 'safe_copy', staticmethod(lambda *a, **k: False))

        assert contender.main([str(workspace / 'src'), '--no-progress']) == 1
        assert (workspace / 'src' / 'Gate.java').read_text() == SOURCE
