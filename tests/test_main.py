"""
Tests for the terminal entry point.
"""
import pytest
import sys
import os
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from main import main, play_interactive, parse_args


def scripted(answers):
    """An input function that replays answers in order."""
    answers = iter(answers)
    return lambda prompt: next(answers)


class TestParseArgs:
    """Tests for command line parsing."""

    def test_defaults(self):
        """Defaults point at the shipped catalog."""
        args = parse_args([])
        assert args.catalog.endswith(os.path.join('data', 'jobs.yaml'))
        assert args.seed is None
        assert args.auto is False

    def test_flags(self):
        """All flags are parsed."""
        args = parse_args(['--seed', '3', '--auto', '--export', 'out.csv', '--label', 'Mine'])
        assert args.seed == 3
        assert args.auto is True
        assert args.export == 'out.csv'
        assert args.label == 'Mine'


class TestPlayInteractive:
    """Tests for the interactive loop."""

    def test_quit(self, bracket, capsys):
        """q stops the loop."""
        assert play_interactive(bracket, scripted(['q'])) is None
        assert 'Winners Round of 128' in capsys.readouterr().out

    def test_pick_and_undo(self, bracket, capsys):
        """Undo and bad answers are reported."""
        answers = ['2', 'u', 'u', 'x', 'q']
        assert play_interactive(bracket, scripted(answers)) is None
        out = capsys.readouterr().out
        assert 'Nothing to undo.' in out
        assert 'Please answer 1, 2, u or q.' in out

    @pytest.mark.slow
    def test_plays_to_the_end(self, bracket):
        """Answering 1 every time finishes the bracket."""
        state = play_interactive(bracket, lambda prompt: '1')
        assert state.current_match is None
        assert len(state.winners) == 5


class TestMain:
    """Tests for main()."""

    @pytest.mark.slow
    def test_auto_run_with_export(self, catalog_file, tmp_path, capsys):
        """An auto run prints and exports the top five."""
        export_path = tmp_path / "top5.yaml"
        code = main(['--catalog', str(catalog_file), '--seed', '1', '--auto',
                     '--export', str(export_path), '--label', 'Demo'])
        assert code == 0
        out = capsys.readouterr().out
        assert '--- Your Top Choices ---' in out
        assert '#5 ' in out
        data = yaml.safe_load(export_path.read_text(encoding='utf-8'))
        assert data['label'] == 'Demo'
        assert len(data['results']) == 5

    @pytest.mark.slow
    def test_auto_run_csv_export(self, catalog_file, tmp_path):
        """A .csv export path writes CSV."""
        export_path = tmp_path / "top5.csv"
        assert main(['--catalog', str(catalog_file), '--auto', '--export', str(export_path)]) == 0
        assert export_path.read_text(encoding='utf-8').startswith('place,id,title,description')

    def test_bad_catalog(self, tmp_path, capsys):
        """A missing catalog exits with 1."""
        code = main(['--catalog', str(tmp_path / "missing.yaml"), '--auto'])
        assert code == 1
        assert 'Error:' in capsys.readouterr().err

    def test_quit_interactive(self, catalog_file, capsys):
        """Quitting reports the bracket as abandoned."""
        code = main(['--catalog', str(catalog_file), '--seed', '1'], input_fn=scripted(['q']))
        assert code == 0
        assert 'Bracket abandoned.' in capsys.readouterr().out
