"""
Tests for utils/display.py - Display and logging utilities.
"""

import logging
from unittest.mock import patch

from recommenders.base import ItemResult
from utils.display import (
    CYAN, GREEN, RED, RESET, YELLOW,
    ANSI_PATTERN,
    ColoredFormatter,
    format_recommendation,
    log_error,
    log_warning,
    print_batch_failures,
    print_status,
    setup_logging,
    show_progress,
)


def _record(level):
    return logging.LogRecord(
        name='test', level=level, pathname='', lineno=0,
        msg='Test message', args=(), exc_info=None
    )


class TestColoredFormatter:
    """Tests for ColoredFormatter class."""

    def test_colors_each_level(self):
        formatter = ColoredFormatter(fmt='[%(levelname)s] %(message)s')
        for level, color in ((logging.DEBUG, CYAN), (logging.INFO, GREEN),
                             (logging.WARNING, YELLOW), (logging.ERROR, RED)):
            assert formatter.format(_record(level)).startswith(f"[{color}")

    def test_restores_levelname(self):
        """Other handlers must still see the plain level name."""
        record = _record(logging.WARNING)
        ColoredFormatter().format(record)
        assert record.levelname == 'WARNING'


class TestSetupLogging:
    """Tests for setup_logging() function."""

    def test_debug_mode(self):
        assert setup_logging(debug=True).level == logging.DEBUG

    def test_default_info_level(self):
        assert setup_logging(debug=False).level == logging.INFO

    def test_config_level(self):
        logger = setup_logging(debug=False, config={'logging': {'level': 'warning'}})
        assert logger.level == logging.WARNING

    def test_invalid_config_level_defaults_to_info(self):
        logger = setup_logging(debug=False, config={'logging': {'level': 'invalid_level'}})
        assert logger.level == logging.INFO

    def test_returns_cinescout_logger(self):
        assert setup_logging().name == 'cinescout'

    def test_quiets_http_loggers(self):
        setup_logging(debug=True)
        assert logging.getLogger('urllib3').level == logging.WARNING


class TestPrintStatus:
    """Tests for print_status() and log helpers."""

    def test_success_status(self, capsys):
        print_status("Operation completed", level="success")
        assert "Operation completed" in capsys.readouterr().out

    @patch('utils.display.log_warning')
    def test_warning_status(self, mock_log_warning):
        print_status("Warning message", level="warning")
        mock_log_warning.assert_called_once_with("Warning message")

    def test_log_error_goes_to_stderr(self, capsys):
        log_error("Broken")
        captured = capsys.readouterr()
        assert "Broken" in captured.err
        assert captured.out == ""

    def test_log_warning_goes_to_stdout(self, capsys):
        log_warning("Careful")
        assert "Careful" in capsys.readouterr().out


class TestShowProgress:
    """Tests for show_progress() function."""

    def test_shows_progress(self, capsys):
        show_progress("Processing", 5, 10)
        out = capsys.readouterr().out
        assert "5/10" in out
        assert "50%" in out

    def test_newline_when_done(self, capsys):
        show_progress("Done", 10, 10)
        assert capsys.readouterr().out.endswith("\n")

    def test_handles_zero_total(self, capsys):
        show_progress("Empty", 0, 0)
        assert "0%" in capsys.readouterr().out


class TestFormatRecommendation:
    """Tests for format_recommendation() function."""

    def _rec(self, **overrides):
        rec = {
            'title': 'Heat',
            'release_date': '1995-12-15',
            'score': 7,
            'genres': ['Crime', 'Drama'],
            'matches': {'genres': ['Crime'], 'actors': ['Al Pacino'], 'keywords': ['heist']},
            'providers': ['Netflix'],
            'overview': 'A thief and a detective.',
            'link': 'https://tmdb/949',
        }
        rec.update(overrides)
        return rec

    def test_full_output(self):
        plain = ANSI_PATTERN.sub('', format_recommendation(self._rec(), index=1))
        lines = plain.split('\n')
        assert lines[0] == "1. Heat (1995) - Score: 7"
        assert "Genres: Crime, Drama" in plain
        assert "Matched: genres: Crime; actors: Al Pacino" in plain
        assert "Stream on: Netflix" in plain
        assert "https://tmdb/949" in plain

    def test_keywords_not_listed_as_matches(self):
        plain = ANSI_PATTERN.sub('', format_recommendation(self._rec()))
        assert 'heist' not in plain

    def test_long_summary_truncated(self):
        plain = ANSI_PATTERN.sub('', format_recommendation(self._rec(overview='x' * 300)))
        assert 'x' * 197 + '...' in plain
        assert 'x' * 198 not in plain

    def test_summary_hidden(self):
        plain = format_recommendation(self._rec(), show_summary=False)
        assert 'A thief' not in plain

    def test_minimal_record(self):
        assert ANSI_PATTERN.sub('', format_recommendation({'title': 'Untitled'})) == 'Untitled'


class TestPrintBatchFailures:
    """Tests for print_batch_failures() function."""

    def test_nothing_for_no_failures(self, capsys):
        print_batch_failures("scoring", [])
        assert capsys.readouterr().out == ""

    def test_lists_failures(self, capsys):
        print_batch_failures("scoring", [ItemResult('Cats', False, 'no TMDB match')])
        out = capsys.readouterr().out
        assert "1 item(s) skipped during scoring" in out
        assert "Cats: no TMDB match" in out

    def test_caps_listing(self, capsys):
        failures = [ItemResult(f'M{i}', False, 'boom') for i in range(12)]
        print_batch_failures("scoring", failures)
        assert "... and 2 more" in capsys.readouterr().out
