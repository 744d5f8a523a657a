"""
Display and logging utilities for cinescout.
Handles colored output, progress indicators, and formatting.
"""

import sys
import re
import logging
from typing import Dict, List, Optional

# ANSI color codes
RED = '\033[91m'
GREEN = '\033[92m'
YELLOW = '\033[93m'
CYAN = '\033[96m'
RESET = '\033[0m'

# ANSI pattern for stripping color codes
ANSI_PATTERN = re.compile(r'\x1b\[[0-9;]*m')

LOGGER_NAME = 'cinescout'


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels"""

    LEVEL_COLORS = {
        logging.DEBUG: CYAN,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, '')
        original = record.levelname
        record.levelname = f"{color}{record.levelname}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(debug: bool = False, config: dict = None) -> logging.Logger:
    """
    Configure logging for the command line tools.

    Args:
        debug: If True, set level to DEBUG. Otherwise use config or default to INFO.
        config: Optional config dict that may contain logging.level setting.

    Returns:
        Configured logger instance.
    """
    if debug:
        level = logging.DEBUG
    elif config and (config.get('logging') or {}).get('level'):
        level_str = config['logging']['level'].upper()
        level = getattr(logging, level_str, logging.INFO)
    else:
        level = logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter_class = ColoredFormatter if sys.stderr.isatty() else logging.Formatter
    handler.setFormatter(formatter_class(
        fmt='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Remove existing handlers to avoid duplicates
    root_logger.handlers = []
    root_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    return logger


def print_status(message: str, level: str = "info"):
    """Print a status message with appropriate color and log it"""
    logger = logging.getLogger(LOGGER_NAME)
    if level == "success":
        print(f"{GREEN}✓ {message}{RESET}")
        logger.debug(message)
    elif level == "warning":
        log_warning(message)
    elif level == "error":
        log_error(message)
    else:
        print(message)
        logger.debug(message)


def log_warning(message: str):
    """Log warning and print with yellow color"""
    logging.getLogger(LOGGER_NAME).debug(message)
    print(f"{YELLOW}{message}{RESET}")


def log_error(message: str):
    """Log error and print with red color"""
    logging.getLogger(LOGGER_NAME).debug(message)
    print(f"{RED}{message}{RESET}", file=sys.stderr)


def show_progress(prefix: str, current: int, total: int):
    """
    Display progress indicator on same line.

    Args:
        prefix: Text prefix for progress display
        current: Current item number
        total: Total number of items
    """
    pct = int((current / total) * 100) if total > 0 else 0
    msg = f"\r{CYAN}{prefix} {current}/{total} ({pct}%){RESET}"
    sys.stdout.write(msg)
    sys.stdout.flush()
    if current == total:
        sys.stdout.write("\n")


def _year_of(release_date: Optional[str]) -> str:
    return release_date[:4] if release_date else ''


def format_recommendation(
    rec: Dict,
    index: int = None,
    show_summary: bool = True,
) -> str:
    """
    Format a recommendation for display output.

    Args:
        rec: Dict with title, release_date, score, genres, matches, providers, link
        index: Optional 1-based index for numbered lists
        show_summary: Whether to include the overview

    Returns:
        Formatted string for display
    """
    lines = []

    title = rec.get('title', 'Unknown')
    year = _year_of(rec.get('release_date'))
    score = rec.get('score')

    title_line = f"{index}. {CYAN}{title}{RESET}" if index else f"{CYAN}{title}{RESET}"
    if year:
        title_line += f" ({year})"
    if score:
        title_line += f" - Score: {YELLOW}{score}{RESET}"
    lines.append(title_line)

    genres = rec.get('genres', [])
    if genres:
        lines.append(f"  {YELLOW}Genres:{RESET} {', '.join(genres)}")

    matches = rec.get('matches') or {}
    matched = [f"{dim}: {', '.join(values[:3])}" for dim, values in matches.items() if values and dim != 'keywords']
    if matched:
        lines.append(f"  {YELLOW}Matched:{RESET} {'; '.join(matched)}")

    providers = rec.get('providers', [])
    if providers:
        lines.append(f"  {YELLOW}Stream on:{RESET} {', '.join(providers)}")

    if show_summary:
        summary = rec.get('overview', '')
        if summary:
            if len(summary) > 200:
                summary = summary[:197] + "..."
            lines.append(f"  {summary}")

    link = rec.get('link')
    if link:
        lines.append(f"  {CYAN}{link}{RESET}")

    return '\n'.join(lines)


def print_batch_failures(label: str, failures: List) -> None:
    """
    Summarize skipped items from a batch run.

    Args:
        label: What the batch was doing (e.g., "taste profile")
        failures: ItemResult objects that did not succeed
    """
    if not failures:
        return
    log_warning(f"{len(failures)} item(s) skipped during {label}:")
    for failure in failures[:10]:
        print(f"  - {failure.item}: {failure.reason}")
    if len(failures) > 10:
        print(f"  ... and {len(failures) - 10} more")
