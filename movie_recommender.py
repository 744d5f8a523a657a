#!/usr/bin/env python3
"""
cinescout - movie recommendations from Letterboxd exports and TMDB.

Usage:
    python movie_recommender.py recommend
    python movie_recommender.py where "Paddington 2"
    python movie_recommender.py --help
"""

import sys

from utils.cli import main
from utils.config import __version__
from utils.display import CYAN, RESET


def run():
    print(f"{CYAN}cinescout v{__version__}{RESET}")
    print("-" * 50)
    sys.exit(main())


if __name__ == "__main__":
    run()
