#!/usr/bin/env python3
"""
scripts/prune_log.py — Remove entries from the watch log

Usage:
    python scripts/prune_log.py watch_log.txt --title "Dune" --year 2021   # drop every Dune (2021) line
    python scripts/prune_log.py watch_log.txt --title "Alien"              # drop lines with no year only
    python scripts/prune_log.py watch_log.txt --all                        # delete the whole log

Titles are matched against the cleaned title, case-insensitively.
"""

import sys
import argparse
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from watchlog.history import delete_log, delete_log_entries

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Remove entries from the watch log')
    parser.add_argument('log_path', type=Path, help='Watch log to edit')
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--title', help='Cleaned title to remove')
    group.add_argument('--all', action='store_true', help='Delete the whole log file')
    parser.add_argument('--year', type=int, help='Release year that must match (omit for entries without one)')
    args = parser.parse_args(argv)

    try:
        if args.all:
            delete_log(args.log_path)
            return 0
        removed = delete_log_entries(args.log_path, args.title, args.year)
    except OSError as e:
        logger.error(f"Could not edit {args.log_path}: {e}")
        return 1

    if not removed:
        logger.info(f"No entries matched '{args.title}' ({args.year})")
    return 0


if __name__ == '__main__':
    sys.exit(main())
