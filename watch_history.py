#!/usr/bin/env python3
"""
watch_history.py - Watch History Enrichment

NEVER edits the watch log. Only reads it, updates the movie cache and writes CSV.

Pipeline:
1. Read log → WatchEntry per non-blank line (timestamp + file stem)
2. Normalize each stem → cleaned title + release year
3. Cache lookup → (title|year) key, cached "no match" is authoritative
4. TMDb search on cache miss → top-ranked result, stored even when empty
5. Persist cache → failure is a warning, not an error
"""

import sys
import csv
import logging
import argparse
from pathlib import Path
from typing import List

from watchlog.config import load_settings
from watchlog.constants import DEFAULT_LOG_NAME
from watchlog.enrichment import EnrichedEntry
from watchlog.history import load_enriched_history, default_cache_path
from watchlog.parser import read_log
from watchlog.tmdb import TMDbError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

MANIFEST_FIELDS = [
    'watched_at', 'raw_title', 'cleaned_title', 'release_year',
    'tmdb_id', 'tmdb_title', 'release_date', 'tmdb_url', 'poster_url',
]


def write_manifest(entries: List[EnrichedEntry], output_path: Path):
    """Write enriched entries to a properly-quoted CSV manifest"""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=MANIFEST_FIELDS, quoting=csv.QUOTE_ALL)
        writer.writeheader()

        for entry in entries:
            movie = entry.movie
            writer.writerow({
                'watched_at': entry.watched_at or '',
                'raw_title': entry.raw_title,
                'cleaned_title': entry.cleaned_title,
                'release_year': entry.release_year or '',
                'tmdb_id': movie.id if movie else '',
                'tmdb_title': movie.title if movie else '',
                'release_date': (movie.release_date or '') if movie else '',
                'tmdb_url': entry.tmdb_url or '',
                'poster_url': entry.poster_url or '',
            })

    logger.info(f"Wrote {len(entries)} entries to {output_path}")


def print_entries(entries):
    """Print one line per entry: timestamp, title and year"""
    for entry in entries:
        year = f" ({entry.release_year})" if entry.release_year else ''
        if entry.watched_at:
            print(f"{entry.watched_at}\t{entry.cleaned_title}{year}")
        else:
            print(f"{entry.cleaned_title}{year}")


def print_stats(entries: List[EnrichedEntry], cache_stats: dict):
    """Print enrichment statistics"""
    total = len(entries)
    matched = sum(1 for e in entries if e.movie)
    untitled = sum(1 for e in entries if not e.cleaned_title)
    unmatched = total - matched - untitled

    print("\n" + "=" * 60)
    print("WATCH HISTORY STATISTICS")
    print("=" * 60)
    print(f"Entries read:     {total}")
    for label, count in [('Matched', matched), ('No match', unmatched), ('Empty title', untitled)]:
        pct = (count / total * 100) if total > 0 else 0
        print(f"  {label:15s}: {count:4d} ({pct:5.1f}%)")

    if cache_stats:
        print(f"\nCache: {cache_stats['cache_size']} entries, "
              f"{cache_stats['hits']} hits / {cache_stats['misses']} misses "
              f"({cache_stats['hit_rate']:.0f}% hit rate)")
    print("=" * 60)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Enrich a media-player watch log with TMDb metadata',
        epilog="""
NEVER edits the watch log. Only reads it and writes CSV.

Examples:
  python watch_history.py ~/.local/share/vlc/.goo_watch_log.txt
  python watch_history.py watch_log.txt --no-api
  python watch_history.py watch_log.txt --output output/history.csv
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('log_path', type=Path, nargs='?',
                        help=f'Watch log (default: GOO_LOG_PATH, config log_path, or ./{DEFAULT_LOG_NAME})')
    parser.add_argument('--cache', type=Path, dest='cache_path',
                        help='Movie cache JSON (default: .goo_cache.json beside the log)')
    parser.add_argument('--config', type=Path,
                        help='YAML configuration file (default: config.yaml if present)')
    parser.add_argument('--output', '-o', type=Path,
                        help='Write enriched entries to this CSV manifest')
    parser.add_argument('--api-key', dest='api_key',
                        help='TMDb API key (overrides TMDB_API_KEY and config)')
    parser.add_argument('--no-api', action='store_true',
                        help='Parse and print the log only (offline, no cache)')

    args = parser.parse_args(argv)

    if args.config is not None and not args.config.exists():
        logger.error(f"Config file not found: {args.config}")
        return 1

    try:
        settings = load_settings(args.config or Path('config.yaml'),
                                 required=args.config is not None)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load config: {e}")
        return 1

    log_path = args.log_path or settings.log_path or Path(DEFAULT_LOG_NAME)

    if args.no_api:
        try:
            entries = read_log(log_path)
        except OSError as e:
            logger.error(f"Failed to read log {log_path}: {e}")
            return 1
        print_entries(entries)
        return 0

    cache_path = args.cache_path or settings.cache_path or default_cache_path(log_path)
    logger.info(f"Enriching: {log_path} (cache: {cache_path})")

    try:
        history = load_enriched_history(
            log_path,
            cache_path=cache_path,
            tmdb_api_key=args.api_key or settings.tmdb_api_key,
            poster_size=settings.poster_size,
            request_timeout=settings.request_timeout,
        )
    except OSError as e:
        logger.error(f"Failed to read log {log_path}: {e}")
        return 1
    except TMDbError as e:
        logger.error(f"Enrichment aborted: {e}")
        return 1

    if history.cache_warning:
        logger.warning(history.cache_warning)

    if args.output:
        write_manifest(history.entries, args.output)
    else:
        print_entries(history.entries)

    print_stats(history.entries, history.cache_stats)
    return 0


if __name__ == '__main__':
    sys.exit(main())
