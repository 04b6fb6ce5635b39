#!/usr/bin/env python3
"""
Invalidate cached "no match" entries so the next run re-queries TMDb.
Run this AFTER changing the fluff vocabulary or the title normalizer.

Usage:
    python scripts/invalidate_null_cache.py                      # drop null entries from .goo_cache.json
    python scripts/invalidate_null_cache.py --cache path.json    # a different cache file
    python scripts/invalidate_null_cache.py --validate-matches   # report suspect title mismatches
"""
import sys
import argparse
import difflib
import json
import shutil
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from watchlog.constants import DEFAULT_CACHE_NAME


def backup_cache(cache_path: Path, backup_dir: Path = None) -> Path:
    """Copy the cache to cache_backups/ before modification"""
    cache_path = Path(cache_path)
    backup_dir = Path(backup_dir) if backup_dir else cache_path.parent / 'cache_backups'
    backup_dir.mkdir(exist_ok=True, parents=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    backup_path = backup_dir / f"{cache_path.stem.lstrip('.')}_backup_{timestamp}.json"

    shutil.copy2(cache_path, backup_path)
    print(f"✓ Backed up to {backup_path}")
    return backup_path


def invalidate_null_entries(cache_path: Path, dry_run: bool = False) -> list:
    """Remove null (looked up, nothing found) entries. Returns the removed keys."""
    with open(cache_path, encoding='utf-8') as f:
        cache = json.load(f)

    original_count = len(cache)
    removed = [key for key, value in cache.items() if value is None]

    if not dry_run:
        for key in removed:
            del cache[key]
        with open(cache_path, 'w', encoding='utf-8') as f:
            json.dump(cache, f, indent=2, ensure_ascii=False)

    action = "Would remove" if dry_run else "Removed"
    print(f"✓ {action} {len(removed)} entries from {cache_path}")
    print(f"  Before: {original_count} entries")
    print(f"  After: {original_count - len(removed)} entries")

    return removed


def _title_similarity(a: str, b: str) -> float:
    """Normalised title similarity using difflib SequenceMatcher."""
    return difflib.SequenceMatcher(None, a.lower().strip(), b.lower().strip()).ratio()


def validate_matches(cache_path: Path, threshold: float = 0.6) -> list:
    """
    Report cached matches whose TMDb title is far from the query title in
    the cache key. Reports only — does not delete.

    Cache key format: "query title|year" (year optional).
    """
    with open(cache_path, encoding='utf-8') as f:
        cache = json.load(f)

    suspect = []
    skipped_null = 0

    for key, value in cache.items():
        if value is None:
            skipped_null += 1
            continue

        query_title = key.split('|', 1)[0]
        titles = [t for t in (value.get('title'), value.get('original_title')) if t]
        if not titles:
            continue

        sim = max(_title_similarity(query_title, t) for t in titles)
        if sim < threshold:
            suspect.append({
                'cache_key': key,
                'query_title': query_title,
                'cached_title': titles[0],
                'similarity': round(sim, 3),
                'tmdb_id': value.get('id'),
            })

    print(f"\nValidate-Matches Report: {cache_path}")
    print(f"  Total entries scanned: {len(cache)}")
    print(f"  Null entries skipped:  {skipped_null}")
    print(f"  Suspect entries (similarity < {threshold}): {len(suspect)}\n")

    suspect.sort(key=lambda x: x['similarity'])
    for entry in suspect:
        print(
            f"  [{entry['similarity']:.2f}] query='{entry['query_title']}' "
            f"→ cached='{entry['cached_title']}' "
            f"(tmdb_id={entry['tmdb_id']}, key='{entry['cache_key']}')"
        )

    return suspect


def main(argv=None):
    parser = argparse.ArgumentParser(description='Drop cached "no match" entries from the movie cache')
    parser.add_argument('--cache', type=Path, default=Path(DEFAULT_CACHE_NAME),
                        help=f'Movie cache JSON (default: ./{DEFAULT_CACHE_NAME})')
    parser.add_argument('--dry-run', action='store_true',
                        help='Report what would be removed without writing')
    parser.add_argument('--validate-matches', action='store_true',
                        help='Report cached titles that do not resemble their query')
    parser.add_argument('--threshold', type=float, default=0.6,
                        help='Similarity threshold for --validate-matches (default: 0.6)')
    args = parser.parse_args(argv)

    if not args.cache.exists():
        print(f"Cache not found at {args.cache}. Run watch_history.py first.")
        return 1

    if args.validate_matches:
        validate_matches(args.cache, args.threshold)
        return 0

    if not args.dry_run:
        backup_cache(args.cache)
    invalidate_null_entries(args.cache, dry_run=args.dry_run)
    return 0


if __name__ == '__main__':
    sys.exit(main())
