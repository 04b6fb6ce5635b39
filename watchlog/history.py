#!/usr/bin/env python3
"""
watchlog/history.py - End-to-end watch history loading and log editing

load_enriched_history() is the one call a front end needs: read the log,
load the cache, enrich, persist the cache. A cache that cannot be written
is reported as a warning next to the (still valid) entries.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from watchlog.cache import MovieCache
from watchlog.constants import DEFAULT_CACHE_NAME, DEFAULT_POSTER_SIZE, DEFAULT_REQUEST_TIMEOUT
from watchlog.enrichment import EnrichedEntry, enrich_entries
from watchlog.parser import LogReadError, parse_line, read_log
from watchlog.tmdb import TMDbClient

logger = logging.getLogger(__name__)


@dataclass
class EnrichedHistory:
    entries: List[EnrichedEntry]
    cache_path: Path
    cache_warning: Optional[str] = None
    cache_stats: Optional[dict] = None


def default_cache_path(log_path: Path) -> Path:
    """Cache file living beside the log"""
    return Path(log_path).parent / DEFAULT_CACHE_NAME


def save_cache(cache: MovieCache, cache_path: Path) -> Optional[str]:
    """Persist cache; return a warning string instead of raising on failure"""
    try:
        cache.save(cache_path)
    except OSError as e:
        return f"Could not save cache {cache_path}: {e}"
    return None


def load_enriched_history(log_path: Path, cache_path: Optional[Path] = None,
                          tmdb_api_key: Optional[str] = None,
                          poster_size: str = DEFAULT_POSTER_SIZE,
                          request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
                          client=None) -> EnrichedHistory:
    """
    Read, enrich and cache a watch log.

    Raises MissingApiKeyError when no key is given and TMDB_API_KEY is unset,
    OSError when an existing log cannot be read (LogReadError when it is not
    valid UTF-8), and any TMDbError raised by a lookup (the cache is not
    saved in that case). A failed cache save is returned as cache_warning,
    not logged or raised.
    """
    log_path = Path(log_path)
    cache_path = Path(cache_path) if cache_path else default_cache_path(log_path)

    if client is None:
        if tmdb_api_key:
            client = TMDbClient(tmdb_api_key, timeout=request_timeout)
        else:
            client = TMDbClient.from_env(timeout=request_timeout)

    entries = read_log(log_path)
    logger.info(f"Read {len(entries)} entries from {log_path}")

    cache = MovieCache.load(cache_path)
    enriched = enrich_entries(entries, client, cache, poster_size=poster_size)
    cache_warning = save_cache(cache, cache_path)

    return EnrichedHistory(
        entries=enriched,
        cache_path=cache_path,
        cache_warning=cache_warning,
        cache_stats=cache.get_stats(),
    )


def delete_log(log_path: Path):
    """Remove the log file; an already missing log is fine"""
    try:
        Path(log_path).unlink()
        logger.info(f"Deleted watch log {log_path}")
    except FileNotFoundError:
        pass


def delete_log_entries(log_path: Path, cleaned_title: str,
                       release_year: Optional[int] = None) -> int:
    """
    Drop every line whose parsed entry matches (cleaned_title, release_year).

    Title comparison is case-insensitive on trimmed titles; the year must
    match exactly (None only matches None). Other lines are kept verbatim.
    Returns the number of removed lines.

    Lines are split the way read_log() splits them, so characters such as
    U+2028 or form feeds stay inside their line.
    """
    target = cleaned_title.strip().lower()
    if not target:
        return 0

    log_path = Path(log_path)
    try:
        f = open(log_path, 'r', encoding='utf-8')
    except FileNotFoundError:
        return 0

    with f:
        try:
            lines = [line.rstrip('\r\n') for line in f]
        except UnicodeDecodeError as e:
            raise LogReadError(f"Watch log {log_path} is not valid UTF-8: {e}") from e

    kept = []
    removed = 0
    for line in lines:
        entry = parse_line(line)
        if (entry is not None
                and entry.cleaned_title.strip().lower() == target
                and entry.release_year == release_year):
            removed += 1
            continue
        kept.append(line)

    if not removed:
        return 0

    content = '\n'.join(kept)
    if content:
        content += '\n'
    with open(log_path, 'w', encoding='utf-8', newline='\n') as f:
        f.write(content)

    logger.info(f"Removed {removed} line(s) for '{cleaned_title}' ({release_year}) from {log_path}")
    return removed
