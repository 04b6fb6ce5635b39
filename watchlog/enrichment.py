#!/usr/bin/env python3
"""
watchlog/enrichment.py - Attach TMDb metadata to parsed watch entries

Entries are processed one at a time, in log order: a lookup made for an
early entry lands in the cache and serves every later repeat of the same
(title, year). Any lookup failure aborts the whole run; nothing is skipped
silently.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from watchlog.cache import MovieCache
from watchlog.constants import DEFAULT_POSTER_SIZE
from watchlog.parser import WatchEntry
from watchlog.tmdb import TMDbMovie

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrichedEntry:
    """A WatchEntry plus optional TMDb metadata and its derived URLs"""
    watched_at: Optional[str]
    raw_title: str
    cleaned_title: str
    release_year: Optional[int] = None
    movie: Optional[TMDbMovie] = None
    tmdb_url: Optional[str] = None
    poster_url: Optional[str] = None

    @classmethod
    def from_watch(cls, entry: WatchEntry, movie: Optional[TMDbMovie],
                   poster_size: str = DEFAULT_POSTER_SIZE) -> 'EnrichedEntry':
        return cls(
            watched_at=entry.watched_at,
            raw_title=entry.raw_title,
            cleaned_title=entry.cleaned_title,
            release_year=entry.release_year,
            movie=movie,
            tmdb_url=movie.tmdb_url() if movie else None,
            poster_url=movie.poster_url(poster_size) if movie else None,
        )


def cache_key(title: str, year: Optional[int]) -> str:
    """Lowercased, trimmed title, suffixed with |<year> when the year is known"""
    key = title.strip().lower()
    if year is not None:
        key = f"{key}|{year}"
    return key


def enrich_entries(entries: Iterable[WatchEntry], client, cache: MovieCache,
                   poster_size: str = DEFAULT_POSTER_SIZE) -> List[EnrichedEntry]:
    """
    Enrich entries in order, consulting cache before client.

    client needs best_match(title, year) -> Optional[TMDbMovie]; its
    TMDbError propagates unchanged and ends the run.
    """
    enriched = []
    for entry in entries:
        movie = None
        if entry.cleaned_title.strip():
            key = cache_key(entry.cleaned_title, entry.release_year)
            hit = cache.get(key)
            if hit is not None:
                logger.debug(f"Cache hit: {key}")
                movie = hit.movie
            else:
                logger.debug(f"Cache miss: {key} - querying TMDb")
                movie = client.best_match(entry.cleaned_title, entry.release_year)
                cache.insert(key, movie)

        enriched.append(EnrichedEntry.from_watch(entry, movie, poster_size))
    return enriched
