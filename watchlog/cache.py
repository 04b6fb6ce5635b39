#!/usr/bin/env python3
"""
Persistent JSON cache of TMDb lookups

File format: one JSON object, cache key → null (looked up, no match) or a
movie record. A missing or corrupt file is an empty cache; it only forces
re-fetching, never blocks enrichment.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict

from watchlog.tmdb import TMDbMovie

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheHit:
    """A key that was looked up before; movie is None when nothing matched"""
    movie: Optional[TMDbMovie]


class MovieCache:
    """Insert-only memo of (title, year) lookups, persisted as JSON"""

    def __init__(self, entries: Optional[Dict[str, Optional[TMDbMovie]]] = None):
        self._entries: Dict[str, Optional[TMDbMovie]] = dict(entries or {})
        self.cache_hits = 0
        self.cache_misses = 0

    @classmethod
    def load(cls, path: Path) -> 'MovieCache':
        """Load cache from JSON file; any failure gives an empty cache"""
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            entries = {
                str(key): (None if value is None else TMDbMovie.from_dict(value))
                for key, value in data.items()
            }
        except FileNotFoundError:
            return cls()
        except Exception as e:
            logger.warning(f"Could not load cache {path}: {e}. Starting fresh.")
            return cls()

        logger.info(f"Loaded movie cache with {len(entries)} entries")
        return cls(entries)

    def save(self, path: Path):
        """
        Write the cache to path via a temp file + rename.

        Raises OSError on failure; the target is never left half-written.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        payload = {
            key: (None if movie is None else movie.to_dict())
            for key, movie in self._entries.items()
        }

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix='.tmp', dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

        logger.debug(f"Saved movie cache with {len(self._entries)} entries")

    def get(self, key: str) -> Optional[CacheHit]:
        """None: never looked up. CacheHit: looked up (movie may be None)."""
        if key not in self._entries:
            self.cache_misses += 1
            return None
        self.cache_hits += 1
        return CacheHit(self._entries[key])

    def insert(self, key: str, movie: Optional[TMDbMovie]) -> bool:
        """Record a lookup result; the first result for a key wins. Returns True if stored."""
        if key in self._entries:
            return False
        self._entries[key] = movie
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict:
        """Get cache performance statistics"""
        total = self.cache_hits + self.cache_misses
        hit_rate = (self.cache_hits / total * 100) if total > 0 else 0

        return {
            'hits': self.cache_hits,
            'misses': self.cache_misses,
            'total_queries': total,
            'hit_rate': hit_rate,
            'cache_size': len(self._entries)
        }
