#!/usr/bin/env python3
"""
Test suite for watchlog/cache.py — three-valued lookup and persistence
"""

import json
import pytest
import sys
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent))

from watchlog.cache import MovieCache, CacheHit
from watchlog.tmdb import TMDbMovie


DUNE = TMDbMovie(id=438631, title="Dune", release_date="2021-09-15", poster_path="/d5NXSklXo0qyIYkgV94XAgMIckC.jpg")


class TestThreeValuedLookup:
    """Never looked up vs looked up with no match vs match"""

    def test_absent(self):
        assert MovieCache().get("dune|2021") is None

    def test_present_no_match(self):
        cache = MovieCache()
        cache.insert("nothing|1999", None)
        assert cache.get("nothing|1999") == CacheHit(None)

    def test_present_match(self):
        cache = MovieCache()
        cache.insert("dune|2021", DUNE)
        hit = cache.get("dune|2021")
        assert hit is not None
        assert hit.movie == DUNE

    def test_insert_only(self):
        cache = MovieCache()
        assert cache.insert("dune|2021", None) is True
        assert cache.insert("dune|2021", DUNE) is False
        assert cache.get("dune|2021").movie is None

    def test_contains_and_len(self):
        cache = MovieCache({"a": None, "b": DUNE})
        assert "a" in cache
        assert "c" not in cache
        assert len(cache) == 2

    def test_stats(self):
        cache = MovieCache({"a": None})
        cache.get("a")
        cache.get("b")
        stats = cache.get_stats()
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == 50
        assert stats['cache_size'] == 1


class TestLoad:
    """Loading never fails"""

    def test_missing_file(self, tmp_path):
        assert len(MovieCache.load(tmp_path / 'cache.json')) == 0

    def test_corrupt_json(self, tmp_path):
        path = tmp_path / 'cache.json'
        path.write_text("{not json", encoding='utf-8')
        assert len(MovieCache.load(path)) == 0

    def test_wrong_root_type(self, tmp_path):
        path = tmp_path / 'cache.json'
        path.write_text("[1, 2, 3]", encoding='utf-8')
        assert len(MovieCache.load(path)) == 0

    def test_malformed_record(self, tmp_path):
        path = tmp_path / 'cache.json'
        path.write_text(json.dumps({"dune|2021": {"title": "Dune"}}), encoding='utf-8')
        assert len(MovieCache.load(path)) == 0

    def test_directory_path(self, tmp_path):
        assert len(MovieCache.load(tmp_path)) == 0

    def test_valid_file(self, tmp_path):
        path = tmp_path / 'cache.json'
        path.write_text(json.dumps({
            "dune|2021": {"id": 438631, "title": "Dune", "poster_path": None},
            "nothing": None,
        }), encoding='utf-8')
        cache = MovieCache.load(path)
        assert cache.get("dune|2021").movie.id == 438631
        assert cache.get("nothing") == CacheHit(None)


class TestSave:
    """Persistence"""

    def test_round_trip_keeps_null_entries(self, tmp_path):
        path = tmp_path / 'cache.json'
        cache = MovieCache()
        cache.insert("dune|2021", DUNE)
        cache.insert("nothing", None)
        cache.save(path)

        data = json.loads(path.read_text(encoding='utf-8'))
        assert data["nothing"] is None
        assert data["dune|2021"]["id"] == 438631
        assert data["dune|2021"]["original_title"] is None

        reloaded = MovieCache.load(path)
        assert reloaded.get("dune|2021").movie == DUNE
        assert reloaded.get("nothing") == CacheHit(None)

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / 'nested' / 'dir' / 'cache.json'
        MovieCache({"a": None}).save(path)
        assert path.exists()

    def test_failed_write_leaves_old_file(self, tmp_path):
        path = tmp_path / 'cache.json'
        path.write_text('{"old": null}', encoding='utf-8')

        with patch('watchlog.cache.os.replace', side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                MovieCache({"new": None}).save(path)

        assert json.loads(path.read_text(encoding='utf-8')) == {"old": None}
        assert [p.name for p in tmp_path.iterdir()] == ['cache.json']

    def test_unwritable_target_raises(self, tmp_path):
        blocker = tmp_path / 'file'
        blocker.write_text("x", encoding='utf-8')
        with pytest.raises(OSError):
            MovieCache().save(blocker / 'cache.json')
