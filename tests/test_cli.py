#!/usr/bin/env python3
"""
Test suite for watch_history.py and the maintenance scripts
"""

import csv
import json
import pytest
import sys
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent.parent / 'scripts'))

import watch_history
import invalidate_null_cache
import prune_log
from watchlog.history import EnrichedHistory
from watchlog.enrichment import EnrichedEntry
from watchlog.tmdb import TMDbMovie, TMDbHTTPError


DUNE = TMDbMovie(id=438631, title="Dune", release_date="2021-09-15", poster_path="/dune.jpg")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv('GOO_LOG_PATH', raising=False)
    monkeypatch.delenv('TMDB_API_KEY', raising=False)
    # Keep a stray ./config.yaml from leaking into the run
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def log_path(tmp_path):
    path = tmp_path / 'watch_log.txt'
    path.write_text(
        "2025-01-01T10:00:00Z|/films/Dune.2021.1080p.mkv\n"
        "Alien.1979.720p.mkv\n",
        encoding='utf-8'
    )
    return path


def _history(log_path, warning=None):
    return EnrichedHistory(
        entries=[
            EnrichedEntry("2025-01-01T10:00:00Z", "Dune.2021.1080p", "Dune", 2021, DUNE,
                          DUNE.tmdb_url(), DUNE.poster_url('w342')),
            EnrichedEntry(None, "Alien.1979.720p", "Alien", 1979),
        ],
        cache_path=log_path.parent / '.goo_cache.json',
        cache_warning=warning,
        cache_stats={'hits': 0, 'misses': 2, 'total_queries': 2, 'hit_rate': 0, 'cache_size': 2},
    )


class TestWatchHistoryCli:

    def test_no_api_prints_entries(self, log_path, capsys):
        assert watch_history.main([str(log_path), '--no-api']) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == ["2025-01-01T10:00:00Z\tDune (2021)", "Alien (1979)"]

    def test_writes_manifest(self, log_path, tmp_path):
        output = tmp_path / 'out' / 'history.csv'
        with patch('watch_history.load_enriched_history', return_value=_history(log_path)) as mock_load:
            assert watch_history.main([str(log_path), '-o', str(output), '--api-key', 'k']) == 0

        assert mock_load.call_args[1]['tmdb_api_key'] == 'k'
        with open(output, newline='', encoding='utf-8') as f:
            rows = list(csv.DictReader(f))
        assert [r['cleaned_title'] for r in rows] == ["Dune", "Alien"]
        assert rows[0]['tmdb_id'] == '438631'
        assert rows[0]['poster_url'] == "https://image.tmdb.org/t/p/w342/dune.jpg"
        assert rows[1]['tmdb_id'] == ''
        assert rows[1]['watched_at'] == ''

    def test_cache_warning_does_not_fail(self, log_path):
        with patch('watch_history.load_enriched_history',
                   return_value=_history(log_path, warning="Could not save cache")):
            assert watch_history.main([str(log_path), '--api-key', 'k']) == 0

    def test_lookup_failure_exit_code(self, log_path):
        with patch('watch_history.load_enriched_history', side_effect=TMDbHTTPError(401, 'bad key')):
            assert watch_history.main([str(log_path), '--api-key', 'k']) == 1

    def test_invalid_utf8_log_exit_code(self, tmp_path):
        log = tmp_path / 'bad_log.txt'
        log.write_bytes(b"t1|Alien.1979.mkv\nt2|Caf\xe9.2001.mkv\n")
        assert watch_history.main([str(log), '--no-api']) == 1

    def test_invalid_utf8_log_exit_code_with_api(self, tmp_path):
        log = tmp_path / 'bad_log.txt'
        log.write_bytes(b"t|Caf\xe9.mkv\n")
        with patch('requests.get') as mock_get:
            assert watch_history.main([str(log), '--api-key', 'k']) == 1
            mock_get.assert_not_called()

    def test_cache_warning_logged_once(self, log_path, caplog):
        with patch('watchlog.cache.MovieCache.save', side_effect=OSError("read-only filesystem")), \
                patch('watchlog.tmdb.TMDbClient.best_match', return_value=None):
            with caplog.at_level('WARNING'):
                assert watch_history.main([str(log_path), '--api-key', 'k']) == 0

        warnings = [r for r in caplog.records if 'read-only filesystem' in r.getMessage()]
        assert len(warnings) == 1
        assert warnings[0].levelname == 'WARNING'

    def test_missing_key_exit_code(self, log_path):
        assert watch_history.main([str(log_path)]) == 1

    def test_missing_explicit_config(self, log_path, tmp_path):
        assert watch_history.main([str(log_path), '--config', str(tmp_path / 'nope.yaml')]) == 1

    def test_log_path_from_config(self, log_path, tmp_path, capsys):
        config = tmp_path / 'config.yaml'
        config.write_text(f"log_path: {log_path.as_posix()}\n", encoding='utf-8')
        assert watch_history.main(['--config', str(config), '--no-api']) == 0
        assert "Alien (1979)" in capsys.readouterr().out


class TestInvalidateNullCache:

    @pytest.fixture
    def cache_path(self, tmp_path):
        path = tmp_path / '.goo_cache.json'
        path.write_text(json.dumps({
            "dune|2021": DUNE.to_dict(),
            "nothing": None,
            "the matrix|1999": {"id": 13, "title": "Forrest Gump"},
        }), encoding='utf-8')
        return path

    def test_removes_null_entries(self, cache_path):
        removed = invalidate_null_cache.invalidate_null_entries(cache_path)
        assert removed == ["nothing"]
        assert set(json.loads(cache_path.read_text(encoding='utf-8'))) == {"dune|2021", "the matrix|1999"}

    def test_dry_run_keeps_file(self, cache_path):
        before = cache_path.read_text(encoding='utf-8')
        assert invalidate_null_cache.invalidate_null_entries(cache_path, dry_run=True) == ["nothing"]
        assert cache_path.read_text(encoding='utf-8') == before

    def test_main_backs_up(self, cache_path, tmp_path):
        assert invalidate_null_cache.main(['--cache', str(cache_path)]) == 0
        assert len(list((tmp_path / 'cache_backups').iterdir())) == 1

    def test_validate_matches(self, cache_path):
        suspect = invalidate_null_cache.validate_matches(cache_path)
        assert [s['cache_key'] for s in suspect] == ["the matrix|1999"]

    def test_missing_cache(self, tmp_path):
        assert invalidate_null_cache.main(['--cache', str(tmp_path / 'none.json')]) == 1


class TestPruneLog:

    def test_remove_title(self, log_path):
        assert prune_log.main([str(log_path), '--title', 'alien', '--year', '1979']) == 0
        assert "Alien" not in log_path.read_text(encoding='utf-8')

    def test_remove_all(self, log_path):
        assert prune_log.main([str(log_path), '--all']) == 0
        assert not log_path.exists()
