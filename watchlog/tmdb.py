#!/usr/bin/env python3
"""
TMDb search client for watch-log enrichment

Unlike a best-effort lookup, every failure here is raised: the enrichment
run stops on the first lookup error instead of caching a bogus "no match".
"""

import logging
import os
from dataclasses import dataclass, asdict
from typing import Optional, Dict, List

import requests

from watchlog.constants import (
    TMDB_SEARCH_URL, TMDB_IMAGE_BASE, TMDB_MOVIE_BASE, DEFAULT_REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)


class TMDbError(Exception):
    """Base class for TMDb lookup failures"""


class MissingApiKeyError(TMDbError):
    def __init__(self):
        super().__init__("TMDb API key is missing (set TMDB_API_KEY or tmdb_api_key in config)")


class TMDbRequestError(TMDbError):
    """Transport-level failure (DNS, connection refused, timeout)"""


class TMDbHTTPError(TMDbError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"TMDb returned status {status_code}: {body}")


class TMDbResponseError(TMDbError):
    """Response body is not the JSON shape search/movie promises"""


@dataclass(frozen=True)
class TMDbMovie:
    """One TMDb search result"""
    id: int
    title: str
    original_title: Optional[str] = None
    overview: Optional[str] = None
    release_date: Optional[str] = None
    poster_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'TMDbMovie':
        """
        Build from a TMDb result or a cached record.

        Raises ValueError/TypeError/KeyError when 'id' or 'title' is unusable.
        """
        if not isinstance(data, dict):
            raise TypeError(f"expected object, got {type(data).__name__}")
        movie_id = data['id']
        if isinstance(movie_id, bool) or not isinstance(movie_id, int):
            raise ValueError(f"invalid TMDb id: {movie_id!r}")
        title = data.get('title')
        if not isinstance(title, str):
            raise ValueError(f"invalid TMDb title: {title!r}")
        return cls(
            id=movie_id,
            title=title,
            original_title=_optional_str(data.get('original_title')),
            overview=_optional_str(data.get('overview')),
            release_date=_optional_str(data.get('release_date')),
            poster_path=_optional_str(data.get('poster_path')),
        )

    def to_dict(self) -> Dict:
        return asdict(self)

    def tmdb_url(self) -> str:
        return f"{TMDB_MOVIE_BASE}{self.id}"

    def poster_url(self, size: str) -> Optional[str]:
        if not self.poster_path:
            return None
        return f"{TMDB_IMAGE_BASE}{size}/{self.poster_path.lstrip('/')}"


def _optional_str(value) -> Optional[str]:
    return value if isinstance(value, str) else None


class TMDbClient:
    """Interface to The Movie Database search API"""

    def __init__(self, api_key: str, timeout: float = DEFAULT_REQUEST_TIMEOUT,
                 search_url: str = TMDB_SEARCH_URL):
        if not api_key or not api_key.strip():
            raise MissingApiKeyError()
        self.api_key = api_key.strip()
        self.timeout = timeout
        self.search_url = search_url
        self.queries = 0

    @classmethod
    def from_env(cls, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> 'TMDbClient':
        """Build a client from TMDB_API_KEY"""
        return cls(os.environ.get('TMDB_API_KEY', ''), timeout=timeout)

    def search_movie(self, title: str, year: Optional[int] = None) -> List[TMDbMovie]:
        """
        Search TMDb for title, best match first.

        Returns [] for an empty title without touching the network.
        Raises TMDbError subclasses on any failure.
        """
        query = title.strip()
        if not query:
            return []

        params = {
            'api_key': self.api_key,
            'query': query,
            'include_adult': 'false',
        }
        if year:
            params['year'] = year

        self.queries += 1
        logger.debug(f"TMDb search: '{query}' ({year})")

        try:
            response = requests.get(
                self.search_url,
                params=params,
                headers={'Accept': 'application/json'},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise TMDbRequestError(f"TMDb request failed for '{query}': {e}") from e

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise TMDbHTTPError(response.status_code, response.text) from e

        try:
            data = response.json()
        except ValueError as e:
            raise TMDbResponseError(f"TMDb response is not JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get('results'), list):
            raise TMDbResponseError("TMDb response has no 'results' list")

        try:
            movies = [TMDbMovie.from_dict(item) for item in data['results']]
        except (KeyError, TypeError, ValueError) as e:
            raise TMDbResponseError(f"Malformed TMDb result: {e}") from e

        logger.debug(f"TMDb: '{query}' ({year}) → {len(movies)} result(s)")
        return movies

    def best_match(self, title: str, year: Optional[int] = None) -> Optional[TMDbMovie]:
        """Top-ranked result, or None. TMDb's ordering is trusted, never re-ranked."""
        results = self.search_movie(title, year)
        if not results:
            logger.info(f"TMDb: no results for '{title}' ({year})")
            return None
        match = results[0]
        logger.info(f"TMDb: '{title}' ({year}) → '{match.title}' id:{match.id}")
        return match
