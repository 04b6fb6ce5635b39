#!/usr/bin/env python3
"""
Configuration loading: YAML file, then environment, then CLI overrides

Example config.yaml:
  log_path: /home/me/.local/share/vlc/.goo_watch_log.txt
  cache_path: output/movie_cache.json
  tmdb_api_key: abc123
  poster_size: w500
  request_timeout: 10
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from watchlog.constants import DEFAULT_POSTER_SIZE, DEFAULT_REQUEST_TIMEOUT


@dataclass
class Settings:
    log_path: Optional[Path] = None
    cache_path: Optional[Path] = None
    tmdb_api_key: Optional[str] = None
    poster_size: str = DEFAULT_POSTER_SIZE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def load_config(config_path: Path) -> dict:
    """Load configuration from YAML file (empty file gives {})"""
    with open(config_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Config {config_path} must be a mapping, got {type(config).__name__}")
    return config


def _non_empty(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def load_settings(config_path: Optional[Path] = None, required: bool = False) -> Settings:
    """
    Build Settings from config_path plus GOO_LOG_PATH / TMDB_API_KEY.

    A missing config file is only an error when required is True.
    Environment values win over the file.
    """
    config = {}
    if config_path is not None:
        if Path(config_path).exists() or required:
            config = load_config(config_path)

    settings = Settings(
        poster_size=_non_empty(config.get('poster_size')) or DEFAULT_POSTER_SIZE,
        request_timeout=float(config.get('request_timeout') or DEFAULT_REQUEST_TIMEOUT),
        tmdb_api_key=_non_empty(config.get('tmdb_api_key')),
    )

    log_path = _non_empty(os.environ.get('GOO_LOG_PATH')) or _non_empty(config.get('log_path'))
    if log_path:
        settings.log_path = Path(log_path).expanduser()

    cache_path = _non_empty(config.get('cache_path'))
    if cache_path:
        settings.cache_path = Path(cache_path).expanduser()

    env_key = _non_empty(os.environ.get('TMDB_API_KEY'))
    if env_key:
        settings.tmdb_api_key = env_key

    return settings
