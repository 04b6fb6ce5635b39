#!/usr/bin/env python3
"""
Watch-log parser: split raw log lines into timestamp + title source
"""

import re
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple
from dataclasses import dataclass

from watchlog.constants import FILE_URI_PREFIX
from watchlog.normalizer import normalize

_DELIMITER_RE = re.compile(r'[|\t]')


class LogReadError(OSError):
    """An existing watch log whose content cannot be decoded as UTF-8"""


@dataclass(frozen=True)
class WatchEntry:
    """One parsed watch-log record"""
    watched_at: Optional[str]  # Verbatim from the log, never validated
    raw_title: str             # Title-bearing substring (usually the file stem)
    cleaned_title: str         # May be empty when raw_title is all noise
    release_year: Optional[int] = None


def split_log_line(line: str) -> Tuple[Optional[str], str]:
    """
    Split at the first '|' or tab, whichever comes first.

    Returns (timestamp, title_source); timestamp is None when the line
    carries no delimiter.
    """
    match = _DELIMITER_RE.search(line)
    if not match:
        return None, line.strip()
    return line[:match.start()].strip(), line[match.end():].strip()


def extract_title(source: str) -> str:
    """Return the file stem of a path or file URI, or the trimmed source itself"""
    trimmed = source.strip()
    path = trimmed[len(FILE_URI_PREFIX):] if trimmed.startswith(FILE_URI_PREFIX) else trimmed

    # Logs written on Windows carry backslash paths; split on both separators
    name = re.split(r'[\\/]', path)[-1]
    stem = PurePosixPath(name).stem if name else ''
    if stem and stem not in ('.', '..'):
        return stem
    return trimmed


def parse_line(line: str) -> Optional[WatchEntry]:
    """Parse one log line; blank lines give None"""
    trimmed = line.strip()
    if not trimmed:
        return None

    watched_at, source = split_log_line(trimmed)
    raw_title = extract_title(source)
    cleaned_title, release_year = normalize(raw_title)

    return WatchEntry(
        watched_at=watched_at,
        raw_title=raw_title,
        cleaned_title=cleaned_title,
        release_year=release_year,
    )


def read_log(path: Path) -> List[WatchEntry]:
    """
    Read a watch log into entries, in file order.

    A missing file is a log that was never written and gives [].
    Invalid UTF-8 raises LogReadError; any other OSError propagates.
    """
    try:
        f = open(path, 'r', encoding='utf-8')
    except FileNotFoundError:
        return []

    entries = []
    with f:
        try:
            for line in f:
                entry = parse_line(line)
                if entry is not None:
                    entries.append(entry)
        except UnicodeDecodeError as e:
            raise LogReadError(f"Watch log {path} is not valid UTF-8: {e}") from e
    return entries
