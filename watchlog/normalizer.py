#!/usr/bin/env python3
"""
watchlog/normalizer.py — Title normalization for watch-log entries

Pure filename cleaning. No API calls, no cache access, no clock other than
the current year used to bound plausible release years.

Stages are applied in strict order, each on the output of the previous one:
  1. Trim
  2. Strip bracketed segments ([...], (...), {...}); a bracketed bare year is kept as a token
  3. Strip fluff tokens (audio channel counts first, then the vocabulary)
  4. Rewrite separator runs (. _ -) to spaces
  5. Collapse whitespace
  6-7. Find year candidates and apply the tie-break
  8. Re-join the remaining tokens

Stage 3 MUST run before stage 4: "AAC5.1" only reads as an audio tag while
the dot is still there.
"""

import re
from datetime import date
from typing import List, Optional, Tuple

from watchlog.constants import AUDIO_CODECS, FLUFF_TOKENS, MIN_RELEASE_YEAR

# Non-alphanumeric boundary matching so short tags like "avi" or "proper"
# don't truncate real words ("Avid", "Properly")
_WORD_START = r'(?<![A-Za-z0-9])'
_WORD_END = r'(?![A-Za-z0-9])'

_BRACKETED_RE = re.compile(r'[\[\(\{](.*?)[\]\)\}]')
_AUDIO_CHANNELS_RE = re.compile(
    _WORD_START + r'(?:' + '|'.join(AUDIO_CODECS) + r')[\s._-]*\d\.\d' + _WORD_END,
    re.IGNORECASE
)
_FLUFF_RE = re.compile(
    _WORD_START + r'(?:' + '|'.join(FLUFF_TOKENS) + r')' + _WORD_END,
    re.IGNORECASE
)
_SEPARATORS_RE = re.compile(r'[._-]+')
_WHITESPACE_RE = re.compile(r'\s+')
_YEAR_TOKEN_RE = re.compile(r'[0-9]{4}')


def _unwrap_bracket(match) -> str:
    """Replace a bracketed segment with a space, keeping a bare year as a token"""
    content = match.group(1).strip()
    if _YEAR_TOKEN_RE.fullmatch(content):
        return f' {content} '
    return ' '


def is_year_token(token: str, current_year: Optional[int] = None) -> bool:
    """True when token is exactly four digits within [1900, current_year + 1]"""
    if not _YEAR_TOKEN_RE.fullmatch(token):
        return False
    if current_year is None:
        current_year = date.today().year
    return MIN_RELEASE_YEAR <= int(token) <= current_year + 1


def strip_fluff(value: str) -> str:
    """Remove audio channel tags, then vocabulary tokens (separators untouched)"""
    value = _AUDIO_CHANNELS_RE.sub(' ', value)
    return _FLUFF_RE.sub(' ', value)


def _pick_year_index(tokens: List[str], current_year: int) -> Optional[int]:
    """
    Index of the token to treat as the release year, or None.

    One candidate counts only when it is not the first token (titles such as
    "1917" or "2012 Movie" start with a number). Several candidates: the last
    one wins wherever it sits.
    """
    positions = [i for i, token in enumerate(tokens) if is_year_token(token, current_year)]
    if not positions:
        return None
    if len(positions) == 1 and positions[0] == 0:
        return None
    return positions[-1]


def normalize(raw: str, current_year: Optional[int] = None) -> Tuple[str, Optional[int]]:
    """
    Clean a filename-derived string into (title, release_year).

    Never raises. All-noise input gives ("", None).

    Examples:
        >>> normalize("Dune.2021.1080p.BluRay.x264.DTS.mkv", current_year=2025)
        ('Dune', 2021)
        >>> normalize("2021 Movie", current_year=2025)
        ('2021 Movie', None)
    """
    if current_year is None:
        current_year = date.today().year

    value = (raw or '').strip()
    value = _BRACKETED_RE.sub(_unwrap_bracket, value)
    value = strip_fluff(value)
    value = _SEPARATORS_RE.sub(' ', value)
    value = _WHITESPACE_RE.sub(' ', value)

    tokens = value.split()
    if not tokens:
        return '', None

    release_year = None
    year_index = _pick_year_index(tokens, current_year)
    if year_index is not None:
        release_year = int(tokens[year_index])
        del tokens[year_index]

    return ' '.join(tokens).strip(), release_year


def clean_title(raw: str) -> str:
    """Return only the cleaned title for raw"""
    title, _ = normalize(raw)
    return title
