#!/usr/bin/env python3
"""
Shared constants for the watch-history pipeline

Single source of truth for the fluff vocabulary, TMDb endpoints and
default paths. DO NOT duplicate these lists in other modules - import from here instead.
"""

# Bump whenever FLUFF_TOKENS or AUDIO_CODECS change: cached titles built with an
# older vocabulary may no longer match what normalize() produces today.
FLUFF_VOCABULARY_VERSION = '2'

# Audio codecs that may carry a trailing channel count (AAC5.1, DTS 5.1, DDP.7.1).
# Matched as a unit BEFORE separators are rewritten, otherwise "5.1" turns
# into "5 1" and the codec loses its only anchor.
AUDIO_CODECS = [
    'aac',
    'ac3',
    'eac3',
    'ddp',
    'dd',
    'dts',
    'truehd',
    'atmos',
    'flac',
    'opus',
    'mp3',
    'mp2',
]

# Release/encoding metadata stripped from titles as whole words.
# Each entry is a regex fragment; order matters only inside the alternation
# (longer variants before their prefixes).
FLUFF_TOKENS = [
    # Resolution
    '480p',
    '576p',
    '720p',
    '1080p',
    '2160p',
    '4k',
    '8k',
    # Video codecs
    'x264',
    'x265',
    r'h\.?264',
    r'h\.?265',
    'hevc',
    'avc',
    'xvid',
    # Audio (channel-count variants handled by AUDIO_CODECS first)
    r'aac\d*(?:\.\d)?',
    'eac3',
    'ac3',
    'ddp',
    'dts-hd',
    'dts',
    'truehd',
    'atmos',
    'flac',
    'opus',
    # Source
    'bluray',
    'blu-ray',
    'brrip',
    'bdrip',
    'webrip',
    'web-dl',
    'webdl',
    'hdtv',
    'dvdrip',
    'remux',
    # Quality / edition markers
    'proper',
    'repack',
    'extended',
    'uncut',
    r'hdr10\+',
    'hdr10',
    'hdr',
    # Bit depth
    '10bit',
    '8bit',
    # Container extensions left behind when the input is a bare filename
    'mkv',
    'mp4',
    'avi',
    'm4v',
    'webm',
    'wmv',
    # Release groups
    'yify',
    'yts',
    'rarbg',
    'etrg',
    'pahe',
    'tigole',
    'qxr',
]

# Plausible release years: 1900 through next calendar year
MIN_RELEASE_YEAR = 1900

# TMDb endpoints
TMDB_SEARCH_URL = 'https://api.themoviedb.org/3/search/movie'
TMDB_IMAGE_BASE = 'https://image.tmdb.org/t/p/'
TMDB_MOVIE_BASE = 'https://www.themoviedb.org/movie/'

# Poster size used for image URLs (TMDb sizes: w92, w154, w185, w342, w500, w780, original)
DEFAULT_POSTER_SIZE = 'w342'

# Seconds before a TMDb request is abandoned
DEFAULT_REQUEST_TIMEOUT = 10

# File names written next to the watch log
DEFAULT_LOG_NAME = '.goo_watch_log.txt'
DEFAULT_CACHE_NAME = '.goo_cache.json'

# Prefix VLC writes in front of local media paths
FILE_URI_PREFIX = 'file:///'
