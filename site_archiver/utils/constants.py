"""
Shared constants for the site archiver.

Contains common configuration values used across multiple modules.
"""

# Default user agent string for all HTTP requests
# Used by both the task source and the download executor
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

# Page fetch timeout in seconds
DEFAULT_PAGE_TIMEOUT = 30

# Resource fetch timeout in seconds (connect and per-read)
DEFAULT_DOWNLOAD_TIMEOUT = 5

# Fixed courtesy delay after every resource fetch, in seconds
DEFAULT_DOWNLOAD_DELAY = 5.0

# Random per-domain delay window between page requests, in seconds
DEFAULT_MIN_REQUEST_DELAY = 2.0
DEFAULT_MAX_REQUEST_DELAY = 5.0

# Timeout for fetching robots.txt in seconds
DEFAULT_ROBOTS_TIMEOUT = 10

# Chunk size used when streaming resources to disk
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# Width of the positional index prefixed to downloaded file names
INDEX_WIDTH = 3

# Longest sanitized path segment in UTF-8 bytes, leaving room for the
# index prefix and the partial-download suffix within a 255-byte name
MAX_SEGMENT_BYTES = 240

# Suffix for in-progress downloads
PARTIAL_SUFFIX = ".part"
