"""
Constants used throughout the binary-update tool
"""

# Remote distribution constants
DEFAULT_BASE_URL = "https://dist.ipfs.tech"
DEFAULT_DIST_PATH = "/go-ipfs"
DEFAULT_DIST_NAME = "go-ipfs"
DEFAULT_BINARY_NAME = "ipfs"
VERSIONS_FILE_NAME = "versions"
LATEST_ALIAS = "latest"

# Local daemon API
DEFAULT_API_URL = "http://localhost:5001"

# Directory constants
DEFAULT_HOME_DIR = ".binary-update"
STASH_DIR_NAME = "old-bin"
STASH_INDEX_NAME = "stash.json"

# Environment overrides
ENV_PREFIX = "BINARY_UPDATE_"

# File operation constants
DEFAULT_PERMISSIONS = 0o755
INDEX_PERMISSIONS = 0o644
CHUNK_SIZE = 8192

# Timeouts (seconds)
CHECK_TIMEOUT = 30
CONNECT_TIMEOUT = 10
READ_TIMEOUT = 60

# HTTP retry policy
RETRY_TOTAL = 5
RETRY_BACKOFF = 0.6
RETRY_STATUSES = (429, 500, 502, 503, 504)
USER_AGENT = "binary-update/1.0"
