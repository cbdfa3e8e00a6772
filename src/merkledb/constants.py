"""Constants used throughout MerkleDB."""

# Version
VERSION = "0.1.0"

# Directory names
MERKLEDB_DIR = ".merkledb"
OBJECTS_DIR = "objects"

# File names
CONFIG_FILE = "config.json"
SQLITE_DB = "objects.db"

# Repository configuration
CONFIG_VERSION = 1
DEFAULT_BACKEND = "file"

# Hash algorithm
HASH_ALGORITHM = "sha256"
HASH_LENGTH = 64  # SHA-256 produces 64 hex characters

# Filesystem backend compresses values at or above this size (bytes)
GZIP_THRESHOLD = 200 * 1024 * 1024   # 200 MB

# Entry point group for third-party storage backends
BACKEND_ENTRY_POINT_GROUP = "merkledb.backends"

# Environment variables
ENV_REPO = "MERKLEDB_REPO"

# Exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2
EXIT_DATA_ERROR = 3
