"""Repository configuration for MerkleDB.

A repository is a directory holding a ``.merkledb/`` folder. The folder
contains ``config.json`` recording which storage backend holds the objects:

    {
        "version": 1,
        "backend": "file"
    }
"""

import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path

from merkledb.constants import CONFIG_FILE, CONFIG_VERSION, DEFAULT_BACKEND, MERKLEDB_DIR
from merkledb.errors import MerkleDBError

logger = logging.getLogger(__name__)


class ConfigError(MerkleDBError):
    """Exception raised when repository configuration is missing or invalid."""


@dataclass
class RepoConfig:
    """Settings stored in ``.merkledb/config.json``."""

    backend: str = DEFAULT_BACKEND
    version: int = CONFIG_VERSION


def find_repo_dir(root: Path) -> Path:
    """Return the ``.merkledb`` directory under ``root``.

    Raises:
        ConfigError: If ``root`` is not a MerkleDB repository
    """
    repo_dir = Path(root) / MERKLEDB_DIR
    if not repo_dir.is_dir():
        raise ConfigError(f"Not a MerkleDB repository (no {MERKLEDB_DIR}/ found in {root})")
    return repo_dir


def load_config(repo_dir: Path) -> RepoConfig:
    """Load configuration from ``repo_dir``.

    A missing config file yields the defaults.

    Raises:
        ConfigError: If the file is corrupted or has an unsupported version
    """
    config_path = Path(repo_dir) / CONFIG_FILE
    if not config_path.exists():
        return RepoConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Corrupted config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Corrupted config file: expected a JSON object, got {type(data).__name__}")

    if data.get("version") != CONFIG_VERSION:
        raise ConfigError(f"Unsupported config version: {data.get('version')}")

    return RepoConfig(backend=data.get("backend", DEFAULT_BACKEND), version=data["version"])


def save_config(repo_dir: Path, config: RepoConfig) -> None:
    """Write configuration to ``repo_dir`` atomically (temp file + rename)."""
    repo_dir = Path(repo_dir)
    fd, tmp_path = tempfile.mkstemp(
        dir=repo_dir,
        prefix=".tmp_config_",
        suffix=".json",
    )

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(asdict(config), f, indent=2)
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, repo_dir / CONFIG_FILE)

    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise

    logger.debug("Saved config to %s: %s", repo_dir, config)
