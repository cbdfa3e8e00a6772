"""Core object model for MerkleDB.

This module provides the record contract, trees, commits and the workspace
that stages entries and turns them into commits.
"""

from merkledb.core.commit import Commit, create_commit
from merkledb.core.records import BlobRecord, JSONRecord, Record
from merkledb.core.tree import Tree
from merkledb.core.workspace import Workspace

__all__ = [
    "Record",
    "JSONRecord",
    "BlobRecord",
    "Tree",
    "Commit",
    "create_commit",
    "Workspace",
]
