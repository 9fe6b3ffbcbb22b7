"""
binary-update: install, stash and revert versions of a daemon binary
"""

__version__ = "1.0.0"
__author__ = "Your Name"
__email__ = "your.email@example.com"

from .config import UpdateConfig
from .versions import VersionDirectory
from .fetcher import BinaryFetcher
from .stash import StashStore, StashEntry, PointerRecord
from .installer import InstallTransaction, InstallState, InstallResult
from .revert import RevertController, RevertState
from .exceptions import (
    UpdateError,
    FetchError,
    VersionNotFoundError,
    NotFoundError,
    AlreadyExistsError,
    ValidationError,
    FilesystemError,
    StashError,
    SwapFailedError,
)

__all__ = [
    "UpdateConfig",
    "VersionDirectory",
    "BinaryFetcher",
    "StashStore",
    "StashEntry",
    "PointerRecord",
    "InstallTransaction",
    "InstallState",
    "InstallResult",
    "RevertController",
    "RevertState",
    "UpdateError",
    "FetchError",
    "VersionNotFoundError",
    "NotFoundError",
    "AlreadyExistsError",
    "ValidationError",
    "FilesystemError",
    "StashError",
    "SwapFailedError",
]
