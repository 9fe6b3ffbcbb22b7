"""
Restore a stashed binary
"""

import enum
import logging
from pathlib import Path
from typing import Optional

from .exceptions import FilesystemError
from .installer import replace_file
from .stash import StashStore

logger = logging.getLogger(__name__)


class RevertState(enum.Enum):
    IDLE = "idle"
    SELECTED = "selected"
    RESTORED = "restored"


class RevertController:
    """Puts a stashed binary back where it was installed from"""

    def __init__(self, stash: StashStore) -> None:
        self.stash = stash
        self.state = RevertState.IDLE

    def revert(self, tag: Optional[str] = None) -> Path:
        """Restore the stash tagged ``tag`` (default: the most recent one)"""
        self.state = RevertState.IDLE
        binary_path, install_path = self.stash.select_for_revert(tag)
        self.state = RevertState.SELECTED
        logger.info("Restoring %s to %s", binary_path, install_path)

        try:
            replace_file(binary_path, install_path)
        except OSError as e:
            self.state = RevertState.IDLE
            raise FilesystemError(
                f"Failed to move old binary {binary_path} to {install_path}: {e}"
            ) from e

        self.state = RevertState.RESTORED
        return install_path
