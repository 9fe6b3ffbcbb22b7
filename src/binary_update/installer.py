"""
Install transaction: fetch, check, stash, swap
"""

import os
import enum
import shutil
import logging
import tempfile
from pathlib import Path
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .constants import DEFAULT_PERMISSIONS
from .exceptions import SwapFailedError, UpdateError, ValidationError
from .fetcher import BinaryFetcher
from .local import LocalBinary
from .stash import StashEntry, StashStore

logger = logging.getLogger(__name__)


class InstallState(enum.Enum):
    IDLE = "idle"
    FETCHED = "fetched"
    VALIDATED = "validated"
    STASHED = "stashed"
    SWAPPED = "swapped"
    SWAP_FAILED = "swap-failed"


@dataclass(frozen=True)
class InstallResult:
    version: str
    install_path: Path
    stash_entry: Optional[StashEntry]


def replace_file(source: Union[str, Path], target: Union[str, Path]) -> None:
    """Put a copy of ``source`` at ``target`` in one rename.

    The copy is staged next to ``target`` so the final ``os.replace`` stays on
    one filesystem; ``target`` is never missing while this runs. A symlinked
    ``target`` keeps its link and the file it points at is replaced.
    """
    target = Path(os.path.realpath(target))
    temp_target = target.with_name(f".{target.name}.tmp.{os.getpid()}")
    try:
        shutil.copy2(source, temp_target)
        temp_target.chmod(DEFAULT_PERMISSIONS)
        os.replace(temp_target, target)
    except Exception:
        try:
            temp_target.unlink()
        except OSError:
            pass
        raise


class InstallTransaction:
    """Moves the active binary from its current version to a new one.

    ``state`` records how far the last ``run`` got. Failures before the stash
    completes leave the host untouched and the state back at IDLE. A failure
    during the swap leaves it at SWAP_FAILED: the old binary is stashed and
    can be restored with a revert.
    """

    def __init__(self, fetcher: BinaryFetcher, stash: StashStore,
                 local: LocalBinary, install_path: Union[str, Path]) -> None:
        self.fetcher = fetcher
        self.stash = stash
        self.local = local
        self.install_path = Path(install_path)
        self.state = InstallState.IDLE

    def run(self, version: str, no_check: bool = False, tag: Optional[str] = None,
            known_versions: Optional[Sequence[str]] = None) -> InstallResult:
        self.state = InstallState.IDLE
        workdir = Path(tempfile.mkdtemp(prefix="binary-update-install-"))
        try:
            new_binary = self.fetcher.fetch(
                version, workdir / self.install_path.name, known_versions=known_versions
            )
            self.state = InstallState.FETCHED

            if no_check:
                logger.info("Skipping self-check of %s", version)
            else:
                self._validate(new_binary, version)
            self.state = InstallState.VALIDATED

            entry = self._stash_active(tag)
            self.state = InstallState.STASHED

            self._swap(new_binary, entry)
            self.state = InstallState.SWAPPED
        except SwapFailedError:
            self.state = InstallState.SWAP_FAILED
            raise
        except UpdateError:
            self.state = InstallState.IDLE
            raise
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

        logger.info("Installed %s at %s", version, self.install_path)
        return InstallResult(version, self.install_path, entry)

    def _validate(self, binary: Path, version: str) -> None:
        ok, output = self.local.self_check(binary)
        if not ok:
            raise ValidationError(
                f"Self-check of version {version} failed: {output.strip() or 'no output'}"
            )
        logger.debug("Self-check passed: %s", output.strip())

    def _stash_active(self, tag: Optional[str]) -> Optional[StashEntry]:
        if not self.install_path.exists():
            logger.info("Nothing installed at %s; skipping stash", self.install_path)
            return None
        if tag is None:
            tag = self.local.current_version()
        return self.stash.stash(tag, self.install_path, self.install_path)

    def _swap(self, new_binary: Path, entry: Optional[StashEntry]) -> None:
        try:
            self.install_path.parent.mkdir(parents=True, exist_ok=True)
            replace_file(new_binary, self.install_path)
        except OSError as e:
            message = f"Could not place new binary at {self.install_path}: {e}"
            if entry is not None:
                message += f" (previous binary is stashed as '{entry.tag}'; run revert)"
            raise SwapFailedError(message, stash_entry=entry) from e
