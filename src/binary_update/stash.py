"""
Stash of previously installed binaries
"""

import os
import json
import fcntl
import shutil
import logging
import tempfile
from pathlib import Path
from datetime import datetime, timezone
from dataclasses import dataclass, asdict, fields
from typing import Optional, Dict, List, Any, Tuple, Union

from .constants import (
    DEFAULT_PERMISSIONS,
    INDEX_PERMISSIONS,
    LATEST_ALIAS,
    STASH_INDEX_NAME,
)
from .exceptions import NotFoundError, StashError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StashEntry:
    tag: str
    binary_path: str
    original_install_path: str
    stashed_at: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class PointerRecord:
    """Default revert target: the most recent stash and where it came from"""
    tag: str
    binary_path: str
    original_install_path: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class StashStore:
    """Tagged copies of replaced binaries plus the pointer to the latest one.

    Everything lives under ``stash_dir``: binaries as ``<binary_name>-<tag>``
    and their metadata in a single JSON document that is rewritten atomically.
    """

    def __init__(self, stash_dir: Union[str, Path], binary_name: str) -> None:
        self.stash_dir = Path(stash_dir)
        self.binary_name = binary_name
        self.index_file = self.stash_dir / STASH_INDEX_NAME
        self.index = self.load_index()

    def load_index(self) -> Dict[str, Any]:
        """Load the stash index with proper error handling"""
        if self.index_file.exists():
            try:
                with open(self.index_file, 'r') as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Invalid JSON in stash index: {e}")
            except OSError as e:
                raise StashError(f"Cannot read stash index: {e}")

            if not isinstance(data, dict):
                raise ValidationError("Stash index must contain a JSON object")
            if "entries" not in data or "pointer" not in data:
                raise ValidationError("Stash index missing required keys")

            entries = data["entries"]
            if not isinstance(entries, dict):
                raise ValidationError("Stash index entries must be a JSON object")
            for tag, entry in entries.items():
                _check_record(entry, StashEntry, f"entry '{tag}'")
                if entry["tag"] != tag:
                    raise ValidationError(
                        f"Stash index entry '{tag}' is recorded under tag '{entry['tag']}'"
                    )
            if data["pointer"] is not None:
                _check_record(data["pointer"], PointerRecord, "pointer")
            return data
        return {"entries": {}, "pointer": None}

    def save_index(self) -> None:
        """Save the index via a locked temp file and an atomic rename"""
        try:
            self.stash_dir.mkdir(parents=True, exist_ok=True)

            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.stash_dir,
                prefix=".stash_",
                suffix=".tmp"
            )

            try:
                with os.fdopen(temp_fd, 'w') as f:
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                    try:
                        json.dump(self.index, f, indent=2)
                        f.flush()
                        os.fsync(f.fileno())
                    finally:
                        fcntl.flock(f.fileno(), fcntl.LOCK_UN)

                os.chmod(temp_path, INDEX_PERMISSIONS)
                os.replace(temp_path, self.index_file)

            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise

        except OSError as e:
            raise _stash_error("save stash index", e)

    def path_for(self, tag: str) -> Path:
        return self.stash_dir / f"{self.binary_name}-{tag}"

    def validate_tag(self, tag: str) -> None:
        if not tag or not tag.strip():
            raise ValidationError("Stash tag must not be empty")
        if tag == LATEST_ALIAS:
            raise ValidationError(f"'{LATEST_ALIAS}' is reserved and cannot be a stash tag")
        if '/' in tag or '\\' in tag or tag in ('.', '..'):
            raise ValidationError(f"Invalid stash tag: {tag}")

    def stash(self, tag: str, binary_path: Union[str, Path],
              original_install_path: Union[str, Path]) -> StashEntry:
        """Copy ``binary_path`` into the stash under ``tag``.

        A previous entry with the same tag is replaced. The pointer record is
        moved to the new entry. The copy is staged beside its final name and
        only renamed into place once the index naming it has been saved, so a
        failed save leaves the stash as it was.
        """
        self.validate_tag(tag)
        source = Path(binary_path)
        target = self.path_for(tag)
        temp_target = target.with_name(f".{target.name}.tmp.{os.getpid()}")

        try:
            self.stash_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, temp_target)
            temp_target.chmod(DEFAULT_PERMISSIONS)
        except OSError as e:
            _discard(temp_target)
            raise _stash_error(f"stash {source}", e)

        entry = StashEntry(
            tag=tag,
            binary_path=str(target),
            original_install_path=str(Path(original_install_path).absolute()),
            stashed_at=datetime.now(timezone.utc).isoformat(),
        )
        pointer = PointerRecord(entry.tag, entry.binary_path, entry.original_install_path)

        previous = self.index
        self.index = {
            "entries": {**previous["entries"], tag: entry.to_dict()},
            "pointer": pointer.to_dict(),
        }
        try:
            self.save_index()
        except StashError:
            self.index = previous
            _discard(temp_target)
            raise

        try:
            os.replace(temp_target, target)
        except OSError as e:
            _discard(temp_target)
            self.index = previous
            self.save_index()
            raise _stash_error(f"stash {source}", e)

        logger.info("Stashed %s as %s", source, target)
        return entry

    def get(self, tag: str) -> Optional[StashEntry]:
        data = self.index["entries"].get(tag)
        return StashEntry(**data) if data else None

    def pointer(self) -> Optional[PointerRecord]:
        data = self.index.get("pointer")
        return PointerRecord(**data) if data else None

    def list_entries(self) -> List[StashEntry]:
        """All entries, newest first"""
        entries = [StashEntry(**data) for data in self.index["entries"].values()]
        entries.sort(key=lambda e: (e.stashed_at, e.tag), reverse=True)
        return entries

    def select_for_revert(self, tag: Optional[str] = None) -> Tuple[Path, Path]:
        """Pick the binary to restore and the path it must go back to"""
        if tag is not None:
            entry = self.get(tag)
            if entry is None:
                raise NotFoundError(f"No stashed binary tagged '{tag}'")
            selected = (entry.binary_path, entry.original_install_path)
        else:
            pointer = self.pointer()
            if pointer is not None and pointer.tag in self.index["entries"]:
                selected = (pointer.binary_path, pointer.original_install_path)
            else:
                entries = self.list_entries()
                if not entries:
                    raise NotFoundError("No stashed binary to revert to")
                logger.debug("No pointer record; using newest entry %s", entries[0].tag)
                selected = (entries[0].binary_path, entries[0].original_install_path)

        binary_path, original_path = Path(selected[0]), Path(selected[1])
        if not binary_path.is_file():
            raise NotFoundError(f"Stashed binary is missing: {binary_path}")
        return binary_path, original_path


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except OSError:
        pass


def _check_record(data: Any, record_type: type, what: str) -> None:
    expected = {f.name for f in fields(record_type)}
    if not isinstance(data, dict) or set(data) != expected:
        raise ValidationError(
            f"Stash index {what} must have exactly the keys {', '.join(sorted(expected))}"
        )
    if not all(isinstance(value, str) for value in data.values()):
        raise ValidationError(f"Stash index {what} has a non-string value")


def _stash_error(action: str, e: OSError) -> StashError:
    if e.errno == 28:  # ENOSPC
        return StashError("No space left on device")
    elif e.errno == 13:  # EACCES
        return StashError(f"Permission denied trying to {action}: {e}")
    return StashError(f"Failed to {action}: {e}")
