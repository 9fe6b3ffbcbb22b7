"""
Download and unpack release binaries
"""

import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from .constants import CHUNK_SIZE, DEFAULT_PERMISSIONS
from .exceptions import (
    AlreadyExistsError,
    FetchError,
    FilesystemError,
    ValidationError,
    VersionNotFoundError,
)
from .platforms import artifact_name, detect_platform, executable_name
from .transport import RemoteMissingError

logger = logging.getLogger(__name__)


class BinaryFetcher:
    """Fetches the platform build of a version to a local file"""

    def __init__(self, transport, dist_path: str, dist_name: str, binary_name: str,
                 platform: Optional[Tuple[str, str]] = None) -> None:
        self.transport = transport
        self.dist_path = dist_path.rstrip("/")
        self.dist_name = dist_name
        self.binary_name = binary_name
        self.os_name, self.arch = platform if platform else detect_platform()

    def artifact_path(self, version: str) -> str:
        name = artifact_name(self.dist_name, version, self.os_name, self.arch)
        return f"{self.dist_path}/{version}/{name}"

    def fetch(self, version: str, destination: Union[str, Path],
              known_versions: Optional[Sequence[str]] = None) -> Path:
        """Fetch ``version`` to ``destination``, which must not exist yet"""
        destination = Path(destination)
        if destination.exists() or destination.is_symlink():
            raise AlreadyExistsError(f"File named {destination} already exists")

        if known_versions is not None and version not in known_versions:
            raise VersionNotFoundError(f"Version {version} is not published")

        remote = self.artifact_path(version)
        logger.info("Fetching %s", remote)

        workdir = Path(tempfile.mkdtemp(prefix="binary-update-"))
        try:
            archive = workdir / Path(remote).name
            try:
                with open(archive, "wb") as out:
                    self.transport.download(remote, out)
            except RemoteMissingError as e:
                raise VersionNotFoundError(
                    f"No {self.os_name}-{self.arch} build of version {version}: {e}"
                ) from e
            except OSError as e:
                raise FilesystemError(f"Cannot write download: {e}") from e

            extracted = self._extract(archive, workdir / "unpacked")
            self._materialize(extracted, destination)
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

        logger.info("Fetched %s to %s", version, destination)
        return destination

    def _extract(self, archive: Path, target_dir: Path) -> Path:
        """Unpack ``archive`` and return the path of the binary inside it"""
        wanted = executable_name(self.binary_name, self.os_name)
        target_dir.mkdir()
        base = target_dir.resolve()

        try:
            if archive.name.endswith(".zip"):
                with zipfile.ZipFile(archive) as zf:
                    names = [n for n in zf.namelist() if not n.endswith("/")]
                    member = _pick_member(names, wanted)
                    _check_member_path(base, member)
                    zf.extract(member, path=str(base))
            else:
                with tarfile.open(archive, "r:*") as tf:
                    files = [m for m in tf.getmembers() if m.isfile()]
                    member = _pick_member([m.name for m in files], wanted)
                    _check_member_path(base, member)
                    source = tf.extractfile(member)
                    dest = base / member
                    dest.parent.mkdir(parents=True, exist_ok=True)
                    with source, open(dest, "wb") as out:
                        shutil.copyfileobj(source, out, CHUNK_SIZE)
        except (tarfile.TarError, zipfile.BadZipFile) as e:
            raise FetchError(f"Downloaded archive is corrupt: {e}") from e

        return base / member

    def _materialize(self, source: Path, destination: Path) -> None:
        """Copy ``source`` to ``destination`` without clobbering anything"""
        try:
            out = open(destination, "xb")
        except FileExistsError:
            raise AlreadyExistsError(f"File named {destination} already exists")
        except OSError as e:
            raise FilesystemError(f"Cannot create {destination}: {e}") from e

        try:
            with out, open(source, "rb") as src:
                shutil.copyfileobj(src, out, CHUNK_SIZE)
            os.chmod(destination, DEFAULT_PERMISSIONS)
        except OSError as e:
            try:
                destination.unlink()
            except OSError:
                pass
            raise FilesystemError(f"Cannot write {destination}: {e}") from e


def _pick_member(names, wanted: str) -> str:
    matches = [n for n in names if n.rsplit("/", 1)[-1] == wanted]
    if not matches:
        raise FetchError(f"Archive does not contain a '{wanted}' binary")
    # Shallowest match wins, e.g. go-ipfs/ipfs over go-ipfs/bin/test/ipfs
    return min(matches, key=lambda n: (n.count("/"), n))


def _check_member_path(base: Path, member: str) -> None:
    resolved = (base / member).resolve()
    if os.path.commonpath([str(base), str(resolved)]) != str(base):
        raise ValidationError(f"Unsafe path in archive: {member}")
