"""
Shared fixtures: an in-memory remote and shell-script "binaries"
"""

import io
import os
import sys
import tarfile
import zipfile

import pytest

# Add the parent directory to the path to import our module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.binary_update.config import UpdateConfig
from src.binary_update.exceptions import FetchError
from src.binary_update.fetcher import BinaryFetcher
from src.binary_update.transport import RemoteMissingError

PLATFORM = ("linux", "amd64")


def script(version, exit_code=0):
    """A tiny executable that answers like `ipfs version`"""
    return (
        "#!/bin/sh\n"
        f"echo 'ipfs version {version}'\n"
        f"exit {exit_code}\n"
    ).encode()


def make_tarball(members):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_zip(members):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


class FakeTransport:
    """Serves files from a dict keyed by remote path"""

    def __init__(self):
        self.files = {}
        self.requests = []
        self.unreachable = False

    def _lookup(self, path):
        self.requests.append(path)
        if self.unreachable:
            raise FetchError(f"Cannot reach remote for {path}")
        if path not in self.files:
            raise RemoteMissingError(f"Not found on remote: {path}")
        return self.files[path]

    def get_text(self, path):
        return self._lookup(path).decode()

    def download(self, path, out):
        data = self._lookup(path)
        out.write(data)
        return len(data)

    def set_index(self, versions):
        self.files["/go-ipfs/versions"] = "".join(v + "\n" for v in versions).encode()

    def publish(self, version, binary=None, members=None):
        if members is None:
            members = {"go-ipfs/ipfs": binary if binary is not None else script(version)}
        name = f"go-ipfs_{version}_linux-amd64.tar.gz"
        self.files[f"/go-ipfs/{version}/{name}"] = make_tarball(members)

    @property
    def downloads(self):
        return [p for p in self.requests if not p.endswith("/versions")]


@pytest.fixture
def remote():
    return FakeTransport()


@pytest.fixture
def fetcher(remote):
    return BinaryFetcher(remote, "/go-ipfs", "go-ipfs", "ipfs", platform=PLATFORM)


@pytest.fixture
def install_path(tmp_path):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return bin_dir / "ipfs"


@pytest.fixture
def config(tmp_path, install_path):
    return UpdateConfig(
        install_path=install_path,
        stash_dir=tmp_path / "stash",
        api_url=None,
        check_timeout=10,
    )


@pytest.fixture
def installed(install_path):
    """Put a binary reporting ``version`` at the install path"""
    def _install(version, exit_code=0):
        install_path.write_bytes(script(version, exit_code))
        install_path.chmod(0o755)
        return install_path
    return _install
