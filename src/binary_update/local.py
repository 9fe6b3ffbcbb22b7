"""
Inspection of the locally installed binary and its daemon
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import requests

from .config import UpdateConfig
from .exceptions import NotFoundError

logger = logging.getLogger(__name__)


def run_binary(binary: Union[str, Path], args: Sequence[str],
               timeout: float) -> Tuple[bool, str]:
    """Run ``binary`` with ``args``; return (exited zero, combined output)"""
    try:
        proc = subprocess.run(
            [str(binary), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return False, f"timed out after {timeout}s"
    except OSError as e:
        return False, str(e)
    return proc.returncode == 0, proc.stdout.decode("utf-8", errors="replace")


def parse_version_output(output: str) -> Optional[str]:
    """Pull the version out of e.g. 'ipfs version 0.4.1'"""
    tokens = output.split()
    if not tokens:
        return None
    token = tokens[-1]
    if token[:1] in ("v", "V") and token[1:2].isdigit():
        token = token[1:]
    return token


class LocalBinary:
    """The active binary on this host"""

    def __init__(self, config: UpdateConfig,
                 session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session if session is not None else requests.Session()

    def find_install_path(self) -> Path:
        """Return the configured install path, or look the binary up on PATH"""
        if self.config.install_path is not None:
            return Path(self.config.install_path)

        found = shutil.which(self.config.binary_name)
        if found is None:
            raise NotFoundError(
                f"Cannot find '{self.config.binary_name}' on PATH; "
                "pass --install-path"
            )
        return Path(found).absolute()

    def self_check(self, binary: Union[str, Path]) -> Tuple[bool, str]:
        """Run a lightweight invocation to prove ``binary`` executes here"""
        logger.debug("Running self-check: %s %s", binary, " ".join(self.config.check_args))
        return run_binary(binary, self.config.check_args, self.config.check_timeout)

    def _api_version(self) -> Optional[str]:
        if not self.config.api_url:
            return None
        url = f"{self.config.api_url}/api/v0/version"
        try:
            resp = self.session.post(url, timeout=self.config.timeout)
            resp.raise_for_status()
            return resp.json().get("Version")
        except (requests.RequestException, ValueError) as e:
            logger.debug("Daemon API not available at %s: %s", url, e)
            return None

    def daemon_running(self) -> bool:
        return self._api_version() is not None

    def current_version(self) -> str:
        """Version of the active binary, asking a running daemon first"""
        version = self._api_version()
        if version:
            logger.debug("Daemon reports version %s", version)
            return version

        path = self.find_install_path()
        if not path.exists():
            raise NotFoundError(f"No binary installed at {path}")

        ok, output = run_binary(path, self.config.version_args, self.config.check_timeout)
        version = parse_version_output(output) if ok else None
        if not version:
            raise NotFoundError(
                f"Cannot determine version of {path}: {output.strip() or 'no output'}"
            )
        return version
