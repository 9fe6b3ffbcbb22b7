"""
HTTP access to the remote distribution
"""

import logging
from typing import BinaryIO, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import UpdateConfig
from .constants import (
    CHUNK_SIZE,
    RETRY_BACKOFF,
    RETRY_STATUSES,
    RETRY_TOTAL,
    USER_AGENT,
)
from .exceptions import FetchError

logger = logging.getLogger(__name__)


class RemoteMissingError(FetchError):
    """Raised when the remote answers 404 for a path"""
    pass


def build_session() -> requests.Session:
    """Create a session that retries idempotent requests with backoff"""
    retry = Retry(
        total=RETRY_TOTAL,
        connect=RETRY_TOTAL,
        read=RETRY_TOTAL,
        backoff_factor=RETRY_BACKOFF,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"User-Agent": USER_AGENT})
    return session


class HttpTransport:
    """Read-only client for a distribution rooted at ``config.base_url``"""

    def __init__(self, config: UpdateConfig,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.timeout
        self.session = session if session is not None else build_session()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get(self, path: str, stream: bool = False) -> requests.Response:
        url = self.url_for(path)
        logger.debug("GET %s", url)
        try:
            resp = self.session.get(url, stream=stream, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Cannot reach {url}: {e}") from e

        if resp.status_code == 404:
            resp.close()
            raise RemoteMissingError(f"Not found on remote: {url}")
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            resp.close()
            raise FetchError(f"Request for {url} failed: {e}") from e
        return resp

    def get_text(self, path: str) -> str:
        """Fetch a small text document"""
        resp = self._get(path)
        try:
            return resp.text
        finally:
            resp.close()

    def download(self, path: str, out: BinaryIO) -> int:
        """Stream a remote file into ``out``; returns the number of bytes written"""
        resp = self._get(path, stream=True)
        written = 0
        try:
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                out.write(chunk)
                written += len(chunk)
        except requests.RequestException as e:
            raise FetchError(f"Download of {resp.url} interrupted: {e}") from e
        finally:
            resp.close()

        # Content-Length counts encoded bytes; only compare for identity bodies
        expected = resp.headers.get("Content-Length")
        encoded = resp.headers.get("Content-Encoding")
        if (expected is not None and expected.isdigit() and not encoded
                and int(expected) != written):
            raise FetchError(
                f"Incomplete download: got {written} of {expected} bytes"
            )
        logger.debug("Downloaded %d bytes from %s", written, path)
        return written
