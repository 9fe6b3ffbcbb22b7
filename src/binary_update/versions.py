"""
Remote version discovery
"""

import logging
from typing import List, Optional, Sequence

from .constants import LATEST_ALIAS, VERSIONS_FILE_NAME
from .exceptions import FetchError, NotFoundError
from .transport import RemoteMissingError

logger = logging.getLogger(__name__)


class VersionDirectory:
    """Lists the versions published under a distribution path.

    Nothing is cached between calls. A caller that needs both the list and
    the latest version passes the list it already has to ``resolve_latest``.
    """

    def __init__(self, transport, dist_path: str) -> None:
        self.transport = transport
        self.dist_path = dist_path.rstrip("/")

    @property
    def index_path(self) -> str:
        return f"{self.dist_path}/{VERSIONS_FILE_NAME}"

    def list_versions(self) -> List[str]:
        """Return the published versions in the order the remote lists them"""
        try:
            text = self.transport.get_text(self.index_path)
        except RemoteMissingError as e:
            raise FetchError(f"Version index unavailable: {e}") from e

        versions = [line.strip() for line in text.splitlines() if line.strip()]
        logger.debug("Remote index lists %d versions", len(versions))
        return versions

    def resolve_latest(self, versions: Optional[Sequence[str]] = None) -> str:
        """Return the last published version"""
        if versions is None:
            versions = self.list_versions()
        if not versions:
            raise NotFoundError("No versions are published on the remote")
        latest = versions[-1]
        logger.debug("'%s' resolves to %s", LATEST_ALIAS, latest)
        return latest

    def resolve(self, name: str, versions: Optional[Sequence[str]] = None) -> str:
        """Map the 'latest' alias to a concrete version; pass anything else through"""
        if name == LATEST_ALIAS:
            return self.resolve_latest(versions)
        return name
