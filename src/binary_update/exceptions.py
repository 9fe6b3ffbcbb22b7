"""
Custom exceptions for binary-update tool
"""


class UpdateError(Exception):
    """Base exception for update errors"""
    pass


class FetchError(UpdateError):
    """Raised when the remote could not be reached (retryable)"""
    pass


class VersionNotFoundError(UpdateError):
    """Raised when a version is not published remotely"""
    pass


class NotFoundError(UpdateError):
    """Raised when nothing matches a lookup (empty index, unknown stash tag)"""
    pass


class AlreadyExistsError(UpdateError):
    """Raised when a destination path is already occupied"""
    pass


class ValidationError(UpdateError):
    """Raised when validation fails"""
    pass


class FilesystemError(UpdateError):
    """Raised when a local file operation fails"""
    pass


class StashError(FilesystemError):
    """Raised when the current binary could not be stashed"""
    pass


class SwapFailedError(FilesystemError):
    """Raised when the new binary could not be put in place after stashing.

    The previous binary is safe in the stash; ``stash_entry`` names it so the
    operator can revert.
    """

    def __init__(self, message, stash_entry=None):
        super().__init__(message)
        self.stash_entry = stash_entry
