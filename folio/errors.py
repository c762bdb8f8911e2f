"""Exceptions raised by the client side of Folio."""

from __future__ import annotations


class FolioError(Exception):
    """Base class for every error the client surfaces to callers."""


class FetchError(FolioError):
    """Network failure or non-success status from the API or the content store."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(FetchError):
    """The remote has no record (or blob) for the requested id."""


class ForbiddenError(FetchError):
    """The record belongs to another principal."""


class ValidationError(FetchError):
    """A request was missing required identifiers."""


class CreateError(FolioError):
    """The metadata store rejected a new notebook."""


class UpdateError(FolioError):
    """A metadata update did not reach the remote store."""


class SaveError(FolioError):
    """Uploading content through a signed URL failed."""
