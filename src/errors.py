"""Error taxonomy shared by the analysis, storage and order layers.

Two families reach the HTTP surface:

- ``ClientError``: bad or missing input. The request is rejected with a
  specific, user-facing message and a 4xx status.
- ``CollaboratorFailure``: the rasterizer or the database failed. The caller
  gets a generic 5xx message; details go to the log.

Best-effort failures (secondary file cleanup, notifications) are never raised;
they are logged and counted where they happen.
"""

from __future__ import annotations


class NitiPrintError(Exception):
    """Base class. ``user_message`` is safe to show to the client."""

    status_code: int = 500

    def __init__(self, message: str, user_message: str | None = None) -> None:
        super().__init__(message)
        self.user_message = user_message or message


# ── Client errors ────────────────────────────────────────────────────


class ClientError(NitiPrintError):
    """Request is malformed or references something that does not exist."""

    status_code = 400


class MissingUploadError(ClientError):
    """A required file (document or payment proof) was not uploaded."""


class UploadTooLargeError(ClientError):
    """Upload exceeds the configured size limit."""

    status_code = 413


class InvalidOrderError(ClientError):
    """A confirmation field is missing or malformed."""


class PathTraversalError(ClientError):
    """A relative path resolves outside the directory it must stay in."""


class StagedArtifactNotFoundError(ClientError):
    """The staging handle is expired, reclaimed or already promoted."""

    status_code = 404


class OrderNotFoundError(ClientError):
    """No order with this identifier exists."""

    status_code = 404


class DuplicateOrderError(ClientError):
    """An order with this identifier has already been confirmed."""

    status_code = 409


# ── Collaborator failures ────────────────────────────────────────────


class CollaboratorFailure(NitiPrintError):
    """An external collaborator failed; not retried automatically."""

    status_code = 500


class AnalysisError(CollaboratorFailure):
    """The document could not be rasterized or classified."""


class PersistenceError(CollaboratorFailure):
    """The order record could not be written or removed."""
