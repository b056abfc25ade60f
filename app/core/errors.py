"""
Error taxonomy for the submission pipeline.

- ClientError: bad input (missing coordinates, unknown issue). Rejected
  before any search or commit work and surfaced verbatim to the caller.
- PersistenceError: the store failed while committing. Fatal for the
  request, safe to retry.

Similarity backend failures are NOT errors; the ranker degrades to an
empty match list.
"""


class ClientError(ValueError):
    """Invalid request from the caller (HTTP 400)."""


class NotFoundError(ClientError):
    """Referenced issue does not exist (HTTP 404)."""


class PersistenceError(RuntimeError):
    """Store write failed during commit (HTTP 500)."""
