"""
Domain errors raised by the service layer. Mapped to HTTP responses in snipsearch.api.errors.
"""


class EmbeddingUnavailable(Exception):
    """Embedding model could not be loaded or produced malformed output."""


class MalformedStoredVector(ValueError):
    """A persisted embedding does not parse as a finite numeric sequence."""


class StoreUnavailable(Exception):
    """No database pool is configured."""


class InvalidTeamAssignment(ValueError):
    """Team visibility without a team id, or with a team the owner is not a member of."""
