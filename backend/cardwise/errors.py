class CardwiseError(Exception):
    """Base class for errors surfaced to API callers."""


class ValidationError(CardwiseError):
    """Malformed input, e.g. a quality outside 1-4 or a missing card id."""


class NotFoundError(CardwiseError):
    """Card or user does not exist, or is not owned by the caller."""


class PersistenceError(CardwiseError):
    """Storage failure during a read-modify-write. Nothing was committed."""
