"""Error taxonomy for the proposal pipeline."""


class SourcingError(Exception):
    """Base class for pipeline errors."""


class ValidationError(SourcingError):
    """Rejected user input (image type, size, count, email)."""


class ParseError(SourcingError):
    """Analysis response could not be turned into a proposal."""


class ScoringError(SourcingError):
    """Image quality scoring failed for a single image."""


class PersistenceError(SourcingError):
    """Local state is corrupt or unavailable."""


class NetworkError(SourcingError):
    """A remote collaborator could not be reached."""
