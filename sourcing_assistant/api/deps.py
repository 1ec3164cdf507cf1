"""FastAPI dependencies."""

from typing import Optional

from sourcing_assistant.pipeline import SourcingSession

_session: Optional[SourcingSession] = None


def init_session() -> SourcingSession:
    """Create and load the process-wide session."""
    global _session
    _session = SourcingSession()
    _session.load()
    return _session


def get_session() -> SourcingSession:
    """Dependency for the sourcing session."""
    if _session is None:
        return init_session()
    return _session
