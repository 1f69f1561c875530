# src/ai_core/errors.py


class SourcingError(Exception):
    """Base class for sourcing planner failures."""


class DataAccessError(SourcingError):
    """A repository query failed. Never retried by the planner."""


class MalformedInput(SourcingError, ValueError):
    """Requirement line rejected before any offer is fetched."""
