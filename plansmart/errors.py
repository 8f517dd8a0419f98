# plansmart/errors.py
from __future__ import annotations


class PlanSmartError(Exception):
    """Base class for plansmart failures surfaced to callers."""


class CollaboratorError(PlanSmartError):
    """An external collaborator (storage, AI service) failed.

    The in-memory session is left unchanged; the caller may retry.
    """


class StorageError(CollaboratorError):
    """Snapshot could not be read or written."""


class AiError(CollaboratorError):
    """AI request failed, timed out, or returned an unusable answer."""


class RequestInFlightError(PlanSmartError):
    """A suggestion request is already outstanding for this session."""


__all__ = [
    "PlanSmartError",
    "CollaboratorError",
    "StorageError",
    "AiError",
    "RequestInFlightError",
]
