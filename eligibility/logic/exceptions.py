"""
Engine Exceptions

Evaluation itself never raises for malformed student or criteria data; these
exceptions cover the edges around it (HTTP input, model registry access).
"""

from typing import Any, Dict, Optional


class EligibilityEngineError(Exception):
    """Base exception for the eligibility engine."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable error payload."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(EligibilityEngineError):
    """Caller input is unusable: a non-object payload or a negative batch limit."""


class ModelRegistryError(EligibilityEngineError):
    """The trained-model registry could not be read."""
