"""Exception hierarchy for the rules and pricing engine.

Three failure families, each fatal to a different scope:
- CatalogIntegrityError: the catalog itself is broken (dangling references,
  overlapping temporal rows). Always indicates a defect upstream.
- EvaluationError: an enable expression could not be evaluated (type mismatch).
  Fatal to that one evaluation.
- ValidationError: a monetary instruction is malformed. Fatal to the pipeline
  run, surfaced to the caller for correction.

Expected outcomes (an option unavailable right now, a discount larger than
the balance) are values, not exceptions.
"""

from typing import Any, Optional


class EngineError(Exception):
    """Base exception for the engine."""

    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


class CatalogIntegrityError(EngineError):
    """The catalog snapshot is internally inconsistent."""

    def __init__(self, message: str = "Catalog integrity violated", details: Optional[dict[str, Any]] = None):
        super().__init__("CATALOG_INTEGRITY", message, details)


class EvaluationError(EngineError):
    """An expression could not be evaluated against its context."""

    def __init__(self, message: str = "Expression evaluation failed", details: Optional[dict[str, Any]] = None):
        super().__init__("EVALUATION_ERROR", message, details)


class ValidationError(EngineError):
    """A pricing instruction is invalid."""

    def __init__(self, message: str = "Validation failed", details: Optional[dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)
