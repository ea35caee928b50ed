"""
Error taxonomy for the cognitive load pipeline.

Every public operation converts these into a structured result via
``to_result()`` instead of letting them reach the resolver boundary.
"""

from __future__ import annotations

from typing import Any, Optional


class CognitiveLoadError(Exception):
    """Base class for all terminal, user-reportable failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}

    def to_result(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "errorType": type(self).__name__,
            **self.details(),
        }


class ConfigurationError(CognitiveLoadError):
    """A required credential or setting is missing."""


class ValidationError(CognitiveLoadError):
    """A request payload is missing a required field or carries an invalid one."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field

    def details(self) -> dict[str, Any]:
        return {"field": self.field} if self.field else {}


class UnknownResolverError(CognitiveLoadError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown resolver: {name}")
        self.name = name


class UpstreamError(CognitiveLoadError):
    """The Jira fetch or the chat model call failed."""


class EvaluationError(CognitiveLoadError):
    """The model answered but the answer cannot be turned into an evaluation."""


class MalformedResponse(EvaluationError):
    def __init__(self, raw_response: str) -> None:
        super().__init__("AI returned a response that is not valid JSON")
        self.raw_response = raw_response

    def details(self) -> dict[str, Any]:
        return {"rawResponse": self.raw_response}


class InvalidEvaluationShape(EvaluationError):
    def __init__(self, parsed_response: Any, missing: Optional[list[str]] = None) -> None:
        missing = missing or []
        detail = f" (missing: {', '.join(missing)})" if missing else ""
        super().__init__(f"AI response has an invalid evaluation structure{detail}")
        self.parsed_response = parsed_response
        self.missing = missing

    def details(self) -> dict[str, Any]:
        return {"parsedResponse": self.parsed_response}
