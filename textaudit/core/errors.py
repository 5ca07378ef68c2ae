"""Error taxonomy shared by the engine, the API and the CLI."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from textaudit.services.executor import Attempt


class EngineError(Exception):
    """Base class for every failure the engine surfaces."""


class ValidationError(EngineError):
    """Caller input is empty or below the minimum length. Never reaches the backend."""


class ConfigurationError(EngineError):
    """Credentials are missing or unusable."""


class TransientRequestError(EngineError):
    """A single attempt failed. The executor retries these."""

    kind = "transient"


class BackendRequestError(TransientRequestError):
    kind = "network"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AttemptTimeoutError(TransientRequestError):
    kind = "timeout"


class EmptyPayloadError(TransientRequestError):
    kind = "empty"


class MalformedPayloadError(TransientRequestError):
    kind = "parse"


class SchemaViolation(TransientRequestError):
    kind = "schema"

    def __init__(self, message: str, *, errors: Sequence[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class ExhaustedRetriesError(EngineError):
    """Terminal failure after the attempt budget is spent."""

    def __init__(self, last_error: BaseException, attempts: Sequence[Attempt]) -> None:
        super().__init__(f"Request failed after {len(attempts)} attempts: {last_error}")
        self.last_error = last_error
        self.attempts = list(attempts)


def error_kind(exc: BaseException) -> str:
    if isinstance(exc, TransientRequestError):
        return exc.kind
    return "unexpected"
