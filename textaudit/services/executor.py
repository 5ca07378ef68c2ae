"""Completion execution with retry, backoff and per-attempt validation."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, TypeVar

from pydantic import BaseModel

from textaudit.core.config import Settings
from textaudit.core.errors import (
    AttemptTimeoutError,
    ConfigurationError,
    ExhaustedRetriesError,
    ValidationError,
    error_kind,
)
from textaudit.core.logging import get_logger
from textaudit.services.llm_client import CompletionBackend
from textaudit.services.validator import parse_and_validate

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class Attempt:
    index: int
    delay: float = 0.0
    error: str | None = None
    error_kind: str | None = None
    latency_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ExecutionOutcome(Generic[ModelT]):
    value: ModelT
    attempts: list[Attempt] = field(default_factory=list)


@dataclass(frozen=True)
class ExponentialBackoff:
    """Delay before the retry that follows failed attempt ``index`` (0-based)."""

    base_seconds: float = 0.5

    def compute(self, index: int) -> float:
        return self.base_seconds * (2**index)


class RequestExecutor:
    def __init__(
        self,
        backend: CompletionBackend,
        *,
        max_attempts: int = 3,
        backoff: ExponentialBackoff | None = None,
        attempt_timeout_seconds: float | None = 30.0,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be greater than zero.")
        self._backend = backend
        self._max_attempts = max_attempts
        self._backoff = backoff or ExponentialBackoff()
        self._timeout = attempt_timeout_seconds
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_settings(
        cls,
        backend: CompletionBackend,
        settings: Settings,
        *,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> RequestExecutor:
        return cls(
            backend,
            max_attempts=settings.engine_max_attempts,
            backoff=ExponentialBackoff(settings.engine_backoff_base_seconds),
            attempt_timeout_seconds=settings.engine_attempt_timeout_seconds,
            sleep=sleep,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def _attempt_once(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: type[ModelT],
        temperature: float,
    ) -> ModelT:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        raw = await self._backend.complete(messages=messages, temperature=temperature, json_mode=True)
        return parse_and_validate(raw, schema)

    async def run(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: type[ModelT],
        temperature: float,
        *,
        label: str | None = None,
    ) -> ExecutionOutcome[ModelT]:
        name = label or schema.__name__
        attempts: list[Attempt] = []
        last_error: BaseException | None = None

        for index in range(self._max_attempts):
            attempt = Attempt(index=index)
            attempts.append(attempt)
            start = time.perf_counter()
            try:
                if self._timeout and self._timeout > 0:
                    try:
                        async with asyncio.timeout(self._timeout):
                            value = await self._attempt_once(system_prompt, user_prompt, schema, temperature)
                    except TimeoutError as exc:
                        raise AttemptTimeoutError(
                            f"Attempt exceeded the {self._timeout:g}s deadline"
                        ) from exc
                else:
                    value = await self._attempt_once(system_prompt, user_prompt, schema, temperature)
            except asyncio.CancelledError:
                raise
            except (ConfigurationError, ValidationError):
                raise
            except Exception as exc:  # noqa: BLE001 - every attempt failure funnels through retries
                last_error = exc
                attempt.error = str(exc) or exc.__class__.__name__
                attempt.error_kind = error_kind(exc)
                attempt.latency_ms = round((time.perf_counter() - start) * 1000, 3)
                logger.warning(
                    "engine_attempt_failed",
                    operation=name,
                    attempt=index + 1,
                    max_attempts=self._max_attempts,
                    kind=attempt.error_kind,
                    error=attempt.error,
                )
            else:
                attempt.latency_ms = round((time.perf_counter() - start) * 1000, 3)
                if index:
                    logger.info("engine_attempt_recovered", operation=name, attempt=index + 1)
                return ExecutionOutcome(value=value, attempts=attempts)

            if index < self._max_attempts - 1:
                attempt.delay = self._backoff.compute(index)
                await self._sleep(attempt.delay)

        logger.error(
            "engine_retries_exhausted",
            operation=name,
            attempts=len(attempts),
            kinds=[a.error_kind for a in attempts],
            error=str(last_error),
        )
        raise ExhaustedRetriesError(last_error, attempts) from last_error

    async def execute(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: type[ModelT],
        temperature: float,
    ) -> ModelT:
        outcome = await self.run(system_prompt, user_prompt, schema, temperature)
        return outcome.value
