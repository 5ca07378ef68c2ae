from __future__ import annotations

from typing import Any, Callable, Protocol

import httpx

from textaudit.core.config import Settings, get_settings
from textaudit.core.errors import BackendRequestError, ConfigurationError
from textaudit.core.logging import get_logger

logger = get_logger(__name__)


class CompletionBackend(Protocol):
    async def complete(
        self,
        *,
        messages: list[dict[str, str]],
        temperature: float,
        json_mode: bool = True,
    ) -> str: ...


class GroqChatClient:
    """Chat completion client for Groq's OpenAI-compatible endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://api.groq.com/openai/v1",
        max_completion_tokens: int = 4096,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.model = model
        self.max_completion_tokens = max_completion_tokens
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            transport=transport,
        )

    async def complete(
        self,
        *,
        messages: list[dict[str, str]],
        temperature: float,
        json_mode: bool = True,
    ) -> str:
        request_payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_completion_tokens": self.max_completion_tokens,
        }
        if json_mode:
            request_payload["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.post("/chat/completions", json=request_payload)
        except httpx.HTTPError as exc:
            raise BackendRequestError(f"Completion request failed: {exc.__class__.__name__}: {exc}") from exc

        if response.status_code >= 400:
            logger.warning(
                "completion_http_error",
                model=self.model,
                status_code=response.status_code,
                preview=response.text[:180],
            )
            raise BackendRequestError(
                f"Completion backend returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise BackendRequestError("Completion backend returned a non-JSON envelope") from exc

        return self._extract_content(payload)

    @staticmethod
    def _extract_content(payload: Any) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            return ""
        content = message.get("content")
        return content if isinstance(content, str) else ""

    async def aclose(self) -> None:
        await self._client.aclose()


ClientFactory = Callable[[Settings], CompletionBackend]


def _default_factory(settings: Settings) -> CompletionBackend:
    return GroqChatClient(
        api_key=settings.groq_api_key,
        model=settings.groq_model,
        base_url=settings.groq_base_url,
        max_completion_tokens=settings.groq_max_completion_tokens,
        timeout_seconds=max(settings.engine_attempt_timeout_seconds, 1.0) * 2,
    )


class ClientProvider:
    """Lazily builds the backend client on first use and reuses it afterwards.

    Credentials are checked when the client is first needed, so the object graph
    can be wired before an API key is available. ``refresh`` drops the handle so
    the next call rebuilds it from current settings.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        factory: ClientFactory | None = None,
        settings_loader: Callable[[], Settings] | None = None,
    ) -> None:
        self._settings = settings
        self._settings_loader = settings_loader or get_settings
        self._factory = factory or _default_factory
        self._client: CompletionBackend | None = None

    @property
    def settings(self) -> Settings:
        if self._settings is not None:
            return self._settings
        return self._settings_loader()

    def get(self) -> CompletionBackend:
        if self._client is not None:
            return self._client
        settings = self.settings
        if not settings.has_api_key:
            raise ConfigurationError("API key is missing. Set GROQ_API_KEY in the environment or .env file.")
        self._client = self._factory(settings)
        logger.info("completion_client_ready", model=settings.groq_model, endpoint=settings.groq_base_url)
        return self._client

    async def refresh(self, settings: Settings | None = None) -> None:
        client, self._client = self._client, None
        if settings is not None:
            self._settings = settings
        close = getattr(client, "aclose", None)
        if close is not None:
            await close()
        logger.info("completion_client_refreshed")

    async def complete(
        self,
        *,
        messages: list[dict[str, str]],
        temperature: float,
        json_mode: bool = True,
    ) -> str:
        return await self.get().complete(messages=messages, temperature=temperature, json_mode=json_mode)

    async def aclose(self) -> None:
        await self.refresh()
