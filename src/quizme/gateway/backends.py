"""Completion backends: the HTTP proxy and the OpenAI SDK."""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from ..core.ai import load_client

__all__ = [
    "GatewayError",
    "CompletionBackend",
    "ProxyBackend",
    "OpenAIBackend",
    "DEFAULT_MODEL",
]

DEFAULT_MODEL = "gpt-4o-mini"


class GatewayError(RuntimeError):
    """Raised when a remote AI call fails or returns unusable content."""


class CompletionBackend(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's text reply for one system/user exchange."""


def build_chat_payload(
    system_prompt: str,
    user_prompt: str,
    *,
    model: str,
    temperature: float,
    max_tokens: int,
) -> dict[str, Any]:
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }


class ProxyBackend:
    """POST chat-completion bodies to the credential-hiding proxy."""

    def __init__(
        self,
        url: str,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.2,
        max_tokens: int = 1600,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._transport = transport

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        payload = build_chat_payload(
            system_prompt,
            user_prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        try:
            with httpx.Client(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise GatewayError(f"Proxy request failed: {exc}") from exc
        if response.is_error:
            raise GatewayError(
                f"Proxy error: {response.status_code} - {response.text}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise GatewayError("Proxy returned a non-JSON body.") from exc
        return extract_message_content(body)


class OpenAIBackend:
    """Call the model directly through the OpenAI SDK."""

    def __init__(
        self,
        client: Any = None,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.2,
        max_tokens: int = 1600,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                self._client = load_client()
            except RuntimeError as exc:
                raise GatewayError(str(exc)) from exc
        return self._client

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        payload = build_chat_payload(
            system_prompt,
            user_prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        try:
            resp = self.client.chat.completions.create(**payload)
            raw_content = resp.choices[0].message.content
        except GatewayError:
            raise
        except Exception as exc:
            raise GatewayError(f"OpenAI request failed: {exc}") from exc
        return (raw_content or "").strip()


def extract_message_content(body: Any) -> str:
    """Pull ``choices[0].message.content`` out of a chat-completion body."""

    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise GatewayError(
            "Unexpected completion payload: missing choices[0].message."
        ) from exc
    return str(content or "").strip()
