"""
HTTP clients for the supported LLM providers.

Every provider is a small dataclass wrapping ``requests`` calls to the
provider's REST API. Credentials and base URLs are passed in explicitly
(see :func:`commit_drafter.config.loader.load_provider_settings`); the
clients never read the environment themselves. On error conditions
(HTTP errors, timeouts, malformed replies) a :class:`LLMError` is
raised. Nothing is retried.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests


logger = logging.getLogger(__name__)
# Attach a null handler to avoid errors when the root logger is missing a
# stream. Messages will still propagate to the root logger if configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_TOKENS = 2048

ANTHROPIC_VERSION = "2023-06-01"


class LLMError(Exception):
    """Raised when communication with an LLM provider fails.

    ``status_code`` carries the HTTP status when the provider answered
    with an error response.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def strip_thinking_tags(text: str) -> str:
    """Remove thinking process tags from LLM responses.

    Many modern LLMs with reasoning capabilities output their thinking
    process in XML-like tags such as <think>, <thinking>, <thought>,
    or <reasoning>. This function strips these tags and their contents
    from the response, leaving only the actual output.

    Examples
    --------
    >>> strip_thinking_tags("<think>reasoning...</think>Answer")
    'Answer'
    >>> strip_thinking_tags("<thinking>thoughts</thinking>\\n\\nReal answer")
    'Real answer'
    """
    thinking_patterns = [
        r"<think>.*?</think>",
        r"<thinking>.*?</thinking>",
        r"<thought>.*?</thought>",
        r"<reasoning>.*?</reasoning>",
    ]
    result = text
    for pattern in thinking_patterns:
        result = re.sub(pattern, "", result, flags=re.DOTALL | re.IGNORECASE)
    return result.strip()


def describe_http_error(status_code: int, body: str) -> str:
    """Return a user facing message for a failed provider request."""
    if 520 <= status_code <= 524:
        return (
            f"Cloudflare/API gateway error (status {status_code}): {body}. "
            "This is usually transient - please try again."
        )
    if status_code == 429:
        return (
            f"Rate limit exceeded (status {status_code}): {body}. "
            "Please wait a moment and try again."
        )
    if status_code == 503:
        return (
            f"Service unavailable (status {status_code}): {body}. "
            "The API may be temporarily down - please try again."
        )
    return f"API error (status {status_code}): {body}"


@dataclass
class ProviderClient:
    """Base class for provider clients.

    Parameters
    ----------
    model : str
        Model identifier understood by the provider.
    api_key : str, optional
        API key. Required by every provider except Ollama.
    base_url : str
        Base URL of the API, without a trailing path.
    request_timeout : float, optional
        Timeout in seconds for HTTP requests. Defaults to 60 seconds.
    temperature : float, optional
        Sampling temperature. Defaults to :data:`DEFAULT_TEMPERATURE`.
    max_tokens : int, optional
        Maximum number of tokens to generate.
    """

    model: str
    api_key: Optional[str] = None
    base_url: str = ""
    request_timeout: float = 60.0
    temperature: Optional[float] = None
    max_tokens: int = DEFAULT_MAX_TOKENS

    name = "provider"
    requires_api_key = True

    @property
    def effective_temperature(self) -> float:
        return DEFAULT_TEMPERATURE if self.temperature is None else self.temperature

    def _require_key(self) -> str:
        if self.requires_api_key and not self.api_key:
            raise LLMError(f"No API key configured for provider '{self.name}'")
        return self.api_key or ""

    def _headers(self) -> Dict[str, str]:
        return {"content-type": "application/json"}

    def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        logger.debug("Sending %s request to %s", method, url.split("?", 1)[0])
        try:
            if method == "POST":
                response = requests.post(url, json=payload, headers=self._headers(), timeout=self.request_timeout)
            else:
                response = requests.get(url, headers=self._headers(), timeout=self.request_timeout)
        except requests.Timeout as exc:
            raise LLMError(f"Request timed out: {exc}") from exc
        except requests.ConnectionError as exc:
            raise LLMError(
                f"Connection error: {exc}. Please check your internet connection."
            ) from exc
        except requests.RequestException as exc:
            raise LLMError(f"Unknown error: {exc}") from exc

        if response.status_code != 200:
            body = response.text
            logger.error("%s returned status %s: %s", self.name, response.status_code, body)
            lowered = body.lower()
            if "model" in lowered and (response.status_code == 404 or "not found" in lowered):
                raise LLMError(f"Invalid model: {self.model}", status_code=response.status_code)
            raise LLMError(describe_http_error(response.status_code, body), status_code=response.status_code)

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise LLMError(f"Failed to parse JSON: {exc}") from exc

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's reply to the two prompts with thinking tags removed."""
        raise NotImplementedError

    def list_models(self) -> List[str]:
        """Return the model identifiers the provider offers."""
        raise NotImplementedError


@dataclass
class ClaudeClient(ProviderClient):
    """Client for the Anthropic Messages API."""

    base_url: str = "https://api.anthropic.com"

    name = "claude"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self._require_key(),
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.effective_temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        data = self._request("POST", f"{self.base_url}/v1/messages", payload)
        # thinking blocks come before the text block
        for block in data.get("content") or []:
            if isinstance(block, dict) and block.get("type") == "text":
                return strip_thinking_tags(block.get("text", ""))
        raise LLMError("Failed to extract content from response")

    def list_models(self) -> List[str]:
        data = self._request("GET", f"{self.base_url}/v1/models")
        models = [item["id"] for item in data.get("data") or [] if isinstance(item, dict) and "id" in item]
        if not models:
            raise LLMError("No models found in Anthropic API", status_code=404)
        return models


@dataclass
class OpenAIClient(ProviderClient):
    """Client for the OpenAI Chat Completions API."""

    base_url: str = "https://api.openai.com"

    name = "openai"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._require_key()}",
            "content-type": "application/json",
        }

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.effective_temperature,
            "max_completion_tokens": self.max_tokens,
        }
        data = self._request("POST", f"{self.base_url}/v1/chat/completions", payload)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMError("Failed to extract content from response") from exc
        return strip_thinking_tags(content or "")

    def list_models(self) -> List[str]:
        data = self._request("GET", f"{self.base_url}/v1/models")
        return [item["id"] for item in data.get("data") or [] if isinstance(item, dict) and "id" in item]


@dataclass
class GeminiClient(ProviderClient):
    """Client for the Google Gemini ``generateContent`` API."""

    base_url: str = "https://generativelanguage.googleapis.com"

    name = "gemini"

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        key = self._require_key()
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent?key={key}"
        payload = {
            "contents": [{"parts": [{"text": f"{system_prompt}\n\n{user_prompt}"}]}],
            "generationConfig": {
                "temperature": self.effective_temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }
        data = self._request("POST", url, payload)
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMError("Failed to extract content from Gemini response") from exc
        return strip_thinking_tags(text)

    def list_models(self) -> List[str]:
        key = self._require_key()
        data = self._request("GET", f"{self.base_url}/v1beta/models?key={key}")
        models = []
        for item in data.get("models") or []:
            name = item.get("name", "") if isinstance(item, dict) else ""
            if name:
                models.append(name[len("models/"):] if name.startswith("models/") else name)
        return models


@dataclass
class OllamaClient(ProviderClient):
    """Client for a local Ollama server (``/api/chat``)."""

    base_url: str = "http://localhost:11434"

    name = "ollama"
    requires_api_key = False

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "stream": False,
            "options": {
                "temperature": self.effective_temperature,
                "num_predict": self.max_tokens,
            },
        }
        data = self._request("POST", f"{self.base_url}/api/chat", payload)
        # /api/chat answers with 'message', /api/generate with 'response'
        if isinstance(data.get("message"), dict):
            return strip_thinking_tags(data["message"].get("content", ""))
        if "response" in data:
            return strip_thinking_tags(data.get("response", ""))
        raise LLMError("Unexpected response structure from LLM")

    def list_models(self) -> List[str]:
        data = self._request("GET", f"{self.base_url}/api/tags")
        return [item["name"] for item in data.get("models") or [] if isinstance(item, dict) and "name" in item]


PROVIDERS = {
    "claude": ClaudeClient,
    "openai": OpenAIClient,
    "gemini": GeminiClient,
    "ollama": OllamaClient,
}

_DEFAULT_MODELS = {
    "claude": "claude-sonnet-4-5-20250929",
    "openai": "gpt-5.2",
    "gemini": "gemini-3-flash-preview",
    "ollama": "llama3",
}


def default_model(provider: str) -> str:
    """Return the model used when none is configured for ``provider``."""
    try:
        return _DEFAULT_MODELS[provider.lower()]
    except KeyError:
        raise LLMError(f"Provider not found: {provider}") from None


def create_client(
    provider: str,
    settings: Any,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
) -> ProviderClient:
    """Instantiate the client for ``provider``.

    Parameters
    ----------
    provider : str
        One of :data:`PROVIDERS`.
    settings : ProviderSettings
        API key and optional base URL for the provider.
    model : str, optional
        Overrides :func:`default_model`.
    temperature : float, optional
        Overrides :data:`DEFAULT_TEMPERATURE`.

    Raises
    ------
    LLMError
        If the provider is unknown or needs an API key that is missing.
    """
    name = provider.lower()
    client_cls = PROVIDERS.get(name)
    if client_cls is None:
        raise LLMError(f"Provider not found: {provider}. Available providers: {', '.join(PROVIDERS)}")
    if client_cls.requires_api_key and not settings.api_key:
        raise LLMError(f"Provider not available: {name} - API key not set")

    kwargs: Dict[str, Any] = {
        "model": model or default_model(name),
        "api_key": settings.api_key,
        "temperature": temperature,
    }
    if settings.base_url:
        kwargs["base_url"] = settings.base_url.rstrip("/")
    return client_cls(**kwargs)
