"""OpenAI-compatible chat completion clients (OpenRouter, Groq)"""

import json
import socket
import urllib.request
import urllib.error

from lazycommit.llm.base import (
    CompletionService, CompletionOptions, LLMError, ProviderError, RequestTimeout, Unreachable,
    error_for_status,
)


class ChatCompletionsClient(CompletionService):
    """Talks to a /chat/completions endpoint with a bearer token."""

    API_URL = ""
    DEFAULT_MODEL = ""
    PROVIDER = ""
    KEYS_URL = ""
    KEY_NAME = ""

    def __init__(self, api_key: str | None = None, model: str | None = None, proxy: str | None = None):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.proxy = proxy

        if not self.api_key:
            raise LLMError(
                f"No {self.PROVIDER} API key found.",
                f"Get your key from {self.KEYS_URL} and set it with: lazycommit --set {self.KEY_NAME.lower()}=<key>"
            )

        handlers = []
        if proxy:
            handlers.append(urllib.request.ProxyHandler({"http": proxy, "https": proxy}))
        self._opener = urllib.request.build_opener(*handlers)

    @property
    def name(self) -> str:
        return f"{self.PROVIDER} ({self.model})"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _status_hint(self, status: int) -> str | None:
        return None

    def complete(self, system_prompt: str, user_prompt: str, options: CompletionOptions) -> list[str]:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": options.temperature,
            "top_p": options.top_p,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
            "max_tokens": options.max_tokens,
        }
        req = urllib.request.Request(
            self.API_URL, data=json.dumps(payload).encode('utf-8'), headers=self._headers()
        )

        try:
            with self._opener.open(req, timeout=options.timeout) as response:
                result = json.loads(response.read().decode('utf-8'))
        except urllib.error.HTTPError as e:
            message = f"{self.PROVIDER} API error: {e.code}"
            detail = self._error_detail(e)
            if detail:
                message += f" - {detail}"
            raise error_for_status(e.code, message, self._status_hint(e.code))
        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                raise RequestTimeout(f"Request timed out after {options.timeout:g}s.")
            raise Unreachable(f"Error connecting to {self.PROVIDER}: {e.reason}")
        except (socket.timeout, TimeoutError):
            raise RequestTimeout(f"Request timed out after {options.timeout:g}s.")
        except json.JSONDecodeError:
            raise ProviderError(f"Invalid response from {self.PROVIDER}.")

        return [
            ((choice.get("message") or {}).get("content") or "").strip()
            for choice in result.get("choices", [])
        ]

    @staticmethod
    def _error_detail(error: urllib.error.HTTPError) -> str:
        try:
            body = json.loads(error.read().decode('utf-8'))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            return ""
        return (body.get("error") or {}).get("message", "") if isinstance(body, dict) else ""


class OpenRouterClient(ChatCompletionsClient):
    """OpenRouter client. One choice per request."""

    API_URL = "https://openrouter.ai/api/v1/chat/completions"
    DEFAULT_MODEL = "anthropic/claude-3.5-sonnet"
    PROVIDER = "OpenRouter"
    KEYS_URL = "https://openrouter.ai/keys"
    KEY_NAME = "OPENROUTER_API_KEY"

    def _headers(self) -> dict:
        headers = super()._headers()
        headers["X-Title"] = "lazycommit"
        return headers

    def _status_hint(self, status: int) -> str | None:
        if status == 402:
            return "Insufficient credits. Add credits at https://openrouter.ai/credits"
        if status >= 500:
            return "OpenRouter server error. Check status at https://openrouter.ai"
        return None


class GroqClient(ChatCompletionsClient):
    """Groq client over its OpenAI-compatible endpoint."""

    API_URL = "https://api.groq.com/openai/v1/chat/completions"
    DEFAULT_MODEL = "llama-3.1-8b-instant"
    PROVIDER = "Groq"
    KEYS_URL = "https://console.groq.com/keys"
    KEY_NAME = "GROQ_API_KEY"

    def _status_hint(self, status: int) -> str | None:
        if status >= 500:
            return "Check the API status: https://console.groq.com/status"
        return None
