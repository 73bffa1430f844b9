"""Completion Client Package"""

from typing import Callable, Optional

from lazycommit.llm.base import (
    CompletionService, CompletionOptions, LLMError, ProviderError, RateLimited, PayloadTooLarge,
    AuthInvalid, Unreachable, RequestTimeout, ServerError, GenerationFailure, NoMessagesGenerated,
)
from lazycommit.llm.claude import ClaudeClient
from lazycommit.llm.ollama import OllamaClient
from lazycommit.llm.openai_compat import OpenRouterClient, GroqClient

PROVIDERS = {
    "claude": ClaudeClient,
    "openrouter": OpenRouterClient,
    "groq": GroqClient,
    "ollama": OllamaClient,
}

AUTO_DETECT_ORDER = ["ollama", "claude", "openrouter", "groq"]

SecretLookup = Callable[[str], Optional[str]]


def _create(provider: str, model: str | None, get_secret: SecretLookup, proxy: str | None,
            ollama_host: str | None) -> CompletionService:
    client_class = PROVIDERS[provider]
    if client_class is OllamaClient:
        return OllamaClient(model=model, host=ollama_host)
    return client_class(api_key=get_secret(client_class.KEY_NAME), model=model, proxy=proxy)


def get_client(provider: str = "auto", model: str | None = None, get_secret: SecretLookup | None = None,
               proxy: str | None = None, ollama_host: str | None = None) -> CompletionService:
    """Get a completion client. Provider is a PROVIDERS key or 'auto'.

    `get_secret` maps a key name such as ANTHROPIC_API_KEY to its value.
    """
    get_secret = get_secret or (lambda name: None)

    if provider in PROVIDERS:
        return _create(provider, model, get_secret, proxy, ollama_host)

    if provider == "auto":
        for name in AUTO_DETECT_ORDER:
            try:
                return _create(name, model, get_secret, proxy, ollama_host)
            except LLMError:
                continue

        raise LLMError(
            "No LLM provider available.",
            "Option 1 - Use Ollama (free, local):\n"
            "  1. Install: https://ollama.ai\n"
            "  2. Start: ollama serve\n"
            "  3. Pull: ollama pull llama3.2:3b\n\n"
            "Option 2 - Use a hosted API:\n"
            "  export ANTHROPIC_API_KEY, OPENROUTER_API_KEY or GROQ_API_KEY"
        )

    raise LLMError(f"Unknown provider: {provider}. Use one of: auto, {', '.join(PROVIDERS)}.")


__all__ = [
    "CompletionService",
    "CompletionOptions",
    "LLMError",
    "ProviderError",
    "RateLimited",
    "PayloadTooLarge",
    "AuthInvalid",
    "Unreachable",
    "RequestTimeout",
    "ServerError",
    "GenerationFailure",
    "NoMessagesGenerated",
    "ClaudeClient",
    "OllamaClient",
    "OpenRouterClient",
    "GroqClient",
    "get_client",
    "PROVIDERS",
    "AUTO_DETECT_ORDER",
]
