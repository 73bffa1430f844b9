"""LLM Base Classes and Shared Code"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

REDUCE_PAYLOAD_HINT = (
    "Your diff is too large or the provider is rate limiting you. Try:\n"
    "  1. Commit files in smaller batches\n"
    "  2. Exclude large files with --exclude\n"
    "  3. Use a different model with --model\n"
    "  4. Check if you have build artifacts staged (dist/, .next/, etc.)"
)


@dataclass
class CompletionOptions:
    """Sampling parameters for one completion request."""
    temperature: float = 0.7
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    max_tokens: int = 200
    n: int = 1
    timeout: float = 10.0
    proxy: str | None = None


class LLMError(Exception):
    """Raised when LLM operations fail. `hint` tells the user what to try next."""

    default_hint = ""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.message = message
        self.hint = self.default_hint if hint is None else hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n\n{self.hint}"
        return self.message


class ProviderError(LLMError):
    """The completion service rejected or failed a request."""
    pass


class RateLimited(ProviderError):
    default_hint = REDUCE_PAYLOAD_HINT


class PayloadTooLarge(ProviderError):
    default_hint = REDUCE_PAYLOAD_HINT


class AuthInvalid(ProviderError):
    default_hint = "Check your API key. Run lazycommit --display-config to see where it is read from."


class Unreachable(ProviderError):
    default_hint = (
        "Check your internet connection. If you're behind a VPN, proxy or firewall, "
        "make sure it's configured correctly (--proxy)."
    )


class RequestTimeout(ProviderError):
    default_hint = "Try increasing the timeout: lazycommit --set timeout=20"


class ServerError(ProviderError):
    default_hint = "The provider had an internal error. Check its status page and try again."


class GenerationFailure(LLMError):
    """No usable commit message could be produced."""
    pass


class NoMessagesGenerated(GenerationFailure):
    default_hint = "Try again, or adjust --max-length, --chunk-size or --model."


def error_for_status(status: int, message: str, hint: str | None = None) -> ProviderError:
    """Map an HTTP status code onto the provider error taxonomy."""
    if status in (401, 403):
        return AuthInvalid(message, hint)
    if status == 413:
        return PayloadTooLarge(message, hint)
    if status == 429:
        return RateLimited(message, hint)
    if status >= 500:
        return ServerError(message, hint)
    return ProviderError(message, hint)


class CompletionService(ABC):
    """Abstract base for completion providers."""

    # Providers that can return n > 1 choices from a single request
    supports_multiple_completions = False

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str, options: CompletionOptions) -> list[str]:
        """Return the text of each choice, or raise ProviderError."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass
