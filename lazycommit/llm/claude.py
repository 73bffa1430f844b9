"""Claude (Anthropic) Completion Client"""

from lazycommit.llm.base import (
    CompletionService, CompletionOptions, LLMError, ProviderError, AuthInvalid, RateLimited,
    RequestTimeout, Unreachable, error_for_status,
)


class ClaudeClient(CompletionService):
    """Claude API client. The API key is passed in by the caller."""

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    KEY_NAME = "ANTHROPIC_API_KEY"

    def __init__(self, api_key: str | None = None, model: str | None = None, proxy: str | None = None):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL

        if not self.api_key:
            raise LLMError(
                "No Anthropic API key found.",
                "Set it with: lazycommit --set anthropic_api_key=<key>\n"
                "  or: export ANTHROPIC_API_KEY='your-key-here'"
            )

        try:
            from anthropic import Anthropic, DefaultHttpxClient
        except ImportError:
            raise LLMError("Anthropic SDK not installed.", "Run: pip install anthropic")

        kwargs = {"api_key": self.api_key}
        if proxy:
            kwargs["http_client"] = DefaultHttpxClient(proxy=proxy)
        self._client = Anthropic(**kwargs)

    @property
    def name(self) -> str:
        return f"Claude ({self.model})"

    def complete(self, system_prompt: str, user_prompt: str, options: CompletionOptions) -> list[str]:
        import anthropic

        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                timeout=options.timeout,
            )
        except anthropic.AuthenticationError:
            raise AuthInvalid("Invalid Anthropic API key.")
        except anthropic.RateLimitError as e:
            raise RateLimited(f"Claude API rate limit: {e.message}")
        except anthropic.APITimeoutError:
            raise RequestTimeout(f"Request timed out after {options.timeout:g}s.")
        except anthropic.APIConnectionError as e:
            raise Unreachable(f"Error connecting to the Anthropic API: {e}")
        except anthropic.APIStatusError as e:
            raise error_for_status(e.status_code, f"Claude API error ({e.status_code}): {e.message}")
        except anthropic.APIError as e:
            raise ProviderError(f"Claude API error: {e.message}")

        text = "".join(block.text for block in response.content if block.type == "text")
        return [text.strip()]
