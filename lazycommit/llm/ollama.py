"""Ollama Completion Client for Local Models"""

import json
import http.client
import socket
import urllib.request
import urllib.error

from lazycommit.llm.base import (
    CompletionService, CompletionOptions, LLMError, ProviderError, RequestTimeout, Unreachable,
    error_for_status,
)


class OllamaClient(CompletionService):
    """Ollama client for local models. Requires: ollama serve"""

    DEFAULT_MODEL = "mistral:7b"
    DEFAULT_HOST = "http://localhost:11434"

    def __init__(self, model: str | None = None, host: str | None = None):
        self.model = model or self.DEFAULT_MODEL
        self.host = (host or self.DEFAULT_HOST).rstrip('/')
        self._verify_connection()

    @property
    def name(self) -> str:
        return f"Ollama ({self.model})"

    def _verify_connection(self) -> None:
        """Check if Ollama is running and accessible."""
        try:
            req = urllib.request.Request(f"{self.host}/api/tags")
            with urllib.request.urlopen(req, timeout=5):
                pass
        except (urllib.error.URLError, OSError):
            raise LLMError("Ollama not running.", "Start it with: ollama serve")

    def _call_api(self, system_prompt: str, user_prompt: str, options: CompletionOptions) -> dict:
        """Make a single API call to Ollama."""
        payload = {
            "model": self.model,
            "prompt": user_prompt,
            "system": system_prompt,
            "stream": False,
            "keep_alive": "10m",
            "options": {
                "temperature": options.temperature,
                "top_p": options.top_p,
                "frequency_penalty": options.frequency_penalty,
                "presence_penalty": options.presence_penalty,
                "num_predict": options.max_tokens,
            }
        }

        data = json.dumps(payload).encode('utf-8')
        req = urllib.request.Request(
            f"{self.host}/api/generate", data=data, headers={"Content-Type": "application/json"}
        )

        with urllib.request.urlopen(req, timeout=options.timeout) as response:
            return json.loads(response.read().decode('utf-8'))

    def complete(self, system_prompt: str, user_prompt: str, options: CompletionOptions) -> list[str]:
        try:
            result = self._call_api(system_prompt, user_prompt, options)
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise ProviderError(f"Model '{self.model}' not found.", f"Run: ollama pull {self.model}")
            raise error_for_status(e.code, f"Ollama error ({e.code}): {e.reason}")
        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                raise RequestTimeout(f"Request timed out after {options.timeout:g}s.")
            raise Unreachable(f"Ollama request failed: {e.reason}", "Check that 'ollama serve' is running.")
        except (socket.timeout, TimeoutError):
            raise RequestTimeout(f"Request timed out after {options.timeout:g}s.")
        except json.JSONDecodeError:
            raise ProviderError("Invalid response from Ollama.", "Try a different model or a smaller change.")
        except http.client.HTTPException as e:
            raise ProviderError(f"Incomplete response from Ollama: {e}", "The model may have run out of memory.")
        except OSError as e:
            raise Unreachable(f"Connection to Ollama lost: {e}", "Check that 'ollama serve' is still running.")

        return [result.get("response", "").strip()]
