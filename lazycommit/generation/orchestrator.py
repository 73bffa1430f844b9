"""Message Generation - Drive a strategy from staged changes to commit messages.

Three paths lead to a message:

- direct: the whole diff is the user prompt.
- summary: a ChangeDigest of per-file statistics is the user prompt.
- chunked: each DiffChunk gets its own request; the per-chunk messages are
  merged by one synthesis request. Failed chunks are skipped. If every chunk
  fails, a last request built from the file names is tried.

Only the chunked path absorbs provider errors. In the direct and summary
paths the single request is the whole job, so its error is the result.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Sequence, Union

from lazycommit.config import Config
from lazycommit.generation.postprocess import MIN_MESSAGE_LENGTH, clean_all, deduplicate
from lazycommit.generation.strategy import LARGE_DIFF_THRESHOLD, Strategy, classify
from lazycommit.git.analyzer import StagedChange
from lazycommit.git.diff_processor import DEFAULT_CHUNK_TOKENS, DiffChunk, chunk_diff, extract_file_names
from lazycommit.git.summary import DEFAULT_DIGEST_FILES, ChangeDigest, build_digest
from lazycommit.llm.base import CompletionOptions, CompletionService, GenerationFailure, LLMError, NoMessagesGenerated
from lazycommit.prompts import PromptBuilder, PromptConfig

logger = logging.getLogger(__name__)

# Output token budget for chunk requests
CONTEXT_CEILING = 8192
PROMPT_OVERHEAD_TOKENS = 1000
MIN_OUTPUT_TOKENS = 200
MAX_OUTPUT_TOKENS = 500

MAX_WORKERS = 4

Payload = Union[str, ChangeDigest, Sequence[DiffChunk]]


@dataclass(frozen=True)
class GenerationRequest:
    """Caller-supplied parameters for one generation run."""
    locale: str = "en"
    completions: int = 1
    max_length: int = 100
    style: str = "conventional"
    timeout: float = 10.0
    proxy: str | None = None
    chunk_size: int = DEFAULT_CHUNK_TOKENS
    hint: str | None = None
    context: str | None = None

    @classmethod
    def from_config(cls, config: Config, hint: str | None = None, context: str | None = None) -> 'GenerationRequest':
        return cls(
            locale=config.locale,
            completions=config.generate,
            max_length=config.max_length,
            style=config.style,
            timeout=config.timeout,
            proxy=config.proxy,
            chunk_size=config.chunk_size,
            hint=hint,
            context=context,
        )


@dataclass(frozen=True)
class CandidateMessage:
    """A cleaned commit message and the strategy that produced it."""
    text: str
    strategy: Strategy


def chunk_output_budget(chunk_tokens: int) -> int:
    """Output tokens for one chunk request, leaving room for the prompt and the chunk."""
    available = CONTEXT_CEILING - PROMPT_OVERHEAD_TOKENS - chunk_tokens
    return min(MAX_OUTPUT_TOKENS, max(MIN_OUTPUT_TOKENS, available))


class MessageGenerator:
    """Runs one generation request against a completion service."""

    def __init__(self, service: CompletionService, request: GenerationRequest, max_workers: int = MAX_WORKERS):
        self.service = service
        self.request = request
        self.max_workers = max(1, max_workers)
        self.prompts = PromptBuilder(PromptConfig(
            locale=request.locale,
            max_length=request.max_length,
            style=request.style,
            hint=request.hint,
        ))
        self.system_prompt = self.prompts.system_prompt()

    def _options(self, max_tokens: int, temperature: float = 0.7) -> CompletionOptions:
        return CompletionOptions(
            temperature=temperature,
            top_p=1.0,
            frequency_penalty=0.0,
            presence_penalty=0.0,
            max_tokens=max_tokens,
            n=1,
            timeout=self.request.timeout,
            proxy=self.request.proxy,
        )

    def _complete(self, user_prompt: str, options: CompletionOptions) -> list[str]:
        return self.service.complete(self.system_prompt, user_prompt, options)

    def _complete_many(self, user_prompt: str, options: CompletionOptions) -> list[str]:
        """Ask for request.completions choices, fanning out when the provider returns one per call."""
        n = self.request.completions
        if n <= 1 or self.service.supports_multiple_completions:
            return self._complete(user_prompt, replace(options, n=max(1, n)))

        with ThreadPoolExecutor(max_workers=min(n, self.max_workers)) as pool:
            futures = [pool.submit(self._complete, user_prompt, options) for _ in range(n)]
            # Issuance order, not completion order
            results = [future.result() for future in futures]
        return [text for choices in results for text in choices]

    def _single_call_messages(self, user_prompt: str, strategy: Strategy, temperature: float,
                              min_length: int) -> list[CandidateMessage]:
        max_tokens = max(MIN_OUTPUT_TOKENS, self.request.max_length * 8)
        texts = self._complete_many(user_prompt, self._options(max_tokens, temperature))
        messages = clean_all(texts, self.request.max_length, min_length)
        if not messages:
            raise NoMessagesGenerated("No commit messages were generated.")
        return [CandidateMessage(m, strategy) for m in messages]

    def generate_direct(self, diff: str) -> list[CandidateMessage]:
        logger.debug("Generating from the full diff (%d chars)", len(diff))
        return self._single_call_messages(self.prompts.direct_prompt(diff), Strategy.DIRECT, 0.7, 0)

    def generate_from_digest(self, digest: ChangeDigest) -> list[CandidateMessage]:
        if digest.is_empty:
            raise GenerationFailure("The change summary is empty.", "Stage some changes with 'git add' first.")
        logger.debug("Generating from a digest of %d files", digest.total_files)
        prompt = self.prompts.summary_prompt(digest.render(), self.request.context)
        return self._single_call_messages(prompt, Strategy.SUMMARY, 0.3, MIN_MESSAGE_LENGTH)

    def _generate_chunk(self, chunk: DiffChunk, index: int, total: int) -> str | None:
        """One chunk's message, or None when the request failed or produced nothing usable."""
        options = self._options(chunk_output_budget(chunk.estimated_tokens), temperature=0.3)
        try:
            texts = self._complete(self.prompts.chunk_prompt(chunk.text, index, total), options)
        except LLMError as e:
            logger.warning("Chunk %d/%d failed: %s", index, total, e.message)
            return None

        messages = clean_all(texts, self.request.max_length, MIN_MESSAGE_LENGTH)
        if not messages:
            logger.warning("Chunk %d/%d produced no usable message", index, total)
            return None
        return messages[0]

    def _synthesize(self, messages: list[str]) -> str | None:
        try:
            texts = self._complete(self.prompts.synthesis_prompt(messages), self._options(MAX_OUTPUT_TOKENS, 0.3))
        except LLMError as e:
            logger.warning("Synthesis failed, returning per-chunk messages: %s", e.message)
            return None

        combined = clean_all(texts, self.request.max_length, MIN_MESSAGE_LENGTH)
        if not combined:
            logger.warning("Synthesis produced no usable message, returning per-chunk messages")
            return None
        return combined[0]

    def _fallback(self, chunks: Sequence[DiffChunk]) -> list[CandidateMessage]:
        names = extract_file_names(list(chunks))
        if not names:
            raise NoMessagesGenerated("Every chunk failed and no file names could be recovered from the diff.")

        logger.info("All %d chunks failed, falling back to the file list", len(chunks))
        try:
            texts = self._complete(self.prompts.fallback_prompt(names), self._options(MAX_OUTPUT_TOKENS, 0.3))
        except LLMError as e:
            raise NoMessagesGenerated(f"No commit messages were generated. Last error: {e.message}") from e

        messages = clean_all(texts, self.request.max_length, MIN_MESSAGE_LENGTH)
        if not messages:
            raise NoMessagesGenerated("No commit messages were generated.")
        return [CandidateMessage(messages[0], Strategy.CHUNKED)]

    def generate_from_chunks(self, chunks: Sequence[DiffChunk]) -> list[CandidateMessage]:
        chunks = list(chunks)
        if not chunks:
            raise NoMessagesGenerated("The diff is empty, there is nothing to describe.")

        total = len(chunks)
        logger.debug("Generating from %d chunks", total)
        with ThreadPoolExecutor(max_workers=min(total, self.max_workers)) as pool:
            futures = [pool.submit(self._generate_chunk, chunk, i, total) for i, chunk in enumerate(chunks, 1)]
            results = [future.result() for future in futures]

        messages = deduplicate([m for m in results if m])

        if not messages:
            return self._fallback(chunks)

        if len(messages) == 1:
            return [CandidateMessage(messages[0], Strategy.CHUNKED)]

        combined = self._synthesize(messages)
        if combined:
            return [CandidateMessage(combined, Strategy.CHUNKED)]
        return [CandidateMessage(m, Strategy.CHUNKED) for m in messages]

    def generate(self, payload: Payload) -> list[CandidateMessage]:
        """Dispatch on the payload type: diff text, digest, or chunks."""
        if isinstance(payload, str):
            return self.generate_direct(payload)
        if isinstance(payload, ChangeDigest):
            return self.generate_from_digest(payload)
        return self.generate_from_chunks(payload)


def prepare_payload(diff: str, stats: list[StagedChange] | None, request: GenerationRequest,
                    threshold: int = LARGE_DIFF_THRESHOLD, digest_max_files: int = DEFAULT_DIGEST_FILES,
                    force: Strategy | None = None) -> tuple[Strategy, Payload]:
    """Classify the change and build the matching payload.

    `stats` is None when per-file statistics could not be collected, which
    rules out the summary path.
    """
    file_count = len(stats) if stats is not None else 0
    strategy = classify(len(diff.encode('utf-8')), file_count, threshold,
                        digest_available=stats is not None, force=force)

    if strategy is Strategy.SUMMARY and not stats:
        logger.info("No file statistics available, using chunked generation instead of a summary")
        strategy = Strategy.CHUNKED

    logger.debug("Using %s generation", strategy.value)
    if strategy is Strategy.SUMMARY:
        return strategy, build_digest(stats, digest_max_files)
    if strategy is Strategy.CHUNKED:
        return strategy, chunk_diff(diff, request.chunk_size)
    return strategy, diff


def generate_message(service: CompletionService, request: GenerationRequest, payload: Payload) -> list[str]:
    """Generate commit messages for a diff, digest or chunk list."""
    return [c.text for c in MessageGenerator(service, request).generate(payload)]
