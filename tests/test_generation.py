"""
Tests for the generation orchestrator against a recording fake service.

Run with:
    pytest tests/test_generation.py -v
"""

import re
import threading
import time

import pytest

from lazycommit.generation import (
    GenerationRequest, MessageGenerator, Strategy, chunk_output_budget, generate_message, prepare_payload,
)
from lazycommit.git.analyzer import StagedChange
from lazycommit.git.diff_processor import DiffChunk
from lazycommit.git.summary import ChangeDigest, build_digest
from lazycommit.llm.base import (
    AuthInvalid, CompletionService, GenerationFailure, NoMessagesGenerated, RateLimited, ServerError,
)

PART_RE = re.compile(r'This is part (\d+) of (\d+)')


class FakeService(CompletionService):
    """Records every request and answers through `responder(user_prompt, options)`."""

    def __init__(self, responder, multiple: bool = False):
        self.responder = responder
        self.supports_multiple_completions = multiple
        self.calls = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "Fake"

    def complete(self, system_prompt, user_prompt, options):
        with self._lock:
            self.calls.append((user_prompt, options))
        return self.responder(user_prompt, options)

    def prompts_starting(self, prefix: str) -> list[str]:
        return [p for p, _ in self.calls if p.startswith(prefix)]


def file_diff(path: str, lines: int = 5) -> str:
    body = ''.join(f"+line {i}\n" for i in range(lines))
    return f"diff --git a/{path} b/{path}\n--- a/{path}\n+++ b/{path}\n@@ -0,0 +1,{lines} @@\n{body}"


CHUNK_MESSAGES = {
    1: "feat(parser): add tokenizer",
    2: "fix(parser): handle eof",
    3: "docs: describe parser usage",
}
SYNTHESIZED = "feat(parser): add tokenizer with eof handling"
FALLBACK = "chore: update parser files"


def chunk_responder(fail: set[int] = frozenset(), synthesis_fails: bool = False, fallback_fails: bool = False,
                    delays: dict[int, float] | None = None):
    """Answer chunk, synthesis and fallback prompts with canned messages."""
    delays = delays or {}

    def respond(prompt, options):
        match = PART_RE.match(prompt)
        if match:
            index = int(match.group(1))
            time.sleep(delays.get(index, 0))
            if index in fail:
                raise RateLimited(f"chunk {index} rate limited")
            return [CHUNK_MESSAGES[index]]
        if prompt.startswith("These commit messages"):
            if synthesis_fails:
                raise ServerError("synthesis down")
            return [f'"{SYNTHESIZED}."']
        if fallback_fails:
            raise ServerError("fallback down")
        return [FALLBACK]

    return respond


@pytest.fixture
def request_():
    return GenerationRequest(max_length=100)


@pytest.fixture
def chunks():
    return [DiffChunk.of(file_diff(name)) for name in ("src/lexer.py", "src/eof.py", "docs/parser.md")]


# ---------------------------------------------------------------------------
# Payload preparation
# ---------------------------------------------------------------------------

class TestPreparePayload:

    def test_small_diff_sent_whole(self, request_):
        diff = file_diff("a.py") + file_diff("b.py")
        stats = [StagedChange("a.py", 5, 0), StagedChange("b.py", 5, 0)]
        strategy, payload = prepare_payload(diff, stats, request_)

        assert strategy == Strategy.DIRECT
        assert payload == diff

    def test_large_diff_with_stats_uses_digest(self, request_):
        stats = [StagedChange(f"src/file_{i}.py", i, 0) for i in range(40)]
        strategy, payload = prepare_payload("x" * 200_000, stats, request_)

        assert strategy == Strategy.SUMMARY
        assert isinstance(payload, ChangeDigest)
        assert payload.total_files == 40
        assert len(payload.entries) == 20

    def test_large_diff_without_stats_is_chunked(self, request_):
        diff = "".join(file_diff(f"f{i}.py", lines=200) for i in range(40))
        strategy, payload = prepare_payload(diff, None, GenerationRequest(chunk_size=2000))

        assert strategy == Strategy.CHUNKED
        assert len(payload) > 1
        assert "".join(c.text for c in payload) == diff

    def test_threshold_counts_bytes(self, request_):
        diff = "é" * 30   # 60 bytes in utf-8
        strategy, _ = prepare_payload(diff, [StagedChange("a.txt", 1, 0)], request_, threshold=50)
        assert strategy == Strategy.SUMMARY

    def test_forced_summary_without_stats_degrades_to_chunks(self, request_):
        strategy, payload = prepare_payload(file_diff("a.py"), None, request_, force=Strategy.SUMMARY)
        assert strategy == Strategy.CHUNKED
        assert isinstance(payload, list)

    def test_forced_direct_on_large_diff(self, request_):
        diff = "x" * 200_000
        strategy, payload = prepare_payload(diff, [StagedChange("a", 1, 0)], request_, force=Strategy.DIRECT)
        assert strategy == Strategy.DIRECT
        assert payload == diff


# ---------------------------------------------------------------------------
# Direct and summary generation
# ---------------------------------------------------------------------------

class TestDirectGeneration:

    def test_one_call_with_full_diff(self, request_):
        diff = file_diff("src/login.py")
        service = FakeService(lambda p, o: ['"feat: add login form."'])

        messages = generate_message(service, request_, diff)

        assert messages == ["feat: add login form"]
        assert len(service.calls) == 1
        assert service.calls[0][0] == diff

    def test_fans_out_when_provider_returns_one_choice(self):
        counter = iter(range(100))
        lock = threading.Lock()

        def respond(prompt, options):
            with lock:
                return [f"feat: variant number {next(counter)}"]

        service = FakeService(respond)
        messages = generate_message(service, GenerationRequest(completions=3), "diff")

        assert len(service.calls) == 3
        assert all(options.n == 1 for _, options in service.calls)
        assert sorted(messages) == [f"feat: variant number {i}" for i in range(3)]

    def test_single_request_when_provider_supports_n(self):
        service = FakeService(lambda p, o: ["fix: one", "fix: two", "fix: one"], multiple=True)
        messages = generate_message(service, GenerationRequest(completions=3), "diff")

        assert len(service.calls) == 1
        assert service.calls[0][1].n == 3
        assert messages == ["fix: one", "fix: two"]

    def test_messages_truncated_to_max_length(self):
        service = FakeService(lambda p, o: ["feat: " + "word " * 40])
        messages = generate_message(service, GenerationRequest(max_length=30), "diff")
        assert len(messages[0]) <= 30

    def test_provider_error_propagates(self, request_):
        def respond(prompt, options):
            raise AuthInvalid("bad key")

        with pytest.raises(AuthInvalid):
            generate_message(FakeService(respond), request_, "diff")

    def test_unusable_output_raises(self, request_):
        with pytest.raises(NoMessagesGenerated):
            generate_message(FakeService(lambda p, o: ['""', "  "]), request_, "diff")

    def test_request_carries_timeout_and_proxy(self):
        service = FakeService(lambda p, o: ["fix: handle timeout"])
        generate_message(service, GenerationRequest(timeout=3.5, proxy="http://proxy:8080"), "diff")

        options = service.calls[0][1]
        assert options.timeout == 3.5
        assert options.proxy == "http://proxy:8080"


class TestSummaryGeneration:

    def test_single_call_with_top_files(self, request_):
        stats = [StagedChange(f"src/file_{i}.py", i, 0) for i in range(40)]
        _, digest = prepare_payload("x" * 200_000, stats, request_)
        service = FakeService(lambda p, o: ["refactor: restructure source modules"])

        messages = generate_message(service, request_, digest)

        assert messages == ["refactor: restructure source modules"]
        assert len(service.calls) == 1
        prompt = service.calls[0][0]
        assert "Files changed: 40" in prompt
        assert "src/file_39.py" in prompt
        assert "src/file_20.py" in prompt
        assert "src/file_19.py" not in prompt
        assert "...and 20 more files" in prompt
        assert "x" * 100 not in prompt

    def test_commit_context_appended(self):
        digest = build_digest([StagedChange("a.py", 3, 0)])
        request = GenerationRequest(context="Recent commit messages:\nfeat: earlier work")
        service = FakeService(lambda p, o: ["feat: extend a module"])

        generate_message(service, request, digest)
        assert service.calls[0][0].endswith("feat: earlier work")

    def test_short_messages_dropped(self, request_):
        digest = build_digest([StagedChange("a.py", 3, 0)])
        with pytest.raises(NoMessagesGenerated):
            generate_message(FakeService(lambda p, o: ["fix"]), request_, digest)

    def test_empty_digest_fails(self, request_):
        service = FakeService(lambda p, o: ["feat: never called"])
        with pytest.raises(GenerationFailure):
            generate_message(service, request_, ChangeDigest())
        assert service.calls == []


# ---------------------------------------------------------------------------
# Chunked generation
# ---------------------------------------------------------------------------

class TestChunkedGeneration:

    def test_synthesizes_in_chunk_order(self, request_, chunks):
        # First chunk answers last; order must still follow the chunks
        service = FakeService(chunk_responder(delays={1: 0.05}))

        messages = generate_message(service, request_, chunks)

        assert messages == [SYNTHESIZED]
        synthesis = service.prompts_starting("These commit messages")
        assert len(synthesis) == 1
        assert (
            f"1. {CHUNK_MESSAGES[1]}\n2. {CHUNK_MESSAGES[2]}\n3. {CHUNK_MESSAGES[3]}" in synthesis[0]
        )

    def test_failed_chunk_skipped(self, request_, chunks):
        service = FakeService(chunk_responder(fail={2}))

        messages = generate_message(service, request_, chunks)

        assert messages == [SYNTHESIZED]
        synthesis = service.prompts_starting("These commit messages")[0]
        assert f"1. {CHUNK_MESSAGES[1]}\n2. {CHUNK_MESSAGES[3]}" in synthesis
        assert CHUNK_MESSAGES[2] not in synthesis

    def test_chunk_failure_logged(self, request_, chunks, caplog):
        generate_message(FakeService(chunk_responder(fail={2})), request_, chunks)
        assert "Chunk 2/3 failed" in caplog.text

    def test_synthesis_failure_returns_chunk_messages(self, request_, chunks):
        service = FakeService(chunk_responder(synthesis_fails=True))
        messages = generate_message(service, request_, chunks)
        assert messages == [CHUNK_MESSAGES[1], CHUNK_MESSAGES[2], CHUNK_MESSAGES[3]]

    def test_single_surviving_message_skips_synthesis(self, request_, chunks):
        service = FakeService(chunk_responder(fail={1, 3}))
        messages = generate_message(service, request_, chunks)

        assert messages == [CHUNK_MESSAGES[2]]
        assert service.prompts_starting("These commit messages") == []

    def test_identical_chunk_messages_collapse(self, request_, chunks):
        service = FakeService(lambda p, o: ["fix: repeated everywhere"])
        messages = generate_message(service, request_, chunks)

        assert messages == ["fix: repeated everywhere"]
        assert len(service.calls) == 3

    def test_all_chunks_fail_uses_file_list(self, request_, chunks):
        service = FakeService(chunk_responder(fail={1, 2, 3}))
        messages = generate_message(service, request_, chunks)

        assert messages == [FALLBACK]
        fallback = service.prompts_starting("Generate a single commit message")
        assert len(fallback) == 1
        assert fallback[0].endswith("src/lexer.py, src/eof.py, docs/parser.md")

    def test_fallback_failure_raises(self, request_, chunks):
        service = FakeService(chunk_responder(fail={1, 2, 3}, fallback_fails=True))
        with pytest.raises(NoMessagesGenerated):
            generate_message(service, request_, chunks)

    def test_no_file_names_skips_fallback(self, request_):
        service = FakeService(chunk_responder(fail={1}))
        with pytest.raises(NoMessagesGenerated):
            generate_message(service, request_, [DiffChunk.of("+no header here\n")])
        assert len(service.calls) == 1

    def test_empty_chunk_list_raises(self, request_):
        with pytest.raises(NoMessagesGenerated):
            MessageGenerator(FakeService(lambda p, o: []), request_).generate_from_chunks([])

    def test_chunk_requests_use_bounded_budget(self, request_):
        big = DiffChunk.of("diff --git a/big b/big\n" + "+" * 28_000 + "\n")
        small = DiffChunk.of(file_diff("small.py"))
        service = FakeService(lambda p, o: ["feat: describe this chunk"])

        generate_message(service, request_, [big, small])

        budgets = [o.max_tokens for p, o in service.calls if PART_RE.match(p)]
        assert sorted(budgets) == [200, 500]


class TestChunkOutputBudget:

    @pytest.mark.parametrize("tokens, expected", [
        (0, 500),
        (6692, 500),
        (6800, 392),
        (7000, 200),
        (50_000, 200),
    ])
    def test_clamped(self, tokens, expected):
        assert chunk_output_budget(tokens) == expected


class TestDispatch:

    def test_payload_type_selects_strategy(self, request_, chunks):
        service = FakeService(chunk_responder())
        generator = MessageGenerator(service, request_)

        assert generator.generate(chunks)[0].strategy == Strategy.CHUNKED
        digest = build_digest([StagedChange("a.py", 1, 0)])
        assert generator.generate(digest)[0].strategy == Strategy.SUMMARY
        assert generator.generate("diff text")[0].strategy == Strategy.DIRECT
