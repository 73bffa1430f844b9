"""Diff Processor - Split git diffs into token-bounded chunks."""

import math
import re
from dataclasses import dataclass

# Rough estimation for English text and code. Only needs to grow with length.
CHARS_PER_TOKEN = 4

DEFAULT_CHUNK_TOKENS = 6000

FILE_HEADER = 'diff --git '
_FILE_HEADER_RE = re.compile(r'^diff --git a/(.+?) b/(.+?)\s*$', re.MULTILINE)
# Diff lines end at "\n" only; form feeds and other separators are content
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


def estimate_tokens(text: str) -> int:
    """Rough token estimate (~4 chars per token)."""
    return _tokens_for_length(len(text))


def _tokens_for_length(length: int) -> int:
    return math.ceil(length / CHARS_PER_TOKEN)


def iter_lines(text: str) -> list[str]:
    """Lines of text with their "\\n" kept. Unlike str.splitlines, only "\\n" ends a line."""
    return _LINE_RE.findall(text)


def segment_path(segment: str) -> str | None:
    """The b/ path named by a segment's 'diff --git' header."""
    match = _FILE_HEADER_RE.search(segment)
    return match.group(2) if match else None


@dataclass(frozen=True)
class DiffChunk:
    """Contiguous slice of a diff, sent to the model in one request."""
    text: str
    estimated_tokens: int

    @classmethod
    def of(cls, text: str) -> 'DiffChunk':
        return cls(text=text, estimated_tokens=estimate_tokens(text))


def split_diff_by_file(diff: str) -> list[str]:
    """Split a unified diff at each 'diff --git' header.

    Anything before the first header stays attached to the first segment so
    that joining the segments gives back the input. Returns an empty list when
    the diff contains no header at all.
    """
    segments: list[str] = []
    current: list[str] = []
    seen_header = False

    for line in iter_lines(diff):
        if line.startswith(FILE_HEADER):
            if seen_header and current:
                segments.append(''.join(current))
                current = []
            seen_header = True
        current.append(line)

    if not seen_header:
        return []
    if current:
        segments.append(''.join(current))
    return segments


def split_lines(text: str, max_tokens: int) -> list[DiffChunk]:
    """Greedy line packing. A line larger than the budget becomes its own chunk."""
    chunks: list[DiffChunk] = []
    current: list[str] = []
    current_len = 0

    for line in iter_lines(text):
        if current and _tokens_for_length(current_len + len(line)) > max_tokens:
            chunks.append(DiffChunk.of(''.join(current)))
            current = []
            current_len = 0
        current.append(line)
        current_len += len(line)

    if current:
        chunks.append(DiffChunk.of(''.join(current)))
    return chunks


def chunk_diff(diff: str, max_tokens: int = DEFAULT_CHUNK_TOKENS) -> list[DiffChunk]:
    """Partition a diff into ordered chunks of at most max_tokens each.

    Whole files are kept together where they fit, and consecutive small files
    share a chunk. Only a file that alone exceeds the budget is split by line.
    """
    if max_tokens < 1:
        raise ValueError(f"max_tokens must be positive, got {max_tokens}")
    if not diff:
        return []
    if estimate_tokens(diff) <= max_tokens:
        return [DiffChunk.of(diff)]

    segments = split_diff_by_file(diff)
    if not segments:
        return split_lines(diff, max_tokens)

    chunks: list[DiffChunk] = []
    pending: list[str] = []
    pending_len = 0

    def flush():
        nonlocal pending, pending_len
        if pending:
            chunks.append(DiffChunk.of(''.join(pending)))
            pending = []
            pending_len = 0

    for segment in segments:
        if estimate_tokens(segment) > max_tokens:
            flush()
            chunks.extend(split_lines(segment, max_tokens))
            continue
        if pending and _tokens_for_length(pending_len + len(segment)) > max_tokens:
            flush()
        pending.append(segment)
        pending_len += len(segment)

    flush()
    return chunks


def extract_file_names(chunks: list[DiffChunk]) -> list[str]:
    """Paths named by 'diff --git' headers, in order of first appearance."""
    names: list[str] = []
    seen = set()
    for chunk in chunks:
        for match in _FILE_HEADER_RE.finditer(chunk.text):
            path = match.group(2)
            if path not in seen:
                seen.add(path)
                names.append(path)
    return names
