"""Git Operations Package"""

from lazycommit.git.analyzer import (
    GitAnalyzer, GitError, StagedChange, StagedChanges, ChangeStatistics, CommitInfo, DEFAULT_EXCLUDES,
)
from lazycommit.git.diff_processor import (
    DiffChunk, chunk_diff, split_diff_by_file, split_lines, estimate_tokens, extract_file_names, iter_lines,
    segment_path,
    DEFAULT_CHUNK_TOKENS,
)
from lazycommit.git.summary import ChangeDigest, DigestEntry, build_digest, DEFAULT_DIGEST_FILES

__all__ = [
    "GitAnalyzer",
    "GitError",
    "StagedChange",
    "StagedChanges",
    "ChangeStatistics",
    "CommitInfo",
    "DEFAULT_EXCLUDES",
    "DiffChunk",
    "chunk_diff",
    "split_diff_by_file",
    "split_lines",
    "estimate_tokens",
    "extract_file_names",
    "iter_lines",
    "segment_path",
    "DEFAULT_CHUNK_TOKENS",
    "ChangeDigest",
    "DigestEntry",
    "build_digest",
    "DEFAULT_DIGEST_FILES",
]
