"""Commit Message Generation Package"""

from lazycommit.generation.orchestrator import (
    MessageGenerator, GenerationRequest, CandidateMessage, generate_message, prepare_payload,
    chunk_output_budget,
)
from lazycommit.generation.postprocess import sanitize, enforce_max_length, clean, clean_all, deduplicate
from lazycommit.generation.strategy import Strategy, classify, LARGE_DIFF_THRESHOLD

__all__ = [
    "MessageGenerator",
    "GenerationRequest",
    "CandidateMessage",
    "generate_message",
    "prepare_payload",
    "chunk_output_budget",
    "sanitize",
    "enforce_max_length",
    "clean",
    "clean_all",
    "deduplicate",
    "Strategy",
    "classify",
    "LARGE_DIFF_THRESHOLD",
]
