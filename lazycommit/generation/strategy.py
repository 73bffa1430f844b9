"""Size Classifier - Decide how a staged diff is turned into a prompt."""

from enum import Enum

# Diffs at or above this many bytes are too big to send whole
LARGE_DIFF_THRESHOLD = 50_000


class Strategy(str, Enum):
    DIRECT = "direct"
    SUMMARY = "summary"
    CHUNKED = "chunked"


def classify(diff_length: int, file_count: int, threshold: int = LARGE_DIFF_THRESHOLD,
             digest_available: bool = True, force: Strategy | None = None) -> Strategy:
    """Pick a generation strategy.

    Small diffs go to the model as-is. Large ones use the statistics digest,
    or per-chunk generation when no digest could be built. `force` overrides
    the size check entirely.
    """
    if force is not None:
        return force
    if diff_length < threshold:
        return Strategy.DIRECT
    # A digest of zero files says nothing about the change
    if digest_available and file_count > 0:
        return Strategy.SUMMARY
    return Strategy.CHUNKED
