"""Message Post-Processor - Turn raw model output into a clean one-line message."""

import re

MIN_MESSAGE_LENGTH = 10
# Hard cuts only get an ellipsis when the text ran this far past the limit
ELLIPSIS_SLACK = 10
ELLIPSIS = '...'

_QUOTES_RE = re.compile(r'^["\']|["\']\.?$')
_NEWLINES_RE = re.compile(r'[\n\r]')
_TRAILING_PERIOD_RE = re.compile(r'(\w)\.$')

SENTENCE_ENDS = ('. ', '! ', '? ')
CLAUSE_ENDS = (', ', '; ')


def sanitize(text: str) -> str:
    """Strip quotes, newlines and a trailing period from model output."""
    text = text.strip()
    text = _QUOTES_RE.sub('', text)
    text = _NEWLINES_RE.sub('', text)
    text = _TRAILING_PERIOD_RE.sub(r'\1', text)
    return text.strip()


def _last_boundary(text: str, separators: tuple[str, ...]) -> int:
    return max(text.rfind(sep) for sep in separators)


def enforce_max_length(text: str, max_length: int) -> str:
    """Shorten text to max_length, preferring sentence, clause, then word boundaries."""
    if len(text) <= max_length:
        return text

    cut = text[:max_length]

    sentence_end = _last_boundary(cut, SENTENCE_ENDS)
    if sentence_end > max_length * 0.7:
        return cut[:sentence_end + 1].rstrip()

    clause_end = _last_boundary(cut, CLAUSE_ENDS)
    if clause_end > max_length * 0.6:
        return cut[:clause_end + 1].rstrip()

    last_space = cut.rfind(' ')
    if last_space > max_length * 0.5:
        return cut[:last_space].rstrip()

    if len(text) > max_length + ELLIPSIS_SLACK and max_length > len(ELLIPSIS):
        return text[:max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS

    return cut


def clean(text: str, max_length: int, min_length: int = 0) -> str | None:
    """Sanitize and truncate one candidate. Returns None when nothing usable is left."""
    message = sanitize(text)
    if len(message) > max_length:
        # The cut can expose a new trailing period
        message = sanitize(enforce_max_length(message, max_length))
    if not message or len(message) < min_length:
        return None
    return message


def deduplicate(messages: list[str]) -> list[str]:
    """Drop exact duplicates, keeping first-seen order."""
    return list(dict.fromkeys(messages))


def clean_all(texts: list[str], max_length: int, min_length: int = 0) -> list[str]:
    cleaned = (clean(t, max_length, min_length) for t in texts)
    return deduplicate([m for m in cleaned if m])
