"""Change Summarizer - Compact digest of staged changes for very large diffs."""

from dataclasses import dataclass

from lazycommit.git.analyzer import StagedChange

DEFAULT_DIGEST_FILES = 20


@dataclass(frozen=True)
class DigestEntry:
    path: str
    additions: int
    deletions: int
    changes: int


@dataclass(frozen=True)
class ChangeDigest:
    """Totals plus the files with the most changed lines."""
    total_files: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    total_changes: int = 0
    entries: tuple[DigestEntry, ...] = ()
    omitted: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total_files == 0

    def render(self) -> str:
        lines = [
            f"Files changed: {self.total_files}",
            f"Additions: {self.total_additions}, Deletions: {self.total_deletions}, "
            f"Total changes: {self.total_changes}",
            "Top files by changes:",
        ]
        for e in self.entries:
            lines.append(f"- {e.path} (+{e.additions} / -{e.deletions}, {e.changes} changes)")
        if self.omitted > 0:
            lines.append(f"...and {self.omitted} more files")
        return "\n".join(lines)


def build_digest(stats: list[StagedChange], max_files: int = DEFAULT_DIGEST_FILES) -> ChangeDigest:
    """Summarize per-file statistics, keeping the max_files largest changes.

    sorted() is stable, so files with equal change counts keep their input order.
    """
    if not stats:
        return ChangeDigest()

    ranked = sorted(stats, key=lambda s: s.changes, reverse=True)
    top = ranked[:max(1, max_files)]

    return ChangeDigest(
        total_files=len(stats),
        total_additions=sum(s.additions for s in stats),
        total_deletions=sum(s.deletions for s in stats),
        total_changes=sum(s.changes for s in stats),
        entries=tuple(DigestEntry(s.path, s.additions, s.deletions, s.changes) for s in top),
        omitted=len(stats) - len(top),
    )
