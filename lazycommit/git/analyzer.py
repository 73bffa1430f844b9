"""Git Analyzer - Extract staged changes and statistics from git."""

import logging
import subprocess
from dataclasses import dataclass, field

from lazycommit.git.diff_processor import segment_path, split_diff_by_file

logger = logging.getLogger(__name__)

# Generated or vendored files that never help describe a change
DEFAULT_EXCLUDES: list[str] = [
    'package-lock.json',
    'pnpm-lock.yaml',
    '*.lock',
    'node_modules/**',
    'dist/**',
    'build/**',
    '.next/**',
    'coverage/**',
    '.nyc_output/**',
    '*.log',
    '*.tmp',
    '*.temp',
    '*.cache',
    '.DS_Store',
    'Thumbs.db',
    '*.min.js',
    '*.min.css',
    '*.bundle.js',
    '*.bundle.css',
]


def exclude_pathspec(pattern: str) -> str:
    """Exclude pattern matched from the repository root, not the working directory."""
    return f":(top,exclude){pattern}"


@dataclass(frozen=True)
class StagedChange:
    """A single file's pending modification."""
    path: str
    additions: int = 0
    deletions: int = 0
    diff: str = ""

    def __post_init__(self):
        if not self.path:
            raise ValueError("StagedChange path must be non-empty")
        if self.additions < 0 or self.deletions < 0:
            raise ValueError(f"Negative line counts for {self.path}")

    @property
    def changes(self) -> int:
        return self.additions + self.deletions


@dataclass
class StagedChanges:
    """Complete picture of what's staged for commit."""
    files: list[StagedChange] = field(default_factory=list)
    diff: str = ""

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def total_deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    @property
    def is_empty(self) -> bool:
        return len(self.files) == 0


@dataclass
class ChangeStatistics:
    """Per-file numstat output for the staged changes."""
    files: list[str] = field(default_factory=list)
    stats: list[StagedChange] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        return sum(s.changes for s in self.stats)


@dataclass
class CommitInfo:
    """One entry from git log, used as style reference."""
    hash: str
    author: str
    email: str
    date: str
    message: str
    is_verified: bool = False


class GitError(Exception):
    """Raised when git operations fail."""
    pass


def parse_numstat(output: str) -> list[StagedChange]:
    """Parse 'git diff --numstat -z' output. Binary files report '-' counts.

    A rename has an empty path field followed by the old and new paths as
    separate entries; the new path is kept so it matches --name-only.
    """
    files = []
    entries = iter(output.split('\0'))
    for entry in entries:
        parts = entry.strip('\n').split('\t', 2)
        if len(parts) < 3:
            continue
        path = parts[2]
        if not path:
            next(entries, None)
            path = next(entries, '')
        if not path:
            continue
        additions = int(parts[0]) if parts[0].isdigit() else 0
        deletions = int(parts[1]) if parts[1].isdigit() else 0
        files.append(StagedChange(path=path, additions=additions, deletions=deletions))
    return files


def parse_log(output: str) -> list[CommitInfo]:
    """Parse 'hash|author|email|date|gpg|subject' lines from git log."""
    commits = []
    for line in output.split('\n'):
        parts = line.split('|')
        if len(parts) < 6:
            continue
        hash_, author, email, date, gpg_status = parts[:5]
        # Subjects may contain the separator
        message = '|'.join(parts[5:])
        if hash_ and message:
            commits.append(CommitInfo(
                hash=hash_,
                author=author,
                email=email,
                date=date,
                message=message,
                is_verified=gpg_status in ('G', 'U'),
            ))
    return commits


def select_commit_context(commits: list[CommitInfo], user_email: str, max_commits: int = 10) -> list[CommitInfo]:
    """Prefer the user's signed commits, then the user's commits, then anything."""
    if not commits:
        return []

    verified = [c for c in commits if c.email == user_email and c.is_verified]
    if verified:
        return verified[:max_commits]

    own = [c for c in commits if c.email == user_email]
    if own:
        return own[:max_commits]

    return commits[:max_commits]


def format_commit_context(commits: list[CommitInfo]) -> str:
    if not commits:
        return ""
    messages = '\n'.join(c.message for c in commits)
    return f"Recent commit messages from this repository for style reference:\n{messages}"


class GitAnalyzer:
    """Extracts staged changes from git."""

    # Rename detection on regardless of diff.renames, so numstat keys on the new path
    DIFF_CACHED = ('diff', '--cached', '--diff-algorithm=minimal', '--find-renames')

    def __init__(self, default_excludes: list[str] | None = None):
        self.default_excludes = DEFAULT_EXCLUDES if default_excludes is None else default_excludes
        self._verify_git_available()
        self._verify_in_repo()

    def _run_git(self, *args: str) -> str:
        """Run a git command and return stdout."""
        try:
            result = subprocess.run(
                ['git', *args],
                capture_output=True,
                text=True,
                check=True,
                encoding='utf-8',
                errors='replace'
            )
            return result.stdout
        except subprocess.CalledProcessError as e:
            raise GitError(f"Git command failed: git {' '.join(args)}\n{e.stderr}")
        except FileNotFoundError:
            raise GitError("Git is not installed or not in PATH")

    def _verify_git_available(self) -> None:
        """Fail fast if git isn't available."""
        try:
            self._run_git('--version')
        except GitError:
            raise GitError("Git is not installed or not in PATH")

    def _verify_in_repo(self) -> None:
        """Fail fast if we're not in a git repository."""
        try:
            self._run_git('rev-parse', '--show-toplevel')
        except GitError:
            raise GitError("The current directory must be a git repository")

    def _pathspecs(self, exclude: list[str] | None) -> list[str]:
        patterns = [*self.default_excludes, *(exclude or [])]
        # ':/' is the whole tree whatever the working directory
        return ['--', ':/', *(exclude_pathspec(p) for p in patterns)] if patterns else []

    def _staged_names(self, specs: list[str]) -> list[str]:
        output = self._run_git(*self.DIFF_CACHED, '--name-only', '-z', *specs)
        return [name for name in output.split('\0') if name]

    def _staged_numstat(self, specs: list[str]) -> dict[str, StagedChange]:
        output = self._run_git(*self.DIFF_CACHED, '--numstat', '-z', *specs)
        return {s.path: s for s in parse_numstat(output)}

    def get_staged_changes(self, exclude: list[str] | None = None) -> StagedChanges | None:
        """Staged files with their diff, or None when nothing is staged."""
        specs = self._pathspecs(exclude)
        names = self._staged_names(specs)
        if not names:
            return None

        stats = self._staged_numstat(specs)
        diff = self._run_git(*self.DIFF_CACHED, *specs)

        file_diffs: dict[str, str] = {}
        for segment in split_diff_by_file(diff):
            path = segment_path(segment)
            if path:
                file_diffs.setdefault(path, segment)

        files = []
        for path in names:
            stat = stats.get(path)
            files.append(StagedChange(
                path=path,
                additions=stat.additions if stat else 0,
                deletions=stat.deletions if stat else 0,
                diff=file_diffs.get(path, ""),
            ))
        logger.debug("Staged %d files, diff is %d bytes", len(files), len(diff))
        return StagedChanges(files=files, diff=diff)

    def get_change_statistics(self, exclude: list[str] | None = None) -> ChangeStatistics | None:
        """Per-file addition/deletion counts, or None when nothing is staged."""
        specs = self._pathspecs(exclude)
        names = self._staged_names(specs)
        if not names:
            return None

        by_path = self._staged_numstat(specs)
        stats = [by_path.get(name) or StagedChange(path=name) for name in names]
        return ChangeStatistics(files=names, stats=stats)

    def stage_tracked(self) -> None:
        """Stage modifications to tracked files, like 'git commit --all'."""
        self._run_git('add', '--update')

    def commit(self, message: str, extra_args: list[str] | None = None) -> str:
        return self._run_git('commit', '-m', message, *(extra_args or []))

    def get_user_email(self) -> str:
        try:
            return self._run_git('config', '--get', 'user.email').strip()
        except GitError:
            return ""

    def get_recent_commits(self, limit: int = 50) -> list[CommitInfo]:
        try:
            output = self._run_git(
                'log',
                '--pretty=format:%H|%an|%ae|%ad|%G?|%s',
                '--date=short',
                f'-{limit}',
                '--no-merges',
            )
        except GitError:
            # Fresh repositories have no history
            return []
        return parse_log(output)

    def get_commit_context(self, max_commits: int = 10) -> str:
        """Recent commit subjects formatted as a style reference for the prompt."""
        commits = select_commit_context(self.get_recent_commits(100), self.get_user_email(), max_commits)
        return format_commit_context(commits)
