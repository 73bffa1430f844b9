"""
Tests for GitAnalyzer against real repositories created in a temp directory.

Run with:
    pytest tests/test_git.py -v
"""

import shutil
import subprocess

import pytest

from lazycommit.git.analyzer import GitAnalyzer, GitError, StagedChange

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git(repo, *args):
    subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True)


def write(repo, path, lines):
    target = repo / path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text("".join(f"{line}\n" for line in lines))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def repo(tmp_path, monkeypatch):
    """An empty repository with no user or system git config in effect."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    for role in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{role}_NAME", "Test User")
        monkeypatch.setenv(f"GIT_{role}_EMAIL", "test@example.com")

    path = tmp_path / "repo"
    path.mkdir()
    git(path, "init", "-q")
    (path / "sub").mkdir()
    monkeypatch.chdir(path)
    return path


@pytest.fixture
def in_subdir(repo, monkeypatch):
    monkeypatch.chdir(repo / "sub")
    return repo


# ---------------------------------------------------------------------------
# Staged changes
# ---------------------------------------------------------------------------

class TestStagedChanges:

    def test_empty_index(self, repo):
        analyzer = GitAnalyzer()
        assert analyzer.get_staged_changes() is None
        assert analyzer.get_change_statistics() is None

    def test_outside_repository(self, tmp_path, monkeypatch):
        outside = tmp_path / "plain"
        outside.mkdir()
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        monkeypatch.chdir(outside)
        with pytest.raises(GitError, match="must be a git repository"):
            GitAnalyzer()

    def test_counts_and_diff(self, repo):
        write(repo, "app.py", ["a", "b", "c"])
        git(repo, "add", "app.py")

        staged = GitAnalyzer().get_staged_changes()

        assert staged.paths == ["app.py"]
        assert staged.files[0].additions == 3
        assert staged.diff.startswith("diff --git a/app.py b/app.py")

    def test_each_file_carries_its_own_diff(self, repo):
        write(repo, "a.py", ["one"])
        write(repo, "b.py", ["two"])
        git(repo, "add", ".")

        staged = GitAnalyzer().get_staged_changes()
        by_path = {f.path: f.diff for f in staged.files}

        assert by_path["a.py"].startswith("diff --git a/a.py b/a.py")
        assert "+one\n" in by_path["a.py"]
        assert "+two" not in by_path["a.py"]
        assert by_path["b.py"].startswith("diff --git a/b.py b/b.py")
        assert by_path["a.py"] + by_path["b.py"] == staged.diff

    def test_default_excludes_filtered(self, repo):
        write(repo, "app.py", ["print('hi')"])
        write(repo, "package-lock.json", ["{}"])
        git(repo, "add", ".")

        staged = GitAnalyzer().get_staged_changes()

        assert staged.paths == ["app.py"]
        assert "package-lock.json" not in staged.diff

    def test_everything_excluded(self, repo):
        write(repo, "package-lock.json", ["{}"])
        git(repo, "add", ".")

        analyzer = GitAnalyzer()
        assert analyzer.get_staged_changes() is None
        assert analyzer.get_change_statistics() is None


# ---------------------------------------------------------------------------
# Running from a subdirectory
# ---------------------------------------------------------------------------

class TestFromSubdirectory:

    def test_finds_files_outside_working_directory(self, in_subdir):
        write(in_subdir, "app.py", ["a", "b"])
        git(in_subdir, "add", "app.py")

        analyzer = GitAnalyzer()
        staged = analyzer.get_staged_changes()
        statistics = analyzer.get_change_statistics()

        assert staged.paths == ["app.py"]
        assert statistics.stats == [StagedChange("app.py", 2, 0)]

    def test_user_excludes_match_from_root(self, in_subdir):
        write(in_subdir, "app.py", ["a"])
        write(in_subdir, "docs/guide.md", ["# Guide"])
        write(in_subdir, "sub/logo.svg", ["<svg/>"])
        git(in_subdir, "add", ".")

        staged = GitAnalyzer().get_staged_changes(["docs/**", "*.svg"])

        assert staged.paths == ["app.py"]

    def test_default_excludes_match_from_root(self, in_subdir):
        write(in_subdir, "package-lock.json", ["{}"])
        write(in_subdir, "sub/notes.txt", ["note"])
        git(in_subdir, "add", ".")

        assert GitAnalyzer().get_staged_changes().paths == ["sub/notes.txt"]


# ---------------------------------------------------------------------------
# Renames
# ---------------------------------------------------------------------------

class TestRenames:

    @pytest.fixture
    def renamed(self, repo):
        write(repo, "src/old.py", [f"line {i}" for i in range(10)])
        git(repo, "add", ".")
        git(repo, "commit", "-q", "-m", "init", "--no-gpg-sign")
        git(repo, "mv", "src/old.py", "src/new.py")
        write(repo, "src/new.py", [f"line {i}" for i in range(15)])
        git(repo, "add", ".")
        return repo

    def test_statistics_keyed_on_new_path(self, renamed):
        statistics = GitAnalyzer().get_change_statistics()

        assert statistics.files == ["src/new.py"]
        assert statistics.stats == [StagedChange("src/new.py", 5, 0)]

    def test_rename_detected_despite_config(self, renamed):
        git(renamed, "config", "diff.renames", "false")

        staged = GitAnalyzer().get_staged_changes()

        assert staged.paths == ["src/new.py"]
        assert (staged.files[0].additions, staged.files[0].deletions) == (5, 0)
