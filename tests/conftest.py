"""Shared test fixtures for git-quads tests."""

import os
import shutil
import subprocess
from pathlib import Path

import pytest


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


ALICE = ("Alice", "alice@example.com")
BOB = ("Bob", "bob@example.com")


class RepoBuilder:
    """Builds a throwaway git repository with fully controlled commits."""

    def __init__(self, path: Path):
        self.path = path
        self.path.mkdir(parents=True, exist_ok=True)
        self.git("init", "-q")
        self.git("config", "user.name", "Test")
        self.git("config", "user.email", "test@test.com")
        self.git("config", "commit.gpgsign", "false")
        self._tick = 0

    def git(self, *args: str, env=None) -> str:
        result = subprocess.run(
            ["git", "-C", str(self.path), *args],
            capture_output=True,
            text=True,
            env=env,
            check=True,
        )
        return result.stdout.strip()

    def write(self, name: str, content: str) -> None:
        target = self.path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def delete(self, name: str) -> None:
        (self.path / name).unlink()

    def commit(self, message: str, author=ALICE, committer=None, date=None) -> str:
        """Stage everything and commit; return the new commit hash."""
        committer = committer or author
        self._tick += 1
        date = date or f"2024-01-{self._tick:02d} 12:00:00 +0200"
        env = dict(os.environ)
        env.update(
            GIT_AUTHOR_NAME=author[0],
            GIT_AUTHOR_EMAIL=author[1],
            GIT_AUTHOR_DATE=date,
            GIT_COMMITTER_NAME=committer[0],
            GIT_COMMITTER_EMAIL=committer[1],
            GIT_COMMITTER_DATE=date,
        )
        self.git("add", "-A")
        self.git("commit", "-q", "--allow-empty", "-m", message, env=env)
        return self.git("rev-parse", "HEAD")

    def git_bytes(self, *args: str, input: bytes = b"", env=None) -> bytes:
        result = subprocess.run(
            ["git", "-C", str(self.path), *args],
            capture_output=True,
            input=input,
            env=env,
            check=True,
        )
        return result.stdout.strip()

    def raw_commit(self, files: dict, author=(b"Test", b"test@test.com"), parent=None) -> str:
        """Commit byte paths and byte signatures through plumbing; move HEAD to it.

        Lets tests build history that is not valid UTF-8, which porcelain
        commands on a work tree can't always produce.
        """
        records = []
        for path, content in files.items():
            blob = self.git_bytes("hash-object", "-w", "--stdin", input=content)
            records.append(b"100644 blob " + blob + b"\t" + path + b"\0")
        tree = self.git_bytes("mktree", "-z", input=b"".join(records)).decode()

        self._tick += 1
        date = f"2024-02-{self._tick:02d} 12:00:00 +0000"
        env = dict(os.environ)
        # subprocess accepts bytes values in env on POSIX
        env.update(
            GIT_AUTHOR_NAME=author[0],
            GIT_AUTHOR_EMAIL=author[1],
            GIT_AUTHOR_DATE=date,
            GIT_COMMITTER_NAME=author[0],
            GIT_COMMITTER_EMAIL=author[1],
            GIT_COMMITTER_DATE=date,
        )
        args = ["commit-tree", tree, "-m", "raw bytes"]
        if parent:
            args += ["-p", parent]
        sha = self.git_bytes(*args, env=env).decode()
        self.git("update-ref", "HEAD", sha)
        return sha

    def blob(self, rev: str, name: str) -> str:
        return self.git("rev-parse", f"{rev}:{name}")

    def tree(self, rev: str) -> str:
        return self.git("rev-parse", f"{rev}^{{tree}}")


@pytest.fixture
def isolated_git(monkeypatch, tmp_path):
    """Keep the user's git config out of the tests."""
    if shutil.which("git") is None:
        pytest.skip("git not found")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.delenv("GIT_DIR", raising=False)
    monkeypatch.delenv("GIT_WORK_TREE", raising=False)


@pytest.fixture
def repo_builder(isolated_git, tmp_path):
    """An empty repository ready for commits."""
    return RepoBuilder(tmp_path / "repo")


@pytest.fixture
def three_commit_repo(repo_builder):
    """Root adds a.txt; second modifies a.txt and adds b.txt; third deletes a.txt."""
    b = repo_builder
    b.write("a.txt", "one\n")
    root = b.commit("Add a")
    b.write("a.txt", "two\n")
    b.write("b.txt", "bee\n")
    second = b.commit("Change a, add b")
    b.delete("a.txt")
    third = b.commit("Remove a", author=BOB)
    b.shas = {"root": root, "second": second, "third": third}
    return b
