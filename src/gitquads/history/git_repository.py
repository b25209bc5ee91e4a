"""Read commits, trees and tree diffs from a git repository via subprocess."""

from __future__ import annotations

import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator, Optional, Union

from ..exceptions import ErrorCode, SourceResolutionError, TraversalError
from ..logging_config import get_logger
from .models import Change, ChangeEntry, CommitRecord, FileEntry, Signature

logger = get_logger(__name__)

# Field separator inside one log record; records are NUL-separated (-z)
_FS = "\x1f"
_LOG_FORMAT = _FS.join(["%H", "%T", "%P", "%an", "%ae", "%ad", "%cn", "%ce", "%cd", "%B"])
_LOG_FIELDS = 10

_READ_CHUNK = 1024 * 1024


def _decode(raw: bytes) -> str:
    """Decode names, paths and messages without losing bytes.

    Git stores them as raw bytes with no guaranteed encoding. Bytes that are
    not valid UTF-8 become lone surrogates, so distinct inputs stay distinct
    and ``encode("utf-8", "surrogateescape")`` gives the original bytes back.
    """
    return raw.decode("utf-8", errors="surrogateescape")


def _parse_signature(name: str, email: str, raw_date: str) -> Signature:
    """Build a Signature from git's ``--date=raw`` form (``1700000000 +0100``)."""
    try:
        seconds, offset = raw_date.split()
        sign = -1 if offset.startswith("-") else 1
        hours, minutes = int(offset[1:3]), int(offset[3:5])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
        when = datetime.fromtimestamp(int(seconds), tz)
    except ValueError as e:
        raise TraversalError(
            f"Malformed signature date: {raw_date!r}",
            ErrorCode.GQ204,
            context={"date": raw_date},
        ) from e
    return Signature(name=name, email=email, when=when)


def _parse_log_record(record: str) -> CommitRecord:
    parts = record.split(_FS, _LOG_FIELDS - 1)
    if len(parts) != _LOG_FIELDS:
        raise TraversalError(
            f"Malformed git log record with {len(parts)} fields",
            ErrorCode.GQ204,
            context={"record": record[:80]},
        )
    sha, tree, parents, an, ae, ad, cn, ce, cd, message = parts
    return CommitRecord(
        hash=sha.lower(),
        tree=tree.lower(),
        parents=tuple(p.lower() for p in parents.split()),
        author=_parse_signature(an, ae, ad),
        committer=_parse_signature(cn, ce, cd),
        message=message,
    )


class CommitIterator:
    """Streams commits out of a running ``git log``.

    Must be closed to release the subprocess; use it as a context manager.
    Closing before the end of the history kills git.
    """

    def __init__(self, args: list[str], timeout: int):
        self._args = args
        self._timeout = timeout
        self._proc: Optional[subprocess.Popen] = None
        self._records: Optional[Generator[CommitRecord, None, None]] = None
        self.closed = False

    @classmethod
    def empty(cls, timeout: int) -> "CommitIterator":
        """An iterator over no commits, for repositories without HEAD."""
        it = cls([], timeout)
        it._records = (record for record in ())
        return it

    def __enter__(self) -> "CommitIterator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __iter__(self) -> "CommitIterator":
        return self

    def __next__(self) -> CommitRecord:
        if self.closed:
            raise StopIteration
        if self._records is None:
            self._records = self._stream()
        return next(self._records)

    def _start(self) -> subprocess.Popen:
        try:
            self._proc = subprocess.Popen(
                self._args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise SourceResolutionError(
                f"git executable not found: {self._args[0]}",
                ErrorCode.GQ101,
                recovery_hint="Install git or set git_executable in the config",
            ) from e
        return self._proc

    def _stream(self) -> Generator[CommitRecord, None, None]:
        proc = self._start()
        stdout = proc.stdout
        assert stdout is not None

        pending = b""
        while True:
            chunk = stdout.read(_READ_CHUNK)
            if not chunk:
                break
            pending += chunk
            *complete, pending = pending.split(b"\0")
            for raw in complete:
                yield _parse_log_record(_decode(raw))

        if pending.strip():
            yield _parse_log_record(_decode(pending))

        self._finish(proc)

    def _finish(self, proc: subprocess.Popen) -> None:
        try:
            returncode = proc.wait(timeout=self._timeout)
        except subprocess.TimeoutExpired as e:
            raise TraversalError(
                "git log did not exit in time", ErrorCode.GQ203
            ) from e
        if returncode != 0:
            stderr = proc.stderr.read().decode("utf-8", errors="replace") if proc.stderr else ""
            raise TraversalError(
                f"git log failed: {stderr.strip()}",
                ErrorCode.GQ200,
                context={"returncode": returncode},
            )

    def close(self) -> None:
        """Stop the walk and release the git process. Safe to call twice."""
        if self.closed:
            return
        self.closed = True
        if self._records is not None:
            self._records.close()
        proc = self._proc
        if proc is None:
            return
        if proc.poll() is None:
            proc.kill()
        try:
            proc.wait(timeout=self._timeout)
        finally:
            if proc.stdout:
                proc.stdout.close()
            if proc.stderr:
                proc.stderr.close()


class GitRepository:
    """Thin handle over a git repository on disk."""

    def __init__(self, path: Union[str, Path], git_executable: str = "git", timeout: int = 60):
        self.location = str(path)
        self.repo_path = str(Path(path).resolve())
        self.git_executable = git_executable
        self.timeout = timeout
        self._empty_tree: Optional[str] = None

    @classmethod
    def open(
        cls, path: Union[str, Path], git_executable: str = "git", timeout: int = 60
    ) -> "GitRepository":
        """Open a repository, or raise SourceResolutionError."""
        repo = cls(path, git_executable=git_executable, timeout=timeout)
        if not Path(repo.repo_path).is_dir():
            raise SourceResolutionError(
                f"Repository path does not exist: {repo.location}",
                ErrorCode.GQ100,
                context={"path": repo.location},
            )
        result = repo._run(["rev-parse", "--git-dir"], check=False)
        if result.returncode != 0:
            raise SourceResolutionError(
                f"Not a git repository: {repo.location}",
                ErrorCode.GQ100,
                context={"path": repo.location, "stderr": result.stderr.decode(errors="replace").strip()},
            )
        return repo

    def _run(
        self,
        args: list[str],
        check: bool = True,
        code: ErrorCode = ErrorCode.GQ200,
        input: Optional[bytes] = None,
    ) -> subprocess.CompletedProcess:
        cmd = [self.git_executable, "-C", self.repo_path, *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                input=input,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise SourceResolutionError(
                f"git executable not found: {self.git_executable}",
                ErrorCode.GQ101,
                recovery_hint="Install git or set git_executable in the config",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise TraversalError(
                f"git {args[0]} timed out after {self.timeout}s",
                ErrorCode.GQ203,
                context={"command": " ".join(args)},
            ) from e

        if check and result.returncode != 0:
            raise TraversalError(
                f"git {args[0]} failed: {result.stderr.decode(errors='replace').strip()}",
                code,
                context={"command": " ".join(args), "returncode": result.returncode},
            )
        return result

    def remote_url(self, name: str = "origin") -> Optional[str]:
        """First configured URL of a remote, or None if it has none."""
        result = self._run(["config", "--get-all", f"remote.{name}.url"], check=False)
        if result.returncode == 1:
            return None
        if result.returncode != 0:
            raise SourceResolutionError(
                f"Could not read remote '{name}'",
                ErrorCode.GQ102,
                context={"remote": name, "stderr": result.stderr.decode(errors="replace").strip()},
            )
        urls = _decode(result.stdout).splitlines()
        return urls[0] if urls else None

    def identity(self) -> str:
        """The repository node identity: origin's URL, else the path as given."""
        url = self.remote_url("origin")
        if url:
            return url
        return self.location

    def has_head(self) -> bool:
        result = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False)
        return result.returncode == 0

    def iter_commits(self) -> CommitIterator:
        """Walk the full history reachable from HEAD in git's default order."""
        if not self.has_head():
            logger.info("Repository has no commits: %s", self.location)
            return CommitIterator.empty(self.timeout)
        args = [
            self.git_executable,
            "-C",
            self.repo_path,
            "log",
            "-z",
            "--no-color",
            "--no-show-signature",
            "--date=raw",
            f"--format={_LOG_FORMAT}",
            "HEAD",
        ]
        return CommitIterator(args, self.timeout)

    def tree_of(self, commit_hash: str) -> str:
        """Resolve the tree hash of a commit."""
        result = self._run(
            ["rev-parse", "--verify", f"{commit_hash}^{{tree}}"], code=ErrorCode.GQ201
        )
        return result.stdout.decode().strip()

    def empty_tree(self) -> str:
        """Hash of the empty tree in this repository's object format."""
        if self._empty_tree is None:
            result = self._run(
                ["hash-object", "-t", "tree", "--stdin"], code=ErrorCode.GQ201, input=b""
            )
            self._empty_tree = result.stdout.decode().strip()
        return self._empty_tree

    def list_files(self, tree_hash: str) -> list[FileEntry]:
        """Every blob in a tree, recursively, in git tree order."""
        result = self._run(["ls-tree", "-r", "-z", tree_hash], code=ErrorCode.GQ201)
        entries = []
        for record in result.stdout.split(b"\0"):
            if not record:
                continue
            meta, _, path = record.partition(b"\t")
            fields = meta.split()
            if len(fields) != 3:
                raise TraversalError(
                    "Malformed ls-tree output",
                    ErrorCode.GQ204,
                    context={"tree": tree_hash, "line": record[:80].decode(errors="replace")},
                )
            _mode, obj_type, obj_hash = fields
            if obj_type != b"blob":
                continue
            entries.append(
                FileEntry(path=_decode(path), hash=obj_hash.decode().lower())
            )
        return entries

    def diff_trees(self, from_tree: Optional[str], to_tree: str) -> list[Change]:
        """Recursive tree diff without rename detection.

        ``from_tree=None`` diffs against the empty tree.
        """
        source = from_tree if from_tree is not None else self.empty_tree()
        result = self._run(
            ["diff-tree", "-r", "-z", "--raw", "--no-renames", source, to_tree],
            code=ErrorCode.GQ202,
        )
        return _parse_raw_diff(result.stdout)


def _parse_raw_diff(output: bytes) -> list[Change]:
    """Parse ``git diff-tree -z --raw`` output into Change records."""
    tokens = output.split(b"\0")
    changes = []
    i = 0
    while i < len(tokens):
        header = tokens[i]
        if not header:
            i += 1
            continue
        if not header.startswith(b":") or i + 1 >= len(tokens):
            raise TraversalError(
                "Malformed diff-tree output",
                ErrorCode.GQ204,
                context={"line": header[:80].decode(errors="replace")},
            )
        path = _decode(tokens[i + 1])
        i += 2

        _src_mode, _dst_mode, src_hash, dst_hash, status = header[1:].decode().split()
        status = status[:1]
        before = ChangeEntry(path=path, hash=src_hash.lower())
        after = ChangeEntry(path=path, hash=dst_hash.lower())
        if status == "A":
            changes.append(Change(before=None, after=after))
        elif status == "D":
            changes.append(Change(before=before, after=None))
        elif status in ("M", "T"):
            changes.append(Change(before=before, after=after))
        else:
            logger.debug("Ignoring diff status %s for %r", status, path)
    return changes
