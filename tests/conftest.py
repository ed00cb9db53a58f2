"""Shared fixtures and in-memory adapters for Git Replay tests."""

import io
import json
import tempfile
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest
from git import Repo
from rich.console import Console

from git_replay.core.destination import CommitIdentity, GitDestination
from git_replay.core.errors import ContentFetchError, RepositoryMutationError

MUTATIONS = {
    "checkout_branch",
    "make_directory",
    "write_file",
    "set_mode",
    "stage_path",
    "remove_path",
    "commit",
}


class FakeRevisionSource:
    """Revision source serving content from a dictionary."""

    def __init__(
        self,
        contents: Optional[Dict[Tuple[str, str], bytes]] = None,
        modes: Optional[Dict[str, int]] = None,
    ):
        self.contents = dict(contents or {})
        self.modes = dict(modes or {})
        self.fetched: List[Tuple[str, str]] = []

    def fetch(self, path: str, revision: str) -> bytes:
        self.fetched.append((path, revision))
        try:
            return self.contents[(path, revision)]
        except KeyError:
            raise ContentFetchError(f"No content for {path}@{revision}") from None

    def file_mode(self, source_file_id: str) -> int:
        try:
            return self.modes[source_file_id]
        except KeyError:
            raise ContentFetchError(f"No mode for {source_file_id}") from None


class FakeDestination:
    """In-memory destination working tree and history."""

    def __init__(self, tip_log: Optional[str] = None, dirty: bool = False):
        self.tip_log = tip_log
        self.dirty = dirty
        self.files: Dict[str, bytes] = {}
        self.directories: Set[str] = set()
        self.modes: Dict[str, int] = {}
        self.staged: Set[str] = set()
        self.commits: List[dict] = []
        self.calls: List[Tuple[str, tuple]] = []
        self.checked_out: Optional[str] = None
        self.fail_on: Set[str] = set()

    def _call(self, name: str, *args) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise RepositoryMutationError(f"{name} failed")

    @property
    def mutations(self) -> List[Tuple[str, tuple]]:
        return [call for call in self.calls if call[0] in MUTATIONS]

    def read_tip_log(self, branch: str) -> str:
        if self.commits:
            last = self.commits[-1]
            body = "\n".join(f"    {line}" for line in last["message"].splitlines())
            return (
                f"commit {last['id']}\n"
                f"Author: {last['identity'].name} <{last['identity'].email}>\n"
                f"Date:   {last['timestamp']} +0000\n\n{body}\n"
            )
        if self.tip_log is None:
            raise RepositoryMutationError(f"unknown revision {branch}")
        return self.tip_log

    def checkout_branch(self, branch: str) -> None:
        self._call("checkout_branch", branch)
        self.checked_out = branch

    def path_exists(self, path: str) -> bool:
        return path in self.files or path in self.directories

    def make_directory(self, path: str) -> None:
        self._call("make_directory", path)
        if self.path_exists(path):
            raise RepositoryMutationError(f"{path} exists")
        self.directories.add(path)

    def write_file(self, path: str, content: bytes) -> None:
        self._call("write_file", path, content)
        self.files[path] = content

    def set_mode(self, path: str, mode: int) -> None:
        self._call("set_mode", path, mode)
        self.modes[path] = mode

    def stage_path(self, path: str) -> None:
        self._call("stage_path", path)
        if path not in self.files:
            raise RepositoryMutationError(f"pathspec {path} did not match")
        self.staged.add(path)

    def remove_path(self, path: str) -> None:
        self._call("remove_path", path)
        if path not in self.files:
            raise RepositoryMutationError(f"pathspec {path} did not match")
        del self.files[path]
        self.staged.add(path)

    def commit(self, message: str, identity: CommitIdentity) -> str:
        self._call("commit", message, identity)
        commit_id = f"{len(self.commits) + 1:040x}"
        self.commits.append(
            {
                "id": commit_id,
                "message": message,
                "identity": identity,
                "files": dict(self.files),
                "timestamp": _timestamp_of(identity.date),
            }
        )
        self.staged.clear()
        return commit_id

    def is_dirty(self) -> bool:
        return self.dirty


def _timestamp_of(date: str) -> int:
    return int(parsedate_to_datetime(date).timestamp())


def tip_log_at(unixtime: int, author: str = "seed", message: str = "Initial") -> str:
    """Build ``git log -1 -p --date=raw`` style output for a tip commit."""
    return (
        "commit 0123456789abcdef0123456789abcdef01234567\n"
        f"Author: {author} <{author}@localhost>\n"
        f"Date:   {unixtime} +0000\n"
        "\n"
        f"    {message}\n"
        "\n"
        "diff --git a/README b/README\n"
        "new file mode 100644\n"
    )


@pytest.fixture
def console():
    """A rich console recording to memory."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def source():
    return FakeRevisionSource(
        contents={
            ("a.txt", "1.1"): b"first\n",
            ("a.txt", "1.2"): b"second\n",
            ("src/lib/util.c", "1.1"): b"int main(void) { return 0; }\n",
            ("run.sh", "1.1"): b"#!/bin/sh\necho hi\n",
        },
        modes={
            "mod/a.txt,v": 0o100444,
            "mod/src/lib/util.c,v": 0o100444,
            "mod/run.sh,v": 0o100555,
        },
    )


@pytest.fixture
def destination():
    return FakeDestination(tip_log=tip_log_at(1000000000))


@pytest.fixture
def write_log(tmp_path):
    """Write JSON records as a replay log and return its path."""

    def _write(*records, name="history.jsonl"):
        log_file = tmp_path / name
        log_file.write_text("".join(json.dumps(r) + "\n" for r in records))
        return log_file

    return _write


@pytest.fixture
def git_destination():
    """A real git repository on branch ``trunk`` with one seed commit."""
    with tempfile.TemporaryDirectory() as temp_dir:
        repo_path = Path(temp_dir)
        repo = Repo.init(repo_path)
        repo.git.checkout("-b", "trunk")

        (repo_path / "README").write_text("seed\n")
        destination = GitDestination(repo_path)
        destination.stage_path("README")
        destination.commit(
            "Initial import",
            CommitIdentity(
                name="seed",
                email="seed@localhost",
                date="Sun, 09 Sep 2001 01:46:40 +0000",
            ),
        )
        yield destination
