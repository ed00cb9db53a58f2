"""Destination repository: the git working tree history is replayed into."""

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Protocol

import git
from git import Repo
from pydantic import BaseModel

from git_replay.core.errors import RepositoryMutationError

logger = logging.getLogger(__name__)


class CommitIdentity(BaseModel):
    """Author/committer identity and date for one destination commit."""

    name: str
    email: str
    date: str

    model_config = {"frozen": True}

    def as_environment(self) -> Dict[str, str]:
        return {
            "GIT_AUTHOR_NAME": self.name,
            "GIT_AUTHOR_EMAIL": self.email,
            "GIT_AUTHOR_DATE": self.date,
            "GIT_COMMITTER_NAME": self.name,
            "GIT_COMMITTER_EMAIL": self.email,
            "GIT_COMMITTER_DATE": self.date,
        }


class DestinationRepository(Protocol):
    """Port for reading and mutating the destination repository."""

    def read_tip_log(self, branch: str) -> str: ...

    def checkout_branch(self, branch: str) -> None: ...

    def path_exists(self, path: str) -> bool: ...

    def make_directory(self, path: str) -> None: ...

    def write_file(self, path: str, content: bytes) -> None: ...

    def set_mode(self, path: str, mode: int) -> None: ...

    def stage_path(self, path: str) -> None: ...

    def remove_path(self, path: str) -> None: ...

    def commit(self, message: str, identity: CommitIdentity) -> str: ...

    def is_dirty(self) -> bool: ...


class GitDestination:
    """Destination repository backed by GitPython."""

    def __init__(self, repo_dir: Path):
        self.repo_dir = Path(repo_dir).resolve()
        self._repo: Optional[Repo] = None

    @property
    def repo(self) -> Repo:
        """Get the git repository."""
        if self._repo is None:
            try:
                self._repo = Repo(self.repo_dir)
            except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
                raise RepositoryMutationError(
                    f"No git repository found in {self.repo_dir}"
                ) from e
        return self._repo

    def _tree_path(self, path: str) -> Path:
        """Resolve a tree path, refusing anything outside the working tree."""
        resolved = (self.repo_dir / path).resolve()
        if resolved == self.repo_dir or self.repo_dir not in resolved.parents:
            raise RepositoryMutationError(f"Path {path!r} is outside {self.repo_dir}")
        return resolved

    def _git(self, command: str, *args, **kwargs) -> str:
        """Run one git command, translating failures."""
        logger.debug("git %s %s", command, " ".join(str(a) for a in args))
        try:
            return getattr(self.repo.git, command)(*args, **kwargs)
        except git.exc.GitCommandError as e:
            raise RepositoryMutationError(f"git {command} failed: {e}") from e

    def read_tip_log(self, branch: str) -> str:
        return self._git(
            "log",
            "-1",
            "-p",
            "--pretty=medium",
            "--no-show-signature",
            "--date=raw",
            branch,
            "--",
        )

    def checkout_branch(self, branch: str) -> None:
        self._git("checkout", "-q", branch)

    def path_exists(self, path: str) -> bool:
        return os.path.lexists(self._tree_path(path))

    def make_directory(self, path: str) -> None:
        try:
            self._tree_path(path).mkdir()
        except OSError as e:
            raise RepositoryMutationError(f"Cannot create directory {path}: {e}") from e

    def write_file(self, path: str, content: bytes) -> None:
        try:
            self._tree_path(path).write_bytes(content)
        except OSError as e:
            raise RepositoryMutationError(f"Cannot write {path}: {e}") from e

    def set_mode(self, path: str, mode: int) -> None:
        try:
            os.chmod(self._tree_path(path), mode)
        except OSError as e:
            raise RepositoryMutationError(f"Cannot chmod {path}: {e}") from e

    def stage_path(self, path: str) -> None:
        self._git("add", "--", path)

    def remove_path(self, path: str) -> None:
        self._git("rm", "-q", "--", path)

    def commit(self, message: str, identity: CommitIdentity) -> str:
        env = identity.as_environment()
        self._git(
            "commit",
            "-q",
            "--allow-empty",
            "--allow-empty-message",
            "--cleanup=verbatim",
            "-m",
            message,
            env=env,
        )
        return self.repo.head.commit.hexsha

    def is_dirty(self) -> bool:
        return self.repo.is_dirty(untracked_files=False)
