"""Revision source: fetch historical file content from a CVS checkout."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional, Protocol

from git_replay.core.errors import ContentFetchError

logger = logging.getLogger(__name__)

LOCAL_METHOD = ":local:"


class RevisionSource(Protocol):
    """Port for reading file content as of a historical revision."""

    def fetch(self, path: str, revision: str) -> bytes:
        """Return the exact bytes of ``path`` at ``revision``."""

    def file_mode(self, source_file_id: str) -> int:
        """Return the stored mode bits of a source storage file."""


class CvsRevisionSource:
    """Revision source backed by the ``cvs`` command line client.

    The CVS root and module are read from the checkout's own ``CVS/Root`` and
    ``CVS/Repository`` files.
    """

    def __init__(self, checkout_dir: Path, cvs_executable: str = "cvs"):
        self.checkout_dir = Path(checkout_dir).resolve()
        self.cvs_executable = cvs_executable
        self._root: Optional[str] = None
        self._module: Optional[str] = None

    @property
    def root(self) -> str:
        """CVSROOT the checkout was made from."""
        if self._root is None:
            self._root = self._read_admin_file("Root")
        return self._root

    @property
    def module(self) -> str:
        """Repository path of the checkout inside the CVSROOT."""
        if self._module is None:
            self._module = self._read_admin_file("Repository")
        return self._module

    def _read_admin_file(self, name: str) -> str:
        admin_file = self.checkout_dir / "CVS" / name
        try:
            value = admin_file.read_text().strip()
        except OSError as e:
            raise ContentFetchError(
                f"{self.checkout_dir} is not a CVS checkout: cannot read {admin_file}"
            ) from e
        if not value:
            raise ContentFetchError(f"{admin_file} is empty")
        return value

    @property
    def local_root(self) -> Optional[Path]:
        """Filesystem location of the CVSROOT, if it is a local repository."""
        root = self.root
        if root.startswith(LOCAL_METHOD):
            root = root[len(LOCAL_METHOD):]
        if root.startswith("/"):
            return Path(root)
        return None

    def fetch(self, path: str, revision: str) -> bytes:
        cmd = [
            self.cvs_executable,
            "-Q",
            "-d",
            self.root,
            "checkout",
            "-p",
            "-r",
            revision,
            f"{self.module}/{path}",
        ]
        logger.debug("Fetching %s@%s: %s", path, revision, " ".join(cmd))

        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                cwd=str(self.checkout_dir),
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise ContentFetchError(f"Cannot run {self.cvs_executable}: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise ContentFetchError(
                f"cvs checkout of {path}@{revision} failed "
                f"(exit {result.returncode}): {stderr}"
            )
        return result.stdout

    def file_mode(self, source_file_id: str) -> int:
        local_root = self.local_root
        if local_root is None:
            raise ContentFetchError(
                f"Cannot read file modes from non-local CVSROOT {self.root}"
            )

        storage_file = local_root / source_file_id
        try:
            return os.stat(storage_file).st_mode
        except OSError as e:
            raise ContentFetchError(f"Cannot stat {storage_file}: {e}") from e
