"""Commit replay engine.

Applies each recorded commit to the destination working tree in log order
and creates one destination commit per record, reproducing the original
author, date and message.
"""

import logging
import posixpath
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from rich.console import Console
from rich.markup import escape

from git_replay.core.destination import CommitIdentity, DestinationRepository
from git_replay.core.source import RevisionSource
from git_replay.models.record import CommitRecord, FileChange
from git_replay.models.replay import FileAction, ReplaySummary

logger = logging.getLogger(__name__)

DEFAULT_EMAIL_DOMAIN = "localhost"
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

ACTION_STYLES = {
    FileAction.ADD: "green",
    FileAction.MODIFY: "yellow",
    FileAction.DELETE: "red",
}


def classify_change(change: FileChange, exists_in_tree: bool) -> FileAction:
    """Decide what to do with a file change.

    Deletion follows the recorded state; add vs. modify follows whether the
    path is currently present in the working tree.
    """
    if change.is_deleted:
        return FileAction.DELETE
    if exists_in_tree:
        return FileAction.MODIFY
    return FileAction.ADD


def derive_file_mode(stored_mode: int) -> int:
    """Derive working tree permissions from a source file's stored mode.

    Owner read/write is always set; group and other receive the owner's read
    and execute bits, never write.
    """
    owner = (stored_mode & 0o700) | 0o600
    shared = owner & 0o500
    return (owner | shared >> 3 | shared >> 6) & 0o755


def format_commit_date(timestamp: int) -> str:
    """Render a unix timestamp as an RFC 822 date in UTC."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    # Names are spelled out so the result does not depend on the locale
    return "%s, %02d %s %04d %02d:%02d:%02d +0000" % (
        WEEKDAYS[moment.weekday()],
        moment.day,
        MONTHS[moment.month - 1],
        moment.year,
        moment.hour,
        moment.minute,
        moment.second,
    )


def commit_identity(
    record: CommitRecord, email_domain: str = DEFAULT_EMAIL_DOMAIN
) -> CommitIdentity:
    """Build the author/committer identity for a recorded commit."""
    return CommitIdentity(
        name=record.author,
        email=f"{record.author}@{email_domain}",
        date=format_commit_date(record.timestamp),
    )


def parent_directories(path: str) -> List[str]:
    """List every ancestor directory of ``path``, outermost first."""
    parts = posixpath.dirname(path).split("/")
    return [
        "/".join(parts[: i + 1]) for i in range(len(parts)) if parts[i]
    ]


class ReplayEngine:
    """Replays commit records onto a destination repository."""

    def __init__(
        self,
        source: RevisionSource,
        destination: DestinationRepository,
        console: Optional[Console] = None,
        email_domain: str = DEFAULT_EMAIL_DOMAIN,
        dry_run: bool = False,
        verbose: bool = False,
    ):
        self.source = source
        self.destination = destination
        self.console = console or Console()
        self.email_domain = email_domain
        self.dry_run = dry_run
        self.verbose = verbose
        # paths a dry run would have added (True) or deleted (False)
        self._simulated: Dict[str, bool] = {}

    def replay(self, records: Iterable[CommitRecord], branch: str) -> ReplaySummary:
        """Replay records in the order given."""
        summary = ReplaySummary(branch=branch, dry_run=self.dry_run)
        self._simulated.clear()

        for record in records:
            commit_id = self.replay_commit(record, summary)
            summary.commits += 1
            if commit_id:
                summary.commit_ids.append(commit_id)

        return summary

    def replay_commit(
        self, record: CommitRecord, summary: Optional[ReplaySummary] = None
    ) -> Optional[str]:
        """Apply one record and commit it. Returns the new commit id."""
        identity = commit_identity(record, self.email_domain)
        self._report_commit(record, identity)

        for change in record.file_changes:
            action = self.apply_change(change)
            if summary is not None:
                summary.record(action)

        if self.dry_run:
            return None

        commit_id = self.destination.commit(record.message, identity)
        logger.info("Created %s for commit at %s", commit_id[:8], record.timestamp)
        return commit_id

    def apply_change(self, change: FileChange) -> FileAction:
        """Apply and stage one file change on the working tree."""
        action = classify_change(change, self._path_present(change.path))
        self._report_action(action, change)

        if self.dry_run:
            self._simulated[change.path] = action is not FileAction.DELETE
            return action

        if action is FileAction.DELETE:
            self.destination.remove_path(change.path)
        elif action is FileAction.MODIFY:
            self.destination.write_file(
                change.path, self.source.fetch(change.path, change.revision)
            )
            self.destination.stage_path(change.path)
        else:
            self._add_file(change)

        return action

    def _path_present(self, path: str) -> bool:
        if path in self._simulated:
            return self._simulated[path]
        return self.destination.path_exists(path)

    def _add_file(self, change: FileChange) -> None:
        for directory in parent_directories(change.path):
            if not self.destination.path_exists(directory):
                self.destination.make_directory(directory)

        content = self.source.fetch(change.path, change.revision)
        self.destination.write_file(change.path, content)

        if change.source_file_id:
            mode = derive_file_mode(self.source.file_mode(change.source_file_id))
            self.destination.set_mode(change.path, mode)
        else:
            logger.warning("No source file for %s; keeping default mode", change.path)

        self.destination.stage_path(change.path)

    def _report_commit(self, record: CommitRecord, identity: CommitIdentity) -> None:
        prefix = "[dim](dry run)[/dim] " if self.dry_run else ""
        self.console.print(
            f"{prefix}[bold]{escape(identity.name)}[/bold] {identity.date} "
            f"[cyan]{escape(record.summary)}[/cyan]",
            highlight=False,
        )
        if self.verbose:
            for line in record.message.splitlines():
                self.console.print(f"    {line}", highlight=False, markup=False)

    def _report_action(self, action: FileAction, change: FileChange) -> None:
        logger.debug("%s %s@%s", action.value, change.path, change.revision)
        if not (self.verbose or self.dry_run):
            return
        revision = f"@{change.revision}" if change.revision else ""
        style = ACTION_STYLES[action]
        self.console.print(
            f"  [{style}]{action.value:<6}[/{style}] {escape(change.path)}{revision}",
            highlight=False,
        )
