"""Orchestration of a complete replay run."""

import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from git_replay.config import ReplayConfig
from git_replay.core.decoder import decode_log_file
from git_replay.core.destination import DestinationRepository
from git_replay.core.engine import ReplayEngine
from git_replay.core.history import read_watermark
from git_replay.core.source import RevisionSource
from git_replay.core.validator import validate_order
from git_replay.models.record import CommitRecord
from git_replay.models.replay import ReplaySummary

logger = logging.getLogger(__name__)


class ReplayRunner:
    """Runs decode, validation and replay for one branch.

    Every check happens before the first mutation of the destination.
    """

    def __init__(
        self,
        source: RevisionSource,
        destination: DestinationRepository,
        config: Optional[ReplayConfig] = None,
        console: Optional[Console] = None,
    ):
        self.source = source
        self.destination = destination
        self.config = config or ReplayConfig()
        self.console = console or Console()

    def run(self, log_file: Path, branch: str) -> ReplaySummary:
        """Replay every record of ``branch`` found in ``log_file``."""
        records = decode_log_file(log_file, branch)
        return self.replay_records(records, branch)

    def replay_records(self, records: List[CommitRecord], branch: str) -> ReplaySummary:
        self.console.print(
            f"Replaying [bold]{len(records)}[/bold] commits onto [bold]{branch}[/bold]"
        )

        watermark = read_watermark(self.destination, branch)
        validate_order(records, watermark, force=self.config.force)

        if self.config.dry_run:
            logger.info("Dry run: not checking out %s", branch)
        else:
            self.destination.checkout_branch(branch)

        if self.destination.is_dirty():
            logger.warning(
                "Working tree has uncommitted changes; they may be included "
                "in the first replayed commit"
            )

        engine = ReplayEngine(
            self.source,
            self.destination,
            console=self.console,
            email_domain=self.config.email_domain,
            dry_run=self.config.dry_run,
            verbose=self.config.verbose,
        )
        return engine.replay(records, branch)
