"""Read the replay watermark from the destination branch tip.

The tip is inspected through ``git log -1 -p --date=raw`` output, which is
parsed in three phases: header fields, the indented commit message, and the
change list. Parsing stops as soon as the change list starts.
"""

import logging
import re
from enum import Enum
from typing import Dict, List, Optional

from git_replay.core.errors import NoHistoryFound, RepositoryMutationError
from git_replay.models.watermark import ReplayWatermark

logger = logging.getLogger(__name__)

HEADER_FIELD = re.compile(r"^([A-Za-z][A-Za-z-]*):\s?(.*)$")
EMAIL_PART = re.compile(r"\s*<[^>]*>\s*$")
MESSAGE_INDENT = "    "


class ParsePhase(Enum):
    """Phases of the tip log parser."""

    HEADER = "header"
    MESSAGE = "message"
    DIFF = "diff"


class TipLogParser:
    """Three-phase parser for one ``git log -p`` record."""

    def __init__(self):
        self.phase = ParsePhase.HEADER
        self.fields: Dict[str, str] = {}
        self.message_lines: List[str] = []
        self._last_field: Optional[str] = None

    def feed(self, line: str) -> bool:
        """Consume one line. Returns False once nothing more is needed."""
        if self.phase is ParsePhase.DIFF:
            return False

        if line.startswith("diff"):
            self.phase = ParsePhase.DIFF
            return False

        if self.phase is ParsePhase.HEADER:
            if not line.strip():
                self.phase = ParsePhase.MESSAGE
            else:
                self._feed_header(line)
        else:
            self.message_lines.append(
                line[len(MESSAGE_INDENT):] if line.startswith(MESSAGE_INDENT) else line
            )
        return True

    def _feed_header(self, line: str) -> None:
        if line.startswith("commit "):
            self.fields["commit"] = line[len("commit "):].strip()
            self._last_field = None
            return

        match = HEADER_FIELD.match(line)
        if match and not line[0].isspace():
            key = match.group(1).lower()
            self.fields[key] = match.group(2).strip()
            self._last_field = key
        elif self._last_field is not None:
            # continuation of a multi-line header value
            self.fields[self._last_field] += "\n" + line.strip()

    def parse(self, text: str) -> "TipLogParser":
        for line in text.splitlines():
            if not self.feed(line):
                break
        return self

    @property
    def message(self) -> str:
        lines = list(self.message_lines)
        while lines and not lines[-1].strip():
            lines.pop()
        return "\n".join(lines)

    def watermark(self) -> ReplayWatermark:
        date = self.fields.get("date")
        author = self.fields.get("author")
        if not date or not author:
            raise NoHistoryFound("Tip commit has no readable date or author")

        try:
            unixtime = int(date.split()[0])
        except ValueError as e:
            raise NoHistoryFound(f"Unreadable tip commit date: {date!r}") from e

        return ReplayWatermark(
            unixtime=unixtime,
            author=EMAIL_PART.sub("", author).strip(),
            message=self.message,
        )


def parse_tip_log(text: str) -> ReplayWatermark:
    """Parse raw tip log output into a watermark."""
    if not text.strip():
        raise NoHistoryFound("Branch has no commits")
    return TipLogParser().parse(text).watermark()


def read_watermark(destination, branch: str) -> ReplayWatermark:
    """Read the watermark of ``branch`` from a destination repository."""
    try:
        text = destination.read_tip_log(branch)
    except RepositoryMutationError as e:
        raise NoHistoryFound(f"No history found on branch {branch}: {e}") from e

    watermark = parse_tip_log(text)
    logger.info(
        "Destination tip on %s: %s by %s",
        branch,
        watermark.unixtime,
        watermark.author,
    )
    return watermark
