"""Models describing what a replay did (or would do)."""

from enum import Enum
from typing import List

from pydantic import BaseModel


class FileAction(str, Enum):
    """Action taken on the destination tree for one file change."""

    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"


class ReplaySummary(BaseModel):
    """Totals for one replay run."""

    branch: str
    dry_run: bool = False
    commits: int = 0
    added: int = 0
    modified: int = 0
    deleted: int = 0
    commit_ids: List[str] = []

    def record(self, action: FileAction) -> None:
        if action is FileAction.ADD:
            self.added += 1
        elif action is FileAction.MODIFY:
            self.modified += 1
        else:
            self.deleted += 1
