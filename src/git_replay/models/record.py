"""Commit record models decoded from the replay log."""

from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

DELETED_STATES = {"deleted", "dead"}


class FileState(str, Enum):
    """Recorded state of a file within a commit."""

    PRESENT = "present"
    DELETED = "deleted"


class FileChange(BaseModel):
    """One path's mutation within a recorded commit."""

    path: str
    revision: Optional[str] = None
    state: FileState = FileState.PRESENT
    source_file_id: Optional[str] = Field(default=None, alias="file")

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("revision", mode="before")
    @classmethod
    def _revision_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("state", mode="before")
    @classmethod
    def _normalise_state(cls, value: Any) -> FileState:
        # Only deletion is reliable; anything else ("Exp", "Stab", ...) is present
        if isinstance(value, FileState):
            return value
        if str(value).lower() in DELETED_STATES:
            return FileState.DELETED
        return FileState.PRESENT

    @model_validator(mode="after")
    def _require_revision(self) -> "FileChange":
        if self.state is not FileState.DELETED and not self.revision:
            raise ValueError(f"missing revision for {self.path}")
        return self

    @property
    def is_deleted(self) -> bool:
        return self.state is FileState.DELETED


class CommitRecord(BaseModel):
    """A single recorded commit to replay onto the destination."""

    timestamp: int = Field(alias="unixtime")
    branch: str
    author: str
    message: str = Field(alias="log")
    file_changes: Tuple[FileChange, ...] = Field(default=(), alias="files")

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def summary(self) -> str:
        """First line of the commit message."""
        lines = self.message.strip().splitlines()
        return lines[0] if lines else ""
