"""Replay watermark read from the destination branch tip."""

from pydantic import BaseModel


class ReplayWatermark(BaseModel):
    """Metadata of the destination branch's current tip commit."""

    unixtime: int
    author: str
    message: str

    model_config = {"frozen": True}
