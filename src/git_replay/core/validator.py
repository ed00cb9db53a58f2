"""Ordering check of a decoded batch against the destination watermark."""

import logging
from typing import Sequence

from git_replay.core.errors import OutOfOrderReplay
from git_replay.models.record import CommitRecord
from git_replay.models.watermark import ReplayWatermark

logger = logging.getLogger(__name__)


def validate_order(
    records: Sequence[CommitRecord],
    watermark: ReplayWatermark,
    force: bool = False,
) -> None:
    """Reject the batch if any record predates the destination tip.

    Records stamped exactly at the watermark are accepted. With ``force``
    nothing is checked.
    """
    if force:
        logger.info("Ordering check bypassed for %d records", len(records))
        return

    for record in records:
        if record.timestamp < watermark.unixtime:
            raise OutOfOrderReplay(record.timestamp, watermark.unixtime, record.summary)
