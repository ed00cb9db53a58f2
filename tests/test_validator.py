"""Tests for the ordering check against the destination watermark."""

import pytest

from git_replay.core.errors import OutOfOrderReplay
from git_replay.core.validator import validate_order
from git_replay.models.record import CommitRecord
from git_replay.models.watermark import ReplayWatermark

WATERMARK = ReplayWatermark(unixtime=1000, author="seed", message="Initial")


def record_at(timestamp, message="change"):
    return CommitRecord(
        timestamp=timestamp, branch="trunk", author="alice", message=message
    )


def test_newer_records_pass():
    validate_order([record_at(1001), record_at(2000)], WATERMARK)


def test_record_at_watermark_passes():
    validate_order([record_at(1000)], WATERMARK)


def test_older_record_rejects_batch():
    records = [record_at(1500), record_at(999, "Too old"), record_at(2000)]

    with pytest.raises(OutOfOrderReplay) as exc_info:
        validate_order(records, WATERMARK)

    assert exc_info.value.timestamp == 999
    assert exc_info.value.watermark == 1000
    assert "Too old" in str(exc_info.value)


def test_force_skips_check():
    validate_order([record_at(1), record_at(5)], WATERMARK, force=True)


def test_empty_batch_passes():
    validate_order([], WATERMARK)
