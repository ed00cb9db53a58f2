"""Decode the JSON Lines replay log into commit records."""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Union

from pydantic import ValidationError

from git_replay.core.errors import DecodeError
from git_replay.models.record import CommitRecord

logger = logging.getLogger(__name__)


def decode_records(lines: Iterable[str], branch: str) -> List[CommitRecord]:
    """Decode log lines, keeping only records on ``branch``.

    Source order is preserved. Blank lines are ignored; any other line that
    fails to decode aborts the whole batch.
    """
    records: List[CommitRecord] = []
    skipped = 0

    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue

        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise DecodeError(line_number, f"invalid JSON ({e.msg})") from e

        if not isinstance(data, dict):
            raise DecodeError(line_number, "record is not a JSON object")

        try:
            record = CommitRecord.model_validate(data)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
                for err in e.errors()
            )
            raise DecodeError(line_number, errors) from e

        if record.branch != branch:
            skipped += 1
            continue
        records.append(record)

    logger.debug(
        "Decoded %d records on %s (%d on other branches)",
        len(records),
        branch,
        skipped,
    )
    return records


def decode_log_file(log_file: Union[str, Path], branch: str) -> List[CommitRecord]:
    """Decode a replay log file from disk."""
    path = Path(log_file)
    try:
        with path.open(encoding="utf-8") as f:
            return decode_records(f, branch)
    except UnicodeDecodeError as e:
        raise DecodeError(0, f"{path} is not valid UTF-8") from e
