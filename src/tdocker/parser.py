"""
Parser for ``docker ps --format`` output.

One container per line, seven tab-separated columns in the order of
``PS_FORMAT``. Malformed lines never raise: they are skipped, logged and
counted in ``ParseResult.skipped`` so the dashboard can surface them.
"""

import logging
from typing import Iterable

from .model import ParseResult, Record

logger = logging.getLogger(__name__)

DELIMITER = "\t"
PS_FORMAT = DELIMITER.join([
    "{{.ID}}",
    "{{.Image}}",
    "{{.Command}}",
    "{{.CreatedAt}}",
    "{{.Status}}",
    "{{.Ports}}",
    "{{.Names}}",
])
FIELD_COUNT = 7


def parse(raw_text: str) -> ParseResult:
    records = []
    skipped = 0
    for lineno, line in enumerate(raw_text.splitlines(), start=1):
        if not line.strip():
            continue
        fields = line.split(DELIMITER)
        if len(fields) != FIELD_COUNT:
            logger.warning(
                f"Skipping malformed line {lineno}: expected {FIELD_COUNT} fields, got {len(fields)}"
            )
            skipped += 1
            continue
        records.append(Record(*(f.strip() for f in fields)))
    return ParseResult(records=tuple(records), skipped=skipped)


def serialize(records: Iterable[Record]) -> str:
    """Inverse of parse() for records without tabs or newlines in their fields."""
    return "".join(DELIMITER.join(r.fields()) + "\n" for r in records)
