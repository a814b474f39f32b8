"""
Response normalization for Intelligence X search families.

Pure projection functions from raw upstream record shapes to the flattened
record shapes returned to the agent. Fields are only renamed or selected,
never transformed, with one exception: identity records are merged by
storage identifier and their merged line is length-capped.

Pseudonymization happens afterwards, in the identifier registry.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from intelx_mcp.search.poll_engine import PollOutcome

DEFAULT_LINE_MAX_CHARS = 128

_SEARCH_FIELDS = (
    "systemid",
    "bucket",
    "name",
    "indexfile",
    "storageid",
    "media",
    "type",
    "added",
    "date",
)


def normalize_search_records(records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Project intelligent search records onto the canonical search shape.

    Args:
        records: Raw records from /intelligent/search/result.

    Returns:
        List of flattened records (missing fields become None).
    """
    return [{key: record.get(key) for key in _SEARCH_FIELDS} for record in records]


def normalize_phonebook_results(rounds: Iterable[PollOutcome]) -> list[dict[str, Any]]:
    """Flatten per-round phonebook selectors into {type, value} pairs.

    Args:
        rounds: Retained poll rounds, in order. Each round's records are
            the accepted selectors of that round.

    Returns:
        Selectors across all rounds, in round order.
    """
    return [
        {"type": selector.get("selectortype"), "value": selector.get("selectorvalue")}
        for outcome in rounds
        for selector in outcome.records
    ]


def truncate_line(line: str, max_chars: int = DEFAULT_LINE_MAX_CHARS) -> str:
    """Cap a line at max_chars, noting how many characters were cut."""
    if len(line) <= max_chars:
        return line
    return f"{line[:max_chars]}...(More {len(line) - max_chars} characters)"


def normalize_identity_records(
    records: Iterable[dict[str, Any]],
    line_max_chars: int = DEFAULT_LINE_MAX_CHARS,
) -> list[dict[str, Any]]:
    """Merge identity records by storage identifier.

    Records sharing a storageid fold into one record. The first record of
    each group seeds the metadata fields. Every contributing line (trimmed),
    including the first, is appended to an initially empty accumulator with
    a newline join, so "foo" then "bar" becomes "\\nfoo\\nbar". Output order
    follows the first appearance of each storageid. Records without a
    storageid are never merged; each one becomes its own record.

    Args:
        records: Raw records from /live/search/result (format=1).
        line_max_chars: Maximum merged line length before truncation.

    Returns:
        Merged identity records.
    """
    merged: dict[Any, dict[str, Any]] = {}

    for position, record in enumerate(records):
        item = record.get("item") or {}
        storage_id = item.get("storageid")
        line = (record.get("linea") or "").strip()
        key = storage_id if storage_id is not None else ("unkeyed", position)

        entry = merged.get(key)
        if entry is None:
            entry = {
                "line": "",
                "systemid": item.get("systemid"),
                "storageid": storage_id,
                "bucket": item.get("bucket"),
                "filename": item.get("name"),
                "date": item.get("date"),
            }
            merged[key] = entry

        entry["line"] = "\n".join([entry["line"], line])

    for entry in merged.values():
        entry["line"] = truncate_line(entry["line"], line_max_chars)

    return list(merged.values())


def normalize_account_records(rounds: Iterable[PollOutcome]) -> list[dict[str, Any]]:
    """Project exported account records across all retained rounds.

    Args:
        rounds: Retained poll rounds of an account export job.

    Returns:
        Records with user, password, passwordtype, source, systemid, date, added.
    """
    accounts = []
    for outcome in rounds:
        for record in outcome.records:
            accounts.append(
                {
                    "user": record.get("user"),
                    "password": record.get("password"),
                    "passwordtype": record.get("passwordtype"),
                    "source": record.get("sourceshort"),
                    "systemid": record.get("systemid"),
                    "date": record.get("date"),
                    "added": record.get("added"),
                }
            )
    return accounts


def search_stats(records: Iterable[dict[str, Any]]) -> dict[str, int]:
    """Count records per bucket ("unknown" when a record has none)."""
    stats: dict[str, int] = {}
    for record in records:
        bucket = record.get("bucket") or "unknown"
        stats[bucket] = stats.get(bucket, 0) + 1
    return stats
