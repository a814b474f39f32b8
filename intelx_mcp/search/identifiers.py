"""
Identifier pseudonymization registry.

Upstream identifiers (system IDs, storage IDs, index files, ...) are opaque
UUID-like strings. Before any payload leaves this process, every value under
one of the fixed field names below is replaced with a small integer, assigned
sequentially per field name. When the agent later sends such an integer back,
the registry recovers the original identifier for the upstream call.

The scheme keeps identifiers short and stable across a response tree and stops
the agent from guessing or fabricating identifiers. It is not encryption.

Invariants:
- forward (raw -> int) and reverse (int -> raw) tables stay in sync
- assignment is idempotent; integers start at 1 and are never reused
- namespaces are independent per field name
- entries are never removed
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from intelx_mcp.utils.logging import get_logger

logger = get_logger(__name__)


class IdentifierField(str, Enum):
    """Field names whose string values are pseudonymized wherever they appear."""

    SYSTEM_ID = "systemid"
    STORAGE_ID = "storageid"
    OWNER = "owner"
    INDEX_FILE = "indexfile"
    GROUP = "group"
    RANDOM_ID = "randomid"
    TARGET = "target"


_FIELDS_BY_NAME: dict[str, IdentifierField] = {f.value: f for f in IdentifierField}


@dataclass
class _FieldTable:
    """Forward/reverse table pair for one field name."""

    forward: dict[str, int] = field(default_factory=dict)
    reverse: dict[int, str] = field(default_factory=dict)
    next_id: int = 1
    lock: threading.Lock = field(default_factory=threading.Lock)


class IdentifierRegistry:
    """Bidirectional per-field pseudonymization tables.

    Safe for concurrent use from multiple search sessions: the
    check-then-insert sequence of each field runs under that field's lock.

    Example:
        registry = IdentifierRegistry()
        payload = registry.normalize({"systemid": "9f1c...", "name": "dump.txt"})
        # {"systemid": 1, "name": "dump.txt"}
        registry.resolve(IdentifierField.SYSTEM_ID, 1)
        # "9f1c..."
    """

    def __init__(self) -> None:
        self._tables: dict[IdentifierField, _FieldTable] = {
            f: _FieldTable() for f in IdentifierField
        }

    def assign(self, field_name: IdentifierField | str, raw_value: str) -> int:
        """Return the integer for raw_value, allocating the next one if unseen.

        Args:
            field_name: Pseudonymized field.
            raw_value: Upstream identifier.

        Returns:
            Positive integer, stable for the lifetime of this registry.
        """
        table = self._tables[IdentifierField(field_name)]
        with table.lock:
            existing = table.forward.get(raw_value)
            if existing is not None:
                return existing

            new_id = table.next_id
            table.next_id += 1
            table.forward[raw_value] = new_id
            table.reverse[new_id] = raw_value
            return new_id

    def resolve(self, field_name: IdentifierField | str, value: int) -> str | None:
        """Recover the upstream identifier for a previously assigned integer.

        Args:
            field_name: Pseudonymized field.
            value: Integer handed out by assign()/normalize().

        Returns:
            The raw identifier, or None if the integer was never assigned.
        """
        return self._tables[IdentifierField(field_name)].reverse.get(value)

    def lookup(self, field_name: IdentifierField | str, raw_value: str) -> int | None:
        """Return the integer already assigned to raw_value, without allocating."""
        return self._tables[IdentifierField(field_name)].forward.get(raw_value)

    def size(self, field_name: IdentifierField | str) -> int:
        """Number of identifiers assigned for a field."""
        return len(self._tables[IdentifierField(field_name)].forward)

    def normalize(self, tree: Any) -> Any:
        """Pseudonymize every identifier field in a JSON-like tree.

        Dict keys in the identifier field set whose value is a string are
        replaced with their integer; everything else is copied. The input is
        never mutated.

        Args:
            tree: dict / list / scalar.

        Returns:
            New tree with identifiers replaced.
        """
        if isinstance(tree, dict):
            copy: dict[Any, Any] = {}
            for key, value in tree.items():
                id_field = _FIELDS_BY_NAME.get(key) if isinstance(key, str) else None
                if id_field is not None and isinstance(value, str):
                    copy[key] = self.assign(id_field, value)
                else:
                    copy[key] = self.normalize(value)
            return copy
        if isinstance(tree, (list, tuple)):
            return [self.normalize(item) for item in tree]
        return tree

    def denormalize(self, tree: Any) -> Any:
        """Inverse of normalize(): restore raw identifiers for known integers.

        Integers with no reverse entry are left unchanged.

        Args:
            tree: dict / list / scalar.

        Returns:
            New tree with identifiers restored where known.
        """
        if isinstance(tree, dict):
            copy: dict[Any, Any] = {}
            for key, value in tree.items():
                id_field = _FIELDS_BY_NAME.get(key) if isinstance(key, str) else None
                if id_field is not None and isinstance(value, int) and not isinstance(value, bool):
                    original = self.resolve(id_field, value)
                    copy[key] = original if original is not None else value
                else:
                    copy[key] = self.denormalize(value)
            return copy
        if isinstance(tree, (list, tuple)):
            return [self.denormalize(item) for item in tree]
        return tree


# Global instance (lives for the whole process)
_registry: IdentifierRegistry | None = None


def get_identifier_registry() -> IdentifierRegistry:
    """Get or create the process-wide identifier registry.

    Returns:
        Global IdentifierRegistry instance.
    """
    global _registry
    if _registry is None:
        _registry = IdentifierRegistry()
        logger.debug("Identifier registry created")
    return _registry


def reset_identifier_registry() -> None:
    """Reset the global registry (for testing only)."""
    global _registry
    _registry = None
