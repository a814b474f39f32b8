"""
Tests for intelx_mcp/search/identifiers.py

## Test Perspectives Table

| Case ID | Input / Precondition | Perspective (Equivalence / Boundary) | Expected Result | Notes |
|---------|---------------------|---------------------------------------|-----------------|-------|
| TC-N-01 | Flat record with systemid/storageid | Equivalence - normal | IDs replaced with 1, other keys copied | - |
| TC-N-02 | Same raw twice | Equivalence - idempotent | Same integer | - |
| TC-N-03 | Distinct raws in one field | Equivalence - normal | 1, 2, 3 in insertion order | - |
| TC-N-04 | Same raw in two fields | Equivalence - namespaces | Both get 1 | Independent counters |
| TC-N-05 | Nested dict/list tree | Equivalence - recursion | All levels rewritten | - |
| TC-N-06 | normalize then denormalize | Equivalence - round trip | Original tree restored | - |
| TC-N-07 | resolve(assign(raw)) | Equivalence - normal | raw | - |
| TC-N-08 | lookup / size | Equivalence - normal | Read-only lookup, count | - |
| TC-B-01 | Integer value under identifier key in normalize | Boundary - non-string | Left unchanged | - |
| TC-B-02 | Unknown integer in denormalize | Boundary - unknown | Left unchanged | Fail-soft |
| TC-B-03 | Boolean under identifier key in denormalize | Boundary - bool | Left unchanged | - |
| TC-B-04 | resolve of unassigned integer | Boundary - unknown | None | - |
| TC-B-05 | Input tree after normalize | Boundary - immutability | Input not mutated | - |
| TC-A-01 | Unknown field name | Abnormal | ValueError | - |
| TC-A-02 | Concurrent assigns from threads | Abnormal - race | No duplicate integers | - |
| TC-N-09 | get_identifier_registry twice / reset | Equivalence - singleton | Same instance, new after reset | - |
"""

import copy
import threading

import pytest

from intelx_mcp.search.identifiers import (
    IdentifierField,
    IdentifierRegistry,
    get_identifier_registry,
    reset_identifier_registry,
)


class TestNormalize:
    """Tests for IdentifierRegistry.normalize()."""

    def test_flat_record(self) -> None:
        """
        TC-N-01: Identifier fields are replaced, others copied.

        // Given: A record with systemid, storageid and a name
        // When: normalize() is called
        // Then: Identifiers become 1, name is unchanged
        """
        registry = IdentifierRegistry()

        result = registry.normalize(
            {"systemid": "sys-aaaa", "storageid": "sto-aaaa", "name": "dump.txt"}
        )

        assert result == {"systemid": 1, "storageid": 1, "name": "dump.txt"}

    def test_idempotent_assignment(self) -> None:
        """
        TC-N-02: The same raw value always maps to the same integer.

        // Given: A registry that already saw a systemid
        // When: The same systemid is normalized again
        // Then: The same integer is returned and the table does not grow
        """
        registry = IdentifierRegistry()
        first = registry.normalize({"systemid": "sys-aaaa"})

        second = registry.normalize([{"systemid": "sys-aaaa"}])

        assert first["systemid"] == second[0]["systemid"] == 1
        assert registry.size(IdentifierField.SYSTEM_ID) == 1

    def test_sequential_assignment(self) -> None:
        """
        TC-N-03: Distinct raws get 1, 2, 3 in insertion order.

        // Given: Three distinct storage IDs
        // When: Normalizing a list of them
        // Then: Integers are sequential from 1
        """
        registry = IdentifierRegistry()

        result = registry.normalize(
            [{"storageid": "a"}, {"storageid": "b"}, {"storageid": "c"}, {"storageid": "a"}]
        )

        assert [r["storageid"] for r in result] == [1, 2, 3, 1]

    def test_independent_namespaces(self) -> None:
        """
        TC-N-04: Each field name has its own counter.

        // Given: The same raw string under systemid and storageid
        // When: normalize() is called
        // Then: Both fields get 1
        """
        registry = IdentifierRegistry()

        result = registry.normalize({"systemid": "same", "storageid": "same", "owner": "x"})

        assert result == {"systemid": 1, "storageid": 1, "owner": 1}

    def test_nested_tree(self) -> None:
        """
        TC-N-05: Identifiers are rewritten at every depth.

        // Given: A tree with identifiers inside nested dicts and lists
        // When: normalize() is called
        // Then: All identifier fields are integers, structure is preserved
        """
        registry = IdentifierRegistry()
        tree = {
            "results": [
                {"item": {"indexfile": "idx-1", "group": "g-1"}, "tags": ["a", "b"]},
                {"item": {"indexfile": "idx-2", "randomid": "r-1", "target": "t-1"}},
            ],
            "count": 2,
        }

        result = registry.normalize(tree)

        assert result == {
            "results": [
                {"item": {"indexfile": 1, "group": 1}, "tags": ["a", "b"]},
                {"item": {"indexfile": 2, "randomid": 1, "target": 1}},
            ],
            "count": 2,
        }

    def test_non_string_identifier_untouched(self) -> None:
        """
        TC-B-01: Only string values are pseudonymized.

        // Given: An identifier key holding an integer and one holding None
        // When: normalize() is called
        // Then: Values are copied unchanged and nothing is assigned
        """
        registry = IdentifierRegistry()

        result = registry.normalize({"systemid": 42, "storageid": None})

        assert result == {"systemid": 42, "storageid": None}
        assert registry.size("systemid") == 0

    def test_input_not_mutated(self) -> None:
        """
        TC-B-05: normalize() returns a new tree.

        // Given: A nested input tree and a deep copy of it
        // When: normalize() is called
        // Then: The input still equals its copy
        """
        registry = IdentifierRegistry()
        tree = {"records": [{"systemid": "sys-aaaa", "meta": {"storageid": "sto-aaaa"}}]}
        snapshot = copy.deepcopy(tree)

        registry.normalize(tree)

        assert tree == snapshot

    def test_scalar_passthrough(self) -> None:
        """
        Scalars and strings outside dicts are returned as-is.

        // Given: A plain string payload (e.g., file preview text)
        // When: normalize() is called
        // Then: The same string is returned
        """
        registry = IdentifierRegistry()

        assert registry.normalize("line one\nline two") == "line one\nline two"
        assert registry.normalize(None) is None


class TestDenormalize:
    """Tests for IdentifierRegistry.denormalize()."""

    def test_round_trip(self) -> None:
        """
        TC-N-06: denormalize(normalize(t)) restores a fresh tree.

        // Given: A tree with identifiers in several fields
        // When: Normalizing then denormalizing
        // Then: The original tree is restored
        """
        registry = IdentifierRegistry()
        tree = [
            {"systemid": "sys-1", "storageid": "sto-1", "bucket": "pastes"},
            {"systemid": "sys-2", "storageid": "sto-1", "nested": [{"owner": "o-1"}]},
        ]

        assert registry.denormalize(registry.normalize(tree)) == tree

    def test_unknown_integer_left_unchanged(self) -> None:
        """
        TC-B-02: Integers never handed out stay as they are.

        // Given: An empty registry
        // When: Denormalizing {"systemid": 99}
        // Then: The value stays 99
        """
        registry = IdentifierRegistry()

        assert registry.denormalize({"systemid": 99}) == {"systemid": 99}

    def test_boolean_not_treated_as_identifier(self) -> None:
        """
        TC-B-03: Booleans are not integers for identifier purposes.

        // Given: A registry where systemid 1 is assigned
        // When: Denormalizing {"systemid": True}
        // Then: The value stays True
        """
        registry = IdentifierRegistry()
        registry.assign(IdentifierField.SYSTEM_ID, "sys-1")

        assert registry.denormalize({"systemid": True}) == {"systemid": True}


class TestResolveAndLookup:
    """Tests for assign/resolve/lookup/size."""

    def test_resolve_assigned(self) -> None:
        """
        TC-N-07: resolve(f, assign(f, raw)) == raw.

        // Given: An assigned storage ID
        // When: Resolving its integer
        // Then: The raw value is returned
        """
        registry = IdentifierRegistry()
        value = registry.assign(IdentifierField.STORAGE_ID, "sto-xyz")

        assert registry.resolve(IdentifierField.STORAGE_ID, value) == "sto-xyz"
        assert registry.resolve("storageid", value) == "sto-xyz"

    def test_resolve_unknown_returns_none(self) -> None:
        """
        TC-B-04: Unassigned integers resolve to None.

        // Given: An empty registry
        // When: Resolving systemid 1
        // Then: None
        """
        registry = IdentifierRegistry()

        assert registry.resolve(IdentifierField.SYSTEM_ID, 1) is None

    def test_lookup_does_not_allocate(self) -> None:
        """
        TC-N-08: lookup() is read-only.

        // Given: A registry with one systemid
        // When: Looking up a known and an unknown raw value
        // Then: Known returns its integer, unknown returns None and size stays 1
        """
        registry = IdentifierRegistry()
        registry.assign("systemid", "known")

        assert registry.lookup("systemid", "known") == 1
        assert registry.lookup("systemid", "unknown") is None
        assert registry.size("systemid") == 1

    def test_unknown_field_rejected(self) -> None:
        """
        TC-A-01: Only the fixed field set is accepted.

        // Given: A field name outside the set
        // When: assign() is called
        // Then: ValueError is raised
        """
        registry = IdentifierRegistry()

        with pytest.raises(ValueError):
            registry.assign("bucket", "pastes")


class TestConcurrency:
    """Thread-safety of assignment."""

    def test_concurrent_assign_no_collisions(self) -> None:
        """
        TC-A-02: Concurrent assignment never hands out one integer twice.

        // Given: 8 threads each assigning the same 200 raw values
        // When: All threads run concurrently
        // Then: Exactly 200 entries exist with integers 1..200, one per raw
        """
        registry = IdentifierRegistry()
        raws = [f"sys-{i}" for i in range(200)]
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            for raw in raws:
                registry.assign(IdentifierField.SYSTEM_ID, raw)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assigned = {raw: registry.lookup(IdentifierField.SYSTEM_ID, raw) for raw in raws}
        assert registry.size(IdentifierField.SYSTEM_ID) == 200
        assert sorted(assigned.values()) == list(range(1, 201))
        for raw, value in assigned.items():
            assert registry.resolve(IdentifierField.SYSTEM_ID, value) == raw


class TestGlobalRegistry:
    """Tests for the process-wide accessor."""

    def test_singleton_and_reset(self) -> None:
        """
        TC-N-09: Accessor returns one instance until reset.

        // Given: The global accessor
        // When: Called twice, then after reset
        // Then: Same instance twice, a fresh empty one after reset
        """
        first = get_identifier_registry()
        first.assign("systemid", "sys-1")

        assert get_identifier_registry() is first

        reset_identifier_registry()
        fresh = get_identifier_registry()

        assert fresh is not first
        assert fresh.size("systemid") == 0
