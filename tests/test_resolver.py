# tests/test_resolver.py
"""
Tests for the fixpoint resolver: transitive confirmation, failure
propagation, LIFO order, alias resolution and idempotence.
"""

import pytest

from byvalue_analysis.errors import (
    AliasCycleError,
    BlocklistedError,
    ComplexAliasError,
    DeclarationMissingError,
    DependentTypeUnsafeError,
    KnownUnsafeTypeError,
    VirtualDispatchError,
)
from byvalue_analysis.ingestion import ingest
from byvalue_analysis.resolver import alias_chain, confirm
from byvalue_analysis.safety_store import Verdict, VerdictKind
from tests.conftest import T, alias, blocked, enum, opaque, struct


class TestConfirmStructs:

    def test_primitives(self, store):
        ingest(store, [struct("Foo", "int32_t", "int64_t")])
        confirm(store, [T("Foo")])
        assert store.is_confirmed_safe(T("Foo"))

    def test_nested_struct_confirmed_transitively(self, store):
        ingest(store, [struct("Foo", "int32_t", "int64_t"), struct("Bar", "Foo", "int64_t")])
        confirm(store, [T("Bar")])
        assert store.is_confirmed_safe(T("Bar"))
        assert store.is_confirmed_safe(T("Foo"))

    def test_unrequested_candidate_stays_unconfirmed(self, store):
        ingest(store, [struct("Foo", "int"), struct("Other", "int")])
        confirm(store, [T("Foo")])
        assert not store.is_confirmed_safe(T("Other"))

    def test_deep_chain(self, store):
        decls = [struct("L0", "int")]
        decls += [struct(f"L{i}", f"L{i - 1}") for i in range(1, 50)]
        ingest(store, decls)
        confirm(store, [T("L49")])
        assert all(store.is_confirmed_safe(T(f"L{i}")) for i in range(50))

    def test_empty_request(self, store):
        confirm(store, [])

    def test_known_safe_type_directly(self, store):
        confirm(store, [T("double"), T("std::unique_ptr")])

    def test_templated_smart_pointer_field(self, store):
        ingest(store, [struct("Node", "std::unique_ptr<Node>", "int")])
        confirm(store, [T("Node")])
        assert store.is_confirmed_safe(T("Node"))

    def test_nested_template_arguments_field(self, store):
        ingest(store, [struct("Cache", "std::shared_ptr<std::map<std::string, int>>")])
        confirm(store, [T("Cache")])
        assert store.is_confirmed_safe(T("Cache"))

    def test_enum(self, store):
        ingest(store, [enum("Color"), struct("Pixel", "Color", "uint8_t")])
        confirm(store, [T("Pixel")])
        assert store.is_confirmed_safe(T("Pixel"))


class TestConfirmFailures:

    def test_string_field(self, store):
        ingest(store, [struct("Bar", "std::string", "int64_t")])
        with pytest.raises(DependentTypeUnsafeError) as exc_info:
            confirm(store, [T("Bar")])
        message = str(exc_info.value)
        assert "Bar" in message and "std::string" in message
        assert exc_info.value.type_name == T("Bar")

    def test_templated_container_field(self, store):
        ingest(store, [struct("Bag", "std::vector<int>")])
        with pytest.raises(DependentTypeUnsafeError) as exc_info:
            confirm(store, [T("Bag")])
        message = str(exc_info.value)
        assert "dependent type std::vector isn't safe" in message
        assert "Because: type std::vector is not safe for by-value use" in message

    def test_unknown_field(self, store):
        ingest(store, [struct("Bar", "Mystery")])
        with pytest.raises(DeclarationMissingError, match="Mystery"):
            confirm(store, [T("Bar")])

    def test_never_declared(self, store):
        with pytest.raises(DeclarationMissingError) as exc_info:
            confirm(store, [T("ns::Ghost")])
        assert str(exc_info.value) == (
            "Unable to confirm ns::Ghost because we never saw a declaration"
        )

    def test_known_unsafe_directly(self, store):
        with pytest.raises(KnownUnsafeTypeError,
                           match="type std::string is not safe for by-value use"):
            confirm(store, [T("std::string")])

    def test_virtual(self, store):
        ingest(store, [struct("Shape", virtual=True)])
        with pytest.raises(VirtualDispatchError):
            confirm(store, [T("Shape")])

    def test_opaque(self, store):
        ingest(store, [opaque("Impl")])
        with pytest.raises(ComplexAliasError):
            confirm(store, [T("Impl")])

    def test_blocklisted(self, store):
        ingest(store, [blocked("Legacy")])
        with pytest.raises(BlocklistedError, match="type Legacy is on the blocklist"):
            confirm(store, [T("Legacy")])

    def test_blocklist_overwritten_by_later_struct(self, store):
        # Current behaviour: the struct declaration replaces the blocklist
        # verdict, so the request succeeds.
        ingest(store, [blocked("Legacy"), struct("Legacy", "int")])
        confirm(store, [T("Legacy")])
        assert store.is_confirmed_safe(T("Legacy"))

    def test_forward_reference_fails_confirmation(self, store):
        ingest(store, [struct("Bar", "Foo"), struct("Foo", "int")])
        with pytest.raises(DeclarationMissingError):
            confirm(store, [T("Bar")])
        confirm(store, [T("Foo")])

    def test_reason_propagated_verbatim(self, store):
        ingest(store, [struct("Inner", "std::map"), struct("Outer", "Inner")])
        recorded = store.verdict_of(T("Outer")).reason.message
        with pytest.raises(DependentTypeUnsafeError) as exc_info:
            confirm(store, [T("Outer")])
        assert str(exc_info.value) == recorded

    def test_partial_progress_kept_after_failure(self, store):
        ingest(store, [struct("Good", "int"), opaque("Bad")])
        with pytest.raises(ComplexAliasError):
            confirm(store, [T("Bad"), T("Good")])
        assert store.is_confirmed_safe(T("Good"))
        assert store.verdict_of(T("Bad")).is_unsafe


class TestStackOrder:

    def test_last_request_examined_first(self, store):
        ingest(store, [opaque("Impl"), blocked("Legacy")])
        with pytest.raises(BlocklistedError):
            confirm(store, [T("Impl"), T("Legacy")])
        with pytest.raises(ComplexAliasError):
            confirm(store, [T("Legacy"), T("Impl")])

    def test_dependencies_examined_before_earlier_requests(self, store):
        # Popping Outer pushes its fields on top of Impl, so the missing
        # Ghost (reached through Later) surfaces before Impl is looked at.
        ingest(store, [
            opaque("Impl"),
            struct("Later", "int"),
            struct("Outer", "int", "Later"),
        ])
        store.get(T("Later")).dependencies.append(T("Ghost"))
        with pytest.raises(DeclarationMissingError, match="Ghost"):
            confirm(store, [T("Impl"), T("Outer")])

    def test_last_dependency_examined_first(self, store):
        ingest(store, [struct("A", "int"), struct("B", "int"), struct("Pair", "A", "B")])
        store.get(T("A")).dependencies.append(T("GhostA"))
        store.get(T("B")).dependencies.append(T("GhostB"))
        with pytest.raises(DeclarationMissingError, match="GhostB"):
            confirm(store, [T("Pair")])
        assert store.is_confirmed_safe(T("B"))
        assert not store.is_confirmed_safe(T("A"))


class TestAliases:

    def test_alias_to_confirmed_type(self, store):
        ingest(store, [alias("Count", "uint32_t")])
        confirm(store, [T("Count")])
        assert store.is_confirmed_safe(T("Count"))

    def test_alias_to_candidate_struct_confirms_both(self, store):
        ingest(store, [struct("Foo", "int"), alias("FooAlias", "Foo")])
        confirm(store, [T("FooAlias")])
        assert store.is_confirmed_safe(T("FooAlias"))
        assert store.is_confirmed_safe(T("Foo"))

    def test_alias_chain(self, store):
        ingest(store, [struct("Foo", "int"), alias("B", "Foo"), alias("A", "B")])
        confirm(store, [T("A")])
        assert all(store.is_confirmed_safe(T(n)) for n in ("A", "B", "Foo"))

    def test_alias_declared_before_target(self, store):
        ingest(store, [alias("Handle", "Foo"), struct("Foo", "int")])
        confirm(store, [T("Handle")])
        assert store.is_confirmed_safe(T("Handle"))

    def test_alias_verdict_is_snapshot(self, store):
        ingest(store, [alias("Count", "uint32_t")])
        confirm(store, [T("Count")])
        assert store.verdict_of(T("Count")) == Verdict.confirmed()
        assert store.verdict_of(T("Count")).kind is VerdictKind.CONFIRMED

    def test_alias_to_unsafe_type_fails(self, store):
        ingest(store, [alias("Text", "std::string")])
        with pytest.raises(KnownUnsafeTypeError,
                           match="type std::string is not safe for by-value use"):
            confirm(store, [T("Text")])
        assert store.verdict_of(T("Text")).is_unsafe
        assert not store.is_confirmed_safe(T("Text"))

    def test_struct_field_through_unsafe_alias_fails(self, store):
        ingest(store, [alias("Text", "std::string"), struct("Doc", "Text")])
        with pytest.raises(KnownUnsafeTypeError):
            confirm(store, [T("Doc")])

    def test_alias_to_missing_target_is_bounded(self, store):
        ingest(store, [alias("Handle", "Nowhere")])
        with pytest.raises(DeclarationMissingError) as exc_info:
            confirm(store, [T("Handle")])
        assert exc_info.value.type_name == T("Nowhere")
        assert str(exc_info.value) == (
            "Unable to confirm Nowhere because we never saw a declaration"
        )

    def test_alias_cycle_detected(self, store):
        ingest(store, [alias("A", "B"), alias("B", "A")])
        with pytest.raises(AliasCycleError) as exc_info:
            confirm(store, [T("A")])
        assert exc_info.value.cycle == [T("A"), T("B"), T("A")]
        assert str(exc_info.value) == "type A is part of a typedef cycle: A -> B -> A"

    def test_self_alias_detected(self, store):
        ingest(store, [alias("Loop", "Loop")])
        with pytest.raises(AliasCycleError):
            confirm(store, [T("Loop")])

    def test_alias_into_cycle_detected(self, store):
        ingest(store, [alias("A", "B"), alias("B", "C"), alias("C", "B")])
        with pytest.raises(AliasCycleError) as exc_info:
            confirm(store, [T("A")])
        assert exc_info.value.cycle == [T("B"), T("C"), T("B")]

    def test_alias_chain_helper(self, store):
        ingest(store, [alias("A", "B"), alias("B", "int")])
        assert alias_chain(store, T("A")) == [T("A"), T("B"), T("int")]
        assert alias_chain(store, T("int")) == [T("int")]

    def test_unresolved_alias_not_confirmed_without_request(self, store):
        ingest(store, [alias("Count", "uint32_t")])
        assert not store.is_confirmed_safe(T("Count"))


class TestIdempotence:

    def test_confirm_twice(self, store):
        ingest(store, [struct("Foo", "int"), struct("Bar", "Foo")])
        confirm(store, [T("Bar")])
        before = {t: (r.verdict, list(r.dependencies)) for t, r in store.items()}
        confirm(store, [T("Bar")])
        after = {t: (r.verdict, list(r.dependencies)) for t, r in store.items()}
        assert before == after

    def test_duplicate_requests(self, store):
        ingest(store, [struct("Foo", "int"), alias("F", "Foo")])
        confirm(store, [T("F"), T("Foo"), T("F")])
        assert store.is_confirmed_safe(T("F"))

    def test_failure_is_repeatable(self, store):
        ingest(store, [struct("Bar", "std::string")])
        for _ in range(2):
            with pytest.raises(DependentTypeUnsafeError):
                confirm(store, [T("Bar")])
