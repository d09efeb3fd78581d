"""
Metadata Resolver Tests
=======================
Filtering, deterministic ordering, concurrent field lookups and storage
failure handling.
"""

import pytest

from metaquery.errors import CollectionLookupError
from metaquery.like import compile_like
from metaquery.resolver import MetadataResolver

from conftest import FakeStore, make_field


def names(collections):
    return [c.name for c in collections]


class TestResolveShow:

    def test_filters_by_pattern(self, store):
        resolver = MetadataResolver(store)
        assert names(resolver.resolve_show(compile_like("opensearch_%"))) == ["opensearch_dummy", "opensearch_other"]

    def test_literal_pattern(self, store):
        resolver = MetadataResolver(store)
        assert names(resolver.resolve_show(compile_like("opensearch_dummy"))) == ["opensearch_dummy"]

    def test_no_match_is_empty(self, store):
        assert MetadataResolver(store).resolve_show(compile_like("missing%")) == []

    def test_keeps_store_order(self):
        store = FakeStore(["b", "a", "c"], ordered=True)
        assert names(MetadataResolver(store).resolve_show(compile_like("%"))) == ["b", "a", "c"]

    def test_sorts_when_store_order_undefined(self):
        store = FakeStore(["b", "a", "c"], ordered=False)
        assert names(MetadataResolver(store).resolve_show(compile_like("%"))) == ["a", "b", "c"]

    def test_pattern_pushed_down_as_advisory(self):
        store = FakeStore(["logs_1", "metrics"])
        result = MetadataResolver(store).resolve_show(compile_like("logs_%"))
        assert ("list_collections", "logs_%") in store.calls
        # Store ignored the hint; the resolver still filters
        assert names(result) == ["logs_1"]

    def test_case_insensitive_pattern(self, store):
        result = MetadataResolver(store).resolve_show(compile_like("OPENSEARCH_DUMMY", case_sensitive=False))
        assert names(result) == ["opensearch_dummy"]


class TestResolveDescribe:

    def test_all_fields_in_ordinal_order(self):
        fields = {"a": [make_field("z", 3), make_field("x", 1), make_field("y", 2)]}
        store = FakeStore(["a"], fields)
        result = MetadataResolver(store).resolve_describe(compile_like("a"))
        assert [f.name for _, f in result] == ["x", "y", "z"]

    def test_column_pattern(self, store):
        result = MetadataResolver(store).resolve_describe(compile_like("opensearch_dummy"), compile_like("%name"))
        assert [(c.name, f.name) for c, f in result] == [
            ("opensearch_dummy", "first_name"),
            ("opensearch_dummy", "last_name"),
        ]

    def test_collection_without_matching_fields_contributes_nothing(self, store):
        result = MetadataResolver(store).resolve_describe(compile_like("opensearch_%"), compile_like("age"))
        assert [(c.name, f.name) for c, f in result] == [("opensearch_dummy", "age")]

    def test_every_pair_satisfies_both_patterns(self, store):
        collection_pattern = compile_like("%")
        column_pattern = compile_like("%a%")
        result = MetadataResolver(store).resolve_describe(collection_pattern, column_pattern)
        assert result
        for collection, field in result:
            assert collection_pattern.matches(collection.name)
            assert column_pattern.matches(field.name)

    def test_concurrent_lookups_keep_collection_order(self):
        # Earlier collections answer last
        fields = {name: [make_field(f"{name}_f", 1)] for name in ["a", "b", "c", "d"]}
        delays = {"a": 0.2, "b": 0.15, "c": 0.1, "d": 0.0}
        store = FakeStore(["a", "b", "c", "d"], fields, delays=delays)
        result = MetadataResolver(store, max_workers=4).resolve_describe(compile_like("%"))
        assert [c.name for c, _ in result] == ["a", "b", "c", "d"]

    def test_fields_only_fetched_for_matching_collections(self):
        store = FakeStore(["logs_1", "metrics"], {"logs_1": [make_field("msg", 1)]})
        MetadataResolver(store).resolve_describe(compile_like("logs_%"))
        assert ("list_fields", "metrics") not in store.calls


class TestLookupFailures:

    def test_field_lookup_timeout(self):
        store = FakeStore(["slow"], {"slow": [make_field("f", 1)]}, delays={"slow": 0.5})
        resolver = MetadataResolver(store, timeout=0.05)
        with pytest.raises(CollectionLookupError) as excinfo:
            resolver.resolve_describe(compile_like("%"))
        assert "Timed out" in str(excinfo.value)

    def test_field_lookups_share_one_deadline(self):
        # Serialised lookups of 0.3s each: the second one runs past the 0.5s deadline
        fields = {name: [make_field("f", 1)] for name in ["a", "b", "c"]}
        store = FakeStore(["a", "b", "c"], fields, delays={"a": 0.3, "b": 0.3, "c": 0.3})
        resolver = MetadataResolver(store, timeout=0.5, max_workers=1)
        with pytest.raises(CollectionLookupError) as excinfo:
            resolver.resolve_describe(compile_like("%"))
        assert "Timed out" in str(excinfo.value)

    def test_collection_listing_timeout(self):
        store = FakeStore(["a"], collections_delay=0.5)
        with pytest.raises(CollectionLookupError):
            MetadataResolver(store, timeout=0.05).resolve_show(compile_like("%"))

    def test_store_failure_wrapped(self):
        store = FakeStore(["a"], collections_error=RuntimeError("connection reset"))
        with pytest.raises(CollectionLookupError) as excinfo:
            MetadataResolver(store).resolve_show(compile_like("%"))
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert excinfo.value.status_code == 503

    def test_lookup_error_propagates_unchanged(self):
        error = CollectionLookupError("index closed")
        store = FakeStore(["a"], failures={"a": error})
        with pytest.raises(CollectionLookupError) as excinfo:
            MetadataResolver(store).resolve_describe(compile_like("a"))
        assert excinfo.value is error
