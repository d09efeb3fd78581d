"""
End-to-end engine tests: statement text in, JDBC-format envelope out.

Mirrors the metadata integration scenarios: exact and wildcard SHOW,
DESCRIBE with column filters, and empty results.
"""

import re
import time

import pytest

from metaquery.config import Settings
from metaquery.engine import (
    MetadataQueryEngine, create_engine, create_store, get_engine, initialize_engine, shutdown_engine,
)
from metaquery.errors import CollectionLookupError, StatementSyntaxError, UnsupportedStatementError
from metaquery.storage import InMemoryMetadataStore

from conftest import CLUSTER, FakeStore

SHOW_FIELD_LENGTH = 10
DESCRIBE_FIELD_LENGTH = 24
TABLE_TYPE = "BASE TABLE"


class TestShowTables:

    def test_single_collection(self, engine):
        body = engine.execute("SHOW TABLES LIKE opensearch_dummy").to_dict()
        assert {"TABLE_CAT", "TABLE_NAME", "TABLE_TYPE"} <= {f["name"] for f in body["schema"]}
        assert len(body["datarows"]) == 1
        row = body["datarows"][0]
        assert len(row) == SHOW_FIELD_LENGTH
        assert row[0] == CLUSTER
        assert row[2] == "opensearch_dummy"
        assert row[3] == TABLE_TYPE

    def test_lower_case_statement(self, engine):
        upper = engine.execute("SHOW TABLES LIKE opensearch_dummy").to_dict()
        lower = engine.execute("show tables like opensearch_dummy").to_dict()
        assert lower == upper

    def test_wildcard(self, engine):
        rows = engine.execute("SHOW TABLES LIKE opensearch_%").to_dict()["datarows"]
        assert len(rows) == 2
        for row in rows:
            assert re.match(r"^opensearch_.*$", row[2])
            assert len(row) == SHOW_FIELD_LENGTH

    def test_no_match(self, engine):
        body = engine.execute("SHOW TABLES LIKE nothing_here%").to_dict()
        assert len(body["schema"]) == SHOW_FIELD_LENGTH
        assert body["datarows"] == []


class TestDescribeTables:

    def test_single_collection(self, engine):
        body = engine.execute("DESCRIBE TABLES LIKE opensearch_dummy").to_dict()
        assert {"TABLE_NAME", "COLUMN_NAME", "TYPE_NAME"} <= {f["name"] for f in body["schema"]}
        rows = body["datarows"]
        assert [row[3] for row in rows] == ["first_name", "last_name", "age"]
        for row in rows:
            assert len(row) == DESCRIBE_FIELD_LENGTH
            assert row[2] == "opensearch_dummy"
            assert row[3] is not None
            assert row[5] is not None

    def test_lower_case_statement(self, engine):
        assert (
            engine.execute("describe tables like opensearch_dummy").to_dict()
            == engine.execute("DESCRIBE TABLES LIKE opensearch_dummy").to_dict()
        )

    def test_wildcard_collection(self, engine):
        rows = engine.execute("DESCRIBE TABLES LIKE opensearch_%").to_dict()["datarows"]
        assert len(rows) == 5
        assert all(row[2].startswith("opensearch_") for row in rows)

    def test_wildcard_column(self, engine):
        rows = engine.execute("DESCRIBE TABLES LIKE opensearch_dummy COLUMNS LIKE %name").to_dict()["datarows"]
        assert len(rows) == 2
        assert {row[3] for row in rows} == {"first_name", "last_name"}
        for row in rows:
            assert re.fullmatch(".*name", row[3])

    def test_single_character_wildcard(self, engine):
        rows = engine.execute("DESCRIBE TABLES LIKE opensearch_dummy COLUMNS LIKE %na_e").to_dict()["datarows"]
        assert len(rows) == 2
        for row in rows:
            assert re.fullmatch(".*na.e", row[3])

    def test_no_match(self, engine):
        body = engine.execute("DESCRIBE TABLES LIKE opensearch_dummy COLUMNS LIKE zzz%").to_dict()
        assert len(body["schema"]) == DESCRIBE_FIELD_LENGTH
        assert body["datarows"] == []

    def test_desc_synonym(self, engine):
        assert (
            engine.execute("DESC TABLES LIKE opensearch_dummy").to_dict()
            == engine.execute("DESCRIBE TABLES LIKE opensearch_dummy").to_dict()
        )


class TestEngineBehaviour:

    def test_idempotent(self, engine):
        statement = "DESCRIBE TABLES LIKE %"
        assert engine.execute(statement) == engine.execute(statement)

    def test_row_width_fixed_regardless_of_filters(self, engine):
        for statement in [
            "DESCRIBE TABLES LIKE %",
            "DESCRIBE TABLES LIKE opensearch_dummy COLUMNS LIKE age",
            "DESCRIBE TABLES LIKE opensearch_other COLUMNS LIKE %",
        ]:
            for row in engine.execute(statement).datarows:
                assert len(row) == DESCRIBE_FIELD_LENGTH

    def test_case_sensitive_identifiers_by_default(self, engine):
        assert engine.execute("SHOW TABLES LIKE OPENSEARCH_DUMMY").datarows == ()

    def test_case_insensitive_identifiers(self, store):
        engine = MetadataQueryEngine(store, case_sensitive=False)
        rows = engine.execute("SHOW TABLES LIKE OPENSEARCH_DUMMY").datarows
        assert [row[2] for row in rows] == ["opensearch_dummy"]

    def test_escape_character(self):
        store = InMemoryMetadataStore.from_dict({"collections": [{"name": "a_b"}, {"name": "axb"}]})
        engine = MetadataQueryEngine(store, escape="\\")
        rows = engine.execute("SHOW TABLES LIKE a\\_b").datarows
        assert [row[2] for row in rows] == ["a_b"]

    def test_unsupported_statement(self, engine):
        with pytest.raises(UnsupportedStatementError):
            engine.execute("SELECT * FROM opensearch_dummy")

    def test_syntax_error(self, engine):
        with pytest.raises(StatementSyntaxError):
            engine.execute("SHOW TABLES opensearch_dummy")

    def test_storage_failure(self):
        engine = MetadataQueryEngine(FakeStore(["a"], collections_error=OSError("down")))
        with pytest.raises(CollectionLookupError):
            engine.execute("SHOW TABLES LIKE %")


class TestConfiguration:

    def test_create_engine_from_settings(self, store):
        config = Settings(identifier_case_sensitive=False, like_escape_char="!", lookup_timeout_seconds=2.5)
        engine = create_engine(store, config)
        assert engine.case_sensitive is False
        assert engine.escape == "!"
        assert engine.resolver.timeout == 2.5

    def test_empty_escape_means_none(self, store):
        assert create_engine(store, Settings(like_escape_char="")).escape is None

    def test_memory_store_from_catalog_file(self, tmp_path):
        catalog = tmp_path / "catalog.json"
        catalog.write_text('{"collections": [{"name": "accounts", "fields": [{"name": "age", "type": "INTEGER"}]}]}')
        store = create_store(Settings(storage_backend="memory", catalog_file=str(catalog), cluster_name="prod"))
        assert store.cluster_name() == "prod"
        assert [c.name for c in store.list_collections()] == ["accounts"]

    def test_calcite_backend_needs_paths(self):
        with pytest.raises(ValueError):
            create_store(Settings(storage_backend="calcite"))

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_store(Settings(storage_backend="elasticsearch"))

    def test_global_engine_lifecycle(self, store):
        initialize_engine(store)
        try:
            assert get_engine().store is store
        finally:
            shutdown_engine()
        with pytest.raises(RuntimeError):
            get_engine()


class UnreachableClusterStore(FakeStore):

    def __init__(self, error=None, delay=0.0):
        super().__init__(["a"])
        self.error = error
        self.delay = delay

    def cluster_name(self):
        time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return CLUSTER


class TestClusterNameLookup:

    def test_failure_reported_as_lookup_error(self):
        engine = MetadataQueryEngine(UnreachableClusterStore(error=RuntimeError("cluster health endpoint down")))
        with pytest.raises(CollectionLookupError) as excinfo:
            engine.execute("SHOW TABLES LIKE a")
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_slow_cluster_name_times_out(self):
        engine = MetadataQueryEngine(UnreachableClusterStore(delay=0.5), timeout=0.05)
        with pytest.raises(CollectionLookupError) as excinfo:
            engine.execute("DESCRIBE TABLES LIKE a")
        assert "Timed out" in str(excinfo.value)
