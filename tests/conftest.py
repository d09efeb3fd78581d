"""Shared fixtures: an in-memory catalog and a scriptable fake store."""

import time
from typing import Dict, List, Optional

import pytest

from metaquery.engine import MetadataQueryEngine
from metaquery.storage import CollectionDescriptor, FieldDescriptor, InMemoryMetadataStore, MetadataStore
from metaquery.types import BIGINT, INTEGER, VARCHAR

CLUSTER = "test-cluster"


def make_field(name: str, position: int, type_name: str = "VARCHAR", data_type: int = VARCHAR, **kwargs) -> FieldDescriptor:
    return FieldDescriptor(name=name, data_type=data_type, type_name=type_name, ordinal_position=position, **kwargs)


PERSON_FIELDS = [
    make_field("first_name", 1, size=256, nullable=True),
    make_field("last_name", 2, size=256, nullable=True),
    make_field("age", 3, "INTEGER", INTEGER, radix=10, nullable=False),
]

OTHER_FIELDS = [
    make_field("id", 1, "BIGINT", BIGINT, radix=10, nullable=False),
    make_field("nickname", 2, nullable=None),
]


class FakeStore(MetadataStore):
    """Metadata store with per-collection delays and failures for resolver tests."""

    def __init__(
        self,
        collections: List[str],
        fields: Optional[Dict[str, List[FieldDescriptor]]] = None,
        ordered: bool = True,
        delays: Optional[Dict[str, float]] = None,
        failures: Optional[Dict[str, Exception]] = None,
        collections_error: Optional[Exception] = None,
        collections_delay: float = 0.0,
    ):
        self._collections = [CollectionDescriptor(name=name, catalog=CLUSTER) for name in collections]
        self._fields = fields or {}
        self.ordered = ordered
        self.delays = delays or {}
        self.failures = failures or {}
        self.collections_error = collections_error
        self.collections_delay = collections_delay
        self.calls = []

    def list_collections(self, name_pattern=None):
        self.calls.append(("list_collections", name_pattern))
        time.sleep(self.collections_delay)
        if self.collections_error is not None:
            raise self.collections_error
        return list(self._collections)

    def list_fields(self, collection_name, schema=None):
        self.calls.append(("list_fields", collection_name))
        time.sleep(self.delays.get(collection_name, 0.0))
        if collection_name in self.failures:
            raise self.failures[collection_name]
        return list(self._fields.get(collection_name, []))

    def cluster_name(self):
        return CLUSTER


@pytest.fixture
def store():
    return InMemoryMetadataStore(
        cluster_name=CLUSTER,
        collections=[
            CollectionDescriptor(name="opensearch_dummy", catalog=CLUSTER, remarks="people"),
            CollectionDescriptor(name="opensearch_other", catalog=CLUSTER),
            CollectionDescriptor(name="unrelated", catalog=CLUSTER),
        ],
        fields={
            "opensearch_dummy": PERSON_FIELDS,
            "opensearch_other": OTHER_FIELDS,
            "unrelated": [make_field("payload", 1)],
        },
    )


@pytest.fixture
def engine(store):
    return MetadataQueryEngine(store, timeout=5.0)
