"""Storage collaborator contract and an in-memory catalog implementation."""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .errors import CollectionLookupError
from .types import default_radix, type_code

logger = logging.getLogger(__name__)

BASE_TABLE = "BASE TABLE"


@dataclass(frozen=True)
class CollectionDescriptor:
    """One physical collection; identified by name within its catalog."""
    name: str
    catalog: Optional[str] = None
    schema: Optional[str] = None
    type: str = BASE_TABLE
    remarks: Optional[str] = None


@dataclass(frozen=True)
class FieldDescriptor:
    """One field of a collection, in JDBC getColumns() terms."""
    name: str
    data_type: int
    type_name: str
    ordinal_position: int
    size: Optional[int] = None
    decimal_digits: Optional[int] = None
    radix: Optional[int] = None
    nullable: Optional[bool] = None  # None = unknown
    remarks: Optional[str] = None
    default: Optional[str] = None
    char_octet_length: Optional[int] = None
    is_auto_increment: bool = False
    is_generated: bool = False


class MetadataStore(ABC):
    """
    Read-only source of collections and fields.

    Implementations set ``ordered`` to False when list_collections() makes no
    ordering promise; the resolver then sorts collections by name.
    """

    ordered: bool = True

    @abstractmethod
    def list_collections(self, name_pattern: Optional[str] = None) -> List[CollectionDescriptor]:
        """
        Return collection descriptors.

        Args:
            name_pattern: LIKE pattern the store may use to narrow the result.
                Advisory only: the result must be a superset of the matches.
        """

    @abstractmethod
    def list_fields(self, collection_name: str, schema: Optional[str] = None) -> List[FieldDescriptor]:
        """
        Return the fields of a collection ordered by ordinal_position.

        Args:
            collection_name: Collection to describe
            schema: Schema reported for the collection by list_collections(), so
                stores holding the same name in several schemas answer for one
        """

    @abstractmethod
    def cluster_name(self) -> str:
        """Return the name reported in TABLE_CAT."""

    def close(self) -> None:
        """Release resources held by the store."""


class InMemoryMetadataStore(MetadataStore):
    """Metadata store backed by descriptors held in memory."""

    def __init__(
        self,
        cluster_name: str,
        collections: Iterable[CollectionDescriptor] = (),
        fields: Optional[Mapping[str, Iterable[FieldDescriptor]]] = None,
        ordered: bool = True,
    ):
        self._cluster_name = cluster_name
        self._collections = list(collections)
        self._fields = {name: list(items) for name, items in (fields or {}).items()}
        self.ordered = ordered

    def list_collections(self, name_pattern: Optional[str] = None) -> List[CollectionDescriptor]:
        # The pattern is advisory; filtering happens in the resolver
        return list(self._collections)

    def list_fields(self, collection_name: str, schema: Optional[str] = None) -> List[FieldDescriptor]:
        if not any(c.name == collection_name for c in self._collections):
            raise CollectionLookupError(f"Collection '{collection_name}' does not exist")
        return sorted(self._fields.get(collection_name, []), key=lambda f: f.ordinal_position)

    def cluster_name(self) -> str:
        return self._cluster_name

    @classmethod
    def from_dict(cls, data: Dict[str, Any], cluster_name: Optional[str] = None) -> "InMemoryMetadataStore":
        """
        Build a store from a catalog document.

        Expected shape::

            {"cluster_name": "...",
             "collections": [{"name": "accounts", "schema": null, "remarks": null,
                              "fields": [{"name": "age", "type": "INTEGER", "nullable": true}]}]}

        Field ordinals default to list position (1-based) and the JDBC type code
        is derived from the type name unless ``data_type`` is given.
        """
        collections = []
        fields: Dict[str, List[FieldDescriptor]] = {}
        for entry in data.get("collections", []):
            name = entry["name"]
            collections.append(
                CollectionDescriptor(
                    name=name,
                    catalog=entry.get("catalog"),
                    schema=entry.get("schema"),
                    type=entry.get("type", BASE_TABLE),
                    remarks=entry.get("remarks"),
                )
            )
            fields[name] = [_field_from_dict(item, i) for i, item in enumerate(entry.get("fields", []), start=1)]

        return cls(
            cluster_name=cluster_name or data.get("cluster_name", "metaquery"),
            collections=collections,
            fields=fields,
            ordered=data.get("ordered", True),
        )

    @classmethod
    def from_file(cls, path: str, cluster_name: Optional[str] = None) -> "InMemoryMetadataStore":
        """Load a catalog document from a JSON file."""
        with Path(path).open(encoding="utf-8") as f:
            data = json.load(f)
        store = cls.from_dict(data, cluster_name=cluster_name)
        logger.info(f"Loaded {len(store._collections)} collections from {path}")
        return store


def _field_from_dict(item: Dict[str, Any], position: int) -> FieldDescriptor:
    type_name = item.get("type", "VARCHAR")
    data_type = item.get("data_type", type_code(type_name))
    return FieldDescriptor(
        name=item["name"],
        data_type=data_type,
        type_name=type_name,
        ordinal_position=item.get("ordinal_position", position),
        size=item.get("size"),
        decimal_digits=item.get("decimal_digits"),
        radix=item.get("radix", default_radix(data_type)),
        nullable=item.get("nullable"),
        remarks=item.get("remarks"),
        default=item.get("default"),
        char_octet_length=item.get("char_octet_length"),
        is_auto_increment=item.get("is_auto_increment", False),
        is_generated=item.get("is_generated", False),
    )
