"""
Row formatting for SHOW and DESCRIBE results.

Column lists follow java.sql.DatabaseMetaData.getTables() (10 columns) and
getColumns() (24 columns). Cells a collection or field cannot fill are None.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .storage import CollectionDescriptor, FieldDescriptor

KEYWORD = "keyword"
INTEGER = "integer"
SHORT = "short"

TABLE_TYPE = "BASE TABLE"

# DatabaseMetaData.columnNoNulls / columnNullable / columnNullableUnknown
COLUMN_NO_NULLS = 0
COLUMN_NULLABLE = 1
COLUMN_NULLABLE_UNKNOWN = 2

MetadataRow = Tuple[Any, ...]


@dataclass(frozen=True)
class SchemaField:
    """Declared name and type of one response column."""
    name: str
    type: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type}


SHOW_SCHEMA: Tuple[SchemaField, ...] = (
    SchemaField("TABLE_CAT", KEYWORD),
    SchemaField("TABLE_SCHEM", KEYWORD),
    SchemaField("TABLE_NAME", KEYWORD),
    SchemaField("TABLE_TYPE", KEYWORD),
    SchemaField("REMARKS", KEYWORD),
    SchemaField("TYPE_CAT", KEYWORD),  # Always NULL
    SchemaField("TYPE_SCHEM", KEYWORD),  # Always NULL
    SchemaField("TYPE_NAME", KEYWORD),  # Always NULL
    SchemaField("SELF_REFERENCING_COL_NAME", KEYWORD),  # Always NULL
    SchemaField("REF_GENERATION", KEYWORD),  # Always NULL
)

DESCRIBE_SCHEMA: Tuple[SchemaField, ...] = (
    SchemaField("TABLE_CAT", KEYWORD),
    SchemaField("TABLE_SCHEM", KEYWORD),
    SchemaField("TABLE_NAME", KEYWORD),
    SchemaField("COLUMN_NAME", KEYWORD),
    SchemaField("DATA_TYPE", INTEGER),
    SchemaField("TYPE_NAME", KEYWORD),
    SchemaField("COLUMN_SIZE", INTEGER),
    SchemaField("BUFFER_LENGTH", INTEGER),  # Always NULL
    SchemaField("DECIMAL_DIGITS", INTEGER),
    SchemaField("NUM_PREC_RADIX", INTEGER),
    SchemaField("NULLABLE", INTEGER),
    SchemaField("REMARKS", KEYWORD),
    SchemaField("COLUMN_DEF", KEYWORD),
    SchemaField("SQL_DATA_TYPE", INTEGER),  # Always NULL
    SchemaField("SQL_DATETIME_SUB", INTEGER),  # Always NULL
    SchemaField("CHAR_OCTET_LENGTH", INTEGER),
    SchemaField("ORDINAL_POSITION", INTEGER),
    SchemaField("IS_NULLABLE", KEYWORD),
    SchemaField("SCOPE_CATALOG", KEYWORD),  # Always NULL
    SchemaField("SCOPE_SCHEMA", KEYWORD),  # Always NULL
    SchemaField("SCOPE_TABLE", KEYWORD),  # Always NULL
    SchemaField("SOURCE_DATA_TYPE", SHORT),  # Always NULL
    SchemaField("IS_AUTOINCREMENT", KEYWORD),
    SchemaField("IS_GENERATEDCOLUMN", KEYWORD),
)


def column_index(schema: Tuple[SchemaField, ...], name: str) -> int:
    """Return the position of a column in a schema."""
    for i, field in enumerate(schema):
        if field.name == name:
            return i
    raise KeyError(name)


def _yes_no(flag: bool) -> str:
    return "YES" if flag else "NO"


def _nullable(flag: Optional[bool]) -> Tuple[int, str]:
    if flag is None:
        return COLUMN_NULLABLE_UNKNOWN, ""
    if flag:
        return COLUMN_NULLABLE, "YES"
    return COLUMN_NO_NULLS, "NO"


def _build(schema: Tuple[SchemaField, ...], values: Dict[str, Any]) -> MetadataRow:
    unknown = set(values) - {field.name for field in schema}
    if unknown:
        raise KeyError(f"Columns not in schema: {sorted(unknown)}")
    return tuple(values.get(field.name) for field in schema)


def format_show_row(catalog: str, collection: CollectionDescriptor) -> MetadataRow:
    """
    Format one getTables() row.

    Args:
        catalog: Cluster name reported as TABLE_CAT
        collection: Matched collection
    """
    return _build(SHOW_SCHEMA, {
        "TABLE_CAT": catalog,
        "TABLE_SCHEM": collection.schema,
        "TABLE_NAME": collection.name,
        "TABLE_TYPE": TABLE_TYPE,
        "REMARKS": collection.remarks,
    })


def format_describe_row(catalog: str, collection: CollectionDescriptor, field: FieldDescriptor) -> MetadataRow:
    """
    Format one getColumns() row.

    Args:
        catalog: Cluster name reported as TABLE_CAT
        collection: Collection that owns the field
        field: Matched field
    """
    nullable, is_nullable = _nullable(field.nullable)
    return _build(DESCRIBE_SCHEMA, {
        "TABLE_CAT": catalog,
        "TABLE_SCHEM": collection.schema,
        "TABLE_NAME": collection.name,
        "COLUMN_NAME": field.name,
        "DATA_TYPE": field.data_type,
        "TYPE_NAME": field.type_name,
        "COLUMN_SIZE": field.size,
        "DECIMAL_DIGITS": field.decimal_digits,
        "NUM_PREC_RADIX": field.radix,
        "NULLABLE": nullable,
        "REMARKS": field.remarks,
        "COLUMN_DEF": field.default,
        "CHAR_OCTET_LENGTH": field.char_octet_length,
        "ORDINAL_POSITION": field.ordinal_position,
        "IS_NULLABLE": is_nullable,
        "IS_AUTOINCREMENT": _yes_no(field.is_auto_increment),
        "IS_GENERATEDCOLUMN": _yes_no(field.is_generated),
    })

