"""Response assembly in the JDBC format: a fixed schema plus positional data rows."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from .rows import DESCRIBE_SCHEMA, SHOW_SCHEMA, MetadataRow, SchemaField
from .statements import StatementKind

SCHEMAS: Dict[StatementKind, Tuple[SchemaField, ...]] = {
    StatementKind.SHOW: SHOW_SCHEMA,
    StatementKind.DESCRIBE: DESCRIBE_SCHEMA,
}


@dataclass(frozen=True)
class ResponseEnvelope:
    kind: StatementKind
    schema: Tuple[SchemaField, ...]
    datarows: Tuple[MetadataRow, ...]

    @property
    def total(self) -> int:
        return len(self.datarows)

    @property
    def size(self) -> int:
        return len(self.datarows)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form; None cells serialize as null."""
        return {
            "schema": [field.to_dict() for field in self.schema],
            "datarows": [list(row) for row in self.datarows],
            "total": self.total,
            "size": self.size,
            "status": 200,
        }


def assemble(kind: StatementKind, rows: Iterable[MetadataRow]) -> ResponseEnvelope:
    """
    Wrap formatted rows with the schema for the statement kind.

    The schema does not depend on the rows, so zero rows still carry the full
    column list. Rows keep their order.

    Raises:
        ValueError: If a row's width differs from the schema's
    """
    schema = SCHEMAS[kind]
    datarows = tuple(rows)
    for i, row in enumerate(datarows):
        if len(row) != len(schema):
            raise ValueError(
                f"Row {i} has {len(row)} cells, {kind.value} rows need {len(schema)}"
            )
    return ResponseEnvelope(kind=kind, schema=schema, datarows=datarows)
