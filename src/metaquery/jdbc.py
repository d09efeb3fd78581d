"""JDBC connection manager using JPype to connect to Calcite, and the Calcite-backed metadata store."""

import jpype
import jpype.dbapi2 as dbapi2
from typing import Optional, Any, List, Sequence, Tuple
import logging
import os
import threading
from pathlib import Path

from .errors import CollectionLookupError
from .storage import CollectionDescriptor, FieldDescriptor, MetadataStore
from .types import default_radix, type_code

logger = logging.getLogger(__name__)

# Schemas Calcite exposes for its own catalog; never reported as collections
SYSTEM_SCHEMAS = ("INFORMATION_SCHEMA", "metadata")


class CalciteConnection:
    """Manages JDBC connection to Apache Calcite using JPype."""

    def __init__(self, jar_path: str, model_path: str):
        """
        Initialize Calcite JDBC connection.

        Args:
            jar_path: Path to Calcite fat JAR file
            model_path: Path to Calcite model JSON file
        """
        self.jar_path = jar_path
        self.model_path = model_path
        self._connection: Optional[Any] = None
        self._initialize_jvm()

    def _initialize_jvm(self) -> None:
        """Start JVM if not already started and load Calcite JAR."""
        if not jpype.isJVMStarted():
            logger.info(f"Starting JVM with Calcite JAR: {self.jar_path}")

            classpath_jars = []
            lib_dir = Path(__file__).parent.parent.parent / "lib"
            if lib_dir.is_dir():
                extra = sorted(str(p) for p in lib_dir.glob("*.jar"))
                classpath_jars.extend(extra)
                logger.info(f"Added {len(extra)} JARs from {lib_dir} to classpath")

            # Add Calcite JAR last
            classpath_jars.append(self.jar_path)
            classpath = os.pathsep.join(classpath_jars)

            jvm_args = [
                "-Xmx2g",  # Maximum heap size
                "-Dorg.slf4j.simpleLogger.defaultLogLevel=error",  # Suppress SLF4J warnings
            ]

            jpype.startJVM(*jvm_args, classpath=classpath, convertStrings=False)
            logger.info("JVM started successfully")
        else:
            logger.info("JVM already running")

    def connect(self) -> None:
        """Establish connection to Calcite."""
        if self._connection is None:
            jdbc_url = f"jdbc:calcite:model={self.model_path}"
            logger.info(f"Connecting to Calcite: {jdbc_url}")
            self._connection = dbapi2.connect(
                jdbc_url, driver="org.apache.calcite.jdbc.Driver"
            )
            logger.info("Connected to Calcite successfully")

    def get_cursor(self):
        """Get a database cursor for executing queries."""
        if self._connection is None:
            self.connect()
        return self._connection.cursor()

    def execute_query(self, sql: str, params: Sequence[Any] = ()) -> Tuple[List[str], List[Tuple]]:
        """
        Execute SQL query and return column names and rows.

        Args:
            sql: SQL query to execute, with ? placeholders
            params: Values bound to the placeholders

        Returns:
            Tuple of (column_names, rows)
        """
        cursor = self.get_cursor()
        try:
            if params:
                cursor.execute(sql, tuple(params))
            else:
                cursor.execute(sql)
            columns = [str(desc[0]) for desc in cursor.description] if cursor.description else []
            rows = cursor.fetchall()
            return columns, rows
        finally:
            cursor.close()

    def execute_metadata_query(self, sql: str, params: Sequence[Any] = ()) -> List[dict]:
        """
        Execute metadata query and return results as list of dicts.

        Args:
            sql: SQL query to execute
            params: Values bound to the ? placeholders

        Returns:
            List of dictionaries with column names as keys
        """
        columns, rows = self.execute_query(sql, params)
        return [dict(zip(columns, row)) for row in rows]

    def close(self) -> None:
        """Close the connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            logger.info("Calcite connection closed")


def _text(value: Any) -> Optional[str]:
    # JPype returns java.lang.String with convertStrings=False
    return None if value is None else str(value)


def _int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


class CalciteMetadataStore(MetadataStore):
    """
    Metadata store reading INFORMATION_SCHEMA through a Calcite connection.

    Collections come back ordered by schema and name. When push_down is set the
    LIKE pattern is handed to the database as a first-pass filter.
    """

    ordered = True

    def __init__(
        self,
        connection: CalciteConnection,
        cluster_name: str,
        schema: Optional[str] = None,
        push_down: bool = True,
    ):
        self.connection = connection
        self._cluster_name = cluster_name
        self.schema = schema
        self.push_down = push_down
        # One JDBC connection is shared by the resolver's worker threads
        self._lock = threading.Lock()

    def _query(self, sql: str, params: Sequence[Any]) -> List[dict]:
        with self._lock:
            return self.connection.execute_metadata_query(sql, params)

    def _schema_filter(self) -> Tuple[str, List[Any]]:
        if self.schema:
            return "TABLE_SCHEMA = ?", [self.schema]
        placeholders = ", ".join("?" for _ in SYSTEM_SCHEMAS)
        return f"TABLE_SCHEMA NOT IN ({placeholders})", list(SYSTEM_SCHEMAS)

    def list_collections(self, name_pattern: Optional[str] = None) -> List[CollectionDescriptor]:
        condition, params = self._schema_filter()
        conditions = [condition]
        if name_pattern and self.push_down:
            conditions.append("TABLE_NAME LIKE ?")
            params.append(name_pattern)

        sql = f"""
            SELECT TABLE_SCHEMA, TABLE_NAME, TABLE_TYPE, REMARKS
            FROM INFORMATION_SCHEMA.TABLES
            WHERE {' AND '.join(conditions)}
            ORDER BY TABLE_SCHEMA, TABLE_NAME
        """

        try:
            rows = self._query(sql, params)
        except Exception as e:
            logger.error(f"Error listing collections: {e}")
            raise CollectionLookupError(f"Failed to list collections: {e}") from e

        collections = [
            CollectionDescriptor(
                name=_text(row["TABLE_NAME"]),
                catalog=self._cluster_name,
                schema=_text(row.get("TABLE_SCHEMA")),
                type=_text(row.get("TABLE_TYPE")) or "BASE TABLE",
                remarks=_text(row.get("REMARKS")),
            )
            for row in rows
        ]
        logger.info(f"Found {len(collections)} collections")
        return collections

    def list_fields(self, collection_name: str, schema: Optional[str] = None) -> List[FieldDescriptor]:
        if schema:
            condition, params = "TABLE_SCHEMA = ?", [schema]
        else:
            condition, params = self._schema_filter()
        sql = f"""
            SELECT COLUMN_NAME, DATA_TYPE, IS_NULLABLE, ORDINAL_POSITION,
                   CHARACTER_MAXIMUM_LENGTH, NUMERIC_PRECISION, NUMERIC_SCALE,
                   COLUMN_DEFAULT, REMARKS
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_NAME = ? AND {condition}
            ORDER BY ORDINAL_POSITION
        """

        try:
            rows = self._query(sql, [collection_name] + params)
        except Exception as e:
            logger.error(f"Error listing fields of '{collection_name}': {e}")
            raise CollectionLookupError(f"Failed to list fields of '{collection_name}': {e}") from e

        fields = []
        for row in rows:
            type_name = _text(row["DATA_TYPE"]) or "ANY"
            data_type = type_code(type_name)
            is_nullable = _text(row.get("IS_NULLABLE"))
            length = _int(row.get("CHARACTER_MAXIMUM_LENGTH"))
            fields.append(
                FieldDescriptor(
                    name=_text(row["COLUMN_NAME"]),
                    data_type=data_type,
                    type_name=type_name,
                    ordinal_position=_int(row["ORDINAL_POSITION"]),
                    size=length if length is not None else _int(row.get("NUMERIC_PRECISION")),
                    decimal_digits=_int(row.get("NUMERIC_SCALE")),
                    radix=default_radix(data_type),
                    nullable={"YES": True, "NO": False}.get(is_nullable),
                    remarks=_text(row.get("REMARKS")),
                    default=_text(row.get("COLUMN_DEFAULT")),
                    char_octet_length=length,
                )
            )

        logger.info(f"Found {len(fields)} fields in collection '{collection_name}'")
        return fields

    def cluster_name(self) -> str:
        return self._cluster_name

    def close(self) -> None:
        self.connection.close()


# Global connection instance (initialized on server startup)
_connection: Optional[CalciteConnection] = None


def initialize_connection(jar_path: str, model_path: str) -> CalciteConnection:
    """Initialize the global Calcite connection."""
    global _connection
    _connection = CalciteConnection(jar_path, model_path)
    _connection.connect()
    logger.info("Global Calcite connection initialized")
    return _connection

