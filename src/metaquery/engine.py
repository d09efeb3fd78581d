"""Metadata query engine: statement text in, JDBC-format response out."""

import logging
from typing import Optional

from .config import Settings, settings
from .like import compile_like
from .resolver import MetadataResolver
from .response import ResponseEnvelope, assemble
from .rows import format_describe_row, format_show_row
from .statements import DescribeTables, ShowTables, StatementIntent, recognize
from .storage import InMemoryMetadataStore, MetadataStore

logger = logging.getLogger(__name__)


class MetadataQueryEngine:
    """Answers SHOW TABLES and DESCRIBE TABLES statements against a metadata store."""

    def __init__(
        self,
        store: MetadataStore,
        case_sensitive: bool = True,
        escape: Optional[str] = None,
        timeout: float = 30.0,
        max_workers: int = 4,
    ):
        self.store = store
        self.case_sensitive = case_sensitive
        self.escape = escape
        self.resolver = MetadataResolver(store, timeout=timeout, max_workers=max_workers)

    def recognize(self, statement: str) -> StatementIntent:
        return recognize(statement, escape=self.escape)

    def execute(self, statement: str) -> ResponseEnvelope:
        """
        Recognize, resolve and format a metadata statement.

        Args:
            statement: SHOW TABLES / DESCRIBE TABLES text

        Returns:
            ResponseEnvelope with the fixed schema and one row per match

        Raises:
            MetaqueryError subclasses for bad statements and storage failures
        """
        return self.execute_intent(self.recognize(statement))

    def execute_intent(self, intent: StatementIntent) -> ResponseEnvelope:
        collection_pattern = compile_like(
            intent.collection_pattern, case_sensitive=self.case_sensitive, escape=self.escape
        )

        if isinstance(intent, ShowTables):
            catalog = self.resolver.cluster_name()
            collections = self.resolver.resolve_show(collection_pattern)
            rows = [format_show_row(catalog, c) for c in collections]
        elif isinstance(intent, DescribeTables):
            column_pattern = None
            if intent.column_pattern is not None:
                column_pattern = compile_like(
                    intent.column_pattern, case_sensitive=self.case_sensitive, escape=self.escape
                )
            catalog = self.resolver.cluster_name()
            matches = self.resolver.resolve_describe(collection_pattern, column_pattern)
            rows = [format_describe_row(catalog, c, f) for c, f in matches]
        else:
            raise TypeError(f"Unknown statement intent: {intent!r}")

        response = assemble(intent.kind, rows)
        logger.info(f"{intent.kind.value.upper()} returned {response.total} rows")
        return response


def create_store(config: Settings) -> MetadataStore:
    """Build the metadata store selected by configuration."""
    backend = config.storage_backend.lower()

    if backend == "memory":
        if config.catalog_file:
            return InMemoryMetadataStore.from_file(config.catalog_file, cluster_name=config.cluster_name)
        logger.warning("No catalog_file configured, serving an empty in-memory catalog")
        return InMemoryMetadataStore(cluster_name=config.cluster_name)

    if backend == "calcite":
        if not config.calcite_jar_path or not config.calcite_model_path:
            raise ValueError("calcite backend needs CALCITE_JAR_PATH and CALCITE_MODEL_PATH")
        # Imported lazily so the memory backend never starts a JVM
        from .jdbc import CalciteMetadataStore, initialize_connection

        connection = initialize_connection(config.calcite_jar_path, config.calcite_model_path)
        return CalciteMetadataStore(
            connection,
            cluster_name=config.cluster_name,
            schema=config.calcite_schema,
            push_down=config.identifier_case_sensitive and config.like_escape is None,
        )

    raise ValueError(f"Unknown storage backend: {config.storage_backend}")


def create_engine(store: MetadataStore, config: Settings = settings) -> MetadataQueryEngine:
    return MetadataQueryEngine(
        store,
        case_sensitive=config.identifier_case_sensitive,
        escape=config.like_escape,
        timeout=config.lookup_timeout_seconds,
        max_workers=config.lookup_max_workers,
    )


# Global engine instance (initialized on server startup)
_engine: Optional[MetadataQueryEngine] = None


def get_engine() -> MetadataQueryEngine:
    """Get the global engine instance."""
    if _engine is None:
        raise RuntimeError("Metadata engine not initialized. Call initialize_engine() first.")
    return _engine


def initialize_engine(store: Optional[MetadataStore] = None, config: Settings = settings) -> MetadataQueryEngine:
    """Initialize the global engine, building the store from configuration if none is given."""
    global _engine
    _engine = create_engine(store if store is not None else create_store(config), config)
    logger.info(f"Metadata engine initialized (backend={type(_engine.store).__name__})")
    return _engine


def shutdown_engine() -> None:
    """Drop the global engine and release its store."""
    global _engine
    if _engine is not None:
        _engine.store.close()
    _engine = None
