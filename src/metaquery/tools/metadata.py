"""Metadata tools: SHOW TABLES / DESCRIBE TABLES in the JDBC response format."""

from typing import Dict, Any, Optional
from ..engine import get_engine
from ..statements import DescribeTables, ShowTables
import logging

logger = logging.getLogger(__name__)


def show_tables(pattern: str) -> Dict[str, Any]:
    """
    List collections whose name matches a LIKE pattern (getTables() rows).

    Args:
        pattern: LIKE pattern for collection names, e.g. "accounts" or "logs_%"

    Returns:
        Dictionary with "schema" and "datarows"
    """
    try:
        return get_engine().execute_intent(ShowTables(pattern)).to_dict()
    except Exception as e:
        logger.error(f"Error showing tables like '{pattern}': {e}")
        raise


def describe_tables(pattern: str, column_pattern: Optional[str] = None) -> Dict[str, Any]:
    """
    Describe the fields of matching collections (getColumns() rows).

    Args:
        pattern: LIKE pattern for collection names
        column_pattern: LIKE pattern for field names (None = all fields)

    Returns:
        Dictionary with "schema" and "datarows"
    """
    try:
        return get_engine().execute_intent(DescribeTables(pattern, column_pattern)).to_dict()
    except Exception as e:
        logger.error(f"Error describing tables like '{pattern}': {e}")
        raise


def metadata_query(sql: str) -> Dict[str, Any]:
    """
    Run a SHOW TABLES or DESCRIBE TABLES statement.

    Args:
        sql: Statement text

    Returns:
        Dictionary with "schema" and "datarows"
    """
    try:
        return get_engine().execute(sql).to_dict()
    except Exception as e:
        logger.error(f"Error executing metadata statement: {e}")
        raise
