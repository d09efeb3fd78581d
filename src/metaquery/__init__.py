"""
Metaquery - JDBC-shaped metadata server.

Answers SHOW TABLES / DESCRIBE TABLES statements against a catalog of
collections and returns rows shaped like DatabaseMetaData.getTables() and
getColumns().
"""

from dotenv import load_dotenv

# Load environment variables from .env file before settings are read
load_dotenv()

__version__ = "0.1.0"
