"""java.sql.Types codes and SQL type name mapping."""

from typing import Optional

# java.sql.Types
BIT = -7
TINYINT = -6
SMALLINT = 5
INTEGER = 4
BIGINT = -5
FLOAT = 6
REAL = 7
DOUBLE = 8
NUMERIC = 2
DECIMAL = 3
CHAR = 1
VARCHAR = 12
LONGVARCHAR = -1
DATE = 91
TIME = 92
TIMESTAMP = 93
BINARY = -2
VARBINARY = -3
NULL = 0
OTHER = 1111
JAVA_OBJECT = 2000
ARRAY = 2003
STRUCT = 2002
BOOLEAN = 16
TIME_WITH_TIMEZONE = 2013
TIMESTAMP_WITH_TIMEZONE = 2014

TYPE_CODES = {
    "BOOLEAN": BOOLEAN,
    "BIT": BIT,
    "TINYINT": TINYINT,
    "SMALLINT": SMALLINT,
    "INTEGER": INTEGER,
    "INT": INTEGER,
    "BIGINT": BIGINT,
    "FLOAT": FLOAT,
    "REAL": REAL,
    "DOUBLE": DOUBLE,
    "DOUBLE PRECISION": DOUBLE,
    "NUMERIC": NUMERIC,
    "DECIMAL": DECIMAL,
    "CHAR": CHAR,
    "CHARACTER": CHAR,
    "VARCHAR": VARCHAR,
    "CHARACTER VARYING": VARCHAR,
    "TEXT": VARCHAR,
    "DATE": DATE,
    "TIME": TIME,
    "TIMESTAMP": TIMESTAMP,
    "TIME WITH TIME ZONE": TIME_WITH_TIMEZONE,
    "TIMESTAMP WITH TIME ZONE": TIMESTAMP_WITH_TIMEZONE,
    "TIMESTAMP WITH LOCAL TIME ZONE": TIMESTAMP_WITH_TIMEZONE,
    "BINARY": BINARY,
    "VARBINARY": VARBINARY,
    "ARRAY": ARRAY,
    "ROW": STRUCT,
    "STRUCT": STRUCT,
    "MAP": JAVA_OBJECT,
    "ANY": JAVA_OBJECT,
    "NULL": NULL,
}

NUMERIC_TYPES = {TINYINT, SMALLINT, INTEGER, BIGINT, FLOAT, REAL, DOUBLE, NUMERIC, DECIMAL}


def type_code(type_name: str) -> int:
    """
    Map a SQL type name to its java.sql.Types code.

    Precision and array suffixes are ignored, so ``VARCHAR(20)`` maps like
    ``VARCHAR`` and ``INTEGER ARRAY`` maps to ARRAY. Unknown names map to OTHER.
    """
    name = " ".join(type_name.upper().split())
    if name.endswith(" ARRAY"):
        return ARRAY
    if "(" in name:
        name = name[: name.index("(")].strip()
    return TYPE_CODES.get(name, OTHER)


def default_radix(data_type: int) -> Optional[int]:
    """NUM_PREC_RADIX for numeric types, None otherwise."""
    return 10 if data_type in NUMERIC_TYPES else None
