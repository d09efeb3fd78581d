"""Error taxonomy for metadata statements."""

from typing import Any, Dict, Optional


class MetaqueryError(Exception):
    """Base class for errors raised while answering a metadata statement."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Return the error body sent back to HTTP and MCP clients."""
        return {
            "error": {"type": type(self).__name__, "reason": self.message},
            "status": self.status_code,
        }


class InvalidPatternError(MetaqueryError):
    """Malformed LIKE pattern (empty, or a dangling escape marker)."""

    status_code = 400

    def __init__(self, message: str, pattern: str):
        super().__init__(message)
        self.pattern = pattern


class StatementSyntaxError(MetaqueryError):
    """Statement started like a metadata statement but does not fit its grammar."""

    status_code = 400

    def __init__(self, message: str, position: int, token: Optional[str] = None):
        super().__init__(f"{message} at position {position}")
        self.position = position
        self.token = token

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["error"]["position"] = self.position
        if self.token is not None:
            body["error"]["token"] = self.token
        return body


class UnsupportedStatementError(MetaqueryError):
    """Statement is not SHOW TABLES / DESCRIBE TABLES; callers may route it elsewhere."""

    status_code = 400


class CollectionLookupError(MetaqueryError):
    """The storage collaborator failed or did not answer in time."""

    status_code = 503
