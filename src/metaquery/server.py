"""Main server implementation: MCP tools (stdio or HTTP/SSE) and the JDBC-format SQL endpoint."""

from mcp.server import Server
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent
from fastapi import FastAPI, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from contextlib import asynccontextmanager
import uvicorn
import json
import logging
from typing import Any
import sys

from . import __version__
from .config import settings
from .engine import MetadataQueryEngine, get_engine, initialize_engine, shutdown_engine
from .errors import MetaqueryError
from .tools import metadata
from .logging_config import setup_logging

# Configure logging (will write to logs/ directory and console)
setup_logging()
logger = logging.getLogger(__name__)


# MCP Server instance
mcp = Server("metaquery")


# Register MCP Tools
@mcp.list_tools()
async def list_tools() -> list[Tool]:
    """List all available MCP tools."""
    return [
        Tool(
            name="show_tables",
            description="List collections whose name matches a SQL LIKE pattern, as JDBC getTables() rows",
            inputSchema={
                "type": "object",
                "properties": {
                    "pattern": {"type": "string", "description": "LIKE pattern for collection names (% = any run, _ = one character)"}
                },
                "required": ["pattern"]
            }
        ),
        Tool(
            name="describe_tables",
            description="Describe the fields of collections matching a SQL LIKE pattern, as JDBC getColumns() rows",
            inputSchema={
                "type": "object",
                "properties": {
                    "pattern": {"type": "string", "description": "LIKE pattern for collection names"},
                    "column_pattern": {"type": "string", "description": "LIKE pattern for field names (omit for all fields)"}
                },
                "required": ["pattern"]
            }
        ),
        Tool(
            name="metadata_query",
            description="""Run a metadata statement and return JDBC-format results.

Supported statements (keywords are case-insensitive, DESC = DESCRIBE):
  SHOW TABLES LIKE <pattern>
  DESCRIBE TABLES LIKE <pattern> [COLUMNS LIKE <pattern>]

Examples:
  SHOW TABLES LIKE accounts
  SHOW TABLES LIKE logs_%
  DESCRIBE TABLES LIKE accounts COLUMNS LIKE %name""",
            inputSchema={
                "type": "object",
                "properties": {
                    "sql": {"type": "string", "description": "SHOW TABLES or DESCRIBE TABLES statement"}
                },
                "required": ["sql"]
            }
        ),
    ]


@mcp.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Execute MCP tool by name."""
    try:
        if name == "show_tables":
            result = metadata.show_tables(**arguments)
        elif name == "describe_tables":
            result = metadata.describe_tables(**arguments)
        elif name == "metadata_query":
            result = metadata.metadata_query(**arguments)
        else:
            raise ValueError(f"Unknown tool: {name}")

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except MetaqueryError as e:
        logger.warning(f"Tool '{name}' rejected: {e}")
        return [TextContent(type="text", text=json.dumps(e.to_dict(), indent=2))]
    except Exception as e:
        logger.error(f"Error executing tool '{name}': {e}", exc_info=True)
        return [TextContent(type="text", text=f"Error: {str(e)}")]


# FastAPI app for HTTP/SSE transport
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the metadata engine on startup."""
    logger.info("Starting Metaquery server...")
    logger.info(f"Storage backend: {settings.storage_backend}")

    try:
        initialize_engine()
        logger.info("Endpoints: /_sql (JDBC format), /sse/ and /messages/ (MCP)")
    except Exception as e:
        logger.error(f"Failed to initialize metadata engine: {e}", exc_info=True)
        raise

    yield

    # Cleanup on shutdown
    try:
        shutdown_engine()
        logger.info("Metadata engine shut down")
    except Exception as e:
        logger.warning(f"Error shutting down metadata engine: {e}")


app = FastAPI(
    title="Metaquery",
    description="SHOW TABLES / DESCRIBE TABLES metadata server with JDBC-format responses",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False  # Disable automatic trailing slash redirects
)


class SqlRequest(BaseModel):
    """Body of a POST /_sql request."""
    query: str


def engine_dependency() -> MetadataQueryEngine:
    return get_engine()


@app.exception_handler(MetaqueryError)
async def metaquery_error_handler(request: Request, exc: MetaqueryError) -> JSONResponse:
    """Map engine errors to 4xx (bad statement) or 5xx (storage failure)."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "metaquery"}


@app.post("/_sql")
def execute_sql(
    request: SqlRequest,
    format: str = Query("jdbc"),
    engine: MetadataQueryEngine = Depends(engine_dependency),
):
    """Run a metadata statement and return the JDBC-format response."""
    if format.lower() != "jdbc":
        return JSONResponse(
            status_code=400,
            content={
                "error": {"type": "UnsupportedFormatError", "reason": f"Unsupported format '{format}', use format=jdbc"},
                "status": 400,
            },
        )
    return engine.execute(request.query).to_dict()


# SSE endpoint for MCP
sse = SseServerTransport("/messages/")


async def sse_asgi(scope, receive, send):
    """ASGI app that runs one MCP session over a server-sent events stream."""
    client = scope.get("client") or ("unknown", 0)
    logger.debug("[SSE] connection from %s:%s", client[0], client[1])
    async with sse.connect_sse(scope, receive, send) as streams:
        await mcp.run(streams[0], streams[1], mcp.create_initialization_options())
    logger.debug("[SSE] connection from %s:%s closed", client[0], client[1])


app.mount("/sse", sse_asgi)
app.mount("/messages", sse.handle_post_message)


def is_stdio_mode() -> bool:
    """Detect if we should run in stdio mode vs HTTP/SSE mode."""
    # Check if stdin is a pipe/not a TTY (indicates stdio transport)
    return not sys.stdin.isatty()


async def stdio_main():
    """Run the MCP server in stdio mode."""
    logger.info("Starting Metaquery server in stdio mode...")

    try:
        initialize_engine()
    except Exception as e:
        logger.error(f"Failed to initialize metadata engine: {e}", exc_info=True)
        sys.exit(1)

    try:
        async with stdio_server() as (read_stream, write_stream):
            await mcp.run(
                read_stream,
                write_stream,
                mcp.create_initialization_options()
            )
    finally:
        shutdown_engine()


def main():
    """Run the server (auto-detects stdio vs HTTP/SSE mode)."""
    if is_stdio_mode():
        import asyncio
        asyncio.run(stdio_main())
    else:
        logger.info("Starting Metaquery server in HTTP/SSE mode...")
        uvicorn.run(
            "metaquery.server:app",
            host=settings.server_host,
            port=settings.server_port,
            reload=settings.server_reload,
            log_level=settings.log_level.lower()
        )


if __name__ == "__main__":
    main()
