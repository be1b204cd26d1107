"""
Task calendar MCP server entry point.

Startup sequence:
1. Read VAULT_ROOT, EXCLUDE_DIRS and TASK_* settings from environment
2. Create the VaultStore and TaskService
3. Register all MCP tools
4. Start REST API server in background thread (if API_ENABLED)
5. Run MCP server (stdio transport)
"""

import logging
import os
import sys
import threading
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from task_calendar.api.tools import register_tools
from task_calendar.models.config import load_config
from task_calendar.services.task_service import TaskService
from task_calendar.storage.vault_store import VaultStore

log = logging.getLogger(__name__)

DEFAULT_EXCLUDE_DIRS = ".git,.obsidian,node_modules,.trash"
DEFAULT_API_PORT = 9400


def _parse_exclude_dirs(raw: str) -> set[str]:
    """Parse a comma-separated list of directory names to exclude."""
    return {part.strip() for part in raw.split(",") if part.strip()}


def _configure_logging() -> None:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _api_port() -> int:
    raw = os.environ.get("API_PORT", str(DEFAULT_API_PORT))
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring non-integer API_PORT=%r, using %d", raw, DEFAULT_API_PORT)
        return DEFAULT_API_PORT


def _start_api_server(service, port: int) -> None:
    """Run the FastAPI/uvicorn server in a daemon thread."""
    import uvicorn

    from task_calendar.api.app import create_app

    app = create_app(service)
    log.info("Starting REST API on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="warning")


def build_service(vault_root: Path, exclude_dirs: set[str]) -> TaskService:
    store = VaultStore(vault_root, exclude_dirs)
    return TaskService(store, load_config())


def main() -> None:
    _configure_logging()

    vault_root_env = os.environ.get("VAULT_ROOT", "")
    if not vault_root_env:
        log.error("VAULT_ROOT environment variable is not set")
        sys.exit(1)

    vault_root = Path(vault_root_env)
    if not vault_root.is_dir():
        log.error("VAULT_ROOT does not exist or is not a directory: %s", vault_root)
        sys.exit(1)

    exclude_dirs = _parse_exclude_dirs(os.environ.get("EXCLUDE_DIRS", DEFAULT_EXCLUDE_DIRS))

    log.info("Vault root: %s", vault_root)
    log.info("Excluded dirs: %s", exclude_dirs)

    service = build_service(vault_root, exclude_dirs)
    config = service.config
    log.info(
        "Task properties: due=%s start=%s text=%s, %d children per series",
        config.date_property,
        config.start_date_property,
        config.text_property,
        config.child_count,
    )

    # Start REST API in a daemon thread
    api_enabled = os.environ.get("API_ENABLED", "true").lower() in ("true", "1", "yes")
    if api_enabled:
        api_thread = threading.Thread(
            target=_start_api_server, args=(service, _api_port()), daemon=True
        )
        api_thread.start()

    # Create MCP server and register tools
    mcp = FastMCP("vault-tasks-calendar")
    register_tools(mcp, service)

    log.info("Starting vault-tasks-calendar server")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
