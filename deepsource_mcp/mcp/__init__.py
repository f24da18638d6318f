from __future__ import annotations

from loguru import logger

from deepsource_mcp.core import logs as ls
from deepsource_mcp.core.config import settings
from deepsource_mcp.core.main import configure_logging
from deepsource_mcp.mcp.server import create_server, run_stdio_server
from deepsource_mcp.mcp.tools import MCPToolsRegistry, create_mcp_tools_registry
from deepsource_mcp.services.deepsource_client import create_deepsource_client


async def main(log_level: str | None = None, log_file: str | None = None) -> None:
    """Validates the configuration and serves the DeepSource tools over stdio.

    Raises:
        ValueError: When `DEEPSOURCE_API_KEY` is not configured.
    """
    configure_logging(log_level, log_file)
    settings.require_api_key()
    logger.info(
        ls.CONFIG_LOADED.format(
            base_url=settings.DEEPSOURCE_API_BASE_URL,
            timeout=settings.DEEPSOURCE_REQUEST_TIMEOUT,
            level=settings.LOG_LEVEL,
        )
    )
    client = create_deepsource_client()
    await run_stdio_server(create_mcp_tools_registry(lambda: client))


__all__ = ["MCPToolsRegistry", "create_mcp_tools_registry", "create_server", "main"]
