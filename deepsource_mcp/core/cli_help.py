from __future__ import annotations

from enum import StrEnum


class CLICommandName(StrEnum):
    MCP_SERVER = "mcp-server"
    SHOW_CONFIG = "show-config"
    VERSION = "version"


APP_DESCRIPTION = (
    "DeepSource MCP server: exposes DeepSource projects, issues, runs, quality "
    "metrics and security reports as Model Context Protocol tools."
)

CMD_MCP_SERVER = "Start the MCP server over stdio."
CMD_SHOW_CONFIG = "Show the effective configuration (the API key is masked)."
CMD_VERSION = "Show the installed version."

HELP_LOG_LEVEL = "Override LOG_LEVEL for this run (e.g. DEBUG)."
HELP_LOG_FILE = "Also write logs to this file."
