import asyncio

import typer
from rich.table import Table

from deepsource_mcp import __version__
from deepsource_mcp.core import cli_help as ch
from deepsource_mcp.core import constants as cs

from .config import settings
from .main import app_context, style

app = typer.Typer(
    name="deepsource-mcp",
    help=ch.APP_DESCRIPTION,
    no_args_is_help=True,
    add_completion=False,
)


@app.command(name=ch.CLICommandName.MCP_SERVER, help=ch.CMD_MCP_SERVER)
def mcp_server(
    log_level: str | None = typer.Option(None, "--log-level", help=ch.HELP_LOG_LEVEL),
    log_file: str | None = typer.Option(None, "--log-file", help=ch.HELP_LOG_FILE),
) -> None:
    """
    Starts the Model Context Protocol (MCP) server.

    Allows integration with IDEs and assistants that support MCP.
    """
    try:
        from deepsource_mcp.mcp import main as mcp_main

        asyncio.run(mcp_main(log_level=log_level, log_file=log_file))
    except KeyboardInterrupt:
        app_context.console.print(style(cs.CLI_MSG_APP_TERMINATED, cs.Color.RED))
    except ValueError as e:
        app_context.console.print(
            style(cs.CLI_ERR_CONFIG.format(error=e), cs.Color.RED)
        )
        app_context.console.print(style(cs.CLI_MSG_HINT_API_KEY, cs.Color.YELLOW))
        raise typer.Exit(1) from e
    except Exception as e:
        app_context.console.print(
            style(cs.CLI_ERR_MCP_SERVER.format(error=e), cs.Color.RED)
        )
        raise typer.Exit(1) from e


@app.command(name=ch.CLICommandName.SHOW_CONFIG, help=ch.CMD_SHOW_CONFIG)
def show_config() -> None:
    table = Table(title=cs.CLI_TITLE_CONFIG, show_header=False, padding=(0, 2))
    table.add_column(style=cs.Color.CYAN, no_wrap=True)
    table.add_column()

    api_key = settings.masked_api_key() or style(
        cs.CLI_MSG_NOT_SET, cs.Color.RED, cs.StyleModifier.NONE
    )
    table.add_row("DEEPSOURCE_API_KEY", api_key)
    table.add_row("DEEPSOURCE_API_BASE_URL", settings.DEEPSOURCE_API_BASE_URL)
    table.add_row(
        "DEEPSOURCE_REQUEST_TIMEOUT", f"{settings.DEEPSOURCE_REQUEST_TIMEOUT} ms"
    )
    table.add_row(
        "DEEPSOURCE_DEFAULT_PAGE_SIZE", str(settings.DEEPSOURCE_DEFAULT_PAGE_SIZE)
    )
    table.add_row("DEEPSOURCE_MAX_PAGES", str(settings.DEEPSOURCE_MAX_PAGES))
    table.add_row("LOG_LEVEL", settings.LOG_LEVEL)
    table.add_row("LOG_FILE", settings.LOG_FILE or cs.CLI_MSG_NOT_SET)

    app_context.console.print(table)


@app.command(name=ch.CLICommandName.VERSION, help=ch.CMD_VERSION)
def version() -> None:
    app_context.console.print(cs.CLI_MSG_VERSION.format(version=__version__))
