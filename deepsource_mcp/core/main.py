from __future__ import annotations

import sys

from loguru import logger

from deepsource_mcp.data_models.models import AppContext

from . import constants as cs
from . import logs as ls
from .config import settings


def style(
    text: str, color: cs.Color, modifier: cs.StyleModifier = cs.StyleModifier.BOLD
) -> str:
    """Applies Rich styling to a text string.

    Args:
        text (str): The text to style.
        color (cs.Color): The color to apply.
        modifier (cs.StyleModifier): The style modifier (e.g., 'bold', 'dim').

    Returns:
        str: The Rich-formatted string.
    """
    if modifier == cs.StyleModifier.NONE:
        return f"[{color}]{text}[/{color}]"
    return f"[{modifier} {color}]{text}[/{modifier} {color}]"


app_context = AppContext()


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Routes loguru output to stderr and, optionally, to a file.

    Args:
        level (str | None): Minimum level; defaults to `LOG_LEVEL`.
        log_file (str | None): Extra file sink; defaults to `LOG_FILE`.
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_file = log_file or settings.LOG_FILE

    logger.remove()
    logger.add(sys.stderr, format=cs.LOG_FORMAT, level=level)
    if log_file:
        logger.add(log_file, format=cs.LOG_FORMAT, level=level, encoding=cs.ENCODING_UTF8)
    logger.debug(ls.LOGGING_CONFIGURED.format(level=level))
