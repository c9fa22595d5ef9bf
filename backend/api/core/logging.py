"""Logging configuration"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from api.core.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure root logging with a Rich handler"""
    level = getattr(logging, settings.log_level, logging.INFO)

    rich_handler = RichHandler(
        console=Console(width=120),
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
    )
    rich_handler.setFormatter(
        logging.Formatter(fmt="%(message)s", datefmt="[%Y-%m-%d %H:%M:%S]")
    )

    # force=True: uvicorn configures the root logger before us
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%Y-%m-%d %H:%M:%S]",
        handlers=[rich_handler],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging: {settings.log_level} | Env: {settings.environment}"
    )
