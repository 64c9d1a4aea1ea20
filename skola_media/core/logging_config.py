import logging
import os
from logging.handlers import RotatingFileHandler

from skola_media.core.config import settings


def configure_logging(level: str | None = None) -> None:
    """Configure logging: console always, rotating file when log_file is set."""
    log_handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        log_dir = os.path.dirname(settings.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        log_handlers.append(
            RotatingFileHandler(
                settings.log_file,
                maxBytes=5 * 1024 * 1024,
                backupCount=2,
                encoding="utf-8",
            )
        )
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format=settings.log_format,
        datefmt=settings.log_date_format,
        handlers=log_handlers,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
