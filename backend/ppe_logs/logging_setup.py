"""Process-wide logging configuration."""
import logging

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once from LOG_LEVEL."""
    name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(format=LOG_FORMAT, level=getattr(logging, name, logging.INFO))
