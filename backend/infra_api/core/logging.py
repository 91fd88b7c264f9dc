"""
Logging setup - console handler driven by LOG_LEVEL
"""
import logging
import sys

from infra_api.core.config import get_settings


def setup_logging() -> None:
    """Configure the root logger once at startup."""
    settings = get_settings()

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Leave handlers installed by the host (uvicorn, pytest) in place
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s - %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)

    # Quiet SQL echo unless explicitly debugging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
