# recupero/core/logging.py
from __future__ import annotations

import logging
import re

from recupero.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configura il root logger una sola volta all'avvio dell'app."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )


def mask_url(url: str) -> str:
    """Maschera la password nell'URL per log sicuri"""
    return re.sub(r"://([^:/]+):([^@]+)@", r"://\1:***@", url)
