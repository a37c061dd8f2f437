from __future__ import annotations

import logging

from tablepos.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    settings = get_settings()
    resolved = (level or settings.log_level or "INFO").upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.INFO), format=LOG_FORMAT)
    logging.getLogger("tablepos").setLevel(getattr(logging, resolved, logging.INFO))
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
