from __future__ import annotations

import logging


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
NOISY_LOGGERS = ("matplotlib", "PIL", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # Font-cache and connection-pool chatter drowns out fetch failures at DEBUG.
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
