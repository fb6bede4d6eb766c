"""
Logging for the ZeroDelta CTF submission service

One console handler on the root logger, formatted for log shippers. Records
that matter to operators during a live competition (unsafe or slow flag
patterns, honeypot bans, failed solve writes) come from the matcher and
processor packages; those loggers never drop below WARNING, whatever
LOG_LEVEL says.
"""

import logging
import sys

from zdctf.config import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# warnings from these always reach the console
OPERATOR_LOGGERS = ("zdctf.ctf.matchers", "zdctf.ctf.processor")


def setup_logging(log_level: str | None = None) -> None:
    """Install the console handler and set service and library levels

    Safe to call more than once; earlier handlers are replaced.
    """
    level_name = (log_level or settings.LOG_LEVEL).upper()
    app_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(app_level)

    # filtering is done per logger so operator warnings survive a quiet root
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    )
    root_logger.addHandler(console_handler)

    for name in OPERATOR_LOGGERS:
        logging.getLogger(name).setLevel(min(app_level, logging.WARNING))

    _configure_library_loggers(app_level)
    root_logger.info("Logging configured: level=%s", level_name)


def _configure_library_loggers(app_level: int) -> None:
    """uvicorn and sqlalchemy are chatty; keep them at or above INFO"""
    logging.getLogger("uvicorn").setLevel(max(app_level, logging.INFO))
    logging.getLogger("uvicorn.access").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )
    logging.getLogger("uvicorn.error").setLevel(logging.WARNING)

    # engine echo is driven by DB_ECHO
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DB_ECHO else logging.WARNING
    )
    logging.getLogger("sqlalchemy.pool").setLevel(
        logging.INFO if app_level == logging.DEBUG else logging.WARNING
    )

    logging.getLogger("starlette").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
