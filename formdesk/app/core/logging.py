"""Service event log for formdesk.

All services share the single `formdesk` logger, which writes to
`{LOG_PATH}/formdesk.log`. Debug records are kept only when `DEBUG` is set.
"""
import os
from logging import DEBUG, INFO, FileHandler, Formatter, getLogger
from formdesk.app.core.config import settings

LOGGER_NAME = "formdesk"


def get_logs_writer_logger(logging_dir=settings.LOG_PATH, filename='formdesk.log'):
    logger = getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    os.makedirs(logging_dir, exist_ok=True)
    logger.setLevel(DEBUG if settings.DEBUG else INFO)
    logger.propagate = False

    # delay=True: the file is only created once something is logged
    handler = FileHandler(os.path.join(logging_dir, filename), mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(Formatter("%(asctime)s %(levelname)s [%(module)s] %(message)s"))
    logger.addHandler(handler)
    return logger
