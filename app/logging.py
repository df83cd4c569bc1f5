import logging
import os
import sys

from pythonjsonlogger import jsonlogger


def setup_logging() -> logging.Logger:
    """
    Configures structured JSON logging for the application.

    Installs a single JSON stream handler on the root logger and on the
    Uvicorn loggers so request logs and application logs share one format.
    Safe to call more than once; handlers are replaced, not stacked.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    formatter = jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []
    root_logger.addHandler(stream_handler)

    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        u_logger = logging.getLogger(logger_name)
        u_logger.setLevel(level)
        u_logger.handlers = []
        u_logger.addHandler(stream_handler)
        u_logger.propagate = False

    return root_logger
