import logging
import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Driver and form-parser chatter stays out of the import logs
QUIET_LOGGERS = ("pymongo", "python_multipart", "multipart")

def configure_logging(level: str = LOG_LEVEL) -> logging.Logger:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logging.getLogger("excel_import")

logger = configure_logging()
