import logging
import os
from logging.handlers import RotatingFileHandler

# Read from the environment so this module stays importable before settings load
LOG_DIR = os.path.join(os.getcwd(), os.getenv("LOG_DIR", "logs"))
LOG_FILE = os.path.join(LOG_DIR, "workflow_vault.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

os.makedirs(LOG_DIR, exist_ok=True)


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module of the app, writing to the console and to logs/workflow_vault.log
    (rotated at 10 MB, 5 backups). Handlers are attached once per name.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL)
    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(LOG_FILE, maxBytes=10_000_000, backupCount=5, encoding="utf-8")
    console_handler = logging.StreamHandler()
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
