import json
import logging
import os
from logging.handlers import RotatingFileHandler

AUDIT_LEVEL_NUM = 38
AUDIT_LOGGER_NAME = "bovenkamer.audit"
DEFAULT_LOG_BACKUP_COUNT = 10

_NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncio")


class _JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    Dict messages are merged into the top level so structured log calls
    (``logger.info({"event": ...})``) stay queryable.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level="INFO", json_logs=False):
    """Configure the root logger for CLI and service use."""
    logging.addLevelName(AUDIT_LEVEL_NUM, "AUDIT")

    handler = logging.StreamHandler()
    if json_logs:
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(str(level).upper())

    # SQL echo floods INFO otherwise
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


def setup_audit_logger(full_path, audit_retention_size):
    logging.addLevelName(AUDIT_LEVEL_NUM, "AUDIT")

    logger = logging.getLogger(AUDIT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    os.makedirs(full_path, exist_ok=True)
    file_handler = RotatingFileHandler(
        os.path.join(full_path, "audit.log"),
        maxBytes=audit_retention_size,
        backupCount=DEFAULT_LOG_BACKUP_COUNT,
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(AUDIT_LEVEL_NUM)
    logger.addHandler(file_handler)

    return logger
