import os
import logging
import logging.handlers

FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def _file_handler(log_file: str) -> logging.Handler:
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    if os.getenv("LOG_ROTATE", "size").lower() == "time":
        fh = logging.handlers.TimedRotatingFileHandler(
            log_file,
            when=os.getenv("LOG_WHEN", "midnight"),
            interval=int(os.getenv("LOG_INTERVAL", "1")),
            backupCount=int(os.getenv("LOG_BACKUP_COUNT", "10")),
            encoding="utf-8",
            utc=True,
        )
        # kidvid.log.2025-08-20 rather than kidvid.log.1
        fh.suffix = "%Y-%m-%d"
        return fh
    return logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=int(os.getenv("LOG_MAX_BYTES", "1048576")),
        backupCount=int(os.getenv("LOG_BACKUP_COUNT", "10")),
        encoding="utf-8",
    )


def configure_logging_from_env(logger_name: str) -> logging.Logger:
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False

    # modules get reloaded by the server tests; don't stack handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    if os.getenv("LOG_TO_FILE", "false").lower() == "true":
        fh = _file_handler(os.getenv("LOG_FILE", "logs/kidvid.log"))
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger
