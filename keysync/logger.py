import logging, json, sys, time, os

LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, name, msg (+ exc when present)."""

    converter = time.gmtime  # Use UTC timestamps

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%SZ")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def resolve_level(level=None) -> str:
    """Normalise a level name from the CLI or KEYSYNC_LOG_LEVEL; ValueError if unknown."""
    name = (level or os.getenv("KEYSYNC_LOG_LEVEL") or "INFO").strip().upper()
    if name not in LEVELS:
        raise ValueError(f"unknown log level: {name!r} (expected one of {', '.join(LEVELS)})")
    return name


def get_logger(name="keysync", level=None, to_file=None):
    """Unified structured logger for all keysync components."""
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    if not logger.handlers:
        formatter = JsonFormatter()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if to_file:
            # Ensure the directory exists before writing
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
