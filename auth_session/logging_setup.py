import logging
import os


class KeyValueFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        ts = self.formatTime(record, self.datefmt)
        kv = [f"time={ts}"] + [f"{k}={v}" for k, v in base.items()]
        return " ".join(kv)


def configure_logging(level: str | None = None) -> None:
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=level, format="%(message)s")
    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers:
        h.setFormatter(KeyValueFormatter())


def mask_token(token: str | None) -> str:
    """Short, non-reversible rendering of a credential for log lines."""
    if not token:
        return "none"
    if len(token) <= 8:
        return "***"
    return f"{token[:4]}...{token[-2:]}"
