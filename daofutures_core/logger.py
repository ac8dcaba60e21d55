import logging, json, sys, time, os


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line: ts, level, name, msg (+ exc when present)."""

    converter = time.gmtime  # UTC timestamps

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False)


def get_logger(name="daofutures", level=None, to_file=None):
    """Unified structured logger for all daofutures components."""
    logger = logging.getLogger(name)
    logger.setLevel(level or os.getenv("DAOFUTURES_LOG_LEVEL", "INFO").upper())

    if not logger.handlers:
        formatter = JsonLineFormatter()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if to_file:
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
