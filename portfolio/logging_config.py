import logging
import sys
from logging import config as logging_config

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Colours the level name by severity when the output is a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "1;31",
    }

    def __init__(self, fmt=None, datefmt=None, use_color=None):
        super().__init__(fmt, datefmt)
        self.use_color = sys.stdout.isatty() if use_color is None else use_color

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if not self.use_color or color is None:
            return super().formatMessage(record)

        # Other handlers share the record, so colour a copy
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"\x1b[{color}m{record.levelname}\x1b[0m"
        return super().formatMessage(colored)


def configure_logging(level: str = "INFO", use_color=None) -> None:
    """Send the portfolio and optimizer logs to stdout."""

    cfg = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": ColoredFormatter,
                "fmt": LOG_FORMAT,
                "datefmt": DATE_FORMAT,
                "use_color": use_color,
            },
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "default", "stream": "ext://sys.stdout"},
        },
        "loggers": {
            "portfolio": {"level": level},
            "optimize_cloudinary": {"level": level},
        },
        "root": {"handlers": ["default"], "level": "WARNING"},
    }

    logging_config.dictConfig(cfg)


__all__ = ["configure_logging", "ColoredFormatter"]
