import logging

import colorlog

LOG_FORMAT = "%(log_color)s%(levelname)-8s%(reset)s %(asctime)s %(name)s: %(message)s"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# third-party loggers that drown grant and consent events at INFO
QUIET_LOGGERS = ("uvicorn.access", "asyncpg", "httpx", "httpcore", "asyncio", "multipart")


def setup_logging(level: str = "INFO") -> None:
    handler = colorlog.StreamHandler()
    handler.setFormatter(
        colorlog.ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LEVEL_COLORS)
    )
    logging.basicConfig(
        level=level.upper() if level.upper() in LEVEL_COLORS else "INFO",
        handlers=[handler],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
