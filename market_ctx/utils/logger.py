import itertools
import logging
import os
import sys

LOGGER_NAME = "market_ctx"

_SEQ = itertools.count(1)


class _SeqFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        # Monotonic sequence number so interleaved worker output can be ordered.
        record.seq = next(_SEQ)  # type: ignore[attr-defined]
        return True


def setup_logger() -> logging.Logger:
    level = os.getenv("LOG_LEVEL", "INFO").upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated setup never duplicates output.
    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(_SeqFilter())
    formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d | %(levelname)s | %(name)s | %(seq)d | %(threadName)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
