"""
Logging for the Evidence Retrieval engine.

Two loggers, both from the standard logging framework:

- ``EvidenceRetrieval``: production log (logs/retrieval.log), plus the
  console when DEBUG_MODE is on. Warnings and errors always land here.
- ``EvidenceRetrieval.flow``: the step-by-step trace of every query
  (logs/debug_flow.txt), written regardless of DEBUG_MODE.

Modules import the helper functions rather than the loggers:
    from evidence_retrieval.logging_config import debug_log, warning, Timer

Message convention: prefix with the component in brackets, e.g.
``debug_log("[Lexical] 12 hits for 'quick fox'")``.
"""

import logging
import sys
import time

from evidence_retrieval.config import (
    DEBUG_LOG_FILE,
    DEBUG_MODE,
    LOG_DATE_FORMAT,
    LOG_FILE,
    LOG_FORMAT,
    LOGS_DIR,
)

LOGGER_NAME = "EvidenceRetrieval"
FLOW_FORMAT = "[%(asctime)s.%(msecs)03d] %(message)s"


def _logs_dir_ready() -> bool:
    try:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return True


def _build_loggers() -> tuple[logging.Logger, logging.Logger]:
    """
    Create the production and flow loggers once per process.

    Files are opened on the first record (delay=True), so importing the
    package never touches the disk. An unwritable log directory leaves the
    loggers without file handlers.
    """
    main = logging.getLogger(LOGGER_NAME)
    flow = logging.getLogger(f"{LOGGER_NAME}.flow")
    if main.handlers or flow.handlers:
        return main, flow

    main.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)
    flow.setLevel(logging.DEBUG)
    flow.propagate = False

    if _logs_dir_ready():
        main_file = logging.FileHandler(LOG_FILE, encoding="utf-8", delay=True)
        main_file.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        main.addHandler(main_file)

        flow_file = logging.FileHandler(DEBUG_LOG_FILE, mode="w", encoding="utf-8", delay=True)
        flow_file.setFormatter(logging.Formatter(FLOW_FORMAT, datefmt=LOG_DATE_FORMAT))
        flow.addHandler(flow_file)

    if DEBUG_MODE:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        main.addHandler(console)

    return main, flow


_logger, _flow = _build_loggers()


def debug_log(message: str):
    """Trace message: always to debug_flow.txt, to the console only in DEBUG_MODE."""
    _flow.debug(message)
    if DEBUG_MODE:
        _logger.debug(message)


def info(message: str):
    _flow.info(f"[INFO] {message}")
    _logger.info(message)


def warning(message: str):
    """Degraded but recoverable situation (lane skipped, provider down, ...)."""
    _flow.warning(f"[WARNING] {message}")
    _logger.warning(message)


def error(message: str, exc_info: bool = False):
    """Error message; the traceback is attached only in DEBUG_MODE."""
    _flow.error(f"[ERROR] {message}")
    _logger.error(message, exc_info=exc_info and DEBUG_MODE)


def critical(message: str, exc_info: bool = True):
    _flow.critical(f"[CRITICAL] {message}")
    _logger.critical(message, exc_info=exc_info and DEBUG_MODE)


def format_duration(elapsed_seconds: float) -> str:
    """Human-readable duration: ms below a second, minutes above one."""
    if elapsed_seconds < 1:
        return f"{elapsed_seconds * 1000:.0f} ms"
    if elapsed_seconds < 60:
        return f"{elapsed_seconds:.2f}s"
    return f"{elapsed_seconds / 60:.1f}m"


def debug_timing(operation: str, elapsed_seconds: float):
    """
    Trace how long an operation took.

    Example:
        start = time.perf_counter()
        pool = lane.build_candidates(seeds, top_k)
        debug_timing("[Semantic] Candidate pool", time.perf_counter() - start)
    """
    debug_log(f"{operation} took {format_duration(elapsed_seconds)}")


class Timer:
    """
    Context manager that traces the duration of a block.

    Usage:
        with Timer("[Embeddings] Embedding 120 chunks") as timer:
            vectors = provider.embed_many(texts)
        print(timer.elapsed_ms)
    """

    def __init__(self, operation: str, log: bool = True):
        self.operation = operation
        self.log = log
        self._start: float | None = None
        self._elapsed: float | None = None

    def __enter__(self):
        if self.log:
            debug_log(f"{self.operation}...")
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._elapsed = time.perf_counter() - self._start
        if self.log:
            debug_timing(self.operation, self._elapsed)
        return False

    @property
    def elapsed_ms(self) -> float:
        """Duration of the block in milliseconds; ValueError while it is still running."""
        if self._elapsed is None:
            raise ValueError(f"Timer '{self.operation}' has not finished")
        return self._elapsed * 1000


def close_debug_log():
    """Flush and close the log files (call at shutdown)."""
    for logger in (_flow, _logger):
        for handler in logger.handlers:
            handler.flush()
            handler.close()


__all__ = [
    "debug_log",
    "debug_timing",
    "format_duration",
    "info",
    "warning",
    "error",
    "critical",
    "close_debug_log",
    "Timer",
    "DEBUG_MODE",
]
