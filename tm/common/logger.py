import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler
from tm.common.setup import PATHS
from datetime import datetime

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER_NAME = "timemotion"

# Returns the root engine logger, attaching file/console handlers only once per process. Handler names are used
# as the idempotency key so repeated calls (tests, re-imports) never stack duplicate handlers.
def get_logger(
        name = ROOT_LOGGER_NAME,
        level = logging.INFO,
        log_dir: Path | None = None,
        max_bytes = 5 * 1024 * 1024,
        backup_count = 5,
        persistent = True,
        console = False,
        session_logs: int = 10
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(level)

    log_dir = log_dir or PATHS.logs
    log_dir.mkdir(parents=True,exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT,LOG_DATE_FORMAT)

    def _has(handler_name):
        return any(h.get_name() == handler_name for h in logger.handlers)

    def _attach(handler, handler_name, handler_level):
        handler.setLevel(handler_level)
        handler.setFormatter(fmt)
        handler.set_name(handler_name)
        logger.addHandler(handler)

    # Rolling log across all analysis sessions
    if persistent and not _has(f"{name}:persistent"):
        _attach(RotatingFileHandler(filename=log_dir / f"{name}.log",maxBytes=max_bytes,backupCount=backup_count,
                                    encoding="utf-8",delay=True),
                f"{name}:persistent",level)

    # Latest-only log, overwritten each run
    if not _has(f"{name}:latest"):
        _attach(logging.FileHandler(filename=log_dir / "latest.log",mode="w",encoding="utf-8",delay=True),
                f"{name}:latest",level)

    # One full debug log per analysis session, keeping only the newest `session_logs` of them.
    if session_logs > 0 and not _has(f"{name}:session"):
        session_dir = log_dir / "sessions"
        session_dir.mkdir(parents=True,exist_ok=True)
        session_path = session_dir / f"{name}_{datetime.now():%Y-%m-%d_%H-%M-%S}.log"
        _attach(logging.FileHandler(filename=session_path,encoding="utf-8",delay=True),
                f"{name}:session",logging.DEBUG)

        runs = sorted(session_dir.glob(f"{name}_*.log"),key=lambda p: p.stat().st_mtime,reverse=True)
        for run in runs[session_logs:]:
            try:
                run.unlink()
            except OSError as exc:
                logger.debug(f"Could not prune old session log {run}: {exc}")

    if console and not _has(f"{name}:console"):
        _attach(logging.StreamHandler(),f"{name}:console",level)

    return logger

# Child logger for one engine component, e.g. get_component_logger("store") -> "timemotion.store". Children
# propagate into the root engine logger's handlers.
def get_component_logger(component: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")

log = get_logger(
    level=getattr(logging, os.getenv("TM_LOG_LEVEL", "DEBUG").upper(), logging.DEBUG),
    console=os.getenv("TM_LOG_CONSOLE", "0") == "1",
    session_logs=10,
)
