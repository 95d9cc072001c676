"""Logging configuration for jboss-deploy.

Provides configurable logging with:
- File-based logging with rotation
- Console output for build logs
- Performance timing decorators for management calls

Environment Variables:
    JBOSS_DEPLOY_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    JBOSS_DEPLOY_LOG_FILE: Path to log file (default: ~/.jboss-deploy/jboss-deploy.log)
    JBOSS_DEPLOY_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    JBOSS_DEPLOY_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from jboss_deploy.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("execute")
    def execute(self, op):
        ...
"""
import functools
import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("jboss_deploy.perf")
main_logger = logging.getLogger("jboss_deploy")


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("JBOSS_DEPLOY_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".jboss-deploy" / "jboss-deploy.log"
    path_str = os.environ.get("JBOSS_DEPLOY_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging(level: Optional[int] = None, log_to_file: bool = True) -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (INFO+ by default, respects JBOSS_DEPLOY_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance logger for timing metrics (file only)

    Args:
        level: Console level, overrides the environment
        log_to_file: Set False to skip the rotating file handlers
    """
    log_level = level if level is not None else get_log_level()

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-30s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))

    main_logger.handlers.clear()
    main_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    main_logger.addHandler(console_handler)
    perf_logger.setLevel(logging.DEBUG)
    perf_logger.propagate = False
    perf_logger.handlers.clear()

    if not log_to_file:
        # Timing lines only go to the perf file
        perf_logger.addHandler(logging.NullHandler())
        return

    log_file = get_log_file()
    max_size_mb = int(os.environ.get("JBOSS_DEPLOY_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("JBOSS_DEPLOY_LOG_BACKUPS", "5"))
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)
    main_logger.addHandler(file_handler)

    perf_log_file = log_file.parent / "jboss-deploy-perf.log"
    perf_handler = RotatingFileHandler(
        perf_log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)
    perf_logger.addHandler(perf_handler)

    main_logger.debug(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")


def timed(operation: str, endpoint: Optional[str] = None):
    """Decorator to log execution time of a function.

    Args:
        operation: Name of the operation (e.g., "execute", "upload")
        endpoint: Optional endpoint label (inferred from self.endpoint otherwise)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            label = endpoint
            if label is None and args and hasattr(args[0], 'endpoint'):
                label = args[0].endpoint

            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.info(
                    f"{operation:20s} | {label or 'N/A':25s} | {elapsed:8.2f}ms | OK"
                )
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(
                    f"{operation:20s} | {label or 'N/A':25s} | {elapsed:8.2f}ms | FAIL: {e}"
                )
                raise

        return wrapper

    return decorator


@contextmanager
def timed_section_sync(operation: str, endpoint: Optional[str] = None, **extra):
    """Context manager for timing code sections.

    Usage:
        with timed_section_sync("add_resource", endpoint="localhost:9990", profile="full"):
            engine.add(...)
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:20s} | {endpoint or 'N/A':25s} | {elapsed:8.2f}ms | OK"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.info(msg)
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:20s} | {endpoint or 'N/A':25s} | {elapsed:8.2f}ms | FAIL: {e}"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.warning(msg)
        raise
