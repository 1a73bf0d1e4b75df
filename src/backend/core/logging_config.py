"""
Logging configuration for the Help Desk Visits backend.

File handlers sit behind a QueueHandler so log writes never block the event
loop; a QueueListener thread does the file I/O.
"""

import atexit
import logging
import logging.handlers
import queue
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


_queue_listener: Optional[logging.handlers.QueueListener] = None


class LogConfig(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_file_logging: bool = False
    log_dir: str = "logs"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_console: bool = True


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name for console output."""

    grey = "\x1b[38;21m"
    yellow = "\x1b[33;21m"
    red = "\x1b[31;21m"
    bold_red = "\x1b[31;1m"
    blue = "\x1b[34;21m"
    reset = "\x1b[0m"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: blue,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        # Work on a copy so file handlers never see the escape codes
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelno, self.grey)
        record.levelname = f"{color}{record.levelname}{self.reset}"
        return f"{super().format(record)}{self.reset}"


class CorrelationIdFilter(logging.Filter):
    """Adds `correlation_id` to every record ('-' outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        from core.middleware.correlation import get_correlation_id

        record.correlation_id = get_correlation_id() or "-"
        return True


def _rotating_handler(
    config: LogConfig, filename: str, formatter: logging.Formatter
) -> logging.handlers.RotatingFileHandler:
    handler = logging.handlers.RotatingFileHandler(
        Path(config.log_dir) / filename,
        maxBytes=config.max_file_size,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(getattr(logging, config.level.upper()))
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Optional[LogConfig] = None) -> None:
    """Setup application logging.

    Console output is written directly; `app.log` and `booking.log` are
    written by a background QueueListener when file logging is enabled.
    """
    global _queue_listener

    if config is None:
        config = LogConfig()

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None

    level = getattr(logging, config.level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.addFilter(CorrelationIdFilter())
        console_handler.setFormatter(
            ColoredFormatter(
                fmt="%(asctime)s | %(name)s | %(levelname)s | %(correlation_id)s | %(message)s",
                datefmt=config.date_format,
            )
        )
        root_logger.addHandler(console_handler)

    if config.enable_file_logging:
        Path(config.log_dir).mkdir(parents=True, exist_ok=True)
        file_formatter = logging.Formatter(
            fmt="%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(correlation_id)s | %(message)s",
            datefmt=config.date_format,
        )

        app_handler = _rotating_handler(config, "app.log", file_formatter)

        # Booking events only: slot and request state changes, notifications
        booking_handler = _rotating_handler(config, "booking.log", file_formatter)
        booking_handler.addFilter(logging.Filter("booking"))

        log_queue = queue.Queue(-1)
        # Resolved here, on the request task; the listener thread has no context
        queue_handler = logging.handlers.QueueHandler(log_queue)
        queue_handler.addFilter(CorrelationIdFilter())
        root_logger.addHandler(queue_handler)

        _queue_listener = logging.handlers.QueueListener(
            log_queue,
            app_handler,
            booking_handler,
            respect_handler_level=True,
        )
        _queue_listener.start()
        atexit.register(stop_queue_listener)

    # SQL echo is controlled by DATABASE_ECHO, keep engine chatter down otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def stop_queue_listener() -> None:
    """Stop the queue listener.

    Called automatically on exit via atexit and from the lifespan shutdown.
    """
    global _queue_listener

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None


class BookingLogger:
    """Structured logger for slot and request state changes."""

    def __init__(self, name: str = "events"):
        self.logger = logging.getLogger(f"booking.{name}")

    def slot_booked(self, slot_id: int, request_id: int, date: str, start_time: str) -> None:
        """Log when a slot is bound to a request."""
        self.logger.info(
            f"Slot booked | Slot ID: {slot_id} | Request ID: {request_id} | "
            f"When: {date} {start_time}"
        )

    def slot_released(self, slot_id: int, request_ids: list[int]) -> None:
        """Log when a slot is freed and its referencing requests cleared."""
        self.logger.info(
            f"Slot released | Slot ID: {slot_id} | Cleared requests: {request_ids or 'none'}"
        )

    def slot_deleted(self, slot_id: int, reason: str = "manual") -> None:
        self.logger.info(f"Slot deleted | Slot ID: {slot_id} | Reason: {reason}")

    def slot_delete_skipped(self, slot_id: int, referencing_ids: list[int]) -> None:
        """Log when a completed visit's slot is kept because it is still referenced."""
        self.logger.warning(
            f"Slot delete skipped | Slot ID: {slot_id} | Still referenced by: {referencing_ids}"
        )

    def request_taken(self, request_id: int, admin_id: int, previous_admin_id: Optional[int]) -> None:
        self.logger.info(
            f"Request taken | Request ID: {request_id} | Admin ID: {admin_id} | "
            f"Previous: {previous_admin_id}"
        )

    def status_changed(self, request_id: int, old_status: str, new_status: str, admin_id: Optional[int]) -> None:
        """Log a request status transition."""
        self.logger.info(
            f"Status changed | Request ID: {request_id} | {old_status} -> {new_status} | "
            f"By admin: {admin_id}"
        )

    def notification_failed(self, request_id: int, recipient: str, error: str) -> None:
        """Log a notification that could not be delivered."""
        self.logger.warning(
            f"Notification failed | Request ID: {request_id} | Recipient: {recipient} | Error: {error}"
        )
