# app/texcore/utils/logger.py

import logging
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any
from functools import wraps

from ..models.types import ProcessingPhase, ProcessingError, LogContext

LOGGER_NAME = "app.texcore"


class TexLogger:
    """Centralized logging for the LaTeX core."""

    def __init__(
        self,
        name: Optional[str] = None,
        level: str = "INFO",
        log_file: Optional[Path] = None
    ):
        self.logger = logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)
        self._setup_logger(level, log_file)

    def _setup_logger(self, level: str, log_file: Optional[Path]) -> None:
        """Configure the shared texcore logger once."""
        root = logging.getLogger(LOGGER_NAME)
        root.setLevel(logging.DEBUG)
        if getattr(root, "_texcore_configured", False):
            return

        # Create console handler
        console = logging.StreamHandler()
        console.setLevel(getattr(logging, level.upper(), logging.INFO))
        console.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s'
        ))
        root.addHandler(console)

        # File handler only when configured
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))
            root.addHandler(file_handler)

        root._texcore_configured = True

    # Plain logging passthroughs so a TexLogger can stand in for logging.Logger
    def debug(self, msg: str, *args: Any) -> None:
        self.logger.debug(msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args: Any) -> None:
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args: Any) -> None:
        self.logger.error(msg, *args)

    def log_phase_start(self, phase: ProcessingPhase, context: LogContext) -> None:
        """Log the start of a processing phase."""
        self.logger.debug(
            f"Starting {phase.value} phase - "
            f"Document: {context.document_id or 'N/A'}"
        )

    def log_phase_end(self, phase: ProcessingPhase, context: LogContext) -> None:
        """Log the end of a processing phase."""
        self.logger.debug(
            f"Completed {phase.value} phase - "
            f"Document: {context.document_id or 'N/A'}"
        )

    def log_error(self, error: ProcessingError, phase: Optional[ProcessingPhase] = None) -> None:
        """Log processing error with context."""
        error_msg = (
            f"Error during {phase.value if phase else 'processing'}: "
            f"{error.message}\n"
            f"Context: {error.context}\n"
            f"Element: {error.element_id or 'N/A'}"
        )

        if error.stacktrace:
            error_msg += f"\nStacktrace:\n{error.stacktrace}"

        self.logger.error(error_msg)

    def create_error_log(self, e: Exception, context: Dict[str, Any]) -> None:
        """Create comprehensive error log entry."""
        self.logger.error(
            "Error Details:\n"
            f"Timestamp: {datetime.now().isoformat()}\n"
            f"Error Type: {type(e).__name__}\n"
            f"Message: {str(e)}\n"
            f"Context: {context}\n"
            f"Stacktrace:\n{traceback.format_exc()}"
        )


def log_processing_phase(phase: ProcessingPhase):
    """Decorator for logging processing phases."""
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            context = LogContext(
                phase=phase,
                document_id=getattr(self, 'document_id', None)
            )

            self.logger.log_phase_start(phase, context)
            try:
                result = func(self, *args, **kwargs)
                self.logger.log_phase_end(phase, context)
                return result
            except Exception as e:
                if isinstance(e, ProcessingError):
                    self.logger.log_error(e, phase)
                else:
                    self.logger.create_error_log(e, {
                        'phase': phase.value,
                        'function': func.__name__
                    })
                raise
        return wrapper
    return decorator
