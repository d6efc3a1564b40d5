"""
Logging configuration for the signify verifier.

Provides structured JSON logging of verification decisions. The library only
emits records; handlers are installed by configure_logging(), which the CLI
calls.
"""

import json
import logging
import sys
import time
from typing import Any, Dict, Optional


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in a consistent JSON format suitable for
    log aggregation systems like ELK, Splunk, or CloudWatch.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class VerificationLogger:
    """
    Logger for verification events.

    One method per decision the verifier takes; failures go out at WARNING.
    """

    def __init__(self, name: str = "signify_verifier.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        if not self._logger.isEnabledFor(level):
            return

        extra = {"event_type": event_type, **kwargs}
        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def signature_verified(self, key_num: bytes, message_length: int) -> None:
        self._log(
            logging.INFO,
            "SIGNATURE_VERIFIED",
            key_num=key_num.hex(),
            message_length=message_length,
            message=f"Signature verified with key {key_num.hex()}"
        )

    def verification_failed(self, kind: str, reason: str, **details) -> None:
        """Log a rejected signature, checksum list or chain."""
        self._log(
            logging.WARNING,
            "VERIFICATION_FAILED",
            kind=kind,
            reason=reason,
            **details,
            message=f"Verification failed: {reason}"
        )

    def checksum_list_verified(self, file_count: int, base_directory: str) -> None:
        self._log(
            logging.INFO,
            "CHECKSUM_LIST_VERIFIED",
            file_count=file_count,
            base_directory=base_directory,
            message=f"{file_count} file(s) passed checksum verification"
        )

    def checksum_failed(self, filename: str, algorithm: str, reason: str) -> None:
        self._log(
            logging.WARNING,
            "CHECKSUM_FAILED",
            filename=filename,
            algorithm=algorithm,
            reason=reason,
            message=f"Checksum failed for {filename}"
        )

    def intermediate_key_accepted(self, key_num: bytes, valid_through: str) -> None:
        self._log(
            logging.INFO,
            "INTERMEDIATE_KEY_ACCEPTED",
            key_num=key_num.hex(),
            valid_through=valid_through,
            message=f"Intermediate key {key_num.hex()} valid through {valid_through}"
        )

    def intermediate_key_expired(self, valid_through: str, days: int) -> None:
        self._log(
            logging.WARNING,
            "INTERMEDIATE_KEY_EXPIRED",
            valid_through=valid_through,
            days=days,
            message=f"Intermediate key expired {days} day(s) ago"
        )


def configure_logging(
    level: str = "WARNING",
    json_format: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the command line tool.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # stderr, so that verified messages written to stdout stay clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


# Global verification logger instance
audit_log = VerificationLogger()
