"""
Secure Logging - Logging with automatic sensitive data masking

This module provides:
- SensitiveDataFilter for masking session tokens and customer PII in logs
- Text and JSON formatters that carry the trace id of desk errors
- configure_secure_logging() for global secure logging setup

Usage:
    from ticketdesk.utils.secure_logging import configure_secure_logging

    configure_secure_logging(settings.log_level, settings.log_format)

    logger.info(f"Sending {headers}")  # Authorization header will be masked
"""

import re
import logging
import json
from typing import List, Tuple, Optional, Any, Dict, Union
from logging import LogRecord, Filter, Formatter


# Each tuple: (compiled regex pattern, replacement string or callable)
SENSITIVE_PATTERNS: List[Tuple[re.Pattern, Any]] = [
    # Bearer/Auth tokens
    (re.compile(r'(Bearer\s+)[a-zA-Z0-9_.-]+', re.IGNORECASE), r'\1[TOKEN_REDACTED]'),
    (re.compile(r'(["\']?Authorization["\']?:\s*["\']?)[^\s"\']+', re.IGNORECASE), r'\1[REDACTED]'),

    # JWT tokens (3 base64 parts separated by dots)
    (re.compile(r'eyJ[a-zA-Z0-9_-]+\.eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+'), '[JWT_REDACTED]'),

    # Passwords and tokens in key=value or JSON form
    (re.compile(r'(password|passwd|pwd|secret|token)(["\']?\s*[:=]\s*["\']?)([^\s"\',}]{4,})', re.IGNORECASE), r'\1\2[REDACTED]'),

    # Customer e-mail addresses
    (re.compile(r'([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+)\.([a-zA-Z]{2,})'), lambda m: f"{m.group(1)[:1]}***@***.{m.group(3)}"),

    # Phone numbers
    (re.compile(r'\+?\d{1,3}[\s.-]?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\b'), '[PHONE_REDACTED]'),
]

# Attributes the desk attaches through `TicketDeskError.log_error(extra=...)`
ERROR_FIELDS = ('error_code', 'trace_id', 'status_code', 'context')


class SensitiveDataFilter(Filter):
    """
    Masks tokens and customer contact details before a record is emitted.

    Covers the message, its %-args and the `context` extra attached by
    desk errors (masked recursively).
    """

    def __init__(self, name: str = '', additional_patterns: Optional[List[Tuple[re.Pattern, Any]]] = None):
        super().__init__(name)
        self.patterns = SENSITIVE_PATTERNS + list(additional_patterns or [])

    def filter(self, record: LogRecord) -> bool:
        if record.msg:
            record.msg = self.mask(str(record.msg))
        if isinstance(record.args, dict):
            record.args = self.mask(record.args)
        elif record.args:
            record.args = tuple(self.mask(arg) for arg in record.args)
        if hasattr(record, 'context'):
            record.context = self.mask(record.context)
        return True

    def mask(self, value: Any) -> Any:
        """Mask strings, and strings nested in dicts and lists; leave the rest alone."""
        if isinstance(value, str):
            for pattern, replacement in self.patterns:
                value = pattern.sub(replacement, value)
            return value
        if isinstance(value, dict):
            return {key: self.mask(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.mask(item) for item in value]
        return value


class SecureFormatter(Formatter):
    """One-line text output: `time level logger [trace_id] message`."""

    default_format = '%(asctime)s %(levelname)-7s %(name)s [%(trace_id)s] %(message)s'

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None):
        super().__init__(fmt or self.default_format, datefmt)
        self._masker = SensitiveDataFilter()

    def format(self, record: LogRecord) -> str:
        # Only desk errors carry a trace id
        if not hasattr(record, 'trace_id'):
            record.trace_id = '-'
        self._masker.filter(record)
        return super().format(record)


class JSONSecureFormatter(Formatter):
    """One JSON object per record, with the desk's error fields when present."""

    def __init__(self):
        super().__init__()
        self._masker = SensitiveDataFilter()

    def format(self, record: LogRecord) -> str:
        self._masker.filter(record)
        entry: Dict[str, Any] = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for key in ERROR_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_secure_logging(
    level: Union[int, str] = logging.INFO,
    format_type: str = 'text',
    additional_patterns: Optional[List[Tuple[re.Pattern, Any]]] = None,
) -> logging.Handler:
    """
    Replace the root handlers with one masked console handler.

    Args:
        level: Level number or name (e.g. settings.log_level)
        format_type: 'text' or 'json'
        additional_patterns: Extra (pattern, replacement) pairs to mask

    Returns:
        The installed handler
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.addFilter(SensitiveDataFilter(additional_patterns=additional_patterns))
    handler.setFormatter(JSONSecureFormatter() if format_type == 'json' else SecureFormatter())

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # httpx logs every request line at INFO
    logging.getLogger('httpx').setLevel(max(level, logging.WARNING))
    return handler


__all__ = [
    'SensitiveDataFilter',
    'SecureFormatter',
    'JSONSecureFormatter',
    'SENSITIVE_PATTERNS',
    'configure_secure_logging',
]
