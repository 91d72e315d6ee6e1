import json
import logging
import re
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from contextvars import ContextVar

# Context variables for correlation
context_uri_var: ContextVar[Optional[str]] = ContextVar('context_uri', default=None)
page_index_var: ContextVar[Optional[int]] = ContextVar('page_index', default=None)
stage_var: ContextVar[Optional[str]] = ContextVar('stage', default=None)


_SECRET_VALUE = r'[\s]*["\']?([a-zA-Z0-9\-_\.]{%d,})["\']?'

# (label, minimum secret length, separator) per masked form
_SECRET_FORMS = [
    (r'token|key|secret|password|auth', 10, r'[\s]*[:=]'),
    (r'access_token|bearer', 20, r'[\s]*[:=]?'),
    (r'authorization', 20, r'[\s]*[:=]'),
]


def _mask_match(match: 're.Match') -> str:
    label, secret = match.group(1), match.group(2)
    if len(secret) <= 8:
        return f"{label}: {'*' * len(secret)}"
    return f"{label}: {secret[:4]}{'*' * (len(secret) - 8)}{secret[-4:]}"


class SecretMasker:
    """Masks tokens and authorization headers in log messages and fields."""

    def __init__(self):
        self.compiled_patterns = [
            re.compile(rf'(?i)({label}){sep}' + _SECRET_VALUE % min_len)
            for label, min_len, sep in _SECRET_FORMS
        ]

    def mask_secrets(self, text: str) -> str:
        """Mask sensitive information in text."""
        if not text:
            return text
        for pattern in self.compiled_patterns:
            text = pattern.sub(_mask_match, text)
        return text

    def mask_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.mask_secrets(value)
        if isinstance(value, dict):
            return self.mask_dict(value)
        if isinstance(value, (list, tuple)):
            return [self.mask_value(item) for item in value]
        return value

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive information in dictionary values."""
        if not data:
            return data
        return {key: self.mask_value(value) for key, value in data.items()}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self):
        """Initialize formatter."""
        super().__init__()
        self.masker = SecretMasker()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        context_uri = context_uri_var.get()
        page_index = page_index_var.get()
        stage = stage_var.get()

        log_entry = {
            'ts': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': self.masker.mask_secrets(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add correlation fields if available
        if context_uri:
            log_entry['contextUri'] = context_uri
        if page_index is not None:
            log_entry['pageIndex'] = page_index
        if stage:
            log_entry['stage'] = stage

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if getattr(record, 'fields', None):
            log_entry['fields'] = self.masker.mask_dict(record.fields)

        return json.dumps(log_entry, ensure_ascii=False)


class CorrelationContext:
    """Context manager for correlation data."""

    def __init__(self, context_uri: Optional[str] = None,
                 page_index: Optional[int] = None,
                 stage: Optional[str] = None):
        """Initialize correlation context."""
        self.context_uri = context_uri
        self.page_index = page_index
        self.stage = stage
        self._tokens = []

    def __enter__(self):
        """Set correlation context."""
        if self.context_uri is not None:
            self._tokens.append((context_uri_var, context_uri_var.set(self.context_uri)))
        if self.page_index is not None:
            self._tokens.append((page_index_var, page_index_var.set(self.page_index)))
        if self.stage is not None:
            self._tokens.append((stage_var, stage_var.set(self.stage)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore correlation context."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()


def setup_logging(level: str = 'INFO',
                  log_file: Optional[str] = None) -> logging.Logger:
    """Setup structured logging for the package logger tree."""
    logger = logging.getLogger('contextpages')
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    logger.handlers.clear()

    formatter = StructuredFormatter()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_with_fields(logger: logging.Logger, level: str, message: str,
                    fields: Optional[Dict[str, Any]] = None, exc_info: bool = False,
                    **kwargs) -> None:
    """Log message with additional structured fields."""
    extra_fields = dict(fields or {})
    extra_fields.update(kwargs)
    logger.log(
        getattr(logging, level.upper()), message,
        extra={'fields': extra_fields} if extra_fields else None,
        exc_info=exc_info,
        stacklevel=2,
    )


def log_error(logger: logging.Logger, message: str, error: Exception, **kwargs) -> None:
    """Log error with exception details."""
    log_with_fields(logger, 'ERROR', message, {
        'error_type': type(error).__name__,
        'error_message': str(error),
        **kwargs
    })
