"""
Retrieval Logging Configuration
Structured logging setup for the knowledge-base retrieval engine
"""

import logging
import logging.handlers
import os
import sys
import json
from datetime import datetime
from typing import Optional
from pathlib import Path
import structlog

from rag.config import LOGGING_CONFIG


class RAGFormatter(logging.Formatter):
    """JSON formatter for retrieval logs with tenant and stage context"""

    CONTEXT_FIELDS = ('organization_id', 'stage', 'operation', 'error_type')

    def __init__(self):
        super().__init__()
        self.hostname = os.getenv('HOSTNAME', 'localhost')

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'hostname': self.hostname,
            'process_id': os.getpid(),
        }

        for field in self.CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if hasattr(record, 'duration'):
            log_entry['duration_seconds'] = record.duration

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        if record.levelno <= logging.DEBUG:
            log_entry['file'] = record.filename
            log_entry['line'] = record.lineno
            log_entry['function'] = record.funcName

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class RAGLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds tenant context to log records"""

    def __init__(self, logger, extra=None):
        super().__init__(logger, extra or {})

    def process(self, msg, kwargs):
        kwargs.setdefault('extra', {})
        kwargs['extra'].update(self.extra)
        return msg, kwargs


def setup_logging(
    log_level: Optional[str] = None,
    enable_file_logging: Optional[bool] = None,
    enable_console_logging: Optional[bool] = None,
    enable_structured_logging: Optional[bool] = None,
    log_rotation_size: int = 10 * 1024 * 1024,  # 10MB
    log_retention_count: int = 5
) -> None:
    """
    Setup logging for the retrieval engine; unset arguments fall back to LOGGING_CONFIG

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_file_logging: Whether to log to rotating files
        enable_console_logging: Whether to log to stdout
        enable_structured_logging: Whether to use JSON logging
        log_rotation_size: Size in bytes for log rotation
        log_retention_count: Number of rotated log files to keep
    """
    log_level = log_level or LOGGING_CONFIG['log_level']
    if enable_file_logging is None:
        enable_file_logging = LOGGING_CONFIG['enable_file_logging']
    if enable_console_logging is None:
        enable_console_logging = LOGGING_CONFIG['enable_console_logging']
    if enable_structured_logging is None:
        enable_structured_logging = LOGGING_CONFIG['enable_structured_logging']

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    if enable_structured_logging:
        formatter = RAGFormatter()
        setup_structured_logging()
    else:
        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s in %(name)s: %(message)s'
        )

    if enable_console_logging:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if enable_file_logging:
        logs_dir = Path(LOGGING_CONFIG['logs_dir'])
        logs_dir.mkdir(exist_ok=True)

        main_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "rag_retrieval.log",
            maxBytes=log_rotation_size,
            backupCount=log_retention_count
        )
        main_handler.setLevel(numeric_level)
        main_handler.setFormatter(formatter)
        root_logger.addHandler(main_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "rag_errors.log",
            maxBytes=log_rotation_size,
            backupCount=log_retention_count
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        root_logger.addHandler(error_handler)

    configure_rag_loggers(numeric_level)

    logging.getLogger(__name__).info(
        f"Retrieval logging configured: level={log_level}, "
        f"file_logging={enable_file_logging}, "
        f"console_logging={enable_console_logging}, "
        f"structured_logging={enable_structured_logging}"
    )


def configure_rag_loggers(log_level: int) -> None:
    """Configure component loggers and quiet noisy libraries"""
    rag_loggers = [
        'rag.engine',
        'rag.document_retriever',
        'rag.relevance_scorer',
        'rag.context_builder',
        'database.document_store',
        'api.rag_endpoints',
    ]

    for logger_name in rag_loggers:
        logging.getLogger(logger_name).setLevel(log_level)

    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)


def get_rag_logger(
    name: str,
    organization_id: Optional[str] = None,
    stage: Optional[str] = None
) -> RAGLoggerAdapter:
    """
    Get a logger carrying tenant context

    Args:
        name: Logger name
        organization_id: Tenant identifier for context
        stage: Pipeline stage for context

    Returns:
        Logger adapter with retrieval context
    """
    context = {}
    if organization_id:
        context['organization_id'] = str(organization_id)
    if stage:
        context['stage'] = stage

    return RAGLoggerAdapter(logging.getLogger(name), context)


class RAGLogContext:
    """Context manager for retrieval logging with automatic timing"""

    def __init__(
        self,
        logger,
        operation: str,
        organization_id: Optional[str] = None,
        log_level: int = logging.INFO
    ):
        self.logger = logger
        self.operation = operation
        self.organization_id = organization_id
        self.log_level = log_level
        self.start_time = None
        self.duration = 0.0

    def _extra(self) -> dict:
        extra = {'operation': self.operation}
        if self.organization_id:
            extra['organization_id'] = str(self.organization_id)
        return extra

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.log(self.log_level, f"Starting {self.operation}", extra=self._extra())
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = (datetime.now() - self.start_time).total_seconds()
        extra = self._extra()
        extra['duration'] = self.duration

        if exc_type is None:
            self.logger.log(
                self.log_level,
                f"Completed {self.operation} in {self.duration:.3f}s",
                extra=extra
            )
        else:
            extra['error_type'] = exc_type.__name__
            self.logger.error(
                f"Failed {self.operation} after {self.duration:.3f}s: {exc_val}",
                extra=extra,
                exc_info=(exc_type, exc_val, exc_tb)
            )
        return False


def setup_structured_logging() -> None:
    """Route structlog loggers through stdlib logging with JSON rendering"""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
