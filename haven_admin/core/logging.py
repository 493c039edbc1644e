"""
Logging setup for the admin service

Module loggers come from get_logger(); anything that may echo credentials or
session tokens goes through SecureLogger so they never reach the log stream.
"""

import logging
import re
import sys
from typing import Optional

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module"""
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    return logger


class SecureLogger:
    """
    Logging wrapper that masks credentials, e-mail addresses and tokens
    """

    SENSITIVE_PATTERNS = [
        r'password',
        r'secret',
        r'token',
        r'credential',
        r'jwt',
        r'session',
        r'cookie',
        r'authorization',
        r'bearer',
        r'access[_-]?key',
    ]

    @staticmethod
    def sanitize_message(message: str) -> str:
        """
        Sanitize log message to remove sensitive information

        Args:
            message: Original log message

        Returns:
            Sanitized log message
        """
        message = re.sub(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b', '[email]', message)

        # JWTs and other long opaque strings
        message = re.sub(r'\b[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\b', '[token]', message)
        message = re.sub(r'\b[A-Za-z0-9]{32,}\b', '[token]', message)

        if '\n' in message:
            message = message.split('\n')[0] + ' [stack trace truncated]'

        return message

    @staticmethod
    def should_sanitize(message: str) -> bool:
        """Check if message contains sensitive patterns"""
        message_lower = message.lower()
        return any(re.search(pattern, message_lower) for pattern in SecureLogger.SENSITIVE_PATTERNS)

    @classmethod
    def log(cls, logger: logging.Logger, level: int, message: str, *args, **kwargs):
        if cls.should_sanitize(message):
            message = cls.sanitize_message(message)
            logger.log(level, f"[SANITIZED] {message}", *args, **kwargs)
        else:
            logger.log(level, message, *args, **kwargs)


def log_warning(message: str, logger_name: Optional[str] = None, **kwargs):
    """Log warning message securely"""
    logger = get_logger(logger_name or __name__)
    SecureLogger.log(logger, logging.WARNING, message, **kwargs)


def log_error(message: str, logger_name: Optional[str] = None, exc_info: bool = False, **kwargs):
    """Log error message securely"""
    logger = get_logger(logger_name or __name__)
    if exc_info:
        kwargs['exc_info'] = True
    SecureLogger.log(logger, logging.ERROR, message, **kwargs)
