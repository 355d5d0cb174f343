"""
Logging configuration for the Kommyut routing core
"""

import logging
import os
import sys
from typing import Optional


class KommyutLogger:
    """Centralized logging for the Kommyut routing core"""

    def __init__(self, name: str = "kommyut", level: int = logging.INFO, log_file: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.log_file = log_file

        # Prevent duplicate handlers
        if not self.logger.handlers:
            self._setup_handlers()

    def _setup_handlers(self):
        """Setup console and (optional) file handlers"""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_format = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        console_handler.setFormatter(console_format)
        self.logger.addHandler(console_handler)

        if self.log_file:
            self._add_file_handler()

    def _add_file_handler(self):
        log_dir = os.path.dirname(self.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(self.log_file)
        file_handler.setLevel(logging.DEBUG)
        file_format = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_format)
        self.logger.addHandler(file_handler)

    def configure(self, level: Optional[str] = None, log_file: Optional[str] = None):
        """Apply level and file settings, e.g. from an injected Config"""
        if level:
            self.logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
        if log_file and log_file != self.log_file:
            self.log_file = log_file
            self._add_file_handler()

    def info(self, message: str):
        """Log info message"""
        self.logger.info(message)

    def debug(self, message: str):
        """Log debug message"""
        self.logger.debug(message)

    def warning(self, message: str):
        """Log warning message"""
        self.logger.warning(message)

    def error(self, message: str):
        """Log error message"""
        self.logger.error(message)

    def critical(self, message: str):
        """Log critical message"""
        self.logger.critical(message)

    def log_search_request(self, origin: str, destination: str, candidates: int, duration_ms: float):
        """Log itinerary search metrics"""
        self.info(f"Search request: {origin!r} -> {destination!r}, candidates={candidates}, "
                  f"duration={duration_ms:.2f}ms")

    def log_fare_lookup(self, strategy: str, key: str, success: bool):
        """Log fare table lookup outcome"""
        self.debug(f"Fare lookup: strategy={strategy}, key={key}, success={success}")

    def log_api_call(self, api_name: str, duration_ms: float, success: bool):
        """Log API call metrics"""
        self.info(f"API call: {api_name}, duration={duration_ms:.2f}ms, success={success}")


# Global logger instance
logger = KommyutLogger(
    level=getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO),
    log_file=os.getenv('LOG_FILE'),
)
