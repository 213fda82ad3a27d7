#!/usr/bin/env python3
"""
Centralized logging for the whistle counter.

Usage:
    from logger import get_logger
    log = get_logger(__name__)
    log.info("Listening")
    log.error("Could not open microphone", exc_info=True)
"""
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO


class ColoredFormatter(logging.Formatter):
    """Color-coded log formatter for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, fmt=None, datefmt=None, stream: Optional[TextIO] = None):
        super().__init__(fmt, datefmt)
        self.stream = stream if stream is not None else sys.stderr

    def format(self, record):
        message = super().format(record)
        if not self.stream.isatty():
            return message
        color = self.COLORS.get(record.levelname, '')
        reset = self.COLORS['RESET']
        return message.replace(
            f"[{record.levelname}]", f"[{color}{record.levelname}{reset}]", 1
        )


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    log_file: Optional[Path] = None,
    level: str = "INFO",
    debug: bool = False
) -> logging.Logger:
    """
    Set up logging configuration.

    Console output goes to stderr so the live visualization on stdout
    stays intact.

    Args:
        log_file: Path to log file (if None, only console logging)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        debug: If True, enable DEBUG level

    Returns:
        Root logger
    """
    if debug:
        level = "DEBUG"

    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT, stream=sys.stderr))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)
    """
    return logging.getLogger(name)


def log_startup_info(logger: logging.Logger, config: dict, target: Optional[int] = None):
    """Log the effective audio and detection settings."""
    audio = config["audio"]
    detection = config["detection"]
    bin_width = audio["sample_rate"] / audio["fft_size"]

    logger.info("=" * 60)
    logger.info("WHISTLE COUNTER")
    logger.info("=" * 60)
    logger.info(f"Audio Device: {audio['device']}")
    logger.info(f"Sample Rate: {audio['sample_rate']} Hz, FFT: {audio['fft_size']} "
                f"({bin_width:.2f} Hz/bin)")
    logger.info(f"Whistle Band: {detection['min_hz']:.0f}-{detection['max_hz']:.0f} Hz")
    logger.info(f"Threshold: {detection['threshold']}/255, Debounce: {detection['debounce_ms']} ms")
    if target is not None:
        logger.info(f"Target Whistles: {target}")
    logger.info("=" * 60)
