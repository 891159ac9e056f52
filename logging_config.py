"""
Logging configuration for the reservation service.
Console-only: the service is expected to run under a process manager that collects stdout.
"""

import logging

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: str = 'INFO') -> None:
    """Configure the root logger with a single console handler."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers so repeated startups don't duplicate output
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    # SQL echo is controlled by SQL_ECHO, keep the engine logger quiet otherwise
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured at level %s", level)
