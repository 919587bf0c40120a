"""
Root logger setup shared by the spider CLI and the API server.

Modules log through ``logging.getLogger(__name__)``; only entry points call
``setup_logging``. Lines look like::

    2026-01-01 12:00:00,000 - api.resolver - DEBUG - Resolved https://... into 3 entries
"""

import logging
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULT_LOG_LEVEL = 'INFO'

# Request libraries log every connection at DEBUG; a resolving crawl opens
# hundreds of them.
NOISY_LOGGERS = ('urllib3', 'charset_normalizer', 'httpx', 'httpcore')


def resolve_log_level(log_level=None):
    """Numeric level for *log_level*, falling back to ``config.LOG_LEVEL``
    and then ``DEFAULT_LOG_LEVEL``. Unknown names map to INFO."""
    if log_level is None:
        try:
            from config import LOG_LEVEL as log_level
        except ImportError:
            log_level = DEFAULT_LOG_LEVEL
    level = getattr(logging, str(log_level).upper(), None)
    return level if isinstance(level, int) else logging.INFO


def _handler(handler, level, formatter):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_file=None, log_level=None):
    """
    Replace the root logger's handlers with a console handler and, when
    *log_file* is given, a file handler truncated on every run.

    Args:
        log_file: Log file path; missing directories are created
        log_level: Level name; see ``resolve_log_level``

    Returns:
        The root logger
    """
    level = resolve_log_level(log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(_handler(logging.StreamHandler(), level, formatter))

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        root_logger.addHandler(_handler(
            logging.FileHandler(log_file, mode='w', encoding='utf-8'), level, formatter))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
