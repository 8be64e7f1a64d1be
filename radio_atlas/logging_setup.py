"""
Logging configuration for Radio Atlas

Configured from the 'logging' section of radio_atlas_settings.json:
- Console handler on stdout
- Rotating file handler with ANSI codes stripped (mpv output carries them)
- Separate levels for console and file
"""

import logging
import re
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')


class ColorStripFormatter(logging.Formatter):
    """Formatter that removes ANSI escape sequences from messages"""

    def format(self, record):
        record.msg = ANSI_ESCAPE.sub('', str(record.msg))
        return super().format(record)


def setup_logging(settings=None, quiet=False):
    """Configure the root logger

    Args:
        settings: Settings dict; defaults apply when None
        quiet: Only show warnings and above on the console (CLI one-shots)
    """
    config = settings.get('logging', {}) if settings else {}

    log_file = config.get('file', 'radio_atlas.log')
    max_bytes = config.get('max_bytes', 10485760)
    backup_count = config.get('backup_count', 5)
    console_level_name = 'WARNING' if quiet else config.get('console_level', 'INFO')
    file_level_name = config.get('file_level', 'ERROR')

    console_level = getattr(logging, console_level_name.upper(), logging.INFO)
    file_level = getattr(logging, file_level_name.upper(), logging.ERROR)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    try:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(ColorStripFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)
    except Exception as e:
        print(f"Warning: Could not setup file logging: {e}")

    logging.getLogger('werkzeug').setLevel(logging.ERROR)
    logging.getLogger('apscheduler').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured: console={console_level_name}, file={file_level_name}, file={log_file}")
    logger.debug(f"Max file size: {max_bytes} bytes, Backup count: {backup_count}")
