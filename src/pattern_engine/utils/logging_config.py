"""
Logging setup for applications embedding the pattern engine.

The engine's modules only create loggers; the host process calls
configure_logging() once at startup.
"""

import logging
import logging.config
import os
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: Optional[str] = None):
    """
    Configure logging from the environment.

    LOGGING_CONFIG names a fileConfig-format file and wins when set.
    Otherwise basicConfig is applied at `level`, falling back to LOG_LEVEL
    and then INFO.

    Args:
        level: Explicit level name overriding LOG_LEVEL
    """
    log_conf = os.environ.get('LOGGING_CONFIG')
    if log_conf:
        logging.config.fileConfig(log_conf, disable_existing_loggers=False)
        return

    logging.basicConfig(
        level=(level or os.environ.get('LOG_LEVEL', 'INFO')).upper(),
        format=DEFAULT_FORMAT
    )
