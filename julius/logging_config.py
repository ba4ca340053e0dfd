"""
julius/logging_config.py
------------------------
Centralized logging configuration for the Julius document pipeline.

Package modules import `get_logger(__name__)`; entry points outside the
package pass an explicit "julius.<name>".
Logging format is structured and human-readable — no external libraries.

Log levels:
    DEBUG   — internal state (chunk counts, page counts, prompt sizes)
    INFO    — normal pipeline events (upload received, document ready)
    WARNING — recoverable issues (empty pages, capped page counts)
    ERROR   — failures that are converted to a user-facing message

To change the global log level at runtime:
    import logging
    logging.getLogger("julius").setLevel(logging.DEBUG)
"""

import logging
import sys


# ── Configuration ──────────────────────────────────────────────────────────────

_LOG_FORMAT  = "%(asctime)s [%(levelname)-8s] %(name)s — %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_ROOT_NAME   = "julius"   # parent logger; all pipeline loggers are children


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configures the root 'julius' logger with a stdout StreamHandler.

    Safe to call multiple times — handlers are not duplicated.

    Args:
        level: Logging level for the julius namespace (default: INFO).
    """
    root = logging.getLogger(_ROOT_NAME)

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Returns a named logger.

    Package modules pass __name__; modules outside the package pass an
    explicit "julius.<name>" so they share the pipeline handler.

    Args:
        name: Typically __name__ of the calling module.

    Returns:
        A configured logging.Logger instance.
    """
    configure_logging()
    return logging.getLogger(name)
