"""
Logging setup shared by the API process and command-line scripts.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach a single stream handler to the root logger (safe to call twice)."""
    global _configured
    root = logging.getLogger()
    root.setLevel(level)
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True
