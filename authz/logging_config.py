from __future__ import annotations

import logging


def configure_authz_logging(level: str = "INFO") -> None:
    """
    Minimal logging configuration for the authorization core.

    Notes:
    - Plain stdlib logging; the host application owns handlers and formatting.
    - This only sets the level for the ``authz`` logger tree.
    - Set `AUTHZ_LOG_LEVEL=DEBUG` to see every permission decision.
    """

    authz_logger = logging.getLogger("authz")
    authz_logger.setLevel(level.upper())
    authz_logger.propagate = True
