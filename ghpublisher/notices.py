"""User-facing notices.

Components report to the user through a ``notify(message)`` callback. When no
callback is supplied, notices are written to the ``ghpublisher.notices`` logger.
"""

from __future__ import annotations

import logging
from typing import Callable

Notify = Callable[[str], None]

_notice_logger = logging.getLogger("ghpublisher.notices")


def log_notice(message: str) -> None:
    """Default notifier."""
    _notice_logger.info(message)
