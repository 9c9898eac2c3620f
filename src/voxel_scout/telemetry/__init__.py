"""Status reporting and logging configuration."""

from .logging import configure_logging
from .status import StatusChannel, StatusSink

__all__ = ["StatusChannel", "StatusSink", "configure_logging"]
