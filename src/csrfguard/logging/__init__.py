"""csrfguard Logging — hexagonal logging port and adapters."""

from csrfguard.logging.port import LoggingPort
from csrfguard.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
