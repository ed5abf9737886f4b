"""
logflux

Client library that delivers structured log, metric and event records to a
LogFlux agent over a Unix domain socket or TCP, one JSON object per line.
"""

from typing import Any

from .client import Client
from .config import ClientConfig, TransportKind, load_config_file
from .errors import (
  ConfigurationError,
  ConnectionError,
  InvalidBatch,
  InvalidInput,
  LogFluxError,
  UnsupportedInputType,
)
from .logging_setup import LogFluxHandler, setup_logging
from .models import EntryType, Envelope, Level, LogEntry, PayloadType
from .normalize import InputKind, LogInput

__version__ = "0.2.0"


def create_client(**kwargs: Any) -> Client:
  """Construct a new, independent client. Nothing is cached at module level."""
  return Client(**kwargs)


def create_entry(message: Any = "") -> LogEntry:
  return LogEntry.new(message)


__all__ = [
  "Client",
  "ClientConfig",
  "TransportKind",
  "load_config_file",
  "LogFluxError",
  "ConfigurationError",
  "ConnectionError",
  "InvalidInput",
  "InvalidBatch",
  "UnsupportedInputType",
  "LogFluxHandler",
  "setup_logging",
  "EntryType",
  "Envelope",
  "Level",
  "LogEntry",
  "PayloadType",
  "InputKind",
  "LogInput",
  "create_client",
  "create_entry",
  "__version__",
]
