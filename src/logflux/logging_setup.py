from __future__ import annotations

import logging
from logging import Handler, LogRecord
from typing import Optional

from .client import Client
from .models import Level, LogEntry


def syslog_level(levelno: int) -> Level:
  """Map a standard-library level number onto the syslog scale."""
  if levelno >= logging.CRITICAL:
    return Level.CRITICAL
  if levelno >= logging.ERROR:
    return Level.ERROR
  if levelno >= logging.WARNING:
    return Level.WARNING
  if levelno >= logging.INFO:
    return Level.INFO
  return Level.DEBUG


class LogFluxHandler(Handler):
  """
  Logging handler that converts records to LogEntry objects and sends them
  synchronously through an explicitly supplied client.

  `logging.Handler.handle` holds the handler lock around `emit`, so one
  handler never drives its client from two threads at once.
  """

  def __init__(
    self,
    client: Client,
    source: Optional[str] = None,
    level: int = logging.NOTSET,
  ) -> None:
    super().__init__(level=level)
    self._client = client
    self._source = source

  @property
  def client(self) -> Client:
    return self._client

  def build_entry(self, record: LogRecord) -> LogEntry:
    entry = (
      LogEntry.new(self.format(record))
      .with_source(self._source or record.name)
      .with_level(syslog_level(record.levelno))
      .with_timestamp(getattr(record, "created", None) or 0)
      .with_labels({
        "logger": record.name,
        "module": record.module,
        "line": record.lineno,
      })
    )

    if record.exc_info:
      _type = record.exc_info[0]
      if _type is not None:
        entry = entry.with_label("exception_type", _type.__name__)
    return entry

  def emit(self, record: LogRecord) -> None:
    # Retry warnings from this library would otherwise feed back into the client.
    if record.name == "logflux" or record.name.startswith("logflux."):
      return
    try:
      self._client.send_log(self.build_entry(record))
    except Exception:
      # Never break application logging.
      self.handleError(record)

  def close(self) -> None:
    try:
      self._client.close()
    finally:
      super().close()


def setup_logging(
  logger: Optional[logging.Logger] = None,
  *,
  client: Client,
  source: Optional[str] = None,
) -> LogFluxHandler:
  """
  Attach a LogFluxHandler for `client` to `logger` (the root logger by default).

  Existing handlers are kept. Calling this twice for the same logger returns
  the handler that is already attached.
  """
  target_logger = logger or logging.getLogger()

  for existing in target_logger.handlers:
    if isinstance(existing, LogFluxHandler):
      return existing

  handler = LogFluxHandler(client=client, source=source)
  target_logger.addHandler(handler)
  return handler
