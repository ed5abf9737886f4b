import logging

import pytest

from logflux import Client, Level, LogFluxHandler, setup_logging  # type: ignore[import]
from logflux.logging_setup import syslog_level  # type: ignore[import]


@pytest.fixture
def client_and_transport(fake_transport):
  transport = fake_transport(target="/tmp/test-logflux.sock")
  client = Client(unix_socket="/tmp/test-logflux.sock", retry_delay=0, max_retries=0, transport=transport)
  return client, transport


def _sent(transport):
  return [envelope for write in transport.writes for envelope in write]


@pytest.mark.parametrize(
  "levelno,expected",
  [
    (logging.CRITICAL, Level.CRITICAL),
    (logging.ERROR, Level.ERROR),
    (logging.WARNING, Level.WARNING),
    (logging.INFO, Level.INFO),
    (logging.DEBUG, Level.DEBUG),
    (5, Level.DEBUG),
  ],
)
def test_syslog_level_mapping(levelno, expected):
  assert syslog_level(levelno) is expected


def test_setup_logging_preserves_existing_handlers_and_sends(client_and_transport):
  client, transport = client_and_transport
  baseline = []

  class ExistingHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
      baseline.append(record.getMessage())

  logger = logging.getLogger("existing_app_logger")
  logger.setLevel(logging.INFO)
  logger.handlers.clear()
  logger.addHandler(ExistingHandler())

  setup_logging(logger, client=client, source="orders-service")
  logger.warning("hello from existing app")

  assert "hello from existing app" in baseline
  [envelope] = _sent(transport)
  assert envelope.message == "hello from existing app"
  assert envelope.source == "orders-service"
  assert envelope.level == Level.WARNING
  assert envelope.labels["logger"] == "existing_app_logger"
  assert "line" in envelope.labels
  logger.handlers.clear()


def test_setup_logging_does_not_duplicate_handler(client_and_transport):
  client, transport = client_and_transport
  logger = logging.getLogger("idempotent_logger")
  logger.setLevel(logging.INFO)
  logger.handlers.clear()

  first = setup_logging(logger, client=client)
  second = setup_logging(logger, client=client)
  logger.info("once")

  assert first is second
  assert len(_sent(transport)) == 1
  logger.handlers.clear()


def test_exception_logging_adds_exception_label(client_and_transport):
  client, transport = client_and_transport
  logger = logging.getLogger("error-logger")
  logger.setLevel(logging.INFO)
  logger.handlers.clear()
  setup_logging(logger, client=client)

  try:
    1 / 0
  except ZeroDivisionError:
    logger.exception("boom")

  [envelope] = _sent(transport)
  assert envelope.level == Level.ERROR
  assert envelope.source == "error-logger"
  assert envelope.labels["exception_type"] == "ZeroDivisionError"
  assert "ZeroDivisionError" in envelope.message
  logger.handlers.clear()


def test_delivery_failure_does_not_break_logging(fake_transport, monkeypatch):
  transport = fake_transport(target="/tmp/test-logflux.sock", fail_forever=True)
  client = Client(unix_socket="/tmp/test-logflux.sock", retry_delay=0, max_retries=1, transport=transport)
  handler = LogFluxHandler(client)
  errors = []
  monkeypatch.setattr(handler, "handleError", lambda record: errors.append(record))

  logger = logging.getLogger("failing-logger")
  logger.setLevel(logging.INFO)
  logger.handlers.clear()
  logger.addHandler(handler)

  logger.info("lost")

  assert transport.attempts == 2
  assert len(errors) == 1
  logger.handlers.clear()


def test_handler_close_closes_client(client_and_transport):
  client, transport = client_and_transport
  handler = LogFluxHandler(client)

  handler.close()

  assert transport.close_calls == 1


def test_library_records_are_not_forwarded(client_and_transport):
  client, transport = client_and_transport
  handler = LogFluxHandler(client)
  logger = logging.getLogger("logflux.transport")
  logger.addHandler(handler)
  try:
    logger.warning("retrying")
  finally:
    logger.removeHandler(handler)

  assert transport.attempts == 0
