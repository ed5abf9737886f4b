from __future__ import annotations

import builtins
import socket
from enum import Enum
from typing import Optional


class LogFluxError(Exception):
  """Base class for every error raised by the LogFlux client."""


class ConfigurationError(LogFluxError, ValueError):
  """Invalid construction parameters. Raised immediately, never retried."""


class InvalidInput(LogFluxError, ValueError):
  pass


class UnsupportedInputType(LogFluxError, TypeError):
  pass


class InvalidBatch(LogFluxError, ValueError):
  pass


class ConnectionError(LogFluxError):
  """
  Delivery to the agent failed after the retry budget was spent.

  `target` is the socket path or host:port, `attempts` the number of
  connect+write attempts made. The low-level fault is kept as `__cause__`.
  """

  def __init__(
    self,
    message: str,
    target: Optional[str] = None,
    attempts: int = 0,
  ) -> None:
    super().__init__(message)
    self.target = target
    self.attempts = attempts


class ErrorClass(Enum):
  REFUSED = "Connection refused"
  SOCKET = "Socket error"
  TIMEOUT = "Connection timeout"
  IO = "IO error"
  SYSTEM = "System error"

  @property
  def prefix(self) -> str:
    return self.value


_STREAM_FAULTS = (
  BrokenPipeError,
  ConnectionResetError,
  ConnectionAbortedError,
  EOFError,
)


def classify_error(exc: BaseException) -> ErrorClass:
  """
  Map a low-level transport fault onto the user-facing taxonomy.

  Order matters: socket.timeout and the refused/reset errors are all OSError
  subclasses, so the specific checks run before the generic fallback.
  """
  if isinstance(exc, ConnectionRefusedError):
    return ErrorClass.REFUSED
  if isinstance(exc, (socket.gaierror, socket.herror)):
    return ErrorClass.SOCKET
  if isinstance(exc, (TimeoutError, socket.timeout)):
    return ErrorClass.TIMEOUT
  if isinstance(exc, _STREAM_FAULTS):
    return ErrorClass.IO
  if isinstance(exc, builtins.ConnectionError):
    # Remaining connection-class faults behave like a dropped stream.
    return ErrorClass.IO
  return ErrorClass.SYSTEM


def connection_error(
  exc: BaseException,
  target: str,
  attempts: int,
) -> ConnectionError:
  error_class = classify_error(exc)
  detail = str(exc) or type(exc).__name__
  message = f"{error_class.prefix} ({target}): {detail}"
  err = ConnectionError(message, target=target, attempts=attempts)
  err.__cause__ = exc
  return err
