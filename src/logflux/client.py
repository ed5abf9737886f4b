from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Union

from .batching import chunk, validate_batch
from .config import ClientConfig, TransportKind
from .errors import connection_error
from .models import Envelope
from .normalize import LogInput, normalize
from .retry import RetryPolicy
from .transport import TcpTransport, Transport, UnixSocketTransport

_logger = logging.getLogger("logflux.client")


class Client:
  """
  Client for a LogFlux agent listening on a Unix socket or TCP port.

  The connection is opened lazily on the first send and reused afterwards.
  Use the client as a context manager, or call `close()`, to release the
  socket:

    with Client(unix_socket="/var/run/logflux.sock") as client:
      client.send_log("service started")

  A client is not thread-safe; callers sharing one instance across threads
  must serialize access themselves.
  """

  def __init__(
    self,
    unix_socket: Optional[str] = None,
    host: Optional[str] = None,
    port: Union[int, str, None] = None,
    *,
    timeout: Optional[float] = None,
    max_retries: Optional[int] = None,
    retry_delay: Optional[float] = None,
    batch_size: Optional[int] = None,
    buffer_size: Optional[int] = None,
    shared_secret: Optional[str] = None,
    transport: Optional[Transport] = None,
    config: Optional[ClientConfig] = None,
  ) -> None:
    if config is None:
      options = {
        "timeout": timeout,
        "max_retries": max_retries,
        "retry_delay": retry_delay,
        "batch_size": batch_size,
        "buffer_size": buffer_size,
        "shared_secret": shared_secret,
      }
      config = ClientConfig.build(
        unix_socket=unix_socket,
        host=host,
        port=port,
        **{k: v for k, v in options.items() if v is not None},
      )

    self._config = config
    self._transport = transport or _build_transport(config)
    self._retry = RetryPolicy(
      max_retries=config.max_retries,
      retry_delay=config.retry_delay,
    )

  @classmethod
  def unix_client(cls, socket_path: str, **options: Any) -> "Client":
    return cls(unix_socket=socket_path, **options)

  @classmethod
  def tcp_client(cls, host: str, port: Union[int, str], **options: Any) -> "Client":
    return cls(host=host, port=port, **options)

  @classmethod
  def from_env(cls, **params: Any) -> "Client":
    """Build a client from explicit parameters, LOGFLUX_* variables and LOGFLUX_CONFIG."""
    return cls(config=ClientConfig.from_params_or_env(**params))

  @property
  def config(self) -> ClientConfig:
    return self._config

  @property
  def transport(self) -> Transport:
    return self._transport

  def connect(self) -> None:
    """
    Open the connection now instead of on the first send.

    Raises:
      ConnectionError: the agent could not be reached within the retry budget.
    """
    self._deliver(self._transport.connect)
    _logger.debug("logflux client connected to %s", self._config.target)

  def send_log(self, value: Any) -> bool:
    """
    Send one record: a LogEntry, a plain string or a JSON-serializable mapping.

    Raises:
      InvalidInput: value is None, or its text is not encodable as UTF-8.
      UnsupportedInputType: value has any other shape.
      ConnectionError: delivery failed after all retries.
    """
    envelope = normalize(LogInput.of(value))
    self._send_chunk([envelope])
    return True

  def send_batch(self, values: Sequence[Any]) -> bool:
    """
    Send several records, split into chunks of at most `batch_size`.

    Every item is validated before anything is written. Each chunk is one
    write; if a chunk fails the call raises and earlier chunks stay sent.
    """
    items = validate_batch(values)
    envelopes = [normalize(LogInput.of(item)) for item in items]
    for group in chunk(envelopes, self._config.batch_size):
      self._send_chunk(group)
    return True

  def is_connected(self) -> bool:
    return self._transport.is_connected()

  def close(self) -> None:
    self._transport.close()
    _logger.debug("logflux client closed connection to %s", self._config.target)

  def __enter__(self) -> "Client":
    return self

  def __exit__(self, exc_type, exc, tb) -> None:
    self.close()

  def __repr__(self) -> str:
    return f"Client(target={self._config.target!r}, transport={self._config.transport.value})"

  def _send_chunk(self, envelopes: List[Envelope]) -> None:
    def attempt() -> None:
      self._transport.connect()
      self._transport.write(envelopes)

    self._deliver(attempt)

  def _deliver(self, operation) -> None:
    def reset(exc: OSError, attempt: int) -> None:
      self._transport.close()

    try:
      self._retry.run(operation, on_failure=reset, target=self._config.target)
    except OSError as exc:
      raise connection_error(
        exc,
        target=self._config.target,
        attempts=self._retry.max_attempts,
      ) from exc


def _build_transport(config: ClientConfig) -> Transport:
  secret = config.shared_secret if config.auth_required else None
  if config.transport is TransportKind.UNIX:
    return UnixSocketTransport(
      path=str(config.unix_socket),
      timeout=config.timeout,
      buffer_size=config.buffer_size,
    )
  return TcpTransport(
    host=str(config.host),
    port=int(config.port or 0),
    timeout=config.timeout,
    buffer_size=config.buffer_size,
    shared_secret=secret,
  )
