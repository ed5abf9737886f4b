from __future__ import annotations

import logging
import select
import socket
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..models import Envelope
from .base import Transport

_logger = logging.getLogger("logflux.transport")


def encode_lines(envelopes: Sequence[Envelope], auth: Optional[str] = None) -> bytes:
  """Newline-delimited JSON payload for one write, `auth` added to every line."""
  return b"".join(envelope.to_line(auth) for envelope in envelopes)


@dataclass
class _SocketTransport(Transport):
  """
  Shared connect/write/close logic for stream sockets.

  Subclasses only know how to open the socket.
  """

  timeout: float = 5.0
  buffer_size: int = 4096
  shared_secret: Optional[str] = None
  _sock: Optional[socket.socket] = field(default=None, init=False, repr=False)

  def _open(self) -> socket.socket:
    raise NotImplementedError

  def connect(self) -> socket.socket:
    if self._sock is not None:
      return self._sock

    sock = self._open()
    try:
      sock.settimeout(self.timeout)
      sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, self.buffer_size)
    except OSError:
      sock.close()
      raise
    self._sock = sock
    _logger.debug("logflux transport connected to %s", self.target)
    return sock

  def write(self, envelopes: Sequence[Envelope]) -> None:
    if not envelopes:
      return

    payload = encode_lines(envelopes, self.shared_secret)
    sock = self._sock
    if sock is None:
      sock = self.connect()

    try:
      sock.sendall(payload)
    except OSError:
      # The stream position is unknown after a partial send; drop the socket.
      self.close()
      raise

  def is_connected(self) -> bool:
    sock = self._sock
    if sock is None or sock.fileno() == -1:
      return False

    try:
      readable, _, _ = select.select([sock], [], [], 0)
      if not readable:
        return True
      # Readable with no data means the peer closed its end.
      data = sock.recv(1, socket.MSG_PEEK)
    except (OSError, ValueError):
      return False
    return data != b""

  def close(self) -> None:
    sock, self._sock = self._sock, None
    if sock is None:
      return
    try:
      sock.close()
    except OSError as exc:
      _logger.debug("logflux transport close of %s failed: %s", self.target, exc)


@dataclass
class UnixSocketTransport(_SocketTransport):
  """Transport over a Unix domain stream socket."""

  path: str = ""

  @property
  def target(self) -> str:
    return self.path

  def _open(self) -> socket.socket:
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
      sock.settimeout(self.timeout)
      sock.connect(self.path)
    except (OSError, ValueError):
      sock.close()
      raise
    return sock


@dataclass
class TcpTransport(_SocketTransport):
  """Transport over a TCP stream."""

  host: str = "localhost"
  port: int = 0

  @property
  def target(self) -> str:
    return f"{self.host}:{self.port}"

  def _open(self) -> socket.socket:
    return socket.create_connection((self.host, self.port), timeout=self.timeout)
