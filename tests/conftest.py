import json
import os
import shutil
import socket
import tempfile
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

from logflux.models import Envelope  # type: ignore[import]
from logflux.transport import Transport  # type: ignore[import]


class FakeTransport(Transport):
  """
  In-memory transport: records every write, optionally failing the first
  `failures` write attempts (or all of them with `fail_forever`).
  """

  def __init__(
    self,
    target: str = "fake:0",
    failures: int = 0,
    fail_forever: bool = False,
    error: Optional[Callable[[], BaseException]] = None,
  ) -> None:
    self._target = target
    self.failures = failures
    self.fail_forever = fail_forever
    self.error = error or (lambda: ConnectionRefusedError(111, "Connection refused"))
    self.connected = False
    self.connect_calls = 0
    self.close_calls = 0
    self.attempts = 0
    self.writes: List[List[Envelope]] = []

  @property
  def target(self) -> str:
    return self._target

  def connect(self) -> None:
    self.connect_calls += 1
    self.connected = True

  def write(self, envelopes: Sequence[Envelope]) -> None:
    self.attempts += 1
    if self.fail_forever or self.failures > 0:
      self.failures -= 1
      self.connected = False
      raise self.error()
    self.writes.append(list(envelopes))

  def is_connected(self) -> bool:
    return self.connected

  def close(self) -> None:
    self.close_calls += 1
    self.connected = False


class Collector:
  """
  Minimal LogFlux agent stand-in: accepts connections on a listening socket
  and decodes every newline-delimited JSON object it receives.
  """

  def __init__(self, server: socket.socket) -> None:
    self._server = server
    self._stopped = threading.Event()
    self._lock = threading.Lock()
    self._conns: List[socket.socket] = []
    self.lines: List[Dict[str, Any]] = []
    self.connections = 0
    self._thread = threading.Thread(target=self._serve, name="collector", daemon=True)

  def start(self) -> "Collector":
    self._server.listen(8)
    self._server.settimeout(0.05)
    self._thread.start()
    return self

  def _serve(self) -> None:
    while not self._stopped.is_set():
      try:
        conn, _ = self._server.accept()
      except socket.timeout:
        continue
      except OSError:
        return
      with self._lock:
        self.connections += 1
        self._conns.append(conn)
      threading.Thread(target=self._read, args=(conn,), daemon=True).start()

  def _read(self, conn: socket.socket) -> None:
    conn.settimeout(0.05)
    buf = b""
    while not self._stopped.is_set():
      try:
        data = conn.recv(65536)
      except socket.timeout:
        continue
      except OSError:
        return
      if not data:
        return
      buf += data
      while b"\n" in buf:
        line, buf = buf.split(b"\n", 1)
        with self._lock:
          self.lines.append(json.loads(line.decode("utf-8")))

  def wait_for(self, count: int, timeout: float = 2.0) -> List[Dict[str, Any]]:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
      with self._lock:
        if len(self.lines) >= count:
          return list(self.lines)
      time.sleep(0.01)
    with self._lock:
      return list(self.lines)

  def drop_connections(self) -> None:
    with self._lock:
      conns, self._conns = self._conns, []
    for conn in conns:
      try:
        conn.shutdown(socket.SHUT_RDWR)
      except OSError:
        pass
      conn.close()

  def stop(self) -> None:
    self._stopped.set()
    self.drop_connections()
    self._server.close()
    self._thread.join(timeout=1.0)


@pytest.fixture
def fake_transport():
  return FakeTransport


@pytest.fixture
def socket_dir():
  # AF_UNIX paths are limited to ~100 bytes, so avoid pytest's long tmp_path.
  path = tempfile.mkdtemp(prefix="logflux-")
  yield path
  shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def unix_collector(socket_dir):
  path = os.path.join(socket_dir, "agent.sock")
  server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
  server.bind(path)
  collector = Collector(server).start()
  collector.path = path  # type: ignore[attr-defined]
  yield collector
  collector.stop()


@pytest.fixture
def tcp_collector():
  server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
  server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
  server.bind(("127.0.0.1", 0))
  collector = Collector(server).start()
  collector.host, collector.port = server.getsockname()  # type: ignore[attr-defined]
  yield collector
  collector.stop()


@pytest.fixture
def closed_tcp_port() -> int:
  """A localhost port with nothing listening on it."""
  probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
  probe.bind(("127.0.0.1", 0))
  port = probe.getsockname()[1]
  probe.close()
  return port
