from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..models import Envelope


class Transport(ABC):
  """
  Byte-stream connection to a LogFlux agent.

  Implementations own at most one socket. `connect` is idempotent, `close`
  is safe to call any number of times, and a failed `write` leaves the
  transport disconnected so the next call reconnects.
  """

  @property
  @abstractmethod
  def target(self) -> str:
    """Human-readable destination, used in error messages."""

  @abstractmethod
  def connect(self) -> None:
    ...

  @abstractmethod
  def write(self, envelopes: Sequence[Envelope]) -> None:
    ...

  @abstractmethod
  def is_connected(self) -> bool:
    ...

  @abstractmethod
  def close(self) -> None:
    ...

  def __enter__(self) -> "Transport":
    self.connect()
    return self

  def __exit__(self, exc_type, exc, tb) -> None:
    self.close()
