"""
Input normalization.

`send_log` accepts three shapes of input. They are tagged once at the API
boundary (`LogInput.of`) and every later step switches on the tag.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Union

from .errors import InvalidInput, UnsupportedInputType
from .models import Envelope, LogEntry


class InputKind(Enum):
  ENTRY = "entry"
  TEXT = "text"
  MAPPING = "mapping"


@dataclass(frozen=True)
class LogInput:
  kind: InputKind
  value: Union[LogEntry, str, Mapping[str, Any]]

  @classmethod
  def entry(cls, entry: LogEntry) -> "LogInput":
    return cls(InputKind.ENTRY, entry)

  @classmethod
  def text(cls, message: str) -> "LogInput":
    return cls(InputKind.TEXT, message)

  @classmethod
  def mapping(cls, data: Mapping[str, Any]) -> "LogInput":
    return cls(InputKind.MAPPING, data)

  @classmethod
  def of(cls, value: Any) -> "LogInput":
    """
    Tag a caller-supplied value.

    Raises:
      InvalidInput: value is None.
      UnsupportedInputType: value is not an entry, a string or a mapping.
    """
    if value is None:
      raise InvalidInput("Cannot send nil: log input is None")
    if isinstance(value, LogInput):
      return value
    if isinstance(value, LogEntry):
      return cls.entry(value)
    if isinstance(value, str):
      return cls.text(value)
    if isinstance(value, Mapping):
      return cls.mapping(value)
    raise UnsupportedInputType(f"Unsupported log type: {type(value).__name__}")


def normalize(log_input: LogInput) -> Envelope:
  kind = log_input.kind
  if kind is InputKind.ENTRY:
    envelope = Envelope.from_entry(log_input.value)  # type: ignore[arg-type]
  elif kind is InputKind.TEXT:
    envelope = Envelope.from_entry(LogEntry.new(log_input.value))
  elif kind is InputKind.MAPPING:
    try:
      message = json.dumps(log_input.value, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
      raise UnsupportedInputType(f"Unsupported log type: mapping is not JSON serializable ({exc})") from exc
    envelope = Envelope.from_entry(LogEntry.new(message))
  else:
    raise UnsupportedInputType(f"Unsupported log type: {kind!r}")

  # Lone surrogates survive until the UTF-8 encode at write time.
  try:
    envelope.to_line()
  except UnicodeEncodeError as exc:
    raise InvalidInput(f"Cannot send log entry: not encodable as UTF-8 ({exc.reason})") from exc
  return envelope
