from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SOURCE = "python-sdk"


class EntryType(IntEnum):
  LOG = 1
  METRIC = 2
  TRACE = 3
  EVENT = 4
  AUDIT = 5


class Level(IntEnum):
  """Syslog severities."""

  EMERGENCY = 0
  ALERT = 1
  CRITICAL = 2
  ERROR = 3
  WARNING = 4
  NOTICE = 5
  INFO = 6
  DEBUG = 7


class PayloadType:
  SYSTEMD_JOURNAL = "systemd_journal"
  SYSLOG = "syslog"
  METRICS = "metrics"
  APPLICATION = "application"
  CONTAINER = "container"
  GENERIC = "generic"
  GENERIC_JSON = "generic_json"


def _now() -> str:
  return datetime.now(timezone.utc).isoformat()


def _text(value: Any) -> str:
  if value is None:
    return ""
  return value if isinstance(value, str) else str(value)


def _coerce_enum(value: Any, enum_cls, default):
  # bool is an int subclass but never a meaningful level or type.
  if isinstance(value, bool) or not isinstance(value, int):
    return default
  try:
    return enum_cls(value)
  except ValueError:
    return default


def is_valid_json(text: Optional[str]) -> bool:
  if text is None or not text.strip():
    return False
  try:
    json.loads(text)
  except ValueError:
    return False
  return True


class LogEntry(BaseModel):
  """
  A single record for the LogFlux agent.

  Entries are immutable: every `with_*` call returns a new entry, so a
  partially configured entry can be shared and specialised safely.

    entry = (
      LogEntry.new("User login")
      .with_source("auth-service")
      .with_level(Level.WARNING)
      .with_label("user_id", 42)
    )
  """

  model_config = ConfigDict(frozen=True)

  id: str = Field(default_factory=lambda: str(uuid.uuid4()))
  message: str = ""
  source: str = DEFAULT_SOURCE
  entry_type: int = EntryType.LOG
  level: int = Level.INFO
  timestamp: Union[str, float, int] = Field(default_factory=_now)
  labels: Dict[str, str] = Field(default_factory=dict)

  @classmethod
  def new(cls, message: Any = "") -> "LogEntry":
    return cls(message=_text(message))

  # Builder

  def with_source(self, source: Any) -> "LogEntry":
    return self.model_copy(update={"source": _text(source)})

  def with_type(self, entry_type: Any) -> "LogEntry":
    value = _coerce_enum(entry_type, EntryType, EntryType.LOG)
    return self.model_copy(update={"entry_type": int(value)})

  def with_level(self, level: Any) -> "LogEntry":
    value = _coerce_enum(level, Level, Level.INFO)
    return self.model_copy(update={"level": int(value)})

  def with_timestamp(self, timestamp: Union[str, float, int, datetime]) -> "LogEntry":
    if isinstance(timestamp, datetime):
      timestamp = timestamp.isoformat()
    return self.model_copy(update={"timestamp": timestamp})

  def with_label(self, key: Any, value: Any) -> "LogEntry":
    labels = dict(self.labels)
    labels[_text(key)] = _text(value)
    return self.model_copy(update={"labels": labels})

  def with_labels(self, labels: Mapping[Any, Any]) -> "LogEntry":
    merged = dict(self.labels)
    for key, value in labels.items():
      merged[_text(key)] = _text(value)
    return self.model_copy(update={"labels": merged})

  def with_payload_type(self, payload_type: str) -> "LogEntry":
    return self.with_label("payload_type", payload_type)

  # Factories

  @classmethod
  def new_generic_entry(cls, message: Any) -> "LogEntry":
    text = _text(message)
    payload_type = PayloadType.GENERIC_JSON if is_valid_json(text) else PayloadType.GENERIC
    return cls.new(text).with_payload_type(payload_type)

  @classmethod
  def new_syslog_entry(cls, message: Any) -> "LogEntry":
    return cls.new(message).with_payload_type(PayloadType.SYSLOG)

  @classmethod
  def new_systemd_journal_entry(cls, message: Any) -> "LogEntry":
    return cls.new(message).with_payload_type(PayloadType.SYSTEMD_JOURNAL)

  @classmethod
  def new_metric_entry(cls, message: Any) -> "LogEntry":
    return (
      cls.new(message)
      .with_type(EntryType.METRIC)
      .with_payload_type(PayloadType.METRICS)
    )

  @classmethod
  def new_application_entry(cls, message: Any) -> "LogEntry":
    return cls.new(message).with_payload_type(PayloadType.APPLICATION)

  @classmethod
  def new_container_entry(cls, message: Any) -> "LogEntry":
    return cls.new(message).with_payload_type(PayloadType.CONTAINER)

  # Serialization

  def to_dict(self) -> Dict[str, Any]:
    return {
      "id": self.id,
      "message": self.message,
      "source": self.source,
      "entry_type": int(self.entry_type),
      "level": int(self.level),
      "timestamp": self.timestamp,
      "labels": dict(self.labels),
    }

  def to_json(self) -> str:
    return json.dumps(self.to_dict(), ensure_ascii=False)


class Envelope(BaseModel):
  """
  The JSON object placed on the wire for one record.
  """

  id: str
  message: str
  source: str
  entry_type: int
  level: int
  timestamp: Union[str, float, int]
  labels: Dict[str, str] = Field(default_factory=dict)

  @classmethod
  def from_entry(cls, entry: LogEntry) -> "Envelope":
    return cls(**entry.to_dict())

  def to_line(self, auth: Optional[str] = None) -> bytes:
    """Serialize to one newline-terminated UTF-8 JSON line."""
    payload: Dict[str, Any] = {
      "id": self.id,
      "message": self.message,
      "source": self.source,
      "entry_type": self.entry_type,
      "level": self.level,
      "timestamp": self.timestamp,
      "labels": self.labels,
    }
    if auth is not None:
      payload["auth"] = auth
    return (json.dumps(payload, ensure_ascii=False) + "\n").encode("utf-8")
