from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import ConfigurationError

DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_BUFFER_SIZE = 4096

OPTION_NAMES = (
  "timeout",
  "max_retries",
  "retry_delay",
  "batch_size",
  "buffer_size",
  "shared_secret",
)

# Accepted spellings in config files, mapped to option names.
_FILE_KEYS = {
  "unix_socket": "unix_socket",
  "unixSocket": "unix_socket",
  "host": "host",
  "port": "port",
  "timeout": "timeout",
  "max_retries": "max_retries",
  "maxRetries": "max_retries",
  "retry_delay": "retry_delay",
  "retryDelay": "retry_delay",
  "batch_size": "batch_size",
  "batchSize": "batch_size",
  "buffer_size": "buffer_size",
  "bufferSize": "buffer_size",
  "shared_secret": "shared_secret",
  "sharedSecret": "shared_secret",
}

_ENV_KEYS = {
  "unix_socket": "LOGFLUX_UNIX_SOCKET",
  "host": "LOGFLUX_HOST",
  "port": "LOGFLUX_PORT",
  "timeout": "LOGFLUX_TIMEOUT",
  "max_retries": "LOGFLUX_MAX_RETRIES",
  "retry_delay": "LOGFLUX_RETRY_DELAY",
  "batch_size": "LOGFLUX_BATCH_SIZE",
  "buffer_size": "LOGFLUX_BUFFER_SIZE",
  "shared_secret": "LOGFLUX_SHARED_SECRET",
}


class TransportKind(str, Enum):
  UNIX = "unix"
  TCP = "tcp"


@dataclass(frozen=True)
class ClientConfig:
  """
  Immutable configuration for a LogFlux client.

  Exactly one of `unix_socket` or (`host`, `port`) is set. Build instances
  through `ClientConfig.build` or `ClientConfig.from_params_or_env` so the
  invariants are checked.
  """

  transport: TransportKind
  unix_socket: Optional[str] = None
  host: Optional[str] = None
  port: Optional[int] = None
  timeout: float = DEFAULT_TIMEOUT
  max_retries: int = DEFAULT_MAX_RETRIES
  retry_delay: float = DEFAULT_RETRY_DELAY
  batch_size: Optional[int] = None
  buffer_size: int = DEFAULT_BUFFER_SIZE
  shared_secret: Optional[str] = None

  @property
  def auth_required(self) -> bool:
    # Unix sockets are trusted by filesystem permissions; never send the secret.
    return self.transport is TransportKind.TCP and self.shared_secret is not None

  @property
  def target(self) -> str:
    if self.transport is TransportKind.UNIX:
      return str(self.unix_socket)
    return f"{self.host}:{self.port}"

  @classmethod
  def build(
    cls,
    unix_socket: Optional[str] = None,
    host: Optional[str] = None,
    port: Union[int, str, None] = None,
    **options: Any,
  ) -> "ClientConfig":
    """
    Validate connection parameters and options.

    Raises:
      ConfigurationError: on any invalid or conflicting value.
    """
    unknown = sorted(set(options) - set(OPTION_NAMES))
    if unknown:
      raise ConfigurationError(f"Unknown option(s): {', '.join(unknown)}")

    has_unix = unix_socket is not None
    has_tcp = host is not None or port is not None

    if not has_unix and not has_tcp:
      raise ConfigurationError(
        "Missing connection type: pass unix_socket or host and port"
      )
    if has_unix and has_tcp:
      raise ConfigurationError("Cannot specify both Unix socket and TCP")

    if has_unix:
      if not isinstance(unix_socket, (str, os.PathLike)) or not str(unix_socket):
        raise ConfigurationError(f"Invalid unix socket path: {unix_socket!r}")
      transport = TransportKind.UNIX
      unix_socket = os.fspath(unix_socket)
    else:
      if host is None:
        raise ConfigurationError("TCP port requires host")
      if port is None:
        raise ConfigurationError("TCP host requires port")
      if not isinstance(host, str) or not host.strip():
        raise ConfigurationError(f"Invalid host: {host!r}")
      port = _validate_port(port)
      transport = TransportKind.TCP

    timeout = _number(options, "timeout", DEFAULT_TIMEOUT)
    if timeout <= 0:
      raise ConfigurationError(f"Invalid timeout: {timeout!r} (must be > 0)")

    max_retries = _integer(options, "max_retries", DEFAULT_MAX_RETRIES)
    if max_retries < 0:
      raise ConfigurationError(f"Invalid max_retries: {max_retries!r} (must be >= 0)")

    retry_delay = _number(options, "retry_delay", DEFAULT_RETRY_DELAY)
    if retry_delay < 0:
      raise ConfigurationError(f"Invalid retry_delay: {retry_delay!r} (must be >= 0)")

    batch_size = options.get("batch_size")
    if batch_size is not None:
      batch_size = _integer(options, "batch_size", 1)
      if batch_size < 1:
        raise ConfigurationError(f"Invalid batch_size: {batch_size!r} (must be >= 1)")

    buffer_size = _integer(options, "buffer_size", DEFAULT_BUFFER_SIZE)
    if buffer_size < 1:
      raise ConfigurationError(f"Invalid buffer_size: {buffer_size!r} (must be >= 1)")

    shared_secret = options.get("shared_secret")
    if shared_secret is not None and not isinstance(shared_secret, str):
      raise ConfigurationError("Invalid shared_secret: must be a string")

    return cls(
      transport=transport,
      unix_socket=unix_socket if has_unix else None,
      host=host if not has_unix else None,
      port=port if not has_unix else None,
      timeout=timeout,
      max_retries=max_retries,
      retry_delay=retry_delay,
      batch_size=batch_size,
      buffer_size=buffer_size,
      shared_secret=shared_secret,
    )

  @classmethod
  def from_mapping(cls, values: Mapping[str, Any]) -> "ClientConfig":
    params = dict(values)
    return cls.build(
      unix_socket=params.pop("unix_socket", None),
      host=params.pop("host", None),
      port=params.pop("port", None),
      **params,
    )

  @classmethod
  def from_params_or_env(cls, **params: Any) -> "ClientConfig":
    """
    Build configuration from explicit parameters, falling back to the environment.

    Priority:
      1. Explicit keyword arguments (None means "not given")
      2. LOGFLUX_* environment variables
      3. Config file named by LOGFLUX_CONFIG
      4. Defaults

    Connection parameters are resolved as a unit: once a higher-priority
    source names a unix socket or a host, lower sources cannot add the other
    transport's fields.
    """
    explicit = {k: v for k, v in params.items() if v is not None}

    env: Dict[str, Any] = {}
    for name, var in _ENV_KEYS.items():
      raw = os.getenv(var)
      if raw is not None and raw != "":
        env[name] = raw

    file_values: Dict[str, Any] = {}
    config_path = os.getenv("LOGFLUX_CONFIG")
    if config_path:
      file_values = load_config_file(config_path)

    merged: Dict[str, Any] = {}
    connection_set = False
    for source in (explicit, env, file_values):
      if not connection_set and _names_connection(source):
        for key in ("unix_socket", "host", "port"):
          if key in source:
            merged[key] = source[key]
        connection_set = True
      for key, value in source.items():
        if key in ("unix_socket", "host", "port"):
          continue
        merged.setdefault(key, value)

    return cls.from_mapping(merged)


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
  """
  Read client options from a JSON or YAML file.

  Options may sit at the top level or under a `logflux` section; camelCase
  keys are accepted. Unrecognised keys are ignored.
  """
  config_path = Path(path).expanduser()
  try:
    text = config_path.read_text(encoding="utf-8")
  except OSError as exc:
    raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc

  try:
    if config_path.suffix in (".yaml", ".yml"):
      data = yaml.safe_load(text)
    else:
      data = json.loads(text)
  except (yaml.YAMLError, ValueError) as exc:
    raise ConfigurationError(f"Invalid config file {config_path}: {exc}") from exc

  if data is None:
    return {}
  if not isinstance(data, dict):
    raise ConfigurationError(f"Invalid config file {config_path}: expected a mapping")

  section = data.get("logflux", data)
  if not isinstance(section, dict):
    raise ConfigurationError(f"Invalid config file {config_path}: 'logflux' must be a mapping")

  values: Dict[str, Any] = {}
  for key, value in section.items():
    name = _FILE_KEYS.get(key)
    if name is not None and value is not None:
      values[name] = value
  return values


def _names_connection(values: Mapping[str, Any]) -> bool:
  return any(key in values for key in ("unix_socket", "host", "port"))


def _validate_port(port: Any) -> int:
  if isinstance(port, bool):
    raise ConfigurationError(f"Invalid port: {port!r}")
  if isinstance(port, str):
    try:
      port = int(port.strip())
    except ValueError:
      raise ConfigurationError(f"Invalid port: {port!r}") from None
  if not isinstance(port, int) or not 1 <= port <= 65535:
    raise ConfigurationError(f"Invalid port: {port!r} (must be 1-65535)")
  return port


def _number(options: Mapping[str, Any], name: str, default: float) -> float:
  value = options.get(name)
  if value is None:
    return default
  if isinstance(value, bool):
    raise ConfigurationError(f"Invalid {name}: {value!r}")
  try:
    number = float(value)
  except (TypeError, ValueError):
    raise ConfigurationError(f"Invalid {name}: {value!r}") from None
  if not math.isfinite(number):
    raise ConfigurationError(f"Invalid {name}: {value!r} (must be finite)")
  return number


def _integer(options: Mapping[str, Any], name: str, default: int) -> int:
  value = options.get(name)
  if value is None:
    return default
  if isinstance(value, bool):
    raise ConfigurationError(f"Invalid {name}: {value!r}")
  if isinstance(value, float) and not value.is_integer():
    raise ConfigurationError(f"Invalid {name}: {value!r} (must be an integer)")
  try:
    return int(value)
  except (TypeError, ValueError):
    raise ConfigurationError(f"Invalid {name}: {value!r}") from None
