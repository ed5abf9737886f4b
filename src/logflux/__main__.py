from __future__ import annotations

import argparse
import sys
from typing import List, NoReturn, Optional, TextIO

from .client import Client
from .errors import ConfigurationError, ConnectionError, LogFluxError
from .models import Level, LogEntry


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> NoReturn:
  argv = list(sys.argv[1:] if argv is None else argv)

  if not argv or argv[0] not in {"send"}:
    print("Usage: python -m logflux send [options] [MESSAGE]", file=sys.stderr)
    print("  send          - Send a message (or stdin lines) to a LogFlux agent", file=sys.stderr)
    sys.exit(1)

  sys.exit(_run_send(argv[1:], stdin or sys.stdin))


def _build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(
    prog="logflux send",
    description="Send log entries to a LogFlux agent",
  )
  parser.add_argument("--unix-socket", default=None, help="Agent Unix socket path")
  parser.add_argument("--host", default=None, help="Agent TCP host")
  parser.add_argument("--port", default=None, help="Agent TCP port")
  parser.add_argument("--shared-secret", default=None, help="Shared secret (TCP only)")
  parser.add_argument("--timeout", type=float, default=None)
  parser.add_argument("--max-retries", type=int, default=None)
  parser.add_argument("--retry-delay", type=float, default=None)
  parser.add_argument("--batch-size", type=int, default=None)
  parser.add_argument("--source", default=None, help="Source tag (default: python-sdk)")
  parser.add_argument(
    "--level",
    type=int,
    default=int(Level.INFO),
    choices=[int(level) for level in Level],
    help="Syslog level 0-7 (default: 6, info)",
  )
  parser.add_argument(
    "--label",
    action="append",
    default=[],
    metavar="KEY=VALUE",
    help="Attach a label; may be repeated",
  )
  parser.add_argument("message", nargs="?", default=None, help="Message; stdin lines if omitted")
  return parser


def _run_send(args: List[str], stdin: TextIO) -> int:
  parser = _build_parser()
  opts = parser.parse_args(args)

  labels = {}
  for raw in opts.label:
    key, sep, value = raw.partition("=")
    if not sep:
      print(f"Invalid label '{raw}': expected KEY=VALUE", file=sys.stderr)
      return 1
    labels[key] = value

  try:
    client = Client.from_env(
      unix_socket=opts.unix_socket,
      host=opts.host,
      port=opts.port,
      shared_secret=opts.shared_secret,
      timeout=opts.timeout,
      max_retries=opts.max_retries,
      retry_delay=opts.retry_delay,
      batch_size=opts.batch_size,
    )
  except ConfigurationError as e:
    print(f"Configuration error: {e}", file=sys.stderr)
    return 1

  if opts.message is not None:
    messages = [opts.message]
  else:
    messages = [line.rstrip("\n") for line in stdin if line.strip()]
  if not messages:
    print("Nothing to send: pass MESSAGE or pipe lines on stdin", file=sys.stderr)
    return 1

  entries = []
  for message in messages:
    entry = LogEntry.new(message).with_level(opts.level).with_labels(labels)
    if opts.source:
      entry = entry.with_source(opts.source)
    entries.append(entry)

  try:
    with client:
      client.send_batch(entries)
  except ConnectionError as e:
    print(f"Delivery failed: {e}", file=sys.stderr)
    return 2
  except LogFluxError as e:
    print(f"Error: {e}", file=sys.stderr)
    return 1

  print(f"Sent {len(entries)} entr{'y' if len(entries) == 1 else 'ies'} to {client.config.target}")
  return 0


if __name__ == "__main__":
  main()
