"""
Basic LogFlux example.

Builds a few entries and, when an agent socket is available, sends them.

  LOGFLUX_UNIX_SOCKET=/tmp/logflux-agent.sock python examples/basic_example.py
"""

import os

from logflux import Client, ConnectionError, Level, LogEntry


def main() -> None:
  basic_entry = LogEntry.new("Hello from the Python SDK!")

  detailed_entry = (
    LogEntry.new("User login attempt")
    .with_source("python-example")
    .with_level(Level.INFO)
    .with_label("user_id", "12345")
    .with_label("ip_address", "192.168.1.100")
  )

  json_entry = LogEntry.new_generic_entry('{"event": "user_login", "success": true}')
  metric_entry = LogEntry.new_metric_entry('{"cpu_usage": 45.2, "memory": 1024}')

  print("Created log entries:")
  print(f"1. Basic: {basic_entry.message}")
  print(f"2. Detailed: {detailed_entry.message} (labels: {len(detailed_entry.labels)})")
  print(f"3. JSON: {json_entry.message} (type: {json_entry.labels['payload_type']})")
  print(f"4. Metric: {metric_entry.message} (type: {metric_entry.labels['payload_type']})")
  print()
  print("JSON representation of basic entry:")
  print(basic_entry.to_json())

  if not os.getenv("LOGFLUX_UNIX_SOCKET") and not os.getenv("LOGFLUX_HOST"):
    print("\nSet LOGFLUX_UNIX_SOCKET or LOGFLUX_HOST/LOGFLUX_PORT to send to an agent.")
    return

  with Client.from_env(max_retries=1, retry_delay=0.5) as client:
    try:
      client.send_batch([basic_entry, detailed_entry, json_entry, metric_entry])
    except ConnectionError as e:
      print(f"\nCould not reach agent: {e}")
      return
  print(f"\nSent 4 entries to {client.config.target}")


if __name__ == "__main__":
  main()
