import logging
import os

from logflux import Client, setup_logging


def main() -> None:
  # Minimal configuration via environment variables
  os.environ.setdefault("LOGFLUX_UNIX_SOCKET", "/tmp/logflux-agent.sock")

  logger = logging.getLogger("example_app")
  logging.basicConfig(level=logging.INFO)

  with Client.from_env(max_retries=0) as client:
    setup_logging(logger, client=client, source="example-app")

    logger.info("Example INFO log from minimal app")
    try:
      1 / 0
    except ZeroDivisionError:
      logger.exception("Example ERROR log with exception")


if __name__ == "__main__":
  main()
