from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

_logger = logging.getLogger("logflux.transport")


@dataclass
class RetryPolicy:
  """
  Bounded retry with a fixed pause between attempts.

  At most `max_retries + 1` attempts are made. Only OSError (socket faults
  and timeouts) is retried; anything else propagates from the first attempt.
  """

  max_retries: int = 3
  retry_delay: float = 1.0
  sleep: Callable[[float], None] = time.sleep

  @property
  def max_attempts(self) -> int:
    return self.max_retries + 1

  def run(
    self,
    operation: Callable[[], T],
    on_failure: Optional[Callable[[OSError, int], None]] = None,
    target: str = "",
  ) -> T:
    """
    Call `operation` until it succeeds or the attempt budget is spent.

    `on_failure(exc, attempt)` runs after every failed attempt, before the
    pause. The last failure is re-raised unchanged.
    """
    attempt = 0
    while True:
      attempt += 1
      try:
        return operation()
      except OSError as exc:
        if on_failure is not None:
          on_failure(exc, attempt)

        if attempt >= self.max_attempts:
          _logger.warning(
            "logflux delivery to %s failed (attempt %s/%s), giving up: %s",
            target,
            attempt,
            self.max_attempts,
            exc,
          )
          raise

        _logger.warning(
          "logflux delivery to %s failed (attempt %s/%s), retrying in %.2fs: %s",
          target,
          attempt,
          self.max_attempts,
          self.retry_delay,
          exc,
        )
        if self.retry_delay > 0:
          self.sleep(self.retry_delay)
