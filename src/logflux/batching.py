from __future__ import annotations

from typing import Any, Iterator, List, Optional, Sequence, TypeVar

from .errors import InvalidBatch

T = TypeVar("T")


def validate_batch(values: Any) -> List[Any]:
  """
  Check that `values` is a non-empty list or tuple and return it as a list.

  Strings and mappings are rejected even though they are iterable: a batch
  must be an explicit sequence of records.
  """
  if not isinstance(values, (list, tuple)):
    raise InvalidBatch(f"Batch must be an array (list or tuple), got {type(values).__name__}")
  if not values:
    raise InvalidBatch("Cannot send empty batch")
  return list(values)


def chunk(items: Sequence[T], size: Optional[int]) -> Iterator[List[T]]:
  """
  Split `items` into contiguous, ordered chunks of at most `size` items.

  `size=None` yields everything as a single chunk.
  """
  if size is None:
    if items:
      yield list(items)
    return
  if size < 1:
    raise ValueError(f"chunk size must be >= 1, got {size}")
  for start in range(0, len(items), size):
    yield list(items[start:start + size])
